"""
Test LocalCounterManager and RemoteCounterManager with moto
(fake AWS calls that mimics boto3) and Python's unittest.
"""
import json
import tempfile
from pathlib import Path
from unittest.mock import patch
from ebs_autoscale.tests.core import *
from ebs_autoscale.managers import counter_manager
from ebs_autoscale.managers.counter_manager import LocalCounterManager, RemoteCounterManager
from ebs_autoscale.managers.ebs_manager import EBSVolumeManager
from ebs_autoscale.utils.errors import EBSAutoscaleError
from botocore.exceptions import EndpointConnectionError
from ebs_autoscale.utils.tags import get_volume_tags, DEVICE_TAG

class LocalCounterManagerTest(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.state_path = Path(self.tmp.name) / 'state' / 'state.json'
        self.store = LocalCounterManager(self.state_path)

    def tearDown(self):
        self.tmp.cleanup()

    def test_empty_state(self):
        """Test a missing state file reads as zero counters
        """
        self.assertEqual(self.store.read(), Counters(0, 0, 0))
        self.assertEqual(self.store.allocated_devices(), set())

    def test_record_attached(self):
        """Test LocalCounterManager.record_attached increments exactly once per call
        """
        self.assertEqual(self.store.record_attached('vol-1', '/dev/xvdb', 100), Counters(1, 1, 100))
        self.assertEqual(self.store.record_attached('vol-2', '/dev/xvdc', 20), Counters(2, 2, 120))

        # A new store on the same file sees the persisted counters
        other = LocalCounterManager(self.state_path)
        self.assertEqual(other.read(), Counters(2, 2, 120))
        self.assertEqual(other.allocated_devices(), {'/dev/xvdb', '/dev/xvdc'})

        with open(self.state_path) as f:
            state = json.load(f)
        self.assertEqual([v['id'] for v in state['volumes']], ['vol-1', 'vol-2'])

    def test_corrupt_state(self):
        """Test an unreadable state file is an error, not a reset
        """
        self.state_path.parent.mkdir(parents=True)
        self.state_path.write_text('{not json')
        with self.assertRaises(EBSAutoscaleError):
            self.store.read()

    def test_record_attached_write_failure(self):
        """Test a failed write names the volume that is attached but not counted
        """
        self.store.record_attached('vol-1', '/dev/xvdb', 100)
        with patch.object(counter_manager.os, 'replace', side_effect=OSError('No space left on device')):
            with self.assertRaises(EBSAutoscaleError) as ctx:
                self.store.record_attached('vol-2', '/dev/xvdc', 20)
        self.assertIn('No space left on device', ctx.exception.diagnostic)
        self.assertIn('volume vol-2 remains attached at /dev/xvdc', ctx.exception.diagnostic)
        self.assertEqual(self.store.read(), Counters(1, 1, 100))
        self.assertEqual(list(self.state_path.parent.glob('.state-*')), [])

class RemoteCounterManagerTest(unittest.TestCase):
    def setUp(self):
        """Set up a mocked instance with tagged volumes
        """
        fake_aws_credentials()
        self.mock = mock_aws()
        self.mock.start()

        self.client = boto3.client('ec2', region_name=REGION)
        self.ebs_volume_manager = EBSVolumeManager(self.client)
        self.instance_id = launch_instance(self.client)
        self.store = RemoteCounterManager(self.ebs_volume_manager, self.instance_id)

    def tearDown(self):
        """Stop mocking resources
        """
        self.mock.stop()

    def _create(self, size, device, instance_id=None):
        params = {'AvailabilityZone': AVAILABILITY_ZONE, 'Size': size, 'VolumeType': 'gp2'}
        return self.ebs_volume_manager.create_volume(params, get_volume_tags(instance_id or self.instance_id, device))

    def test_read(self):
        """Test RemoteCounterManager.read counts tagged and attached volumes
        """
        self.assertEqual(self.store.read(), Counters(0, 0, 0))

        attached = self._create(10, '/dev/xvdb')
        self.client.attach_volume(VolumeId=attached, InstanceId=self.instance_id, Device='/dev/xvdb')
        self._create(30, '/dev/xvdc')
        self._create(50, '/dev/xvdb', instance_id='i-someoneelse')

        self.assertEqual(self.store.read(), Counters(attached_count=1, created_count=2, created_size=40))

    def test_record_attached_rereads(self):
        """Test RemoteCounterManager.record_attached reports the live counters
        """
        volume_id = self._create(10, '/dev/xvdb')
        self.client.attach_volume(VolumeId=volume_id, InstanceId=self.instance_id, Device='/dev/xvdb')
        self.assertEqual(self.store.record_attached(volume_id, '/dev/xvdb', 10), Counters(1, 1, 10))

    def test_allocated_devices(self):
        """Test devices come from the device tag of each volume
        """
        self._create(10, '/dev/xvdb')
        self._create(10, '/dev/xvdd')
        self.assertEqual(self.store.allocated_devices(), {'/dev/xvdb', '/dev/xvdd'})

    def test_query_failure(self):
        """Test a failed describe call is an EBSAutoscaleError
        """
        manager = MagicMock()
        manager.list_instance_volumes.side_effect = client_error('DescribeVolumes')
        with self.assertRaises(EBSAutoscaleError):
            RemoteCounterManager(manager, 'i-123').read()

    def test_query_unreachable(self):
        """Test a connection failure while listing volumes is an EBSAutoscaleError
        """
        manager = MagicMock()
        manager.list_instance_volumes.side_effect = EndpointConnectionError(endpoint_url='https://ec2.us-east-1.amazonaws.com')
        with self.assertRaises(EBSAutoscaleError):
            RemoteCounterManager(manager, 'i-123').allocated_devices()

    def test_deleted_volume_keeps_its_device(self):
        """Test a deleted volume no longer counts but its device stays allocated
        """
        manager = MagicMock()
        manager.list_instance_volumes.return_value = [
            {'id': 'vol-1', 'state': 'in-use', 'size': 10, 'type': 'gp3', 'tags': {DEVICE_TAG: '/dev/xvdb'},
             'attachments': [{'instance_id': 'i-123', 'device': '/dev/xvdb', 'state': 'attached'}]},
            {'id': 'vol-2', 'state': 'deleted', 'size': 20, 'type': 'gp3', 'tags': {DEVICE_TAG: '/dev/xvdc'},
             'attachments': []},
        ]
        store = RemoteCounterManager(manager, 'i-123')
        self.assertEqual(store.read(), Counters(1, 1, 10))
        self.assertEqual(store.allocated_devices(), {'/dev/xvdb', '/dev/xvdc'})
