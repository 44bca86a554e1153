"""
Test InstanceMetadataManager with unittest.mock standing in for the metadata service.
"""
import unittest
from unittest.mock import MagicMock
import requests
from ebs_autoscale.managers.metadata_manager import InstanceMetadataManager
from ebs_autoscale.utils.errors import MetadataError

def _response(text, status=200):
    response = MagicMock()
    response.text = text
    if status >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(f'{status} error')
    return response

class InstanceMetadataManagerTest(unittest.TestCase):
    def setUp(self):
        self.session = MagicMock()
        self.session.put.return_value = _response('token-123')
        paths = {
            'http://169.254.169.254/latest/meta-data/instance-id': _response('i-0abc'),
            'http://169.254.169.254/latest/meta-data/placement/availability-zone': _response('eu-west-2c\n'),
        }
        self.session.get.side_effect = lambda url, **kwargs: paths[url]
        self.metadata = InstanceMetadataManager(session=self.session)

    def test_identity(self):
        """Test instance ID, zone and derived region
        """
        self.assertEqual(self.metadata.get_instance_id(), 'i-0abc')
        self.assertEqual(self.metadata.get_availability_zone(), 'eu-west-2c')
        self.assertEqual(self.metadata.get_region(), 'eu-west-2')

        identity = self.metadata.get_identity()
        self.assertEqual(identity.instance_id, 'i-0abc')
        self.assertEqual(identity.region, 'eu-west-2')

    def test_token_is_fetched_once_and_sent(self):
        """Test the IMDSv2 token is reused across lookups
        """
        self.metadata.get_instance_id()
        self.metadata.get_availability_zone()
        self.assertEqual(self.session.put.call_count, 1)
        for call in self.session.get.call_args_list:
            self.assertEqual(call.kwargs['headers'], {'X-aws-ec2-metadata-token': 'token-123'})

    def test_token_failure(self):
        """Test an unreachable metadata service raises MetadataError
        """
        self.session.put.side_effect = requests.ConnectionError('no route to host')
        with self.assertRaises(MetadataError):
            self.metadata.get_instance_id()

    def test_lookup_failure(self):
        """Test an HTTP error on a lookup raises MetadataError
        """
        self.session.get.side_effect = lambda url, **kwargs: _response('', status=404)
        with self.assertRaises(MetadataError):
            self.metadata.get_availability_zone()
