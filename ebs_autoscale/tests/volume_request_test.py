"""
Test VolumeRequest construction rules with Python's unittest.
"""
import unittest
from ebs_autoscale.models.volume_request import VolumeRequest, DEFAULT_IOPS, DEFAULT_THROUGHPUT
from ebs_autoscale.utils.errors import ConfigError

class VolumeRequestTest(unittest.TestCase):
    def test_gp3_defaults(self):
        """Test gp3 requests get default iops and throughput
        """
        request = VolumeRequest.build(size=100, volume_type='gp3')
        self.assertEqual(request.iops, DEFAULT_IOPS)
        self.assertEqual(request.throughput, DEFAULT_THROUGHPUT)
        self.assertTrue(request.encrypted)

        params = request.to_create_params('us-east-1a')
        self.assertEqual(params, {'AvailabilityZone': 'us-east-1a',
                                  'Size': 100,
                                  'VolumeType': 'gp3',
                                  'Iops': DEFAULT_IOPS,
                                  'Throughput': DEFAULT_THROUGHPUT,
                                  'Encrypted': True})

    def test_default_type_is_gp3(self):
        """Test a request without a type is gp3
        """
        self.assertEqual(VolumeRequest.build(size=10).volume_type, 'gp3')

    def test_gp2_has_no_iops_or_throughput(self):
        """Test gp2 parameters carry neither iops nor throughput
        """
        params = VolumeRequest.build(size=20, volume_type='gp2').to_create_params('us-east-1a')
        self.assertNotIn('Iops', params)
        self.assertNotIn('Throughput', params)

    def test_io1_has_iops_only(self):
        """Test io1 parameters carry iops but not throughput
        """
        params = VolumeRequest.build(size=20, volume_type='io1', iops=5000).to_create_params('us-east-1a')
        self.assertEqual(params['Iops'], 5000)
        self.assertNotIn('Throughput', params)

    def test_standard_params(self):
        """Test standard volumes only carry the base parameters
        """
        params = VolumeRequest.build(size=20, volume_type='standard', encrypted=False).to_create_params('us-east-1b')
        self.assertEqual(params, {'AvailabilityZone': 'us-east-1b', 'Size': 20, 'VolumeType': 'standard'})

    def test_not_encrypted(self):
        """Test the Encrypted flag is omitted when encryption is off
        """
        params = VolumeRequest.build(size=20, encrypted=False).to_create_params('us-east-1a')
        self.assertNotIn('Encrypted', params)

    def test_rejects_illegal_combinations(self):
        """Test options the volume type does not take are rejected
        """
        with self.assertRaises(ConfigError):
            VolumeRequest.build(size=20, volume_type='gp2', iops=3000)
        with self.assertRaises(ConfigError):
            VolumeRequest.build(size=20, volume_type='io1', throughput=250)
        with self.assertRaises(ConfigError):
            VolumeRequest.build(size=200, volume_type='st1', iops=500)

    def test_rejects_bad_values(self):
        """Test invalid sizes, types and out-of-range options are rejected
        """
        for kwargs in ({'size': 0},
                       {'size': -5},
                       {'size': 10, 'volume_type': 'nvme'},
                       {'size': 2000, 'volume_type': 'standard'},
                       {'size': 10, 'volume_type': 'sc1'},
                       {'size': 10, 'volume_type': 'gp3', 'iops': 100},
                       {'size': 10, 'volume_type': 'gp3', 'throughput': 5000}):
            with self.subTest(kwargs=kwargs):
                with self.assertRaises(ConfigError):
                    VolumeRequest.build(**kwargs)
