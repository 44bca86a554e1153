"""
Test volume tag helpers with Python's unittest.
"""
import unittest
from datetime import datetime, timezone
from ebs_autoscale.utils.tags import (get_volume_tags, filter_reserved_tags, to_tag_specifications,
                                      tags_to_dict, SOURCE_INSTANCE_TAG, CREATION_TIME_TAG, DEVICE_TAG)

class TagsTest(unittest.TestCase):
    def test_filter_reserved_tags(self):
        """Test aws: prefixed keys are dropped
        """
        tags = {'aws:cloudformation:stack-name': 'x', 'AWS:foo': 'y', 'team': 'storage'}
        self.assertEqual(filter_reserved_tags(tags), {'team': 'storage'})

    def test_get_volume_tags(self):
        """Test instance tags are propagated and provisioner tags added
        """
        now = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        tags = get_volume_tags('i-123', '/dev/xvdb',
                               {'team': 'storage', 'aws:autoscaling:groupName': 'asg', SOURCE_INSTANCE_TAG: 'i-other'},
                               now=now)
        self.assertEqual(tags, {
            'team': 'storage',
            'Name': 'ebs-autoscale-i-123',
            SOURCE_INSTANCE_TAG: 'i-123',
            CREATION_TIME_TAG: '2024-01-02T03:04:05Z',
            DEVICE_TAG: '/dev/xvdb',
        })

    def test_tag_specifications_round_trip(self):
        """Test TagSpecifications rendering
        """
        spec = to_tag_specifications({'a': '1', 'b': '2'})
        self.assertEqual(spec[0]['ResourceType'], 'volume')
        self.assertEqual(tags_to_dict(spec[0]['Tags']), {'a': '1', 'b': '2'})
        self.assertEqual(tags_to_dict(None), {})
