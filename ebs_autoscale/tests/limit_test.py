"""
Test LimitEnforcer with Python's unittest.
"""
import unittest
from ebs_autoscale.managers.limit_manager import LimitEnforcer
from ebs_autoscale.models.host_state import Counters
from ebs_autoscale.utils.errors import LimitExceededError

class LimitEnforcerTest(unittest.TestCase):
    def setUp(self):
        self.limits = LimitEnforcer(max_attached=16, max_created=16, max_total_size=1000)

    def test_under_limits(self):
        """Test a fresh host passes
        """
        self.limits.check(Counters(0, 0, 0), 100)
        self.limits.check(Counters(15, 15, 999), 100)

    def test_attached_limit(self):
        """Test LimitEnforcer.check rejects at max attached
        """
        with self.assertRaises(LimitExceededError) as ctx:
            self.limits.check(Counters(16, 0, 0), 50)
        self.assertEqual(ctx.exception.kind, 'attached')

    def test_created_limit(self):
        """Test LimitEnforcer.check rejects at max created
        """
        with self.assertRaises(LimitExceededError) as ctx:
            self.limits.check(Counters(3, 16, 0), 50)
        self.assertEqual(ctx.exception.kind, 'created')

    def test_size_limit(self):
        """Test LimitEnforcer.check rejects at max total size
        """
        with self.assertRaises(LimitExceededError) as ctx:
            self.limits.check(Counters(3, 3, 1200), 50)
        self.assertEqual(ctx.exception.kind, 'size')
        self.assertEqual(ctx.exception.current, 1200)
        self.assertEqual(ctx.exception.maximum, 1000)

    def test_check_order(self):
        """Test attached is reported before created and size
        """
        with self.assertRaises(LimitExceededError) as ctx:
            self.limits.check(Counters(20, 20, 2000), 1)
        self.assertEqual(ctx.exception.kind, 'attached')
