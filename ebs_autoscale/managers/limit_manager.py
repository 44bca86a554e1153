"""
Implements the per-instance resource limits.
"""
from ebs_autoscale.utils.logger import logger
from ebs_autoscale.utils.errors import LimitExceededError
from ebs_autoscale.models.host_state import Counters

class LimitEnforcer:
    def __init__(self, max_attached: int, max_created: int, max_total_size: int):
        """Initialize the limits
        Args:
            max_attached: maximum number of volumes attached to the instance
            max_created: maximum number of volumes created for the instance
            max_total_size: maximum cumulative size (GiB) of created volumes
        """
        self.max_attached = max_attached
        self.max_created = max_created
        self.max_total_size = max_total_size

    def check(self, counters: Counters, size: int) -> None:
        """Reject the request if any counter has reached its maximum
        Args:
            counters: the current counters
            size: the requested size in GiB (logged only)
        Raises:
            LimitExceededError: checked in order attached, created, size
        """
        checks = (
            ('attached', counters.attached_count, self.max_attached),
            ('created', counters.created_count, self.max_created),
            ('size', counters.created_size, self.max_total_size),
        )
        for kind, current, maximum in checks:
            if current >= maximum:
                logger.error(f'[FAIL] {kind} limit reached ({current} >= {maximum}), refusing {size} GiB request')
                raise LimitExceededError(kind, current, maximum)
        logger.debug(f'[INFO] limits ok for {size} GiB: {counters.attached_count}/{self.max_attached} attached, '
                     f'{counters.created_count}/{self.max_created} created, '
                     f'{counters.created_size}/{self.max_total_size} GiB')
