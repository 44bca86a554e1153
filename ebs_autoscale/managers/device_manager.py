"""
Implements logical device allocation.
"""
import string
from typing import Iterable, List, Optional, Set

from ebs_autoscale.utils.logger import logger
from ebs_autoscale.utils.errors import NoDeviceAvailableError
from ebs_autoscale.interfaces.ec2_interface import EC2VolumeInterface
from ebs_autoscale.models.host_state import HostState

DEVICE_PREFIX = '/dev/xvd'
# xvda is the root device
DEVICE_LETTERS = string.ascii_lowercase[1:]

def device_namespace(prefix: str = DEVICE_PREFIX, letters: Iterable[str] = DEVICE_LETTERS) -> List[str]:
    """The ordered list of device names the allocator hands out
    """
    return [f'{prefix}{letter}' for letter in letters]

class DeviceAllocator:
    """Hands out each device name at most once per host

    With the local counter store every allocated name is kept in the state file. With the remote
    store a name stays reserved only while EC2 still lists a volume tagged with it.
    """
    def __init__(self,
                 host_state: HostState,
                 ec2_manager: Optional[EC2VolumeInterface] = None,
                 namespace: Optional[List[str]] = None):
        """Initialize the allocator
        Args:
            host_state: host resources (device probe and counter store with allocated devices)
            ec2_manager: optional EC2 manager to exclude devices already mapped on the instance
            namespace: ordered candidate device names (default /dev/xvdb../dev/xvdz)
        """
        self.host_state = host_state
        self.ec2_manager = ec2_manager
        self.namespace = namespace or device_namespace()

    def devices_in_use(self) -> Set[str]:
        """Devices that must not be handed out: previously allocated on this host or mapped on the instance
        """
        in_use = set(self.host_state.counter_store.allocated_devices())
        if self.ec2_manager is not None:
            in_use |= self.ec2_manager.list_attached_devices(self.host_state.identity.instance_id)
        return in_use

    def allocate(self) -> str:
        """Return the first free device name in the namespace
        Raises:
            NoDeviceAvailableError: every name is in use
        """
        in_use = self.devices_in_use()
        for device_name in self.namespace:
            if device_name in in_use:
                continue
            if self.host_state.device_exists(device_name):
                continue
            logger.info(f'[SUCCESS] allocated device {device_name}')
            return device_name

        logger.error(f'[FAIL] no device names available ({len(in_use)} in use)')
        raise NoDeviceAvailableError(diagnostic=f'in use: {", ".join(sorted(in_use))}' if in_use else None)
