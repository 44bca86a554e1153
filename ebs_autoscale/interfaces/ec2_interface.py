"""
Defines interfaces for the Amazon EC2 functionalities used by the provisioner.

Volume Manager (for integration with EBS):
1. Attach Volume. Attaches a created EBS volume at a device name.
2. Set Delete On Termination. Marks an attached device for deletion with the instance.
3. List Attached Devices. Returns device names currently attached to the instance.

Tags Manager:
1. Get Instance Tags. Returns the tags on the instance.
"""
from typing import Protocol, Dict, Set

class EC2VolumeInterface(Protocol):
    def attach_volume(self, instance_id: str, volume_id: str, device_name: str) -> None:
        raise NotImplementedError

    def set_delete_on_termination(self, instance_id: str, device_name: str) -> None:
        raise NotImplementedError

    def list_attached_devices(self, instance_id: str) -> Set[str]:
        raise NotImplementedError

class EC2TagsInterface(Protocol):
    def get_instance_tags(self, instance_id: str) -> Dict[str, str]:
        raise NotImplementedError
