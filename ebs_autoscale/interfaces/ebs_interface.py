"""
Defines interfaces for the Amazon Elastic Block Storage (EBS) functionalities used by the provisioner.

Volume Manager:
1. Create Volume. Creates a tagged EBS volume and returns its ID.
2. Delete Volume. Deletes a volume (used to roll back a failed request).
3. Wait Until Available. Blocks (bounded) until a new volume can be attached.
4. List Instance Volumes. Retrieves the volumes created for/attached to an instance.
"""
from typing import Protocol, List, Dict, Any

class EBSVolumeInterface(Protocol):
    def create_volume(self, params: Dict[str, Any], tags: Dict[str, str]) -> str:
        raise NotImplementedError

    def delete_volume(self, volume_id: str) -> bool:
        raise NotImplementedError

    def wait_until_available(self, volume_id: str) -> None:
        raise NotImplementedError

    def list_instance_volumes(self, instance_id: str) -> List[Dict[str, Any]]:
        raise NotImplementedError
