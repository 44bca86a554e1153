"""
Implements the per-step components of a provisioning request.

VolumeProvisioner: create the volume and wait until it is available (deletes it if the wait fails).
Attacher: attach the available volume at the allocated device (deletes it if the attach fails).
VisibilityWaiter: poll until the device node shows up on the host (never rolls back).
TerminationPolicySetter: best-effort delete-on-termination.
"""
import time
from typing import Callable, Dict, Optional

from ebs_autoscale.utils.logger import logger
from ebs_autoscale.utils.errors import (EBSAutoscaleError, VisibilityTimeoutError,
                                        TerminationPolicyError)
from ebs_autoscale.utils.tags import get_volume_tags
from ebs_autoscale.interfaces.ebs_interface import EBSVolumeInterface
from ebs_autoscale.interfaces.ec2_interface import EC2VolumeInterface, EC2TagsInterface
from ebs_autoscale.models.host_state import InstanceIdentity
from ebs_autoscale.models.volume import Volume, VolumeState
from ebs_autoscale.models.volume_request import VolumeRequest

def rollback(ebs_manager: EBSVolumeInterface, volume: Volume, error: EBSAutoscaleError) -> None:
    """Delete the volume created by this request and note the outcome on the error
    Args:
        ebs_manager: the EBS volume manager
        volume: the volume to delete
        error: the failure that triggered the rollback; its diagnostic is extended
    """
    logger.warning(f'[WARNING] rolling back volume "{volume.volume_id}" ({error.message})')
    if ebs_manager.delete_volume(volume.volume_id):
        volume.transition(VolumeState.DELETED)
        note = f'volume {volume.volume_id} deleted'
    else:
        logger.error(f'[FAIL] volume "{volume.volume_id}" is orphaned and must be deleted manually')
        note = f'rollback failed, volume {volume.volume_id} is orphaned'
    error.diagnostic = f'{error.diagnostic}; {note}' if error.diagnostic else note

class VolumeProvisioner:
    def __init__(self, ebs_manager: EBSVolumeInterface, tags_manager: Optional[EC2TagsInterface] = None):
        """Initialize the provisioner
        Args:
            ebs_manager: the EBS volume manager
            tags_manager: optional source of instance tags to propagate onto the volume
        """
        self.ebs_manager = ebs_manager
        self.tags_manager = tags_manager

    def build_tags(self, identity: InstanceIdentity, device_name: str) -> Dict[str, str]:
        instance_tags = {}
        if self.tags_manager is not None:
            instance_tags = self.tags_manager.get_instance_tags(identity.instance_id)
        return get_volume_tags(identity.instance_id, device_name, instance_tags)

    def create(self,
               request: VolumeRequest,
               identity: InstanceIdentity,
               device_name: str) -> Volume:
        """Create the volume and block until it is available
        Args:
            request: the validated volume request
            identity: the owning instance (zone and tag context)
            device_name: the device the volume will be attached at (recorded as a tag)
        Return:
            The available volume
        Raises:
            ProvisionError: creation failed, nothing to roll back
            AvailabilityTimeoutError: the wait failed; the volume has been deleted
        """
        params = request.to_create_params(identity.availability_zone)
        tags = self.build_tags(identity, device_name)
        logger.debug(f'[INFO] create_volume parameters: {params}')

        volume_id = self.ebs_manager.create_volume(params, tags)
        volume = Volume(volume_id=volume_id,
                        size=request.size,
                        volume_type=request.volume_type,
                        instance_id=identity.instance_id)
        try:
            self.ebs_manager.wait_until_available(volume_id)
        except EBSAutoscaleError as e:
            rollback(self.ebs_manager, volume, e)
            raise
        volume.transition(VolumeState.AVAILABLE)
        return volume

class Attacher:
    def __init__(self,
                 ec2_manager: EC2VolumeInterface,
                 ebs_manager: EBSVolumeInterface,
                 settle_delay: float = 5.0,
                 sleep: Callable[[float], None] = time.sleep):
        """Initialize the attacher
        Args:
            ec2_manager: the EC2 volume manager
            ebs_manager: the EBS volume manager (for rollback)
            settle_delay: seconds to wait before issuing the attach
            sleep: sleep function (injected for testing)
        """
        self.ec2_manager = ec2_manager
        self.ebs_manager = ebs_manager
        self.settle_delay = settle_delay
        self.sleep = sleep

    def attach(self, volume: Volume, device_name: str) -> None:
        """Attach the volume at device_name
        Raises:
            AttachError: the attach failed; the volume has been deleted
        """
        if self.settle_delay:
            self.sleep(self.settle_delay)
        try:
            self.ec2_manager.attach_volume(volume.instance_id, volume.volume_id, device_name)
        except EBSAutoscaleError as e:
            rollback(self.ebs_manager, volume, e)
            raise
        volume.transition(VolumeState.ATTACHED)

class VisibilityWaiter:
    def __init__(self,
                 device_exists: Callable[[str], bool],
                 attempts: int = 10,
                 interval: float = 1.0,
                 sleep: Callable[[float], None] = time.sleep):
        """Initialize the waiter
        Args:
            device_exists: probe for a device node
            attempts: maximum number of probes
            interval: seconds between probes
            sleep: sleep function (injected for testing)
        """
        self.device_exists = device_exists
        self.attempts = attempts
        self.interval = interval
        self.sleep = sleep

    def wait(self, device_name: str) -> int:
        """Poll until device_name exists
        Return:
            The number of probes made
        Raises:
            VisibilityTimeoutError: the device never appeared
        """
        for attempt in range(1, self.attempts + 1):
            if self.device_exists(device_name):
                logger.info(f'[SUCCESS] {device_name} is visible after {attempt} attempt(s)')
                return attempt
            if attempt < self.attempts:
                self.sleep(self.interval)
        logger.error(f'[FAIL] {device_name} did not appear after {self.attempts} attempts')
        raise VisibilityTimeoutError(f'{device_name} did not appear after {self.attempts} attempts',
                                     'volume remains attached and accounted for')

class TerminationPolicySetter:
    def __init__(self, ec2_manager: EC2VolumeInterface):
        self.ec2_manager = ec2_manager

    def apply(self, instance_id: str, device_name: str) -> bool:
        """Set delete-on-termination; failures are logged, never raised
        Return:
            True/False to indicate success/failure
        """
        try:
            self.ec2_manager.set_delete_on_termination(instance_id, device_name)
        except TerminationPolicyError as e:
            logger.warning(f'[WARNING] {e}')
            return False
        return True
