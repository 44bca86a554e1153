"""
Implements the EBS functionalities used by the provisioner.
"""
from ebs_autoscale.utils.logger import logger
from ebs_autoscale.utils.errors import ProvisionError, AvailabilityTimeoutError
from ebs_autoscale.utils.tags import SOURCE_INSTANCE_TAG, to_tag_specifications, tags_to_dict
from ebs_autoscale.interfaces.ebs_interface import EBSVolumeInterface
from botocore.exceptions import ClientError, BotoCoreError, WaiterError
from botocore.client import BaseClient
from typing import Any, Dict, List

class EBSVolumeManager(EBSVolumeInterface):
    def __init__(self, ec2_client: BaseClient, waiter_delay: int = 5, waiter_max_attempts: int = 40):
        """Initialize EBS shared resources
        Args:
            ec2_client: the EC2 client
            waiter_delay: seconds between availability polls
            waiter_max_attempts: availability polls before giving up
        """
        self.client = ec2_client
        self.waiter_delay = waiter_delay
        self.waiter_max_attempts = waiter_max_attempts

    def create_volume(self, params: Dict[str, Any], tags: Dict[str, str]) -> str:
        """Creates a tagged EBS volume
        Docs:
            https://boto3.amazonaws.com/v1/documentation/api/latest/reference/services/ec2/client/create_volume.html
        Args:
            params: create_volume keyword arguments (AvailabilityZone, Size, VolumeType, ...)
            tags: tags to apply to the volume at creation
        Return:
            The new volume ID
        Raises:
            ProvisionError: the call failed or returned no volume ID
        """
        try:
            response = self.client.create_volume(TagSpecifications=to_tag_specifications(tags), **params)
        except (ClientError, BotoCoreError) as e:
            logger.error(f'[FAIL] cannot create EBS volume ({e})')
            raise ProvisionError('cannot create EBS volume', str(e))

        volume_id = response.get('VolumeId')
        if not volume_id:
            logger.error(f'[FAIL] create_volume returned no volume ID')
            raise ProvisionError('create_volume returned no volume ID', str(response))

        logger.info(f'[SUCCESS] created EBS volume "{volume_id}" ({params["Size"]} GiB {params["VolumeType"]})')
        return volume_id

    def delete_volume(self, volume_id: str) -> bool:
        """Deletes an existing EBS volume
        Docs:
            https://boto3.amazonaws.com/v1/documentation/api/latest/reference/services/ec2/client/delete_volume.html
        Args:
            volume_id: the EBS volume id
        Return:
            True/False to indicate success/failure
        """
        try:
            self.client.delete_volume(VolumeId=volume_id)
        except (ClientError, BotoCoreError) as e:
            logger.error(f'[FAIL] cannot delete EBS volume "{volume_id}" ({e})')
            return False
        logger.info(f'[SUCCESS] deleted EBS volume "{volume_id}"')
        return True

    def wait_until_available(self, volume_id: str) -> None:
        """Blocks until the volume reaches the 'available' state
        Docs:
            https://boto3.amazonaws.com/v1/documentation/api/latest/reference/services/ec2/waiter/VolumeAvailable.html
        Args:
            volume_id: the EBS volume id
        Raises:
            AvailabilityTimeoutError: the waiter failed or ran out of attempts
        """
        waiter = self.client.get_waiter('volume_available')
        try:
            waiter.wait(VolumeIds=[volume_id],
                        WaiterConfig={'Delay': self.waiter_delay,
                                      'MaxAttempts': self.waiter_max_attempts})
        except (WaiterError, ClientError, BotoCoreError) as e:
            logger.error(f'[FAIL] EBS volume "{volume_id}" did not become available ({e})')
            raise AvailabilityTimeoutError(f'volume "{volume_id}" did not become available', str(e))
        logger.info(f'[SUCCESS] EBS volume "{volume_id}" is available')

    def list_instance_volumes(self, instance_id: str) -> List[Dict[str, Any]]:
        """Lists volumes created for an instance (by source-instance tag)
        Docs:
            https://boto3.amazonaws.com/v1/documentation/api/latest/reference/services/ec2/client/describe_volumes.html
        Args:
            instance_id: the EC2 instance ID
        Return:
            List of dictionaries of the form, [{'id': str,
                                                'state': str,
                                                'size': int,
                                                'type': str,
                                                'tags': dict,
                                                'attachments': [{'instance_id': str, 'device': str, 'state': str}]}]
        """
        paginator = self.client.get_paginator('describe_volumes')
        volumes = []
        try:
            for page in paginator.paginate(Filters=[{'Name': f'tag:{SOURCE_INSTANCE_TAG}',
                                                     'Values': [instance_id]}]):
                for volume in page.get('Volumes', []):
                    volumes.append({
                        'id': volume['VolumeId'],
                        'state': volume['State'],
                        'size': volume['Size'],
                        'type': volume['VolumeType'],
                        'tags': tags_to_dict(volume.get('Tags')),
                        'attachments': [{'instance_id': a.get('InstanceId'),
                                         'device': a.get('Device'),
                                         'state': a.get('State')}
                                        for a in volume.get('Attachments', [])]
                    })
        except (ClientError, BotoCoreError) as e:
            logger.error(f'[FAIL] cannot retrieve EBS volumes for "{instance_id}" ({e})')
            raise
        logger.debug(f'[SUCCESS] retrieved {len(volumes)} EBS volumes for "{instance_id}"')
        return volumes
