"""
Implements the EC2 functionalities used by the provisioner.
"""
from ebs_autoscale.utils.logger import logger
from ebs_autoscale.utils.errors import AttachError, TerminationPolicyError, EBSAutoscaleError
from ebs_autoscale.interfaces.ec2_interface import EC2VolumeInterface, EC2TagsInterface
from botocore.exceptions import ClientError, BotoCoreError
from botocore.client import BaseClient
from typing import Dict, Set

class EC2VolumeManager(EC2VolumeInterface):
    def __init__(self, ec2_client: BaseClient):
        """Initialize EC2 shared resources
        Args:
            ec2_client: the EC2 client
        """
        self.client = ec2_client

    def attach_volume(self, instance_id: str, volume_id: str, device_name: str) -> None:
        """Attach EBS volume to EC2 instance
        Docs:
            https://boto3.amazonaws.com/v1/documentation/api/latest/reference/services/ec2/client/attach_volume.html
        Args:
            instance_id: the EC2 instance ID
            volume_id: the EBS volume ID
            device_name: the device name of the volume
        Raises:
            AttachError: the attach call failed
        """
        try:
            self.client.attach_volume(Device=device_name,
                                      InstanceId=instance_id,
                                      VolumeId=volume_id)
        except (ClientError, BotoCoreError) as e:
            logger.error(f'[FAIL] cannot attach EBS volume "{volume_id}" at {device_name} ({e})')
            raise AttachError(f'cannot attach volume "{volume_id}" at {device_name}', str(e))
        logger.info(f'[SUCCESS] attached EBS volume "{volume_id}" at {device_name}')

    def set_delete_on_termination(self, instance_id: str, device_name: str) -> None:
        """Mark an attached device for deletion when the instance terminates
        Docs:
            https://boto3.amazonaws.com/v1/documentation/api/latest/reference/services/ec2/client/modify_instance_attribute.html
        Args:
            instance_id: the EC2 instance ID
            device_name: the device name the volume is attached at
        Raises:
            TerminationPolicyError: the modify call failed
        """
        try:
            self.client.modify_instance_attribute(
                InstanceId=instance_id,
                BlockDeviceMappings=[{
                    'DeviceName': device_name,
                    'Ebs': {'DeleteOnTermination': True}
                }]
            )
        except (ClientError, BotoCoreError) as e:
            raise TerminationPolicyError(f'cannot set delete-on-termination for {device_name}', str(e))
        logger.info(f'[SUCCESS] set delete-on-termination for {device_name}')

    def list_attached_devices(self, instance_id: str) -> Set[str]:
        """Device names of every block device mapped on the instance
        Docs:
            https://boto3.amazonaws.com/v1/documentation/api/latest/reference/services/ec2/client/describe_instances.html
        Args:
            instance_id: the EC2 instance ID
        Return:
            Set of device names (e.g. {'/dev/xvda', '/dev/xvdb'})
        """
        try:
            reservations = self.client.describe_instances(InstanceIds=[instance_id])['Reservations']
        except (ClientError, BotoCoreError) as e:
            logger.error(f'[FAIL] cannot describe instance "{instance_id}" ({e})')
            raise EBSAutoscaleError(f'cannot describe instance "{instance_id}"', str(e))

        devices = set()
        for reservation in reservations:
            for instance in reservation['Instances']:
                for mapping in instance.get('BlockDeviceMappings', []):
                    devices.add(mapping['DeviceName'])
        return devices

class EC2TagsManager(EC2TagsInterface):
    def __init__(self, ec2_client: BaseClient):
        """Initialize EC2 shared resources
        Args:
            ec2_client: the EC2 client
        """
        self.client = ec2_client

    def get_instance_tags(self, instance_id: str) -> Dict[str, str]:
        """Retrieve the tags on an instance
        Docs:
            https://boto3.amazonaws.com/v1/documentation/api/latest/reference/services/ec2/client/describe_tags.html
        Args:
            instance_id: the EC2 instance ID
        Return:
            Dictionary of the form {'key': 'value', ...}; empty if tags cannot be read
        """
        tags = {}
        paginator = self.client.get_paginator('describe_tags')
        try:
            for page in paginator.paginate(Filters=[{'Name': 'resource-id', 'Values': [instance_id]}]):
                for tag in page.get('Tags', []):
                    tags[tag['Key']] = tag['Value']
        except (ClientError, BotoCoreError) as e:
            logger.warning(f'[WARNING] cannot read tags for "{instance_id}" ({e})')
            return {}
        return tags
