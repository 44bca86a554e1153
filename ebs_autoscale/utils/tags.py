"""
Tag helpers for volumes created by the provisioner.
"""
from datetime import datetime, timezone
from typing import Dict, List, Optional

# Keys under this prefix are reserved by AWS and cannot be set by callers
RESERVED_TAG_PREFIX = 'aws:'

SOURCE_INSTANCE_TAG = 'source-instance'
CREATION_TIME_TAG = 'ebs-autoscale-creation-time'
DEVICE_TAG = 'ebs-autoscale-device'

def filter_reserved_tags(tags: Dict[str, str]) -> Dict[str, str]:
    """Drop tags in provider-reserved namespaces
    Args:
        tags: tags as a {key: value} dictionary
    Return:
        The tags whose keys are not reserved
    """
    return {k: v for k, v in tags.items() if not k.lower().startswith(RESERVED_TAG_PREFIX)}

def get_volume_tags(instance_id: str,
                    device_name: str,
                    instance_tags: Optional[Dict[str, str]] = None,
                    now: Optional[datetime] = None) -> Dict[str, str]:
    """Build the tag set applied to a new volume
    Args:
        instance_id: the owning EC2 instance ID
        device_name: the logical device the volume is going to be attached at
        instance_tags: tags propagated from the instance (reserved keys are dropped)
        now: creation timestamp, defaults to the current UTC time
    Return:
        Dictionary of tags. Provisioner tags win over propagated instance tags.
    """
    now = now or datetime.now(timezone.utc)
    tags = filter_reserved_tags(instance_tags or {})
    tags.update({
        'Name': f'ebs-autoscale-{instance_id}',
        SOURCE_INSTANCE_TAG: instance_id,
        CREATION_TIME_TAG: now.strftime('%Y-%m-%dT%H:%M:%SZ'),
        DEVICE_TAG: device_name,
    })
    return tags

def to_tag_specifications(tags: Dict[str, str], resource_type: str = 'volume') -> List[Dict]:
    """Render tags in the TagSpecifications shape expected by EC2 create calls
    """
    return [{
        'ResourceType': resource_type,
        'Tags': [{'Key': k, 'Value': v} for k, v in tags.items()]
    }]

def tags_to_dict(tag_list: Optional[List[Dict[str, str]]]) -> Dict[str, str]:
    """Convert an EC2 [{'Key': ..., 'Value': ...}] list into a dictionary
    """
    return {tag['Key']: tag['Value'] for tag in tag_list or []}
