"""
Defines the interface to the EC2 Instance Metadata Service (IMDS).

1. Get Instance ID.
2. Get Availability Zone.
3. Get Region. Derived from the availability zone by dropping its final character.
"""
from typing import Protocol

class InstanceMetadataInterface(Protocol):
    def get_instance_id(self) -> str:
        raise NotImplementedError

    def get_availability_zone(self) -> str:
        raise NotImplementedError

    def get_region(self) -> str:
        raise NotImplementedError
