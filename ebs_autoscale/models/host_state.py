"""
Explicit per-host resource state shared by the provisioning components.
"""
import os
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable

if TYPE_CHECKING:
    from ebs_autoscale.interfaces.counter_interface import CounterStoreInterface

@dataclass(frozen=True)
class Counters:
    attached_count: int = 0
    created_count: int = 0
    created_size: int = 0 # GiB

    def after_attach(self, size: int) -> 'Counters':
        """Counters after accounting for one more attached volume of the given size
        """
        return Counters(attached_count=self.attached_count + 1,
                        created_count=self.created_count + 1,
                        created_size=self.created_size + size)

@dataclass(frozen=True)
class InstanceIdentity:
    instance_id: str
    availability_zone: str

    @property
    def region(self) -> str:
        # us-east-1a -> us-east-1
        return self.availability_zone[:-1]

@dataclass
class HostState:
    """Everything the provisioner needs to know about the host it runs on

    Attributes:
        identity: the instance the volumes are attached to
        counter_store: the Counter Store (local file or live query)
        device_exists: probe for a device node on the local filesystem
    """
    identity: InstanceIdentity
    counter_store: 'CounterStoreInterface'
    device_exists: Callable[[str], bool] = field(default=os.path.exists)
