"""
Defines the interface for the per-host Counter Store.

1. Read. Returns attached count, created count and cumulative created size.
2. Record Attached. Accounts for one newly attached volume (called exactly once per success).
3. Allocated Devices. Device names handed out on this host, never to be reused.
"""
from typing import Protocol, Set

from ebs_autoscale.models.host_state import Counters

class CounterStoreInterface(Protocol):
    def read(self) -> Counters:
        raise NotImplementedError

    def record_attached(self, volume_id: str, device_name: str, size: int) -> Counters:
        raise NotImplementedError

    def allocated_devices(self) -> Set[str]:
        raise NotImplementedError
