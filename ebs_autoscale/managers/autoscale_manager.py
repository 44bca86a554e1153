"""
Runs one provisioning request through the state machine:

PENDING -> LIMITS_OK -> DEVICE_ALLOCATED -> CREATING -> AVAILABLE -> ATTACHING -> ATTACHED
        -> VISIBLE -> POLICY_SET

Any fatal error moves the request to FAILED. Failures while CREATING/AVAILABLE/ATTACHING pass
through DELETE_VOLUME first. The host lock is held from the limit check until the counters have
been updated; the visibility wait and the termination policy run outside it.

A process killed between CREATING and ATTACHED leaves a tagged, unaccounted volume behind.
There is no cancellation protocol; such volumes are left to an external reaper.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from ebs_autoscale.utils.logger import logger
from ebs_autoscale.utils.errors import EBSAutoscaleError, AvailabilityTimeoutError, AttachError
from ebs_autoscale.managers.limit_manager import LimitEnforcer
from ebs_autoscale.managers.device_manager import DeviceAllocator
from ebs_autoscale.managers.lock_manager import HostLock
from ebs_autoscale.managers.provision_manager import (VolumeProvisioner, Attacher, VisibilityWaiter,
                                                      TerminationPolicySetter)
from ebs_autoscale.models.host_state import Counters, HostState
from ebs_autoscale.models.volume_request import VolumeRequest

class ProvisionState(str, Enum):
    PENDING = 'PENDING'
    LIMITS_OK = 'LIMITS_OK'
    DEVICE_ALLOCATED = 'DEVICE_ALLOCATED'
    CREATING = 'CREATING'
    AVAILABLE = 'AVAILABLE'
    ATTACHING = 'ATTACHING'
    ATTACHED = 'ATTACHED'
    VISIBLE = 'VISIBLE'
    POLICY_SET = 'POLICY_SET'
    DELETE_VOLUME = 'DELETE_VOLUME'
    FAILED = 'FAILED'

@dataclass
class ProvisionResult:
    device_name: str
    volume_id: str
    counters: Counters
    policy_set: bool
    states: List[ProvisionState] = field(default_factory=list)

class VolumeAutoscaler:
    def __init__(self,
                 host_state: HostState,
                 limits: LimitEnforcer,
                 allocator: DeviceAllocator,
                 provisioner: VolumeProvisioner,
                 attacher: Attacher,
                 visibility_waiter: VisibilityWaiter,
                 policy_setter: TerminationPolicySetter,
                 lock: Optional[HostLock] = None):
        """Wire the components of a request together
        Args:
            host_state: instance identity, counter store and device probe
            limits: the limit enforcer
            allocator: the device allocator
            provisioner: creates the volume and waits for availability
            attacher: attaches the volume
            visibility_waiter: waits for the device node
            policy_setter: sets delete-on-termination
            lock: host lock guarding the counter store; None only when the caller already serialises
        """
        self.host_state = host_state
        self.limits = limits
        self.allocator = allocator
        self.provisioner = provisioner
        self.attacher = attacher
        self.visibility_waiter = visibility_waiter
        self.policy_setter = policy_setter
        self.lock = lock
        self.states: List[ProvisionState] = []

    @property
    def state(self) -> Optional[ProvisionState]:
        return self.states[-1] if self.states else None

    def _transition(self, state: ProvisionState) -> None:
        logger.debug(f'[INFO] {self.state.value if self.state else "-"} -> {state.value}')
        self.states.append(state)

    def provision(self, request: VolumeRequest) -> ProvisionResult:
        """Provision, attach and account for one volume
        Args:
            request: the validated volume request
        Return:
            ProvisionResult with the device path the volume is attached at
        Raises:
            EBSAutoscaleError: any fatal failure (the request ends in FAILED)
        """
        self.states = []
        self._transition(ProvisionState.PENDING)
        try:
            volume, device_name, counters = self._provision_locked(request)

            self.visibility_waiter.wait(device_name)
            self._transition(ProvisionState.VISIBLE)
        except EBSAutoscaleError as e:
            self._transition(ProvisionState.FAILED)
            logger.error(f'[FAIL] cannot provision {request.size} GiB {request.volume_type} volume ({e})')
            raise

        policy_set = self.policy_setter.apply(self.host_state.identity.instance_id, device_name)
        self._transition(ProvisionState.POLICY_SET)

        return ProvisionResult(device_name=device_name,
                               volume_id=volume.volume_id,
                               counters=counters,
                               policy_set=policy_set,
                               states=list(self.states))

    def _provision_locked(self, request: VolumeRequest):
        if self.lock is not None:
            self.lock.acquire()
        try:
            counter_store = self.host_state.counter_store
            self.limits.check(counter_store.read(), request.size)
            self._transition(ProvisionState.LIMITS_OK)

            device_name = self.allocator.allocate()
            self._transition(ProvisionState.DEVICE_ALLOCATED)

            self._transition(ProvisionState.CREATING)
            try:
                volume = self.provisioner.create(request, self.host_state.identity, device_name)
            except AvailabilityTimeoutError:
                self._transition(ProvisionState.DELETE_VOLUME)
                raise
            self._transition(ProvisionState.AVAILABLE)

            self._transition(ProvisionState.ATTACHING)
            try:
                self.attacher.attach(volume, device_name)
            except AttachError:
                self._transition(ProvisionState.DELETE_VOLUME)
                raise
            self._transition(ProvisionState.ATTACHED)

            counters = counter_store.record_attached(volume.volume_id, device_name, request.size)
            return volume, device_name, counters
        finally:
            if self.lock is not None:
                self.lock.release()
