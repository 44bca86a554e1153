"""
A volume created by the current request and its lifecycle.
"""
from dataclasses import dataclass
from enum import Enum

class VolumeState(str, Enum):
    CREATING = 'creating'
    AVAILABLE = 'available'
    ATTACHED = 'attached'
    DELETED = 'deleted'

# Only forward moves, plus rollback from creating/available
ALLOWED_TRANSITIONS = {
    VolumeState.CREATING: (VolumeState.AVAILABLE, VolumeState.DELETED),
    VolumeState.AVAILABLE: (VolumeState.ATTACHED, VolumeState.DELETED),
    VolumeState.ATTACHED: (),
    VolumeState.DELETED: (),
}

@dataclass
class Volume:
    volume_id: str
    size: int
    volume_type: str
    instance_id: str
    state: VolumeState = VolumeState.CREATING

    def transition(self, new_state: VolumeState) -> None:
        if new_state not in ALLOWED_TRANSITIONS[self.state]:
            raise ValueError(f'volume "{self.volume_id}" cannot go from {self.state.value} to {new_state.value}')
        self.state = new_state
