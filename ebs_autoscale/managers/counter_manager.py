"""
Implements the two Counter Store strategies.

LocalCounterManager: counters persisted in a JSON file on the host and incremented after each attach.
RemoteCounterManager: counters recomputed on every read from the volumes tagged with this instance.

Neither store locks by itself; callers mutate them while holding the HostLock.
"""
import os
import json
import tempfile
from pathlib import Path
from typing import Any, Dict, Set

from ebs_autoscale.utils.logger import logger
from ebs_autoscale.utils.errors import EBSAutoscaleError
from ebs_autoscale.utils.tags import DEVICE_TAG
from ebs_autoscale.interfaces.counter_interface import CounterStoreInterface
from ebs_autoscale.interfaces.ebs_interface import EBSVolumeInterface
from ebs_autoscale.models.host_state import Counters
from botocore.exceptions import ClientError, BotoCoreError

class LocalCounterManager(CounterStoreInterface):
    def __init__(self, state_path: Path):
        """Initialize the file-backed store
        Args:
            state_path: JSON file holding counters, allocated devices and created volumes
        """
        self.state_path = Path(state_path)

    def _load(self) -> Dict[str, Any]:
        if not self.state_path.exists():
            return {'attached_count': 0, 'created_count': 0, 'created_size': 0, 'devices': [], 'volumes': []}
        try:
            with open(self.state_path) as f:
                state = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f'[FAIL] cannot read counter state "{self.state_path}" ({e})')
            raise EBSAutoscaleError(f'cannot read counter state "{self.state_path}"', str(e))
        state.setdefault('devices', [])
        state.setdefault('volumes', [])
        return state

    def _save(self, state: Dict[str, Any]) -> None:
        """Write the state atomically (temp file + rename)
        """
        self.state_path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.state_path.parent, prefix='.state-')
        try:
            with os.fdopen(fd, 'w') as f:
                json.dump(state, f, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.state_path)
        except OSError as e:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            logger.error(f'[FAIL] cannot write counter state "{self.state_path}" ({e})')
            raise EBSAutoscaleError(f'cannot write counter state "{self.state_path}"', str(e))

    def read(self) -> Counters:
        state = self._load()
        return Counters(attached_count=state['attached_count'],
                        created_count=state['created_count'],
                        created_size=state['created_size'])

    def record_attached(self, volume_id: str, device_name: str, size: int) -> Counters:
        """Account for a newly attached volume
        Args:
            volume_id: the attached EBS volume ID
            device_name: the device it is attached at
            size: its size in GiB
        Return:
            The updated counters
        Raises:
            EBSAutoscaleError: the state file cannot be read or written; the volume stays attached
        """
        try:
            state = self._load()
            counters = Counters(attached_count=state['attached_count'],
                                created_count=state['created_count'],
                                created_size=state['created_size']).after_attach(size)
            state.update(attached_count=counters.attached_count,
                         created_count=counters.created_count,
                         created_size=counters.created_size)
            if device_name not in state['devices']:
                state['devices'].append(device_name)
            state['volumes'].append({'id': volume_id, 'device': device_name, 'size': size})
            self._save(state)
        except EBSAutoscaleError as e:
            note = f'volume {volume_id} remains attached at {device_name} and is not counted'
            e.diagnostic = f'{e.diagnostic}; {note}' if e.diagnostic else note
            logger.error(f'[FAIL] {note}')
            raise
        logger.info(f'[SUCCESS] recorded "{volume_id}": {counters.attached_count} attached, '
                    f'{counters.created_count} created, {counters.created_size} GiB total')
        return counters

    def allocated_devices(self) -> Set[str]:
        return set(self._load()['devices'])

class RemoteCounterManager(CounterStoreInterface):
    # Volumes in these states no longer count against the limits
    GONE_STATES = ('deleting', 'deleted')
    ATTACHED_STATES = ('attaching', 'attached')

    def __init__(self, ebs_manager: EBSVolumeInterface, instance_id: str):
        """Initialize the live-query store
        Args:
            ebs_manager: the EBS volume manager used to list tagged volumes
            instance_id: the instance whose volumes are counted
        """
        self.ebs_manager = ebs_manager
        self.instance_id = instance_id

    def _volumes(self, include_gone: bool = False):
        try:
            volumes = self.ebs_manager.list_instance_volumes(self.instance_id)
        except (ClientError, BotoCoreError) as e:
            raise EBSAutoscaleError(f'cannot list volumes for "{self.instance_id}"', str(e))
        if include_gone:
            return volumes
        return [v for v in volumes if v['state'] not in self.GONE_STATES]

    def read(self) -> Counters:
        volumes = self._volumes()
        attached = [v for v in volumes
                    if any(a['instance_id'] == self.instance_id and a['state'] in self.ATTACHED_STATES
                           for a in v['attachments'])]
        return Counters(attached_count=len(attached),
                        created_count=len(volumes),
                        created_size=sum(v['size'] for v in volumes))

    def record_attached(self, volume_id: str, device_name: str, size: int) -> Counters:
        """The attached volume is its own record; re-read the live counters
        """
        counters = self.read()
        logger.info(f'[SUCCESS] "{volume_id}" accounted by tag: {counters.attached_count} attached, '
                    f'{counters.created_count} created, {counters.created_size} GiB total')
        return counters

    def allocated_devices(self) -> Set[str]:
        """Device tags of every volume EC2 still reports, deleted ones included

        EC2 stops listing a deleted volume after a while, so its device name is only held
        back for as long as the volume stays visible.
        """
        devices = set()
        for volume in self._volumes(include_gone=True):
            if DEVICE_TAG in volume['tags']:
                devices.add(volume['tags'][DEVICE_TAG])
            for attachment in volume['attachments']:
                if attachment['device']:
                    devices.add(attachment['device'])
        return devices
