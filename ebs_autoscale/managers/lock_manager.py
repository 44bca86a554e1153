"""
Host-local advisory lock serialising concurrent provisioner invocations.
"""
import os
import time
import fcntl
from pathlib import Path

from ebs_autoscale.utils.logger import logger
from ebs_autoscale.utils.errors import LockError

class HostLock:
    def __init__(self, lock_path: Path, timeout: float = 300.0, poll_interval: float = 0.5):
        """Initialize the lock
        Args:
            lock_path: file used for flock; created if missing
            timeout: seconds to wait for the lock before giving up
            poll_interval: seconds between acquisition attempts
        """
        self.lock_path = Path(lock_path)
        self.timeout = timeout
        self.poll_interval = poll_interval
        self._fd = None

    def acquire(self) -> None:
        """Take the exclusive lock, waiting at most timeout seconds
        Raises:
            LockError: the lock file cannot be opened or the timeout expired
        """
        try:
            self.lock_path.parent.mkdir(parents=True, exist_ok=True)
            fd = os.open(self.lock_path, os.O_RDWR | os.O_CREAT, 0o644)
        except OSError as e:
            raise LockError(f'cannot open lock file "{self.lock_path}"', str(e))

        deadline = time.monotonic() + self.timeout
        while True:
            try:
                fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
                break
            except BlockingIOError:
                if time.monotonic() >= deadline:
                    os.close(fd)
                    raise LockError(f'timed out after {self.timeout}s waiting for "{self.lock_path}"')
                time.sleep(self.poll_interval)
        self._fd = fd
        logger.debug(f'[INFO] acquired lock "{self.lock_path}"')

    def release(self) -> None:
        if self._fd is None:
            return
        fcntl.flock(self._fd, fcntl.LOCK_UN)
        os.close(self._fd)
        self._fd = None
        logger.debug(f'[INFO] released lock "{self.lock_path}"')

    @property
    def held(self) -> bool:
        return self._fd is not None

    def __enter__(self) -> 'HostLock':
        self.acquire()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()
