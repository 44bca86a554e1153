"""
Error taxonomy for volume provisioning.

Every failure the CLI reports derives from EBSAutoscaleError. Errors raised after a
remote call carry the provider's diagnostic output so it can be surfaced to the caller.
"""
from typing import Optional

class EBSAutoscaleError(Exception):
    def __init__(self, message: str, diagnostic: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.diagnostic = diagnostic

    def __str__(self) -> str:
        if self.diagnostic:
            return f'{self.message} ({self.diagnostic})'
        return self.message

class ConfigError(EBSAutoscaleError):
    """Missing or invalid request arguments/configuration"""

class MetadataError(EBSAutoscaleError):
    """The instance metadata service could not be queried"""

class LockError(EBSAutoscaleError):
    """The host lock could not be acquired in time"""

class LimitExceededError(EBSAutoscaleError):
    """A configured maximum has been reached

    kind is one of 'attached', 'created' or 'size'
    """
    def __init__(self, kind: str, current: int, maximum: int):
        super().__init__(f'{kind} limit reached ({current} >= {maximum})')
        self.kind = kind
        self.current = current
        self.maximum = maximum

class NoDeviceAvailableError(EBSAutoscaleError):
    def __init__(self, message: str = 'no device names available', diagnostic: Optional[str] = None):
        super().__init__(message, diagnostic)

class ProvisionError(EBSAutoscaleError):
    """The create call failed; nothing exists remotely"""

class AvailabilityTimeoutError(EBSAutoscaleError):
    """The volume never became available; it has been rolled back"""

class AttachError(EBSAutoscaleError):
    """The attach call failed; the volume has been rolled back"""

class VisibilityTimeoutError(EBSAutoscaleError):
    """The volume is attached and accounted for but its device node never appeared"""

class TerminationPolicyError(EBSAutoscaleError):
    """Delete-on-termination could not be set (non-fatal)"""
