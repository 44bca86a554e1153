"""
Typed volume request.

A VolumeRequest knows which optional fields are legal for each volume type. Illegal
combinations (e.g. iops on gp2, throughput on io1) are rejected when the request is built
instead of being silently dropped from the create call.
"""
from dataclasses import dataclass
from typing import Any, Dict, Optional

from ebs_autoscale.utils.errors import ConfigError

VOLUME_TYPES = ('standard', 'gp2', 'gp3', 'io1', 'io2', 'st1', 'sc1')
DEFAULT_VOLUME_TYPE = 'gp3'

IOPS_TYPES = ('gp3', 'io1', 'io2')
THROUGHPUT_TYPES = ('gp3',)

DEFAULT_IOPS = 3000
DEFAULT_THROUGHPUT = 125 # MiB/s

# (min, max) size in GiB
SIZE_RANGES = {
    'standard': (1, 1024),
    'gp2': (1, 16384),
    'gp3': (1, 16384),
    'io1': (4, 16384),
    'io2': (4, 16384),
    'st1': (125, 16384),
    'sc1': (125, 16384),
}
IOPS_RANGES = {
    'gp3': (3000, 16000),
    'io1': (100, 64000),
    'io2': (100, 64000),
}
THROUGHPUT_RANGE = (125, 1000)


@dataclass(frozen=True)
class VolumeRequest:
    size: int
    volume_type: str = DEFAULT_VOLUME_TYPE
    iops: Optional[int] = None
    throughput: Optional[int] = None
    encrypted: bool = True

    @classmethod
    def build(cls,
              size: int,
              volume_type: Optional[str] = None,
              iops: Optional[int] = None,
              throughput: Optional[int] = None,
              encrypted: bool = True) -> 'VolumeRequest':
        """Validate arguments and fill in type-specific defaults
        Args:
            size: volume size in GiB
            volume_type: one of VOLUME_TYPES (default gp3)
            iops: provisioned IOPS; only legal for gp3/io1/io2
            throughput: provisioned throughput in MiB/s; only legal for gp3
            encrypted: whether to encrypt the volume
        Return:
            A VolumeRequest with iops/throughput set only where the type takes them
        Raises:
            ConfigError: on any invalid or illegal combination
        """
        volume_type = volume_type or DEFAULT_VOLUME_TYPE
        if volume_type not in VOLUME_TYPES:
            raise ConfigError(f'unsupported volume type "{volume_type}" (choose from {", ".join(VOLUME_TYPES)})')

        if isinstance(size, bool) or not isinstance(size, int) or size <= 0:
            raise ConfigError(f'size must be a positive integer, got {size!r}')
        low, high = SIZE_RANGES[volume_type]
        if not low <= size <= high:
            raise ConfigError(f'size for {volume_type} volumes must be between {low} and {high} GiB, got {size}')

        if iops is not None and volume_type not in IOPS_TYPES:
            raise ConfigError(f'iops cannot be set for {volume_type} volumes')
        if throughput is not None and volume_type not in THROUGHPUT_TYPES:
            raise ConfigError(f'throughput cannot be set for {volume_type} volumes')

        if volume_type in IOPS_TYPES:
            iops = DEFAULT_IOPS if iops is None else iops
            low, high = IOPS_RANGES[volume_type]
            if not low <= iops <= high:
                raise ConfigError(f'iops for {volume_type} volumes must be between {low} and {high}, got {iops}')
        if volume_type in THROUGHPUT_TYPES:
            throughput = DEFAULT_THROUGHPUT if throughput is None else throughput
            low, high = THROUGHPUT_RANGE
            if not low <= throughput <= high:
                raise ConfigError(f'throughput must be between {low} and {high} MiB/s, got {throughput}')

        return cls(size=size,
                   volume_type=volume_type,
                   iops=iops,
                   throughput=throughput,
                   encrypted=bool(encrypted))

    def to_create_params(self, availability_zone: str) -> Dict[str, Any]:
        """Keyword arguments for EC2 create_volume (without tags)
        """
        params: Dict[str, Any] = {
            'AvailabilityZone': availability_zone,
            'Size': self.size,
            'VolumeType': self.volume_type,
        }
        if self.iops is not None:
            params['Iops'] = self.iops
        if self.throughput is not None:
            params['Throughput'] = self.throughput
        if self.encrypted:
            params['Encrypted'] = True
        return params
