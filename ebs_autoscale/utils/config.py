"""
Configuration for the volume provisioner.

Values are resolved in order: built-in defaults, the JSON config file, EBS_AUTOSCALE_*
environment variables and finally command line flags (applied by the caller via update()).
"""
import os
import json
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from ebs_autoscale.utils.errors import ConfigError

DEFAULT_CONFIG_FILE = '/etc/ebs-autoscale/config.json'
ENV_PREFIX = 'EBS_AUTOSCALE_'
COUNTER_STORES = ('local', 'remote')

DEFAULTS: Dict[str, Any] = {
    'max_attached_volumes': 16,
    'max_created_volumes': 256,
    'max_total_created_size': 16384, # GiB
    'counter_store': 'local',
    'state_dir': '/var/lib/ebs-autoscale',
    'settle_delay': 5.0,
    'visibility_attempts': 10,
    'visibility_interval': 1.0,
    'availability_delay': 5,
    'availability_attempts': 40,
    'lock_timeout': 300.0,
    'region': None,
    'imds_timeout': 2.0,
}

# Fields that must be whole numbers; the rest are floats except the strings below
_INT_FIELDS = ('max_attached_volumes', 'max_created_volumes', 'max_total_created_size',
               'visibility_attempts', 'availability_delay', 'availability_attempts')
_STR_FIELDS = ('counter_store', 'state_dir', 'region')


class AutoscaleConfig:
    """Resolved provisioner settings"""

    def __init__(self, config_file: Optional[str] = None, environ: Optional[Mapping[str, str]] = None):
        environ = os.environ if environ is None else environ
        self.config_file = Path(config_file or environ.get(f'{ENV_PREFIX}CONFIG', DEFAULT_CONFIG_FILE))

        self._values = dict(DEFAULTS)
        self.update(self._load_config_file())
        self.update(self._load_environment(environ))

    def __getattr__(self, name: str) -> Any:
        values = self.__dict__.get('_values', {})
        if name in values:
            return values[name]
        raise AttributeError(name)

    def _load_config_file(self) -> Dict[str, Any]:
        """Load the JSON config file, if there is one
        """
        if not self.config_file.exists():
            return {}
        try:
            with open(self.config_file) as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f'cannot read config file "{self.config_file}"', str(e))
        if not isinstance(data, dict):
            raise ConfigError(f'config file "{self.config_file}" must contain a JSON object')
        unknown = set(data) - set(DEFAULTS)
        if unknown:
            raise ConfigError(f'unknown config keys: {", ".join(sorted(unknown))}')
        return data

    def _load_environment(self, environ: Mapping[str, str]) -> Dict[str, Any]:
        values = {}
        for key in DEFAULTS:
            env_key = ENV_PREFIX + key.upper()
            if env_key in environ:
                values[key] = environ[env_key]
        return values

    def update(self, overrides: Mapping[str, Any]) -> None:
        """Apply overrides, ignoring None values, and re-validate
        """
        for key, value in overrides.items():
            if value is None:
                continue
            if key not in DEFAULTS:
                raise ConfigError(f'unknown config key "{key}"')
            self._values[key] = self._coerce(key, value)
        self._validate()

    def _coerce(self, key: str, value: Any) -> Any:
        if key in _STR_FIELDS:
            return str(value)
        try:
            if key in _INT_FIELDS:
                if isinstance(value, float) and not value.is_integer():
                    raise ValueError(value)
                return int(value)
            return float(value)
        except (TypeError, ValueError):
            raise ConfigError(f'invalid value for {key}: {value!r}')

    def _validate(self) -> None:
        if self.counter_store not in COUNTER_STORES:
            raise ConfigError(f'counter_store must be one of {", ".join(COUNTER_STORES)}, got "{self.counter_store}"')
        for key in ('max_attached_volumes', 'max_created_volumes', 'max_total_created_size',
                    'visibility_attempts', 'availability_attempts', 'availability_delay'):
            if self._values[key] < 1:
                raise ConfigError(f'{key} must be positive')
        for key in ('settle_delay', 'visibility_interval', 'lock_timeout', 'imds_timeout'):
            if self._values[key] < 0:
                raise ConfigError(f'{key} must not be negative')

    @property
    def lock_path(self) -> Path:
        return Path(self.state_dir) / 'ebs-autoscale.lock'

    @property
    def state_path(self) -> Path:
        return Path(self.state_dir) / 'state.json'

    def as_dict(self) -> Dict[str, Any]:
        return dict(self._values)
