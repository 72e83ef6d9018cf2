"""zkbeacon: tie a process's lifetime to an ephemeral ZooKeeper node."""

from .config import ConfigResolver, RegistrationConfig, load_config, resolve_config
from .errors import (
    ConfigurationError,
    MissingConfiguration,
    NodeCreateFailed,
    RegistrationError,
    SessionOpenFailed,
)
from .lifecycle import HostLifecycle
from .registry import KazooCoordinationClient, RegistrationManager, RegistrationState

__version__ = '0.1.0'
__all__ = [
    'ConfigResolver',
    'RegistrationConfig',
    'load_config',
    'resolve_config',
    'ConfigurationError',
    'MissingConfiguration',
    'NodeCreateFailed',
    'RegistrationError',
    'SessionOpenFailed',
    'HostLifecycle',
    'KazooCoordinationClient',
    'RegistrationManager',
    'RegistrationState',
]
