"""
Ephemeral node registration

This package provides:
1. RegistrationManager — drives the start/stop lifecycle of one registration
2. KazooCoordinationClient — ZooKeeper client surface backed by kazoo
3. RegistrationState — the states a registration moves through
"""

from .session import (
    CoordinationClient,
    RegistrationManager,
    RegistrationSession,
    RegistrationState,
)
from .zookeeper import KazooCoordinationClient, ZooKeeperSession, DEFAULT_CONNECT_TIMEOUT

__all__ = [
    'CoordinationClient',
    'RegistrationManager',
    'RegistrationSession',
    'RegistrationState',
    'KazooCoordinationClient',
    'ZooKeeperSession',
    'DEFAULT_CONNECT_TIMEOUT',
]
