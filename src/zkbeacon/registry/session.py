#!/usr/bin/env python3
"""
Registration lifecycle for a single ephemeral node

This module provides:
- RegistrationState: the states a registration moves through
- CoordinationClient: the client surface the manager depends on
- RegistrationSession: the session handle and state owned by the manager
- RegistrationManager: start/stop hooks binding the node to process lifetime
"""

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Protocol

from ..config import RegistrationConfig
from ..errors import (
    MissingConfiguration,
    NodeCreateFailed,
    RegistrationError,
    SessionOpenFailed,
)
from .zookeeper import DEFAULT_CONNECT_TIMEOUT, KazooCoordinationClient


logger = logging.getLogger(__name__)


class RegistrationState(Enum):
    """Registration lifecycle state"""
    IDLE = "idle"
    UNCONFIGURED = "unconfigured"
    CONNECTING = "connecting"
    REGISTERED = "registered"
    FAILED = "failed"
    CLOSED = "closed"


class CoordinationClient(Protocol):
    def open(self, address: str, timeout: float) -> Optional[Any]: ...

    def create_node(self, handle: Any, path: str, payload: bytes) -> Any: ...

    def close(self, handle: Optional[Any]) -> None: ...


@dataclass
class RegistrationSession:
    """Session handle plus the state of the registration it carries."""
    state: RegistrationState = RegistrationState.IDLE
    handle: Optional[Any] = None
    last_error: Optional[RegistrationError] = None


class RegistrationManager:
    """Owns the one coordination-service session of this process.

    ``start()`` is the process-start hook and ``stop()`` the process-end
    hook. Registration failures are logged and leave the host running;
    pass ``fail_fast=True`` to have ``start()`` raise them instead.
    """

    def __init__(
        self,
        config: RegistrationConfig,
        client: Optional[CoordinationClient] = None,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
        fail_fast: bool = False,
    ):
        self._config = config
        self._client = client if client is not None else KazooCoordinationClient()
        self._connect_timeout = connect_timeout
        self._fail_fast = fail_fast
        self._lock = threading.Lock()
        self._session = RegistrationSession()

    @property
    def config(self) -> RegistrationConfig:
        return self._config

    @property
    def state(self) -> RegistrationState:
        return self._session.state

    @property
    def handle(self) -> Optional[Any]:
        return self._session.handle

    @property
    def last_error(self) -> Optional[RegistrationError]:
        return self._session.last_error

    def start(self) -> RegistrationState:
        with self._lock:
            if self._session.state is not RegistrationState.IDLE:
                raise RuntimeError(
                    f"registration already started (state: {self._session.state.value})"
                )

            missing = self._config.missing_fields()
            if missing:
                error = MissingConfiguration(missing)
                logger.warning("%s, skipping registration", error)
                self._session.state = RegistrationState.UNCONFIGURED
                self._session.last_error = error
                return self._session.state

            self._session.state = RegistrationState.CONNECTING
            address = self._config.coordination_address
            path = self._config.node_path

            handle = self._client.open(address, self._connect_timeout)
            if handle is None:
                self._fail(SessionOpenFailed(
                    f"Fail to init zookeeper session with {address}"
                ))
                return self._session.state

            try:
                self._client.create_node(handle, path, self._config.node_payload)
            except Exception as exc:
                # Close now; the handle must not be kept for stop()
                self._client.close(handle)
                self._fail(NodeCreateFailed(
                    f"Fail to create zookeeper node {path}: {exc!r}"
                ), cause=exc)
                return self._session.state

            self._session.handle = handle
            self._session.state = RegistrationState.REGISTERED
            logger.info("Registered ephemeral node %s at %s", path, address)
            return self._session.state

    def stop(self) -> RegistrationState:
        with self._lock:
            handle = self._session.handle
            self._session.handle = None
            if handle is not None:
                self._client.close(handle)
                logger.info("Closed zookeeper session for %s", self._config.node_path)

            if self._session.state is not RegistrationState.UNCONFIGURED:
                self._session.state = RegistrationState.CLOSED
            return self._session.state

    def _fail(self, error: RegistrationError, cause: Optional[BaseException] = None) -> None:
        self._session.handle = None
        self._session.state = RegistrationState.FAILED
        self._session.last_error = error
        logger.warning("%s", error)
        if self._fail_fast:
            raise error from cause
