"""Host process lifecycle: configure, start, run, stop."""

import logging
import os
import signal
import subprocess
import sys
import threading
from typing import Callable, Optional

from .config import RegistrationConfig
from .registry import (
    DEFAULT_CONNECT_TIMEOUT,
    CoordinationClient,
    RegistrationManager,
    RegistrationState,
)


logger = logging.getLogger(__name__)

_FORWARDED_SIGNALS = (signal.SIGTERM, signal.SIGINT)


class HostLifecycle:
    """Holds the process-wide registration config and manager.

    ``configure()`` must run before ``start()``. When ``test_config`` is
    set the host is only checking its configuration, so ``start()``
    registers nothing.
    """

    def __init__(
        self,
        client: Optional[CoordinationClient] = None,
        test_config: bool = False,
        fail_fast: bool = False,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
    ):
        self._client = client
        self.test_config = test_config
        self.fail_fast = fail_fast
        self.connect_timeout = connect_timeout
        self._config: Optional[RegistrationConfig] = None
        self._manager: Optional[RegistrationManager] = None

    @property
    def config(self) -> Optional[RegistrationConfig]:
        return self._config

    @property
    def manager(self) -> Optional[RegistrationManager]:
        return self._manager

    @property
    def state(self) -> Optional[RegistrationState]:
        return self._manager.state if self._manager else None

    def configure(self, config: RegistrationConfig) -> None:
        if self._manager is not None:
            raise RuntimeError("cannot reconfigure after start")
        self._config = config

    def start(self) -> Optional[RegistrationState]:
        if self._config is None:
            raise RuntimeError("configure() must be called before start()")
        if self.test_config:
            logger.debug("Configuration test mode, skipping registration")
            return None
        if self._manager is not None:
            raise RuntimeError("start() has already run")

        self._manager = RegistrationManager(
            self._config,
            client=self._client,
            connect_timeout=self.connect_timeout,
            fail_fast=self.fail_fast,
        )
        return self._manager.start()

    def stop(self) -> Optional[RegistrationState]:
        if self._manager is None:
            return None
        return self._manager.stop()

    def __enter__(self) -> "HostLifecycle":
        try:
            self.start()
        except BaseException:
            self.stop()
            raise
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()


def _install_handlers(handler) -> dict:
    previous = {}
    for signum in _FORWARDED_SIGNALS:
        previous[signum] = signal.signal(signum, handler)
    return previous


def _restore_handlers(previous: dict) -> None:
    for signum, old in previous.items():
        signal.signal(signum, old)


def _in_foreground() -> bool:
    """True if this process group owns the controlling terminal."""
    try:
        return os.tcgetpgrp(sys.stdin.fileno()) == os.getpgrp()
    except (OSError, ValueError, AttributeError):
        return False


def _forward_signal(proc: subprocess.Popen, signum: int) -> None:
    # A terminal Ctrl-C already reached the child through the process group
    if signum == signal.SIGINT and _in_foreground():
        logger.info("Child %d received SIGINT from the terminal", proc.pid)
        return
    logger.info("Forwarding signal %d to child %d", signum, proc.pid)
    proc.send_signal(signum)


def run_command(
    lifecycle: HostLifecycle,
    command: list[str],
    on_started: Optional[Callable[[HostLifecycle], None]] = None,
) -> int:
    """Register, run *command* until it exits, then deregister.

    SIGTERM received meanwhile is forwarded to the child, and so is SIGINT
    unless it came from the terminal the child shares.
    Returns the child's exit status.
    """
    with lifecycle:
        if on_started:
            on_started(lifecycle)
        logger.info("Starting %s", " ".join(command))
        proc = subprocess.Popen(command)

        def forward(signum, frame):
            _forward_signal(proc, signum)

        previous = _install_handlers(forward)
        try:
            returncode = proc.wait()
        finally:
            _restore_handlers(previous)

    logger.info("Child exited with status %d", returncode)
    return returncode


def hold(
    lifecycle: HostLifecycle,
    stop_event: Optional[threading.Event] = None,
    on_started: Optional[Callable[[HostLifecycle], None]] = None,
) -> None:
    """Register and block until SIGTERM/SIGINT (or *stop_event* is set)."""
    stop_event = stop_event or threading.Event()

    def handle_signal(signum, frame):
        logger.info("Received signal %d, shutting down", signum)
        stop_event.set()

    with lifecycle:
        if on_started:
            on_started(lifecycle)
        previous = _install_handlers(handle_signal)
        try:
            while not stop_event.wait(1.0):
                pass
        finally:
            _restore_handlers(previous)
