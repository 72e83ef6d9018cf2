"""ZooKeeper client surface used by the registration lifecycle.

Only three calls are needed: open a session, create one ephemeral node,
and close the session.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from kazoo.client import KazooClient
from kazoo.exceptions import KazooException
from kazoo.handlers.threading import KazooTimeoutError
from kazoo.security import OPEN_ACL_UNSAFE


logger = logging.getLogger(__name__)

DEFAULT_CONNECT_TIMEOUT = 10.0  # seconds


@dataclass
class ZooKeeperSession:
    """Handle returned by KazooCoordinationClient.open."""
    client: KazooClient
    hosts: str
    closed: bool = False


class KazooCoordinationClient:
    """Opens sessions and creates ephemeral znodes through kazoo."""

    def __init__(self, client_factory=KazooClient):
        self._client_factory = client_factory

    def open(self, address: str, timeout: float = DEFAULT_CONNECT_TIMEOUT) -> Optional[ZooKeeperSession]:
        """Connect to *address*, waiting at most *timeout* seconds.

        Returns None when no usable session could be established.
        """
        try:
            client = self._client_factory(hosts=address, timeout=timeout)
        except (ValueError, KazooException) as exc:
            logger.warning("Invalid zookeeper address %r: %s", address, exc)
            return None

        try:
            client.start(timeout=timeout)
        except KazooTimeoutError as exc:
            # start() has already stopped and closed the client
            logger.warning("Timed out connecting to zookeeper at %s: %s", address, exc)
            return None
        except KazooException as exc:
            logger.warning("Could not connect to zookeeper at %s: %s", address, exc)
            _shutdown(client)
            return None

        return ZooKeeperSession(client=client, hosts=address)

    def create_node(self, handle: ZooKeeperSession, path: str, payload: bytes) -> str:
        """Create an ephemeral, world-accessible, non-sequential node.

        Raises whatever kazoo raises (NodeExistsError, NoNodeError,
        ZookeeperError, ValueError for a malformed path, ...).
        """
        return handle.client.create(
            path,
            payload,
            acl=OPEN_ACL_UNSAFE,
            ephemeral=True,
            sequence=False,
        )

    def close(self, handle: Optional[ZooKeeperSession]) -> None:
        """End the session. A no-op for None or an already closed handle."""
        if handle is None or handle.closed:
            return
        handle.closed = True
        _shutdown(handle.client)


def _shutdown(client: KazooClient) -> None:
    try:
        client.stop()
        client.close()
    except KazooException as exc:
        logger.warning("Error while closing zookeeper session: %s", exc)
