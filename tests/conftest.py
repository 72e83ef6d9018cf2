from __future__ import annotations

from typing import Any

import pytest

from zkbeacon.config import RegistrationConfig


class FakeHandle:
    def __init__(self, address: str) -> None:
        self.address = address


class FakeCoordinationClient:
    """Records every call made through the coordination client surface."""

    def __init__(self, open_ok: bool = True, create_error: Exception | None = None) -> None:
        self.open_ok = open_ok
        self.create_error = create_error
        self.events: list[tuple[Any, ...]] = []
        self.nodes: dict[str, bytes] = {}

    def open(self, address: str, timeout: float) -> FakeHandle | None:
        self.events.append(("open", address, timeout))
        return FakeHandle(address) if self.open_ok else None

    def create_node(self, handle: FakeHandle, path: str, payload: bytes) -> str:
        self.events.append(("create", path, payload))
        if self.create_error is not None:
            raise self.create_error
        self.nodes[path] = payload
        return path

    def close(self, handle: FakeHandle | None) -> None:
        self.events.append(("close", handle))
        self.nodes.clear()

    def calls(self, name: str) -> list[tuple[Any, ...]]:
        return [e for e in self.events if e[0] == name]


@pytest.fixture
def fake_client() -> FakeCoordinationClient:
    return FakeCoordinationClient()


@pytest.fixture
def full_config() -> RegistrationConfig:
    return RegistrationConfig(
        coordination_address="zk1:2181,zk2:2181",
        node_path="/services/web-01",
        node_payload=b"10.0.0.5:8080",
    )
