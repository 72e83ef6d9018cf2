from __future__ import annotations

import logging
from pathlib import Path

import pytest

from zkbeacon.config import (
    ConfigResolver,
    RegistrationConfig,
    apply_directive,
    load_config,
    resolve_config,
)
from zkbeacon.errors import ConfigurationError


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "beacon.yaml"
    path.write_text(text)
    return path


def test_finalize_copies_all_three_values() -> None:
    resolver = ConfigResolver()
    resolver.set_address("zk1:2181,zk2:2181")
    resolver.set_path("/services/web-01")
    resolver.set_payload("10.0.0.5:8080")

    config = resolver.finalize()

    assert config == RegistrationConfig(
        coordination_address="zk1:2181,zk2:2181",
        node_path="/services/web-01",
        node_payload=b"10.0.0.5:8080",
    )
    assert config.is_complete
    assert config.missing_fields() == []


def test_finalize_warns_for_each_missing_field(caplog: pytest.LogCaptureFixture) -> None:
    resolver = ConfigResolver()
    resolver.set_address("zk1:2181")

    with caplog.at_level(logging.WARNING, logger="zkbeacon.config"):
        config = resolver.finalize()

    assert config.coordination_address == "zk1:2181"
    assert config.node_path is None
    assert config.node_payload is None
    assert config.missing_fields() == ["path", "value"]
    messages = [r.getMessage() for r in caplog.records]
    assert "No coordination_path was given" in messages
    assert "No coordination_value was given" in messages
    assert not any("coordination_address" in m for m in messages)


def test_finalize_is_silent_when_complete(caplog: pytest.LogCaptureFixture) -> None:
    resolver = ConfigResolver()
    resolver.set_address("zk1:2181")
    resolver.set_path("/a")
    resolver.set_payload(b"x")

    with caplog.at_level(logging.WARNING):
        resolver.finalize()

    assert caplog.records == []


def test_empty_values_count_as_missing() -> None:
    resolver = ConfigResolver()
    resolver.set_address("")
    resolver.set_path("/a")
    resolver.set_payload(b"")

    config = resolver.finalize()

    assert config.coordination_address is None
    assert config.node_payload is None
    assert config.missing_fields() == ["address", "value"]


def test_values_are_stored_verbatim() -> None:
    resolver = ConfigResolver()
    resolver.set_address("zk1:2181;zk2:2181")
    resolver.set_path("no-leading-slash")
    resolver.set_payload(b"a\x00b")

    config = resolver.finalize()

    assert config.coordination_address == "zk1:2181;zk2:2181"
    assert config.node_path == "no-leading-slash"
    assert config.node_payload == b"a\x00b"
    assert len(config.node_payload) == 3


def test_finalize_returns_the_same_config_twice() -> None:
    resolver = ConfigResolver()
    resolver.set_path("/a")
    assert resolver.finalize() is resolver.finalize()


def test_finalize_rejects_values_it_cannot_own() -> None:
    resolver = ConfigResolver()
    resolver.set_path(42)  # type: ignore[arg-type]

    with pytest.raises(ConfigurationError, match="coordination_path"):
        resolver.finalize()


def test_apply_directive_enforces_single_value() -> None:
    resolver = ConfigResolver()

    with pytest.raises(ConfigurationError, match="exactly one value"):
        apply_directive(resolver, "coordination_path", ["/a", "/b"])
    with pytest.raises(ConfigurationError, match="exactly one value"):
        apply_directive(resolver, "coordination_value", None)
    with pytest.raises(ConfigurationError, match="unknown directive"):
        apply_directive(resolver, "coordination_acl", "world")


def test_load_config_reads_directives_and_ignores_host_keys(tmp_path: Path) -> None:
    path = _write(
        tmp_path,
        "worker_processes: 4\n"
        "coordination_address: zk1:2181,zk2:2181\n"
        "coordination_path: /services/web-01\n"
        "coordination_value: 10.0.0.5:8080\n",
    )

    config = load_config(path)

    assert config.coordination_address == "zk1:2181,zk2:2181"
    assert config.node_path == "/services/web-01"
    assert config.node_payload == b"10.0.0.5:8080"


@pytest.mark.parametrize(
    "raw",
    ["8080", "1:30", "2024-01-01", "on", "yes", "0x1F", "1e3", "null"],
)
def test_load_config_keeps_scalar_text_as_written(tmp_path: Path, raw: str) -> None:
    path = _write(
        tmp_path,
        f"coordination_address: zk1:2181\n"
        f"coordination_path: /services/{raw}\n"
        f"coordination_value: {raw}\n",
    )

    config = load_config(path)

    assert config.node_payload == raw.encode()
    assert config.node_path == f"/services/{raw}"


def test_load_config_empty_file_is_unconfigured(tmp_path: Path) -> None:
    config = load_config(_write(tmp_path, ""))
    assert config.missing_fields() == ["address", "path", "value"]


def test_load_config_rejects_non_mapping(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError, match="mapping"):
        load_config(_write(tmp_path, "- a\n- b\n"))


def test_load_config_missing_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError, match="cannot read"):
        load_config(tmp_path / "nope.yaml")


def test_resolve_config_overrides_take_precedence(tmp_path: Path) -> None:
    path = _write(
        tmp_path,
        "coordination_address: zk1:2181\n"
        "coordination_path: /from-file\n",
    )

    config = resolve_config(
        path,
        {
            "coordination_address": None,
            "coordination_path": "/from-cli",
            "coordination_value": "v",
        },
    )

    assert config.coordination_address == "zk1:2181"
    assert config.node_path == "/from-cli"
    assert config.node_payload == b"v"


def test_resolve_config_without_file() -> None:
    config = resolve_config(None, {"coordination_path": "/a"})
    assert config.node_path == "/a"
    assert config.missing_fields() == ["address", "value"]
