"""Tests for the Endpoint Registry and config parsing."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
import yaml

from endpoint_monitor.endpoints.registry import (
    EndpointRegistry,
    SchedulerConfig,
    parse_endpoint,
    parse_monitor_config,
)
from endpoint_monitor.errors import ConfigError


@pytest.fixture
def sample_yaml(tmp_path: Path) -> Path:
    data = {
        "scheduler": {"enabled": True, "tick_interval_seconds": 15},
        "endpoints": [
            {
                "name": "web-1",
                "kind": "http",
                "host": "example.com",
                "port": 443,
                "use_ssl": True,
                "path": "/health",
                "expected_status": 200,
                "expected_content": "ok",
                "schedule": "*/5 * * * *",
            },
            {
                "name": "web-1-cert",
                "kind": "Certificate",
                "host": "example.com",
                "port": 443,
                "min_certificate_days_valid": 14,
            },
            {"name": "no-host", "kind": "port"},
            {"name": "web-1", "kind": "port", "host": "dup.example.com", "port": 22},
            {"name": "bad-port", "kind": "port", "host": "h", "port": "twenty-two"},
        ],
    }
    path = tmp_path / "endpoints.yaml"
    path.write_text(yaml.dump(data))
    return path


@pytest.fixture
def registry(sample_yaml: Path) -> EndpointRegistry:
    reg = EndpointRegistry(path=sample_yaml)
    reg.load()
    return reg


class TestEndpointRegistry:
    def test_loads_valid_entries_only(self, registry: EndpointRegistry) -> None:
        names = [e.name for e in registry.endpoints]
        assert names == ["web-1", "web-1-cert"]

    def test_duplicate_name_first_wins(self, registry: EndpointRegistry) -> None:
        web = registry.get("web-1")
        assert web is not None
        assert web.kind == "http"
        assert web.host == "example.com"

    def test_fields(self, registry: EndpointRegistry) -> None:
        web = registry.get("web-1")
        assert web is not None
        assert web.use_ssl is True
        assert web.path == "/health"
        assert web.expected_status == 200
        assert web.expected_content == "ok"
        assert web.timeout_ms == 5000

        cert = registry.get("web-1-cert")
        assert cert is not None
        assert cert.kind == "certificate"
        assert cert.min_certificate_days_valid == 14
        assert cert.schedule == "*/5 * * * *"  # default

    def test_scheduler_block(self, registry: EndpointRegistry) -> None:
        assert registry.scheduler.enabled is True
        assert registry.scheduler.tick_interval_seconds == 15

    def test_missing_file(self, tmp_path: Path) -> None:
        defaults = SchedulerConfig(enabled=False, tick_interval_seconds=45)
        reg = EndpointRegistry(path=tmp_path / "nope.yaml", defaults=defaults)
        config = reg.load()
        assert config.endpoints == []
        assert config.scheduler.enabled is False
        assert config.scheduler.tick_interval_seconds == 45

    def test_unparseable_file(self, tmp_path: Path) -> None:
        path = tmp_path / "broken.yaml"
        path.write_text("endpoints: [unclosed")
        assert EndpointRegistry(path=path).load().endpoints == []

    def test_reload(self, sample_yaml: Path, registry: EndpointRegistry) -> None:
        sample_yaml.write_text(yaml.dump({"endpoints": [{"name": "x", "kind": "port", "host": "h"}]}))
        assert len(registry.endpoints) == 2  # cached
        registry.reload()
        assert [e.name for e in registry.endpoints] == ["x"]

    def test_to_dict_omits_credentials(self, tmp_path: Path) -> None:
        path = tmp_path / "e.yaml"
        path.write_text(yaml.dump({"endpoints": [
            {"name": "cache", "kind": "cache", "host": "r", "password": "s3cret"},
        ]}))
        data = EndpointRegistry(path=path).to_dict()
        assert data[0]["name"] == "cache"
        assert "s3cret" not in json.dumps(data)


class TestAppSettingsLayout:
    def test_pascal_case_monitor_config(self, tmp_path: Path) -> None:
        doc = {
            "MonitorConfig": {
                "Scheduler": {"Enabled": False, "DefaultIntervalSeconds": 300},
                "Endpoints": [
                    {
                        "Name": "orders-db",
                        "Host": "sql01",
                        "Port": 1433,
                        "TestType": "SqlServer",
                        "Timeout": 3000,
                        "Schedule": "*/10 * * * *",
                        "SqlServerDatabase": "orders",
                        "SqlServerUsername": "monitor",
                        "SqlServerPassword": "pw",
                    },
                    {
                        "Name": "api",
                        "Host": "api.local",
                        "TestType": "Http",
                        "UseSsl": True,
                        "ExpectedStatusCode": 204,
                    },
                ],
            }
        }
        path = tmp_path / "appsettings.json"
        path.write_text(json.dumps(doc))
        config = EndpointRegistry(path=path).load()

        assert config.scheduler.enabled is False
        assert config.scheduler.tick_interval_seconds == 300
        db, api = config.endpoints
        assert db.kind == "sqlserver"
        assert db.timeout_ms == 3000
        assert db.database == "orders"
        assert db.username == "monitor"
        assert db.password == "pw"
        assert api.kind == "http"
        assert api.use_ssl is True
        assert api.expected_status == 204


class TestParseEndpoint:
    def test_requires_name(self) -> None:
        with pytest.raises(ConfigError):
            parse_endpoint({"kind": "port", "host": "h"})

    def test_requires_kind(self) -> None:
        with pytest.raises(ConfigError):
            parse_endpoint({"name": "x", "host": "h"})

    def test_rejects_non_mapping(self) -> None:
        with pytest.raises(ConfigError):
            parse_endpoint(["name", "x"])

    def test_rejects_bool_port(self) -> None:
        with pytest.raises(ConfigError):
            parse_endpoint({"name": "x", "kind": "port", "host": "h", "port": True})

    def test_endpoint_is_immutable(self) -> None:
        ep = parse_endpoint({"name": "x", "kind": "port", "host": "h", "port": 22})
        with pytest.raises(AttributeError):
            ep.port = 23  # type: ignore[misc]
        assert ep.target == "h:22"

    def test_password_not_in_repr(self) -> None:
        ep = parse_endpoint({"name": "x", "kind": "cache", "host": "h", "password": "s3cret"})
        assert "s3cret" not in repr(ep)


class TestParseMonitorConfig:
    def test_non_mapping_document(self) -> None:
        config = parse_monitor_config(["not", "a", "mapping"])
        assert config.endpoints == []

    def test_bad_interval_falls_back(self) -> None:
        defaults = SchedulerConfig(tick_interval_seconds=20)
        config = parse_monitor_config({"scheduler": {"tick_interval_seconds": "soon"}}, defaults)
        assert config.scheduler.tick_interval_seconds == 20

    def test_quoted_false_scheduler_flag(self) -> None:
        config = parse_monitor_config({"scheduler": {"enabled": "false"}})
        assert config.scheduler.enabled is False

    def test_unrecognised_scheduler_flag_falls_back(self) -> None:
        defaults = SchedulerConfig(enabled=True)
        config = parse_monitor_config({"scheduler": {"enabled": "sometimes"}}, defaults)
        assert config.scheduler.enabled is True


class TestBooleanFields:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [(True, True), (False, False), ("false", False), ("False", False), ("true", True), ("yes", True), ("0", False)],
    )
    def test_use_ssl_values(self, raw, expected) -> None:
        ep = parse_endpoint({"name": "x", "kind": "http", "host": "h", "use_ssl": raw})
        assert ep.use_ssl is expected

    def test_use_ssl_rejects_other_values(self) -> None:
        with pytest.raises(ConfigError):
            parse_endpoint({"name": "x", "kind": "http", "host": "h", "use_ssl": "maybe"})
        with pytest.raises(ConfigError):
            parse_endpoint({"name": "x", "kind": "http", "host": "h", "use_ssl": 1})

    def test_quoted_json_flag(self, tmp_path: Path) -> None:
        path = tmp_path / "appsettings.json"
        path.write_text(json.dumps({"MonitorConfig": {"Endpoints": [
            {"Name": "api", "Host": "api.local", "TestType": "Http", "UseSsl": "false"},
        ]}}))
        (api,) = EndpointRegistry(path=path).load().endpoints
        assert api.use_ssl is False
