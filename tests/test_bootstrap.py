"""Tests for bootstrap: config resolution, logging setup and generator settings."""

from __future__ import annotations

import logging

import pytest
import structlog

from flyproxy import ProxyGenerator, bootstrap, create_proxy
from flyproxy.core.config import Config
from flyproxy.logging.structlog_adapter import ROOT_LOGGER


class RecordingPort:
    def __init__(self) -> None:
        self.configured: list[Config] = []
        self.events: list[tuple[str, dict]] = []

    def configure(self, config: Config) -> None:
        self.configured.append(config)

    def get_logger(self, name: str):
        port = self

        class _Logger:
            def info(self, event: str, **kw) -> None:
                port.events.append((event, kw))

        return _Logger()

    def set_level(self, name: str, level: str) -> None:
        pass


class Counter:
    def next(self) -> int:
        return 1


@pytest.fixture(autouse=True)
def _restore_logging():
    root = logging.getLogger(ROOT_LOGGER)
    handlers, level, propagate = list(root.handlers), root.level, root.propagate
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    root.propagate = propagate
    logging.getLogger("flyproxy.proxy").setLevel(logging.NOTSET)
    structlog.reset_defaults()


class TestBootstrap:
    def test_defaults(self):
        port = RecordingPort()
        generator = bootstrap(logging_port=port)

        assert isinstance(generator, ProxyGenerator)
        assert generator.settings.cache_types is True
        assert generator.settings.strict_returns is True
        assert len(port.configured) == 1

    def test_config_instance_is_bound(self):
        config = Config({"flyproxy": {"proxy": {"strict-returns": False, "type-name-suffix": "Wrapper"}}})
        generator = bootstrap(config, logging_port=RecordingPort())

        assert generator.settings.strict_returns is False
        proxy = create_proxy(Counter(), [], _Answer(), settings=generator.settings)
        assert type(proxy).__name__ == "CounterWrapper"

    def test_loads_yaml_file_with_profile(self, tmp_path):
        (tmp_path / "flyproxy.yaml").write_text("flyproxy:\n  proxy:\n    cache-types: true\n")
        (tmp_path / "flyproxy-dev.yaml").write_text("flyproxy:\n  proxy:\n    cache-types: false\n")
        port = RecordingPort()

        generator = bootstrap(tmp_path / "flyproxy.yaml", active_profiles=["dev"], logging_port=port)

        assert generator.settings.cache_types is False
        assert len(port.configured[0].loaded_sources) == 2

    def test_logs_configuration_summary(self):
        port = RecordingPort()
        bootstrap(logging_port=port)

        event, fields = port.events[0]
        assert event == "flyproxy_configured"
        assert fields["sources"] == ["defaults"]
        assert fields["log_calls"] is False

    def test_invalid_settings_raise(self):
        config = Config({"flyproxy": {"proxy": {"type-name-suffix": ""}}})
        with pytest.raises(ValueError, match="ProxySettings"):
            bootstrap(config, logging_port=RecordingPort())

    def test_default_port_is_structlog_adapter(self):
        generator = bootstrap(Config({}))

        assert isinstance(generator, ProxyGenerator)
        assert logging.getLogger("flyproxy.proxy").level == logging.WARNING


class _Answer:
    def call(self, method_name, forwarder, args):
        return forwarder(*args)
