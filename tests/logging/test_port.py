"""Tests for the LoggingPort protocol."""

from flyproxy.logging.port import LoggingPort


class _FakeAdapter:
    def configure(self, config):
        pass

    def get_logger(self, name):
        return name

    def set_level(self, name, level):
        pass


class TestLoggingPort:
    def test_structural_conformance(self):
        assert isinstance(_FakeAdapter(), LoggingPort)

    def test_missing_method_is_not_a_port(self):
        class Incomplete:
            def configure(self, config):
                pass

        assert not isinstance(Incomplete(), LoggingPort)
