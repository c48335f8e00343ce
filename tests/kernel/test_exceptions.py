"""Tests for the flyproxy exception hierarchy."""

from flyproxy.kernel.exceptions import (
    GenerationError,
    IncompleteProxyTypeError,
    InterfaceConflictError,
    ProxyBuilderFrozenError,
    ProxyConstructionError,
    ProxyException,
    ReturnTypeMismatchError,
    UnhandledAdditionalMethodError,
)


class TestProxyException:
    def test_basic_creation(self):
        exc = ProxyException("something went wrong")
        assert str(exc) == "something went wrong"
        assert exc.code is None
        assert exc.context == {}

    def test_with_error_code(self):
        exc = ProxyException("bad proxy", code="CUSTOM_001")
        assert exc.code == "CUSTOM_001"

    def test_with_context(self):
        exc = ProxyException("failed", context={"target": "Service"})
        assert exc.context["target"] == "Service"

    def test_context_defaults_to_empty_dict(self):
        exc = ProxyException("test")
        exc.context["key"] = "value"
        exc2 = ProxyException("test2")
        assert exc2.context == {}


class TestDefaultCodes:
    def test_generation_codes(self):
        assert GenerationError("x").code == "PROXY_GENERATION"
        assert InterfaceConflictError("x").code == "PROXY_INTERFACE_CONFLICT"
        assert IncompleteProxyTypeError("x").code == "PROXY_INCOMPLETE_TYPE"
        assert ProxyBuilderFrozenError("x").code == "PROXY_BUILDER_FROZEN"
        assert ProxyConstructionError("x").code == "PROXY_CONSTRUCTION"

    def test_dispatch_codes(self):
        assert UnhandledAdditionalMethodError("x").code == "PROXY_UNHANDLED_METHOD"
        assert ReturnTypeMismatchError("x").code == "PROXY_RETURN_TYPE"

    def test_explicit_code_wins(self):
        assert GenerationError("x", code="OTHER").code == "OTHER"


class TestExceptionHierarchy:
    def test_generation_subclasses(self):
        for cls in (InterfaceConflictError, IncompleteProxyTypeError, ProxyBuilderFrozenError, ProxyConstructionError):
            assert issubclass(cls, GenerationError)

    def test_all_are_proxy_exceptions(self):
        for cls in (GenerationError, UnhandledAdditionalMethodError, ReturnTypeMismatchError):
            assert issubclass(cls, ProxyException)

    def test_unhandled_method_is_not_implemented_error(self):
        assert issubclass(UnhandledAdditionalMethodError, NotImplementedError)

    def test_return_mismatch_is_type_error(self):
        assert issubclass(ReturnTypeMismatchError, TypeError)

    def test_dispatch_errors_are_not_generation_errors(self):
        assert not issubclass(UnhandledAdditionalMethodError, GenerationError)
        assert not issubclass(ReturnTypeMismatchError, GenerationError)
