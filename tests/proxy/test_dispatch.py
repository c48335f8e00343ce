"""Tests for argument packing and return coercion in dispatchers."""

from __future__ import annotations

import asyncio
import inspect

from typing import Self

import pytest
from pydantic import BaseModel

from flyproxy.kernel.exceptions import ReturnTypeMismatchError
from flyproxy.proxy.generator import ProxyGenerator, create_proxy
from flyproxy.proxy.interceptors import FunctionInterceptor, PassThroughInterceptor
from flyproxy.proxy.settings import ProxySettings


class Point(BaseModel):
    x: int
    y: int


class Shape:
    pass


class Circle(Shape):
    pass


class Calculator:
    def combine(self, a: int, b: int = 2, *rest: int, scale: int = 1, **extra: int) -> int:
        """Add everything up."""
        return (a + b + sum(rest)) * scale + sum(extra.values())

    def count(self) -> int:
        return 1

    def label(self) -> str | None:
        return "calc"

    def origin(self) -> Point:
        return Point(x=0, y=0)

    def shape(self) -> Shape:
        return Shape()

    def anything(self):
        return object()

    def reset(self) -> None:
        return None


class Inventory:
    def __init__(self) -> None:
        self.items: list[int] = []

    def contents(self) -> list[int]:
        return self.items

    def stock(self) -> int:
        return True

    def lookup(self) -> dict[str, int] | None:
        return {"a": 1}


class Chained:
    def __init__(self) -> None:
        self.steps = 0

    def step(self) -> Self:
        self.steps += 1
        return self


class AsyncStore:
    async def fetch(self, key: str) -> str:
        await asyncio.sleep(0)
        return f"value:{key}"

    async def size(self) -> int:
        return 3


def _answering(value):
    return FunctionInterceptor(lambda name, forwarder, args: value)


class TestArgumentPacking:
    def test_arguments_packed_in_declaration_order(self) -> None:
        seen: list[tuple] = []

        def record(name, forwarder, args):
            seen.append(args)
            return forwarder(*args)

        proxy = create_proxy(Calculator(), [], FunctionInterceptor(record))
        result = proxy.combine(1, 3, 4, scale=2, bonus=5)

        assert seen == [(1, 3, (4,), 2, {"bonus": 5})]
        assert result == Calculator().combine(1, 3, 4, scale=2, bonus=5)

    def test_defaults_are_applied(self) -> None:
        seen: list[tuple] = []

        def record(name, forwarder, args):
            seen.append(args)
            return forwarder(*args)

        proxy = create_proxy(Calculator(), [], FunctionInterceptor(record))

        assert proxy.combine(1) == 3
        assert seen == [(1, 2, (), 1, {})]

    def test_keyword_arguments_bind_by_name(self) -> None:
        proxy = create_proxy(Calculator(), [], PassThroughInterceptor())

        assert proxy.combine(b=10, a=1) == 11

    def test_bad_call_shape_fails_before_interception(self) -> None:
        calls: list[str] = []
        proxy = create_proxy(Calculator(), [], FunctionInterceptor(lambda n, f, a: calls.append(n)))

        with pytest.raises(TypeError):
            proxy.combine()
        assert calls == []

    def test_interceptor_may_rewrite_arguments(self) -> None:
        def double_first(name, forwarder, args):
            return forwarder(args[0] * 2, *args[1:])

        proxy = create_proxy(Calculator(), [], FunctionInterceptor(double_first))

        assert proxy.combine(5, 0) == 10


class TestReturnCoercion:
    def test_matching_value_passes(self) -> None:
        proxy = create_proxy(Calculator(), [], _answering(7))

        assert proxy.count() == 7

    def test_mismatch_raises(self) -> None:
        proxy = create_proxy(Calculator(), [], _answering("seven"))

        with pytest.raises(ReturnTypeMismatchError) as exc_info:
            proxy.count()

        assert exc_info.value.context["method"] == "count"
        assert exc_info.value.__cause__ is not None

    def test_mismatch_is_a_type_error(self) -> None:
        proxy = create_proxy(Calculator(), [], _answering("seven"))

        with pytest.raises(TypeError):
            proxy.count()

    def test_strict_mode_rejects_numeric_strings(self) -> None:
        proxy = create_proxy(Calculator(), [], _answering("7"))

        with pytest.raises(ReturnTypeMismatchError):
            proxy.count()

    def test_lax_mode_converts_lossless_values(self) -> None:
        settings = ProxySettings(strict_returns=False)
        proxy = create_proxy(Calculator(), [], _answering("7"), settings=settings)

        assert proxy.count() == 7

    def test_lax_mode_never_truncates(self) -> None:
        settings = ProxySettings(strict_returns=False)
        proxy = create_proxy(Calculator(), [], _answering(1.5), settings=settings)

        with pytest.raises(ReturnTypeMismatchError):
            proxy.count()

    def test_optional_accepts_none(self) -> None:
        proxy = create_proxy(Calculator(), [], _answering(None))

        assert proxy.label() is None

    def test_void_method_discards_result(self) -> None:
        proxy = create_proxy(Calculator(), [], _answering("ignored"))

        assert proxy.reset() is None

    def test_untyped_method_passes_value_through(self) -> None:
        marker = object()
        proxy = create_proxy(Calculator(), [], _answering(marker))

        assert proxy.anything() is marker

    def test_model_return_type(self) -> None:
        point = Point(x=1, y=2)
        proxy = create_proxy(Calculator(), [], _answering(point))

        assert proxy.origin() == point

    def test_model_return_type_mismatch(self) -> None:
        proxy = create_proxy(Calculator(), [], _answering("not a point"))

        with pytest.raises(ReturnTypeMismatchError):
            proxy.origin()

    def test_arbitrary_class_accepts_subclass(self) -> None:
        circle = Circle()
        proxy = create_proxy(Calculator(), [], _answering(circle))

        assert proxy.shape() is circle

    def test_arbitrary_class_rejects_other_types(self) -> None:
        proxy = create_proxy(Calculator(), [], _answering(42))

        with pytest.raises(ReturnTypeMismatchError):
            proxy.shape()


class TestResultIdentity:
    def test_container_result_is_the_target_object(self) -> None:
        inventory = Inventory()
        inventory.items = [1, 2, 3]
        proxy = create_proxy(inventory, [], PassThroughInterceptor())

        got = proxy.contents()
        got.append(4)

        assert got is inventory.items
        assert inventory.items == [1, 2, 3, 4]

    def test_bool_is_a_valid_int_result(self) -> None:
        proxy = create_proxy(Inventory(), [], PassThroughInterceptor())

        assert proxy.stock() is True

    def test_optional_container_keeps_identity(self) -> None:
        mapping = {"b": 2}
        proxy = create_proxy(Inventory(), [], _answering(mapping))

        assert proxy.lookup() is mapping

    def test_lax_mode_returns_converted_value_only_when_needed(self) -> None:
        settings = ProxySettings(strict_returns=False)
        items = [5]
        proxy = create_proxy(Inventory(), [], _answering(items), settings=settings)

        assert proxy.contents() is items


class TestSelfReturn:
    def test_fluent_target_can_be_proxied(self) -> None:
        chained = Chained()
        proxy = create_proxy(chained, [], PassThroughInterceptor())

        assert proxy.step() is chained
        assert chained.steps == 1

    def test_interceptor_may_return_the_proxy(self) -> None:
        def fluent(name, forwarder, args):
            forwarder(*args)
            return proxy

        chained = Chained()
        proxy = create_proxy(chained, [], FunctionInterceptor(fluent))

        assert proxy.step().step() is proxy
        assert chained.steps == 2

    def test_self_mismatch_raises(self) -> None:
        proxy = create_proxy(Chained(), [], _answering(42))

        with pytest.raises(ReturnTypeMismatchError) as exc_info:
            proxy.step()

        assert "Self" in exc_info.value.context["expected"]


class TestDispatcherMetadata:
    def test_name_doc_and_signature_preserved(self) -> None:
        proxy = create_proxy(Calculator(), [], PassThroughInterceptor())

        assert proxy.combine.__name__ == "combine"
        assert proxy.combine.__doc__ == "Add everything up."
        assert list(inspect.signature(proxy.combine).parameters) == ["a", "b", "rest", "scale", "extra"]

    def test_call_logging_does_not_change_results(self) -> None:
        generator = ProxyGenerator(ProxySettings(log_calls=True))
        proxy = generator.create_proxy(Calculator(), [], PassThroughInterceptor())

        assert proxy.combine(1, 1) == 2


class TestAsyncDispatch:
    def test_async_dispatcher_is_coroutine_function(self) -> None:
        proxy = create_proxy(AsyncStore(), [], PassThroughInterceptor())

        assert inspect.iscoroutinefunction(proxy.fetch)

    @pytest.mark.asyncio
    async def test_forwarding_awaits_real_coroutine(self) -> None:
        proxy = create_proxy(AsyncStore(), [], PassThroughInterceptor())

        assert await proxy.fetch("k") == "value:k"

    @pytest.mark.asyncio
    async def test_plain_interceptor_result(self) -> None:
        proxy = create_proxy(AsyncStore(), [], _answering("cached"))

        assert await proxy.fetch("k") == "cached"

    @pytest.mark.asyncio
    async def test_async_interceptor(self) -> None:
        class AsyncInterceptor:
            async def call(self, method_name, forwarder, args):
                real = await forwarder(*args)
                return real.upper()

        proxy = create_proxy(AsyncStore(), [], AsyncInterceptor())

        assert await proxy.fetch("k") == "VALUE:K"

    @pytest.mark.asyncio
    async def test_async_return_coercion(self) -> None:
        proxy = create_proxy(AsyncStore(), [], _answering("three"))

        with pytest.raises(ReturnTypeMismatchError):
            await proxy.size()
