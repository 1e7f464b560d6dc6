"""Assertion helpers for catalog test bodies.

Each helper raises :class:`AssertionFailure` with a readable message, which the
engine records as the failed test's error message.
"""

from collections.abc import Awaitable, Callable, Collection, Iterable, Iterator
from contextlib import contextmanager
from typing import Any


class AssertionFailure(AssertionError):
    """Raised by the assertion helpers."""


def _fail(message: str | None, default: str) -> AssertionFailure:
    return AssertionFailure(message or default)


def assert_true(condition: bool, message: str | None = None) -> None:
    if not condition:
        raise _fail(message, "Expected condition to be true")


def assert_false(condition: bool, message: str | None = None) -> None:
    if condition:
        raise _fail(message, "Expected condition to be false")


def assert_equal(expected: Any, actual: Any, message: str | None = None) -> None:
    if expected != actual:
        raise _fail(message, f"Expected {expected!r}, got {actual!r}")


def assert_not_equal(unexpected: Any, actual: Any, message: str | None = None) -> None:
    if unexpected == actual:
        raise _fail(message, f"Expected a value other than {unexpected!r}")


def assert_is_none(value: Any, message: str | None = None) -> None:
    if value is not None:
        raise _fail(message, f"Expected None, got {value!r}")


def assert_is_not_none(value: Any, message: str | None = None) -> None:
    if value is None:
        raise _fail(message, "Expected a value, got None")


def assert_not_blank(value: str | None, message: str | None = None) -> None:
    if value is None or not value.strip():
        raise _fail(message, f"Expected a non-blank string, got {value!r}")


def assert_contains(
    collection: Iterable[Any], item: Any, message: str | None = None
) -> None:
    if item not in collection:
        raise _fail(message, f"Expected collection to contain {item!r}")


def assert_not_contains(
    collection: Iterable[Any], item: Any, message: str | None = None
) -> None:
    if item in collection:
        raise _fail(message, f"Expected collection not to contain {item!r}")


def assert_empty(collection: Collection[Any], message: str | None = None) -> None:
    if len(collection) != 0:
        raise _fail(
            message, f"Expected an empty collection, got {len(collection)} item(s)"
        )


def assert_not_empty(collection: Collection[Any], message: str | None = None) -> None:
    if len(collection) == 0:
        raise _fail(message, "Expected a non-empty collection")


def assert_count(
    collection: Collection[Any], expected: int, message: str | None = None
) -> None:
    if len(collection) != expected:
        raise _fail(message, f"Expected {expected} item(s), got {len(collection)}")


@contextmanager
def assert_raises(
    expected: type[BaseException], message: str | None = None
) -> Iterator[list[BaseException]]:
    """Expect the block to raise ``expected``; yields a list holding the error."""
    caught: list[BaseException] = []
    try:
        yield caught
    except expected as e:
        caught.append(e)
        return
    raise _fail(message, f"Expected {expected.__name__} to be raised")


async def assert_raises_async(
    expected: type[BaseException],
    action: Callable[[], Awaitable[Any]],
    message: str | None = None,
) -> BaseException:
    """Await ``action`` and return the ``expected`` error it raised."""
    try:
        await action()
    except expected as e:
        return e
    raise _fail(message, f"Expected {expected.__name__} to be raised")
