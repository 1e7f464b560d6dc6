"""Tests for catalog models."""

import pytest

from suite_runner.models.catalog import (
    Catalog,
    CatalogValidationError,
    TestClassSpec,
    TestMethodSpec,
)
from suite_runner.testing.factories import TestClassSpecFactory, TestMethodSpecFactory


def test_create_builds_enabled_method() -> None:
    """Creates an enabled method without skip reason."""
    method = TestMethodSpec.create(
        "AddTodo_ValidTitle_ShouldSucceed",
        "Add todo - valid title",
        "Adds a todo with a valid title",
        "basic",
        lambda: None,
        expected_duration_ms=500,
    )

    assert method.enabled is True
    assert method.skip_reason is None
    assert method.expected_duration_ms == 500


def test_skipped_builds_disabled_method_with_reason() -> None:
    """Creates a disabled method carrying the skip reason."""
    method = TestMethodSpec.skipped(
        "Flaky_Test", "Flaky test", "Sometimes fails", "unstable", "flaky"
    )

    assert method.enabled is False
    assert method.skip_reason == "flaky"
    assert method.expected_duration_ms == 100


def test_disabled_method_requires_skip_reason() -> None:
    """Rejects a disabled method without a reason."""
    with pytest.raises(CatalogValidationError, match="requires a skip reason"):
        TestMethodSpec(name="Test", display_name="Test", enabled=False)


def test_enabled_method_rejects_skip_reason() -> None:
    """Rejects a skip reason on an enabled method."""
    with pytest.raises(CatalogValidationError, match="cannot carry a skip reason"):
        TestMethodSpec(name="Test", display_name="Test", skip_reason="nope")


def test_method_rejects_blank_name() -> None:
    """Rejects a blank method name."""
    with pytest.raises(CatalogValidationError, match="must not be blank"):
        TestMethodSpec(name="  ", display_name="Blank")


def test_class_keeps_method_order_as_tuple() -> None:
    """Stores methods as an immutable tuple in registration order."""
    first = TestMethodSpecFactory.build(name="First")
    second = TestMethodSpecFactory.build(name="Second")

    test_class = TestClassSpec(
        name="SampleTests", display_name="Samples", methods=[first, second]
    )

    assert test_class.methods == (first, second)


def test_class_rejects_duplicate_method_names() -> None:
    """Raises CatalogValidationError for duplicate method names."""
    with pytest.raises(CatalogValidationError, match="Duplicate test method 'Same'"):
        TestClassSpec(
            name="SampleTests",
            display_name="Samples",
            methods=[
                TestMethodSpecFactory.build(name="Same"),
                TestMethodSpecFactory.build(name="Same"),
            ],
        )


def test_catalog_rejects_duplicate_class_names() -> None:
    """Raises CatalogValidationError for duplicate class names."""
    with pytest.raises(CatalogValidationError, match="Duplicate test class 'Dup'"):
        Catalog.of(
            TestClassSpecFactory.build(name="Dup"),
            TestClassSpecFactory.build(name="Dup"),
        )


def test_catalog_counts_tests_across_classes() -> None:
    """Sums methods of all classes."""
    catalog = Catalog.of(
        TestClassSpecFactory.build(
            name="A",
            methods=[
                TestMethodSpecFactory.build(name="One"),
                TestMethodSpecFactory.build(name="Two"),
            ],
        ),
        TestClassSpecFactory.build(
            name="B", methods=[TestMethodSpecFactory.build(name="Three")]
        ),
    )

    assert catalog.total_tests == 3
    assert len(catalog) == 2
    assert [test_class.name for test_class in catalog] == ["A", "B"]


def test_same_method_name_allowed_in_different_classes() -> None:
    """Method names only need to be unique within their class."""
    catalog = Catalog.of(
        TestClassSpecFactory.build(
            name="A", methods=[TestMethodSpecFactory.build(name="Shared")]
        ),
        TestClassSpecFactory.build(
            name="B", methods=[TestMethodSpecFactory.build(name="Shared")]
        ),
    )

    assert catalog.total_tests == 2
