"""Models for the test catalog: classes of test methods and their bodies."""

from collections.abc import Awaitable, Callable, Iterator, Sequence
from dataclasses import dataclass, field

TestBody = Callable[[], Awaitable[None] | None]
LifecycleHook = Callable[[], Awaitable[None] | None]


class CatalogValidationError(ValueError):
    """Raised when a catalog registration is malformed."""


def _noop() -> None:
    return None


@dataclass(frozen=True, kw_only=True)
class TestMethodSpec:
    """Specification of a single test method.

    A disabled spec carries a skip reason and its body is never invoked.
    """

    __test__ = False

    name: str
    display_name: str
    description: str = ""
    category: str = ""
    body: TestBody = field(default=_noop, repr=False, compare=False)
    enabled: bool = True
    skip_reason: str | None = None
    expected_duration_ms: int = 1000

    def __post_init__(self) -> None:
        if not self.name.strip():
            raise CatalogValidationError("Test method name must not be blank")
        if not self.enabled and not self.skip_reason:
            raise CatalogValidationError(
                f"Disabled test method '{self.name}' requires a skip reason"
            )
        if self.enabled and self.skip_reason is not None:
            raise CatalogValidationError(
                f"Enabled test method '{self.name}' cannot carry a skip reason"
            )

    @classmethod
    def create(
        cls,
        name: str,
        display_name: str,
        description: str,
        category: str,
        body: TestBody,
        expected_duration_ms: int = 1000,
    ) -> "TestMethodSpec":
        """Create an enabled test method."""
        return cls(
            name=name,
            display_name=display_name,
            description=description,
            category=category,
            body=body,
            expected_duration_ms=expected_duration_ms,
        )

    @classmethod
    def skipped(
        cls,
        name: str,
        display_name: str,
        description: str,
        category: str,
        skip_reason: str,
    ) -> "TestMethodSpec":
        """Create a disabled test method that reports ``skip_reason``."""
        return cls(
            name=name,
            display_name=display_name,
            description=description,
            category=category,
            enabled=False,
            skip_reason=skip_reason,
            expected_duration_ms=100,
        )


@dataclass(frozen=True, kw_only=True)
class TestClassSpec:
    """A named group of test methods with optional lifecycle hooks.

    ``initialize`` runs once before the methods and ``cleanup`` once after
    them, for every run.
    """

    __test__ = False

    name: str
    display_name: str
    description: str = ""
    methods: Sequence[TestMethodSpec] = ()
    initialize: LifecycleHook | None = field(default=None, repr=False)
    cleanup: LifecycleHook | None = field(default=None, repr=False)

    def __post_init__(self) -> None:
        methods = tuple(self.methods)
        object.__setattr__(self, "methods", methods)

        seen: set[str] = set()
        for method in methods:
            if method.name in seen:
                raise CatalogValidationError(
                    f"Duplicate test method '{method.name}' in class '{self.name}'"
                )
            seen.add(method.name)


@dataclass(frozen=True)
class Catalog:
    """Ordered registry of test classes."""

    classes: Sequence[TestClassSpec] = ()

    def __post_init__(self) -> None:
        classes = tuple(self.classes)
        object.__setattr__(self, "classes", classes)

        seen: set[str] = set()
        for test_class in classes:
            if test_class.name in seen:
                raise CatalogValidationError(
                    f"Duplicate test class '{test_class.name}'"
                )
            seen.add(test_class.name)

    @classmethod
    def of(cls, *classes: TestClassSpec) -> "Catalog":
        """Build a catalog from the given classes, in order."""
        return cls(classes)

    @property
    def total_tests(self) -> int:
        return sum(len(test_class.methods) for test_class in self.classes)

    def __iter__(self) -> Iterator[TestClassSpec]:
        return iter(self.classes)

    def __len__(self) -> int:
        return len(self.classes)
