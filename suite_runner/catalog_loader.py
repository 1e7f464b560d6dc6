"""Loading of test catalogs from entry points or module references."""

from importlib.metadata import EntryPoint, entry_points

from suite_runner.models.catalog import Catalog

ENTRY_POINT_GROUP = "suite_runner.catalogs"


class CatalogNotFoundError(Exception):
    """Raised when a catalog reference cannot be resolved."""


def _resolve(loaded: object, reference: str) -> Catalog:
    if isinstance(loaded, Catalog):
        return loaded
    if callable(loaded):
        catalog = loaded()
        if isinstance(catalog, Catalog):
            return catalog
    raise CatalogNotFoundError(
        f"'{reference}' is neither a Catalog nor a factory returning one"
    )


def load_catalog(reference: str) -> Catalog:
    """Load a catalog by entry point name or ``module:attribute`` reference.

    Args:
        reference: An entry point name registered in the
            ``suite_runner.catalogs`` group (e.g., "todo"), or a reference
            such as "my_tests.catalog:build_catalog"

    Returns:
        The catalog

    Raises:
        CatalogNotFoundError: If nothing can be loaded for the reference

    """
    if ":" in reference:
        entry = EntryPoint(name=reference, value=reference, group=ENTRY_POINT_GROUP)
        try:
            loaded = entry.load()
        except (ImportError, AttributeError) as e:
            raise CatalogNotFoundError(
                f"Cannot import catalog '{reference}': {e}"
            ) from e
        return _resolve(loaded, reference)

    entries = entry_points(group=ENTRY_POINT_GROUP)
    for entry in entries:
        if entry.name == reference:
            return _resolve(entry.load(), reference)

    available = [e.name for e in entries]
    raise CatalogNotFoundError(
        f"Catalog '{reference}' not found. Available catalogs: {available}"
    )
