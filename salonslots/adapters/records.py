"""
Helpers for turning raw rows from a data store into domain models.
"""

from typing import Any, Callable, Iterable, List, Mapping, TypeVar

from rich.console import Console

from ..domain.exceptions import DataStoreError

console = Console()

T = TypeVar("T")


def parse_records(
    rows: Iterable[Any],
    factory: Callable[[Mapping[str, Any]], T],
    source: str,
    strict: bool = False,
) -> List[T]:
    """
    Parse every row with ``factory``, skipping malformed rows with a warning.

    Args:
        rows: Raw rows (dicts) as returned by the store
        factory: A model ``from_record`` constructor
        source: Table or section name used in warnings
        strict: Raise instead of skipping. Used for bookings, where a
            dropped row would show its time as free.

    Returns:
        Successfully parsed models, in input order

    Raises:
        DataStoreError: If ``strict`` is set and a row can't be parsed
    """
    parsed: List[T] = []

    for row in rows:
        if not isinstance(row, Mapping):
            if strict:
                raise DataStoreError(f"Unexpected non-object entry in {source}: {row!r}")
            console.print(f"[yellow]Warning: Skipping non-object entry in {source}: {row!r}[/yellow]")
            continue
        try:
            parsed.append(factory(row))
        except (ValueError, TypeError) as e:
            if strict:
                raise DataStoreError(f"Could not parse {source} entry {dict(row)!r}: {e}") from e
            console.print(f"[yellow]Warning: Could not parse {source} entry: {e}[/yellow]")

    return parsed
