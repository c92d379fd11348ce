"""
Join of routes and method data, enriched with access modifiers.
"""

from __future__ import annotations

from typing import Callable, Iterator, List, Optional

from .classfile import ClassModifierResolver
from .errors import OrphanRouteError
from .models import NOT_AVAILABLE, DataIndex, OutputRecord, RoutesIndex


def iter_joined(
    subject: str,
    routes: RoutesIndex,
    data: DataIndex,
    resolver: ClassModifierResolver,
) -> Iterator[OutputRecord]:
    """Yield output records grouped by ascending test id."""
    for test_id in sorted(routes):
        for route in routes[test_id]:
            records = data.get(route.method_id)
            if not records:
                raise OrphanRouteError(subject, test_id, route.method_id)
            for record in records:
                modifiers = resolver.resolve(subject, record.fully_qualified_name)
                yield OutputRecord.from_join(
                    route,
                    record,
                    NOT_AVAILABLE if modifiers is None else modifiers,
                )


def join_dataset(
    subject: str,
    routes: RoutesIndex,
    data: DataIndex,
    resolver: ClassModifierResolver,
    on_record: Optional[Callable[[OutputRecord], None]] = None,
) -> List[OutputRecord]:
    """Join a subject's tables completely; an orphan route aborts the join."""
    out: List[OutputRecord] = []
    for rec in iter_joined(subject, routes, data, resolver):
        out.append(rec)
        if on_record is not None:
            on_record(rec)
    return out


def expected_row_count(routes: RoutesIndex, data: DataIndex) -> int:
    """Number of rows the join produces when no route is orphaned."""
    return sum(
        len(data.get(route.method_id, ()))
        for entries in routes.values()
        for route in entries
    )
