from __future__ import annotations

from pathlib import Path

import pytest

from conftest import write_class
from db_creator.classfile import ClassModifierResolver
from db_creator.errors import OrphanRouteError
from db_creator.joiner import expected_row_count, join_dataset
from db_creator.models import MethodRecord, OutputRecord, RouteEntry


def _route(test_id: str, method_id: str, role: str = "assertion") -> RouteEntry:
    return RouteEntry(test_id, method_id, role)


def _record(method_id: str, fqn: str, header: str = "hdr") -> MethodRecord:
    return MethodRecord(method_id, header, fqn, "10", "12")


@pytest.fixture
def resolver(tmp_path: Path) -> ClassModifierResolver:
    write_class(tmp_path, "S", "a.b.C", [(0x0009, "m", "()I"), (0x0002, "n", "()V")])
    return ClassModifierResolver(tmp_path)


def test_join_single_example(resolver: ClassModifierResolver) -> None:
    rows = join_dataset(
        "S", {"T1": [_route("T1", "M1")]}, {"M1": [_record("M1", "a.b.C.m()I")]}, resolver
    )
    assert rows == [
        OutputRecord("T1", "M1", "assertion", "public static", "hdr", "a.b.C.m()I", "10", "12")
    ]


def test_join_marks_unresolved_modifiers(resolver: ClassModifierResolver) -> None:
    routes = {"T1": [_route("T1", "M1"), _route("T1", "M2")]}
    data = {
        "M1": [_record("M1", "a.b.Gone.m()I")],
        "M2": [_record("M2", "a.b.C.n()V")],
    }
    rows = join_dataset("S", routes, data, resolver)
    assert [r.modifiers for r in rows] == ["N/A", "private"]


def test_join_orders_by_test_id_and_crosses_records(resolver: ClassModifierResolver) -> None:
    routes = {
        "T9": [_route("T9", "M1")],
        "T10": [_route("T10", "M2", "helper"), _route("T10", "M1")],
        "A1": [_route("A1", "M2")],
    }
    data = {
        "M1": [_record("M1", "a.b.C.m()I"), _record("M1", "a.b.C.n()V", "other")],
        "M2": [_record("M2", "a.b.C.n()V")],
    }
    rows = join_dataset("S", routes, data, resolver)
    assert [r.test_id for r in rows] == ["A1", "T10", "T10", "T10", "T9", "T9"]
    assert len(rows) == expected_row_count(routes, data) == 6
    assert [(r.method_id, r.header) for r in rows[1:4]] == [
        ("M2", "hdr"),
        ("M1", "hdr"),
        ("M1", "other"),
    ]


def test_join_orphan_route_is_fatal(resolver: ClassModifierResolver) -> None:
    routes = {"T1": [_route("T1", "M1")], "T2": [_route("T2", "M404")]}
    data = {"M1": [_record("M1", "a.b.C.m()I")]}
    seen = []
    with pytest.raises(OrphanRouteError) as info:
        join_dataset("S", routes, data, resolver, on_record=seen.append)
    assert (info.value.test_id, info.value.method_id) == ("T2", "M404")
    assert len(seen) == 1


def test_join_empty_routes(resolver: ClassModifierResolver) -> None:
    assert join_dataset("S", {}, {"M1": [_record("M1", "a.b.C.m()I")]}, resolver) == []
