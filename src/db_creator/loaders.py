"""
Readers for the per-subject routes and method data tables.
"""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Callable, Dict, Iterator, List, TypeVar

from .errors import TableReadError
from .models import Cardinality, DataIndex, MethodRecord, RouteEntry, RoutesIndex

T = TypeVar("T")

ROUTES_DELIMITER = ";"
DATA_DELIMITER = ","


def routes_table_path(data_dir: Path, subject: str) -> Path:
    return data_dir / f"{subject}_routes.csv"


def data_table_path(data_dir: Path, subject: str) -> Path:
    return data_dir / f"{subject}_data.csv"


def _iter_rows(path: Path, delimiter: str, width: int) -> Iterator[List[str]]:
    """Yield data rows after the header, failing on short rows."""
    try:
        with path.open("r", encoding="utf-8", newline="") as f:
            reader = csv.reader(f, delimiter=delimiter)
            if next(reader, None) is None:
                raise TableReadError(path, "missing header row")
            for row in reader:
                if not row:
                    continue
                if len(row) < width:
                    raise TableReadError(
                        path,
                        f"expected {width} columns, found {len(row)}",
                        line=reader.line_num,
                    )
                yield row
    except OSError as ex:
        raise TableReadError(path, ex.strerror or str(ex)) from ex
    except (csv.Error, UnicodeDecodeError) as ex:
        raise TableReadError(path, str(ex)) from ex


def _index(
    items: Iterator[T], key: Callable[[T], str], cardinality: Cardinality
) -> Dict[str, List[T]]:
    index: Dict[str, List[T]] = {}
    for item in items:
        k = key(item)
        if cardinality is Cardinality.SINGLE:
            index[k] = [item]
            continue
        bucket = index.setdefault(k, [])
        if item not in bucket:
            bucket.append(item)
    return index


def load_routes_table(
    data_dir: Path, subject: str, cardinality: Cardinality = Cardinality.MULTI
) -> RoutesIndex:
    """Read ``<subject>_routes.csv`` into a testId-keyed index."""
    path = routes_table_path(data_dir, subject)
    entries = (
        RouteEntry(test_id=row[0], method_id=row[1], method_role=row[2])
        for row in _iter_rows(path, ROUTES_DELIMITER, 3)
    )
    return _index(entries, lambda e: e.test_id, cardinality)


def load_data_table(
    data_dir: Path, subject: str, cardinality: Cardinality = Cardinality.MULTI
) -> DataIndex:
    """Read ``<subject>_data.csv`` into a methodId-keyed index."""
    path = data_table_path(data_dir, subject)
    records = (
        MethodRecord(
            method_id=row[0],
            header=row[1],
            fully_qualified_name=row[2],
            start_line=row[3],
            end_line=row[4],
        )
        for row in _iter_rows(path, DATA_DELIMITER, 5)
    )
    return _index(records, lambda r: r.method_id, cardinality)
