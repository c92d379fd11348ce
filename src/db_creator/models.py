"""
Data models for the dataset builder.
"""

from __future__ import annotations

import dataclasses
import enum
from typing import Dict, List

NOT_AVAILABLE = "N/A"

OUTPUT_HEADER: List[str] = [
    "Test Id",
    "Method Id",
    "Method Role",
    "Method Modifiers",
    "Methods Header",
    "Fully Qualified Name",
    "Start Line",
    "End Line",
]


class Cardinality(str, enum.Enum):
    """How duplicate keys in the input tables are treated."""

    # testId -> many routes, methodId -> many records, full cross product
    MULTI = "multi"
    # later duplicate keys overwrite earlier ones
    SINGLE = "single"


@dataclasses.dataclass(frozen=True)
class RouteEntry:
    """A test exercising a method in a given role."""

    test_id: str
    method_id: str
    method_role: str


@dataclasses.dataclass(frozen=True)
class MethodRecord:
    """Declaration site of one method, as listed in the data table."""

    method_id: str
    header: str
    fully_qualified_name: str
    start_line: str
    end_line: str

    @property
    def class_name(self) -> str:
        """Dotted class path, everything before the last dot."""
        return self.fully_qualified_name.rsplit(".", 1)[0]

    @property
    def signature(self) -> str:
        """Method name followed by its descriptor."""
        return self.fully_qualified_name.rsplit(".", 1)[-1]


@dataclasses.dataclass(frozen=True)
class OutputRecord:
    """One row of the labeled dataset."""

    test_id: str
    method_id: str
    method_role: str
    modifiers: str
    header: str
    fully_qualified_name: str
    start_line: str
    end_line: str

    @classmethod
    def from_join(
        cls, route: RouteEntry, record: MethodRecord, modifiers: str
    ) -> "OutputRecord":
        return cls(
            test_id=route.test_id,
            method_id=route.method_id,
            method_role=route.method_role,
            modifiers=modifiers,
            header=record.header,
            fully_qualified_name=record.fully_qualified_name,
            start_line=record.start_line,
            end_line=record.end_line,
        )

    def as_row(self) -> List[str]:
        return [getattr(self, f.name) for f in dataclasses.fields(self)]


@dataclasses.dataclass(frozen=True)
class DeclaredMethod:
    """An entry of a compiled class's method table."""

    name: str
    descriptor: str
    access_flags: int

    @property
    def signature(self) -> str:
        return self.name + self.descriptor


@dataclasses.dataclass
class SubjectSummary:
    """Outcome of processing one subject."""

    subject: str
    rows: int
    unresolved: int
    csv_path: str


RoutesIndex = Dict[str, List[RouteEntry]]
DataIndex = Dict[str, List[MethodRecord]]
