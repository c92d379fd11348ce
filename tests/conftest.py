from __future__ import annotations

import struct
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import pytest

from db_creator.config import PipelineConfig

MethodSpec = Tuple[int, str, str]

ROUTES_HEADER = "Test Id;Method Id;Method Role"
DATA_HEADER = "Method Id,Method Header,Fully Qualified Name,Start Line,End Line"


class ClassFileBuilder:
    """Assembles a minimal but well-formed class file from raw bytes."""

    def __init__(self, this_class: str, major: int = 52) -> None:
        self.major = major
        self._pool: List[bytes] = []
        self._next = 1
        self._utf8: Dict[str, int] = {}
        self.this_index = self.class_ref(this_class)
        self.super_index = self.class_ref("java/lang/Object")
        self.fields: List[MethodSpec] = []
        self.methods: List[MethodSpec] = []

    def _add(self, entry: bytes, slots: int = 1) -> int:
        index = self._next
        self._pool.append(entry)
        self._next += slots
        return index

    def utf8(self, text: str) -> int:
        if text not in self._utf8:
            raw = text.encode("utf-8")
            self._utf8[text] = self._add(b"\x01" + struct.pack(">H", len(raw)) + raw)
        return self._utf8[text]

    def class_ref(self, internal_name: str) -> int:
        return self._add(b"\x07" + struct.pack(">H", self.utf8(internal_name)))

    def add_other_constants(self) -> None:
        self._add(b"\x03" + struct.pack(">i", 7))
        self._add(b"\x05" + struct.pack(">q", 1 << 40), slots=2)
        self._add(b"\x06" + struct.pack(">d", 2.5), slots=2)
        nat = self._add(b"\x0c" + struct.pack(">HH", self.utf8("x"), self.utf8("I")))
        ref = self._add(b"\x09" + struct.pack(">HH", self.this_index, nat))
        self._add(b"\x0f\x01" + struct.pack(">H", ref))
        self._add(b"\x08" + struct.pack(">H", self.utf8("hello")))

    def field(self, access: int, name: str, descriptor: str) -> "ClassFileBuilder":
        self.fields.append((access, name, descriptor))
        return self

    def method(self, access: int, name: str, descriptor: str) -> "ClassFileBuilder":
        self.methods.append((access, name, descriptor))
        return self

    def _member(self, spec: MethodSpec, attribute: str, body: bytes) -> bytes:
        access, name, descriptor = spec
        out = struct.pack(">HHHH", access, self.utf8(name), self.utf8(descriptor), 1)
        return out + struct.pack(">HI", self.utf8(attribute), len(body)) + body

    def build(self) -> bytes:
        interface = self.class_ref("java/io/Serializable")
        self.add_other_constants()
        code = b"\x00\x01\x00\x01\x00\x00\x00\x01\xb1\x00\x00\x00\x00"
        members = [self._member(f, "ConstantValue", b"\x00\x01") for f in self.fields]
        methods = [self._member(m, "Code", code) for m in self.methods]
        source = self.utf8("SourceFile")
        source_name = self.utf8("C.java")

        out = struct.pack(">IHHH", 0xCAFEBABE, 0, self.major, self._next)
        out += b"".join(self._pool)
        out += struct.pack(">HHH", 0x0021, self.this_index, self.super_index)
        out += struct.pack(">HH", 1, interface)
        out += struct.pack(">H", len(members)) + b"".join(members)
        out += struct.pack(">H", len(methods)) + b"".join(methods)
        out += struct.pack(">HHIH", 1, source, 2, source_name)
        return out


def class_bytes(
    internal_name: str,
    methods: Sequence[MethodSpec],
    fields: Sequence[MethodSpec] = ((0x0002, "x", "I"),),
) -> bytes:
    builder = ClassFileBuilder(internal_name)
    for f in fields:
        builder.field(*f)
    for m in methods:
        builder.method(*m)
    return builder.build()


def write_class(
    subjects_dir: Path, subject: str, dotted_name: str, methods: Sequence[MethodSpec]
) -> Path:
    parts = dotted_name.split(".")
    path = subjects_dir.joinpath(subject, "classes", *parts[:-1], parts[-1] + ".class")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(class_bytes("/".join(parts), methods))
    return path


def write_tables(
    data_dir: Path,
    subject: str,
    routes: Sequence[Sequence[str]],
    data: Sequence[Sequence[str]],
    data_text: Optional[str] = None,
) -> None:
    data_dir.mkdir(parents=True, exist_ok=True)
    routes_lines = [ROUTES_HEADER] + [";".join(r) for r in routes]
    (data_dir / f"{subject}_routes.csv").write_text("\n".join(routes_lines) + "\n")
    if data_text is None:
        data_lines = [DATA_HEADER] + [",".join(r) for r in data]
        data_text = "\n".join(data_lines) + "\n"
    (data_dir / f"{subject}_data.csv").write_text(data_text)


@pytest.fixture
def db_dir(tmp_path: Path) -> Path:
    return tmp_path / "db"


@pytest.fixture
def config(tmp_path: Path, db_dir: Path) -> PipelineConfig:
    return PipelineConfig.from_db_dir(
        db_dir, subjects=["Demo"], out_dir=tmp_path / "out"
    )
