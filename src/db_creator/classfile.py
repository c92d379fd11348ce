"""
Compiled class file reading and access modifier resolution.

Only the part of the class file format needed to enumerate declared methods
is walked: the constant pool (to resolve names), then the interface, field
and method tables. Method bodies and class attributes are never read.
"""

from __future__ import annotations

import struct
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from rich.console import Console

from .errors import ClassFormatError
from .models import DeclaredMethod

console = Console(stderr=True)

CLASS_MAGIC = 0xCAFEBABE

# Constant pool tag -> payload size in bytes (Utf8 is variable and handled apart)
_CONSTANT_SIZES: Dict[int, int] = {
    3: 4,  # Integer
    4: 4,  # Float
    5: 8,  # Long
    6: 8,  # Double
    7: 2,  # Class
    8: 2,  # String
    9: 4,  # Fieldref
    10: 4,  # Methodref
    11: 4,  # InterfaceMethodref
    12: 4,  # NameAndType
    15: 3,  # MethodHandle
    16: 2,  # MethodType
    17: 4,  # Dynamic
    18: 4,  # InvokeDynamic
    19: 2,  # Module
    20: 2,  # Package
}
_TAG_UTF8 = 1
_TWO_SLOT_TAGS = (5, 6)

# Keyword order of java.lang.reflect.Modifier.toString
_MODIFIER_KEYWORDS: List[Tuple[int, str]] = [
    (0x0001, "public"),
    (0x0004, "protected"),
    (0x0002, "private"),
    (0x0400, "abstract"),
    (0x0008, "static"),
    (0x0010, "final"),
    (0x0080, "transient"),
    (0x0040, "volatile"),
    (0x0020, "synchronized"),
    (0x0100, "native"),
    (0x0800, "strictfp"),
    (0x0200, "interface"),
]

# On methods 0x0080 is ACC_VARARGS, which the keyword table above renders as
# "transient". It is not a source modifier, so the token is dropped. Dropping
# the token rather than the substring leaves no doubled or trailing space, so
# "public static" here reads "public static " in tables built by plain text
# replacement.
SUPPRESSED_KEYWORDS = frozenset({"transient"})


class _ByteReader:
    """Big-endian cursor over class file bytes."""

    _U1 = struct.Struct(">B")
    _U2 = struct.Struct(">H")
    _U4 = struct.Struct(">I")

    def __init__(self, data: bytes) -> None:
        self.data = data
        self.pos = 0

    def _unpack(self, fmt: struct.Struct) -> int:
        try:
            (value,) = fmt.unpack_from(self.data, self.pos)
        except struct.error as ex:
            raise ClassFormatError(f"truncated class file at offset {self.pos}") from ex
        self.pos += fmt.size
        return value

    def u1(self) -> int:
        return self._unpack(self._U1)

    def u2(self) -> int:
        return self._unpack(self._U2)

    def u4(self) -> int:
        return self._unpack(self._U4)

    def take(self, length: int) -> bytes:
        end = self.pos + length
        if end > len(self.data):
            raise ClassFormatError(f"truncated class file at offset {self.pos}")
        chunk = self.data[self.pos : end]
        self.pos = end
        return chunk

    def skip(self, length: int) -> None:
        self.take(length)


def decode_modified_utf8(raw: bytes) -> str:
    """Decode the JVM's modified UTF-8 (encoded NUL, surrogate pairs)."""
    text = raw.replace(b"\xc0\x80", b"\x00").decode("utf-8", "surrogatepass")
    return text.encode("utf-16-le", "surrogatepass").decode("utf-16-le")


def _read_constant_pool(reader: _ByteReader) -> Dict[int, str]:
    """Read the constant pool, keeping only Utf8 entries by index."""
    count = reader.u2()
    strings: Dict[int, str] = {}
    index = 1
    while index < count:
        tag = reader.u1()
        if tag == _TAG_UTF8:
            length = reader.u2()
            try:
                strings[index] = decode_modified_utf8(reader.take(length))
            except UnicodeDecodeError as ex:
                raise ClassFormatError(f"bad Utf8 constant #{index}") from ex
        elif tag in _CONSTANT_SIZES:
            reader.skip(_CONSTANT_SIZES[tag])
        else:
            raise ClassFormatError(f"unknown constant pool tag {tag} at #{index}")
        index += 2 if tag in _TWO_SLOT_TAGS else 1
    return strings


def _skip_attributes(reader: _ByteReader) -> None:
    for _ in range(reader.u2()):
        reader.u2()  # attribute_name_index
        reader.skip(reader.u4())


def _utf8(strings: Dict[int, str], index: int) -> str:
    try:
        return strings[index]
    except KeyError:
        raise ClassFormatError(f"constant #{index} is not a Utf8 entry") from None


def read_declared_methods(data: bytes) -> List[DeclaredMethod]:
    """Enumerate the methods declared by a compiled class, in table order."""
    reader = _ByteReader(data)
    if reader.u4() != CLASS_MAGIC:
        raise ClassFormatError("bad magic number")
    reader.u2()  # minor_version
    reader.u2()  # major_version
    strings = _read_constant_pool(reader)
    reader.u2()  # access_flags
    reader.u2()  # this_class
    reader.u2()  # super_class
    reader.skip(2 * reader.u2())  # interfaces

    for _ in range(reader.u2()):  # fields
        reader.skip(6)
        _skip_attributes(reader)

    methods: List[DeclaredMethod] = []
    for _ in range(reader.u2()):
        access_flags = reader.u2()
        name = _utf8(strings, reader.u2())
        descriptor = _utf8(strings, reader.u2())
        _skip_attributes(reader)
        methods.append(DeclaredMethod(name, descriptor, access_flags))
    return methods


def modifiers_to_string(access_flags: int) -> str:
    """Render method access flags as space separated source keywords."""
    return " ".join(
        keyword
        for flag, keyword in _MODIFIER_KEYWORDS
        if access_flags & flag and keyword not in SUPPRESSED_KEYWORDS
    )


def split_fully_qualified_name(fully_qualified_name: str) -> Tuple[str, str]:
    """Split ``a.b.C.m()V`` into ``("a.b.C", "m()V")`` at the last dot."""
    class_name, sep, signature = fully_qualified_name.rpartition(".")
    if not sep:
        raise ValueError(f"not a fully qualified method name: {fully_qualified_name!r}")
    return class_name, signature


class ClassModifierResolver:
    """Looks up a method's access modifiers in a subject's compiled classes.

    Parsed method tables are cached per class file, so one resolver should
    serve a single subject run and then be dropped.
    """

    def __init__(self, subjects_dir: Path) -> None:
        self.subjects_dir = subjects_dir
        self._methods: Dict[Path, Optional[List[DeclaredMethod]]] = {}

    def class_file_path(self, subject: str, class_name: str) -> Path:
        return self.subjects_dir.joinpath(
            subject, "classes", *class_name.split(".")
        ).with_suffix(".class")

    def _declared_methods(self, path: Path) -> Optional[List[DeclaredMethod]]:
        if path in self._methods:
            return self._methods[path]
        methods: Optional[List[DeclaredMethod]]
        try:
            methods = read_declared_methods(path.read_bytes())
        except OSError as ex:
            console.print(f"[dim]⚠ Cannot read {path}: {ex.strerror or ex}[/dim]")
            methods = None
        except ClassFormatError as ex:
            console.print(f"[yellow]⚠[/yellow] Malformed class file {path}: {ex}")
            methods = None
        self._methods[path] = methods
        return methods

    def resolve(self, subject: str, fully_qualified_name: str) -> Optional[str]:
        """Return the modifier string of the named method, or None if unknown."""
        try:
            class_name, signature = split_fully_qualified_name(fully_qualified_name)
        except ValueError:
            return None
        methods = self._declared_methods(self.class_file_path(subject, class_name))
        if methods is None:
            return None
        for method in methods:
            if method.signature == signature:
                return modifiers_to_string(method.access_flags)
        return None
