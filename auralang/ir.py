"""Building blocks for emitting LLVM IR: value types, string constants and the module header."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Iterator, Mapping, Optional, Sequence

MODULE_COMMENT = "; Module: aura_lang"

FMT_NUM_PTR = "i8* getelementptr inbounds ([4 x i8], [4 x i8]* @fmt_num, i32 0, i32 0)"
FMT_STR_PTR = "i8* getelementptr inbounds ([4 x i8], [4 x i8]* @fmt_str, i32 0, i32 0)"
CHCP_PTR = "i8* getelementptr inbounds ([17 x i8], [17 x i8]* @cmd_chcp, i32 0, i32 0)"

_DECLARATIONS = (
    "declare i32 @printf(i8*, ...)",
    "declare i32 @system(i8*)",
    "declare i8* @malloc(i32)",
)

_FORMAT_CONSTANTS = (
    '@fmt_num = private unnamed_addr constant [4 x i8] c"%d\\0A\\00"',
    '@fmt_str = private unnamed_addr constant [4 x i8] c"%s\\0A\\00"',
    '@cmd_chcp = private unnamed_addr constant [17 x i8] c"chcp 65001 > nul\\00"',
)

_STRING_PREFIX = "@str."


class CompileError(Exception):
    """Raised when a syntax tree cannot be turned into IR."""


@dataclass(frozen=True)
class VarType:
    """The static type of a value: int, str, a fixed-size array or a class instance."""

    kind: str
    length: Optional[int] = None
    class_name: Optional[str] = None

    INT: ClassVar["VarType"]
    STR: ClassVar["VarType"]

    @classmethod
    def array(cls, length: int) -> "VarType":
        """An array of ``length`` 32-bit integers."""
        return cls("array", length=length)

    @classmethod
    def instance(cls, class_name: str) -> "VarType":
        """A pointer to an instance of ``class_name``."""
        return cls("instance", class_name=class_name)

    @property
    def llvm_type(self) -> str:
        """The LLVM type of a value of this type held in a register."""
        if self.kind == "int":
            return "i32"
        if self.kind == "str":
            return "i8*"
        if self.kind == "instance":
            return f"%struct.{self.class_name}*"
        raise CompileError(f"An array has no scalar LLVM type ([{self.length} x i32])")


VarType.INT = VarType("int")
VarType.STR = VarType("str")


@dataclass(frozen=True)
class _StringEntry:
    ident: int
    text: str
    length: int

    @property
    def ref(self) -> str:
        return f"{_STRING_PREFIX}{self.ident}"


class StringPool:
    """Deduplicated string constants, each named ``@str.N`` in order of first use."""

    def __init__(self) -> None:
        self._entries: dict[str, _StringEntry] = {}
        self._by_text: dict[str, _StringEntry] = {}

    def add(self, text: str) -> str:
        """Register ``text`` (once) and return the name of its global constant."""
        existing = self._by_text.get(text)
        if existing is not None:
            return existing.ref
        entry = _StringEntry(len(self._entries), text, len(text.encode("utf-8")) + 1)
        self._entries[entry.ref] = entry
        self._by_text[text] = entry
        return entry.ref

    def length_of(self, ref: str) -> int:
        """Byte length of the constant ``ref``, including its terminating NUL."""
        try:
            return self._entries[ref].length
        except KeyError:
            raise CompileError(f"Unknown string constant: {ref}") from None

    def is_literal(self, ref: str) -> bool:
        """Whether ``ref`` names a constant of this pool."""
        return ref in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[tuple[int, str, int]]:
        for entry in self._entries.values():
            yield entry.ident, entry.text, entry.length


def escape_llvm_string(text: str) -> str:
    """Escape ``text`` for an LLVM ``c"..."`` constant, byte by byte in UTF-8."""
    parts = []
    for byte in text.encode("utf-8"):
        if 32 <= byte <= 126 and byte not in (0x22, 0x5C):
            parts.append(chr(byte))
        else:
            parts.append(f"\\{byte:02X}")
    return "".join(parts)


def render_header(classes: Mapping[str, Sequence[str]], pool: StringPool) -> str:
    """Render the module preamble: struct types, declarations and constants.

    Every field is an ``i32``. The text ends with a newline after the last
    string constant.
    """
    lines = [MODULE_COMMENT]
    for name, fields in classes.items():
        types = ", ".join("i32" for _ in fields)
        lines.append(f"%struct.{name} = type {{ {types} }}")
    lines.extend(_DECLARATIONS)
    lines.extend(_FORMAT_CONSTANTS)
    for ident, text, length in pool:
        lines.append(
            f"@str.{ident} = private unnamed_addr constant [{length} x i8] "
            f'c"{escape_llvm_string(text)}\\00"'
        )
    return "\n".join(lines) + "\n"