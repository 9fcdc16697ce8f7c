"""Syntax tree nodes for Aura programs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from auralang.lexer import TokenType


def _freeze(obj, *names: str) -> None:
    for name in names:
        value = getattr(obj, name)
        if value is not None and not isinstance(value, tuple):
            object.__setattr__(obj, name, tuple(value))


@dataclass(frozen=True)
class NumberLit:
    """An integer literal."""

    value: int


@dataclass(frozen=True)
class StringLit:
    """A string literal."""

    value: str


@dataclass(frozen=True)
class Variable:
    """A reference to a named variable."""

    name: str


@dataclass(frozen=True)
class ArrayLiteral:
    """An array literal such as ``[1, 2, 3]``."""

    elements: tuple

    def __post_init__(self) -> None:
        _freeze(self, "elements")


@dataclass(frozen=True)
class IndexAccess:
    """Indexing of a named array: ``name[index]``."""

    name: str
    index: "Expr"


@dataclass(frozen=True)
class Call:
    """A call of a named function."""

    name: str
    args: tuple

    def __post_init__(self) -> None:
        _freeze(self, "args")


@dataclass(frozen=True)
class Binary:
    """A binary operation; ``op`` is the operator's token kind."""

    left: "Expr"
    op: TokenType
    right: "Expr"


@dataclass(frozen=True)
class New:
    """Instantiation of a class: ``new Name()``."""

    class_name: str


@dataclass(frozen=True)
class Get:
    """Field read: ``obj.field``."""

    obj: "Expr"
    field: str


@dataclass(frozen=True)
class Set:
    """Field write: ``obj.field = value``."""

    obj: "Expr"
    field: str
    value: "Expr"


@dataclass(frozen=True)
class MethodCall:
    """Method invocation: ``obj.method(args)``."""

    obj: "Expr"
    method: str
    args: tuple

    def __post_init__(self) -> None:
        _freeze(self, "args")


Expr = Union[
    NumberLit,
    StringLit,
    Variable,
    ArrayLiteral,
    IndexAccess,
    Call,
    Binary,
    New,
    Get,
    Set,
    MethodCall,
]


@dataclass(frozen=True)
class VarDecl:
    """Variable declaration with an initial value."""

    name: str
    value: Expr


@dataclass(frozen=True)
class Assignment:
    """Assignment to an existing variable."""

    name: str
    value: Expr


@dataclass(frozen=True)
class Print:
    """``print(expr);``"""

    expr: Expr


@dataclass(frozen=True)
class IfStmt:
    """Conditional with an optional else block."""

    condition: Expr
    then_block: tuple
    else_block: Optional[tuple] = None

    def __post_init__(self) -> None:
        _freeze(self, "then_block", "else_block")


@dataclass(frozen=True)
class WhileStmt:
    """Loop that runs while its condition holds."""

    condition: Expr
    body: tuple

    def __post_init__(self) -> None:
        _freeze(self, "body")


@dataclass(frozen=True)
class BlockStmt:
    """A sequence of statements."""

    statements: tuple

    def __post_init__(self) -> None:
        _freeze(self, "statements")


@dataclass(frozen=True)
class FuncDecl:
    """Function declaration."""

    name: str
    params: tuple
    body: tuple

    def __post_init__(self) -> None:
        _freeze(self, "params", "body")


@dataclass(frozen=True)
class ClassDecl:
    """Class declaration with its fields and methods."""

    name: str
    fields: tuple
    methods: tuple

    def __post_init__(self) -> None:
        _freeze(self, "fields", "methods")


@dataclass(frozen=True)
class ReturnStmt:
    """``return;`` or ``return expr;``"""

    value: Optional[Expr] = None


@dataclass(frozen=True)
class ExprStmt:
    """An expression evaluated for its side effects."""

    expr: Expr


Stmt = Union[
    VarDecl,
    Assignment,
    Print,
    IfStmt,
    WhileStmt,
    BlockStmt,
    FuncDecl,
    ClassDecl,
    ReturnStmt,
    ExprStmt,
]