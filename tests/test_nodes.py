import dataclasses

import pytest

from auralang.lexer import TokenType
from auralang.nodes import (
    ArrayLiteral,
    Assignment,
    Binary,
    BlockStmt,
    Call,
    ClassDecl,
    ExprStmt,
    FuncDecl,
    Get,
    IfStmt,
    IndexAccess,
    MethodCall,
    New,
    NumberLit,
    Print,
    ReturnStmt,
    Set,
    StringLit,
    VarDecl,
    Variable,
    WhileStmt,
)


def test_structural_equality():
    a = Binary(NumberLit(1), TokenType.PLUS, Variable("x"))
    b = Binary(NumberLit(1), TokenType.PLUS, Variable("x"))
    assert a == b
    assert a != Binary(NumberLit(1), TokenType.MINUS, Variable("x"))


def test_nodes_are_immutable():
    node = Variable("x")
    with pytest.raises(dataclasses.FrozenInstanceError):
        node.name = "y"
    assert node.name == "x"
    assert node == Variable("x")


def test_sequences_are_stored_as_tuples():
    call = Call("f", [NumberLit(1), StringLit("a")])
    assert call.args == (NumberLit(1), StringLit("a"))
    arr = ArrayLiteral([NumberLit(1), NumberLit(2)])
    assert arr.elements == (NumberLit(1), NumberLit(2))


def test_nodes_are_hashable():
    func = FuncDecl("f", ["a"], [ReturnStmt(Variable("a"))])
    assert {func: 1}[FuncDecl("f", ("a",), (ReturnStmt(Variable("a")),))] == 1


def test_if_without_else_keeps_none():
    stmt = IfStmt(Variable("c"), [Print(NumberLit(1))])
    assert stmt.else_block is None
    assert stmt.then_block == (Print(NumberLit(1)),)


def test_if_with_else_block_converted():
    stmt = IfStmt(Variable("c"), [], [Print(StringLit("no"))])
    assert stmt.else_block == (Print(StringLit("no")),)


def test_return_defaults_to_no_value():
    assert ReturnStmt().value is None
    assert ReturnStmt(NumberLit(3)).value == NumberLit(3)


def test_class_decl_fields_and_methods():
    method = FuncDecl("get", [], [ReturnStmt(Get(Variable("this"), "v"))])
    cls = ClassDecl("Box", ["v"], [method])
    assert cls.fields == ("v",)
    assert cls.methods == (method,)


def test_member_nodes():
    obj = New("Box")
    set_node = Set(obj, "v", NumberLit(5))
    call = MethodCall(obj, "get", [])
    assert set_node.obj == New("Box")
    assert set_node.field == "v"
    assert call.args == ()
    assert ExprStmt(call).expr == call


def test_statement_nodes():
    loop = WhileStmt(Binary(Variable("i"), TokenType.LT, NumberLit(3)), [
        Assignment("i", Binary(Variable("i"), TokenType.PLUS, NumberLit(1)))
    ])
    block = BlockStmt([VarDecl("i", NumberLit(0)), loop])
    assert block.statements[1] is loop
    assert loop.body[0].name == "i"
    assert IndexAccess("arr", NumberLit(0)).name == "arr"