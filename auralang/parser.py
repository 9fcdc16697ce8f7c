"""Recursive-descent parser turning Aura tokens into a syntax tree."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

from auralang.lexer import Token, TokenType, tokenize
from auralang.nodes import (
    ArrayLiteral,
    Assignment,
    Binary,
    BlockStmt,
    Call,
    ClassDecl,
    Expr,
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
    Stmt,
    StringLit,
    VarDecl,
    Variable,
    WhileStmt,
)

_TERM_OPS = frozenset({TokenType.MUL, TokenType.DIV})
_ARITH_OPS = frozenset({TokenType.PLUS, TokenType.MINUS})
_COMPARE_OPS = frozenset(
    {
        TokenType.EQ,
        TokenType.NEQ,
        TokenType.LT,
        TokenType.GT,
        TokenType.LTE,
        TokenType.GTE,
    }
)


class ParseError(Exception):
    """Raised when the token stream does not form a valid program."""

    def __init__(self, message: str, line: Optional[int] = None) -> None:
        super().__init__(message)
        self.line = line


def _describe(token: Token) -> str:
    if token.value is None:
        return token.kind.name
    return f"{token.kind.name}({token.value!r})"


class Parser:
    """Parses a token list; imports are resolved relative to ``base_path``."""

    def __init__(self, tokens: list[Token], base_path: Union[str, Path] = ".") -> None:
        tokens = list(tokens)
        if not tokens or tokens[-1].kind is not TokenType.EOF:
            last_line = tokens[-1].line if tokens else 1
            tokens.append(Token(TokenType.EOF, last_line))
        self._tokens = tokens
        self._pos = 0
        self._base_path = Path(base_path)

    # -- token helpers -------------------------------------------------

    def _peek(self) -> Token:
        return self._tokens[self._pos]

    def _check(self, kind: TokenType) -> bool:
        return self._peek().kind is kind

    def _advance(self) -> Token:
        token = self._tokens[self._pos]
        if token.kind is not TokenType.EOF:
            self._pos += 1
        return token

    def _consume(self, expected: TokenType, message: str) -> Token:
        token = self._advance()
        if token.kind is not expected:
            raise ParseError(message, token.line)
        return token

    def _expect_identifier(self, message: str) -> str:
        token = self._advance()
        if token.kind is not TokenType.ID:
            raise ParseError(message, token.line)
        return token.value

    def _error(self, message: str) -> ParseError:
        return ParseError(message, self._peek().line)

    # -- imports -------------------------------------------------------

    def _import_file(self, path: str) -> BlockStmt:
        full_path = self._base_path / path
        try:
            content = full_path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ParseError(f"Could not read imported file: {full_path}") from exc
        nested = Parser(tokenize(content), full_path.parent)
        return BlockStmt(nested.parse())

    def _import_path_after_from(self) -> str:
        self._consume(TokenType.FROM, "Expected 'from'")
        token = self._advance()
        if token.kind is not TokenType.STRING:
            raise ParseError("Expected string path", token.line)
        self._consume(TokenType.SEMICOLON, "Expected ';'")
        return token.value

    def _parse_import(self) -> BlockStmt:
        self._advance()  # import
        token = self._peek()
        if token.kind is TokenType.STRING:
            self._advance()
            self._consume(TokenType.SEMICOLON, "Expected ';'")
            return self._import_file(token.value)
        if token.kind is TokenType.LBRACE:
            self._advance()
            # Imported names are accepted but the whole file is always pulled in.
            self._advance()
            while self._check(TokenType.COMMA):
                self._advance()
                self._advance()
            self._consume(TokenType.RBRACE, "Expected '}'")
            return self._import_file(self._import_path_after_from())
        if token.kind is TokenType.ID:
            self._advance()
            return self._import_file(self._import_path_after_from())
        raise ParseError(f"Unexpected token after import: {_describe(token)}", token.line)

    # -- expressions ---------------------------------------------------

    def _parse_list(self, closing: TokenType) -> list[Expr]:
        items: list[Expr] = []
        if not self._check(closing):
            items.append(self._parse_expr())
            while self._check(TokenType.COMMA):
                self._advance()
                items.append(self._parse_expr())
        return items

    def _parse_atom(self) -> Expr:
        token = self._peek()
        kind = token.kind
        if kind is TokenType.NUMBER:
            self._advance()
            return NumberLit(token.value)
        if kind is TokenType.STRING:
            self._advance()
            return StringLit(token.value)
        if kind is TokenType.ID:
            self._advance()
            return Variable(token.value)
        if kind is TokenType.NEW:
            self._advance()
            class_name = self._expect_identifier("Expected class name after 'new'")
            self._consume(TokenType.LPAREN, "Expected '('")
            self._consume(TokenType.RPAREN, "Expected ')'")
            return New(class_name)
        if kind is TokenType.LBRACKET:
            self._advance()
            elements = self._parse_list(TokenType.RBRACKET)
            self._consume(TokenType.RBRACKET, "Expected ']'")
            return ArrayLiteral(elements)
        if kind is TokenType.LPAREN:
            self._advance()
            inner = self._parse_expr()
            self._consume(TokenType.RPAREN, "Missing ')'")
            return inner
        raise ParseError(f"Unexpected token: {_describe(token)}", token.line)

    def _parse_primary(self) -> Expr:
        expr = self._parse_atom()
        while True:
            kind = self._peek().kind
            if kind is TokenType.LPAREN:
                self._advance()
                args = self._parse_list(TokenType.RPAREN)
                self._consume(TokenType.RPAREN, "Expected ')'")
                if isinstance(expr, Variable):
                    expr = Call(expr.name, args)
                elif isinstance(expr, Get):
                    expr = MethodCall(expr.obj, expr.field, args)
                else:
                    raise self._error(
                        "Function call only supported on identifiers or field access "
                        f"(methods) for now. Got: {expr!r}"
                    )
            elif kind is TokenType.LBRACKET:
                self._advance()
                index = self._parse_expr()
                self._consume(TokenType.RBRACKET, "Expected ']'")
                if not isinstance(expr, Variable):
                    raise self._error("Indexing only supported on variables for now")
                expr = IndexAccess(expr.name, index)
            elif kind is TokenType.DOT:
                self._advance()
                field = self._expect_identifier("Expected field name after '.'")
                expr = Get(expr, field)
            else:
                return expr

    def _parse_binary_level(self, operators: frozenset, operand) -> Expr:
        node = operand()
        while self._peek().kind in operators:
            op = self._advance().kind
            node = Binary(node, op, operand())
        return node

    def _parse_term(self) -> Expr:
        return self._parse_binary_level(_TERM_OPS, self._parse_primary)

    def _parse_arithmetic(self) -> Expr:
        return self._parse_binary_level(_ARITH_OPS, self._parse_term)

    def _parse_expr(self) -> Expr:
        return self._parse_binary_level(_COMPARE_OPS, self._parse_arithmetic)

    # -- statements ----------------------------------------------------

    def _parse_block(self) -> list[Stmt]:
        self._consume(TokenType.LBRACE, "Expected '{'")
        statements: list[Stmt] = []
        while not (self._check(TokenType.RBRACE) or self._check(TokenType.EOF)):
            statements.append(self._parse_stmt())
        self._consume(TokenType.RBRACE, "Expected '}'")
        return statements

    def _parse_function(self) -> FuncDecl:
        self._advance()  # func
        name = self._expect_identifier("Function name missing")
        self._consume(TokenType.LPAREN, "Expected '('")
        params: list[str] = []
        if not self._check(TokenType.RPAREN):
            token = self._advance()
            if token.kind is TokenType.ID:
                params.append(token.value)
            while self._check(TokenType.COMMA):
                self._advance()
                token = self._advance()
                if token.kind is TokenType.ID:
                    params.append(token.value)
        self._consume(TokenType.RPAREN, "Expected ')'")
        return FuncDecl(name, params, self._parse_block())

    def _parse_class(self) -> ClassDecl:
        self._advance()  # class
        name = self._expect_identifier("Expected class name")
        self._consume(TokenType.LBRACE, "Expected '{'")
        fields: list[str] = []
        methods: list[FuncDecl] = []
        while not (self._check(TokenType.RBRACE) or self._check(TokenType.EOF)):
            kind = self._peek().kind
            if kind is TokenType.VAR:
                self._advance()
                field = self._expect_identifier("Expected field name")
                self._consume(TokenType.SEMICOLON, "Expected ';'")
                fields.append(field)
            elif kind is TokenType.FUNC:
                methods.append(self._parse_function())
            else:
                raise self._error(
                    "Only variables and functions allowed in class definition. "
                    f"Got: {_describe(self._peek())}"
                )
        self._consume(TokenType.RBRACE, "Expected '}'")
        return ClassDecl(name, fields, methods)

    def _parse_if(self) -> IfStmt:
        self._advance()  # if
        self._consume(TokenType.LPAREN, "Expected '('")
        condition = self._parse_expr()
        self._consume(TokenType.RPAREN, "Expected ')'")
        then_block = self._parse_block()
        else_block: Optional[list[Stmt]] = None
        if self._check(TokenType.ELSE):
            self._advance()
            if self._check(TokenType.IF):
                else_block = [self._parse_stmt()]
            else:
                else_block = self._parse_block()
        return IfStmt(condition, then_block, else_block)

    def _parse_while(self) -> WhileStmt:
        self._advance()  # while
        self._consume(TokenType.LPAREN, "Expected '('")
        condition = self._parse_expr()
        self._consume(TokenType.RPAREN, "Expected ')'")
        return WhileStmt(condition, self._parse_block())

    def _parse_for(self) -> BlockStmt:
        self._advance()  # for
        self._consume(TokenType.LPAREN, "Expected '('")
        init: list[Stmt] = []
        if not self._check(TokenType.SEMICOLON):
            init.append(self._parse_stmt())
        else:
            self._advance()
        if not self._check(TokenType.SEMICOLON):
            condition = self._parse_expr()
        else:
            condition = NumberLit(1)
        self._consume(TokenType.SEMICOLON, "Expected ';' after condition")
        step: list[Stmt] = []
        if not self._check(TokenType.RPAREN) and self._check(TokenType.ID):
            name = self._advance().value
            self._consume(TokenType.ASSIGN, "Expected '='")
            step.append(Assignment(name, self._parse_expr()))
        self._consume(TokenType.RPAREN, "Expected ')'")
        body = self._parse_block() + step
        init.append(WhileStmt(condition, body))
        return BlockStmt(init)

    def _parse_stmt(self) -> Stmt:
        kind = self._peek().kind
        if kind is TokenType.CLASS:
            return self._parse_class()
        if kind is TokenType.IMPORT:
            return self._parse_import()
        if kind is TokenType.FUNC:
            return self._parse_function()
        if kind is TokenType.RETURN:
            self._advance()
            value = None if self._check(TokenType.SEMICOLON) else self._parse_expr()
            self._consume(TokenType.SEMICOLON, "Expected ';'")
            return ReturnStmt(value)
        if kind is TokenType.VAR:
            self._advance()
            name = self._expect_identifier("Expected variable name")
            self._consume(TokenType.ASSIGN, "Expected '='")
            value = self._parse_expr()
            self._consume(TokenType.SEMICOLON, "Expected ';'")
            return VarDecl(name, value)
        if kind is TokenType.PRINT:
            self._advance()
            self._consume(TokenType.LPAREN, "Expected '('")
            expr = self._parse_expr()
            self._consume(TokenType.RPAREN, "Expected ')'")
            self._consume(TokenType.SEMICOLON, "Expected ';'")
            return Print(expr)
        if kind is TokenType.IF:
            return self._parse_if()
        if kind is TokenType.WHILE:
            return self._parse_while()
        if kind is TokenType.FOR:
            return self._parse_for()
        return self._parse_expression_statement()

    def _parse_expression_statement(self) -> Stmt:
        target = self._parse_expr()
        if not self._check(TokenType.ASSIGN):
            self._consume(TokenType.SEMICOLON, "Expected ';'")
            return ExprStmt(target)
        self._advance()  # =
        value = self._parse_expr()
        self._consume(TokenType.SEMICOLON, "Expected ';'")
        if isinstance(target, Variable):
            return Assignment(target.name, value)
        if isinstance(target, Get):
            return ExprStmt(Set(target.obj, target.field, value))
        raise ParseError("Invalid assignment target", self._peek().line)

    def parse(self) -> list[Stmt]:
        """Parse every statement up to the end of input."""
        statements: list[Stmt] = []
        while not self._check(TokenType.EOF):
            statements.append(self._parse_stmt())
        return statements


def parse_source(source: str, base_path: Union[str, Path] = ".") -> list[Stmt]:
    """Tokenize and parse ``source``, resolving imports from ``base_path``."""
    return Parser(tokenize(source), base_path).parse()