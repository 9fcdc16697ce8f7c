"""Generation of LLVM IR text from an Aura syntax tree."""

from __future__ import annotations

from typing import Iterable, Optional, Sequence

from auralang.ir import (
    CHCP_PTR,
    FMT_NUM_PTR,
    FMT_STR_PTR,
    CompileError,
    StringPool,
    VarType,
    render_header,
)
from auralang.lexer import TokenType
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

_ARITHMETIC = {
    TokenType.PLUS: "add",
    TokenType.MINUS: "sub",
    TokenType.MUL: "mul",
    TokenType.DIV: "sdiv",
}

_COMPARISON = {
    TokenType.EQ: "eq",
    TokenType.NEQ: "ne",
    TokenType.LT: "slt",
    TokenType.GT: "sgt",
    TokenType.LTE: "sle",
    TokenType.GTE: "sge",
}

_FIELD_SIZE = 4  # every field is an i32


class Compiler:
    """Compiles a list of statements into one LLVM IR module."""

    def __init__(self) -> None:
        self._functions: list[str] = []
        self._main_body: list[str] = []
        self._current: Optional[list[str]] = None
        self._next_reg = 1
        self._next_label = 0
        self._strings = StringPool()
        self._vars: dict[str, VarType] = {}
        self._classes: dict[str, tuple[str, ...]] = {}
        self._current_class: Optional[str] = None

    # -- helpers -------------------------------------------------------

    def _reg(self) -> str:
        reg = f"%tmp{self._next_reg}"
        self._next_reg += 1
        return reg

    def _label(self) -> str:
        label = f"L{self._next_label}"
        self._next_label += 1
        return label

    def _emit(self, text: str) -> None:
        target = self._current if self._current is not None else self._main_body
        target.append(text)

    def _literal_pointer(self, ref: str) -> str:
        length = self._strings.length_of(ref)
        reg = self._reg()
        self._emit(
            f"  {reg} = getelementptr inbounds [{length} x i8], "
            f"[{length} x i8]* {ref}, i32 0, i32 0\n"
        )
        return reg

    def _field_index(self, class_name: str, field: str) -> int:
        try:
            return self._classes[class_name].index(field)
        except (KeyError, ValueError):
            raise CompileError(
                f"Field '{field}' not found in class '{class_name}'"
            ) from None

    def _field_pointer(self, class_name: str, obj_reg: str, index: int) -> str:
        reg = self._reg()
        self._emit(
            f"  {reg} = getelementptr inbounds %struct.{class_name}, "
            f"%struct.{class_name}* {obj_reg}, i32 0, i32 {index}\n"
        )
        return reg

    @staticmethod
    def _require_instance(vtype: VarType, message: str) -> str:
        if vtype.kind != "instance":
            raise CompileError(message)
        return vtype.class_name

    # -- expressions ---------------------------------------------------

    def _expr(self, expr: Expr) -> tuple[str, VarType]:
        match expr:
            case NumberLit(value):
                return str(value), VarType.INT
            case StringLit(value):
                return self._strings.add(value), VarType.STR
            case ArrayLiteral():
                raise CompileError("Array Literal can only be used in variable declaration!")
            case Variable(name):
                return self._load_variable(name)
            case New(class_name):
                return self._new_instance(class_name)
            case Get(obj, field):
                obj_reg, vtype = self._expr(obj)
                cls = self._require_instance(vtype, "Property access on non-object")
                index = self._field_index(cls, field)
                ptr = self._field_pointer(cls, obj_reg, index)
                reg = self._reg()
                self._emit(f"  {reg} = load i32, i32* {ptr}\n")
                return reg, VarType.INT
            case Set(obj, field, value):
                obj_reg, vtype = self._expr(obj)
                cls = self._require_instance(vtype, "Property set on non-object")
                index = self._field_index(cls, field)
                val, _ = self._expr(value)
                ptr = self._field_pointer(cls, obj_reg, index)
                self._emit(f"  store i32 {val}, i32* {ptr}\n")
                return val, VarType.INT
            case IndexAccess(name, index):
                return self._index_access(name, index)
            case MethodCall(obj, method, args):
                return self._method_call(obj, method, args)
            case Call("print_str", args):
                return self._print_str(args)
            case Call(name, args):
                return self._call(name, args)
            case Binary(left, op, right):
                return self._binary(left, op, right)
        raise CompileError(f"Unsupported expression: {expr!r}")

    def _load_variable(self, name: str) -> tuple[str, VarType]:
        vtype = self._vars.get(name)
        if vtype is None:
            raise CompileError(f"Undefined variable: {name}")
        if vtype.kind == "array":
            raise CompileError(f"Arrays can only be accessed via index: {name}[0]")
        reg = self._reg()
        llvm = vtype.llvm_type
        self._emit(f"  {reg} = load {llvm}, {llvm}* %{name}_ptr\n")
        return reg, vtype

    def _new_instance(self, class_name: str) -> tuple[str, VarType]:
        fields = self._classes.get(class_name)
        if fields is None:
            raise CompileError(f"Unknown class: {class_name}")
        malloc_reg = self._reg()
        self._emit(f"  {malloc_reg} = call i8* @malloc(i32 {len(fields) * _FIELD_SIZE})\n")
        cast_reg = self._reg()
        self._emit(f"  {cast_reg} = bitcast i8* {malloc_reg} to %struct.{class_name}*\n")
        return cast_reg, VarType.instance(class_name)

    def _index_access(self, name: str, index: Expr) -> tuple[str, VarType]:
        vtype = self._vars.get(name)
        if vtype is None:
            raise CompileError(f"Undefined variable: {name}")
        if vtype.kind != "array":
            raise CompileError(f"'{name}' is not an array!")
        idx, _ = self._expr(index)
        length = vtype.length
        ptr = self._reg()
        self._emit(
            f"  {ptr} = getelementptr inbounds [{length} x i32], "
            f"[{length} x i32]* %{name}_ptr, i32 0, i32 {idx}\n"
        )
        reg = self._reg()
        self._emit(f"  {reg} = load i32, i32* {ptr}\n")
        return reg, VarType.INT

    def _method_call(self, obj: Expr, method: str, args: Sequence[Expr]) -> tuple[str, VarType]:
        obj_reg, vtype = self._expr(obj)
        cls = self._require_instance(vtype, "Method calls only supported on class instances.")
        arg_vals = [f"%struct.{cls}* {obj_reg}"]
        for arg in args:
            val, _ = self._expr(arg)
            arg_vals.append(f"i32 {val}")
        reg = self._reg()
        self._emit(f"  {reg} = call i32 @{cls}_{method}({', '.join(arg_vals)})\n")
        return reg, VarType.INT

    def _print_str(self, args: Sequence[Expr]) -> tuple[str, VarType]:
        if not args:
            raise CompileError("print_str expects one argument")
        val, _ = self._expr(args[0])
        if self._strings.is_literal(val):
            ptr = self._literal_pointer(val)
        else:
            ptr = self._reg()
            self._emit(f"  {ptr} = inttoptr i32 {val} to i8*\n")
        self._emit(f"  call i32 (i8*, ...) @printf({FMT_STR_PTR}, i8* {ptr})\n")
        return "0", VarType.INT

    def _call(self, name: str, args: Sequence[Expr]) -> tuple[str, VarType]:
        arg_vals = []
        for arg in args:
            val, vtype = self._expr(arg)
            if vtype.kind == "str":
                ptr = self._literal_pointer(val) if self._strings.is_literal(val) else val
                int_reg = self._reg()
                self._emit(f"  {int_reg} = ptrtoint i8* {ptr} to i32\n")
                arg_vals.append(f"i32 {int_reg}")
            else:
                arg_vals.append(f"i32 {val}")
        reg = self._reg()
        self._emit(f"  {reg} = call i32 @{name}({', '.join(arg_vals)})\n")
        return reg, VarType.INT

    def _binary(self, left: Expr, op: TokenType, right: Expr) -> tuple[str, VarType]:
        left_val, _ = self._expr(left)
        right_val, _ = self._expr(right)
        if op in _ARITHMETIC:
            instruction = f"{_ARITHMETIC[op]} i32"
        elif op in _COMPARISON:
            instruction = f"icmp {_COMPARISON[op]} i32"
        else:
            raise CompileError(f"Unsupported binary operator: {op.value}")
        reg = self._reg()
        self._emit(f"  {reg} = {instruction} {left_val}, {right_val}\n")
        return reg, VarType.INT

    # -- statements ----------------------------------------------------

    def _block(self, statements: Iterable[Stmt]) -> None:
        for stmt in statements:
            self._stmt(stmt)

    def _stmt(self, stmt: Stmt) -> None:
        match stmt:
            case ClassDecl(name, fields, methods):
                self._class(name, fields, methods)
            case FuncDecl(name, params, body):
                self._function(name, params, body)
            case ReturnStmt(value):
                if value is None:
                    self._emit("  ret i32 0\n")
                else:
                    val, _ = self._expr(value)
                    self._emit(f"  ret i32 {val}\n")
            case VarDecl(name, ArrayLiteral(elements)):
                self._array_decl(name, elements)
            case VarDecl(name, value):
                val, vtype = self._expr(value)
                if vtype.kind == "array":
                    raise CompileError("Unsupported var type decl")
                llvm = vtype.llvm_type
                self._emit(f"  %{name}_ptr = alloca {llvm}\n")
                self._emit(f"  store {llvm} {val}, {llvm}* %{name}_ptr\n")
                self._vars[name] = vtype
            case Assignment(name, value):
                val, vtype = self._expr(value)
                if vtype.kind == "array":
                    raise CompileError("Assign error")
                llvm = vtype.llvm_type
                self._emit(f"  store {llvm} {val}, {llvm}* %{name}_ptr\n")
            case ExprStmt(expr):
                self._expr(expr)
            case Print(expr):
                self._print(expr)
            case IfStmt(condition, then_block, else_block):
                self._if(condition, then_block, else_block)
            case WhileStmt(condition, body):
                self._while(condition, body)
            case BlockStmt(statements):
                self._block(statements)
            case _:
                raise CompileError(f"Unsupported statement: {stmt!r}")

    def _class(self, name: str, fields: Sequence[str], methods: Sequence[Stmt]) -> None:
        self._classes[name] = tuple(fields)
        self._current_class = name
        try:
            for method in methods:
                if isinstance(method, FuncDecl):
                    self._function(
                        f"{name}_{method.name}", ("this", *method.params), method.body
                    )
        finally:
            self._current_class = None

    def _function(self, name: str, params: Sequence[str], body: Sequence[Stmt]) -> None:
        saved_vars, saved_buffer = self._vars, self._current
        buffer: list[str] = []
        self._vars = {}
        self._current = buffer
        try:
            arg_types = []
            for param in params:
                if param == "this":
                    if self._current_class is None:
                        raise CompileError("'this' argument found outside of class context")
                    arg_types.append(VarType.instance(self._current_class))
                else:
                    arg_types.append(VarType.INT)
            arg_defs = ", ".join(
                f"{vtype.llvm_type} %arg{i}" for i, vtype in enumerate(arg_types)
            )
            for i, (param, vtype) in enumerate(zip(params, arg_types)):
                llvm = vtype.llvm_type
                buffer.append(f"  %{param}_ptr = alloca {llvm}\n")
                buffer.append(f"  store {llvm} %arg{i}, {llvm}* %{param}_ptr\n")
                self._vars[param] = vtype
            self._block(body)
            text = "".join(buffer)
            if "ret i32" not in text:
                text += "  ret i32 0\n"
            self._functions.append(f"\ndefine i32 @{name}({arg_defs}) {{\nentry:\n{text}}}\n")
        finally:
            self._vars, self._current = saved_vars, saved_buffer

    def _array_decl(self, name: str, elements: Sequence[Expr]) -> None:
        length = len(elements)
        self._emit(f"  %{name}_ptr = alloca [{length} x i32]\n")
        self._vars[name] = VarType.array(length)
        for i, element in enumerate(elements):
            val, _ = self._expr(element)
            ptr = self._reg()
            self._emit(
                f"  {ptr} = getelementptr inbounds [{length} x i32], "
                f"[{length} x i32]* %{name}_ptr, i32 0, i32 {i}\n"
            )
            self._emit(f"  store i32 {val}, i32* {ptr}\n")

    def _print(self, expr: Expr) -> None:
        val, vtype = self._expr(expr)
        if vtype.kind == "int":
            self._emit(f"  call i32 (i8*, ...) @printf({FMT_NUM_PTR}, i32 {val})\n")
        elif vtype.kind == "str":
            if self._strings.is_literal(val):
                length = self._strings.length_of(val)
                pointer = (
                    f"i8* getelementptr inbounds ([{length} x i8], "
                    f"[{length} x i8]* {val}, i32 0, i32 0)"
                )
            else:
                pointer = f"i8* {val}"
            self._emit(f"  call i32 (i8*, ...) @printf({FMT_STR_PTR}, {pointer})\n")
        else:
            raise CompileError("This type cannot be printed directly (try printing a field)")

    def _if(
        self,
        condition: Expr,
        then_block: Sequence[Stmt],
        else_block: Optional[Sequence[Stmt]],
    ) -> None:
        cond, _ = self._expr(condition)
        then_label, else_label, merge_label = self._label(), self._label(), self._label()
        false_target = else_label if else_block is not None else merge_label
        self._emit(f"  br i1 {cond}, label %{then_label}, label %{false_target}\n")
        self._emit(f"{then_label}:\n")
        self._block(then_block)
        self._emit(f"  br label %{merge_label}\n")
        if else_block is not None:
            self._emit(f"{else_label}:\n")
            self._block(else_block)
            self._emit(f"  br label %{merge_label}\n")
        self._emit(f"{merge_label}:\n")

    def _while(self, condition: Expr, body: Sequence[Stmt]) -> None:
        cond_label, body_label, end_label = self._label(), self._label(), self._label()
        self._emit(f"  br label %{cond_label}\n")
        self._emit(f"{cond_label}:\n")
        cond, _ = self._expr(condition)
        self._emit(f"  br i1 {cond}, label %{body_label}, label %{end_label}\n")
        self._emit(f"{body_label}:\n")
        self._block(body)
        self._emit(f"  br label %{cond_label}\n")
        self._emit(f"{end_label}:\n")

    # -- entry point ---------------------------------------------------

    def compile(self, statements: Sequence[Stmt]) -> str:
        """Compile ``statements`` and return the complete module text."""
        self._functions = []
        self._main_body = []
        for stmt in statements:
            if isinstance(stmt, ClassDecl):
                self._classes[stmt.name] = tuple(stmt.fields)
        self._block(statements)
        return "".join(
            [
                render_header(self._classes, self._strings),
                "\n",
                *self._functions,
                "\ndefine i32 @main() {\nentry:\n",
                f"  call i32 @system({CHCP_PTR})\n",
                *self._main_body,
                "  ret i32 0\n}\n",
            ]
        )


def compile_program(statements: Sequence[Stmt]) -> str:
    """Compile a whole program with a fresh compiler."""
    return Compiler().compile(statements)