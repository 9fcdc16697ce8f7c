import re

import pytest

from auralang.codegen import Compiler, compile_program
from auralang.ir import CompileError
from auralang.nodes import NumberLit, Print
from auralang.parser import parse_source


def build(source: str) -> str:
    return compile_program(parse_source(source))


def function_text(ir: str, name: str) -> str:
    start = ir.index(f"define i32 @{name}(")
    end = ir.index("}\n", start)
    return ir[start:end]


def main_text(ir: str) -> str:
    return ir[ir.index("define i32 @main()"):]


def test_module_skeleton():
    ir = build("")
    assert ir.startswith("; Module: aura_lang\n")
    assert "declare i8* @malloc(i32)" in ir
    assert ir.endswith("  ret i32 0\n}\n")
    assert "@cmd_chcp, i32 0, i32 0))" in main_text(ir)


def test_print_number_from_nodes():
    ir = compile_program([Print(NumberLit(7))])
    assert "@fmt_num, i32 0, i32 0), i32 7)" in main_text(ir)


def test_string_literals_are_deduplicated():
    ir = build('print("hi"); print("hi");')
    assert ir.count("@str.0 = private unnamed_addr constant") == 1
    assert "@str.1" not in ir
    assert main_text(ir).count("@fmt_str") == 2


def test_registers_are_unique():
    ir = build("var a = 1 + 2; var b = a * 3; print(b - a); if (a < b) { print(a); }")
    defs = re.findall(r"^\s*(%tmp\d+) =", ir, re.M)
    assert defs
    assert len(defs) == len(set(defs))


def test_binary_instructions():
    ir = build("var a = 6; print(a / 2); print(a == 2);")
    body = main_text(ir)
    assert re.findall(r"= sdiv i32 %tmp\d+, 2", body) == ["= sdiv i32 %tmp1, 2"]
    assert re.findall(r"= icmp eq i32 %tmp\d+, 2", body) == ["= icmp eq i32 %tmp3, 2"]


def test_if_without_else_jumps_to_merge():
    ir = build("if (1 < 2) { print(1); }")
    body = main_text(ir)
    assert "icmp slt i32 1, 2" in body
    assert "label %L0, label %L2" in body
    assert "L1:" not in body


def test_if_with_else_jumps_to_else_label():
    ir = build("if (1 < 2) { print(1); } else { print(2); }")
    body = main_text(ir)
    assert "label %L0, label %L1" in body
    assert body.index("L1:") < body.index("L2:")


def test_while_loop_structure():
    ir = build("var i = 0; while (i < 3) { i = i + 1; }")
    body = main_text(ir)
    assert "  br label %L0\nL0:\n" in body
    assert "L2:\n" in body
    assert "store i32 %tmp" in body


def test_function_definition_and_call_order():
    ir = build("func add(a, b) { return a + b; } print(add(1, 2));")
    assert "define i32 @add(i32 %arg0, i32 %arg1)" in ir
    assert ir.index("define i32 @add") < ir.index("define i32 @main")
    assert re.search(r"call i32 @add\(i32 1, i32 2\)", main_text(ir))


def test_function_without_return_gets_default():
    ir = build("func f() { print(1); }")
    assert function_text(ir, "f").endswith("  ret i32 0\n")


def test_function_with_return_has_no_extra_default():
    ir = build("func f() { return 5; }")
    text = function_text(ir, "f")
    assert text.count("ret i32") == 1


def test_string_argument_passed_as_integer():
    ir = build('func f(s) { return s; } f("x");')
    assert "ptrtoint i8* " in main_text(ir)


def test_class_fields_and_methods():
    source = (
        "class Point { var x; var y; func sum() { return this.x + this.y; } }"
        "var p = new Point(); p.y = 5; print(p.y); print(p.sum());"
    )
    ir = build(source)
    assert "%struct.Point = type { i32, i32 }" in ir
    assert "define i32 @Point_sum(%struct.Point* %arg0)" in ir
    body = main_text(ir)
    assert "@malloc(i32" in body
    assert ", i32 0, i32 1\n" in body
    assert "store i32 5, i32* %tmp" in body
    assert re.search(r"call i32 @Point_sum\(%struct\.Point\* %tmp\d+\)", body)


def test_array_declaration_and_index():
    ir = build("var a = [1, 2, 3]; print(a[1]);")
    body = main_text(ir)
    assert "%a_ptr = alloca [3 x i32]" in body
    assert "store i32 3, i32* %tmp" in body
    assert "[3 x i32]* %a_ptr, i32 0, i32 1\n" in body


def test_print_str_uses_string_format():
    ir = build('print_str("hey");')
    assert "call i32 (i8*, ...) @printf(i8* getelementptr inbounds ([4 x i8], [4 x i8]* @fmt_str" in main_text(ir)


@pytest.mark.parametrize(
    "source",
    [
        "print(y);",
        "var a = new Ghost();",
        "var a = [1]; print(a);",
        "class P { var x; } var p = new P(); print(p);",
        "class P { var x; } var p = new P(); print(p.z);",
        "var n = 1; print(n[0]);",
        "print([1, 2]);",
        "var n = 1; n.x = 2;",
        "var n = 1; n.go();",
        "print_str();",
        "func f() { var x = 1; return x; } print(x);",
        "var g = 1; func f() { return g; }",
    ],
)
def test_compile_errors(source):
    with pytest.raises(CompileError):
        build(source)


def test_compiler_instance_compiles_statements():
    ir = Compiler().compile(parse_source('print("a");'))
    assert "@str.0 = private unnamed_addr constant" in ir