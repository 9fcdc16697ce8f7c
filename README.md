# auralang

A small compiler for the Aura language. It reads an `.aur` source file,
produces LLVM IR, then calls `clang` to build a native executable and
runs that executable straight away.

## Installation

```
pip install .
```

To build executables you also need `clang` on your `PATH`. The generated
program targets `i686-pc-windows-msvc` and links against
`legacy_stdio_definitions` and `msvcrt`, so the build and run steps are
meant for a Windows machine with the Visual Studio linker available.

## Usage

```
auralang path/to/program.aur
auralang path/to/project-dir
auralang
```

When given a directory (or nothing, meaning the current directory), the
compiler looks for `main.aur` inside it. It changes into the directory
of the input file and writes its output to a `dist/` directory there:

- `dist/<name>.ll` — the generated LLVM IR
- `dist/<name>.exe` — the native executable built by clang

If clang fails, its error output is printed (with a hint when it cannot
find the Visual Studio linker). The command exits with status 1 when the
input is missing, the program has a lexing, parsing or compile error, or
clang cannot build it, and with 0 otherwise.

## The language

```
import "math.aur";

class Point {
    var x;
    var y;
    func sum() {
        return this.x + this.y;
    }
}

func square(n) {
    return n * n;
}

var p = new Point();
p.x = 3;
p.y = 4;
print(p.sum());

var nums = [1, 2, 3];
print(nums[1]);

for (var i = 0; i < 3; i = i + 1) {
    print(square(i));
}

if (p.x > 2) {
    print("big");
} else {
    print("small");
}
```

Supported features: 32-bit integer and string values, `var`
declarations, assignment, `print`, `if` / `else if` / `else`, `while`,
`for`, functions with `return`, integer arrays created from literals and
read by index, classes with integer fields and methods, `new`, the
built-in `print_str(...)`, and `import` in the forms
`import "file.aur";`, `import Name from "file.aur";` and
`import { A, B } from "file.aur";`. Every import pulls in the whole file;
paths are resolved relative to the file that contains the import. Line
comments start with `//`.

Arithmetic is `+ - * /` and comparisons are `== != < > <= >=`. Function
arguments, method arguments, fields and return values are all treated as
integers.

## Using it as a library

```python
from auralang.parser import parse_source
from auralang.codegen import compile_program

statements = parse_source('var x = 1 + 2; print(x);', ".")
ir_text = compile_program(statements)
```

- `auralang.lexer.tokenize(source)` returns the token list.
- `auralang.parser.parse_source(source, base_path)` returns the statements
  as the frozen dataclasses of `auralang.nodes`.
- `auralang.codegen.compile_program(statements)` (or
  `Compiler().compile(statements)`) returns the LLVM IR module as text.
- `auralang.cli.resolve_input(path)` and
  `auralang.cli.build_clang_command(ll_path, exe_path)` expose the input
  lookup and the clang invocation used by the command.

Lexing errors raise `auralang.lexer.LexError`, parse errors raise
`auralang.parser.ParseError`, and code generation errors raise
`auralang.ir.CompileError`.

## What it does not do

- It does not run Aura programs itself; running needs `clang` to build
  the executable first, and the build targets Windows only.
- `foreach` and `in` are reserved words but there is no statement that
  uses them.
- Arrays cannot be assigned, passed or returned as a whole, and only
  variables can be indexed.
- There is no type checking beyond what code generation needs; class
  declarations are only known to `new` when they appear at top level or
  before their use.