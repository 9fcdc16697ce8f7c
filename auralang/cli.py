"""Command line driver: compile an Aura program to LLVM IR, build it with clang and run it."""

from __future__ import annotations

import os
import subprocess
import sys
from pathlib import Path
from typing import Optional, Sequence, Union

from auralang.codegen import compile_program
from auralang.ir import CompileError
from auralang.lexer import LexError
from auralang.parser import ParseError, parse_source

DEFAULT_ENTRY = "main.aur"


def resolve_input(arg_path: Union[str, Path]) -> Path:
    """Return the absolute input file for a file or directory argument.

    A directory stands for the ``main.aur`` inside it. Raises
    FileNotFoundError when the path or the input file does not exist.
    """
    path = Path(arg_path)
    if not path.is_absolute():
        path = Path.cwd() / path
    try:
        resolved = path.resolve(strict=True)
    except (OSError, RuntimeError):
        raise FileNotFoundError(f'Path "{path}" not found.') from None
    input_file = resolved / DEFAULT_ENTRY if resolved.is_dir() else resolved
    if not input_file.exists():
        message = f'Input file "{input_file}" not found.'
        if resolved.is_dir():
            message += f"\n   (Looked for '{DEFAULT_ENTRY}' in directory \"{resolved}\")"
        raise FileNotFoundError(message)
    return input_file


def build_clang_command(ll_path: Union[str, Path], exe_path: Union[str, Path]) -> list[str]:
    """The clang invocation that turns ``ll_path`` into a 32-bit Windows executable."""
    return [
        "clang",
        str(ll_path),
        "-o",
        str(exe_path),
        "-target",
        "i686-pc-windows-msvc",
        "-l",
        "legacy_stdio_definitions",
        "-l",
        "msvcrt",
        "-Wno-override-module",
    ]


def _build_and_run(ll_path: Path, exe_path: Path) -> int:
    print("🔨 Compiling to Native Executable with Clang...")
    command = build_clang_command(ll_path, exe_path)
    print(f"Running: {' '.join(command)}")
    try:
        result = subprocess.run(command, capture_output=True)
    except OSError as exc:
        print(f"❌ Failed to execute clang: {exc}")
        print("Make sure clang is installed and in your PATH.")
        return 1
    if result.returncode != 0:
        stderr = (result.stderr or b"").decode("utf-8", errors="replace")
        print("❌ Clang Compilation Failed:")
        print(stderr)
        if "visual studio" in stderr:
            print(
                "⚠️ Hint: It looks like Clang can't find the Visual Studio linker. "
                "Try running this from the 'Developer PowerShell for Visual Studio' "
                "or ensure your environment variables are set correctly."
            )
        return 1
    print(f'🎉 Successfully compiled to "{exe_path}"')
    print("🚀 Running executable...")
    print("--------------------------------------------------")
    try:
        subprocess.run([str(exe_path)])
    except OSError:
        pass
    print("\n--------------------------------------------------")
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Compile the program named on the command line (default: the current directory)."""
    args = sys.argv[1:] if argv is None else list(argv)
    arg_path = args[0] if args else "."

    try:
        input_file = resolve_input(arg_path)
    except FileNotFoundError as exc:
        print(f"❌ Error: {exc}")
        return 1

    source_dir = input_file.parent
    dist_dir = source_dir / "dist"
    try:
        dist_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        print(f"❌ Error creating dist directory: {exc}")
        return 1

    try:
        os.chdir(source_dir)
    except OSError as exc:
        print(f'⚠️ Warning: Could not change directory to "{source_dir}": {exc}')

    print(f'📂 Working Directory: "{source_dir}"')
    print(f'🚀 Compiling: "{input_file}"')

    source = input_file.read_text(encoding="utf-8")
    try:
        ir_text = compile_program(parse_source(source, source_dir))
    except (LexError, ParseError, CompileError) as exc:
        print(f"❌ Error: {exc}")
        return 1

    ll_path = dist_dir / f"{input_file.stem}.ll"
    ll_path.write_text(ir_text, encoding="utf-8", newline="")
    print(f'✅ LLVM IR Generated: "{ll_path}"')

    exe_path = dist_dir / f"{input_file.stem}.exe"
    return _build_and_run(ll_path, exe_path)


if __name__ == "__main__":
    sys.exit(main())