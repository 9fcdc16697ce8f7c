import subprocess
from unittest import mock

import pytest

from auralang.cli import build_clang_command, main, resolve_input


@pytest.fixture
def project(tmp_path, monkeypatch):
    root = tmp_path.resolve()
    monkeypatch.chdir(root)
    (root / "main.aur").write_text("print(42);", encoding="utf-8")
    return root


def _completed(returncode=0, stderr=b""):
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=b"", stderr=stderr)


def test_resolve_input_directory_uses_main(project):
    assert resolve_input(str(project)) == project / "main.aur"


def test_resolve_input_relative_file(project):
    (project / "other.aur").write_text("print(1);", encoding="utf-8")
    assert resolve_input("other.aur") == project / "other.aur"


def test_resolve_input_missing_path(project):
    with pytest.raises(FileNotFoundError, match="not found"):
        resolve_input(str(project / "nope"))


def test_resolve_input_directory_without_main(project):
    empty = project / "empty"
    empty.mkdir()
    with pytest.raises(FileNotFoundError, match="Looked for 'main.aur'"):
        resolve_input(str(empty))


def test_build_clang_command():
    command = build_clang_command("a.ll", "a.exe")
    assert command == [
        "clang",
        "a.ll",
        "-o",
        "a.exe",
        "-target",
        "i686-pc-windows-msvc",
        "-l",
        "legacy_stdio_definitions",
        "-l",
        "msvcrt",
        "-Wno-override-module",
    ]


def test_main_success_writes_ir_and_runs(project):
    with mock.patch("auralang.cli.subprocess.run", return_value=_completed()) as run:
        assert main([str(project)]) == 0
    ll_path = project / "dist" / "main.ll"
    exe_path = project / "dist" / "main.exe"
    assert "@fmt_num, i32 0, i32 0), i32 42)" in ll_path.read_text(encoding="utf-8")
    assert run.call_args_list[0].args[0] == build_clang_command(ll_path, exe_path)
    assert run.call_args_list[1].args[0] == [str(exe_path)]


def test_main_defaults_to_current_directory(project):
    with mock.patch("auralang.cli.subprocess.run", return_value=_completed()):
        assert main([]) == 0
    assert (project / "dist" / "main.ll").exists()


def test_main_reports_clang_failure_with_hint(project, capsys):
    failed = _completed(returncode=1, stderr=b"cannot find visual studio installation")
    with mock.patch("auralang.cli.subprocess.run", return_value=failed) as run:
        assert main([str(project)]) == 1
    out = capsys.readouterr().out
    assert "Clang Compilation Failed" in out
    assert "Hint" in out
    assert run.call_count == 1


def test_main_reports_missing_clang(project, capsys):
    with mock.patch("auralang.cli.subprocess.run", side_effect=FileNotFoundError("clang")):
        assert main([str(project)]) == 1
    assert "Failed to execute clang" in capsys.readouterr().out


def test_main_reports_missing_input(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    assert main([str(tmp_path / "absent.aur")]) == 1
    assert "not found" in capsys.readouterr().out


def test_main_reports_compile_error_without_writing(project, capsys):
    (project / "main.aur").write_text("print(undefined_name);", encoding="utf-8")
    with mock.patch("auralang.cli.subprocess.run", return_value=_completed()) as run:
        assert main([str(project)]) == 1
    assert "Undefined variable" in capsys.readouterr().out
    assert not (project / "dist" / "main.ll").exists()
    assert run.call_count == 0