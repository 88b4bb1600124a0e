"""Tests for the builtins module."""

import os

import pytest

from lineshell.builtins import (
    BUILTIN_REGISTRY,
    Builtin,
    builtin_names,
    change_directory,
    clear_screen,
    exit_shell,
    print_directory,
    show_help,
)
from lineshell.shell import Shell


@pytest.fixture
def shell():
    return Shell()


class TestBuiltinRegistry:
    def test_expected_builtins(self):
        assert builtin_names() == ["cd", "clear", "exit", "help", "pwd"]

    def test_entries_named_after_usage(self):
        for name, entry in BUILTIN_REGISTRY.items():
            assert isinstance(entry, Builtin)
            assert entry.name == name
            assert entry.usage.split()[0] == name

    def test_handlers_are_callable(self):
        for name, entry in BUILTIN_REGISTRY.items():
            assert callable(entry.run), f"handler for '{name}' is not callable"

    def test_registered_handler_is_module_function(self):
        assert BUILTIN_REGISTRY["cd"].run is change_directory

    def test_builtin_names_sorted(self):
        names = builtin_names()
        assert names == sorted(BUILTIN_REGISTRY)


class TestCd:
    def test_cd_to_directory(self, tmp_path, shell, monkeypatch):
        monkeypatch.chdir(tmp_path)
        sub = tmp_path / "sub"
        sub.mkdir()
        assert change_directory([str(sub)], shell) == 0
        assert os.getcwd() == str(sub)

    def test_cd_no_args_goes_home(self, tmp_path, shell, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("HOME", str(tmp_path / "home"))
        (tmp_path / "home").mkdir()
        assert change_directory([], shell) == 0
        assert os.getcwd() == str(tmp_path / "home")

    def test_cd_tilde(self, tmp_path, shell, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("HOME", str(tmp_path))
        (tmp_path / "proj").mkdir()
        assert change_directory(["~/proj"], shell) == 0
        assert os.getcwd() == str(tmp_path / "proj")

    def test_cd_records_previous_directory(self, tmp_path, shell, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("OLDPWD", raising=False)
        (tmp_path / "sub").mkdir()
        assert change_directory(["sub"], shell) == 0
        assert os.environ["OLDPWD"] == str(tmp_path)
        assert os.environ["PWD"] == str(tmp_path / "sub")

    def test_cd_dash_goes_back(self, tmp_path, shell, monkeypatch, capsys):
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("OLDPWD", raising=False)
        (tmp_path / "sub").mkdir()
        change_directory(["sub"], shell)
        assert change_directory(["-"], shell) == 0
        assert os.getcwd() == str(tmp_path)
        assert capsys.readouterr().out.strip() == str(tmp_path)

    def test_cd_dash_without_previous(self, shell, monkeypatch, capsys):
        monkeypatch.delenv("OLDPWD", raising=False)
        assert change_directory(["-"], shell) == 1
        assert "OLDPWD not set" in capsys.readouterr().err

    def test_cd_too_many_arguments(self, shell, capsys):
        assert change_directory(["a", "b"], shell) == 1
        assert "too many arguments" in capsys.readouterr().err

    def test_cd_nonexistent(self, shell, capsys):
        assert change_directory(["/nonexistent_dir_xyz"], shell) == 1
        assert "no such file or directory" in capsys.readouterr().err

    def test_cd_to_file(self, tmp_path, shell, capsys):
        f = tmp_path / "afile.txt"
        f.touch()
        assert change_directory([str(f)], shell) == 1
        assert "not a directory" in capsys.readouterr().err


class TestPwd:
    def test_pwd(self, tmp_path, shell, capsys, monkeypatch):
        monkeypatch.chdir(tmp_path)
        assert print_directory([], shell) == 0
        assert capsys.readouterr().out.strip() == str(tmp_path)


class TestExit:
    def test_exit_default_uses_last_status(self, shell):
        shell.last_exit_code = 3
        with pytest.raises(SystemExit) as exc:
            exit_shell([], shell)
        assert exc.value.code == 3

    def test_exit_with_code(self, shell):
        with pytest.raises(SystemExit) as exc:
            exit_shell(["42"], shell)
        assert exc.value.code == 42

    def test_exit_non_numeric(self, shell, capsys):
        with pytest.raises(SystemExit) as exc:
            exit_shell(["abc"], shell)
        assert exc.value.code == 2
        assert "numeric argument required" in capsys.readouterr().err


class TestHelpAndClear:
    def test_help_lists_all_builtins(self, shell, capsys):
        assert show_help([], shell) == 0
        output = capsys.readouterr().out
        for entry in BUILTIN_REGISTRY.values():
            assert entry.usage in output
            assert entry.summary in output

    def test_help_mentions_tab_completion(self, shell, capsys):
        show_help([], shell)
        assert "Tab completes" in capsys.readouterr().out

    def test_clear_writes_escape(self, shell, capsys):
        assert clear_screen([], shell) == 0
        assert capsys.readouterr().out == "\033[2J\033[H"
