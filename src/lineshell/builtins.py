"""Commands the shell runs itself instead of starting a program."""

import os
import sys
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, TypeAlias

if TYPE_CHECKING:
    from lineshell.shell import Shell

BuiltinHandler: TypeAlias = Callable[[list[str], "Shell"], int]


@dataclass(frozen=True)
class Builtin:
    """A builtin command: how it is invoked and what runs it."""

    name: str
    usage: str
    summary: str
    run: BuiltinHandler


BUILTIN_REGISTRY: dict[str, Builtin] = {}


def builtin(usage: str, summary: str) -> Callable[[BuiltinHandler], BuiltinHandler]:
    """Register the decorated function under the first word of usage."""

    def register(handler: BuiltinHandler) -> BuiltinHandler:
        name = usage.split()[0]
        BUILTIN_REGISTRY[name] = Builtin(name, usage, summary, handler)
        return handler

    return register


def builtin_names() -> list[str]:
    """Names of all builtins, as offered to tab completion."""
    return sorted(BUILTIN_REGISTRY)


@builtin("cd [dir | -]", "change directory; no argument goes home, - goes back")
def change_directory(args: list[str], shell: "Shell") -> int:
    if len(args) > 1:
        print("cd: too many arguments", file=sys.stderr)
        return 1
    if not args:
        target = os.path.expanduser("~")
    elif args[0] == "-":
        target = os.environ.get("OLDPWD", "")
        if not target:
            print("cd: OLDPWD not set", file=sys.stderr)
            return 1
        print(target)
    else:
        target = os.path.expanduser(args[0])

    previous = os.getcwd()
    try:
        os.chdir(target)
    except OSError as e:
        print(f"cd: {target}: {e.strerror.lower()}", file=sys.stderr)
        return 1
    os.environ["OLDPWD"] = previous
    os.environ["PWD"] = os.getcwd()
    return 0


@builtin("exit [status]", "leave the shell, with the last command's status by default")
def exit_shell(args: list[str], shell: "Shell") -> int:
    if not args:
        sys.exit(shell.last_exit_code)
    try:
        sys.exit(int(args[0]))
    except ValueError:
        print(f"exit: {args[0]}: numeric argument required", file=sys.stderr)
        sys.exit(2)


@builtin("help", "list builtins and editing keys")
def show_help(args: list[str], shell: "Shell") -> int:
    width = max(len(entry.usage) for entry in BUILTIN_REGISTRY.values())
    print("lineshell builtins:")
    for name in builtin_names():
        entry = BUILTIN_REGISTRY[name]
        print(f"  {entry.usage:<{width}}  {entry.summary}")
    print()
    print("Editing: Left/Right/Home/End move, Backspace/Delete erase,")
    print("Tab completes a file, directory or builtin name when only one matches.")
    return 0


@builtin("pwd", "print the working directory")
def print_directory(args: list[str], shell: "Shell") -> int:
    print(os.getcwd())
    return 0


@builtin("clear", "clear the screen")
def clear_screen(args: list[str], shell: "Shell") -> int:
    term = shell.terminal
    term.write("\x1b[2J\x1b[H")
    term.flush()
    return 0
