"""Main shell loop: prompt, read, parse, dispatch, repeat."""

import logging
import os
import subprocess
import sys

from lineshell.builtins import BUILTIN_REGISTRY
from lineshell.editor import LineEditor
from lineshell.terminal import Terminal
from lineshell.tokenizer import parse

logger = logging.getLogger(__name__)

LOG_LEVEL_ENV = "LINESHELL_LOG_LEVEL"
PROMPT_COLOUR_ENV = "LINESHELL_PROMPT_COLOUR"
DEFAULT_PROMPT_COLOUR = "green"


class Shell:
    """Shell state and main loop."""

    def __init__(self, terminal: Terminal | None = None) -> None:
        self.terminal = terminal or Terminal()
        self.editor = LineEditor(self.terminal)
        self.last_exit_code: int = 0
        self.prompt_colour: str | None = os.environ.get(PROMPT_COLOUR_ENV, DEFAULT_PROMPT_COLOUR)

    def get_prompt(self) -> str:
        cwd = os.getcwd()
        home = os.path.expanduser("~")
        if cwd == home:
            display = "~"
        elif cwd.startswith(home + "/"):
            display = "~/" + cwd[len(home) + 1 :]
        else:
            display = cwd
        return f"{display} $ "

    def write_prompt(self) -> None:
        """Print the prompt in the prompt colour, leaving the cursor after it."""
        term = self.terminal
        term.show_cursor(False)
        if self.prompt_colour:
            try:
                term.colour(self.prompt_colour)
            except ValueError as e:
                print(f"lineshell: {e}", file=sys.stderr)
                self.prompt_colour = None
        term.write(self.get_prompt())
        term.default_colour()
        term.show_cursor(True)
        term.flush()

    def read_command(self) -> str:
        """Read the next command line.

        Uses the line editor on a terminal; piped input is read line by
        line instead. Raises EOFError at end of input.
        """
        if self.terminal.is_interactive():
            self.write_prompt()
            return self.editor.read_line()
        return input()

    def run_command(self, line: str) -> None:
        """Tokenize a line and run it as a builtin or an external command."""
        argv = parse(line)
        # a quote closing the line leaves an empty last token behind
        if len(argv) > 1 and argv[-1] == "":
            argv.pop()
        if not argv[0]:
            return

        builtin = BUILTIN_REGISTRY.get(argv[0])
        if builtin is not None:
            self.last_exit_code = builtin.run(argv[1:], self)
            return

        logger.debug("running %r", argv)
        try:
            self.last_exit_code = subprocess.run(argv).returncode
        except FileNotFoundError:
            print(f"lineshell: command not found: {argv[0]}", file=sys.stderr)
            self.last_exit_code = 127
        except PermissionError:
            print(f"lineshell: permission denied: {argv[0]}", file=sys.stderr)
            self.last_exit_code = 126

    def run(self) -> None:
        """Main shell loop."""
        while True:
            try:
                line = self.read_command()
            except EOFError:
                break
            except KeyboardInterrupt:
                print()
                continue

            line = line.strip()
            if not line or line.startswith("#"):
                continue

            self.run_command(line)


def configure_logging() -> None:
    level = os.environ.get(LOG_LEVEL_ENV, "WARNING").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def main() -> None:
    """Entry point."""
    configure_logging()
    shell = Shell()
    shell.run()
    sys.exit(shell.last_exit_code)
