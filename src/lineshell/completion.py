"""Tab completion for files, directories, and builtin commands."""

import logging
import os
from collections.abc import Iterable

from lineshell.builtins import builtin_names
from lineshell.tokenizer import parse

logger = logging.getLogger(__name__)


def list_files(path: str) -> list[str]:
    """Base names of the regular files in path; empty if it can't be read."""
    return _list_entries(path, directories=False)


def list_directories(path: str) -> list[str]:
    """Base names of the subdirectories of path; empty if it can't be read."""
    return _list_entries(path, directories=True)


def _list_entries(path: str, directories: bool) -> list[str]:
    names: list[str] = []
    try:
        with os.scandir(path) as entries:
            for entry in entries:
                try:
                    is_dir = entry.is_dir()
                except OSError:
                    is_dir = False
                if is_dir == directories:
                    names.append(entry.name)
    except OSError as e:
        logger.debug("cannot list %s: %s", path, e)
        return []
    return sorted(names)


def candidates(
    partial: str,
    *,
    cwd: str | None = None,
    builtins: Iterable[str] | None = None,
) -> list[str]:
    """Names that could complete the partial token.

    The directory part of partial is resolved against cwd (default: the
    current working directory); every file and subdirectory there, plus
    every builtin name, is a candidate if it starts with the last path
    component of partial, ignoring case. Names that are not valid UTF-8
    are left out, since they could not be drawn on the line.
    """
    if cwd is None:
        cwd = os.getcwd()
    if builtins is None:
        builtins = builtin_names()

    directory = os.path.dirname(os.path.join(cwd, os.path.expanduser(partial)))
    prefix = os.path.basename(partial).lower()

    universe = [*list_files(directory), *list_directories(directory), *builtins]
    return sorted({name for name in universe if name.lower().startswith(prefix) and _displayable(name)})


def _displayable(name: str) -> bool:
    # undecodable file names come back from the OS with surrogate escapes
    try:
        name.encode("utf-8")
    except UnicodeEncodeError:
        logger.debug("skipping undisplayable name %r", name)
        return False
    return True


def complete(
    text: str,
    cursor: int,
    *,
    cwd: str | None = None,
    builtins: Iterable[str] | None = None,
) -> tuple[str, int]:
    """Complete the last token of text if exactly one name matches it.

    Returns the new (text, cursor). The unmatched remainder of the name is
    appended after the partial token and the cursor moves past it. With
    no match, or with several, the line comes back unchanged.
    """
    partial = parse(text)[-1]
    matches = candidates(partial, cwd=cwd, builtins=builtins)

    if len(matches) != 1:
        logger.debug("%d candidates for %r, not completing", len(matches), partial)
        return text, cursor

    typed = len(os.path.basename(partial))
    suffix = matches[0][typed:]
    new_text = text + suffix
    return new_text, min(len(new_text), cursor + len(suffix))
