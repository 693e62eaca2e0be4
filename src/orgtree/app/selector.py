# src/orgtree/app/selector.py
from __future__ import annotations
import sys
from typing import Optional, Sequence, TextIO

from orgtree.core.directory import DirectoryClient
from orgtree.core.models import UserRecord


class UserInputError(Exception):
    """Interactive input could not be read or understood."""


def read_input(prompt: str, *, stdin: TextIO | None = None, stderr: TextIO | None = None) -> str:
    # prompts go to stderr so stdout carries only rows
    stdin = stdin or sys.stdin
    stderr = stderr or sys.stderr
    stderr.write(prompt)
    stderr.flush()
    line = stdin.readline()
    if not line:
        raise UserInputError("no input (end of file)")
    return line.strip()


def parse_index(raw: str, count: int) -> int:
    """1-based choice -> 0-based list index; UserInputError when unusable."""
    try:
        idx = int(raw.strip())
    except ValueError:
        raise UserInputError(f"not a number: {raw!r}") from None
    if not 1 <= idx <= count:
        raise UserInputError(f"{idx} is out of range 1..{count}")
    return idx - 1


def describe(user: UserRecord) -> str:
    return f"{user.display_name} (Email: {user.email})"


def choose(users: Sequence[UserRecord], *, stdin: TextIO | None = None, stderr: TextIO | None = None) -> UserRecord:
    err = stderr or sys.stderr
    while True:
        err.write("Select a user by entering the index number:\n")
        for i, u in enumerate(users, start=1):
            err.write(f"{i}. {describe(u)}\n")
        raw = read_input("Enter the index of the selected user: ", stdin=stdin, stderr=err)
        try:
            return users[parse_index(raw, len(users))]
        except UserInputError:
            err.write("Invalid input. Please try again.\n")


def select_root(
    directory: DirectoryClient,
    *,
    name: Optional[str] = None,
    stdin: TextIO | None = None,
    stderr: TextIO | None = None,
) -> Optional[UserRecord]:
    """
    Resolve the traversal root interactively. Returns None when the search
    matches nobody; fetch errors propagate.
    """
    err = stderr or sys.stderr
    if name is None:
        name = read_input("Enter the display name to search: ", stdin=stdin, stderr=err)

    page = directory.search_users(name)
    if not page.records:
        return None

    user = choose(page.records, stdin=stdin, stderr=err)
    err.write(f"Selected User: {describe(user)}\n")
    return user
