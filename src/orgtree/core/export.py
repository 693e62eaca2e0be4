# src/orgtree/core/export.py
from __future__ import annotations
from typing import TextIO

from orgtree.app.job_runner import JobRunner
from orgtree.core.directory import DirectoryClient
from orgtree.core.formatter import HEADER, format_row
from orgtree.core.models import UserRecord
from orgtree.core.traversal import TreeWalker, WalkStats


def write_rows(walker: TreeWalker, root: UserRecord, out: TextIO) -> WalkStats:
    out.write(HEADER + "\n")
    for row in walker.walk(root):
        out.write(format_row(row) + "\n")
        out.flush()
    return walker.stats


def export_tree(
    directory: DirectoryClient,
    root: UserRecord,
    out: TextIO,
    *,
    workers: int = 1,
    detect_cycles: bool = False,
    logger=None,
) -> WalkStats:
    """
    Stream the header, the root row and every descendant row to `out`.
    Rows written before a failure stay written; the error propagates.
    """
    if workers <= 1:
        walker = TreeWalker(directory, detect_cycles=detect_cycles, logger=logger)
        return write_rows(walker, root, out)

    with JobRunner(max_workers=workers) as runner:
        walker = TreeWalker(directory, runner=runner, detect_cycles=detect_cycles, logger=logger)
        return write_rows(walker, root, out)
