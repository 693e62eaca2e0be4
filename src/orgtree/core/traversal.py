# src/orgtree/core/traversal.py
"""
Depth-first walk of a management hierarchy.

The walk keeps an explicit stack of open branches (a manager plus its
fetched report list) instead of recursing, so hierarchy depth never
touches the interpreter stack. Rows are yielded as soon as they are known:

    root
    A        (manager root)
    C        (manager A)
    B        (manager root)

With a JobRunner attached, every reportee's own report list is requested in
the pool as soon as its manager's list arrives. Results are still consumed
in order, so the output is identical to the sequential walk; only the
waiting overlaps. HTTP concurrency stays bounded by the client's gate.
"""
from __future__ import annotations
from concurrent.futures import Future
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Set

from orgtree.app.job_runner import JobRunner
from orgtree.core.directory import DirectoryClient
from orgtree.core.models import OrgRow, UserRecord


@dataclass
class WalkStats:
    rows: int = 0
    managers_queried: int = 0
    max_depth: int = 0
    skipped_cycles: int = 0


@dataclass
class _Branch:
    manager: UserRecord
    depth: int
    pending: Optional[Future] = None
    reports: Optional[List[UserRecord]] = None
    prefetched: List[Optional[Future]] = field(default_factory=list)
    pos: int = 0

    def cancel(self) -> None:
        for fut in (self.pending, *self.prefetched[self.pos:]):
            if fut is not None:
                fut.cancel()


class TreeWalker:
    def __init__(
        self,
        directory: DirectoryClient,
        *,
        runner: JobRunner | None = None,
        detect_cycles: bool = False,
        logger=None,
    ):
        self._directory = directory
        self._runner = runner
        self.detect_cycles = detect_cycles
        self._log = logger
        self.stats = WalkStats()

    def _fetch_reports(self, user_id: str) -> List[UserRecord]:
        return self._directory.direct_reports(user_id)

    def _prefetch(self, user: UserRecord) -> Optional[Future]:
        if self._runner is None:
            return None
        return self._runner.submit_job(self._fetch_reports, user.id)

    def _open(self, branch: _Branch) -> List[UserRecord]:
        if branch.reports is None:
            if branch.pending is not None:
                branch.reports = branch.pending.result()
                branch.pending = None
            else:
                branch.reports = self._fetch_reports(branch.manager.id)
            self.stats.managers_queried += 1
            branch.prefetched = [self._prefetch(u) for u in branch.reports]
            if self._log:
                self._log.debug(
                    f"{branch.manager.display_name} ({branch.manager.id}): "
                    f"{len(branch.reports)} direct reports at depth {branch.depth}"
                )
        return branch.reports

    def walk(self, root: UserRecord) -> Iterator[OrgRow]:
        """
        Yield the root row, then every descendant in depth-first order.
        A fetch error anywhere propagates out of the iterator and ends the walk.
        """
        self.stats = WalkStats()
        seen: Set[str] = {root.id}

        self.stats.rows += 1
        yield OrgRow(user=root)

        stack: List[_Branch] = [_Branch(manager=root, depth=1)]
        try:
            while stack:
                branch = stack[-1]
                reports = self._open(branch)
                if branch.pos >= len(reports):
                    stack.pop()
                    continue

                user = reports[branch.pos]
                pending = branch.prefetched[branch.pos]
                branch.pos += 1

                if self.detect_cycles:
                    if user.id in seen:
                        self.stats.skipped_cycles += 1
                        if pending is not None:
                            pending.cancel()
                        if self._log:
                            self._log.warning(
                                f"{user.display_name} ({user.id}) already listed; "
                                f"not revisiting under {branch.manager.display_name}"
                            )
                        continue
                    seen.add(user.id)

                self.stats.rows += 1
                yield OrgRow(user=user, manager=branch.manager)

                stack.append(_Branch(manager=user, depth=branch.depth + 1, pending=pending))
                self.stats.max_depth = max(self.stats.max_depth, branch.depth)
        finally:
            for b in stack:
                b.cancel()
