# src/orgtree/app/cli.py
from __future__ import annotations

import argparse
import logging
import sys
from typing import Mapping, Sequence, TextIO

from orgtree.app.selector import UserInputError, select_root
from orgtree.config.loader import (
    DEFAULT_SETTINGS_PATH, get_directory_config, get_http_config, load_appsettings
)
from orgtree.core.auth import AuthError, resolve_token
from orgtree.core.directory import DirectoryClient
from orgtree.core.export import export_tree
from orgtree.core.graph_client import GraphClient
from orgtree.http.errors import DirectoryError
from orgtree.http.throttle import ConcurrencyGate

log = logging.getLogger("orgtree")


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="orgtree",
        description="Export a user's reporting tree from the directory as CSV on stdout",
    )
    ap.add_argument("--settings", default=DEFAULT_SETTINGS_PATH)
    ap.add_argument("--name", default=None, help="Display-name prefix to search (skips the prompt)")
    ap.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Threads prefetching report lists; 1 walks strictly one call at a time",
    )
    ap.add_argument(
        "--detect-cycles",
        action="store_true",
        help="Skip users already listed instead of walking them again",
    )
    ap.add_argument("--debug", action="store_true")
    return ap


def _setup_logging(debug: bool, stream: TextIO) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="[%(name)s] %(message)s",
        stream=stream,
    )


def main(
    argv: Sequence[str] | None = None,
    *,
    stdin: TextIO | None = None,
    stdout: TextIO | None = None,
    stderr: TextIO | None = None,
    environ: Mapping[str, str] | None = None,
    session=None,
) -> int:
    args = build_parser().parse_args(argv)
    out = stdout or sys.stdout
    err = stderr or sys.stderr
    _setup_logging(args.debug, err)

    settings = load_appsettings(args.settings)
    http_cfg = get_http_config(settings)
    dir_cfg = get_directory_config(settings)
    workers = args.workers if args.workers is not None else dir_cfg["prefetch_workers"]

    try:
        token = resolve_token(dir_cfg["token_env"], environ)
        gate = ConcurrencyGate(http_cfg["max_concurrency"], http_cfg["pacing_delay_ms"] / 1000.0)
        graph = GraphClient(
            lambda: token,
            base_url=dir_cfg["base_url"],
            api_version=dir_cfg["api_version"],
            timeout=http_cfg["timeout_seconds"],
            max_retries=http_cfg["max_retries"],
            gate=gate,
            session=session,
            logger=logging.getLogger("orgtree.http") if args.debug else None,
        )
        directory = DirectoryClient(graph)

        root = select_root(directory, name=args.name, stdin=stdin, stderr=err)
        if root is None:
            err.write("No users found with the given display name.\n")
            return 0

        log.info(f"Fetching reportees for user ID: {root.id}")
        stats = export_tree(
            directory, root, out,
            workers=workers,
            detect_cycles=args.detect_cycles,
            logger=logging.getLogger("orgtree.walk"),
        )
        log.info(
            f"Done: {stats.rows} users, {stats.managers_queried} report lists, "
            f"peak {gate.peak}/{gate.capacity} concurrent requests"
        )
        return 0
    except AuthError as ex:
        err.write(f"error: {ex}\n")
        if ex.hint:
            err.write(f"hint: {ex.hint}\n")
        return 1
    except DirectoryError as ex:
        err.write(f"error: {ex}\n")
        return 1
    except UserInputError as ex:
        err.write(f"error: {ex}\n")
        return 1
    except KeyboardInterrupt:
        err.write("interrupted\n")
        return 130


if __name__ == "__main__":
    sys.exit(main())
