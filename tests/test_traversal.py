import io

import pytest

from conftest import FakeDirectory, FakeSession, make_directory, reports_url, tree_routes
from orgtree.app.job_runner import JobRunner
from orgtree.core.export import export_tree
from orgtree.core.formatter import HEADER, parse_row
from orgtree.core.models import UserRecord
from orgtree.core.traversal import TreeWalker
from orgtree.http.errors import RemoteError, ServerError


def _edges(rows):
    return [(r.user.id, r.manager.id if r.manager else None) for r in rows]


def test_depth_first_order(org_tree, root_user):
    rows = list(TreeWalker(FakeDirectory(org_tree)).walk(root_user))
    assert _edges(rows) == [("root", None), ("a", "root"), ("c", "a"), ("b", "root")]


def test_leaf_root_yields_only_itself(root_user):
    walker = TreeWalker(FakeDirectory({}))
    assert _edges(walker.walk(root_user)) == [("root", None)]
    assert walker.stats.rows == 1


def test_every_user_queried_once(org_tree, root_user):
    d = FakeDirectory(org_tree)
    list(TreeWalker(d).walk(root_user))
    assert d.calls == ["root", "a", "c", "b"]


def test_rows_stream_before_subtree_is_fetched(org_tree, root_user):
    d = FakeDirectory(org_tree)
    it = TreeWalker(d).walk(root_user)
    assert next(it).user.id == "root"
    assert d.calls == []
    assert next(it).user.id == "a"
    assert d.calls == ["root"]


def test_error_aborts_walk_and_stops_emitting(root_user):
    tree = {"root": ["a", "b"], "a": ["c"], "b": ["d"]}
    d = FakeDirectory(tree, fail_on="c")
    seen = []
    with pytest.raises(ServerError) as ei:
        for row in TreeWalker(d).walk(root_user):
            seen.append(row.user.id)
    assert ei.value.status == 503
    assert seen == ["root", "a", "c"]
    assert "b" not in d.calls


def test_deep_chain_does_not_recurse():
    depth = 5000
    tree = {f"u{i}": [f"u{i + 1}"] for i in range(depth)}
    walker = TreeWalker(FakeDirectory(tree))
    rows = list(walker.walk(UserRecord(id="u0", display_name="U0")))
    assert len(rows) == depth + 1
    assert rows[-1].manager.id == f"u{depth - 1}"
    assert walker.stats.max_depth == depth


def test_cycles_loop_only_when_detection_is_on(root_user):
    tree = {"root": ["a"], "a": ["b"], "b": ["a", "c"]}
    walker = TreeWalker(FakeDirectory(tree), detect_cycles=True)
    assert _edges(walker.walk(root_user)) == [("root", None), ("a", "root"), ("b", "a"), ("c", "b")]
    assert walker.stats.skipped_cycles == 1

    # without detection the same data keeps revisiting a -> b -> a
    it = TreeWalker(FakeDirectory(tree)).walk(root_user)
    ids = [next(it).user.id for _ in range(8)]
    assert ids == ["root", "a", "b", "a", "b", "a", "b", "a"]


def test_detection_does_not_change_well_formed_output(org_tree, root_user):
    plain = _edges(TreeWalker(FakeDirectory(org_tree)).walk(root_user))
    checked = _edges(TreeWalker(FakeDirectory(org_tree), detect_cycles=True).walk(root_user))
    assert plain == checked


def _wide_tree():
    tree = {"root": [f"m{i}" for i in range(6)]}
    for i in range(6):
        tree[f"m{i}"] = [f"m{i}e{j}" for j in range(5)]
        for j in range(5):
            tree[f"m{i}e{j}"] = [f"m{i}e{j}x"] if j % 2 == 0 else []
    return tree


def test_prefetch_keeps_sequential_order(root_user):
    tree = _wide_tree()
    sequential = _edges(TreeWalker(FakeDirectory(tree)).walk(root_user))
    with JobRunner(max_workers=8) as runner:
        prefetched = _edges(TreeWalker(FakeDirectory(tree), runner=runner).walk(root_user))
    assert prefetched == sequential


def test_prefetch_reports_are_contiguous_under_manager(root_user):
    tree = _wide_tree()
    with JobRunner(max_workers=8) as runner:
        rows = list(TreeWalker(FakeDirectory(tree), runner=runner).walk(root_user))
    # each manager's direct reports appear in their listed order, each followed by its own subtree
    order = [r.user.id for r in rows]
    for mgr, kids in tree.items():
        positions = [order.index(k) for k in kids]
        assert positions == sorted(positions)
        if kids:
            assert order.index(mgr) < positions[0]


def test_prefetch_error_surfaces_in_walk_order(root_user):
    tree = {"root": ["a", "b"], "a": ["c"], "b": ["d"]}
    d = FakeDirectory(tree, fail_on="b")
    seen = []
    with JobRunner(max_workers=4) as runner:
        with pytest.raises(ServerError):
            for row in TreeWalker(d, runner=runner).walk(root_user):
                seen.append(row.user.id)
    # rows before the failing branch are kept, nothing below b is emitted
    assert seen == ["root", "a", "c", "b"]


def test_http_fan_out_respects_gate_capacity(root_user):
    tree = {"root": [f"a{i}" for i in range(12)]}
    for i in range(12):
        tree[f"a{i}"] = [f"a{i}b{j}" for j in range(3)]
    session = FakeSession(tree_routes(tree), delay=0.01)
    directory = make_directory(session, capacity=3)
    out = io.StringIO()
    stats = export_tree(directory, root_user, out, workers=16)
    assert stats.rows == 1 + 12 + 36
    assert session.peak <= 3
    assert directory._graph.gate.peak <= 3


def test_export_writes_header_root_and_descendants(org_tree, root_user):
    session = FakeSession(tree_routes(org_tree))
    out = io.StringIO()
    export_tree(make_directory(session), root_user, out)
    lines = out.getvalue().splitlines()
    assert lines[0] == HEADER
    assert lines[1] == "root, ROOT, unknown, unknown, unknown, unknown, Employee, On-Site, none, none"
    assert [parse_row(l)[0] for l in lines[1:]] == ["root", "a", "c", "b"]
    assert parse_row(lines[3])[-2:] == ["a", "A"]


def test_remote_error_mid_walk_keeps_earlier_rows(root_user):
    routes = tree_routes({"root": ["a", "b"], "a": [], "b": []})
    del routes[reports_url("a")]  # fake session answers 404
    session = FakeSession(routes)
    out = io.StringIO()
    with pytest.raises(RemoteError) as ei:
        export_tree(make_directory(session), root_user, out)
    assert ei.value.status == 404
    ids = [parse_row(l)[0] for l in out.getvalue().splitlines()[1:]]
    assert ids == ["root", "a"]
    assert reports_url("b") not in session.urls()
