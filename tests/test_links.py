"""Tests for child links and spouse connectors."""

import pytest

from conftest import child_of, person, spouse
from config import LayoutConfig
from graph import GraphIndex
from links import build_links
from models import ChildLink, LaidOutNode, SpouseConnector

CONFIG = LayoutConfig()


def _nodes(*specs):
    return {pid: LaidOutNode(pid, person(pid), x=x, y=y) for pid, x, y in specs}


def _connector(connectors, a, b):
    return next(c for c in connectors if {c.a_id, c.b_id} == {a, b})


def test_two_parent_child_hangs_from_the_hub():
    nodes = _nodes(("A", 0, 0), ("B", 200, 0), ("C", 50, 385))
    index = GraphIndex([n.person for n in nodes.values()], [spouse("A", "B"), child_of("C", "A", "B")])
    hubs, links, connectors = build_links(nodes, index, CONFIG)

    assert list(hubs) == ["A|B"]
    (link,) = links
    assert link.source == (100, 0)
    assert link.target == (50, 385)
    assert link.hub_key == "A|B"
    assert [c.kind for c in connectors] == ["bar"]


def test_single_parent_link_starts_at_the_parent():
    nodes = _nodes(("A", 10, 0), ("C", 50, 385))
    index = GraphIndex([n.person for n in nodes.values()], [child_of("C", "A")])
    hubs, links, _ = build_links(nodes, index, CONFIG)
    assert hubs == {}
    assert links[0].source == (10, 0)
    assert links[0].hub_key is None


def test_co_parents_without_marriage_get_a_union_bar():
    nodes = _nodes(("A", 0, 0), ("B", 300, 0), ("C", 150, 385))
    index = GraphIndex([n.person for n in nodes.values()], [child_of("C", "A", "B")])
    _, _, connectors = build_links(nodes, index, CONFIG)
    (union,) = connectors
    assert union.kind == "union"
    assert (union.x1, union.x2, union.y1) == (0, 300, 0)


def test_forced_arch_only_in_multi_spouse_rows():
    config = LayoutConfig().merged({"force_arch_pairs": ["X|Z", "A|B"]})
    nodes = _nodes(("Y", -200, 0), ("X", 0, 0), ("Z", 200, 0), ("A", 1000, 0), ("B", 1200, 0))
    relationships = [spouse("X", "Y"), spouse("X", "Z"), spouse("A", "B")]
    index = GraphIndex([n.person for n in nodes.values()], relationships)
    _, _, connectors = build_links(nodes, index, config)

    arch = _connector(connectors, "X", "Z")
    assert arch.kind == "arch"
    assert arch.height == pytest.approx(config.arch_height)
    assert _connector(connectors, "X", "Y").kind == "bar"
    assert _connector(connectors, "A", "B").kind == "bar"


def test_cross_row_spouses_get_a_bar():
    nodes = _nodes(("A", 0, 0), ("B", 200, 385))
    index = GraphIndex([n.person for n in nodes.values()], [spouse("A", "B")])
    _, _, connectors = build_links(nodes, index, CONFIG)
    assert connectors[0].kind == "bar"
    assert (connectors[0].y1, connectors[0].y2) == (0, 385)


def test_child_link_curve_is_vertical():
    link = ChildLink(source=(0, 0), target=(100, 400), child_id="C", parent_ids=("A",))
    assert link.curve() == [(0, 0), (0, 200), (100, 200), (100, 400)]


def test_arch_rises_above_the_row():
    arch = SpouseConnector("arch", "A", "B", 0, 385, 400, 385, height=100)
    assert arch.curve() == [(0, 385), (0, 285), (400, 285), (400, 385)]
    assert arch.key == "A|B"


def test_forced_arch_from_a_directly_built_config():
    config = LayoutConfig(force_arch_pairs=frozenset({("X", "Z")}))
    nodes = _nodes(("Y", -200, 0), ("X", 0, 0), ("Z", 200, 0))
    index = GraphIndex([n.person for n in nodes.values()], [spouse("X", "Y"), spouse("X", "Z")])
    _, _, connectors = build_links(nodes, index, config)
    assert {c.key: c.kind for c in connectors} == {"X|Y": "bar", "X|Z": "arch"}
