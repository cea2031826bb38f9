"""Tests for spouse pairing, sibling groups and hubs."""

import pytest

from conftest import child_of, person, spouse
from config import LayoutConfig
from graph import GraphIndex
from models import LaidOutNode
from positioning import (
    child_anchors,
    compute_hubs,
    half_up,
    place_sibling_groups,
    pull_spouses,
    sibling_groups,
)

CONFIG = LayoutConfig()


def _nodes(*specs):
    """specs: (id, generation, x, y)"""
    return {pid: LaidOutNode(pid, person(pid, gen), x=x, y=y) for pid, gen, x, y in specs}


@pytest.mark.parametrize("value, expected", [(0.5, 1), (1.5, 2), (2.4, 2), (-0.5, 0), (3.0, 3)])
def test_half_up(value, expected):
    assert half_up(value) == expected


class TestPullSpouses:
    def test_couple_is_centred_on_its_midpoint(self):
        people = [person("A", 1), person("B", 1)]
        nodes = _nodes(("A", 1, 0, 385), ("B", 1, 1000, 385))
        pull_spouses(nodes, GraphIndex(people, [spouse("A", "B")]), CONFIG)
        # gap = 200 * (1 + 1 * 0.12)
        assert nodes["A"].x == pytest.approx(388)
        assert nodes["B"].x == pytest.approx(612)
        assert nodes["A"].y == nodes["B"].y == 385

    def test_mixed_generations_share_the_rounded_mean_row(self):
        people = [person("A", 0), person("B", 1)]
        nodes = _nodes(("A", 0, 0, 0), ("B", 1, 0, 385))
        pull_spouses(nodes, GraphIndex(people, [spouse("A", "B")]), CONFIG)
        assert nodes["A"].y == nodes["B"].y == 385
        assert nodes["B"].x - nodes["A"].x == pytest.approx(224)

    def test_spouse_not_laid_out_is_ignored(self):
        people = [person("A", 0), person("B", 0)]
        nodes = _nodes(("A", 0, 50, 0))
        pull_spouses(nodes, GraphIndex(people, [spouse("A", "B")]), CONFIG)
        assert nodes["A"].x == 50


class TestSiblingGroups:
    def test_children_are_spread_under_parents_in_current_order(self):
        people = [person(pid) for pid in ["PA", "PB", "K1", "K2", "K3"]]
        relationships = [child_of(k, "PA", "PB") for k in ["K1", "K2", "K3"]]
        nodes = _nodes(
            ("PA", 0, 0, 0),
            ("PB", 0, 200, 0),
            ("K1", 1, 50, 999),
            ("K2", 1, -10, 999),
            ("K3", 1, 30, 999),
        )
        place_sibling_groups(nodes, GraphIndex(people, relationships), CONFIG)
        assert nodes["K2"].x == pytest.approx(-150)
        assert nodes["K3"].x == pytest.approx(100)
        assert nodes["K1"].x == pytest.approx(350)
        assert {nodes[k].y for k in ["K1", "K2", "K3"]} == {385}

    def test_groups_are_keyed_by_parent_set(self, family):
        index = GraphIndex(*family)
        nodes = {p.id: LaidOutNode(p.id, p, x=i * 100.0, y=p.generation * 385.0) for i, p in enumerate(family[0])}
        groups = sibling_groups(nodes, index, CONFIG)
        assert sorted(groups) == ["C2", "GP1|GP2", "P1|S1", "P2|S2"]
        assert [c.id for c in groups["GP1|GP2"].children] == ["P1", "P2"]


class TestHubs:
    def test_hub_at_couple_midpoint(self, family):
        index = GraphIndex(*family)
        nodes = {p.id: LaidOutNode(p.id, p, x=i * 100.0, y=p.generation * 385.0) for i, p in enumerate(family[0])}
        hubs = compute_hubs(nodes, index)
        assert sorted(hubs) == ["GP1|GP2", "P1|S1", "P2|S2"]
        hub = hubs["P1|S1"]
        assert hub.x == pytest.approx((nodes["P1"].x + nodes["S1"].x) / 2)
        assert hub.attach_y == pytest.approx(385)

    def test_anchors_follow_hub_or_single_parent(self, family):
        index = GraphIndex(*family)
        nodes = {p.id: LaidOutNode(p.id, p, x=i * 100.0, y=p.generation * 385.0) for i, p in enumerate(family[0])}
        hubs = compute_hubs(nodes, index)
        anchors = child_anchors(nodes, index, hubs)
        assert anchors["C1"] == hubs["P1|S1"].x
        assert anchors["D1"] == nodes["C2"].x
        assert "GP1" not in anchors

    def test_no_hub_when_a_parent_is_missing(self):
        people = [person("A"), person("B"), person("C")]
        nodes = _nodes(("A", 0, 0, 0), ("C", 1, 0, 385))
        index = GraphIndex(people, [child_of("C", "A", "B")])
        hubs = compute_hubs(nodes, index)
        assert hubs == {}
        assert child_anchors(nodes, index, hubs) == {}
