"""Spouse pairing, sibling groups and union hubs."""

from dataclasses import dataclass, field
import math

from config import LayoutConfig
from graph import GraphIndex
from models import Hub, LaidOutNode, generation_of, pair_key


def half_up(value: float) -> int:
    """Round halves towards +infinity (1.5 -> 2, -0.5 -> 0)."""
    return math.floor(value + 0.5)


def pull_spouses(nodes: dict[str, LaidOutNode], index: GraphIndex, config: LayoutConfig):
    """
    Put each laid-out couple on a shared row, side by side.

    The row is the mean of both generations; the pair sits around its current
    midpoint, `base_spouse_gap` apart, widened with (capped) generation depth.
    """
    for a_id, b_id in index.spouse_pairs:
        a = nodes.get(a_id)
        b = nodes.get(b_id)
        if a is None or b is None:
            continue
        gen = half_up((generation_of(a.person) + generation_of(b.person)) / 2)
        a.y = b.y = gen * config.gap_y

        cx = (a.x + b.x) / 2
        gap = config.base_spouse_gap * (1 + min(gen, config.narrow_depth_span) * config.spouse_depth_spread)
        a.x = cx - gap / 2
        b.x = cx + gap / 2


@dataclass
class SiblingGroup:
    center_x: float
    y: float
    children: list[LaidOutNode] = field(default_factory=list)


def sibling_groups(nodes: dict[str, LaidOutNode], index: GraphIndex, config: LayoutConfig) -> dict[str, SiblingGroup]:
    """Children grouped by the exact set of their laid-out parents."""
    groups: dict[str, SiblingGroup] = {}
    for record in index.parent_sets:
        child = nodes.get(record.child_id)
        if child is None:
            continue
        parents = [nodes[p] for p in record.parents if p in nodes]
        if not parents:
            continue
        key = "|".join(sorted(p.id for p in parents))
        if key not in groups:
            groups[key] = SiblingGroup(
                center_x=sum(p.x for p in parents) / len(parents),
                y=sum(p.y for p in parents) / len(parents) + config.gap_y,
            )
        if all(c.id != child.id for c in groups[key].children):
            groups[key].children.append(child)
    return groups


def place_sibling_groups(nodes: dict[str, LaidOutNode], index: GraphIndex, config: LayoutConfig):
    """Spread each sibling group evenly, centred under its parents, one row down."""
    for group in sibling_groups(nodes, index, config).values():
        # Keep the current left-to-right order
        kids = sorted(group.children, key=lambda n: n.x)
        start = group.center_x - (len(kids) - 1) * config.sibling_gap / 2
        for i, kid in enumerate(kids):
            kid.x = start + i * config.sibling_gap
            kid.y = group.y


def compute_hubs(nodes: dict[str, LaidOutNode], index: GraphIndex) -> dict[str, Hub]:
    """One hub per two-parent couple whose parents are both laid out."""
    hubs: dict[str, Hub] = {}
    for record in index.parent_sets:
        if len(record.parents) != 2:
            continue
        a_id, b_id = record.parents
        a = nodes.get(a_id)
        b = nodes.get(b_id)
        if a is None or b is None:
            continue
        key = pair_key(a_id, b_id)
        if key not in hubs:
            hubs[key] = Hub(key, a_id, b_id, x=(a.x + b.x) / 2, attach_y=(a.y + b.y) / 2)
    return hubs


def child_anchors(nodes: dict[str, LaidOutNode], index: GraphIndex, hubs: dict[str, Hub]) -> dict[str, float]:
    """Target x for each child: its parents' hub, or its single parent."""
    anchors: dict[str, float] = {}
    for record in index.parent_sets:
        if record.child_id not in nodes:
            continue
        if len(record.parents) == 2:
            hub = hubs.get(pair_key(*record.parents))
            if hub is not None:
                anchors[record.child_id] = hub.x
        elif len(record.parents) == 1 and record.parents[0] in nodes:
            anchors[record.child_id] = nodes[record.parents[0]].x
    return anchors
