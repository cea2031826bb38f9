"""Per-row collision resolution over couples, clusters and singles."""

import logging

from config import LayoutConfig
from graph import GraphIndex
from layout import group_rows
from models import LaidOutNode, Unit

logger = logging.getLogger(__name__)


def _mean(values):
    return sum(values) / len(values)


def build_units(row: list[LaidOutNode], index: GraphIndex, anchors: dict[str, float], config: LayoutConfig) -> list[Unit]:
    """
    Group one row into placement units.

    A person with two or more same-row spouses forms a cluster with the
    spouses on either side; remaining spouse pairs become couples; everyone
    else is a single.
    """
    row = sorted(row, key=lambda n: n.x)
    by_id = {n.id: n for n in row}

    spouses_by_id: dict[str, list[LaidOutNode]] = {n.id: [] for n in row}
    partner_of: dict[str, LaidOutNode] = {}
    for a_id, b_id in index.spouse_pairs:
        if a_id in by_id and b_id in by_id:
            spouses_by_id[a_id].append(by_id[b_id])
            spouses_by_id[b_id].append(by_id[a_id])
            partner_of[a_id] = by_id[b_id]
            partner_of[b_id] = by_id[a_id]

    units: list[Unit] = []
    seen: set[str] = set()

    for node in row:
        if node.id in seen or len(spouses_by_id[node.id]) < 2:
            continue
        partners = sorted((p for p in spouses_by_id[node.id] if p.id not in seen), key=lambda n: n.x)
        if len(partners) == 2:
            members = [partners[0], node, partners[1]]
        else:
            # Insert the centre person at its anchor position among the partners
            members = list(partners)
            center_anchor = anchors.get(node.id, node.x)
            i = 0
            while i < len(members) and anchors.get(members[i].id, members[i].x) <= center_anchor:
                i += 1
            members.insert(i, node)
        seen.update(m.id for m in members)
        units.append(Unit("cluster", members, center=node))

    for node in row:
        if node.id in seen:
            continue
        partner = partner_of.get(node.id)
        if partner is not None and partner.id not in seen:
            left, right = (node, partner) if node.x <= partner.x else (partner, node)
            units.append(Unit("couple", [left, right]))
            seen.update((node.id, partner.id))
        else:
            units.append(Unit("single", [node]))
            seen.add(node.id)

    for unit in units:
        targets = [anchors[n.id] for n in unit.members if n.id in anchors]
        unit.anchor = _mean(targets) if targets else _mean([n.x for n in unit.members])
        unit.width = config.base_spouse_gap * (len(unit.members) - 1)

    # Current order breaks ties between equal anchors
    units.sort(key=lambda u: _mean([n.x for n in u.members]))
    units.sort(key=lambda u: u.anchor)
    return units


def _place(unit: Unit, center: float, spacing: float):
    left = center - unit.width / 2
    for i, node in enumerate(unit.members):
        node.x = left + i * spacing


def sweep(units: list[Unit], config: LayoutConfig):
    """
    Two greedy passes over units sorted by anchor.

    The forward pass places each unit at its anchor, pushed right as far as
    needed to keep `row_min_gap` to its left neighbour. The backward pass pulls
    units left towards their anchors without crossing the gap to their right
    neighbour. x only ever decreases in the backward pass.
    """
    spacing = config.base_spouse_gap
    cursor = None
    for unit in units:
        center = unit.anchor
        if cursor is not None:
            center = max(center, cursor + config.row_min_gap + unit.width / 2)
        _place(unit, center, spacing)
        cursor = center + unit.width / 2

    cursor = None
    for unit in reversed(units):
        current = unit.left_edge + unit.width / 2
        target = unit.anchor
        if cursor is not None:
            target = min(target, cursor - config.row_min_gap - unit.width / 2)
        center = min(current, target)
        _place(unit, center, spacing)
        cursor = center - unit.width / 2


def resolve_collisions(
    nodes: dict[str, LaidOutNode],
    index: GraphIndex,
    anchors: dict[str, float],
    config: LayoutConfig,
) -> dict[float, list[Unit]]:
    """
    Remove horizontal overlap row by row.

    Returns:
        Mapping row y -> units in final left-to-right order.
    """
    rows = {}
    for y, row in sorted(group_rows(nodes.values()).items()):
        units = build_units(row, index, anchors, config)
        sweep(units, config)
        rows[y] = units
        logger.debug("Row y=%s: %d people in %d units", y, len(row), len(units))
    return rows
