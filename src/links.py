"""Renderable edges: hub-to-child links and spouse connectors."""

from config import LayoutConfig
from graph import GraphIndex
from models import ChildLink, Hub, LaidOutNode, SpouseConnector, pair_key
from positioning import compute_hubs


def child_links(nodes: dict[str, LaidOutNode], index: GraphIndex, hubs: dict[str, Hub]) -> list[ChildLink]:
    """Links from a two-parent hub, or from a single parent, down to each child."""
    links = []
    for record in index.parent_sets:
        child = nodes.get(record.child_id)
        if child is None:
            continue
        if len(record.parents) == 2:
            hub = hubs.get(pair_key(*record.parents))
            if hub is None:
                continue
            links.append(
                ChildLink(
                    source=(hub.x, hub.attach_y),
                    target=(child.x, child.y),
                    child_id=child.id,
                    parent_ids=record.parents,
                    hub_key=hub.key,
                )
            )
        elif len(record.parents) == 1 and record.parents[0] in nodes:
            parent = nodes[record.parents[0]]
            links.append(
                ChildLink(
                    source=(parent.x, parent.y),
                    target=(child.x, child.y),
                    child_id=child.id,
                    parent_ids=record.parents,
                )
            )
    return links


def spouse_connectors(
    nodes: dict[str, LaidOutNode],
    index: GraphIndex,
    hubs: dict[str, Hub],
    config: LayoutConfig,
) -> list[SpouseConnector]:
    """
    Bars between spouses, arches for configured pairs in multi-spouse rows,
    and union bars for co-parents who are not recorded as spouses.
    """
    pairs = [(nodes[a], nodes[b]) for a, b in index.spouse_pairs if a in nodes and b in nodes]

    same_row_degree: dict[str, int] = {}
    for a, b in pairs:
        if round(a.y) == round(b.y):
            same_row_degree[a.id] = same_row_degree.get(a.id, 0) + 1
            same_row_degree[b.id] = same_row_degree.get(b.id, 0) + 1

    connectors = []
    for a, b in pairs:
        multi = same_row_degree.get(a.id, 0) >= 2 or same_row_degree.get(b.id, 0) >= 2
        if multi and config.is_forced_arch(a.id, b.id):
            connectors.append(SpouseConnector("arch", a.id, b.id, a.x, a.y, b.x, a.y, height=config.arch_height))
        else:
            connectors.append(SpouseConnector("bar", a.id, b.id, a.x, a.y, b.x, b.y))

    spouse_keys = {pair_key(a.id, b.id) for a, b in pairs}
    for key, hub in hubs.items():
        if key in spouse_keys:
            continue
        a, b = nodes[hub.a_id], nodes[hub.b_id]
        connectors.append(SpouseConnector("union", a.id, b.id, a.x, hub.attach_y, b.x, hub.attach_y))
    return connectors


def build_links(nodes: dict[str, LaidOutNode], index: GraphIndex, config: LayoutConfig):
    """
    Edges from final node coordinates.

    Returns:
        (hubs, child links, spouse connectors)
    """
    hubs = compute_hubs(nodes, index)
    return hubs, child_links(nodes, index, hubs), spouse_connectors(nodes, index, hubs, config)
