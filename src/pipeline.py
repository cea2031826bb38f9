"""One synchronous layout pass from people and relationships to a Scene."""

from collections.abc import Mapping
import logging

from collisions import resolve_collisions
from config import LayoutConfig, resolve_config
from graph import GraphIndex, build_forest
from layout import layout_forest, narrow_rows, snap_to_generations
from links import build_links
from models import Person, Relationship, Scene
from positioning import child_anchors, compute_hubs, place_sibling_groups, pull_spouses

logger = logging.getLogger(__name__)


def build_scene(
    people: list[Person],
    relationships: list[Relationship],
    config: LayoutConfig | Mapping | None = None,
    index: GraphIndex | None = None,
) -> Scene:
    """
    Lay out a family network.

    Every call builds its own index, forest and node maps, so identical input
    and configuration always give identical coordinates.

    Args:
        people: Person records
        relationships: spouse and parent-child records
        config: a LayoutConfig, or a mapping of overrides for the defaults
        index: a prebuilt GraphIndex over the same people and relationships

    Returns:
        A Scene with positioned nodes, child links, spouse connectors and hubs.
    """
    config = resolve_config(config)
    if index is None:
        index = GraphIndex(people, relationships)

    forest = build_forest(index)
    nodes = layout_forest(forest, config)
    snap_to_generations(nodes, config)
    narrow_rows(nodes, config)

    pull_spouses(nodes, index, config)
    place_sibling_groups(nodes, index, config)
    anchors = child_anchors(nodes, index, compute_hubs(nodes, index))

    rows = resolve_collisions(nodes, index, anchors, config)
    hubs, links, connectors = build_links(nodes, index, config)

    logger.info(
        "Laid out %d people: %d child links, %d spouse connectors, %d rows",
        len(nodes),
        len(links),
        len(connectors),
        len(rows),
    )
    return Scene(
        nodes=list(nodes.values()),
        child_links=links,
        connectors=connectors,
        hubs=hubs,
        rows=rows,
    )
