"""Hierarchical tree layout with generation-aligned rows.

The tidy tree is the Buchheim/Walker linear-time variant of Reingold-Tilford:
a post-order walk computes preliminary x offsets and shifts overlapping
contours apart, and a pre-order walk accumulates modifiers into final x.
"""

import logging

import networkx as nx

from config import LayoutConfig
from graph import FOREST_ROOT
from models import LaidOutNode, generation_of

logger = logging.getLogger(__name__)


class _TidyNode:
    __slots__ = (
        "slot",
        "parent",
        "children",
        "index",
        "default_ancestor",
        "ancestor",
        "thread",
        "prelim",
        "mod",
        "change",
        "shift",
    )

    def __init__(self, slot, index=0):
        self.slot = slot
        self.parent = None
        self.children = []
        self.index = index
        self.default_ancestor = None
        self.ancestor = self
        self.thread = None
        self.prelim = 0.0
        self.mod = 0.0
        self.change = 0.0
        self.shift = 0.0


def _next_left(v):
    return v.children[0] if v.children else v.thread


def _next_right(v):
    return v.children[-1] if v.children else v.thread


def _move_subtree(wm, wp, shift):
    change = shift / (wp.index - wm.index)
    wp.change -= change
    wp.shift += shift
    wm.change += change
    wp.prelim += shift
    wp.mod += shift


def _execute_shifts(v):
    shift = 0.0
    change = 0.0
    for w in reversed(v.children):
        w.prelim += shift
        w.mod += shift
        change += w.change
        shift += w.shift + change


def _next_ancestor(vim, v, ancestor):
    return vim.ancestor if vim.ancestor.parent is v.parent else ancestor


def _apportion(v, w, ancestor, separation):
    if w is None:
        return ancestor
    vip = vop = v
    vim = w
    vom = vip.parent.children[0]
    sip, sop, sim, som = vip.mod, vop.mod, vim.mod, vom.mod
    while True:
        vim = _next_right(vim)
        vip = _next_left(vip)
        if vim is None or vip is None:
            break
        vom = _next_left(vom)
        vop = _next_right(vop)
        vop.ancestor = v
        shift = vim.prelim + sim - vip.prelim - sip + separation(vim.slot, vip.slot)
        if shift > 0:
            _move_subtree(_next_ancestor(vim, v, ancestor), v, shift)
            sip += shift
            sop += shift
        sim += vim.mod
        sip += vip.mod
        som += vom.mod
        sop += vop.mod
    if vim is not None and _next_right(vop) is None:
        vop.thread = vim
        vop.mod += sim - sop
    if vip is not None and _next_left(vom) is None:
        vom.thread = vip
        vom.mod += sip - som
        ancestor = v
    return ancestor


def _first_walk(v, separation):
    siblings = v.parent.children
    w = siblings[v.index - 1] if v.index else None
    if v.children:
        _execute_shifts(v)
        midpoint = (v.children[0].prelim + v.children[-1].prelim) / 2
        if w is not None:
            v.prelim = w.prelim + separation(v.slot, w.slot)
            v.mod = v.prelim - midpoint
        else:
            v.prelim = midpoint
    elif w is not None:
        v.prelim = w.prelim + separation(v.slot, w.slot)
    v.parent.default_ancestor = _apportion(
        v, w, v.parent.default_ancestor or siblings[0], separation
    )


def tidy_tree(tree: nx.DiGraph, root, separation) -> dict:
    """
    Compute x offsets (in node-size units) for every node of a rooted tree.

    Args:
        tree: DiGraph whose successor order gives left-to-right child order
        root: the root node of `tree`
        separation: callable(a, b) -> minimum distance between neighbours a, b

    Returns:
        Mapping node -> x, with the root at 0.
    """
    wrapped = {root: _TidyNode(root)}
    order = [wrapped[root]]
    for u, v in nx.bfs_edges(tree, root):
        parent = wrapped[u]
        node = _TidyNode(v, len(parent.children))
        node.parent = parent
        parent.children.append(node)
        wrapped[v] = node
        order.append(node)

    top = _TidyNode(None)
    top.children = [wrapped[root]]
    wrapped[root].parent = top

    # Post-order, left to right: left siblings are final before their neighbours
    for slot in nx.dfs_postorder_nodes(tree, root):
        _first_walk(wrapped[slot], separation)
    top.mod = -wrapped[root].prelim

    xs = {}
    for node in order:
        xs[node.slot] = node.prelim + node.parent.mod
        node.mod += node.parent.mod
    return xs


def _leaf_counts(forest: nx.DiGraph) -> dict:
    counts = {}
    for slot in reversed(list(nx.dfs_preorder_nodes(forest, FOREST_ROOT))):
        children = list(forest.successors(slot))
        counts[slot] = sum(counts[c] for c in children) if children else 1
    return counts


def make_separation(forest: nx.DiGraph, config: LayoutConfig):
    """
    Separation between two neighbouring forest nodes.

    Grows with the leaves under both nodes and with depth, where the depth
    term is capped at `narrow_depth_span` so wide trees stay compact.
    """
    leaves = _leaf_counts(forest)
    parent = {v: u for u, v in forest.edges()}

    def separation(a, b) -> float:
        depth = max(forest.nodes[a]["depth"], forest.nodes[b]["depth"])
        base = config.sibling_separation if parent.get(a) == parent.get(b) else config.cousin_separation
        leaf_factor = config.leaf_spread * (leaves[a] + leaves[b])
        return (base + leaf_factor) * (1 + min(depth, config.narrow_depth_span) * config.depth_spread)

    return separation


def layout_forest(forest: nx.DiGraph, config: LayoutConfig) -> dict[str, LaidOutNode]:
    """
    Initial coordinates for every person in the forest.

    x comes from the tidy tree scaled by `gap_x`; y from forest depth scaled
    by `gap_y` (overwritten later by `snap_to_generations`). A person reached
    more than once keeps their first breadth-first placement.

    Returns:
        Mapping person id -> LaidOutNode, in breadth-first order.
    """
    xs = tidy_tree(forest, FOREST_ROOT, make_separation(forest, config))
    nodes: dict[str, LaidOutNode] = {}
    for _, slot in nx.bfs_edges(forest, FOREST_ROOT):
        data = forest.nodes[slot]
        person_id = data["person_id"]
        if person_id in nodes:
            logger.debug("Skipping repeated forest placement of %s", person_id)
            continue
        nodes[person_id] = LaidOutNode(
            id=person_id,
            person=data["person"],
            x=xs[slot] * config.gap_x,
            y=data["depth"] * config.gap_y,
            depth=data["depth"],
        )
    return nodes


def snap_to_generations(nodes: dict[str, LaidOutNode], config: LayoutConfig):
    """Put every person on the row of their generation: y = generation * gap_y."""
    for node in nodes.values():
        node.y = generation_of(node.person) * config.gap_y


def group_rows(nodes) -> dict[float, list[LaidOutNode]]:
    """Nodes grouped by row (identical y), in their current order."""
    rows: dict[float, list[LaidOutNode]] = {}
    for node in nodes:
        rows.setdefault(round(node.y, 6), []).append(node)
    return rows


def narrow_rows(nodes: dict[str, LaidOutNode], config: LayoutConfig):
    """Squeeze upper rows towards their centre so the drawing reads vertically."""
    span = config.narrow_depth_span or 4
    s0 = config.narrow_scale_start
    for y, row in group_rows(nodes.values()).items():
        center = sum(n.x for n in row) / len(row)
        gen = round(y / config.gap_y)
        t = max(0.0, min(1.0, gen / span))
        scale = s0 + (1 - s0) * t
        for node in row:
            node.x = center + (node.x - center) * scale
