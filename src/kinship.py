"""Shortest relationship paths and kinship labels."""

from enum import Enum
import logging

import networkx as nx

from graph import GraphIndex
from models import SPOUSE_OF, KinshipResult

logger = logging.getLogger(__name__)

NO_PATH_LABEL = "No relationship path"

ORDINALS = [
    "zeroth",
    "first",
    "second",
    "third",
    "fourth",
    "fifth",
    "sixth",
    "seventh",
    "eighth",
    "ninth",
    "tenth",
]


def ordinal(n: int) -> str:
    """1 -> 'first', 12 -> '12th', 22 -> '22nd'."""
    if 0 <= n < len(ORDINALS):
        return ORDINALS[n]
    if 10 <= n % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix}"


def _gendered(gender: str | None, male: str, female: str, neutral: str) -> str:
    if gender == "M":
        return male
    if gender == "F":
        return female
    return neutral


def find_path(index: GraphIndex, source_id: str, target_id: str) -> list[str] | None:
    """
    First-discovered shortest path between two people.

    Breadth-first search over the undirected kinship graph (spouse pairs and
    all declared parent-child pairs). Returns None when either person is
    unknown or the two are not connected.
    """
    G = index.kinship_graph
    if source_id not in G or target_id not in G:
        return None
    if source_id == target_id:
        return [source_id]

    predecessor = {source_id: None}
    for u, v in nx.bfs_edges(G, source_id):
        predecessor[v] = u
        if v == target_id:
            break
    else:
        return None

    path = [target_id]
    while predecessor[path[-1]] is not None:
        path.append(predecessor[path[-1]])
    path.reverse()
    return path


def is_spouse_hop(index: GraphIndex, a: str, b: str) -> bool:
    data = index.kinship_graph.get_edge_data(a, b) or {}
    return data.get("relationship_type") == SPOUSE_OF


def ancestor_distances(index: GraphIndex, person_id: str) -> dict[str, int]:
    """Generational distance to every ancestor, the person included at 0, in BFS order."""
    G = index.lineage_graph
    if person_id not in G:
        return {person_id: 0}
    return nx.single_source_shortest_path_length(G, person_id)


def nearest_common_ancestor(index: GraphIndex, a: str, b: str) -> tuple[str, int, int] | None:
    """
    Ancestor minimizing the summed distance from both people.

    Returns:
        (ancestor id, distance from a, distance from b), or None if the two
        share no ancestor. Ties keep the first ancestor found from `a`.
    """
    from_a = ancestor_distances(index, a)
    from_b = ancestor_distances(index, b)
    best = None
    for ancestor, da in from_a.items():
        db = from_b.get(ancestor)
        if db is None:
            continue
        if best is None or da + db < best[1] + best[2]:
            best = (ancestor, da, db)
    return best


def _great(n: int, word: str) -> str:
    return f"{n}x great-{word}" if n > 0 else word


def lineage_label(index: GraphIndex, a: str, b: str) -> str | None:
    """What b is to a by blood, or None without a common ancestor."""
    common = nearest_common_ancestor(index, a, b)
    if common is None:
        return None
    _, da, db = common

    if da == 0 or db == 0:
        n = da + db
        kind = "parent" if db == 0 else "child"
        if n == 1:
            return kind
        if n == 2:
            return f"grand{kind}"
        return _great(n - 2, f"grand{kind}")

    if da == 1 and db == 1:
        return "siblings"

    if db == 1:
        word = _gendered(index.gender_of(b), "uncle", "aunt", "aunt/uncle")
        return _great(da - 2, word)
    if da == 1:
        word = _gendered(index.gender_of(b), "nephew", "niece", "niece/nephew")
        return _great(db - 2, word)

    label = f"{ordinal(min(da, db) - 1)} cousin"
    removed = abs(da - db)
    if removed == 1:
        label += " once removed"
    elif removed > 1:
        label += f" {removed} times removed"
    return label


def in_law_label(index: GraphIndex, path: list[str]) -> str | None:
    """
    Sibling-in-law and parent-in-law checks on the marriage hop at either end.

    For an endpoint whose first hop is a spouse edge: if that spouse shares a
    parent with the far endpoint, the endpoint is a brother-/sister-in-law; if
    the far endpoint is a parent of that spouse, the far endpoint is the
    mother-/father-in-law.

    The label names the in-law pair, not the second person: it reads the same
    whichever end the query starts from.
    """
    if len(path) < 3:
        return None
    a, b = path[0], path[-1]
    ends = [(a, path[1], b), (b, path[-2], a)]
    ends = [(near, spouse, far) for near, spouse, far in ends if is_spouse_hop(index, near, spouse)]

    for near, spouse, far in ends:
        if spouse != far and index.shares_parent(spouse, far):
            return _gendered(index.gender_of(near), "brother-in-law", "sister-in-law", "sibling-in-law")
    for near, spouse, far in ends:
        if index.is_parent(far, spouse):
            return _gendered(index.gender_of(far), "father-in-law", "mother-in-law", "parent-in-law")
    return None


def classify_path(index: GraphIndex, path: list[str]) -> str:
    """Kinship label for a path from path[0] to path[-1]."""
    a, b = path[0], path[-1]
    if a == b:
        return "self"
    if len(path) == 2 and is_spouse_hop(index, a, b):
        return "spouse"

    label = in_law_label(index, path)
    if label:
        return label

    via_marriage = any(is_spouse_hop(index, u, v) for u, v in zip(path, path[1:]))
    label = lineage_label(index, a, b)
    if label is None and via_marriage:
        # Stand the spouse in for an endpoint married into the family
        near_a = path[1] if is_spouse_hop(index, path[0], path[1]) else a
        near_b = path[-2] if is_spouse_hop(index, path[-2], path[-1]) else b
        if near_a != near_b:
            label = lineage_label(index, near_a, near_b)

    if label is None:
        return "related by marriage" if via_marriage else "related (no common ancestor)"
    return f"{label} (via marriage)" if via_marriage else label


def compare(index: GraphIndex, source_id: str, target_id: str) -> KinshipResult:
    """Shortest path and kinship label between two people."""
    path = find_path(index, source_id, target_id)
    if path is None:
        logger.debug("No relationship path between %s and %s", source_id, target_id)
        return KinshipResult(source_id, target_id, [], NO_PATH_LABEL, found=False)
    return KinshipResult(source_id, target_id, path, classify_path(index, path))


class KinshipState(Enum):
    IDLE = "idle"
    SINGLE_SELECTED = "single-selected"
    PATH_DISPLAYED = "path-displayed"


class KinshipSession:
    """
    Selection state for relationship queries.

    idle -> select -> single-selected -> compare -> path-displayed. Selecting a
    new primary person clears the displayed path. A compare that is overtaken
    by another selection while it runs is dropped.
    """

    def __init__(self, index: GraphIndex):
        self.index = index
        self.state = KinshipState.IDLE
        self.primary_id: str | None = None
        self.result: KinshipResult | None = None
        self._generation = 0

    def select(self, person_id: str):
        self._generation += 1
        self.primary_id = person_id
        self.result = None
        self.state = KinshipState.SINGLE_SELECTED

    def compare(self, person_id: str) -> KinshipResult | None:
        """
        Relate `person_id` to the primary selection.

        With nothing selected yet this acts as a plain selection and returns
        None.
        """
        if self.primary_id is None:
            self.select(person_id)
            return None
        self._generation += 1
        ticket = self._generation
        result = compare(self.index, self.primary_id, person_id)
        if ticket != self._generation:
            return None
        self.result = result
        self.state = KinshipState.PATH_DISPLAYED
        return result

    def clear(self):
        self._generation += 1
        self.primary_id = None
        self.result = None
        self.state = KinshipState.IDLE
