"""Data classes for people, relationships and laid-out drawing elements."""

from dataclasses import dataclass, field

SPOUSE = "spouse"
PARENT_CHILD = "parent-child"

# Edge tags on the networkx graphs built by graph.GraphIndex
SPOUSE_OF = "SPOUSE_OF"
PARENT_OF = "PARENT_OF"


def pair_key(a: str, b: str) -> str:
    """Order-independent key for an unordered pair of person ids."""
    x, y = sorted([str(a), str(b)])
    return f"{x}|{y}"


@dataclass
class Person:
    id: str
    first_name: str | None = None
    last_name: str | None = None
    gender: str | None = None  # "M", "F" or None
    generation: int | None = None
    parents: tuple[str, ...] = ()
    spouses: tuple[str, ...] = ()
    children: tuple[str, ...] = ()
    birth_date: str | None = None
    death_date: str | None = None

    @property
    def full_name(self) -> str:
        name = " ".join(p for p in [self.first_name, self.last_name] if p).strip()
        return name or self.id or "Unknown"


def generation_of(person: Person | None) -> int:
    """Generation number of a person; absent or unparsable values count as 0."""
    if person is None or person.generation is None:
        return 0
    try:
        return int(person.generation)
    except (TypeError, ValueError):
        return 0


@dataclass
class Relationship:
    type: str  # SPOUSE or PARENT_CHILD
    person_a_id: str | None = None
    person_b_id: str | None = None
    child_id: str | None = None
    parent_id: str | None = None  # legacy single-parent form
    parents: tuple[str, ...] = ()

    @property
    def parent_ids(self) -> tuple[str, ...]:
        if self.parents:
            return tuple(self.parents)
        if self.parent_id:
            return (self.parent_id,)
        return ()


@dataclass(frozen=True)
class ParentSet:
    """A child and the declared parents of one parent-child record that exist."""

    child_id: str
    parents: tuple[str, ...]

    @property
    def key(self) -> str:
        return "|".join(sorted(self.parents))


@dataclass
class LaidOutNode:
    id: str
    person: Person | None
    x: float = 0.0
    y: float = 0.0
    depth: int = 0


@dataclass
class Hub:
    """Union point of a two-parent couple."""

    key: str
    a_id: str
    b_id: str
    x: float
    attach_y: float


@dataclass
class Unit:
    """Atomic placement group in a row: single person, couple or cluster."""

    kind: str  # "single", "couple" or "cluster"
    members: list[LaidOutNode]
    center: LaidOutNode | None = None
    anchor: float = 0.0
    width: float = 0.0

    @property
    def left_edge(self) -> float:
        return self.members[0].x

    @property
    def right_edge(self) -> float:
        return self.members[-1].x

    @property
    def ids(self) -> list[str]:
        return [n.id for n in self.members]


@dataclass
class ChildLink:
    source: tuple[float, float]
    target: tuple[float, float]
    child_id: str
    parent_ids: tuple[str, ...]
    hub_key: str | None = None

    def curve(self) -> list[tuple[float, float]]:
        """Control points of a vertical cubic connector from source to target."""
        (sx, sy), (tx, ty) = self.source, self.target
        my = (sy + ty) / 2
        return [(sx, sy), (sx, my), (tx, my), (tx, ty)]


@dataclass
class SpouseConnector:
    kind: str  # "bar", "arch" or "union"
    a_id: str
    b_id: str
    x1: float
    y1: float
    x2: float
    y2: float
    height: float = 0.0

    @property
    def key(self) -> str:
        return pair_key(self.a_id, self.b_id)

    def curve(self) -> list[tuple[float, float]]:
        """Control points; arches rise `height` above the row (y grows downwards)."""
        if self.kind != "arch":
            return [(self.x1, self.y1), (self.x2, self.y2)]
        top = self.y1 - self.height
        return [(self.x1, self.y1), (self.x1, top), (self.x2, top), (self.x2, self.y2)]


@dataclass
class Scene:
    """Everything a drawing surface needs: positioned nodes and edges."""

    nodes: list[LaidOutNode]
    child_links: list[ChildLink] = field(default_factory=list)
    connectors: list[SpouseConnector] = field(default_factory=list)
    hubs: dict[str, Hub] = field(default_factory=dict)
    rows: dict[float, list[Unit]] = field(default_factory=dict)

    def node(self, person_id: str) -> LaidOutNode | None:
        for n in self.nodes:
            if n.id == person_id:
                return n
        return None

    def extent(self) -> tuple[float, float, float, float]:
        """(min_x, min_y, max_x, max_y) over nodes and connectors.

        Raises:
            ValueError: if there is nothing to measure.
        """
        xs = [n.x for n in self.nodes]
        ys = [n.y for n in self.nodes]
        for c in self.connectors:
            for x, y in c.curve():
                xs.append(x)
                ys.append(y)
        if not xs:
            raise ValueError("Scene has no nodes")
        return min(xs), min(ys), max(xs), max(ys)


@dataclass
class KinshipResult:
    source_id: str
    target_id: str
    path: list[str]
    label: str
    found: bool = True

    @property
    def edges(self) -> list[tuple[str, str]]:
        return list(zip(self.path, self.path[1:]))

    @property
    def edge_keys(self) -> set[str]:
        return {pair_key(a, b) for a, b in self.edges}
