"""NetworkX graph building: relationship index and layout forest."""

from functools import cached_property
import logging

import networkx as nx

from models import (
    PARENT_CHILD,
    PARENT_OF,
    SPOUSE,
    SPOUSE_OF,
    ParentSet,
    Person,
    Relationship,
    generation_of,
    pair_key,
)

logger = logging.getLogger(__name__)

FOREST_ROOT = 0
ROOT_ID = "__root__"


class GraphIndex:
    """
    Lookup structures over one set of people and relationships.

    Holds the person-by-id mapping, the spouse pairs (declaration order, keyed
    by `pair_key`), the normalized parent-child records and the merged
    child -> parents mapping. Relationships naming unknown people contribute
    nothing. The index is built once and never mutated afterwards.
    """

    def __init__(self, people: list[Person], relationships: list[Relationship]):
        self.people_by_id: dict[str, Person] = {}
        for person in people:
            self.people_by_id.setdefault(person.id, person)

        self.spouse_pairs: list[tuple[str, str]] = []
        self._spouse_keys: set[str] = set()
        self.parent_sets: list[ParentSet] = []
        self.parents_of: dict[str, list[str]] = {}
        self.children_of: dict[str, list[str]] = {}

        self._index_relationships(relationships)
        self._index_embedded()

    def __contains__(self, person_id: str) -> bool:
        return person_id in self.people_by_id

    def _add_spouses(self, a: str | None, b: str | None):
        if a not in self.people_by_id or b not in self.people_by_id or a == b:
            return
        key = pair_key(a, b)
        if key in self._spouse_keys:
            return
        self._spouse_keys.add(key)
        self.spouse_pairs.append((a, b))

    def _add_parents(self, child_id: str, parents: list[str]):
        merged = self.parents_of.setdefault(child_id, [])
        for parent in parents:
            if parent not in merged:
                merged.append(parent)
            siblings = self.children_of.setdefault(parent, [])
            if child_id not in siblings:
                siblings.append(child_id)

    def _index_relationships(self, relationships: list[Relationship]):
        seen: set[tuple[str, str]] = set()
        for rel in relationships:
            if rel.type == SPOUSE:
                self._add_spouses(rel.person_a_id, rel.person_b_id)
            elif rel.type == PARENT_CHILD:
                if rel.child_id not in self.people_by_id:
                    logger.debug("Dropping parent-child record for unknown child %s", rel.child_id)
                    continue
                # De-duplicate parents while preserving order
                parents = [
                    p
                    for p in dict.fromkeys(rel.parent_ids)
                    if p in self.people_by_id and p != rel.child_id
                ]
                if not parents:
                    logger.debug("Dropping parent-child record without known parents: %s", rel)
                    continue
                record = ParentSet(rel.child_id, tuple(parents))
                if (record.child_id, record.key) in seen:
                    continue
                seen.add((record.child_id, record.key))
                self.parent_sets.append(record)
                self._add_parents(rel.child_id, parents)
            else:
                logger.debug("Ignoring relationship of unknown type %r", rel.type)

    def _index_embedded(self):
        """Merge parents/children/spouses arrays carried on Person records."""
        embedded: dict[str, list[str]] = {}
        # A child's own parents array comes before other people's children arrays
        for person in self.people_by_id.values():
            for parent in person.parents:
                if parent in self.people_by_id and parent != person.id:
                    embedded.setdefault(person.id, []).append(parent)
        for person in self.people_by_id.values():
            for child in person.children:
                if child in self.people_by_id and child != person.id:
                    embedded.setdefault(child, []).append(person.id)
            for spouse in person.spouses:
                self._add_spouses(person.id, spouse)

        recorded = {record.child_id for record in self.parent_sets}
        for child_id, parents in embedded.items():
            parents = list(dict.fromkeys(parents))
            if child_id not in recorded:
                self.parent_sets.append(ParentSet(child_id, tuple(parents)))
            self._add_parents(child_id, parents)

    def is_spouse_pair(self, a: str, b: str) -> bool:
        return pair_key(a, b) in self._spouse_keys

    def shares_parent(self, a: str, b: str) -> bool:
        return bool(set(self.parents_of.get(a, ())) & set(self.parents_of.get(b, ())))

    def is_parent(self, parent_id: str, child_id: str) -> bool:
        return parent_id in self.parents_of.get(child_id, ())

    def gender_of(self, person_id: str) -> str | None:
        person = self.people_by_id.get(person_id)
        return person.gender if person else None

    @cached_property
    def kinship_graph(self) -> nx.Graph:
        """Undirected graph of every spouse pair and every declared parent-child pair."""
        G = nx.Graph()
        G.add_nodes_from(self.people_by_id)
        for a, b in self.spouse_pairs:
            G.add_edge(a, b, relationship_type=SPOUSE_OF)
        for child_id, parents in self.parents_of.items():
            for parent in parents:
                G.add_edge(parent, child_id, relationship_type=PARENT_OF)
        return G

    @cached_property
    def lineage_graph(self) -> nx.DiGraph:
        """Directed child -> parent graph over all declared parents."""
        G = nx.DiGraph()
        G.add_nodes_from(self.people_by_id)
        for child_id, parents in self.parents_of.items():
            for parent in parents:
                G.add_edge(child_id, parent)
        return G


def _root_sort_key(person: Person) -> tuple:
    return (
        generation_of(person),
        (person.last_name or "").lower(),
        (person.first_name or "").lower(),
    )


def find_roots(index: GraphIndex, structural_parent: dict[str, str]) -> list[str]:
    """People who are nobody's structural child, ordered for layout."""
    roots = [p for p in index.people_by_id.values() if p.id not in structural_parent]
    if not roots and index.people_by_id:
        min_gen = min(generation_of(p) for p in index.people_by_id.values())
        roots = [p for p in index.people_by_id.values() if generation_of(p) == min_gen]
        logger.debug("No roots found; falling back to generation %s (%d people)", min_gen, len(roots))
    return [p.id for p in sorted(roots, key=_root_sort_key)]


def build_forest(index: GraphIndex) -> nx.DiGraph:
    """
    Reduce the multi-parent relationship graph to a single-parent forest.

    A child hangs under the first existing parent of its first parent-child
    record, so every person has at most one structural parent. Spouse
    relationships never become structural edges. All roots are bound under a
    synthetic root node (`FOREST_ROOT`, person None).

    Forest nodes are integer slots numbered in depth-first order, carrying
    `person_id`, `person` and `depth` attributes. Children keep edge-insertion
    order. A child that already appears on the current root-to-node path is
    not descended into, which ends that branch at a childless leaf.

    Returns:
        A networkx DiGraph that is a tree rooted at `FOREST_ROOT`.
    """
    structural_parent: dict[str, str] = {}
    children_by_parent: dict[str, list[str]] = {}
    for record in index.parent_sets:
        chosen = structural_parent.setdefault(record.child_id, record.parents[0])
        # Later records for the same child only feed kinship, never the forest
        if chosen != record.parents[0]:
            continue
        kids = children_by_parent.setdefault(chosen, [])
        if record.child_id not in kids:
            kids.append(record.child_id)

    forest = nx.DiGraph()
    forest.add_node(FOREST_ROOT, person_id=ROOT_ID, person=None, depth=0)

    # (parent slot, person id, ids already on the path above this node)
    stack = [(FOREST_ROOT, root_id, frozenset()) for root_id in reversed(find_roots(index, structural_parent))]
    next_slot = FOREST_ROOT + 1
    while stack:
        parent_slot, person_id, path = stack.pop()
        slot = next_slot
        next_slot += 1
        forest.add_node(
            slot,
            person_id=person_id,
            person=index.people_by_id.get(person_id),
            depth=forest.nodes[parent_slot]["depth"] + 1,
        )
        forest.add_edge(parent_slot, slot)

        path = path | {person_id}
        children = []
        for child_id in children_by_parent.get(person_id, ()):
            if child_id in path:
                logger.debug("Cycle at %s -> %s; truncating branch", person_id, child_id)
                continue
            children.append(child_id)
        for child_id in reversed(children):
            stack.append((slot, child_id, path))

    return forest
