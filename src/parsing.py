"""Loading people and relationships from JSON and GEDCOM files."""

from dataclasses import replace
import json
import logging
from pathlib import Path

from ged4py import GedcomReader
import networkx as nx

from models import PARENT_CHILD, SPOUSE, Person, Relationship

logger = logging.getLogger(__name__)

GENDERS = {"M": "M", "MALE": "M", "F": "F", "FEMALE": "F"}


def _ids(values) -> tuple[str, ...]:
    if not values:
        return ()
    if isinstance(values, (str, int)):
        values = [values]
    return tuple(str(v) for v in values if v not in (None, ""))


def _id(value) -> str | None:
    return str(value) if value not in (None, "") else None


def _generation(value) -> int | None:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def person_from_dict(data: dict) -> Person:
    """Build a Person from a camelCase record like those in people.json."""
    gender = data.get("gender")
    return Person(
        id=str(data["id"]),
        first_name=data.get("firstName"),
        last_name=data.get("lastName"),
        gender=GENDERS.get(str(gender).upper()) if gender else None,
        generation=_generation(data.get("generation")),
        parents=_ids(data.get("parents")),
        spouses=_ids(data.get("spouses")),
        children=_ids(data.get("children")),
        birth_date=data.get("birthDate"),
        death_date=data.get("deathDate"),
    )


def relationship_from_dict(data: dict) -> Relationship | None:
    """Build a Relationship record; unknown types give None."""
    rel_type = data.get("type")
    if rel_type == SPOUSE:
        return Relationship(
            type=SPOUSE,
            person_a_id=_id(data.get("personAId")),
            person_b_id=_id(data.get("personBId")),
        )
    if rel_type == PARENT_CHILD:
        return Relationship(
            type=PARENT_CHILD,
            child_id=_id(data.get("childId")),
            parent_id=_id(data.get("parentId")),
            parents=_ids(data.get("parents")),
        )
    logger.debug("Skipping relationship record of type %r", rel_type)
    return None


def load_json(people_path: Path, relationships_path: Path | None = None) -> tuple[list[Person], list[Relationship]]:
    """
    Read people (and optionally relationships) from JSON.

    The people file is either a list of person records, or an object with
    "people" and "relationships" lists. A separate relationships file holds a
    list of relationship records.
    """
    with open(people_path, encoding="utf-8") as f:
        data = json.load(f)

    if isinstance(data, dict):
        people_data = data.get("people", [])
        relationship_data = data.get("relationships", [])
    else:
        people_data, relationship_data = data, []

    if relationships_path is not None:
        with open(relationships_path, encoding="utf-8") as f:
            relationship_data = list(relationship_data) + list(json.load(f))

    people = [person_from_dict(p) for p in people_data if p.get("id") is not None]
    relationships = [r for r in (relationship_from_dict(d) for d in relationship_data) if r is not None]
    return people, relationships


def _xref(xref_id: str) -> str:
    """'@I123@' -> 'I123'."""
    return xref_id.strip("@")


def extract_name_parts(indi) -> tuple[str | None, str | None]:
    """Extract given name and surname from an individual record."""
    name_rec = indi.sub_tag("NAME")
    if name_rec is None or name_rec.value is None:
        return (None, None)

    # ged4py returns NAME as tuple: (given, surname, suffix)
    if isinstance(name_rec.value, tuple):
        given, surname, _ = name_rec.value
        return (given or None, surname or None)

    # Fallback: string format "Given /Surname/"
    givn = name_rec.sub_tag("GIVN")
    surn = name_rec.sub_tag("SURN")
    given = givn.value if givn else str(name_rec.value).split("/")[0].strip()
    return (given or None, surn.value if surn else None)


def extract_event_date(indi, tag: str) -> str | None:
    """Date of an event tag (BIRT, DEAT, ...) as text."""
    event = indi.sub_tag(tag)
    if event is None:
        return None
    date_rec = event.sub_tag("DATE")
    # ged4py may return DateValue objects
    return str(date_rec.value) if date_rec and date_rec.value else None


def read_gedcom(filepath: Path) -> tuple[list[Person], list[Relationship]]:
    """
    Extract people and relationships from a GEDCOM file.

    Each FAM record yields a spouse relationship for HUSB/WIFE and one
    parent-child relationship per CHIL listing both parents. Generations are
    assigned with `assign_generations`.
    """
    people: list[Person] = []
    relationships: list[Relationship] = []

    with GedcomReader(str(filepath)) as reader:
        for rec in reader.records0("INDI"):
            if rec.xref_id is None:
                continue
            given, surname = extract_name_parts(rec)
            sex = rec.sub_tag("SEX")
            people.append(
                Person(
                    id=_xref(rec.xref_id),
                    first_name=given,
                    last_name=surname,
                    gender=GENDERS.get(str(sex.value).upper()) if sex and sex.value else None,
                    birth_date=extract_event_date(rec, "BIRT"),
                    death_date=extract_event_date(rec, "DEAT"),
                )
            )

        for rec in reader.records0("FAM"):
            husb = rec.sub_tag("HUSB")
            wife = rec.sub_tag("WIFE")
            parents = tuple(_xref(p.xref_id) for p in (husb, wife) if p is not None and p.xref_id)

            if len(parents) == 2:
                relationships.append(Relationship(type=SPOUSE, person_a_id=parents[0], person_b_id=parents[1]))
            for child in rec.sub_tags("CHIL"):
                if child.xref_id and parents:
                    relationships.append(Relationship(type=PARENT_CHILD, child_id=_xref(child.xref_id), parents=parents))

    return assign_generations(people, relationships), relationships


def assign_generations(people: list[Person], relationships: list[Relationship]) -> list[Person]:
    """
    Fill in missing generation numbers from the parent-child structure.

    People are layered so every child sits below all of its parents; people
    without parents take the generation of a spouse that has one. Cyclic data
    is left untouched.
    """
    G = nx.DiGraph()
    G.add_nodes_from(p.id for p in people)
    has_parents = set()
    for rel in relationships:
        if rel.type == PARENT_CHILD and rel.child_id in G:
            for parent in rel.parent_ids:
                if parent in G:
                    G.add_edge(parent, rel.child_id)
                    has_parents.add(rel.child_id)

    try:
        layers = {pid: gen for gen, layer in enumerate(nx.topological_generations(G)) for pid in layer}
    except nx.NetworkXUnfeasible:
        logger.warning("Parent-child cycle found; generations left unassigned")
        return people

    # Married-in people without recorded parents join their spouse's row
    for rel in relationships:
        if rel.type != SPOUSE or rel.person_a_id not in layers or rel.person_b_id not in layers:
            continue
        a, b = rel.person_a_id, rel.person_b_id
        if a not in has_parents and b in has_parents:
            layers[a] = max(layers[a], layers[b])
        elif b not in has_parents and a in has_parents:
            layers[b] = max(layers[b], layers[a])

    return [p if p.generation is not None else replace(p, generation=layers.get(p.id)) for p in people]


def load_family(path: Path, relationships_path: Path | None = None) -> tuple[list[Person], list[Relationship]]:
    """Load a family from a .json or .ged file."""
    path = Path(path)
    if path.suffix.lower() in (".ged", ".gedcom"):
        return read_gedcom(path)
    return load_json(path, relationships_path)
