"""Tests for JSON and GEDCOM loading."""

import json

from models import PARENT_CHILD, SPOUSE, Relationship
from parsing import assign_generations, load_family, load_json, person_from_dict, relationship_from_dict
from conftest import child_of, person, spouse

GEDCOM = """\
0 HEAD
1 SOUR TEST
1 GEDC
2 VERS 5.5.1
2 FORM LINEAGE-LINKED
1 CHAR UTF-8
0 @I1@ INDI
1 NAME John /Smith/
1 SEX M
1 BIRT
2 DATE 1 JAN 1900
0 @I2@ INDI
1 NAME Jane /Doe/
1 SEX F
0 @I3@ INDI
1 NAME Jim /Smith/
1 SEX M
1 FAMC @F1@
0 @F1@ FAM
1 HUSB @I1@
1 WIFE @I2@
1 CHIL @I3@
0 TRLR
"""


def test_person_from_camel_case_record():
    p = person_from_dict(
        {
            "id": 7,
            "firstName": "Ann",
            "lastName": "Lee",
            "gender": "female",
            "generation": "2",
            "parents": [1, 2],
            "spouses": "9",
            "birthDate": "1950-01-01",
        }
    )
    assert p.id == "7"
    assert p.gender == "F"
    assert p.generation == 2
    assert p.parents == ("1", "2")
    assert p.spouses == ("9",)
    assert p.children == ()


def test_bad_generation_is_treated_as_missing():
    assert person_from_dict({"id": "A", "generation": "old"}).generation is None


def test_relationship_records():
    assert relationship_from_dict({"type": "spouse", "personAId": "A", "personBId": "B"}) == spouse("A", "B")
    legacy = relationship_from_dict({"type": "parent-child", "childId": "C", "parentId": "A"})
    assert legacy.parent_ids == ("A",)
    assert relationship_from_dict({"type": "sibling"}) is None


def test_load_json_object_form(tmp_path):
    path = tmp_path / "family.json"
    path.write_text(
        json.dumps(
            {
                "people": [{"id": "A"}, {"id": "B"}, {"name": "no id"}],
                "relationships": [{"type": "parent-child", "childId": "B", "parents": ["A"]}],
            }
        )
    )
    people, relationships = load_json(path)
    assert [p.id for p in people] == ["A", "B"]
    assert relationships == [Relationship(type=PARENT_CHILD, child_id="B", parents=("A",))]


def test_load_json_with_separate_relationships(tmp_path):
    people_path = tmp_path / "people.json"
    people_path.write_text(json.dumps([{"id": "A"}, {"id": "B"}]))
    rel_path = tmp_path / "relationships.json"
    rel_path.write_text(json.dumps([{"type": "spouse", "personAId": "A", "personBId": "B"}]))
    people, relationships = load_family(people_path, rel_path)
    assert len(people) == 2
    assert relationships[0].type == SPOUSE


def test_read_gedcom(tmp_path):
    path = tmp_path / "family.ged"
    path.write_text(GEDCOM, encoding="utf-8")
    people, relationships = load_family(path)

    by_id = {p.id: p for p in people}
    assert sorted(by_id) == ["I1", "I2", "I3"]
    assert (by_id["I1"].first_name, by_id["I1"].last_name, by_id["I1"].gender) == ("John", "Smith", "M")
    assert "1900" in by_id["I1"].birth_date
    assert {pid: p.generation for pid, p in by_id.items()} == {"I1": 0, "I2": 0, "I3": 1}
    assert spouse("I1", "I2") in relationships
    assert child_of("I3", "I1", "I2") in relationships


def test_assign_generations_lifts_married_in_spouses():
    people = [person("A"), person("B"), person("C"), person("D")]
    relationships = [child_of("B", "A"), child_of("D", "B", "C"), spouse("B", "C")]
    generations = {p.id: p.generation for p in assign_generations(people, relationships)}
    assert generations == {"A": 0, "B": 1, "C": 1, "D": 2}


def test_assign_generations_keeps_given_values():
    people = [person("A", 5), person("B")]
    generations = {p.id: p.generation for p in assign_generations(people, [child_of("B", "A")])}
    assert generations == {"A": 5, "B": 1}


def test_assign_generations_gives_up_on_cycles():
    people = [person("A"), person("B")]
    assert assign_generations(people, [child_of("A", "B"), child_of("B", "A")]) == people
