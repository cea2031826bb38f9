import matplotlib

matplotlib.use("Agg")

import pytest

from models import PARENT_CHILD, SPOUSE, Person, Relationship


def spouse(a, b):
    return Relationship(type=SPOUSE, person_a_id=a, person_b_id=b)


def child_of(child, *parents):
    return Relationship(type=PARENT_CHILD, child_id=child, parents=tuple(parents))


def person(pid, gen=None, gender=None, first=None, last="Doe", **kwargs):
    return Person(id=pid, first_name=first or pid, last_name=last, gender=gender, generation=gen, **kwargs)


@pytest.fixture
def family():
    """
    Three generations plus one great-grandchild.

        GP1 = GP2
          |
      +---+-----------+
      P1 = S1         P2 = S2
      |               |
      C1              C2
                      |
                      D1
    """
    people = [
        person("GP1", 0, "M"),
        person("GP2", 0, "F"),
        person("P1", 1, "M"),
        person("P2", 1, "F"),
        person("S1", 1, "F", last="Smith"),
        person("S2", 1, "M", last="Jones"),
        person("C1", 2, "F"),
        person("C2", 2, "M", last="Jones"),
        person("D1", 3, "F", last="Jones"),
    ]
    relationships = [
        spouse("GP1", "GP2"),
        spouse("P1", "S1"),
        spouse("P2", "S2"),
        child_of("P1", "GP1", "GP2"),
        child_of("P2", "GP1", "GP2"),
        child_of("C1", "P1", "S1"),
        child_of("C2", "P2", "S2"),
        child_of("D1", "C2"),
    ]
    return people, relationships
