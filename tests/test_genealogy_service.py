"""
Heritage Numérique Backend — Genealogy Unit Tests
==================================================

What:  The in-memory tree computations: birth date parsing, name splitting,
       hierarchy build and layout, relatives ordering.
How:   Transient TreeMember instances, no database; the one-tree-per-family
       rule runs against the in-memory SQLite database.

Reference family used below:
    Seydou (1920) ─┬─ Kadiatou (1925)
                   │
          ┌────────┴────────┐
     Amadou (1950)     Bintou (1955)
          │
     Oumar (1980)
"""

import uuid
from datetime import date

import pytest
from sqlalchemy.exc import IntegrityError

from heritage.database import utcnow
from heritage.exceptions import ValidationError
from heritage.models.family import Family
from heritage.models.genealogy import GenealogyTree, TreeMember
from heritage.models.user import User
from heritage.services.genealogy_service import (
    GenealogyService,
    build_hierarchy,
    collect_relatives,
    find_roots,
    max_level,
    parse_birth_date,
    split_full_name,
    subtree_width,
)


def _member(last_name, first_name, born, father=None, mother=None):
    return TreeMember(
        id=uuid.uuid4(),
        last_name=last_name,
        first_name=first_name,
        birth_date=born,
        father_id=father.id if father else None,
        mother_id=mother.id if mother else None,
    )


@pytest.fixture
def reference_family():
    seydou = _member("Diarra", "Seydou", date(1920, 1, 1))
    kadiatou = _member("Coulibaly", "Kadiatou", date(1925, 5, 2))
    amadou = _member("Diarra", "Amadou", date(1950, 3, 12), seydou, kadiatou)
    bintou = _member("Diarra", "Bintou", date(1955, 7, 30), seydou, kadiatou)
    oumar = _member("Diarra", "Oumar", date(1980, 11, 4), amadou)
    return {
        "seydou": seydou,
        "kadiatou": kadiatou,
        "amadou": amadou,
        "bintou": bintou,
        "oumar": oumar,
    }


class TestParseBirthDate:

    @pytest.mark.parametrize(
        "value, expected",
        [
            ("1950-03-12", date(1950, 3, 12)),
            ("12/03/1950", date(1950, 3, 12)),
            ("12-03-1950", date(1950, 3, 12)),
            ("03/25/1950", date(1950, 3, 25)),
            ("1950/03/12", date(1950, 3, 12)),
            ("  1950-03-12 ", date(1950, 3, 12)),
        ],
    )
    def test_accepted_formats(self, value, expected):
        assert parse_birth_date(value) == expected

    def test_unsupported_format(self):
        with pytest.raises(ValidationError, match="Unsupported date format"):
            parse_birth_date("March 1950")

    def test_blank(self):
        with pytest.raises(ValidationError):
            parse_birth_date("   ")


class TestSplitFullName:

    def test_first_word_is_last_name(self):
        assert split_full_name("Diarra Amadou Sékou") == ("Diarra", "Amadou Sékou")

    def test_single_word(self):
        assert split_full_name("Keita") == ("Keita", "")


class TestHierarchy:

    def test_roots_are_members_without_parents(self, reference_family):
        roots = find_roots(list(reference_family.values()))
        assert {r.id for r in roots} == {reference_family["seydou"].id, reference_family["kadiatou"].id}

    def test_oldest_member_is_root_when_everyone_has_parents(self):
        a = _member("Traoré", "A", date(1900, 1, 1))
        b = _member("Traoré", "B", date(1930, 1, 1), a)
        a.father_id = b.id
        assert find_roots([b, a]) == [a]

    def test_children_appear_under_both_parents(self, reference_family):
        roots = build_hierarchy(list(reference_family.values()))

        assert [r.full_name for r in roots] == ["Diarra Seydou", "Coulibaly Kadiatou"]
        for root in roots:
            assert [c.full_name for c in root.children] == ["Diarra Amadou", "Diarra Bintou"]

    def test_levels_and_generation_depth(self, reference_family):
        roots = build_hierarchy(list(reference_family.values()))
        amadou = roots[0].children[0]
        oumar = amadou.children[0]

        assert roots[0].level == 0
        assert amadou.level == 1
        assert oumar.level == 2
        assert oumar.y == 2.0
        assert max_level(roots) == 2

    def test_children_centred_under_parent(self, reference_family):
        roots = build_hierarchy(list(reference_family.values()))
        seydou, kadiatou = roots

        assert seydou.x == 0.0
        assert kadiatou.x == 1.0
        assert [c.x for c in seydou.children] == [-0.5, 0.5]
        assert [c.x for c in kadiatou.children] == [0.5, 1.5]
        assert seydou.children[0].children[0].x == -0.5

    def test_cycle_terminates(self):
        a = _member("Keita", "A", date(1900, 1, 1))
        b = _member("Keita", "B", date(1920, 1, 1), a)
        a.father_id = b.id

        roots = build_hierarchy([a, b])

        assert len(roots) == 1
        assert roots[0].children[0].id == b.id
        assert roots[0].children[0].children == []

    def test_empty_tree(self):
        assert build_hierarchy([]) == []

    def test_subtree_width_minimum_is_one(self):
        assert subtree_width([]) == 1.0


class TestRelatives:

    def test_parents_first_then_self_then_oldest_first(self, reference_family):
        stranger = _member("Sissoko", "Fanta", date(1960, 1, 1))
        members = list(reference_family.values()) + [stranger]

        relatives = collect_relatives(reference_family["amadou"], members)

        assert [m.first_name for m in relatives] == ["Seydou", "Kadiatou", "Amadou", "Bintou", "Oumar"]

    def test_member_without_parents_leads(self, reference_family):
        relatives = collect_relatives(reference_family["seydou"], list(reference_family.values()))

        assert relatives[0] is reference_family["seydou"]
        assert len(relatives) == 5

    def test_isolated_member(self):
        alone = _member("Sidibé", "Nana", None)
        assert collect_relatives(alone, [alone]) == [alone]


class TestOneTreePerFamily:

    @staticmethod
    async def _family(session):
        founder = User(email="founder@example.com", password_hash="x", last_name="Diarra", first_name="Moussa")
        session.add(founder)
        await session.flush()
        family = Family(name="Diarra", creator_id=founder.id, created_at=utcnow(), updated_at=utcnow())
        session.add(family)
        await session.flush()
        return family

    @pytest.mark.asyncio
    async def test_lazy_tree_is_reused(self, session_factory):
        service = GenealogyService()
        async with session_factory() as session:
            family = await self._family(session)

            first = await service.get_or_create_tree(session, family)
            second = await service.get_or_create_tree(session, family)

            assert first.id == second.id

    @pytest.mark.asyncio
    async def test_second_tree_for_a_family_is_refused(self, session_factory):
        async with session_factory() as session:
            family = await self._family(session)
            session.add(GenealogyTree(family_id=family.id, name="Family tree of Diarra"))
            await session.flush()

            session.add(GenealogyTree(family_id=family.id, name="Another tree"))
            with pytest.raises(IntegrityError):
                await session.flush()
