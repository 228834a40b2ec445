"""Unit tests for museum_tours.models.entities — construction rules,
association methods and the additional-cost calculation.
"""
from __future__ import annotations

import datetime
from decimal import Decimal

import pytest

from museum_tours.errors import InvalidEntityError
from museum_tours.models import DEFAULT_INCLUDED_VISITS, City, Member, MuseumVisit, Tour

_DAY = datetime.date(2025, 6, 1)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _visit(visit_id: str = "v1", cost: object = Decimal("10"), name: str = "Louvre") -> MuseumVisit:
    return MuseumVisit(id=visit_id, museum_name=name, visit_date=_DAY, cost=cost)


def _member(member_id: str = "m1", booking: str = "BK-1", quota: int = DEFAULT_INCLUDED_VISITS) -> Member:
    return Member(id=member_id, name="Ada", booking_number=booking, included_visits=quota)


def _linked() -> tuple[Tour, City, MuseumVisit, Member]:
    """A tour containing a city with one visit, plus a member on the tour."""
    tour = Tour("t1", "France")
    city = City("c1", "Paris")
    visit = _visit()
    member = _member()
    tour.add_city(city)
    city.add_visit(visit)
    tour.add_member(member)
    return tour, city, visit, member


def _member_with_costs(costs: list[str], quota: int = 2) -> tuple[Member, list[MuseumVisit]]:
    tour = Tour("t1", "France")
    city = City("c1", "Paris")
    tour.add_city(city)
    member = _member(quota=quota)
    tour.add_member(member)
    visits = []
    for index, cost in enumerate(costs):
        visit = _visit(f"v{index}", Decimal(cost))
        city.add_visit(visit)
        assert visit.register_member(member, tour)
        visits.append(visit)
    return member, visits


# ===========================================================================
# Construction
# ===========================================================================


class TestConstruction:
    @pytest.mark.parametrize("entity_id", ["", "   "])
    def test_city_rejects_blank_id(self, entity_id: str) -> None:
        with pytest.raises(InvalidEntityError, match="City ID"):
            City(entity_id, "Paris")

    def test_tour_rejects_blank_name(self) -> None:
        with pytest.raises(InvalidEntityError, match="Tour name"):
            Tour("t1", " ")

    def test_member_rejects_blank_booking_number(self) -> None:
        with pytest.raises(InvalidEntityError, match="Booking number"):
            Member("m1", "Ada", "")

    def test_visit_rejects_blank_museum_name(self) -> None:
        with pytest.raises(InvalidEntityError, match="Museum name"):
            _visit(name="")

    def test_invalid_entity_error_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            City("", "Paris")

    def test_negative_cost_rejected(self) -> None:
        with pytest.raises(InvalidEntityError, match="negative"):
            _visit(cost=Decimal("-0.01"))

    def test_zero_cost_allowed(self) -> None:
        assert _visit(cost=0).cost == Decimal("0")

    def test_cost_string_and_int_become_decimal(self) -> None:
        assert _visit(cost="12.50").cost == Decimal("12.50")
        assert _visit(cost=7).cost == Decimal("7")

    @pytest.mark.parametrize("cost", ["abc", "NaN", 1.5, True, None])
    def test_bad_cost_rejected(self, cost: object) -> None:
        with pytest.raises(InvalidEntityError):
            _visit(cost=cost)

    def test_visit_date_must_be_a_date(self) -> None:
        with pytest.raises(InvalidEntityError, match="date"):
            MuseumVisit("v1", "Louvre", "2025-06-01", Decimal("1"))  # type: ignore[arg-type]

    def test_datetime_is_truncated_to_date(self) -> None:
        visit = MuseumVisit("v1", "Louvre", datetime.datetime(2025, 6, 1, 14, 30), Decimal("1"))
        assert visit.visit_date == _DAY
        assert type(visit.visit_date) is datetime.date

    def test_member_default_quota(self) -> None:
        assert Member("m1", "Ada", "BK").included_visits == 2

    @pytest.mark.parametrize("quota", [-1, True, "2"])
    def test_member_rejects_bad_quota(self, quota: object) -> None:
        with pytest.raises(InvalidEntityError):
            _member(quota=quota)  # type: ignore[arg-type]

    @pytest.mark.parametrize(
        "text", ["Bad\x01name", "Line1\r\nLine2", "Tab\x0bbed", "Half\ud800surrogate", "\ufffe"]
    )
    def test_unstorable_characters_rejected(self, text: str) -> None:
        with pytest.raises(InvalidEntityError, match="unsupported character"):
            City("c1", text)
        with pytest.raises(InvalidEntityError, match="Member ID"):
            Member(text, "Ada", "BK-1")
        with pytest.raises(InvalidEntityError, match="Booking number"):
            Member("m1", "Ada", text)

    @pytest.mark.parametrize(
        "text", ["Z\u00fcrich", "Tab\tand\nnewline", "\U0001f3db Museum", "\u5317\u4eac"]
    )
    def test_storable_text_accepted(self, text: str) -> None:
        assert City("c1", text).name == text
        assert _visit(name=text).museum_name == text

    def test_new_entities_have_no_links(self) -> None:
        tour, city, visit, member = Tour("t", "T"), City("c", "C"), _visit(), _member()
        assert tour.city_ids == () and tour.member_ids == ()
        assert city.visit_ids == ()
        assert visit.city_id is None and visit.member_ids == ()
        assert member.tour_id is None and member.visit_ids == ()


# ===========================================================================
# Identity
# ===========================================================================


class TestIdentity:
    def test_id_is_immutable(self) -> None:
        city = City("c1", "Paris")
        with pytest.raises(AttributeError):
            city.id = "c2"

    def test_name_is_mutable(self) -> None:
        tour = Tour("t1", "France")
        tour.name = "Grand France"
        assert tour.name == "Grand France"

    def test_equality_by_id(self) -> None:
        assert City("c1", "Paris") == City("c1", "Other")
        assert City("c1", "Paris") != City("c2", "Paris")

    def test_different_kinds_never_equal(self) -> None:
        assert City("x", "Paris") != Tour("x", "Paris")

    def test_hash_follows_id(self) -> None:
        assert len({City("c1", "A"), City("c1", "B"), City("c2", "A")}) == 2

    def test_link_collections_are_read_only(self) -> None:
        tour, _, _, _ = _linked()
        with pytest.raises(AttributeError):
            tour.city_ids = ()  # type: ignore[misc]


# ===========================================================================
# City ↔ MuseumVisit
# ===========================================================================


class TestCityVisits:
    def test_add_visit_links_both_sides(self) -> None:
        city, visit = City("c1", "Paris"), _visit()
        assert city.add_visit(visit) is True
        assert visit.id in city.visit_ids
        assert visit.city_id == city.id

    def test_add_visit_twice_is_noop(self) -> None:
        city, visit = City("c1", "Paris"), _visit()
        city.add_visit(visit)
        assert city.add_visit(visit) is False
        assert city.visit_ids == ("v1",)

    def test_remove_visit_unlinks_both_sides(self) -> None:
        city, visit = City("c1", "Paris"), _visit()
        city.add_visit(visit)
        assert city.remove_visit(visit) is True
        assert visit.id not in city.visit_ids
        assert visit.city_id is None

    def test_remove_absent_visit_is_noop(self) -> None:
        assert City("c1", "Paris").remove_visit(_visit()) is False

    def test_visit_owned_by_other_city_is_refused(self) -> None:
        paris, lyon, visit = City("c1", "Paris"), City("c2", "Lyon"), _visit()
        paris.add_visit(visit)
        assert lyon.add_visit(visit) is False
        assert visit.city_id == "c1"
        assert lyon.visit_ids == ()

    def test_has_museum_ignores_case(self) -> None:
        city, visit = City("c1", "Paris"), _visit(name="Louvre")
        city.add_visit(visit)
        assert city.has_museum("LOUVRE", [visit])
        assert not city.has_museum("Orsay", [visit])


# ===========================================================================
# Tour → City and Tour ↔ Member
# ===========================================================================


class TestTourLinks:
    def test_add_and_remove_city(self) -> None:
        tour, city = Tour("t1", "France"), City("c1", "Paris")
        assert tour.add_city(city) is True
        assert tour.contains_city(city)
        assert tour.add_city(city) is False
        assert tour.remove_city(city) is True
        assert tour.remove_city(city) is False
        assert not tour.contains_city(city)

    def test_city_order_is_preserved(self) -> None:
        tour = Tour("t1", "France")
        for city_id in ("c3", "c1", "c2"):
            tour.add_city(City(city_id, city_id))
        assert tour.city_ids == ("c3", "c1", "c2")

    def test_city_shared_between_tours(self) -> None:
        city = City("c1", "Paris")
        first, second = Tour("t1", "A"), Tour("t2", "B")
        assert first.add_city(city) and second.add_city(city)

    def test_add_member_sets_back_reference(self) -> None:
        tour, member = Tour("t1", "France"), _member()
        assert tour.add_member(member) is True
        assert member.id in tour.member_ids
        assert member.tour_id == tour.id

    def test_remove_member_clears_back_reference(self) -> None:
        tour, member = Tour("t1", "France"), _member()
        tour.add_member(member)
        assert tour.remove_member(member) is True
        assert member.id not in tour.member_ids
        assert member.tour_id is None

    def test_remove_absent_member_is_noop(self) -> None:
        assert Tour("t1", "France").remove_member(_member()) is False

    def test_member_on_another_tour_is_refused(self) -> None:
        first, second, member = Tour("t1", "A"), Tour("t2", "B"), _member()
        first.add_member(member)
        assert second.add_member(member) is False
        assert member.tour_id == "t1"
        assert second.member_ids == ()

    def test_add_member_twice_is_noop(self) -> None:
        tour, member = Tour("t1", "France"), _member()
        tour.add_member(member)
        assert tour.add_member(member) is False
        assert tour.member_ids == ("m1",)

    def test_has_city_named_ignores_case(self) -> None:
        tour, paris, lyon = Tour("t1", "France"), City("c1", "Paris"), City("c2", "Lyon")
        tour.add_city(paris)
        assert tour.has_city_named("PARIS", [paris, lyon])
        assert not tour.has_city_named("Lyon", [paris, lyon])

    def test_has_member_with_booking_number_ignores_case(self) -> None:
        tour, ada, bob = Tour("t1", "France"), _member("m1", "bk-1"), _member("m2", "BK-2")
        tour.add_member(ada)
        assert tour.has_member_with_booking_number("BK-1", [ada, bob])
        assert not tour.has_member_with_booking_number("BK-2", [ada, bob])


# ===========================================================================
# MuseumVisit ↔ Member
# ===========================================================================


class TestRegistration:
    def test_register_links_both_sides(self) -> None:
        tour, _, visit, member = _linked()
        assert visit.register_member(member, tour) is True
        assert visit.is_registered(member)
        assert member.is_registered_for(visit)

    def test_register_twice_is_noop(self) -> None:
        tour, _, visit, member = _linked()
        visit.register_member(member, tour)
        assert visit.register_member(member, tour) is False
        assert visit.member_ids == ("m1",)
        assert member.visit_ids == ("v1",)

    def test_city_outside_tour_is_refused(self) -> None:
        tour, _, _, member = _linked()
        rome = City("c9", "Rome")
        visit = _visit("v9")
        rome.add_visit(visit)
        assert visit.register_member(member, tour) is False
        assert visit.member_ids == ()
        assert member.visit_ids == ()

    def test_visit_without_city_is_refused(self) -> None:
        tour, _, _, member = _linked()
        orphan = _visit("v2")
        assert orphan.register_member(member, tour) is False
        assert member.visit_ids == ()

    def test_member_without_tour_is_refused(self) -> None:
        tour, _, visit, _ = _linked()
        loner = _member("m2", "BK-2")
        assert visit.register_member(loner, tour) is False
        assert visit.register_member(loner, None) is False
        assert visit.member_ids == ()

    def test_tour_must_be_the_members_tour(self) -> None:
        _, city, visit, member = _linked()
        other = Tour("t2", "Other")
        other.add_city(city)
        assert visit.register_member(member, other) is False

    def test_unregister_unlinks_both_sides(self) -> None:
        tour, _, visit, member = _linked()
        visit.register_member(member, tour)
        assert visit.unregister_member(member) is True
        assert not visit.is_registered(member)
        assert not member.is_registered_for(visit)

    def test_unregister_absent_is_noop(self) -> None:
        _, _, visit, member = _linked()
        assert visit.unregister_member(member) is False

    def test_total_revenue(self) -> None:
        tour, _, visit, member = _linked()
        other = _member("m2", "BK-2")
        tour.add_member(other)
        visit.register_member(member, tour)
        visit.register_member(other, tour)
        assert visit.total_revenue() == Decimal("20")


# ===========================================================================
# Additional cost
# ===========================================================================


class TestAdditionalCost:
    def test_cheapest_visit_is_charged(self) -> None:
        member, visits = _member_with_costs(["10", "30", "20"])
        assert member.calculate_additional_cost(visits) == Decimal("10")

    def test_within_quota_costs_nothing(self) -> None:
        member, visits = _member_with_costs(["10", "30"])
        assert member.calculate_additional_cost(visits) == Decimal("0")

    def test_no_visits_costs_nothing(self) -> None:
        assert _member().calculate_additional_cost([]) == Decimal("0")

    def test_zero_quota_charges_everything(self) -> None:
        member, visits = _member_with_costs(["10", "30", "20"], quota=0)
        assert member.calculate_additional_cost(visits) == Decimal("60")

    def test_most_expensive_visits_are_free(self) -> None:
        member, visits = _member_with_costs(["5", "50", "15", "40", "25.5"])
        assert member.calculate_additional_cost(visits) == Decimal("45.5")

    def test_equal_costs(self) -> None:
        member, visits = _member_with_costs(["10", "10", "10"])
        assert member.calculate_additional_cost(visits) == Decimal("10")

    def test_unregistered_visits_are_ignored(self) -> None:
        member, visits = _member_with_costs(["10", "30", "20"])
        stranger = _visit("vx", Decimal("99"))
        assert member.calculate_additional_cost([*visits, stranger]) == Decimal("10")


class TestStr:
    def test_visit_str(self) -> None:
        assert str(_visit(cost="12.5")) == "Louvre on 2025-06-01 (€12.5)"

    def test_member_str(self) -> None:
        assert str(_member()) == "Ada (Booking: BK-1)"
