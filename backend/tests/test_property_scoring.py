"""Score imóvel x busca e texto das recomendações."""

from leadnurture.domain.entities import LeadPropertySearch, Property
from leadnurture.domain.services.property_scoring import (
    calculate_match_score,
    format_recommendation_message,
    is_good_match,
)


def make_property(**overrides) -> Property:
    values = dict(
        external_id="MLS-1",
        address="123 Main St",
        city="Austin",
        zip_code="78701",
        price=400000,
        bedrooms=3,
        bathrooms=2.0,
        square_feet=1800,
        property_type="House",
    )
    values.update(overrides)
    return Property(**values)


def test_full_match_scores_100():
    search = LeadPropertySearch(
        min_bedrooms=3,
        max_price=450000,
        locations=["austin"],
        property_types=["house"],
    )

    assert calculate_match_score(make_property(), search) == 100.0


def test_partial_credit_for_one_bedroom_short():
    search = LeadPropertySearch(min_bedrooms=3, locations=["Austin"])

    # 5 de 15 nos quartos + 30 de 30 na localização
    assert calculate_match_score(make_property(bedrooms=2), search) == 77.78


def test_price_slightly_outside_range_gets_partial_credit():
    search = LeadPropertySearch(min_price=300000, max_price=400000)

    assert calculate_match_score(make_property(price=420000), search) == 40.0
    assert calculate_match_score(make_property(price=500000), search) == 0.0


def test_location_matches_zip_code():
    search = LeadPropertySearch(locations=["78701"])

    assert calculate_match_score(make_property(city="Round Rock"), search) == 100.0


def test_search_without_criteria_scores_zero():
    assert calculate_match_score(make_property(), LeadPropertySearch()) == 0.0


def test_good_match_threshold_is_exclusive():
    assert not is_good_match(60.0)
    assert is_good_match(60.01)
    assert not is_good_match(None)


def test_recommendation_message():
    text = format_recommendation_message("John", [
        make_property(),
        make_property(address="9 Oak Ave", bathrooms=2.5, price=None),
    ])

    lines = text.split("\n")
    assert lines[0] == "Hi John, I found 2 properties that match what you're looking for:"
    assert "1. 123 Main St, Austin: 3 bed, 2 bath, $400,000" in lines
    assert "2. 9 Oak Ave, Austin: 3 bed, 2.5 bath, price on request" in lines
    assert lines[-1].startswith("Reply with the number")
