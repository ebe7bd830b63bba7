"""
TESTES DO PARSER DE RESPOSTAS DA IA
====================================

Marcadores "NEW APPOINTMENT SET" e "NEW SEARCH CRITERIA": extração e limpeza.
"""

from datetime import datetime

from leadnurture.domain.services.ai_response_parser import (
    handle_response,
    parse_appointment,
    parse_price,
    parse_search_criteria,
    sanitize_response,
)


# =============================================================================
# AGENDAMENTO
# =============================================================================

def test_appointment_marker_is_extracted_and_removed():
    raw = "Perfect, see you Sunday!\nNEW APPOINTMENT SET: 06/15/2025 at 2:30 PM"

    parsed = handle_response(raw)

    assert parsed.text == "Perfect, see you Sunday!"
    assert parsed.has_appointment
    assert parsed.appointment.date == "06/15/2025"
    assert parsed.appointment.time == "2:30 PM"
    assert parsed.appointment.start == datetime(2025, 6, 15, 14, 30)
    assert parsed.raw_text == raw


def test_appointment_time_without_space_before_meridiem():
    appointment = parse_appointment("NEW APPOINTMENT SET: 6/5/2025 at 9:05am")

    assert appointment is not None
    assert appointment.time == "9:05 AM"
    assert appointment.start == datetime(2025, 6, 5, 9, 5)


def test_invalid_appointment_date_is_ignored():
    assert parse_appointment("NEW APPOINTMENT SET: 13/45/2025 at 2:30 PM") is None


def test_response_without_markers_is_untouched():
    parsed = handle_response("Hi John, are you still looking for a home?")

    assert parsed.text == "Hi John, are you still looking for a home?"
    assert parsed.appointment is None
    assert parsed.search_criteria is None
    assert parsed.raw_search_text is None


def test_empty_response():
    parsed = handle_response(None)

    assert parsed.text == ""
    assert not parsed.has_appointment
    assert not parsed.has_search_criteria


# =============================================================================
# CRITÉRIOS DE BUSCA
# =============================================================================

def test_search_criteria_marker_is_parsed():
    raw = (
        "Great, I'll start looking!\n"
        "NEW SEARCH CRITERIA: MIN BEDROOMS: 3, MAX PRICE: $450,000, "
        "LOCATIONS: Austin, Round Rock, PROPERTY TYPES: House, NOTES: Wants a pool"
    )

    parsed = handle_response(raw)

    assert parsed.text == "Great, I'll start looking!"
    criteria = parsed.search_criteria
    assert criteria["min_bedrooms"] == 3
    assert criteria["max_price"] == 450000
    assert criteria["locations"] == ["Austin", "Round Rock"]
    assert criteria["property_types"] == ["House"]
    assert criteria["notes"] == "Wants a pool"
    assert criteria["max_bedrooms"] is None
    assert criteria["min_bathrooms"] is None
    assert parsed.raw_search_text.startswith("NEW SEARCH CRITERIA:")


def test_placeholder_values_become_empty():
    criteria = parse_search_criteria(
        "NEW SEARCH CRITERIA: MIN BEDROOMS: <value>, MAX PRICE: N/A, LOCATIONS: any, MIN BATHROOMS: 2.5"
    )

    assert criteria["min_bedrooms"] is None
    assert criteria["max_price"] is None
    assert criteria["locations"] == []
    assert criteria["min_bathrooms"] == 2.5


def test_property_search_alias_marker():
    criteria = parse_search_criteria("NEW PROPERTY SEARCH: MIN SQUARE FEET: 1,800")

    assert criteria["min_square_feet"] == 1800


def test_no_marker_returns_none():
    assert parse_search_criteria("MIN BEDROOMS: 3") is None
    assert parse_search_criteria("") is None


def test_parse_price_formats():
    assert parse_price("$450,000") == 450000
    assert parse_price("450k") == 450000
    assert parse_price("1.2M") == 1200000
    assert parse_price("none") is None
    assert parse_price("call me") is None


def test_sanitize_removes_both_marker_lines():
    raw = (
        "See you then!\n"
        "NEW APPOINTMENT SET: 06/15/2025 at 2:30 PM\n"
        "NEW SEARCH CRITERIA: MIN BEDROOMS: 2"
    )

    assert sanitize_response(raw) == "See you then!"
