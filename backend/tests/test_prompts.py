"""Montagem do prompt de sistema (templates, variáveis e contexto do lead)."""

from datetime import datetime

from leadnurture.domain.entities import Lead, UserSettings
from leadnurture.domain.prompts import (
    DEFAULT_BUYER_PROMPT,
    build_system_prompt,
    date_context,
    find_variables,
    interpolate,
)

NOW = datetime(2025, 6, 14, 9, 0)


def make_settings(**overrides) -> UserSettings:
    values = dict(agent_name="Jane Doe", company_name="Sunset Realty", agent_state="CA")
    values.update(overrides)
    return UserSettings(**values)


def test_interpolate_keeps_unknown_variables():
    result = interpolate("Hi {{ lead_name }}, {{unknown}}", {"lead_name": "Ann"})

    assert result == "Hi Ann, {{unknown}}"


def test_find_variables_in_order_without_duplicates():
    assert find_variables("{{b}} {{a}} {{b}}") == ["b", "a"]


def test_date_context():
    assert date_context(NOW) == {
        "current_date": "June 14, 2025",
        "current_day": "Saturday",
        "tomorrow": "06/15/2025",
    }


def test_buyer_prompt_is_filled_in():
    lead = Lead(name="John", phone_number="15551234567", lead_type="buyer", status="New")

    prompt = build_system_prompt(lead, make_settings(), NOW)

    assert 'texting on behalf of the agent "Jane Doe" from "Sunset Realty"' in prompt
    assert "state of CA" in prompt
    assert "Today's date is June 14, 2025 (Saturday)" in prompt
    assert "NEW APPOINTMENT SET: MM/DD/YYYY at HH:MM AM/PM" in prompt
    assert "NEW SEARCH CRITERIA:" in prompt
    assert "{{" not in prompt
    assert "# Lead Context Information" in prompt
    assert "- Phone: +1 (555) 123-4567" in prompt


def test_seller_prompt_has_no_search_instructions():
    lead = Lead(name="Mary", phone_number="15551234567", lead_type="seller", status="New")

    prompt = build_system_prompt(lead, make_settings(), NOW)

    assert "selling their property" in prompt
    assert "NEW SEARCH CRITERIA:" not in prompt


def test_custom_prompt_takes_priority():
    lead = Lead(name="John", phone_number="15551234567", lead_type="buyer", context="Relocating from Ohio")
    settings = make_settings(buyer_prompt="Custom prompt for {{lead_name}} ({{lead_context}})")

    prompt = build_system_prompt(lead, settings, NOW)

    assert prompt.startswith("Custom prompt for John (Relocating from Ohio)")
    assert "- Additional Context: Relocating from Ohio" in prompt
    assert DEFAULT_BUYER_PROMPT[:40] not in prompt


def test_blank_custom_prompt_falls_back_to_default():
    lead = Lead(name="John", phone_number="15551234567", lead_type="buyer")

    prompt = build_system_prompt(lead, make_settings(buyer_prompt="   "), NOW)

    assert "buying a home" in prompt


def test_follow_up_prompt():
    lead = Lead(name="John", phone_number="15551234567", lead_type="buyer")

    prompt = build_system_prompt(lead, make_settings(), NOW, follow_up=True)

    assert "you are following up" in prompt
