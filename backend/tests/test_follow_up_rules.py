"""
TESTES DAS REGRAS DE FOLLOW-UP E STATUS
========================================

Funções puras: sem banco.
"""

from datetime import datetime, timedelta, timezone

import pytest

from leadnurture.domain.entities import Lead, LeadStatus, UserSettings
from leadnurture.domain.services.follow_up_schedule import compute_next_follow_up, interval_for_status
from leadnurture.domain.services.lead_status import (
    apply_status,
    is_opt_in,
    is_opt_out,
    should_mark_inactive,
    status_after_inbound,
    status_for_appointment,
)

BASE = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


def make_lead(**overrides) -> Lead:
    values = dict(
        name="John",
        phone_number="15551234567",
        status=LeadStatus.NEW.value,
        is_ai_enabled=True,
        enable_follow_ups=True,
        follow_up_count=0,
        opted_out=False,
        is_archived=False,
        last_message_at=BASE,
    )
    values.update(overrides)
    return Lead(**values)


# =============================================================================
# PRÓXIMO FOLLOW-UP
# =============================================================================

def test_interval_comes_from_settings():
    settings = UserSettings(follow_up_interval_new=4)

    assert compute_next_follow_up(make_lead(), settings, max_follow_ups=3) == BASE + timedelta(days=4)


def test_default_interval_by_status():
    lead = make_lead(status=LeadStatus.QUALIFIED.value)

    assert compute_next_follow_up(lead, None, max_follow_ups=3) == BASE + timedelta(days=5)
    assert interval_for_status(None, LeadStatus.CONVERTED.value) == 14


def test_naive_base_is_treated_as_utc():
    lead = make_lead(last_message_at=datetime(2025, 6, 1, 12, 0))

    assert compute_next_follow_up(lead, None, max_follow_ups=3) == BASE + timedelta(days=2)


@pytest.mark.parametrize("overrides", [
    {"follow_up_count": 3},
    {"opted_out": True},
    {"is_archived": True},
    {"is_ai_enabled": False},
    {"enable_follow_ups": False},
    {"last_message_at": None},
])
def test_no_follow_up_when_not_allowed(overrides):
    assert compute_next_follow_up(make_lead(**overrides), None, max_follow_ups=3) is None


def test_no_follow_up_when_assistant_disabled_for_agent():
    settings = UserSettings(ai_assistant_enabled=False)

    assert compute_next_follow_up(make_lead(), settings, max_follow_ups=3) is None


# =============================================================================
# STATUS DO LEAD
# =============================================================================

def test_opt_out_keywords():
    assert is_opt_out("STOP")
    assert is_opt_out(" stop. ")
    assert is_opt_out("Unsubscribe")
    assert not is_opt_out("stop texting me at night")
    assert is_opt_in("start")


def test_status_after_inbound():
    assert status_after_inbound(LeadStatus.NEW.value) == LeadStatus.IN_CONVERSATION.value
    assert status_after_inbound(LeadStatus.INACTIVE.value) == LeadStatus.IN_CONVERSATION.value
    assert status_after_inbound(LeadStatus.QUALIFIED.value) == LeadStatus.QUALIFIED.value


def test_status_for_appointment():
    current = LeadStatus.IN_CONVERSATION.value

    assert status_for_appointment(current, "scheduled") == LeadStatus.APPOINTMENT_SET.value
    assert status_for_appointment(current, "confirmed") == LeadStatus.APPOINTMENT_SET.value
    assert status_for_appointment(current, "completed") == LeadStatus.CONVERTED.value
    assert status_for_appointment(current, "cancelled") == current


def test_should_mark_inactive():
    now = BASE + timedelta(days=10)

    assert should_mark_inactive(make_lead(status=LeadStatus.IN_CONVERSATION.value), now, 7)
    assert not should_mark_inactive(make_lead(status=LeadStatus.CONVERTED.value), now, 7)
    assert not should_mark_inactive(make_lead(last_message_at=None), now, 7)
    assert not should_mark_inactive(make_lead(), BASE + timedelta(days=3), 7)


def test_apply_status():
    lead = make_lead()

    assert apply_status(lead, LeadStatus.QUALIFIED.value) is True
    assert apply_status(lead, LeadStatus.QUALIFIED.value) is False
    with pytest.raises(ValueError):
        apply_status(lead, "Hot")
