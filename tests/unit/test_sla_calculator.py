"""
Unit tests for SLA deadlines and clock states
"""
from datetime import datetime, timedelta, timezone

import pytest

from quicket.config import SLAState
from quicket.sla.domain import MAX_SLA_MINUTES, SLACalculator, compute_deadlines, evaluate_ticket_sla
from quicket.tickets.domain import Note, Ticket, normalize_config

T0 = datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)


def minutes(n):
    return T0 + timedelta(minutes=n)


def make_ticket(**overrides):
    data = {
        "id": "TCK-20240115-0001",
        "title": "Server room is hot",
        "priority": "P1",
        "created_at": T0,
        "updated_at": T0,
    }
    data.update(overrides)
    return Ticket(**data)


@pytest.mark.unit
class TestComputeDeadlines:

    def test_p1_defaults(self):
        deadlines = compute_deadlines("P1", T0, normalize_config(None))
        assert deadlines.respond_due == minutes(60)
        assert deadlines.resolve_due == minutes(1440)

    @pytest.mark.parametrize("priority", [None, "", "P9", "high", 3])
    def test_invalid_priority_treated_as_p3(self, priority):
        config = normalize_config(None)
        assert compute_deadlines(priority, T0, config) == compute_deadlines("P3", T0, config)

    def test_missing_config_uses_defaults(self):
        deadlines = compute_deadlines("P4", T0)
        assert deadlines.respond_due == minutes(1440)
        assert deadlines.resolve_due == minutes(20160)

    def test_configured_minutes(self):
        config = normalize_config({"priorities": {"P2": {"respondMinutes": 15, "resolveMinutes": 90.5}}})
        deadlines = compute_deadlines("P2", T0, config)
        assert deadlines.respond_due == minutes(15)
        assert deadlines.resolve_due == T0 + timedelta(minutes=90.5)

    def test_raw_mapping_config(self):
        deadlines = compute_deadlines("P1", T0, {"priorities": {"P1": {"respondMinutes": 5}}})
        assert deadlines.respond_due == minutes(5)
        assert deadlines.resolve_due == minutes(1440)

    @pytest.mark.parametrize("value", [1e10, MAX_SLA_MINUTES + 1])
    def test_out_of_range_minutes_use_defaults(self, value):
        config = normalize_config({"priorities": {"P1": {"respondMinutes": value}}})
        assert config.priorities["P1"].respond_minutes == 60
        assert compute_deadlines("P1", T0, config).respond_due == minutes(60)

    def test_largest_budget_is_accepted(self):
        config = normalize_config({"priorities": {"P1": {"resolveMinutes": MAX_SLA_MINUTES}}})
        deadlines = compute_deadlines("P1", T0, config)
        assert deadlines.resolve_due == minutes(MAX_SLA_MINUTES)

    def test_deadline_past_datetime_range_is_capped(self):
        created = datetime(9999, 12, 31, tzinfo=timezone.utc)
        deadlines = compute_deadlines("P4", created)
        assert deadlines.respond_due == datetime.max.replace(tzinfo=timezone.utc)

    @pytest.mark.parametrize("created_at", [
        "2024-01-15T10:00:00Z",
        "2024-01-15T10:00:00+00:00",
        "2024-01-15T11:00:00+01:00",
        datetime(2024, 1, 15, 10, 0),
    ])
    def test_created_at_forms(self, created_at):
        assert compute_deadlines("P1", created_at).respond_due == minutes(60)

    def test_unparseable_created_at_falls_back_to_now(self):
        before = datetime.now(timezone.utc)
        deadlines = compute_deadlines("P1", "not a date")
        assert deadlines.created_at >= before

    def test_to_dict(self):
        record = compute_deadlines("P1", T0).to_dict()
        assert record["respondDue"] == minutes(60).isoformat()
        assert record["resolveDue"] == minutes(1440).isoformat()


@pytest.mark.unit
class TestCalculateStatus:

    @pytest.mark.parametrize("now, met_at, expected", [
        (minutes(50), None, SLAState.ON_TRACK),
        (minutes(90), None, SLAState.AT_RISK),
        (minutes(101), None, SLAState.BREACHED),
        (minutes(200), minutes(30), SLAState.MET),
        (minutes(130), minutes(120), SLAState.BREACHED),
    ])
    def test_states(self, now, met_at, expected):
        assert SLACalculator.calculate_status(T0, minutes(100), now, met_at) == expected

    def test_remaining_metrics(self):
        remaining, percentage, breached = SLACalculator.calculate_remaining_metrics(
            T0, minutes(100), minutes(75)
        )
        assert remaining == 25 * 60
        assert percentage == pytest.approx(25.0)
        assert breached is False


@pytest.mark.unit
class TestEvaluateTicketSla:

    def test_open_ticket_on_track(self):
        report = evaluate_ticket_sla(make_ticket(), now=minutes(30))
        assert report.respond.state == SLAState.ON_TRACK
        assert report.resolve.state == SLAState.ON_TRACK
        assert report.most_urgent_state == SLAState.ON_TRACK

    def test_first_note_meets_respond_clock(self):
        note = Note(id="N-1", text="On it", created_at=minutes(10))
        report = evaluate_ticket_sla(make_ticket(notes=[note]), now=minutes(120))
        assert report.respond.state == SLAState.MET
        assert report.respond.met_at == minutes(10)

    def test_leaving_open_late_breaches_respond_clock(self):
        ticket = make_ticket(status="In Progress", updated_at=minutes(90))
        report = evaluate_ticket_sla(ticket, now=minutes(95))
        assert report.respond.state == SLAState.BREACHED
        assert report.is_any_breached
        assert report.most_urgent_state == SLAState.BREACHED

    def test_resolution_meets_resolve_clock(self):
        note = Note(id="N-1", text="On it", created_at=minutes(5))
        ticket = make_ticket(status="Resolved", updated_at=minutes(120), notes=[note])
        report = evaluate_ticket_sla(ticket, now=minutes(5000))
        assert report.resolve.state == SLAState.MET
        assert report.most_urgent_state == SLAState.MET

    def test_open_ticket_past_deadline(self):
        report = evaluate_ticket_sla(make_ticket(), now=minutes(61))
        assert report.respond.is_breached
        assert report.resolve.state == SLAState.ON_TRACK

    def test_warning_threshold(self):
        ticket = make_ticket()
        assert evaluate_ticket_sla(ticket, now=minutes(45)).respond.state == SLAState.ON_TRACK
        report = evaluate_ticket_sla(ticket, now=minutes(45), warning_threshold_percent=30)
        assert report.respond.state == SLAState.AT_RISK

    def test_to_dict(self):
        record = evaluate_ticket_sla(make_ticket(), now=minutes(30)).to_dict()
        assert record["ticketId"] == "TCK-20240115-0001"
        assert record["respond"]["state"] == "on_track"
        assert record["overallState"] == "on_track"
