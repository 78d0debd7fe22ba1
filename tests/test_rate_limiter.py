"""Daily and shift caps on Normal tier issuance."""

from datetime import datetime

import pytest

from apps.tickets.context import QueueContext
from apps.tickets.queue_class import build_queue_classes
from apps.tickets.results import Failure, FailureReason, IssuedTicket, RangeResult
from apps.tickets.services import TicketService
from apps.tickets.settings import QueueSettings


def make_service(engine, clock, **overrides):
    settings = QueueSettings(queue_classes=build_queue_classes(["E", "M"]), **overrides)
    return TicketService(QueueContext.build(settings=settings, bind=engine, clock=clock))


@pytest.fixture
def full_day(service, clock):
    """200 Normal tickets in the morning and 200 in the afternoon."""
    assert service.issue_range("EN", 1, 200).issued_count == 200
    clock.set(datetime(2026, 3, 10, 14, 0))
    assert service.issue_range("EN", 201, 400).issued_count == 200
    return service


class TestDailyCap:

    def test_issue_next_rejected_at_daily_cap(self, full_day):
        result = full_day.issue_next("EN")
        assert isinstance(result, Failure)
        assert result.reason == FailureReason.DAILY_CAP
        assert "400" in result.message

    def test_manual_rejected_at_daily_cap(self, full_day):
        result = full_day.issue_manual("MN", 999)
        assert isinstance(result, Failure)
        assert result.reason == FailureReason.DAILY_CAP

    def test_single_range_rejected_at_daily_cap(self, full_day):
        result = full_day.issue_range("EN", 401, 401)
        assert isinstance(result, Failure)
        assert result.reason == FailureReason.DAILY_CAP

    def test_priority_tier_is_exempt(self, full_day):
        assert isinstance(full_day.issue_next("EP"), IssuedTicket)
        assert isinstance(full_day.issue_manual("MP", 3), IssuedTicket)
        assert isinstance(full_day.issue_range("MP", 10, 20), RangeResult)

    def test_cap_resets_the_next_day(self, full_day, clock):
        clock.set(datetime(2026, 3, 11, 8, 0))
        assert full_day.issue_next("EN").number == 1

    def test_rejection_allocates_nothing(self, full_day):
        assert isinstance(full_day.issue_next("EN"), Failure)
        assert full_day.pending_counts()["EN"] == 400


class TestShiftCap:

    def test_morning_shift_cap(self, service):
        service.issue_range("MN", 1, 200)
        result = service.issue_next("EN")
        assert isinstance(result, Failure)
        assert result.reason == FailureReason.SHIFT_CAP
        assert "200" in result.message

    def test_afternoon_shift_has_its_own_allowance(self, service, clock):
        service.issue_range("MN", 1, 200)
        clock.set(datetime(2026, 3, 10, 12, 0))
        assert service.issue_next("MN").number == 201

    def test_range_checked_against_requested_size(self, service):
        service.issue_range("EN", 1, 195)
        result = service.issue_range("EN", 196, 201)
        assert isinstance(result, Failure)
        assert result.reason == FailureReason.SHIFT_CAP
        assert isinstance(service.issue_range("EN", 196, 200), RangeResult)


class TestPolicy:

    def test_range_is_limited_before_duplicates_are_removed(self, engine, clock, operators):
        service = make_service(engine, clock, daily_normal_cap=10)
        assert service.issue_range("EN", 1, 8).issued_count == 8

        # Every number already exists, but the full request would pass the cap
        result = service.issue_range("EN", 1, 5)
        assert isinstance(result, Failure)
        assert result.reason == FailureReason.DAILY_CAP

    def test_global_scope_counts_every_origin(self, engine, clock, operators):
        service = make_service(engine, clock, daily_normal_cap=3, rate_limit_scope="global")
        service.issue_next("EN")
        service.issue_next("EN")
        service.issue_next("EN")
        result = service.issue_next("MN")
        assert isinstance(result, Failure)
        assert result.reason == FailureReason.DAILY_CAP

    def test_origin_scope_counts_each_origin_separately(self, engine, clock, operators):
        service = make_service(engine, clock, daily_normal_cap=3, rate_limit_scope="origin")
        for _ in range(3):
            service.issue_next("EN")
        assert isinstance(service.issue_next("EN"), Failure)
        assert service.issue_next("MN").number == 1

    def test_custom_shift_boundary(self, engine, clock, operators):
        service = make_service(engine, clock, shift_normal_cap=2, shift_boundary_hour=10)
        service.issue_next("EN")
        service.issue_next("EN")
        # 09:30 is still the first shift when it ends at 10:00
        assert isinstance(service.issue_next("EN"), Failure)
        clock.set(datetime(2026, 3, 10, 10, 0))
        assert service.issue_next("EN").number == 3
