"""Queue class identity, parsing and the day/shift helpers."""

from datetime import datetime

import pytest

from apps.tickets.queue_class import (
    InvalidQueueClass, Origin, Priority, QueueClass, build_queue_classes, parse_queue_class, shift_bounds
)
from apps.tickets.settings import QueueSettings, ServiceClock


def test_two_jurisdictions_give_four_classes():
    classes = build_queue_classes(["E", "M"])
    assert [qc.code for qc in classes] == ["EN", "EP", "MN", "MP"]


def test_single_jurisdiction_gives_two_classes():
    classes = build_queue_classes([])
    assert [qc.code for qc in classes] == ["N", "P"]
    assert all(qc.origin is None for qc in classes)
    assert classes[0].origin_key == ""


def test_repeated_origins_are_ignored():
    assert len(build_queue_classes(["e", "E", "m"])) == 4


def test_unknown_origin_is_rejected():
    with pytest.raises(InvalidQueueClass):
        build_queue_classes(["X"])


@pytest.mark.parametrize("code", ["EN", "en", " En ", "eN"])
def test_parse_is_case_and_space_tolerant(code):
    qc = parse_queue_class(code, build_queue_classes(["E", "M"]))
    assert qc == QueueClass(priority=Priority.NORMAL, origin=Origin.ESTADUAL)


@pytest.mark.parametrize("code", ["", None, "X", "EX", "N", "ENN"])
def test_parse_rejects_codes_outside_the_deployment(code):
    with pytest.raises(InvalidQueueClass):
        parse_queue_class(code, build_queue_classes(["E", "M"]))


def test_origin_codes_are_invalid_in_single_jurisdiction():
    with pytest.raises(InvalidQueueClass):
        parse_queue_class("EN", build_queue_classes([]))
    assert parse_queue_class("p", build_queue_classes([])).code == "P"


def test_queue_class_is_immutable_and_hashable():
    qc = QueueClass(priority=Priority.PRIORITY, origin=Origin.MUNICIPAL)
    with pytest.raises(Exception):
        qc.priority = Priority.NORMAL
    assert {qc: 1}[QueueClass(priority=Priority.PRIORITY, origin=Origin.MUNICIPAL)] == 1


def test_display_code_and_labels():
    qc = QueueClass(priority=Priority.PRIORITY, origin=Origin.MUNICIPAL)
    assert qc.display_code(7) == "MP7"
    assert qc.label == "Municipal Prioritária"
    assert not qc.is_normal
    assert QueueClass.from_row("", "N") == QueueClass(priority=Priority.NORMAL)


def test_morning_shift_bounds():
    since, until = shift_bounds(datetime(2026, 3, 10, 11, 59), 12)
    assert since == datetime(2026, 3, 10, 0, 0)
    assert until == datetime(2026, 3, 10, 12, 0)


def test_afternoon_shift_ends_at_midnight():
    since, until = shift_bounds(datetime(2026, 3, 31, 12, 0), 12)
    assert since == datetime(2026, 3, 31, 12, 0)
    assert until == datetime(2026, 4, 1, 0, 0)


def test_settings_validate_scope_and_batch():
    classes = build_queue_classes([])
    with pytest.raises(ValueError):
        QueueSettings(queue_classes=classes, rate_limit_scope="region")
    with pytest.raises(ValueError):
        QueueSettings(queue_classes=classes, max_batch=0)
    with pytest.raises(ValueError):
        QueueSettings(queue_classes=classes, shift_boundary_hour=24)


def test_settings_from_config_accepts_overrides():
    settings = QueueSettings.from_config(daily_normal_cap=10, queue_classes=build_queue_classes([]))
    assert settings.daily_normal_cap == 10
    assert [qc.code for qc in settings.queue_classes] == ["N", "P"]


def test_service_clock_returns_naive_local_time():
    now = ServiceClock("America/Sao_Paulo")()
    assert now.tzinfo is None
    assert abs((ServiceClock("UTC")() - now).total_seconds() - 3 * 3600) < 60
