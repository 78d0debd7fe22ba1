"""Keyed locks used to serialize allocation per class and day."""

import threading
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import date

from apps.tickets.locks import KeyedLockRegistry, advisory_lock_id, advisory_lock_name, allocation_key
from apps.tickets.queue_class import Origin, Priority, QueueClass

EN = QueueClass(priority=Priority.NORMAL, origin=Origin.ESTADUAL)
MN = QueueClass(priority=Priority.NORMAL, origin=Origin.MUNICIPAL)


def test_allocation_key_is_class_and_day():
    assert allocation_key(EN, date(2026, 3, 10)) == ("EN", "2026-03-10")
    assert allocation_key(EN, date(2026, 3, 10)) != allocation_key(MN, date(2026, 3, 10))
    assert allocation_key(EN, date(2026, 3, 10)) != allocation_key(EN, date(2026, 3, 11))


def test_advisory_lock_id_is_stable_signed_64_bit():
    key = allocation_key(EN, date(2026, 3, 10))
    lock_id = advisory_lock_id(key)
    assert lock_id == advisory_lock_id(("EN", "2026-03-10"))
    assert -(2 ** 63) <= lock_id < 2 ** 63
    assert lock_id != advisory_lock_id(allocation_key(MN, date(2026, 3, 10)))


def test_advisory_lock_name_fits_mysql_limit():
    assert len(advisory_lock_name(("X" * 80, "2026-03-10"))) <= 64


def test_same_key_is_serialized():
    registry = KeyedLockRegistry()
    inside = []
    overlaps = []

    def critical(_):
        with registry.hold("EN"):
            inside.append(1)
            if len(inside) > 1:
                overlaps.append(1)
            time.sleep(0.01)
            inside.pop()

    with ThreadPoolExecutor(max_workers=8) as pool:
        list(pool.map(critical, range(16)))

    assert overlaps == []
    assert len(registry) == 0


def test_different_keys_do_not_block_each_other():
    registry = KeyedLockRegistry()
    held = threading.Event()
    release = threading.Event()

    def hold_en():
        with registry.hold("EN"):
            held.set()
            release.wait(timeout=5)

    worker = threading.Thread(target=hold_en)
    worker.start()
    assert held.wait(timeout=5)

    acquired = threading.Event()

    def take_mn():
        with registry.hold("MN"):
            acquired.set()

    other = threading.Thread(target=take_mn)
    other.start()
    assert acquired.wait(timeout=2)

    release.set()
    worker.join()
    other.join()
    assert len(registry) == 0


def test_lock_released_when_body_raises():
    registry = KeyedLockRegistry()
    try:
        with registry.hold("EP"):
            raise RuntimeError("boom")
    except RuntimeError:
        pass
    with registry.hold("EP"):
        assert len(registry) == 1
