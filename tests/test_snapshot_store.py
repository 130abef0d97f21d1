from __future__ import annotations

import threading

from _fakes import make_snapshot

from fsbridge.state.store import EMPTY_SNAPSHOT, SnapshotStore


def test_read_before_any_write_returns_empty_marker() -> None:
    store = SnapshotStore()

    assert store.read_latest_or_empty() is EMPTY_SNAPSHOT
    assert store.is_empty
    assert store.writes == 0


def test_latest_write_wins() -> None:
    store = SnapshotStore()
    first = make_snapshot(title="First")
    second = make_snapshot(title="Second", altitude=3500.0)

    store.write(first)
    store.write(second)

    assert store.read_latest_or_empty() is second
    assert not store.is_empty
    assert store.writes == 2


def test_concurrent_readers_never_observe_mixed_snapshots() -> None:
    store = SnapshotStore()
    rounds = 2000
    errors: list[str] = []

    def writer(offset: int) -> None:
        for i in range(rounds):
            value = float(offset + i)
            store.write(
                make_snapshot(
                    title=str(offset + i),
                    latitude=value,
                    longitude=value,
                    altitude=value,
                    heading_magnetic=value,
                    airspeed_true=value,
                    vertical_speed=value,
                )
            )

    def reader() -> None:
        for _ in range(rounds):
            snapshot = store.read_latest_or_empty()
            if snapshot is EMPTY_SNAPSHOT:
                continue
            expected = float(snapshot.title)
            values = (
                snapshot.latitude,
                snapshot.longitude,
                snapshot.altitude,
                snapshot.heading_magnetic,
                snapshot.airspeed_true,
                snapshot.vertical_speed,
            )
            if any(v != expected for v in values):
                errors.append(snapshot.title)

    threads = [
        threading.Thread(target=writer, args=(0,)),
        threading.Thread(target=writer, args=(100_000,)),
        threading.Thread(target=reader),
        threading.Thread(target=reader),
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    assert store.writes == 2 * rounds
