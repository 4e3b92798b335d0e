from datetime import datetime, timedelta, timezone

import pytest
import zstandard

from wooridb.scheduler import Scheduler, compress_old_logs, duration_until_next

NOW = datetime(2021, 1, 20, tzinfo=timezone.utc)


def _decompress(path):
    with path.open("rb") as handle:
        return zstandard.ZstdDecompressor().stream_reader(handle).read()


def test_duration_one_hour_before_midnight():
    assert duration_until_next(datetime(2021, 1, 8, 23, 0)) == timedelta(hours=1)


def test_duration_at_midnight_is_full_day():
    assert duration_until_next(datetime(2021, 1, 8)) == timedelta(days=1)


@pytest.mark.parametrize(
    "now",
    [
        datetime(2021, 1, 8, 12, 30, 15, 123456),
        datetime(2021, 12, 31, 0, 0, 1),
        datetime(2021, 2, 9, 16, 44, 3, tzinfo=timezone(timedelta(hours=3))),
    ],
)
def test_duration_reaches_midnight(now):
    delta = duration_until_next(now)
    assert timedelta(0) < delta <= timedelta(days=1)
    target = now + delta
    assert (target.hour, target.minute, target.second) == (0, 0, 0)
    assert target.date() == now.date() + timedelta(days=1)


def test_duration_default_is_within_a_day():
    assert timedelta(0) <= duration_until_next() <= timedelta(days=1)


def _make_logs(directory):
    directory.mkdir(exist_ok=True)
    old = directory / "2020_01_01.log"
    old.write_bytes(b"INSERT|old;")
    edge = directory / "2021_01_10.log"
    edge.write_bytes(b"edge;")
    recent = directory / "2021_01_19.log"
    recent.write_bytes(b"recent;")
    other = directory / "local_data.log"
    other.write_bytes(b"{}")
    return old, edge, recent, other


def test_compress_old_logs(tmp_path):
    data = tmp_path / "data"
    old, edge, recent, other = _make_logs(data)
    compressed = compress_old_logs(data, NOW)
    assert compressed == [data / "2020_01_01.zst"]
    assert not old.exists()
    assert _decompress(compressed[0]) == b"INSERT|old;"
    assert edge.exists() and recent.exists() and other.exists()


def test_compress_nothing_when_recent(tmp_path):
    data = tmp_path / "data"
    _make_logs(data)
    assert compress_old_logs(data, datetime(2020, 1, 2, tzinfo=timezone.utc)) == []


def test_run_once_uses_clock(tmp_path):
    data = tmp_path / "data"
    old, *_ = _make_logs(data)
    scheduler = Scheduler(data, clock=lambda: NOW)
    assert scheduler.run_once() == [data / "2020_01_01.zst"]
    assert not old.exists()


def test_start_and_stop(tmp_path):
    scheduler = Scheduler(tmp_path, clock=lambda: NOW)
    scheduler.start()
    assert scheduler.is_running
    with pytest.raises(RuntimeError):
        scheduler.start()
    scheduler.stop()
    assert not scheduler.is_running


def test_context_manager(tmp_path):
    with Scheduler(tmp_path) as scheduler:
        assert scheduler.is_running
    assert not scheduler.is_running