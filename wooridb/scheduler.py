"""Daily compression of old transaction logs."""

from __future__ import annotations

import logging
import threading
from datetime import datetime, time, timedelta, timezone
from pathlib import Path
from typing import Callable

import zstandard

logger = logging.getLogger(__name__)

RETENTION = timedelta(days=10)
COMPRESSION_LEVEL = 22


def duration_until_next(now: datetime | None = None) -> timedelta:
    """Time from now until the next local midnight, in whole milliseconds."""
    current = now if now is not None else datetime.now().astimezone()
    midnight = datetime.combine(
        current.date() + timedelta(days=1), time(), tzinfo=current.tzinfo
    )
    delta = midnight - current
    return timedelta(milliseconds=delta // timedelta(milliseconds=1))


def compress_old_logs(
    directory: str | Path = "data", now: datetime | None = None
) -> list[Path]:
    """Compress daily logs older than the retention period and remove the originals."""
    current = now if now is not None else datetime.now(timezone.utc)
    if current.tzinfo is None:
        current = current.replace(tzinfo=timezone.utc)
    cutoff = current - RETENTION
    compressed: list[Path] = []
    for path in sorted(Path(directory).glob("*.log")):
        try:
            file_date = datetime.strptime(path.stem, "%Y_%m_%d").replace(
                tzinfo=timezone.utc
            )
        except ValueError:
            continue
        if file_date >= cutoff:
            continue
        target = path.with_suffix(".zst")
        with path.open("rb") as source, target.open("wb") as sink:
            zstandard.ZstdCompressor(level=COMPRESSION_LEVEL).copy_stream(source, sink)
        path.unlink()
        compressed.append(target)
    return compressed


class Scheduler:
    """Runs log compression every day at local midnight on a background thread."""

    def __init__(
        self,
        directory: str | Path = "data",
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.directory = Path(directory)
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def run_once(self) -> list[Path]:
        """Compress the old logs now; return the compressed files."""
        now = self._clock()
        logger.debug("schedule_task event - %s", now)
        return compress_old_logs(self.directory, now)

    def _run(self) -> None:
        logger.debug("Scheduler is alive")
        while not self._stop.wait(duration_until_next().total_seconds()):
            try:
                self.run_once()
            except OSError:
                logger.exception("log compression failed")
        logger.debug("Scheduler is stopped")

    def start(self) -> None:
        if self.is_running:
            raise RuntimeError("scheduler already running")
        self._stop = threading.Event()
        self._thread = threading.Thread(
            target=self._run, name="wooridb-scheduler", daemon=True
        )
        self._thread.start()

    def stop(self) -> None:
        if self._thread is None:
            return
        self._stop.set()
        self._thread.join()
        self._thread = None

    def __enter__(self) -> Scheduler:
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()