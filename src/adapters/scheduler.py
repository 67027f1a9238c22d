"""Periodic and daily triggers built on the `schedule` library."""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

import schedule

LOGGER = logging.getLogger(__name__)

Job = Callable[[], object]


def _guarded(name: str, job: Job) -> Callable[[], None]:
    def run() -> None:
        try:
            job()
        except Exception:
            LOGGER.exception("Scheduled job %s failed", name)

    return run


def schedule_periodic(scheduler: schedule.Scheduler, name: str, seconds: int, job: Job) -> schedule.Job:
    """Register `job` every `seconds`, replacing any earlier job with this name."""

    if seconds <= 0:
        raise ValueError(f"Interval for {name} must be positive, got {seconds}")
    scheduler.clear(name)
    registered = scheduler.every(seconds).seconds.do(_guarded(name, job)).tag(name)
    LOGGER.info("Scheduled %s every %ss", name, seconds)
    return registered


def schedule_daily(scheduler: schedule.Scheduler, name: str, at: str, job: Job) -> schedule.Job:
    """Register `job` once a day at local "HH:MM", replacing any earlier job with this name."""

    scheduler.clear(name)
    registered = scheduler.every().day.at(at).do(_guarded(name, job)).tag(name)
    LOGGER.info("Scheduled %s daily at %s", name, at)
    return registered


def run_forever(
    scheduler: schedule.Scheduler,
    poll_seconds: float = 1.0,
    sleep: Callable[[float], None] = time.sleep,
    max_iterations: Optional[int] = None,
) -> None:
    """Run pending jobs until interrupted (or for `max_iterations` polls)."""

    iterations = 0
    try:
        while max_iterations is None or iterations < max_iterations:
            scheduler.run_pending()
            sleep(poll_seconds)
            iterations += 1
    except KeyboardInterrupt:
        LOGGER.info("Scheduler stopped by user")
