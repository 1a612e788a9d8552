import asyncio
from datetime import date
from functools import partial
import logging
import signal
import time
import traceback
from typing import Callable, List, Optional

import click
import pendulum
from sqlmodel import Session

from core.config import Settings, settings
from core.constants import (
    DEFAULT_ACTIVATION_TIME,
    DEFAULT_ACTIVE_STATUS,
    DEFAULT_COMPLETED_STATUS,
    DEFAULT_COMPLETION_TIME,
    DEFAULT_SCHEDULED_STATUS,
    TransitionName,
)
from core.db import engine, init_db
from log import setup_logging_to_console, setup_logging_to_file
from services.campaign_store import CampaignStore
from utils.schedule_utils import (
    civil_today,
    next_run_at,
    parse_hhmm,
    resolve_timezone,
    seconds_until,
)

# Initialize logger
logger = logging.getLogger(__name__)


def activate_scheduled_campaigns(
    today: date, tz_name: str, from_status: str, to_status: str, db_engine=None
) -> int:
    with Session(db_engine or engine) as session:
        return CampaignStore(session).activate_scheduled(
            today, from_status, to_status, tz_name
        )


def complete_ended_campaigns(
    today: date, tz_name: str, from_status: str, to_status: str, db_engine=None
) -> int:
    with Session(db_engine or engine) as session:
        return CampaignStore(session).complete_ended(
            today, from_status, to_status, tz_name
        )


def utc_now():
    return pendulum.now(tz=pendulum.UTC)


class TransitionJob:
    """One daily campaign status transition, fired at HH:MM in a timezone.

    Each job keeps its own next-run state, so the activate and complete
    loops never share timers.
    """

    def __init__(
        self,
        name: TransitionName,
        transition: Callable[[date, str, str, str], int],
        fire_time: str,
        default_time: tuple,
        tz_name: str,
        from_status: str,
        to_status: str,
        store_timeout: float,
        clock: Callable[[], pendulum.DateTime] = utc_now,
    ):
        self.name = name
        self.transition = transition
        self.hour, self.minute = parse_hhmm(fire_time, *default_time)
        self.tz_name, self.tz = resolve_timezone(tz_name)
        self.from_status = from_status
        self.to_status = to_status
        self.store_timeout = store_timeout
        self.clock = clock
        self.next_run_at: Optional[pendulum.DateTime] = None

    def __repr__(self):
        return (
            f"TransitionJob({self.name.value}, {self.hour:02d}:{self.minute:02d} "
            f"{self.tz_name}, {self.from_status}->{self.to_status})"
        )

    async def run(self, stop_event: asyncio.Event):
        logger.info("Starting %r", self)
        while not stop_event.is_set():
            now = self.clock()
            self.next_run_at = next_run_at(now, self.tz, self.hour, self.minute)
            delay = seconds_until(self.next_run_at, now)
            logger.info(
                "%s next run at %s (in %.0fs)",
                self.name.value,
                self.next_run_at.to_iso8601_string(),
                delay,
            )

            if await self._wait(stop_event, delay):
                break

            await self.tick()

        logger.info("Stopped %s", self.name.value)

    async def _wait(self, stop_event: asyncio.Event, delay: float) -> bool:
        """Sleep until the next run, returning True if asked to stop first."""
        try:
            await asyncio.wait_for(stop_event.wait(), timeout=delay)
            return True
        except asyncio.TimeoutError:
            return False

    def _run_transition(self, today: date, deadline: float) -> int:
        rows = self.transition(today, self.tz_name, self.from_status, self.to_status)
        if time.monotonic() > deadline:
            logger.warning(
                "%s finished after timing out, moved %d campaign(s) for %s",
                self.name.value,
                rows,
                today.isoformat(),
            )
        return rows

    async def tick(self) -> Optional[int]:
        today = civil_today(self.clock(), self.tz)
        deadline = time.monotonic() + self.store_timeout
        try:
            rows = await asyncio.wait_for(
                asyncio.to_thread(self._run_transition, today, deadline),
                timeout=self.store_timeout,
            )
        except asyncio.TimeoutError:
            logger.error(
                "%s timed out after %ss (from=%s to=%s tz=%s), result unknown",
                self.name.value,
                self.store_timeout,
                self.from_status,
                self.to_status,
                self.tz_name,
            )
            return None
        except Exception as e:
            logger.error(
                "Failed to %s (from=%s to=%s tz=%s): %s",
                self.name.value,
                self.from_status,
                self.to_status,
                self.tz_name,
                e,
            )
            logger.error(traceback.format_exc())
            return None

        if rows > 0:
            logger.info(
                "%s moved %d campaign(s) for %s (from=%s to=%s tz=%s)",
                self.name.value,
                rows,
                today.isoformat(),
                self.from_status,
                self.to_status,
                self.tz_name,
            )
        return rows


class CampaignScheduler:
    def __init__(self, config: Settings = settings, db_engine=None, clock=utc_now):
        self.store_timeout = config.STORE_TIMEOUT_SECONDS
        scheduled = config.CAMPAIGN_SCHEDULED_STATUS or DEFAULT_SCHEDULED_STATUS
        active = config.CAMPAIGN_ACTIVE_STATUS or DEFAULT_ACTIVE_STATUS
        completed = config.CAMPAIGN_COMPLETED_STATUS or DEFAULT_COMPLETED_STATUS

        self.jobs: List[TransitionJob] = [
            TransitionJob(
                name=TransitionName.ACTIVATE,
                transition=partial(activate_scheduled_campaigns, db_engine=db_engine),
                fire_time=config.CAMPAIGN_SCHEDULER_TIME,
                default_time=DEFAULT_ACTIVATION_TIME,
                tz_name=config.CAMPAIGN_SCHEDULER_TZ,
                from_status=scheduled,
                to_status=active,
                store_timeout=self.store_timeout,
                clock=clock,
            ),
            TransitionJob(
                name=TransitionName.COMPLETE,
                transition=partial(complete_ended_campaigns, db_engine=db_engine),
                fire_time=config.CAMPAIGN_COMPLETER_TIME,
                default_time=DEFAULT_COMPLETION_TIME,
                tz_name=config.CAMPAIGN_SCHEDULER_TZ,
                from_status=active,
                to_status=completed,
                store_timeout=self.store_timeout,
                clock=clock,
            ),
        ]
        self._stop_event: Optional[asyncio.Event] = None
        self._tasks: List[asyncio.Task] = []

    @property
    def running(self) -> bool:
        return any(not task.done() for task in self._tasks)

    def start(self):
        if self.running:
            return

        self._stop_event = asyncio.Event()
        self._tasks = [
            asyncio.create_task(job.run(self._stop_event), name=job.name.value)
            for job in self.jobs
        ]

    async def stop(self, timeout: Optional[float] = None):
        """Abandon pending waits and let an in-flight transition finish."""
        if not self._tasks:
            return

        self._stop_event.set()
        timeout = self.store_timeout if timeout is None else timeout
        _, pending = await asyncio.wait(self._tasks, timeout=timeout)
        for task in pending:
            logger.warning("%s did not stop within %ss", task.get_name(), timeout)
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        self._tasks = []


async def run():
    init_db()
    scheduler = CampaignScheduler()
    shutdown = asyncio.Event()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, shutdown.set)

    scheduler.start()
    await shutdown.wait()
    logger.info("Shutting down campaign scheduler...")
    await scheduler.stop()


@click.command()
@click.option(
    "--log-level",
    default="INFO",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Logging level",
)
def main(log_level: str):
    level = logging.getLevelName(log_level.upper())
    setup_logging_to_console(level=level)
    setup_logging_to_file(app="campaign_scheduler", level=level, logger=logger)
    asyncio.run(run())


if __name__ == "__main__":
    main()
