import argparse
import asyncio
import logging
from collections.abc import Awaitable, Callable

from sqlalchemy.ext.asyncio import async_sessionmaker

from stacka.infra.db import dispose_engine, get_session_factory
from stacka.infra.logging import clear_log_context, configure_logging, update_log_context
from stacka.infra.metrics import configure_metrics, metrics
from stacka.jobs import recurring_expenses
from stacka.settings import settings

logger = logging.getLogger(__name__)

DEFAULT_JOBS = ["recurring-expenses"]


async def _run_job(
    name: str,
    session_factory: async_sessionmaker,
    runner: Callable[[object], Awaitable[dict[str, int]]],
) -> dict[str, int]:
    update_log_context(job=name)
    try:
        async with session_factory() as session:
            result = await runner(session)
        logger.info("job_complete", extra={"extra": {"job": name, **result}})
        metrics.record_job_success(name)
        return result
    finally:
        clear_log_context()


def _job_runner(name: str) -> Callable[[object], Awaitable[dict[str, int]]]:
    if name == "recurring-expenses":
        return lambda session: recurring_expenses.run_recurring_expenses(
            session, tz_name=settings.timezone
        )
    raise ValueError(f"unknown_job:{name}")


async def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Run scheduled jobs")
    parser.add_argument("--job", action="append", dest="jobs", help="Job name to run")
    parser.add_argument(
        "--interval",
        type=int,
        default=settings.job_interval_seconds,
        help="Seconds between loops when not using --once",
    )
    parser.add_argument("--once", action="store_true", help="Run jobs once and exit")
    args = parser.parse_args(argv)

    configure_logging()
    configure_metrics(settings.metrics_enabled)
    session_factory = get_session_factory()

    job_names = args.jobs or DEFAULT_JOBS
    runners = [_job_runner(name) for name in job_names]

    try:
        while True:
            for name, runner in zip(job_names, runners):
                try:
                    await _run_job(name, session_factory, runner)
                except Exception as exc:  # noqa: BLE001
                    metrics.record_job_error(name, type(exc).__name__)
                    logger.warning(
                        "job_failed", extra={"extra": {"job": name, "reason": type(exc).__name__}}
                    )
            if args.once:
                break
            await asyncio.sleep(max(args.interval, 1))
    finally:
        await dispose_engine()


if __name__ == "__main__":
    asyncio.run(main())
