# main.py

"""
Site Scan Worker - Main Entry Point

Examples:
  # Poll the configured job store until SIGINT/SIGTERM
  scan-worker run

  # Queue a job in the local SQLite store, then process it once
  scan-worker enqueue https://example.com --workspace demo
  scan-worker tick -v

  # Audit a single URL without any store and keep the PDF
  scan-worker audit https://example.com -o example.pdf
"""

import sys
import json
import signal
import asyncio
import logging
import argparse
from datetime import datetime, timezone
from typing import Optional

from scan_worker.core.config import Settings, settings
from scan_worker.core.errors import ScanWorkerError
from scan_worker.models.job import Job, JobState
from scan_worker.services import AuditPipeline, JobQueuePoller, ReportRenderer
from scan_worker.stores import build_artifact_store, build_job_store
from scan_worker.utils.url_tools import validate_url

log = logging.getLogger("scan_worker")


# ---------- Logging ----------
def setup_logging(verbosity: int, default: int = logging.WARNING) -> None:
    level = default if verbosity == 0 else logging.INFO if verbosity == 1 else logging.DEBUG
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s %(message)s")


def print_json(obj) -> None:
    print(json.dumps(obj, indent=2, ensure_ascii=False, default=str))


# ---------- Wiring ----------
def build_renderer(config: Settings) -> ReportRenderer:
    return ReportRenderer(headless=config.headless, timeout=config.render_timeout_seconds)


def build_poller(config: Settings, job_store, artifact_store) -> JobQueuePoller:
    return JobQueuePoller(
        job_store=job_store,
        artifact_store=artifact_store,
        pipeline=AuditPipeline.from_settings(config),
        renderer=build_renderer(config),
        poll_interval=config.poll_interval_seconds,
    )


def install_stop_handlers(stop_event: asyncio.Event) -> None:
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except (NotImplementedError, RuntimeError):
            # Windows: KeyboardInterrupt still ends the loop
            log.debug(f"Signal handler for {sig!r} not supported on this platform")


# ---------- Commands ----------
async def run_worker(config: Settings, once: bool = False) -> Optional[Job]:
    job_store = build_job_store(config)
    try:
        artifact_store = build_artifact_store(config)
        try:
            await job_store.init()
            poller = build_poller(config, job_store, artifact_store)
            if once:
                return await poller.tick()

            stop_event = asyncio.Event()
            install_stop_handlers(stop_event)
            await poller.run(stop_event)
            return None
        finally:
            await artifact_store.close()
    finally:
        await job_store.close()


async def enqueue_job(config: Settings, url: str, workspace_id: str) -> Job:
    job_store = build_job_store(config)
    try:
        await job_store.init()
        return await job_store.enqueue(validate_url(url), workspace_id)
    finally:
        await job_store.close()


async def audit_url(config: Settings, url: str, out: Optional[str]) -> dict:
    url = validate_url(url)
    job = Job(
        id="adhoc",
        url=url,
        workspace_id="local",
        status=JobState.RUNNING,
        created_at=datetime.now(timezone.utc),
        started_at=datetime.now(timezone.utc),
    )
    summary = await AuditPipeline.from_settings(config).run(url)
    if out:
        pdf = await build_renderer(config).render(job, summary)
        with open(out, "wb") as f:
            f.write(pdf)
        log.info(f"Saved report to {out}")
    return summary.to_json()


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="scan-worker",
        description="Background website audit worker (Lighthouse, headers, SEO, tech stack, broken links)."
    )
    parser.add_argument("-v", "--verbose", action="count", default=0, help="-v for INFO, -vv for DEBUG.")
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("run", help="Poll the job store until interrupted.")
    commands.add_parser("tick", help="Lease and process at most one pending job.")

    enqueue = commands.add_parser("enqueue", help="Create a pending scan job.")
    enqueue.add_argument("url", help="Absolute http(s) URL to audit.")
    enqueue.add_argument("--workspace", required=True, help="Owning workspace id.")

    audit = commands.add_parser("audit", help="Audit one URL directly, without a job store.")
    audit.add_argument("url", help="Absolute http(s) URL to audit.")
    audit.add_argument("-o", "--out", help="Write the PDF report to this path.")
    return parser


async def dispatch(args, config: Settings):
    if args.command == "run":
        await run_worker(config)
    elif args.command == "tick":
        job = await run_worker(config, once=True)
        print_json(job.model_dump(mode="json") if job else {"status": "idle"})
    elif args.command == "enqueue":
        job = await enqueue_job(config, args.url, args.workspace)
        print_json(job.model_dump(mode="json"))
    elif args.command == "audit":
        print_json(await audit_url(config, args.url, args.out))


def main(argv=None):
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose, default=logging.INFO if args.command == "run" else logging.WARNING)
    try:
        asyncio.run(dispatch(args, settings))
    except KeyboardInterrupt:
        print("\nInterrupted.")
    except ScanWorkerError as e:
        log.error(f"{type(e).__name__}: {e}")
        sys.exit(1)
    except Exception as e:
        log.exception("Worker crashed: %s", e)
        sys.exit(1)


if __name__ == "__main__":
    main()
