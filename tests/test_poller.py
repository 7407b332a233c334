import asyncio
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, patch

import pytest

from conftest import standard_checks
from scan_worker.checks import SeoInspector
from scan_worker.core.errors import LeaseError, StorageError
from scan_worker.models.job import JobState
from scan_worker.models.summary import Summary
from scan_worker.services.pipeline import AuditPipeline
from scan_worker.services.poller import LEASE_ATTEMPTS, JobQueuePoller
from scan_worker.services.report_renderer import ReportRenderer
from scan_worker.stores.local import LocalArtifactStore
from scan_worker.stores.memory import MemoryJobStore

FAKE_PDF = b"%PDF-1.4 fake report"


class HangingSeoInspector(SeoInspector):
    async def run(self, session, url):
        await asyncio.sleep(10)


class LocatorTimeoutSeoInspector(SeoInspector):
    async def run(self, session, url):
        raise TimeoutError("Timeout 30000ms exceeded waiting for locator('h1')")


class TickingClock:
    def __init__(self):
        self.now = datetime(2024, 5, 1, 13, 0, tzinfo=timezone.utc)

    def __call__(self):
        self.now += timedelta(seconds=1)
        return self.now


@pytest.fixture
def job_store():
    return MemoryJobStore()


@pytest.fixture
def artifact_store(tmp_path):
    return LocalArtifactStore(str(tmp_path / "reports"), public_base_url="https://cdn.example.com/reports")


@pytest.fixture
def renderer():
    renderer = ReportRenderer()
    with patch.object(renderer, "_print_pdf", AsyncMock(return_value=FAKE_PDF)):
        yield renderer


@pytest.fixture
def make_poller(job_store, artifact_store, renderer, session_factory):
    def _make(checks=None, timeouts=None):
        pipeline = AuditPipeline(session_factory, checks or standard_checks(), timeouts)
        return JobQueuePoller(job_store, artifact_store, pipeline, renderer, poll_interval=0.01, clock=TickingClock())

    return _make


class TestTick:
    @pytest.mark.asyncio
    async def test_idle_when_no_pending_jobs(self, make_poller, job_store):
        assert await make_poller().tick() is None
        assert job_store.jobs == {}

    @pytest.mark.asyncio
    async def test_happy_path(self, make_poller, job_store, artifact_store, make_job, tmp_path):
        job_store.add(make_job("job-42", url="https://example.com", workspace_id="ws-7"))

        result = await make_poller().tick()

        stored = await job_store.get("job-42")
        assert result == stored
        assert stored.status == JobState.DONE
        assert stored.started_at is not None
        assert stored.finished_at > stored.started_at
        assert stored.artifact_url == artifact_store.public_url("ws-7/job-42.pdf")
        assert stored.artifact_url == "https://cdn.example.com/reports/ws-7/job-42.pdf"
        assert (tmp_path / "reports" / "ws-7" / "job-42.pdf").read_bytes() == FAKE_PDF

        summary = Summary.model_validate(stored.summary)
        for score in summary.scores.to_json().values():
            assert 0 <= score <= 100
        assert summary.broken_links.links[0].url == "https://example.com/c"

    @pytest.mark.asyncio
    async def test_check_budget_overrun_marks_job_failed(self, make_poller, job_store, make_job):
        checks = standard_checks()
        checks[2] = HangingSeoInspector()
        job_store.add(make_job("job-1"))

        await make_poller(checks, timeouts={"SeoInspector": 0.05}).tick()

        stored = await job_store.get("job-1")
        assert stored.status == JobState.FAILED
        assert stored.summary == {"error": "SeoInspector timed out after 0.05s"}
        assert stored.artifact_url is None
        assert stored.finished_at is not None

    @pytest.mark.asyncio
    async def test_check_timeout_message_is_recorded(self, make_poller, job_store, make_job):
        checks = standard_checks()
        checks[2] = LocatorTimeoutSeoInspector()
        job_store.add(make_job("job-1"))

        await make_poller(checks).tick()

        stored = await job_store.get("job-1")
        assert stored.status == JobState.FAILED
        assert stored.summary == {"error": "Timeout 30000ms exceeded waiting for locator('h1')"}
        assert stored.artifact_url is None

    @pytest.mark.asyncio
    async def test_storage_failure_marks_job_failed(self, make_poller, job_store, artifact_store, make_job):
        job_store.add(make_job("job-1"))
        with patch.object(artifact_store, "upload", AsyncMock(side_effect=StorageError("Failed to upload PDF: 503"))):
            await make_poller().tick()

        stored = await job_store.get("job-1")
        assert stored.status == JobState.FAILED
        assert stored.summary == {"error": "Failed to upload PDF: 503"}
        assert stored.artifact_url is None

    @pytest.mark.asyncio
    async def test_invalid_url_marks_job_failed(self, make_poller, job_store, session_factory, make_job):
        job_store.add(make_job("job-1", url="ftp://example.com/file"))

        await make_poller().tick()

        stored = await job_store.get("job-1")
        assert stored.status == JobState.FAILED
        assert "Invalid URL scheme" in stored.summary["error"]
        assert session_factory.opened == 0

    @pytest.mark.asyncio
    async def test_oldest_pending_job_first(self, make_poller, job_store, make_job):
        job_store.add(make_job("newer", minutes=5))
        job_store.add(make_job("older", minutes=1))
        job_store.add(make_job("done-already", minutes=0, status=JobState.DONE))

        result = await make_poller().tick()

        assert result.id == "older"
        assert (await job_store.get("newer")).status == JobState.PENDING
        assert (await job_store.get("done-already")).status == JobState.DONE

    @pytest.mark.asyncio
    async def test_lost_lease_skips_processing(self, make_poller, job_store, session_factory, make_job):
        job_store.add(make_job("job-1"))
        lease = AsyncMock(return_value=False)
        with patch.object(job_store, "try_lease", lease):
            assert await make_poller().tick() is None

        assert lease.await_count == LEASE_ATTEMPTS
        assert session_factory.opened == 0
        assert (await job_store.get("job-1")).status == JobState.PENDING

    @pytest.mark.asyncio
    async def test_lost_lease_moves_on_to_next_pending_job(self, make_poller, job_store, make_job):
        job_store.add(make_job("contested", minutes=0))
        job_store.add(make_job("next", minutes=1))
        original_lease = job_store.try_lease

        async def lease(job_id, started_at):
            if job_id == "contested":
                # another worker wins this one first
                await original_lease(job_id, started_at)
                return False
            return await original_lease(job_id, started_at)

        with patch.object(job_store, "try_lease", lease):
            result = await make_poller().tick()

        assert result.id == "next"
        assert result.status == JobState.DONE
        assert (await job_store.get("contested")).status == JobState.RUNNING

    @pytest.mark.asyncio
    async def test_lease_error_is_transient(self, make_poller, job_store, session_factory, make_job):
        job_store.add(make_job("job-1"))
        poller = make_poller()

        with patch.object(job_store, "fetch_oldest_pending", AsyncMock(side_effect=LeaseError("connection reset"))):
            assert await poller.tick() is None
        assert (await job_store.get("job-1")).status == JobState.PENDING
        assert session_factory.opened == 0

        result = await poller.tick()
        assert result.status == JobState.DONE

    @pytest.mark.asyncio
    async def test_status_transitions_are_monotonic(self, make_poller, job_store, make_job):
        seen = []
        original_lease = job_store.try_lease
        original_finalize = job_store.finalize

        async def lease(job_id, started_at):
            seen.append((job_store.jobs[job_id].status, JobState.RUNNING))
            return await original_lease(job_id, started_at)

        async def finalize(job_id, status, *args, **kwargs):
            seen.append((job_store.jobs[job_id].status, status))
            return await original_finalize(job_id, status, *args, **kwargs)

        job_store.add(make_job("job-1"))
        with patch.object(job_store, "try_lease", lease), patch.object(job_store, "finalize", finalize):
            await make_poller().tick()

        assert seen == [(JobState.PENDING, JobState.RUNNING), (JobState.RUNNING, JobState.DONE)]


class TestRun:
    @pytest.mark.asyncio
    async def test_processes_queue_until_stopped(self, make_poller, job_store, make_job):
        job_store.add(make_job("job-1", minutes=0))
        job_store.add(make_job("job-2", minutes=1))
        poller = make_poller()
        stop_event = asyncio.Event()

        async def stop_when_drained():
            while any(j.status == JobState.PENDING for j in job_store.jobs.values()):
                await asyncio.sleep(0.005)
            stop_event.set()

        await asyncio.wait_for(asyncio.gather(poller.run(stop_event), stop_when_drained()), timeout=5)

        assert {j.status for j in job_store.jobs.values()} == {JobState.DONE}

    @pytest.mark.asyncio
    async def test_store_failure_outside_a_job_is_fatal(self, make_poller, job_store, make_job):
        job_store.add(make_job("job-1"))
        poller = make_poller()

        with patch.object(job_store, "finalize", AsyncMock(side_effect=RuntimeError("store unreachable"))):
            with pytest.raises(RuntimeError, match="store unreachable"):
                await poller.run(asyncio.Event())
