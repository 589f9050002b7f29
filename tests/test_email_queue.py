"""Tests for the in-process email queue."""
import asyncio

import pytest

from contentflow.core.integrations.email import EmailJob, EmailPriority, EmailQueue, JobState


class FakeSender:
    """Records sends and fails for addresses listed in ``failing``."""

    def __init__(self, failing=(), fail_times=None):
        self.failing = set(failing)
        self.fail_times = fail_times
        self.calls = []

    async def __call__(self, job: EmailJob) -> None:
        self.calls.append(job.to)
        if job.to in self.failing:
            if self.fail_times is None or self.calls.count(job.to) <= self.fail_times:
                raise ConnectionError("smtp down")


def _job(to, priority=EmailPriority.NORMAL):
    return EmailJob(to=to, subject="Subject", body="Body", priority=priority)


def test_priority_tiers_then_fifo():
    queue = EmailQueue(FakeSender())
    queue.enqueue(_job("low@example.com", EmailPriority.LOW))
    queue.enqueue(_job("normal1@example.com"))
    queue.enqueue(_job("high@example.com", EmailPriority.HIGH))
    queue.enqueue(_job("normal2@example.com"))

    assert [job.to for job in queue.peek_order()] == [
        "high@example.com", "normal1@example.com", "normal2@example.com", "low@example.com",
    ]


@pytest.mark.asyncio
async def test_drain_sends_in_priority_order():
    sender = FakeSender()
    queue = EmailQueue(sender)
    queue.enqueue(_job("b@example.com", EmailPriority.LOW))
    queue.enqueue(_job("a@example.com", EmailPriority.HIGH))

    await queue.drain()

    assert sender.calls == ["a@example.com", "b@example.com"]
    assert queue.pending() == 0
    assert [job.state for job in queue.sent] == [JobState.SENT, JobState.SENT]


@pytest.mark.asyncio
async def test_failed_job_goes_to_back_of_its_tier():
    sender = FakeSender(failing={"flaky@example.com"}, fail_times=1)
    queue = EmailQueue(sender)
    queue.enqueue(_job("flaky@example.com"))
    queue.enqueue(_job("steady@example.com"))

    job = await queue.process_next()
    assert job.state == JobState.RETRYING
    assert job.attempts == 1
    assert [j.to for j in queue.peek_order()] == ["steady@example.com", "flaky@example.com"]

    await queue.drain()
    assert sender.calls == ["flaky@example.com", "steady@example.com", "flaky@example.com"]
    assert not queue.failed


@pytest.mark.asyncio
async def test_job_dropped_after_max_attempts():
    sender = FakeSender(failing={"dead@example.com"})
    queue = EmailQueue(sender, max_attempts=3)
    job_id = queue.enqueue(_job("dead@example.com"))

    await queue.drain()

    assert sender.calls.count("dead@example.com") == 3
    assert len(queue.failed) == 1
    failed = queue.failed[0]
    assert failed.id == job_id
    assert failed.state == JobState.FAILED
    assert failed.last_error == "smtp down"


@pytest.mark.asyncio
async def test_process_next_on_empty_queue():
    queue = EmailQueue(FakeSender())
    assert await queue.process_next() is None


@pytest.mark.asyncio
async def test_background_worker_delivers():
    sender = FakeSender()
    queue = EmailQueue(sender, retry_delay=0)
    queue.start()
    assert queue.running

    queue.enqueue(_job("bg@example.com"))
    for _ in range(50):
        if sender.calls:
            break
        await asyncio.sleep(0.01)

    await queue.stop()
    assert sender.calls == ["bg@example.com"]
    assert not queue.running
