"""In-process email queue.

Jobs are served by priority tier (high, normal, low) and first-in
first-out within a tier. A failed job goes back to the end of its tier
until it has been attempted ``max_attempts`` times, then it is dropped.
"""
import asyncio
import heapq
import itertools
import logging
import uuid
from collections import deque
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Awaitable, Callable, Deque, List, Optional

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 3
# Finished jobs kept for inspection
HISTORY_SIZE = 500


class EmailPriority(IntEnum):
    HIGH = 0
    NORMAL = 1
    LOW = 2


class JobState(str, Enum):
    QUEUED = "queued"
    RETRYING = "retrying"
    SENT = "sent"
    FAILED = "failed"


@dataclass
class EmailJob:
    to: str
    subject: str
    body: str
    priority: EmailPriority = EmailPriority.NORMAL
    attempts: int = 0
    state: JobState = JobState.QUEUED
    last_error: Optional[str] = None
    id: str = field(default_factory=lambda: uuid.uuid4().hex)


SendFunc = Callable[[EmailJob], Awaitable[None]]


class EmailQueue:
    """Priority queue drained by a background worker task.

    ``enqueue`` never blocks and never raises on delivery problems.
    """

    def __init__(
        self,
        send: SendFunc,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        retry_delay: float = 1.0,
    ):
        self._send = send
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay
        self._heap: List[tuple[int, int, EmailJob]] = []
        self._counter = itertools.count()
        self._wakeup = asyncio.Event()
        self._worker: Optional[asyncio.Task] = None
        self.sent: Deque[EmailJob] = deque(maxlen=HISTORY_SIZE)
        self.failed: Deque[EmailJob] = deque(maxlen=HISTORY_SIZE)

    def enqueue(self, job: EmailJob) -> str:
        """Add a job and wake the worker. Returns the job id."""
        heapq.heappush(self._heap, (int(job.priority), next(self._counter), job))
        self._wakeup.set()
        return job.id

    def pending(self) -> int:
        return len(self._heap)

    def peek_order(self) -> List[EmailJob]:
        """Pending jobs in the order they would be sent."""
        return [job for _, _, job in sorted(self._heap)]

    async def process_next(self) -> Optional[EmailJob]:
        """Attempt the next job once. Returns it, or None if the queue is empty."""
        if not self._heap:
            return None
        _, _, job = heapq.heappop(self._heap)
        job.attempts += 1
        try:
            await self._send(job)
        except Exception as e:
            job.last_error = str(e)
            if job.attempts < self.max_attempts:
                logger.warning(
                    f"Email {job.id} to {job.to} failed "
                    f"(attempt {job.attempts}/{self.max_attempts}): {e}"
                )
                job.state = JobState.RETRYING
                self.enqueue(job)
            else:
                logger.error(f"Email {job.id} to {job.to} dropped after {job.attempts} attempts: {e}")
                job.state = JobState.FAILED
                self.failed.append(job)
            return job

        logger.info(f"Email {job.id} sent to {job.to}")
        job.state = JobState.SENT
        self.sent.append(job)
        return job

    async def drain(self) -> None:
        """Process until empty, retries included, without delays."""
        while self._heap:
            await self.process_next()

    async def _run(self) -> None:
        while True:
            if not self._heap:
                self._wakeup.clear()
                await self._wakeup.wait()
                continue
            job = await self.process_next()
            if job is not None and job.state == JobState.RETRYING:
                await asyncio.sleep(self.retry_delay)

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    def start(self) -> None:
        if not self.running:
            self._worker = asyncio.create_task(self._run())

    async def stop(self) -> None:
        if self._worker is None:
            return
        self._worker.cancel()
        try:
            await self._worker
        except asyncio.CancelledError:
            pass
        self._worker = None
