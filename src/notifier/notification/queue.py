"""Durable work queue contract.

The queue owns retries and backoff for the jobs it accepts; the
orchestrator only hands work over and never retries on its own.
"""

from abc import ABC, abstractmethod
from uuid import uuid4


class WorkQueue(ABC):
    @abstractmethod
    def enqueue(self, job_type: str, payload: dict, priority: int = 0, delay: float = 0, attempts: int = 3) -> str:
        """Accept a job and return its id. Raises when the job cannot be accepted."""


class InMemoryWorkQueue(WorkQueue):
    """Keeps accepted jobs in a list. A worker hands each one to ``DeliveryOrchestrator.run_job``."""

    def __init__(self):
        self.jobs: list[dict] = []
        self.should_succeed = True
        self.failure_reason = "Queue unavailable"

    def configure(self, should_succeed: bool = True, failure_reason: str = "Queue unavailable"):
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def enqueue(self, job_type, payload, priority=0, delay=0, attempts=3):
        if not self.should_succeed:
            raise ConnectionError(self.failure_reason)

        job_id = f"job-{uuid4().hex[:12]}"
        self.jobs.append(
            {
                "id": job_id,
                "type": job_type,
                "payload": payload,
                "priority": priority,
                "delay": delay,
                "attempts": attempts,
            }
        )
        return job_id
