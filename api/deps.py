from typing import Callable, Dict

from domain.errors import BatchInProgressError, NotFoundError
from domain.services.scoring_pipeline import ScoringScheduler
from infra.repositories.candidates_repository import CandidatesRepository
from infra.repositories.jobs_repository import JobsRepository


class BatchRegistry:
    """In-process batches, keyed by batch id."""

    def __init__(self, scheduler_factory: Callable[[], ScoringScheduler] = ScoringScheduler):
        self._factory = scheduler_factory
        self._batches: Dict[str, ScoringScheduler] = {}

    def create(self) -> ScoringScheduler:
        scheduler = self._factory()
        self._batches[scheduler.id] = scheduler
        return scheduler

    def get(self, batch_id: str) -> ScoringScheduler:
        scheduler = self._batches.get(batch_id)
        if scheduler is None:
            raise NotFoundError(f"batch {batch_id} not found")
        return scheduler

    def remove(self, batch_id: str) -> ScoringScheduler:
        """Forget a finished or idle batch. A running batch cannot be dropped."""
        scheduler = self.get(batch_id)
        if scheduler.is_running:
            raise BatchInProgressError(f"batch {batch_id} is still running")
        del self._batches[batch_id]
        return scheduler


_registry = BatchRegistry()
_jobs_repo = JobsRepository()
_candidates_repo = CandidatesRepository()


def get_registry() -> BatchRegistry:
    return _registry


def get_jobs_repo() -> JobsRepository:
    return _jobs_repo


def get_candidates_repo() -> CandidatesRepository:
    return _candidates_repo
