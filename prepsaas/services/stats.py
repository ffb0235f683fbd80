from typing import Protocol

from starlette.concurrency import run_in_threadpool

from ..core.errors import NotFoundError
from ..core.locks import LockProvider, quiz_stats_lock_key
from ..core.logger import logger
from ..domain.model import QuizStats


def fold_attempt(stats: QuizStats, percentage: float) -> QuizStats:
    # the mean divides by the post-increment count
    total = stats.total_attempts + 1
    return QuizStats(
        total_attempts=total,
        average_score=(stats.average_score * (total - 1) + percentage) / total,
        highest_score=max(stats.highest_score, percentage),
        lowest_score=min(stats.lowest_score, percentage),
    )


class StatsStore(Protocol):
    def get_stats(self, quiz_id: str) -> QuizStats | None: ...

    def save_stats(self, quiz_id: str, stats: QuizStats) -> None: ...


class QuizStatsUpdater:
    def __init__(self, store: StatsStore, locks: LockProvider) -> None:
        self.store = store
        self.locks = locks

    async def record_completion(self, quiz_id: str, percentage: float) -> QuizStats:
        """Serialized read-modify-write of the quiz's running statistics."""
        async with self.locks.hold(quiz_stats_lock_key(quiz_id)):
            current = await run_in_threadpool(self.store.get_stats, quiz_id)
            if current is None:
                raise NotFoundError(f"Quiz {quiz_id} not found")
            updated = fold_attempt(current, percentage)
            await run_in_threadpool(self.store.save_stats, quiz_id, updated)

        logger.info(
            "Quiz stats updated",
            quiz_id=quiz_id,
            total_attempts=updated.total_attempts,
            average_score=round(updated.average_score, 2),
        )
        return updated
