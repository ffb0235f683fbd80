import uuid
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple

from starlette.concurrency import run_in_threadpool

from ..core.config import settings
from ..core.errors import (
    ForbiddenError,
    InvalidAttemptStateError,
    NotFoundError,
    PayloadValidationError,
)
from ..core.locks import LockProvider, attempt_lock_key
from ..core.logger import logger
from ..domain.model import AnswerRecord, Attempt, AttemptStatus, Question, Quiz
from ..repositories.base import AttemptStore, QuestionBank, QuizBank
from .analytics import rank_and_percentile, user_analytics
from .grading import GraderRegistry, default_registry
from .quiz_service import quiz_detail
from .scoring import resolve_questions, summarize_attempt
from .stats import QuizStatsUpdater
from .typing import to_iso, utc_now

# most recent completed attempts that feed the per-user dashboard
ANALYTICS_WINDOW = 500


@dataclass(frozen=True)
class AnswerSubmission:
    question_id: str
    answer: Any = None
    time_spent: int = 0
    is_flagged: bool = False


@dataclass(frozen=True)
class FinalizeOutcome:
    attempt: Attempt
    stats_updated: bool


def results_dict(attempt: Attempt) -> Optional[dict]:
    r = attempt.results
    if r is None:
        return None
    return {
        "id": attempt.id,
        "score": r.score,
        "percentage": r.percentage,
        "correctAnswers": r.correct_answers,
        "incorrectAnswers": r.incorrect_answers,
        "skippedQuestions": r.skipped_questions,
        "totalQuestions": r.total_questions,
        "isPassed": r.is_passed,
        "timeSpent": r.time_spent,
        "topicWiseScore": [
            {"topic": t.topic, "correct": t.correct, "total": t.total, "percentage": t.percentage}
            for t in r.topic_breakdown
        ],
        "difficultyWiseScore": {
            level: {"correct": d.correct, "total": d.total}
            for level, d in r.difficulty_breakdown.items()
        },
        "rank": attempt.rank,
        "percentile": attempt.percentile,
    }


def attempt_detail(attempt: Attempt, quiz: Quiz, bank: Mapping[str, Question]) -> dict:
    reveal = attempt.status == AttemptStatus.COMPLETED
    answers = []
    for ans in attempt.answers:
        question = bank.get(ans.question_id)
        answers.append(
            {
                "questionId": ans.question_id,
                "title": question.title if question else None,
                "answer": ans.answer,
                "isCorrect": ans.is_correct if reveal else None,
                "marksAwarded": ans.marks_awarded if reveal else None,
                "timeSpent": ans.time_spent,
                "isFlagged": ans.is_flagged,
                "solution": question.solution if (reveal and question) else None,
            }
        )
    return {
        "id": attempt.id,
        "status": attempt.status.value,
        "startTime": to_iso(attempt.start_time),
        "endTime": to_iso(attempt.end_time) if attempt.end_time else None,
        "totalTimeSpent": attempt.total_time_spent,
        "quiz": {"id": quiz.id, "title": quiz.title, "passingScore": quiz.passing_score},
        "answers": answers,
        "results": results_dict(attempt),
    }


class AttemptService:
    def __init__(
        self,
        quizzes: QuizBank,
        questions: QuestionBank,
        attempts: AttemptStore,
        locks: LockProvider,
        graders: Optional[GraderRegistry] = None,
    ) -> None:
        self.quizzes = quizzes
        self.questions = questions
        self.attempts = attempts
        self.locks = locks
        self.graders = graders or default_registry()
        self.stats = QuizStatsUpdater(quizzes, locks)

    # --- lookups ---

    async def _load_quiz(self, quiz_id: str) -> Quiz:
        quiz = await run_in_threadpool(self.quizzes.get_quiz, quiz_id)
        if quiz is None:
            raise NotFoundError(f"Quiz {quiz_id} not found")
        return quiz

    async def _load_owned(self, attempt_id: str, user_id: str) -> Attempt:
        attempt = await run_in_threadpool(self.attempts.get_attempt, attempt_id)
        if attempt is None:
            raise NotFoundError(f"Attempt {attempt_id} not found")
        if attempt.user_id != user_id:
            raise ForbiddenError("Not authorized to access this attempt")
        return attempt

    @staticmethod
    def _require_in_progress(attempt: Attempt) -> None:
        if attempt.status != AttemptStatus.IN_PROGRESS:
            raise InvalidAttemptStateError(f"Attempt {attempt.id} is already {attempt.status.value}")

    def _grade(self, question: Question, sub: AnswerSubmission) -> AnswerRecord:
        verdict = self.graders.grade(question, sub.answer)
        return AnswerRecord(
            question_id=question.id,
            answer=sub.answer,
            is_correct=verdict.is_correct,
            marks_awarded=verdict.marks_awarded,
            time_spent=sub.time_spent,
            is_flagged=sub.is_flagged,
        )

    # --- operations ---

    async def start_attempt(self, quiz_id: str, user_id: str) -> Tuple[Attempt, dict]:
        quiz = await self._load_quiz(quiz_id)
        if not (quiz.is_published and quiz.is_active):
            raise NotFoundError(f"Quiz {quiz_id} not found")
        bank = await run_in_threadpool(self.questions.get_questions, quiz.question_ids)
        questions = resolve_questions(quiz, bank)

        attempt = Attempt(
            id=str(uuid.uuid4()),
            user_id=user_id,
            quiz_id=quiz.id,
            start_time=utc_now(),
        )
        attempt.id = await run_in_threadpool(self.attempts.create_attempt, attempt)
        logger.info("Attempt started", attempt_id=attempt.id, quiz_id=quiz.id, user_id=user_id)
        return attempt, quiz_detail(quiz, questions)

    async def record_answer(self, attempt_id: str, user_id: str, sub: AnswerSubmission) -> AnswerRecord:
        async with self.locks.hold(attempt_lock_key(attempt_id)):
            attempt = await self._load_owned(attempt_id, user_id)
            self._require_in_progress(attempt)

            question = await run_in_threadpool(self.questions.get_question, sub.question_id)
            if question is None:
                raise NotFoundError(f"Question {sub.question_id} not found")
            quiz = await self._load_quiz(attempt.quiz_id)
            if question.id not in quiz.question_ids:
                raise PayloadValidationError(f"Question {question.id} is not part of quiz {quiz.id}")

            record = self._grade(question, sub)
            attempt.upsert_answer(record)
            saved = await run_in_threadpool(self.attempts.save_answers, attempt.id, attempt.answers)
            if not saved:
                raise InvalidAttemptStateError(f"Attempt {attempt.id} is no longer in progress")

        logger.debug("Answer recorded", attempt_id=attempt_id, question_id=question.id)
        return record

    async def finalize_attempt(
        self,
        attempt_id: str,
        user_id: str,
        final_answers: List[AnswerSubmission],
    ) -> FinalizeOutcome:
        async with self.locks.hold(attempt_lock_key(attempt_id)):
            attempt = await self._load_owned(attempt_id, user_id)
            self._require_in_progress(attempt)
            quiz = await self._load_quiz(attempt.quiz_id)

            wanted = list(quiz.question_ids) + [s.question_id for s in final_answers]
            bank = await run_in_threadpool(self.questions.get_questions, wanted)
            resolve_questions(quiz, bank)

            for sub in final_answers:
                if sub.question_id not in bank:
                    raise NotFoundError(f"Question {sub.question_id} not found")
                if sub.question_id not in quiz.question_ids:
                    raise PayloadValidationError(f"Question {sub.question_id} is not part of quiz {quiz.id}")
                attempt.upsert_answer(AnswerRecord(question_id=sub.question_id, answer=sub.answer,
                                                   time_spent=sub.time_spent, is_flagged=sub.is_flagged))

            # grade everything again so stored verdicts match the current bank
            attempt.answers = [
                self._grade(
                    bank[a.question_id],
                    AnswerSubmission(a.question_id, a.answer, a.time_spent, a.is_flagged),
                )
                for a in attempt.answers
            ]

            end = utc_now()
            time_spent = max(0, int((end - attempt.start_time).total_seconds()))
            summary = summarize_attempt(attempt, quiz, bank, time_spent)

            completed = await run_in_threadpool(self.attempts.completed_percentages, quiz.id)
            attempt.rank, attempt.percentile = rank_and_percentile(
                summary.percentage, completed + [summary.percentage]
            )
            attempt.status = AttemptStatus.COMPLETED
            attempt.end_time = end
            attempt.total_time_spent = time_spent
            attempt.results = summary

            committed = await run_in_threadpool(self.attempts.complete_attempt, attempt)
            if not committed:
                raise InvalidAttemptStateError(f"Attempt {attempt.id} was already finalized")

        logger.info(
            "Attempt finalized",
            attempt_id=attempt.id,
            quiz_id=quiz.id,
            percentage=summary.percentage,
            is_passed=summary.is_passed,
        )
        stats_updated = await self._roll_up(quiz.id, summary.percentage)
        return FinalizeOutcome(attempt=attempt, stats_updated=stats_updated)

    async def _roll_up(self, quiz_id: str, percentage: float) -> bool:
        # the attempt is already committed; a rollup failure must not undo it
        try:
            await self.stats.record_completion(quiz_id, percentage)
        except Exception:
            logger.exception("Quiz stats update failed", quiz_id=quiz_id, percentage=percentage)
            return False
        return True

    async def get_results(self, attempt_id: str, user_id: str) -> dict:
        attempt = await self._load_owned(attempt_id, user_id)
        quiz = await self._load_quiz(attempt.quiz_id)
        bank = await run_in_threadpool(
            self.questions.get_questions, [a.question_id for a in attempt.answers]
        )
        return attempt_detail(attempt, quiz, bank)

    async def abandon_attempt(self, attempt_id: str, user_id: str) -> Attempt:
        async with self.locks.hold(attempt_lock_key(attempt_id)):
            attempt = await self._load_owned(attempt_id, user_id)
            self._require_in_progress(attempt)
            end = utc_now()
            if not await run_in_threadpool(self.attempts.abandon_attempt, attempt.id, end):
                raise InvalidAttemptStateError(f"Attempt {attempt.id} is no longer in progress")
            attempt.status = AttemptStatus.ABANDONED
            attempt.end_time = end
        logger.info("Attempt abandoned", attempt_id=attempt.id, quiz_id=attempt.quiz_id)
        return attempt

    async def list_user_attempts(
        self,
        user_id: str,
        quiz_type: Optional[str] = None,
        limit: int = 5,
        offset: int = 0,
    ) -> dict:
        limit = min(limit, settings.ATTEMPTS_PAGE_LIMIT)
        quiz_ids = None
        if quiz_type:
            quiz_ids = await run_in_threadpool(self.quizzes.quiz_ids_by_type, quiz_type)
        attempts, total = await run_in_threadpool(
            self.attempts.list_completed, user_id, quiz_ids, limit, offset
        )

        quizzes: Dict[str, Optional[Quiz]] = {}
        items = []
        for a in attempts:
            if a.quiz_id not in quizzes:
                quizzes[a.quiz_id] = await run_in_threadpool(self.quizzes.get_quiz, a.quiz_id)
            quiz = quizzes[a.quiz_id]
            items.append(
                {
                    "id": a.id,
                    "quiz": {
                        "id": a.quiz_id,
                        "title": quiz.title if quiz else None,
                        "type": quiz.type if quiz else None,
                        "difficulty": quiz.difficulty if quiz else None,
                    },
                    "status": a.status.value,
                    "score": a.results.score if a.results else 0,
                    "percentage": a.results.percentage if a.results else 0,
                    "isPassed": a.results.is_passed if a.results else False,
                    "startTime": to_iso(a.start_time),
                    "endTime": to_iso(a.end_time) if a.end_time else None,
                    "totalTimeSpent": a.total_time_spent,
                }
            )
        return {"count": len(items), "total": total, "attempts": items}

    async def analytics(self, user_id: str) -> dict:
        attempts, _ = await run_in_threadpool(
            self.attempts.list_completed, user_id, None, ANALYTICS_WINDOW, 0
        )
        return user_analytics(attempts)
