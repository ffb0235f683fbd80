from dataclasses import asdict
from datetime import datetime
from typing import List, Optional, Tuple
from supabase import Client

from ..domain.model import (
    AnswerRecord,
    Attempt,
    AttemptStatus,
    DifficultyScore,
    ResultsSummary,
    TopicScore,
)
from ..services.typing import parse_dt, to_iso

IN_PROGRESS = AttemptStatus.IN_PROGRESS.value


def answer_to_row(ans: AnswerRecord) -> dict:
    return asdict(ans)


def row_to_answer(row: dict) -> AnswerRecord:
    return AnswerRecord(
        question_id=str(row["question_id"]),
        answer=row.get("answer"),
        is_correct=bool(row.get("is_correct", False)),
        marks_awarded=float(row.get("marks_awarded") or 0.0),
        time_spent=int(row.get("time_spent") or 0),
        is_flagged=bool(row.get("is_flagged", False)),
    )


def results_to_row(summary: ResultsSummary) -> dict:
    return asdict(summary)


def row_to_results(row: Optional[dict]) -> Optional[ResultsSummary]:
    if not row:
        return None
    return ResultsSummary(
        score=float(row["score"]),
        percentage=float(row["percentage"]),
        correct_answers=int(row["correct_answers"]),
        incorrect_answers=int(row["incorrect_answers"]),
        skipped_questions=int(row["skipped_questions"]),
        total_questions=int(row["total_questions"]),
        is_passed=bool(row["is_passed"]),
        time_spent=int(row.get("time_spent") or 0),
        topic_breakdown=[TopicScore(**t) for t in row.get("topic_breakdown") or []],
        difficulty_breakdown={
            level: DifficultyScore(**d) for level, d in (row.get("difficulty_breakdown") or {}).items()
        },
    )


def row_to_attempt(row: dict) -> Attempt:
    return Attempt(
        id=str(row["id"]),
        user_id=str(row["user_id"]),
        quiz_id=str(row["quiz_id"]),
        start_time=parse_dt(row["start_time"]),
        status=AttemptStatus(row["status"]),
        answers=[row_to_answer(a) for a in (row.get("answers") or [])],
        end_time=parse_dt(row["end_time"]) if row.get("end_time") else None,
        total_time_spent=row.get("total_time_spent"),
        results=row_to_results(row.get("results")),
        rank=row.get("rank"),
        percentile=row.get("percentile"),
    )


class AttemptRepository:
    def __init__(self, client: Client) -> None:
        self.client = client

    def create_attempt(self, attempt: Attempt) -> str:
        ins = (
            self.client.table("attempts")
            .insert(
                {
                    "id": attempt.id,
                    "user_id": attempt.user_id,
                    "quiz_id": attempt.quiz_id,
                    "status": attempt.status.value,
                    "start_time": to_iso(attempt.start_time),
                    "answers": [],
                }
            )
            .execute()
        )
        if not ins.data or not isinstance(ins.data, list) or "id" not in ins.data[0]:
            raise RuntimeError("Insert attempts failed: no returned id")
        return str(ins.data[0]["id"])

    def get_attempt(self, attempt_id: str) -> Optional[Attempt]:
        res = self.client.table("attempts").select("*").eq("id", attempt_id).limit(1).execute()
        if not res.data:
            return None
        return row_to_attempt(res.data[0])

    def save_answers(self, attempt_id: str, answers: List[AnswerRecord]) -> bool:
        res = (
            self.client.table("attempts")
            .update({"answers": [answer_to_row(a) for a in answers]})
            .eq("id", attempt_id)
            .eq("status", IN_PROGRESS)
            .execute()
        )
        return bool(res.data)

    def complete_attempt(self, attempt: Attempt) -> bool:
        # compare-and-set on status: a second finalization matches no row
        res = (
            self.client.table("attempts")
            .update(
                {
                    "status": AttemptStatus.COMPLETED.value,
                    "answers": [answer_to_row(a) for a in attempt.answers],
                    "end_time": to_iso(attempt.end_time),
                    "total_time_spent": attempt.total_time_spent,
                    "results": results_to_row(attempt.results),
                    "percentage": attempt.results.percentage,
                    "rank": attempt.rank,
                    "percentile": attempt.percentile,
                }
            )
            .eq("id", attempt.id)
            .eq("status", IN_PROGRESS)
            .execute()
        )
        return bool(res.data)

    def abandon_attempt(self, attempt_id: str, end_time: datetime) -> bool:
        res = (
            self.client.table("attempts")
            .update({"status": AttemptStatus.ABANDONED.value, "end_time": to_iso(end_time)})
            .eq("id", attempt_id)
            .eq("status", IN_PROGRESS)
            .execute()
        )
        return bool(res.data)

    def list_completed(
        self,
        user_id: str,
        quiz_ids: Optional[List[str]] = None,
        limit: int = 10,
        offset: int = 0,
    ) -> Tuple[List[Attempt], int]:
        if quiz_ids is not None and not quiz_ids:
            return [], 0
        query = (
            self.client.table("attempts")
            .select("*", count="exact")
            .eq("user_id", user_id)
            .eq("status", AttemptStatus.COMPLETED.value)
        )
        if quiz_ids is not None:
            query = query.in_("quiz_id", quiz_ids)
        res = (
            query.order("end_time", desc=True)
            .range(offset, offset + limit - 1)
            .execute()
        )
        rows = res.data or []
        return [row_to_attempt(r) for r in rows], res.count if res.count is not None else len(rows)

    def completed_percentages(self, quiz_id: str) -> List[float]:
        res = (
            self.client.table("attempts")
            .select("percentage")
            .eq("quiz_id", quiz_id)
            .eq("status", AttemptStatus.COMPLETED.value)
            .execute()
        )
        return [float(r["percentage"]) for r in (res.data or []) if r.get("percentage") is not None]
