from typing import List, Optional
from supabase import Client

from ..core.config import settings
from ..domain.model import Quiz, QuizStats

QUIZ_STATS_COLUMNS = "total_attempts,average_score,highest_score,lowest_score"


def row_to_stats(row: dict) -> QuizStats:
    return QuizStats(
        total_attempts=int(row.get("total_attempts") or 0),
        average_score=float(row.get("average_score") or 0.0),
        highest_score=float(row.get("highest_score") or 0.0),
        lowest_score=float(row["lowest_score"]) if row.get("lowest_score") is not None else 100.0,
    )


def row_to_quiz(row: dict) -> Quiz:
    return Quiz(
        id=str(row["id"]),
        title=row["title"],
        description=row.get("description") or "",
        type=row.get("type"),
        difficulty=row.get("difficulty"),
        category=list(row.get("category") or []),
        question_ids=[str(qid) for qid in (row.get("question_ids") or [])],
        time_limit=row.get("time_limit"),
        passing_score=(
            float(row["passing_score"])
            if row.get("passing_score") is not None
            else settings.DEFAULT_PASSING_SCORE
        ),
        total_marks=row.get("total_marks"),
        is_published=row.get("is_published", True),
        is_active=row.get("is_active", True),
        stats=row_to_stats(row),
    )


class QuizRepository:
    def __init__(self, client: Client) -> None:
        self.client = client

    def list_quizzes(
        self,
        quiz_type: Optional[str] = None,
        difficulty: Optional[str] = None,
        category: Optional[str] = None,
    ) -> List[Quiz]:
        query = (
            self.client.table("quizzes")
            .select("*")
            .eq("is_published", True)
            .eq("is_active", True)
        )
        if quiz_type:
            query = query.eq("type", quiz_type)
        if difficulty:
            query = query.eq("difficulty", difficulty)
        if category:
            query = query.contains("category", [category])
        res = query.order("created_at", desc=True).execute()
        return [row_to_quiz(r) for r in (res.data or [])]

    def get_quiz(self, quiz_id: str) -> Optional[Quiz]:
        # .single() raises on zero rows, limit(1) lets a miss come back empty
        res = self.client.table("quizzes").select("*").eq("id", quiz_id).limit(1).execute()
        if not res.data:
            return None
        return row_to_quiz(res.data[0])

    def quiz_ids_by_type(self, quiz_type: str) -> List[str]:
        res = self.client.table("quizzes").select("id").eq("type", quiz_type).execute()
        return [str(r["id"]) for r in (res.data or [])]

    def get_stats(self, quiz_id: str) -> Optional[QuizStats]:
        res = (
            self.client.table("quizzes")
            .select(QUIZ_STATS_COLUMNS)
            .eq("id", quiz_id)
            .limit(1)
            .execute()
        )
        if not res.data:
            return None
        return row_to_stats(res.data[0])

    def save_stats(self, quiz_id: str, stats: QuizStats) -> None:
        res = (
            self.client.table("quizzes")
            .update(
                {
                    "total_attempts": stats.total_attempts,
                    "average_score": stats.average_score,
                    "highest_score": stats.highest_score,
                    "lowest_score": stats.lowest_score,
                }
            )
            .eq("id", quiz_id)
            .execute()
        )
        if not res.data:
            raise RuntimeError(f"Update quizzes failed: no row for {quiz_id}")
