from typing import Dict, Iterable, List, Optional
from supabase import Client

from ..domain.model import Option, Question


def row_to_question(row: dict) -> Question:
    return Question(
        id=str(row["id"]),
        title=row["title"],
        description=row.get("description") or "",
        type=row["type"],
        category=row.get("category"),
        topic=row.get("topic"),
        difficulty=row["difficulty"],
        options=[
            Option(text=o.get("text", ""), is_correct=bool(o.get("is_correct", o.get("isCorrect", False))))
            for o in (row.get("options") or [])
        ],
        hints=list(row.get("hints") or []),
        solution=row.get("solution"),
        tags=list(row.get("tags") or []),
        companies=list(row.get("companies") or []),
    )


class QuestionRepository:
    def __init__(self, client: Client) -> None:
        self.client = client

    def list_questions(
        self,
        category: Optional[str] = None,
        difficulty: Optional[str] = None,
        topic: Optional[str] = None,
        question_type: Optional[str] = None,
    ) -> List[Question]:
        query = self.client.table("questions").select("*").eq("is_active", True)
        filters = {"category": category, "difficulty": difficulty, "topic": topic, "type": question_type}
        for column, value in filters.items():
            if value:
                query = query.eq(column, value)
        res = query.order("created_at", desc=True).execute()
        return [row_to_question(r) for r in (res.data or [])]

    def get_question(self, question_id: str) -> Optional[Question]:
        res = self.client.table("questions").select("*").eq("id", question_id).limit(1).execute()
        if not res.data:
            return None
        return row_to_question(res.data[0])

    def get_questions(self, question_ids: Iterable[str]) -> Dict[str, Question]:
        ids = list(dict.fromkeys(question_ids))
        if not ids:
            return {}
        res = self.client.table("questions").select("*").in_("id", ids).execute()
        return {str(r["id"]): row_to_question(r) for r in (res.data or [])}
