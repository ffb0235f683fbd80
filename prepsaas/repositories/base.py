from datetime import datetime
from typing import Dict, Iterable, List, Optional, Protocol, Tuple

from ..domain.model import AnswerRecord, Attempt, Question, Quiz, QuizStats


class QuizBank(Protocol):
    def list_quizzes(
        self,
        quiz_type: Optional[str] = None,
        difficulty: Optional[str] = None,
        category: Optional[str] = None,
    ) -> List[Quiz]: ...

    def get_quiz(self, quiz_id: str) -> Optional[Quiz]: ...

    def quiz_ids_by_type(self, quiz_type: str) -> List[str]: ...

    def get_stats(self, quiz_id: str) -> Optional[QuizStats]: ...

    def save_stats(self, quiz_id: str, stats: QuizStats) -> None: ...


class QuestionBank(Protocol):
    def list_questions(
        self,
        category: Optional[str] = None,
        difficulty: Optional[str] = None,
        topic: Optional[str] = None,
        question_type: Optional[str] = None,
    ) -> List[Question]: ...

    def get_question(self, question_id: str) -> Optional[Question]: ...

    def get_questions(self, question_ids: Iterable[str]) -> Dict[str, Question]: ...


class AttemptStore(Protocol):
    def create_attempt(self, attempt: Attempt) -> str: ...

    def get_attempt(self, attempt_id: str) -> Optional[Attempt]: ...

    # the three writes below only apply while the stored status is in_progress
    # and return False otherwise
    def save_answers(self, attempt_id: str, answers: List[AnswerRecord]) -> bool: ...

    def complete_attempt(self, attempt: Attempt) -> bool: ...

    def abandon_attempt(self, attempt_id: str, end_time: datetime) -> bool: ...

    def list_completed(
        self,
        user_id: str,
        quiz_ids: Optional[List[str]] = None,
        limit: int = 10,
        offset: int = 0,
    ) -> Tuple[List[Attempt], int]: ...

    def completed_percentages(self, quiz_id: str) -> List[float]: ...
