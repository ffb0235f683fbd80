from typing import List, Optional

from ..core.errors import NotFoundError
from ..domain.model import Question, Quiz
from ..repositories.base import QuestionBank, QuizBank


def public_question(q: Question) -> dict:
    # option correctness and solutions never leave the server before grading
    return {
        "id": q.id,
        "title": q.title,
        "description": q.description,
        "type": q.type,
        "category": q.category,
        "topic": q.topic,
        "difficulty": q.difficulty,
        "options": [{"text": o.text} for o in q.options],
        "hints": q.hints,
        "tags": q.tags,
        "companies": q.companies,
    }


def quiz_summary(quiz: Quiz) -> dict:
    return {
        "id": quiz.id,
        "title": quiz.title,
        "description": quiz.description,
        "type": quiz.type,
        "difficulty": quiz.difficulty,
        "category": quiz.category,
        "questionCount": len(quiz.question_ids),
        "timeLimit": quiz.time_limit,
        "passingScore": quiz.passing_score,
        "totalMarks": quiz.total_marks,
        "stats": {
            "totalAttempts": quiz.stats.total_attempts,
            "averageScore": round(quiz.stats.average_score, 2),
            "highestScore": quiz.stats.highest_score,
            "lowestScore": quiz.stats.lowest_score,
        },
    }


def quiz_detail(quiz: Quiz, questions: List[Question]) -> dict:
    data = quiz_summary(quiz)
    data["questions"] = [public_question(q) for q in questions]
    return data


class QuizService:
    def __init__(self, quizzes: QuizBank, questions: QuestionBank) -> None:
        self.quizzes = quizzes
        self.questions = questions

    def list_quizzes(
        self,
        quiz_type: Optional[str] = None,
        difficulty: Optional[str] = None,
        category: Optional[str] = None,
    ) -> list[dict]:
        items = self.quizzes.list_quizzes(quiz_type, difficulty, category)
        return [quiz_summary(q) for q in items]

    def get_quiz(self, quiz_id: str) -> Optional[dict]:
        quiz = self.quizzes.get_quiz(quiz_id)
        if not quiz or not (quiz.is_published and quiz.is_active):
            return None
        bank = self.questions.get_questions(quiz.question_ids)
        # questions missing from the bank are left out of the public view
        return quiz_detail(quiz, [bank[qid] for qid in quiz.question_ids if qid in bank])

    def list_questions(
        self,
        category: Optional[str] = None,
        difficulty: Optional[str] = None,
        topic: Optional[str] = None,
        question_type: Optional[str] = None,
    ) -> list[dict]:
        items = self.questions.list_questions(category, difficulty, topic, question_type)
        return [public_question(q) for q in items]

    def _question(self, question_id: str) -> Question:
        question = self.questions.get_question(question_id)
        if question is None:
            raise NotFoundError(f"Question {question_id} not found")
        return question

    def get_question(self, question_id: str) -> dict:
        return public_question(self._question(question_id))

    def get_hints(self, question_id: str) -> list[str]:
        return self._question(question_id).hints

    def get_solution(self, question_id: str) -> dict:
        question = self._question(question_id)
        if not question.solution:
            raise NotFoundError(f"No solution published for question {question_id}")
        return question.solution
