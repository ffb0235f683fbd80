"""
Pytest configuration and fixtures for the PrepSaaS backend tests.
"""
import copy
import os
import time
from dataclasses import replace

import pytest

# Settings are read at import time, so the environment is prepared first
os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-service-role-key")
os.environ.setdefault("LOCK_BACKEND", "local")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from prepsaas.core.locks import LocalLocks
from prepsaas.domain.model import AttemptStatus, Option, Question, Quiz, QuizStats
from prepsaas.services.attempt_service import AttemptService
from prepsaas.services.quiz_service import QuizService


class InMemoryQuizBank:
    def __init__(self, quizzes, stats_delay: float = 0.0, lookup_delay: float = 0.0):
        self.quizzes = {q.id: q for q in quizzes}
        self.stats_delay = stats_delay
        self.lookup_delay = lookup_delay

    def list_quizzes(self, quiz_type=None, difficulty=None, category=None):
        items = [q for q in self.quizzes.values() if q.is_published and q.is_active]
        if quiz_type:
            items = [q for q in items if q.type == quiz_type]
        if difficulty:
            items = [q for q in items if q.difficulty == difficulty]
        if category:
            items = [q for q in items if category in q.category]
        return items

    def get_quiz(self, quiz_id):
        if self.lookup_delay:
            # stands in for a slow PostgREST round trip
            time.sleep(self.lookup_delay)
        return self.quizzes.get(quiz_id)

    def quiz_ids_by_type(self, quiz_type):
        return [q.id for q in self.quizzes.values() if q.type == quiz_type]

    def get_stats(self, quiz_id):
        quiz = self.quizzes.get(quiz_id)
        if quiz is None:
            return None
        stats = quiz.stats
        if self.stats_delay:
            # widens the read-modify-write window for concurrency tests
            time.sleep(self.stats_delay)
        return stats

    def save_stats(self, quiz_id, stats):
        self.quizzes[quiz_id] = replace(self.quizzes[quiz_id], stats=stats)


class BrokenStatsQuizBank(InMemoryQuizBank):
    def save_stats(self, quiz_id, stats):
        raise RuntimeError("database unavailable")


class InMemoryQuestionBank:
    def __init__(self, questions):
        self.questions = {q.id: q for q in questions}

    def list_questions(self, category=None, difficulty=None, topic=None, question_type=None):
        items = list(self.questions.values())
        for attr, value in (("category", category), ("difficulty", difficulty),
                            ("topic", topic), ("type", question_type)):
            if value:
                items = [q for q in items if getattr(q, attr) == value]
        return items

    def get_question(self, question_id):
        return self.questions.get(question_id)

    def get_questions(self, question_ids):
        return {qid: self.questions[qid] for qid in question_ids if qid in self.questions}


class InMemoryAttemptStore:
    def __init__(self):
        self.rows = {}

    def create_attempt(self, attempt):
        self.rows[attempt.id] = copy.deepcopy(attempt)
        return attempt.id

    def get_attempt(self, attempt_id):
        row = self.rows.get(attempt_id)
        return copy.deepcopy(row) if row else None

    def _in_progress(self, attempt_id):
        row = self.rows.get(attempt_id)
        return row is not None and row.status == AttemptStatus.IN_PROGRESS

    def save_answers(self, attempt_id, answers):
        if not self._in_progress(attempt_id):
            return False
        self.rows[attempt_id].answers = list(answers)
        return True

    def complete_attempt(self, attempt):
        if not self._in_progress(attempt.id):
            return False
        self.rows[attempt.id] = copy.deepcopy(attempt)
        return True

    def abandon_attempt(self, attempt_id, end_time):
        if not self._in_progress(attempt_id):
            return False
        self.rows[attempt_id].status = AttemptStatus.ABANDONED
        self.rows[attempt_id].end_time = end_time
        return True

    def list_completed(self, user_id, quiz_ids=None, limit=10, offset=0):
        items = [
            a for a in self.rows.values()
            if a.user_id == user_id and a.status == AttemptStatus.COMPLETED
            and (quiz_ids is None or a.quiz_id in quiz_ids)
        ]
        items.sort(key=lambda a: a.end_time, reverse=True)
        return [copy.deepcopy(a) for a in items[offset:offset + limit]], len(items)

    def completed_percentages(self, quiz_id):
        return [
            a.results.percentage for a in self.rows.values()
            if a.quiz_id == quiz_id and a.status == AttemptStatus.COMPLETED
        ]


def mcq(qid, correct, difficulty, topic=None, wrong=("X", "Y", "Z")):
    options = [Option(text=correct, is_correct=True)] + [Option(text=w) for w in wrong]
    return Question(
        id=qid,
        title=f"Question {qid}",
        type="mcq",
        difficulty=difficulty,
        topic=topic,
        category="aptitude",
        options=options,
        hints=[f"hint for {qid}"],
        solution={"approach": f"pick {correct}"},
    )


@pytest.fixture
def sample_questions():
    """Three MCQs: easy/A, medium/B, hard/C"""
    return [
        mcq("q1", "A", "easy", topic="quantitative"),
        mcq("q2", "B", "medium", topic="logical_reasoning"),
        mcq("q3", "C", "hard", topic="quantitative"),
    ]


@pytest.fixture
def sample_quiz():
    return Quiz(
        id="quiz-1",
        title="Aptitude Basics",
        type="aptitude",
        difficulty="easy",
        category=["quantitative"],
        question_ids=["q1", "q2", "q3"],
        passing_score=60,
        time_limit=1800,
        total_marks=3,
    )


@pytest.fixture
def quiz_bank(sample_quiz):
    draft = replace(sample_quiz, id="quiz-draft", title="Draft", is_published=False)
    return InMemoryQuizBank([sample_quiz, draft])


@pytest.fixture
def question_bank(sample_questions):
    return InMemoryQuestionBank(sample_questions)


@pytest.fixture
def attempt_store():
    return InMemoryAttemptStore()


@pytest.fixture
def attempt_service(quiz_bank, question_bank, attempt_store):
    return AttemptService(quiz_bank, question_bank, attempt_store, LocalLocks())


@pytest.fixture
def quiz_service(quiz_bank, question_bank):
    return QuizService(quiz_bank, question_bank)


@pytest.fixture
def fresh_stats():
    return QuizStats()


@pytest.fixture
def broken_stats_service(sample_quiz, question_bank, attempt_store):
    return AttemptService(BrokenStatsQuizBank([sample_quiz]), question_bank, attempt_store, LocalLocks())


@pytest.fixture
def slow_quiz_bank(sample_quiz):
    return InMemoryQuizBank([sample_quiz], stats_delay=0.05)


@pytest.fixture
def slow_quiz_service(sample_quiz, question_bank):
    return QuizService(InMemoryQuizBank([sample_quiz], lookup_delay=0.5), question_bank)
