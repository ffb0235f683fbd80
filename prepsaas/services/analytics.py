from typing import Dict, Iterable, List, Tuple

from ..domain.model import DIFFICULTIES, Attempt


def rank_and_percentile(percentage: float, completed: Iterable[float]) -> Tuple[int, int]:
    """
    Position of ``percentage`` among a quiz's completed attempts.

    ``completed`` must already contain the attempt being ranked. Rank 1 is the
    best score, ties share a rank; percentile is the share of strictly lower scores.
    """
    scores = list(completed)
    if not scores:
        return 1, 0
    higher = sum(1 for s in scores if s > percentage)
    lower = sum(1 for s in scores if s < percentage)
    return higher + 1, round(lower / len(scores) * 100)


def user_analytics(attempts: List[Attempt]) -> dict:
    done = [a for a in attempts if a.results is not None]
    if not done:
        return {
            "totalAttempts": 0,
            "averageScore": 0.0,
            "bestScore": 0.0,
            "passRate": 0.0,
            "totalTimeSpent": 0,
            "topicStrengths": [],
            "difficultyBreakdown": {level: {"correct": 0, "total": 0} for level in DIFFICULTIES},
        }

    percentages = [a.results.percentage for a in done]
    passed = sum(1 for a in done if a.results.is_passed)

    topics: Dict[str, List[int]] = {}
    difficulty = {level: [0, 0] for level in DIFFICULTIES}
    for a in done:
        for t in a.results.topic_breakdown:
            bucket = topics.setdefault(t.topic, [0, 0])
            bucket[0] += t.correct
            bucket[1] += t.total
        for level, d in a.results.difficulty_breakdown.items():
            if level in difficulty:
                difficulty[level][0] += d.correct
                difficulty[level][1] += d.total

    strengths = [
        {
            "topic": topic,
            "correct": c,
            "total": t,
            "percentage": round(c / t * 100, 2) if t else 0.0,
        }
        for topic, (c, t) in topics.items()
    ]
    strengths.sort(key=lambda x: x["percentage"], reverse=True)

    return {
        "totalAttempts": len(done),
        "averageScore": round(sum(percentages) / len(percentages), 2),
        "bestScore": max(percentages),
        "passRate": round(passed / len(done) * 100, 2),
        "totalTimeSpent": sum(a.results.time_spent for a in done),
        "topicStrengths": strengths,
        "difficultyBreakdown": {
            level: {"correct": c, "total": t} for level, (c, t) in difficulty.items()
        },
    }
