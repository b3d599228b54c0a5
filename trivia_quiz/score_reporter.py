"""
Final score reporting for completed quiz sessions.
"""
from .models import ScoreSummary


def summarize(score: int, total: int) -> ScoreSummary:
    """
    Build the final score summary of a session.

    Args:
        score: Number of correctly answered questions
        total: Number of questions in the session

    Returns:
        ScoreSummary with the given score and total
    """
    return ScoreSummary(score=score, total=total)
