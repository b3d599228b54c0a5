"""
Trivia quiz session core: fetches question sets from Open Trivia DB and
runs a single quiz session from criteria selection to final score.
"""
from .config_manager import ConfigError, ConfigManager, load_config, setup_logging_from_config
from .models import (
    Difficulty,
    LoadError,
    LoadFailureReason,
    Question,
    QuestionSet,
    ScoreSummary,
    SelectionCriteria,
    SessionSnapshot,
    SessionState,
)
from .question_loader import QuestionSetLoader
from .quiz_session import InvalidCriteriaError, QuizSession, QuizSessionError
from .score_reporter import summarize
from .shuffler import shuffle

__all__ = [
    "ConfigError",
    "ConfigManager",
    "Difficulty",
    "InvalidCriteriaError",
    "LoadError",
    "LoadFailureReason",
    "Question",
    "QuestionSet",
    "QuestionSetLoader",
    "QuizSession",
    "QuizSessionError",
    "ScoreSummary",
    "SelectionCriteria",
    "SessionSnapshot",
    "SessionState",
    "load_config",
    "setup_logging_from_config",
    "shuffle",
    "summarize",
]
