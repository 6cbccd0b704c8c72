"""Per-day entity co-occurrence graphs and comprehension quizzes for news corpora."""

__all__ = [
    "config",
    "featured",
    "graph",
    "models",
    "parser",
    "partition",
    "questions",
    "quiz",
    "session",
]
