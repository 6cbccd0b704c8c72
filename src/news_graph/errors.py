"""Soft-failure taxonomy surfaced to the presentation layer."""

from __future__ import annotations


class NewsGraphError(Exception):
    """Base class for user-facing, non-fatal failures."""


class EmptyParseError(NewsGraphError):
    """The input text contained no valid article records."""

    def __init__(
        self,
        message: str = (
            "No valid records found; date_id, named_entities and content are required."
        ),
    ):
        super().__init__(message)


class EmptyGroupingError(NewsGraphError):
    """Valid records were found but none produced a day key."""

    def __init__(self, message: str = "No valid dates found in the data."):
        super().__init__(message)


class SampleFetchError(NewsGraphError):
    """The bundled sample dataset could not be fetched."""


class NoDateSelectedError(NewsGraphError):
    """An operation needed a selected day but no data is loaded."""

    def __init__(self, message: str = "Select a date first."):
        super().__init__(message)


class NoQuestionAvailableError(NewsGraphError):
    """No qualifying question exists for the selected day."""

    def __init__(self, message: str = "No question is available for this date."):
        super().__init__(message)


class InsufficientQuestionsError(NoQuestionAvailableError):
    """Fewer questions than a CBT exam requires could be prepared."""

    def __init__(self, required: int):
        self.required = required
        super().__init__(f"Could not prepare the {required} questions a CBT exam needs.")


class NoAlternativeArticleError(NewsGraphError):
    """The featured-article picker ran out of candidates."""

    def __init__(self, message: str = "No other article was found."):
        super().__init__(message)


class ExamFinishedError(NewsGraphError):
    """An answer arrived after the exam was finalized."""
