"""In-memory workspace: loaded corpus, selected day, quizzes and the running exam."""

from __future__ import annotations

import logging
import random
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Set, Tuple

import httpx

from .config import Settings, get_settings
from .errors import (
    EmptyGroupingError,
    EmptyParseError,
    InsufficientQuestionsError,
    NoAlternativeArticleError,
    NoDateSelectedError,
    NoQuestionAvailableError,
    SampleFetchError,
)
from .exam import ExamResult, ExamSession
from .featured import pick_featured_article
from .graph import build_day_graph
from .models import Article, DayGraph, QuizQuestion, RandomQuestion
from .parser import parse_articles
from .partition import group_by_date
from .questions import normalize_all
from .quiz import prepare_cbt_questions, select_random_question

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WorkspaceState:
    """Everything derived from one loaded file; replaced wholesale on reload."""

    articles: Tuple[Article, ...] = ()
    by_date: Dict[str, List[Article]] = field(default_factory=dict)
    dates: Tuple[str, ...] = ()


def fetch_text(url: str, client: Optional[httpx.Client] = None, timeout: float = 30.0) -> str:
    """Download a text blob; any transport error or non-2xx status is a SampleFetchError."""
    try:
        if client is not None:
            response = client.get(url)
        else:
            response = httpx.get(url, timeout=timeout, follow_redirects=True)
        response.raise_for_status()
    except httpx.HTTPError as exc:
        raise SampleFetchError(f"Could not load the sample dataset from {url}: {exc}") from exc
    return response.text


class Workspace:
    """
    Single-user session state.

    Loads swap in a new immutable `WorkspaceState`; a failed load leaves the
    previous one in place. Soft failures surface as `NewsGraphError` subclasses
    for the presentation layer to report.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        rng: Optional[random.Random] = None,
        compact: bool = False,
    ):
        self.settings = settings or get_settings()
        self.rng = rng or random.Random()
        self.compact = compact
        self._state = WorkspaceState()
        self._current_index = -1
        self._graphs: Dict[Tuple[str, int], DayGraph] = {}
        self._completed: Set[str] = set()
        self.exam: Optional[ExamSession] = None
        self._lock = threading.RLock()

    # --- loading ------------------------------------------------------------

    def load_text(self, text: str) -> WorkspaceState:
        articles = parse_articles(text)
        if not articles:
            logger.warning("load rejected: no valid records")
            raise EmptyParseError()
        partition = group_by_date(articles)
        if not partition.dates:
            logger.warning("load rejected: no day keys")
            raise EmptyGroupingError()

        state = WorkspaceState(
            articles=tuple(articles),
            by_date=partition.by_date,
            dates=tuple(partition.dates),
        )
        with self._lock:
            self._discard_exam()
            self._state = state
            self._current_index = len(state.dates) - 1
            self._graphs = {}
            self._completed = set()
        logger.info(
            "loaded %d article(s) across %d day(s); latest %s",
            len(state.articles),
            len(state.dates),
            state.dates[-1],
        )
        return state

    def load_file(self, path: Path) -> WorkspaceState:
        return self.load_text(Path(path).read_text(encoding="utf-8"))

    def load_sample(
        self, url: Optional[str] = None, client: Optional[httpx.Client] = None
    ) -> WorkspaceState:
        target = url or self.settings.sample_dataset_url
        logger.info("fetching sample dataset from %s", target)
        text = fetch_text(target, client=client, timeout=self.settings.fetch_timeout_seconds)
        return self.load_text(text)

    def reset(self) -> None:
        with self._lock:
            self._discard_exam()
            self._state = WorkspaceState()
            self._current_index = -1
            self._graphs = {}
            self._completed = set()

    # --- day navigation -----------------------------------------------------

    @property
    def state(self) -> WorkspaceState:
        return self._state

    @property
    def dates(self) -> List[str]:
        return list(self._state.dates)

    @property
    def has_data(self) -> bool:
        return bool(self._state.dates)

    @property
    def current_date(self) -> Optional[str]:
        if not self.has_data or self._current_index < 0:
            return None
        return self._state.dates[self._current_index]

    def select_date(self, date_key: str) -> str:
        try:
            index = self._state.dates.index(date_key)
        except ValueError:
            raise KeyError(f"Unknown date: {date_key}") from None
        self._current_index = index
        return date_key

    def previous_date(self) -> Optional[str]:
        if self.has_data:
            self._current_index = max(0, self._current_index - 1)
        return self.current_date

    def next_date(self) -> Optional[str]:
        if self.has_data:
            self._current_index = min(len(self._state.dates) - 1, self._current_index + 1)
        return self.current_date

    @property
    def entity_cap(self) -> int:
        if self.compact:
            return self.settings.compact_entity_cap
        return self.settings.entity_cap

    def day_graph(self, date_key: Optional[str] = None, cap: Optional[int] = None) -> DayGraph:
        key = date_key or self.current_date
        if key is None:
            raise NoDateSelectedError()
        if key not in self._state.by_date:
            raise KeyError(f"Unknown date: {key}")
        cap = cap or self.entity_cap
        cache_key = (key, cap)
        graph = self._graphs.get(cache_key)
        if graph is None:
            graph = build_day_graph(self._state.by_date[key], cap=cap)
            self._graphs[cache_key] = graph
        return graph

    # --- articles -----------------------------------------------------------

    def articles_for_entity(self, entity: str) -> List[Article]:
        """Substantial articles across the whole corpus that mention `entity`."""
        return [
            article
            for article in self._state.articles
            if entity in article.entities and article.is_substantial
        ]

    def featured_article(
        self,
        entity: str,
        exclude_id: Optional[str] = None,
        pool: Optional[List[Article]] = None,
    ) -> Article:
        candidates = pool if pool is not None else self.articles_for_entity(entity)
        article = pick_featured_article(
            candidates,
            exclude_id=exclude_id,
            rng=self.rng,
            top_k=self.settings.featured_top_k,
        )
        if article is None:
            raise NoAlternativeArticleError()
        return article

    def article_quiz(self, article: Article) -> List[QuizQuestion]:
        """All usable questions for one article; an empty list counts as a pass."""
        return normalize_all(article.questions)

    @staticmethod
    def quiz_passed(good: int, bad: int) -> bool:
        return good >= bad

    def mark_completed(self, entity: str) -> None:
        self._completed.add(entity)

    @property
    def completed_nodes(self) -> Set[str]:
        return set(self._completed)

    # --- quizzes ------------------------------------------------------------

    def random_question(self, date_key: Optional[str] = None) -> RandomQuestion:
        day = self.day_graph(date_key)
        picked = select_random_question(
            day.node_meta, rng=self.rng, article_cap=self.settings.article_pool_cap
        )
        if picked is None:
            raise NoQuestionAvailableError()
        return picked

    def start_cbt(self, date_key: Optional[str] = None) -> ExamSession:
        day = self.day_graph(date_key)
        required = self.settings.cbt_question_count
        questions = prepare_cbt_questions(
            day.node_meta,
            rng=self.rng,
            count=required,
            article_cap=self.settings.article_pool_cap,
        )
        if questions is None:
            raise InsufficientQuestionsError(required=required)
        with self._lock:
            self._discard_exam()
            self.exam = ExamSession(
                questions,
                time_limit=self.settings.exam_time_limit_seconds,
                rng=self.rng,
            )
        return self.exam

    def finish_cbt(self) -> Optional[ExamResult]:
        """Finalize the running exam and light up the entities answered correctly."""
        with self._lock:
            exam, self.exam = self.exam, None
        if exam is None:
            return None
        result = exam.finalize()
        exam.cancel_timer()
        self._completed.update(result.glowing)
        return result

    def _discard_exam(self) -> None:
        if self.exam is not None:
            self.exam.cancel_timer()
            self.exam = None
