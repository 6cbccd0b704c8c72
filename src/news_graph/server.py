"""FastAPI service exposing day graphs, quizzes and CBT exams to the UI."""

from __future__ import annotations

import os
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .config import get_settings
from .errors import (
    EmptyGroupingError,
    EmptyParseError,
    ExamFinishedError,
    InsufficientQuestionsError,
    NewsGraphError,
    NoAlternativeArticleError,
    NoDateSelectedError,
    NoQuestionAvailableError,
    SampleFetchError,
)
from .models import NodeMeta, to_plain
from .partition import format_date_key
from .session import Workspace, WorkspaceState


app = FastAPI(title="News Graph")
workspace = Workspace()


def _add_cors(app: FastAPI) -> None:
    """Allow the browser UI to call the API during local development."""
    allow_all = os.getenv("CORS_ALLOW_ALL", "true").lower() == "true"
    origins_env = os.getenv("CORS_ALLOW_ORIGINS", "")
    origins = [o.strip() for o in origins_env.split(",") if o.strip()]
    allow_credentials = (
        os.getenv("CORS_ALLOW_CREDENTIALS", "true").lower() == "true"
    )
    if allow_all or not origins:
        origins = ["*"]
    if origins == ["*"] and allow_credentials:
        # Starlette/FastAPI disallow wildcard origins when credentials are enabled.
        allow_credentials = False
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
    )


_add_cors(app)


class DatasetUpload(BaseModel):
    text: str


class AnswerSubmission(BaseModel):
    question_id: str
    choice_id: str


_STATUS_FOR_ERROR = (
    (EmptyParseError, status.HTTP_400_BAD_REQUEST),
    (EmptyGroupingError, status.HTTP_400_BAD_REQUEST),
    (SampleFetchError, status.HTTP_502_BAD_GATEWAY),
    (InsufficientQuestionsError, status.HTTP_409_CONFLICT),
    (NoQuestionAvailableError, status.HTTP_404_NOT_FOUND),
    (NoAlternativeArticleError, status.HTTP_404_NOT_FOUND),
    (NoDateSelectedError, status.HTTP_409_CONFLICT),
    (ExamFinishedError, status.HTTP_409_CONFLICT),
)


def _http_error(exc: NewsGraphError) -> HTTPException:
    for error_type, code in _STATUS_FOR_ERROR:
        if isinstance(exc, error_type):
            return HTTPException(status_code=code, detail=str(exc))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


def _unknown_date(date_key: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown date: {date_key}"
    )


def _dataset_body(state: WorkspaceState) -> Dict[str, Any]:
    return {
        "status": "loaded",
        "articles": len(state.articles),
        "dates": list(state.dates),
        "current_date": workspace.current_date,
    }


def _meta_summary(meta: NodeMeta) -> Dict[str, Any]:
    return {
        "id": meta.id,
        "count": meta.occurrence_count,
        "subject": meta.dominant_subject,
        "article_count": len(meta.articles),
    }


@app.get("/health")
def health() -> Dict[str, str]:
    return {"status": "ok"}


@app.post("/dataset", status_code=status.HTTP_201_CREATED)
def load_dataset(upload: DatasetUpload) -> JSONResponse:
    try:
        state = workspace.load_text(upload.text)
    except NewsGraphError as exc:
        raise _http_error(exc) from exc
    return JSONResponse(status_code=status.HTTP_201_CREATED, content=_dataset_body(state))


@app.post("/dataset/sample", status_code=status.HTTP_201_CREATED)
def load_sample() -> JSONResponse:
    """Load the bundled sample from the configured location; clients cannot pick the URL."""
    try:
        state = workspace.load_sample()
    except NewsGraphError as exc:
        raise _http_error(exc) from exc
    return JSONResponse(status_code=status.HTTP_201_CREATED, content=_dataset_body(state))


@app.get("/dates")
def list_dates() -> Dict[str, Any]:
    return {
        "dates": workspace.dates,
        "labels": [format_date_key(d) for d in workspace.dates],
        "current_date": workspace.current_date,
    }


@app.get("/days/{date_key}/graph")
def day_graph(date_key: str, compact: bool = False) -> Dict[str, Any]:
    cap = workspace.settings.compact_entity_cap if compact else None
    try:
        day = workspace.day_graph(date_key, cap=cap)
    except KeyError as exc:
        raise _unknown_date(date_key) from exc
    return {
        "date": date_key,
        "label": format_date_key(date_key),
        "graph": day.graph.to_render(),
        "nodes": {entity: _meta_summary(meta) for entity, meta in day.node_meta.items()},
    }


@app.get("/days/{date_key}/entities/{entity}")
def entity_details(date_key: str, entity: str, exclude: Optional[str] = None) -> Dict[str, Any]:
    try:
        day = workspace.day_graph(date_key)
    except KeyError as exc:
        raise _unknown_date(date_key) from exc
    meta = day.node_meta.get(entity)
    if meta is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{entity} is not on the graph for {date_key}.",
        )
    try:
        featured = workspace.featured_article(entity, exclude_id=exclude)
    except NoAlternativeArticleError as exc:
        # Only the "show another article" retry reports exhaustion.
        if exclude:
            raise _http_error(exc) from exc
        featured = None
    questions = workspace.article_quiz(featured) if featured is not None else []
    return {
        **_meta_summary(meta),
        "featured": to_plain(featured),
        "questions": to_plain(questions),
    }


@app.get("/days/{date_key}/quiz/random")
def random_question(date_key: str) -> Dict[str, Any]:
    try:
        picked = workspace.random_question(date_key)
    except KeyError as exc:
        raise _unknown_date(date_key) from exc
    except NewsGraphError as exc:
        raise _http_error(exc) from exc
    return to_plain(picked)


@app.post("/days/{date_key}/cbt", status_code=status.HTTP_201_CREATED)
def start_cbt(date_key: str) -> JSONResponse:
    try:
        exam = workspace.start_cbt(date_key)
    except KeyError as exc:
        raise _unknown_date(date_key) from exc
    except NewsGraphError as exc:
        raise _http_error(exc) from exc
    exam.arm_timer()
    body = {
        "date": date_key,
        "time_limit_seconds": exam.time_limit,
        "questions": to_plain(exam.questions),
    }
    return JSONResponse(status_code=status.HTTP_201_CREATED, content=body)


@app.post("/cbt/answer")
def answer_cbt(submission: AnswerSubmission) -> Dict[str, Any]:
    exam = workspace.exam
    if exam is None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="No exam is running.")
    exam.expire_if_due()
    try:
        record = exam.answer(submission.question_id, submission.choice_id)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except NewsGraphError as exc:
        raise _http_error(exc) from exc
    return {
        "answer": to_plain(record),
        "finished": exam.is_finished,
        "remaining_seconds": exam.remaining(),
    }


@app.post("/cbt/finish")
def finish_cbt() -> Dict[str, Any]:
    result = workspace.finish_cbt()
    if result is None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="No exam is running.")
    return to_plain(result)


if __name__ == "__main__":
    import uvicorn

    from .logging_utils import setup_logging

    setup_logging(get_settings().log_level)
    uvicorn.run(
        "news_graph.server:app",
        host=os.getenv("NEWS_GRAPH_HOST", "0.0.0.0"),
        port=int(os.getenv("NEWS_GRAPH_PORT", "8000")),
        reload=os.getenv("NEWS_GRAPH_RELOAD", "false").lower() == "true",
    )
