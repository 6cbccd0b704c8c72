import json
import random

import httpx
import pytest

from news_graph.config import Settings
from news_graph.errors import (
    EmptyParseError,
    InsufficientQuestionsError,
    NoAlternativeArticleError,
    NoDateSelectedError,
    NoQuestionAvailableError,
    SampleFetchError,
)
from news_graph.session import Workspace


def _record(date_id, entities, item_id, length=80, questions=None):
    return {
        "date_id": date_id,
        "named_entities": entities,
        "content": "x" * length,
        "news_item_id": item_id,
        "questions": questions or [],
    }


def _jsonl(records):
    return "\n".join(json.dumps(r) for r in records)


def _question(prompt):
    return {"question": prompt, "choices": ["right", "wrong"]}


def _quiz_day(date_id, n):
    return [
        _record(date_id, [f"E{i}"], f"{date_id}-{i}", questions=[_question(f"q{i}")])
        for i in range(n)
    ]


def _workspace(**overrides):
    return Workspace(settings=Settings(**overrides), rng=random.Random(0))


def test_load_selects_latest_day():
    ws = _workspace()
    ws.load_text(_jsonl([_record("20240102", ["A"], "1"), _record("20240101", ["B"], "2")]))

    assert ws.dates == ["20240101", "20240102"]
    assert ws.current_date == "20240102"


def test_failed_load_keeps_previous_state():
    ws = _workspace()
    ws.load_text(_jsonl([_record("20240101", ["A"], "1")]))
    before = ws.state

    with pytest.raises(EmptyParseError):
        ws.load_text("not json\n{}\n")

    assert ws.state is before
    assert ws.current_date == "20240101"


def test_reload_replaces_everything():
    ws = _workspace()
    ws.load_text(_jsonl([_record("20240101", ["A"], "1")]))
    ws.mark_completed("A")

    ws.load_text(_jsonl([_record("20240301", ["Z"], "9")]))

    assert ws.dates == ["20240301"]
    assert ws.completed_nodes == set()
    assert ws.articles_for_entity("A") == []


def test_date_navigation_is_clamped():
    ws = _workspace()
    ws.load_text(_jsonl([_record(d, ["A"], d) for d in ("20240101", "20240102", "20240103")]))

    assert ws.next_date() == "20240103"
    assert ws.previous_date() == "20240102"
    assert ws.previous_date() == "20240101"
    assert ws.previous_date() == "20240101"
    assert ws.select_date("20240103") == "20240103"
    with pytest.raises(KeyError):
        ws.select_date("19990101")


def test_day_graph_requires_data():
    with pytest.raises(NoDateSelectedError):
        _workspace().day_graph()


def test_compact_workspace_uses_small_cap():
    ws = _workspace(compact_entity_cap=3)
    ws.compact = True
    ws.load_text(_jsonl([_record("20240101", [f"E{i}" for i in range(10)], "1")]))

    assert len(ws.day_graph().graph.nodes) == 3
    assert len(ws.day_graph(cap=50).graph.nodes) == 10


def test_random_question_without_questions_raises():
    ws = _workspace()
    ws.load_text(_jsonl([_record("20240101", ["A"], "1")]))

    with pytest.raises(NoQuestionAvailableError):
        ws.random_question()


def test_cbt_requires_ten_questions():
    ws = _workspace()
    ws.load_text(_jsonl(_quiz_day("20240101", 7)))

    with pytest.raises(InsufficientQuestionsError) as excinfo:
        ws.start_cbt()

    assert excinfo.value.required == 10
    assert ws.exam is None


def test_cbt_floor_comes_from_prepared_batch(monkeypatch):
    calls = []

    def short_batch(node_meta, rng=None, count=10, article_cap=5):
        calls.append((count, article_cap))
        return None

    monkeypatch.setattr("news_graph.session.prepare_cbt_questions", short_batch)
    ws = _workspace(cbt_question_count=4, article_pool_cap=2)
    ws.load_text(_jsonl(_quiz_day("20240101", 12)))

    with pytest.raises(InsufficientQuestionsError) as excinfo:
        ws.start_cbt()

    assert calls == [(4, 2)]
    assert excinfo.value.required == 4
    assert ws.exam is None


def test_cbt_finish_lights_correct_entities():
    ws = _workspace()
    ws.load_text(_jsonl(_quiz_day("20240101", 12)))

    exam = ws.start_cbt()
    first = exam.questions[0]
    right = next(c for c in first.choices if c.is_correct)
    exam.answer(first.id, right.id)
    result = ws.finish_cbt()

    assert len(exam.questions) == 10
    assert result.glowing == [first.entity_id]
    assert ws.completed_nodes == {first.entity_id}
    assert ws.exam is None
    assert ws.finish_cbt() is None


def test_featured_article_exhaustion_is_reported():
    ws = _workspace()
    ws.load_text(_jsonl([_record("20240101", ["A"], "only"), _record("20240102", ["A"], "tiny", length=10)]))

    assert ws.featured_article("A").item_id == "only"
    with pytest.raises(NoAlternativeArticleError):
        ws.featured_article("A", exclude_id="only")


def test_articles_for_entity_spans_all_days():
    ws = _workspace()
    ws.load_text(_jsonl([_record("20240101", ["A"], "1"), _record("20240102", ["A", "B"], "2")]))

    assert [a.item_id for a in ws.articles_for_entity("A")] == ["1", "2"]


def test_article_quiz_and_pass_rule():
    ws = _workspace()
    ws.load_text(
        _jsonl([_record("20240101", ["A"], "1", questions=[_question("q"), {"question": "bad"}])])
    )
    article = ws.state.articles[0]

    assert [q.prompt for q in ws.article_quiz(article)] == ["q"]
    assert Workspace.quiz_passed(1, 1)
    assert not Workspace.quiz_passed(0, 1)


def test_load_sample_uses_http_client():
    body = _jsonl([_record("20240101", ["A"], "1")])
    transport = httpx.MockTransport(lambda request: httpx.Response(200, text=body))
    ws = _workspace()

    with httpx.Client(transport=transport) as client:
        ws.load_sample("https://example.com/sample.jsonl", client=client)

    assert ws.dates == ["20240101"]


def test_load_sample_failure_is_reported_and_state_kept():
    transport = httpx.MockTransport(lambda request: httpx.Response(404))
    ws = _workspace()
    ws.load_text(_jsonl([_record("20240101", ["A"], "1")]))

    with httpx.Client(transport=transport) as client:
        with pytest.raises(SampleFetchError):
            ws.load_sample("https://example.com/missing.jsonl", client=client)

    assert ws.dates == ["20240101"]


def test_reset_clears_state():
    ws = _workspace()
    ws.load_text(_jsonl([_record("20240101", ["A"], "1")]))
    ws.reset()
    assert not ws.has_data
    assert ws.current_date is None
