import json

import httpx
import pytest
from fastapi.testclient import TestClient

from news_graph import server
from news_graph.config import Settings
from news_graph.server import app
from news_graph.session import Workspace


def _record(date_id, entities, item_id, questions=None, length=80):
    return {
        "date_id": date_id,
        "named_entities": entities,
        "content": "x" * length,
        "news_item_id": item_id,
        "headline": f"Headline {item_id}",
        "subject_codes": [{"subject_matter": "politics"}],
        "questions": questions or [],
    }


def _jsonl(records):
    return "\n".join(json.dumps(r) for r in records)


def _question(prompt):
    return {"question": prompt, "choices": ["right", "wrong", "other"]}


@pytest.fixture
def client():
    server.workspace.reset()
    yield TestClient(app)
    server.workspace.reset()


def _load(client, records):
    resp = client.post("/dataset", json={"text": _jsonl(records)})
    assert resp.status_code == 201
    return resp.json()


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_cors_wildcard_disables_credentials():
    cors = next(
        m for m in app.user_middleware if m.cls.__name__ == "CORSMiddleware"
    )
    assert cors.kwargs["allow_origins"] == ["*"]
    assert cors.kwargs["allow_credentials"] is False


def test_load_dataset_reports_dates(client):
    body = _load(client, [_record("20240102", ["A"], "1"), _record("20240101", ["B"], "2")])

    assert body["articles"] == 2
    assert body["dates"] == ["20240101", "20240102"]
    assert body["current_date"] == "20240102"

    dates = client.get("/dates").json()
    assert dates["labels"] == ["2024-01-01", "2024-01-02"]


def test_load_dataset_rejects_empty_parse(client):
    resp = client.post("/dataset", json={"text": "nope\n"})
    assert resp.status_code == 400
    assert "date_id" in resp.json()["detail"]


def test_sample_fetch_failure_maps_to_bad_gateway(client, monkeypatch):
    def failing_get(url, **kwargs):
        raise httpx.ConnectError("offline")

    monkeypatch.setattr("news_graph.session.httpx.get", failing_get)

    resp = client.post("/dataset/sample")
    assert resp.status_code == 502


def test_sample_ignores_client_supplied_url(client, monkeypatch):
    requested = []
    body = _jsonl([_record("20240101", ["A"], "1")])

    def fake_get(url, **kwargs):
        requested.append(url)
        return httpx.Response(200, text=body, request=httpx.Request("GET", url))

    monkeypatch.setattr("news_graph.session.httpx.get", fake_get)

    resp = client.post("/dataset/sample", json={"url": "http://169.254.169.254/latest"})

    assert resp.status_code == 201
    assert requested == [server.workspace.settings.sample_dataset_url]


def test_graph_payload(client):
    _load(
        client,
        [
            _record("20240101", ["A", "B"], "1"),
            _record("20240101", ["A", "B", "C"], "2"),
        ],
    )

    resp = client.get("/days/20240101/graph")
    assert resp.status_code == 200
    data = resp.json()
    assert data["label"] == "2024-01-01"
    assert {n["id"] for n in data["graph"]["nodes"]} == {"A", "B", "C"}
    assert data["graph"]["edges"] == [
        {"from": "A", "to": "B", "value": 2, "title": "Co-occurrences: 2"}
    ]
    assert data["nodes"]["A"]["subject"] == "politics"


def test_graph_unknown_date(client):
    _load(client, [_record("20240101", ["A"], "1")])
    assert client.get("/days/19990101/graph").status_code == 404


def test_entity_details_with_exclusion(client):
    _load(client, [_record("20240101", ["A"], "1", questions=[_question("q")])])

    resp = client.get("/days/20240101/entities/A")
    assert resp.status_code == 200
    data = resp.json()
    assert data["featured"]["news_item_id"] == "1"
    assert data["questions"][0]["correct_text"] == "right"

    resp = client.get("/days/20240101/entities/A", params={"exclude": "1"})
    assert resp.status_code == 404


def test_entity_without_substantial_article_keeps_metadata(client):
    _load(client, [_record("20240101", ["A"], "1", length=10)])

    resp = client.get("/days/20240101/entities/A")
    assert resp.status_code == 200
    data = resp.json()
    assert data["count"] == 1
    assert data["featured"] is None
    assert data["questions"] == []

    resp = client.get("/days/20240101/entities/A", params={"exclude": "1"})
    assert resp.status_code == 404


def test_compact_graph_uses_workspace_settings(monkeypatch):
    custom = Workspace(settings=Settings(compact_entity_cap=1))
    monkeypatch.setattr(server, "workspace", custom)
    client = TestClient(app)
    _load(client, [_record("20240101", ["A", "B", "C"], "1")])

    compact = client.get("/days/20240101/graph", params={"compact": "true"}).json()
    full = client.get("/days/20240101/graph").json()

    assert len(compact["graph"]["nodes"]) == 1
    assert len(full["graph"]["nodes"]) == 3


def test_random_question(client):
    _load(client, [_record("20240101", ["A"], "1", questions=[_question("q")])])

    resp = client.get("/days/20240101/quiz/random")
    assert resp.status_code == 200
    data = resp.json()
    assert data["entity_id"] == "A"
    assert data["question"]["prompt"] == "q"


def test_random_question_unavailable(client):
    _load(client, [_record("20240101", ["A"], "1")])
    assert client.get("/days/20240101/quiz/random").status_code == 404


def test_cbt_flow(client):
    records = [
        _record("20240101", [f"E{i}"], str(i), questions=[_question(f"q{i}")]) for i in range(10)
    ]
    _load(client, records)

    resp = client.post("/days/20240101/cbt")
    assert resp.status_code == 201
    questions = resp.json()["questions"]
    assert len(questions) == 10

    for question in questions:
        right = next(c for c in question["choices"] if c["is_correct"])
        answer = client.post(
            "/cbt/answer", json={"question_id": question["id"], "choice_id": right["id"]}
        )
        assert answer.status_code == 200
    assert answer.json()["finished"] is True

    result = client.post("/cbt/finish").json()
    assert result["correct_count"] == 10
    assert result["reason"] == "complete"


def test_cbt_insufficient_questions(client):
    records = [
        _record("20240101", [f"E{i}"], str(i), questions=[_question(f"q{i}")]) for i in range(7)
    ]
    _load(client, records)

    resp = client.post("/days/20240101/cbt")
    assert resp.status_code == 409
    assert client.post("/cbt/finish").status_code == 409
