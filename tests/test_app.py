import json
import pytest
from fastapi.testclient import TestClient
from prompt_audit.app import MAX_PROMPT_LENGTH, app
from prompt_audit.patterns import ConfigurationError


@pytest.fixture
def client(monkeypatch):
    monkeypatch.delenv("WORDLISTS_PATH", raising=False)
    with TestClient(app) as c:
        yield c


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_version(client):
    response = client.get("/version")
    assert response.status_code == 200
    data = response.json()
    assert data["version"] == "1.0.0"
    assert data["blocked_words"] == 18
    assert data["tags"] == 8


def test_audit_prompt(client):
    response = client.post("/audit/prompt", json={"prompt": "taylor swift nude"})
    assert response.status_code == 200
    assert response.json() == {"blockedFor": ["poi"], "success": False}


def test_audit_prompt_negative_alias(client):
    response = client.post(
        "/audit/prompt", json={"prompt": "nude portrait", "negativePrompt": "adult"}
    )
    assert response.json()["blockedFor"] == ["minor"]


def test_audit_prompt_enriched(client):
    response = client.post("/audit/prompt", json={"prompt": "a 12 year old", "enriched": True})
    data = response.json()
    assert data["blockedFor"] == ["12 year old"]
    assert data["triggers"] == [
        {"category": "minor_age", "message": "12 year old", "matched_word": "12 year old"}
    ]


def test_audit_prompt_too_long(client):
    response = client.post("/audit/prompt", json={"prompt": "a" * (MAX_PROMPT_LENGTH + 1)})
    assert response.status_code == 422


def test_audit_prompt_missing(client):
    response = client.post("/audit/prompt", json={})
    assert response.status_code == 422


def test_audit_metadata(client):
    response = client.post(
        "/audit/metadata",
        json={"meta": {"prompt": "loli, shota", "seed": 42}, "nsfw": False},
    )
    assert response.status_code == 200
    assert response.json() == {"blockedFor": ["loli", "shota"], "success": False}


def test_audit_metadata_without_meta(client):
    response = client.post("/audit/metadata", json={"nsfw": True})
    assert response.json() == {"blockedFor": [], "success": True}


def test_highlight(client):
    response = client.post("/highlight", json={"prompt": "bestiality"})
    assert response.json() == {"html": '<span style="color: #F03E3E">bestiality</span>'}


def test_tags(client):
    response = client.post("/tags", json={"prompt": "a cyberpunk cat"})
    assert response.json() == {"tags": ["animal", "sci-fi"]}


def test_clean(client):
    response = client.post("/clean", json={"prompt": "a cat, loli", "negativePrompt": "blurry"})
    assert response.json() == {"prompt": "a cat, ", "negativePrompt": "blurry"}


def test_blocked_words(client):
    response = client.get("/blocked-words", params={"q": "^shota"})
    assert response.json() == ["shota", "shotacon"]


def test_blocked_words_invalid_regex(client):
    response = client.get("/blocked-words", params={"q": "[unclosed"})
    assert response.status_code == 200
    assert response.json() == []


def test_custom_word_lists(tmp_path, monkeypatch):
    path = tmp_path / "lists.json"
    path.write_text(json.dumps({"blockedNsfw": ["forbiddenword"]}))
    monkeypatch.setenv("WORDLISTS_PATH", str(path))
    with TestClient(app) as client:
        response = client.post("/audit/prompt", json={"prompt": "a forbiddenword"})
        assert response.json() == {"blockedFor": ["forbiddenword"], "success": False}
        assert client.get("/version").json()["blocked_words"] == 1


def test_malformed_word_lists_fail_startup(tmp_path, monkeypatch):
    path = tmp_path / "lists.json"
    path.write_text(json.dumps({"poi": "not a list"}))
    monkeypatch.setenv("WORDLISTS_PATH", str(path))
    with pytest.raises(ConfigurationError):
        with TestClient(app):
            pass


def test_audit_prompt_check_profanity(client):
    body = {"prompt": "what the fuck"}
    assert client.post("/audit/prompt", json=body).json()["success"] is True
    response = client.post("/audit/prompt", json={**body, "checkProfanity": True})
    assert response.json() == {"blockedFor": ["fuck"], "success": False}
