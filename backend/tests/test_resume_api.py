"""POST /api/resume/suggestions end to end."""

import json

from careercoach.core.errors import ProviderError

AI_SUGGESTIONS = [
    {
        "type": "improvement",
        "title": "Lead with impact",
        "description": "Open each role with its biggest measurable result.",
        "impact": "high",
    },
]

RESUME = {
    "personalInfo": {"fullName": "Grace Hopper", "email": "grace@example.com"},
    "summary": "Compiler engineer.",
    "skills": ["COBOL", "Fortran"],
}


def test_ai_suggestions_then_cache_hit(make_client, fake_provider_cls):
    provider = fake_provider_cls("gemini", default=json.dumps(AI_SUGGESTIONS))
    client = make_client(provider)

    first = client.post("/api/resume/suggestions", json={"resume": RESUME})
    second = client.post("/api/resume/suggestions", json={"resume": RESUME})

    assert first.status_code == 200
    assert first.json() == {
        "suggestions": AI_SUGGESTIONS,
        "provider": "gemini",
        "model": "gemini-model",
        "cached": False,
    }
    assert second.status_code == 200
    assert second.json()["cached"] is True
    assert second.json()["suggestions"] == AI_SUGGESTIONS
    assert len(provider.calls) == 1

    assert first.headers["X-RateLimit-Limit"] == "10"
    assert second.headers["X-RateLimit-Remaining"] == "8"


def test_ai_failure_still_returns_200(make_client, fake_provider_cls):
    provider = fake_provider_cls("gemini", default=ProviderError("upstream down", provider="gemini"))
    client = make_client(provider)

    response = client.post("/api/resume/suggestions", json={"resume": RESUME})

    assert response.status_code == 200
    body = response.json()
    assert body["fallback"] is True
    assert "upstream down" in body["error"]
    assert body["suggestions"][0]["title"] == "Strengthen your professional summary"
    assert "cached" not in body


def test_no_provider_uses_rule_based_suggestions(make_client):
    client = make_client()

    response = client.post("/api/resume/suggestions", json={"resume": RESUME})

    assert response.status_code == 200
    assert response.json()["fallback"] is True


def test_upstream_rate_limit_backs_off_then_succeeds(make_client, fake_provider_cls, recording_sleep):
    provider = fake_provider_cls(
        "gemini",
        [ProviderError("quota", provider="gemini", status_code=429)],
        default=json.dumps(AI_SUGGESTIONS),
    )
    client = make_client(provider, AI_MAX_RETRIES=1)

    response = client.post("/api/resume/suggestions", json={"resume": RESUME})

    assert response.status_code == 200
    assert response.json()["cached"] is False
    assert recording_sleep.delays == [2.0]


def test_missing_resume_is_400(make_client, fake_provider_cls):
    client = make_client(fake_provider_cls())

    response = client.post("/api/resume/suggestions", json={})

    assert response.status_code == 400
    assert response.json() == {"error": "Resume data is required"}
    assert response.headers["X-RateLimit-Limit"] == "10"


def test_malformed_resume_is_400(make_client, fake_provider_cls):
    client = make_client(fake_provider_cls())

    response = client.post("/api/resume/suggestions", json={"resume": {"skills": "Python"}})

    assert response.status_code == 400
    assert response.json()["error"] == "Validation failed"


def test_general_rate_limit(make_client, fake_provider_cls):
    client = make_client(fake_provider_cls(default=json.dumps(AI_SUGGESTIONS)), RATE_LIMIT_MAX_REQUESTS=2)

    statuses = [
        client.post("/api/resume/suggestions", json={"resume": RESUME}).status_code
        for _ in range(3)
    ]

    assert statuses == [200, 200, 429]


def test_malformed_body_is_rate_limited(make_client, fake_provider_cls):
    client = make_client(fake_provider_cls(), RATE_LIMIT_MAX_REQUESTS=2)

    responses = [
        client.post("/api/resume/suggestions", content="not json", headers={"Content-Type": "application/json"})
        for _ in range(3)
    ]

    assert [r.status_code for r in responses] == [400, 400, 429]
    assert [r.headers["X-RateLimit-Remaining"] for r in responses] == ["1", "0", "0"]
    assert responses[0].json()["error"] == "Invalid JSON"
