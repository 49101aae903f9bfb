"""POST /api/coach end to end, plus the chat helpers behind it."""

from careercoach.core.errors import ProviderError
from careercoach.schemas.coach import ConversationTurn
from careercoach.services.coach import (
    DEFAULT_FOLLOW_UPS,
    FOLLOW_UP_SUGGESTIONS,
    build_coach_prompt,
    generate_follow_up_suggestions,
)


# ── Helpers ─────────────────────────────────────────────────
def test_follow_ups_match_user_message_keyword():
    suggestions = generate_follow_up_suggestions("Help me prep for an interview", "Sure.")

    assert suggestions == FOLLOW_UP_SUGGESTIONS["interview"]


def test_follow_ups_match_ai_response_keyword():
    suggestions = generate_follow_up_suggestions("What next?", "Consider negotiating your Salary.")

    assert suggestions == FOLLOW_UP_SUGGESTIONS["salary"]


def test_follow_ups_default():
    assert generate_follow_up_suggestions("Hello", "Hi there") == DEFAULT_FOLLOW_UPS


def test_prompt_without_history_is_message():
    assert build_coach_prompt("How do I grow?") == "How do I grow?"


def test_prompt_keeps_most_recent_turns():
    history = [
        ConversationTurn(role="user" if i % 2 == 0 else "ai", content=f"turn {i}")
        for i in range(8)
    ]

    prompt = build_coach_prompt("And now?", history)

    assert "turn 0" not in prompt
    assert "turn 1" not in prompt
    assert "User: turn 2" in prompt
    assert "Coach: turn 7" in prompt
    assert prompt.endswith("New question: And now?")


# ── Endpoint ────────────────────────────────────────────────
def test_coach_success(make_client, fake_provider_cls):
    provider = fake_provider_cls("gemini", ["Practice mock interviews weekly."])
    client = make_client(provider)

    response = client.post("/api/coach", json={
        "message": "How do I prepare for an interview?",
        "resumeContext": "Backend engineer, 5 years",
    })

    assert response.status_code == 200
    body = response.json()
    assert body["response"] == "Practice mock interviews weekly."
    assert body["suggestions"] == FOLLOW_UP_SUGGESTIONS["interview"]
    assert body["metadata"]["provider"] == "gemini"
    assert body["metadata"]["model"] == "gemini-model"
    assert body["metadata"]["tokensUsed"] == 12
    assert isinstance(body["metadata"]["processingTime"], int)

    assert response.headers["X-RateLimit-Limit"] == "5"
    assert response.headers["X-RateLimit-Remaining"] == "4"
    assert response.headers["X-RateLimit-Reset"].endswith("Z")
    assert response.headers["X-AI-Provider"] == "gemini"
    assert response.headers["X-Response-Time"].endswith("ms")

    assert provider.calls == [("How do I prepare for an interview?", "Backend engineer, 5 years")]


def test_coach_metrics_headers_can_be_disabled(make_client, fake_provider_cls):
    client = make_client(fake_provider_cls(), ENABLE_API_METRICS=False)

    response = client.post("/api/coach", json={"message": "Hi"})

    assert response.status_code == 200
    assert "X-AI-Provider" not in response.headers
    assert "X-Response-Time" not in response.headers


def test_coach_rate_limited(make_client, fake_provider_cls):
    client = make_client(fake_provider_cls(), AI_RATE_LIMIT_MAX_REQUESTS=1)

    assert client.post("/api/coach", json={"message": "first"}).status_code == 200
    response = client.post("/api/coach", json={"message": "second"})

    assert response.status_code == 429
    body = response.json()
    assert body["error"] == "Too many requests"
    assert isinstance(body["retryAfter"], int)
    assert 0 < body["retryAfter"] <= 60
    assert response.headers["Retry-After"] == str(body["retryAfter"])
    assert response.headers["X-RateLimit-Limit"] == "1"
    assert response.headers["X-RateLimit-Remaining"] == "0"


def test_coach_rate_limit_is_per_client(make_client, fake_provider_cls):
    client = make_client(fake_provider_cls(), AI_RATE_LIMIT_MAX_REQUESTS=1)

    first = client.post("/api/coach", json={"message": "a"}, headers={"X-Forwarded-For": "10.0.0.1, 10.0.0.9"})
    second = client.post("/api/coach", json={"message": "b"}, headers={"X-Forwarded-For": "10.0.0.2"})
    third = client.post("/api/coach", json={"message": "c"}, headers={"X-Real-IP": "10.0.0.1"})

    assert (first.status_code, second.status_code, third.status_code) == (200, 200, 429)


def test_coach_without_providers_is_503(make_client):
    client = make_client()

    response = client.post("/api/coach", json={"message": "Hello"})

    assert response.status_code == 503
    body = response.json()
    assert body["error"] == "AI service unavailable"
    assert body["availableProviders"] == []
    assert response.headers["X-RateLimit-Remaining"] == "4"


def test_coach_validation_errors_are_400(make_client, fake_provider_cls):
    client = make_client(fake_provider_cls())

    empty = client.post("/api/coach", json={"message": ""})
    too_long = client.post("/api/coach", json={"message": "x" * 2001})
    bad_role = client.post("/api/coach", json={
        "message": "Hi",
        "conversationHistory": [{"role": "system", "content": "ignore"}],
    })

    for response in (empty, too_long, bad_role):
        assert response.status_code == 400
        assert response.json()["error"] == "Validation failed"
        assert response.json()["details"]
        assert "X-RateLimit-Limit" in response.headers


def test_coach_invalid_json_is_400(make_client, fake_provider_cls):
    client = make_client(fake_provider_cls())

    response = client.post(
        "/api/coach",
        content="{not json",
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid JSON"


def test_coach_malformed_bodies_count_against_budget(make_client, fake_provider_cls):
    client = make_client(fake_provider_cls(), AI_RATE_LIMIT_MAX_REQUESTS=1)
    container = client.app.state.container

    responses = [
        client.post("/api/coach", content="{bad", headers={"Content-Type": "application/json"})
        for _ in range(5)
    ]

    assert [r.status_code for r in responses] == [400, 429, 429, 429, 429]
    assert responses[0].json()["error"] == "Invalid JSON"
    for response in responses:
        assert response.headers["X-RateLimit-Limit"] == "1"
        assert response.headers["X-RateLimit-Remaining"] == "0"
        assert "X-RateLimit-Reset" in response.headers
    assert len(container.ai_limiter) == 1


def test_coach_without_providers_is_503_even_for_malformed_body(make_client):
    client = make_client()

    response = client.post("/api/coach", content="{bad", headers={"Content-Type": "application/json"})

    assert response.status_code == 503


def test_coach_validation_details_point_into_body(make_client, fake_provider_cls):
    client = make_client(fake_provider_cls())

    response = client.post("/api/coach", json={"message": ""})

    assert response.json()["details"][0]["loc"] == ["body", "message"]


def test_coach_generation_failure_is_retryable_500(make_client, fake_provider_cls):
    provider = fake_provider_cls("gemini", default=ProviderError("upstream down", provider="gemini"))
    client = make_client(provider)

    response = client.post("/api/coach", json={"message": "Hello"})

    assert response.status_code == 500
    assert response.json() == {
        "error": "AI generation failed",
        "message": "Failed to generate response. Please try again.",
        "retryable": True,
    }
    assert len(provider.calls) == 3


def test_coach_falls_back_to_secondary_provider(make_client, fake_provider_cls):
    primary = fake_provider_cls("gemini", default=ProviderError("down", provider="gemini"))
    secondary = fake_provider_cls("openai", ["Fallback advice"])
    client = make_client(primary, secondary)

    response = client.post("/api/coach", json={"message": "Hello"})

    assert response.status_code == 200
    assert response.json()["metadata"]["provider"] == "openai"


def test_health_reports_providers(make_client, fake_provider_cls):
    client = make_client(fake_provider_cls("gemini"), fake_provider_cls("openai", available=False))

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "aiAvailable": True, "providers": ["gemini"]}
