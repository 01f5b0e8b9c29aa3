import pytest

CASE_BODY = {
    "caseMeta": {"title": "Shared fence repair", "type": "personal"},
    "partyContexts": [{"party": "Party A", "background": "Storm damage"}],
    "recentMessages": [{"sender": "Party A", "content": "Can we split it?"}],
}


def test_rejects_unauthenticated_without_calling_the_model(client, fake_model):
    res = client.post("/functions/summarize-situation", json=CASE_BODY)
    assert res.status_code == 401
    assert res.json() == {"error": "Unauthorized"}
    assert fake_model.calls == []


def test_rejects_invalid_token(client, fake_model):
    res = client.post("/functions/summarize-situation", json=CASE_BODY, headers={"Authorization": "Bearer not-a-jwt"})
    assert res.status_code == 401
    assert fake_model.calls == []


def test_summarize_returns_result(client, party_a, fake_model):
    fake_model.default = "Both want the fence fixed."
    res = client.post("/functions/summarize-situation", json=CASE_BODY, headers=party_a["headers"])
    assert res.status_code == 200
    assert res.json() == {"result": "Both want the fence fixed."}
    assert "Party A: Can we split it?" in fake_model.prompts[0]


def test_missing_field_is_named(client, party_a, fake_model):
    body = {k: v for k, v in CASE_BODY.items() if k != "partyContexts"}
    res = client.post("/functions/summarize-situation", json=body, headers=party_a["headers"])
    assert res.status_code == 400
    assert "partyContexts" in res.json()["error"]
    assert fake_model.calls == []


def test_recent_messages_must_be_an_array(client, party_a):
    body = dict(CASE_BODY, recentMessages="Can we split it?")
    res = client.post("/functions/generate-agreement", json=body, headers=party_a["headers"])
    assert res.status_code == 400
    assert res.json() == {"error": "Invalid input: recentMessages must be an array"}


def test_empty_collections_count_as_present(client, party_a):
    body = {"caseMeta": {}, "partyContexts": [], "recentMessages": []}
    res = client.post("/functions/suggest-compromises", json=body, headers=party_a["headers"])
    assert res.status_code == 200


def test_body_must_be_a_json_object(client, party_a):
    res = client.post("/functions/rephrase-message", json=["hello"], headers=party_a["headers"])
    assert res.status_code == 400
    res = client.post(
        "/functions/rephrase-message",
        content=b"not json",
        headers={**party_a["headers"], "Content-Type": "application/json"},
    )
    assert res.status_code == 400


def test_suggest_includes_agreement_draft(client, party_a, fake_model):
    body = dict(CASE_BODY, agreementDraft="Alex pays 60%.")
    assert client.post("/functions/suggest-compromises", json=body, headers=party_a["headers"]).status_code == 200
    assert "Current Agreement Draft: Alex pays 60%." in fake_model.prompts[0]


def test_rephrase_requires_last_message(client, party_a, fake_model):
    res = client.post("/functions/rephrase-message", json={"lastMessage": ""}, headers=party_a["headers"])
    assert res.status_code == 400
    assert "lastMessage" in res.json()["error"]

    res = client.post("/functions/rephrase-message", json={"lastMessage": "You never listen!"}, headers=party_a["headers"])
    assert res.status_code == 200
    assert "You never listen!" in fake_model.prompts[0]


def test_improve_agreement_twice_returns_text_each_time(client, party_a, fake_model):
    fake_model.outcomes = ["Clearer draft v1", "Clearer draft v2"]
    first = client.post("/functions/improve-agreement", json={"draftText": "draft"}, headers=party_a["headers"])
    second = client.post("/functions/improve-agreement", json={"draftText": "Clearer draft v1"}, headers=party_a["headers"])
    assert first.json() == {"result": "Clearer draft v1"}
    assert second.json() == {"result": "Clearer draft v2"}


def test_generate_agreement_returns_non_empty_text(client, party_a):
    res = client.post("/functions/generate-agreement", json=CASE_BODY, headers=party_a["headers"])
    assert res.status_code == 200
    assert res.json()["result"].strip()


def test_eleventh_call_in_a_minute_is_rate_limited(client, party_a, fake_model):
    for _ in range(10):
        assert client.post("/functions/summarize-situation", json=CASE_BODY, headers=party_a["headers"]).status_code == 200
    res = client.post("/functions/summarize-situation", json=CASE_BODY, headers=party_a["headers"])
    assert res.status_code == 429
    assert res.json() == {"error": "Rate limit exceeded"}
    assert len(fake_model.calls) == 10


def test_rate_limit_is_checked_before_validation(client, party_a):
    for _ in range(10):
        client.post("/functions/rephrase-message", json={}, headers=party_a["headers"])
    res = client.post("/functions/rephrase-message", json={}, headers=party_a["headers"])
    assert res.status_code == 429


def test_quota_is_per_user(client, party_a, party_b):
    for _ in range(10):
        client.post("/functions/summarize-situation", json=CASE_BODY, headers=party_a["headers"])
    res = client.post("/functions/summarize-situation", json=CASE_BODY, headers=party_b["headers"])
    assert res.status_code == 200


@pytest.mark.parametrize("error", [RuntimeError("upstream exploded"), ValueError("bad payload")])
def test_provider_failures_are_generic_500(client, party_a, fake_model, error):
    fake_model.outcomes = [error]
    res = client.post("/functions/summarize-situation", json=CASE_BODY, headers=party_a["headers"])
    assert res.status_code == 500
    assert res.json() == {"error": "Internal server error"}


@pytest.mark.parametrize(
    "item",
    ["just a string", 42, ["Party A", "hello", "extra"], {"sender": "Party A"}],
)
def test_recent_messages_items_must_be_sender_content_objects(client, party_a, fake_model, item):
    body = dict(CASE_BODY, recentMessages=[item])
    res = client.post("/functions/generate-agreement", json=body, headers=party_a["headers"])
    assert res.status_code == 400
    assert res.json() == {"error": "Invalid input: recentMessages must be an array of {sender, content}"}
    assert fake_model.calls == []
