from mediator.mediation.orchestrator import COMPROMISE_PREFIX, DRAFT_PREFIX, REPHRASE_PREFIX, SUMMARY_PREFIX


def snapshot(client, case_id, headers):
    return client.get(f"/cases/{case_id}", headers=headers).json()


def test_summarize_posts_and_stores_summary(client, party_a, party_b, active_case, fake_model):
    case_id = active_case["id"]
    client.post(f"/cases/{case_id}/messages", json={"content": "The fence is your problem."}, headers=party_b["headers"])
    fake_model.default = "Both neighbours want the fence repaired."

    res = client.post(f"/cases/{case_id}/assist/summarize", headers=party_a["headers"])
    assert res.status_code == 200
    message = res.json()["result"]
    assert message["content"] == SUMMARY_PREFIX + "Both neighbours want the fence repaired."
    assert message["sender_type"] == "ai"
    assert message["message_type"] == "ai_suggestion"

    state = snapshot(client, case_id, party_b["headers"])
    assert state["case"]["ai_summary"] == "Both neighbours want the fence repaired."
    assert state["messages"][-1]["id"] == message["id"]

    prompt = fake_model.prompts[0]
    assert "Party B: The fence is your problem." in prompt
    assert '"goals":"Split the cost"' in prompt


def test_suggest_compromises_sees_current_draft(client, party_a, active_case, fake_model):
    case_id = active_case["id"]
    fake_model.outcomes = ["Alex pays for posts, Blair for panels.", "Option 1: split 50/50."]
    client.post(f"/cases/{case_id}/assist/generate-draft", headers=party_a["headers"])
    res = client.post(f"/cases/{case_id}/assist/suggest-compromises", headers=party_a["headers"])
    assert res.json()["result"]["content"] == COMPROMISE_PREFIX + "Option 1: split 50/50."
    assert "Current Agreement Draft: Alex pays for posts, Blair for panels." in fake_model.prompts[1]


def test_rephrase_targets_own_last_message(client, party_a, party_b, active_case, fake_model):
    case_id = active_case["id"]
    res = client.post(f"/cases/{case_id}/assist/rephrase", headers=party_a["headers"])
    assert res.json() == {"result": None}
    assert fake_model.calls == []

    client.post(f"/cases/{case_id}/messages", json={"content": "You ruined my fence!"}, headers=party_a["headers"])
    client.post(f"/cases/{case_id}/messages", json={"content": "It was the storm."}, headers=party_b["headers"])
    fake_model.default = "I am upset the fence is broken."
    res = client.post(f"/cases/{case_id}/assist/rephrase", headers=party_a["headers"])
    assert res.json()["result"]["content"] == REPHRASE_PREFIX + "I am upset the fence is broken."
    assert "You ruined my fence!" in fake_model.prompts[0]
    assert "It was the storm." not in fake_model.prompts[0]


def test_generate_then_improve_draft(client, party_a, party_b, active_case, fake_model):
    case_id = active_case["id"]
    assert client.post(f"/cases/{case_id}/assist/improve-clarity", headers=party_a["headers"]).json() == {"result": None}
    assert fake_model.calls == []

    fake_model.outcomes = ["Draft one", "Draft one, clearer"]
    generated = client.post(f"/cases/{case_id}/assist/generate-draft", headers=party_a["headers"]).json()["result"]
    assert generated["draft_text"] == "Draft one"
    assert generated["version"] == 1

    messages_before = len(snapshot(client, case_id, party_a["headers"])["messages"])
    improved = client.post(
        f"/cases/{case_id}/assist/improve-clarity", json={"expected_version": 1}, headers=party_b["headers"]
    ).json()["result"]
    assert improved["draft_text"] == "Draft one, clearer"
    assert improved["version"] == 2
    assert "Draft one" in fake_model.prompts[1]

    state = snapshot(client, case_id, party_a["headers"])
    assert len(state["messages"]) == messages_before
    assert state["messages"][-1]["content"] == DRAFT_PREFIX + "Draft one"


def test_improve_with_stale_version_conflicts(client, party_a, active_case):
    case_id = active_case["id"]
    client.post(f"/cases/{case_id}/assist/generate-draft", headers=party_a["headers"])
    client.post(f"/cases/{case_id}/assist/improve-clarity", headers=party_a["headers"])
    res = client.post(f"/cases/{case_id}/assist/improve-clarity", json={"expected_version": 1}, headers=party_a["headers"])
    assert res.status_code == 409
    assert snapshot(client, case_id, party_a["headers"])["agreement"]["version"] == 2


def test_finalized_agreement_is_frozen(client, party_a, active_case, fake_model):
    case_id = active_case["id"]
    client.post(f"/cases/{case_id}/assist/generate-draft", headers=party_a["headers"])
    client.post(f"/cases/{case_id}/agreement/finalize", headers=party_a["headers"])
    calls = len(fake_model.calls)
    assert client.post(f"/cases/{case_id}/assist/generate-draft", headers=party_a["headers"]).status_code == 409
    assert client.post(f"/cases/{case_id}/assist/improve-clarity", headers=party_a["headers"]).status_code == 409
    assert len(fake_model.calls) == calls


def test_provider_failure_writes_nothing(client, party_a, active_case, fake_model):
    case_id = active_case["id"]
    fake_model.outcomes = [RuntimeError("timeout")]
    res = client.post(f"/cases/{case_id}/assist/summarize", headers=party_a["headers"])
    assert res.status_code == 500
    assert res.json() == {"error": "Internal server error"}
    state = snapshot(client, case_id, party_a["headers"])
    assert state["messages"] == []
    assert state["case"]["ai_summary"] is None


def test_assist_is_rate_limited(client, party_a, active_case, fake_model):
    case_id = active_case["id"]
    for _ in range(10):
        assert client.post(f"/cases/{case_id}/assist/summarize", headers=party_a["headers"]).status_code == 200
    res = client.post(f"/cases/{case_id}/assist/summarize", headers=party_a["headers"])
    assert res.status_code == 429
    assert res.json() == {"error": "Rate limit exceeded"}
    assert len(fake_model.calls) == 10


def test_assist_requires_participation(client, active_case, fake_model):
    from conftest import login_headers, register

    register(client, "casey@example.com", "Casey Poe")
    outsider = login_headers(client, "casey@example.com")
    assert client.post(f"/cases/{active_case['id']}/assist/summarize", headers=outsider).status_code == 403
    assert fake_model.calls == []


def test_unknown_action_is_404(client, party_a, active_case):
    res = client.post(f"/cases/{active_case['id']}/assist/translate", headers=party_a["headers"])
    assert res.status_code == 404
    assert "translate" in res.json()["error"]
