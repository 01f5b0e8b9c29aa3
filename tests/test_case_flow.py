import uuid

from conftest import PASSWORD, login_headers, register


def test_register_login_and_me(client):
    profile = register(client, "casey@example.com", "Casey Poe")
    assert profile["email"] == "casey@example.com"
    assert "password" not in profile

    res = client.post("/auth/login", json={"email": "casey@example.com", "password": PASSWORD})
    assert res.status_code == 200
    assert res.json()["token_type"] == "bearer"
    # the login cookie alone authenticates
    assert client.get("/auth/me").json()["id"] == profile["id"]

    assert client.post("/auth/logout").status_code == 200
    client.cookies.clear()
    assert client.get("/auth/me").status_code == 401


def test_registration_rules(client):
    register(client, "casey@example.com", "Casey Poe")
    dup = client.post("/auth/register", json={"email": "casey@example.com", "password": PASSWORD})
    assert dup.status_code == 409
    weak = client.post("/auth/register", json={"email": "dana@example.com", "password": "password"})
    assert weak.status_code == 400
    assert weak.json() == {"error": "Invalid input: password needs an uppercase letter, a digit, a special character"}
    short = client.post("/auth/register", json={"email": "dana@example.com", "password": "Ab1$"})
    assert short.json()["error"].startswith("Invalid input: password needs at least 8 characters")


def test_wrong_password_is_401(client):
    register(client, "casey@example.com", "Casey Poe")
    res = client.post("/auth/login", json={"email": "casey@example.com", "password": "Wr0ng$pass"})
    assert res.status_code == 401
    assert res.json() == {"error": "Invalid email or password"}


def test_case_setup_flow(client, party_a, party_b):
    case = client.post("/cases", json={"title": "Noise at night", "type": "personal"}, headers=party_a["headers"]).json()
    assert case["status"] == "draft"
    assert case["created_by"] == party_a["user"]["id"]

    res = client.post(f"/cases/{case['id']}/invite", json={"invite_email": "blair@example.com"}, headers=party_a["headers"])
    assert res.status_code == 200
    token = res.json()["invite_token"]

    preview = client.get(f"/invites/{token}", headers=party_b["headers"]).json()
    assert preview["title"] == "Noise at night"
    assert preview["invited_by"] == "Alex Doe"

    joined = client.post(f"/invites/{token}/join", headers=party_b["headers"])
    assert joined.status_code == 200
    assert joined.json()["role_in_case"] == "invited_party"

    assert [c["id"] for c in client.get("/cases", headers=party_b["headers"]).json()] == [case["id"]]

    snapshot = client.get(f"/cases/{case['id']}", headers=party_b["headers"]).json()
    roles = {p["display_name"]: p["role_in_case"] for p in snapshot["participants"]}
    assert roles == {"Alex Doe": "initiator", "Blair Roe": "invited_party"}


def test_invite_and_join_conflicts(client, party_a, party_b):
    case = client.post("/cases", json={"title": "Noise"}, headers=party_a["headers"]).json()
    token = client.post(f"/cases/{case['id']}/invite", json={}, headers=party_a["headers"]).json()["invite_token"]
    assert client.post(f"/invites/{token}/join", headers=party_a["headers"]).status_code == 409
    assert client.post(f"/invites/{token}/join", headers=party_b["headers"]).status_code == 200
    assert client.post(f"/cases/{case['id']}/invite", json={}, headers=party_b["headers"]).status_code == 403

    register(client, "casey@example.com", "Casey Poe")
    third = login_headers(client, "casey@example.com")
    assert client.post(f"/invites/{token}/join", headers=third).status_code == 409
    assert client.post("/invites/unknown-token/join", headers=third).status_code == 404


def test_context_once_and_activation(client, party_a, party_b):
    case = client.post("/cases", json={"title": "Noise"}, headers=party_a["headers"]).json()
    body = {"background_text": "Loud music", "goals_text": "Quiet after 10pm"}
    assert client.post(f"/cases/{case['id']}/context", json=body, headers=party_a["headers"]).status_code == 200
    assert client.post(f"/cases/{case['id']}/context", json=body, headers=party_a["headers"]).status_code == 409

    token = client.post(f"/cases/{case['id']}/invite", json={}, headers=party_a["headers"]).json()["invite_token"]
    client.post(f"/invites/{token}/join", headers=party_b["headers"])
    assert client.post(f"/cases/{case['id']}/activate", headers=party_b["headers"]).status_code == 403
    activated = client.post(f"/cases/{case['id']}/activate", headers=party_a["headers"])
    assert activated.json()["status"] == "active"
    assert client.post(f"/cases/{case['id']}/activate", headers=party_a["headers"]).status_code == 409


def test_messages_are_stored_in_order(client, party_a, party_b, active_case):
    case_id = active_case["id"]
    client.post(f"/cases/{case_id}/messages", json={"content": "  I think we should split it.  "}, headers=party_a["headers"])
    client.post(f"/cases/{case_id}/messages", json={"content": "Fine, 50/50."}, headers=party_b["headers"])
    assert client.post(f"/cases/{case_id}/messages", json={"content": "   "}, headers=party_b["headers"]).status_code == 400

    messages = client.get(f"/cases/{case_id}", headers=party_a["headers"]).json()["messages"]
    assert [m["content"] for m in messages] == ["I think we should split it.", "Fine, 50/50."]
    assert messages[0]["sender_user_id"] == party_a["user"]["id"]


def test_outsiders_and_unknown_cases(client, active_case):
    register(client, "casey@example.com", "Casey Poe")
    outsider = login_headers(client, "casey@example.com")
    res = client.get(f"/cases/{active_case['id']}", headers=outsider)
    assert res.status_code == 403
    assert client.post(f"/cases/{active_case['id']}/messages", json={"content": "hi"}, headers=outsider).status_code == 403
    assert client.get(f"/cases/{uuid.uuid4()}", headers=outsider).status_code == 404


def test_finalize_and_sign_resolves_case(client, party_a, party_b, active_case):
    case_id = active_case["id"]
    assert client.post(f"/cases/{case_id}/agreement/finalize", headers=party_a["headers"]).status_code == 409

    client.post(f"/cases/{case_id}/assist/generate-draft", headers=party_a["headers"])
    res = client.post(
        f"/cases/{case_id}/agreement/finalize", json={"draft_text": "Each pays half."}, headers=party_b["headers"]
    )
    assert res.status_code == 200
    agreement = res.json()
    assert agreement["status"] == "finalized"
    assert agreement["finalized_text"] == "Each pays half."
    assert client.post(f"/cases/{case_id}/agreement/finalize", headers=party_a["headers"]).status_code == 409

    signed_a = client.post(f"/cases/{case_id}/agreement/sign", json={"full_name": "Alex Doe"}, headers=party_a["headers"])
    assert signed_a.status_code == 200
    assert signed_a.json()["resolved"] is False
    assert signed_a.json()["case"]["status"] == "active"
    again = client.post(f"/cases/{case_id}/agreement/sign", json={"full_name": "Alex Doe"}, headers=party_a["headers"])
    assert again.status_code == 409

    signed_b = client.post(
        f"/cases/{case_id}/agreement/sign", json={"full_name": "Blair Roe"}, headers=party_b["headers"]
    )
    assert signed_b.json()["resolved"] is True
    assert client.get(f"/cases/{case_id}", headers=party_a["headers"]).json()["case"]["status"] == "resolved"


def test_signature_requires_own_name(client, party_a, active_case):
    case_id = active_case["id"]
    res = client.post(f"/cases/{case_id}/agreement/sign", json={"full_name": "alex doe"}, headers=party_a["headers"])
    assert res.status_code == 400
    participants = client.get(f"/cases/{case_id}", headers=party_a["headers"]).json()["participants"]
    assert not any(p["has_signed_agreement"] for p in participants)


def test_email_is_not_accepted_when_full_name_is_on_file(client, party_a, active_case):
    case_id = active_case["id"]
    res = client.post(
        f"/cases/{case_id}/agreement/sign", json={"full_name": "alex@example.com"}, headers=party_a["headers"]
    )
    assert res.status_code == 400
    participants = client.get(f"/cases/{case_id}", headers=party_a["headers"]).json()["participants"]
    assert not any(p["has_signed_agreement"] for p in participants)
