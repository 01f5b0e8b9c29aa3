import pytest

from conftest import PASSWORD
from mediator.database.core import funcs
from mediator.database.daos.case_dao import CaseDao
from mediator.database.daos.participant_dao import ParticipantDao
from mediator.mediation.change_feed import ChangeFeed
from mediator.mediation.errors import Conflict, Forbidden, InvalidInput
from mediator.mediation.store import CaseStore


@pytest.fixture
def parties():
    a = funcs.register_user(email="alex@example.com", password=PASSWORD, full_name="Alex Doe")
    b = funcs.register_user(email="blair@example.com", password=PASSWORD, full_name=None)
    case = funcs.create_case(user_id=a["id"], title="Fence", description=None, case_type="personal")["case"]
    token = funcs.generate_invite(case_id=case["id"], user_id=a["id"], invite_email=None)["invite_token"]
    funcs.join_case(invite_token=token, user_id=b["id"])
    return a, b, case


def test_unknown_case_type_is_rejected():
    a = funcs.register_user(email="alex@example.com", password=PASSWORD, full_name="Alex Doe")
    with pytest.raises(InvalidInput):
        funcs.create_case(user_id=a["id"], title="Fence", description=None, case_type="divorce")


def test_draft_versions_and_compare_and_swap(parties):
    _, _, case = parties
    first = funcs.save_agreement_draft(case_id=case["id"], draft_text="v1")
    assert first["agreement"]["version"] == 1
    assert first["message"] is None

    second = funcs.save_agreement_draft(case_id=case["id"], draft_text="v2", expected_version=1)
    assert second["agreement"]["version"] == 2

    with pytest.raises(Conflict):
        funcs.save_agreement_draft(case_id=case["id"], draft_text="lost update", expected_version=1)
    assert funcs.fetch_agreement(case_id=case["id"])["draft_text"] == "v2"


def test_first_draft_with_expected_version_conflicts(parties):
    _, _, case = parties
    with pytest.raises(Conflict):
        funcs.save_agreement_draft(case_id=case["id"], draft_text="v1", expected_version=3)
    assert funcs.fetch_agreement(case_id=case["id"]) is None


def test_draft_message_is_written_in_the_same_transaction(parties):
    a, _, case = parties
    result = funcs.save_agreement_draft(case_id=case["id"], draft_text="v1", message_content="AI Draft Agreement: v1")
    snapshot = funcs.fetch_case_snapshot(case_id=case["id"], user_id=a["id"])
    assert [m["id"] for m in snapshot["messages"]] == [result["message"]["id"]]


def test_signing_a_draft_case_does_not_resolve(parties):
    a, b, case = parties
    funcs.sign_agreement(case_id=case["id"], user_id=a["id"], typed_name="Alex Doe")
    result = funcs.sign_agreement(case_id=case["id"], user_id=b["id"], typed_name="blair@example.com")
    assert result["resolved"] is False
    assert result["case"]["status"] == "draft"


def test_last_signature_resolves_active_case(parties):
    a, b, case = parties
    funcs.activate_case(case_id=case["id"], user_id=a["id"])
    assert funcs.sign_agreement(case_id=case["id"], user_id=b["id"], typed_name="blair@example.com")["resolved"] is False
    result = funcs.sign_agreement(case_id=case["id"], user_id=a["id"], typed_name="Alex Doe")
    assert result["resolved"] is True
    assert result["case"]["status"] == "resolved"


def test_resolved_case_cannot_be_reinvited(parties):
    a, b, case = parties
    funcs.activate_case(case_id=case["id"], user_id=a["id"])
    funcs.sign_agreement(case_id=case["id"], user_id=a["id"], typed_name="Alex Doe")
    funcs.sign_agreement(case_id=case["id"], user_id=b["id"], typed_name="blair@example.com")
    with pytest.raises(Conflict):
        funcs.generate_invite(case_id=case["id"], user_id=a["id"], invite_email=None)


def test_non_participant_cannot_post(parties):
    _, _, case = parties
    c = funcs.register_user(email="casey@example.com", password=PASSWORD, full_name="Casey Poe")
    with pytest.raises(Forbidden):
        funcs.create_message(case_id=case["id"], user_id=c["id"], content="hi")


def test_store_publishes_committed_changes(parties):
    a, _, case = parties
    feed = ChangeFeed()
    store = CaseStore(feed)
    seen = []
    unsubscribe = feed.subscribe(case["id"], seen.append)

    store.post_message(case["id"], a["id"], "Hello")
    agreement, message = store.save_draft(case["id"], "v1", message_content="AI Draft Agreement: v1")
    store.save_draft(case["id"], "v2")

    assert [(c.table, c.event) for c in seen] == [
        ("messages", "INSERT"),
        ("agreements", "INSERT"),
        ("messages", "INSERT"),
        ("agreements", "UPDATE"),
    ]
    assert message.content == "AI Draft Agreement: v1"

    unsubscribe()
    store.post_message(case["id"], a["id"], "Nobody listens")
    assert len(seen) == 4
    assert feed.subscriber_count(case["id"]) == 0


def test_failed_write_publishes_nothing(parties):
    a, _, case = parties
    feed = ChangeFeed()
    store = CaseStore(feed)
    seen = []
    feed.subscribe(case["id"], seen.append)
    with pytest.raises(InvalidInput):
        store.post_message(case["id"], a["id"], "   ")
    assert seen == []


def test_broken_subscriber_does_not_block_others(parties):
    a, _, case = parties
    feed = ChangeFeed()
    seen = []

    def broken(change):
        raise RuntimeError("socket gone")

    feed.subscribe(case["id"], broken)
    feed.subscribe(case["id"], seen.append)
    CaseStore(feed).post_message(case["id"], a["id"], "Hello")
    assert len(seen) == 1


def test_email_signs_only_without_full_name(parties):
    a, b, case = parties
    with pytest.raises(InvalidInput):
        funcs.sign_agreement(case_id=case["id"], user_id=a["id"], typed_name="alex@example.com")
    signed = funcs.sign_agreement(case_id=case["id"], user_id=b["id"], typed_name="blair@example.com")
    assert signed["participant"]["has_signed_agreement"] is True


def test_signing_locks_the_case_before_writing(parties, monkeypatch):
    a, b, case = parties
    funcs.activate_case(case_id=case["id"], user_id=a["id"])
    calls = []
    lock = CaseDao.fetchCaseForUpdate
    mark = ParticipantDao.markSigned

    def locking(self, session, case_id):
        calls.append("lock")
        return lock(self, session, case_id)

    def marking(self, session, participant, signed_at):
        calls.append("mark")
        return mark(self, session, participant, signed_at)

    monkeypatch.setattr(CaseDao, "fetchCaseForUpdate", locking)
    monkeypatch.setattr(ParticipantDao, "markSigned", marking)

    funcs.sign_agreement(case_id=case["id"], user_id=a["id"], typed_name="Alex Doe")
    result = funcs.sign_agreement(case_id=case["id"], user_id=b["id"], typed_name="blair@example.com")
    assert calls == ["lock", "mark", "lock", "mark"]
    assert result["resolved"] is True
