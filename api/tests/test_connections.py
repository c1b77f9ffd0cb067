import pytest
from sqlalchemy.exc import OperationalError

from eventmatch import repo
from eventmatch.errors import ConnectionNotFound, InvalidTransition, StoreReadFailure
from eventmatch.services.connections import change_connection_status, connection_between, list_connections


@pytest.fixture
def pending(store, ids):
    store.add_profile(ids["a"], first_name="Ada", gender="female")
    store.add_profile(ids["b"], first_name="Ben", gender="male")
    return store.upsert_connection(None, ids["a"], ids["b"], "pending")


def test_list_connections_marks_who_can_respond(store, db, ids, pending):
    mine = list_connections(db, ids["a"])
    theirs = list_connections(db, ids["b"])

    assert mine[0]["is_requester"] is True
    assert mine[0]["can_respond"] is False
    assert mine[0]["other_profile"]["first_name"] == "Ben"
    assert theirs[0]["can_respond"] is True
    assert theirs[0]["other_profile"]["id"] == ids["a"]


def test_connection_between_either_order(store, db, ids, pending):
    assert connection_between(db, ids["b"], ids["a"])["connection"]["id"] == pending["id"]
    assert connection_between(db, ids["a"], ids["b"])["connected"] is False
    assert connection_between(db, ids["a"], ids["c"]) == {"connected": False, "connection": None}


def test_addressee_accepts(store, db, ids, pending):
    out = change_connection_status(db, pending["id"], ids["b"], "accepted")
    assert out["status"] == "accepted"
    assert db.commits == 1
    assert connection_between(db, ids["a"], ids["b"])["connected"] is True


def test_repeat_accept_does_not_write(store, db, ids, pending):
    change_connection_status(db, pending["id"], ids["b"], "accepted")
    change_connection_status(db, pending["id"], ids["b"], "accepted")
    assert db.commits == 1


def test_requester_cannot_answer_own_request(store, db, ids, pending):
    with pytest.raises(InvalidTransition) as exc:
        change_connection_status(db, pending["id"], ids["a"], "accepted")
    assert exc.value.reason == "not_addressee"


def test_outsider_sees_not_found(store, db, ids, pending):
    with pytest.raises(ConnectionNotFound):
        change_connection_status(db, pending["id"], ids["c"], "accepted")


def test_rejected_cannot_be_accepted(store, db, ids, pending):
    change_connection_status(db, pending["id"], ids["b"], "rejected")
    with pytest.raises(InvalidTransition):
        change_connection_status(db, pending["id"], ids["b"], "accepted")


def test_list_read_failure_is_structured(store, db, ids, monkeypatch):
    def _fail(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("connection reset"))

    monkeypatch.setattr(repo, "list_connections_for_user", _fail)
    with pytest.raises(StoreReadFailure):
        list_connections(db, ids["a"])
    assert db.rollbacks == 1
