from eventmatch.services.state_machine import normalize_response, transition_connection, transition_response


def test_wire_and_internal_response_vocabulary():
    assert normalize_response("yes") == "like"
    assert normalize_response(" YES ") == "like"
    assert normalize_response("like") == "like"
    assert normalize_response("no") == "pass"
    assert normalize_response("pass") == "pass"
    assert normalize_response("maybe") is None
    assert normalize_response(None) is None


def test_response_latest_write_wins():
    assert transition_response(None, "like") == "like"
    assert transition_response("pass", "like") == "like"
    assert transition_response("like", "pass") == "pass"
    assert transition_response("like", "like") == "like"
    assert transition_response("like", "bogus") == "like"


def test_connection_pending_can_be_answered():
    assert transition_connection("pending", "accepted") == "accepted"
    assert transition_connection("pending", "rejected") == "rejected"


def test_connection_same_status_is_idempotent():
    assert transition_connection("accepted", "accepted") == "accepted"
    assert transition_connection("rejected", "rejected") == "rejected"


def test_connection_terminal_states_do_not_move():
    assert transition_connection("accepted", "rejected") is None
    assert transition_connection("rejected", "accepted") is None
    assert transition_connection("accepted", "pending") is None
    assert transition_connection("pending", "blocked") is None
