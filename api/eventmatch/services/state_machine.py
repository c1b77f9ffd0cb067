RESPONSE_ALIASES = {
    "yes": "like",
    "like": "like",
    "no": "pass",
    "pass": "pass",
}

WIRE_RESPONSES = {"like": "yes", "pass": "no"}

CONNECTION_STATUSES = {"pending", "accepted", "rejected"}


def normalize_response(value) -> str | None:
    if value is None:
        return None
    return RESPONSE_ALIASES.get(str(value).strip().lower())


def transition_response(current: str | None, response: str) -> str:
    # Either decision may replace the other; the latest write wins.
    if response not in WIRE_RESPONSES:
        return current or "unset"
    return response


def transition_connection(current: str, target: str) -> str | None:
    """Next connection status, or None when the change is not allowed."""
    if target not in CONNECTION_STATUSES:
        return None
    if current == target:
        return current
    if current == "pending" and target in {"accepted", "rejected"}:
        return target
    return None
