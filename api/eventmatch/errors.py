"""
Domain errors for the matching service.

Every failure a caller can observe is a MatchServiceError subclass; the
application maps them to a JSON body ``{"error": ..., "reason": ...}`` with
the status code carried on the class.
"""


class MatchServiceError(Exception):
    status_code = 400
    reason = "match_service_error"

    def __init__(self, detail: str | None = None, *, reason: str | None = None):
        self.detail = detail or self.__class__.__doc__ or self.reason
        if reason:
            self.reason = reason
        super().__init__(self.detail)


class NotAuthenticated(MatchServiceError):
    """User not authenticated"""

    status_code = 401
    reason = "not_authenticated"


class ProfileNotFound(MatchServiceError):
    """User profile not found"""

    status_code = 404
    reason = "profile_not_found"


class GenderUnknown(MatchServiceError):
    """Set your gender on your profile to see matches"""

    status_code = 409
    reason = "gender_unknown"


class InvalidResponse(MatchServiceError):
    """response must be one of: yes, no"""

    status_code = 400
    reason = "invalid_response"


class StoreWriteFailure(MatchServiceError):
    """Could not save changes, please retry"""

    status_code = 503
    reason = "store_write_failure"


class ConnectionNotFound(MatchServiceError):
    """Connection not found"""

    status_code = 404
    reason = "connection_not_found"


class InvalidTransition(MatchServiceError):
    """Connection status change not allowed"""

    status_code = 409
    reason = "invalid_transition"


class StoreReadFailure(MatchServiceError):
    """Could not load data, please retry"""

    status_code = 503
    reason = "store_read_failure"
