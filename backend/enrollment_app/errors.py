"""Typed failures raised by services and translated once at the HTTP layer.

Each error carries a short machine-readable `code` and the HTTP status
the API responds with. Scripts map the same classes to exit codes.
"""


class EnrollmentAppError(Exception):
    """Base class for all application errors."""
    code = "error"
    http_status = 500

    def __init__(self, message: str, code: str = None, http_status: int = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if http_status is not None:
            self.http_status = http_status

    def to_response(self) -> dict:
        return {"detail": self.message, "code": self.code}


class ConfigurationError(EnrollmentAppError):
    """Connection settings are missing, malformed or contradictory."""
    code = "configuration_error"
    http_status = 500


class StudentNotFoundError(EnrollmentAppError):
    code = "student_not_found"
    http_status = 404


class CourseNotFoundError(EnrollmentAppError):
    code = "course_not_found"
    http_status = 404


class StoreUnavailableError(EnrollmentAppError):
    """The database could not be reached (connection refused, bad host, login failure)."""
    code = "store_unavailable"
    http_status = 503


class DataStoreError(EnrollmentAppError):
    """The database was reached but rejected the statement."""
    code = "data_store_error"
    http_status = 500


class EmptyPayloadError(EnrollmentAppError):
    """A bulk insert was requested with nothing to insert."""
    code = "empty_payload"
    http_status = 400


class InvalidIdentifierError(EnrollmentAppError):
    """A table or column name is not a plain SQL identifier."""
    code = "invalid_identifier"
    http_status = 400


class InvalidPayloadError(EnrollmentAppError):
    """A VALUES payload is malformed or carries something other than literals."""
    code = "invalid_payload"
    http_status = 400
