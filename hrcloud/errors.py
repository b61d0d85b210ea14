"""
Exception hierarchy for the lifecycle service.

AppError subclasses map onto HTTP responses through
``hrcloud.error_handlers``. The remaining exceptions are domain-level and
never reach a client directly.
"""


class AppError(Exception):
    status_code = 400
    title = "Bad Request"

    def __init__(self, message, status_code=None, payload=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.payload = payload

    def to_dict(self):
        body = {"error": self.title, "message": self.message}
        if self.payload:
            body.update(self.payload)
        return body


class ValidationError(AppError):
    status_code = 400
    title = "Validation Error"


class Unauthorized(AppError):
    status_code = 401
    title = "Unauthorized"


class Forbidden(AppError):
    status_code = 403
    title = "Forbidden"


class NotFound(AppError):
    status_code = 404
    title = "Not Found"


class Conflict(AppError):
    status_code = 409
    title = "Conflict"


class StoreError(AppError):
    status_code = 500
    title = "Database Error"


class MalformedSubscription(ValueError):
    """A subscription row the lifecycle rule cannot evaluate."""

    def __init__(self, company_id, reason):
        super().__init__(f"Malformed subscription for company {company_id}: {reason}")
        self.company_id = company_id
        self.reason = reason


class JobAlreadyRunning(RuntimeError):
    def __init__(self, job_name):
        super().__init__(f"Job '{job_name}' is already running")
        self.job_name = job_name


class ImmutableRecordError(RuntimeError):
    pass


class NotificationError(RuntimeError):
    pass
