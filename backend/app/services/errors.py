"""Portal error taxonomy.

Services raise these; route handlers either catch them to re-render a form
or let the exception handlers in ``app.main`` turn them into an error page or
a JSON payload.
"""


class PortalError(Exception):
    status_code = 400
    message = "Something went wrong"

    def __init__(self, message: str | None = None):
        self.message = message or self.message
        super().__init__(self.message)


class ValidationError(PortalError):
    status_code = 400
    message = "Invalid input"


class InvalidStatusTransition(ValidationError):
    status_code = 409
    message = "This status change is not allowed"


class DuplicateEmail(PortalError):
    status_code = 409
    message = "Email already registered"


class DuplicateApplication(PortalError):
    status_code = 409
    message = "You have already applied to this job"


class NotFound(PortalError):
    status_code = 404
    message = "Not found"


class NotAuthorized(PortalError):
    status_code = 403
    message = "Not authorized"


class AccessDenied(NotAuthorized):
    message = "Access denied. Insufficient privileges."


class InvalidCsrfToken(NotAuthorized):
    message = "Invalid request. Please try again."


class InvalidCredentials(PortalError):
    status_code = 401
    message = "Invalid credentials"


class InvalidAdminKey(PortalError):
    status_code = 401
    message = "Invalid admin key. Access denied."


class InvalidOrExpiredToken(PortalError):
    status_code = 400
    message = "Invalid or expired reset link"


class IncorrectCurrentCredential(PortalError):
    status_code = 400
    message = "Current password is incorrect"


class AccountDeactivated(PortalError):
    status_code = 403
    message = "This account has been deactivated."


class EmailNotFound(PortalError):
    status_code = 404
    message = "Email not found"


class JobUnavailable(PortalError):
    status_code = 404
    message = "Job not found or no longer active"


class DeadlinePassed(PortalError):
    status_code = 400
    message = "Application deadline has passed"


class ResumeRequired(PortalError):
    status_code = 400
    message = "Please upload your resume before applying"


class ImpersonationNotActive(PortalError):
    status_code = 400
    message = "No impersonation in progress"


class ExternalServiceError(PortalError):
    status_code = 502
    message = "An external service failed. Please try again."
