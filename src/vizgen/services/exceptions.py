"""Service error hierarchy for generation jobs.

This module defines the exception hierarchy for service-level errors:
- ServiceError: Base for all service errors
- Submission errors: raised synchronously from submit(), before a job exists
- Provider errors: raised by the provider client, recorded on the job by the
  dispatch unit and never surfaced to the submitting caller
"""


class ServiceError(Exception):
    """Base exception for all service errors."""

    pass


# Submission errors (no job record is created)
class ValidationError(ServiceError):
    """Bad modality, blank prompt or out-of-range parameter."""

    pass


class QuotaExceeded(ServiceError):
    """User reached the daily generation ceiling."""

    def __init__(self, used: int, limit: int):
        super().__init__(f"Daily generation limit reached ({used}/{limit})")
        self.used = used
        self.limit = limit


class TemplateNotFound(ServiceError):
    """Referenced template does not exist."""

    def __init__(self, template_id: int):
        super().__init__(f"Template {template_id} not found")
        self.template_id = template_id


class TemplateDisabled(ServiceError):
    """Referenced template exists but is inactive."""

    def __init__(self, template_id: int):
        super().__init__(f"Template {template_id} is disabled")
        self.template_id = template_id


class JobNotFound(ServiceError):
    """Job does not exist or is not owned by the caller."""

    pass


class InternalStoreError(ServiceError):
    """Persisting or reading a job failed."""

    pass


# Provider errors
class ProviderError(ServiceError):
    """Base exception for generation provider failures."""

    retryable: bool = False


class ProviderTransientError(ProviderError):
    """Transient provider failure.

    Examples:
    - Network timeouts
    - Rate limit exceeded (429)
    - Service unavailable (5xx)
    """

    retryable = True


class ProviderPermanentError(ProviderError):
    """Permanent provider failure.

    Examples:
    - Authentication failures (401, 403)
    - Invalid request parameters (400)
    - Malformed provider responses
    """

    retryable = False


class ProviderTimeout(ProviderError):
    """Provider task did not reach a terminal state within the polling ceiling."""

    pass
