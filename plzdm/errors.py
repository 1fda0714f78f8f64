"""Error taxonomy shared by the billing, messaging and HTTP layers."""

from datetime import datetime


class PlzdmError(Exception):
    """Base class for errors the HTTP layer translates into responses."""

    status_code = 500

    @property
    def message(self) -> str:
        return str(self)


class ValidationError(PlzdmError):
    """Bad user input for a single form field."""

    status_code = 422

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field


class MessageValidationError(ValidationError):
    """One or more welcome-message fields failed validation.

    ``errors`` maps each offending form field to its message so the caller can
    show them next to the inputs.
    """

    def __init__(self, errors: dict[str, str]):
        first_field = next(iter(errors), "")
        super().__init__(first_field, "; ".join(f"{k}: {v}" for k, v in errors.items()))
        self.errors = errors


class UnknownCustomerError(PlzdmError):
    """No local user is mapped to the given Stripe customer id."""

    def __init__(self, customer_id: str):
        super().__init__(f"No customer mapping found for Stripe customer {customer_id}")
        self.customer_id = customer_id


class StoreWriteError(PlzdmError):
    """A row could not be persisted."""

    def __init__(self, entity: str, key: str):
        super().__init__(f"Failed to write {entity} [{key}]")
        self.entity = entity
        self.key = key


class MissingCredentialsError(PlzdmError):
    """The user has not linked an X account yet."""

    status_code = 400


class DispatchError(PlzdmError):
    """Base for failures reported by the messaging platform."""


class RateLimitError(DispatchError):
    status_code = 429

    def __init__(self, reset_at: datetime | None):
        if reset_at:
            text = f"Twitter rate limit will reset on {reset_at.isoformat()}"
        else:
            text = "Twitter rate limit exceeded"
        super().__init__(text)
        self.reset_at = reset_at


class ExternalApiError(DispatchError):
    """The provider rejected the request, e.g. a read-only app trying to write."""

    status_code = 502

    def __init__(self, message: str, code: int | None = None):
        super().__init__(message)
        self.code = code


class TransportError(DispatchError):
    """Network failure or a response without a structured error body."""

    status_code = 503
