# orderflow/domain/errors.py
"""
Error taxonomy of the fulfillment workflow.

Services raise these; routers turn them into HTTP responses using
``status_code``. Validation, authorization and signature errors are raised
before any side effect happens.
"""


class OrderflowError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(OrderflowError):
    status_code = 400


class InvalidDiscount(ValidationError):
    pass


class AuthenticationRequired(OrderflowError):
    status_code = 401


class AuthorizationError(OrderflowError):
    status_code = 403


class NotFoundError(OrderflowError):
    status_code = 404


class ConflictError(OrderflowError):
    status_code = 409


class SignatureError(OrderflowError):
    status_code = 400


class PersistenceError(OrderflowError):
    status_code = 500


class ConfigurationError(OrderflowError):
    status_code = 500


class ProviderError(OrderflowError):
    status_code = 502


class OrderNumberConflict(PersistenceError):
    """A freshly generated order number collided with an existing row."""


class BestEffortFailure(OrderflowError):
    """A post-commit side effect failed. Logged, never propagated."""

    def __init__(self, step: str, order_number: str, cause: Exception):
        super().__init__(f"{step} failed for order {order_number}: {cause}")
        self.step = step
        self.order_number = order_number
        self.cause = cause
