"""Exceptions raised by the order and inventory services.

Each carries a customer-readable message and the HTTP status the API
layer answers with.
"""


class OrderError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(OrderError):
    status_code = 404


class InvalidStateError(OrderError):
    status_code = 409


class BadCredentialError(OrderError):
    status_code = 400


class UnauthenticatedError(OrderError):
    status_code = 401


class UnauthorizedError(OrderError):
    status_code = 403


class UpstreamError(OrderError):
    status_code = 502


class ConfigurationError(OrderError):
    status_code = 500


class PickupCodeExhaustedError(UpstreamError):
    status_code = 503
