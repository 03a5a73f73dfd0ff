from __future__ import annotations


class ProxyError(Exception):
    """Base exception for request handling failures. Carries the HTTP status to answer with."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ProxyError):
    """A required field is missing or the body could not be read."""

    status_code = 400


class AuthorizationError(ProxyError):
    """The client did not present the configured public key."""

    status_code = 403


class UpstreamError(ProxyError):
    """
    The data provider or the verification provider failed: transport errors,
    timeouts, non-2xx statuses, invalid JSON or an unexpected payload shape.
    The message is meant for logs, never for the client.
    """

    status_code = 500


class CorsRejection(ProxyError):
    """Request origin is not in the allow-list."""

    status_code = 403
