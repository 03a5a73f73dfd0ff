import logging
import typing

import pydantic
import requests

from errors import UpstreamError
from schemas import ProviderPayload, VerificationResult

logger = logging.getLogger(__name__)

Timeout = typing.Tuple[float, float]


def _send(
    session: requests.Session,
    method: str,
    url: str,
    timeout: Timeout,
    **kwargs: typing.Any,
) -> typing.Any:
    """
    Perform one upstream request and return the decoded JSON body.

    Raises UpstreamError on transport failures, non-2xx statuses and bodies that are not JSON.
    """
    try:
        response = session.request(method, url, timeout=timeout, **kwargs)
    except requests.RequestException as e:
        raise UpstreamError(f"{method} {url} failed: {e}") from e

    if not response.ok:
        raise UpstreamError(f"{method} {url} returned HTTP {response.status_code}")

    try:
        return response.json()
    except ValueError as e:
        raise UpstreamError(f"{method} {url} did not return valid JSON") from e


class DataProviderClient:
    """Talks to the spreadsheet-backed endpoint that holds orders and logs."""

    def __init__(
        self,
        endpoint: str,
        secret: str,
        timeout: Timeout = (10.0, 30.0),
        session: typing.Optional[requests.Session] = None,
    ):
        self.endpoint = endpoint
        self.secret = secret
        self.timeout = timeout
        self.session = session or requests.Session()

    def fetch_shipment(self, ref: str) -> ProviderPayload:
        """
        Fetch the provider's records for a reference.

        Parameters:
        ref (str): The raw reference, passed through unchanged.

        Returns:
        ProviderPayload: Orders and logs, validated for shape.

        Raises:
        UpstreamError: If the endpoint is not configured, the request fails, or the body is not an orders/logs object.
        """
        if not self.endpoint:
            raise UpstreamError("RGS_ENDPOINT is not set")
        data = _send(
            self.session,
            "GET",
            self.endpoint,
            self.timeout,
            params={"secret": self.secret, "ref": ref},
        )
        try:
            return ProviderPayload.model_validate(data)
        except pydantic.ValidationError as e:
            raise UpstreamError(f"unexpected shipment payload shape: {e}") from e

    def notify(self, body: bytes) -> typing.Any:
        """Forward a notification body as-is and return the provider's decoded reply."""
        if not self.endpoint:
            raise UpstreamError("RGS_ENDPOINT is not set")
        return _send(
            self.session,
            "POST",
            self.endpoint,
            self.timeout,
            data=body,
            headers={"Content-Type": "application/json"},
        )

    def close(self) -> None:
        self.session.close()


class RecaptchaClient:
    """Verifies reCAPTCHA tokens against the siteverify endpoint."""

    def __init__(
        self,
        verify_url: str,
        secret: str,
        timeout: Timeout = (10.0, 30.0),
        session: typing.Optional[requests.Session] = None,
    ):
        self.verify_url = verify_url
        self.secret = secret
        self.timeout = timeout
        self.session = session or requests.Session()

    def verify(self, token: str) -> typing.Tuple[VerificationResult, typing.Any]:
        """
        Ask the verification service whether `token` is valid.

        Returns:
        tuple: The parsed result and the raw reply, which is echoed to the client when verification fails.
        """
        data = _send(
            self.session,
            "POST",
            self.verify_url,
            self.timeout,
            data={"secret": self.secret, "response": token},
        )
        try:
            return VerificationResult.model_validate(data), data
        except pydantic.ValidationError as e:
            raise UpstreamError(f"unexpected verification payload shape: {e}") from e

    def close(self) -> None:
        self.session.close()
