"""Welcome-message dispatch to the X (Twitter) v1.1 Direct Message API."""

import logging
from datetime import datetime

import httpx
from authlib.integrations.httpx_client import OAuth1Auth

from plzdm.constants import (
    RATE_LIMIT_RESET_HEADER,
    TWITTER_RATE_LIMIT_CODE,
    TWITTER_WELCOME_MESSAGES_URL,
)
from plzdm.errors import DispatchError, ExternalApiError, RateLimitError, TransportError
from plzdm.schemas.messages import TwitterCredentials, WelcomeMessagePayload
from plzdm.utils import now_utc, to_datetime

logger = logging.getLogger(__name__)


def build_idempotency_name(
    external_account_id: str,
    account_handle: str,
    now: datetime | None = None,
) -> str:
    """Name for the welcome message: ``{account id}-{handle}-{epoch millis}``."""
    millis = int((now or now_utc()).timestamp() * 1000)
    return f"{external_account_id}-{account_handle}-{millis}"


def _parse_reset_header(response: httpx.Response) -> datetime | None:
    raw = response.headers.get(RATE_LIMIT_RESET_HEADER)
    if not raw:
        return None
    try:
        return to_datetime(int(raw))
    except ValueError:
        logger.warning("Unparseable %s header: %r", RATE_LIMIT_RESET_HEADER, raw)
        return None


def classify_error(response: httpx.Response) -> DispatchError:
    """Map a failed Twitter response onto the dispatch error taxonomy.

    Code 88 means the rate limit is exhausted and carries a reset time. Any other
    structured ``errors`` entry is a permanent API error. A body with no
    ``errors`` list is treated as a transport-level failure.
    """
    try:
        body = response.json()
    except ValueError:
        body = None

    errors = body.get("errors") if isinstance(body, dict) else None
    if not errors or not isinstance(errors, list) or not isinstance(errors[0], dict):
        return TransportError(f"Twitter returned HTTP {response.status_code} without an error body")

    first = errors[0]
    code = first.get("code")
    if code == TWITTER_RATE_LIMIT_CODE:
        return RateLimitError(_parse_reset_header(response))
    return ExternalApiError(first.get("message") or f"Twitter returned HTTP {response.status_code}", code)


class WelcomeMessageDispatcher:
    """Creates welcome messages on behalf of a linked account.

    The httpx client is injected so callers control pooling and deadlines;
    requests are signed with OAuth 1.0a user context and sent exactly once.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        consumer_key: str,
        consumer_secret: str,
        url: str = TWITTER_WELCOME_MESSAGES_URL,
    ):
        self.http = http_client
        self.consumer_key = consumer_key
        self.consumer_secret = consumer_secret
        self.url = url

    def _auth(self, credentials: TwitterCredentials) -> OAuth1Auth:
        return OAuth1Auth(
            client_id=self.consumer_key,
            client_secret=self.consumer_secret,
            token=credentials.access_token_key,
            token_secret=credentials.access_token_secret,
            # Otherwise authlib drops non-form bodies from the signed request
            force_include_body=True,
        )

    async def dispatch(
        self,
        credentials: TwitterCredentials,
        payload: WelcomeMessagePayload,
        account_handle: str | None = None,
        now: datetime | None = None,
    ) -> dict:
        """POST the message and return Twitter's created-message descriptor.

        Raises:
            RateLimitError: rate limit exhausted (``reset_at`` set when known).
            ExternalApiError: Twitter rejected the request.
            TransportError: network failure or unstructured error response.
        """
        handle = account_handle or credentials.account_handle
        body = {
            "name": build_idempotency_name(credentials.external_account_id, handle, now),
            "welcome_message": {"message_data": payload.to_message_data()},
        }

        try:
            resp = await self.http.post(self.url, json=body, auth=self._auth(credentials))
        except httpx.TransportError as e:
            logger.error("Welcome message dispatch failed for @%s: %s", handle, e)
            raise TransportError(f"Could not reach Twitter: {e}") from e

        if not resp.is_success:
            error = classify_error(resp)
            logger.error("Twitter rejected welcome message for @%s: %s", handle, error)
            raise error

        try:
            descriptor = resp.json()
        except ValueError as e:
            raise TransportError("Twitter returned a non-JSON success response") from e

        logger.info("Created welcome message %s for @%s", body["name"], handle)
        return descriptor
