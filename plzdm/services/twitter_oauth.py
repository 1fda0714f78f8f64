"""X/Twitter OAuth 1.0a three-legged flow helpers (account linking)."""

from authlib.integrations.httpx_client import AsyncOAuth1Client

from plzdm.config import get_settings
from plzdm.constants import (
    TWITTER_ACCESS_TOKEN_URL,
    TWITTER_AUTHORIZE_URL,
    TWITTER_REQUEST_TOKEN_URL,
)


def _client(**token) -> AsyncOAuth1Client:
    settings = get_settings()
    return AsyncOAuth1Client(
        client_id=settings.twitter_api_key,
        client_secret=settings.twitter_api_secret_key,
        **token,
    )


async def fetch_request_token() -> tuple[dict, str]:
    """Obtain a request token and the URL the user must visit to authorize it.

    Returns (request_token, authorize_url); the token dict carries
    ``oauth_token`` and ``oauth_token_secret``.
    """
    settings = get_settings()
    async with _client(redirect_uri=settings.twitter_callback_uri) as client:
        request_token = await client.fetch_request_token(TWITTER_REQUEST_TOKEN_URL)
        url = client.create_authorization_url(TWITTER_AUTHORIZE_URL)
    return dict(request_token), url


async def fetch_access_token(oauth_token: str, oauth_token_secret: str, verifier: str) -> dict:
    """Exchange an authorized request token for the user's access token.

    The returned dict carries ``oauth_token``, ``oauth_token_secret``, ``user_id``
    and ``screen_name``.
    """
    async with _client(token=oauth_token, token_secret=oauth_token_secret) as client:
        token = await client.fetch_access_token(TWITTER_ACCESS_TOKEN_URL, verifier=verifier)
    return dict(token)
