"""OAuth2 web flow and credentials for the Gmail API."""

from __future__ import annotations

import os

from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import Flow
from googleapiclient.discovery import build

from triagedesk.config import Config
from triagedesk.errors import UpstreamUnavailableError
from triagedesk.log import get_logger

logger = get_logger(__name__)

SCOPES = [
    "https://www.googleapis.com/auth/gmail.readonly",
    "https://www.googleapis.com/auth/gmail.send",
]
AUTH_URI = "https://accounts.google.com/o/oauth2/auth"
TOKEN_URI = "https://oauth2.googleapis.com/token"


def _build_flow(config: Config) -> Flow:
    gmail = config.gmail
    if not gmail.is_configured:
        raise UpstreamUnavailableError(
            "Gmail OAuth client is not configured (GMAIL_CLIENT_ID / GMAIL_CLIENT_SECRET)"
        )
    client_config = {
        "web": {
            "client_id": gmail.client_id,
            "client_secret": gmail.client_secret,
            "auth_uri": AUTH_URI,
            "token_uri": TOKEN_URI,
            "redirect_uris": [gmail.redirect_uri],
        }
    }
    # The code exchange happens in a later request with a new Flow, so no PKCE verifier.
    return Flow.from_client_config(
        client_config,
        scopes=SCOPES,
        redirect_uri=gmail.redirect_uri,
        autogenerate_code_verifier=False,
    )


def get_auth_url(config: Config) -> str:
    """Return the Google consent URL requesting offline access."""
    flow = _build_flow(config)
    auth_url, _state = flow.authorization_url(access_type="offline", prompt="consent")
    return auth_url


def exchange_code(config: Config, code: str) -> dict:
    """Trade an authorization code for tokens and cache them in the token file."""
    flow = _build_flow(config)
    try:
        flow.fetch_token(code=code)
    except Exception as e:
        raise UpstreamUnavailableError(f"Failed to exchange authorization code: {e}") from e

    creds = flow.credentials
    with open(config.gmail.token_file, "w") as f:
        f.write(creds.to_json())
    logger.info("Stored Gmail credentials in %s", config.gmail.token_file)

    return {
        "access_token": creds.token,
        "refresh_token": creds.refresh_token,
        "expiry": creds.expiry.isoformat() if creds.expiry else None,
        "scopes": list(creds.scopes or []),
    }


def load_credentials(config: Config) -> Credentials:
    """Credentials from the configured refresh token, else the cached token file."""
    gmail = config.gmail
    creds = None

    if gmail.refresh_token:
        creds = Credentials(
            token=None,
            refresh_token=gmail.refresh_token,
            client_id=gmail.client_id,
            client_secret=gmail.client_secret,
            token_uri=TOKEN_URI,
            scopes=SCOPES,
        )
    elif os.path.exists(gmail.token_file):
        creds = Credentials.from_authorized_user_file(gmail.token_file, SCOPES)

    if creds is None:
        raise UpstreamUnavailableError(
            "Gmail is not authorized. Complete the OAuth flow at /api/auth/gmail "
            "or set GMAIL_REFRESH_TOKEN."
        )

    if not creds.valid and creds.refresh_token:
        try:
            creds.refresh(Request())
        except Exception as e:
            raise UpstreamUnavailableError(f"Failed to refresh Gmail credentials: {e}") from e

    return creds


def get_gmail_service(config: Config):
    """Return an authenticated Gmail API service object."""
    creds = load_credentials(config)
    return build("gmail", "v1", credentials=creds, cache_discovery=False)
