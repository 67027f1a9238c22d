"""Google OAuth credential loading shared by the Calendar, Drive and YouTube adapters."""

from __future__ import annotations

import logging
import os

from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import build

LOGGER = logging.getLogger(__name__)

SCOPES = [
    "https://www.googleapis.com/auth/calendar.readonly",
    "https://www.googleapis.com/auth/drive",
    "https://www.googleapis.com/auth/youtube.upload",
    "https://www.googleapis.com/auth/youtube",
]


def load_credentials(credentials_path: str, token_path: str, port: int = 8081) -> Credentials:
    """Return valid user credentials, refreshing or re-authorizing as needed.

    The token is cached as JSON next to the config so scheduled runs never
    need a browser after the first interactive authorization.
    """

    creds = None
    if os.path.exists(token_path):
        creds = Credentials.from_authorized_user_file(token_path, SCOPES)

    if creds and creds.valid:
        return creds

    if creds and creds.expired and creds.refresh_token:
        LOGGER.info("Refreshing Google credentials")
        creds.refresh(Request())
    else:
        if not os.path.exists(credentials_path):
            raise FileNotFoundError(
                f"credentials.json not found at {credentials_path}. "
                "Download an OAuth client from Google Cloud Console and place it there."
            )
        LOGGER.info("Starting interactive Google authorization")
        flow = InstalledAppFlow.from_client_secrets_file(credentials_path, SCOPES)
        creds = flow.run_local_server(port=port, timeout_seconds=300)

    with open(token_path, "w", encoding="utf-8") as handle:
        handle.write(creds.to_json())
    return creds


def build_service(name: str, version: str, creds: Credentials):
    return build(name, version, credentials=creds, cache_discovery=False)
