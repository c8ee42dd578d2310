# One-time OAuth flow: writes creds/drive_token.json for the image upload endpoint.
#
# Usage (from services/api/):
#   1) put the OAuth client JSON downloaded from Google Cloud at creds/drive_oauth_client.json
#   2) python drive_oauth_init.py
#   3) for deployments, paste the token file content into DRIVE_TOKEN_JSON
from __future__ import annotations

from google_auth_oauthlib.flow import InstalledAppFlow
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials

from core.media_store import CREDS_DIR, SCOPES, TOKEN_FILE

CLIENT_SECRET_FILE = CREDS_DIR / "drive_oauth_client.json"


def obtain_credentials() -> Credentials:
    """Reuse or refresh the saved token, or run the browser consent flow."""
    creds = None
    if TOKEN_FILE.exists():
        creds = Credentials.from_authorized_user_file(str(TOKEN_FILE), SCOPES)

    if creds and creds.valid:
        return creds

    if creds and creds.expired and creds.refresh_token:
        creds.refresh(Request())
    else:
        if not CLIENT_SECRET_FILE.exists():
            raise SystemExit(
                f"Missing {CLIENT_SECRET_FILE}. "
                "Put your downloaded OAuth client JSON there as drive_oauth_client.json"
            )
        flow = InstalledAppFlow.from_client_secrets_file(str(CLIENT_SECRET_FILE), SCOPES)
        # starts a local web server and opens the browser
        creds = flow.run_local_server(port=0)

    TOKEN_FILE.parent.mkdir(parents=True, exist_ok=True)
    TOKEN_FILE.write_text(creds.to_json())
    return creds


def main():
    obtain_credentials()
    print(f"✅ Drive OAuth token saved to {TOKEN_FILE}")


if __name__ == "__main__":
    main()
