"""Bearer-token lookup for Drive requests.

Acquiring or refreshing OAuth credentials is the host's job; this module only
reads a token that something else already obtained.
"""

from __future__ import annotations

import os
from collections.abc import Callable, Mapping
from pathlib import Path

from ..errors import RemoteAuthError

ENV_DRIVE_TOKEN = "MDSBROWSER_DRIVE_TOKEN"

TokenProvider = Callable[[], str]


def read_token_file(path: Path) -> str | None:
    try:
        token = path.read_text(encoding="utf-8").strip()
    except OSError:
        return None
    return token or None


def resolve_access_token(token_file: Path, environ: Mapping[str, str] | None = None) -> str:
    """Return ``$MDSBROWSER_DRIVE_TOKEN`` or the token file contents."""
    env = os.environ if environ is None else environ
    token = env.get(ENV_DRIVE_TOKEN, "").strip()
    if token:
        return token
    token = read_token_file(token_file)
    if token:
        return token
    raise RemoteAuthError(
        f"No Drive access token. Set {ENV_DRIVE_TOKEN} or write one to {token_file}."
    )


def token_provider_for(token_file: Path) -> TokenProvider:
    """Late-binding provider so a token written mid-session is picked up."""
    return lambda: resolve_access_token(token_file)
