"""Pure functions for creating and decoding actor tokens (HS256 JWT).

No classes with behaviour, no state. Used by the actor dependency and by
operators who mint tokens for scripts or the admin console.
"""

import hashlib
import hmac
import base64
import json
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

_ISSUER = "brms"


@dataclass(frozen=True)
class TokenPayload:
    """Decoded token claims. Immutable."""
    sub: str
    project_id: str
    organisation_id: str
    exp: datetime


def create_token(
    subject: str,
    project_id: str,
    organisation_id: str,
    secret: str,
    algorithm: str = "HS256",
    expires_hours: int = 24,
) -> str:
    """Create a signed token identifying an actor within one project.

    Raises:
        ValueError: for any algorithm other than HS256.
    """
    if algorithm != "HS256":
        raise ValueError(f"Unsupported algorithm: {algorithm}")

    now = time.time()
    payload = {
        "sub": subject,
        "project_id": project_id,
        "organisation_id": organisation_id,
        "iat": int(now),
        "exp": int(now + expires_hours * 3600),
        "iss": _ISSUER,
    }

    header = {"alg": "HS256", "typ": "JWT"}
    segments = [
        _b64encode(json.dumps(header).encode()),
        _b64encode(json.dumps(payload).encode()),
    ]
    signing_input = b".".join(segments)
    signature = hmac.new(secret.encode(), signing_input, hashlib.sha256).digest()
    segments.append(_b64encode(signature))
    return b".".join(segments).decode()


def decode_token(token: str, secret: str, algorithm: str = "HS256") -> Optional[TokenPayload]:
    """Decode and validate a token.

    Returns ``None`` on any failure (bad signature, expired, malformed,
    missing project claim) rather than raising; callers decide what absence means.
    """
    if algorithm != "HS256":
        return None
    try:
        parts = token.encode().split(b".")
        if len(parts) != 3:
            return None

        signing_input = parts[0] + b"." + parts[1]
        expected_sig = hmac.new(secret.encode(), signing_input, hashlib.sha256).digest()
        if not hmac.compare_digest(expected_sig, _b64decode(parts[2])):
            return None

        payload = json.loads(_b64decode(parts[1]))

        exp = payload.get("exp", 0)
        if time.time() > exp:
            return None
        if not payload.get("sub") or not payload.get("project_id"):
            return None

        return TokenPayload(
            sub=payload["sub"],
            project_id=payload["project_id"],
            organisation_id=payload.get("organisation_id", ""),
            exp=datetime.fromtimestamp(exp, tz=timezone.utc),
        )
    except (json.JSONDecodeError, KeyError, ValueError, IndexError):
        return None


def _b64encode(data: bytes) -> bytes:
    return base64.urlsafe_b64encode(data).rstrip(b"=")


def _b64decode(data: bytes) -> bytes:
    padding = 4 - len(data) % 4
    if padding != 4:
        data += b"=" * padding
    return base64.urlsafe_b64decode(data)
