import hmac
import logging
from typing import Optional

from fastapi import HTTPException, Request

from api.app.config import settings

LOG = logging.getLogger(__name__)

AUTH_HEADERS = ("authorization", "authorization2")


def extract_bearer_token(header: Optional[str]) -> Optional[str]:
    if not header:
        return None
    parts = header.split(" ")
    if len(parts) != 2 or parts[0] != "Bearer":
        return None
    return parts[1]


async def require_auth(request: Request) -> None:
    header = next((request.headers.get(name) for name in AUTH_HEADERS if request.headers.get(name)), None)
    token = extract_bearer_token(header)
    if token is None:
        LOG.warning("missing or invalid Authorization header", extra={"path": request.url.path})
        raise HTTPException(
            status_code=401,
            detail="Missing or invalid Authorization header. Expected: Bearer <token>",
        )

    expected = settings.mcp_secret.strip()
    if not expected or not hmac.compare_digest(token.strip().encode(), expected.encode()):
        LOG.warning("invalid authentication token", extra={"path": request.url.path})
        raise HTTPException(status_code=403, detail="Invalid authentication token")
