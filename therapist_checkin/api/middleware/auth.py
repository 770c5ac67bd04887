"""
API Token Authentication

Every API route requires the shared token in the ``x-api-key`` header.
Health and documentation routes are mounted without this dependency.
"""

import hashlib
import hmac
import logging
from typing import Optional

from fastapi import HTTPException, Request, Security, status
from fastapi.security import APIKeyHeader

from therapist_checkin.api.dependencies import get_resources

logger = logging.getLogger(__name__)

# API Key header scheme
api_key_header = APIKeyHeader(name="x-api-key", auto_error=False)


def hash_api_token(token: str) -> str:
    """
    Hash a token for comparison and logging correlation.

    Uses SHA-256.
    """
    return hashlib.sha256(token.encode()).hexdigest()


def mask_api_token(token: str) -> str:
    """
    Mask token for logging.

    Shows the first and last 3 characters.
    """
    if len(token) < 10:
        return "***"
    return f"{token[:3]}...{token[-3:]}"


def validate_api_token(provided: Optional[str], expected: Optional[str]) -> bool:
    """
    Check a provided token against the configured one.

    Missing values on either side never validate. Comparison is
    constant-time on the hashes.
    """
    if not provided or not expected:
        return False
    return hmac.compare_digest(hash_api_token(provided), hash_api_token(expected))


async def require_api_token(
    request: Request,
    api_key: Optional[str] = Security(api_key_header),
) -> None:
    """
    FastAPI dependency that requires the API token.

    Raises:
        HTTPException 401: Missing or invalid token

    Usage:
        router = APIRouter(dependencies=[Depends(require_api_token)])
    """
    expected = get_resources(request).settings.api_token

    if validate_api_token(api_key, expected):
        return

    client_ip = request.client.host if request.client else "unknown"
    user_agent = request.headers.get("user-agent", "unknown")[:100]
    if not api_key:
        logger.warning(f"Auth failed: No API token provided | IP: {client_ip} | UA: {user_agent}")
    else:
        logger.warning(
            f"Auth failed: Invalid API token | Token: {mask_api_token(api_key)} | "
            f"IP: {client_ip} | UA: {user_agent}"
        )

    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Unauthorized",
        headers={"WWW-Authenticate": "ApiKey"},
    )
