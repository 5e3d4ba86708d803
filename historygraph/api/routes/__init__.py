"""
historygraph/api/routes/__init__.py

Auth dependency shared by the graph routes.

Every call that loads, selects on, or drops a workflow run's graph session
carries the service key in ``API_KEY_HEADER``.  /health stays open.
"""
import structlog
from fastapi import HTTPException, Request, Security, status
from fastapi.security import APIKeyHeader

from historygraph.config import settings

logger = structlog.get_logger(__name__)

API_KEY_HEADER = "X-API-Key"

_api_key_header = APIKeyHeader(
    name=API_KEY_HEADER,
    auto_error=False,
    description="HistoryGraph service key.",
)


async def require_api_key(
    request: Request,
    api_key: str | None = Security(_api_key_header),
) -> str:
    """Reject graph session calls that lack the configured service key (401)."""
    if api_key != settings.api_key:
        logger.warning(
            "graph_request_unauthorized",
            path=request.url.path,
            key_present=api_key is not None,
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"A valid {API_KEY_HEADER} is required to access graph sessions.",
            headers={"WWW-Authenticate": "ApiKey"},
        )
    return api_key
