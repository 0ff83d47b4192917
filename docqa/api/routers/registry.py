"""
Registry API endpoints.

Routes: POST /registry/refresh

Dependencies: docqa.core.registry, docqa.models
System role: Manual cache invalidation for the document registry
"""

from fastapi import APIRouter, Depends

from docqa.api.deps import get_registry
from docqa.api.routers.router_utils import http_error_for
from docqa.core.exceptions import RegistryError
from docqa.core.registry import DocumentRegistry
from docqa.models.document import RegistryRefreshResponse

router = APIRouter(prefix="/registry", tags=["registry"])


@router.post("/refresh", response_model=RegistryRefreshResponse)
async def refresh_registry(
    registry: DocumentRegistry = Depends(get_registry),
) -> RegistryRefreshResponse:
    """
    Rebuild the registry now instead of waiting for the next auto-refresh.

    Raises:
        HTTPException(503): Datastore unavailable (previous snapshot still served)
    """
    try:
        snapshot = await registry.refresh()
    except RegistryError as e:
        raise http_error_for(e)

    return RegistryRefreshResponse(
        success=True,
        message="Document registry cache cleared and refreshed",
        document_count=len(snapshot),
        version=snapshot.version,
    )
