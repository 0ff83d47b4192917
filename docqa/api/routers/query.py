"""
Query API endpoints.

Routes: POST /query

Dependencies: docqa.core.retrieval, docqa.core.admission, docqa.models
System role: Multi-document hybrid retrieval HTTP API
"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from docqa.api.deps import get_orchestrator, get_query_admission
from docqa.api.routers.router_utils import http_error_for
from docqa.boundary.db import get_async_db
from docqa.core.admission import AdmissionController
from docqa.core.exceptions import DocQAException
from docqa.core.retrieval.orchestrator import RetrievalOrchestrator
from docqa.models.query import QueryRequest, QueryResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/query", tags=["query"])


@router.post("", response_model=QueryResponse)
async def query_documents(
    request: QueryRequest,
    db: AsyncSession = Depends(get_async_db),
    orchestrator: RetrievalOrchestrator = Depends(get_orchestrator),
    admission: AdmissionController = Depends(get_query_admission),
) -> QueryResponse:
    """
    Retrieve ranked chunks from one or more documents of a single owner.

    Example Request:
        {
            "documentSelectors": "handbook+faq",
            "queryText": "How do refunds work?",
            "k": 5,
            "mode": "hybrid"
        }

    Raises:
        HTTPException(400): Invalid selectors or query, body {message, code}
        HTTPException(502): Query embedding or chunk search failed
        HTTPException(503): Too many concurrent queries, with Retry-After
    """
    try:
        async with admission.slot():
            result = await orchestrator.query(
                db,
                request.document_selectors,
                request.query_text,
                query_vector=request.query_vector,
                k=request.k,
                mode=request.mode,
            )
    except DocQAException as e:
        raise http_error_for(e)
    except Exception as e:
        logger.error(f"{__name__}:query_documents - {type(e).__name__}: {e}")
        raise HTTPException(status_code=500, detail="Query failed")

    return QueryResponse.model_validate(result)
