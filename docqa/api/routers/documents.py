"""
Document API endpoints.

Routes: POST /documents, GET /documents/{id}/status, GET /documents/{id}/logs,
POST /documents/{id}/retry, PATCH /documents/{slug}/active, GET /documents

Dependencies: docqa.application.services, docqa.core.registry, docqa.models
System role: Document ingestion and listing HTTP API
"""

import logging
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, HTTPException, Query, UploadFile

from docqa.api.deps import (
    get_job_service,
    get_processing_admission,
    get_processing_runner,
    get_registry,
)
from docqa.api.routers.router_utils import http_error_for, overloaded_http_error
from docqa.application.services import JobService, ProcessingRunner
from docqa.boundary.db.models.document_model import EmbeddingSpace
from docqa.core.admission import AdmissionController
from docqa.core.exceptions import DocQAException, OverloadedError, RegistryError
from docqa.core.registry import DocumentRegistry, parse_selectors
from docqa.models.document import (
    DocumentActiveRequest,
    DocumentActiveResponse,
    DocumentEntryResponse,
    DocumentListResponse,
    DocumentUploadResponse,
)
from docqa.models.job import JobStatusResponse, ProcessingLogResponse, RetryResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/documents", tags=["documents"])


@router.post("", status_code=202, response_model=DocumentUploadResponse)
async def upload_document(
    background_tasks: BackgroundTasks,
    file: UploadFile = File(...),
    slug: str = Form(...),
    title: str = Form(...),
    owner: str = Form(...),
    embedding: str = Form(EmbeddingSpace.PROVIDER.value),
    subtitle: str | None = Form(None),
    job_service: JobService = Depends(get_job_service),
    admission: AdmissionController = Depends(get_processing_admission),
    runner: ProcessingRunner = Depends(get_processing_runner),
) -> DocumentUploadResponse:
    """
    Upload a document for ingestion (non-blocking).

    Takes a processing slot, stores the file, creates a pending job and
    hands both to a background run. Poll the status endpoint afterwards.

    Raises:
        HTTPException(400): Invalid file, slug, title or embedding type
        HTTPException(404): Unknown owner
        HTTPException(409): Document already has a job in flight
        HTTPException(503): All processing slots are busy
    """
    try:
        ticket = admission.try_acquire()
    except OverloadedError as e:
        raise overloaded_http_error(e)

    try:
        content = await file.read()
        job = await job_service.enqueue(
            filename=file.filename or "",
            content_type=file.content_type or "application/octet-stream",
            content=content,
            slug=slug,
            title=title,
            owner_slug=owner,
            embedding_space=embedding,
            subtitle=subtitle,
        )
    except DocQAException as e:
        ticket.release()
        raise http_error_for(e)
    except Exception as e:
        ticket.release()
        logger.error(f"{__name__}:upload_document - {type(e).__name__}: {e}")
        raise HTTPException(status_code=500, detail="Failed to create processing job")

    background_tasks.add_task(runner.run_job, job.id, ticket)
    logger.info(
        f"{__name__}:upload_document - Background processing scheduled",
        extra={"job_id": str(job.id), "slug": slug, "filename": file.filename},
    )
    return DocumentUploadResponse(job_id=job.id, document_id=job.document_id, status=job.status)


@router.get("/{job_id}/status", response_model=JobStatusResponse)
async def get_job_status(
    job_id: UUID,
    job_service: JobService = Depends(get_job_service),
) -> JobStatusResponse:
    """
    Get processing status for polling.

    Raises:
        HTTPException(404): Job not found
    """
    try:
        job = await job_service.get_job_status(job_id)
    except DocQAException as e:
        raise http_error_for(e)
    return JobStatusResponse.from_job(job)


@router.get("/{job_id}/logs", response_model=ProcessingLogResponse)
async def get_job_logs(
    job_id: UUID,
    limit: int | None = Query(default=None, ge=1, le=1000, description="Maximum entries"),
    job_service: JobService = Depends(get_job_service),
) -> ProcessingLogResponse:
    """
    Get the stage events recorded for a job, oldest first.

    Raises:
        HTTPException(404): Job not found
    """
    try:
        job, entries = await job_service.get_job_logs(job_id, limit=limit)
    except DocQAException as e:
        raise http_error_for(e)
    return ProcessingLogResponse.from_entries(job, entries)


@router.post("/{job_id}/retry", status_code=202, response_model=RetryResponse)
async def retry_job(
    job_id: UUID,
    background_tasks: BackgroundTasks,
    job_service: JobService = Depends(get_job_service),
    admission: AdmissionController = Depends(get_processing_admission),
    runner: ProcessingRunner = Depends(get_processing_runner),
) -> RetryResponse:
    """
    Re-run processing for a job.

    Failed and ready jobs restart from scratch; a job stuck in processing
    longer than the staleness threshold is reset first.

    Raises:
        HTTPException(404): Job not found
        HTTPException(409): Job is being processed right now
        HTTPException(503): All processing slots are busy
    """
    try:
        ticket = admission.try_acquire()
    except OverloadedError as e:
        raise overloaded_http_error(e)

    try:
        job = await job_service.prepare_retry(job_id)
    except DocQAException as e:
        ticket.release()
        raise http_error_for(e)
    except Exception as e:
        ticket.release()
        logger.error(f"{__name__}:retry_job - {type(e).__name__}: {e}")
        raise HTTPException(status_code=500, detail="Failed to restart processing")

    background_tasks.add_task(runner.run_job, job.id, ticket)
    return RetryResponse(
        job_id=job.id,
        status=job.status,
        message="Processing restarted. Poll the status endpoint for progress.",
    )


@router.patch("/{slug}/active", response_model=DocumentActiveResponse)
async def set_document_active(
    slug: str,
    request: DocumentActiveRequest,
    job_service: JobService = Depends(get_job_service),
    registry: DocumentRegistry = Depends(get_registry),
) -> DocumentActiveResponse:
    """
    Soft-enable or soft-disable a document and refresh the registry.

    Disabled documents stop resolving for queries and listings; their
    chunks stay in place for re-enabling.

    Raises:
        HTTPException(404): No document has this slug
    """
    try:
        document = await job_service.set_document_active(slug, request.active)
    except DocQAException as e:
        raise http_error_for(e)

    try:
        snapshot = await registry.refresh()
    except RegistryError:
        logger.warning(
            f"{__name__}:set_document_active - Registry refresh failed; auto-refresh will catch up",
            extra={"slug": slug},
        )
        snapshot = registry.snapshot

    return DocumentActiveResponse(
        document_id=document.id,
        slug=document.slug,
        active=document.active,
        registry_version=snapshot.version,
    )


@router.get("", response_model=DocumentListResponse)
async def list_documents(
    doc: str | None = Query(default=None, description="Selectors, e.g. 'a+b' or 'a,b'"),
    owner: str | None = Query(default=None, description="Owner slug"),
    embedding: EmbeddingSpace | None = Query(default=None, description="local or provider"),
    registry: DocumentRegistry = Depends(get_registry),
) -> DocumentListResponse:
    """
    List active documents from the registry.

    Raises:
        HTTPException(404): A requested selector is not an active document
    """
    await registry.ensure_fresh()
    snapshot = registry.snapshot

    entries = registry.list_entries(owner, embedding, snapshot=snapshot)
    if doc:
        requested, missing = registry.resolve_many(parse_selectors(doc), snapshot)
        if missing:
            raise HTTPException(
                status_code=404,
                detail=f"The following document(s) are not available: {', '.join(missing)}",
            )
        requested_ids = {entry.id for entry in requested}
        entries = [entry for entry in entries if entry.id in requested_ids]

    return DocumentListResponse(
        documents=[DocumentEntryResponse.model_validate(entry) for entry in entries],
        version=snapshot.version,
        count=len(entries),
    )
