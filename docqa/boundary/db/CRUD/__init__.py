"""CRUD operations for all database models."""

from docqa.boundary.db.CRUD.base_crud import BaseCRUD
from docqa.boundary.db.CRUD.chunk_crud import ChunkCRUD, chunk_crud
from docqa.boundary.db.CRUD.document_crud import DocumentCRUD, document_crud
from docqa.boundary.db.CRUD.job_crud import ProcessingJobCRUD, processing_job_crud
from docqa.boundary.db.CRUD.owner_crud import OwnerCRUD, owner_crud
from docqa.boundary.db.CRUD.processing_log_crud import ProcessingLogCRUD, processing_log_crud

__all__ = [
    "BaseCRUD",
    "ChunkCRUD",
    "DocumentCRUD",
    "OwnerCRUD",
    "ProcessingJobCRUD",
    "ProcessingLogCRUD",
    "chunk_crud",
    "document_crud",
    "owner_crud",
    "processing_job_crud",
    "processing_log_crud",
]
