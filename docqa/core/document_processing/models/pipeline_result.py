"""
Pipeline result model for document processing.

Represents the outcome of processing a job through the pipeline.

Dependencies: pydantic
System role: Return type for DocumentPipeline.run()
"""

from pydantic import BaseModel, Field


class PipelineResult(BaseModel):
    """Result of document processing pipeline execution."""

    job_id: str = Field(description="Processing job identifier")
    document_id: str = Field(description="Immutable document identifier")
    chunk_count: int = Field(description="Number of chunks persisted")
    total_pages: int = Field(description="Pages found in the source")
    processing_time_ms: float = Field(description="Total processing time in milliseconds")
    stage_timings_ms: dict[str, float] = Field(
        default_factory=dict,
        description="Duration of each completed stage",
    )
