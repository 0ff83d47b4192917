"""
Extraction result model.

Dependencies: pydantic
System role: Output of the extract stage
"""

from pydantic import BaseModel, Field


class ExtractedText(BaseModel):
    """Plain text with inline [Page N] markers."""

    text: str = Field(description="Extracted text, each page prefixed with a [Page N] marker")
    total_pages: int = Field(ge=1, description="Number of pages in the source")
    source: str = Field(default="", description="Original filename")
