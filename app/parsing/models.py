from __future__ import annotations

from pydantic import BaseModel, Field, field_validator


class ExtractedDocument(BaseModel):
    source_type: str
    filename: str = ""
    text: str = ""
    page_count: int | None = None

    @field_validator("source_type")
    @classmethod
    def _validate_source_type(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in {"pdf", "docx", "txt"}:
            raise ValueError("source_type must be one of: pdf, docx, txt")
        return normalized


class ParsedResumeFields(BaseModel):
    updates: dict[str, str] = Field(default_factory=dict)

    @property
    def fields_extracted(self) -> int:
        return len(self.updates)
