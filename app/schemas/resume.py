from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

ResumeType = Literal["Chronological", "Functional", "Combination", "Targeted"]
GenerationStateName = Literal["idle", "submitting", "success", "failed"]
SourceType = Literal["pdf", "docx", "txt"]

TEXT_FIELDS = (
    "name",
    "email",
    "phone",
    "github",
    "experience",
    "projects",
    "education",
    "skills",
    "job_description",
)


class FormData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(default="", max_length=50000)
    email: str = Field(default="", max_length=50000)
    phone: str = Field(default="", max_length=50000)
    github: str = Field(default="", max_length=50000)
    experience: str = Field(default="", max_length=50000)
    projects: str = Field(default="", max_length=50000)
    education: str = Field(default="", max_length=50000)
    skills: str = Field(default="", max_length=50000)
    job_description: str = Field(default="", max_length=50000, alias="jobDescription")
    resume_type: ResumeType = Field(default="Chronological", alias="resumeType")

    def to_payload(self) -> dict[str, str]:
        return self.model_dump(by_alias=True)


class Resume(BaseModel):
    id: str
    content: str
    user_id: str
    created_at: datetime


class GenerateProxyResponse(BaseModel):
    generated: str


class GenerationResult(BaseModel):
    state: GenerationStateName
    content: str = ""
    message: str = ""
    resume_id: str | None = None
    history: list[Resume] = Field(default_factory=list)


class ResumeHistoryResponse(BaseModel):
    resumes: list[Resume] = Field(default_factory=list)


class DownloadRequest(BaseModel):
    content: str = Field(min_length=1, max_length=500000)
    filename: str | None = Field(default=None, max_length=200)


class ExtractResumeResponse(BaseModel):
    source_type: SourceType
    filename: str
    text: str
    fields: dict[str, str] = Field(default_factory=dict)
    fields_extracted: int = Field(default=0, ge=0)
    message: str


class FieldHistoryResponse(BaseModel):
    history: dict[str, list[str]] = Field(default_factory=dict)


class FieldHistoryRecordRequest(BaseModel):
    field: Literal[
        "name",
        "email",
        "phone",
        "github",
        "experience",
        "projects",
        "education",
        "skills",
        "jobDescription",
    ]
    value: str = Field(default="", max_length=50000)
