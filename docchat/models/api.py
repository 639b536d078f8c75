from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class UploadAccepted(BaseModel):
    success: Literal[True] = True
    source_name: str
    chunk_count: int


class AskRequest(BaseModel):
    # Owner identity comes from the bearer token; any extra field is rejected.
    model_config = ConfigDict(extra="forbid")

    message: str = Field(min_length=1, max_length=4000)


class SourceRef(BaseModel):
    source_name: str
    sequence_index: int
    score: float


class AskResponse(BaseModel):
    response: str
    sources: list[SourceRef] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    success: Literal[False] = False
    error: str
