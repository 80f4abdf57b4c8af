"""Request/response schemas for API endpoints.

Holds Pydantic models to validate input payloads for /ask and /save and
the SavedAnswer record returned by /saved and /answer/<id>.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field, StrictStr, ValidationError


class SearchMode(str, Enum):
    AI_SYNTHESIS = "AI_SYNTHESIS"
    RAW_SEARCH = "RAW_SEARCH"


class AskRequest(BaseModel):
    # Empty strings are accepted; only presence and type are checked.
    query: StrictStr
    mode: SearchMode = SearchMode.AI_SYNTHESIS


class SaveRequest(BaseModel):
    question: StrictStr = Field(min_length=1)
    answer: StrictStr = Field(min_length=1)


class SavedAnswer(BaseModel):
    id: str
    question: str
    answer: str
    created_at: int


def describe_errors(err: ValidationError) -> str:
    """Compact one-line summary of a pydantic ValidationError."""
    parts = []
    for item in err.errors():
        loc = ".".join(str(p) for p in item.get("loc", ())) or "body"
        parts.append(f"{loc}: {item.get('msg')}")
    return "; ".join(parts)
