"""
Typed views of the Gemini ``generateContent`` payload.

Responses are validated into these models right after the HTTP call; a
payload that does not fit raises ``AIResponseError`` in the client.
"""
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _GeminiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class Part(_GeminiModel):
    text: Optional[str] = None


class Content(_GeminiModel):
    parts: List[Part] = Field(default_factory=list)
    role: Optional[str] = None


class WebSource(_GeminiModel):
    uri: str
    title: Optional[str] = None


class GroundingChunk(_GeminiModel):
    web: Optional[WebSource] = None


class Segment(_GeminiModel):
    start_index: int = 0
    end_index: Optional[int] = None
    text: Optional[str] = None


class GroundingSupport(_GeminiModel):
    segment: Optional[Segment] = None
    grounding_chunk_indices: List[int] = Field(default_factory=list)


class GroundingMetadata(_GeminiModel):
    web_search_queries: List[str] = Field(default_factory=list)
    grounding_chunks: List[GroundingChunk] = Field(default_factory=list)
    grounding_supports: List[GroundingSupport] = Field(default_factory=list)


class Candidate(_GeminiModel):
    content: Optional[Content] = None
    finish_reason: Optional[str] = None
    grounding_metadata: Optional[GroundingMetadata] = None


class GenerateContentResponse(_GeminiModel):
    candidates: List[Candidate] = Field(default_factory=list)

    def first_text(self) -> str:
        """Concatenated text parts of the first candidate ("" if none)."""
        if not self.candidates or self.candidates[0].content is None:
            return ""
        return "".join(part.text or "" for part in self.candidates[0].content.parts)


class GroundedSearchResult(BaseModel):
    text: str
    sources: List[GroundingChunk] = Field(default_factory=list)
    search_queries: List[str] = Field(default_factory=list)
    text_with_citations: str = ""
