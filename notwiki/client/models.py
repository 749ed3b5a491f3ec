from __future__ import annotations

from typing import Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationInfo, field_validator


class ArticleRecord(BaseModel):
    """Metadata for one indexed page, as emitted by the site build."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    filename: str
    title: str
    summary: str = ""
    keywords: tuple[str, ...] = ()
    type: Optional[str] = None
    category: Optional[str] = None
    inlinks: int = Field(default=0, ge=0)

    @field_validator("summary", "keywords", "inlinks", mode="before")
    @classmethod
    def _null_as_default(cls, value, info: ValidationInfo):
        # The build emits null for absent optional fields.
        if value is None:
            return cls.model_fields[info.field_name].default
        return value


class ScoredResult(ArticleRecord):
    score: int = Field(ge=0)

    @classmethod
    def from_article(cls, article: ArticleRecord, score: int) -> "ScoredResult":
        return cls(**article.model_dump(), score=score)


class RandomCandidate(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    filename: str


class RandomCandidates(BaseModel):
    """Payload of the random-candidate artifact."""

    model_config = ConfigDict(extra="ignore")

    articles: list[RandomCandidate] = Field(default_factory=list)


SearchIndex = Sequence[ArticleRecord]

_INDEX_ADAPTER = TypeAdapter(tuple[ArticleRecord, ...])


def parse_search_index(payload: bytes | str) -> tuple[ArticleRecord, ...]:
    """Parse a search-index artifact body.

    Raises ``pydantic.ValidationError`` for malformed JSON or a body that is
    not a list of article records.
    """
    return _INDEX_ADAPTER.validate_json(payload)


def parse_random_candidates(payload: bytes | str) -> RandomCandidates:
    return RandomCandidates.model_validate_json(payload)
