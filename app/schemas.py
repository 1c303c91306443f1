"""Request and response models for the HTTP API"""

from dataclasses import asdict
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError


class SearchRequest(BaseModel):
    """Search GitHub repositories and store the results."""

    query: Optional[str] = Field(
        None,
        validate_default=True,
        description="The search query string for GitHub repositories",
        examples=["spring-boot"],
    )
    language: Optional[str] = Field(None, description="Optional: Filter by programming language", examples=["Java"])
    sort: Optional[str] = Field(
        None,
        description="Optional: Sort results by 'stars', 'forks', or 'updated'",
        examples=["stars"],
    )

    @field_validator("query")
    @classmethod
    def query_not_blank(cls, value: Optional[str]) -> str:
        if not value or not value.strip():
            raise PydanticCustomError("blank_query", "Query cannot be empty")
        return value


class RepositoryResponse(BaseModel):
    """Repository as returned to API clients (camelCase keys)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: int
    name: str
    description: Optional[str] = None
    owner_name: str
    language: Optional[str] = None
    stars_count: int
    forks_count: int
    last_updated: Optional[datetime] = None

    @classmethod
    def from_record(cls, record: Any) -> "RepositoryResponse":
        return cls(**asdict(record))


class SearchResponse(BaseModel):
    message: str
    repositories: list[RepositoryResponse]
    stats: dict[str, int] = Field(default_factory=dict)
