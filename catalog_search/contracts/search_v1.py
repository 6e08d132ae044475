"""Catalog Search Contract v1.

Defines the canonical types shared by the search workflows:
  - Resource categories and trigger kinds (ResourceType, SearchType)
  - Filter values (CheckboxFilter, TextFilter) and category metadata
  - Backend reply and per-resource result slices (SearchResponse, ResultSet)
  - The address-bar form of search state (URLQuery)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any, TypeAlias

from pydantic import BaseModel, Field, field_validator

# ---------------------------------------------------------------------------
# Resource categories
# ---------------------------------------------------------------------------


class ResourceType(StrEnum):
    TABLE = "table"
    USER = "user"
    DASHBOARD = "dashboard"


ALL_RESOURCES: tuple[ResourceType, ...] = (
    ResourceType.TABLE,
    ResourceType.USER,
    ResourceType.DASHBOARD,
)


def parse_resource(value: Any) -> ResourceType | None:
    """Lenient ResourceType lookup: unknown or empty values are treated as unset."""
    if isinstance(value, ResourceType):
        return value
    if not value or not isinstance(value, str):
        return None
    try:
        return ResourceType(value.strip().lower())
    except ValueError:
        return None


# ---------------------------------------------------------------------------
# Trigger kinds
# ---------------------------------------------------------------------------


class SearchType(StrEnum):
    """Why a search workflow was invoked. Forwarded to the backend for analytics."""

    SUBMIT_TERM = "submit_term"
    CLEAR_TERM = "clear_term"
    PAGINATION = "pagination"
    FILTER = "update_filter"
    INLINE_SEARCH = "inline_search"
    INLINE_SELECT = "inline_select"
    LOAD_URL = "load_url"


# ---------------------------------------------------------------------------
# Filters
# ---------------------------------------------------------------------------


class FilterType(StrEnum):
    CHECKBOX = "checkbox"
    TEXT = "input"


@dataclass(frozen=True)
class CheckboxFilter:
    """Set of selected option ids for a checkbox category. Never empty when stored."""

    options: frozenset[str]

    def to_json(self) -> dict[str, bool]:
        return {option: True for option in sorted(self.options)}


@dataclass(frozen=True)
class TextFilter:
    """Normalized (lower-cased, trimmed) free text for an input category."""

    text: str

    def to_json(self) -> str:
        return self.text


FilterValue: TypeAlias = CheckboxFilter | TextFilter
FilterSet: TypeAlias = dict[str, FilterValue]


@dataclass(frozen=True)
class FilterCategory:
    """Category metadata deciding which FilterValue variant a raw value resolves to."""

    category_id: str
    type: FilterType
    display_name: str = ""


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


class ResultSet(BaseModel):
    """One page of results for one resource category."""

    model_config = {"frozen": True}

    page_index: int = Field(default=0, ge=0)
    results: list[dict[str, Any]] = Field(default_factory=list)
    total_results: int = Field(default=0, ge=0)


EMPTY_RESULT_SET = ResultSet()


class SearchResponse(BaseModel):
    """Reply of the search backend for a single (resource, page) query."""

    resource: ResourceType
    page_index: int = Field(default=0, ge=0)
    results: list[dict[str, Any]] = Field(default_factory=list)
    total_count: int = Field(default=0, ge=0)
    next_page_token: str | None = None

    @field_validator("results", mode="before")
    @classmethod
    def _none_results_to_empty(cls, v: Any) -> Any:
        return [] if v is None else v

    @field_validator("total_count", mode="before")
    @classmethod
    def _none_count_to_zero(cls, v: Any) -> Any:
        return 0 if v is None else v

    def to_result_set(self) -> ResultSet:
        return ResultSet(
            page_index=self.page_index,
            results=list(self.results),
            total_results=self.total_count,
        )


# ---------------------------------------------------------------------------
# URL state
# ---------------------------------------------------------------------------


class URLQuery(BaseModel):
    """Address-bar form of the search state. Every field is optional."""

    model_config = {"frozen": True}

    term: str = ""
    resource: ResourceType | None = None
    index: int | None = Field(default=None, ge=0)
    filters: dict[ResourceType, FilterSet] | None = Field(
        default=None,
        description="Parsed per-resource filters; None when absent or malformed",
    )
