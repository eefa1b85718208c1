from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

from leadgen.contracts.filters import CanonicalFilterState, SidebarForm, ValidationWarning
from leadgen.utils.pagination import COMPANY_PAGE_SIZE, CONTACT_PAGE_SIZE

SearchStatus = Literal["ok", "no_results", "awaiting_search"]


class CompanySearchOutput(BaseModel):
    companies: list[dict[str, Any]] = Field(default_factory=list)
    total_count: int = 0
    page: int = 1
    total_pages: int = 0
    page_size: int = COMPANY_PAGE_SIZE
    is_last_page: bool = True
    status: SearchStatus = "ok"
    is_people_focused_search: bool = False
    message: str | None = None
    warnings: list[ValidationWarning] = Field(default_factory=list)
    sent_request: dict[str, Any] | None = None


class ContactSearchOutput(BaseModel):
    profiles: list[dict[str, Any]] = Field(default_factory=list)
    total_count: int = 0
    page: int = 1
    total_pages: int = 0
    items_per_page: int = CONTACT_PAGE_SIZE
    status: SearchStatus = "ok"
    company_identifiers: list[str] = Field(default_factory=list)
    warnings: list[ValidationWarning] = Field(default_factory=list)
    sent_request: dict[str, Any] | None = None


class ParseQueryRequest(BaseModel):
    query: str


class ParseQueryOutput(BaseModel):
    filters: dict[str, Any]
    sidebar: SidebarForm
    warnings: list[ValidationWarning] = Field(default_factory=list)


class ApplyFiltersRequest(BaseModel):
    form: SidebarForm


class FindCompaniesRequest(BaseModel):
    filters: CanonicalFilterState = Field(default_factory=CanonicalFilterState)
    page: int = Field(default=1, ge=1)
    total_count_hint: int | None = Field(default=None, ge=0)
    allow_unfiltered_people_search: bool = False


class FindContactsRequest(BaseModel):
    companies: list[dict[str, Any]] = Field(default_factory=list)
    filters: CanonicalFilterState = Field(default_factory=CanonicalFilterState)
    page: int = Field(default=1, ge=1)
