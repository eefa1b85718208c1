from __future__ import annotations

from enum import Enum
from types import MappingProxyType
from typing import Any, Literal, Mapping

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class FilterType(str, Enum):
    CURRENT_TITLE = "CURRENT_TITLE"
    CURRENT_COMPANY = "CURRENT_COMPANY"
    YEARS_OF_EXPERIENCE = "YEARS_OF_EXPERIENCE"
    INDUSTRY = "INDUSTRY"
    TAGS = "TAGS"
    REGION = "REGION"
    COMPANY_HEADCOUNT = "COMPANY_HEADCOUNT"
    COMPANY_HEADCOUNT_GROWTH = "COMPANY_HEADCOUNT_GROWTH"
    ANNUAL_REVENUE = "ANNUAL_REVENUE"
    DEPARTMENT_HEADCOUNT = "DEPARTMENT_HEADCOUNT"
    DEPARTMENT_HEADCOUNT_GROWTH = "DEPARTMENT_HEADCOUNT_GROWTH"
    ACCOUNT_ACTIVITIES = "ACCOUNT_ACTIVITIES"
    JOB_OPPORTUNITIES = "JOB_OPPORTUNITIES"
    KEYWORD = "KEYWORD"
    YEARS_AT_CURRENT_COMPANY = "YEARS_AT_CURRENT_COMPANY"
    YEARS_IN_CURRENT_POSITION = "YEARS_IN_CURRENT_POSITION"
    SENIORITY_LEVEL = "SENIORITY_LEVEL"
    RECENTLY_CHANGED_JOBS = "RECENTLY_CHANGED_JOBS"
    POSTED_ON_LINKEDIN = "POSTED_ON_LINKEDIN"
    IN_THE_NEWS = "IN_THE_NEWS"
    REGION_IDS = "REGION_IDS"
    SOURCE = "_source"


class FilterShape(str, Enum):
    LIST = "list"
    RANGE = "range"
    BOOLEAN = "boolean"
    SCALAR = "scalar"
    MARKER = "marker"


FILTER_SHAPES: Mapping[FilterType, FilterShape] = MappingProxyType(
    {
        FilterType.CURRENT_TITLE: FilterShape.LIST,
        FilterType.CURRENT_COMPANY: FilterShape.SCALAR,
        FilterType.YEARS_OF_EXPERIENCE: FilterShape.LIST,
        FilterType.INDUSTRY: FilterShape.LIST,
        FilterType.TAGS: FilterShape.LIST,
        FilterType.REGION: FilterShape.LIST,
        FilterType.COMPANY_HEADCOUNT: FilterShape.LIST,
        FilterType.COMPANY_HEADCOUNT_GROWTH: FilterShape.RANGE,
        FilterType.ANNUAL_REVENUE: FilterShape.RANGE,
        FilterType.DEPARTMENT_HEADCOUNT: FilterShape.RANGE,
        FilterType.DEPARTMENT_HEADCOUNT_GROWTH: FilterShape.RANGE,
        FilterType.ACCOUNT_ACTIVITIES: FilterShape.LIST,
        FilterType.JOB_OPPORTUNITIES: FilterShape.LIST,
        FilterType.KEYWORD: FilterShape.LIST,
        FilterType.YEARS_AT_CURRENT_COMPANY: FilterShape.LIST,
        FilterType.YEARS_IN_CURRENT_POSITION: FilterShape.LIST,
        FilterType.SENIORITY_LEVEL: FilterShape.LIST,
        FilterType.RECENTLY_CHANGED_JOBS: FilterShape.BOOLEAN,
        FilterType.POSTED_ON_LINKEDIN: FilterShape.BOOLEAN,
        FilterType.IN_THE_NEWS: FilterShape.BOOLEAN,
        FilterType.REGION_IDS: FilterShape.LIST,
        FilterType.SOURCE: FilterShape.MARKER,
    }
)

# The 20 keys the LLM is asked to return (REGION_IDS and _source are derived).
EXTRACTABLE_FIELDS: tuple[FilterType, ...] = tuple(
    filter_type
    for filter_type in FilterType
    if filter_type not in {FilterType.REGION_IDS, FilterType.SOURCE}
)

COMPANY_HEADCOUNT_VALUES = (
    "Self-employed",
    "1-10",
    "11-50",
    "51-200",
    "201-500",
    "501-1,000",
    "1,001-5,000",
    "5,001-10,000",
    "10,001+",
)

TENURE_VALUES = (
    "Less than 1 year",
    "1 to 2 years",
    "3 to 5 years",
    "6 to 10 years",
    "More than 10 years",
)

ACCOUNT_ACTIVITY_VALUES = (
    "Senior leadership changes in last 3 months",
    "Funding events in past 12 months",
)

JOB_OPPORTUNITY_VALUES = ("Hiring on Linkedin",)

SENIORITY_LEVEL_VALUES = (
    "Owner / Partner",
    "CXO",
    "Vice President",
    "Director",
    "Experienced Manager",
    "Entry Level Manager",
    "Strategic",
    "Senior",
    "Entry Level",
    "In Training",
)

ALLOWED_VALUES: Mapping[FilterType, tuple[str, ...]] = MappingProxyType(
    {
        FilterType.COMPANY_HEADCOUNT: COMPANY_HEADCOUNT_VALUES,
        FilterType.YEARS_OF_EXPERIENCE: TENURE_VALUES,
        FilterType.YEARS_AT_CURRENT_COMPANY: TENURE_VALUES,
        FilterType.YEARS_IN_CURRENT_POSITION: TENURE_VALUES,
        FilterType.ACCOUNT_ACTIVITIES: ACCOUNT_ACTIVITY_VALUES,
        FilterType.JOB_OPPORTUNITIES: JOB_OPPORTUNITY_VALUES,
        FilterType.SENIORITY_LEVEL: SENIORITY_LEVEL_VALUES,
    }
)

COMPANY_SCOPED: frozenset[FilterType] = frozenset(
    {
        FilterType.INDUSTRY,
        FilterType.REGION,
        FilterType.COMPANY_HEADCOUNT,
        FilterType.COMPANY_HEADCOUNT_GROWTH,
        FilterType.ANNUAL_REVENUE,
        FilterType.DEPARTMENT_HEADCOUNT,
        FilterType.DEPARTMENT_HEADCOUNT_GROWTH,
        FilterType.ACCOUNT_ACTIVITIES,
        FilterType.JOB_OPPORTUNITIES,
        FilterType.KEYWORD,
        FilterType.TAGS,
    }
)

PERSON_SCOPED: frozenset[FilterType] = frozenset(
    {
        FilterType.CURRENT_TITLE,
        FilterType.SENIORITY_LEVEL,
        FilterType.CURRENT_COMPANY,
        FilterType.YEARS_OF_EXPERIENCE,
        FilterType.YEARS_AT_CURRENT_COMPANY,
        FilterType.YEARS_IN_CURRENT_POSITION,
        FilterType.RECENTLY_CHANGED_JOBS,
        FilterType.POSTED_ON_LINKEDIN,
        FilterType.IN_THE_NEWS,
    }
)

FilterSource = Literal["query_parser", "sidebar"]


class RangeValue(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    min: int | float | None = None
    max: int | float | None = None
    sub_filter: str | None = None

    @property
    def is_set(self) -> bool:
        return self.min is not None or self.max is not None


class CanonicalFilterState(BaseModel):
    """Reconciled filter bag shared by the query parser and the sidebar.

    ``None`` means the field is absent. Booleans are tri-state: ``None`` is
    unset and is never the same thing as ``False``.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    current_title: list[str] | None = Field(default=None, alias="CURRENT_TITLE")
    current_company: list[str] | str | None = Field(default=None, alias="CURRENT_COMPANY")
    years_of_experience: list[str] | None = Field(default=None, alias="YEARS_OF_EXPERIENCE")
    industry: list[str] | None = Field(default=None, alias="INDUSTRY")
    tags: list[str] | None = Field(default=None, alias="TAGS")
    region: list[str] | None = Field(default=None, alias="REGION")
    region_ids: list[str] | None = Field(default=None, alias="REGION_IDS")
    company_headcount: list[str] | None = Field(default=None, alias="COMPANY_HEADCOUNT")
    company_headcount_growth: RangeValue | None = Field(default=None, alias="COMPANY_HEADCOUNT_GROWTH")
    annual_revenue: RangeValue | None = Field(default=None, alias="ANNUAL_REVENUE")
    department_headcount: RangeValue | None = Field(default=None, alias="DEPARTMENT_HEADCOUNT")
    department_headcount_growth: RangeValue | None = Field(default=None, alias="DEPARTMENT_HEADCOUNT_GROWTH")
    account_activities: list[str] | None = Field(default=None, alias="ACCOUNT_ACTIVITIES")
    job_opportunities: list[str] | bool | None = Field(default=None, alias="JOB_OPPORTUNITIES")
    keyword: list[str] | None = Field(default=None, alias="KEYWORD")
    years_at_current_company: list[str] | None = Field(default=None, alias="YEARS_AT_CURRENT_COMPANY")
    years_in_current_position: list[str] | None = Field(default=None, alias="YEARS_IN_CURRENT_POSITION")
    seniority_level: list[str] | None = Field(default=None, alias="SENIORITY_LEVEL")
    recently_changed_jobs: bool | None = Field(default=None, alias="RECENTLY_CHANGED_JOBS")
    posted_on_linkedin: bool | None = Field(default=None, alias="POSTED_ON_LINKEDIN")
    in_the_news: bool | None = Field(default=None, alias="IN_THE_NEWS")
    source: FilterSource | None = Field(default=None, alias="_source")

    def get(self, filter_type: FilterType) -> Any:
        return getattr(self, _ATTRIBUTE_BY_TYPE[filter_type])

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


_ATTRIBUTE_BY_TYPE: Mapping[FilterType, str] = MappingProxyType(
    {
        FilterType(field.alias): name
        for name, field in CanonicalFilterState.model_fields.items()
        if field.alias is not None
    }
)


def attribute_for(filter_type: FilterType) -> str:
    return _ATTRIBUTE_BY_TYPE[filter_type]


class SidebarForm(BaseModel):
    """Sidebar selections as the UI posts them (camelCase on the wire)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    job_titles: list[str] = Field(default_factory=list)
    industries: list[str] = Field(default_factory=list)
    regions: list[str] = Field(default_factory=list)
    company_sizes: list[str] = Field(default_factory=list)
    revenue_ranges: list[str] = Field(default_factory=list)
    seniority_levels: list[str] = Field(default_factory=list)
    years_ranges: list[str] = Field(default_factory=list)
    growth_ranges: list[str] = Field(default_factory=list)
    departments: list[str] = Field(default_factory=list)
    department_sizes: list[str] = Field(default_factory=list)
    department_growth_ranges: list[float] = Field(default_factory=list)
    department_growth_department: str | None = None
    specializations: list[str] = Field(default_factory=list)
    keywords: list[str] = Field(default_factory=list)
    account_activities: list[str] = Field(default_factory=list)
    current_company: str | None = None
    years_at_company: list[str] = Field(default_factory=list)
    years_in_position: list[str] = Field(default_factory=list)
    job_opportunities: list[str] | bool = Field(default_factory=list)
    recently_changed: bool | None = None
    linkedin_posted: bool | None = None
    in_the_news: bool | None = None


class SearchFilter(BaseModel):
    """One entry of the ``filters`` array sent to the search collaborator."""

    filter_type: str
    type: Literal["in", "between"] | None = None
    value: list[str] | dict[str, int | float] | None = None
    sub_filter: str | None = None

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class ValidationWarning(BaseModel):
    """Soft failure: a value was dropped or looks inferred. Never aborts a request."""

    model_config = ConfigDict(frozen=True)

    field: str
    message: str
    rejected: list[Any] = Field(default_factory=list)
