from __future__ import annotations

from leadgen.contracts.filters import CanonicalFilterState, RangeValue, SidebarForm
from leadgen.services.filter_state import (
    apply_sidebar_filters,
    format_range_text,
    parse_range_text,
    to_sidebar_form,
)


def test_empty_form_produces_sidebar_tagged_empty_state():
    state = apply_sidebar_filters(SidebarForm())

    assert state.to_payload() == {"_source": "sidebar"}


def test_camel_case_payload_is_accepted():
    state = apply_sidebar_filters(
        {
            "jobTitles": ["CTO"],
            "industries": ["Financial Services"],
            "regions": ["San Francisco Bay Area", "Narnia"],
            "recentlyChanged": True,
            "linkedinPosted": False,
        }
    )

    assert state.current_title == ["CTO"]
    assert state.industry == ["Financial Services"]
    assert state.region == ["San Francisco Bay Area"]
    assert state.region_ids == ["90000084"]
    assert state.recently_changed_jobs is True
    assert state.posted_on_linkedin is False
    assert state.in_the_news is None
    assert state.source == "sidebar"


def test_cleared_fields_are_absent_not_defaulted():
    state = apply_sidebar_filters(SidebarForm(job_titles=["CFO"], industries=[], current_company="  "))

    payload = state.to_payload()
    assert payload == {"CURRENT_TITLE": ["CFO"], "_source": "sidebar"}


def test_revenue_ranges_are_unioned_in_millions():
    state = apply_sidebar_filters(SidebarForm(revenue_ranges=["$10M-$50M", "$100M-$500M"]))

    assert state.annual_revenue == RangeValue(min=10, max=500)


def test_open_ended_and_under_revenue_labels():
    assert parse_range_text("$5B+", money=True) == RangeValue(min=5000)
    assert parse_range_text("Under $1M", money=True) == RangeValue(max=1)
    assert parse_range_text("$500M-$1B", money=True) == RangeValue(min=500, max=1000)


def test_growth_and_department_labels():
    state = apply_sidebar_filters(
        SidebarForm(
            growth_ranges=["10-25%"],
            departments=["Sales", "Marketing"],
            department_sizes=["50-200"],
            department_growth_ranges=[10, 30],
        )
    )

    assert state.company_headcount_growth == RangeValue(min=10, max=25)
    assert state.department_headcount == RangeValue(min=50, max=200, sub_filter="Sales")
    assert state.department_headcount_growth == RangeValue(min=10, max=30, sub_filter="Sales")


def test_negative_growth_bounds_parse():
    assert parse_range_text("-10-25%") == RangeValue(min=-10, max=25)
    assert parse_range_text("-20--5%") == RangeValue(min=-20, max=-5)
    assert parse_range_text("-10%+") == RangeValue(min=-10)


def test_shrinking_company_growth_survives_round_trip():
    parsed = CanonicalFilterState(
        company_headcount_growth=RangeValue(min=-10, max=25),
        department_headcount_growth=RangeValue(min=-15, max=5, sub_filter="Sales"),
        source="query_parser",
    )

    form = to_sidebar_form(parsed)
    assert form.growth_ranges == ["-10-25%"]

    state = apply_sidebar_filters(form)

    assert state.company_headcount_growth == RangeValue(min=-10, max=25)
    assert state.department_headcount_growth == RangeValue(min=-15, max=5, sub_filter="Sales")


def test_department_size_defaults_to_engineering():
    state = apply_sidebar_filters(SidebarForm(department_sizes=["500+"]))

    assert state.department_headcount == RangeValue(min=500, sub_filter="Engineering")


def test_unparseable_labels_are_ignored():
    state = apply_sidebar_filters(SidebarForm(growth_ranges=["fast"], revenue_ranges=["lots"]))

    assert state.company_headcount_growth is None
    assert state.annual_revenue is None


def test_job_opportunities_boolean_is_kept_for_the_normalizer():
    assert apply_sidebar_filters(SidebarForm(job_opportunities=True)).job_opportunities is True
    assert apply_sidebar_filters(SidebarForm(job_opportunities=[])).job_opportunities is None


def test_range_labels_format_back():
    assert format_range_text(RangeValue(min=10, max=100), money=True) == "$10M-$100M"
    assert format_range_text(RangeValue(min=1000, max=10000), money=True) == "$1B-$10B"
    assert format_range_text(RangeValue(max=1), money=True) == "Under $1M"
    assert format_range_text(RangeValue(min=20, max=100), suffix="%") == "20-100%"
    assert format_range_text(RangeValue(min=100), suffix="%") == "100%+"


def test_sidebar_round_trip_preserves_every_set_field():
    form = SidebarForm(
        job_titles=["CFO"],
        industries=["Financial Services"],
        regions=["New York City Metropolitan Area"],
        company_sizes=["51-200"],
        revenue_ranges=["$10M-$100M"],
        seniority_levels=["CXO"],
        years_ranges=["6 to 10 years"],
        growth_ranges=["10-25%"],
        departments=["Sales"],
        department_sizes=["11-50"],
        department_growth_ranges=[5, 20],
        specializations=["B2B"],
        keywords=["fintech"],
        account_activities=["Funding events in past 12 months"],
        current_company="Stripe",
        years_at_company=["1 to 2 years"],
        years_in_position=["Less than 1 year"],
        job_opportunities=["Hiring on Linkedin"],
        recently_changed=False,
        linkedin_posted=True,
    )

    state = apply_sidebar_filters(form)

    assert apply_sidebar_filters(to_sidebar_form(state)) == state


def test_parser_state_cleared_in_sidebar_is_not_resurrected():
    parsed = CanonicalFilterState(
        current_title=["Director"],
        current_company=["Google"],
        seniority_level=["Senior"],
        industry=["Software Development"],
        region=["San Francisco Bay Area"],
        region_ids=["90000084"],
        annual_revenue=RangeValue(min=10, max=100),
        recently_changed_jobs=True,
        posted_on_linkedin=False,
        source="query_parser",
    )

    form = to_sidebar_form(parsed)
    assert form.current_company == "Google"
    assert form.revenue_ranges == ["$10M-$100M"]

    form.industries = []
    form.revenue_ranges = []
    form.recently_changed = None
    state = apply_sidebar_filters(form)

    assert state.industry is None
    assert state.annual_revenue is None
    assert state.recently_changed_jobs is None
    assert state.posted_on_linkedin is False
    assert state.current_title == ["Director"]
    assert state.seniority_level == ["Senior"]
    assert state.current_company == "Google"
    assert state.region == ["San Francisco Bay Area"]
    assert state.region_ids == ["90000084"]
    assert state.source == "sidebar"
