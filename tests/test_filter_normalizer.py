from __future__ import annotations

from leadgen.contracts.filters import CanonicalFilterState, FilterType, RangeValue
from leadgen.services.filter_normalizer import FilterNormalizer, strip_domain_suffix


def _by_type(result) -> dict[str, dict]:
    return {item["filter_type"]: item for item in result.payload()}


def test_company_headcount_keeps_only_allowed_buckets():
    normalizer = FilterNormalizer()
    state = CanonicalFilterState(company_headcount=["11-50", "lots", "51-200", "100-500"])

    result = normalizer.company_filters(state)

    filters = _by_type(result)
    assert filters["COMPANY_HEADCOUNT"] == {
        "filter_type": "COMPANY_HEADCOUNT",
        "type": "in",
        "value": ["11-50", "51-200"],
    }
    assert len(result.warnings) == 1
    assert result.warnings[0].field == "COMPANY_HEADCOUNT"
    assert result.warnings[0].rejected == ["lots", "100-500"]


def test_company_headcount_with_only_invalid_values_is_dropped():
    normalizer = FilterNormalizer()
    state = CanonicalFilterState(
        company_headcount=["huge", "tiny"],
        industry=["Financial Services"],
    )

    result = normalizer.company_filters(state)

    assert "COMPANY_HEADCOUNT" not in _by_type(result)
    assert result.warnings[0].field == "COMPANY_HEADCOUNT"
    assert result.warnings[0].rejected == ["huge", "tiny"]
    assert "filter dropped" in result.warnings[0].message


def test_tags_emit_single_keyword_and_suppress_keyword_field():
    normalizer = FilterNormalizer()
    state = CanonicalFilterState(tags=["B2B", "enterprise", "saas"], keyword=["fintech"])

    filters = _by_type(normalizer.company_filters(state))

    assert filters["KEYWORD"]["value"] == ["B2B"]
    assert "TAGS" not in filters


def test_keyword_is_mapped_to_search_vocabulary():
    normalizer = FilterNormalizer()

    filters = _by_type(normalizer.company_filters(CanonicalFilterState(keyword=["seed funded", "smb"])))

    assert filters["KEYWORD"]["value"] == ["seed funding"]


def test_range_defaults_fill_missing_bounds():
    normalizer = FilterNormalizer()
    state = CanonicalFilterState(
        annual_revenue=RangeValue(min=10, sub_filter="EUR"),
        department_headcount=RangeValue(max=50),
        department_headcount_growth=RangeValue(min=5, sub_filter="Sales"),
        company_headcount_growth=RangeValue(min=20),
    )

    filters = _by_type(normalizer.company_filters(state))

    assert filters["ANNUAL_REVENUE"] == {
        "filter_type": "ANNUAL_REVENUE",
        "type": "between",
        "value": {"min": 10, "max": 1000},
        "sub_filter": "USD",
    }
    assert filters["DEPARTMENT_HEADCOUNT"]["value"] == {"min": 0, "max": 50}
    assert filters["DEPARTMENT_HEADCOUNT"]["sub_filter"] == "Engineering"
    assert filters["DEPARTMENT_HEADCOUNT_GROWTH"]["value"] == {"min": 5, "max": 50}
    assert filters["DEPARTMENT_HEADCOUNT_GROWTH"]["sub_filter"] == "Sales"
    assert filters["COMPANY_HEADCOUNT_GROWTH"] == {
        "filter_type": "COMPANY_HEADCOUNT_GROWTH",
        "type": "between",
        "value": {"min": 20, "max": 100},
    }


def test_open_ended_range_above_default_keeps_min_below_max():
    normalizer = FilterNormalizer()

    shaped, warning = normalizer.shape_range(FilterType.ANNUAL_REVENUE, RangeValue(min=5000))

    assert warning is None
    assert shaped.min == 5000
    assert shaped.max == 50000


def test_unset_range_is_absent():
    normalizer = FilterNormalizer()
    state = CanonicalFilterState(annual_revenue=RangeValue(), industry=["Financial Services"])

    result = normalizer.company_filters(state)

    assert "ANNUAL_REVENUE" not in _by_type(result)
    assert result.warnings == []


def test_industries_are_matched_individually():
    normalizer = FilterNormalizer()
    state = CanonicalFilterState(industry=["fintech", "Underwater Basket Weaving", "software development"])

    result = normalizer.company_filters(state)

    assert _by_type(result)["INDUSTRY"]["value"] == ["Financial Services", "Software Development"]
    assert result.warnings[0].field == "INDUSTRY"
    assert result.warnings[0].rejected == ["Underwater Basket Weaving"]


def test_regions_and_ids_stay_in_lockstep():
    normalizer = FilterNormalizer()
    state = CanonicalFilterState(region=["sf", "Narnia", "nyc"])

    result = normalizer.company_filters(state)

    assert result.region_names == ["San Francisco Bay Area", "New York City Metropolitan Area"]
    assert result.region_ids == ["90000084", "90000070"]
    assert _by_type(result)["REGION"]["value"] == result.region_names
    assert result.warnings[0].rejected == ["Narnia"]


def test_job_opportunities_true_reads_as_hiring():
    normalizer = FilterNormalizer()

    filters = _by_type(normalizer.company_filters(CanonicalFilterState(job_opportunities=True)))

    assert filters["JOB_OPPORTUNITIES"]["value"] == ["Hiring on Linkedin"]


def test_job_opportunities_false_is_absent():
    normalizer = FilterNormalizer()

    result = normalizer.company_filters(CanonicalFilterState(job_opportunities=False))

    assert result.filters == []


def test_normalizing_twice_is_idempotent():
    normalizer = FilterNormalizer()
    state = CanonicalFilterState(
        tags=["seed funded", "b2b"],
        keyword=["fintech"],
        current_company=["google.com", "https://www.acme.co.uk/about"],
        region=["nyc"],
        industry=["ai"],
        company_headcount=["11-50", "bogus"],
        annual_revenue=RangeValue(min=10),
        recently_changed_jobs=False,
    )

    once, _ = normalizer.normalize_state(state)
    twice, warnings = normalizer.normalize_state(once)

    assert twice == once
    assert warnings == []
    assert once.tags == ["seed funding"]
    assert once.current_company == ["google", "acme"]
    assert once.recently_changed_jobs is False
    assert once.in_the_news is None


def test_strip_domain_suffix():
    assert strip_domain_suffix("google.com") == "google"
    assert strip_domain_suffix("coursera.org") == "coursera"
    assert strip_domain_suffix("acme.co.uk") == "acme"
    assert strip_domain_suffix("https://www.stripe.com/pricing") == "stripe"
    assert strip_domain_suffix("Google") == "Google"
    assert strip_domain_suffix(strip_domain_suffix("acme.co.uk")) == "acme"


def test_person_filters_carry_identifiers_titles_and_signals():
    normalizer = FilterNormalizer()
    state = CanonicalFilterState(
        current_title=["Director"],
        seniority_level=["Senior", "Boss"],
        years_of_experience=["6 to 10 years"],
        recently_changed_jobs=True,
        posted_on_linkedin=False,
        in_the_news=None,
        industry=["Financial Services"],
    )

    result = normalizer.person_filters(state, ["acme.com", "stripe.com", "acme.com"])

    assert result.payload() == [
        {"filter_type": "CURRENT_COMPANY", "type": "in", "value": ["acme.com", "stripe.com"]},
        {"filter_type": "CURRENT_TITLE", "type": "in", "value": ["Director"]},
        {"filter_type": "YEARS_OF_EXPERIENCE", "type": "in", "value": ["6 to 10 years"]},
        {"filter_type": "SENIORITY_LEVEL", "type": "in", "value": ["Senior"]},
        {"filter_type": "RECENTLY_CHANGED_JOBS"},
    ]
    assert result.post_processing == {"strict_title_and_company_match": False}
    assert result.warnings[0].rejected == ["Boss"]


def test_person_filters_without_titles_skip_post_processing():
    normalizer = FilterNormalizer()

    result = normalizer.person_filters(CanonicalFilterState(), ["acme.com"])

    assert result.post_processing is None
    assert result.payload() == [{"filter_type": "CURRENT_COMPANY", "type": "in", "value": ["acme.com"]}]
