# leadgen/routers/filters.py - Sidebar option lists

from fastapi import APIRouter

from leadgen.contracts.filters import (
    ACCOUNT_ACTIVITY_VALUES,
    COMPANY_HEADCOUNT_VALUES,
    JOB_OPPORTUNITY_VALUES,
    SENIORITY_LEVEL_VALUES,
    TENURE_VALUES,
)
from leadgen.routers._responses import DataEnvelope
from leadgen.vocabulary.loader import get_vocabulary

router = APIRouter()


@router.get("/filter-data", response_model=DataEnvelope)
async def filter_data():
    vocabulary = get_vocabulary()
    options = {key: list(values) for key, values in vocabulary.sidebar_options.items()}
    return DataEnvelope(
        data={
            "industries": list(vocabulary.industries),
            "regions": list(vocabulary.region_names),
            "company_sizes": list(COMPANY_HEADCOUNT_VALUES),
            "years_ranges": list(TENURE_VALUES),
            "seniority_levels": list(SENIORITY_LEVEL_VALUES),
            "account_activities": list(ACCOUNT_ACTIVITY_VALUES),
            "job_opportunities": list(JOB_OPPORTUNITY_VALUES),
            **options,
        }
    )
