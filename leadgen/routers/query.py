# leadgen/routers/query.py - Free-text parsing and sidebar reconciliation

import logging

from fastapi import APIRouter

from leadgen.contracts.search import ApplyFiltersRequest, ParseQueryOutput, ParseQueryRequest
from leadgen.routers._responses import DataEnvelope, ErrorEnvelope, error_response
from leadgen.services.filter_state import apply_sidebar_filters, to_sidebar_form
from leadgen.services.query_interpretation import parse_query
from leadgen.utils.exceptions import ParseError, TransportError

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/parse-query",
    response_model=DataEnvelope,
    responses={400: {"model": ErrorEnvelope}, 502: {"model": ErrorEnvelope}},
)
async def parse_query_endpoint(payload: ParseQueryRequest):
    if not payload.query.strip():
        return error_response("Query is required", 400)
    try:
        parsed = await parse_query(payload.query)
    except ParseError as exc:
        return error_response("Failed to parse response", 502, raw_response=exc.raw_response)
    except TransportError as exc:
        logger.error("Query parsing failed", extra={"error": exc.user_message()})
        return error_response(exc.user_message(), 502, details=exc.details)
    output = ParseQueryOutput(
        filters=parsed.filters.to_payload(),
        sidebar=to_sidebar_form(parsed.filters),
        warnings=parsed.warnings,
    )
    return DataEnvelope(data=output.model_dump(mode="json", by_alias=True))


@router.post("/apply-filters", response_model=DataEnvelope)
async def apply_filters_endpoint(payload: ApplyFiltersRequest):
    state = apply_sidebar_filters(payload.form)
    return DataEnvelope(data=state.to_payload())
