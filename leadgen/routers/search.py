# leadgen/routers/search.py - Company and contact search

import logging

from fastapi import APIRouter

from leadgen.contracts.search import FindCompaniesRequest, FindContactsRequest
from leadgen.routers._responses import DataEnvelope, ErrorEnvelope, error_response
from leadgen.services.search_orchestrator import search_companies, search_contacts
from leadgen.utils.exceptions import TransportError

logger = logging.getLogger(__name__)

router = APIRouter()


def _transport_error_response(exc: TransportError):
    logger.error(
        "Search collaborator failed",
        extra={"error": exc.user_message(), "status_code": exc.status_code},
    )
    body = exc.to_dict()
    return error_response(body.pop("error"), 502, **body)


@router.post(
    "/find-companies",
    response_model=DataEnvelope,
    responses={502: {"model": ErrorEnvelope}},
)
async def find_companies(payload: FindCompaniesRequest):
    try:
        result = await search_companies(
            payload.filters,
            payload.page,
            total_count_hint=payload.total_count_hint,
            allow_unfiltered_people_search=payload.allow_unfiltered_people_search,
        )
    except TransportError as exc:
        return _transport_error_response(exc)
    return DataEnvelope(data=result.model_dump(mode="json"))


@router.post(
    "/find-contacts",
    response_model=DataEnvelope,
    responses={400: {"model": ErrorEnvelope}, 502: {"model": ErrorEnvelope}},
)
async def find_contacts(payload: FindContactsRequest):
    if not payload.companies:
        return error_response("Company information is required.", 400)
    try:
        result = await search_contacts(payload.companies, payload.filters, payload.page)
    except ValueError as exc:
        return error_response(str(exc), 400)
    except TransportError as exc:
        return _transport_error_response(exc)
    return DataEnvelope(data=result.model_dump(mode="json"))
