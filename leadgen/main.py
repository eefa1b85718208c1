# leadgen/main.py - FastAPI app entry point

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from leadgen.config import get_settings
from leadgen.routers import filters, health, query, search

app = FastAPI(
    title="leadgen-filters-api",
    description="Natural-language and sidebar filters for company and contact search",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(HTTPException)
async def http_exception_handler(_: Request, exc: HTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})

# Include routers
app.include_router(health.router, tags=["health"])
app.include_router(query.router, prefix="/api", tags=["query"])
app.include_router(filters.router, prefix="/api", tags=["filters"])
app.include_router(search.router, prefix="/api", tags=["search"])
