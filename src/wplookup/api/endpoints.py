"""
Search and health endpoints.

Validation is done by hand rather than through a request model so the error
bodies keep their exact wording and the offending array index can be named.
Nothing touches the browser until the whole request has been validated.
"""

from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from loguru import logger
from slowapi import Limiter

from wplookup.config.settings import Config
from wplookup.models.person import Credentials, SearchRequest
from wplookup.services.batch import run_search_batch

MISSING_CREDENTIALS = "Missing credentials in headers. Required: email and password headers"
INVALID_BODY = "Body must be an array of people with name and location"
INVALID_ENTRY = "Person at index {index} must have 'name' and 'location' fields"


def error_response(status_code: int, message: str) -> JSONResponse:
    """Failure body shared by every non-2xx response."""
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


def _has_text(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def parse_people(body: Any) -> list[SearchRequest] | str:
    """Validate the request body.

    Returns:
        The parsed requests, or the error message for a 400 response
    """
    if not isinstance(body, list) or not body:
        return INVALID_BODY

    for index, person in enumerate(body):
        if (
            not isinstance(person, dict)
            or not _has_text(person.get("name"))
            or not _has_text(person.get("location"))
        ):
            return INVALID_ENTRY.format(index=index)

    return [SearchRequest(name=p["name"], location=p["location"]) for p in body]


def create_api_router(config: Config, limiter: Limiter) -> APIRouter:
    """Build the API routes.

    Args:
        config: Application configuration (rate limit and batch settings)
        limiter: Rate limiter registered on the application

    Returns:
        Router with ``GET /health`` and ``POST /api/search``
    """
    router = APIRouter()

    @router.get("/health")
    async def health() -> dict[str, str]:
        return {
            "status": "OK",
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        }

    @router.post("/api/search")
    @limiter.limit(config.rate_limit)
    async def search(request: Request) -> JSONResponse:
        email = request.headers.get("email")
        password = request.headers.get("password")
        if not email or not password:
            return error_response(400, MISSING_CREDENTIALS)

        try:
            body = await request.json()
        except ValueError:
            return error_response(400, INVALID_BODY)

        people = parse_people(body)
        if isinstance(people, str):
            return error_response(400, people)

        credentials = Credentials(email=email, password=password)
        logger.info(f"Starting search for {len(people)} person(s)")

        try:
            records = await run_search_batch(credentials, people, config=config)
        except Exception as e:
            logger.exception(f"Search batch failed: {e}")
            return error_response(500, str(e) or e.__class__.__name__)

        logger.info(f"Search completed: {len(records)} record(s)")
        return JSONResponse(
            content={"success": True, "data": [record.to_api() for record in records]}
        )

    return router
