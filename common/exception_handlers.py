from fastapi import Request, HTTPException
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from typing import Union
from slowapi.errors import RateLimitExceeded

from common.config import logger
from data_processing.form_mapping import AssessmentInputError


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Custom exception handler to ensure all HTTP errors use 'message' instead of 'detail'"""
    message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": message},
        headers=getattr(exc, "headers", None),
    )


async def pydantic_validation_exception_handler(
    request: Request, exc: Union[ValidationError, RequestValidationError]
) -> JSONResponse:
    """Report missing required fields by name; otherwise list every invalid field"""
    errors = exc.errors()
    missing_fields = []
    for error in errors:
        if error["type"] == "missing":
            field = ".".join(str(loc) for loc in error["loc"])
            missing_fields.append(field)
    if missing_fields:
        return JSONResponse(status_code=422, content={"message": f"Missing required fields: {', '.join(missing_fields)}"})

    invalid_fields = [".".join(str(loc) for loc in error["loc"]) for error in errors]
    return JSONResponse(status_code=422, content={"message": f"Invalid fields: {', '.join(invalid_fields)}"})


async def assessment_input_exception_handler(request: Request, exc: AssessmentInputError) -> JSONResponse:
    return JSONResponse(status_code=422, content={"message": exc.message, "fields": exc.fields})


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle general exceptions with consistent 'message' format"""
    logger.error(f"Unhandled error on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"message": "Internal server error"},
    )


async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    return JSONResponse(
        status_code=429,
        content={
            "message": "You have exceeded the allowed request limit. Please try again later.",
        },
    )
