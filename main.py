from pydantic import ValidationError
from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from common.config import settings
from routers import health_assessment
from common.exception_handlers import (
    http_exception_handler,
    general_exception_handler,
    pydantic_validation_exception_handler,
    assessment_input_exception_handler,
    rate_limit_handler
)
from common.rate_limiter import limiter
from common.config import logger
from data_processing.form_mapping import AssessmentInputError
from slowapi.errors import RateLimitExceeded


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.APP_NAME}...")
    yield
    logger.info(f"Shutting down {settings.APP_NAME}...")

app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)

app.state.limiter = limiter


# Add exception handlers for consistent response format
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, pydantic_validation_exception_handler)
app.add_exception_handler(ValidationError, pydantic_validation_exception_handler)
app.add_exception_handler(AssessmentInputError, assessment_input_exception_handler)
app.add_exception_handler(Exception, general_exception_handler)
app.add_exception_handler(RateLimitExceeded, rate_limit_handler)


# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health_assessment.router, prefix=settings.API_PREFIX)


@app.get("/")
def root():
    return {"message": "API is running"}
