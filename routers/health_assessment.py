from datetime import datetime, timezone
from typing import Any, Dict
from fastapi import APIRouter, Body, Request

from common.config import settings
from common.rate_limiter import limiter
from models.health_assessment import AssessmentRequest, HealthAssessmentReport
from services.health_assessment_service import list_risk_categories, run_form_assessment, run_health_assessment


router = APIRouter(prefix="/health-assessment", tags=["Health Assessment"])


@router.post("/calculate", response_model=HealthAssessmentReport)
@limiter.limit(settings.ASSESSMENT_RATE_LIMIT)
async def calculate(request: Request, req: AssessmentRequest):
    return run_health_assessment(req.patient, req.lifestyle)


@router.post("/comprehensive", response_model=HealthAssessmentReport)
@limiter.limit(settings.ASSESSMENT_RATE_LIMIT)
async def comprehensive(request: Request, form_data: Dict[str, Any] = Body(...)):
    return run_form_assessment(form_data)


@router.get("/categories")
async def get_categories():
    return list_risk_categories()


@router.get("/test")
async def test():
    return {
        "message": f"{settings.APP_NAME} is running",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
