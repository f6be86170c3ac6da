from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from common.config import logger
from data_processing.biological_age import calculate_biological_age
from data_processing.disease_risk import RISK_SCORERS, calculate_all_risks
from data_processing.form_mapping import build_assessment_input
from models.health_assessment import (
    HealthAssessmentReport, PatientSummary, RiskAssessmentResult, RiskCategory, RiskLevel
)
from models.patient import Lifestyle, PatientData


def overall_risk_level(assessments: List[RiskAssessmentResult]) -> RiskLevel:
    """Worst level across categories; low when there are none."""
    if not assessments:
        return RiskLevel.LOW
    return max((a.risk_level for a in assessments), key=lambda level: level.severity)


def elevated_categories(assessments: List[RiskAssessmentResult]) -> List[RiskCategory]:
    return [a.risk_category for a in assessments if a.risk_level.severity >= RiskLevel.HIGH.severity]


# Run one assessment
def run_health_assessment(patient: PatientData, lifestyle: Optional[Lifestyle] = None) -> HealthAssessmentReport:
    biological_age = calculate_biological_age(patient)
    risks = calculate_all_risks(patient, lifestyle)
    overall = overall_risk_level(risks)

    logger.info(
        f"Assessment complete: age={patient.age} "
        f"biological_age={biological_age.average_biological_age:.1f} "
        f"overall_risk={overall.value}"
    )

    return HealthAssessmentReport(
        generated_at=datetime.now(timezone.utc),
        patient=PatientSummary(age=patient.age, gender=patient.gender, bmi=round(patient.bmi, 1)),
        biological_age=biological_age,
        risk_assessments=risks,
        overall_risk_level=overall,
        elevated_categories=elevated_categories(risks),
    )


def run_form_assessment(form_data: Dict[str, Any]) -> HealthAssessmentReport:
    """Raw questionnaire payload in, report out. Input errors propagate to the exception handlers."""
    patient, lifestyle = build_assessment_input(form_data)
    return run_health_assessment(patient, lifestyle)


def list_risk_categories() -> Dict[str, Any]:
    categories = [category.value for category in RISK_SCORERS]
    return {"count": len(categories), "data": categories}
