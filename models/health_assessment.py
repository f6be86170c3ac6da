from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional
from pydantic import BaseModel, Field

from models.patient import Gender, Lifestyle, PatientData


class RiskLevel(str, Enum):
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    VERY_HIGH = "very_high"

    @property
    def severity(self) -> int:
        return _RISK_LEVEL_ORDER[self]


# low < moderate < high < very_high
_RISK_LEVEL_ORDER = {
    RiskLevel.LOW: 0,
    RiskLevel.MODERATE: 1,
    RiskLevel.HIGH: 2,
    RiskLevel.VERY_HIGH: 3,
}


class RiskCategory(str, Enum):
    CARDIOVASCULAR = "cardiovascular"
    DIABETES = "diabetes"
    KIDNEY_DISEASE = "kidney_disease"
    CANCER = "cancer_risk"
    COGNITIVE_DECLINE = "cognitive_decline"
    METABOLIC_SYNDROME = "metabolic_syndrome"
    STROKE = "stroke_risk"


class BiologicalAgeResult(BaseModel):
    phenotypic_age: float
    klemera_doubal_age: float
    metabolic_age: float
    telomere_age: Optional[float] = None
    average_biological_age: float
    age_advantage: float    # positive if younger than calendar age
    methods: Dict[str, str] = Field(default_factory=dict)

    class Config:
        frozen = True


class RiskAssessmentResult(BaseModel):
    risk_category: RiskCategory
    risk_score: float
    risk_level: RiskLevel
    ten_year_risk: float = Field(..., ge=0, le=100)
    algorithm_used: str
    reference: str

    class Config:
        frozen = True


class PatientSummary(BaseModel):
    age: int
    gender: Gender
    bmi: float


class HealthAssessmentReport(BaseModel):
    generated_at: datetime
    patient: PatientSummary
    biological_age: BiologicalAgeResult
    risk_assessments: List[RiskAssessmentResult]
    overall_risk_level: RiskLevel
    elevated_categories: List[RiskCategory]

    class Config:
        frozen = True


class AssessmentRequest(BaseModel):
    patient: PatientData
    lifestyle: Optional[Lifestyle] = None

    class Config:
        extra = "forbid"
