from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional
from pydantic import BaseModel, Field, field_serializer, field_validator

from common.utils import clean_value


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


class PatientData(BaseModel):
    """
    Typed input record for one assessment. Blank form fields must arrive as None.

    Height and weight are bounded to plausible human values so ``bmi`` is
    always finite. The biomarker panel is exposed read-only.
    """
    age: int = Field(..., ge=0, le=120)
    gender: Gender
    height_cm: float = Field(..., ge=30, le=300)
    weight_kg: float = Field(..., gt=0, le=700)
    systolic_bp: Optional[float] = None
    diastolic_bp: Optional[float] = None
    biomarkers: Mapping[str, Optional[float]] = Field(default_factory=dict, validate_default=True)

    class Config:
        frozen = True

    @field_validator("gender", mode="before")
    @classmethod
    def normalize_gender(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("systolic_bp", "diastolic_bp", mode="before")
    @classmethod
    def clean_pressure(cls, v):
        v = clean_value(v)
        return v if v else None

    @field_validator("biomarkers", mode="before")
    @classmethod
    def clean_biomarkers(cls, v):
        if v is None:
            return {}
        if not isinstance(v, Mapping):
            return v
        return {str(k).strip(): clean_value(val) for k, val in v.items()}

    @field_validator("biomarkers", mode="after")
    @classmethod
    def freeze_biomarkers(cls, v):
        return MappingProxyType(dict(v))

    @field_serializer("biomarkers")
    def dump_biomarkers(self, v) -> Dict[str, Optional[float]]:
        return dict(v)

    @property
    def bmi(self) -> float:
        return self.weight_kg / (self.height_cm / 100) ** 2


class Lifestyle(BaseModel):
    # Frequencies / ratings
    exercise_frequency: Optional[float] = None      # days per week
    diet_quality: Optional[float] = None            # 1 (poor) - 4 (excellent)
    physical_activity: Optional[float] = None
    social_engagement: Optional[float] = None
    cognitive_stimulation: Optional[float] = None
    sleep_quality: Optional[float] = None           # 1 (poor) - 4 (excellent)
    alcohol_consumption: Optional[float] = None     # drinks per day
    education_years: Optional[float] = None
    age_first_pregnancy: Optional[float] = None

    # History flags
    smoking_history: bool = False
    family_diabetes_history: bool = False
    family_cancer_history: bool = False
    family_dementia_history: bool = False
    family_stroke_history: bool = False
    cardiovascular_disease_history: bool = False
    atrial_fibrillation: bool = False
    depression_history: bool = False
    hormone_replacement_therapy: bool = False
    environmental_toxins: bool = False
    sleep_apnea: bool = False

    class Config:
        frozen = True
        extra = "forbid"

    @field_validator(
        "exercise_frequency", "diet_quality", "physical_activity", "social_engagement",
        "cognitive_stimulation", "sleep_quality", "alcohol_consumption",
        "education_years", "age_first_pregnancy",
        mode="before",
    )
    @classmethod
    def clean_numbers(cls, v: Any):
        return clean_value(v)
