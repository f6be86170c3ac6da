import math
from typing import Any, Mapping, Optional, Tuple

from common.config import logger
from common.utils import clamp, count_present, get_value
from data_processing.coefficients import (
    AGE_BOUNDS,
    KDM_BIOMARKERS,
    KDM_MIN_MARKERS,
    PHENOTYPIC_AGE_GAMMA,
    PHENOTYPIC_AGE_INTERCEPT,
    PHENOTYPIC_AGE_MIN_MARKERS,
    PHENOTYPIC_AGE_SLOPE,
    PHENOTYPIC_AGE_WEIGHTS,
    SIMPLIFIED_MIN_PANEL_SIZE,
)
from models.health_assessment import BiologicalAgeResult
from models.patient import PatientData

Biomarkers = Optional[Mapping[str, Any]]

# Method tags reported in BiologicalAgeResult.methods
PHENOTYPIC = "levine_2018"
KLEMERA_DOUBAL = "klemera_doubal_2006"
METABOLIC = "metabolic_bands"
SIMPLIFIED = "simplified_fallback"
NOT_COMPUTED = "not_computed"


def _clamp_age(age: float) -> float:
    return clamp(age, *AGE_BOUNDS)


# -------------------------------------------------------------------
# Simplified estimate (fallback)
# -------------------------------------------------------------------

def calculate_simplified_biological_age(chronological_age: float, biomarkers: Biomarkers) -> float:
    """Chronological age plus small penalties; used when a full method lacks data."""
    adjustments = 0

    glucose = get_value(biomarkers, "glucose")
    if glucose is not None:
        if glucose > 126:
            adjustments += 3
        elif glucose > 100:
            adjustments += 1

    creatinine = get_value(biomarkers, "creatinine")
    if creatinine is not None and creatinine > 1.3:
        adjustments += 2

    crp = get_value(biomarkers, "c_reactive_protein")
    if crp is not None and crp > 3:
        adjustments += 2

    # Penalty for a thin panel
    if count_present(biomarkers) < SIMPLIFIED_MIN_PANEL_SIZE:
        adjustments += 1

    return _clamp_age(chronological_age + adjustments)


# -------------------------------------------------------------------
# Phenotypic Age
# -------------------------------------------------------------------

def _phenotypic_age_from_score(mortality_score: float) -> Optional[float]:
    """
    Invert the mortality score:
        age = 141.50 + ln(-0.00553 * ln(1 - e^score)) / 0.09165
    Returns None when any intermediate leaves its domain.
    """
    if mortality_score >= 0:
        return None     # e^score >= 1
    survival = 1.0 - math.exp(mortality_score)
    if survival <= 0 or survival >= 1:
        return None
    inner = PHENOTYPIC_AGE_GAMMA * math.log(survival)
    if inner <= 0 or not math.isfinite(inner):
        return None
    age = PHENOTYPIC_AGE_INTERCEPT + math.log(inner) / PHENOTYPIC_AGE_SLOPE
    if not math.isfinite(age):
        return None
    return age


def _phenotypic_age(chronological_age: float, biomarkers: Biomarkers) -> Tuple[float, str]:
    values = {name: get_value(biomarkers, name) for name in PHENOTYPIC_AGE_WEIGHTS}
    available = sum(1 for v in values.values() if v is not None)

    if available < PHENOTYPIC_AGE_MIN_MARKERS:
        logger.debug(f"Phenotypic age: {available}/9 markers, using simplified estimate")
        return calculate_simplified_biological_age(chronological_age, biomarkers), SIMPLIFIED

    mortality_score = 0.0
    for name, weight in PHENOTYPIC_AGE_WEIGHTS.items():
        value = values[name]
        if value is None:
            continue
        if name == "c_reactive_protein":
            value = math.log(value + 1)
        mortality_score += weight * value

    age = _phenotypic_age_from_score(mortality_score)
    if age is None:
        logger.debug(f"Phenotypic age: mortality score {mortality_score:.3f} not invertible, using simplified estimate")
        return calculate_simplified_biological_age(chronological_age, biomarkers), SIMPLIFIED

    return _clamp_age(age), PHENOTYPIC


def calculate_phenotypic_age(chronological_age: float, biomarkers: Biomarkers) -> float:
    """Phenotypic Age (Levine et al. 2018) from nine clinical chemistry / blood count markers."""
    return _phenotypic_age(chronological_age, biomarkers)[0]


# -------------------------------------------------------------------
# Klemera-Doubal
# -------------------------------------------------------------------

def _klemera_doubal_age(chronological_age: float, biomarkers: Biomarkers) -> Tuple[float, str]:
    numerator = 0.0
    denominator = 0.0
    used = 0

    for marker in KDM_BIOMARKERS:
        value = get_value(biomarkers, marker.name)
        if value is None:
            continue
        standardized = (value - marker.mean) / marker.std
        weight = marker.coeff * marker.coeff
        numerator += weight * (chronological_age + standardized / marker.coeff)
        denominator += weight
        used += 1

    if used < KDM_MIN_MARKERS:
        logger.debug(f"KDM age: {used} markers, using simplified estimate")
        return calculate_simplified_biological_age(chronological_age, biomarkers), SIMPLIFIED

    kdm_age = numerator / denominator
    if not math.isfinite(kdm_age):
        return calculate_simplified_biological_age(chronological_age, biomarkers), SIMPLIFIED
    return _clamp_age(kdm_age), KLEMERA_DOUBAL


def calculate_klemera_doubal_age(chronological_age: float, biomarkers: Biomarkers) -> float:
    """
    Klemera-Doubal biological age.

    Each marker implies an age of ``age + z / coeff``; implied ages are
    averaged with weights ``coeff**2``.
    """
    return _klemera_doubal_age(chronological_age, biomarkers)[0]


# -------------------------------------------------------------------
# Metabolic age
# -------------------------------------------------------------------

def calculate_metabolic_age(chronological_age: float, biomarkers: Biomarkers, bmi: Optional[float] = None) -> float:
    adjustments = 0

    glucose = get_value(biomarkers, "glucose")
    if glucose is not None:
        if glucose > 126:
            adjustments += 5    # diabetic range
        elif glucose > 100:
            adjustments += 2    # prediabetic
        elif glucose < 70:
            adjustments += 1    # hypoglycaemic

    hba1c = get_value(biomarkers, "hba1c")
    if hba1c is not None:
        if hba1c > 6.5:
            adjustments += 5
        elif hba1c > 5.7:
            adjustments += 3

    insulin = get_value(biomarkers, "insulin")
    if insulin is not None:
        if insulin > 20:
            adjustments += 3
        elif insulin < 3:
            adjustments -= 1

    triglycerides = get_value(biomarkers, "triglycerides")
    if triglycerides is not None:
        if triglycerides > 200:
            adjustments += 2
        elif triglycerides < 100:
            adjustments -= 1

    hdl = get_value(biomarkers, "hdl_cholesterol")
    if hdl is not None:
        if hdl < 40:
            adjustments += 2
        elif hdl > 60:
            adjustments -= 2

    ldl = get_value(biomarkers, "ldl_cholesterol")
    if ldl is not None:
        if ldl > 160:
            adjustments += 3
        elif ldl < 100:
            adjustments -= 1

    if bmi is not None and math.isfinite(bmi):
        if bmi > 30:
            adjustments += 3
        elif bmi > 25:
            adjustments += 1
        elif bmi < 18.5:
            adjustments += 1

    return _clamp_age(chronological_age + adjustments)


# -------------------------------------------------------------------
# Combined
# -------------------------------------------------------------------

def calculate_biological_age(patient: PatientData) -> BiologicalAgeResult:
    age = patient.age
    biomarkers = patient.biomarkers

    phenotypic_age, phenotypic_method = _phenotypic_age(age, biomarkers)
    kdm_age, kdm_method = _klemera_doubal_age(age, biomarkers)
    metabolic_age = calculate_metabolic_age(age, biomarkers, patient.bmi)
    # No telomere assay is collected
    telomere_age = None

    ages = [a for a in (phenotypic_age, kdm_age, metabolic_age) if math.isfinite(a)]
    average = sum(ages) / len(ages) if ages else float(age)

    return BiologicalAgeResult(
        phenotypic_age=phenotypic_age,
        klemera_doubal_age=kdm_age,
        metabolic_age=metabolic_age,
        telomere_age=telomere_age,
        average_biological_age=average,
        age_advantage=age - average,
        methods={
            "phenotypic_age": phenotypic_method,
            "klemera_doubal_age": kdm_method,
            "metabolic_age": METABOLIC,
            "telomere_age": NOT_COMPUTED,
        },
    )
