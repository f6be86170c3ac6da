import math
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from common.config import logger
from common.utils import clamp, get_value, is_flag_set
from data_processing.coefficients import (
    ALBUMINURIA_BANDS,
    ALBUMINURIA_TOP_POINTS,
    ASCVD_AGE_RANGE,
    ASCVD_COEFFICIENTS,
    ASCVD_DEFAULT_HDL,
    ASCVD_DEFAULT_TOTAL_CHOLESTEROL,
    ASCVD_LEVEL_BANDS,
    CANCER_BANDS,
    CANCER_TOP_BAND,
    COGNITIVE_LEVEL_BANDS,
    COGNITIVE_RISK_65_PLUS,
    COGNITIVE_RISK_65_PLUS_TOP,
    COGNITIVE_RISK_UNDER_65,
    COGNITIVE_RISK_UNDER_65_TOP,
    EGFR_BANDS,
    EGFR_FLOOR_POINTS,
    FINDRISC_BANDS,
    FINDRISC_TOP_BAND,
    FINDRISC_WAIST,
    FRAMINGHAM_STROKE_BANDS,
    FRAMINGHAM_STROKE_TOP,
    KIDNEY_LEVEL_BANDS,
    KIDNEY_RISK_CAP,
    KIDNEY_RISK_PER_POINT,
    METABOLIC_SYNDROME_CRITERIA_NEEDED,
    METABOLIC_SYNDROME_DEVELOPMENT_RISK,
    METABOLIC_SYNDROME_HDL,
    METABOLIC_SYNDROME_LEVELS,
    METABOLIC_SYNDROME_WAIST,
    PERCENT_BOUNDS,
    STROKE_EXTRA_FACTOR_CAP,
    STROKE_LEVEL_BANDS,
    STROKE_RISK_CAP,
    coefficient_branch,
)
from models.health_assessment import RiskAssessmentResult, RiskCategory, RiskLevel
from models.patient import Gender, Lifestyle, PatientData

RiskScorer = Callable[[PatientData, Optional[Lifestyle]], RiskAssessmentResult]

# Largest exponent math.exp accepts without overflowing
_MAX_EXP = 709.0


# -------------------------------------------------------------------
# Helpers
# -------------------------------------------------------------------

def _insufficient(category: RiskCategory, reason: str, reference: str) -> RiskAssessmentResult:
    logger.debug(f"{category.value}: {reason}")
    return RiskAssessmentResult(
        risk_category=category,
        risk_score=0,
        risk_level=RiskLevel.LOW,
        ten_year_risk=0,
        algorithm_used=reason,
        reference=reference,
    )


def _level_below(value: float, bands: Sequence[Tuple[float, RiskLevel]]) -> RiskLevel:
    """First band whose (exclusive) upper bound exceeds value; very_high otherwise."""
    for upper, level in bands:
        if value < upper:
            return level
    return RiskLevel.VERY_HIGH


def _level_at_most(value: float, bands: Sequence[Tuple[float, RiskLevel]]) -> RiskLevel:
    """First band whose (inclusive) upper bound is >= value; very_high otherwise."""
    for upper, level in bands:
        if value <= upper:
            return level
    return RiskLevel.VERY_HIGH


def _percent_at_most(value: float, bands: Sequence[Tuple[float, float]], top: float) -> float:
    for upper, percent in bands:
        if value <= upper:
            return percent
    return top


def _percent(value: float) -> float:
    return clamp(value, *PERCENT_BOUNDS)


def _has_diabetes(patient: PatientData) -> bool:
    glucose = get_value(patient.biomarkers, "glucose")
    return is_flag_set(patient.biomarkers, "diabetes") or (glucose is not None and glucose > 126)


def _above(patient: PatientData, name: str, threshold: float) -> bool:
    value = get_value(patient.biomarkers, name)
    return value is not None and value > threshold


def _positive_or_default(patient: PatientData, name: str, default: float) -> float:
    value = get_value(patient.biomarkers, name)
    return value if value else default


def _sbp_above(patient: PatientData, threshold: float) -> bool:
    return patient.systolic_bp is not None and patient.systolic_bp > threshold


def _sbp_at_least(patient: PatientData, threshold: float) -> bool:
    return patient.systolic_bp is not None and patient.systolic_bp >= threshold


def _number_above(value: Optional[float], threshold: float) -> bool:
    return value is not None and value > threshold


# -------------------------------------------------------------------
# Cardiovascular: ASCVD
# -------------------------------------------------------------------

ASCVD_REFERENCE = "2018 AHA/ACC Cholesterol Guidelines"


def calculate_ascvd_risk(patient: PatientData, lifestyle: Optional[Lifestyle] = None) -> RiskAssessmentResult:
    """
    10-year ASCVD risk, pooled-cohort style (AHA/ACC 2018).

    Only validated for ages 40-79; outside that band a zero/low result is
    returned rather than extrapolating. ``lifestyle`` is accepted for the
    common scorer signature and is not used.
    """
    category = RiskCategory.CARDIOVASCULAR
    age = patient.age
    low_age, high_age = ASCVD_AGE_RANGE
    if age < low_age or age > high_age:
        return _insufficient(category, "ASCVD (Age outside 40-79 range)", ASCVD_REFERENCE)

    systolic_bp = patient.systolic_bp
    if systolic_bp is None:
        return _insufficient(category, "Insufficient data (no systolic BP)", ASCVD_REFERENCE)

    coeffs = ASCVD_COEFFICIENTS[coefficient_branch(patient.gender)]
    total_cholesterol = _positive_or_default(patient, "total_cholesterol", ASCVD_DEFAULT_TOTAL_CHOLESTEROL)
    hdl_cholesterol = _positive_or_default(patient, "hdl_cholesterol", ASCVD_DEFAULT_HDL)
    smoker = is_flag_set(patient.biomarkers, "smoking")
    diabetic = _has_diabetes(patient)
    treated_bp = is_flag_set(patient.biomarkers, "bp_medication") or systolic_bp > 140

    score = (
        math.log(age) * coeffs.ln_age
        + math.log(total_cholesterol) * coeffs.ln_total_cholesterol
        + math.log(hdl_cholesterol) * coeffs.ln_hdl
        + math.log(systolic_bp) * (coeffs.ln_treated_sbp if treated_bp else coeffs.ln_untreated_sbp)
    )
    if smoker:
        score += coeffs.smoker
    if diabetic:
        score += coeffs.diabetes

    exponent = score - coeffs.mean_score
    if exponent > _MAX_EXP:
        ten_year_risk = 100.0
    else:
        ten_year_risk = (1 - coeffs.baseline_survival ** math.exp(exponent)) * 100
    ten_year_risk = _percent(ten_year_risk)

    return RiskAssessmentResult(
        risk_category=category,
        risk_score=score,
        risk_level=_level_below(ten_year_risk, ASCVD_LEVEL_BANDS),
        ten_year_risk=ten_year_risk,
        algorithm_used="ASCVD Risk Estimator Plus (AHA/ACC 2018)",
        reference=ASCVD_REFERENCE,
    )


# -------------------------------------------------------------------
# Diabetes: FINDRISC
# -------------------------------------------------------------------

def calculate_diabetes_risk(patient: PatientData, lifestyle: Optional[Lifestyle] = None) -> RiskAssessmentResult:
    """FINDRISC points (Lindström & Tuomilehto 2003) mapped to a 10-year type 2 diabetes risk."""
    lifestyle = lifestyle or Lifestyle()
    age = patient.age
    bmi = patient.bmi
    points = 0

    if 45 <= age < 55:
        points += 2
    elif 55 <= age < 65:
        points += 3
    elif age >= 65:
        points += 4

    if 25 <= bmi < 30:
        points += 1
    elif bmi >= 30:
        points += 3

    waist = get_value(patient.biomarkers, "waist_circumference")
    if waist:
        thresholds = FINDRISC_WAIST[coefficient_branch(patient.gender)]
        if thresholds.increased <= waist < thresholds.high:
            points += 3
        elif waist >= thresholds.high:
            points += 4

    # Under 3 active days a week, or unknown
    if (lifestyle.exercise_frequency or 0) < 3:
        points += 2

    if lifestyle.diet_quality and lifestyle.diet_quality < 3:
        points += 1

    if _above(patient, "glucose", 100):
        points += 5
    if _above(patient, "hba1c", 5.7):
        points += 5

    if _sbp_above(patient, 140) or is_flag_set(patient.biomarkers, "bp_medication"):
        points += 2

    if lifestyle.family_diabetes_history:
        points += 5

    ten_year_risk, risk_level = FINDRISC_TOP_BAND
    for upper, percent, level in FINDRISC_BANDS:
        if points < upper:
            ten_year_risk, risk_level = percent, level
            break

    return RiskAssessmentResult(
        risk_category=RiskCategory.DIABETES,
        risk_score=points,
        risk_level=risk_level,
        ten_year_risk=ten_year_risk,
        algorithm_used="FINDRISC (Finnish Diabetes Risk Score)",
        reference="Lindström & Tuomilehto (2003) Diabetes Care",
    )


# -------------------------------------------------------------------
# Kidney: KDIGO
# -------------------------------------------------------------------

def _egfr_points(egfr: float) -> int:
    for lower, points in EGFR_BANDS:
        if egfr >= lower:
            return points
    return EGFR_FLOOR_POINTS


def _albuminuria_points(patient: PatientData) -> int:
    # A zero ratio falls through to proteinuria; neither measured reads as 0
    albuminuria = (
        get_value(patient.biomarkers, "albumin_creatinine_ratio")
        or get_value(patient.biomarkers, "proteinuria")
        or 0.0
    )
    for upper, points in ALBUMINURIA_BANDS:
        if albuminuria < upper:
            return points
    return ALBUMINURIA_TOP_POINTS


def calculate_kidney_disease_risk(patient: PatientData, lifestyle: Optional[Lifestyle] = None) -> RiskAssessmentResult:
    """
    KDIGO eGFR x albuminuria grid collapsed to a point score.

    ten_year_risk is ``min(50, score * 5)``: a display proxy, not a validated
    percentage.
    """
    egfr = get_value(patient.biomarkers, "egfr")
    if egfr is None:
        return _insufficient(RiskCategory.KIDNEY_DISEASE, "Insufficient data (no eGFR)", "KDIGO 2012 Guidelines")

    score = _egfr_points(egfr) + _albuminuria_points(patient)

    return RiskAssessmentResult(
        risk_category=RiskCategory.KIDNEY_DISEASE,
        risk_score=score,
        risk_level=_level_at_most(score, KIDNEY_LEVEL_BANDS),
        ten_year_risk=min(KIDNEY_RISK_CAP, score * KIDNEY_RISK_PER_POINT),
        algorithm_used="KDIGO CKD Risk Classification",
        reference="KDIGO 2012 Clinical Practice Guidelines",
    )


# -------------------------------------------------------------------
# Cancer
# -------------------------------------------------------------------

def calculate_cancer_risk(patient: PatientData, lifestyle: Optional[Lifestyle] = None) -> RiskAssessmentResult:
    lifestyle = lifestyle or Lifestyle()
    age = patient.age
    bmi = patient.bmi
    branch = coefficient_branch(patient.gender)
    score = 0

    if 40 <= age < 50:
        score += 2
    elif 50 <= age < 60:
        score += 4
    elif 60 <= age < 70:
        score += 6
    elif age >= 70:
        score += 8

    if 25 <= bmi < 30:
        score += 1
    elif 30 <= bmi < 35:
        score += 2
    elif bmi >= 35:
        score += 3

    if is_flag_set(patient.biomarkers, "smoking") or lifestyle.smoking_history:
        score += 6

    if _above(patient, "c_reactive_protein", 3.0):
        score += 2
    elif _above(patient, "c_reactive_protein", 1.0):
        score += 1

    # Hormone / organ specific markers
    if branch == Gender.FEMALE:
        if _above(patient, "estradiol", 50):
            score += 1
        if _number_above(lifestyle.age_first_pregnancy, 30):
            score += 1
        if lifestyle.hormone_replacement_therapy:
            score += 1
    else:
        if _above(patient, "psa", 4.0):
            score += 2
        elif _above(patient, "psa", 2.5):
            score += 1

    if _above(patient, "glucose", 126):
        score += 1
    if _above(patient, "insulin", 20):
        score += 1

    # Zero counts are treated as not measured
    wbc = get_value(patient.biomarkers, "white_blood_cells")
    if wbc and wbc < 4.0:
        score += 1
    lymphocytes = get_value(patient.biomarkers, "lymphocyte_percent")
    if lymphocytes and lymphocytes < 20:
        score += 1

    if lifestyle.family_cancer_history:
        score += 3
    if _number_above(lifestyle.alcohol_consumption, 2):
        score += 2
    if lifestyle.environmental_toxins:
        score += 1

    ten_year_risk, risk_level = CANCER_TOP_BAND
    for upper, percent, level in CANCER_BANDS:
        if score <= upper:
            ten_year_risk, risk_level = percent, level
            break

    return RiskAssessmentResult(
        risk_category=RiskCategory.CANCER,
        risk_score=score,
        risk_level=risk_level,
        ten_year_risk=ten_year_risk,
        algorithm_used="Comprehensive Cancer Risk Assessment",
        reference="American Cancer Society & NCCN Guidelines 2023 (screening approximation)",
    )


# -------------------------------------------------------------------
# Cognitive decline
# -------------------------------------------------------------------

def calculate_cognitive_decline_risk(patient: PatientData, lifestyle: Optional[Lifestyle] = None) -> RiskAssessmentResult:
    lifestyle = lifestyle or Lifestyle()
    age = patient.age
    score = 0

    if 55 <= age < 65:
        score += 2
    elif 65 <= age < 75:
        score += 4
    elif 75 <= age < 85:
        score += 7
    elif age >= 85:
        score += 10

    if coefficient_branch(patient.gender) == Gender.FEMALE and age > 50:
        score += 1

    # Vascular pathway
    if _above(patient, "total_cholesterol", 240):
        score += 2
    if _sbp_above(patient, 140):
        score += 2
    if _has_diabetes(patient):
        score += 3

    if _above(patient, "c_reactive_protein", 3.0):
        score += 2
    elif _above(patient, "c_reactive_protein", 1.0):
        score += 1

    if patient.bmi > 30:
        score += 2
    if _above(patient, "hba1c", 6.5):
        score += 2

    # Neurodegeneration markers; a zero reading is treated as not measured
    amyloid = get_value(patient.biomarkers, "amyloid_beta_42")
    if amyloid and amyloid < 500:
        score += 4
    if _above(patient, "tau_protein", 300):
        score += 3
    if _above(patient, "neurofilament_light", 50):
        score += 2

    for name, threshold, points in (("vitamin_b12", 300, 2), ("vitamin_d", 30, 1), ("folate", 3.0, 1)):
        value = get_value(patient.biomarkers, name)
        if value and value < threshold:
            score += points

    if _above(patient, "homocysteine", 15):
        score += 2

    for value, threshold, points in (
        (lifestyle.education_years, 12, 2),
        (lifestyle.physical_activity, 2, 2),
        (lifestyle.social_engagement, 2, 1),
        (lifestyle.cognitive_stimulation, 2, 1),
        (lifestyle.sleep_quality, 3, 1),
    ):
        if value and value < threshold:
            score += points

    if lifestyle.depression_history or _above(patient, "cortisol", 20):
        score += 2
    if lifestyle.family_dementia_history:
        score += 3
    if get_value(patient.biomarkers, "apoe_e4_carrier"):
        score += 4

    if age < 65:
        ten_year_risk = _percent_at_most(score, COGNITIVE_RISK_UNDER_65, COGNITIVE_RISK_UNDER_65_TOP)
    else:
        ten_year_risk = _percent_at_most(score, COGNITIVE_RISK_65_PLUS, COGNITIVE_RISK_65_PLUS_TOP)

    return RiskAssessmentResult(
        risk_category=RiskCategory.COGNITIVE_DECLINE,
        risk_score=score,
        risk_level=_level_at_most(score, COGNITIVE_LEVEL_BANDS),
        ten_year_risk=ten_year_risk,
        algorithm_used="Comprehensive Cognitive Risk Assessment",
        reference="Alzheimer's Association & NIH-NIA Research Framework 2023 (screening approximation)",
    )


# -------------------------------------------------------------------
# Metabolic syndrome: ATP III
# -------------------------------------------------------------------

def calculate_metabolic_syndrome_risk(patient: PatientData, lifestyle: Optional[Lifestyle] = None) -> RiskAssessmentResult:
    """
    ATP III criteria count (3 of 5 = metabolic syndrome) plus supporting
    markers. ``lifestyle`` is unused.
    """
    branch = coefficient_branch(patient.gender)
    criteria = 0
    score = 0

    # 1. Abdominal obesity; BMI stands in when waist is not measured
    waist = get_value(patient.biomarkers, "waist_circumference")
    if waist:
        abdominal_obesity = waist > METABOLIC_SYNDROME_WAIST[branch]
    else:
        abdominal_obesity = patient.bmi > 30

    hdl = get_value(patient.biomarkers, "hdl_cholesterol")
    glucose = get_value(patient.biomarkers, "glucose")
    if not glucose:
        glucose = get_value(patient.biomarkers, "fasting_glucose")

    met = [
        abdominal_obesity,
        # 2. Triglycerides >= 150 mg/dL
        (get_value(patient.biomarkers, "triglycerides") or 0) >= 150,
        # 3. Low HDL
        bool(hdl) and hdl < METABOLIC_SYNDROME_HDL[branch],
        # 4. BP >= 130/85 or treated
        _sbp_at_least(patient, 130)
        or (patient.diastolic_bp is not None and patient.diastolic_bp >= 85)
        or is_flag_set(patient.biomarkers, "bp_medication"),
        # 5. Fasting glucose >= 100 or diabetes
        (glucose is not None and glucose >= 100) or is_flag_set(patient.biomarkers, "diabetes"),
    ]
    for criterion in met:
        if criterion:
            criteria += 1
            score += 3

    if _above(patient, "insulin", 15):
        score += 2
    if _above(patient, "homa_ir", 2.5):
        score += 2
    if _above(patient, "c_reactive_protein", 3.0):
        score += 1
    if patient.age > 40:
        score += 1
    if patient.age > 60:
        score += 2
    adiponectin = get_value(patient.biomarkers, "adiponectin")
    if adiponectin and adiponectin < 4.0:
        score += 2
    if _above(patient, "uric_acid", 7.0):
        score += 1

    if criteria >= METABOLIC_SYNDROME_CRITERIA_NEEDED:
        # Already meets the definition; progression risk
        ten_year_risk = 60 + min(30, score * 2)
        risk_level = RiskLevel.VERY_HIGH
    else:
        ten_year_risk = METABOLIC_SYNDROME_DEVELOPMENT_RISK[criteria]
        risk_level = METABOLIC_SYNDROME_LEVELS[criteria]

    return RiskAssessmentResult(
        risk_category=RiskCategory.METABOLIC_SYNDROME,
        risk_score=score,
        risk_level=risk_level,
        ten_year_risk=ten_year_risk,
        algorithm_used=f"ATP III Criteria ({criteria}/5 criteria met)",
        reference="American Heart Association/NHLBI Scientific Statement 2005",
    )


# -------------------------------------------------------------------
# Stroke: modified Framingham
# -------------------------------------------------------------------

def calculate_stroke_risk(patient: PatientData, lifestyle: Optional[Lifestyle] = None) -> RiskAssessmentResult:
    """
    Framingham stroke points drive the base 10-year percentage; factors
    outside Framingham (risk_score - framingham points) add up to 20 more.
    Result capped at 60%.
    """
    lifestyle = lifestyle or Lifestyle()
    age = patient.age
    biomarkers = patient.biomarkers
    score = 0
    framingham = 0

    def add(points: int, framingham_points: int = 0):
        nonlocal score, framingham
        score += points
        framingham += framingham_points

    if 55 <= age < 65:
        add(2, 3)
    elif 65 <= age < 75:
        add(4, 5)
    elif age >= 75:
        add(6, 8)

    if coefficient_branch(patient.gender) == Gender.MALE and age < 75:
        add(1, 2)

    if _sbp_at_least(patient, 140) or is_flag_set(biomarkers, "bp_medication"):
        if _sbp_at_least(patient, 160):
            add(4, 4)
        else:
            add(2, 2)

    if _has_diabetes(patient):
        add(3, 3)
    if lifestyle.cardiovascular_disease_history or is_flag_set(biomarkers, "previous_mi"):
        add(3, 4)
    if lifestyle.atrial_fibrillation or is_flag_set(biomarkers, "atrial_fibrillation"):
        add(5, 6)
    if is_flag_set(biomarkers, "lvh"):
        add(2, 3)
    if is_flag_set(biomarkers, "smoking") or lifestyle.smoking_history:
        add(2, 2)
    if _above(patient, "total_cholesterol", 240):
        add(1, 1)

    hdl = get_value(biomarkers, "hdl_cholesterol")
    if hdl and hdl < 40:
        add(1)
    elif _above(patient, "hdl_cholesterol", 60):
        add(-1, -1)

    if _above(patient, "carotid_stenosis", 50):
        add(3)
    if _above(patient, "homocysteine", 15):
        add(2)
    if _above(patient, "c_reactive_protein", 3.0):
        add(1)
    if _above(patient, "fibrinogen", 400):
        add(1)
    if _above(patient, "d_dimer", 0.5):
        add(1)

    if lifestyle.physical_activity and lifestyle.physical_activity < 2:
        add(1)
    if _number_above(lifestyle.alcohol_consumption, 3):
        add(1)
    if lifestyle.sleep_apnea:
        add(2)
    if lifestyle.family_stroke_history:
        add(2)

    ten_year_risk = _percent_at_most(framingham, FRAMINGHAM_STROKE_BANDS, FRAMINGHAM_STROKE_TOP)
    ten_year_risk += min(STROKE_EXTRA_FACTOR_CAP, (score - framingham) * 2)
    ten_year_risk = clamp(ten_year_risk, 0, STROKE_RISK_CAP)

    return RiskAssessmentResult(
        risk_category=RiskCategory.STROKE,
        risk_score=score,
        risk_level=_level_below(ten_year_risk, STROKE_LEVEL_BANDS),
        ten_year_risk=ten_year_risk,
        algorithm_used="Modified Framingham Stroke Risk Profile",
        reference="AHA/ASA Stroke Prevention Guidelines 2019 (screening approximation)",
    )


# -------------------------------------------------------------------
# Registry
# -------------------------------------------------------------------

# To add a category: write calculate_<category>_risk(patient, lifestyle)
# and register it here.
RISK_SCORERS: Dict[RiskCategory, RiskScorer] = {
    RiskCategory.CARDIOVASCULAR: calculate_ascvd_risk,
    RiskCategory.DIABETES: calculate_diabetes_risk,
    RiskCategory.KIDNEY_DISEASE: calculate_kidney_disease_risk,
    RiskCategory.CANCER: calculate_cancer_risk,
    RiskCategory.COGNITIVE_DECLINE: calculate_cognitive_decline_risk,
    RiskCategory.METABOLIC_SYNDROME: calculate_metabolic_syndrome_risk,
    RiskCategory.STROKE: calculate_stroke_risk,
}


def calculate_risk(category: RiskCategory, patient: PatientData, lifestyle: Optional[Lifestyle] = None) -> RiskAssessmentResult:
    return RISK_SCORERS[category](patient, lifestyle)


def calculate_all_risks(patient: PatientData, lifestyle: Optional[Lifestyle] = None) -> List[RiskAssessmentResult]:
    """One result per registered category, in registry order."""
    return [scorer(patient, lifestyle) for scorer in RISK_SCORERS.values()]
