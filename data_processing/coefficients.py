"""
Published coefficients and band tables used by the biological-age estimators
and the disease-risk scorers.

Everything here is read-only. When a guideline is revised, this is the only
module that should change.
"""
from types import MappingProxyType
from typing import NamedTuple, Tuple

from models.patient import Gender
from models.health_assessment import RiskLevel


# -------------------------------------------------------------------
# Gender branch selection
# -------------------------------------------------------------------

# The clinical equations below are published for male and female only.
# Patients recorded as "other" are scored on the female branch.
GENDER_COEFFICIENT_BRANCH = MappingProxyType({
    Gender.MALE: Gender.MALE,
    Gender.FEMALE: Gender.FEMALE,
    Gender.OTHER: Gender.FEMALE,
})


def coefficient_branch(gender: Gender) -> Gender:
    return GENDER_COEFFICIENT_BRANCH[gender]


# -------------------------------------------------------------------
# Phenotypic Age (Levine et al. 2018)
# -------------------------------------------------------------------

PHENOTYPIC_AGE_WEIGHTS = MappingProxyType({
    "albumin": -0.0336,
    "creatinine": 0.0095,
    "glucose": 0.1953,
    "c_reactive_protein": 0.0954,       # applied to ln(CRP + 1)
    "lymphocyte_percent": -0.0120,
    "alkaline_phosphatase": 0.0268,
    "white_blood_cells": 0.0554,
    "mean_cell_volume": 0.0026,
    "red_cell_distribution_width": 0.3306,
})
PHENOTYPIC_AGE_MIN_MARKERS = 6
PHENOTYPIC_AGE_INTERCEPT = 141.50
PHENOTYPIC_AGE_GAMMA = -0.00553
PHENOTYPIC_AGE_SLOPE = 0.09165


# -------------------------------------------------------------------
# Klemera-Doubal method (Klemera & Doubal 2006)
# -------------------------------------------------------------------

class KdmBiomarker(NamedTuple):
    name: str
    coeff: float
    mean: float
    std: float


KDM_BIOMARKERS: Tuple[KdmBiomarker, ...] = (
    KdmBiomarker("systolic_bp", 0.4, 120.0, 20.0),
    KdmBiomarker("total_cholesterol", 0.2, 200.0, 40.0),
    KdmBiomarker("glucose", 0.3, 90.0, 20.0),
    KdmBiomarker("creatinine", 0.35, 1.0, 0.3),
    KdmBiomarker("albumin", -0.25, 4.0, 0.5),
    KdmBiomarker("hemoglobin", -0.15, 14.0, 2.0),
    KdmBiomarker("white_blood_cells", 0.1, 7.0, 2.0),
)
KDM_MIN_MARKERS = 3


# -------------------------------------------------------------------
# Simplified fallback
# -------------------------------------------------------------------

SIMPLIFIED_MIN_PANEL_SIZE = 5

AGE_BOUNDS = (0.0, 120.0)
PERCENT_BOUNDS = (0.0, 100.0)


# -------------------------------------------------------------------
# ASCVD pooled cohort style equation (2018 AHA/ACC)
# -------------------------------------------------------------------

class AscvdCoefficients(NamedTuple):
    ln_age: float
    ln_total_cholesterol: float
    ln_hdl: float
    ln_treated_sbp: float
    ln_untreated_sbp: float
    smoker: float
    diabetes: float
    baseline_survival: float
    mean_score: float


ASCVD_COEFFICIENTS = MappingProxyType({
    Gender.MALE: AscvdCoefficients(
        ln_age=12.344,
        ln_total_cholesterol=11.853,
        ln_hdl=-7.990,
        ln_treated_sbp=1.797,
        ln_untreated_sbp=1.764,
        smoker=7.837,
        diabetes=0.658,
        baseline_survival=0.9144,
        mean_score=61.18,
    ),
    Gender.FEMALE: AscvdCoefficients(
        ln_age=17.114,
        ln_total_cholesterol=-1.499,
        ln_hdl=1.957,
        ln_treated_sbp=2.019,
        ln_untreated_sbp=2.055,
        smoker=7.574,
        diabetes=0.661,
        baseline_survival=0.9665,
        mean_score=86.61,
    ),
})
ASCVD_AGE_RANGE = (40, 79)
ASCVD_DEFAULT_TOTAL_CHOLESTEROL = 200.0
ASCVD_DEFAULT_HDL = 50.0

# (upper bound exclusive, level) on the 10-year percentage
ASCVD_LEVEL_BANDS = (
    (5.0, RiskLevel.LOW),
    (7.5, RiskLevel.MODERATE),
    (20.0, RiskLevel.HIGH),
)


# -------------------------------------------------------------------
# FINDRISC (Lindström & Tuomilehto 2003)
# -------------------------------------------------------------------

class WaistThresholds(NamedTuple):
    increased: float
    high: float


FINDRISC_WAIST = MappingProxyType({
    Gender.MALE: WaistThresholds(94.0, 102.0),
    Gender.FEMALE: WaistThresholds(80.0, 88.0),
})

# (upper bound exclusive, ten year %, level) on the point total
FINDRISC_BANDS = (
    (7, 1.0, RiskLevel.LOW),
    (12, 4.0, RiskLevel.MODERATE),
    (15, 17.0, RiskLevel.HIGH),
    (21, 33.0, RiskLevel.VERY_HIGH),
)
FINDRISC_TOP_BAND = (50.0, RiskLevel.VERY_HIGH)


# -------------------------------------------------------------------
# KDIGO 2012 CKD heat map
# -------------------------------------------------------------------

# (lower bound inclusive, points), evaluated top-down
EGFR_BANDS = (
    (90.0, 1),
    (60.0, 2),
    (45.0, 3),
    (30.0, 4),
    (15.0, 5),
)
EGFR_FLOOR_POINTS = 6

# (upper bound exclusive, points)
ALBUMINURIA_BANDS = (
    (30.0, 1),
    (300.0, 2),
)
ALBUMINURIA_TOP_POINTS = 3

# (upper bound inclusive, level) on the combined score
KIDNEY_LEVEL_BANDS = (
    (3, RiskLevel.LOW),
    (5, RiskLevel.MODERATE),
    (7, RiskLevel.HIGH),
)
KIDNEY_RISK_PER_POINT = 5.0
KIDNEY_RISK_CAP = 50.0


# -------------------------------------------------------------------
# Heuristic categories
# -------------------------------------------------------------------
# Point values below are screening approximations, not validated
# published equations.

# (upper bound inclusive, ten year %, level)
CANCER_BANDS = (
    (5, 2.0, RiskLevel.LOW),
    (10, 8.0, RiskLevel.MODERATE),
    (15, 15.0, RiskLevel.HIGH),
    (20, 25.0, RiskLevel.VERY_HIGH),
)
CANCER_TOP_BAND = (35.0, RiskLevel.VERY_HIGH)

# (upper bound inclusive, ten year %)
COGNITIVE_RISK_UNDER_65 = ((5, 1.0), (10, 3.0), (15, 7.0))
COGNITIVE_RISK_UNDER_65_TOP = 12.0
COGNITIVE_RISK_65_PLUS = ((8, 5.0), (15, 15.0), (20, 30.0))
COGNITIVE_RISK_65_PLUS_TOP = 45.0

# (upper bound inclusive, level)
COGNITIVE_LEVEL_BANDS = (
    (6, RiskLevel.LOW),
    (12, RiskLevel.MODERATE),
    (18, RiskLevel.HIGH),
)

METABOLIC_SYNDROME_WAIST = MappingProxyType({
    Gender.MALE: 102.0,
    Gender.FEMALE: 88.0,
})
METABOLIC_SYNDROME_HDL = MappingProxyType({
    Gender.MALE: 40.0,
    Gender.FEMALE: 50.0,
})
METABOLIC_SYNDROME_CRITERIA_NEEDED = 3
# criteria met -> ten year % of developing the syndrome
METABOLIC_SYNDROME_DEVELOPMENT_RISK = MappingProxyType({0: 5.0, 1: 15.0, 2: 35.0})
METABOLIC_SYNDROME_LEVELS = MappingProxyType({
    0: RiskLevel.LOW,
    1: RiskLevel.MODERATE,
    2: RiskLevel.HIGH,
})

# (upper bound inclusive, ten year %) on Framingham points
FRAMINGHAM_STROKE_BANDS = (
    (0, 1.0),
    (3, 2.0),
    (6, 4.0),
    (9, 7.0),
    (12, 11.0),
    (15, 16.0),
    (18, 23.0),
    (21, 32.0),
)
FRAMINGHAM_STROKE_TOP = 42.0
STROKE_EXTRA_FACTOR_CAP = 20.0
STROKE_RISK_CAP = 60.0

# (upper bound exclusive, level) on the 10-year percentage
STROKE_LEVEL_BANDS = (
    (5.0, RiskLevel.LOW),
    (10.0, RiskLevel.MODERATE),
    (20.0, RiskLevel.HIGH),
)
