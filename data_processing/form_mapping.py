"""
Questionnaire payload -> typed assessment records.

The assessment form posts a flat dict of strings: camelCase keys, blank
strings for untouched inputs, select options such as ``"1-2"`` or ``"5+"``
and a few free-text boxes. Everything here turns that into a
``PatientData`` / ``Lifestyle`` pair; the scoring code never sees raw strings.
"""
import re
from typing import Any, Dict, Iterable, List, Optional, Tuple

from common.config import logger
from common.utils import as_float, clean_value
from data_processing.calculate_age import calculate_chronological_age
from models.patient import Lifestyle, PatientData


class AssessmentInputError(ValueError):
    """Raised when a submission lacks the fields every assessment needs."""

    def __init__(self, message: str, fields: Optional[List[str]] = None):
        super().__init__(message)
        self.message = message
        self.fields = fields or []


BIOMARKER_NAMES = frozenset({
    "glucose", "fasting_glucose", "hba1c", "insulin", "homa_ir",
    "total_cholesterol", "hdl_cholesterol", "ldl_cholesterol", "triglycerides",
    "creatinine", "egfr", "albumin", "albumin_creatinine_ratio", "proteinuria",
    "c_reactive_protein", "white_blood_cells", "lymphocyte_percent", "hemoglobin",
    "mean_cell_volume", "red_cell_distribution_width", "alkaline_phosphatase",
    "systolic_bp", "diastolic_bp", "waist_circumference",
    "smoking", "diabetes", "bp_medication", "previous_mi", "atrial_fibrillation", "lvh",
    "estradiol", "psa", "amyloid_beta_42", "tau_protein", "neurofilament_light",
    "vitamin_b12", "vitamin_d", "folate", "homocysteine", "cortisol", "apoe_e4_carrier",
    "adiponectin", "uric_acid", "carotid_stenosis", "fibrinogen", "d_dimer",
})

# Yes/no markers stored as 1/0 in the panel
FLAG_BIOMARKERS = frozenset({
    "smoking", "diabetes", "bp_medication", "previous_mi", "atrial_fibrillation", "lvh", "apoe_e4_carrier",
})

# Form names that do not snake_case onto a canonical name
NAME_ALIASES = {
    "crp": "c_reactive_protein",
    "hs_crp": "c_reactive_protein",
    "wbc": "white_blood_cells",
    "mcv": "mean_cell_volume",
    "rdw": "red_cell_distribution_width",
    "alp": "alkaline_phosphatase",
    "acr": "albumin_creatinine_ratio",
    "hb_a1c": "hba1c",
    "e_gfr": "egfr",
    "hdl": "hdl_cholesterol",
    "ldl": "ldl_cholesterol",
    "height": "height_cm",
    "weight": "weight_kg",
    "smoking_status": "smoking",
    "on_bp_medication": "bp_medication",
}

TRUE_WORDS = {"yes", "y", "true", "1", "on", "current", "currently"}

SLEEP_QUALITY_SCALE = {"poor": 1, "fair": 2, "good": 3, "excellent": 4}
SOCIAL_SATISFACTION_SCALE = {
    "very-dissatisfied": 1,
    "dissatisfied": 2,
    "neutral": 3,
    "satisfied": 4,
    "very-satisfied": 5,
}
# Daily vegetable/fruit servings -> diet quality 1 (poor) - 4 (excellent)
VEGETABLE_SERVINGS_SCALE = {"0-1": 1, "2-3": 2, "4-5": 3, "6+": 4}

FAMILY_HISTORY_KEYWORDS = {
    "family_diabetes_history": ("diabet",),
    "family_cancer_history": ("cancer", "tumor", "tumour", "carcinoma", "leukemia", "lymphoma"),
    "family_dementia_history": ("dementia", "alzheimer"),
    "family_stroke_history": ("stroke",),
}

HEALTH_CONDITION_KEYWORDS = {
    "atrial_fibrillation": ("atrial fibrillation", "afib", "a-fib"),
    "sleep_apnea": ("sleep apnea", "sleep apnoea"),
    "depression_history": ("depression",),
    "cardiovascular_disease_history": ("heart attack", "myocardial", "coronary", "heart disease"),
}

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def canon_name(name: str) -> str:
    """``totalCholesterol`` / ``Total Cholesterol`` / ``crp`` -> canonical snake_case name."""
    key = _CAMEL_BOUNDARY.sub("_", str(name).strip())
    key = re.sub(r"[\s\-]+", "_", key).lower()
    return NAME_ALIASES.get(key, key)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip()) or value == []


def _as_flag(value: Any) -> Optional[bool]:
    if _is_blank(value):
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value == 1
    s = str(value).strip().lower()
    return s in TRUE_WORDS


def _range_lower_bound(value: Any) -> Optional[float]:
    """``"3-4"`` -> 3, ``"5+"`` -> 5, ``"<5"`` -> 0, plain numbers pass through."""
    if _is_blank(value):
        return None
    number = as_float(value)
    if number is not None:
        return clean_value(number)
    s = str(value).strip()
    if s.startswith("<"):
        return 0.0
    match = re.match(r"(\d+(?:\.\d+)?)", s)
    return float(match.group(1)) if match else None


def _scaled(value: Any, scale: Dict[str, int]) -> Optional[float]:
    if _is_blank(value):
        return None
    key = str(value).strip().lower()
    if key in scale:
        return float(scale[key])
    return clean_value(value)


def _text(value: Any) -> str:
    if _is_blank(value):
        return ""
    if isinstance(value, (list, tuple)):
        return " ".join(str(v) for v in value).lower()
    return str(value).lower()


def _mentions(text: str, keywords: Iterable[str]) -> bool:
    return any(k in text for k in keywords)


# -------------------------------------------------------------------
# Builders
# -------------------------------------------------------------------

def _collect_fields(form: Dict[str, Any]) -> Dict[str, Any]:
    """Flatten the payload (including a nested ``biomarkers`` dict) onto canonical names."""
    fields: Dict[str, Any] = {}
    for key, value in form.items():
        if key == "biomarkers" and isinstance(value, dict):
            for b_key, b_value in value.items():
                fields[canon_name(b_key)] = b_value
            continue
        fields[canon_name(key)] = value
    return fields


def build_biomarker_panel(fields: Dict[str, Any]) -> Dict[str, Optional[float]]:
    panel: Dict[str, Optional[float]] = {}
    for name in BIOMARKER_NAMES:
        if name not in fields:
            continue
        raw = fields[name]
        if name in FLAG_BIOMARKERS:
            flag = _as_flag(raw)
            panel[name] = None if flag is None else float(flag)
        else:
            panel[name] = None if _is_blank(raw) else clean_value(raw)

    conditions = _text(fields.get("health_conditions"))
    if panel.get("diabetes") is None and "diabet" in conditions:
        panel["diabetes"] = 1.0
    return panel


def build_lifestyle(fields: Dict[str, Any]) -> Lifestyle:
    data: Dict[str, Any] = {}

    for name, spec in Lifestyle.model_fields.items():
        if name not in fields or _is_blank(fields[name]):
            continue
        if spec.annotation is bool:
            data[name] = bool(_as_flag(fields[name]))
        else:
            data[name] = fields[name]

    if "exercise_frequency" in fields:
        data["exercise_frequency"] = _range_lower_bound(fields["exercise_frequency"])
    if "sleep_quality" in fields:
        data["sleep_quality"] = _scaled(fields["sleep_quality"], SLEEP_QUALITY_SCALE)
    if data.get("diet_quality") is None and "vegetable_servings" in fields:
        data["diet_quality"] = _scaled(fields["vegetable_servings"], VEGETABLE_SERVINGS_SCALE)
    if data.get("social_engagement") is None and "social_satisfaction" in fields:
        data["social_engagement"] = _scaled(fields["social_satisfaction"], SOCIAL_SATISFACTION_SCALE)

    family_history = _text(fields.get("family_history"))
    for flag, keywords in FAMILY_HISTORY_KEYWORDS.items():
        if family_history and _mentions(family_history, keywords):
            data[flag] = True

    conditions = _text(fields.get("health_conditions"))
    for flag, keywords in HEALTH_CONDITION_KEYWORDS.items():
        if conditions and _mentions(conditions, keywords):
            data[flag] = True

    return Lifestyle(**data)


def _resolve_age(fields: Dict[str, Any]) -> Optional[int]:
    age = clean_value(fields.get("age"))
    if age is not None:
        return int(age)
    dob = fields.get("date_of_birth")
    if _is_blank(dob):
        return None
    return calculate_chronological_age(dob)


def build_assessment_input(form: Dict[str, Any]) -> Tuple[PatientData, Lifestyle]:
    """
    Map a raw questionnaire payload onto (PatientData, Lifestyle).

    Raises AssessmentInputError if gender, height, weight or age/date of
    birth are missing; pydantic's ValidationError if they are out of range.
    """
    fields = _collect_fields(form)

    age = _resolve_age(fields)
    height = clean_value(fields.get("height_cm"))
    weight = clean_value(fields.get("weight_kg"))
    gender = fields.get("gender")

    missing = []
    if age is None:
        missing.append("dateOfBirth")
    if _is_blank(gender):
        missing.append("gender")
    if not height:
        missing.append("height")
    if not weight:
        missing.append("weight")
    if missing:
        logger.info(f"Assessment submission missing fields: {missing}")
        raise AssessmentInputError(f"Missing required fields: {', '.join(missing)}", missing)

    panel = build_biomarker_panel(fields)
    systolic_bp = panel.get("systolic_bp")
    diastolic_bp = panel.get("diastolic_bp")

    patient = PatientData(
        age=age,
        gender=gender,
        height_cm=height,
        weight_kg=weight,
        systolic_bp=systolic_bp,
        diastolic_bp=diastolic_bp,
        biomarkers=panel,
    )
    return patient, build_lifestyle(fields)
