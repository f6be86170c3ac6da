"""
Unit Tests for questionnaire payload mapping.
"""
from datetime import date

import pytest
from pydantic import ValidationError

from data_processing.form_mapping import (
    AssessmentInputError,
    build_assessment_input,
    build_biomarker_panel,
    build_lifestyle,
    canon_name,
)
from models.patient import Gender


def base_form(**overrides):
    form = {
        "age": "52",
        "gender": "Male",
        "height": "180",
        "weight": "81",
    }
    form.update(overrides)
    return form


class TestCanonName:

    @pytest.mark.parametrize("raw,expected", [
        ("totalCholesterol", "total_cholesterol"),
        ("systolicBP", "systolic_bp"),
        ("Total Cholesterol", "total_cholesterol"),
        ("dateOfBirth", "date_of_birth"),
        ("crp", "c_reactive_protein"),
        ("HbA1c", "hba1c"),
        ("eGFR", "egfr"),
        ("height", "height_cm"),
        ("vitaminB12", "vitamin_b12"),
        ("waist-circumference", "waist_circumference"),
    ])
    def test_names(self, raw, expected):
        assert canon_name(raw) == expected


class TestBuildBiomarkerPanel:

    def test_blank_strings_are_absent(self):
        panel = build_biomarker_panel({"glucose": "", "hba1c": "  ", "egfr": "0"})
        assert panel["glucose"] is None
        assert panel["hba1c"] is None
        assert panel["egfr"] == 0.0

    def test_unknown_fields_ignored(self):
        panel = build_biomarker_panel({"favourite_colour": "blue", "glucose": "95"})
        assert panel == {"glucose": 95.0}

    def test_flags(self):
        panel = build_biomarker_panel({"smoking": "yes", "bp_medication": "no", "diabetes": ""})
        assert panel["smoking"] == 1.0
        assert panel["bp_medication"] == 0.0
        assert panel["diabetes"] is None

    def test_diabetes_from_health_conditions(self):
        panel = build_biomarker_panel({"health_conditions": ["Type 2 Diabetes", "Asthma"]})
        assert panel["diabetes"] == 1.0

    def test_malformed_numbers(self):
        panel = build_biomarker_panel({"glucose": "abc", "insulin": "-4", "triglycerides": "1,200"})
        assert panel["glucose"] is None
        assert panel["insulin"] is None
        assert panel["triglycerides"] == 1200.0


class TestBuildLifestyle:

    def test_empty(self):
        lifestyle = build_lifestyle({})
        assert lifestyle.exercise_frequency is None
        assert lifestyle.family_diabetes_history is False

    @pytest.mark.parametrize("raw,expected", [("0", 0), ("1-2", 1), ("3-4", 3), ("5+", 5), ("<1", 0), ("", None)])
    def test_exercise_ranges(self, raw, expected):
        assert build_lifestyle({"exercise_frequency": raw}).exercise_frequency == expected

    def test_scales(self):
        lifestyle = build_lifestyle({
            "sleep_quality": "Good",
            "vegetable_servings": "0-1",
            "social_satisfaction": "very-satisfied",
        })
        assert lifestyle.sleep_quality == 3
        assert lifestyle.diet_quality == 1
        assert lifestyle.social_engagement == 5

    def test_family_history_keywords(self):
        lifestyle = build_lifestyle({"family_history": "Mother: type 2 diabetes; grandfather had Alzheimer's"})
        assert lifestyle.family_diabetes_history
        assert lifestyle.family_dementia_history
        assert not lifestyle.family_cancer_history
        assert not lifestyle.family_stroke_history

    def test_health_conditions(self):
        lifestyle = build_lifestyle({"health_conditions": ["AFib", "Sleep apnea"]})
        assert lifestyle.atrial_fibrillation
        assert lifestyle.sleep_apnea
        assert not lifestyle.depression_history

    def test_boolean_fields(self):
        lifestyle = build_lifestyle({"smoking_history": "yes", "hormone_replacement_therapy": "false"})
        assert lifestyle.smoking_history is True
        assert lifestyle.hormone_replacement_therapy is False


class TestBuildAssessmentInput:

    def test_camel_case_form(self):
        form = base_form(
            systolicBP="135",
            diastolicBP="88",
            totalCholesterol="210",
            hdlCholesterol="",
            exerciseFrequency="3-4",
            familyHistory="father had a stroke",
        )
        patient, lifestyle = build_assessment_input(form)
        assert patient.age == 52
        assert patient.gender == Gender.MALE
        assert patient.height_cm == 180
        assert patient.weight_kg == 81
        assert patient.systolic_bp == 135
        assert patient.diastolic_bp == 88
        assert patient.biomarkers["systolic_bp"] == 135
        assert patient.biomarkers["total_cholesterol"] == 210
        assert patient.biomarkers["hdl_cholesterol"] is None
        assert lifestyle.exercise_frequency == 3
        assert lifestyle.family_stroke_history

    def test_nested_biomarkers(self):
        patient, _ = build_assessment_input(base_form(biomarkers={"eGFR": "72", "crp": "2.1"}))
        assert patient.biomarkers["egfr"] == 72
        assert patient.biomarkers["c_reactive_protein"] == 2.1

    def test_age_from_date_of_birth(self):
        form = base_form(dateOfBirth="1970-01-01")
        del form["age"]
        patient, _ = build_assessment_input(form)
        today = date.today()
        assert patient.age == today.year - 1970 - (1 if (today.month, today.day) < (1, 1) else 0)

    def test_missing_fields(self):
        with pytest.raises(AssessmentInputError) as exc:
            build_assessment_input({"gender": "", "height": "170"})
        assert exc.value.fields == ["dateOfBirth", "gender", "weight"]
        assert "Missing required fields" in exc.value.message

    def test_zero_height_is_missing(self):
        with pytest.raises(AssessmentInputError) as exc:
            build_assessment_input(base_form(height="0"))
        assert exc.value.fields == ["height"]

    def test_unknown_gender_rejected(self):
        with pytest.raises(ValidationError):
            build_assessment_input(base_form(gender="unknown"))

    def test_age_out_of_range_rejected(self):
        with pytest.raises(ValidationError):
            build_assessment_input(base_form(age="130"))
