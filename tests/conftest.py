"""
Pytest Configuration and Fixtures

Shared patient records for the scoring and API tests.
"""
import pytest

from models.patient import Lifestyle, PatientData


@pytest.fixture
def healthy_patient() -> PatientData:
    """30 year old woman, BMI 22, normal BP, short panel."""
    return PatientData(
        age=30,
        gender="female",
        height_cm=170,
        weight_kg=63.6,
        systolic_bp=110,
        diastolic_bp=70,
        biomarkers={},
    )


@pytest.fixture
def full_panel() -> dict:
    """Routine lab panel in conventional US units."""
    return {
        "albumin": 4.2,
        "creatinine": 0.9,
        "glucose": 95,
        "c_reactive_protein": 1.0,
        "lymphocyte_percent": 30,
        "alkaline_phosphatase": 70,
        "white_blood_cells": 6,
        "mean_cell_volume": 90,
        "red_cell_distribution_width": 13,
        "total_cholesterol": 190,
        "hdl_cholesterol": 55,
        "ldl_cholesterol": 110,
        "triglycerides": 120,
        "hemoglobin": 14,
        "systolic_bp": 125,
    }


@pytest.fixture
def high_risk_patient() -> PatientData:
    """70 year old man with metabolic, vascular and renal findings."""
    return PatientData(
        age=70,
        gender="male",
        height_cm=175,
        weight_kg=98,
        systolic_bp=165,
        diastolic_bp=95,
        biomarkers={
            "glucose": 135,
            "hba1c": 7.1,
            "total_cholesterol": 260,
            "hdl_cholesterol": 35,
            "triglycerides": 240,
            "waist_circumference": 110,
            "egfr": 25,
            "albumin_creatinine_ratio": 400,
            "c_reactive_protein": 5,
            "smoking": 1,
            "bp_medication": 1,
        },
    )


@pytest.fixture
def sedentary_lifestyle() -> Lifestyle:
    return Lifestyle(exercise_frequency=0, family_diabetes_history=True)
