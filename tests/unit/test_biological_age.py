"""
Unit Tests for the biological age estimators.
"""
import math

import pytest

from data_processing.biological_age import (
    KLEMERA_DOUBAL,
    NOT_COMPUTED,
    PHENOTYPIC,
    SIMPLIFIED,
    calculate_biological_age,
    calculate_klemera_doubal_age,
    calculate_metabolic_age,
    calculate_phenotypic_age,
    calculate_simplified_biological_age,
)
from models.patient import PatientData


# Six phenotypic markers whose mortality score is negative, so the
# closed-form inverse is defined.
INVERTIBLE_PANEL = {
    "albumin": 45,
    "lymphocyte_percent": 35,
    "glucose": 1.0,
    "creatinine": 1.0,
    "c_reactive_protein": 0.5,
    "white_blood_cells": 2.0,
}


class TestSimplifiedBiologicalAge:

    def test_penalties_stack(self):
        panel = {"glucose": 130, "creatinine": 1.5, "c_reactive_protein": 4}
        # +3 glucose, +2 creatinine, +2 CRP, +1 thin panel
        assert calculate_simplified_biological_age(50, panel) == 58

    def test_prediabetic_glucose(self):
        panel = {"glucose": 110, "a": 1, "b": 1, "c": 1, "d": 1}
        assert calculate_simplified_biological_age(50, panel) == 51

    def test_empty_panel_only_thin_penalty(self):
        assert calculate_simplified_biological_age(40, {}) == 41
        assert calculate_simplified_biological_age(40, None) == 41

    def test_none_entries_do_not_count(self, full_panel):
        panel = {name: None for name in full_panel}
        assert calculate_simplified_biological_age(40, panel) == 41

    def test_clamped(self):
        assert calculate_simplified_biological_age(120, {"glucose": 200}) == 120


class TestPhenotypicAge:

    def test_too_few_markers_uses_fallback(self):
        panel = {"glucose": 130, "creatinine": 1.5, "c_reactive_protein": 4, "albumin": 4.0}
        assert calculate_phenotypic_age(50, panel) == calculate_simplified_biological_age(50, panel)

    def test_five_markers_uses_fallback(self):
        panel = dict(list(INVERTIBLE_PANEL.items())[:5])
        assert calculate_phenotypic_age(50, panel) == calculate_simplified_biological_age(50, panel)

    def test_invertible_score(self):
        age = calculate_phenotypic_age(50, INVERTIBLE_PANEL)
        assert 0 <= age <= 120
        assert age == pytest.approx(68.8, abs=0.5)
        assert age != calculate_simplified_biological_age(50, INVERTIBLE_PANEL)

    def test_undefined_inverse_falls_back(self, full_panel):
        # Conventional units push e^score past 1
        assert calculate_phenotypic_age(50, full_panel) == calculate_simplified_biological_age(50, full_panel)

    def test_never_nan(self):
        panel = {name: 1e300 for name in INVERTIBLE_PANEL}
        panel["lymphocyte_percent"] = 1e300
        age = calculate_phenotypic_age(50, panel)
        assert math.isfinite(age)
        assert 0 <= age <= 120

    def test_malformed_values_are_absent(self):
        panel = dict(INVERTIBLE_PANEL)
        panel["albumin"] = float("nan")
        panel["glucose"] = -5
        # Four valid markers left
        assert calculate_phenotypic_age(50, panel) == calculate_simplified_biological_age(50, panel)


class TestKlemeraDoubalAge:

    def test_weighted_mean_of_implied_ages(self):
        panel = {"systolic_bp": 140, "total_cholesterol": 240, "glucose": 110}
        # Each marker one SD above its mean
        expected = (0.16 * 52.5 + 0.04 * 55 + 0.09 * (50 + 1 / 0.3)) / 0.29
        assert calculate_klemera_doubal_age(50, panel) == pytest.approx(expected)

    def test_markers_at_population_mean(self):
        panel = {"systolic_bp": 120, "total_cholesterol": 200, "glucose": 90, "albumin": 4.0}
        assert calculate_klemera_doubal_age(45, panel) == pytest.approx(45)

    def test_negative_coefficient_marker(self):
        # Low albumin, negative coefficient: implied age goes up
        panel = {"systolic_bp": 120, "total_cholesterol": 200, "albumin": 3.5}
        assert calculate_klemera_doubal_age(45, panel) > 45

    def test_too_few_markers_uses_fallback(self):
        panel = {"systolic_bp": 140, "glucose": 110}
        assert calculate_klemera_doubal_age(50, panel) == calculate_simplified_biological_age(50, panel)

    def test_clamped(self):
        panel = {"systolic_bp": 400, "total_cholesterol": 600, "glucose": 500}
        assert calculate_klemera_doubal_age(100, panel) == 120


class TestMetabolicAge:

    def test_worst_case_adjustments(self):
        panel = {
            "glucose": 130,
            "hba1c": 7.0,
            "insulin": 25,
            "triglycerides": 250,
            "hdl_cholesterol": 35,
            "ldl_cholesterol": 170,
        }
        assert calculate_metabolic_age(40, panel, bmi=32) == 63

    def test_optimal_adjustments(self):
        panel = {
            "glucose": 90,
            "insulin": 2,
            "triglycerides": 80,
            "hdl_cholesterol": 70,
            "ldl_cholesterol": 90,
        }
        assert calculate_metabolic_age(40, panel, bmi=22) == 35

    def test_hba1c_bands_do_not_stack(self):
        assert calculate_metabolic_age(40, {"hba1c": 7.0}) == 45
        assert calculate_metabolic_age(40, {"hba1c": 6.0}) == 43

    def test_bmi_bands(self):
        assert calculate_metabolic_age(40, {}, bmi=31) == 43
        assert calculate_metabolic_age(40, {}, bmi=27) == 41
        assert calculate_metabolic_age(40, {}, bmi=17) == 41
        assert calculate_metabolic_age(40, {}, bmi=22) == 40
        assert calculate_metabolic_age(40, {}) == 40

    def test_clamped_to_bounds(self):
        assert calculate_metabolic_age(2, {"hdl_cholesterol": 70, "ldl_cholesterol": 90, "insulin": 2}) == 0
        assert calculate_metabolic_age(118, {"glucose": 200, "hba1c": 8}) == 120

    @pytest.mark.parametrize("marker,values", [
        ("glucose", [70, 90, 100, 101, 126, 127, 300]),
        ("hba1c", [4.5, 5.7, 5.8, 6.5, 6.6, 9]),
        ("ldl_cholesterol", [60, 99, 100, 160, 161, 250]),
        ("triglycerides", [50, 99, 100, 200, 201, 600]),
    ])
    def test_non_decreasing(self, marker, values):
        ages = [calculate_metabolic_age(50, {marker: v}) for v in values]
        assert ages == sorted(ages)

    def test_non_increasing_in_hdl(self):
        ages = [calculate_metabolic_age(50, {"hdl_cholesterol": v}) for v in [20, 39, 40, 60, 61, 100]]
        assert ages == sorted(ages, reverse=True)


class TestCalculateBiologicalAge:

    def test_age_advantage_identity(self, healthy_patient, high_risk_patient):
        for patient in (healthy_patient, high_risk_patient):
            result = calculate_biological_age(patient)
            assert result.age_advantage == patient.age - result.average_biological_age

    def test_average_of_three_methods(self, high_risk_patient):
        result = calculate_biological_age(high_risk_patient)
        expected = (result.phenotypic_age + result.klemera_doubal_age + result.metabolic_age) / 3
        assert result.average_biological_age == pytest.approx(expected)

    def test_telomere_not_computed(self, healthy_patient):
        result = calculate_biological_age(healthy_patient)
        assert result.telomere_age is None
        assert result.methods["telomere_age"] == NOT_COMPUTED

    def test_methods_report_fallbacks(self, healthy_patient):
        result = calculate_biological_age(healthy_patient)
        assert result.methods["phenotypic_age"] == SIMPLIFIED
        assert result.methods["klemera_doubal_age"] == SIMPLIFIED

    def test_methods_report_full_calculations(self):
        panel = dict(INVERTIBLE_PANEL, systolic_bp=130, hemoglobin=14)
        patient = PatientData(age=50, gender="male", height_cm=180, weight_kg=80, biomarkers=panel)
        result = calculate_biological_age(patient)
        assert result.methods["phenotypic_age"] == PHENOTYPIC
        assert result.methods["klemera_doubal_age"] == KLEMERA_DOUBAL

    def test_younger_profile_has_positive_advantage(self):
        panel = {"hdl_cholesterol": 75, "ldl_cholesterol": 80, "triglycerides": 70, "insulin": 2}
        patient = PatientData(age=50, gender="female", height_cm=165, weight_kg=58, biomarkers=panel)
        result = calculate_biological_age(patient)
        assert result.metabolic_age == 45
        # Phenotypic and KDM fall back: 50 + 1 for a four-marker panel
        assert result.average_biological_age == pytest.approx((51 + 51 + 45) / 3)
        assert result.age_advantage == pytest.approx(50 - (51 + 51 + 45) / 3)

    def test_deterministic(self, high_risk_patient):
        assert calculate_biological_age(high_risk_patient) == calculate_biological_age(high_risk_patient)
