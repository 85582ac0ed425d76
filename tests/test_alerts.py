from __future__ import annotations

from athlete_vitals.alerts import build_clinical_alerts
from athlete_vitals.config import Thresholds
from athlete_vitals.models import Sample, Severity


def _red_flag_sample() -> Sample:
    return Sample(
        timestamp="2024-06-03 18:00",
        athlete_name="Jordan",
        heart_rate=115.0,
        ecg="AFib",
        spo2=90.0,
        menstrual_phase="Luteal_High_Symptoms",
        sleep_apnea_events=6.0,
        systolic_bp=150.0,
        diastolic_bp=95.0,
        energy_score=50.0,
        antioxidant_index=30.0,
        fall_detected=True,
    )


def test_every_rule_fires_in_fixed_order() -> None:
    alerts = build_clinical_alerts([_red_flag_sample()], Thresholds())
    assert [alert.rule_id for alert in alerts] == [
        "resting_heart_rate",
        "low_spo2",
        "hypertension",
        "abnormal_ecg",
        "sleep_apnea",
        "fall_detected",
        "low_energy",
        "low_antioxidant",
        "luteal_symptoms",
    ]
    assert [alert.severity.value for alert in alerts] == [
        "high",
        "high",
        "high",
        "high",
        "medium",
        "high",
        "medium",
        "low",
        "medium",
    ]


def test_alert_messages_carry_observed_values() -> None:
    messages = [alert.message for alert in build_clinical_alerts([_red_flag_sample()], Thresholds())]
    assert messages[0].startswith("Resting heart rate 115 bpm;")
    assert messages[1].startswith("Average SpO2 90.0%; below 92% threshold")
    assert messages[2].startswith("Blood pressure 150/95 mmHg;")
    assert messages[3].startswith('ECG flagged as "AFib";')
    assert messages[4].startswith("Sleep apnea events: 6 in window;")
    assert messages[6].startswith("Energy score 50 is low;")
    assert messages[7].startswith("Antioxidant index 30;")


def test_empty_window_has_no_alerts() -> None:
    assert build_clinical_alerts([]) == []


def test_absent_fields_skip_rules() -> None:
    assert build_clinical_alerts([Sample(timestamp="2024-06-01 08:00")], Thresholds()) == []


def test_healthy_window_has_no_alerts() -> None:
    sample = Sample(
        timestamp="2024-06-01 08:00",
        heart_rate=58.0,
        ecg=" Normal ",
        spo2=97.5,
        sleep_apnea_events=5.0,
        systolic_bp=140.0,
        diastolic_bp=90.0,
        energy_score=60.0,
        antioxidant_index=40.0,
        menstrual_phase="luteal",
    )
    assert build_clinical_alerts([sample], Thresholds()) == []


def test_latest_sample_drives_point_in_time_rules() -> None:
    earlier = Sample(timestamp="2024-06-01 08:00", heart_rate=130.0, fall_detected=True, spo2=85.0)
    latest = Sample(timestamp="2024-06-02 08:00", heart_rate=70.0, spo2=95.0)
    alerts = build_clinical_alerts([earlier, latest], Thresholds())
    assert [alert.rule_id for alert in alerts] == ["low_spo2"]
    assert alerts[0].severity is Severity.HIGH
    assert alerts[0].is_severe


def test_apnea_rule_uses_window_total() -> None:
    samples = [
        Sample(timestamp="2024-06-01 23:00", sleep_apnea_events=3.0),
        Sample(timestamp="2024-06-02 23:00", sleep_apnea_events=3.0),
    ]
    alerts = build_clinical_alerts(samples, Thresholds())
    assert [alert.rule_id for alert in alerts] == ["sleep_apnea"]
    assert alerts[0].severity is Severity.MEDIUM


def test_thresholds_are_configurable() -> None:
    sample = Sample(timestamp="2024-06-01 08:00", energy_score=70.0)
    assert build_clinical_alerts([sample], Thresholds()) == []
    alerts = build_clinical_alerts([sample], Thresholds(energy_low=75.0))
    assert [alert.rule_id for alert in alerts] == ["low_energy"]
    assert alerts[0].to_dict()["severity"] == "medium"


def test_blood_pressure_alert_needs_both_readings() -> None:
    diastolic_only = Sample(timestamp="2024-06-01 08:00", diastolic_bp=95.0)
    systolic_only = Sample(timestamp="2024-06-01 08:00", systolic_bp=150.0)
    assert build_clinical_alerts([diastolic_only], Thresholds()) == []
    assert build_clinical_alerts([systolic_only], Thresholds()) == []

    both = Sample(timestamp="2024-06-01 08:00", systolic_bp=120.0, diastolic_bp=95.0)
    (alert,) = build_clinical_alerts([both], Thresholds())
    assert alert.message.startswith("Blood pressure 120/95 mmHg")
    assert "n/a" not in alert.message
