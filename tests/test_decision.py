try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import pytest

from damwatch.services.dam_registry import DamConfig
from damwatch.services.decision import (
    DEFAULT_STAGE_AREA_SQM,
    GateStatus,
    decide,
    decide_for_dam,
    overflow_volume,
)


@pytest.mark.parametrize(
    ("today", "yesterday", "kwargs", "expected"),
    [
        (101.0, 100.0, {}, GateStatus.EMERGENCY_RELEASE),
        (100.0, 100.0, {}, GateStatus.PREPARE_RELEASE),
        (101.0, 100.0, {"emergency_margin": 2.0}, GateStatus.PREPARE_RELEASE),
        (92.0, 90.5, {}, GateStatus.PREPARE_RELEASE),
        (95.0, 90.0, {"rate_threshold": 10.0}, GateStatus.PREPARE_RELEASE),
        (92.0, 91.5, {}, GateStatus.WARN),
        (80.0, 78.75, {}, GateStatus.WARN),
        (89.0, 78.0, {"rate_threshold": 20.0}, GateStatus.WARN),
        (80.0, 79.5, {}, GateStatus.NO_ACTION),
        (80.0, 85.0, {}, GateStatus.NO_ACTION),
    ],
)
def test_decide_rules_in_priority_order(today, yesterday, kwargs, expected) -> None:
    decision = decide(today, yesterday, 100.0, **kwargs)
    assert decision.status is expected


def test_decide_reports_thresholds_and_projection() -> None:
    decision = decide(92.0, 91.5, 100.0)

    assert decision.rate_of_change_m_per_day == pytest.approx(0.5)
    assert decision.predicted_next_level_m == pytest.approx(92.5)
    assert decision.warn_threshold_m == pytest.approx(90.0)
    assert decision.emergency_threshold_m == pytest.approx(100.0)
    assert decision.overflow_m3 == 0.0


def test_overflow_uses_stage_area_above_capacity() -> None:
    assert overflow_volume(102.0, 100.0) == pytest.approx(2 * DEFAULT_STAGE_AREA_SQM)
    assert overflow_volume(100.0, 100.0) == 0.0
    assert overflow_volume(103.0, 100.0, stage_area=lambda _: 10.0) == pytest.approx(30.0)

    decision = decide(101.0, 100.0, 100.0)
    assert decision.overflow_m3 == pytest.approx(DEFAULT_STAGE_AREA_SQM)


def test_decide_for_dam_applies_configured_thresholds() -> None:
    config = DamConfig(
        id="test_dam",
        capacity_m=200.0,
        warn_fraction=0.5,
        rate_threshold_m_per_day=5.0,
        emergency_margin_m=1.0,
    )

    decision = decide_for_dam(150.0, 149.0, config)
    assert decision.status is GateStatus.WARN
    assert decision.warn_threshold_m == pytest.approx(100.0)

    decision = decide_for_dam(200.5, 200.0, config)
    assert decision.status is GateStatus.PREPARE_RELEASE

    decision = decide_for_dam(201.5, 200.0, config)
    assert decision.status is GateStatus.EMERGENCY_RELEASE


def test_decision_payload_uses_client_field_names() -> None:
    payload = decide(101.0, 100.0, 100.0).to_payload()

    assert payload["status"] == "EMERGENCY_RELEASE"
    assert set(payload) == {
        "status",
        "todayLevelM",
        "yesterdayLevelM",
        "damCapacityM",
        "rateOfChangeMPerDay",
        "predictedNextLevelM",
        "overflowM3",
        "warnThresholdM",
        "emergencyThresholdM",
    }
