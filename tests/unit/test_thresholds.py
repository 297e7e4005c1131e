"""
Unit tests for thresholds module.

Validates that policy constants are well formed and that the datacenter
risk tiers are classified as documented.
"""

import pytest

from validator_geo.core.models import RiskLevel
from validator_geo.thresholds import (
    ALERT_THRESHOLDS,
    CONSENSUS_SAFETY_FRACTION,
    DATACENTER_ALERT_SEVERITY,
    DATACENTER_RISK_THRESHOLDS,
    MAX_DATACENTER_ENTRIES,
    MIN_CLUSTER_SIZE,
    classify_concentration,
)


class TestDatacenterRiskThresholds:

    @pytest.mark.unit
    @pytest.mark.scoring
    def test_all_levels_defined(self):
        for level in RiskLevel:
            assert level in DATACENTER_RISK_THRESHOLDS

    @pytest.mark.unit
    @pytest.mark.scoring
    def test_policy_values(self):
        assert DATACENTER_RISK_THRESHOLDS[RiskLevel.HIGH]["min_stake_pct"] == 10.0
        assert DATACENTER_RISK_THRESHOLDS[RiskLevel.WARNING]["min_stake_pct"] == 3.0
        assert MIN_CLUSTER_SIZE == 3
        assert MAX_DATACENTER_ENTRIES == 20
        assert CONSENSUS_SAFETY_FRACTION == pytest.approx(1 / 3)

    @pytest.mark.unit
    def test_thresholds_have_justification(self):
        for level, config in DATACENTER_RISK_THRESHOLDS.items():
            assert len(config["justification"]) > 20, f"Justification for {level} too short"

    @pytest.mark.unit
    @pytest.mark.scoring
    @pytest.mark.parametrize("stake_percent,expected", [
        (25.0, RiskLevel.HIGH),
        (10.01, RiskLevel.HIGH),
        (10.0, RiskLevel.WARNING),
        (3.01, RiskLevel.WARNING),
        (3.0, RiskLevel.SAFE),
        (0.0, RiskLevel.SAFE),
    ])
    def test_classify_concentration(self, stake_percent, expected):
        assert classify_concentration(stake_percent) == expected


class TestAlertThresholds:

    @pytest.mark.unit
    def test_alert_thresholds_are_well_formed(self):
        required_fields = ["metric_name", "operator", "threshold_value", "severity", "justification"]
        for threshold in ALERT_THRESHOLDS:
            for field in required_fields:
                assert field in threshold, f"{threshold['metric_name']} missing field: {field}"
            assert threshold["severity"] in ("critical", "warning", "info")

    @pytest.mark.unit
    def test_safe_datacenters_never_alert(self):
        assert RiskLevel.SAFE not in DATACENTER_ALERT_SEVERITY
