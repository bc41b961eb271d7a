"""Tests for phased rollout control."""

import json

import pytest

from sitesync.errors import (
    ConfigurationError,
    DependencyNotMet,
    InvalidPercentage,
    NotFound,
    PhaseNotDeployed,
    StoreIOError,
)
from sitesync.models.rollout import PhaseStatus, RolloutPhase
from sitesync.services.rollout_service import (
    RolloutController,
    audience_bucket,
    load_phase_definitions,
    validate_phase_definitions,
)


class TestDeploy:
    """Dependency chain and idempotence of deploy."""

    def test_initial_state_is_pending(self, controller):
        phases = controller.status()
        assert [p.order for p in phases] == [1, 2, 3]
        assert all(p.status == PhaseStatus.PENDING for p in phases)

    def test_deploy_requires_previous_phase(self, controller):
        with pytest.raises(DependencyNotMet) as exc:
            controller.deploy(2)
        assert exc.value.required == 1
        assert controller.status()[1].status == PhaseStatus.PENDING

    def test_deploy_in_order(self, controller):
        controller.deploy(1)
        phase = controller.deploy(2)

        assert phase.is_deployed
        assert phase.deployed_at is not None

    def test_redeploy_is_idempotent(self, controller):
        first = controller.deploy(1)
        second = controller.deploy(1)
        assert second.deployed_at == first.deployed_at

    def test_unknown_phase(self, controller):
        with pytest.raises(NotFound) as exc:
            controller.deploy(9)
        assert exc.value.kind == "phase"

    def test_state_survives_a_new_controller(self, controller, phase_store):
        controller.deploy(1)
        fresh = RolloutController(phase_store, load_phase_definitions())
        assert fresh.status()[0].is_deployed


class TestAdjustRollout:
    """Rollout percentage changes."""

    def test_out_of_range_percentage_is_rejected(self, controller):
        controller.deploy(1)
        with pytest.raises(InvalidPercentage):
            controller.adjust_rollout(1, 150)
        with pytest.raises(InvalidPercentage):
            controller.adjust_rollout(1, -1)

    def test_adjust_deployed_phase(self, controller):
        controller.deploy(1)
        controller.adjust_rollout(1, 50)

        phase = controller.status()[0]
        assert phase.rollout_percentage == 50
        assert phase.status == PhaseStatus.DEPLOYED

    def test_adjust_pending_phase_is_rejected(self, controller):
        with pytest.raises(PhaseNotDeployed):
            controller.adjust_rollout(2, 50)

    def test_adjust_is_idempotent(self, controller):
        controller.deploy(1)
        controller.adjust_rollout(1, 25)
        controller.adjust_rollout(1, 25)
        assert controller.status()[0].rollout_percentage == 25

    def test_bool_is_not_a_percentage(self, controller):
        controller.deploy(1)
        with pytest.raises(InvalidPercentage):
            controller.adjust_rollout(1, True)


class TestFlagsAndHistory:
    """Feature flag export, audience gating and deployment history."""

    def test_flags_written_after_deploy(self, site, controller):
        controller.deploy(1)
        flags = json.loads((site / "feature-flags.json").read_text(encoding="utf-8"))

        assert flags["phase1"]["enabled"] is True
        assert flags["phase1"]["rollout_percentage"] == 100
        assert flags["phase2"]["enabled"] is False
        assert flags["phase2"]["rollout_percentage"] == 0
        assert "content-preview-components" in flags["phase2"]["capabilities"]

    def test_history_in_deployment_order(self, controller):
        controller.deploy(1)
        controller.deploy(2)
        assert [p.order for p in controller.history()] == [1, 2]

    def test_is_enabled_follows_percentage(self, controller):
        assert not controller.is_enabled("contextual-links", "visitor-1")

        controller.deploy(1)
        assert controller.is_enabled("contextual-links", "visitor-1")

        controller.adjust_rollout(1, 0)
        assert not controller.is_enabled("contextual-links", "visitor-1")
        assert not controller.is_enabled("unknown-capability", "visitor-1")

    def test_audience_bucket_is_stable(self):
        assert audience_bucket("visitor-1") == audience_bucket("visitor-1")
        assert 0 <= audience_bucket("visitor-1") < 100


class TestConsistency:
    """Persisted state checks and definition validation."""

    def test_consistent_state(self, controller):
        controller.deploy(1)
        assert controller.check_consistency() == []

    def test_gap_in_deployment_chain(self, controller, phase_store):
        phases = [p.model_copy() for p in load_phase_definitions()]
        phases[1] = phases[1].model_copy(update={"status": PhaseStatus.DEPLOYED})
        phase_store.save(phases)

        problems = controller.check_consistency()
        assert any("phase 2 is deployed while phase 1 is pending" in p for p in problems)
        assert any("without a deployment timestamp" in p for p in problems)

    def test_corrupt_state_raises(self, controller, phase_store):
        phase_store.path.parent.mkdir(parents=True, exist_ok=True)
        phase_store.path.write_text("{broken", encoding="utf-8")
        with pytest.raises(StoreIOError):
            controller.status()

    def test_phase_orders_must_be_contiguous(self):
        with pytest.raises(ConfigurationError):
            validate_phase_definitions([
                RolloutPhase(order=1, name="one"),
                RolloutPhase(order=3, name="three"),
            ])
