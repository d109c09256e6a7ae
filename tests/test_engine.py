"""Tests for WorkflowEngine against the in-memory ledger store."""
from unittest.mock import MagicMock
import pytest
from app.core.engine import WorkflowEngine
from app.core.errors import (
    GatingError,
    InitialStageError,
    LedgerExistsError,
    NotFoundError,
    TerminalStageError,
    ValidationError,
)
from app.core.gating import ArtifactType, GatingEvaluator, VoteTally
from app.core.workflow import EventKind, Stage, SubStageStatus
from app.services.notifications import NotificationEmitter


def advance_to_monitoring(engine, evidence):
    evidence.add_artifacts("NVDA", ArtifactType.RESEARCH_SYNTHESIS, ArtifactType.VALUATION_MODEL)
    evidence.tallies["prop-1"] = VoteTally(approve=3, reject=1)
    ledger = engine.get_ledger("RESEARCH", "req-1")
    while ledger.current_stage != Stage.MONITORING:
        ledger = engine.advance_stage("RESEARCH", "req-1", "pm-1")
    return ledger


def test_create_ledger_starts_pending(workflow_engine):
    ledger = workflow_engine.create_ledger("RESEARCH", "req-1")
    assert ledger.current_stage == Stage.DISCOVERY
    assert ledger.discovery_status == SubStageStatus.PENDING
    assert ledger.version == 1


def test_create_ledger_twice_fails(workflow_engine, research_ledger):
    with pytest.raises(LedgerExistsError):
        workflow_engine.create_ledger("RESEARCH", "req-1")


def test_operations_on_missing_ledger_raise_not_found(workflow_engine, notifier):
    with pytest.raises(NotFoundError):
        workflow_engine.advance_stage("RESEARCH", "nope", "pm-1")
    with pytest.raises(NotFoundError):
        workflow_engine.revert_stage("RESEARCH", "nope", "admin-1", "reason")
    with pytest.raises(NotFoundError):
        workflow_engine.update_stage_status("RESEARCH", "nope", "ANALYSIS", "BLOCKED")
    with pytest.raises(NotFoundError):
        workflow_engine.get_stage_progress("RESEARCH", "nope")
    assert notifier.events == []


def test_advance_persists_and_notifies_once(workflow_engine, research_ledger, store, notifier):
    ledger = workflow_engine.advance_stage("RESEARCH", "req-1", "pm-1")

    assert ledger.current_stage == Stage.ANALYSIS
    assert ledger.discovery_status == SubStageStatus.COMPLETED
    assert ledger.analysis_status == SubStageStatus.IN_PROGRESS
    assert ledger.last_advanced_by == "pm-1"
    assert store.get("RESEARCH", "req-1") == ledger

    assert len(notifier.events) == 1
    kind, payload = notifier.events[0]
    assert kind == EventKind.ADVANCED
    assert payload["from_stage"] == "DISCOVERY"
    assert payload["to_stage"] == "ANALYSIS"
    assert "reason" not in payload


def test_gating_failure_leaves_ledger_untouched(workflow_engine, research_ledger, store, notifier):
    workflow_engine.advance_stage("RESEARCH", "req-1", "pm-1")
    before = store.get("RESEARCH", "req-1")

    with pytest.raises(GatingError) as exc_info:
        workflow_engine.advance_stage("RESEARCH", "req-1", "pm-1")

    assert "RESEARCH_SYNTHESIS" in exc_info.value.missing_artifacts
    assert store.get("RESEARCH", "req-1") == before
    assert len(notifier.events) == 1


def test_terminal_guard_leaves_ledger_untouched(workflow_engine, research_ledger, evidence, store, notifier):
    ledger = advance_to_monitoring(workflow_engine, evidence)
    assert ledger.current_stage == Stage.MONITORING
    events_before = len(notifier.events)

    with pytest.raises(TerminalStageError):
        workflow_engine.advance_stage("RESEARCH", "req-1", "pm-1")

    assert store.get("RESEARCH", "req-1") == ledger
    assert len(notifier.events) == events_before


def test_initial_guard_leaves_ledger_untouched(workflow_engine, research_ledger, store, notifier):
    with pytest.raises(InitialStageError):
        workflow_engine.revert_stage("RESEARCH", "req-1", "admin-1", "try anyway")

    assert store.get("RESEARCH", "req-1") == research_ledger
    assert notifier.events == []


def test_revert_requires_non_empty_reason(workflow_engine, research_ledger, store):
    workflow_engine.advance_stage("RESEARCH", "req-1", "pm-1")
    before = store.get("RESEARCH", "req-1")

    with pytest.raises(ValidationError):
        workflow_engine.revert_stage("RESEARCH", "req-1", "admin-1", "")

    assert store.get("RESEARCH", "req-1") == before


def test_round_trip_scenario(workflow_engine, research_ledger, evidence, notifier):
    ledger = workflow_engine.advance_stage("RESEARCH", "req-1", "pm-1")
    assert ledger.current_stage == Stage.ANALYSIS
    assert ledger.discovery_status == SubStageStatus.COMPLETED
    assert ledger.analysis_status == SubStageStatus.IN_PROGRESS

    with pytest.raises(GatingError):
        workflow_engine.advance_stage("RESEARCH", "req-1", "pm-1")
    assert workflow_engine.get_ledger("RESEARCH", "req-1") == ledger

    evidence.add_artifacts("NVDA", ArtifactType.RESEARCH_SYNTHESIS, ArtifactType.VALUATION_MODEL)
    ledger = workflow_engine.advance_stage("RESEARCH", "req-1", "pm-1")
    assert ledger.current_stage == Stage.IC_MEETING
    assert ledger.ic_meeting_status == SubStageStatus.IN_PROGRESS
    assert ledger.analysis_status == SubStageStatus.COMPLETED

    ledger = workflow_engine.revert_stage("RESEARCH", "req-1", "admin-1", "needs more research")
    assert ledger.current_stage == Stage.ANALYSIS
    assert ledger.analysis_status == SubStageStatus.IN_PROGRESS
    assert ledger.ic_meeting_status == SubStageStatus.PENDING
    assert ledger.revert_reason == "needs more research"
    assert ledger.last_reverted_by == "admin-1"
    assert ledger.last_advanced_by == "pm-1"

    kinds = [kind for kind, _ in notifier.events]
    assert kinds == [EventKind.ADVANCED, EventKind.ADVANCED, EventKind.REVERTED]
    assert notifier.events[-1][1]["reason"] == "needs more research"


def test_ic_meeting_force_advance_by_pm(workflow_engine, research_ledger, evidence):
    evidence.add_artifacts("NVDA", ArtifactType.RESEARCH_SYNTHESIS, ArtifactType.VALUATION_MODEL)
    workflow_engine.advance_stage("RESEARCH", "req-1", "pm-1")
    workflow_engine.advance_stage("RESEARCH", "req-1", "pm-1")

    with pytest.raises(GatingError):
        workflow_engine.advance_stage("RESEARCH", "req-1", "analyst-1")

    ledger = workflow_engine.advance_stage("RESEARCH", "req-1", "admin-1")
    assert ledger.current_stage == Stage.EXECUTION


def test_update_stage_status_does_not_move_or_notify(workflow_engine, research_ledger, notifier):
    ledger = workflow_engine.update_stage_status("RESEARCH", "req-1", Stage.MONITORING, SubStageStatus.BLOCKED)

    assert ledger.current_stage == Stage.DISCOVERY
    assert ledger.monitoring_status == SubStageStatus.BLOCKED
    assert ledger.version == research_ledger.version + 1
    assert notifier.events == []


def test_update_stage_status_rejects_unknown_status(workflow_engine, research_ledger):
    with pytest.raises(ValidationError):
        workflow_engine.update_stage_status("RESEARCH", "req-1", "ANALYSIS", "STALLED")


def test_notification_failure_does_not_fail_transition(store, evidence, research_ledger):
    class BrokenNotifier(NotificationEmitter):
        def _deliver(self, event_kind, payload):
            raise ConnectionError("broker unreachable")

    engine = WorkflowEngine(store=store, gating=GatingEvaluator(evidence), notifier=BrokenNotifier())

    ledger = engine.advance_stage("RESEARCH", "req-1", "pm-1")

    assert ledger.current_stage == Stage.ANALYSIS
    assert store.get("RESEARCH", "req-1").current_stage == Stage.ANALYSIS


def test_notifier_not_called_on_rejected_transition(store, evidence, research_ledger):
    notifier = MagicMock()
    engine = WorkflowEngine(store=store, gating=GatingEvaluator(evidence), notifier=notifier)

    with pytest.raises(InitialStageError):
        engine.revert_stage("RESEARCH", "req-1", "admin-1", "reason")
    engine.advance_stage("RESEARCH", "req-1", "pm-1")
    with pytest.raises(GatingError):
        engine.advance_stage("RESEARCH", "req-1", "pm-1")

    notifier.notify.assert_called_once()
    kind, payload = notifier.notify.call_args.args
    assert kind == EventKind.ADVANCED
    assert payload["to_stage"] == "ANALYSIS"


def test_preview_advance_explains_block(workflow_engine, research_ledger, evidence):
    assert workflow_engine.preview_advance("RESEARCH", "req-1", "pm-1").allowed

    workflow_engine.advance_stage("RESEARCH", "req-1", "pm-1")
    decision = workflow_engine.preview_advance("RESEARCH", "req-1", "pm-1")
    assert not decision.allowed
    assert decision.missing_artifacts == ["RESEARCH_SYNTHESIS", "VALUATION_MODEL"]

    advance_to_monitoring(workflow_engine, evidence)
    assert workflow_engine.preview_advance("RESEARCH", "req-1", "pm-1") is None


def test_list_ledgers_filters_by_entity_type(workflow_engine, research_ledger):
    workflow_engine.create_ledger("PROPOSAL", "prop-1")

    assert [l.entity_id for l in workflow_engine.list_ledgers("PROPOSAL")] == ["prop-1"]
    assert len(workflow_engine.list_ledgers()) == 2


def test_create_ledger_rejects_untracked_entity_type(workflow_engine, store):
    with pytest.raises(ValidationError) as exc_info:
        workflow_engine.create_ledger("MEETING", "mtg-1")
    assert exc_info.value.context["field"] == "entity_type"
    assert store.get("MEETING", "mtg-1") is None


def test_revert_keeps_reason_as_given(workflow_engine, research_ledger, notifier):
    workflow_engine.advance_stage("RESEARCH", "req-1", "pm-1")

    ledger = workflow_engine.revert_stage("RESEARCH", "req-1", "admin-1", "  needs more research ")

    assert ledger.revert_reason == "  needs more research "
    assert notifier.events[-1][1]["reason"] == "  needs more research "
