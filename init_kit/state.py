"""Persisted pipeline state and the stage machine.

The state file records progress through the three gated stages:

- Stage A: requirements docs written and validated
- Stage B: blueprint drafted and validated
- Stage C: scaffold, configs, manifest and wrapper sync applied

State is a progress cache, not a source of truth. A malformed file is
treated as "no state" with a warning instead of aborting the command.

Two key conventions exist on disk: the legacy camelCase stage keys
(``stageA``) and the current kebab-case keys (``stage-a``). Both are read;
writes always use kebab-case.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from init_kit.errors import JsonReadError, StageTransitionError
from init_kit.fileio import read_json, write_json_atomic
from init_kit.observability import log_pipeline_event
from init_kit.settings import InitKitSettings, get_settings

logger = logging.getLogger(__name__)

STATE_VERSION = 1

MUST_ASK_KEYS = (
    "onePurpose",
    "userRoles",
    "mustRequirements",
    "outOfScope",
    "userJourneys",
    "constraints",
    "successMetrics",
)

DOC_KEYS = ("requirements", "nfr", "glossary", "riskQuestions")


class Stage(str, Enum):
    """Pipeline stage. Only moves forward."""

    A = "A"
    B = "B"
    C = "C"
    COMPLETE = "complete"


NEXT_STAGE = {Stage.A: Stage.B, Stage.B: Stage.C, Stage.C: Stage.COMPLETE}

STAGE_NAMES = {
    Stage.A: "Requirements",
    Stage.B: "Blueprint",
    Stage.C: "Scaffold",
    Stage.COMPLETE: "Complete",
}


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# =============================================================================
# Models
# =============================================================================


class MustAskItem(BaseModel):
    """Interview question tracking for Stage A."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    asked: bool = False
    answered: bool = False
    written_to: Optional[str] = Field(default=None, alias="writtenTo")


class StageAState(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    must_ask: Dict[str, MustAskItem] = Field(
        default_factory=lambda: {key: MustAskItem() for key in MUST_ASK_KEYS},
        alias="mustAsk",
    )
    docs_written: Dict[str, bool] = Field(
        default_factory=lambda: {key: False for key in DOC_KEYS},
        alias="docsWritten",
    )
    validated: bool = False
    user_approved: bool = Field(default=False, alias="userApproved")


class StageBState(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    drafted: bool = False
    validated: bool = False
    packs_reviewed: bool = Field(default=False, alias="packsReviewed")
    user_approved: bool = Field(default=False, alias="userApproved")


class StageCState(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    scaffold_applied: bool = Field(default=False, alias="scaffoldApplied")
    configs_generated: bool = Field(default=False, alias="configsGenerated")
    manifest_updated: bool = Field(default=False, alias="manifestUpdated")
    wrappers_synced: bool = Field(default=False, alias="wrappersSynced")
    user_approved: bool = Field(default=False, alias="userApproved")


class HistoryEvent(BaseModel):
    """A single history entry. Frozen: history is append-only."""

    model_config = ConfigDict(frozen=True)

    timestamp: str = Field(default_factory=_now_iso)
    event: str
    details: Any = None


class InitState(BaseModel):
    """Complete persisted pipeline state."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    version: int = STATE_VERSION
    stage: Stage = Stage.A
    created_at: str = Field(default_factory=_now_iso, alias="createdAt")
    stage_a: StageAState = Field(default_factory=StageAState, alias="stage-a")
    stage_b: StageBState = Field(default_factory=StageBState, alias="stage-b")
    stage_c: StageCState = Field(default_factory=StageCState, alias="stage-c")
    history: List[HistoryEvent] = Field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize using the on-disk (kebab-case) key convention."""
        return self.model_dump(mode="json", by_alias=True)


# =============================================================================
# Normalization (legacy key migration)
# =============================================================================

_KNOWN_KEYS = {"version", "stage", "createdAt", "stage-a", "stage-b", "stage-c", "history"}


def _legacy_stage_key(letter: str) -> str:
    return f"stage{letter}"


def _stage_key(letter: str) -> str:
    return f"stage-{letter.lower()}"


def normalize_state(raw: Dict[str, Any]) -> Tuple[Dict[str, Any], List[str]]:
    """Migrate a raw state document into the current key shape.

    Pure and idempotent: the input is not modified and running the result
    through again yields the same document.

    Returns:
        Tuple of (normalized document, migration warnings).
    """
    state = dict(raw)
    warnings: List[str] = []

    for letter in ("A", "B", "C"):
        legacy_key = _legacy_stage_key(letter)
        new_key = _stage_key(letter)
        if legacy_key not in state:
            continue
        legacy_value = state.pop(legacy_key)
        if new_key not in state:
            state[new_key] = legacy_value
        elif state[new_key] != legacy_value:
            warnings.append(
                f"State has both '{legacy_key}' and '{new_key}'; keeping '{new_key}'."
            )

    if "version" not in state:
        state["version"] = STATE_VERSION

    for key in state:
        if key not in _KNOWN_KEYS:
            warnings.append(f"Unrecognized state key '{key}' passed through unchanged.")

    return state, warnings


# =============================================================================
# Persistence
# =============================================================================


def state_path(repo_root: Path, settings: Optional[InitKitSettings] = None) -> Path:
    settings = settings or get_settings()
    return settings.state_path(repo_root)


def create_initial_state() -> InitState:
    """Create a fresh state positioned at Stage A."""
    return InitState()


def load_state(repo_root: Path, settings: Optional[InitKitSettings] = None) -> Optional[InitState]:
    """Load and normalize the persisted state.

    Returns None when the file does not exist or cannot be understood.
    """
    path = state_path(repo_root, settings)
    if not path.exists():
        return None

    try:
        raw = read_json(path)
    except JsonReadError as e:
        logger.warning(f"Failed to parse state file {path}: {e.reason}")
        return None

    if not isinstance(raw, dict):
        logger.warning(f"State file {path} does not contain a JSON object; ignoring it")
        return None

    normalized, warnings = normalize_state(raw)
    for warning in warnings:
        logger.warning(warning)

    try:
        return InitState.model_validate(normalized)
    except ValidationError as e:
        logger.warning(f"State file {path} does not match the state schema: {e}")
        return None


def save_state(repo_root: Path, state: InitState, settings: Optional[InitKitSettings] = None) -> Path:
    """Atomically write the state file. Returns the path written."""
    path = state_path(repo_root, settings)
    write_json_atomic(path, state.to_dict())
    return path


def append_history(state: InitState, event: str, details: Any = None) -> HistoryEvent:
    """Append a history entry. Existing entries are never touched."""
    entry = HistoryEvent(event=event, details=details)
    state.history.append(entry)
    log_pipeline_event(event, details=json.dumps(details, default=str))
    return entry


# =============================================================================
# Stage machine
# =============================================================================


def stage_progress(state: InitState) -> Dict[str, Any]:
    """Summarize progress per stage for status reporting."""
    stage_a = state.stage_a
    return {
        "stage": state.stage.value,
        "stage-a": {
            "mustAskTotal": len(stage_a.must_ask),
            "mustAskAnswered": sum(1 for item in stage_a.must_ask.values() if item.answered),
            "docsTotal": len(DOC_KEYS),
            "docsWritten": sum(1 for key in DOC_KEYS if stage_a.docs_written.get(key)),
            "validated": stage_a.validated,
            "userApproved": stage_a.user_approved,
        },
        "stage-b": {
            "drafted": state.stage_b.drafted,
            "validated": state.stage_b.validated,
            "packsReviewed": state.stage_b.packs_reviewed,
            "userApproved": state.stage_b.user_approved,
        },
        "stage-c": {
            "scaffoldApplied": state.stage_c.scaffold_applied,
            "configsGenerated": state.stage_c.configs_generated,
            "manifestUpdated": state.stage_c.manifest_updated,
            "wrappersSynced": state.stage_c.wrappers_synced,
            "userApproved": state.stage_c.user_approved,
        },
    }


def stage_gate(state: InitState, stage: Stage) -> Optional[str]:
    """Return the unmet gate for ``stage``, or None when it may be approved."""
    if stage == Stage.A and not state.stage_a.validated:
        return "Stage A docs not validated yet. Run check-docs first."
    if stage == Stage.B and not state.stage_b.validated:
        return "Stage B blueprint not validated yet. Run validate first."
    if stage == Stage.C and not state.stage_c.wrappers_synced:
        return "Stage C not complete yet. Run apply first."
    return None


def approve_stage(state: InitState, stage: Stage) -> Stage:
    """Record user approval of ``stage`` and advance to the next stage.

    This is the only operation that changes ``state.stage``.

    Raises:
        StageTransitionError: If ``stage`` is not the current stage or its
            gate is not satisfied.
    """
    if stage == Stage.COMPLETE:
        raise StageTransitionError("Stage 'complete' cannot be approved.")
    if state.stage != stage:
        raise StageTransitionError(
            f"Current stage is {state.stage.value}. Cannot approve Stage {stage.value}."
        )
    gate = stage_gate(state, stage)
    if gate:
        raise StageTransitionError(gate)

    if stage == Stage.A:
        state.stage_a.user_approved = True
    elif stage == Stage.B:
        state.stage_b.user_approved = True
    else:
        state.stage_c.user_approved = True

    next_stage = NEXT_STAGE[stage]
    state.stage = next_stage
    append_history(
        state,
        f"stage_{stage.value.lower()}_approved",
        f"User approved Stage {stage.value}, advancing to {STAGE_NAMES[next_stage]}",
    )
    return next_stage


class AdvanceCheck(BaseModel):
    """Read-only view of whether the current stage is ready for approval."""

    stage: Stage
    ready: bool
    message: str
    next_command: Optional[str] = None


def check_advance(state: InitState) -> AdvanceCheck:
    """Inspect the current stage gate without mutating state."""
    if state.stage == Stage.COMPLETE:
        return AdvanceCheck(stage=state.stage, ready=True, message="Initialization complete")

    gate = stage_gate(state, state.stage)
    if gate:
        return AdvanceCheck(stage=state.stage, ready=False, message=gate)

    return AdvanceCheck(
        stage=state.stage,
        ready=True,
        message=f"Stage {state.stage.value} ({STAGE_NAMES[state.stage]}) is ready for user review.",
        next_command=f"approve --stage {state.stage.value}",
    )
