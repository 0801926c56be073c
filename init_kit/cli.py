"""Command-line entry point for the init pipeline.

Each subcommand has a ``handle_*`` function that takes the parsed arguments
and a ``CommandContext`` and returns a process exit code. Exceptions from
the pipeline modules are translated into exit codes in ``main`` only.
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional

from init_kit import __version__
from init_kit.blueprint import (
    add_missing_packs,
    current_packs,
    load_blueprint,
    recommended_packs,
    save_blueprint,
    suggest_packs,
    validate_blueprint,
)
from init_kit.cleanup import archive_init_artifacts, cleanup_init, prune_agent_builder
from init_kit.configs import generate_config_files
from init_kit.docs_check import check_docs, docs_written_flags
from init_kit.errors import ArchiveError, GuardRefusal, InitKitError
from init_kit.fileio import display_path
from init_kit.manifest import update_manifest
from init_kit.messaging import (
    emit_error,
    emit_info,
    emit_success,
    emit_warning,
    print_json,
    print_result,
    render_notice,
    render_status,
)
from init_kit.observability import configure_logging, configure_telemetry, log_pipeline_event
from init_kit.readme import generate_project_readme
from init_kit.scaffold import plan_scaffold, seed_init_templates
from init_kit.settings import InitKitSettings, get_settings
from init_kit.state import (
    STAGE_NAMES,
    InitState,
    Stage,
    append_history,
    approve_stage,
    check_advance,
    create_initial_state,
    load_state,
    save_state,
    stage_progress,
)
from init_kit.wrappers import sync_wrappers, validate_providers

logger = logging.getLogger(__name__)

PROG = "init-kit"


@dataclass
class CommandContext:
    """Resolved paths and output mode shared by every handler."""

    repo_root: Path
    blueprint_path: Path
    docs_root: Path
    fmt: str
    settings: InitKitSettings

    @property
    def is_json(self) -> bool:
        return self.fmt == "json"

    def rel(self, path: Path) -> str:
        return display_path(self.repo_root, path)

    def info(self, message: str) -> None:
        """Informational line; suppressed in JSON mode so stdout stays parseable."""
        if self.is_json:
            logger.info(message)
        else:
            emit_info(message)


def _resolve(base: Path, value: Optional[str], default: Path) -> Path:
    if not value:
        return default
    path = Path(value).expanduser()
    return path if path.is_absolute() else base / path


def _op_lines(items: Iterable[Dict[str, Any]], key: str = "path", op_key: str = "op") -> List[str]:
    lines = []
    for item in items:
        mode = f" ({item['mode']})" if item.get("mode") else ""
        reason = f" [{item['reason']}]" if item.get("reason") else ""
        lines.append(f"- {item.get(op_key)}: {item.get(key)}{mode}{reason}")
    return lines


def _next_step_hint(state: InitState) -> str:
    if state.stage == Stage.A:
        if not state.stage_a.validated:
            return "Complete the interview, draft the Stage A docs, then run: check-docs"
        return "Ask the user to review the Stage A docs, then run: approve --stage A"
    if state.stage == Stage.B:
        if not state.stage_b.validated:
            return "Create the project blueprint, then run: validate"
        return "Ask the user to review the blueprint, then run: approve --stage B"
    if state.stage == Stage.C:
        if not state.stage_c.wrappers_synced:
            return "Run: apply"
        return "Initialization ready for review, then run: approve --stage C"
    return "Initialization complete"


def _show_status(ctx: CommandContext, state: InitState) -> None:
    render_status(stage_progress(state), str(ctx.repo_root), _next_step_hint(state))


def _require_state(ctx: CommandContext) -> Optional[InitState]:
    state = load_state(ctx.repo_root, ctx.settings)
    if state is None:
        emit_error('No init state detected. Run "start" first.')
    return state


def _require_ack(args: argparse.Namespace, what: str) -> None:
    if not args.i_understand:
        raise GuardRefusal(f"{what} requires --i-understand")


def _archive_flags(args: argparse.Namespace) -> tuple[bool, bool]:
    archive_all = getattr(args, "archive", False)
    return (
        archive_all or getattr(args, "archive_docs", False),
        archive_all or getattr(args, "archive_blueprint", False),
    )


# =============================================================================
# Stage machine commands
# =============================================================================


def handle_start(args: argparse.Namespace, ctx: CommandContext) -> int:
    """Seed the Stage A templates and create the state file."""
    bootstrap = ctx.settings.bootstrap_path(ctx.repo_root)
    created_bootstrap = not bootstrap.exists()

    ops = seed_init_templates(ctx.repo_root, ctx.docs_root, ctx.blueprint_path, apply=True, settings=ctx.settings)
    if created_bootstrap:
        marker = ctx.settings.marker_path(ctx.repo_root)
        marker.parent.mkdir(parents=True, exist_ok=True)
        marker.write_text(f"{PROG} {__version__}\n", encoding="utf-8")

    created = [op for op in ops if op.mode == "applied"]
    existing = load_state(ctx.repo_root, ctx.settings)

    if existing is None:
        state = create_initial_state()
        append_history(state, "init_started", "Initialization started")
        save_state(ctx.repo_root, state, ctx.settings)
    else:
        state = existing

    if ctx.is_json:
        print_json(
            {
                "ok": True,
                "templates": [op.model_dump() for op in ops],
                "stateCreated": existing is None,
                "progress": stage_progress(state),
            }
        )
        return 0

    if created:
        emit_success("Init templates created:")
        for op in created:
            emit_info(f"  - {op.path}")
    else:
        emit_info("Init templates already exist")

    if existing is not None:
        emit_info("Existing init state detected")
        _show_status(ctx, state)
        emit_info(f"To restart, delete {ctx.rel(ctx.settings.state_path(ctx.repo_root))} first")
    else:
        emit_success(f"Init state created: {ctx.rel(ctx.settings.state_path(ctx.repo_root))}")
        _show_status(ctx, state)
    return 0


def handle_status(args: argparse.Namespace, ctx: CommandContext) -> int:
    state = load_state(ctx.repo_root, ctx.settings)
    if state is None:
        if ctx.is_json:
            print_json({"ok": True, "state": None})
        else:
            emit_info("No init state detected")
            emit_info('Run "start" to begin initialization')
        return 0

    if ctx.is_json:
        print_json(stage_progress(state))
    else:
        _show_status(ctx, state)
    return 0


def handle_advance(args: argparse.Namespace, ctx: CommandContext) -> int:
    """Report whether the current stage is ready for approval. Never writes state."""
    state = _require_state(ctx)
    if state is None:
        return 1

    check = check_advance(state)
    if ctx.is_json:
        print_json({"ok": check.ready, **check.model_dump(mode="json")})
        return 0 if check.ready else 1

    if not check.ready:
        emit_error(check.message)
        return 1

    if state.stage == Stage.COMPLETE:
        emit_info(check.message)
        return 0

    next_stage = {Stage.A: "B", Stage.B: "C"}.get(state.stage, "Completion")
    emit_info(f"\n== Stage {state.stage.value} -> {next_stage} Checkpoint ==\n")
    emit_info(check.message)
    if state.stage == Stage.A:
        emit_info(f"Confirm the user reviewed and approved the docs under {ctx.rel(ctx.docs_root)}/.")
    elif state.stage == Stage.B:
        emit_info(f"Confirm the user reviewed and approved {ctx.rel(ctx.blueprint_path)}.")
    else:
        emit_info("Confirm the user reviewed the initialization result.")
    emit_info("\nIf confirmed, run the following to approve and advance:")
    emit_info(f"  {PROG} {check.next_command}")
    if state.stage == Stage.C:
        emit_info("\nOptional: run cleanup-init --apply --i-understand --archive to archive and remove the bootstrap kit.")
    return 0


def handle_approve(args: argparse.Namespace, ctx: CommandContext) -> int:
    state = _require_state(ctx)
    if state is None:
        return 1

    stage = Stage(args.stage.upper())
    next_stage = approve_stage(state, stage)
    save_state(ctx.repo_root, state, ctx.settings)

    agent_dir = ctx.settings.agent_builder_path(ctx.repo_root)
    agent_builder_present = stage == Stage.C and agent_dir.exists()

    if ctx.is_json:
        print_json(
            {
                "ok": True,
                "approved": stage.value,
                "stage": next_stage.value,
                "agentBuilderPresent": agent_builder_present,
            }
        )
        return 0

    emit_success(f"Stage {stage.value} approved")
    if next_stage == Stage.COMPLETE:
        emit_success("Initialization complete!")
    else:
        emit_success(f"Advanced to Stage {next_stage.value} - {STAGE_NAMES[next_stage]}")

    if stage == Stage.A:
        emit_info(f"\nNext: create {ctx.rel(ctx.blueprint_path)}")
    elif stage == Stage.B:
        emit_info("\nNext: run apply to create the scaffold")
    else:
        if agent_builder_present:
            render_notice(
                "Agent Builder Pack Detected",
                f"Found {ctx.rel(agent_dir)}.\n"
                "Agent Builder is a large workflow for building agents.\n\n"
                "If your project does not need agents, consider removing it\n"
                "to reduce repo size and sync time:\n\n"
                f"  {PROG} prune-agent-builder --apply --i-understand\n\n"
                "Or keep it for future use.",
            )
        emit_info("\nOptional: run cleanup-init --apply --i-understand --archive to archive and remove the bootstrap kit.")
    return 0


# =============================================================================
# Validators
# =============================================================================


def handle_validate(args: argparse.Namespace, ctx: CommandContext) -> int:
    blueprint = load_blueprint(ctx.blueprint_path)
    validation = validate_blueprint(blueprint)

    if validation.ok:
        state = load_state(ctx.repo_root, ctx.settings)
        if state is not None and state.stage == Stage.B:
            state.stage_b.drafted = True
            state.stage_b.validated = True
            append_history(state, "stage_b_validated", "Stage B blueprint validated")
            save_state(ctx.repo_root, state, ctx.settings)
            ctx.info("State updated: stage-b.validated = true")

    shown = ctx.rel(ctx.blueprint_path)
    summary = f"Blueprint is valid: {shown}" if validation.ok else f"Blueprint validation failed: {shown}"
    print_result(validation.model_dump(), ctx.fmt, summary=summary)
    return 0 if validation.ok else 1


def handle_check_docs(args: argparse.Namespace, ctx: CommandContext) -> int:
    result = check_docs(ctx.docs_root, strict=args.strict)

    if result.ok:
        state = load_state(ctx.repo_root, ctx.settings)
        if state is not None and state.stage == Stage.A:
            state.stage_a.validated = True
            state.stage_a.docs_written = docs_written_flags(ctx.docs_root)
            append_history(state, "stage_a_validated", "Stage A docs validated")
            save_state(ctx.repo_root, state, ctx.settings)
            ctx.info("State updated: stage-a.validated = true")

    shown = ctx.rel(ctx.docs_root)
    summary = f"Stage A docs check passed: {shown}" if result.ok else f"Stage A docs check failed: {shown}"
    print_result(result.model_dump(), ctx.fmt, summary=summary)
    return 0 if result.ok else 1


def handle_suggest_packs(args: argparse.Namespace, ctx: CommandContext) -> int:
    blueprint = load_blueprint(ctx.blueprint_path)
    validation = validate_blueprint(blueprint)
    if not isinstance(blueprint, dict):
        print_result(validation.model_dump(), ctx.fmt, summary="Blueprint validation failed")
        return 1

    suggestion = suggest_packs(ctx.repo_root, blueprint, ctx.settings)
    result: Dict[str, Any] = {
        "ok": validation.ok,
        **suggestion.model_dump(by_alias=True),
        "errors": validation.errors,
    }
    summary = (
        f"Packs: current={', '.join(suggestion.current) or '(none)'} "
        f"| recommended={', '.join(suggestion.recommended)}"
    )

    if args.write:
        if not validation.ok:
            emit_error("Cannot write packs: blueprint validation failed.")
            print_result(result, ctx.fmt, summary=summary)
            return 1
        add_missing_packs(blueprint, suggestion.missing)
        save_blueprint(ctx.blueprint_path, blueprint)
        packs = current_packs(blueprint)
        result["wrote"] = {"path": ctx.rel(ctx.blueprint_path), "packs": packs}
        summary += "\nAdded missing recommended packs into blueprint skills.packs"

    if validation.ok:
        state = load_state(ctx.repo_root, ctx.settings)
        if state is not None and state.stage == Stage.B and not state.stage_b.packs_reviewed:
            state.stage_b.packs_reviewed = True
            append_history(state, "stage_b_packs_reviewed", "Skill packs reviewed")
            save_state(ctx.repo_root, state, ctx.settings)
            ctx.info("State updated: stage-b.packsReviewed = true")

    print_result(result, ctx.fmt, summary=summary)
    return 0 if validation.ok else 1


# =============================================================================
# Stage C commands
# =============================================================================


def _load_valid_blueprint(ctx: CommandContext, refusal: str) -> Optional[Dict[str, Any]]:
    blueprint = load_blueprint(ctx.blueprint_path)
    validation = validate_blueprint(blueprint)
    if not validation.ok:
        emit_error(refusal)
        print_result(validation.model_dump(), ctx.fmt)
        return None
    return blueprint


def handle_scaffold(args: argparse.Namespace, ctx: CommandContext) -> int:
    blueprint = _load_valid_blueprint(ctx, "Blueprint is not valid; refusing to scaffold.")
    if blueprint is None:
        return 1

    plan = [op.model_dump() for op in plan_scaffold(ctx.repo_root, blueprint, apply=args.apply)]
    summary = (
        f"Scaffold applied under repo root: {ctx.repo_root}"
        if args.apply
        else f"Scaffold dry-run under repo root: {ctx.repo_root}"
    )
    if ctx.is_json:
        print_json({"ok": True, "summary": summary, "plan": plan})
    else:
        print_result({}, ctx.fmt, summary=summary, lines=_op_lines(plan))
    return 0


def handle_apply(args: argparse.Namespace, ctx: CommandContext) -> int:
    """Run every Stage C step against the repository."""
    if args.cleanup_init:
        _require_ack(args, "--cleanup-init")
    if args.skip_agent_builder:
        _require_ack(args, "--skip-agent-builder")
    wants_docs, wants_blueprint = _archive_flags(args)
    if not args.cleanup_init and (wants_docs or wants_blueprint):
        emit_warning("Archive flags are ignored without --cleanup-init")

    blueprint = _load_valid_blueprint(ctx, "Blueprint validation failed. Fix errors and re-run.")
    if blueprint is None:
        return 1

    docs_result = check_docs(ctx.docs_root, strict=args.require_stage_a)
    if args.require_stage_a and not docs_result.ok:
        emit_error("Stage A docs check failed in strict mode. Fix docs and re-run.")
        print_result(docs_result.model_dump(), ctx.fmt)
        return 1

    missing = [p for p in recommended_packs(blueprint) if p not in current_packs(blueprint)]
    if missing:
        emit_warning(f"Blueprint skills.packs is missing recommended packs: {', '.join(missing)}")
        emit_warning(f"Run: suggest-packs --blueprint {ctx.rel(ctx.blueprint_path)} --write (or edit skills.packs manually)")

    log_pipeline_event("apply_started", repo_root=str(ctx.repo_root))

    scaffold_plan = plan_scaffold(ctx.repo_root, blueprint, apply=True)

    config_results = []
    if not args.skip_configs:
        config_results = generate_config_files(ctx.repo_root, blueprint, apply=True, templates_root=ctx.settings.templates_root)

    readme_result = generate_project_readme(ctx.repo_root, blueprint, apply=True, templates_root=ctx.settings.templates_root)

    manifest_result = update_manifest(ctx.repo_root, blueprint, apply=True, settings=ctx.settings)
    for warning in manifest_result.warnings:
        emit_warning(warning)

    prune_result = None
    if args.skip_agent_builder:
        prune_result = prune_agent_builder(ctx.repo_root, apply=True, settings=ctx.settings)
        if prune_result.mode == "failed":
            emit_error(f"Failed to prune agent workflow: {prune_result.error}")
            return 1

    sync_result = sync_wrappers(ctx.repo_root, args.providers, apply=True, settings=ctx.settings)

    state = load_state(ctx.repo_root, ctx.settings)
    if state is not None:
        state.stage_c.scaffold_applied = True
        state.stage_c.configs_generated = not args.skip_configs
        state.stage_c.manifest_updated = True
        state.stage_c.wrappers_synced = sync_result.mode == "applied"
        append_history(state, "stage_c_applied", "Stage C apply completed")
        save_state(ctx.repo_root, state, ctx.settings)
        ctx.info("State updated: stage-c flags recorded")

    archive_result = None
    cleanup_result = None
    if args.cleanup_init:
        if wants_docs or wants_blueprint:
            archive_result = archive_init_artifacts(
                ctx.repo_root,
                ctx.docs_root,
                ctx.blueprint_path,
                archive_docs=wants_docs,
                archive_blueprint=wants_blueprint,
                apply=True,
                settings=ctx.settings,
            )
            if archive_result.errors:
                raise ArchiveError(archive_result.errors)
        cleanup_result = cleanup_init(ctx.repo_root, apply=True, settings=ctx.settings)
        if cleanup_result.mode == "partial":
            emit_warning(f"cleanup-init partially completed: {cleanup_result.note}")
        elif cleanup_result.op == "refuse":
            emit_warning(f"cleanup-init refused: {cleanup_result.reason}")

    log_pipeline_event("apply_completed", wrappers_synced=sync_result.mode == "applied")
    refused = cleanup_result is not None and cleanup_result.op == "refuse"

    if ctx.is_json:
        print_json(
            {
                "ok": not refused,
                "blueprint": ctx.rel(ctx.blueprint_path),
                "docsRoot": ctx.rel(ctx.docs_root),
                "stage-a": docs_result.model_dump(),
                "scaffold": [op.model_dump() for op in scaffold_plan],
                "configs": [r.model_dump() for r in config_results],
                "readme": readme_result.model_dump(),
                "manifest": manifest_result.model_dump(by_alias=True),
                "archive": archive_result.model_dump(by_alias=True) if archive_result else None,
                "pruneAgentBuilder": prune_result.model_dump() if prune_result else None,
                "sync": sync_result.model_dump(),
                "cleanup": cleanup_result.model_dump() if cleanup_result else None,
            }
        )
        return 1 if refused else 0

    emit_success("Apply completed.")
    emit_info(f"- Blueprint: {ctx.rel(ctx.blueprint_path)}")
    emit_info(f"- Docs root: {ctx.rel(ctx.docs_root)}")
    if not docs_result.ok:
        emit_warning("Stage A docs check had errors; consider re-running with --require-stage-a.")
    if docs_result.warnings:
        emit_warning("Stage A docs check has warnings; ensure TBD/TODO items are tracked.")
    for line in _op_lines(op.model_dump() for op in scaffold_plan):
        emit_info(line)
    for line in _op_lines((r.model_dump() for r in config_results), key="file", op_key="action"):
        emit_info(line)
    emit_info(f"- README: {readme_result.mode}" + (f" [{readme_result.reason}]" if readme_result.reason else ""))
    emit_info(f"- Manifest updated: {manifest_result.path}")
    if archive_result:
        emit_info(f"- Archive: {archive_result.mode}")
    if prune_result:
        emit_info(f"- Agent workflow prune: {prune_result.mode or prune_result.op}")
    emit_info(f"- Wrappers synced via: {sync_result.cmd or '(skipped)'}")
    if cleanup_result:
        emit_info(f"- Bootstrap cleanup: {cleanup_result.mode or cleanup_result.op}")
    return 1 if refused else 0


def handle_cleanup_init(args: argparse.Namespace, ctx: CommandContext) -> int:
    _require_ack(args, "cleanup-init")
    wants_docs, wants_blueprint = _archive_flags(args)

    archive_result = None
    if wants_docs or wants_blueprint:
        archive_result = archive_init_artifacts(
            ctx.repo_root,
            ctx.docs_root,
            ctx.blueprint_path,
            archive_docs=wants_docs,
            archive_blueprint=wants_blueprint,
            apply=args.apply,
            settings=ctx.settings,
        )
        if archive_result.errors:
            raise ArchiveError(archive_result.errors)

    result = cleanup_init(ctx.repo_root, apply=args.apply, settings=ctx.settings)
    refused = result.op == "refuse"

    if ctx.is_json:
        print_json(
            {
                "ok": not refused,
                "archive": archive_result.model_dump(by_alias=True) if archive_result else None,
                "result": result.model_dump(),
            }
        )
        return 1 if refused else 0

    if refused:
        emit_error(f"Refusing to remove {result.path}: {result.reason}")
        return 1

    label = "plan" if not args.apply else "done"
    detail = result.mode or result.reason
    emit_info(f"[{label}] {result.op}: {result.path} ({detail})")
    if result.note:
        emit_info(f"Note: {result.note}")
    if archive_result:
        emit_info(f"[{label}] archive: {archive_result.target_root} ({archive_result.mode})")
    if result.mode == "partial":
        emit_warning(f"cleanup-init partially completed: {result.note}")
    return 0


def handle_prune_agent_builder(args: argparse.Namespace, ctx: CommandContext) -> int:
    _require_ack(args, "prune-agent-builder")

    prune = prune_agent_builder(ctx.repo_root, apply=args.apply, settings=ctx.settings)
    if prune.op == "skip":
        if ctx.is_json:
            print_json({"ok": True, "prune": prune.model_dump(), "sync": None})
        else:
            emit_info("Agent Builder directory not found; nothing to remove")
            emit_info(f"  Path: {prune.path}")
        return 0

    if prune.mode == "failed":
        emit_error(f"Failed to remove {prune.path}: {prune.error}")
        return 1

    sync = None
    if args.apply and args.sync_after and prune.mode == "applied":
        ctx.info("Re-syncing skill wrappers...")
        sync = sync_wrappers(ctx.repo_root, args.providers, apply=True, settings=ctx.settings)

    if ctx.is_json:
        print_json({"ok": True, "prune": prune.model_dump(), "sync": sync.model_dump() if sync else None})
        return 0

    label = "plan" if not args.apply else "done"
    emit_info(f"[{label}] {prune.op}: {prune.path} ({prune.mode})")
    if not args.apply and args.sync_after:
        emit_info("[plan] Will re-sync wrappers after removal")
    if sync:
        emit_info(f"[done] Wrappers sync: {sync.mode}")
    return 0


# =============================================================================
# Parser
# =============================================================================


def _providers_arg(value: str) -> str:
    try:
        return validate_providers(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def _add_archive_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--archive", action="store_true", help="Archive Stage A docs and the blueprint before cleanup")
    parser.add_argument("--archive-docs", action="store_true", help="Archive only the Stage A docs")
    parser.add_argument("--archive-blueprint", action="store_true", help="Archive only the blueprint")


def _add_ack_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--i-understand",
        dest="i_understand",
        action="store_true",
        help="Acknowledge a destructive operation",
    )


def build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--repo-root", help="Repository root (default: current directory)")
    common.add_argument("--format", choices=("text", "json"), default="text", help="Output format")
    common.add_argument("--blueprint", help="Blueprint path (default: init/project-blueprint.json)")
    common.add_argument("--docs-root", help="Stage A docs directory (default: init/stage-a-docs)")
    common.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    parser = argparse.ArgumentParser(
        prog=PROG,
        description="Bootstrap a repository through the gated Stage A/B/C init pipeline.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command", metavar="<command>")
    subparsers.required = True

    def add(name: str, handler: Callable[[argparse.Namespace, CommandContext], int], help_text: str):
        sub = subparsers.add_parser(name, parents=[common], help=help_text, description=help_text)
        sub.set_defaults(handler=handler)
        return sub

    add("start", handle_start, "Seed Stage A templates and create the init state")
    add("status", handle_status, "Show pipeline progress")
    add("advance", handle_advance, "Check whether the current stage is ready for approval")

    approve = add("approve", handle_approve, "Record user approval and advance to the next stage")
    approve.add_argument("--stage", required=True, type=str.upper, choices=("A", "B", "C"))

    add("validate", handle_validate, "Validate the project blueprint")

    check = add("check-docs", handle_check_docs, "Check the Stage A documents")
    check.add_argument("--strict", action="store_true", help="Treat warnings as failures")

    suggest = add("suggest-packs", handle_suggest_packs, "Compare blueprint packs with the recommended set")
    suggest.add_argument("--write", action="store_true", help="Add missing recommended packs to the blueprint")

    scaffold = add("scaffold", handle_scaffold, "Plan or create the directory scaffold")
    scaffold.add_argument("--apply", action="store_true", help="Create directories and files (default: dry-run)")

    apply = add("apply", handle_apply, "Run every Stage C step")
    apply.add_argument("--providers", type=_providers_arg, default="both", help="both, codex, claude or a comma list")
    apply.add_argument("--require-stage-a", action="store_true", help="Fail unless the strict Stage A docs check passes")
    apply.add_argument("--skip-configs", action="store_true", help="Do not generate root config files")
    apply.add_argument("--skip-agent-builder", action="store_true", help="Remove the agent builder workflow")
    apply.add_argument("--cleanup-init", action="store_true", help="Remove the bootstrap kit afterwards")
    _add_archive_flags(apply)
    _add_ack_flag(apply)

    cleanup = add("cleanup-init", handle_cleanup_init, "Archive and remove the bootstrap kit")
    cleanup.add_argument("--apply", action="store_true", help="Perform the removal (default: dry-run)")
    _add_archive_flags(cleanup)
    _add_ack_flag(cleanup)

    prune = add("prune-agent-builder", handle_prune_agent_builder, "Remove the optional agent builder workflow")
    prune.add_argument("--apply", action="store_true", help="Perform the removal (default: dry-run)")
    prune.add_argument("--no-sync-after", dest="sync_after", action="store_false", help="Skip the wrapper re-sync")
    prune.add_argument("--providers", type=_providers_arg, default="both", help="both, codex, claude or a comma list")
    _add_ack_flag(prune)

    return parser


def _build_context(args: argparse.Namespace, settings: InitKitSettings) -> CommandContext:
    repo_root = Path(args.repo_root).expanduser().resolve() if args.repo_root else Path.cwd().resolve()
    return CommandContext(
        repo_root=repo_root,
        blueprint_path=_resolve(repo_root, args.blueprint, settings.default_blueprint_path(repo_root)),
        docs_root=_resolve(repo_root, args.docs_root, settings.default_docs_root(repo_root)),
        fmt=args.format,
        settings=settings,
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Parse arguments, run one command and return its exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = get_settings()
    configure_logging("DEBUG" if args.verbose else settings.log_level)
    configure_telemetry(settings)

    ctx = _build_context(args, settings)
    logger.debug(f"Running {args.command} in {ctx.repo_root}")

    try:
        return args.handler(args, ctx)
    except InitKitError as e:
        emit_error(str(e))
        return 1
    except OSError as e:
        logger.debug("Filesystem error", exc_info=True)
        emit_error(f"Filesystem error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
