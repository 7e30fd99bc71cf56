# src/gateway_inspector/app/run.py
from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import yaml

from gateway_inspector.config.paths import WORKERS, default_output_path
from gateway_inspector.models import GATEWAY_KINDS
from gateway_inspector.pipeline.orchestrator import inspect_backup
from gateway_inspector.reporting.categories import group_actions_by_category

logger = logging.getLogger(__name__)

OUTPUT_FORMATS = ("yaml", "json")

# Stands in for "OUTPUT_DIR/backup_info.<fmt>"; None means do not write.
DEFAULT_OUTPUT = object()


@dataclass
class RunSummary:
    domains: int
    gateways: int
    policies: int
    rules: int
    actions: int
    output_path: Optional[str]
    actions_by_category: Dict[str, int] = field(default_factory=dict)


def summarize(backup_info: Dict[str, Any], output_path: Optional[Path] = None) -> RunSummary:
    gateways = policies = rules = actions = 0

    for domain_info in backup_info.get("domains", {}).values():
        for kind in GATEWAY_KINDS:
            for gateway_info in domain_info.get(kind.key, {}).values():
                gateways += 1
                for policy in gateway_info.get(kind.policy_key, {}).values():
                    policies += 1
                    for rule in policy.get("rules", {}).values():
                        rules += 1
                        actions += len(rule.get("actions", []))

    by_category = group_actions_by_category(backup_info)
    return RunSummary(
        domains=len(backup_info.get("domains", {})),
        gateways=gateways,
        policies=policies,
        rules=rules,
        actions=actions,
        output_path=str(output_path) if output_path else None,
        actions_by_category={name: len(entries) for name, entries in by_category.items()},
    )


def dump_backup_info(backup_info: Dict[str, Any], fmt: str = "yaml") -> str:
    if fmt == "json":
        return json.dumps(backup_info, indent=2, ensure_ascii=False)
    if fmt == "yaml":
        # Keep insertion order; it mirrors the source configuration.
        return yaml.safe_dump(backup_info, sort_keys=False, allow_unicode=True, default_flow_style=False)
    raise ValueError(f"Unsupported output format: {fmt}")


def write_backup_info(backup_info: Dict[str, Any], output_path: Path, fmt: str = "yaml") -> Path:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(dump_backup_info(backup_info, fmt), encoding="utf-8")
    return output_path


def run_once(
    *,
    backup_file: Path,
    output_path: Any = DEFAULT_OUTPUT,
    fmt: str = "yaml",
    workers: int = WORKERS,
    progress_cb: Optional[Callable[[str, Dict[str, Any]], None]] = None,
) -> Dict[str, Any]:
    """
    Inspect one backup and return a machine-readable result.

    Args:
        backup_file: Exported backup archive (zip).
        output_path: Where to write the BackupInfo; None skips writing.
            Defaults to OUTPUT_DIR/backup_info.<fmt>.
        fmt: "yaml" or "json".
        workers: Domains inspected in parallel.

    Returns:
        {"summary": ..., "backup_info": ...} (JSON-serializable).
    """
    def report(step: str, *, detail: str | None = None, **extra: Any) -> None:
        if not progress_cb:
            return
        payload: Dict[str, Any] = {"detail": detail}
        if extra:
            payload.update(extra)
        progress_cb(step, payload)

    if fmt not in OUTPUT_FORMATS:
        raise ValueError(f"Unsupported output format: {fmt}")
    if output_path is DEFAULT_OUTPUT:
        output_path = default_output_path(fmt)

    report("inspect", detail=f"Inspecting {Path(backup_file).name}")
    logger.info("Inspecting backup %s", backup_file)
    backup_info = inspect_backup(Path(backup_file), workers=workers)

    if output_path is not None:
        report("write_output", detail=f"Writing {output_path}")
        write_backup_info(backup_info, output_path, fmt)
        logger.info("Wrote %s", output_path)

    summary = summarize(backup_info, output_path)
    report("done", detail="Inspection completed", metrics=asdict(summary))
    return {"summary": asdict(summary), "backup_info": backup_info}
