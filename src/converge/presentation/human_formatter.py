"""Human-friendly output formatter - converts plans and results to readable text."""

import json
import os
from typing import Any, Dict, List, Optional
from ..diff.models import AttributeChange, DiffAction, DiffEntry
from ..execute.models import ApplyResult, PlanStatus, StepStatus
from ..plan.models import ExecutionPlan
from ..state.models import ActualStateRecord

_ACTION_SYMBOLS = {
    DiffAction.CREATE: "+",
    DiffAction.UPDATE: "~",
    DiffAction.REPLACE: "-/+",
    DiffAction.DESTROY: "-",
    DiffAction.NO_OP: " ",
}


def _use_ascii(ascii_mode: Optional[bool] = None) -> bool:
    """Resolve whether to use ASCII output (checked at format time)."""
    if ascii_mode is not None:
        return bool(ascii_mode)
    return os.environ.get("CONVERGE_ASCII", "").lower() in ("1", "true", "yes")


def _box(title: str, width: int = 65, ascii_mode: bool = False) -> List[str]:
    """Return box-drawing header lines."""
    b = {"tl": "+", "tr": "+", "h": "-", "v": "|"} if ascii_mode else {"tl": "┌", "tr": "┐", "h": "─", "v": "│"}
    h = b["h"] * (width - 2)
    return [
        b["tl"] + h + b["tr"],
        f"{b['v']} {title:<{width - 4}} {b['v']}",
        ("+" if ascii_mode else "└") + h + ("+" if ascii_mode else "┘"),
        "",
    ]


def _section(title: str, width: int = 65) -> List[str]:
    """Return section divider."""
    h = "-" * width
    return [h, title.center(width), h]


def _render(value: Any) -> str:
    if isinstance(value, str):
        return json.dumps(value)
    return json.dumps(value, sort_keys=True, default=str)


def _format_change(name: str, change: AttributeChange, action: DiffAction) -> str:
    new = "(known after apply)" if change.unknown else _render(change.new)
    marker = "  # forces replacement" if change.forces_replacement and action == DiffAction.REPLACE else ""
    if action == DiffAction.CREATE:
        return f"      {name} = {new}"
    if action == DiffAction.DESTROY:
        return f"      {name} = {_render(change.old)}"
    return f"      {name}: {_render(change.old)} -> {new}{marker}"


def _format_entry(entry: DiffEntry) -> List[str]:
    lines = [f"  {_ACTION_SYMBOLS[entry.action]} {entry.address}"]
    if entry.action == DiffAction.REPLACE:
        detail = entry.reason or "replacement required"
        lines[0] += f"  ({detail}; {entry.replace_strategy.value})"
    for name, change in entry.changes.items():
        lines.append(_format_change(name, change, entry.action))
    return lines


def format_plan(plan: ExecutionPlan, ascii_mode: Optional[bool] = None) -> str:
    """Render an execution plan with its attribute changes and batches."""
    ascii_mode = _use_ascii(ascii_mode)
    bullet = "*" if ascii_mode else "•"
    title = "DESTROY PLAN" if plan.destroy else "EXECUTION PLAN"
    lines = _box(title, ascii_mode=ascii_mode)
    
    if plan.is_empty:
        lines.append("No changes. Infrastructure matches the desired state.")
        return "\n".join(lines)
    
    lines.extend(_section("CHANGES"))
    for entry in sorted(plan.diff.changed(), key=lambda e: e.address):
        lines.extend(_format_entry(entry))
    lines.append("")
    
    lines.extend(_section("ORDER"))
    for index, batch in enumerate(plan.batches, start=1):
        lines.append(f"Batch {index}:")
        for step in batch:
            lines.append(f"  {bullet} {step}")
    lines.append("")
    
    counts = plan.diff.counts()
    lines.append(
        f"Plan: {counts['CREATE']} to add, {counts['UPDATE']} to change, "
        f"{counts['REPLACE']} to replace, {counts['DESTROY']} to destroy."
    )
    return "\n".join(lines)


def format_apply_result(result: ApplyResult, ascii_mode: Optional[bool] = None) -> str:
    """Render an apply summary separating applied from failed and skipped work."""
    ascii_mode = _use_ascii(ascii_mode)
    bullet = "*" if ascii_mode else "•"
    headline = {
        PlanStatus.SUCCEEDED: "APPLY COMPLETE",
        PlanStatus.FAILED: "APPLY FAILED",
        PlanStatus.CANCELLED: "APPLY CANCELLED",
    }.get(result.status, f"APPLY {result.status.value}")
    lines = _box(headline, ascii_mode=ascii_mode)
    
    applied = [step for step in result.steps if step.status == StepStatus.SUCCEEDED]
    if applied:
        lines.extend(_section("APPLIED"))
        for step in applied:
            lines.append(f"  {bullet} {step.operation.value} {step.address}")
        lines.append("")
    
    problems = result.problems()
    if problems:
        lines.extend(_section("NOT APPLIED"))
        for step in problems:
            reason = step.message or ""
            if step.error_kind:
                reason = f"[{step.error_kind}] {reason}"
            lines.append(f"  {bullet} {step.status.value:<8} {step.operation.value} {step.address}: {reason}")
        lines.append("")
    
    counts = result.counts()
    lines.append(
        f"Resources: {counts['added']} added, {counts['changed']} changed, {counts['destroyed']} destroyed."
    )
    
    if result.output_error:
        lines.append("")
        lines.extend(_section("OUTPUTS NOT RESOLVED"))
        lines.append(f"  {bullet} {result.output_error}")
    elif result.outputs:
        lines.append("")
        lines.append(format_outputs(result.outputs))
    return "\n".join(lines)


def format_outputs(outputs: Dict[str, Any]) -> str:
    """Render resolved outputs as 'name = value' lines."""
    lines = ["Outputs:", ""]
    for name in sorted(outputs):
        lines.append(f"{name} = {_render(outputs[name])}")
    return "\n".join(lines)


def format_state_list(records: List[ActualStateRecord]) -> str:
    """One address per line with its identifier."""
    return "\n".join(f"{record.address}  {record.identifier}" for record in records)


def format_record(record: ActualStateRecord) -> str:
    """Render a single recorded resource."""
    lines = [
        f"# {record.address}",
        f"id = {_render(record.identifier)}",
        f"type = {_render(record.type)}",
        f"updated_at = {record.updated_at.isoformat()}",
    ]
    for name in sorted(record.attributes):
        if name == "id":
            continue
        lines.append(f"{name} = {_render(record.attributes[name])}")
    if record.dependencies:
        lines.append(f"dependencies = {_render(record.dependencies)}")
    return "\n".join(lines)
