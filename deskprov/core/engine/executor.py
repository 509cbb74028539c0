"""
Engine executor — run provisioning steps in order, stop at the first failure.

Flow:
    steps → run each → record StepResult → stop on error → report → audit

A step is a named callable. It succeeds by returning (optionally a
short summary) and fails by raising a DeskprovError; anything else is
a bug and propagates. Once a step fails the remaining steps are
recorded as skipped, so the report always says where the run stopped.
"""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from deskprov.core.errors import DeskprovError
from deskprov.core.persistence.audit import AuditEntry, AuditWriter

logger = logging.getLogger(__name__)


@dataclass
class ProvisionStep:
    """One named unit of a provisioning pass."""

    name: str
    run: Callable[[], str | None]
    description: str = ""


@dataclass
class StepResult:
    """Outcome of one step."""

    name: str
    status: str = "ok"              # ok, failed, skipped
    summary: str = ""
    error: str | None = None
    error_type: str | None = None
    duration_ms: int = 0

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    @property
    def failed(self) -> bool:
        return self.status == "failed"

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "status": self.status,
            "summary": self.summary,
            "error": self.error,
            "error_type": self.error_type,
            "duration_ms": self.duration_ms,
        }


@dataclass
class ProvisionReport:
    """Result of running a list of steps."""

    operation_id: str = ""
    steps: list[StepResult] = field(default_factory=list)
    duration_ms: int = 0

    @property
    def total(self) -> int:
        return len(self.steps)

    @property
    def succeeded(self) -> int:
        return sum(1 for s in self.steps if s.ok)

    @property
    def failed_step(self) -> StepResult | None:
        for step in self.steps:
            if step.failed:
                return step
        return None

    @property
    def status(self) -> str:
        return "failed" if self.failed_step else "ok"

    def to_dict(self) -> dict:
        failed = self.failed_step
        return {
            "operation_id": self.operation_id,
            "status": self.status,
            "total": self.total,
            "succeeded": self.succeeded,
            "failed_step": failed.name if failed else None,
            "duration_ms": self.duration_ms,
            "steps": [s.to_dict() for s in self.steps],
        }


def run_steps(steps: list[ProvisionStep], operation_id: str | None = None) -> ProvisionReport:
    """Execute steps in program order, stopping at the first failure."""
    report = ProvisionReport(operation_id=operation_id or generate_operation_id())
    run_start = time.monotonic()
    stopped = False

    for step in steps:
        if stopped:
            report.steps.append(StepResult(name=step.name, status="skipped"))
            continue

        logger.info("▶ %s", step.description or step.name)
        start = time.monotonic()
        result = StepResult(name=step.name)
        try:
            summary = step.run()
            result.summary = summary or ""
        except DeskprovError as e:
            result.status = "failed"
            result.error = str(e)
            result.error_type = type(e).__name__
            stopped = True
            logger.error("✗ %s failed: %s", step.name, e)
        result.duration_ms = int((time.monotonic() - start) * 1000)
        report.steps.append(result)

        if result.ok:
            logger.info("✓ %s (%dms)", step.name, result.duration_ms)

    report.duration_ms = int((time.monotonic() - run_start) * 1000)
    return report


def write_audit_entry(
    report: ProvisionReport,
    audit_writer: AuditWriter,
    profile_name: str = "",
    operation_type: str = "provision",
    context: dict[str, Any] | None = None,
) -> None:
    """Append the report to the audit ledger."""
    failed = report.failed_step
    entry = AuditEntry(
        operation_id=report.operation_id,
        operation_type=operation_type,
        profile=profile_name,
        status=report.status,
        steps_total=report.total,
        steps_succeeded=report.succeeded,
        failed_step=failed.name if failed else "",
        duration_ms=report.duration_ms,
        errors=[s.error for s in report.steps if s.error],
        context=context or {},
    )
    audit_writer.write(entry)


def generate_operation_id() -> str:
    """Generate a unique operation ID."""
    now = datetime.now(UTC).strftime("%Y%m%d-%H%M%S")
    short = uuid.uuid4().hex[:6]
    return f"op-{now}-{short}"
