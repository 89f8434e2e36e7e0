"""Rendering of run plans and run reports."""

from __future__ import annotations

from relorch.output.console import ConsoleProtocol, Style
from relorch.release.orchestrator import RunPlan
from relorch.release.report import EntryOutcome, RunReport

__all__ = ["print_plan", "print_report"]


def print_plan(plan: RunPlan, console: ConsoleProtocol) -> None:
    prerelease = "yes" if plan.version.prerelease else "no"
    console.header(f"Release v{plan.version.version} (prerelease: {prerelease})")
    for entry in plan.entries:
        console.print(f"{entry.name} [{entry.runner}] {entry.target}", Style.BOLD)
        console.print(f"  {entry.raw_name} -> {entry.canonical_name}", Style.DIM)
        console.print(f"  {entry.canonical_name}.sha256", Style.DIM)


def _describe(outcome: EntryOutcome) -> str:
    if outcome.cancelled:
        return f"{outcome.entry}: cancelled ({outcome.failed_stage})"
    message = outcome.error.message if outcome.error is not None else "failed"
    return f"{outcome.entry}: {outcome.failed_stage} failed: {message}"


def print_report(report: RunReport, console: ConsoleProtocol) -> None:
    console.header(f"Release {report.release.display_name}")
    for outcome in report.outcomes:
        if outcome.ok:
            console.success(f"{outcome.entry}: {outcome.canonical_name}")
        else:
            console.error(_describe(outcome))

    total = len(report.outcomes)
    console.newline()
    console.print(
        f"{len(report.succeeded)}/{total} entries published, {len(report.assets)} assets",
        Style.BOLD,
    )
    if report.failed:
        # Uploads are never rolled back.
        console.warning(f"release {report.release.tag} may be partially populated")
