#!/usr/bin/env python3
"""Simulate a workflow session end-to-end with an in-memory back end.

Loads a workflow definition (the sample under ``workflows/`` by default),
walks every page with scripted answers, submits each page and prints a rich
audit of visibility/required changes, saved responses and navigation.

Usage::

    # Happy path through the sample workflow
    python scripts/simulate_workflow.py

    # Answer "yes" to the disqualifying question
    python scripts/simulate_workflow.py --knockout

    # Make the first save fail, then retry it
    python scripts/simulate_workflow.py --fail-first-save

    # Debug logging of every actor message
    python scripts/simulate_workflow.py -v
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Any, Optional

from rich.console import Console
from rich.table import Table

_SCRIPT_DIR = Path(__file__).resolve().parent
_REPO_ROOT = _SCRIPT_DIR.parent
sys.path.insert(0, str(_REPO_ROOT / "src"))

from enrollment_workflow import WorkflowSession, load_settings  # noqa: E402
from enrollment_workflow.interfaces import DataSourceFetcher, WorkflowGateway  # noqa: E402
from enrollment_workflow.loader import default_workflow_dir, load_workflow_file  # noqa: E402
from enrollment_workflow.models import Application, Workflow, WorkflowResponsesBody  # noqa: E402
from enrollment_workflow.models.runtime import QuestionSnapshot  # noqa: E402

APPLICATION_KEY = "SIM-APP-001"

# Scripted answers: step id -> [(node id, value)]
_ANSWERS: dict[str, list[tuple[str, str]]] = {
    "eligibility": [
        ("has-medicare-node", "yes"),
        ("medicare-number-node", "1EG4TE5MK72"),
        ("esrd-node", "no"),
    ],
    "contact": [
        ("state-node", "TX"),
        ("county-node", "48201"),
        ("wants-texts-node", "yes"),
        ("mobile-node", "555-0100"),
    ],
}

# Records the in-memory data source returns per state
_COUNTIES: dict[str, list[dict[str, str]]] = {
    "FL": [{"code": "12086", "name": "Miami-Dade"}, {"code": "12011", "name": "Broward"}],
    "TX": [{"code": "48201", "name": "Harris"}, {"code": "48113", "name": "Dallas"}],
}

console = Console()


class InMemoryBackend(WorkflowGateway, DataSourceFetcher):
    """Serves one workflow and records every call."""

    def __init__(self, workflow: Workflow, *, fail_first_save: bool = False) -> None:
        self.workflow = workflow
        self.saved: list[WorkflowResponsesBody] = []
        self.confirmation_id: Optional[str] = None
        self._fail_next_save = fail_first_save

    async def fetch_application(self, application_key: str) -> Application:
        return Application(application_key=application_key, workflow_id=self.workflow.id)

    async def fetch_workflow(self, workflow_id: str, application_key: str) -> Workflow:
        return self.workflow

    async def send_workflow_responses(self, application_key: str, body: WorkflowResponsesBody) -> None:
        if self._fail_next_save:
            self._fail_next_save = False
            raise RuntimeError("Simulated outage while saving responses")
        self.saved.append(body)

    async def submit_application(self, application_key: str) -> Optional[str]:
        self.confirmation_id = f"CONF-{application_key}"
        return self.confirmation_id

    async def fetch_records(self, url: str, params: dict[str, str]) -> list[dict[str, Any]]:
        return _COUNTIES.get(params.get("state", ""), [])


# ---------------------------------------------------------------------------
# Output helpers
# ---------------------------------------------------------------------------

def print_step(session: WorkflowSession, step_id: str) -> None:
    snapshot = session.step(step_id).snapshot()
    table = Table(title=f"{snapshot.name} ({snapshot.id}) — form: {snapshot.form_state}")
    table.add_column("node")
    table.add_column("question")
    table.add_column("visible")
    table.add_column("required")
    table.add_column("value")
    table.add_column("options")
    for child in snapshot.children:
        if isinstance(child, QuestionSnapshot):
            options = ", ".join(o.value for o in child.options or []) or "-"
            table.add_row(
                child.id,
                child.question_id,
                "yes" if child.is_visible else "no",
                "yes" if child.is_required else "no",
                child.value or "-",
                options,
            )
        else:
            table.add_row(child.id, "[dim]text[/]", "yes" if child.is_visible else "no", "-", "-", "-")
    console.print(table)


async def run_simulation(workflow_path: Path, knockout: bool, fail_first_save: bool) -> int:
    workflow = load_workflow_file(workflow_path)
    backend = InMemoryBackend(workflow, fail_first_save=fail_first_save)
    answers = {step: list(pairs) for step, pairs in _ANSWERS.items()}
    if knockout:
        answers["eligibility"] = [(n, "yes" if n == "esrd-node" else v) for n, v in answers["eligibility"]]

    async with WorkflowSession(backend, fetcher=backend, settings=load_settings()) as session:
        session.status.subscribe(
            lambda event: event.message and console.print(f"  [cyan]status[/] {event.kind}: {event.message}")
        )
        await session.load(APPLICATION_KEY)

        visited: set[str] = set()
        while session.current_step_id and session.current_step_id not in visited:
            step_id = session.current_step_id
            visited.add(step_id)
            console.rule(f"[bold]Step {step_id}")
            for node_id, value in answers.get(step_id, []):
                await session.answer(step_id, node_id, value)
                console.print(f"  [dim]A:[/] {node_id} = {value!r}")
            print_step(session, step_id)

            await session.submit(step_id)
            step = session.step(step_id)
            if step.submit_error:
                console.print(f"  [red]ERROR[/] {step.submit_error} — retrying")
                await session.retry(step_id)
            if step.is_cancelled:
                console.print(f"  [red]✗[/] Disqualified: {session.snapshot().knockout_message}")
                return 1

        console.rule("[bold]Session Summary")
        console.print(f"  Responses saved: {len(backend.saved)}")
        console.print(f"  Confirmation:    {backend.confirmation_id or '-'}")
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Simulate a workflow session end-to-end with an in-memory back end.",
    )
    parser.add_argument(
        "-w", "--workflow",
        type=Path,
        default=default_workflow_dir() / "sample_enrollment.yaml",
        help="Workflow YAML/JSON file (default: workflows/sample_enrollment.yaml)",
    )
    parser.add_argument(
        "--knockout",
        action="store_true",
        help="Answer the disqualifying question with yes",
    )
    parser.add_argument(
        "--fail-first-save",
        action="store_true",
        help="Fail the first responses save to exercise retry",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log every actor message (DEBUG)",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else load_settings().log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    sys.exit(asyncio.run(run_simulation(args.workflow, args.knockout, args.fail_first_save)))


if __name__ == "__main__":
    main()
