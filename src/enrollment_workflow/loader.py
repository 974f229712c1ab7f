"""Workflow loading — parse authored workflows and flatten pages into steps.

Usage::

    workflow = load_workflow_file("workflows/sample_enrollment.yaml")
    steps = build_steps(workflow)
    steps[0].next_step_id   # resolved once from the page's own rules

``build_steps`` resolves everything a StepActor needs up front:

  - child steps: the question/text sub-steps of the page in authored order
    (nested groups are flattened, summary blocks are skipped)
  - ``next_step_id``: the target of the last ``nextStep`` action among the
    page's ``onCompleteConditionalActions``
  - ``has_pass_workflow``: whether any of those actions is ``passWorkflow``
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterator, Optional

import yaml

from enrollment_workflow.models.action import NextStepAction, PassWorkflowAction
from enrollment_workflow.models.question import MultipleChoiceQuestion
from enrollment_workflow.models.runtime import (
    ChildQuestion,
    ChildStep,
    ChildText,
    DataSourceDependency,
    StepDefinition,
)
from enrollment_workflow.models.step import BaseStep, GroupStep, QuestionStep, TextStep
from enrollment_workflow.models.workflow import Workflow

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# File helpers
# ---------------------------------------------------------------------------

def find_repo_root(start: Optional[Path] = None) -> Path:
    """Walk upwards from *start* to find the repo root (dir with pyproject.toml or .git).

    Falls back to cwd if no marker is found.
    """
    p = (start or Path(__file__).resolve()).parent
    for parent in [p, *p.parents]:
        if (parent / "pyproject.toml").exists() or (parent / ".git").exists():
            return parent
    return Path.cwd()


def load_document(path: Path | str) -> Any:
    """Load a YAML or JSON file and return the parsed contents."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Missing workflow file: {path}")
    with path.open("r", encoding="utf-8") as f:
        if path.suffix == ".json":
            return json.load(f)
        return yaml.safe_load(f)


def load_workflow_file(path: Path | str) -> Workflow:
    """Parse and validate an authored workflow document."""
    workflow = Workflow.model_validate(load_document(path))
    logger.info("Loaded workflow %s (%d steps) from %s", workflow.id, len(workflow.steps), path)
    return workflow


def default_workflow_dir() -> Path:
    return find_repo_root() / "workflows"


# ---------------------------------------------------------------------------
# Step flattening
# ---------------------------------------------------------------------------

def iter_child_steps(group: GroupStep) -> Iterator[ChildStep]:
    """Yield the question/text nodes of a page, depth first."""
    for sub in group.sub_steps:
        if isinstance(sub, QuestionStep):
            yield to_child_question(sub)
        elif isinstance(sub, TextStep):
            yield ChildText(
                id=sub.id,
                header_text=sub.header_text,
                display_text=sub.display_text,
                is_visible=sub.is_visible,
            )
        elif isinstance(sub, GroupStep):
            yield from iter_child_steps(sub)


def to_child_question(step: QuestionStep) -> ChildQuestion:
    question = step.question
    options = None
    data_source = None
    if isinstance(question, MultipleChoiceQuestion):
        options = list(question.values)
        data_source = question.data_source
    return ChildQuestion(
        id=step.id,
        question_id=question.id,
        question_type=question.question_type,
        label_text=step.label_text or question.label_text,
        is_visible=step.is_visible,
        is_required=step.is_required,
        initial_value=question.initial_value,
        pre_populated_response=question.pre_populated_response,
        conditional_actions=step.conditional_actions,
        options=options,
        data_source=data_source,
    )


def resolve_next_step_id(step: BaseStep) -> str:
    """Target of the last ``nextStep`` action in the step's own rules ("" if none)."""
    next_step_id = ""
    for conditional in step.conditional_actions:
        for action in conditional.actions:
            if isinstance(action, NextStepAction):
                next_step_id = action.step_id
    return next_step_id


def has_pass_workflow(step: BaseStep) -> bool:
    return any(
        isinstance(action, PassWorkflowAction)
        for conditional in step.conditional_actions
        for action in conditional.actions
    )


def build_step(group: GroupStep) -> StepDefinition:
    return StepDefinition(
        id=group.id,
        name=group.header_text or group.label_text,
        child_steps=list(iter_child_steps(group)),
        next_step_id=resolve_next_step_id(group),
        has_pass_workflow=has_pass_workflow(group),
    )


def build_steps(workflow: Workflow) -> list[StepDefinition]:
    """Flatten every page of a workflow, preserving authored order."""
    return [build_step(group) for group in workflow.steps]


def build_data_source_dependencies(step: StepDefinition) -> list[DataSourceDependency]:
    """One dependency per question whose data source is driven by another answer."""
    dependencies = []
    for question in step.questions:
        if question.data_source is None:
            continue
        source = question.data_source.source_question_id
        if source is None:
            continue
        dependencies.append(DataSourceDependency(question_id=source, origin_id=question.id))
    return dependencies
