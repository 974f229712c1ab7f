"""Build the responses payload a step posts when its answers are saved.

Rules:
  - one entry per answered question of the step; empty answers are skipped
  - ``dataType``: boolean → 1, date → 2, everything else → 3 (string)
  - ``responseSource``: the pre-populated answer's own source when the
    submitted value equals it (booleans compared as "yes"/"no"), otherwise
    agent (manual entry)
  - ``responseDate``: UTC timestamp of the build
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Iterable, Mapping, Optional

from enrollment_workflow.constants import ResponseDataType, ResponseSource
from enrollment_workflow.models.question import PrePopulatedResponse
from enrollment_workflow.models.runtime import ChildQuestion
from enrollment_workflow.models.workflow import QuestionStepResponse, WorkflowResponsesBody

logger = logging.getLogger(__name__)

_DATA_TYPES: dict[str, ResponseDataType] = {
    "boolean": ResponseDataType.BOOLEAN,
    "date": ResponseDataType.DATE,
}


def response_data_type(question_type: str) -> int:
    return int(_DATA_TYPES.get(question_type, ResponseDataType.STRING))


def response_source(pre_populated: Optional[PrePopulatedResponse], value: str) -> int:
    if pre_populated is not None and pre_populated.as_answer == value:
        return int(pre_populated.response_source_type)
    return int(ResponseSource.AGENT)


def build_workflow_responses(
    workflow_id: str,
    step_id: str,
    questions: Iterable[ChildQuestion],
    values: Mapping[str, str],
    *,
    now: Optional[datetime] = None,
) -> WorkflowResponsesBody:
    """Assemble the POST body for one step's answers.

    Args:
        workflow_id: id of the loaded workflow
        step_id: the step whose answers are saved
        questions: the step's question nodes (for type and pre-populated data)
        values: question_id → answer, as held by the step
        now: timestamp override for deterministic output
    """
    response_date = (now or datetime.now(timezone.utc)).isoformat()
    responses = []
    for question in questions:
        value = values.get(question.question_id, "")
        if not value:
            continue
        responses.append(
            QuestionStepResponse(
                step_id=step_id,
                question_id=question.question_id,
                data_type=response_data_type(question.question_type),
                response_date=response_date,
                response_value=value,
                response_source=response_source(question.pre_populated_response, value),
            )
        )
    logger.debug("built %d responses for step %s", len(responses), step_id)
    return WorkflowResponsesBody(workflow_id=workflow_id, question_step_responses=responses)
