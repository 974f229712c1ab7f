"""enrollment_workflow — actor runtime for rule-driven enrollment questionnaires.

Public API:
    WorkflowSession       — async facade: load, answer, submit, retry, back
    WorkflowOrchestrator  — root actor owning the steps and the current step
    StepActor             — one page: children, actions queue, submission
    QuestionActor         — one question: value, visibility, rules, options
    TextActor             — static display block (visibility only)
    RuleEvaluator         — ephemeral evaluator of a question's rules
    GroupEvaluator        — ephemeral collector + evaluator of a group rule
    FormSyncCollector     — ephemeral collector resynchronising step values
    ActorSystem           — mailboxes, address routing, settle()

Collaborators:
    WorkflowGateway       — ABC for application/workflow fetch and submission
    DataSourceFetcher     — ABC for remote option lists
    QueryCache            — memoized fetch(key) / invalidate(key)
    StatusChannel         — pub/sub for loading/success/error messages

Loading helpers:
    load_workflow_file    — parse a YAML/JSON workflow definition
    build_steps           — flatten pages into StepDefinitions
"""

from enrollment_workflow.cache import QueryCache
from enrollment_workflow.collector import FormSyncCollector, ValueCollector
from enrollment_workflow.config import WorkflowSettings, load_settings
from enrollment_workflow.evaluator import GroupEvaluator, RuleEvaluator
from enrollment_workflow.interfaces import DataSourceFetcher, WorkflowGateway
from enrollment_workflow.loader import build_steps, load_workflow_file
from enrollment_workflow.question import QuestionActor
from enrollment_workflow.runtime import Actor, ActorSystem
from enrollment_workflow.session import WorkflowSession
from enrollment_workflow.status import StatusChannel, StatusEvent
from enrollment_workflow.step import StepActor
from enrollment_workflow.text import TextActor
from enrollment_workflow.workflow import WorkflowOrchestrator

__all__ = [
    # Session & actors
    "WorkflowSession",
    "WorkflowOrchestrator",
    "StepActor",
    "QuestionActor",
    "TextActor",
    "RuleEvaluator",
    "GroupEvaluator",
    "ValueCollector",
    "FormSyncCollector",
    "Actor",
    "ActorSystem",
    # Collaborators
    "WorkflowGateway",
    "DataSourceFetcher",
    "QueryCache",
    "StatusChannel",
    "StatusEvent",
    # Configuration
    "WorkflowSettings",
    "load_settings",
    # Loading
    "build_steps",
    "load_workflow_file",
]
