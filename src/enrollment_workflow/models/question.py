"""Question type models for enrollment workflow steps.

Each question type maps to a specific input component:
  - text: free text with an optional input mask
  - number: numeric input with min/max bounds
  - boolean: yes/no choice
  - date: date picker with a display format
  - multipleChoice: dropdown, radio or checkbox list; options are either
    static (``values``) or fetched from a remote ``data_source`` whose query
    parameters are taken from the answers of other questions

Any question may carry a ``pre_populated_response`` supplied by the back end;
it seeds the question's initial value and decides the response source when
the answer is submitted.

The discriminated ``Question`` union uses ``questionType`` as its
discriminator.
"""

from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import Field

from ..constants import NO, YES
from .base import WireModel


# --- Pre-populated answers and remote option sources ---

class PrePopulatedResponse(WireModel):
    """An answer known before the agent sees the question."""

    response_type: Literal["string", "date", "boolean"] = "string"
    value: Union[bool, str, None] = None
    id: Optional[str] = None
    response_source_type: int = 2
    response_date: Optional[str] = None

    @property
    def as_answer(self) -> str:
        """The value as an answer string: booleans become yes/no, falsy becomes ""."""
        if isinstance(self.value, bool):
            return YES if self.value else NO
        return self.value or ""


class QueryStringParameter(WireModel):
    """Query parameter filled from another question's answer."""

    parameter_type: Literal["question"] = "question"
    question_id: str
    parameter_name: str


class DataSource(WireModel):
    """Remote option list for a multipleChoice question."""

    data_source_type: Literal["api"] = "api"
    url: str
    request_method_type: Literal["get"] = "get"
    query_string_parameters: List[QueryStringParameter] = []
    label_property_name: str = "label"
    value_property_name: str = "value"

    @property
    def source_question_id(self) -> Optional[str]:
        """Question whose answer drives this source (first parameter), if any."""
        if not self.query_string_parameters:
            return None
        return self.query_string_parameters[0].question_id

    def build_params(self, value: str) -> Dict[str, str]:
        """Query parameters for a fetch triggered by ``value``."""
        return {p.parameter_name: value for p in self.query_string_parameters}

    def to_options(self, records: List[Dict[str, Any]]) -> List["OptionValue"]:
        """Reduce fetched records to value/label pairs.

        Raises ``ValueError`` when a record is not a mapping.
        """
        for record in records:
            if not isinstance(record, dict):
                raise ValueError(
                    f"data source {self.url} returned a {type(record).__name__} record, expected an object"
                )
        return [
            OptionValue(
                value=str(record.get(self.value_property_name, "")),
                label=str(record.get(self.label_property_name, "")),
            )
            for record in records
        ]


class OptionValue(WireModel):
    """One selectable option."""

    value: str
    label: str = ""


# --- Question types ---

class BaseQuestion(WireModel):
    """Fields shared by all question types."""

    id: str
    label_text: str = ""
    meta_data_tag: str = ""
    pre_populated_response: Optional[PrePopulatedResponse] = None

    @property
    def initial_value(self) -> str:
        """Answer seeded from the pre-populated response ("" when absent)."""
        if self.pre_populated_response is None:
            return ""
        return self.pre_populated_response.as_answer


class TextQuestion(BaseQuestion):
    question_type: Literal["text"] = "text"
    max_length: Optional[int] = None
    allow_multiple_lines: bool = False
    input_mask_type: str = "none"


class NumberQuestion(BaseQuestion):
    question_type: Literal["number"] = "number"
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    default_value: Optional[float] = None
    input_mask_type: str = "number"


class BooleanQuestion(BaseQuestion):
    question_type: Literal["boolean"] = "boolean"
    display_type: str = "radioButtonList"


class DateQuestion(BaseQuestion):
    question_type: Literal["date"] = "date"
    date_format: str = "MM/DD/YYYY"


class MultipleChoiceQuestion(BaseQuestion):
    question_type: Literal["multipleChoice"] = "multipleChoice"
    display_type: str = "dropDown"
    allow_multiple_selection: bool = False
    values: List[OptionValue] = []
    data_source: Optional[DataSource] = None


Question = Annotated[
    Union[TextQuestion, NumberQuestion, BooleanQuestion, DateQuestion, MultipleChoiceQuestion],
    Field(discriminator="question_type"),
]
