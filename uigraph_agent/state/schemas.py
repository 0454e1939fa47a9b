import operator
from typing import Annotated, List, Optional

from typing_extensions import TypedDict


class ToolLoopState(TypedDict):
    """
    Running transcript of one Think/Act conversation.
    """
    messages: Annotated[list, operator.add]
    turn_count: int


class CodeGenerationState(TypedDict):
    """
    Represents the state of one generate / execute / repair run for a scenario.
    """
    scenario: dict
    project_id: Optional[str]
    project_url: Optional[str]
    labels: List[dict]
    code: Optional[str]
    # 1-indexed count of executions performed so far
    attempt: int
    success: bool
    error_message: Optional[str]
    stack_trace: Optional[str]
    output: Optional[str]
    logs: Annotated[list, operator.add]
