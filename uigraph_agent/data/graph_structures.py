"""Entity models of the UI-state graph.

Every entity is owned by a Project through ``project_id``. Timestamps are
timezone-aware UTC datetimes.
"""
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field


class SessionStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    ABANDONED = "abandoned"


class Project(BaseModel):
    id: str
    name: str
    url: str
    created_at: datetime
    updated_at: datetime


class Page(BaseModel):
    """A unique URL within a project."""

    id: str
    project_id: str
    url: str
    title: str
    created_at: datetime
    updated_at: datetime


class UiState(BaseModel):
    """One distinguishable visual/interactive configuration of a Page."""

    id: str
    project_id: str
    page_id: str
    page_url: str
    title: str
    description: str
    is_default: bool = False
    html: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class Edge(BaseModel):
    """A directed, described transition between two UiStates."""

    id: str
    project_id: str
    from_ui_state_id: str
    to_ui_state_id: str
    description: str
    triggered_by: Optional[str] = None
    trigger_type: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class Label(BaseModel):
    """A named, located reference to a DOM element."""

    id: str
    project_id: str
    name: str
    description: str = ""
    selector: str
    xpath: Optional[str] = None
    element_text: Optional[str] = None
    url: str
    query_params: Optional[str] = None
    ui_state_id: Optional[str] = None
    # Interactions that made the element appear; None when never recorded.
    trigger_actions: Optional[List[Dict[str, Any]]] = None
    created_at: datetime
    updated_at: datetime


class Feature(BaseModel):
    id: str
    project_id: str
    name: str
    description: Optional[str] = None
    created_at: datetime


class Scenario(BaseModel):
    """A Given/When/Then behaviour to turn into automation code."""

    id: str
    feature_id: Optional[str] = None
    title: str
    description: Optional[str] = None
    given: str
    when: str
    then: str
    created_at: datetime


class OperationSession(BaseModel):
    id: str
    project_id: str
    start_time: datetime
    end_time: Optional[datetime] = None
    user_goal: Optional[str] = None
    status: SessionStatus = SessionStatus.ACTIVE
    summary: Optional[Any] = None
    transition_count: int = 0


class Point(BaseModel):
    x: float
    y: float


class Size(BaseModel):
    width: float
    height: float


class TriggerAction(BaseModel):
    """The user interaction that caused a recorded transition."""

    type: Literal["click", "input", "submit", "hover", "focus", "blur", "keydown", "keyup"]
    element: str
    selector: str
    text: Optional[str] = None
    value: Optional[str] = None
    timestamp: str
    coordinates: Optional[Point] = None
    element_size: Optional[Size] = None


class ModifiedElement(BaseModel):
    selector: str
    changes: Any = None


class DOMSnapshot(BaseModel):
    visible_elements: List[str] = Field(default_factory=list)
    hidden_elements: List[str] = Field(default_factory=list)
    form_values: Dict[str, str] = Field(default_factory=dict)
    scroll_position: Point = Field(default_factory=lambda: Point(x=0, y=0))
    active_element: str = ""
    new_elements: Optional[List[str]] = None
    removed_elements: Optional[List[str]] = None
    modified_elements: Optional[List[ModifiedElement]] = None


class UIStateTransition(BaseModel):
    """One recorded step within an OperationSession."""

    id: str
    session_id: str
    project_id: str
    from_ui_state_id: Optional[str] = None
    to_ui_state_id: str
    trigger_action: TriggerAction
    before_state: DOMSnapshot
    after_state: DOMSnapshot
    metadata: Optional[Any] = None
    timestamp: datetime


class UIStateTransitionDetail(UIStateTransition):
    """A transition joined with the titles of its endpoint UiStates."""

    from_ui_state_title: Optional[str] = None
    from_page_url: Optional[str] = None
    to_ui_state_title: Optional[str] = None
    to_page_url: Optional[str] = None
