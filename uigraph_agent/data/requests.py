"""Input and patch models accepted by the graph services."""
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from uigraph_agent.data.graph_structures import DOMSnapshot, SessionStatus, TriggerAction


class CreateProjectInput(BaseModel):
    name: str
    url: str


class UpdateProjectInput(BaseModel):
    name: Optional[str] = None
    url: Optional[str] = None


class CreateUiStateInput(BaseModel):
    project_id: str
    page_url: str
    title: str
    description: str
    is_default: bool = False
    html: Optional[str] = None


class UpdateUiStateInput(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    page_url: Optional[str] = None
    is_default: Optional[bool] = None


class CreateEdgeInput(BaseModel):
    project_id: str
    from_ui_state_id: str
    to_ui_state_id: str
    description: str
    triggered_by: Optional[str] = None
    trigger_type: Optional[str] = None


class UpdateEdgeInput(BaseModel):
    from_ui_state_id: Optional[str] = None
    to_ui_state_id: Optional[str] = None
    description: Optional[str] = None
    triggered_by: Optional[str] = None
    trigger_type: Optional[str] = None


class CreateLabelInput(BaseModel):
    project_id: str
    name: str
    description: str = ""
    selector: str
    url: str
    xpath: Optional[str] = None
    element_text: Optional[str] = None
    query_params: Optional[str] = None
    ui_state_id: Optional[str] = None
    trigger_actions: Optional[List[Dict[str, Any]]] = None


class CreateFeatureInput(BaseModel):
    project_id: str
    name: str
    description: Optional[str] = None


class CreateScenarioInput(BaseModel):
    title: str
    given: str
    when: str
    then: str
    description: Optional[str] = None
    feature_id: Optional[str] = None


class CreateOperationSessionInput(BaseModel):
    project_id: str
    user_goal: Optional[str] = None


class UpdateOperationSessionInput(BaseModel):
    end_time: Optional[datetime] = None
    status: Optional[SessionStatus] = None
    summary: Optional[Any] = None


class CreateUIStateTransitionInput(BaseModel):
    session_id: str
    project_id: str
    to_ui_state_id: str
    trigger_action: TriggerAction
    before_state: DOMSnapshot
    after_state: DOMSnapshot
    from_ui_state_id: Optional[str] = None
    metadata: Optional[Any] = None
    # Callers replaying a recording may pin the id; a replayed row is then skipped by batch inserts.
    id: Optional[str] = None
