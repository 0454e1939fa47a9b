"""This module defines the graph tools an agent can call to read and write
the UI-state graph of one project.

Reference tools are read-only and safe to call at any time. Mutation tools
go through the graph services, so every call is validated on its own: a
tool never assumes the agent called the others in dependency order, and
misuse surfaces as NotFoundError / BadRequestError for the agent loop to
relay back.
"""

import json
import logging
from enum import Enum
from typing import Dict, List, Optional, Type

from langchain_core.tools import BaseTool
from pydantic import BaseModel, Field

from uigraph_agent.data import CreateEdgeInput, CreateLabelInput, CreateUiStateInput
from uigraph_agent.services import GraphServices


class GraphToolName(str, Enum):
    GET_PAGES = "getPages"
    GET_LABELS = "getLabels"
    GET_EDGES = "getEdges"
    GET_UI_STATES = "getUIStates"
    SAVE_PAGE = "savePage"
    SAVE_LABEL = "saveLabel"
    SAVE_EDGE = "saveEdge"
    SAVE_UI_STATE = "saveUIState"


REFERENCE_TOOL_NAMES = (
    GraphToolName.GET_PAGES,
    GraphToolName.GET_LABELS,
    GraphToolName.GET_EDGES,
    GraphToolName.GET_UI_STATES,
)
MUTATION_TOOL_NAMES = (
    GraphToolName.SAVE_PAGE,
    GraphToolName.SAVE_LABEL,
    GraphToolName.SAVE_EDGE,
    GraphToolName.SAVE_UI_STATE,
)


def _dump(models) -> str:
    if isinstance(models, list):
        return json.dumps([m.model_dump(mode="json") for m in models], ensure_ascii=False)
    return models.model_dump_json()


# --- Argument schemas ---


class NoArgs(BaseModel):
    pass


class GetLabelsArgs(BaseModel):
    url: str = Field(..., description="URL of the page whose labels to fetch")


class SavePageArgs(BaseModel):
    title: str = Field(..., description="Title or identifier of the page")
    url: str = Field(..., description="URL of the page")


class SaveLabelArgs(BaseModel):
    name: str = Field(..., description="Name of the DOM element")
    description: str = Field(..., description="What the element is for")
    selector: str = Field(..., description="Playwright selector that locates the element")
    url: str = Field(..., description="URL of the page the element lives on")
    ui_state_id: str = Field(..., description="ID of the UIState in which the element is visible")
    element_text: Optional[str] = Field(None, description="Visible text of the element")


class SaveEdgeArgs(BaseModel):
    from_ui_state_id: str = Field(..., description="ID of the source UIState")
    to_ui_state_id: str = Field(..., description="ID of the destination UIState")
    description: str = Field(..., description="How the transition happens, e.g. which button is pressed")
    triggered_by: Optional[str] = Field(
        None, description="Playwright locator of the element that triggers the transition"
    )
    trigger_type: Optional[str] = Field(None, description="Interaction type such as 'click'")


class SaveUIStateArgs(BaseModel):
    title: str = Field(..., description="Title of the UIState")
    description: str = Field(..., description="Description of what is visible in this UIState")
    page_url: str = Field(..., description="URL of the page this UIState belongs to; save the page first")
    is_default: Optional[bool] = Field(
        False, description="Whether this is the page's default UIState (at most one per page)"
    )


# --- Tools ---


class GraphTool(BaseTool):
    """Base for tools bound to one project of the graph."""

    services: GraphServices = Field(...)
    project_id: str = Field(...)


class GetPagesTool(GraphTool):
    name: str = GraphToolName.GET_PAGES.value
    description: str = "Returns the saved pages of the site. A page owns several UIStates."
    args_schema: Type[BaseModel] = NoArgs

    def _run(self) -> str:
        return _dump(self.services.pages.find_by_project(self.project_id))


class GetLabelsTool(GraphTool):
    name: str = GraphToolName.GET_LABELS.value
    description: str = "Returns the labelled DOM elements saved for the given URL."
    args_schema: Type[BaseModel] = GetLabelsArgs

    def _run(self, url: str) -> str:
        return _dump(self.services.labels.get_labels_by_url(url, self.project_id))


class GetEdgesTool(GraphTool):
    name: str = GraphToolName.GET_EDGES.value
    description: str = "Returns the saved transitions between UIStates."
    args_schema: Type[BaseModel] = NoArgs

    def _run(self) -> str:
        return _dump(self.services.edges.find_by_project(self.project_id))


class GetUIStatesTool(GraphTool):
    name: str = GraphToolName.GET_UI_STATES.value
    description: str = "Returns the saved UIStates of every page."
    args_schema: Type[BaseModel] = NoArgs

    def _run(self) -> str:
        return _dump(self.services.ui_states.find_by_project(self.project_id))


class SavePageTool(GraphTool):
    name: str = GraphToolName.SAVE_PAGE.value
    description: str = "Saves a page of the site. Saving an already known URL is harmless."
    args_schema: Type[BaseModel] = SavePageArgs

    def _run(self, title: str, url: str) -> str:
        logging.info(f"[{self.name}] {url}")
        return _dump(self.services.pages.save_page(self.project_id, url, title))


class SaveLabelTool(GraphTool):
    name: str = GraphToolName.SAVE_LABEL.value
    description: str = "Saves a labelled DOM element found in a UIState."
    args_schema: Type[BaseModel] = SaveLabelArgs

    def _run(
        self, name: str, description: str, selector: str, url: str, ui_state_id: str, element_text: str = None
    ) -> str:
        label = self.services.labels.save_label(
            CreateLabelInput(
                project_id=self.project_id,
                name=name,
                description=description,
                selector=selector,
                url=url,
                ui_state_id=ui_state_id,
                element_text=element_text,
            )
        )
        return _dump(label)


class SaveEdgeTool(GraphTool):
    name: str = GraphToolName.SAVE_EDGE.value
    description: str = "Saves a transition between two existing UIStates. Save both UIStates first."
    args_schema: Type[BaseModel] = SaveEdgeArgs

    def _run(
        self,
        from_ui_state_id: str,
        to_ui_state_id: str,
        description: str,
        triggered_by: str = None,
        trigger_type: str = None,
    ) -> str:
        edge = self.services.edges.create(
            CreateEdgeInput(
                project_id=self.project_id,
                from_ui_state_id=from_ui_state_id,
                to_ui_state_id=to_ui_state_id,
                description=description,
                triggered_by=triggered_by,
                trigger_type=trigger_type,
            )
        )
        return _dump(edge)


class SaveUIStateTool(GraphTool):
    name: str = GraphToolName.SAVE_UI_STATE.value
    description: str = "Saves a UIState of a page. Fails if the page already has a default UIState and is_default is true."
    args_schema: Type[BaseModel] = SaveUIStateArgs

    def _run(self, title: str, description: str, page_url: str, is_default: bool = False) -> str:
        ui_state = self.services.ui_states.create(
            CreateUiStateInput(
                project_id=self.project_id,
                page_url=page_url,
                title=title,
                description=description,
                is_default=bool(is_default),
            )
        )
        return _dump(ui_state)


TOOL_CLASSES: Dict[GraphToolName, Type[GraphTool]] = {
    GraphToolName.GET_PAGES: GetPagesTool,
    GraphToolName.GET_LABELS: GetLabelsTool,
    GraphToolName.GET_EDGES: GetEdgesTool,
    GraphToolName.GET_UI_STATES: GetUIStatesTool,
    GraphToolName.SAVE_PAGE: SavePageTool,
    GraphToolName.SAVE_LABEL: SaveLabelTool,
    GraphToolName.SAVE_EDGE: SaveEdgeTool,
    GraphToolName.SAVE_UI_STATE: SaveUIStateTool,
}


def build_tool(name: GraphToolName, services: GraphServices, project_id: str) -> GraphTool:
    return TOOL_CLASSES[GraphToolName(name)](services=services, project_id=project_id)


def create_reference_tools(services: GraphServices, project_id: str) -> List[GraphTool]:
    """Read-only tools, used by code generation."""
    return [build_tool(name, services, project_id) for name in REFERENCE_TOOL_NAMES]


def create_all_tools(services: GraphServices, project_id: str) -> List[GraphTool]:
    """Mutation tools followed by the reference tools, used by exploration."""
    mutation_tools = [build_tool(name, services, project_id) for name in MUTATION_TOOL_NAMES]
    return mutation_tools + create_reference_tools(services, project_id)
