"""
This module defines the exploration agent, which drives a tool-calling model
over a site and records what it finds in the UI-state graph.
"""
import logging
import time
from typing import Optional, Sequence

from langchain_core.messages import HumanMessage, SystemMessage
from langchain_core.tools import BaseTool
from pydantic import BaseModel

from uigraph_agent.agents.tool_loop import AgentToolLoop, LoopStatus
from uigraph_agent.prompts.explore_prompts import get_explore_system_prompt, get_explore_user_prompt
from uigraph_agent.services import GraphServices
from uigraph_agent.tools import create_all_tools


class GraphSummary(BaseModel):
    pages: int = 0
    ui_states: int = 0
    edges: int = 0
    labels: int = 0


class ExplorationResult(BaseModel):
    project_id: str
    status: LoopStatus
    turns: int = 0
    duration_seconds: float = 0.0
    error: Optional[str] = None
    final_message: Optional[str] = None
    graph: GraphSummary = GraphSummary()


class ExplorationAgent:
    def __init__(
        self,
        services: GraphServices,
        chat_model,
        browser_tools: Sequence[BaseTool] = (),
        max_turns: int = 40,
        timeout: float = 900.0,
    ):
        self.services = services
        self.chat_model = chat_model
        self.browser_tools = list(browser_tools)
        self.max_turns = max_turns
        self.timeout = timeout

    def _summarize(self, project_id: str) -> GraphSummary:
        store = self.services.store
        where = {"project_id": project_id}
        return GraphSummary(
            pages=store.count("pages", where),
            ui_states=store.count("ui_states", where),
            edges=store.count("edges", where),
            labels=store.count("labels", where),
        )

    async def explore(self, project_id: str) -> ExplorationResult:
        """Explore the project's site and populate its graph.

        Raises NotFoundError when the project does not exist; this check runs
        before any model call. Any later failure is logged and reported in
        the result with status ``failed``. Everything saved up to that point
        stays in the graph.
        """
        project = self.services.projects.find_one(project_id)
        logging.info(f"=== Starting exploration of project {project.name} ({project.url}) ===")

        started = time.monotonic()
        tools = create_all_tools(self.services, project_id) + self.browser_tools
        logging.info(f"Tools initialized: {[tool.name for tool in tools]}")
        messages = [
            SystemMessage(content=get_explore_system_prompt()),
            HumanMessage(content=get_explore_user_prompt(project.url, project.name)),
        ]

        try:
            loop = AgentToolLoop(self.chat_model, tools, max_turns=self.max_turns, timeout=self.timeout)
            outcome = await loop.run(messages)
        except Exception as e:
            logging.error(f"Exploration of project {project_id} failed: {e}", exc_info=True)
            return ExplorationResult(
                project_id=project_id,
                status=LoopStatus.FAILED,
                duration_seconds=time.monotonic() - started,
                error=f"{type(e).__name__}: {e}",
                graph=self._summarize(project_id),
            )

        result = ExplorationResult(
            project_id=project_id,
            status=outcome.status,
            turns=outcome.turns,
            duration_seconds=time.monotonic() - started,
            final_message=outcome.final_text or None,
            graph=self._summarize(project_id),
        )
        logging.info(
            f"=== Exploration of project {project_id} {result.status.value} after {result.turns} turn(s): "
            f"{result.graph.pages} pages, {result.graph.ui_states} UI states, {result.graph.edges} edges, "
            f"{result.graph.labels} labels ==="
        )
        return result
