"""Tests for the exploration agent."""

import json

import pytest
from langchain_core.messages import AIMessage, HumanMessage, ToolMessage
from langchain_core.tools import tool

from uigraph_agent.agents import ExplorationAgent, LoopStatus
from uigraph_agent.graph import NotFoundError

LOGIN_URL = "https://example.com/login"


@tool
def browser_navigate(url: str) -> str:
    """Navigate the browser to a URL."""
    return f"Navigated to {url}"


class TestExplorationAgent:
    async def test_unknown_project_fails_before_any_model_call(self, services, make_model):
        model = make_model([AIMessage(content="never used")])
        agent = ExplorationAgent(services, model)

        with pytest.raises(NotFoundError):
            await agent.explore("missing")

        assert model.calls == []
        assert model.bound_tool_names == []

    async def test_records_pages_and_states(self, services, project, make_model, tool_call):
        model = make_model(
            [
                tool_call(
                    ("browser_navigate", {"url": LOGIN_URL}, "call_1"),
                    ("savePage", {"title": "Login", "url": LOGIN_URL}, "call_2"),
                ),
                tool_call(
                    (
                        "saveUIState",
                        {"title": "LoginForm", "description": "empty form", "page_url": LOGIN_URL, "is_default": True},
                        "call_3",
                    )
                ),
                AIMessage(content="Recorded the login page."),
            ]
        )
        agent = ExplorationAgent(services, model, browser_tools=[browser_navigate])

        result = await agent.explore(project.id)

        assert result.status == LoopStatus.COMPLETED
        assert result.turns == 3
        assert result.final_message == "Recorded the login page."
        assert result.graph.pages == 1
        assert result.graph.ui_states == 1
        assert "browser_navigate" in model.bound_tool_names[0]
        assert "saveEdge" in model.bound_tool_names[0]
        # the prompt names the project's root URL
        assert project.url in model.calls[0][1].content
        navigate_result = model.calls[1][3]
        assert isinstance(navigate_result, ToolMessage)
        assert navigate_result.content == f"Navigated to {LOGIN_URL}"

    async def test_edge_before_states_does_not_crash(self, services, project, make_model, tool_call):
        model = make_model(
            [
                tool_call(
                    (
                        "saveEdge",
                        {"from_ui_state_id": "login", "to_ui_state_id": "dashboard", "description": "submit"},
                        "call_1",
                    )
                ),
                tool_call(("savePage", {"title": "Login", "url": LOGIN_URL}, "call_2")),
                AIMessage(content="Done."),
            ]
        )
        agent = ExplorationAgent(services, model)

        result = await agent.explore(project.id)

        assert result.status == LoopStatus.COMPLETED
        assert result.error is None
        assert result.graph.edges == 0
        assert result.graph.pages == 1
        second_call = model.calls[1]
        assert isinstance(second_call[-2], ToolMessage) and second_call[-2].status == "error"
        assert isinstance(second_call[-1], HumanMessage)

    async def test_mid_run_failure_is_reported_not_raised(self, services, project, make_model, tool_call):
        model = make_model(
            [
                tool_call(("savePage", {"title": "Login", "url": LOGIN_URL}, "call_1")),
                RuntimeError("connection reset"),
            ]
        )
        agent = ExplorationAgent(services, model)

        result = await agent.explore(project.id)

        assert result.status == LoopStatus.FAILED
        assert "connection reset" in result.error
        # work saved before the failure stays in the graph
        assert result.graph.pages == 1
        assert json.loads(result.model_dump_json())["status"] == "failed"

    async def test_turn_budget_keeps_partial_graph(self, services, project, make_model, tool_call):
        model = make_model(
            [
                tool_call(("savePage", {"title": "Login", "url": LOGIN_URL}, "call_1")),
                tool_call(("savePage", {"title": "Other", "url": "https://example.com/other"}, "call_2")),
            ]
        )
        agent = ExplorationAgent(services, model, max_turns=1)

        result = await agent.explore(project.id)

        assert result.status == LoopStatus.EXHAUSTED
        assert result.error is None
        assert result.turns == 1
        assert result.graph.pages == 1
