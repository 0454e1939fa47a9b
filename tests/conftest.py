from typing import List

import pytest
from langchain_core.messages import AIMessage

from uigraph_agent.browser.runner import BaseCodeRunner, ExecutionResult
from uigraph_agent.data import CreateProjectInput
from uigraph_agent.graph import GraphStore
from uigraph_agent.services import GraphServices


class ScriptedChatModel:
    """Chat model stand-in that replays prepared responses in order."""

    def __init__(self, responses):
        self.responses = list(responses)
        self.calls = []
        self.bound_tool_names = []
        self.structured_schemas = []

    def bind_tools(self, tools, **kwargs):
        self.bound_tool_names.append([tool.name for tool in tools])
        return self

    def with_structured_output(self, schema, **kwargs):
        self.structured_schemas.append(schema)
        return self

    async def ainvoke(self, messages, config=None, **kwargs):
        self.calls.append(list(messages))
        if not self.responses:
            return AIMessage(content="Nothing left to do.")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class FakeRunner(BaseCodeRunner):
    """Code runner returning prepared execution results."""

    def __init__(self, results: List[ExecutionResult]):
        self.results = list(results)
        self.executed = []

    async def run(self, code: str, name: str = "scenario") -> ExecutionResult:
        self.executed.append(code)
        return self.results.pop(0)


def tool_call_message(*calls, content: str = "") -> AIMessage:
    """Build an assistant message requesting ``(name, args, call_id)`` tool calls."""
    return AIMessage(
        content=content,
        tool_calls=[{"name": name, "args": args, "id": call_id} for name, args, call_id in calls],
    )


@pytest.fixture
def store(tmp_path) -> GraphStore:
    graph_store = GraphStore(tmp_path / "graph.db")
    graph_store.init_db()
    return graph_store


@pytest.fixture
def services(store) -> GraphServices:
    return GraphServices(store)


@pytest.fixture
def project(services):
    return services.projects.create(CreateProjectInput(name="example.com", url="https://example.com"))


@pytest.fixture
def other_project(services):
    return services.projects.create(CreateProjectInput(name="other.com", url="https://other.com"))


@pytest.fixture
def make_model():
    return ScriptedChatModel


@pytest.fixture
def make_runner():
    return FakeRunner


@pytest.fixture
def tool_call():
    return tool_call_message
