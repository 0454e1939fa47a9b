"""Think/Act loop shared by the exploration and code generation agents.

The loop is a two-node langgraph workflow: ``think`` asks the model for the
next step, ``act`` runs the tool calls it requested, one after the other in
the order the model gave them. A failing tool call never aborts the run; its
error goes back into the transcript so the model can correct itself.
"""

import asyncio
import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Sequence

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, ToolMessage
from langchain_core.tools import BaseTool
from langgraph.graph import END, StateGraph

from uigraph_agent.graph.errors import ExternalCallError
from uigraph_agent.llm.llm_api import MODEL_CALL_ERRORS
from uigraph_agent.state.schemas import ToolLoopState

CORRECTIVE_INSTRUCTION = (
    "The last tool call failed. Retry with corrected arguments and do not repeat the same mistake."
)


class LoopStatus(str, Enum):
    COMPLETED = "completed"  # the model stopped requesting tools
    EXHAUSTED = "exhausted"  # turn or time budget ran out
    FAILED = "failed"


@dataclass
class ToolLoopResult:
    status: LoopStatus
    turns: int
    messages: List[BaseMessage] = field(default_factory=list)

    @property
    def final_text(self) -> str:
        for message in reversed(self.messages):
            if isinstance(message, AIMessage):
                return message_text(message)
        return ""


def message_text(message: BaseMessage) -> str:
    """Return the text of a message whose content may be a list of blocks."""
    content = message.content
    if isinstance(content, str):
        return content
    parts = []
    for block in content:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts)


def _stringify(output: Any) -> str:
    if isinstance(output, str):
        return output
    if isinstance(output, ToolMessage):
        return output.content if isinstance(output.content, str) else json.dumps(output.content, default=str)
    try:
        return json.dumps(output, ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        return str(output)


class AgentToolLoop:
    def __init__(self, model, tools: Sequence[BaseTool], max_turns: int = 40, timeout: float = 900.0):
        if max_turns < 1:
            raise ValueError("max_turns must be at least 1")
        self.tools: Dict[str, BaseTool] = {tool.name: tool for tool in tools}
        self.max_turns = max_turns
        self.timeout = timeout
        # an empty tool list is rejected by the chat completions API
        self.bound_model = model.bind_tools(list(tools)) if tools else model
        self.app = self._build_workflow()

    def _build_workflow(self):
        workflow = StateGraph(ToolLoopState)
        workflow.add_node("think", self.think)
        workflow.add_node("act", self.act)

        workflow.set_entry_point("think")
        workflow.add_conditional_edges("think", self.should_act, {"act": "act", "end": END})
        workflow.add_conditional_edges("act", self.should_continue, {"think": "think", "end": END})
        return workflow.compile()

    async def think(self, state: ToolLoopState) -> Dict[str, Any]:
        turn = state["turn_count"] + 1
        try:
            response = await self.bound_model.ainvoke(state["messages"])
        except MODEL_CALL_ERRORS as e:
            raise ExternalCallError(f"Model call failed on turn {turn}: {e}") from e
        tool_calls = getattr(response, "tool_calls", None) or []
        logging.info(f"Turn {turn}: model requested {len(tool_calls)} tool call(s)")
        return {"messages": [response], "turn_count": turn}

    def should_act(self, state: ToolLoopState) -> str:
        last = state["messages"][-1]
        if getattr(last, "tool_calls", None):
            return "act"
        logging.debug("Model made no tool call, conversation finished")
        return "end"

    def should_continue(self, state: ToolLoopState) -> str:
        if state["turn_count"] >= self.max_turns:
            logging.warning(f"Turn budget of {self.max_turns} exhausted")
            return "end"
        return "think"

    async def act(self, state: ToolLoopState) -> Dict[str, List[BaseMessage]]:
        last = state["messages"][-1]
        results: List[BaseMessage] = []
        failed_ids = []

        for tool_call in last.tool_calls:
            name = tool_call["name"]
            call_id = tool_call["id"]
            tool = self.tools.get(name)
            if tool is None:
                logging.warning(f"Tool call {call_id} requested unknown tool '{name}'")
                results.append(
                    ToolMessage(
                        content=f"Error: unknown tool '{name}'. Available tools: {', '.join(self.tools)}",
                        tool_call_id=call_id,
                        name=name,
                        status="error",
                    )
                )
                failed_ids.append(call_id)
                continue

            logging.debug(f"Invoking tool {name} ({call_id}) with args {tool_call['args']}")
            try:
                output = await tool.ainvoke(tool_call["args"])
            except Exception as e:
                logging.warning(f"Tool call {call_id} ({name}) failed: {e}")
                results.append(
                    ToolMessage(
                        content=f"Error: {type(e).__name__}: {e}",
                        tool_call_id=call_id,
                        name=name,
                        status="error",
                    )
                )
                failed_ids.append(call_id)
                continue

            results.append(ToolMessage(content=_stringify(output), tool_call_id=call_id, name=name))

        if failed_ids:
            results.append(HumanMessage(content=f"{CORRECTIVE_INSTRUCTION} Failed call ids: {', '.join(failed_ids)}"))
        return {"messages": results}

    async def run(self, messages: List[BaseMessage]) -> ToolLoopResult:
        """Drive the conversation until the model stops calling tools or a
        budget runs out.

        Model failures propagate to the caller. Hitting the wall-clock budget
        returns the transcript gathered so far with status ``exhausted``.
        """
        snapshot: Dict[str, Any] = {"messages": list(messages), "turn_count": 0}
        config = {"recursion_limit": 2 * self.max_turns + 5}

        async def drive():
            async for values in self.app.astream(
                {"messages": list(messages), "turn_count": 0}, config=config, stream_mode="values"
            ):
                snapshot.update(values)

        try:
            await asyncio.wait_for(drive(), timeout=self.timeout)
        except asyncio.TimeoutError:
            logging.warning(f"Wall-clock budget of {self.timeout}s exhausted after {snapshot['turn_count']} turn(s)")
            return ToolLoopResult(LoopStatus.EXHAUSTED, snapshot["turn_count"], snapshot["messages"])

        last = snapshot["messages"][-1]
        if isinstance(last, AIMessage) and not last.tool_calls:
            status = LoopStatus.COMPLETED
        else:
            status = LoopStatus.EXHAUSTED
        return ToolLoopResult(status, snapshot["turn_count"], snapshot["messages"])
