"""This module defines the code generation and repair workflow.

It is a langgraph workflow: labels of the scenario's project are fetched,
the agent writes a Playwright script, the script is executed, and on failure
the agent repairs it and the script runs again, until it passes or the
attempt budget is spent.
"""

import logging
import re
from typing import Any, Dict, List, Optional, Sequence

from langchain_core.messages import HumanMessage, SystemMessage
from langchain_core.tools import BaseTool
from langgraph.graph import END, StateGraph
from pydantic import BaseModel

from uigraph_agent.agents.tool_loop import AgentToolLoop, LoopStatus
from uigraph_agent.browser.runner import BaseCodeRunner
from uigraph_agent.graph.errors import CodeExecutionError, CodeGenerationError
from uigraph_agent.prompts.codegen_prompts import (
    get_codegen_system_prompt,
    get_codegen_user_prompt,
    get_repair_system_prompt,
    get_repair_user_prompt,
)
from uigraph_agent.services import GraphServices
from uigraph_agent.state.schemas import CodeGenerationState
from uigraph_agent.tools import create_reference_tools

# the info string (python, ts, json, ...) on the opening fence is not part of the code
CODE_BLOCK_PATTERN = re.compile(r"```[ \t]*[\w+-]*[ \t]*\r?\n(.*?)```", re.DOTALL)


def extract_code(content: str) -> str:
    """Return the first fenced code block, or the whole text when there is none."""
    match = CODE_BLOCK_PATTERN.search(content)
    if match:
        return match.group(1).strip()
    logging.info("No fenced code block in the response, using the full text as code")
    return content.strip()


class CodeGenerationResult(BaseModel):
    scenario_id: str
    code: str
    attempts: int
    success: bool
    output: str = ""
    logs: List[Dict[str, Any]] = []


class CodeGenerationAgent:
    def __init__(
        self,
        services: GraphServices,
        chat_model,
        runner: BaseCodeRunner,
        browser_tools: Sequence[BaseTool] = (),
        max_attempts: int = 3,
        max_turns: int = 20,
        timeout: float = 900.0,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.services = services
        self.chat_model = chat_model
        self.runner = runner
        self.browser_tools = list(browser_tools)
        self.max_attempts = max_attempts
        self.max_turns = max_turns
        self.timeout = timeout
        self.app = self._build_workflow()

    def _build_workflow(self):
        workflow = StateGraph(CodeGenerationState)
        workflow.add_node("fetch_labels", self.fetch_labels)
        workflow.add_node("generate_code", self.generate_code)
        workflow.add_node("execute_code", self.execute_code)
        workflow.add_node("repair_code", self.repair_code)

        workflow.set_entry_point("fetch_labels")
        workflow.add_edge("fetch_labels", "generate_code")
        workflow.add_edge("generate_code", "execute_code")
        workflow.add_conditional_edges(
            "execute_code",
            self.should_repair,
            {
                "repair_code": "repair_code",
                "end": END,
            },
        )
        workflow.add_edge("repair_code", "execute_code")
        return workflow.compile()

    # --- Nodes ---

    async def fetch_labels(self, state: CodeGenerationState) -> Dict[str, Any]:
        """Load every label of the scenario's project, if the project can be resolved."""
        project_id = state["project_id"]
        if not project_id:
            logging.warning(f"Scenario {state['scenario']['id']} has no project, generating without labels")
            return {"labels": []}
        labels = self.services.labels.get_labels_by_project(project_id)
        logging.info(f"Fetched {len(labels)} labels for project {project_id}")
        return {"labels": [label.model_dump(mode="json") for label in labels]}

    async def generate_code(self, state: CodeGenerationState) -> Dict[str, Any]:
        logging.info(f"Generating code for scenario {state['scenario']['id']}")
        messages = [
            SystemMessage(content=get_codegen_system_prompt()),
            HumanMessage(content=get_codegen_user_prompt(state["scenario"], state["labels"], state["project_url"])),
        ]
        code = await self._ask_for_code(state, messages)
        return {"code": code}

    async def execute_code(self, state: CodeGenerationState) -> Dict[str, Any]:
        attempt = state["attempt"] + 1
        logging.info(f"Executing code for scenario {state['scenario']['id']} (attempt {attempt}/{self.max_attempts})")
        result = await self.runner.run(state["code"], name=f"scenario-{state['scenario']['id']}")
        if result.success:
            logging.info(f"Attempt {attempt} passed")
        else:
            logging.warning(f"Attempt {attempt} failed: {result.error_message}")
        return {
            "attempt": attempt,
            "success": result.success,
            "error_message": result.error_message,
            "stack_trace": result.stack_trace,
            "output": result.output,
            "logs": [
                {
                    "attempt": attempt,
                    "success": result.success,
                    "error_message": result.error_message,
                    "output": result.output,
                }
            ],
        }

    def should_repair(self, state: CodeGenerationState) -> str:
        if state["success"]:
            return "end"
        if state["attempt"] >= self.max_attempts:
            logging.warning(f"Attempt budget of {self.max_attempts} spent, giving up")
            return "end"
        return "repair_code"

    async def repair_code(self, state: CodeGenerationState) -> Dict[str, Any]:
        logging.info(f"Repairing code for scenario {state['scenario']['id']} after attempt {state['attempt']}")
        messages = [
            SystemMessage(content=get_repair_system_prompt()),
            HumanMessage(
                content=get_repair_user_prompt(
                    state["scenario"],
                    state["labels"],
                    state["code"],
                    state["error_message"],
                    stack_trace=state["stack_trace"],
                    attempt=state["attempt"],
                    project_url=state["project_url"],
                )
            ),
        ]
        code = await self._ask_for_code(state, messages)
        return {"code": code}

    # --- Helpers ---

    def _tools(self, project_id: Optional[str]) -> List[BaseTool]:
        reference_tools = create_reference_tools(self.services, project_id) if project_id else []
        return reference_tools + self.browser_tools

    async def _ask_for_code(self, state: CodeGenerationState, messages) -> str:
        try:
            loop = AgentToolLoop(
                self.chat_model, self._tools(state["project_id"]), max_turns=self.max_turns, timeout=self.timeout
            )
            outcome = await loop.run(messages)
        except Exception as e:
            logging.error(f"Agent failed while writing code for scenario {state['scenario']['id']}: {e}")
            raise CodeGenerationError(f"{type(e).__name__}: {e}") from e

        if outcome.status == LoopStatus.EXHAUSTED:
            raise CodeGenerationError(f"agent did not finish within {outcome.turns} turn(s) or {self.timeout}s")
        code = extract_code(outcome.final_text)
        if not code:
            raise CodeGenerationError("agent returned an empty response")
        return code

    # --- Entry point ---

    async def generate(self, scenario_id: str, project_url: str = None) -> CodeGenerationResult:
        """Generate, run and repair the Playwright script of a scenario.

        Raises NotFoundError for an unknown scenario, CodeGenerationError when
        the agent cannot produce code, and CodeExecutionError when the script
        still fails after ``max_attempts`` executions.
        """
        scenario = self.services.scenarios.get_scenario(scenario_id)
        project_id = self.services.scenarios.resolve_project_id(scenario)
        if not project_url and project_id:
            project_url = self.services.projects.find_one(project_id).url

        initial_state = {
            "scenario": scenario.model_dump(mode="json"),
            "project_id": project_id,
            "project_url": project_url,
            "labels": [],
            "code": None,
            "attempt": 0,
            "success": False,
            "error_message": None,
            "stack_trace": None,
            "output": None,
            "logs": [],
        }
        final_state = await self.app.ainvoke(initial_state, config={"recursion_limit": 2 * self.max_attempts + 5})

        if not final_state["success"]:
            raise CodeExecutionError(
                f"scenario {scenario_id} still failing after {final_state['attempt']} attempt(s): "
                f"{final_state['error_message']}",
                code=final_state["code"],
                attempts=final_state["attempt"],
                error_message=final_state["error_message"],
                stack_trace=final_state["stack_trace"],
                logs=final_state["logs"],
            )

        logging.info(f"Scenario {scenario_id} passed on attempt {final_state['attempt']}")
        return CodeGenerationResult(
            scenario_id=scenario_id,
            code=final_state["code"],
            attempts=final_state["attempt"],
            success=True,
            output=final_state["output"] or "",
            logs=final_state["logs"],
        )
