"""Tests for the code generation and repair workflow."""

import pytest
from langchain_core.messages import AIMessage

from uigraph_agent.agents import CodeGenerationAgent, extract_code
from uigraph_agent.browser.runner import ExecutionResult
from uigraph_agent.data import CreateFeatureInput, CreateLabelInput, CreateScenarioInput
from uigraph_agent.graph import CodeExecutionError, CodeGenerationError, NotFoundError

LOGIN_URL = "https://example.com/login"


def fenced(code):
    return AIMessage(content=f"Here is the script.\n```python\n{code}\n```\nGood luck.")


def failed(message, stack_trace=None):
    return ExecutionResult(success=False, output=message, error_message=message, stack_trace=stack_trace)


@pytest.fixture
def scenario(services, project):
    feature = services.features.create(CreateFeatureInput(project_id=project.id, name="Login"))
    return services.scenarios.save_scenario(
        CreateScenarioInput(
            feature_id=feature.id,
            title="Valid login",
            description="A registered user signs in",
            given="the login page is open",
            when="the user submits valid credentials",
            then="the dashboard is shown",
        )
    )


@pytest.fixture
def labels(services, project):
    services.labels.save_label(
        CreateLabelInput(
            project_id=project.id,
            name="Email field",
            description="email input of the login form",
            selector="#email",
            url=LOGIN_URL,
        )
    )


class TestExtractCode:
    def test_first_fenced_block(self):
        content = "intro\n```python\nfirst()\n```\nmore\n```python\nsecond()\n```"
        assert extract_code(content) == "first()"

    def test_block_without_language(self):
        assert extract_code("```\nplain()\n```") == "plain()"

    @pytest.mark.parametrize("tag", ["Python", "PY", "json", "typescript", "python3"])
    def test_fence_info_string_is_not_code(self, tag):
        assert extract_code(f"```{tag}\npage.goto('/login')\n```") == "page.goto('/login')"

    def test_falls_back_to_full_text(self):
        assert extract_code("page.goto('https://example.com')") == "page.goto('https://example.com')"


class TestCodeGenerationAgent:
    async def test_repairs_until_third_attempt_passes(self, services, scenario, labels, make_model, make_runner):
        model = make_model([fenced("print('v1')"), fenced("print('v2')"), fenced("print('v3')")])
        runner = make_runner(
            [
                failed("TimeoutError: locator('#email') not visible", "Traceback (most recent call last):\n  ..."),
                failed("AssertionError: dashboard not shown"),
                ExecutionResult(success=True, output="ok"),
            ]
        )
        agent = CodeGenerationAgent(services, model, runner, max_attempts=3)

        result = await agent.generate(scenario.id)

        assert result.success
        assert result.attempts == 3
        assert result.code == "print('v3')"
        assert runner.executed == ["print('v1')", "print('v2')", "print('v3')"]
        assert [log["attempt"] for log in result.logs] == [1, 2, 3]
        # one generation, then two repairs
        assert len(model.calls) == 3
        first_repair = model.calls[1][1].content
        assert "print('v1')" in first_repair
        assert "locator('#email') not visible" in first_repair
        assert "Traceback (most recent call last)" in first_repair
        assert "Attempt: 1" in first_repair
        assert "Attempt: 2" in model.calls[2][1].content

    async def test_prompt_carries_scenario_and_labels(self, services, project, scenario, labels, make_model, make_runner):
        model = make_model([fenced("print('ok')")])
        runner = make_runner([ExecutionResult(success=True)])
        agent = CodeGenerationAgent(services, model, runner)

        await agent.generate(scenario.id)

        prompt = model.calls[0][1].content
        assert "Given: the login page is open" in prompt
        assert "name: Email field" in prompt
        assert "selector: #email" in prompt
        assert project.url in prompt
        assert model.bound_tool_names[0] == ["getPages", "getLabels", "getEdges", "getUIStates"]

    @pytest.mark.parametrize("payload", ["[broken", "[null]"])
    async def test_corrupt_label_does_not_break_the_fetch(
        self, services, store, project, scenario, make_model, make_runner, payload
    ):
        label = services.labels.save_label(
            CreateLabelInput(project_id=project.id, name="Submit", selector="#submit", url=LOGIN_URL)
        )
        store.update("labels", label.id, {"trigger_actions": payload})
        model = make_model([fenced("print('ok')")])
        agent = CodeGenerationAgent(services, model, make_runner([ExecutionResult(success=True)]))

        result = await agent.generate(scenario.id)

        assert result.success
        assert "selector: #submit" in model.calls[0][1].content

    async def test_never_exceeds_attempt_budget(self, services, scenario, make_model, make_runner):
        model = make_model([fenced(f"print({i})") for i in range(5)])
        runner = make_runner([failed(f"Error {i}", stack_trace=f"trace {i}") for i in range(5)])
        agent = CodeGenerationAgent(services, model, runner, max_attempts=3)

        with pytest.raises(CodeExecutionError) as exc_info:
            await agent.generate(scenario.id)

        error = exc_info.value
        assert str(error).startswith("Code execution failed: ")
        assert error.attempts == 3
        assert error.code == "print(2)"
        assert error.error_message == "Error 2"
        assert error.stack_trace == "trace 2"
        assert len(error.logs) == 3
        assert len(runner.executed) == 3
        assert len(model.calls) == 3

    async def test_single_attempt_means_no_repair(self, services, scenario, make_model, make_runner):
        model = make_model([fenced("print('v1')")])
        runner = make_runner([failed("boom")])
        agent = CodeGenerationAgent(services, model, runner, max_attempts=1)

        with pytest.raises(CodeExecutionError):
            await agent.generate(scenario.id)

        assert len(model.calls) == 1
        assert runner.executed == ["print('v1')"]

    async def test_unfenced_response_is_used_verbatim(self, services, scenario, make_model, make_runner):
        model = make_model([AIMessage(content="print('no fences')")])
        runner = make_runner([ExecutionResult(success=True)])
        agent = CodeGenerationAgent(services, model, runner)

        result = await agent.generate(scenario.id)

        assert result.code == "print('no fences')"

    async def test_model_failure_is_a_generation_error(self, services, scenario, make_model, make_runner):
        model = make_model([RuntimeError("model unavailable")])
        runner = make_runner([])
        agent = CodeGenerationAgent(services, model, runner)

        with pytest.raises(CodeGenerationError) as exc_info:
            await agent.generate(scenario.id)

        assert str(exc_info.value).startswith("Code generation failed: ")
        assert runner.executed == []

    async def test_generation_turn_budget(self, services, scenario, make_model, make_runner, tool_call):
        model = make_model([tool_call(("getPages", {}, "call_1")), tool_call(("getPages", {}, "call_2"))])
        runner = make_runner([])
        agent = CodeGenerationAgent(services, model, runner, max_turns=1)

        with pytest.raises(CodeGenerationError):
            await agent.generate(scenario.id)
        assert runner.executed == []

    async def test_scenario_without_project(self, services, make_model, make_runner):
        scenario = services.scenarios.save_scenario(CreateScenarioInput(title="Loose", given="g", when="w", then="t"))
        model = make_model([fenced("print('ok')")])
        agent = CodeGenerationAgent(services, model, make_runner([ExecutionResult(success=True)]))

        result = await agent.generate(scenario.id, project_url="https://example.com")

        assert result.success
        assert "No labels available." in model.calls[0][1].content
        assert model.bound_tool_names == []

    async def test_unknown_scenario(self, services, make_model, make_runner):
        agent = CodeGenerationAgent(services, make_model([]), make_runner([]))
        with pytest.raises(NotFoundError):
            await agent.generate("missing")
