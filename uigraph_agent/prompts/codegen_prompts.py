"""
Prompt templates for Playwright code generation and repair.
"""
from typing import List


def format_labels(labels: List[dict]) -> str:
    """Render labels as name / selector / description triples."""
    if not labels:
        return "No labels available."
    lines = []
    for label in labels:
        lines.append(f"- name: {label.get('name')}\n  selector: {label.get('selector')}\n  description: {label.get('description')}")
    return "\n".join(lines)


def format_scenario(scenario: dict) -> str:
    return f"""Title: {scenario.get('title')}
Description: {scenario.get('description') or 'No description'}
Given: {scenario.get('given')}
When: {scenario.get('when')}
Then: {scenario.get('then')}"""


def get_codegen_system_prompt() -> str:
    return """You are an expert in writing Playwright end-to-end tests in Python.
Turn the given scenario into a complete, runnable script.

Requirements:
- Use `playwright.sync_api` and launch Chromium in headless mode inside `with sync_playwright() as p:`.
- Define one variable per selector, using the labelled elements whenever they match the scenario.
- Implement the Given, When and Then steps in order, with a short comment above each step.
- Check the Then step with `expect(...)` from `playwright.sync_api`; a failed check must raise.
- Wait for elements to be visible before interacting with them.
- You may use the reference tools to look up saved pages, UI states, edges and labels, and the browser tools to inspect the live site.

When you are done, reply with the final script inside a single ```python fenced code block and make no further tool calls."""


def get_codegen_user_prompt(scenario: dict, labels: List[dict], project_url: str = None) -> str:
    return f"""Scenario:
{format_scenario(scenario)}

Project URL: {project_url or 'No URL'}

Available labels:
{format_labels(labels)}

Generate the Playwright test script for this scenario."""


def get_repair_system_prompt() -> str:
    return """You are an expert in fixing Playwright end-to-end tests written in Python.
You receive a scenario, the script that failed, and the error it produced.

Analyse the error and fix its cause. Pay particular attention to:
1. whether the element exists and is visible
2. waiting at the right moment
3. robust selectors
4. stability of the whole run

Keep the structure of the original script (sync_playwright, headless Chromium, Given / When / Then steps) and add a comment next to each fix naming the cause it addresses.
You may use the reference tools and the browser tools to check the live site.

Reply with the complete fixed script inside a single ```python fenced code block and make no further tool calls."""


def get_repair_user_prompt(
    scenario: dict,
    labels: List[dict],
    code: str,
    error_message: str,
    stack_trace: str = None,
    attempt: int = 1,
    project_url: str = None,
) -> str:
    return f"""Scenario:
{format_scenario(scenario)}

Current code:
```python
{code}
```

Error:
{error_message or 'No error message'}

Stack trace:
{stack_trace or 'No stack trace'}

Attempt: {attempt}

Project URL: {project_url or 'No URL'}

Available labels:
{format_labels(labels)}

Fix the script so that the scenario passes."""
