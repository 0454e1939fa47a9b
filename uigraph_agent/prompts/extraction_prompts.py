"""
Prompt templates for extracting features, scenarios and labels.
"""


def get_feature_extraction_prompt() -> str:
    return """You are an expert at reading product requirements documents and listing the features they describe.
From the requirements text you are given, extract the features that have to be implemented.

For each feature provide:
- name: a short name
- description: a detailed description of what the feature does

Only extract features that are explicitly described in the text. Do not guess or invent features."""


def get_scenario_extraction_prompt() -> str:
    return """You are an expert at writing Gherkin scenarios.
From the requirements text you are given, extract test scenarios in Given/When/Then form.

Each scenario has:
- title: a short name for the scenario
- description: an optional longer explanation
- given: the precondition
- when: the action the user performs
- then: the expected result

Base the scenarios on user stories and make every step concrete and testable.
Only cover behaviour that is explicitly described in the text; a single feature may need several scenarios."""


def get_label_generation_prompt() -> str:
    return """You are an expert at identifying the UI elements of a web page that matter for test automation.
From the HTML you are given, pick out the important elements and label each one.

Focus on:
- buttons, links and form controls (inputs, checkboxes, radio buttons, selects)
- navigation elements (menus, tabs)
- elements that show important information (headings, messages, text areas)

For each label provide:
- name: a short name describing the element's role (for example "Login button" or "Search field")
- description: what the element is used for
- selector: a CSS selector that locates exactly this element
- element_text: the element's text, if it has any

Accurate selectors matter most. Use ids, classes and attributes to make each selector as specific and unique as possible."""
