"""Structured-output schemas for the extraction calls.

The chat model fills these from a requirements text or a page's HTML; the
services turn them into create inputs.
"""
from typing import List, Optional

from pydantic import BaseModel, Field


class ExtractedFeature(BaseModel):
    name: str = Field(description="Short name of the feature")
    description: str = Field(description="Detailed description of the feature")


class FeatureList(BaseModel):
    """Features extracted from a requirements text."""

    features: List[ExtractedFeature] = Field(default_factory=list, description="Features found in the requirements")


class ExtractedScenario(BaseModel):
    title: str = Field(description="Short title of the scenario")
    description: Optional[str] = Field(default=None, description="Optional longer description")
    given: str = Field(description="Given: the precondition")
    when: str = Field(description="When: the action performed")
    then: str = Field(description="Then: the expected outcome")


class ScenarioList(BaseModel):
    """Given/When/Then scenarios extracted from a requirements text."""

    scenarios: List[ExtractedScenario] = Field(default_factory=list, description="Scenarios found in the requirements")


class ExtractedLabel(BaseModel):
    name: str = Field(description="Name describing the element's role, e.g. 'Login button'")
    description: str = Field(default="", description="What the element is used for")
    selector: str = Field(description="CSS selector that uniquely locates the element")
    element_text: Optional[str] = Field(default=None, description="Text content of the element, if any")


class LabelList(BaseModel):
    """Labels generated from a page's HTML."""

    labels: List[ExtractedLabel] = Field(default_factory=list, description="Labelled elements of the page")
