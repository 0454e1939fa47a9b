"""Features group scenarios under a project; scenarios feed code generation.

Both can be typed in or extracted from a requirements text by the chat model.
"""
import logging
import uuid
from typing import List, Optional, Tuple

from uigraph_agent.data import (
    CreateFeatureInput,
    CreateScenarioInput,
    Feature,
    FeatureList,
    Scenario,
    ScenarioList,
)
from uigraph_agent.graph.errors import ExternalCallError, NotFoundError
from uigraph_agent.graph.store import GraphStore, to_db_timestamp, utc_now
from uigraph_agent.llm.llm_api import invoke_structured
from uigraph_agent.prompts.extraction_prompts import get_feature_extraction_prompt, get_scenario_extraction_prompt

_ORDER = "created_at desc, rowid desc"
_NOT_SPECIFIED = "Not specified"


def _scenario_from_row(row: dict) -> Scenario:
    return Scenario(
        id=row["id"],
        feature_id=row["feature_id"],
        title=row["title"],
        description=row["description"],
        given=row["given_text"],
        when=row["when_text"],
        then=row["then_text"],
        created_at=row["created_at"],
    )


class ScenarioService:
    def __init__(self, store: GraphStore):
        self.store = store

    def _require_feature(self, feature_id: str) -> dict:
        feature = self.store.find_by_id("features", feature_id)
        if not feature:
            raise NotFoundError("Feature", feature_id)
        return feature

    def _insert(self, data: CreateScenarioInput, feature_id: Optional[str]) -> Scenario:
        row = {
            "id": str(uuid.uuid4()),
            "feature_id": feature_id,
            "title": data.title,
            "description": data.description,
            "given_text": data.given,
            "when_text": data.when,
            "then_text": data.then,
            "created_at": to_db_timestamp(utc_now()),
        }
        self.store.insert("scenarios", row)
        return _scenario_from_row(row)

    async def extract_scenarios(self, chat_model, text: str, feature_id: str = None) -> List[CreateScenarioInput]:
        """Extract Given/When/Then scenarios from ``text``; nothing is saved."""
        if feature_id:
            self._require_feature(feature_id)
        logging.info("Extracting scenarios from requirements text")
        result = await invoke_structured(chat_model, ScenarioList, get_scenario_extraction_prompt(), text)
        logging.info(f"Extracted {len(result.scenarios)} scenarios")
        return [
            CreateScenarioInput(
                title=s.title or "Untitled scenario",
                description=s.description or None,
                given=s.given or _NOT_SPECIFIED,
                when=s.when or _NOT_SPECIFIED,
                then=s.then or _NOT_SPECIFIED,
                feature_id=feature_id,
            )
            for s in result.scenarios
        ]

    def save_scenario(self, data: CreateScenarioInput) -> Scenario:
        if data.feature_id:
            self._require_feature(data.feature_id)
        scenario = self._insert(data, data.feature_id)
        logging.info(f"Saved scenario {scenario.id} '{scenario.title}'")
        return scenario

    def save_scenarios(self, feature_id: str, scenarios: List[CreateScenarioInput]) -> List[Scenario]:
        self._require_feature(feature_id)
        saved = [self._insert(s, feature_id) for s in scenarios]
        logging.info(f"Saved {len(saved)} scenarios for feature {feature_id}")
        return saved

    def get_scenarios_by_feature(self, feature_id: str) -> List[Scenario]:
        self._require_feature(feature_id)
        rows = self.store.find_many("scenarios", {"feature_id": feature_id}, order_by=_ORDER)
        return [_scenario_from_row(r) for r in rows]

    def get_scenario(self, scenario_id: str) -> Scenario:
        row = self.store.find_by_id("scenarios", scenario_id)
        if not row:
            raise NotFoundError("Scenario", scenario_id)
        return _scenario_from_row(row)

    def resolve_project_id(self, scenario: Scenario) -> Optional[str]:
        """Follow scenario -> feature -> project; None when the chain is broken."""
        if not scenario.feature_id:
            return None
        feature = self.store.find_by_id("features", scenario.feature_id)
        return feature["project_id"] if feature else None


class FeatureService:
    def __init__(self, store: GraphStore, scenarios: ScenarioService = None):
        self.store = store
        self.scenarios = scenarios or ScenarioService(store)

    def _require_project(self, project_id: str) -> None:
        if not self.store.find_by_id("projects", project_id):
            raise NotFoundError("Project", project_id)

    def create(self, data: CreateFeatureInput) -> Feature:
        self._require_project(data.project_id)
        row = {"id": str(uuid.uuid4()), **data.model_dump(), "created_at": to_db_timestamp(utc_now())}
        self.store.insert("features", row)
        return Feature.model_validate(row)

    def find_by_project(self, project_id: str) -> List[Feature]:
        rows = self.store.find_many("features", {"project_id": project_id}, order_by=_ORDER)
        return [Feature.model_validate(r) for r in rows]

    def find_one(self, feature_id: str) -> Feature:
        row = self.store.find_by_id("features", feature_id)
        if not row:
            raise NotFoundError("Feature", feature_id)
        return Feature.model_validate(row)

    async def extract_features(self, chat_model, project_id: str, text: str) -> List[CreateFeatureInput]:
        """Extract the features described in ``text``; nothing is saved."""
        self._require_project(project_id)
        logging.info(f"Extracting features for project {project_id}")
        result = await invoke_structured(chat_model, FeatureList, get_feature_extraction_prompt(), text)
        logging.info(f"Extracted {len(result.features)} features")
        return [
            CreateFeatureInput(
                project_id=project_id,
                name=f.name or "Untitled feature",
                description=f.description or "No description",
            )
            for f in result.features
        ]

    async def save_features(
        self, chat_model, project_id: str, features: List[CreateFeatureInput]
    ) -> List[Tuple[Feature, List[Scenario]]]:
        """Save features and the scenarios extracted from each description.

        A failed scenario extraction is logged and leaves that feature
        without scenarios; the other features are still saved.
        """
        self._require_project(project_id)
        saved = []
        for data in features:
            feature = self.create(data.model_copy(update={"project_id": project_id}))
            scenarios = []
            if feature.description:
                try:
                    extracted = await self.scenarios.extract_scenarios(chat_model, feature.description, feature.id)
                    if extracted:
                        scenarios = self.scenarios.save_scenarios(feature.id, extracted)
                except ExternalCallError as e:
                    logging.error(f"Scenario extraction failed for feature {feature.id}: {e}", exc_info=True)
            saved.append((feature, scenarios))
        logging.info(f"Saved {len(saved)} features for project {project_id}")
        return saved
