import logging
import uuid
from typing import Dict, List

from uigraph_agent.data import CreateEdgeInput, Edge, UpdateEdgeInput
from uigraph_agent.graph.errors import BadRequestError, NotFoundError, RecordNotFound, UniqueViolation
from uigraph_agent.graph.store import GraphStore, to_db_timestamp, utc_now

_ORDER = "created_at desc, rowid desc"


class EdgeService:
    """Directed transitions between two UiStates of the same project."""

    def __init__(self, store: GraphStore):
        self.store = store

    def find_all(self) -> List[Edge]:
        return [Edge.model_validate(r) for r in self.store.find_many("edges", order_by=_ORDER)]

    def find_by_project(self, project_id: str) -> List[Edge]:
        rows = self.store.find_many("edges", {"project_id": project_id}, order_by=_ORDER)
        return [Edge.model_validate(r) for r in rows]

    def find_one(self, edge_id: str) -> Edge:
        row = self.store.find_by_id("edges", edge_id)
        if not row:
            raise NotFoundError("Edge", edge_id)
        return Edge.model_validate(row)

    def _require_ui_state(self, ui_state_id: str) -> dict:
        ui_state = self.store.find_by_id("ui_states", ui_state_id)
        if not ui_state:
            raise NotFoundError("UIState", ui_state_id)
        return ui_state

    def create(self, data: CreateEdgeInput) -> Edge:
        if not self.store.find_by_id("projects", data.project_id):
            raise NotFoundError("Project", data.project_id)
        from_state = self._require_ui_state(data.from_ui_state_id)
        to_state = self._require_ui_state(data.to_ui_state_id)

        if from_state["project_id"] != data.project_id or to_state["project_id"] != data.project_id:
            raise BadRequestError("UIStates must belong to the same project")

        duplicate = self.store.find_first(
            "edges",
            {
                "project_id": data.project_id,
                "from_ui_state_id": data.from_ui_state_id,
                "to_ui_state_id": data.to_ui_state_id,
            },
        )
        if duplicate:
            raise BadRequestError("Edge between these UIStates already exists")

        now = to_db_timestamp(utc_now())
        row = {"id": str(uuid.uuid4()), **data.model_dump(), "created_at": now, "updated_at": now}
        try:
            self.store.insert("edges", row)
        except UniqueViolation:
            raise BadRequestError("Edge between these UIStates already exists")
        logging.info(f"Created edge {row['id']}: {data.from_ui_state_id} -> {data.to_ui_state_id}")
        return Edge.model_validate(row)

    def update(self, edge_id: str, patch: UpdateEdgeInput) -> Edge:
        existing = self.store.find_by_id("edges", edge_id)
        if not existing:
            raise NotFoundError("Edge", edge_id)

        for endpoint in (patch.from_ui_state_id, patch.to_ui_state_id):
            if endpoint:
                ui_state = self._require_ui_state(endpoint)
                if ui_state["project_id"] != existing["project_id"]:
                    raise BadRequestError("UIState must belong to the same project")

        values = patch.model_dump(exclude_none=True)
        values["updated_at"] = to_db_timestamp(utc_now())
        try:
            row = self.store.update("edges", edge_id, values)
        except RecordNotFound:
            raise NotFoundError("Edge", edge_id)
        except UniqueViolation:
            raise BadRequestError("Edge between these UIStates already exists")
        return Edge.model_validate(row)

    def remove(self, edge_id: str) -> None:
        try:
            self.store.delete("edges", edge_id)
        except RecordNotFound:
            raise NotFoundError("Edge", edge_id)
        logging.info(f"Removed edge {edge_id}")

    def find_edges_by_ui_state(self, ui_state_id: str) -> Dict[str, List[Edge]]:
        """Return ``{"outgoing": [...], "incoming": [...]}``; a self-loop is in both."""
        outgoing = self.store.find_many("edges", {"from_ui_state_id": ui_state_id}, order_by=_ORDER)
        incoming = self.store.find_many("edges", {"to_ui_state_id": ui_state_id}, order_by=_ORDER)
        return {
            "outgoing": [Edge.model_validate(r) for r in outgoing],
            "incoming": [Edge.model_validate(r) for r in incoming],
        }
