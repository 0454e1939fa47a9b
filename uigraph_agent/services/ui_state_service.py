import logging
import uuid
from typing import List, Optional

from uigraph_agent.data import CreateUiStateInput, UiState, UpdateUiStateInput
from uigraph_agent.graph.errors import BadRequestError, NotFoundError, RecordNotFound, UniqueViolation
from uigraph_agent.graph.store import GraphStore, to_db_timestamp, utc_now

_ORDER = "created_at desc, rowid desc"


class UiStateService:
    """UiStates of a page, with at most one default per (project_id, page_url)."""

    def __init__(self, store: GraphStore):
        self.store = store

    def find_all(self) -> List[UiState]:
        return [UiState.model_validate(r) for r in self.store.find_many("ui_states", order_by=_ORDER)]

    def find_by_project(self, project_id: str) -> List[UiState]:
        rows = self.store.find_many("ui_states", {"project_id": project_id}, order_by=_ORDER)
        return [UiState.model_validate(r) for r in rows]

    def find_by_page(self, project_id: str, page_url: str) -> List[UiState]:
        rows = self.store.find_many("ui_states", {"project_id": project_id, "page_url": page_url}, order_by=_ORDER)
        return [UiState.model_validate(r) for r in rows]

    def find_one(self, ui_state_id: str) -> UiState:
        row = self.store.find_by_id("ui_states", ui_state_id)
        if not row:
            raise NotFoundError("UiState", ui_state_id)
        return UiState.model_validate(row)

    def get_default_ui_state(self, project_id: str, page_url: str) -> Optional[UiState]:
        row = self.store.find_first("ui_states", {"project_id": project_id, "page_url": page_url, "is_default": 1})
        return UiState.model_validate(row) if row else None

    def _resolve_page_id(self, project_id: str, page_url: str) -> str:
        page = self.store.find_first("pages", {"project_id": project_id, "url": page_url})
        if not page:
            raise NotFoundError(
                "Page", page_url, detail=f"Page with URL {page_url} not found in project {project_id}"
            )
        return page["id"]

    def _default_conflict(self, project_id: str, page_url: str) -> BadRequestError:
        return BadRequestError(f"Default UiState already exists for page {page_url} in project {project_id}")

    def create(self, data: CreateUiStateInput) -> UiState:
        if not self.store.find_by_id("projects", data.project_id):
            raise NotFoundError("Project", data.project_id)
        page_id = self._resolve_page_id(data.project_id, data.page_url)

        if data.is_default and self.get_default_ui_state(data.project_id, data.page_url):
            raise self._default_conflict(data.project_id, data.page_url)

        now = to_db_timestamp(utc_now())
        row = {
            "id": str(uuid.uuid4()),
            "project_id": data.project_id,
            "page_id": page_id,
            "page_url": data.page_url,
            "title": data.title,
            "description": data.description,
            "is_default": 1 if data.is_default else 0,
            "html": data.html,
            "created_at": now,
            "updated_at": now,
        }
        try:
            self.store.insert("ui_states", row)
        except UniqueViolation:
            # a concurrent writer won the race for the default flag
            raise self._default_conflict(data.project_id, data.page_url)
        logging.info(f"Created UiState {row['id']} '{data.title}' on {data.page_url}")
        return UiState.model_validate(row)

    def update(self, ui_state_id: str, patch: UpdateUiStateInput) -> UiState:
        existing = self.store.find_by_id("ui_states", ui_state_id)
        if not existing:
            raise NotFoundError("UiState", ui_state_id)

        target_page_url = patch.page_url or existing["page_url"]
        values = {}
        if patch.title is not None:
            values["title"] = patch.title
        if patch.description is not None:
            values["description"] = patch.description
        if patch.page_url:
            values["page_url"] = patch.page_url
            values["page_id"] = self._resolve_page_id(existing["project_id"], patch.page_url)
        if patch.is_default is not None:
            values["is_default"] = 1 if patch.is_default else 0

        if patch.is_default is True:
            other = self.store.find_first(
                "ui_states",
                {"project_id": existing["project_id"], "page_url": target_page_url, "is_default": 1},
                exclude_id=ui_state_id,
            )
            if other:
                raise BadRequestError(f"Default UiState already exists for page {target_page_url}")

        values["updated_at"] = to_db_timestamp(utc_now())
        try:
            row = self.store.update("ui_states", ui_state_id, values)
        except RecordNotFound:
            raise NotFoundError("UiState", ui_state_id)
        except UniqueViolation:
            raise BadRequestError(f"Default UiState already exists for page {target_page_url}")
        return UiState.model_validate(row)

    def remove(self, ui_state_id: str) -> None:
        try:
            self.store.delete("ui_states", ui_state_id)
        except RecordNotFound:
            raise NotFoundError("UiState", ui_state_id)
        logging.info(f"Removed UiState {ui_state_id}")
