import json
import logging
import uuid
from typing import Any, Dict, List
from urllib.parse import urlsplit, urlunsplit

from pydantic import TypeAdapter, ValidationError

from uigraph_agent.data import CreateLabelInput, Label, LabelList
from uigraph_agent.graph.errors import NotFoundError, RecordNotFound
from uigraph_agent.graph.store import GraphStore, to_db_timestamp, utc_now
from uigraph_agent.llm.llm_api import invoke_structured
from uigraph_agent.prompts.extraction_prompts import get_label_generation_prompt

_ORDER = "created_at desc, rowid desc"
_TRIGGER_ACTIONS = TypeAdapter(List[Dict[str, Any]])


def strip_query(url: str) -> str:
    """Return ``url`` without its query string; unparsable input is returned as is."""
    try:
        parts = urlsplit(url)
    except ValueError as e:
        logging.warning(f"Failed to parse URL {url}: {e}")
        return url
    if not parts.query:
        return url
    return urlunsplit(parts._replace(query=""))


def decode_label(row: dict) -> Label:
    """Build a Label from a stored row, decoding its trigger actions.

    A corrupt payload degrades to an empty list with a warning.
    """
    row = dict(row)
    raw = row.get("trigger_actions")
    if raw is not None:
        try:
            row["trigger_actions"] = _TRIGGER_ACTIONS.validate_python(json.loads(raw))
        except (ValidationError, ValueError, TypeError) as e:
            logging.warning(f"Failed to decode triggerActions of label {row.get('id')}: {e}")
            row["trigger_actions"] = []
    return Label.model_validate(row)


class LabelService:
    def __init__(self, store: GraphStore):
        self.store = store

    def _require_project(self, project_id: str) -> None:
        if not self.store.find_by_id("projects", project_id):
            raise NotFoundError("Project", project_id)

    def save_label(self, data: CreateLabelInput) -> Label:
        logging.info(f"Saving label '{data.name}' for {data.url}")
        self._require_project(data.project_id)
        if data.ui_state_id and not self.store.find_by_id("ui_states", data.ui_state_id):
            raise NotFoundError("UiState", data.ui_state_id)

        now = to_db_timestamp(utc_now())
        row = {
            "id": str(uuid.uuid4()),
            **data.model_dump(exclude={"trigger_actions"}),
            "trigger_actions": json.dumps(data.trigger_actions) if data.trigger_actions is not None else None,
            "created_at": now,
            "updated_at": now,
        }
        self.store.insert("labels", row)
        logging.info(f"Saved label {row['id']}")
        return decode_label(row)

    async def auto_generate_labels(
        self, chat_model, project_id: str, url: str, html_content: str, query_params: str = None
    ) -> List[CreateLabelInput]:
        """Ask the model to label the interactive elements of a page's HTML.

        The labels are returned for review and are not saved.
        """
        self._require_project(project_id)
        base_url = strip_query(url)
        logging.info(f"Generating labels from the HTML of {base_url}")
        result = await invoke_structured(chat_model, LabelList, get_label_generation_prompt(), html_content)
        labels = [
            CreateLabelInput(
                project_id=project_id,
                name=label.name or "Unnamed element",
                description=label.description or "",
                selector=label.selector,
                element_text=label.element_text or None,
                url=base_url,
                query_params=query_params,
            )
            for label in result.labels
            if label.selector
        ]
        logging.info(f"Generated {len(labels)} labels for {base_url}")
        return labels

    def get_all_labels(self) -> List[Label]:
        return [decode_label(r) for r in self.store.find_many("labels", order_by=_ORDER)]

    def get_labels_by_project(self, project_id: str) -> List[Label]:
        self._require_project(project_id)
        rows = self.store.find_many("labels", {"project_id": project_id}, order_by=_ORDER)
        logging.info(f"Fetched {len(rows)} labels for project {project_id}")
        return [decode_label(r) for r in rows]

    def get_labels_by_url(self, url: str, project_id: str) -> List[Label]:
        """Labels stored for the base url (query parameters stripped)."""
        self._require_project(project_id)
        base_url = strip_query(url)
        rows = self.store.find_many("labels", {"project_id": project_id, "url": base_url}, order_by=_ORDER)
        return [decode_label(r) for r in rows]

    def get_labels_by_ui_state(self, ui_state_id: str) -> List[Label]:
        rows = self.store.find_many("labels", {"ui_state_id": ui_state_id}, order_by=_ORDER)
        return [decode_label(r) for r in rows]

    def remove(self, label_id: str) -> None:
        try:
            self.store.delete("labels", label_id)
        except RecordNotFound:
            raise NotFoundError("Label", label_id)
