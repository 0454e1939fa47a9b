"""Transition Recorder: persists steps observed during an OperationSession.

This path is independent of the exploration agent; it records what a human
operator (or a browser extension) did, one trigger plus before/after DOM
snapshot per step.
"""
import json
import logging
import uuid
from typing import List

from uigraph_agent.data import CreateUIStateTransitionInput, UIStateTransition, UIStateTransitionDetail
from uigraph_agent.graph.errors import BadRequestError, NotFoundError, RecordNotFound, ReferenceViolation, UniqueViolation
from uigraph_agent.graph.store import GraphStore, to_db_timestamp, utc_now

_JSON_COLUMNS = ("trigger_action", "before_state", "after_state", "metadata")


def _decode(row: dict) -> dict:
    row = dict(row)
    for column in _JSON_COLUMNS:
        if row.get(column) is not None:
            row[column] = json.loads(row[column])
    row.pop("trigger_timestamp", None)
    return row


def _to_row(data: CreateUIStateTransitionInput) -> dict:
    return {
        "id": data.id or str(uuid.uuid4()),
        "session_id": data.session_id,
        "project_id": data.project_id,
        "from_ui_state_id": data.from_ui_state_id,
        "to_ui_state_id": data.to_ui_state_id,
        "trigger_action": data.trigger_action.model_dump_json(),
        "trigger_timestamp": data.trigger_action.timestamp,
        "before_state": data.before_state.model_dump_json(),
        "after_state": data.after_state.model_dump_json(),
        "metadata": json.dumps(data.metadata) if data.metadata is not None else None,
        "timestamp": to_db_timestamp(utc_now()),
    }


class UIStateTransitionService:
    def __init__(self, store: GraphStore):
        self.store = store

    def create(self, data: CreateUIStateTransitionInput) -> UIStateTransition:
        logging.info(f"Creating UI state transition for session {data.session_id}")
        if not self.store.find_by_id("operation_sessions", data.session_id):
            raise NotFoundError("Operation session", data.session_id)
        if not self.store.find_by_id("projects", data.project_id):
            raise NotFoundError("Project", data.project_id)
        if not self.store.find_by_id("ui_states", data.to_ui_state_id):
            raise NotFoundError("UI state", data.to_ui_state_id)
        if data.from_ui_state_id and not self.store.find_by_id("ui_states", data.from_ui_state_id):
            raise NotFoundError("UI state", data.from_ui_state_id)

        try:
            row = self.store.insert("ui_state_transitions", _to_row(data))
        except UniqueViolation:
            raise BadRequestError(f"Transition already recorded for session {data.session_id}")
        logging.info(f"Created UI state transition with ID {row['id']}")
        return UIStateTransition.model_validate(_decode(row))

    def create_batch(self, transitions: List[CreateUIStateTransitionInput]) -> int:
        """Insert many transitions, skipping rows that duplicate a stored step.

        Returns the number of rows actually inserted.
        """
        logging.info(f"Creating batch of {len(transitions)} UI state transitions")
        try:
            count = self.store.insert_many("ui_state_transitions", [_to_row(t) for t in transitions])
        except ReferenceViolation as e:
            raise BadRequestError(f"Batch references a missing session, project or UI state: {e}")
        logging.info(f"Created {count} UI state transitions")
        return count

    def find_all(self, session_id: str = None, project_id: str = None) -> List[UIStateTransition]:
        where = {}
        if session_id:
            where["session_id"] = session_id
        if project_id:
            where["project_id"] = project_id
        rows = self.store.find_many("ui_state_transitions", where, order_by="timestamp asc, rowid asc")
        return [UIStateTransition.model_validate(_decode(r)) for r in rows]

    def find_one(self, transition_id: str) -> UIStateTransition:
        row = self.store.find_by_id("ui_state_transitions", transition_id)
        if not row:
            raise NotFoundError("UI state transition", transition_id)
        return UIStateTransition.model_validate(_decode(row))

    def find_by_session_with_details(self, session_id: str) -> List[UIStateTransitionDetail]:
        rows = self.store.query(
            """
            select t.*,
                f.title as from_ui_state_title, f.page_url as from_page_url,
                u.title as to_ui_state_title, u.page_url as to_page_url
            from ui_state_transitions t
            left join ui_states f on f.id = t.from_ui_state_id
            left join ui_states u on u.id = t.to_ui_state_id
            where t.session_id = ?
            order by t.timestamp asc, t.rowid asc
            """,
            (session_id,),
        )
        return [UIStateTransitionDetail.model_validate(_decode(r)) for r in rows]

    def remove(self, transition_id: str) -> None:
        try:
            self.store.delete("ui_state_transitions", transition_id)
        except RecordNotFound:
            raise NotFoundError("UI state transition", transition_id)
        logging.info(f"Removed UI state transition with ID {transition_id}")
