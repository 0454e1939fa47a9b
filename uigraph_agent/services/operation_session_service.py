import json
import logging
import uuid
from typing import Any, List, Optional

from uigraph_agent.data import (
    CreateOperationSessionInput,
    OperationSession,
    SessionStatus,
    UpdateOperationSessionInput,
)
from uigraph_agent.graph.errors import BadRequestError, NotFoundError, RecordNotFound
from uigraph_agent.graph.store import GraphStore, to_db_timestamp, utc_now

_SELECT = """
    select s.*,
        (select count(*) from ui_state_transitions t where t.session_id = s.id) as transition_count
    from operation_sessions s
"""


def _session_from_row(row: dict) -> OperationSession:
    row = dict(row)
    if row.get("summary") is not None:
        row["summary"] = json.loads(row["summary"])
    return OperationSession.model_validate(row)


class OperationSessionService:
    """Bounded recording episodes; transition_count is derived, never stored."""

    def __init__(self, store: GraphStore):
        self.store = store

    def _fetch(self, session_id: str) -> Optional[OperationSession]:
        rows = self.store.query(f"{_SELECT} where s.id = ?", (session_id,))
        return _session_from_row(rows[0]) if rows else None

    def create(self, data: CreateOperationSessionInput) -> OperationSession:
        logging.info(f"Creating operation session for project {data.project_id}")
        if not self.store.find_by_id("projects", data.project_id):
            raise NotFoundError("Project", data.project_id)
        row = {
            "id": str(uuid.uuid4()),
            "project_id": data.project_id,
            "start_time": to_db_timestamp(utc_now()),
            "end_time": None,
            "user_goal": data.user_goal,
            "status": SessionStatus.ACTIVE.value,
            "summary": None,
        }
        self.store.insert("operation_sessions", row)
        logging.info(f"Created operation session with ID {row['id']}")
        return _session_from_row({**row, "transition_count": 0})

    def find_all(self, project_id: str = None) -> List[OperationSession]:
        if project_id:
            rows = self.store.query(f"{_SELECT} where s.project_id = ? order by s.start_time desc", (project_id,))
        else:
            rows = self.store.query(f"{_SELECT} order by s.start_time desc")
        return [_session_from_row(r) for r in rows]

    def find_one(self, session_id: str) -> OperationSession:
        session = self._fetch(session_id)
        if not session:
            raise NotFoundError("Operation session", session_id)
        return session

    def update(self, session_id: str, patch: UpdateOperationSessionInput) -> OperationSession:
        existing = self.find_one(session_id)
        if existing.status != SessionStatus.ACTIVE:
            raise BadRequestError(
                f"Operation session {session_id} is {existing.status.value}; only active sessions can be updated"
            )

        values = {}
        if patch.end_time is not None:
            values["end_time"] = to_db_timestamp(patch.end_time)
        if patch.status is not None:
            values["status"] = patch.status.value
        if patch.summary is not None:
            values["summary"] = json.dumps(patch.summary)
        try:
            self.store.update("operation_sessions", session_id, values)
        except RecordNotFound:
            raise NotFoundError("Operation session", session_id)
        logging.info(f"Updated operation session with ID {session_id}")
        return self.find_one(session_id)

    def remove(self, session_id: str) -> None:
        try:
            self.store.delete("operation_sessions", session_id)
        except RecordNotFound:
            raise NotFoundError("Operation session", session_id)
        logging.info(f"Removed operation session with ID {session_id}")

    def end_session(self, session_id: str, summary: Any = None) -> OperationSession:
        return self.update(
            session_id,
            UpdateOperationSessionInput(end_time=utc_now(), status=SessionStatus.COMPLETED, summary=summary),
        )

    def abandon_session(self, session_id: str) -> OperationSession:
        return self.update(
            session_id, UpdateOperationSessionInput(end_time=utc_now(), status=SessionStatus.ABANDONED)
        )
