import logging
import uuid
from typing import List

from uigraph_agent.data import CreateProjectInput, Project, UpdateProjectInput
from uigraph_agent.graph.errors import NotFoundError, RecordNotFound
from uigraph_agent.graph.store import GraphStore, to_db_timestamp, utc_now


class ProjectService:
    """Root tenant CRUD. Removing a project cascades to everything it owns."""

    def __init__(self, store: GraphStore):
        self.store = store

    def find_all(self) -> List[Project]:
        rows = self.store.find_many("projects", order_by="created_at desc, rowid desc")
        return [Project.model_validate(r) for r in rows]

    def find_one(self, project_id: str) -> Project:
        row = self.store.find_by_id("projects", project_id)
        if not row:
            raise NotFoundError("Project", project_id)
        return Project.model_validate(row)

    def exists(self, project_id: str) -> bool:
        return self.store.find_by_id("projects", project_id) is not None

    def create(self, data: CreateProjectInput) -> Project:
        now = to_db_timestamp(utc_now())
        row = self.store.insert(
            "projects",
            {"id": str(uuid.uuid4()), "name": data.name, "url": data.url, "created_at": now, "updated_at": now},
        )
        logging.info(f"Created project {row['id']} ({data.url})")
        return Project.model_validate(row)

    def update(self, project_id: str, patch: UpdateProjectInput) -> Project:
        values = patch.model_dump(exclude_none=True)
        values["updated_at"] = to_db_timestamp(utc_now())
        try:
            row = self.store.update("projects", project_id, values)
        except RecordNotFound:
            raise NotFoundError("Project", project_id)
        return Project.model_validate(row)

    def remove(self, project_id: str) -> None:
        try:
            self.store.delete("projects", project_id)
        except RecordNotFound:
            raise NotFoundError("Project", project_id)
        logging.info(f"Removed project {project_id}")
