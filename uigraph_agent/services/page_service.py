import logging
import uuid
from typing import List, Optional

from uigraph_agent.data import Page
from uigraph_agent.graph.errors import NotFoundError, ReferenceViolation
from uigraph_agent.graph.store import GraphStore, to_db_timestamp, utc_now

DEFAULT_PAGE_TITLE = "Home"


class PageService:
    """Pages are unique per (project_id, url); saving is an upsert."""

    def __init__(self, store: GraphStore):
        self.store = store

    def save_page(self, project_id: str, url: str, title: Optional[str] = None) -> Page:
        """Create the page, or return the existing one for the same url.

        An existing page keeps its row; only a re-specified title is written
        back. Re-saving never raises.
        """
        now = to_db_timestamp(utc_now())
        row = {
            "id": str(uuid.uuid4()),
            "project_id": project_id,
            "url": url,
            "title": title or DEFAULT_PAGE_TITLE,
            "created_at": now,
            "updated_at": now,
        }
        update_columns = ("title", "updated_at") if title else ()
        try:
            stored = self.store.upsert("pages", row, ("project_id", "url"), update_columns)
        except ReferenceViolation:
            raise NotFoundError("Project", project_id)
        logging.info(f"Saved page {url} for project {project_id}")
        return Page.model_validate(stored)

    upsert_page = save_page
    create_page = save_page

    def find_by_project(self, project_id: str) -> List[Page]:
        rows = self.store.find_many("pages", {"project_id": project_id}, order_by="created_at desc, rowid desc")
        return [Page.model_validate(r) for r in rows]

    def find_one_by_url(self, project_id: str, url: str) -> Optional[Page]:
        row = self.store.find_first("pages", {"project_id": project_id, "url": url})
        return Page.model_validate(row) if row else None
