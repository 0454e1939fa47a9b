"""SQLite storage for the UI-state graph.

Every public call opens its own connection and runs in its own transaction,
so one GraphStore can be shared by concurrent exploration and code
generation runs. Uniqueness invariants enforced by the services are backed
by indexes here.
"""
import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from uigraph_agent.graph.errors import RecordNotFound, ReferenceViolation, UniqueViolation

_TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%f+00:00"

SCHEMA = (
    """
    create table if not exists projects (
        id text primary key,
        name text not null,
        url text not null,
        created_at text not null,
        updated_at text not null
    )
    """,
    """
    create table if not exists pages (
        id text primary key,
        project_id text not null references projects(id) on delete cascade,
        url text not null,
        title text not null,
        created_at text not null,
        updated_at text not null,
        unique (project_id, url)
    )
    """,
    """
    create table if not exists ui_states (
        id text primary key,
        project_id text not null references projects(id) on delete cascade,
        page_id text not null references pages(id) on delete cascade,
        page_url text not null,
        title text not null,
        description text not null,
        is_default integer not null default 0,
        html text,
        created_at text not null,
        updated_at text not null
    )
    """,
    # at most one default UiState per page
    """
    create unique index if not exists ux_ui_states_default
        on ui_states(project_id, page_url) where is_default = 1
    """,
    """
    create table if not exists edges (
        id text primary key,
        project_id text not null references projects(id) on delete cascade,
        from_ui_state_id text not null references ui_states(id) on delete cascade,
        to_ui_state_id text not null references ui_states(id) on delete cascade,
        description text not null,
        triggered_by text,
        trigger_type text,
        created_at text not null,
        updated_at text not null,
        unique (project_id, from_ui_state_id, to_ui_state_id)
    )
    """,
    """
    create table if not exists labels (
        id text primary key,
        project_id text not null references projects(id) on delete cascade,
        ui_state_id text references ui_states(id) on delete set null,
        name text not null,
        description text not null default '',
        selector text not null,
        xpath text,
        element_text text,
        url text not null,
        query_params text,
        trigger_actions text,
        created_at text not null,
        updated_at text not null
    )
    """,
    "create index if not exists idx_labels_project_url on labels(project_id, url)",
    """
    create table if not exists features (
        id text primary key,
        project_id text not null references projects(id) on delete cascade,
        name text not null,
        description text,
        created_at text not null
    )
    """,
    """
    create table if not exists scenarios (
        id text primary key,
        feature_id text references features(id) on delete cascade,
        title text not null,
        description text,
        given_text text not null,
        when_text text not null,
        then_text text not null,
        created_at text not null
    )
    """,
    """
    create table if not exists operation_sessions (
        id text primary key,
        project_id text not null references projects(id) on delete cascade,
        start_time text not null,
        end_time text,
        user_goal text,
        status text not null,
        summary text
    )
    """,
    """
    create table if not exists ui_state_transitions (
        id text primary key,
        session_id text not null references operation_sessions(id) on delete cascade,
        project_id text not null references projects(id) on delete cascade,
        from_ui_state_id text references ui_states(id) on delete cascade,
        to_ui_state_id text not null references ui_states(id) on delete cascade,
        trigger_action text not null,
        trigger_timestamp text not null,
        before_state text not null,
        after_state text not null,
        metadata text,
        timestamp text not null
    )
    """,
    # one row per recorded step, keyed by the full trigger action; replays of the
    # same step are skipped by batch inserts
    "drop index if exists ux_ui_state_transitions_step",
    """
    create unique index if not exists ux_ui_state_transitions_action
        on ui_state_transitions(
            session_id, ifnull(from_ui_state_id, ''), to_ui_state_id, trigger_timestamp, trigger_action
        )
    """,
    "create index if not exists idx_ui_state_transitions_session on ui_state_transitions(session_id)",
)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_db_timestamp(value: Optional[datetime]) -> Optional[str]:
    """Fixed-width UTC text so timestamps order lexicographically."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime(_TIMESTAMP_FORMAT)


Where = Dict[str, Any]


class GraphStore:
    """Transactional create / upsert / find / update / delete over sqlite."""

    def __init__(self, db_path: Union[str, Path]):
        self.db_path = Path(db_path)

    def _connect(self) -> sqlite3.Connection:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self.db_path, timeout=30)
        conn.row_factory = sqlite3.Row
        conn.execute("pragma foreign_keys = on")
        return conn

    @contextmanager
    def transaction(self):
        """Yield a connection whose statements commit or roll back together."""
        conn = self._connect()
        try:
            yield conn
            conn.commit()
        except sqlite3.IntegrityError as e:
            conn.rollback()
            translated = self._translate(e)
            if translated is None:
                raise
            raise translated from e
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    @staticmethod
    def _translate(error: sqlite3.IntegrityError) -> Optional[Exception]:
        message = str(error)
        if "UNIQUE" in message.upper():
            return UniqueViolation(message)
        if "FOREIGN KEY" in message.upper():
            return ReferenceViolation(message)
        return None

    def init_db(self) -> None:
        with self.transaction() as conn:
            for statement in SCHEMA:
                conn.execute(statement)
        logging.info(f"Graph store initialized at {self.db_path}")

    @staticmethod
    def _where_clause(where: Optional[Where]) -> Tuple[str, list]:
        if not where:
            return "", []
        clauses = []
        params = []
        for column, value in where.items():
            if value is None:
                clauses.append(f"{column} is null")
            else:
                clauses.append(f"{column} = ?")
                params.append(value)
        return " where " + " and ".join(clauses), params

    def insert(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        columns = ", ".join(row)
        placeholders = ", ".join("?" for _ in row)
        with self.transaction() as conn:
            conn.execute(f"insert into {table} ({columns}) values ({placeholders})", tuple(row.values()))
        return dict(row)

    def upsert(
        self,
        table: str,
        row: Dict[str, Any],
        conflict_columns: Sequence[str],
        update_columns: Sequence[str] = (),
    ) -> Dict[str, Any]:
        """Insert ``row``; on a unique conflict update only ``update_columns``.

        Returns the stored row, which on conflict is the pre-existing one.
        """
        columns = ", ".join(row)
        placeholders = ", ".join("?" for _ in row)
        conflict = ", ".join(conflict_columns)
        if update_columns:
            assignments = ", ".join(f"{c} = excluded.{c}" for c in update_columns)
            action = f"do update set {assignments}"
        else:
            action = "do nothing"
        lookup = {c: row[c] for c in conflict_columns}
        where_sql, params = self._where_clause(lookup)
        with self.transaction() as conn:
            conn.execute(
                f"insert into {table} ({columns}) values ({placeholders}) on conflict({conflict}) {action}",
                tuple(row.values()),
            )
            stored = conn.execute(f"select * from {table}{where_sql}", params).fetchone()
        return dict(stored)

    def insert_many(self, table: str, rows: Iterable[Dict[str, Any]]) -> int:
        """Insert rows, silently skipping those that hit a unique index.

        Returns the number of rows actually written.
        """
        rows = list(rows)
        if not rows:
            return 0
        columns = list(rows[0])
        placeholders = ", ".join("?" for _ in columns)
        sql = f"insert or ignore into {table} ({', '.join(columns)}) values ({placeholders})"
        with self.transaction() as conn:
            before = conn.total_changes
            conn.executemany(sql, [tuple(r[c] for c in columns) for r in rows])
            inserted = conn.total_changes - before
        return inserted

    def find_by_id(self, table: str, record_id: str) -> Optional[Dict[str, Any]]:
        with self.transaction() as conn:
            row = conn.execute(f"select * from {table} where id = ?", (record_id,)).fetchone()
        return dict(row) if row else None

    def find_first(self, table: str, where: Where, exclude_id: str = None) -> Optional[Dict[str, Any]]:
        where_sql, params = self._where_clause(where)
        if exclude_id is not None:
            where_sql += " and id != ?" if where_sql else " where id != ?"
            params.append(exclude_id)
        with self.transaction() as conn:
            row = conn.execute(f"select * from {table}{where_sql} limit 1", params).fetchone()
        return dict(row) if row else None

    def find_many(self, table: str, where: Where = None, order_by: str = None) -> List[Dict[str, Any]]:
        where_sql, params = self._where_clause(where)
        order_sql = f" order by {order_by}" if order_by else ""
        with self.transaction() as conn:
            rows = conn.execute(f"select * from {table}{where_sql}{order_sql}", params).fetchall()
        return [dict(r) for r in rows]

    def count(self, table: str, where: Where = None) -> int:
        where_sql, params = self._where_clause(where)
        with self.transaction() as conn:
            row = conn.execute(f"select count(*) from {table}{where_sql}", params).fetchone()
        return row[0]

    def query(self, sql: str, params: Sequence[Any] = ()) -> List[Dict[str, Any]]:
        """Run a read-only statement, for joins the helpers above cannot express."""
        with self.transaction() as conn:
            rows = conn.execute(sql, tuple(params)).fetchall()
        return [dict(r) for r in rows]

    def update(self, table: str, record_id: str, values: Dict[str, Any]) -> Dict[str, Any]:
        """Update one row by id and return it. Raises RecordNotFound when absent."""
        with self.transaction() as conn:
            if values:
                assignments = ", ".join(f"{c} = ?" for c in values)
                cursor = conn.execute(
                    f"update {table} set {assignments} where id = ?", (*values.values(), record_id)
                )
                if cursor.rowcount == 0:
                    raise RecordNotFound(f"{table}:{record_id}")
            row = conn.execute(f"select * from {table} where id = ?", (record_id,)).fetchone()
            if row is None:
                raise RecordNotFound(f"{table}:{record_id}")
        return dict(row)

    def delete(self, table: str, record_id: str) -> None:
        """Delete one row by id. Raises RecordNotFound when absent."""
        with self.transaction() as conn:
            cursor = conn.execute(f"delete from {table} where id = ?", (record_id,))
            if cursor.rowcount == 0:
                raise RecordNotFound(f"{table}:{record_id}")
