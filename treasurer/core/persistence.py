"""Database access shared by the SQLite and PostgreSQL backends.

The ORM covers most reads and writes. The helpers here cover the places where
the two engines differ: raw statements written with positional ``?``
placeholders, and insert-or-update statements.
"""

from typing import Any, Dict, Iterable, List, Optional, Sequence

from sqlalchemy import Table, create_engine, event, text
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

SQLITE_PREFIX = "sqlite"
POSTGRES_DRIVER_PREFIX = "postgresql+psycopg2://"


def normalize_database_url(value: str) -> str:
    normalized = (value or "").strip().strip("'\"")
    if normalized.startswith("psql "):
        normalized = normalized[5:].strip().strip("'\"")
    if normalized.startswith("postgres://"):
        return POSTGRES_DRIVER_PREFIX + normalized[len("postgres://"):]
    if normalized.startswith("postgresql://"):
        return POSTGRES_DRIVER_PREFIX + normalized[len("postgresql://"):]
    return normalized


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:  # noqa: ARG001
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys = ON")
    cursor.close()


def build_engine(database_url: str) -> Engine:
    url = normalize_database_url(database_url)
    if url.startswith(SQLITE_PREFIX):
        engine = create_engine(url, connect_args={"check_same_thread": False})
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return engine
    return create_engine(url, pool_pre_ping=True)


def dialect_name(session: Session) -> str:
    return session.get_bind().dialect.name


def convert_placeholders(sql: str) -> str:
    """Rewrite positional ``?`` placeholders as ``:p1``, ``:p2``... binds.

    Question marks inside single-quoted literals are left alone.
    """
    parts: List[str] = []
    index = 0
    in_literal = False
    for char in sql:
        if char == "'":
            in_literal = not in_literal
            parts.append(char)
        elif char == "?" and not in_literal:
            index += 1
            parts.append(f":p{index}")
        else:
            parts.append(char)
    return "".join(parts)


def _bind_params(params: Optional[Sequence[Any]]) -> Dict[str, Any]:
    return {f"p{position}": value for position, value in enumerate(params or (), start=1)}


def query(session: Session, sql: str, params: Optional[Sequence[Any]] = None) -> List[Dict[str, Any]]:
    result = session.execute(text(convert_placeholders(sql)), _bind_params(params))
    return [dict(row) for row in result.mappings()]


def query_one(session: Session, sql: str, params: Optional[Sequence[Any]] = None) -> Optional[Dict[str, Any]]:
    rows = query(session, sql, params)
    return rows[0] if rows else None


def execute(session: Session, sql: str, params: Optional[Sequence[Any]] = None) -> int:
    result = session.execute(text(convert_placeholders(sql)), _bind_params(params))
    return result.rowcount


def upsert(
    session: Session,
    table: Table,
    values: Dict[str, Any],
    index_elements: Iterable[str],
    update_columns: Iterable[str],
) -> None:
    name = dialect_name(session)
    if name == "postgresql":
        statement = postgresql.insert(table).values(**values)
    elif name == "sqlite":
        statement = sqlite.insert(table).values(**values)
    else:
        raise NotImplementedError(f"Upsert is not supported for the {name} dialect")
    statement = statement.on_conflict_do_update(
        index_elements=list(index_elements),
        set_={column: statement.excluded[column] for column in update_columns},
    )
    session.execute(statement)


def insert_ignore(session: Session, table: Table, values: Dict[str, Any], index_elements: Iterable[str]) -> bool:
    """Insert ``values`` unless a row with the same ``index_elements`` exists; True when a row was written."""
    name = dialect_name(session)
    if name == "postgresql":
        statement = postgresql.insert(table).values(**values)
    elif name == "sqlite":
        statement = sqlite.insert(table).values(**values)
    else:
        raise NotImplementedError(f"Insert-or-ignore is not supported for the {name} dialect")
    result = session.execute(statement.on_conflict_do_nothing(index_elements=list(index_elements)))
    return result.rowcount == 1
