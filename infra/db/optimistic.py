from __future__ import annotations

from typing import Any, Iterable

from sqlalchemy import insert, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session


def insert_on_conflict_do_nothing(
    session: Session,
    orm_type: type[Any],
    values: dict[str, Any],
    conflict_columns: Iterable[str],
) -> bool:
    """Insert one row unless the natural key already exists.

    Returns True when this call created the row. Concurrent writers racing on
    the same key converge: exactly one insert wins, the rest see False.
    """
    columns = list(conflict_columns)
    table = orm_type.__table__
    dialect = session.get_bind().dialect.name
    if dialect in ("sqlite", "postgresql"):
        builder = sqlite.insert if dialect == "sqlite" else postgresql.insert
        stmt = builder(table).values(**values).on_conflict_do_nothing(index_elements=columns)
        result = session.execute(stmt)
        return result.rowcount == 1

    # Generic dialects: rely on the unique constraint inside a savepoint.
    try:
        with session.begin_nested():
            session.execute(insert(table).values(**values))
    except IntegrityError:
        return False
    return True


def update_if_changed(
    session: Session,
    orm_type: type[Any],
    key: dict[str, Any],
    *,
    column: str,
    new_value: Any,
    extra_values: dict[str, Any] | None = None,
) -> bool:
    """Compare-and-set ``column`` to ``new_value`` on the row matching ``key``.

    The ``WHERE column != new_value`` guard makes the write a no-op when the row
    already holds the value; returns True only when a row actually changed.
    """
    target = getattr(orm_type, column)
    stmt = (
        update(orm_type)
        .where(*(getattr(orm_type, name) == value for name, value in key.items()))
        .where(target != new_value)
        .values({column: new_value, **(extra_values or {})})
    )
    result = session.execute(stmt)
    return result.rowcount > 0


__all__ = ["insert_on_conflict_do_nothing", "update_if_changed"]
