"""
Database helpers shared by the result models

Provides an atomic insert-or-update keyed on a unique constraint, built on
the dialect-specific INSERT ... ON CONFLICT support in SQLAlchemy.
"""

from sqlalchemy.dialects import postgresql, sqlite

from app import db

_INSERT_BUILDERS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def upsert_row(model, values, conflict_columns, update_columns=None):
    """
    Insert a row or update the existing row that conflicts on a unique key

    The statement is a single INSERT ... ON CONFLICT DO UPDATE, so concurrent
    callers cannot create duplicate rows for the same key. The caller commits.

    Args:
        model: Model class to write
        values: Column values for the row
        conflict_columns: Columns of the unique constraint
        update_columns: Columns to overwrite on conflict (default: every
            provided column outside the conflict key)
    """
    dialect = db.session.get_bind().dialect.name
    build_insert = _INSERT_BUILDERS.get(dialect)
    if build_insert is None:
        raise NotImplementedError(f"Upsert is not supported on {dialect}")

    if update_columns is None:
        update_columns = [c for c in values if c not in conflict_columns]

    stmt = build_insert(model.__table__).values(**values)
    stmt = stmt.on_conflict_do_update(
        index_elements=list(conflict_columns),
        set_={column: stmt.excluded[column] for column in update_columns},
    )
    db.session.execute(stmt)
