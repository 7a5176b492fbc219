"""
Module ORM Registry (``restock_modules._orm_registry``).

Responsibility
--------------
Ensure every module-level SQLAlchemy ORM model is imported so that
``Base.metadata`` contains its table definition before tables are created.

Architecture position
---------------------
**Modules layer** -- utility.  Imported lazily by
``restock_kernel.db.engine.create_tables``.

Usage
-----
Entry points and ``tests/conftest.py`` call ``create_all_tables()``.
"""

from sqlalchemy.engine import Engine


def import_all_orm_models() -> None:
    """Import every ``restock_modules.*.orm`` module to register ORM models.

    This function is idempotent -- repeated calls are harmless.
    """
    import restock_modules.purchasing.orm  # noqa: F401


def create_all_tables(engine: Engine | None = None) -> None:
    """Create all module tables.

    Preconditions:
        Engine must be initialized via ``init_engine_from_url()`` unless
        ``engine`` is passed.
    """
    from restock_kernel.db.engine import create_tables

    import_all_orm_models()
    create_tables(engine)
