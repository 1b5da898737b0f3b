"""
Database bootstrap for a fresh SmartWater deployment.

PostgreSQL needs the named ENUM types (provider type, repair status, ...)
before the tables that use them; SQLite stores them as VARCHAR with a CHECK.
Both steps are idempotent so the server can run this on every start.
"""

from smartwater import db
import logging

logger = logging.getLogger(__name__)


def model_enum_types():
    """Named Enum column types declared on the models, keyed by type name"""
    from smartwater import models  # noqa: F401  registers every table on the metadata

    types = {}
    for table in db.metadata.sorted_tables:
        for column in table.columns:
            name = getattr(column.type, 'name', None)
            if name and getattr(column.type, 'enums', None):
                types.setdefault(name, column.type)
    return types


def create_enum_types():
    created = []
    for name, enum_type in model_enum_types().items():
        try:
            enum_type.create(db.engine, checkfirst=True)
            created.append(name)
        except Exception as e:
            logger.warning(f"Could not create enum type {name}: {e}")
    logger.info(f"Verified {len(created)} enum type(s)")
    return created


def create_tables():
    from smartwater import models  # noqa: F401
    db.create_all()
    logger.info(f"Verified {len(db.metadata.tables)} table(s)")


def initialize_database():
    """Create enum types and tables; returns False instead of raising on failure"""
    logger.info(f"Initializing {db.engine.dialect.name} database")
    try:
        if db.engine.dialect.name == 'postgresql':
            create_enum_types()
        create_tables()
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        db.session.rollback()
        return False
    return True
