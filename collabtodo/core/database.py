import logging
from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, declarative_base, Session

from collabtodo.core.config import settings

logger = logging.getLogger(__name__)


def enable_sqlite_foreign_keys(target_engine):
    """SQLite n'applique les FK que si on le demande à chaque connexion"""
    if target_engine.dialect.name != "sqlite":
        return

    @event.listens_for(target_engine, "connect")
    def _set_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def enable_sqlite_write_lock(target_engine):
    """
    SQLite ignore SELECT ... FOR UPDATE.

    Chaque transaction démarre en BEGIN IMMEDIATE : elle prend le verrou d'écriture
    tout de suite, donc deux sessions ne lisent jamais le même MAX(order) en parallèle.
    """
    if target_engine.dialect.name != "sqlite":
        return

    @event.listens_for(target_engine, "connect")
    def _disable_driver_begin(dbapi_connection, connection_record):
        # pysqlite émet son propre BEGIN différé, on le fait nous-mêmes
        dbapi_connection.isolation_level = None

    @event.listens_for(target_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


engine = create_engine(settings.DATABASE_URL, echo=False)
enable_sqlite_foreign_keys(engine)
enable_sqlite_write_lock(engine)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()

def get_db():
    """Dépendance sessionDB"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def atomic(db: Session):
    """
    Transaction ré-entrante.

    Le niveau le plus externe commit si tout passe, rollback sinon.
    Les niveaux internes participent à la transaction englobante.
    L'exception d'origine est toujours relancée telle quelle.
    """
    depth = db.info.get("atomic_depth", 0)
    db.info["atomic_depth"] = depth + 1
    try:
        yield db
        if depth == 0:
            db.commit()
    except Exception as e:
        if depth == 0:
            logger.warning(f"Rollback: {e!r}")
            db.rollback()
        raise
    finally:
        db.info["atomic_depth"] = depth
