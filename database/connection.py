from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, declarative_base

from config import DATABASE_URL


# Declarative base
Base = declarative_base()


def _enable_sqlite_write_locking(engine) -> None:
    # pysqlite difiere el BEGIN hasta el primer write; tomamos el lock de
    # escritura al inicio para que el re-check + insert sea atómico
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def build_engine(url: str = DATABASE_URL, **kwargs):
    """Crea el engine; para SQLite agrega locking de escritura y acceso multi-hilo"""
    if url.startswith("sqlite"):
        connect_args = kwargs.pop("connect_args", {})
        connect_args.setdefault("check_same_thread", False)
        connect_args.setdefault("timeout", 30)
        engine = create_engine(url, connect_args=connect_args, **kwargs)
        _enable_sqlite_write_locking(engine)
        return engine
    return create_engine(url, pool_pre_ping=True, **kwargs)


def build_session_factory(engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)


# Engine y sesión por defecto de la aplicación
engine = build_engine()
SessionLocal = build_session_factory(engine)


# Función para obtener la sesión
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
