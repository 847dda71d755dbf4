from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base

Base = declarative_base()


def make_engine(database_url: str, echo: bool = False) -> Engine:
    # For SQLite we must add connect_args
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args = {"check_same_thread": False}

    engine = create_engine(database_url, connect_args=connect_args, echo=echo)

    if engine.dialect.name == "sqlite":
        # SQLite ignores FOREIGN KEY clauses unless asked per connection
        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def create_tables(engine: Engine) -> None:
    # register every table on Base.metadata before create_all
    from worktrack.models import project, refresh_token, story, task, user  # noqa: F401

    Base.metadata.create_all(bind=engine)


def get_db(session_factory: sessionmaker):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()
