from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

Base = declarative_base()


def make_session_factory(database_url: str):
    """Build an engine and session factory for the SQL catalog backing."""
    connect_args = {}
    if database_url.startswith("sqlite"):
        # Sessions are opened from whichever thread serves the request
        connect_args["check_same_thread"] = False
    engine = create_engine(database_url, connect_args=connect_args)
    Base.metadata.create_all(bind=engine)
    return engine, sessionmaker(autocommit=False, autoflush=False, bind=engine)
