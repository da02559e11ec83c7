from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker, declarative_base

from loyalty_card.config import DATABASE_URL


def make_engine(url: str):
    # make_url keeps sqlite:// and sqlite:///path intact
    url = make_url(url)

    connect_args = {}
    backend = url.get_backend_name()
    if backend == "postgresql":
        connect_args = {"options": "-c timezone=utc"}
    elif backend == "sqlite":
        # Handlers run in a threadpool; writers wait on the lock instead of failing fast.
        connect_args = {"check_same_thread": False, "timeout": 30}

    return create_engine(url, connect_args=connect_args)


engine = make_engine(DATABASE_URL)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)
Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
