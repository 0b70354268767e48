# src/database.py
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool
from flask import g

from src.config import Config

engine_kwargs = {
    "echo": Config.SQL_ECHO,
    "future": True,
    "pool_pre_ping": True,
}

if Config.DATABASE_URL.startswith("sqlite"):
    engine_kwargs["connect_args"] = {"check_same_thread": False}
    if ":memory:" in Config.DATABASE_URL or Config.DATABASE_URL == "sqlite://":
        # Every pooled connection would otherwise see its own empty database
        engine_kwargs["poolclass"] = StaticPool
else:
    engine_kwargs["pool_size"] = Config.DB_POOL_SIZE
    engine_kwargs["max_overflow"] = Config.DB_MAX_OVERFLOW

engine = create_engine(Config.DATABASE_URL, **engine_kwargs)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, future=True)

Base = declarative_base()


def init_database():
    """Create the checkout/product tables if they are missing."""
    # Import for side effects: registers the tables on Base.metadata
    from src import models  # noqa: F401

    Base.metadata.create_all(bind=engine)


def get_db():
    if 'db' not in g:
        g.db = SessionLocal()
    return g.db


def close_db(e=None):
    try:
        db = g.pop('db', None)
        if db is not None:
            db.close()
    except RuntimeError:
        # Outside of an application context (e.g. test teardown)
        pass
