# orderflow/data/database.py
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from orderflow.utils.settings import DATABASE_URL

engine = create_engine(DATABASE_URL, pool_pre_ping=True, future=True)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)

Base = declarative_base()


def get_db() -> Session:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
