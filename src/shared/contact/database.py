"""Database models for contact form rate limiting."""

import logging
from datetime import datetime
from typing import Dict, Optional

from sqlalchemy import Column, DateTime, Float, String, create_engine, delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import declarative_base, sessionmaker

from src.shared.contact.rate_limit import RateLimitStore

logger = logging.getLogger(__name__)

Base = declarative_base()


class ContactRateLimit(Base):
    """Last accepted contact form submission per client."""
    __tablename__ = "contact_rate_limits"

    id = Column(String, primary_key=True)  # IP address
    identifier_type = Column(String, nullable=False, default="ip")
    last_submission = Column(Float, nullable=False, index=True)  # Unix timestamp
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


def create_rate_limit_engine(database_url: str):
    """Create an engine for the rate limit table, normalizing Heroku-style URLs."""
    # Heroku uses postgres:// but SQLAlchemy 2.0+ requires postgresql://
    if database_url.startswith("postgres://"):
        database_url = database_url.replace("postgres://", "postgresql://", 1)

    engine_kwargs = {}
    if not database_url.startswith("sqlite"):
        engine_kwargs = {
            "pool_pre_ping": True,  # Verify connections before using
            "pool_recycle": 3600,  # Recycle connections after 1 hour
        }
    return create_engine(database_url, **engine_kwargs)


class DatabaseRateLimitStore(RateLimitStore):
    """
    Rate limit table shared by every server process.

    The window check and the write happen in one conditional statement, so
    two processes cannot both accept a submission for the same client.
    """

    def __init__(self, engine):
        self.engine = engine
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
        Base.metadata.create_all(bind=engine, checkfirst=True)

    def hit(self, key: str, now: float, window_seconds: float) -> bool:
        cutoff = now - window_seconds
        db = self.SessionLocal()
        try:
            result = db.execute(
                update(ContactRateLimit)
                .where(ContactRateLimit.id == key, ContactRateLimit.last_submission <= cutoff)
                .values(last_submission=now, updated_at=datetime.utcnow())
            )
            if result.rowcount == 1:
                db.commit()
                return True

            exists = db.execute(
                select(ContactRateLimit.id).where(ContactRateLimit.id == key)
            ).first()
            if exists:
                db.rollback()
                return False

            db.add(ContactRateLimit(id=key, identifier_type="ip", last_submission=now))
            try:
                db.commit()
            except IntegrityError:
                # Another process inserted the same client first
                db.rollback()
                return False
            return True
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def last_seen(self, key: str) -> Optional[float]:
        db = self.SessionLocal()
        try:
            return db.execute(
                select(ContactRateLimit.last_submission).where(ContactRateLimit.id == key)
            ).scalar_one_or_none()
        finally:
            db.close()

    def prune(self, older_than: float) -> int:
        db = self.SessionLocal()
        try:
            result = db.execute(
                delete(ContactRateLimit).where(ContactRateLimit.last_submission < older_than)
            )
            db.commit()
            return result.rowcount or 0
        except Exception as e:
            logger.warning(f"Failed to cleanup old rate limit entries: {str(e)}")
            db.rollback()
            raise
        finally:
            db.close()

    def snapshot(self) -> Dict[str, float]:
        db = self.SessionLocal()
        try:
            rows = db.execute(select(ContactRateLimit.id, ContactRateLimit.last_submission)).all()
            return {row.id: row.last_submission for row in rows}
        finally:
            db.close()

    def import_entries(self, entries: Dict[str, float]) -> int:
        """Insert or refresh entries, keeping the newer timestamp. Returns rows written."""
        written = 0
        db = self.SessionLocal()
        try:
            for key, ts in entries.items():
                record = db.get(ContactRateLimit, key)
                if record is None:
                    db.add(ContactRateLimit(id=key, identifier_type="ip", last_submission=float(ts)))
                    written += 1
                elif record.last_submission < float(ts):
                    record.last_submission = float(ts)
                    written += 1
            db.commit()
            return written
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()
