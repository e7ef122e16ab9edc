"""
Relational store for generated escape rooms (SQLAlchemy).

Rows keep the challenge type list as JSON text and the generated HTML exactly as
received. Every SQLAlchemyError is re-raised as StorageUnavailable so callers only
deal with this project's exception types.
"""

import json
import os
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator, List

from dotenv import load_dotenv
from sqlalchemy import Column, DateTime, Integer, String, Text, create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from errors import EscapeRoomNotFound, StorageUnavailable
from logger import builder_logger
from models import EscapeRoomCreate, EscapeRoomRecord, EscapeRoomUpdate

load_dotenv()
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./escape_rooms.db")

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; every stored value is UTC
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value


class EscapeRoom(Base):
    __tablename__ = "escape_rooms"

    id = Column(String(32), primary_key=True, default=lambda: uuid.uuid4().hex)
    name = Column(String(255), nullable=False)
    time_limit = Column(Integer, nullable=False)
    challenges = Column(Text, nullable=False)  # JSON list of challenge type ids
    html_output = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    def to_record(self) -> EscapeRoomRecord:
        return EscapeRoomRecord(
            id=self.id,
            name=self.name,
            time_limit_minutes=self.time_limit,
            challenge_type_ids=json.loads(self.challenges),
            html_output=self.html_output,
            created_at=_as_utc(self.created_at),
            updated_at=_as_utc(self.updated_at),
        )


class EscapeRoomStore:

    def __init__(self, database_url: str = DATABASE_URL):
        connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
        self.engine = create_engine(database_url, connect_args=connect_args)
        Base.metadata.create_all(self.engine)
        self._sessions = sessionmaker(bind=self.engine, expire_on_commit=False)
        builder_logger.info(f"🗄️ Escape room store ready ({self.engine.url.render_as_string(hide_password=True)})")

    @contextmanager
    def session(self) -> Iterator[Session]:
        session = self._sessions()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            builder_logger.error(f"Storage failure: {e}", exc_info=True)
            raise StorageUnavailable("The escape room store is unavailable, please retry") from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def _get_row(self, session: Session, room_id: str) -> EscapeRoom:
        row = session.get(EscapeRoom, room_id)
        if row is None:
            raise EscapeRoomNotFound(room_id)
        return row

    def create(self, payload: EscapeRoomCreate) -> EscapeRoomRecord:
        with self.session() as session:
            row = EscapeRoom(
                name=payload.name,
                time_limit=payload.time_limit_minutes,
                challenges=json.dumps(payload.challenge_type_ids),
                html_output=payload.html_output,
            )
            session.add(row)
            session.flush()
            record = row.to_record()
        builder_logger.info(f"💾 Stored escape room {record.id} ('{record.name}')")
        return record

    def list(self) -> List[EscapeRoomRecord]:
        """Newest first."""
        with self.session() as session:
            rows = session.query(EscapeRoom).order_by(EscapeRoom.created_at.desc()).all()
            return [row.to_record() for row in rows]

    def get(self, room_id: str) -> EscapeRoomRecord:
        with self.session() as session:
            return self._get_row(session, room_id).to_record()

    def update(self, room_id: str, payload: EscapeRoomUpdate) -> EscapeRoomRecord:
        """Partial update: empty or missing fields keep their stored value."""
        with self.session() as session:
            row = self._get_row(session, room_id)
            if payload.name:
                row.name = payload.name
            if payload.time_limit_minutes:
                row.time_limit = payload.time_limit_minutes
            if payload.challenge_type_ids:
                row.challenges = json.dumps(payload.challenge_type_ids)
            if payload.html_output:
                row.html_output = payload.html_output
            session.flush()
            record = row.to_record()
        builder_logger.info(f"✏️ Updated escape room {room_id}")
        return record

    def delete(self, room_id: str):
        with self.session() as session:
            session.delete(self._get_row(session, room_id))
        builder_logger.info(f"🗑️ Deleted escape room {room_id}")
