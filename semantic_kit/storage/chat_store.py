"""
Chat history persistence for Semantic Kit.

Chat histories are stored per session name in two SQLModel tables: one row
per session and one row per message, with the message dict kept as JSON.
"""

from __future__ import annotations

import datetime
import json
import logging
import os
from typing import List, Optional, Union

from sqlalchemy import delete
from sqlalchemy.engine import Engine, make_url
from sqlmodel import Field, Session, SQLModel, create_engine, select

from ..kernel.chat_history import ChatHistory

# Set up logging
logger = logging.getLogger(__name__)


class ChatSession(SQLModel, table=True):
    """SQLModel for the chat_sessions table."""

    __tablename__ = "chat_sessions"

    name: str = Field(primary_key=True)
    created_at: datetime.datetime = Field(default_factory=datetime.datetime.now)
    updated_at: datetime.datetime = Field(default_factory=datetime.datetime.now)


class ChatMessageRecord(SQLModel, table=True):
    """SQLModel for the chat_messages table."""

    __tablename__ = "chat_messages"

    id: Optional[int] = Field(default=None, primary_key=True)
    session_name: str = Field(index=True, foreign_key="chat_sessions.name")
    position: int
    data_str: str = Field(default="")

    @property
    def data(self) -> dict:
        return json.loads(self.data_str)


class SQLChatHistoryStore:
    """
    Stores chat histories in a SQL database.

    Args:
        engine: A SQLAlchemy engine, or a database URL
    """

    def __init__(self, engine: Union[Engine, str]):
        if isinstance(engine, str):
            url = make_url(engine)
            if url.get_backend_name() == "sqlite" and url.database not in (
                None,
                "",
                ":memory:",
            ):
                os.makedirs(os.path.dirname(os.path.abspath(url.database)), exist_ok=True)
            engine = create_engine(engine)
        self.engine = engine
        SQLModel.metadata.create_all(
            self.engine, tables=[ChatSession.__table__, ChatMessageRecord.__table__]
        )

    def save(self, session_name: str, chat_history: ChatHistory) -> None:
        """Replace the stored messages of a session with ``chat_history``."""
        with Session(self.engine) as session:
            chat_session = session.get(ChatSession, session_name)
            if chat_session is None:
                chat_session = ChatSession(name=session_name)
            chat_session.updated_at = datetime.datetime.now()
            session.add(chat_session)
            session.execute(
                delete(ChatMessageRecord).where(
                    ChatMessageRecord.session_name == session_name
                )
            )
            session.add_all(
                ChatMessageRecord(
                    session_name=session_name, position=i, data_str=json.dumps(message)
                )
                for i, message in enumerate(chat_history.messages)
            )
            session.commit()
        logger.debug(f"Saved {len(chat_history)} messages for session {session_name}")

    def load(self, session_name: str) -> Optional[ChatHistory]:
        """The stored history of a session, or None if there is no such session."""
        with Session(self.engine) as session:
            if session.get(ChatSession, session_name) is None:
                return None
            records = session.exec(
                select(ChatMessageRecord)
                .where(ChatMessageRecord.session_name == session_name)
                .order_by(ChatMessageRecord.position)
            ).all()
            return ChatHistory(messages=[r.data for r in records])

    def delete(self, session_name: str) -> bool:
        """Delete a session; returns whether it existed."""
        with Session(self.engine) as session:
            chat_session = session.get(ChatSession, session_name)
            if chat_session is None:
                return False
            session.execute(
                delete(ChatMessageRecord).where(
                    ChatMessageRecord.session_name == session_name
                )
            )
            session.delete(chat_session)
            session.commit()
            return True

    def list_sessions(self) -> List[str]:
        with Session(self.engine) as session:
            return list(
                session.exec(select(ChatSession.name).order_by(ChatSession.name)).all()
            )
