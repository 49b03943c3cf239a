from sqlalchemy import create_engine, event, Column, String, Text, Integer, JSON, ForeignKey, Index
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker, scoped_session, declarative_base, relationship
from sqlalchemy.pool import StaticPool
import logging
import threading
import time


LOGGER = logging.getLogger(__name__)


def now_ms() -> int:
    return int(time.time() * 1000)


Base = declarative_base()
class ThreadRecord(Base):
    __tablename__ = 'threads'
    id = Column(String, primary_key=True)
    name = Column(String, nullable=False, default="New Conversation")
    created_at = Column(Integer, nullable=False, default=now_ms)  # epoch millis
    updated_at = Column(Integer, nullable=False, default=now_ms)
    messages = relationship("MessageRecord", back_populates="thread",
                            cascade="all, delete-orphan", passive_deletes=True)

class MessageRecord(Base):
    __tablename__ = 'messages'
    id = Column(String, primary_key=True)
    thread_id = Column(String, ForeignKey('threads.id', ondelete='CASCADE'), nullable=False)
    role = Column(String, nullable=False)  # 'user', 'assistant' or 'system'
    content = Column(Text, nullable=False)
    created_at = Column(Integer, nullable=False, default=now_ms)
    message_metadata = Column('metadata', JSON, nullable=True)  # model, provider, tokens
    message_index = Column(Integer, nullable=False)  # insertion order within thread
    thread = relationship("ThreadRecord", back_populates="messages")
    images = relationship("ImageRecord", back_populates="message", order_by="ImageRecord.position",
                          cascade="all, delete-orphan", passive_deletes=True)
    __table_args__ = (
        Index('idx_messages_thread', 'thread_id'),
        Index('idx_messages_created', 'created_at'),
    )

class ImageRecord(Base):
    __tablename__ = 'images'
    id = Column(String, primary_key=True)
    message_id = Column(String, ForeignKey('messages.id', ondelete='CASCADE'), nullable=False)
    data = Column(Text, nullable=False)  # base64
    mime_type = Column(String, nullable=False, default="image/jpeg")
    position = Column(Integer, nullable=False, default=0)
    created_at = Column(Integer, nullable=False, default=now_ms)
    message = relationship("MessageRecord", back_populates="images")
    __table_args__ = (Index('idx_images_message', 'message_id'),)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Metadata:
    """
    Owns the database engine and session factory. Every synchronous unit of
    work against the database runs under `lock`.
    """

    def __init__(self, db_url: str):
        self.db_url = db_url
        self.lock = threading.Lock()
        self.engine = self._create_engine()
        self.create_all()
        self.session = scoped_session(sessionmaker(bind=self.engine, expire_on_commit=False))
        LOGGER.info(f"Created Metadata instance using database engine: {self.db_url}")

    def _create_engine(self):
        url = make_url(self.db_url)
        kwargs = {"echo": False}
        if url.get_backend_name() == "sqlite":
            kwargs["connect_args"] = {"check_same_thread": False}
            if url.database in (None, "", ":memory:"):
                # one shared connection, otherwise each worker thread sees its own empty db
                kwargs["poolclass"] = StaticPool
        engine = create_engine(self.db_url, **kwargs)
        if url.get_backend_name() == "sqlite":
            event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return engine

    def create_all(self):
        return Base.metadata.create_all(self.engine)

    def get_db_session(self):
        return self.session()

    def close_db_engine(self):
        if self.engine:
            self.session.remove()
            self.engine.dispose()
            self.engine = None
            LOGGER.info("Closed database engine")

    def close(self) -> None:
        self.close_db_engine()
