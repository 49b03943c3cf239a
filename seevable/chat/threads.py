from seevable.chat.errors import ThreadNotFoundError
from seevable.chat.metadata import Metadata, ThreadRecord, MessageRecord, ImageRecord, now_ms
from seevable.chat.models import Thread, Message, MessageRole, ImageData, ThreadSelection
from sqlalchemy import func
import logging
import uuid
from typing import Any, Dict, List, Optional, Sequence, Union

LOGGER = logging.getLogger(__name__)

DEFAULT_THREAD_NAME = "New Conversation"

ImageInput = Union[str, ImageData, Dict[str, Any]]


class ConversationStore:
    """
    Thread and message persistence. All methods are synchronous and hold the
    metadata lock for the duration of one unit of work; async callers run them
    through asyncio.to_thread.
    """

    metadata: Metadata = None

    def __init__(self, metadata: Metadata):
        self.metadata = metadata

    @classmethod
    def from_url(cls, db_url: str) -> "ConversationStore":
        return cls(Metadata(db_url))

    def close(self) -> None:
        self.metadata.close()

    # Thread operations

    def create_thread(self, name: Optional[str] = None, selection: Optional[ThreadSelection] = None) -> Thread:
        now = now_ms()
        record = ThreadRecord(id=str(uuid.uuid4()), name=name or DEFAULT_THREAD_NAME, created_at=now, updated_at=now)
        with self.metadata.lock:
            session = self.metadata.get_db_session()
            try:
                session.add(record)
                session.commit()
                thread = self._to_thread(record, message_count=0, last_message=None)
            except Exception as e:
                LOGGER.error(f"Error creating thread '{name}': {e}", exc_info=True)
                session.rollback()
                raise
            finally:
                session.close()
        if selection is not None:
            selection.select(thread.id)
        LOGGER.info(f"Created thread {thread.id} with name '{thread.name}'")
        return thread

    def list_threads(self) -> List[Thread]:
        with self.metadata.lock:
            session = self.metadata.get_db_session()
            try:
                records = (session.query(ThreadRecord)
                           .order_by(ThreadRecord.updated_at.desc(), ThreadRecord.created_at.desc())
                           .all())
                threads = [self._summarize(session, record) for record in records]
            finally:
                session.close()
        LOGGER.debug(f"Retrieved {len(threads)} threads (sorted by updated_at desc)")
        return threads

    def get_thread(self, thread_id: str) -> Optional[Thread]:
        with self.metadata.lock:
            session = self.metadata.get_db_session()
            try:
                record = session.get(ThreadRecord, thread_id)
                if record is None:
                    return None
                return self._summarize(session, record)
            finally:
                session.close()

    def update_thread_name(self, thread_id: str, name: str) -> Thread:
        with self.metadata.lock:
            session = self.metadata.get_db_session()
            try:
                record = session.get(ThreadRecord, thread_id)
                if record is None:
                    raise ThreadNotFoundError(thread_id)
                record.name = name
                record.updated_at = max(now_ms(), record.updated_at)
                session.commit()
                thread = self._summarize(session, record)
            except ThreadNotFoundError:
                session.rollback()
                raise
            except Exception as e:
                LOGGER.error(f"Error updating thread name: {e}", exc_info=True)
                session.rollback()
                raise
            finally:
                session.close()
        LOGGER.info(f"Updated thread {thread_id} name to '{name}'")
        return thread

    def delete_thread(self, thread_id: str, selection: Optional[ThreadSelection] = None) -> bool:
        """
        Deletes a thread with its messages and images. Returns False if it did
        not exist.
        """
        with self.metadata.lock:
            session = self.metadata.get_db_session()
            try:
                record = session.get(ThreadRecord, thread_id)
                if record is None:
                    deleted = False
                else:
                    session.delete(record)
                    session.commit()
                    deleted = True
            except Exception as e:
                LOGGER.error(f"Error deleting thread {thread_id}: {e}", exc_info=True)
                session.rollback()
                raise
            finally:
                session.close()
        if selection is not None:
            selection.clear(thread_id)
        if deleted:
            LOGGER.info(f"Deleted thread {thread_id}")
        else:
            LOGGER.warning(f"No thread found to delete for thread_id: {thread_id} (possibly already deleted)")
        return deleted

    def switch_thread(self, selection: ThreadSelection, thread_id: str) -> Thread:
        thread = self.get_thread(thread_id)
        if thread is None:
            raise ThreadNotFoundError(thread_id)
        selection.select(thread_id)
        LOGGER.info(f"Switched current thread to {thread_id}")
        return thread

    def ensure_thread(self, selection: ThreadSelection) -> Thread:
        """
        Returns the selected thread if it still exists, otherwise the most
        recently updated one, otherwise a freshly created default thread.
        """
        if selection.thread_id is not None:
            thread = self.get_thread(selection.thread_id)
            if thread is not None:
                return thread
        threads = self.list_threads()
        if threads:
            selection.select(threads[0].id)
            return threads[0]
        return self.create_thread(DEFAULT_THREAD_NAME, selection=selection)

    # Message operations

    def add_message(self, thread_id: str, role: Union[MessageRole, str], content: str,
                    images: Optional[Sequence[ImageInput]] = None,
                    metadata: Optional[Dict[str, Any]] = None) -> Message:
        role = MessageRole(role)
        image_data = [ImageData.coerce(image) for image in images] if images else []
        with self.metadata.lock:
            session = self.metadata.get_db_session()
            try:
                thread = session.get(ThreadRecord, thread_id)
                if thread is None:
                    raise ThreadNotFoundError(thread_id)

                max_index = (session.query(func.max(MessageRecord.message_index))
                             .filter_by(thread_id=thread_id)
                             .scalar())
                now = now_ms()
                record = MessageRecord(
                    id=str(uuid.uuid4()),
                    thread_id=thread_id,
                    role=role.value,
                    content=content,
                    created_at=now,
                    message_metadata=metadata or {},
                    message_index=(max_index + 1) if max_index is not None else 0,
                )
                for position, image in enumerate(image_data):
                    record.images.append(ImageRecord(
                        id=f"{record.id}-{position}",
                        data=image.data,
                        mime_type=image.media_type,
                        position=position,
                        created_at=now,
                    ))
                session.add(record)
                # strictly increasing, even when two writes land in the same millisecond
                thread.updated_at = max(now, thread.updated_at + 1)
                session.commit()
                message = self._to_message(record)
            except ThreadNotFoundError:
                session.rollback()
                raise
            except Exception as e:
                session.rollback()
                LOGGER.error(f"Error creating message in thread {thread_id}: {e}", exc_info=True)
                raise
            finally:
                session.close()
        LOGGER.info(f"Created {role.value} message {message.id} in thread {thread_id} - message index {record.message_index}")
        return message

    def get_messages(self, thread_id: str) -> List[Message]:
        with self.metadata.lock:
            session = self.metadata.get_db_session()
            try:
                records = (session.query(MessageRecord)
                           .filter_by(thread_id=thread_id)
                           .order_by(MessageRecord.created_at.asc(), MessageRecord.message_index.asc())
                           .all())
                messages = [self._to_message(record) for record in records]
            finally:
                session.close()
        LOGGER.debug(f"Retrieved {len(messages)} messages from thread {thread_id}")
        return messages

    def delete_message(self, message_id: str) -> bool:
        with self.metadata.lock:
            session = self.metadata.get_db_session()
            try:
                count = session.query(MessageRecord).filter_by(id=message_id).delete()
                session.commit()
            except Exception as e:
                session.rollback()
                LOGGER.error(f"Error deleting message {message_id}: {e}", exc_info=True)
                raise
            finally:
                session.close()
        LOGGER.info(f"Deleted {count} message(s) with id {message_id}")
        return count > 0

    def count_images(self, message_id: Optional[str] = None) -> int:
        with self.metadata.lock:
            session = self.metadata.get_db_session()
            try:
                query = session.query(ImageRecord)
                if message_id is not None:
                    query = query.filter_by(message_id=message_id)
                return query.count()
            finally:
                session.close()

    # Conversions

    def _summarize(self, session, record: ThreadRecord) -> Thread:
        message_count = session.query(MessageRecord).filter_by(thread_id=record.id).count()
        last = (session.query(MessageRecord.content)
                .filter_by(thread_id=record.id)
                .order_by(MessageRecord.created_at.desc(), MessageRecord.message_index.desc())
                .first())
        return self._to_thread(record, message_count=message_count, last_message=last[0] if last else None)

    @staticmethod
    def _to_thread(record: ThreadRecord, message_count: int, last_message: Optional[str]) -> Thread:
        return Thread(
            id=record.id,
            name=record.name,
            created_at=record.created_at,
            updated_at=record.updated_at,
            message_count=message_count,
            last_message=last_message,
        )

    @staticmethod
    def _to_message(record: MessageRecord) -> Message:
        images = [ImageData(data=image.data, media_type=image.mime_type) for image in record.images]
        return Message(
            id=record.id,
            thread_id=record.thread_id,
            role=MessageRole(record.role),
            content=record.content,
            images=images or None,
            created_at=record.created_at,
            metadata=dict(record.message_metadata or {}),
        )
