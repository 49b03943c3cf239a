import logging
LOGGER = logging.getLogger(__name__)

import os
import tempfile
from types import SimpleNamespace
from unittest.mock import patch

import pytest

from seevable.chat.errors import ThreadNotFoundError
from seevable.chat.metadata import MessageRecord, ThreadRecord
from seevable.chat.models import ImageData, MessageRole, ThreadSelection
from seevable.chat.threads import ConversationStore, DEFAULT_THREAD_NAME
from tests.common import PNG_BASE64


class TestConversationStore:

    def setup_method(self):
        self.store = ConversationStore.from_url("sqlite://")
        magika = SimpleNamespace(identify_bytes=lambda content: SimpleNamespace(output=SimpleNamespace(mime_type="image/png")))
        self.magika_patch = patch("seevable.chat.models._magika", return_value=magika)
        self.magika_patch.start()

    def teardown_method(self):
        self.magika_patch.stop()
        self.store.close()

    def test_create_thread(self):
        thread = self.store.create_thread("Trip planning")
        assert thread.id is not None
        assert thread.name == "Trip planning"
        assert thread.created_at == thread.updated_at
        assert thread.message_count == 0
        assert thread.last_message is None

    def test_create_thread_default_name(self):
        assert self.store.create_thread().name == DEFAULT_THREAD_NAME

    def test_get_thread_missing(self):
        assert self.store.get_thread("nope") is None

    def test_list_threads_most_recent_first(self):
        first = self.store.create_thread("first")
        second = self.store.create_thread("second")
        self.store.add_message(first.id, MessageRole.USER, "bump")
        threads = self.store.list_threads()
        assert [t.id for t in threads] == [first.id, second.id]
        assert threads[0].message_count == 1
        assert threads[0].last_message == "bump"

    def test_update_thread_name(self):
        thread = self.store.create_thread()
        updated = self.store.update_thread_name(thread.id, "Renamed")
        assert updated.name == "Renamed"
        assert updated.updated_at >= thread.updated_at
        assert self.store.get_thread(thread.id).name == "Renamed"

    def test_update_thread_name_missing(self):
        with pytest.raises(ThreadNotFoundError) as exc_info:
            self.store.update_thread_name("nope", "x")
        assert exc_info.value.thread_id == "nope"

    def test_add_message_missing_thread(self):
        with pytest.raises(ThreadNotFoundError):
            self.store.add_message("nope", MessageRole.USER, "hi")

    def test_updated_at_strictly_increases(self):
        thread = self.store.create_thread()
        previous = thread.updated_at
        for i in range(20):
            self.store.add_message(thread.id, MessageRole.USER, f"m{i}")
            current = self.store.get_thread(thread.id).updated_at
            assert current > previous
            previous = current

    def test_messages_in_insertion_order(self):
        thread = self.store.create_thread()
        for i in range(10):
            role = MessageRole.USER if i % 2 == 0 else MessageRole.ASSISTANT
            self.store.add_message(thread.id, role, f"m{i}")
        messages = self.store.get_messages(thread.id)
        assert [m.content for m in messages] == [f"m{i}" for i in range(10)]
        assert messages[1].role == MessageRole.ASSISTANT

    def test_message_metadata(self):
        thread = self.store.create_thread()
        metadata = {"model": "claude-sonnet-4-5-20250929", "provider": "anthropic", "tokens": {"input": 3, "output": 2}}
        message = self.store.add_message(thread.id, "assistant", "Hello", metadata=metadata)
        assert message.metadata == metadata
        assert self.store.get_messages(thread.id)[0].metadata == metadata

    def test_message_images(self):
        thread = self.store.create_thread()
        message = self.store.add_message(thread.id, MessageRole.USER, "look", images=[
            PNG_BASE64,
            ImageData(data="abcd", media_type="image/gif"),
            {"data": "efgh", "mediaType": "image/webp"},
        ])
        assert [image.media_type for image in message.images] == ["image/png", "image/gif", "image/webp"]
        stored = self.store.get_messages(thread.id)[0]
        assert [image.data for image in stored.images] == [PNG_BASE64, "abcd", "efgh"]
        assert self.store.count_images(message.id) == 3

    def test_message_without_images(self):
        thread = self.store.create_thread()
        message = self.store.add_message(thread.id, MessageRole.USER, "plain")
        assert message.images is None

    def test_delete_message_removes_images(self):
        thread = self.store.create_thread()
        message = self.store.add_message(thread.id, MessageRole.USER, "look", images=[PNG_BASE64])
        keep = self.store.add_message(thread.id, MessageRole.USER, "keep", images=[PNG_BASE64])
        assert self.store.delete_message(message.id) is True
        assert self.store.count_images(message.id) == 0
        assert self.store.count_images() == 1
        assert [m.id for m in self.store.get_messages(thread.id)] == [keep.id]

    def test_delete_message_missing(self):
        assert self.store.delete_message("nope") is False

    def test_delete_thread_cascades(self):
        thread = self.store.create_thread()
        other = self.store.create_thread()
        self.store.add_message(thread.id, MessageRole.USER, "a", images=[PNG_BASE64])
        self.store.add_message(thread.id, MessageRole.ASSISTANT, "b")
        self.store.add_message(other.id, MessageRole.USER, "c")
        assert self.store.delete_thread(thread.id) is True
        assert self.store.get_thread(thread.id) is None
        assert self.store.get_messages(thread.id) == []
        assert self.store.count_images() == 0
        session = self.store.metadata.get_db_session()
        try:
            assert session.query(MessageRecord).count() == 1
        finally:
            session.close()

    def test_delete_thread_missing(self):
        assert self.store.delete_thread("nope") is False


class TestMetadata:

    def setup_method(self):
        self.store = ConversationStore.from_url("sqlite://")

    def teardown_method(self):
        self.store.close()

    def test_session_sees_committed_rows(self):
        thread = self.store.create_thread("visible")
        session = self.store.metadata.get_db_session()
        try:
            record = session.query(ThreadRecord).filter_by(id=thread.id).first()
            assert record.name == "visible"
        finally:
            session.close()

    def test_close_disposes_engine(self):
        metadata = self.store.metadata
        assert metadata.engine is not None
        self.store.close()
        assert metadata.engine is None
        # closing twice is harmless
        self.store.close()
        assert metadata.engine is None


class TestThreadSelection:

    def setup_method(self):
        self.store = ConversationStore.from_url("sqlite://")
        self.selection = ThreadSelection()

    def teardown_method(self):
        self.store.close()

    def test_create_selects(self):
        thread = self.store.create_thread(selection=self.selection)
        assert self.selection.thread_id == thread.id

    def test_switch_thread(self):
        first = self.store.create_thread(selection=self.selection)
        second = self.store.create_thread(selection=self.selection)
        assert self.selection.thread_id == second.id
        self.store.switch_thread(self.selection, first.id)
        assert self.selection.thread_id == first.id

    def test_switch_thread_missing(self):
        thread = self.store.create_thread(selection=self.selection)
        with pytest.raises(ThreadNotFoundError):
            self.store.switch_thread(self.selection, "nope")
        assert self.selection.thread_id == thread.id

    def test_delete_current_clears_selection(self):
        thread = self.store.create_thread(selection=self.selection)
        self.store.delete_thread(thread.id, selection=self.selection)
        assert self.selection.thread_id is None

    def test_delete_other_keeps_selection(self):
        other = self.store.create_thread()
        current = self.store.create_thread(selection=self.selection)
        self.store.delete_thread(other.id, selection=self.selection)
        assert self.selection.thread_id == current.id

    def test_ensure_thread_creates_default(self):
        thread = self.store.ensure_thread(self.selection)
        assert thread.name == DEFAULT_THREAD_NAME
        assert self.selection.thread_id == thread.id
        assert self.store.ensure_thread(self.selection).id == thread.id
        assert len(self.store.list_threads()) == 1

    def test_ensure_thread_falls_back_to_most_recent(self):
        older = self.store.create_thread("older")
        newer = self.store.create_thread("newer")
        self.store.add_message(newer.id, MessageRole.USER, "hi")
        self.selection.select("deleted-thread")
        assert self.store.ensure_thread(self.selection).id == newer.id
        assert self.selection.thread_id == newer.id
        assert older.id != newer.id


class TestFileDatabase:

    def setup_method(self):
        self.db_file = tempfile.NamedTemporaryFile(suffix='.db', delete=False)
        self.db_file.close()
        self.db_url = f"sqlite:///{self.db_file.name}"

    def teardown_method(self):
        if os.path.exists(self.db_file.name):
            os.remove(self.db_file.name)

    def test_persists_across_stores(self):
        store = ConversationStore.from_url(self.db_url)
        thread = store.create_thread("durable")
        store.add_message(thread.id, MessageRole.USER, "still here")
        store.close()

        reopened = ConversationStore.from_url(self.db_url)
        try:
            assert reopened.get_thread(thread.id).name == "durable"
            assert [m.content for m in reopened.get_messages(thread.id)] == ["still here"]
        finally:
            reopened.close()
