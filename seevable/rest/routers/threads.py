from typing import List
from fastapi import APIRouter, Depends, HTTPException, status
import asyncio
import logging

from seevable.chat.errors import ThreadNotFoundError
from seevable.chat.models import Thread, Message, ThreadSelection
from seevable.chat.threads import ConversationStore
from seevable.rest.models.threads import CreateThreadRequest, UpdateThreadRequest, SwitchThreadRequest, CurrentThreadRef
from seevable.rest.dependencies.providers import get_store, get_thread_selection

router = APIRouter(prefix="/threads", tags=["Thread"])
LOGGER = logging.getLogger(__name__)


@router.get("", response_model=List[Thread])
async def get_threads(store: ConversationStore = Depends(get_store)):
    """Get all threads, most recently updated first."""
    try:
        return await asyncio.to_thread(store.list_threads)
    except Exception as e:
        LOGGER.error(f"Error fetching threads: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Could not fetch threads.")


@router.post("", response_model=Thread, status_code=status.HTTP_201_CREATED)
async def create_thread(
    request_body: CreateThreadRequest,
    store: ConversationStore = Depends(get_store),
    selection: ThreadSelection = Depends(get_thread_selection)
):
    """Create a new thread and make it the current one."""
    try:
        return await asyncio.to_thread(store.create_thread, request_body.name, selection)
    except Exception as e:
        LOGGER.error(f"Error creating thread: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Could not create new thread.")


@router.get("/current", response_model=Thread)
async def get_current_thread(
    store: ConversationStore = Depends(get_store),
    selection: ThreadSelection = Depends(get_thread_selection)
):
    """Get the current thread, creating a default one if there are none."""
    try:
        return await asyncio.to_thread(store.ensure_thread, selection)
    except Exception as e:
        LOGGER.error(f"Error resolving current thread ({selection}): {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Could not resolve current thread.")


@router.put("/current", response_model=CurrentThreadRef)
async def switch_thread(
    request_body: SwitchThreadRequest,
    store: ConversationStore = Depends(get_store),
    selection: ThreadSelection = Depends(get_thread_selection)
):
    try:
        thread = await asyncio.to_thread(store.switch_thread, selection, request_body.thread_id)
        return CurrentThreadRef(thread_id=thread.id)
    except ThreadNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Thread not found.")
    except Exception as e:
        LOGGER.error(f"Error switching to thread {request_body.thread_id}: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Could not switch thread.")


@router.get("/{thread_id}", response_model=Thread)
async def get_thread(thread_id: str, store: ConversationStore = Depends(get_store)):
    thread = await asyncio.to_thread(store.get_thread, thread_id)
    if thread is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Thread not found.")
    return thread


@router.patch("/{thread_id}", response_model=Thread)
async def update_thread(
    thread_id: str,
    request_body: UpdateThreadRequest,
    store: ConversationStore = Depends(get_store)
):
    """Rename a thread."""
    try:
        return await asyncio.to_thread(store.update_thread_name, thread_id, request_body.name)
    except ThreadNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Thread not found.")
    except Exception as e:
        LOGGER.error(f"Error renaming thread {thread_id}: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Could not update thread.")


@router.delete("/{thread_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_thread(
    thread_id: str,
    store: ConversationStore = Depends(get_store),
    selection: ThreadSelection = Depends(get_thread_selection)
):
    """Delete a thread together with its messages and images."""
    try:
        deleted = await asyncio.to_thread(store.delete_thread, thread_id, selection)
    except Exception as e:
        LOGGER.error(f"Error deleting thread {thread_id}: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Could not delete thread.")
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Thread not found.")


@router.get("/{thread_id}/messages", response_model=List[Message])
async def get_messages(thread_id: str, store: ConversationStore = Depends(get_store)):
    """Get the messages of a thread in chronological order."""
    thread = await asyncio.to_thread(store.get_thread, thread_id)
    if thread is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Thread not found.")
    try:
        return await asyncio.to_thread(store.get_messages, thread_id)
    except Exception as e:
        LOGGER.error(f"Error fetching messages for thread {thread_id}: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Could not fetch messages.")
