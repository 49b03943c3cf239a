from fastapi import APIRouter, Depends, HTTPException, status
import asyncio
import logging

from seevable.chat.threads import ConversationStore
from seevable.rest.dependencies.providers import get_store

router = APIRouter(prefix="/messages", tags=["Message"])
LOGGER = logging.getLogger(__name__)


@router.delete("/{message_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_message(message_id: str, store: ConversationStore = Depends(get_store)):
    """Delete a single message and its images."""
    try:
        deleted = await asyncio.to_thread(store.delete_message, message_id)
    except Exception as e:
        LOGGER.error(f"Error deleting message {message_id}: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Could not delete message.")
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Message not found.")
