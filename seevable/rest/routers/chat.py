from contextlib import suppress
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import StreamingResponse
import asyncio
import json
import logging

from seevable.chat.config import Config
from seevable.chat.errors import UnknownProviderError
from seevable.chat.gateway import ChatGateway
from seevable.chat.models import ThreadSelection
from seevable.chat.providers import ProviderName, available_models
from seevable.chat.threads import ConversationStore, DEFAULT_THREAD_NAME
from seevable.rest.models.chat import ChatRequest
from seevable.rest.dependencies.providers import get_config, get_gateway, get_store, get_thread_selection

router = APIRouter(prefix="/chat", tags=["Chat"])
LOGGER = logging.getLogger(__name__)


def thread_name_from_prompt(prompt: str) -> str:
    return prompt[:30] + "..." if len(prompt) > 30 else prompt


def sse_frame(data: str, event: str = None) -> str:
    if event:
        return f"event: {event}\ndata: {data}\n\n"
    return f"data: {data}\n\n"


def error_frame(error: BaseException) -> str:
    body = {"error": type(error).__name__, "message": getattr(error, "message", str(error))}
    return sse_frame(json.dumps(body), event="error")


@router.post("")
async def chat(
    request_body: ChatRequest,
    store: ConversationStore = Depends(get_store),
    gateway: ChatGateway = Depends(get_gateway),
    selection: ThreadSelection = Depends(get_thread_selection),
    config: Config = Depends(get_config)
):
    """Run one conversational turn and stream the normalized events."""
    try:
        provider_name = ProviderName.parse(request_body.provider or config.default_provider)
    except UnknownProviderError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)

    api_key = request_body.api_key or config.get_api_key(provider_name.value)
    if not api_key:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                            detail=f"No API key configured for provider: {provider_name.value}")
    model = request_body.model or available_models(provider_name)[0]
    LOGGER.info(f"Chat request: thread_id={request_body.thread_id}, provider={provider_name.value}, model={model}")

    thread_id = request_body.thread_id
    if thread_id is None:
        thread_name = thread_name_from_prompt(request_body.prompt)
        try:
            new_thread = await asyncio.to_thread(store.create_thread, thread_name, selection)
            thread_id = new_thread.id
        except Exception as e:
            LOGGER.error(f"Failed to create thread: {e}", exc_info=True)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to create new thread: {str(e)}"
            )
    else:
        existing_thread = await asyncio.to_thread(store.get_thread, thread_id)
        if existing_thread is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Thread not found.")
        if existing_thread.name == DEFAULT_THREAD_NAME and existing_thread.message_count == 0:
            new_thread_name = thread_name_from_prompt(request_body.prompt)
            try:
                await asyncio.to_thread(store.update_thread_name, thread_id, new_thread_name)
                LOGGER.info(f"Updated thread {thread_id} name from '{DEFAULT_THREAD_NAME}' to: {new_thread_name}")
            except Exception as e:
                # Don't fail the request, just log the error
                LOGGER.error(f"Failed to update thread name for {thread_id}: {e}", exc_info=True)

    queue: asyncio.Queue = asyncio.Queue()

    async def run_turn():
        try:
            message = await gateway.send(
                thread_id,
                request_body.prompt,
                provider=provider_name,
                api_key=api_key,
                model=model,
                images=request_body.images,
                max_tokens=request_body.max_tokens,
                temperature=request_body.temperature,
                sink=queue.put,
            )
            await queue.put(("done", message))
        except Exception as e:
            await queue.put(("error", e))

    async def stream_response_generator():
        task = asyncio.create_task(run_turn())
        try:
            while True:
                item = await queue.get()
                if not isinstance(item, tuple):
                    yield sse_frame(item.model_dump_json())
                elif item[0] == "done":
                    yield sse_frame(item[1].model_dump_json(by_alias=True), event="done")
                    break
                else:
                    yield error_frame(item[1])
                    break
        finally:
            if not task.done():
                LOGGER.info(f"Client disconnected from chat on thread {thread_id}, cancelling turn")
                task.cancel()
                with suppress(asyncio.CancelledError):
                    await task

    return StreamingResponse(stream_response_generator(), media_type="text/event-stream")
