"""JSON Translator API routes."""

import asyncio
import json
import os
import uuid
from typing import List

from fastapi import APIRouter, File, Form, HTTPException, UploadFile
from fastapi.responses import StreamingResponse

from .sse_manager import SSEManager
from config.logging_config import get_logger
from config.settings import settings
from translator.errors import TranslationError
from translator.json_file_translator import default_output_path
from translator.json_stream_translator import JsonStreamTranslator

logger = get_logger(__name__)

router = APIRouter(prefix="/api/v1/json-translator")

sse_manager = SSEManager()

SUPPORTED_LANGUAGES: List[str] = [
    "English",
    "Chinese (Simplified)",
    "Chinese (Traditional)",
    "Japanese",
    "Korean",
    "French",
    "German",
    "Spanish",
    "Portuguese",
    "Italian",
    "Russian",
    "Arabic",
]


def create_translator() -> JsonStreamTranslator:
    return JsonStreamTranslator()


@router.get("/languages")
async def list_languages():
    """Target languages offered to clients."""
    return {"languages": SUPPORTED_LANGUAGES}


@router.post("/translate")
async def translate_json(
    file: UploadFile = File(...),
    target_language: str = Form(...),
):
    """
    Translate an uploaded JSON file and stream the progress back as SSE.

    Args:
        file: the uploaded JSON file
        target_language: target language

    Returns:
    SSE messages:
       - progress: data: {"type": "progress", "progress": 50}
       - partial output: data: {"type": "chunk", "content": "{\\"title\\": ..."}
       - done: data: {"type": "complete", "progress": 100, "filename": "x.French.json", "content": "..."}
       - cancelled: data: {"type": "cancelled", "message": "..."}
       - failure: data: {"type": "error", "message": "..."}
    """
    if not target_language.strip():
        raise HTTPException(status_code=400, detail="target_language must not be empty")

    file_content = await file.read()
    if len(file_content) > settings.max_file_size:
        raise HTTPException(status_code=413, detail="Uploaded file is too large")
    try:
        source_text = file_content.decode("utf-8")
        json.loads(source_text)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise HTTPException(status_code=400, detail=f"Invalid JSON file: {str(e)}")

    try:
        translator = create_translator()
    except TranslationError as e:
        raise HTTPException(status_code=500, detail=str(e))

    task_id = str(uuid.uuid4())
    filename = os.path.basename(
        default_output_path(file.filename or "translation.json", target_language)
    )
    return StreamingResponse(
        translate_json_stream(task_id, translator, source_text, target_language, filename),
        media_type="text/event-stream",
    )


async def translate_json_stream(
    task_id: str,
    translator: JsonStreamTranslator,
    source_text: str,
    target_language: str,
    filename: str,
):
    """Run one translation in the background and relay its messages.

    The client is registered before the task starts so that no message is
    lost. When the client goes away the translation is cancelled.
    """
    await sse_manager.register_client(task_id)
    cancel_event = asyncio.Event()

    async def translation_task():
        try:
            await sse_manager.send_progress(task_id, 0)
            result = await translator.translate(
                source_text,
                target_language,
                cancel_event=cancel_event,
                on_progress=lambda progress: sse_manager.send_progress(task_id, progress),
                on_chunk=lambda content: sse_manager.send_chunk(task_id, content),
            )
            if not result:
                await sse_manager.send_cancelled(task_id, "Translation cancelled")
                return
            logger.info(f"Translation task {task_id} finished: {filename}")
            await sse_manager.send_complete(task_id, filename, result)
        except Exception as e:
            logger.exception(f"Translation failed: {str(e)}")
            await sse_manager.send_error(task_id, f"Translation failed: {str(e)}")

    task = asyncio.create_task(translation_task())
    try:
        async for message in sse_manager.stream_messages(task_id):
            yield message
    finally:
        cancel_event.set()
        if not task.done():
            await asyncio.gather(task, return_exceptions=True)
