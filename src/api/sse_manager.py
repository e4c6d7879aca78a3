"""SSE manager for streaming translation progress to clients."""

import asyncio
from typing import AsyncGenerator, Dict

from models.models import ProgressMessage, SSEMessageType


class SSEManager:
    """Keeps one message queue per translation task."""

    def __init__(self):
        self.clients: Dict[str, asyncio.Queue] = {}

    async def send_progress(self, task_id: str, progress: int) -> None:
        """Send a progress update."""
        await self._send_sse_message(
            task_id, ProgressMessage(type=SSEMessageType.PROGRESS, progress=progress)
        )

    async def send_chunk(self, task_id: str, content: str) -> None:
        """Send the cumulative output received so far."""
        await self._send_sse_message(
            task_id, ProgressMessage(type=SSEMessageType.CHUNK, content=content)
        )

    async def send_complete(self, task_id: str, filename: str, content: str) -> None:
        """Send the completion message with the translated document."""
        await self._send_sse_message(
            task_id,
            ProgressMessage(
                type=SSEMessageType.COMPLETE,
                progress=100,
                message="Translation complete",
                filename=filename,
                content=content,
            ),
        )

    async def send_cancelled(self, task_id: str, message: str) -> None:
        """Send a cancellation notice."""
        await self._send_sse_message(
            task_id, ProgressMessage(type=SSEMessageType.CANCELLED, message=message)
        )

    async def send_error(self, task_id: str, message: str) -> None:
        """Send an error message."""
        await self._send_sse_message(
            task_id, ProgressMessage(type=SSEMessageType.ERROR, message=message)
        )

    async def _send_sse_message(self, task_id: str, message: ProgressMessage) -> None:
        """Queue a message for the task, if it still has a client."""
        if task_id in self.clients:
            await self.clients[task_id].put(message)

    @staticmethod
    def format_message(message: ProgressMessage) -> str:
        """Render a message as an SSE data frame."""
        return f"data: {message.model_dump_json(exclude_none=True)}\n\n"

    async def register_client(self, task_id: str) -> asyncio.Queue:
        """Register a client connection."""
        queue = asyncio.Queue()
        self.clients[task_id] = queue
        return queue

    async def unregister_client(self, task_id: str) -> None:
        """Unregister a client connection."""
        self.clients.pop(task_id, None)

    async def stream_messages(self, task_id: str) -> AsyncGenerator[str, None]:
        """Yield formatted messages until a terminal one has been sent."""
        if task_id in self.clients:
            queue = self.clients[task_id]
        else:
            queue = await self.register_client(task_id)
        try:
            while True:
                message = await queue.get()
                yield self.format_message(message)
                queue.task_done()
                if message.type in SSEMessageType.TERMINAL:
                    break
        finally:
            await self.unregister_client(task_id)
