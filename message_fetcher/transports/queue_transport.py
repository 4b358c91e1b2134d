"""
Azure Storage Queue consumption and the stream-to-queue bridge.

In bridging mode stream records are relayed into a queue, and the queue is
consumed with a bounded number of messages in flight. A message is deleted
once handled; when its dispatch fails it is made visible again so another
receive picks it up. Messages that are not valid JSON are logged and deleted.
"""

import asyncio
from typing import Any, Optional, Set

from azure.storage.queue.aio import QueueClient

from ..config import QueueConfig, get_config
from ..exceptions import TransportError
from ..utils.json_utils import deserialize_value, dumps
from .base import MessageHandler, Transport
from .kafka_transport import KafkaStreamTransport


def create_queue_client(queue_url: str, queue_config: QueueConfig) -> QueueClient:
    """
    Build an aio QueueClient.

    ``queue_url`` is either a full queue URL (optionally carrying a SAS token)
    or a queue name resolved against the configured connection string.
    """
    if queue_url.startswith(("http://", "https://")):
        return QueueClient.from_queue_url(queue_url)

    if not queue_config.connection_string:
        raise TransportError(
            f"Queue {queue_url} is not a URL and no storage connection string is configured",
            queue_url=queue_url,
        )
    return QueueClient.from_connection_string(
        conn_str=queue_config.connection_string, queue_name=queue_url
    )


class QueueTransport(Transport):
    """Polls a queue and dispatches up to ``concurrent_ops_limit`` messages at once."""

    def __init__(
        self,
        queue_url: str,
        concurrent_ops_limit: int,
        log: Any,
        queue_config: Optional[QueueConfig] = None,
        queue_client: Optional[QueueClient] = None,
    ):
        self.queue_url = queue_url
        self.concurrent_ops_limit = concurrent_ops_limit
        self.log = log
        self._queue_config = queue_config or get_config().queue
        self._client = queue_client

        self._semaphore = asyncio.Semaphore(concurrent_ops_limit)
        self._in_flight: Set[asyncio.Task] = set()
        self._task: Optional[asyncio.Task] = None
        self._running = False

    def _get_client(self) -> QueueClient:
        if self._client is None:
            self._client = create_queue_client(self.queue_url, self._queue_config)
        return self._client

    async def enqueue(self, message: Any) -> None:
        """Push a message onto the queue."""
        await self._get_client().send_message(dumps(message))

    async def start(self, on_message: MessageHandler) -> None:
        self._get_client()
        self._running = True
        self._task = asyncio.create_task(self._poll(on_message))
        self.log.info(
            f"Fetching jobs from queue: {self.queue_url}",
            extra={"queue_url": self.queue_url, "concurrent_ops_limit": self.concurrent_ops_limit},
        )

    async def _poll(self, on_message: MessageHandler) -> None:
        batch_size = min(self.concurrent_ops_limit, self._queue_config.max_messages_per_poll)

        while self._running:
            received = 0
            try:
                async for queue_message in self._client.receive_messages(
                    messages_per_page=batch_size,
                    max_messages=batch_size,
                    visibility_timeout=self._queue_config.visibility_timeout,
                ):
                    received += 1
                    await self._semaphore.acquire()
                    task = asyncio.create_task(self._handle(queue_message, on_message))
                    self._in_flight.add(task)
                    task.add_done_callback(self._in_flight.discard)
            except Exception as e:
                self.log.error(
                    f"Error receiving from queue: {self.queue_url}. Suppressing.",
                    extra={"queue_url": self.queue_url, "error": str(e)},
                )

            if not received:
                await asyncio.sleep(self._queue_config.poll_interval_seconds)

    async def _handle(self, queue_message: Any, on_message: MessageHandler) -> bool:
        """
        Dispatch one queue message, then delete or requeue it.

        Returns:
            True if the message was handled and deleted
        """
        try:
            message = deserialize_value(queue_message.content)
        except ValueError as e:
            self._semaphore.release()
            # Undecodable jobs would be requeued forever; drop them.
            self.log.error(
                f"Could not decode job on queue: {self.queue_url}. Deleting.",
                extra={"queue_url": self.queue_url, "message_id": queue_message.id, "error": str(e)},
            )
            return await self._delete(queue_message)

        try:
            await on_message(message)
        except Exception as e:
            self.log.warning(
                f"Job failed, requeueing on queue: {self.queue_url}",
                extra={"queue_url": self.queue_url, "message_id": queue_message.id, "error": str(e)},
            )
            await self._requeue(queue_message)
            return False
        finally:
            self._semaphore.release()

        return await self._delete(queue_message)

    async def _delete(self, queue_message: Any) -> bool:
        try:
            await self._client.delete_message(queue_message)
        except Exception as e:
            self.log.error(
                f"Could not delete job from queue: {self.queue_url}",
                extra={"queue_url": self.queue_url, "message_id": queue_message.id, "error": str(e)},
            )
            return False
        return True

    async def _requeue(self, queue_message: Any) -> None:
        try:
            await self._client.update_message(queue_message, visibility_timeout=0)
        except Exception as e:
            # The message reappears once its visibility timeout lapses anyway.
            self.log.error(
                f"Could not requeue job on queue: {self.queue_url}",
                extra={"queue_url": self.queue_url, "message_id": queue_message.id, "error": str(e)},
            )

    async def stop(self) -> None:
        self._running = False

        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        if self._in_flight:
            await asyncio.gather(*self._in_flight, return_exceptions=True)

        if self._client is not None:
            client, self._client = self._client, None
            await client.close()
            self.log.info(f"Stopped fetching from queue: {self.queue_url}")

    def __repr__(self) -> str:
        return f"QueueTransport(queue_url='{self.queue_url}')"


class QueueBridgeTransport(Transport):
    """Relays the stream into the queue and consumes the queue."""

    def __init__(self, stream: KafkaStreamTransport, queue: QueueTransport):
        self.stream = stream
        self.queue = queue
        self._running = False

    async def start(self, on_message: MessageHandler) -> None:
        await self.queue.start(on_message)
        try:
            await self.stream.start(self.queue.enqueue)
        except Exception:
            await self.queue.stop()
            raise
        self._running = True

    async def stop(self) -> None:
        self._running = False
        await self.stream.stop()
        await self.queue.stop()

    def __repr__(self) -> str:
        return f"QueueBridgeTransport(stream={self.stream!r}, queue={self.queue!r})"
