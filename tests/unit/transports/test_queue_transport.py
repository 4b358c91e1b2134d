"""Unit tests for queue consumption and the stream-to-queue bridge."""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock, patch

import pytest

from message_fetcher.config import QueueConfig
from message_fetcher.exceptions import TransportError
from message_fetcher.transports import QueueBridgeTransport, QueueTransport, create_queue_client
from message_fetcher.utils.json_utils import dumps


def _queue_message(body, message_id="msg-1"):
    return SimpleNamespace(id=message_id, content=dumps(body))


def _client(*batches):
    """Queue client whose successive receives yield ``batches`` and then nothing."""
    client = Mock()
    client.send_message = AsyncMock()
    client.delete_message = AsyncMock()
    client.update_message = AsyncMock()
    client.close = AsyncMock()
    pending = list(batches)

    def receive_messages(**kwargs):
        batch = pending.pop(0) if pending else []

        async def iterate():
            for item in batch:
                yield item

        return iterate()

    client.receive_messages = Mock(side_effect=receive_messages)
    return client


def _transport(test_log, client, limit=2):
    return QueueTransport(
        queue_url="sync-jobs",
        concurrent_ops_limit=limit,
        log=test_log,
        queue_config=QueueConfig(poll_interval_seconds=0.01, visibility_timeout=60),
        queue_client=client,
    )


class TestCreateQueueClient:
    """Test create_queue_client()."""

    def test_queue_url(self):
        """Test a full URL builds the client from the URL."""
        with patch("message_fetcher.transports.queue_transport.QueueClient") as client_cls:
            create_queue_client("https://acct.queue.core.windows.net/jobs?sig=x", QueueConfig())

        client_cls.from_queue_url.assert_called_once_with("https://acct.queue.core.windows.net/jobs?sig=x")

    def test_queue_name_with_connection_string(self):
        """Test a queue name is resolved against the connection string."""
        config = QueueConfig(connection_string="UseDevelopmentStorage=true")
        with patch("message_fetcher.transports.queue_transport.QueueClient") as client_cls:
            create_queue_client("jobs", config)

        client_cls.from_connection_string.assert_called_once_with(
            conn_str="UseDevelopmentStorage=true", queue_name="jobs"
        )

    def test_queue_name_without_connection_string(self):
        """Test a queue name without a connection string is rejected."""
        with pytest.raises(TransportError):
            create_queue_client("jobs", QueueConfig(connection_string=""))


class TestHandle:
    """Test QueueTransport._handle()."""

    @pytest.mark.asyncio
    async def test_handled_message_deleted(self, test_log):
        """Test a dispatched job is deleted from the queue."""
        client = _client()
        transport = _transport(test_log, client)
        queue_message = _queue_message({"job": 1})
        on_message = AsyncMock()

        assert await transport._handle(queue_message, on_message) is True

        on_message.assert_awaited_once_with({"job": 1})
        client.delete_message.assert_awaited_once_with(queue_message)
        client.update_message.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failed_message_requeued(self, test_log):
        """Test a failed job is made visible again instead of deleted."""
        client = _client()
        transport = _transport(test_log, client)
        queue_message = _queue_message({"job": 1})

        handled = await transport._handle(queue_message, AsyncMock(side_effect=RuntimeError("x")))

        assert handled is False
        client.update_message.assert_awaited_once_with(queue_message, visibility_timeout=0)
        client.delete_message.assert_not_awaited()
        test_log.warning.assert_called_once()

    @pytest.mark.asyncio
    async def test_requeue_failure_logged(self, test_log):
        """Test a failed requeue is logged and not raised."""
        client = _client()
        client.update_message.side_effect = ConnectionError("gone")
        transport = _transport(test_log, client)

        handled = await transport._handle(_queue_message({}), AsyncMock(side_effect=RuntimeError("x")))

        assert handled is False
        test_log.error.assert_called_once()

    @pytest.mark.asyncio
    async def test_delete_failure_logged(self, test_log):
        """Test a failed delete is logged and reported."""
        client = _client()
        client.delete_message.side_effect = ConnectionError("gone")
        transport = _transport(test_log, client)

        assert await transport._handle(_queue_message({}), AsyncMock()) is False
        test_log.error.assert_called_once()

    @pytest.mark.asyncio
    async def test_undecodable_message_deleted(self, test_log):
        """Test a job that is not JSON is deleted without dispatch instead of requeued."""
        client = _client()
        transport = _transport(test_log, client, limit=1)
        queue_message = SimpleNamespace(id="msg-1", content="not json{")
        on_message = AsyncMock()

        await transport._semaphore.acquire()
        handled = await transport._handle(queue_message, on_message)

        assert handled is True
        on_message.assert_not_awaited()
        client.delete_message.assert_awaited_once_with(queue_message)
        client.update_message.assert_not_awaited()
        test_log.error.assert_called_once()
        assert transport._semaphore.locked() is False

    @pytest.mark.asyncio
    async def test_slot_released(self, test_log):
        """Test the concurrency slot is released whatever the outcome."""
        transport = _transport(test_log, _client(), limit=1)

        await transport._semaphore.acquire()
        await transport._handle(_queue_message({}), AsyncMock(side_effect=RuntimeError("x")))
        await transport._semaphore.acquire()
        await transport._handle(_queue_message({}), AsyncMock())

        assert transport._semaphore.locked() is False


class TestPolling:
    """Test QueueTransport polling and concurrency."""

    @pytest.mark.asyncio
    async def test_enqueue_sends_json(self, test_log):
        """Test enqueue writes the JSON encoded message."""
        client = _client()
        transport = _transport(test_log, client)

        await transport.enqueue({"album_id": "a"})

        client.send_message.assert_awaited_once_with('{"album_id": "a"}')

    @pytest.mark.asyncio
    async def test_poll_dispatches_and_stops(self, test_log):
        """Test received jobs are dispatched and stop closes the client."""
        client = _client([_queue_message({"job": 1}, "m1"), _queue_message({"job": 2}, "m2")])
        transport = _transport(test_log, client)
        received = []
        done = asyncio.Event()

        async def on_message(message):
            received.append(message)
            if len(received) == 2:
                done.set()

        await transport.start(on_message)
        await asyncio.wait_for(done.wait(), timeout=1)
        await transport.stop()

        assert received == [{"job": 1}, {"job": 2}]
        assert client.delete_message.await_count == 2
        client.close.assert_awaited_once()
        kwargs = client.receive_messages.call_args_list[0][1]
        assert kwargs["max_messages"] == 2
        assert kwargs["visibility_timeout"] == 60

    @pytest.mark.asyncio
    async def test_concurrency_bounded(self, test_log):
        """Test no more than concurrent_ops_limit jobs run at once."""
        batch = [_queue_message({"job": n}, f"m{n}") for n in range(5)]
        client = _client(batch)
        transport = _transport(test_log, client, limit=2)
        active = 0
        peak = 0
        finished = []
        done = asyncio.Event()

        async def on_message(message):
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.01)
            active -= 1
            finished.append(message)
            if len(finished) == 5:
                done.set()

        await transport.start(on_message)
        await asyncio.wait_for(done.wait(), timeout=2)
        await transport.stop()

        assert peak == 2

    @pytest.mark.asyncio
    async def test_receive_error_suppressed(self, test_log):
        """Test a failing receive is logged and polling continues."""
        client = _client()
        calls = []
        done = asyncio.Event()

        def receive_messages(**kwargs):
            calls.append(1)
            if len(calls) == 1:
                raise ConnectionError("throttled")
            done.set()

            async def iterate():
                return
                yield

            return iterate()

        client.receive_messages = Mock(side_effect=receive_messages)
        transport = _transport(test_log, client)

        await transport.start(AsyncMock())
        await asyncio.wait_for(done.wait(), timeout=1)
        await transport.stop()

        test_log.error.assert_called_once()


class TestQueueBridgeTransport:
    """Test QueueBridgeTransport."""

    @pytest.mark.asyncio
    async def test_start_relays_stream_into_queue(self):
        """Test the stream feeds enqueue and the queue feeds the handler."""
        stream = Mock(start=AsyncMock(), stop=AsyncMock())
        queue = Mock(start=AsyncMock(), stop=AsyncMock(), enqueue=AsyncMock())
        bridge = QueueBridgeTransport(stream=stream, queue=queue)
        on_message = AsyncMock()

        await bridge.start(on_message)

        queue.start.assert_awaited_once_with(on_message)
        stream.start.assert_awaited_once_with(queue.enqueue)
        assert bridge.running is True

    @pytest.mark.asyncio
    async def test_stream_start_failure_stops_queue(self):
        """Test the queue consumer is stopped when the stream cannot connect."""
        stream = Mock(start=AsyncMock(side_effect=TransportError("no broker")), stop=AsyncMock())
        queue = Mock(start=AsyncMock(), stop=AsyncMock(), enqueue=AsyncMock())
        bridge = QueueBridgeTransport(stream=stream, queue=queue)

        with pytest.raises(TransportError):
            await bridge.start(AsyncMock())

        queue.stop.assert_awaited_once()
        assert bridge.running is False

    @pytest.mark.asyncio
    async def test_stop_stops_stream_then_queue(self):
        """Test the stream stops feeding before the queue is released."""
        order = []
        stream = Mock(stop=AsyncMock(side_effect=lambda: order.append("stream")))
        queue = Mock(stop=AsyncMock(side_effect=lambda: order.append("queue")))
        bridge = QueueBridgeTransport(stream=stream, queue=queue)

        await bridge.stop()

        assert order == ["stream", "queue"]
        assert bridge.running is False
