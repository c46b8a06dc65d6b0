"""
Unit tests for the Cassandra driver to asyncio bridge
Uses a fake ResponseFuture calling back from another thread like the driver does
"""

import threading

import pytest

from event_dead_letters.dlq.cassandra import execute, execute_paged

_NOT_SET = object()


class FakeResponseFuture:
    """Mimics cassandra.cluster.ResponseFuture paging and callbacks"""

    def __init__(self, pages=None, error=None):
        self._pages = list(pages or [[]])
        self._error = error
        self._lock = threading.Lock()
        self._callbacks = []
        self._page_index = 0
        self._result = _NOT_SET
        self.fetch_count = 0
        self._reply_later()

    @property
    def has_more_pages(self):
        return self._page_index < len(self._pages) - 1

    def clear_callbacks(self):
        with self._lock:
            self._callbacks = []

    def add_callbacks(self, callback, errback):
        with self._lock:
            self._callbacks.append((callback, errback))
            result = self._result
        if result is not _NOT_SET:
            self._fire(callback, errback, result)

    def start_fetching_next_page(self):
        with self._lock:
            self.fetch_count += 1
            self._page_index += 1
            self._result = _NOT_SET
        self._reply_later()

    def _reply_later(self):
        threading.Timer(0.01, self._complete).start()

    def _complete(self):
        with self._lock:
            self._result = self._error if self._error is not None else self._pages[self._page_index]
            callbacks = list(self._callbacks)
            result = self._result
        for callback, errback in callbacks:
            self._fire(callback, errback, result)

    def _fire(self, callback, errback, result):
        if self._error is not None:
            errback(result)
        else:
            callback(result)


class FakeSession:
    def __init__(self, response_future):
        self.response_future = response_future
        self.executed = []

    def execute_async(self, statement, parameters):
        self.executed.append((statement, parameters))
        return self.response_future


@pytest.mark.asyncio
class TestCassandraBridge:
    """Test bridging driver futures to asyncio"""

    async def test_execute_returns_first_page(self):
        session = FakeSession(FakeResponseFuture(pages=[["row-1", "row-2"]]))

        rows = await execute(session, "SELECT", ("group-a",))

        assert rows == ["row-1", "row-2"]
        assert session.executed == [("SELECT", ("group-a",))]

    async def test_execute_propagates_driver_error_unchanged(self):
        error = TimeoutError("Cassandra timeout during read query")
        session = FakeSession(FakeResponseFuture(error=error))

        with pytest.raises(TimeoutError) as raised:
            await execute(session, "SELECT")

        assert raised.value is error

    async def test_execute_paged_walks_every_page(self):
        response_future = FakeResponseFuture(pages=[[1, 2], [3], [4, 5]])
        session = FakeSession(response_future)

        rows = [row async for row in execute_paged(session, "SELECT")]

        assert rows == [1, 2, 3, 4, 5]
        assert response_future.fetch_count == 2

    async def test_execute_paged_fetches_lazily(self):
        response_future = FakeResponseFuture(pages=[[1, 2], [3]])
        session = FakeSession(response_future)

        iterator = execute_paged(session, "SELECT")
        first = await iterator.__anext__()
        await iterator.aclose()

        assert first == 1
        assert response_future.fetch_count == 0

    async def test_execute_paged_on_empty_result(self):
        session = FakeSession(FakeResponseFuture(pages=[[]]))

        assert [row async for row in execute_paged(session, "SELECT")] == []
