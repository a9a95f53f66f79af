import pytest

from ccafk.libraries.cleanup_queue import CleanupQueue


class TestCleanupQueue:
    @pytest.mark.asyncio
    async def test_runs_jobs_in_reverse_order(self):
        calls = []

        async def close_db():
            calls.append("db")

        queue = CleanupQueue()
        queue.push("db_close", close_db)
        queue.push("remove_pid", calls.append, "pid")

        assert queue.has_jobs

        await queue.consume_all()

        assert calls == ["pid", "db"]
        assert not queue.has_jobs

    @pytest.mark.asyncio
    async def test_failing_job_does_not_stop_others(self):
        calls = []

        def broken():
            raise OSError("pid file already removed")

        queue = CleanupQueue()
        queue.push("first", calls.append, "first")
        queue.push("broken", broken)

        await queue.consume_all()

        assert calls == ["first"]
