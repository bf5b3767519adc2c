import asyncio

from feedback_system.tasks import TaskQueue


def test_jobs_run_and_failures_are_contained():
    done = []

    async def ok(value):
        done.append(value)

    async def boom():
        raise RuntimeError("fails")

    async def scenario():
        queue = TaskQueue(maxsize=10, workers=2)
        queue.start()
        assert queue.submit("boom", boom)
        assert queue.submit("ok", ok, 1)
        await queue.join()
        await queue.shutdown()
        return queue

    queue = asyncio.run(scenario())
    assert done == [1]
    assert queue.dropped == 0
    assert not queue.running


def test_full_queue_drops_instead_of_blocking():
    release = None

    async def slow():
        await release.wait()

    async def scenario():
        nonlocal release
        release = asyncio.Event()
        queue = TaskQueue(maxsize=1, workers=1)
        queue.start()
        assert queue.submit("first", slow)
        await asyncio.sleep(0)  # worker picks up the first job
        assert queue.submit("second", slow)
        accepted = queue.submit("third", slow)
        release.set()
        await queue.shutdown()
        return queue, accepted

    queue, accepted = asyncio.run(scenario())
    assert accepted is False
    assert queue.dropped == 1


def test_submit_before_start_is_dropped():
    async def noop():
        pass

    queue = TaskQueue()
    assert queue.submit("early", noop) is False
    assert queue.dropped == 1
