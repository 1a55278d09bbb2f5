"""Tests for the Debouncer"""
import asyncio

import pytest

from storefront.debounce import Debouncer


class _Recorder:
    def __init__(self, fail=False):
        self.calls = 0
        self.fail = fail

    async def __call__(self):
        self.calls += 1
        if self.fail:
            raise RuntimeError("boom")


@pytest.mark.asyncio
async def test_burst_runs_callback_once():
    recorder = _Recorder()
    debouncer = Debouncer(recorder, 0.03)

    for _ in range(10):
        debouncer.trigger()
        await asyncio.sleep(0.005)
    assert recorder.calls == 0

    await asyncio.sleep(0.1)

    assert recorder.calls == 1
    assert not debouncer.pending


@pytest.mark.asyncio
async def test_cancel_prevents_run():
    recorder = _Recorder()
    debouncer = Debouncer(recorder, 0.01)

    debouncer.trigger()
    debouncer.cancel()
    await asyncio.sleep(0.05)

    assert recorder.calls == 0


@pytest.mark.asyncio
async def test_flush_runs_immediately():
    recorder = _Recorder()
    debouncer = Debouncer(recorder, 10)

    debouncer.trigger()
    await debouncer.flush()

    assert recorder.calls == 1
    assert not debouncer.pending


@pytest.mark.asyncio
async def test_flush_without_pending_is_noop():
    recorder = _Recorder()

    await Debouncer(recorder, 0.01).flush()

    assert recorder.calls == 0


@pytest.mark.asyncio
async def test_callback_error_is_contained():
    recorder = _Recorder(fail=True)
    debouncer = Debouncer(recorder, 0.01)

    debouncer.trigger()
    await asyncio.sleep(0.05)

    assert recorder.calls == 1
    assert not debouncer.pending
