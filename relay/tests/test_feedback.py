"""Tests for ProgressFeedback — the typing ticker and slow-response notice.

The contract:
  - typing is sent on entry and then every typing_interval seconds
  - the notice fires once after notice_delay, and sets notice_sent
  - leaving the block (normally or by exception) cancels both timers
  - a failing typing action stops the ticker without affecting the caller
"""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest

from relay.chat.feedback import ProgressFeedback


def _make_feedback(**kwargs) -> tuple[ProgressFeedback, AsyncMock, AsyncMock]:
    send_typing = kwargs.pop("send_typing", AsyncMock())
    send_notice = kwargs.pop("send_notice", AsyncMock())
    kwargs.setdefault("typing_interval", 0.01)
    kwargs.setdefault("notice_delay", 0.05)
    return ProgressFeedback(send_typing, send_notice, **kwargs), send_typing, send_notice


class TestTypingTicker:
    async def test_typing_sent_on_entry(self):
        feedback, send_typing, _ = _make_feedback(typing_interval=10)

        async with feedback:
            await asyncio.sleep(0)  # let the ticker task start

        send_typing.assert_awaited_once()

    async def test_typing_repeats_at_interval(self):
        feedback, send_typing, _ = _make_feedback(typing_interval=0.01)

        async with feedback:
            await asyncio.sleep(0.055)

        assert send_typing.await_count >= 3

    async def test_typing_stops_after_exit(self):
        feedback, send_typing, _ = _make_feedback(typing_interval=0.01)

        async with feedback:
            await asyncio.sleep(0.025)
        calls = send_typing.await_count

        await asyncio.sleep(0.05)

        assert send_typing.await_count == calls
        assert not feedback.active

    async def test_typing_failure_stops_ticker_only(self):
        """A failed typing action is logged and ends the ticker — the block goes on."""
        failing = AsyncMock(side_effect=RuntimeError("Forbidden: bot was kicked"))
        feedback, _, _ = _make_feedback(send_typing=failing, typing_interval=0.01)

        async with feedback:
            await asyncio.sleep(0.05)
            result = "finished"

        assert result == "finished"
        failing.assert_awaited_once()


class TestSlowNotice:
    async def test_notice_fires_once_after_delay(self):
        feedback, _, send_notice = _make_feedback(notice_delay=0.02)

        async with feedback:
            await asyncio.sleep(0.06)

        send_notice.assert_awaited_once()
        assert feedback.notice_sent is True

    async def test_no_notice_when_block_exits_early(self):
        feedback, _, send_notice = _make_feedback(notice_delay=0.05)

        async with feedback:
            await asyncio.sleep(0.01)
        await asyncio.sleep(0.08)

        send_notice.assert_not_awaited()
        assert feedback.notice_sent is False

    async def test_notice_failure_is_swallowed(self):
        failing = AsyncMock(side_effect=RuntimeError("message not sent"))
        feedback, _, _ = _make_feedback(send_notice=failing, notice_delay=0.01)

        async with feedback:
            await asyncio.sleep(0.03)

        failing.assert_awaited_once()
        assert feedback.notice_sent is False


class TestCleanup:
    async def test_timers_cancelled_on_exception(self):
        feedback, send_typing, send_notice = _make_feedback(
            typing_interval=0.01, notice_delay=0.03
        )

        with pytest.raises(RuntimeError, match="webhook exploded"):
            async with feedback:
                await asyncio.sleep(0.015)
                raise RuntimeError("webhook exploded")

        assert not feedback.active
        calls = send_typing.await_count
        await asyncio.sleep(0.06)
        assert send_typing.await_count == calls
        send_notice.assert_not_awaited()

    async def test_active_only_inside_block(self):
        feedback, _, _ = _make_feedback()
        assert not feedback.active

        async with feedback:
            assert feedback.active

        assert not feedback.active

    async def test_exception_propagates_unchanged(self):
        feedback, _, _ = _make_feedback()

        with pytest.raises(ValueError, match="bad reply"):
            async with feedback:
                raise ValueError("bad reply")

    async def test_outer_cancel_during_cleanup_propagates(self):
        async def slow_to_stop_typing():
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                await asyncio.sleep(0.05)
                raise

        feedback, _, _ = _make_feedback(send_typing=slow_to_stop_typing)

        async def relay_call():
            async with feedback:
                await asyncio.sleep(0.01)

        task = asyncio.create_task(relay_call())
        await asyncio.sleep(0.02)  # block has exited; timers are winding down
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert task.cancelled()
