"""Tests for the throttled delivery scheduler."""

from __future__ import annotations

import asyncio

import pytest

from spark_cli.core.scheduler import DeliveryScheduler
from spark_cli.core.session import StreamSession


def _scheduler(
    session: StreamSession,
    partials: list[tuple[str, str]],
    drained: list[str],
    **kwargs: float,
) -> DeliveryScheduler:
    return DeliveryScheduler(
        session,
        on_drained=lambda: drained.append(session.state.delivered_text),
        on_partial=lambda text, chunk: partials.append((text, chunk)),
        **kwargs,
    )


def test_chunk_size_is_proportional_with_minimum_one() -> None:
    scheduler = DeliveryScheduler(StreamSession(), on_drained=lambda: None, divisor=60)
    assert scheduler.chunk_size(1) == 1
    assert scheduler.chunk_size(59) == 1
    assert scheduler.chunk_size(120) == 2
    assert scheduler.chunk_size(600) == 10


def test_tick_moves_one_chunk() -> None:
    session = StreamSession()
    session.state.pending_text = "x" * 120
    partials: list[tuple[str, str]] = []
    drained: list[str] = []
    scheduler = _scheduler(session, partials, drained)

    assert scheduler.tick() is False
    assert session.state.delivered_text == "xx"
    assert len(session.state.pending_text) == 118
    assert partials == [("xx", "xx")]
    assert drained == []


def test_tick_with_empty_buffer_does_nothing() -> None:
    session = StreamSession()
    partials: list[tuple[str, str]] = []
    drained: list[str] = []
    scheduler = _scheduler(session, partials, drained)
    assert scheduler.tick() is False
    assert partials == []
    assert drained == []


def test_partials_are_cumulative_and_ordered() -> None:
    session = StreamSession()
    session.state.pending_text = "abc"
    partials: list[tuple[str, str]] = []
    scheduler = _scheduler(session, partials, [])
    for _ in range(3):
        scheduler.tick()
    assert partials == [("a", "a"), ("ab", "b"), ("abc", "c")]


def test_finished_session_folds_remaining_text_and_drains_once() -> None:
    session = StreamSession()
    session.state.pending_text = "y" * 500
    session.state.finished = True
    partials: list[tuple[str, str]] = []
    drained: list[str] = []
    scheduler = _scheduler(session, partials, drained)

    assert scheduler.tick() is True
    assert scheduler.tick() is True
    assert drained == ["y" * 500]
    assert session.state.pending_text == ""
    assert partials == []
    assert scheduler.drained


def test_cancelled_session_still_delivers_pending_text() -> None:
    session = StreamSession()
    session.state.pending_text = "kept"
    session.cancelled = True
    drained: list[str] = []
    scheduler = _scheduler(session, [], drained)
    assert scheduler.tick() is True
    assert drained == ["kept"]


@pytest.mark.parametrize("divisor", [1, 3, 60, 1000])
def test_no_data_loss_for_any_divisor(divisor: int) -> None:
    session = StreamSession()
    partials: list[tuple[str, str]] = []
    drained: list[str] = []
    scheduler = _scheduler(session, partials, drained, divisor=divisor)
    expected = ""
    for i in range(20):
        piece = f"<{i}>" * (i + 1)
        session.state.pending_text += piece
        expected += piece
        scheduler.tick()
        assert session.state.text == expected
    session.state.finished = True
    scheduler.tick()
    assert drained == [expected]
    assert partials
    assert "".join(chunk for _, chunk in partials) == partials[-1][0]
    assert expected.startswith(partials[-1][0])


def test_invalid_arguments() -> None:
    with pytest.raises(ValueError, match="divisor"):
        DeliveryScheduler(StreamSession(), on_drained=lambda: None, divisor=0)
    with pytest.raises(ValueError, match="interval"):
        DeliveryScheduler(StreamSession(), on_drained=lambda: None, interval=-1)


@pytest.mark.asyncio
async def test_background_task_drains_and_stops() -> None:
    session = StreamSession()
    drained: list[str] = []
    partials: list[tuple[str, str]] = []
    scheduler = _scheduler(session, partials, drained, interval=0)
    scheduler.start()
    session.state.pending_text = "hello world"
    for _ in range(5):
        await asyncio.sleep(0)
    session.state.finished = True
    await asyncio.wait_for(scheduler.join(), 1)
    assert drained == ["hello world"]
    assert partials
    assert partials[0][0] == "h"


@pytest.mark.asyncio
async def test_stop_cancels_without_draining() -> None:
    session = StreamSession()
    drained: list[str] = []
    scheduler = _scheduler(session, [], drained, interval=0)
    scheduler.start()
    await asyncio.sleep(0)
    scheduler.stop()
    await asyncio.wait_for(scheduler.join(), 1)
    assert drained == []
    assert not scheduler.drained


@pytest.mark.asyncio
async def test_start_after_drain_does_not_schedule() -> None:
    session = StreamSession()
    session.state.finished = True
    drained: list[str] = []
    scheduler = _scheduler(session, [], drained)
    scheduler.tick()
    scheduler.start()
    await scheduler.join()
    assert drained == [""]
