from __future__ import annotations

import asyncio

from conftest import RecordingConnection

from session.heartbeat import HeartbeatScheduler, epoch_ms


def test_timers_emit_both_liveness_frames_without_inbound_traffic():
    async def scenario():
        connection = RecordingConnection()
        scheduler = HeartbeatScheduler(connection, heartbeat_interval=0.02, keepalive_interval=0.04)
        scheduler.start()
        await asyncio.sleep(0.15)
        await scheduler.stop()
        return connection.frames

    frames = asyncio.run(scenario())
    types = [frame["type"] for frame in frames]

    assert types.count("ping_pong") >= 3
    assert types.count("keep_alive") >= 1
    assert types.count("ping_pong") > types.count("keep_alive")


def test_beats_are_skipped_while_connection_is_not_writable():
    async def scenario():
        connection = RecordingConnection(writable=False)
        scheduler = HeartbeatScheduler(connection, heartbeat_interval=0.01, keepalive_interval=0.01)
        scheduler.start()
        await asyncio.sleep(0.05)
        assert scheduler.running
        connection.set_writable(True)
        await asyncio.sleep(0.05)
        await scheduler.stop()
        return connection.frames

    frames = asyncio.run(scenario())
    assert frames


def test_stop_cancels_timers_and_is_idempotent():
    async def scenario():
        connection = RecordingConnection()
        scheduler = HeartbeatScheduler(connection, heartbeat_interval=0.01, keepalive_interval=0.01)
        scheduler.start()
        await scheduler.stop()
        await scheduler.stop()
        sent = len(connection.frames)
        await asyncio.sleep(0.05)
        return scheduler.running, sent, len(connection.frames)

    running, before, after = asyncio.run(scenario())
    assert running is False
    assert before == after


def test_send_ping_stamps_frame_with_clock():
    async def scenario():
        connection = RecordingConnection()
        scheduler = HeartbeatScheduler(connection, clock=lambda: 1_700_000_000_000)
        assert await scheduler.send_ping() is True
        assert await scheduler.send_keep_alive() is True
        return connection.frames

    assert asyncio.run(scenario()) == [
        {"type": "ping_pong", "timestamp": 1_700_000_000_000},
        {"type": "keep_alive", "timestamp": 1_700_000_000_000},
    ]


def test_epoch_ms_is_milliseconds():
    assert epoch_ms() > 1_600_000_000_000
