"""Channel tests."""

import asyncio

import pytest

from autosd.channels import QueueChannel
from autosd.discovery import TargetGroup


@pytest.mark.asyncio
async def test_queue_channel_delivers_lists_in_order():
    channel = QueueChannel()
    first = [TargetGroup(source="a", labels={"x": "1"}, targets=[{"__address__": "a"}])]
    second = [TargetGroup.tombstone("a")]

    await channel.publish(first)
    await channel.publish(second)
    await channel.close()

    received = [groups async for groups in channel.subscribe()]
    assert received == [first, second]


@pytest.mark.asyncio
async def test_publish_copies_the_list():
    channel = QueueChannel()
    groups = [TargetGroup.tombstone("a")]
    await channel.publish(groups)
    groups.append(TargetGroup.tombstone("b"))

    assert await channel.get(timeout=1) == [TargetGroup.tombstone("a")]


@pytest.mark.asyncio
async def test_subscribe_lifespan_expires():
    channel = QueueChannel()
    received = [groups async for groups in channel.subscribe(lifespan=0.05)]
    assert received == []


@pytest.mark.asyncio
async def test_closed_channel_rejects_publish_and_get():
    channel = QueueChannel()
    await channel.close()

    with pytest.raises(RuntimeError):
        await channel.publish([])
    with pytest.raises(EOFError):
        await channel.get(timeout=1)
    assert channel.closed


@pytest.mark.asyncio
async def test_get_times_out_when_nothing_published():
    channel = QueueChannel()
    with pytest.raises(asyncio.TimeoutError):
        await channel.get(timeout=0.01)
