"""Registry behaviour."""

import asyncio

import pytest

from autosd.errors import RegistrationValidationError
from autosd.registry import AgentRegistration, Registry


@pytest.mark.asyncio
async def test_register_and_snapshot():
    registry = Registry()
    entry = AgentRegistration(app="svc-a", targets=["10.0.0.1:9100"])

    await registry.register(entry)

    assert await registry.snapshot() == [entry]
    assert len(registry) == 1


@pytest.mark.asyncio
async def test_register_replaces_same_key_without_merging():
    registry = Registry()
    await registry.register(
        AgentRegistration(app="svc", instance_name="i", targets=["a:1"], metrics_path="/x")
    )
    replacement = AgentRegistration(app="svc", instance_name="i", targets=["b:2"])
    await registry.register(replacement)

    snapshot = await registry.snapshot()
    assert snapshot == [replacement]
    assert snapshot[0].metrics_path is None


@pytest.mark.asyncio
async def test_different_instances_are_separate_entries():
    registry = Registry()
    await registry.register(AgentRegistration(app="svc", instance_name="a", targets=["a:1"]))
    await registry.register(AgentRegistration(app="svc", instance_name="b", targets=["b:1"]))
    assert len(await registry.snapshot()) == 2


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "entry, field",
    [
        (AgentRegistration(app="", targets=["a:1"]), "app"),
        (AgentRegistration(app="svc", targets=[]), "targets"),
    ],
)
async def test_rejected_registration_leaves_registry_unchanged(entry, field):
    registry = Registry()
    existing = AgentRegistration(app="svc", targets=["a:1"])
    await registry.register(existing)

    with pytest.raises(RegistrationValidationError) as exc_info:
        await registry.register(entry)

    assert exc_info.value.field == field
    assert await registry.snapshot() == [existing]


@pytest.mark.asyncio
async def test_deregister():
    registry = Registry()
    await registry.register(AgentRegistration(app="svc", instance_name="i", targets=["a:1"]))

    assert await registry.deregister("svc") is False
    assert await registry.deregister("svc", "i") is True
    assert await registry.snapshot() == []


@pytest.mark.asyncio
async def test_snapshot_is_a_copy():
    registry = Registry()
    await registry.register(AgentRegistration(app="a", targets=["a:1"]))
    snapshot = await registry.snapshot()

    await registry.register(AgentRegistration(app="b", targets=["b:1"]))

    assert [e.app for e in snapshot] == ["a"]
    assert [e.app for e in await registry.snapshot()] == ["a", "b"]


@pytest.mark.asyncio
async def test_concurrent_registrations_all_land():
    registry = Registry()
    await asyncio.gather(
        *(
            registry.register(AgentRegistration(app=f"svc-{i}", targets=[f"10.0.0.{i}:9100"]))
            for i in range(50)
        )
    )
    assert len(await registry.snapshot()) == 50
