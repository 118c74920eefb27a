"""Checkpoint store tests."""

import pytest

from workflow import FileCheckpointStore, InMemoryCheckpointStore


@pytest.fixture(params=["memory", "file"])
def checkpoint_store(request, tmp_path):
    if request.param == "memory":
        return InMemoryCheckpointStore()
    return FileCheckpointStore(tmp_path / "checkpoints")


@pytest.mark.unit
@pytest.mark.asyncio
async def test_save_and_load(checkpoint_store):
    await checkpoint_store.save("gen_1", "load-project-state", {"frames": [], "theme": None})
    await checkpoint_store.save("gen_1", "analyze-and-plan-screens", {"theme": "midnight"})

    steps = await checkpoint_store.load("gen_1")

    assert steps["load-project-state"] == {"frames": [], "theme": None}
    assert await checkpoint_store.completed_steps("gen_1") == ["load-project-state", "analyze-and-plan-screens"]
    assert steps["analyze-and-plan-screens"] == {"theme": "midnight"}


@pytest.mark.unit
@pytest.mark.asyncio
async def test_runs_are_isolated_and_clearable(checkpoint_store):
    await checkpoint_store.save("gen_1", "step", 1)
    await checkpoint_store.save("gen_2", "step", 2)

    await checkpoint_store.clear("gen_1")

    assert await checkpoint_store.load("gen_1") == {}
    assert await checkpoint_store.load("gen_2") == {"step": 2}
    # clearing twice is harmless
    await checkpoint_store.clear("gen_1")


@pytest.mark.unit
@pytest.mark.asyncio
async def test_file_store_survives_new_instance(tmp_path):
    """A new process sees checkpoints written by the previous one."""
    await FileCheckpointStore(tmp_path).save("gen_1", "generate-screen-0", {"id": "f1"})

    reopened = FileCheckpointStore(tmp_path)

    assert await reopened.load("gen_1") == {"generate-screen-0": {"id": "f1"}}
    assert not list(tmp_path.glob("*.tmp"))
