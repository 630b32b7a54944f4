import logging

import pytest

from glint.graphics.resources.model import GPUModel, MeshPart, ModelNode
from glint.graphics.resources.types import ResourceKind, ResourceStats
from tests.conftest import FakeHandle


def make_model(meshes: int = 2, materials_per_mesh: int = 2) -> GPUModel:
    root = ModelNode("root")
    for i in range(meshes):
        mats = [FakeHandle() for _ in range(materials_per_mesh)]
        root.add(
            ModelNode(
                f"mesh{i}",
                mesh=MeshPart(geometry=FakeHandle(vertex_count=3), materials=mats),
            )
        )
    return GPUModel(root)


def test_register_then_get(manager, clock):
    tex = FakeHandle(width=4, height=4)
    manager.register("tex-a", tex, ResourceKind.TEXTURE)

    assert "tex-a" in manager
    assert len(manager) == 1
    clock.advance(10)
    assert manager.get("tex-a") is tex
    assert manager.entry("tex-a").last_accessed_at == clock.now
    assert manager.get("missing") is None


def test_register_accepts_kind_names(manager):
    manager.register("mat", FakeHandle(), "material")
    assert manager.entry("mat").kind is ResourceKind.MATERIAL


def test_register_rejects_unknown_kind_names(manager):
    handle = FakeHandle()

    with pytest.raises(ValueError):
        manager.register("shader", handle, "shader")

    assert "shader" not in manager
    assert handle.release_count == 0


def test_texture_size_estimate_from_dimensions(manager):
    manager.register("tex-a", FakeHandle(width=512, height=512), ResourceKind.TEXTURE)

    assert manager.entry("tex-a").approximate_size_bytes == 512 * 512 * 4 == 1_048_576


def test_size_hint_wins_over_estimate(manager):
    manager.register("geo", FakeHandle(vertex_count=10), ResourceKind.GEOMETRY, size_hint=999)
    manager.register("geo2", FakeHandle(vertex_count=10), ResourceKind.GEOMETRY)

    assert manager.entry("geo").approximate_size_bytes == 999
    assert manager.entry("geo2").approximate_size_bytes == 120


def test_reregistering_refreshes_recency_without_duplicates(manager, clock):
    tex = FakeHandle(width=2, height=2)
    manager.register("tex-a", tex, ResourceKind.TEXTURE)
    first = manager.entry("tex-a").last_accessed_at

    clock.advance(30)
    manager.register("tex-a", tex, ResourceKind.TEXTURE)

    assert len(manager) == 1
    assert manager.entry("tex-a").last_accessed_at == first + 30
    assert tex.release_count == 0


def test_reregistering_with_new_handle_releases_the_old_one(manager):
    old, new = FakeHandle(), FakeHandle()
    manager.register("tex-a", old, ResourceKind.TEXTURE)
    manager.register("tex-a", new, ResourceKind.TEXTURE)

    assert old.release_count == 1
    assert new.release_count == 0
    assert manager.get("tex-a") is new


def test_unregister_is_idempotent(manager):
    tex = FakeHandle()
    manager.register("tex-a", tex, ResourceKind.TEXTURE)

    manager.unregister("tex-a")
    manager.unregister("tex-a")
    manager.unregister("never-registered")

    assert "tex-a" not in manager
    assert tex.release_count == 1


@pytest.mark.parametrize("kind", [ResourceKind.TEXTURE, ResourceKind.GEOMETRY, ResourceKind.MATERIAL])
def test_unregister_releases_single_handles_once(manager, kind):
    handle = FakeHandle()
    manager.register("k", handle, kind)

    manager.unregister("k")

    assert handle.release_count == 1


def test_unregister_model_releases_every_geometry_and_material(manager):
    model = make_model(meshes=3, materials_per_mesh=2)
    meshes = list(model.meshes())
    manager.register("glasses", model, ResourceKind.MODEL)

    manager.unregister("glasses")

    assert [m.geometry.release_count for m in meshes] == [1, 1, 1]
    assert sum(mat.release_count for m in meshes for mat in m.material_list) == 6
    assert "glasses" not in manager


def test_release_happens_after_entry_left_registry(manager):
    seen = []

    class CheckingHandle(FakeHandle):
        def release(self):
            seen.append("k" in manager)
            super().release()

    manager.register("k", CheckingHandle(), ResourceKind.GEOMETRY)
    manager.unregister("k")

    assert seen == [False]


def test_unregister_propagates_release_errors(manager):
    class Broken(FakeHandle):
        def release(self):
            raise RuntimeError("driver lost")

    manager.register("k", Broken(), ResourceKind.TEXTURE)

    with pytest.raises(RuntimeError):
        manager.unregister("k")
    assert "k" not in manager


def test_idle_sweep_threshold(manager, clock):
    stale, fresh = FakeHandle(), FakeHandle()
    manager.register("stale", stale, ResourceKind.TEXTURE)
    clock.advance(2)
    manager.register("fresh", fresh, ResourceKind.TEXTURE)

    clock.advance(299)  # stale idle 301s, fresh idle 299s

    assert manager.dispose_unused_resources() == 1
    assert "stale" not in manager
    assert "fresh" in manager
    assert stale.release_count == 1
    assert fresh.release_count == 0


def test_lookup_keeps_entry_alive(manager, clock):
    manager.register("tex", FakeHandle(), ResourceKind.TEXTURE)
    clock.advance(200)
    manager.get("tex")
    clock.advance(200)

    assert manager.dispose_unused_resources() == 0


def test_sweep_runs_automatically_every_minute(manager, clock):
    handle = FakeHandle()
    manager.register("tex", handle, ResourceKind.TEXTURE)

    for _ in range(5):  # 300s: not idle long enough yet
        clock.advance(60)
        manager.update()
    assert "tex" in manager

    clock.advance(60)
    manager.update()

    assert "tex" not in manager
    assert handle.release_count == 1


def test_sweep_keeps_going_when_one_release_fails(manager, clock, caplog):
    class Broken(FakeHandle):
        def release(self):
            raise RuntimeError("driver lost")

    good = FakeHandle()
    manager.register("bad", Broken(), ResourceKind.TEXTURE)
    manager.register("good", good, ResourceKind.TEXTURE)
    clock.advance(301)

    with caplog.at_level(logging.ERROR):
        assert manager.dispose_unused_resources() == 2

    assert len(manager) == 0
    assert good.release_count == 1
    assert "Failed to release texture 'bad'" in caplog.text


def test_clear_resources_disposes_everything_once(manager):
    handles = {
        "t": (FakeHandle(width=1, height=1), ResourceKind.TEXTURE),
        "g": (FakeHandle(vertex_count=3), ResourceKind.GEOMETRY),
        "m": (FakeHandle(), ResourceKind.MATERIAL),
        "t2": (FakeHandle(), ResourceKind.TEXTURE),
    }
    model = make_model(meshes=1, materials_per_mesh=1)
    for key, (handle, kind) in handles.items():
        manager.register(key, handle, kind)
    manager.register("model", model, ResourceKind.MODEL)

    manager.clear_resources()
    manager.clear_resources()

    assert len(manager) == 0
    assert all(h.release_count == 1 for h, _ in handles.values())
    mesh = next(model.meshes())
    assert mesh.geometry.release_count == 1
    assert mesh.material_list[0].release_count == 1


def test_optimize_memory_usage_sweeps_and_releases_renderer_cache(manager, clock, ctx):
    manager.register("tex", FakeHandle(), ResourceKind.TEXTURE)
    clock.advance(301)

    manager.optimize_memory_usage()

    assert "tex" not in manager
    assert ctx.gc_calls == 1


def test_pause_and_resume_rendering(manager):
    assert manager.is_rendering
    manager.pause_rendering()
    assert not manager.is_rendering
    manager.resume_rendering()
    assert manager.is_rendering


def test_stats_start_empty_and_refresh_on_interval(manager, clock, renderer_info):
    assert manager.get_stats() == ResourceStats()

    manager.register("tex-a", FakeHandle(width=512, height=512), ResourceKind.TEXTURE)
    manager.register("geo", FakeHandle(vertex_count=1000), ResourceKind.GEOMETRY)
    manager.register("mat", FakeHandle(), ResourceKind.MATERIAL)
    manager.register("model", make_model(), ResourceKind.MODEL)
    renderer_info.record_draw(300)
    renderer_info.record_draw(6, instances=10)

    clock.advance(4)
    manager.update()
    assert manager.get_stats() == ResourceStats()  # not due yet

    clock.advance(1)
    manager.update()
    stats = manager.get_stats()

    assert stats.textures_loaded == 1
    assert stats.texture_memory_mb == 1.0
    assert stats.geometries_loaded == 1
    assert stats.geometry_memory_mb == 0.01
    assert stats.materials_loaded == 1
    assert stats.models_loaded == 1
    assert stats.draw_calls == 2
    assert stats.triangles == 100 + 20


def test_fps_from_tracked_frames(manager, clock):
    for _ in range(150):
        manager.track_frame()
    clock.advance(5)
    manager.update()

    assert manager.get_stats().fps == 30

    clock.advance(5)
    manager.update()
    assert manager.get_stats().fps == 0  # counter resets each tick


def test_texture_then_sweep_scenario(manager, clock):
    manager.register("tex-a", FakeHandle(width=512, height=512), ResourceKind.TEXTURE)
    clock.advance(5)
    manager.update()
    assert manager.get_stats().textures_loaded == 1
    assert manager.get_stats().texture_memory_mb == 1.0

    clock.advance(301)
    manager.dispose_unused_resources()
    assert len(manager) == 0

    clock.advance(5)
    manager.update()
    assert manager.get_stats().textures_loaded == 0


def test_close_releases_everything_and_stops_timers(manager, clock):
    handle = FakeHandle()
    manager.register("tex", handle, ResourceKind.TEXTURE)

    with manager:
        pass

    assert manager.closed
    assert handle.release_count == 1

    before = manager.get_stats()
    clock.advance(3600)
    manager.update()
    assert manager.get_stats() is before

    manager.close()  # idempotent
    assert handle.release_count == 1


def test_register_after_close_releases_instead_of_storing(manager):
    manager.close()
    handle = FakeHandle()

    manager.register("late", handle, ResourceKind.TEXTURE)

    assert "late" not in manager
    assert handle.release_count == 1
