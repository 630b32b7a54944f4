import moderngl

from glint.graphics.renderer_info import RendererInfo


def test_counts_draws_and_triangles(ctx):
    info = RendererInfo(ctx)

    info.record_draw(36)
    info.record_draw(4, mode=moderngl.TRIANGLE_STRIP)
    info.record_draw(2, mode=moderngl.LINES)

    assert info.draw_calls == 3
    assert info.triangles == 12 + 2


def test_begin_frame_resets_counters(ctx):
    info = RendererInfo(ctx)
    info.record_draw(3, instances=5)

    info.begin_frame()

    assert (info.draw_calls, info.triangles) == (0, 0)


def test_release_cached_delegates_to_context_gc(ctx):
    info = RendererInfo(ctx)

    assert info.release_cached() == 0
    assert ctx.gc_calls == 1
