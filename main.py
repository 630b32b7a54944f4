"""
Try-on resource manager demo.

Usage:
    python main.py ASSET_ROOT [FILE ...]

Every FILE (relative to ASSET_ROOT) is preloaded: images as textures,
.obj files as models. Loaded textures are shown full screen.

Keys:
    - TAB: next texture
    - SPACE: pause / resume rendering
    - O: optimize memory usage
    - ESC: quit
"""

from __future__ import annotations

import array
import logging
import sys
from pathlib import Path
from typing import List

import moderngl
import pygame

from glint.debug.log import configure_logging
from glint.graphics.resources import (
    GPUResourceManager,
    GPUTexture,
    ResourceManagerSettings,
)

logger = logging.getLogger("glint.demo")

IMAGE_SUFFIXES = {".png", ".jpg", ".jpeg"}

VERTEX_SHADER = """
#version 330 core
in vec2 in_pos;
in vec2 in_uv;
out vec2 v_uv;
void main() {
    v_uv = in_uv;
    gl_Position = vec4(in_pos, 0.0, 1.0);
}
"""

FRAGMENT_SHADER = """
#version 330 core
uniform sampler2D u_texture;
in vec2 v_uv;
out vec4 f_color;
void main() {
    f_color = texture(u_texture, v_uv);
}
"""


def make_quad(ctx: moderngl.Context, program: moderngl.Program) -> moderngl.VertexArray:
    # x, y, u, v as a triangle strip
    quad_data = array.array(
        "f",
        [
            -1.0, 1.0, 0.0, 1.0,
            -1.0, -1.0, 0.0, 0.0,
            1.0, 1.0, 1.0, 1.0,
            1.0, -1.0, 1.0, 0.0,
        ],
    )
    vbo = ctx.buffer(quad_data.tobytes())
    return ctx.vertex_array(program, [(vbo, "2f 2f", "in_pos", "in_uv")])


def main() -> None:
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(1)

    configure_logging(verbose=True)

    asset_root = Path(sys.argv[1])
    files = sys.argv[2:]

    pygame.init()
    pygame.display.set_mode((1280, 720), pygame.OPENGL | pygame.DOUBLEBUF)
    pygame.display.set_caption("glint - resource manager demo")
    clock = pygame.time.Clock()

    ctx = moderngl.create_context()
    ctx.gc_mode = "context_gc"

    program = ctx.program(vertex_shader=VERTEX_SHADER, fragment_shader=FRAGMENT_SHADER)
    quad = make_quad(ctx, program)

    manager = GPUResourceManager.create(ctx, asset_root, ResourceManagerSettings())
    renderer_info = manager.renderer_info

    textures: List[str] = []

    def on_texture_loaded(path: str):
        def callback(future) -> None:
            if future.exception() is None:
                textures.append(path)

        return callback

    for name in files:
        if Path(name).suffix.lower() in IMAGE_SUFFIXES:
            manager.preload_texture(name).add_done_callback(on_texture_loaded(name))
        else:
            manager.preload_model(
                name,
                progress=lambda done, total, name=name: logger.debug(
                    "%s: %d/%d", name, done, total
                ),
            )

    current = 0
    last_stats = manager.get_stats()
    running = True

    with manager:
        while running:
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    running = False
                elif event.type == pygame.KEYDOWN:
                    if event.key == pygame.K_ESCAPE:
                        running = False
                    elif event.key == pygame.K_SPACE:
                        if manager.is_rendering:
                            manager.pause_rendering()
                        else:
                            manager.resume_rendering()
                    elif event.key == pygame.K_TAB and textures:
                        current = (current + 1) % len(textures)
                    elif event.key == pygame.K_o:
                        manager.optimize_memory_usage()

            manager.update()

            stats = manager.get_stats()
            if stats is not last_stats:
                logger.info("%s", stats)
                last_stats = stats

            if not manager.is_rendering:
                clock.tick(10)
                continue

            renderer_info.begin_frame()
            ctx.clear(0.08, 0.08, 0.1)

            # Drop names whose texture was swept while off screen.
            textures[:] = [t for t in textures if t in manager]
            if textures:
                current %= len(textures)
                texture = manager.get(textures[current])
                if isinstance(texture, GPUTexture):
                    texture.use(0)
                    quad.render(moderngl.TRIANGLE_STRIP)
                    renderer_info.record_draw(4, mode=moderngl.TRIANGLE_STRIP)

            pygame.display.flip()
            manager.track_frame()
            clock.tick(60)

    pygame.quit()


if __name__ == "__main__":
    main()
