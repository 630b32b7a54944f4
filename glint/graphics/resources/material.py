import moderngl
import numpy as np

from glint.assets.types import MaterialData


class GPUMaterial:
    """
    Material parameters uploaded as a std140 uniform block:

        vec4  base_color;
        float roughness;
        float metallic;   // + 8 bytes padding
    """

    BLOCK_SIZE = 32

    def __init__(self, ctx: moderngl.Context, data: MaterialData) -> None:
        self.name = data.name
        self.base_color = data.base_color
        self.roughness = data.roughness
        self.metallic = data.metallic

        self.ubo = ctx.buffer(self._pack(), dynamic=True)

    def _pack(self) -> bytes:
        block = np.zeros(self.BLOCK_SIZE // 4, dtype="f4")
        block[0:4] = self.base_color
        block[4] = self.roughness
        block[5] = self.metallic
        return block.tobytes()

    def update(
        self,
        *,
        base_color: tuple[float, float, float, float] | None = None,
        roughness: float | None = None,
        metallic: float | None = None,
    ) -> None:
        """Change parameters in place (e.g. a try-on shade picker)."""
        if base_color is not None:
            self.base_color = base_color
        if roughness is not None:
            self.roughness = roughness
        if metallic is not None:
            self.metallic = metallic
        self.ubo.write(self._pack())

    def bind(self, binding: int = 0) -> None:
        self.ubo.bind_to_uniform_block(binding)

    def release(self) -> None:
        self.ubo.release()
