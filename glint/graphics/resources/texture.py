import moderngl

from glint.assets.types import TextureData


class GPUTexture:
    """
    Wrapper around moderngl.Texture.

    Try-on overlays are sampled close to 1:1, so uploads skip the mipmap
    chain and use plain linear filtering to save a third of the memory.
    """

    def __init__(self, ctx: moderngl.Context, data: TextureData):
        self._ctx = ctx
        self.width = data.width
        self.height = data.height
        self.components = data.components

        self.handle = ctx.texture(
            size=(data.width, data.height),
            components=data.components,
            data=data.data,
        )
        self.handle.filter = (moderngl.LINEAR, moderngl.LINEAR)

    def use(self, location: int = 0) -> None:
        self.handle.use(location)

    def release(self) -> None:
        self.handle.release()
