from pathlib import Path
from typing import Optional

from PIL import Image

from glint.assets.importers.base import AssetImporter, ProgressCallback
from glint.assets.types import TextureData


class TextureImporter(AssetImporter):
    def import_file(
        self, path: Path, progress: Optional[ProgressCallback] = None
    ) -> TextureData:
        with Image.open(path) as img:
            converted = img.convert("RGBA")

            # OpenGL samples rows bottom-up.
            converted = converted.transpose(Image.Transpose.FLIP_TOP_BOTTOM)

            width, height = converted.size
            data = converted.tobytes()

        if progress is not None:
            progress(1, 1)

        return TextureData(data=data, width=width, height=height, components=4)
