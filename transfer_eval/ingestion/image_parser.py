"""Image transcript loading for the vision model."""

import io

from PIL import Image, ImageOps, UnidentifiedImageError

from ..errors import DocumentValidationError
from .loader import LoadedDocument


class ImageParser:
    """Open, orient and downscale transcript photos and scans."""

    def __init__(self, max_dimension: int = 2048):
        """Initialize image parser.

        Args:
            max_dimension: Maximum width/height before resizing.
        """
        self.max_dimension = max_dimension

    def parse(self, document: LoadedDocument) -> Image.Image:
        """Return an RGB image ready to send to the vision model.

        Raises:
            DocumentValidationError: If the bytes are not a readable image.
        """
        try:
            image = Image.open(io.BytesIO(document.content))
            image.load()
        except (UnidentifiedImageError, OSError) as e:
            raise DocumentValidationError(f"Unreadable image: {e}") from e

        # Phone photos carry their rotation in EXIF
        image = ImageOps.exif_transpose(image)

        if image.mode in ("RGBA", "LA", "P"):
            image = image.convert("RGBA")
            background = Image.new("RGB", image.size, (255, 255, 255))
            background.paste(image, mask=image.split()[-1])
            image = background
        elif image.mode != "RGB":
            image = image.convert("RGB")

        return self._resize_if_needed(image)

    def _resize_if_needed(self, image: Image.Image) -> Image.Image:
        width, height = image.size

        if width <= self.max_dimension and height <= self.max_dimension:
            return image

        # Calculate new dimensions maintaining aspect ratio
        if width > height:
            new_width = self.max_dimension
            new_height = int(height * (self.max_dimension / width))
        else:
            new_height = self.max_dimension
            new_width = int(width * (self.max_dimension / height))

        return image.resize((new_width, new_height), Image.LANCZOS)
