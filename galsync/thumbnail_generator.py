"""
ThumbnailGenerator - Handles image resizing and WebP encoding.
"""

import io
import logging
import os
from pathlib import Path
from typing import Optional

from PIL import Image, ImageOps, UnidentifiedImageError

from .errors import ThumbnailGenerationError


class ThumbnailGenerator:
    """
    Generates downsized WebP thumbnails from original images using Pillow.

    Images are only ever scaled down, never up, and keep their aspect ratio.
    """

    OUTPUT_FORMAT = 'WEBP'
    OUTPUT_EXTENSION = '.webp'
    CONTENT_TYPE = 'image/webp'

    def __init__(
        self,
        size: int = 800,
        quality: int = 85,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize thumbnail generator.

        Args:
            size: Maximum length of the longer edge (default: 800)
            quality: Lossy WebP quality (default: 85)
            logger: Optional logger instance
        """
        self.size = size
        self.quality = quality
        self.logger = logger or logging.getLogger(__name__)

    def generate(self, image_data: bytes) -> bytes:
        """
        Generate a thumbnail from image data.

        Args:
            image_data: Original image as bytes

        Returns:
            Encoded WebP bytes

        Raises:
            ThumbnailGenerationError: if the image cannot be decoded or encoded
        """
        try:
            with Image.open(io.BytesIO(image_data)) as img:
                img.load()
                img = ImageOps.exif_transpose(img)
                img = self._convert_color_mode(img)
                img.thumbnail((self.size, self.size), Image.Resampling.LANCZOS)

                output = io.BytesIO()
                img.save(output, format=self.OUTPUT_FORMAT, quality=self.quality, method=4)
                return output.getvalue()
        except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as e:
            raise ThumbnailGenerationError(f"Cannot generate thumbnail: {e}") from e

    def generate_file(self, source: Path, dest: Path) -> int:
        """
        Generate a thumbnail for `source` and write it atomically to `dest`.

        Returns:
            Size of the written thumbnail in bytes

        Raises:
            ThumbnailGenerationError: if reading, decoding or writing fails
        """
        try:
            image_data = Path(source).read_bytes()
        except OSError as e:
            raise ThumbnailGenerationError(f"Cannot read {source}: {e}", file=str(source)) from e

        try:
            thumb_data = self.generate(image_data)
        except ThumbnailGenerationError as e:
            raise ThumbnailGenerationError(f"{source.name}: {e.message}", file=str(source)) from e

        tmp = dest.with_name(dest.name + '.tmp')
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_bytes(thumb_data)
            os.replace(tmp, dest)
        except OSError as e:
            tmp.unlink(missing_ok=True)
            raise ThumbnailGenerationError(f"Cannot write {dest}: {e}", file=str(source)) from e

        return len(thumb_data)

    def _convert_color_mode(self, img: Image.Image) -> Image.Image:
        """Convert image to a mode WebP can encode, keeping transparency."""
        if img.mode in ('RGB', 'RGBA'):
            return img
        if img.mode in ('LA', 'PA') or (img.mode == 'P' and 'transparency' in img.info):
            return img.convert('RGBA')
        return img.convert('RGB')
