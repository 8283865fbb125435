"""
Image Processor Module.

This module decodes image uploads for OCR:
    - Image decoding and validation
    - Orientation correction from EXIF data
    - RGB conversion
    - Optional contrast enhancement

Supports: JPEG, PNG, WebP

Author: ML Engineering Team
"""

import io
from typing import Any, Dict, Tuple

from PIL import Image, ImageEnhance, ImageOps

from config import get_config
from docextract.utils.logger import get_logger
from docextract.utils.exceptions import CorruptedFileError

# Initialize module logger
logger = get_logger(__name__)


class ImageProcessor:
    """
    Decoder for image uploads.

    Attributes:
        auto_orient: Whether to apply EXIF orientation
        enhance_contrast: Whether to apply contrast enhancement

    Example:
        >>> processor = ImageProcessor()
        >>> image, metadata = processor.load(data, "receipt.jpg")
        >>> metadata['width'], metadata['height']
        (1200, 1800)
    """

    def __init__(self) -> None:
        """Initialize the image processor with configuration."""
        self.auto_orient = get_config("input.image.auto_orient", True)
        self.enhance_contrast = get_config("input.image.enhance_contrast", False)

    def load(self, data: bytes, filename: str = "image") -> Tuple[Image.Image, Dict[str, Any]]:
        """
        Decode image bytes into an RGB image ready for OCR.

        Args:
            data: Raw image bytes.
            filename: Name used in log and error messages.

        Returns:
            Tuple of (PIL Image, metadata dictionary).

        Raises:
            CorruptedFileError: If the image cannot be decoded.
        """
        try:
            image = Image.open(io.BytesIO(data))
            image.load()
        except Exception as e:
            logger.error(f"Failed to decode image {filename}: {e}")
            raise CorruptedFileError(filename, str(e)) from e

        metadata = {
            'format': image.format,
            'original_mode': image.mode,
            'page_count': 1,
        }

        if self.auto_orient:
            image = ImageOps.exif_transpose(image)

        image = self._convert_to_rgb(image)

        if self.enhance_contrast:
            image = ImageEnhance.Contrast(image).enhance(1.2)
            image = ImageEnhance.Sharpness(image).enhance(1.1)
            logger.debug("Applied image enhancements")

        metadata['width'] = image.width
        metadata['height'] = image.height

        logger.info(f"Loaded image {filename}: {image.width}x{image.height} ({metadata['format']})")
        return image, metadata

    def _convert_to_rgb(self, image: Image.Image) -> Image.Image:
        """
        Convert image to RGB mode.

        Alpha channels are flattened onto a white background; every other
        mode is converted directly.
        """
        if image.mode == 'RGB':
            return image

        original_mode = image.mode

        if image.mode in ('RGBA', 'LA') or (image.mode == 'P' and 'transparency' in image.info):
            image = image.convert('RGBA')
            background = Image.new('RGB', image.size, (255, 255, 255))
            background.paste(image, mask=image.split()[3])
            image = background
        else:
            image = image.convert('RGB')

        logger.debug(f"Converted image from {original_mode} to RGB")
        return image
