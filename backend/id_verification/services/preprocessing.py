"""Image preprocessing for ID card OCR.

Fixed, deterministic pipeline:
- Decode (anything Pillow can open: PNG, JPEG, WEBP, BMP, ...)
- Grayscale
- Min-max contrast normalization to the full 0..255 range
- Linear contrast boost (gain * px + offset, saturating)
- JPEG re-encode
"""

import base64
import binascii
import io
import logging
from typing import Union

import cv2
import numpy as np
from PIL import Image

from .errors import ImageDecodeError

logger = logging.getLogger(__name__)


def decode_image_payload(image_data: Union[str, bytes]) -> bytes:
    """
    Turn an uploaded image payload into raw image bytes.

    Strings are treated as base64, optionally data-URL style
    (``data:image/png;base64,iVBOR...``); everything up to the first comma is
    dropped. Bytes are passed through unchanged.

    Raises:
        ImageDecodeError: If the payload is empty or not valid base64
    """
    if isinstance(image_data, (bytes, bytearray)):
        raw = bytes(image_data)
    else:
        encoded = image_data.split(",", 1)[-1].strip()
        try:
            raw = base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ImageDecodeError(f"Image payload is not valid base64: {e}") from e

    if not raw:
        raise ImageDecodeError("Image payload is empty")
    return raw


class ImagePreprocessor:
    """Normalizes a raw ID photo into an OCR-friendly JPEG."""

    def __init__(self, jpeg_quality: int = 85, contrast_gain: float = 1.2, contrast_offset: float = 0.0):
        self.jpeg_quality = jpeg_quality
        self.contrast_gain = contrast_gain
        self.contrast_offset = contrast_offset

    def preprocess(self, image_bytes: bytes) -> bytes:
        """
        Preprocess image for OCR.

        Args:
            image_bytes: Raw image bytes

        Returns:
            JPEG-encoded grayscale image bytes

        Raises:
            ImageDecodeError: If the bytes are not a decodable image
        """
        gray = self._load_grayscale(image_bytes)
        original_range = (int(gray.min()), int(gray.max()))

        gray = self._normalize(gray)
        gray = self._linear(gray)
        encoded = self._encode_jpeg(gray)

        logger.debug(
            f"Preprocessed {gray.shape[1]}x{gray.shape[0]} image: "
            f"range={original_range}, {len(image_bytes)/1024:.0f}KB -> {len(encoded)/1024:.0f}KB"
        )
        return encoded

    def _load_grayscale(self, image_bytes: bytes) -> np.ndarray:
        """Load image from bytes as a single-channel uint8 array."""
        if not image_bytes:
            raise ImageDecodeError("Image payload is empty")

        try:
            pil_image = Image.open(io.BytesIO(image_bytes))
            pil_image.load()
        except Exception as e:
            raise ImageDecodeError(f"Unable to decode image: {e}") from e

        if pil_image.mode == "L":
            return np.array(pil_image)

        # Handles RGBA PNGs, palette images, CMYK JPEGs
        if pil_image.mode != "RGB":
            pil_image = pil_image.convert("RGB")
        return cv2.cvtColor(np.array(pil_image), cv2.COLOR_RGB2GRAY)

    def _normalize(self, gray: np.ndarray) -> np.ndarray:
        """Stretch intensities so the darkest pixel is 0 and the brightest 255."""
        if gray.min() == gray.max():
            # Flat image, nothing to stretch
            return gray
        return cv2.normalize(gray, None, alpha=0, beta=255, norm_type=cv2.NORM_MINMAX)

    def _linear(self, gray: np.ndarray) -> np.ndarray:
        """Apply gain and offset, saturating to uint8."""
        boosted = gray.astype(np.float32) * self.contrast_gain + self.contrast_offset
        return np.clip(np.rint(boosted), 0, 255).astype(np.uint8)

    def _encode_jpeg(self, gray: np.ndarray) -> bytes:
        ok, buffer = cv2.imencode(".jpg", gray, [cv2.IMWRITE_JPEG_QUALITY, self.jpeg_quality])
        if not ok:
            raise ImageDecodeError("Failed to re-encode image as JPEG")
        return buffer.tobytes()
