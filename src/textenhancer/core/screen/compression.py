"""
JPEG compression of screenshots for multimodal requests.

When a byte budget is given and the first encoding exceeds it, the quality is
binary-searched downwards until the budget is met. If nothing within the
search tolerance fits, the minimum-quality encoding is returned.
"""

import io
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from PIL import Image

from ...utils.logger import get_logger

logger = get_logger(__name__)

MIN_QUALITY = 0.01
MAX_QUALITY = 1.0
SEARCH_TOLERANCE = 0.01


class CompressionPreset(str, Enum):
    ULTRA_HIGH = "ultra_high"
    HIGH = "high"
    BALANCED = "balanced"
    EFFICIENT = "efficient"

    @property
    def quality(self) -> float:
        return PRESETS[self][0]

    @property
    def max_dimension(self) -> int:
        return PRESETS[self][1]

    @property
    def display_name(self) -> str:
        return PRESETS[self][2]


# preset -> (quality, max width/height in pixels, display name)
PRESETS = {
    CompressionPreset.ULTRA_HIGH: (0.95, 2048, "Ultra High Quality"),
    CompressionPreset.HIGH: (0.85, 1920, "High Quality"),
    CompressionPreset.BALANCED: (0.75, 1600, "Balanced"),
    CompressionPreset.EFFICIENT: (0.60, 1200, "Efficient"),
}


@dataclass(frozen=True)
class CompressionResult:
    encoded_bytes: bytes
    original_byte_size: int
    encoded_byte_size: int
    ratio: float
    quality_used: float


def clamp_quality(quality: float) -> float:
    return max(MIN_QUALITY, min(MAX_QUALITY, quality))


def _pillow_quality(quality: float) -> int:
    # Pillow's JPEG quality scale is 1-100.
    return max(1, min(100, round(quality * 100)))


def _original_size(image: Image.Image) -> int:
    return image.width * image.height * len(image.getbands())


class ImageCompressor:

    def prepare(self, image: Image.Image, preset: CompressionPreset) -> Image.Image:
        """Downscale to the preset bounds and drop alpha for JPEG encoding."""
        prepared = image if image.mode == "RGB" else image.convert("RGB")
        limit = preset.max_dimension
        if prepared.width > limit or prepared.height > limit:
            prepared = prepared.copy()
            prepared.thumbnail((limit, limit), Image.Resampling.LANCZOS)
            logger.debug(f"Resized screenshot {image.size} -> {prepared.size}")
        return prepared

    def compress(
        self,
        image: Image.Image,
        quality: float,
        max_bytes: Optional[int] = None,
    ) -> Optional[CompressionResult]:
        clamped = clamp_quality(quality)
        original_size = _original_size(image)

        result = self._encode(image, clamped, original_size)
        if result is None:
            return None

        if max_bytes is not None and result.encoded_byte_size > max_bytes:
            logger.debug(
                f"Encoded size {result.encoded_byte_size} exceeds budget {max_bytes}, "
                "searching for a lower quality"
            )
            return self.optimize_for_target_size(image, max_bytes, original_size)

        logger.debug(
            f"Compressed screenshot at quality {clamped:.2f}: "
            f"{original_size} -> {result.encoded_byte_size} bytes"
        )
        return result

    def optimize_for_target_size(
        self,
        image: Image.Image,
        max_bytes: int,
        original_size: Optional[int] = None,
    ) -> Optional[CompressionResult]:
        if original_size is None:
            original_size = _original_size(image)

        low, high = MIN_QUALITY, MAX_QUALITY
        best: Optional[CompressionResult] = None

        while high - low > SEARCH_TOLERANCE:
            mid = (low + high) / 2
            result = self._encode(image, mid, original_size)
            if result is None:
                break

            if result.encoded_byte_size <= max_bytes:
                best = result
                low = mid
            else:
                high = mid

        if best is not None:
            logger.info(
                f"Found quality {best.quality_used:.3f} within budget "
                f"({best.encoded_byte_size}/{max_bytes} bytes)"
            )
            return best

        logger.warning(f"Cannot meet {max_bytes} byte budget, using minimum quality")
        return self._encode(image, MIN_QUALITY, original_size)

    def estimate_compressed_size(self, image: Image.Image, quality: float) -> int:
        """Rough size for UI previews; never used for the actual compression."""
        base_size = (image.width * image.height) // 4
        return int(base_size * clamp_quality(quality))

    def compress_for_request(
        self,
        image: Image.Image,
        preset: CompressionPreset = CompressionPreset.BALANCED,
        quality: Optional[float] = None,
        max_bytes: Optional[int] = None,
    ) -> Optional[CompressionResult]:
        prepared = self.prepare(image, preset)
        return self.compress(
            prepared,
            quality if quality is not None else preset.quality,
            max_bytes,
        )

    def _encode(
        self, image: Image.Image, quality: float, original_size: int
    ) -> Optional[CompressionResult]:
        source = image if image.mode in ("RGB", "L") else image.convert("RGB")
        buffer = io.BytesIO()
        try:
            source.save(buffer, format="JPEG", quality=_pillow_quality(quality), optimize=True)
        except (OSError, ValueError) as e:
            logger.error(f"JPEG encoding failed: {e}")
            return None

        data = buffer.getvalue()
        return CompressionResult(
            encoded_bytes=data,
            original_byte_size=original_size,
            encoded_byte_size=len(data),
            ratio=len(data) / original_size if original_size else 0.0,
            quality_used=quality,
        )
