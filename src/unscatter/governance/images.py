"""Verification of image payloads before they leave the client."""

from __future__ import annotations

import base64
import binascii
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from unscatter.models import ImagePayload

ACCEPTED_MIME_TYPES: tuple[str, ...] = ("image/png", "image/jpeg", "image/webp")
DEFAULT_MAX_IMAGE_BYTES = 4 * 1024 * 1024
DEFAULT_MAX_IMAGES = 10

_EXTENSION_MIME_TYPES = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".webp": "image/webp",
}


@dataclass(slots=True, frozen=True)
class ImageCheck:
    """Outcome of verifying one image or a batch of images."""

    valid: bool
    error: str | None = None
    detected_type: str | None = None


@dataclass(slots=True)
class ImagePolicy:
    """Limits applied to images attached to one request."""

    max_images: int = DEFAULT_MAX_IMAGES
    max_image_bytes: int = DEFAULT_MAX_IMAGE_BYTES
    accepted_types: tuple[str, ...] = ACCEPTED_MIME_TYPES
    verify_signatures: bool = True

    def check_all(self, images: Sequence[ImagePayload]) -> ImageCheck:
        if len(images) > self.max_images:
            return ImageCheck(valid=False, error=f"Maximum {self.max_images} images allowed")
        for index, image in enumerate(images):
            check = self.check(image)
            if not check.valid:
                return ImageCheck(valid=False, error=f"images[{index}]: {check.error}")
        return ImageCheck(valid=True)

    def check(self, image: ImagePayload) -> ImageCheck:  # noqa: PLR0911
        if image.mime_type not in self.accepted_types:
            return ImageCheck(
                valid=False,
                error=f"Invalid file type {image.mime_type!r}. Please use PNG, JPG, or WEBP.",
            )
        try:
            raw = base64.b64decode(image.data, validate=True)
        except (binascii.Error, ValueError):
            return ImageCheck(valid=False, error="Image data is not valid base64.")
        if len(raw) > self.max_image_bytes:
            size_mb = self.max_image_bytes / 1024 / 1024
            return ImageCheck(valid=False, error=f"File exceeds maximum size of {size_mb:.1f}MB")
        if not self.verify_signatures:
            return ImageCheck(valid=True)

        detected = detect_image_type(raw)
        if detected is None:
            return ImageCheck(
                valid=False,
                error=f"Data does not appear to be a valid image. Signature: {raw[:8].hex()}",
            )
        if detected != image.mime_type:
            return ImageCheck(
                valid=False,
                error=f"Mismatched type. Claimed: {image.mime_type}, Detected: {detected}",
                detected_type=detected,
            )
        return ImageCheck(valid=True, detected_type=detected)


def detect_image_type(raw: bytes) -> str | None:
    """Detect PNG, JPEG, or WEBP from the leading magic bytes."""

    header = raw[:12]
    if header.startswith(b"\x89PNG"):
        return "image/png"
    if header.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if header.startswith(b"RIFF") and header[8:12] == b"WEBP":
        return "image/webp"
    return None


def load_image_file(path: Path) -> ImagePayload:
    """Read an image from disk and encode it as a request payload."""

    raw = path.read_bytes()
    mime_type = detect_image_type(raw) or _EXTENSION_MIME_TYPES.get(
        path.suffix.lower(),
        "application/octet-stream",
    )
    return ImagePayload(mime_type=mime_type, data=base64.b64encode(raw).decode("ascii"))
