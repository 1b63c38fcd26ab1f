# backend/app/utils.py
import io
import re
import base64
import binascii
from dataclasses import dataclass
from typing import Optional, Tuple

from PIL import Image, UnidentifiedImageError

DATA_URI_RE = re.compile(r"^data:(?P<mime>image/[a-zA-Z0-9.+-]+);base64,(?P<data>.*)$", re.S)

# Pillow format name -> mime type accepted for uploads
ALLOWED_FORMATS = {
    "JPEG": "image/jpeg",
    "PNG": "image/png",
    "WEBP": "image/webp",
}


class ImageValidationError(ValueError):
    pass


@dataclass(frozen=True)
class DecodedImage:
    data: bytes
    mime_type: str
    width: int
    height: int

    @property
    def data_uri(self) -> str:
        return to_data_uri(self.data, self.mime_type)


def to_data_uri(data: bytes, mime_type: str = "image/png") -> str:
    b64 = base64.b64encode(data).decode("utf-8")
    return f"data:{mime_type};base64,{b64}"


def split_data_uri(image: str) -> Tuple[Optional[str], str]:
    """
    Split a data URI into (mime_type, base64 payload).
    Bare base64 strings come back with mime_type None.
    """
    match = DATA_URI_RE.match(image.strip())
    if not match:
        return None, "".join(image.split())
    return match.group("mime").lower(), "".join(match.group("data").split())


def format_file_size(num_bytes: int) -> str:
    if num_bytes <= 0:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB", "GB"]
    size = float(num_bytes)
    unit = 0
    while size >= 1024 and unit < len(units) - 1:
        size /= 1024
        unit += 1
    return f"{round(size, 2):g} {units[unit]}"


def decode_image(image: str, max_bytes: int) -> DecodedImage:
    """
    Decode and validate an uploaded image (data URI or bare base64).

    Only JPEG, PNG and WebP are accepted and the decoded payload must not
    exceed max_bytes. The mime type comes from the pixels, not the URI.
    """
    _, payload = split_data_uri(image)
    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ImageValidationError("Invalid image uploaded.") from e

    if not data:
        raise ImageValidationError("Invalid image uploaded.")
    if len(data) > max_bytes:
        raise ImageValidationError(
            f"File too large. Maximum size is {format_file_size(max_bytes)}."
        )

    try:
        with Image.open(io.BytesIO(data)) as img:
            fmt = img.format
            width, height = img.size
    except (UnidentifiedImageError, OSError) as e:
        raise ImageValidationError("Invalid image uploaded.") from e

    mime_type = ALLOWED_FORMATS.get(fmt or "")
    if mime_type is None:
        raise ImageValidationError(
            "Invalid file type. Only JPEG, PNG, and WebP images are allowed."
        )

    return DecodedImage(data=data, mime_type=mime_type, width=width, height=height)


def crop_to_aspect_ratio(image: DecodedImage, width: int, height: int) -> DecodedImage:
    """
    Center-crop to the target ratio, then resize to exactly width x height.
    Output is JPEG (quality 92).
    """
    with Image.open(io.BytesIO(image.data)) as img:
        img = img.convert("RGB")
        src_w, src_h = img.size
        target_ratio = width / height
        src_ratio = src_w / max(src_h, 1)

        crop_x, crop_y, crop_w, crop_h = 0, 0, src_w, src_h
        if src_ratio > target_ratio:
            crop_w = round(src_h * target_ratio)
            crop_x = round((src_w - crop_w) / 2)
        elif src_ratio < target_ratio:
            crop_h = round(src_w / target_ratio)
            crop_y = round((src_h - crop_h) / 2)

        cropped = img.crop((crop_x, crop_y, crop_x + crop_w, crop_y + crop_h))
        resized = cropped.resize((width, height), Image.Resampling.LANCZOS)

        buffered = io.BytesIO()
        resized.save(buffered, format="JPEG", quality=92)

    return DecodedImage(
        data=buffered.getvalue(),
        mime_type="image/jpeg",
        width=width,
        height=height,
    )
