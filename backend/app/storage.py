import io
import logging
import uuid
from pathlib import Path

from fastapi import HTTPException
from PIL import ExifTags, Image
from pydantic import BaseModel

from app.core.config import settings

logger = logging.getLogger(__name__)

# Phone cameras often write multi-picture JPEGs, which Pillow reports as MPO
PIL_FORMATS_BY_MIME = {
    "image/jpeg": {"JPEG", "MPO"},
    "image/png": {"PNG"},
    "image/webp": {"WEBP"},
    "image/gif": {"GIF"},
}

EXTENSION_BY_MIME = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
    "image/gif": ".gif",
}


class ImageInfo(BaseModel):
    width: int
    height: int
    format: str
    latitude: float | None = None
    longitude: float | None = None


def normalize_content_type(content_type: str | None) -> str:
    return (content_type or "").split(";", 1)[0].strip().lower()


def _dms_to_decimal(dms, ref) -> float | None:
    """Convert EXIF (degrees, minutes, seconds) rationals to decimal degrees."""
    try:
        degrees, minutes, seconds = (float(part) for part in dms)
    except (TypeError, ValueError, ZeroDivisionError):
        return None
    decimal = degrees + minutes / 60.0 + seconds / 3600.0
    if ref in ("S", "W"):
        decimal = -decimal
    return decimal


def extract_gps_coordinates(image: Image.Image) -> tuple[float, float] | None:
    """Read GPS latitude/longitude from the image's EXIF block, if any."""
    gps_ifd = image.getexif().get_ifd(ExifTags.IFD.GPSInfo)
    if not gps_ifd:
        return None
    gps_data = {ExifTags.GPSTAGS.get(tag, tag): value for tag, value in gps_ifd.items()}
    if "GPSLatitude" not in gps_data or "GPSLongitude" not in gps_data:
        return None
    lat = _dms_to_decimal(gps_data["GPSLatitude"], gps_data.get("GPSLatitudeRef"))
    lng = _dms_to_decimal(gps_data["GPSLongitude"], gps_data.get("GPSLongitudeRef"))
    if lat is None or lng is None:
        return None
    if not (-90 <= lat <= 90 and -180 <= lng <= 180):
        return None
    return lat, lng


def validate_image_upload(content_type: str | None, content: bytes) -> ImageInfo:
    """Check MIME type, size and that the bytes really are an image of that type."""
    mime = normalize_content_type(content_type)
    if mime not in settings.ALLOWED_IMAGE_TYPES:
        raise HTTPException(
            status_code=415,
            detail=f"Unsupported file type: {content_type or 'unknown'}",
        )

    if not content:
        raise HTTPException(status_code=400, detail="Uploaded file is empty.")

    if len(content) > settings.MAX_UPLOAD_SIZE_BYTES:
        raise HTTPException(
            status_code=413,
            detail=(
                f"File too large: {len(content)} bytes "
                f"(limit {settings.MAX_UPLOAD_SIZE_BYTES} bytes)"
            ),
        )

    try:
        with Image.open(io.BytesIO(content)) as probe:
            probe.verify()
        # verify() leaves the image unusable, reopen for size and EXIF
        with Image.open(io.BytesIO(content)) as image:
            width, height = image.size
            image_format = image.format or ""
            try:
                coords = extract_gps_coordinates(image)
            except Exception as e:
                logger.warning("Ignoring unreadable EXIF GPS block: %s", e)
                coords = None
    except Exception as e:
        raise HTTPException(status_code=400, detail=f"Failed to read image: {str(e)}")

    expected_formats = PIL_FORMATS_BY_MIME.get(mime)
    if expected_formats and image_format not in expected_formats:
        raise HTTPException(
            status_code=400,
            detail=f"File content ({image_format or 'unknown'}) does not match declared type {mime}",
        )

    return ImageInfo(
        width=width,
        height=height,
        format=image_format,
        latitude=coords[0] if coords else None,
        longitude=coords[1] if coords else None,
    )


def get_upload_dir() -> Path:
    upload_dir = Path(settings.UPLOAD_DIR)
    upload_dir.mkdir(parents=True, exist_ok=True)
    return upload_dir


def upload_path(stored_filename: str) -> Path:
    # Stored names are generated server side, anything with a path component is rejected
    if Path(stored_filename).name != stored_filename or stored_filename in ("", ".", ".."):
        raise ValueError(f"Invalid stored filename: {stored_filename!r}")
    return get_upload_dir() / stored_filename


def save_upload(content: bytes, content_type: str | None) -> str:
    """Write the image under UPLOAD_DIR and return its generated file name."""
    extension = EXTENSION_BY_MIME.get(normalize_content_type(content_type), "")
    stored_filename = f"{uuid.uuid4().hex}{extension}"
    path = upload_path(stored_filename)
    path.write_bytes(content)
    logger.info("Stored upload %s (%s bytes)", stored_filename, len(content))
    return stored_filename


def delete_upload(stored_filename: str) -> None:
    path = upload_path(stored_filename)
    path.unlink(missing_ok=True)
    logger.info("Deleted upload %s", stored_filename)
