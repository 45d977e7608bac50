"""Reads and writes image EXIF/GPS metadata."""

import io
import json
import logging
from datetime import datetime
from typing import Any, Mapping, Optional, Union

import piexif

from .exif_codec import decode_exif, encode_exif, load_exif
from .models import (
    CAMERA_INFO, DATE_TIME, EXIF_ONLY, GPS_ONLY, ExifTag, MetadataFilter, MetadataRecord,
)
from .utils import derive_path, json_default, sidecar_path, write_files_atomically

logger = logging.getLogger(__name__)

# Read-only accessors log and return empty results on failure.
# Writers log and re-raise the original exception.

def _read_bytes(path: str) -> bytes:
    with open(path, "rb") as f:
        return f.read()

def extract_image_metadata(image_path: str, metadata_filter: Optional[MetadataFilter] = None) -> MetadataRecord:
    """
    Extracts metadata from an image file.

    Args:
        image_path: Path to a JPEG, TIFF or WebP file.
        metadata_filter: Groups/tags to return; everything when None.

    Returns:
        Tag name to value. Empty when the file has no metadata or could not
        be read or parsed.
    """
    try:
        return decode_exif(load_exif(_read_bytes(image_path)), metadata_filter)
    except Exception as e:
        logger.error(f"Failed to extract image metadata from {image_path}: {e}")
        return {}

def extract_exif_data(image_path: str) -> MetadataRecord:
    return extract_image_metadata(image_path, EXIF_ONLY)

def extract_gps_data(image_path: str) -> MetadataRecord:
    return extract_image_metadata(image_path, GPS_ONLY)

def extract_camera_info(image_path: str) -> MetadataRecord:
    """Make, model, lens, focal length, f-number, ISO and exposure time, where present."""
    return extract_image_metadata(image_path, CAMERA_INFO)

def extract_image_datetime(image_path: str) -> Optional[Union[datetime, str]]:
    """
    Returns the capture time: DateTimeOriginal, else DateTime, else None.

    The value is returned as parsed (naive datetime, or the raw string when
    it is not in EXIF date format); no timezone is applied.
    """
    metadata = extract_image_metadata(image_path, DATE_TIME)
    if metadata.get(ExifTag.DATE_TIME_ORIGINAL.value):
        return metadata[ExifTag.DATE_TIME_ORIGINAL.value]
    elif metadata.get(ExifTag.DATE_TIME.value):
        return metadata[ExifTag.DATE_TIME.value]
    return None


def modify_image_metadata(
    image_path: str,
    metadata: Mapping[str, Any],
    output_path: Optional[str] = None
) -> str:
    """
    Writes a copy of an image with updated metadata, plus a JSON sidecar.

    The given fields are merged over the image's current metadata (given
    values win). The image goes to `output_path`, or next to the original
    with a ``_modified`` suffix; the sidecar goes next to the output image
    as ``<name>_metadata.json``. Both files are committed together.

    Args:
        image_path: Source JPEG or WebP file.
        metadata: Tag name to new value.
        output_path: Destination of the modified image.

    Returns:
        The path of the modified image.

    Raises:
        Whatever failed while reading, parsing, encoding or writing.
    """
    try:
        image_bytes = _read_bytes(image_path)

        exif_dict = load_exif(image_bytes)
        current_metadata = decode_exif(exif_dict)

        changes = {str(k): v for k, v in metadata.items()}
        updated_metadata = {**current_metadata, **changes}

        # Untouched tags keep their raw values from the template
        exif_bytes = encode_exif(changes, template=exif_dict)
        new_image = io.BytesIO()
        piexif.insert(exif_bytes, image_bytes, new_image)

        final_output_path = output_path or derive_path(image_path, "_modified")
        metadata_path = sidecar_path(final_output_path)
        sidecar = json.dumps(updated_metadata, indent=2, ensure_ascii=False, default=json_default)

        write_files_atomically([
            (final_output_path, new_image.getvalue()),
            (metadata_path, sidecar.encode("utf-8")),
        ])

        logger.info(f"Metadata saved to {metadata_path}")
        logger.info(f"Modified image saved to {final_output_path}")
        return final_output_path
    except Exception as e:
        logger.error(f"Failed to modify image metadata for {image_path}: {e}", exc_info=True)
        raise

def modify_image_datetime(image_path: str, new_datetime: datetime, output_path: Optional[str] = None) -> str:
    """Sets DateTimeOriginal and DateTime to `new_datetime`; see modify_image_metadata."""
    return modify_image_metadata(image_path, {
        ExifTag.DATE_TIME_ORIGINAL.value: new_datetime,
        ExifTag.DATE_TIME.value: new_datetime,
    }, output_path)
