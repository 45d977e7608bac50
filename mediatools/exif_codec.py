"""
Conversion between piexif's IFD dictionaries and flat tag-name records.

piexif keeps EXIF data as ``{"0th": {tag_id: raw}, "Exif": {...}, "GPS": {...}}``
with raw values typed after the TIFF field type (ASCII as bytes, RATIONAL
as ``(num, den)`` pairs, ...). Callers of this package work with a single
``{"Make": "Canon", "FNumber": 2.8, ...}`` mapping instead, so this module
translates in both directions.
"""

import copy
import logging
from datetime import datetime
from fractions import Fraction
from typing import Any, Dict, Optional, Tuple, Union

import piexif

from .exceptions import ImageFormatError, MetadataEncodingError
from .models import (
    GROUP_EXIF, GROUP_GPS, GROUP_IFD0, ExifTag, MetadataFilter, MetadataRecord, MetadataValue,
)

logger = logging.getLogger(__name__)

EXIF_DATE_FORMAT = "%Y:%m:%d %H:%M:%S"
DATE_TAGS = ("DateTimeOriginal", "DateTime", "DateTimeDigitized")

# piexif IFD key -> (group name, piexif.TAGS table)
IFD_GROUPS = (
    ("0th", GROUP_IFD0, "Image"),
    ("GPS", GROUP_GPS, "GPS"),
    ("Exif", GROUP_EXIF, "Exif"),
)

# Offsets to sub-IFDs; piexif.dump writes these itself.
POINTER_TAGS = {
    piexif.ImageIFD.ExifTag,
    piexif.ImageIFD.GPSTag,
    piexif.ExifIFD.InteroperabilityTag,
}

# Names exposed differently from piexif's
NAME_ALIASES = {"ISOSpeedRatings": ExifTag.ISO.value}
REVERSE_ALIASES = {alias: name for name, alias in NAME_ALIASES.items()}

RATIONAL_TYPES = (piexif.TYPES.Rational, piexif.TYPES.SRational)
INTEGER_TYPES = (
    piexif.TYPES.Byte, piexif.TYPES.SByte, piexif.TYPES.Short,
    piexif.TYPES.SShort, piexif.TYPES.Long, piexif.TYPES.SLong,
)
FLOAT_TYPES = (piexif.TYPES.Float, piexif.TYPES.DFloat)

IMAGE_MAGIC = (b"\xff\xd8", b"II", b"MM")


def _build_name_index() -> Dict[str, Tuple[str, int, int]]:
    # Later groups win, so a name defined for both IFD0 and the Exif IFD
    # (DateTimeOriginal, ExposureTime, ...) is written to the Exif IFD.
    index = {}
    for ifd, _, table in IFD_GROUPS:
        for tag_id, info in piexif.TAGS[table].items():
            if tag_id in POINTER_TAGS:
                continue
            index[info["name"]] = (ifd, tag_id, info["type"])
    return index

NAME_INDEX = _build_name_index()


def is_supported_image(data: bytes) -> bool:
    return data[:2] in IMAGE_MAGIC or (data[:4] == b"RIFF" and data[8:12] == b"WEBP")

def load_exif(data: bytes) -> Dict[str, Any]:
    """
    Parses the EXIF block of in-memory JPEG, TIFF or WebP data.

    Raises:
        ImageFormatError: If the bytes are not one of those formats.
    """
    if not is_supported_image(data):
        raise ImageFormatError("Image data is neither JPEG, TIFF nor WebP.")
    return piexif.load(data)


def _rational_to_float(value: Tuple[int, int]) -> float:
    num, den = value
    return num / den if den else 0.0

def _decode_value(name: str, tag_type: int, raw: Any) -> MetadataValue:
    if tag_type == piexif.TYPES.Ascii:
        text = raw.decode("utf-8", errors="replace") if isinstance(raw, bytes) else str(raw)
        text = text.rstrip("\x00").strip()
        if name in DATE_TAGS:
            try:
                return datetime.strptime(text, EXIF_DATE_FORMAT)
            except ValueError:
                pass
        return text
    if tag_type in RATIONAL_TYPES:
        if raw and isinstance(raw[0], tuple):
            return [_rational_to_float(r) for r in raw]
        return _rational_to_float(raw)
    if isinstance(raw, tuple):
        return raw[0] if len(raw) == 1 else list(raw)
    return raw

def _dms_to_degrees(dms: Any, ref: Any) -> Optional[float]:
    if not isinstance(dms, list) or len(dms) != 3:
        return None
    degrees = dms[0] + dms[1] / 60 + dms[2] / 3600
    return -degrees if ref in ("S", "W") else degrees

def decode_exif(exif_dict: Dict[str, Any], metadata_filter: Optional[MetadataFilter] = None) -> MetadataRecord:
    """
    Flattens piexif IFD dictionaries into a tag-name record.

    Tags piexif has no name for are left out. When the whole GPS group is
    selected, decimal ``latitude``/``longitude`` are added alongside the raw
    GPS tags.
    """
    metadata_filter = metadata_filter or MetadataFilter()
    record = {}
    for ifd, group, table in IFD_GROUPS:
        for tag_id, raw in (exif_dict.get(ifd) or {}).items():
            info = piexif.TAGS[table].get(tag_id)
            if info is None or tag_id in POINTER_TAGS:
                continue
            name = NAME_ALIASES.get(info["name"], info["name"])
            if not metadata_filter.selects(group, name):
                continue
            record[name] = _decode_value(name, info["type"], raw)

    if metadata_filter.selects_group(GROUP_GPS):
        latitude = _dms_to_degrees(record.get("GPSLatitude"), record.get("GPSLatitudeRef"))
        longitude = _dms_to_degrees(record.get("GPSLongitude"), record.get("GPSLongitudeRef"))
        if latitude is not None and longitude is not None:
            record["latitude"] = latitude
            record["longitude"] = longitude
    return record


def _to_rational(value: Union[int, float], signed: bool) -> Tuple[int, int]:
    if isinstance(value, tuple) and len(value) == 2:
        return value
    fraction = Fraction(value).limit_denominator(1_000_000)
    if fraction < 0 and not signed:
        raise ValueError(f"negative value {value} for unsigned rational")
    return fraction.numerator, fraction.denominator

def _encode_value(name: str, tag_type: int, value: Any) -> Any:
    if tag_type == piexif.TYPES.Ascii:
        if isinstance(value, datetime):
            value = value.strftime(EXIF_DATE_FORMAT)
        if isinstance(value, bytes):
            return value
        return str(value).encode("utf-8")
    if tag_type in RATIONAL_TYPES:
        signed = tag_type == piexif.TYPES.SRational
        if isinstance(value, (list, tuple)) and value and not (
                isinstance(value, tuple) and len(value) == 2 and all(isinstance(v, int) for v in value)):
            return tuple(_to_rational(v, signed) for v in value)
        return _to_rational(value, signed)
    if tag_type == piexif.TYPES.Undefined:
        if isinstance(value, bytes):
            return value
        if isinstance(value, str):
            return value.encode("ascii")
        if isinstance(value, int):
            return bytes((value,))
        return bytes(value)
    if tag_type in INTEGER_TYPES:
        if isinstance(value, (list, tuple)):
            return tuple(int(v) for v in value)
        if isinstance(value, bytes) and tag_type == piexif.TYPES.Byte:
            return value
        return int(value)
    if tag_type in FLOAT_TYPES:
        if isinstance(value, (list, tuple)):
            return tuple(float(v) for v in value)
        return float(value)
    return value

def encode_exif(record: MetadataRecord, template: Optional[Dict[str, Any]] = None) -> bytes:
    """
    Builds an EXIF block from a tag-name record.

    Args:
        record: Tag name to value. Names piexif does not know are skipped.
        template: piexif dictionary the values are written over; data the
                  record cannot express (thumbnail, IFD1, Interop) is
                  carried over from it.

    Returns:
        The raw EXIF bytes (starting with ``Exif\\0\\0``) from piexif.dump.

    Raises:
        MetadataEncodingError: If a value does not fit its tag's type.
    """
    exif_dict = copy.deepcopy(template) if template else {}
    for ifd in ("0th", "Exif", "GPS", "Interop", "1st"):
        exif_dict.setdefault(ifd, {})

    for name, value in record.items():
        name = str(name)
        entry = NAME_INDEX.get(REVERSE_ALIASES.get(name, name))
        if entry is None:
            logger.debug(f"Skipping '{name}': not an EXIF tag")
            continue
        ifd, tag_id, tag_type = entry
        try:
            exif_dict[ifd][tag_id] = _encode_value(name, tag_type, value)
        except (TypeError, ValueError) as e:
            raise MetadataEncodingError(f"Cannot encode {name}={value!r} as EXIF: {e}") from e

    try:
        return piexif.dump(exif_dict)
    except ValueError as e:
        raise MetadataEncodingError(f"piexif could not encode metadata: {e}") from e
