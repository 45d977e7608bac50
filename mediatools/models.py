"""Data models for mediatools."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Tuple, Union

@dataclass
class TranscriptionOptions:
    """Settings for a single transcription call."""
    model: str = "openai/whisper-small"
    language: str = "ko"
    translate: bool = False # True translates into English
    device: str = "cuda" # Falls back to CPU when CUDA is unavailable
    chunk_length_s: float = 30.0

    @property
    def task(self) -> str:
        return "translate" if self.translate else "transcribe"

@dataclass
class TranscriptSegment:
    """A timed span of transcribed text."""
    text: str
    start: Optional[float]
    end: Optional[float]

@dataclass
class TranscriptionResult:
    """Normalized output of the ASR pipeline."""
    text: str = ""
    segments: List[TranscriptSegment] = field(default_factory=list)
    audio_path: Optional[str] = None


class ExifTag(str, Enum):
    """Well-known tag names. Any other tag name known to piexif is also accepted."""
    DATE_TIME_ORIGINAL = "DateTimeOriginal"
    DATE_TIME = "DateTime"
    DATE_TIME_DIGITIZED = "DateTimeDigitized"
    MAKE = "Make"
    MODEL = "Model"
    LENS_MODEL = "LensModel"
    FOCAL_LENGTH = "FocalLength"
    F_NUMBER = "FNumber"
    ISO = "ISO"
    EXPOSURE_TIME = "ExposureTime"
    ARTIST = "Artist"
    COPYRIGHT = "Copyright"
    IMAGE_DESCRIPTION = "ImageDescription"
    SOFTWARE = "Software"
    ORIENTATION = "Orientation"
    GPS_LATITUDE = "GPSLatitude"
    GPS_LATITUDE_REF = "GPSLatitudeRef"
    GPS_LONGITUDE = "GPSLongitude"
    GPS_LONGITUDE_REF = "GPSLongitudeRef"

    def __str__(self) -> str:
        return self.value


MetadataValue = Union[str, int, float, datetime, bytes, list]
MetadataRecord = Dict[str, MetadataValue]

# Tag groups, named after the IFD they are read from.
GROUP_IFD0 = "IFD0"
GROUP_EXIF = "ExifIFD"
GROUP_GPS = "GPS"
ALL_GROUPS = (GROUP_IFD0, GROUP_EXIF, GROUP_GPS)

@dataclass(frozen=True)
class MetadataFilter:
    """
    Selects which fields a metadata read returns.

    Entries in `pick` are either group names (IFD0, ExifIFD, GPS) or tag
    names. An empty pick selects every group.
    """
    pick: Tuple[str, ...] = ()

    @property
    def groups(self) -> Tuple[str, ...]:
        return tuple(p for p in self.pick if p in ALL_GROUPS)

    @property
    def tags(self) -> Tuple[str, ...]:
        return tuple(str(p) for p in self.pick if p not in ALL_GROUPS)

    def selects_group(self, group: str) -> bool:
        """True when every tag of `group` is wanted."""
        return not self.pick or group in self.groups

    def selects(self, group: str, tag_name: str) -> bool:
        return self.selects_group(group) or tag_name in self.tags


EXIF_ONLY = MetadataFilter(pick=(GROUP_EXIF,))
GPS_ONLY = MetadataFilter(pick=(GROUP_GPS,))
DATE_TIME = MetadataFilter(pick=(ExifTag.DATE_TIME_ORIGINAL.value, ExifTag.DATE_TIME.value))
CAMERA_INFO = MetadataFilter(pick=(
    ExifTag.MAKE.value,
    ExifTag.MODEL.value,
    ExifTag.LENS_MODEL.value,
    ExifTag.FOCAL_LENGTH.value,
    ExifTag.F_NUMBER.value,
    ExifTag.ISO.value,
    ExifTag.EXPOSURE_TIME.value,
))
