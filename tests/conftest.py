import piexif
import pytest
from PIL import Image


SAMPLE_EXIF = {
    "0th": {
        piexif.ImageIFD.Make: b"Canon",
        piexif.ImageIFD.Model: b"EOS 5D",
        piexif.ImageIFD.Artist: b"Y",
        piexif.ImageIFD.DateTime: b"2023:01:02 03:04:05",
    },
    "Exif": {
        piexif.ExifIFD.DateTimeOriginal: b"2022:12:31 23:59:58",
        piexif.ExifIFD.FNumber: (28, 10),
        piexif.ExifIFD.ExposureTime: (1, 250),
        piexif.ExifIFD.ISOSpeedRatings: 400,
        piexif.ExifIFD.LensModel: b"EF 50mm",
    },
    "GPS": {
        piexif.GPSIFD.GPSLatitudeRef: b"N",
        piexif.GPSIFD.GPSLatitude: ((37, 1), (30, 1), (0, 1)),
        piexif.GPSIFD.GPSLongitudeRef: b"W",
        piexif.GPSIFD.GPSLongitude: ((122, 1), (15, 1), (3600, 100)),
    },
}


@pytest.fixture
def make_jpeg(tmp_path):
    """Writes a small JPEG into tmp_path, optionally with an EXIF block."""
    def _make(name="photo.jpg", exif=None):
        path = tmp_path / name
        image = Image.new("RGB", (16, 16), color=(200, 30, 30))
        if exif is None:
            image.save(path, "JPEG")
        else:
            image.save(path, "JPEG", exif=piexif.dump(exif))
        return str(path)
    return _make


@pytest.fixture
def sample_jpeg(make_jpeg, sample_exif):
    return make_jpeg(exif=sample_exif)


@pytest.fixture
def corrupt_file(tmp_path):
    path = tmp_path / "broken.jpg"
    path.write_bytes(b"this is not an image")
    return str(path)


@pytest.fixture
def sample_exif():
    return {ifd: dict(tags) for ifd, tags in SAMPLE_EXIF.items()}
