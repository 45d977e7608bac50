from datetime import datetime

import piexif
import pytest

from mediatools.exceptions import ImageFormatError, MetadataEncodingError
from mediatools.exif_codec import decode_exif, encode_exif, load_exif
from mediatools.models import CAMERA_INFO, EXIF_ONLY, GPS_ONLY, MetadataFilter


def test_decode_flattens_all_groups(sample_exif):
    record = decode_exif(sample_exif)

    assert record["Make"] == "Canon"
    assert record["Model"] == "EOS 5D"
    assert record["FNumber"] == pytest.approx(2.8)
    assert record["ExposureTime"] == pytest.approx(0.004)
    assert record["ISO"] == 400
    assert "ISOSpeedRatings" not in record
    assert record["LensModel"] == "EF 50mm"
    assert record["GPSLatitude"] == [37.0, 30.0, 0.0]
    assert record["GPSLatitudeRef"] == "N"


def test_decode_revives_dates(sample_exif):
    record = decode_exif(sample_exif)

    assert record["DateTimeOriginal"] == datetime(2022, 12, 31, 23, 59, 58)
    assert record["DateTime"] == datetime(2023, 1, 2, 3, 4, 5)


def test_decode_keeps_unparseable_date_as_string():
    record = decode_exif({"0th": {piexif.ImageIFD.DateTime: b"sometime"}})

    assert record["DateTime"] == "sometime"


def test_decode_adds_decimal_coordinates(sample_exif):
    record = decode_exif(sample_exif, GPS_ONLY)

    assert record["latitude"] == pytest.approx(37.5)
    assert record["longitude"] == pytest.approx(-122.26)
    assert "Make" not in record


def test_decode_exif_group_only(sample_exif):
    record = decode_exif(sample_exif, EXIF_ONLY)

    assert set(record) == {"DateTimeOriginal", "FNumber", "ExposureTime", "ISO", "LensModel"}


def test_decode_picks_individual_tags(sample_exif):
    record = decode_exif(sample_exif, CAMERA_INFO)

    assert set(record) == {"Make", "Model", "LensModel", "FNumber", "ISO", "ExposureTime"}


def test_decode_tag_pick_skips_derived_coordinates(sample_exif):
    record = decode_exif(sample_exif, MetadataFilter(pick=("GPSLatitude", "GPSLongitude")))

    assert set(record) == {"GPSLatitude", "GPSLongitude"}


def test_decode_zero_denominator():
    record = decode_exif({"Exif": {piexif.ExifIFD.FNumber: (0, 0)}})

    assert record["FNumber"] == 0.0


def test_encode_converts_to_tag_types():
    exif_bytes = encode_exif({
        "Artist": "X",
        "FNumber": 2.8,
        "ISO": 800,
        "DateTimeOriginal": datetime(2024, 5, 1, 12, 30),
        "GPSLatitude": [37.0, 30.0, 0.0],
    })

    loaded = piexif.load(exif_bytes)
    assert loaded["0th"][piexif.ImageIFD.Artist] == b"X"
    assert loaded["Exif"][piexif.ExifIFD.FNumber] == (14, 5)
    assert loaded["Exif"][piexif.ExifIFD.DateTimeOriginal] == b"2024:05:01 12:30:00"
    assert loaded["GPS"][piexif.GPSIFD.GPSLatitude] == ((37, 1), (30, 1), (0, 1))
    assert piexif.ExifIFD.ISOSpeedRatings in loaded["Exif"]


def test_encode_skips_names_that_are_not_tags():
    exif_bytes = encode_exif({"latitude": 37.5, "Make": "Canon"})

    loaded = piexif.load(exif_bytes)
    assert loaded["0th"][piexif.ImageIFD.Make] == b"Canon"


def test_encode_keeps_template_data(sample_exif):
    exif_bytes = encode_exif({"Artist": "X"}, template=sample_exif)

    loaded = piexif.load(exif_bytes)
    assert loaded["0th"][piexif.ImageIFD.Artist] == b"X"
    assert loaded["0th"][piexif.ImageIFD.Make] == b"Canon"
    assert loaded["Exif"][piexif.ExifIFD.LensModel] == b"EF 50mm"


def test_encode_round_trips_decoded_record(sample_exif):
    record = decode_exif(sample_exif)

    assert decode_exif(piexif.load(encode_exif(record))) == record


def test_encode_rejects_bad_value():
    with pytest.raises(MetadataEncodingError):
        encode_exif({"FNumber": "wide open"})


def test_encode_rejects_negative_unsigned_rational():
    with pytest.raises(MetadataEncodingError):
        encode_exif({"FocalLength": -35.0})


def test_load_exif_rejects_unknown_data():
    with pytest.raises(ImageFormatError):
        load_exif(b"not an image at all")
