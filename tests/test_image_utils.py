import base64
from io import BytesIO

import pytest
from PIL import Image

from exceptions import ValidationError
from image_utils import decode_image_evidence, prepare_image_for_analysis


def png_bytes(size=(2000, 1000), mode="RGBA"):
    buffer = BytesIO()
    Image.new(mode, size, (10, 200, 10, 0) if mode == "RGBA" else (10, 200, 10)).save(buffer, "PNG")
    return buffer.getvalue()


def test_decode_data_url():
    raw = png_bytes((4, 4))
    data, mime = decode_image_evidence("data:image/png;base64," + base64.b64encode(raw).decode())

    assert data == raw
    assert mime == "image/png"


def test_decode_bare_base64_defaults_to_jpeg():
    data, mime = decode_image_evidence(base64.b64encode(b"abc").decode())

    assert data == b"abc"
    assert mime == "image/jpeg"


@pytest.mark.parametrize("bad", ["", "data:image/png;base64,!!!", "not base64 at all"])
def test_decode_rejects_invalid(bad):
    with pytest.raises(ValidationError):
        decode_image_evidence(bad)


def test_prepare_shrinks_and_flattens():
    prepared = prepare_image_for_analysis(png_bytes())

    with Image.open(BytesIO(prepared)) as img:
        assert img.format == "JPEG"
        assert img.mode == "RGB"
        assert img.size == (1024, 512)
        # Fully transparent pixels land on the white background
        assert all(channel >= 250 for channel in img.getpixel((10, 10)))


def test_prepare_rejects_non_images():
    with pytest.raises(ValidationError):
        prepare_image_for_analysis(b"definitely not an image")
