import base64
import binascii
import logging
import re
from io import BytesIO
from typing import Tuple

from PIL import Image, UnidentifiedImageError

from exceptions import ValidationError

logger = logging.getLogger(__name__)

DATA_URL_PATTERN = re.compile(r'^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(;[\w=-]+)*;base64,(?P<data>.*)$', re.DOTALL)
MAX_ANALYSIS_SIZE = (1024, 1024)


def decode_image_evidence(image_evidence: str) -> Tuple[bytes, str]:
    """
    Decode submitted image evidence into raw bytes.

    Accepts either a data URL ("data:image/png;base64,....") or a bare base64 string.
    Returns (bytes, mime_type). Raises ValidationError if the payload is not valid base64.
    """
    if not image_evidence or not isinstance(image_evidence, str):
        raise ValidationError("Image evidence is empty.", {"imageEvidence": "required"})

    mime_type = "image/jpeg"
    payload = image_evidence.strip()
    match = DATA_URL_PATTERN.match(payload)
    if match:
        mime_type = match.group('mime') or mime_type
        payload = match.group('data')

    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValidationError("Image evidence is not valid base64.", {"imageEvidence": str(e)}) from e

    if not data:
        raise ValidationError("Image evidence is empty.", {"imageEvidence": "required"})
    return data, mime_type


def prepare_image_for_analysis(image_bytes: bytes, max_size: Tuple[int, int] = MAX_ANALYSIS_SIZE) -> bytes:
    """Flatten transparency onto white, shrink to fit max_size and re-encode as JPEG."""
    try:
        with Image.open(BytesIO(image_bytes)) as img:
            if img.mode in ('RGBA', 'LA') or (img.mode == 'P' and 'transparency' in img.info):
                img = img.convert('RGBA')
                background = Image.new('RGB', img.size, (255, 255, 255))
                background.paste(img, mask=img.getchannel('A'))
                img = background

            img.thumbnail(max_size)
            output_buffer = BytesIO()
            img.convert('RGB').save(output_buffer, "JPEG", quality=85)
            return output_buffer.getvalue()
    except UnidentifiedImageError as e:
        logger.warning(f"Rejected image evidence that Pillow could not identify: {e}")
        raise ValidationError("Image evidence is not a recognised image format.", {"imageEvidence": "invalid"}) from e
