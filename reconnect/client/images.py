"""
Image Upload Client

Turns a selected photo into a data URI, caches it for local preview,
and ships it to the server to be stored under img/.

An upload failure is logged and reported but never raised: registration
goes ahead with whatever photo path it already has.
"""

import base64
import mimetypes
import random
import time
from pathlib import Path
from typing import Callable, Optional, Union

from ..core.cache import LocalCache, image_key, image_path_key
from ..observability import get_logger
from .persistence import PersistenceClient, UploadResult

logger = get_logger(__name__)


def generate_image_name(
    original_filename: str,
    clock: Callable[[], float] = time.time,
    rng: Optional[random.Random] = None,
) -> str:
    """
    Collision-resistant name: image_<epoch ms>_<0..9999>.<original extension>.

    A name without a dot keeps the whole name as its "extension".
    """
    timestamp = int(clock() * 1000)
    suffix = (rng or random).randrange(10000)
    extension = original_filename.rsplit(".", 1)[-1]
    return f"image_{timestamp}_{suffix}.{extension}"


def encode_data_uri(raw: bytes, filename: str) -> str:
    mime_type, _ = mimetypes.guess_type(filename)
    encoded = base64.b64encode(raw).decode("ascii")
    return f"data:{mime_type or 'application/octet-stream'};base64,{encoded}"


class ImageUploader:
    """Encodes, caches and uploads registration photos."""

    def __init__(
        self,
        client: PersistenceClient,
        cache: Optional[LocalCache] = None,
        name_generator: Callable[[str], str] = generate_image_name,
    ):
        self._client = client
        self._cache = cache
        self._name_generator = name_generator

    def upload(self, photo: Union[Path, bytes], original_name: Optional[str] = None) -> UploadResult:
        """
        Upload a photo given as a file path or raw bytes.

        Args:
            photo: Path to the image file, or its bytes
            original_name: Original file name (required when photo is bytes)

        Raises:
            OSError: If the photo path cannot be read
            ValueError: If bytes are given without an original name
        """
        if isinstance(photo, (bytes, bytearray)):
            if not original_name:
                raise ValueError("original_name is required when uploading raw bytes")
            raw = bytes(photo)
        else:
            path = Path(photo)
            raw = path.read_bytes()
            original_name = original_name or path.name

        stored_name = self._name_generator(original_name)
        encoded = encode_data_uri(raw, original_name)

        # Preview cache works even when the server never answers
        if self._cache is not None:
            self._cache.set(image_key(stored_name), encoded)

        result = self._client.upload_image(stored_name, encoded)
        if not result.success:
            logger.error(
                "Failed to upload image",
                filename=stored_name,
                failure=result.failure.value if result.failure else None,
                message=result.message,
            )
            return result

        logger.info("Image uploaded", filename=stored_name, path=result.server_path)
        if self._cache is not None and result.server_path:
            self._cache.set(image_path_key(stored_name), result.server_path)
        return result
