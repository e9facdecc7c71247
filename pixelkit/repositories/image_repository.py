from __future__ import annotations
from pathlib import Path
from typing import Union, Iterable, Iterator, Tuple
from io import BytesIO
import base64
import binascii
import logging
import os
import re

import numpy as np
import cv2
from PIL import Image as PILImage
from dotenv import load_dotenv

from ..errors import InvalidParameterError, MalformedInputError
from ..models.pixel_buffer import PixelBuffer

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

# Pillow format names keyed by the short names callers use.
PIL_FORMATS = {
    "png": "PNG",
    "jpeg": "JPEG",
    "jpg": "JPEG",
    "webp": "WEBP",
    "bmp": "BMP",
    "tiff": "TIFF",
    "tif": "TIFF",
}
MIME_TYPES = {
    "PNG": "image/png",
    "JPEG": "image/jpeg",
    "WEBP": "image/webp",
    "BMP": "image/bmp",
    "TIFF": "image/tiff",
}
_DATA_URI = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(?P<params>(;[^;,]*)*?);base64,", re.IGNORECASE)


class ImageRepository:
    """
    Codec + transport for PixelBuffer entities.

    • decode: OpenCV (any format cv2 reads; grey / BGR / BGRA / 16-bit → RGBA8)
    • encode: Pillow
    • transport: base64 data URIs
    """
    def __init__(self):
        self.VALID_EXTS = {
            ext.strip().lower()
            for ext in os.getenv(
                "PIXELKIT_VALID_IMAGE_EXTENSIONS", ".png,.jpg,.jpeg,.bmp,.webp,.tif,.tiff"
            ).split(",")
            if ext.strip()
        }
        self.output_format = os.getenv("PIXELKIT_OUTPUT_FORMAT", "png").lower()
        self.jpeg_quality = int(os.getenv("PIXELKIT_JPEG_QUALITY", "95"))
        self.png_compress_level = int(os.getenv("PIXELKIT_PNG_COMPRESS_LEVEL", "6"))

    @staticmethod
    def create_buffer(pixels: np.ndarray) -> PixelBuffer:
        return PixelBuffer(pixels)

    @staticmethod
    def retrieve_dimensions(buffer: PixelBuffer) -> Tuple[int, int]:
        return buffer.width, buffer.height

    # ─── Decoding ───────────────────────────────────────────────────
    @staticmethod
    def _to_rgba8(arr: np.ndarray) -> np.ndarray:
        """Normalise whatever cv2.imdecode returned to RGBA uint8."""
        if arr.dtype == np.uint16:
            arr = (arr >> 8).astype(np.uint8)
        elif arr.dtype != np.uint8:
            arr = cv2.normalize(arr, None, 0, 255, cv2.NORM_MINMAX).astype(np.uint8)

        if arr.ndim == 2:
            return cv2.cvtColor(arr, cv2.COLOR_GRAY2RGBA)
        channels = arr.shape[2]
        if channels == 1:
            return cv2.cvtColor(arr[:, :, 0], cv2.COLOR_GRAY2RGBA)
        if channels == 3:
            return cv2.cvtColor(arr, cv2.COLOR_BGR2RGBA)
        if channels == 4:
            return cv2.cvtColor(arr, cv2.COLOR_BGRA2RGBA)
        raise MalformedInputError(f"Unsupported channel count: {channels}")

    def decode(self, data: bytes) -> PixelBuffer:
        """
        Decode a compressed image (PNG, JPEG, WebP, ...) into a PixelBuffer.

        Raises:
            MalformedInputError: empty, corrupt or unsupported data.
        """
        if not data:
            raise MalformedInputError("Cannot decode an empty byte sequence")
        raw = np.frombuffer(bytes(data), dtype=np.uint8)
        try:
            arr = cv2.imdecode(raw, cv2.IMREAD_UNCHANGED)
        except cv2.error as err:
            raise MalformedInputError(f"Could not decode {len(data)} bytes: {err}") from err
        if arr is None:
            raise MalformedInputError(f"Could not decode {len(data)} bytes: corrupt or unsupported format")
        buffer = PixelBuffer(np.ascontiguousarray(self._to_rgba8(arr)))
        logger.debug(f"decoded {len(data)} bytes → {buffer}")
        return buffer

    def load(self, path: Union[str, Path]) -> PixelBuffer:
        path = Path(path)
        if not path.is_file():
            raise FileNotFoundError(f"Image not found or unreadable: {path}")
        buffer = self.decode(path.read_bytes())
        logger.info(f"Loaded {path} ({buffer.width}x{buffer.height})")
        return buffer

    # ─── Encoding ───────────────────────────────────────────────────
    def _pil_format(self, fmt: str | None) -> str:
        fmt = (fmt or self.output_format).lower().lstrip(".")
        try:
            return PIL_FORMATS[fmt]
        except KeyError:
            raise InvalidParameterError(
                f"Unsupported output format {fmt!r}; expected one of {sorted(PIL_FORMATS)}"
            ) from None

    def encode(self, buffer: PixelBuffer, fmt: str | None = None) -> bytes:
        """Encode to bytes; JPEG / BMP drop the alpha channel."""
        pil_format = self._pil_format(fmt)
        pil_obj = PILImage.fromarray(buffer.pixels)  # (H, W, 4) uint8 → RGBA
        options = {}
        if pil_format in ("JPEG", "BMP"):
            pil_obj = pil_obj.convert("RGB")
        if pil_format in ("JPEG", "WEBP"):
            options["quality"] = self.jpeg_quality
        if pil_format == "PNG":
            options["compress_level"] = self.png_compress_level

        out = BytesIO()
        pil_obj.save(out, format=pil_format, **options)
        return out.getvalue()

    def save(self, buffer: PixelBuffer, path: Union[str, Path]) -> Path:
        path = Path(path)
        if path.suffix.lower() not in self.VALID_EXTS:
            raise InvalidParameterError(f"Unsupported file extension: {path.suffix!r}")
        path.write_bytes(self.encode(buffer, path.suffix))
        logger.info(f"Saved {buffer} to {path}")
        return path

    # ─── Transport ──────────────────────────────────────────────────
    def to_data_uri(self, buffer: PixelBuffer, fmt: str | None = None) -> str:
        """e.g. ``data:image/png;base64,iVBORw0...``"""
        pil_format = self._pil_format(fmt)
        payload = base64.b64encode(self.encode(buffer, pil_format.lower())).decode("ascii")
        return f"data:{MIME_TYPES[pil_format]};base64,{payload}"

    def from_data_uri(self, text: str) -> PixelBuffer:
        """Accepts a full data URI or a bare base64 payload."""
        if not isinstance(text, str):
            raise MalformedInputError(f"Expected a base64 string, got {type(text).__name__}")
        text = text.strip()
        match = _DATA_URI.match(text)
        payload = text[match.end():] if match else text
        try:
            data = base64.b64decode("".join(payload.split()), validate=True)
        except (binascii.Error, ValueError) as err:
            raise MalformedInputError(f"Invalid base64 payload: {err}") from err
        return self.decode(data)

    # ─── Folders ────────────────────────────────────────────────────
    def iter_dir(
        self,
        folder: Union[str, Path],
        *,
        recursive: bool = False,
        exts: Iterable[str] | None = None,
    ) -> Iterator[Tuple[Path, PixelBuffer]]:
        """
        Yield (path, buffer) one at a time.  Nothing accumulates in memory.
        Undecodable files are logged and skipped.
        """
        folder = Path(folder)
        if not folder.is_dir():
            raise NotADirectoryError(folder)

        allowed = {e.lower() for e in (exts or self.VALID_EXTS)}
        pattern = "**/*" if recursive else "*"

        for p in sorted(folder.glob(pattern)):
            if p.suffix.lower() not in allowed or not p.is_file():
                logger.debug(f"Skipping {p}")
                continue
            try:
                yield p, self.load(p)
            except MalformedInputError as err:
                logger.warning(f"Skipping {p.name}: {err}")
