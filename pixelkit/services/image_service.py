from __future__ import annotations
from pathlib import Path
from typing import Iterable, Iterator, Tuple, Union
import numpy as np

from ..models.pixel_buffer import PixelBuffer
from ..repositories.image_repository import ImageRepository


class ImageService:
    """I/O helpers.  No transform logic here; see the other services for that."""
    def __init__(self, image_repository: ImageRepository | None = None):
        self.image_repository = image_repository or ImageRepository()

    def create_buffer(self, pixels: np.ndarray) -> PixelBuffer:
        return self.image_repository.create_buffer(pixels)

    def decode(self, data: bytes) -> PixelBuffer:
        """Compressed bytes (PNG, JPEG, ...) → PixelBuffer."""
        return self.image_repository.decode(data)

    def encode(self, buffer: PixelBuffer, fmt: str | None = None) -> bytes:
        return self.image_repository.encode(buffer, fmt)

    def load(self, path: str | Path) -> PixelBuffer:
        """Load a single image from disk into a PixelBuffer."""
        return self.image_repository.load(path)

    def save(self, buffer: PixelBuffer, path: str | Path) -> Path:
        return self.image_repository.save(buffer, path)

    def stream_folder(
        self,
        folder: Union[str, Path],
        *,
        recursive: bool = False,
        exts: Iterable[str] | None = None,
    ) -> Iterator[Tuple[Path, PixelBuffer]]:
        """
        Yield images lazily instead of returning a gigantic list.
        """
        return self.image_repository.iter_dir(folder, recursive=recursive, exts=exts)

    def to_data_uri(self, buffer: PixelBuffer, fmt: str | None = None) -> str:
        return self.image_repository.to_data_uri(buffer, fmt)

    def from_data_uri(self, text: str) -> PixelBuffer:
        return self.image_repository.from_data_uri(text)

    def get_dimensions(self, buffer: PixelBuffer) -> Tuple[int, int]:
        """(width, height)"""
        return self.image_repository.retrieve_dimensions(buffer)
