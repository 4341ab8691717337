"""
Append-only, ordered collection of photos.
"""
from dataclasses import dataclass
import logging
from pathlib import Path
import re
import threading
from typing import Any, Iterable, List, Optional, Sequence, Union

logger = logging.getLogger(__name__)

ImageSource = Union[Path, bytes]


@dataclass
class Photo:
    """
    One photo in the galaxy.

    Attributes:
        index: Position in the pool, never changes
        source: File path or encoded image bytes
        name: Display name
        texture: Renderer texture handle, None until loaded
        failed: Texture could not be decoded
    """
    index: int
    source: ImageSource
    name: str
    texture: Optional[Any] = None
    failed: bool = False

    @property
    def loaded(self) -> bool:
        return self.texture is not None


class PhotoPool:
    """
    Ordered photos, growing only at the end.

    append() may be called from any thread; everything else is read on the
    render thread.
    """

    def __init__(self):
        self._photos: List[Photo] = []
        self._lock = threading.Lock()

    def append(self, images: Iterable[Union[str, Path, bytes]]) -> List[Photo]:
        """Add images at the end. Returns the new Photo entries."""
        added = []
        with self._lock:
            for image in images:
                index = len(self._photos)
                if isinstance(image, (bytes, bytearray)):
                    photo = Photo(index=index, source=bytes(image), name=f"photo-{index + 1}")
                else:
                    path = Path(image)
                    photo = Photo(index=index, source=path, name=path.name)
                self._photos.append(photo)
                added.append(photo)
        if added:
            logger.info("Added %d photo(s), pool size %d", len(added), len(self))
        return added

    def all(self) -> List[Photo]:
        """Snapshot of the photos in index order."""
        with self._lock:
            return list(self._photos)

    def get(self, index: int) -> Photo:
        with self._lock:
            return self._photos[index]

    def set_texture(self, index: int, texture: Any) -> None:
        with self._lock:
            photo = self._photos[index]
            photo.texture = texture
            photo.failed = False

    def mark_failed(self, index: int) -> None:
        with self._lock:
            self._photos[index].failed = True

    @property
    def pending(self) -> int:
        """Photos still waiting for a texture."""
        with self._lock:
            return sum(1 for p in self._photos if p.texture is None and not p.failed)

    def __len__(self) -> int:
        with self._lock:
            return len(self._photos)


def _natural_key(path: Path):
    # "2.jpg" sorts before "10.jpg"
    return [int(part) if part.isdigit() else part.lower() for part in re.split(r"(\d+)", path.name)]


def discover_photos(directory: Union[str, Path], extensions: Sequence[str]) -> List[Path]:
    """Image files directly inside `directory`, in natural name order."""
    directory = Path(directory)
    if not directory.is_dir():
        logger.warning("Photo directory %s does not exist", directory)
        return []
    wanted = {ext.lower() for ext in extensions}
    files = [p for p in directory.iterdir() if p.is_file() and p.suffix.lower() in wanted]
    return sorted(files, key=_natural_key)
