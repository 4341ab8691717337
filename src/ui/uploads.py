"""
Upload filtering done before photos reach the pool.
"""
import logging
from pathlib import Path
from typing import Iterable, List, Tuple, Union

logger = logging.getLogger(__name__)

IMAGE_FILTER = "Images (*.jpg *.jpeg *.png *.bmp *.webp *.gif)"


def split_oversized(
    paths: Iterable[Union[str, Path]], max_bytes: int
) -> Tuple[List[Path], List[Path]]:
    """
    Separate files that fit the per-file size ceiling from those that don't.

    Unreadable paths are treated as rejected.

    Returns:
        (accepted, rejected), each in the original order.
    """
    accepted, rejected = [], []
    for path in map(Path, paths):
        try:
            size = path.stat().st_size
        except OSError as e:
            logger.warning("Skipping %s: %s", path, e)
            rejected.append(path)
            continue
        if size > max_bytes:
            logger.info("Skipping %s: %d bytes exceeds %d", path, size, max_bytes)
            rejected.append(path)
        else:
            accepted.append(path)
    return accepted, rejected
