"""
Background image decoding for photo textures.
"""
import logging
from pathlib import Path

from PyQt5.QtCore import QObject, Qt, pyqtSignal, pyqtSlot
from PyQt5.QtGui import QImage

logger = logging.getLogger(__name__)


class TextureLoader(QObject):
    """
    Decodes photos into QImages on its own thread.

    QImage (unlike QPixmap) may be created off the GUI thread; the window
    converts results to pixmaps when the signal arrives.
    """
    texture_loaded = pyqtSignal(int, QImage)
    texture_failed = pyqtSignal(int, str)

    def __init__(self, max_size: int = 512, parent=None):
        super().__init__(parent)
        self._max_size = max_size

    @pyqtSlot(int, object)
    def load(self, index: int, source) -> None:
        if isinstance(source, (bytes, bytearray)):
            image = QImage.fromData(bytes(source))
            label = f"<{len(source)} bytes>"
        else:
            image = QImage(str(Path(source)))
            label = str(source)

        if image.isNull():
            logger.warning("Could not decode photo %d (%s)", index, label)
            self.texture_failed.emit(index, f"Unreadable image: {label}")
            return

        if max(image.width(), image.height()) > self._max_size:
            image = image.scaled(
                self._max_size, self._max_size, Qt.KeepAspectRatio, Qt.SmoothTransformation
            )
        self.texture_loaded.emit(index, image)
