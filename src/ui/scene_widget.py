"""
Galaxy scene widget: star backdrop plus one billboard per photo.
"""
from typing import Optional

import numpy as np
from PyQt5.QtWidgets import QWidget
from PyQt5.QtCore import Qt, QRectF
from PyQt5.QtGui import QPainter, QPen, QColor, QFont

from galaxy import Formation, FrameState, PhotoPool
from webcam.config import UIConfig

from .projection import Camera, light_factor, project

FRAME_COLOR = QColor(255, 215, 0, 160)
PLACEHOLDER_COLOR = QColor(120, 40, 160)


class SceneWidget(QWidget):
    """
    Paints the current FrameState.

    Photos whose texture has not arrived yet are skipped, so the scene fills
    in progressively as images decode.
    """

    def __init__(self, config: UIConfig, pool: PhotoPool, parent=None):
        super().__init__(parent)
        self._config = config
        self._pool = pool
        self._camera = Camera(fov=config.fov, distance=config.camera_distance)
        self._frame: Optional[FrameState] = None
        self._terminal = False

        rng = np.random.default_rng(1234)
        directions = rng.normal(size=(config.star_count, 3))
        directions /= np.linalg.norm(directions, axis=1, keepdims=True)
        self._stars = directions * rng.uniform(40.0, 90.0, size=(config.star_count, 1))
        self._star_alpha = rng.uniform(60, 220, size=config.star_count).astype(int)

        self.setAttribute(Qt.WA_OpaquePaintEvent)
        self.setObjectName("SceneWidget")

    @property
    def camera(self) -> Camera:
        return self._camera

    def set_frame(self, frame: FrameState, dt: float) -> None:
        """Take the controller's snapshot for this frame and schedule a repaint."""
        self._frame = frame
        self._camera.orbit(dt, self._config.orbit_speed, frame.formation == Formation.FOCUSED)
        self.update()

    @property
    def terminal(self) -> bool:
        return self._terminal

    def set_terminal(self, terminal: bool) -> None:
        """Stop drawing the galaxy entirely (fatal error state)."""
        self._terminal = terminal
        self.update()

    def paintEvent(self, event):
        painter = QPainter(self)
        painter.setRenderHint(QPainter.Antialiasing)
        painter.setRenderHint(QPainter.SmoothPixmapTransform)
        painter.fillRect(self.rect(), Qt.black)

        if self._terminal:
            return

        self._draw_stars(painter)
        if self._frame is not None and self._frame.count:
            self._draw_photos(painter, self._frame)

    def _draw_stars(self, painter: QPainter) -> None:
        w, h = self.width(), self.height()
        screen, _, visible = project(self._stars, self._camera, w, h)
        painter.setPen(Qt.NoPen)
        for (x, y), alpha, vis in zip(screen, self._star_alpha, visible):
            if vis and 0 <= x < w and 0 <= y < h:
                painter.setBrush(QColor(255, 240, 200, int(alpha)))
                painter.drawEllipse(QRectF(x - 1.0, y - 1.0, 2.0, 2.0))

    def _draw_photos(self, painter: QPainter, frame: FrameState) -> None:
        w, h = self.width(), self.height()
        photos = self._pool.all()
        count = min(frame.count, len(photos))
        if count == 0:
            return

        screen, depth, visible = project(frame.positions[:count], self._camera, w, h)
        light = light_factor(depth, self._camera, self._config.ambient_light)
        focal = self._camera.focal_length(h)

        # Painter's algorithm: farthest first
        for i in np.argsort(-depth):
            photo = photos[i]
            opacity = float(frame.opacities[i])
            if not visible[i] or opacity < 0.01 or not (photo.loaded or photo.failed):
                continue

            edge = self._config.photo_size * float(frame.scales[i]) * focal / depth[i]
            if photo.loaded:
                aspect = photo.texture.width() / max(1, photo.texture.height())
            else:
                aspect = 1.0
            if aspect >= 1.0:
                pw, ph = edge, edge / aspect
            else:
                pw, ph = edge * aspect, edge
            x, y = screen[i]
            rect = QRectF(x - pw / 2.0, y - ph / 2.0, pw, ph)
            if not rect.intersects(QRectF(0, 0, w, h)):
                continue

            painter.setOpacity(opacity)
            if photo.loaded:
                painter.drawPixmap(rect, photo.texture, QRectF(photo.texture.rect()))
            else:
                painter.fillRect(rect, PLACEHOLDER_COLOR)

            shade = 1.0 - float(light[i])
            if shade > 0.0:
                painter.fillRect(rect, QColor(0, 0, 0, int(255 * shade)))

            painter.setPen(QPen(FRAME_COLOR, 1.0))
            painter.setBrush(Qt.NoBrush)
            painter.drawRect(rect)

            if i == frame.focus_index and frame.formation == Formation.FOCUSED:
                painter.setOpacity(min(1.0, opacity))
                painter.setPen(QColor(255, 230, 150))
                painter.setFont(QFont(self.font().family(), 11))
                painter.drawText(
                    QRectF(rect.left(), rect.bottom() + 6, rect.width(), 24),
                    Qt.AlignHCenter | Qt.AlignTop,
                    photo.name,
                )
        painter.setOpacity(1.0)
