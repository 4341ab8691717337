"""
Main window: owns the render loop, photo uploads and the status banners.
"""
import logging
import sys
import time
from typing import Iterable, Optional, Union
from pathlib import Path

import numpy as np
from PyQt5.QtWidgets import (
    QApplication, QFileDialog, QFrame, QHBoxLayout, QLabel, QMainWindow,
    QMessageBox, QPushButton, QVBoxLayout,
)
from PyQt5.QtCore import Qt, QProcess, QThread, QTimer, pyqtSignal
from PyQt5.QtGui import QImage, QPixmap

from galaxy import FormationController, PhotoPool
from webcam.config import Config
from webcam.gesture_recognizer import GestureState

from .scene_widget import SceneWidget
from .texture_loader import TextureLoader
from .uploads import IMAGE_FILTER, split_oversized

logger = logging.getLogger(__name__)

INSTRUCTIONS = "Open hand: scatter  •  Fist: gather  •  Pinch: inspect"

THEME = """
QLabel#Title { color: rgba(255, 215, 0, 150); font-size: 22px; letter-spacing: 4px; }
QLabel#Instructions {
    color: #fff3c4; background-color: rgba(0, 0, 0, 110);
    border: 1px solid rgba(255, 215, 0, 30); border-radius: 16px;
    padding: 8px 20px; letter-spacing: 2px;
}
QPushButton#AddButton {
    color: #ffd700; background-color: rgba(255, 255, 255, 12);
    border: 1px solid rgba(255, 215, 0, 80); border-radius: 14px; padding: 6px 20px;
}
QPushButton#AddButton:hover { background-color: rgba(255, 215, 0, 50); }
QFrame#StatusPanel { background-color: rgba(0, 0, 0, 200); border-radius: 10px; }
QFrame#StatusPanel[error="true"] { border: 1px solid rgba(255, 60, 60, 140); background-color: rgba(80, 0, 0, 120); }
QLabel#StatusText { color: #ffd700; font-size: 18px; letter-spacing: 2px; }
QLabel#StatusHint { color: rgba(255, 215, 0, 110); }
QPushButton#RetryButton { color: white; background-color: #8b1a1a; border-radius: 4px; padding: 6px 24px; }
QLabel#DebugLabel { color: #9f9; font-family: monospace; }
"""


class GalaxyWindow(QMainWindow):
    """
    Hosts the galaxy scene and everything around it.

    Gesture states from the worker are only stored; the render tick applies
    the newest one, grows the layout to the pool size, steps the controller
    and hands the snapshot to the scene.
    """
    request_texture = pyqtSignal(int, object)

    def __init__(self, config: Config, pool: PhotoPool, controller: FormationController, parent=None):
        super().__init__(parent)
        self._config = config
        self._pool = pool
        self._controller = controller

        self._latest_gesture: Optional[GestureState] = None
        self._camera_ready = False
        self._hand_visible = False
        self._processing = False
        self._error: Optional[str] = None
        self._last_tick: Optional[float] = None

        self._setup_window()
        self._setup_ui()
        self._setup_loader()

        self._timer = QTimer(self)
        self._timer.setTimerType(Qt.PreciseTimer)
        self._timer.timeout.connect(self._tick)

        self._update_status()

    def _setup_window(self):
        self.setWindowTitle("Photo Galaxy")
        self.resize(self._config.ui.width, self._config.ui.height)
        self.setStyleSheet(THEME)

    def _setup_ui(self):
        self.scene = SceneWidget(self._config.ui, self._pool)
        self.setCentralWidget(self.scene)

        layout = QVBoxLayout(self.scene)
        layout.setContentsMargins(24, 24, 24, 24)

        title = QLabel("PHOTO GALAXY")
        title.setObjectName("Title")
        title.setAlignment(Qt.AlignCenter)
        layout.addWidget(title)

        self.debug_label = QLabel()
        self.debug_label.setObjectName("DebugLabel")
        self.debug_label.setVisible(self._config.ui.debug_overlay)
        layout.addWidget(self.debug_label, 0, Qt.AlignLeft)

        layout.addStretch(1)

        # Loading / error banner
        self.status_panel = QFrame()
        self.status_panel.setObjectName("StatusPanel")
        panel_layout = QVBoxLayout(self.status_panel)
        panel_layout.setContentsMargins(32, 24, 32, 24)
        self.status_text = QLabel()
        self.status_text.setObjectName("StatusText")
        self.status_text.setAlignment(Qt.AlignCenter)
        self.status_text.setWordWrap(True)
        panel_layout.addWidget(self.status_text)
        self.status_hint = QLabel()
        self.status_hint.setObjectName("StatusHint")
        self.status_hint.setAlignment(Qt.AlignCenter)
        self.status_hint.setWordWrap(True)
        panel_layout.addWidget(self.status_hint)
        self.retry_button = QPushButton("Retry")
        self.retry_button.setObjectName("RetryButton")
        self.retry_button.clicked.connect(self._restart)
        self.retry_button.hide()
        panel_layout.addWidget(self.retry_button, 0, Qt.AlignCenter)
        layout.addWidget(self.status_panel, 0, Qt.AlignCenter)

        layout.addStretch(1)

        self.instructions = QLabel(INSTRUCTIONS)
        self.instructions.setObjectName("Instructions")
        layout.addWidget(self.instructions, 0, Qt.AlignCenter)

        bottom = QHBoxLayout()
        self.webcam_preview = QLabel()
        self.webcam_preview.setFixedSize(192, 108)
        self.webcam_preview.setScaledContents(True)
        self.webcam_preview.setVisible(self._config.ui.debug_overlay)
        bottom.addWidget(self.webcam_preview, 0, Qt.AlignLeft)
        bottom.addStretch(1)
        self.add_button = QPushButton("+ Add photos")
        self.add_button.setObjectName("AddButton")
        self.add_button.setCursor(Qt.PointingHandCursor)
        self.add_button.clicked.connect(self._open_upload_dialog)
        bottom.addWidget(self.add_button)
        bottom.addStretch(1)
        bottom.addSpacing(192)
        layout.addLayout(bottom)

    def _setup_loader(self):
        self._loader_thread = QThread(self)
        self._loader = TextureLoader(self._config.photos.max_texture_size)
        self._loader.moveToThread(self._loader_thread)
        self.request_texture.connect(self._loader.load, Qt.QueuedConnection)
        self._loader.texture_loaded.connect(self._on_texture_loaded, Qt.QueuedConnection)
        self._loader.texture_failed.connect(self._on_texture_failed, Qt.QueuedConnection)

    def start(self):
        """Begin rendering and texture loading."""
        self._loader_thread.start()
        self._last_tick = None
        self._timer.start(int(1000 / max(1, self._config.ui.fps)))

    @property
    def rendering(self) -> bool:
        """True while the render timer is running."""
        return self._timer.isActive()

    @property
    def error(self) -> Optional[str]:
        return self._error

    def shutdown(self):
        self._timer.stop()
        self._loader_thread.quit()
        self._loader_thread.wait(2000)

    # Photos

    def add_photos(self, images: Iterable[Union[str, Path, bytes]]) -> int:
        """Append to the pool and queue texture loads. Returns how many were added."""
        added = self._pool.append(images)
        for photo in added:
            self.request_texture.emit(photo.index, photo.source)
        return len(added)

    def _open_upload_dialog(self):
        paths, _ = QFileDialog.getOpenFileNames(self, "Add photos", "", IMAGE_FILTER)
        if not paths:
            return

        max_bytes = int(self._config.photos.max_upload_mb * 1024 * 1024)
        accepted, rejected = split_oversized(paths, max_bytes)
        if rejected:
            QMessageBox.warning(
                self,
                "Some photos were skipped",
                f"{len(rejected)} file(s) are larger than "
                f"{self._config.photos.max_upload_mb:g} MB or unreadable and were skipped:\n"
                + "\n".join(p.name for p in rejected),
            )
        if accepted:
            self._processing = True
            self.add_photos(accepted)
            self._update_status()

    def _on_texture_loaded(self, index: int, image: QImage):
        self._pool.set_texture(index, QPixmap.fromImage(image))
        self._finish_processing()

    def _on_texture_failed(self, index: int, reason: str):
        logger.warning("Photo %d has no texture: %s", index, reason)
        self._pool.mark_failed(index)
        self._finish_processing()

    def _finish_processing(self):
        if self._processing and self._pool.pending == 0:
            self._processing = False
            self._update_status()

    # Worker signals

    def on_gesture(self, state: GestureState):
        # Most recent result wins; older ones are simply overwritten
        self._latest_gesture = state
        if state.confidence > 0.0:
            self._hand_visible = True

    def on_hand_lost(self):
        self._hand_visible = False

    def on_camera_ready(self):
        if self._error is None:
            self._camera_ready = True
            logger.info("Camera ready")
            self._update_status()

    def on_error(self, message: str):
        """Fatal camera/tracking failure: stop rendering and wait for a restart."""
        if self._error is not None:
            return
        self._error = message
        logger.error("Fatal: %s", message)
        self._timer.stop()
        self.scene.set_terminal(True)
        self._update_status()

    def set_webcam_frame(self, frame: np.ndarray):
        """Show the debug preview (BGR frame with landmarks)."""
        if frame is None:
            self.webcam_preview.clear()
            return
        rgb = frame[:, :, ::-1].copy()
        h, w, ch = rgb.shape
        qimg = QImage(rgb.data, w, h, ch * w, QImage.Format_RGB888)
        self.webcam_preview.setPixmap(QPixmap.fromImage(qimg))

    # Render loop

    def _tick(self):
        now = time.perf_counter()
        dt = 0.0 if self._last_tick is None else now - self._last_tick
        self._last_tick = now

        state, self._latest_gesture = self._latest_gesture, None
        if state is not None:
            self._controller.apply_gesture(state.gesture)
            if self._config.ui.debug_overlay:
                self.debug_label.setText(
                    f"{state.handedness if self._hand_visible else 'no hand':<7}  "
                    f"raw {state.raw_gesture.name:<5}  stable {state.gesture.name:<5}  "
                    f"pinch {state.pinch_ratio:.2f}  ext {state.extended_fingers}  "
                    f"curl {state.curled_fingers}  -> {self._controller.formation.name}"
                )

        pool_size = len(self._pool)
        if pool_size != self._controller.count:
            self._controller.resize(pool_size)

        self._controller.step(dt)
        self.scene.set_frame(self._controller.snapshot(), dt)

    def _update_status(self):
        if self._error is not None:
            self.status_panel.setProperty("error", "true")
            self.status_text.setText("Startup failed")
            self.status_hint.setText(
                f"{self._error}\n\nAllow camera access and make sure no other "
                "application is using it, then retry."
            )
            self.retry_button.show()
            self.status_panel.show()
            self.instructions.hide()
            self.add_button.hide()
        else:
            self.status_panel.setProperty("error", "false")
            self.retry_button.hide()
            if not self._camera_ready:
                self.status_text.setText("Starting camera…")
                self.status_hint.setText("Allow camera access to control the galaxy with your hand")
                self.status_panel.show()
            elif self._processing:
                self.status_text.setText("Processing photos…")
                self.status_hint.setText("")
                self.status_panel.show()
            else:
                self.status_panel.hide()
            ready = self._camera_ready and not self._processing
            self.instructions.setVisible(ready)
            self.add_button.setVisible(self._camera_ready)
        # Re-polish so the [error="true"] selector applies
        self.status_panel.style().unpolish(self.status_panel)
        self.status_panel.style().polish(self.status_panel)

    def _restart(self):
        """Relaunch the whole application; partial camera retries are not attempted."""
        logger.info("Restarting")
        QProcess.startDetached(sys.executable, sys.argv)
        QApplication.quit()

    def keyPressEvent(self, event):
        if event.key() in (Qt.Key_Escape, Qt.Key_Q):
            self.close()
        else:
            super().keyPressEvent(event)
