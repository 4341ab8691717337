"""
Background worker for MediaPipe hand tracking and gesture recognition.
Runs in a separate QThread to avoid blocking the render loop.
"""
import logging
import time
import threading
from typing import Callable, Optional
from PyQt5.QtCore import QObject, pyqtSignal

from .config import Config
from .hand_tracker import CameraLandmarkSource, HandLandmarks, LandmarkSource, draw_landmarks
from .gesture_recognizer import GestureRecognizer

logger = logging.getLogger(__name__)

SourceFactory = Callable[[Config, Callable[[str], None]], LandmarkSource]


def _camera_source_factory(config: Config, on_error: Callable[[str], None]) -> LandmarkSource:
    return CameraLandmarkSource(config, on_error=on_error)


class WebcamWorker(QObject):
    """
    Worker class that handles the tracking loop.

    A capture thread pulls frames and landmarks as fast as the tracker allows
    and overwrites a single slot; this loop consumes whatever is newest, so
    frames the tracker could not keep up with are dropped, never queued.
    """
    # Signals
    gesture_detected = pyqtSignal(object)  # Emits GestureState
    hand_lost = pyqtSignal()
    camera_ready = pyqtSignal()            # Once, after the first processed frame
    frame_ready = pyqtSignal(object)       # BGR preview frame with landmarks
    error = pyqtSignal(str)                # At most once, fatal

    def __init__(self, config: Config, source_factory: Optional[SourceFactory] = None, parent=None):
        super().__init__(parent)
        self._config = config
        self._source_factory = source_factory or _camera_source_factory
        self._source: Optional[LandmarkSource] = None
        self._recognizer: Optional[GestureRecognizer] = None
        self._is_running = False
        self._stop_requested = threading.Event()
        self._error_reported = False
        self._ready_reported = False

        self._latest_landmarks: Optional[HandLandmarks] = None
        self._has_result = False
        self._landmarks_lock = threading.Lock()
        self._capture_thread: Optional[threading.Thread] = None

    def _report_error(self, message: str) -> None:
        if self._error_reported:
            return
        self._error_reported = True
        self.error.emit(message)

    def _capture_loop(self):
        """Background thread to pull camera frames as fast as possible."""
        while self._running():
            try:
                landmarks = self._source.next_landmarks()
            except Exception as e:
                logger.warning("Capture thread error: %s", e)
                # A bad frame counts as no hand
                landmarks = None
                time.sleep(0.1)  # Cool down on error
            with self._landmarks_lock:
                self._latest_landmarks = landmarks
                self._has_result = True

    def _running(self) -> bool:
        return self._is_running and not self._stop_requested.is_set()

    def _take_result(self):
        with self._landmarks_lock:
            if not self._has_result:
                return False, None
            landmarks = self._latest_landmarks
            self._latest_landmarks = None
            self._has_result = False
        return True, landmarks

    def start_process(self):
        """Main processing loop. Runs in the worker thread until stop_process()."""
        self._source = self._source_factory(self._config, self._report_error)
        self._recognizer = GestureRecognizer(self._config.gestures)

        if not self._source.start():
            # Sources report their own reason; make sure something is reported
            self._report_error("Could not start the camera")
            return

        if self._stop_requested.is_set():
            logger.info("Stop requested while the camera was starting")
            self._source.stop()
            return

        self._is_running = True
        self._capture_thread = threading.Thread(target=self._capture_loop, daemon=True)
        self._capture_thread.start()

        poll_interval = 1.0 / max(1, self._config.camera.fps * 2)
        preview_interval = 0.2
        last_preview = 0.0
        hand_visible = False

        try:
            while self._running():
                loop_start = time.perf_counter()

                fresh, landmarks = self._take_result()
                if fresh:
                    state = self._recognizer.update(landmarks)
                    if not self._ready_reported:
                        self._ready_reported = True
                        self.camera_ready.emit()
                    self.gesture_detected.emit(state)

                    if landmarks is None and hand_visible:
                        self.hand_lost.emit()
                    hand_visible = landmarks is not None

                    if self._config.ui.debug_overlay and loop_start - last_preview >= preview_interval:
                        frame = getattr(self._source, "frame", None)
                        if frame is not None:
                            self.frame_ready.emit(draw_landmarks(frame, landmarks))
                        last_preview = loop_start

                elapsed = time.perf_counter() - loop_start
                sleep_time = poll_interval - elapsed
                if sleep_time > 0:
                    time.sleep(sleep_time)

        except Exception as e:
            logger.exception("Worker loop failed")
            self._report_error(f"Tracking stopped: {e}")
        finally:
            self._is_running = False
            if self._capture_thread:
                self._capture_thread.join(timeout=1.0)
            self._source.stop()

    def stop_process(self):
        """Signal the loop to stop; resources are released in the worker thread.

        Safe to call before or during start_process(); the request is never lost.
        """
        self._stop_requested.set()
        self._is_running = False
