"""
Camera acquisition.

Opens the capture device once, proves it is live by reading a frame, and
reports the outcome through one-shot callbacks. A failed start is terminal:
retrying means restarting the whole application.
"""
import logging
import os
import sys
from pathlib import Path
from typing import Callable, Optional

import cv2
import numpy as np

from .config import CameraConfig
from .errors import CameraError, DeviceUnavailable, NotSupported, PermissionDenied

logger = logging.getLogger(__name__)


class CameraSource:
    """
    Live video stream from an OpenCV capture device.

    Callbacks:
        on_ready(stream): called exactly once when the first frame was read.
        on_error(message): called exactly once if the camera cannot start.
    """

    def __init__(
        self,
        config: CameraConfig,
        on_ready: Optional[Callable[[cv2.VideoCapture], None]] = None,
        on_error: Optional[Callable[[str], None]] = None,
        capture_factory: Optional[Callable[[int], cv2.VideoCapture]] = None,
    ):
        self._config = config
        self._on_ready = on_ready
        self._on_error = on_error
        self._capture_factory = capture_factory or cv2.VideoCapture

        self._cap: Optional[cv2.VideoCapture] = None
        self._first_frame: Optional[np.ndarray] = None
        self.error: Optional[CameraError] = None

    @property
    def device_node(self) -> Path:
        return Path(f"/dev/video{self._config.device_id}")

    @property
    def is_running(self) -> bool:
        return self._cap is not None

    @property
    def failed(self) -> bool:
        return self.error is not None

    def start(self) -> Optional[cv2.VideoCapture]:
        """
        Open the camera.

        Returns:
            The capture handle, or None if the camera could not start. In the
            latter case `error` holds the reason and no further device calls
            are made by this source.
        """
        if self._cap is not None:
            return self._cap
        if self.error is not None:
            logger.debug("Camera start refused after earlier failure: %s", self.error)
            return None

        try:
            self._cap = self._open()
        except CameraError as e:
            self.error = e
            logger.error("Camera failed to start (%s): %s", e.kind, e)
            if self._on_error:
                self._on_error(str(e))
            return None

        logger.info(
            "Camera %d live at %dx%d",
            self._config.device_id,
            int(self._cap.get(cv2.CAP_PROP_FRAME_WIDTH)),
            int(self._cap.get(cv2.CAP_PROP_FRAME_HEIGHT)),
        )
        if self._on_ready:
            self._on_ready(self._cap)
        return self._cap

    def _open(self) -> cv2.VideoCapture:
        device_id = self._config.device_id
        try:
            cap = self._capture_factory(device_id)
        except PermissionError as e:
            raise PermissionDenied(f"Access to camera {device_id} was denied: {e}") from e
        except (cv2.error, OSError) as e:
            raise NotSupported(f"Video capture is not supported here: {e}") from e

        if cap is None or not cap.isOpened():
            if cap is not None:
                cap.release()
            raise self._diagnose_open_failure()

        cap.set(cv2.CAP_PROP_FRAME_WIDTH, self._config.width)
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self._config.height)
        cap.set(cv2.CAP_PROP_FPS, self._config.fps)
        # Keep only the newest frame so a slow tracker never sees stale images
        cap.set(cv2.CAP_PROP_BUFFERSIZE, 1)

        ret, frame = cap.read()
        if not ret or frame is None:
            cap.release()
            raise DeviceUnavailable(
                f"Camera {device_id} opened but delivered no frames. "
                "Is another application using it?"
            )
        self._first_frame = self._prepare(frame)
        return cap

    def _diagnose_open_failure(self) -> CameraError:
        device_id = self._config.device_id
        node = self.device_node
        if sys.platform.startswith("linux") and node.exists():
            if not os.access(node, os.R_OK | os.W_OK):
                return PermissionDenied(
                    f"Permission denied for {node}. "
                    "Add your user to the 'video' group and log in again."
                )
        return DeviceUnavailable(f"Could not open camera {device_id}.")

    def _prepare(self, frame: np.ndarray) -> np.ndarray:
        if self._config.mirror:
            frame = cv2.flip(frame, 1)
        return frame

    def read(self) -> Optional[np.ndarray]:
        """Grab the next frame (mirrored if configured), or None."""
        if self._first_frame is not None:
            frame, self._first_frame = self._first_frame, None
            return frame
        if self._cap is None:
            return None
        ret, frame = self._cap.read()
        if not ret or frame is None:
            return None
        return self._prepare(frame)

    def release(self) -> None:
        if self._cap is not None:
            self._cap.release()
            self._cap = None
        self._first_frame = None
