import sys

import numpy as np
import pytest

from webcam import CameraLandmarkSource, CameraSource
from webcam.config import CameraConfig, Config
from webcam.errors import DeviceUnavailable, NotSupported, PermissionDenied


class FakeCapture:
    def __init__(self, opened=True, frames=1):
        self.opened = opened
        self.frames = frames
        self.released = False
        self.props = {}

    def isOpened(self):
        return self.opened

    def set(self, prop, value):
        self.props[prop] = value
        return True

    def get(self, prop):
        return 0

    def read(self):
        if self.frames <= 0:
            return False, None
        self.frames -= 1
        frame = np.zeros((4, 6, 3), dtype=np.uint8)
        frame[:, 0] = 255  # left column marks orientation
        return True, frame

    def release(self):
        self.released = True


class Factory:
    """Counts how often the device was asked for."""

    def __init__(self, result=None, raises=None):
        self.result = result
        self.raises = raises
        self.calls = 0

    def __call__(self, device_id):
        self.calls += 1
        if self.raises is not None:
            raise self.raises
        return self.result


def make_source(factory, mirror=False):
    ready, errors = [], []
    source = CameraSource(
        CameraConfig(mirror=mirror),
        on_ready=ready.append,
        on_error=errors.append,
        capture_factory=factory,
    )
    return source, ready, errors


def test_start_success_reports_ready_once():
    cap = FakeCapture(frames=3)
    source, ready, errors = make_source(Factory(cap))

    assert source.start() is cap
    assert source.start() is cap
    assert ready == [cap]
    assert errors == []
    assert source.is_running


def test_first_frame_is_not_lost():
    source, _, _ = make_source(Factory(FakeCapture(frames=1)))
    source.start()
    assert source.read() is not None
    assert source.read() is None


def test_mirror_flips_frames():
    source, _, _ = make_source(Factory(FakeCapture(frames=1)), mirror=True)
    source.start()
    frame = source.read()
    assert frame[0, -1, 0] == 255
    assert frame[0, 0, 0] == 0


def test_permission_error_is_terminal():
    factory = Factory(raises=PermissionError("denied"))
    source, ready, errors = make_source(factory)

    assert source.start() is None
    assert isinstance(source.error, PermissionDenied)
    assert len(errors) == 1
    assert ready == []

    # No retry, no second report
    assert source.start() is None
    assert factory.calls == 1
    assert len(errors) == 1


@pytest.mark.skipif(not sys.platform.startswith("linux"), reason="device nodes are linux only")
def test_unreadable_device_node_is_permission_denied(monkeypatch, tmp_path):
    node = tmp_path / "video0"
    node.touch()
    monkeypatch.setattr(CameraSource, "device_node", property(lambda self: node))
    monkeypatch.setattr("webcam.camera.os.access", lambda path, mode: False)

    cap = FakeCapture(opened=False)
    source, _, errors = make_source(Factory(cap))

    assert source.start() is None
    assert isinstance(source.error, PermissionDenied)
    assert "video" in errors[0]
    assert cap.released


def test_missing_device_is_unavailable(monkeypatch, tmp_path):
    monkeypatch.setattr(CameraSource, "device_node", property(lambda self: tmp_path / "video9"))
    source, ready, errors = make_source(Factory(FakeCapture(opened=False)))

    assert source.start() is None
    assert isinstance(source.error, DeviceUnavailable)
    assert len(errors) == 1
    assert ready == []


def test_no_frames_is_unavailable():
    cap = FakeCapture(frames=0)
    source, ready, errors = make_source(Factory(cap))

    assert source.start() is None
    assert isinstance(source.error, DeviceUnavailable)
    assert cap.released
    assert not source.is_running
    assert ready == []


def test_backend_failure_is_not_supported():
    source, _, errors = make_source(Factory(raises=OSError("no backend")))
    assert source.start() is None
    assert isinstance(source.error, NotSupported)
    assert errors == [str(source.error)]


def test_release_is_idempotent():
    cap = FakeCapture(frames=2)
    source, _, _ = make_source(Factory(cap))
    source.start()
    source.release()
    source.release()
    assert cap.released
    assert source.read() is None


class FakeTracker:
    def __init__(self, fail=False):
        self.fail = fail
        self.closed = False
        self.frame_count = 0

    def start(self):
        if self.fail:
            raise NotSupported("model missing")

    def process(self, frame):
        self.frame_count += 1
        return None

    def close(self):
        self.closed = True


def test_landmark_source_releases_camera_when_tracker_fails():
    cap = FakeCapture(frames=2)
    errors = []
    camera = CameraSource(CameraConfig(), capture_factory=Factory(cap))
    source = CameraLandmarkSource(
        Config(), on_error=errors.append, camera=camera, tracker=FakeTracker(fail=True)
    )

    assert source.start() is False
    assert errors == ["model missing"]
    assert cap.released


def test_landmark_source_reads_through_tracker():
    tracker = FakeTracker()
    camera = CameraSource(CameraConfig(), capture_factory=Factory(FakeCapture(frames=2)))
    source = CameraLandmarkSource(Config(), camera=camera, tracker=tracker)

    assert source.start() is True
    assert source.next_landmarks() is None
    assert source.frame is not None
    assert source.frame_count == 1

    source.stop()
    assert tracker.closed
    assert source.frame is None
