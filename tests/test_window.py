import time

import pytest
from PyQt5.QtCore import QBuffer, QByteArray, QIODevice, Qt
from PyQt5.QtGui import QImage

from galaxy import Formation, FormationController, PhotoPool
from webcam.config import Config
from webcam.gesture_recognizer import Gesture, GestureState
from ui import GalaxyWindow, TextureLoader


def png_bytes(width=40, height=20):
    image = QImage(width, height, QImage.Format_RGB32)
    image.fill(Qt.red)
    data = QByteArray()
    buffer = QBuffer(data)
    buffer.open(QIODevice.WriteOnly)
    image.save(buffer, "PNG")
    buffer.close()
    return bytes(data)


def wait_for(qapp, condition, timeout=5.0):
    deadline = time.monotonic() + timeout
    while not condition() and time.monotonic() < deadline:
        qapp.processEvents()
        time.sleep(0.01)
    return condition()


@pytest.fixture
def galaxy(qapp):
    config = Config()
    pool = PhotoPool()
    controller = FormationController(config.formation)
    window = GalaxyWindow(config, pool, controller)
    yield window, pool, controller
    window.shutdown()
    window.deleteLater()


def test_pool_growth_reaches_layout_on_next_frame(galaxy):
    window, pool, controller = galaxy

    window.add_photos([f"{i}.jpg" for i in range(5)])
    assert controller.count == 0
    window._tick()
    assert controller.count == 5

    window.on_gesture(GestureState(gesture=Gesture.FIST))
    window._tick()
    assert controller.formation == Formation.GATHERED

    window.add_photos([b"a", b"b", b"c"])
    window._tick()

    assert len(pool) == 8
    assert controller.count == 8
    assert len(controller.targets.positions) == 8
    assert controller.formation == Formation.GATHERED


def test_only_latest_gesture_is_applied(galaxy):
    window, _, controller = galaxy
    window.add_photos(["a.jpg", "b.jpg"])

    window.on_gesture(GestureState(gesture=Gesture.FIST))
    window.on_gesture(GestureState(gesture=Gesture.PINCH))
    window._tick()

    assert controller.formation == Formation.FOCUSED


def test_fatal_error_is_terminal(galaxy):
    window, _, _ = galaxy
    window.start()
    assert window.rendering

    window.on_error("Permission denied for /dev/video0.")
    window.on_error("Tracking stopped: later failure")
    window.on_camera_ready()

    assert not window.rendering
    assert window.scene.terminal
    assert window.error == "Permission denied for /dev/video0."
    assert window.status_text.text() == "Startup failed"
    assert "Permission denied" in window.status_hint.text()
    assert "later failure" not in window.status_hint.text()
    assert not window.retry_button.isHidden()
    assert window.add_button.isHidden()


def test_camera_ready_hides_banner(galaxy):
    window, _, _ = galaxy
    assert window.status_text.text() == "Starting camera…"
    assert window.add_button.isHidden()

    window.on_camera_ready()

    assert window.status_panel.isHidden()
    assert not window.add_button.isHidden()
    assert window.error is None


def test_debug_readout_tracks_hand_presence(qapp):
    config = Config()
    config.ui.debug_overlay = True
    controller = FormationController(config.formation)
    window = GalaxyWindow(config, PhotoPool(), controller)
    try:
        window.on_gesture(GestureState(gesture=Gesture.OPEN, handedness="Right", confidence=0.9))
        window._tick()
        assert window.debug_label.text().startswith("Right")

        window.on_hand_lost()
        window.on_gesture(GestureState(gesture=Gesture.OPEN))
        window._tick()
        assert window.debug_label.text().startswith("no hand")
    finally:
        window.shutdown()
        window.deleteLater()


def test_textures_load_in_the_background(galaxy, qapp, tmp_path):
    window, pool, _ = galaxy
    photo = tmp_path / "1.png"
    photo.write_bytes(png_bytes())
    window.start()

    window.add_photos([photo, b"not an image"])

    assert wait_for(qapp, lambda: pool.pending == 0)
    assert pool.get(0).loaded
    assert pool.get(1).failed
    assert window.rendering


def test_texture_loader_decodes_and_downscales(qapp):
    loader = TextureLoader(max_size=16)
    loaded, failed = [], []
    loader.texture_loaded.connect(lambda i, image: loaded.append((i, image)))
    loader.texture_failed.connect(lambda i, reason: failed.append((i, reason)))

    loader.load(3, png_bytes(40, 20))

    assert failed == []
    (index, image), = loaded
    assert index == 3
    assert (image.width(), image.height()) == (16, 8)


def test_texture_loader_reports_bad_input(qapp, tmp_path):
    loader = TextureLoader()
    failed = []
    loader.texture_failed.connect(lambda i, reason: failed.append(i))

    loader.load(0, b"\x00junk")
    loader.load(1, tmp_path / "missing.jpg")

    assert failed == [0, 1]
