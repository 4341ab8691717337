from pathlib import Path

from webcam.config import CameraConfig, Config, FormationConfig, load_config


def test_missing_file_gives_defaults(tmp_path):
    config = load_config(tmp_path / "absent.yaml")
    assert config.camera == CameraConfig()
    assert config.formation == FormationConfig()
    assert Path(config.photos.directory) == tmp_path / "photos"


def test_partial_file_overrides_only_given_keys(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "camera:\n"
        "  device_id: 2\n"
        "gestures:\n"
        "  dwell_frames: 3\n"
        "  unknown_key: 1\n"
        "formation:\n"
        "  focus_position: [0, 1, 10]\n"
    )
    config = load_config(path)

    assert config.camera.device_id == 2
    assert config.camera.fps == Config().camera.fps
    assert config.gestures.dwell_frames == 3
    assert not hasattr(config.gestures, "unknown_key")
    assert config.formation.focus_position == (0, 1, 10)


def test_empty_file_gives_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("")
    config = load_config(path)
    assert config.gestures == Config().gestures
    assert config.ui == Config().ui


def test_relative_paths_follow_the_config_file(tmp_path, monkeypatch):
    config_dir = tmp_path / "conf"
    config_dir.mkdir()
    path = config_dir / "config.yaml"
    path.write_text(
        "photos:\n"
        "  directory: my_photos\n"
        "mediapipe:\n"
        "  model_path: models/hand.task\n"
    )
    elsewhere = tmp_path / "elsewhere"
    elsewhere.mkdir()
    monkeypatch.chdir(elsewhere)

    config = load_config(path)

    assert Path(config.photos.directory) == config_dir / "my_photos"
    assert Path(config.mediapipe.model_path) == config_dir / "models" / "hand.task"


def test_absolute_photo_directory_is_kept(tmp_path):
    target = tmp_path / "library"
    path = tmp_path / "config.yaml"
    path.write_text(f"photos:\n  directory: {target}\n")
    assert Path(load_config(path).photos.directory) == target


def test_shipped_config_loads():
    path = Path(__file__).parent.parent / "config.yaml"
    config = load_config(path)
    assert config.photos.max_upload_mb == 15
    assert config.gestures.dwell_frames >= 1
    assert Path(config.photos.directory).is_absolute()
