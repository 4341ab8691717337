"""
Config loader for Photo Galaxy.
Loads YAML configuration with dataclass validation.
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple
import yaml


@dataclass
class CameraConfig:
    device_id: int = 0
    width: int = 1280
    height: int = 720
    fps: int = 30
    mirror: bool = True


@dataclass
class MediaPipeConfig:
    model_path: Optional[str] = None  # None = models/hand_landmarker.task
    max_num_hands: int = 2
    min_detection_confidence: float = 0.5
    min_presence_confidence: float = 0.5
    min_tracking_confidence: float = 0.5
    min_hand_confidence: float = 0.6  # Below this the frame counts as "no hand"


@dataclass
class GestureConfig:
    extend_ratio: float = 1.15     # wrist->tip / wrist->pip above this = extended
    curl_ratio: float = 0.9        # ... below this = curled
    pinch_threshold: float = 0.3   # thumb-index gap relative to palm size
    min_confidence: float = 0.5
    dwell_frames: int = 5          # Consecutive frames before a symbol is accepted


@dataclass
class FormationConfig:
    smoothing_rate: float = 3.5    # 1/s, exponential approach speed
    convergence_epsilon: float = 1e-4
    seed: int = 7

    scatter_radius: float = 14.0
    scatter_inner: float = 6.0

    gather_radius: float = 2.5
    gather_jitter: float = 0.35
    gather_scale: float = 0.6

    focus_position: Tuple[float, float, float] = (0.0, 0.0, 12.0)
    focus_scale: float = 4.0
    backdrop_spread: float = 1.4
    dim_opacity: float = 0.15


@dataclass
class PhotoConfig:
    directory: str = "photos"
    extensions: Tuple[str, ...] = (".jpg", ".jpeg", ".png", ".bmp", ".webp", ".gif")
    max_upload_mb: float = 15.0
    max_texture_size: int = 512


@dataclass
class UIConfig:
    width: int = 1280
    height: int = 800
    fps: int = 60
    fov: float = 55.0
    camera_distance: float = 30.0
    photo_size: float = 2.0        # World-space edge length at scale 1
    orbit_speed: float = 0.08      # rad/s while not focused
    ambient_light: float = 0.35
    star_count: int = 250
    debug_overlay: bool = False


@dataclass
class Config:
    camera: CameraConfig = field(default_factory=CameraConfig)
    mediapipe: MediaPipeConfig = field(default_factory=MediaPipeConfig)
    gestures: GestureConfig = field(default_factory=GestureConfig)
    formation: FormationConfig = field(default_factory=FormationConfig)
    photos: PhotoConfig = field(default_factory=PhotoConfig)
    ui: UIConfig = field(default_factory=UIConfig)


def _dict_to_dataclass(cls, data: dict):
    """Convert a dict to a dataclass, ignoring unknown keys."""
    if data is None:
        return cls()
    field_names = {f.name for f in cls.__dataclass_fields__.values()}
    filtered = {k: v for k, v in data.items() if k in field_names}
    # YAML gives lists; the dataclasses use tuples for sequences
    for key, value in filtered.items():
        if isinstance(value, list):
            filtered[key] = tuple(value)
    return cls(**filtered)


def _resolve_paths(config: Config, base_dir: Path) -> Config:
    """Anchor relative paths at the config file's directory, not the working directory."""
    photos_dir = Path(config.photos.directory).expanduser()
    if not photos_dir.is_absolute():
        config.photos.directory = str(base_dir / photos_dir)
    if config.mediapipe.model_path:
        model_path = Path(config.mediapipe.model_path).expanduser()
        if not model_path.is_absolute():
            config.mediapipe.model_path = str(base_dir / model_path)
    return config


def load_config(config_path: Optional[Path] = None) -> Config:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to config file. If None, uses default config.yaml
                    in project root.

    Relative paths inside the file (photos directory, model path) are
    resolved against the directory that holds it.

    Returns:
        Config dataclass with all settings.
    """
    if config_path is None:
        # Default to config.yaml in project root
        config_path = Path(__file__).parent.parent.parent / "config.yaml"

    config_path = Path(config_path)

    if not config_path.exists():
        # Return defaults if no config file
        return _resolve_paths(Config(), config_path.absolute().parent)

    with open(config_path, 'r') as f:
        data = yaml.safe_load(f) or {}

    config = Config(
        camera=_dict_to_dataclass(CameraConfig, data.get('camera')),
        mediapipe=_dict_to_dataclass(MediaPipeConfig, data.get('mediapipe')),
        gestures=_dict_to_dataclass(GestureConfig, data.get('gestures')),
        formation=_dict_to_dataclass(FormationConfig, data.get('formation')),
        photos=_dict_to_dataclass(PhotoConfig, data.get('photos')),
        ui=_dict_to_dataclass(UIConfig, data.get('ui')),
    )
    return _resolve_paths(config, config_path.absolute().parent)
