"""
Photo Galaxy UI Module

PyQt5 window and galaxy scene rendering.
"""
from .projection import Camera, project
from .scene_widget import SceneWidget
from .texture_loader import TextureLoader
from .main_window import GalaxyWindow

__all__ = [
    'Camera',
    'project',
    'SceneWidget',
    'TextureLoader',
    'GalaxyWindow',
]
