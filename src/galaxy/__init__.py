"""
Photo Galaxy Core

Formation state machine, layouts and the photo pool.
"""
from .formation import Formation, FormationController, FrameState, TRANSITIONS
from .layouts import Layout, scattered_layout, gathered_layout, focused_layout
from .photo_pool import Photo, PhotoPool, discover_photos

__all__ = [
    'Formation',
    'FormationController',
    'FrameState',
    'TRANSITIONS',
    'Layout',
    'scattered_layout',
    'gathered_layout',
    'focused_layout',
    'Photo',
    'PhotoPool',
    'discover_photos',
]
