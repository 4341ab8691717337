"""
Photo Galaxy Webcam Module

Camera capture, hand tracking and gesture recognition using MediaPipe.
"""
from .config import Config, load_config
from .errors import CameraError, PermissionDenied, DeviceUnavailable, NotSupported
from .camera import CameraSource
from .hand_tracker import HandTracker, HandLandmarks, CameraLandmarkSource, LandmarkSource
from .gesture_recognizer import GestureRecognizer, GestureState, Gesture, classify

__all__ = [
    'Config',
    'load_config',
    'CameraError',
    'PermissionDenied',
    'DeviceUnavailable',
    'NotSupported',
    'CameraSource',
    'HandTracker',
    'HandLandmarks',
    'CameraLandmarkSource',
    'LandmarkSource',
    'GestureRecognizer',
    'GestureState',
    'Gesture',
    'classify',
]
