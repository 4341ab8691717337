"""
Camera and tracking initialization failures.

All of these are fatal for the session: they are reported once through the
worker's error signal and the application waits for a full restart.
"""


class CameraError(Exception):
    """Base class for camera/tracking start-up failures."""

    kind = "camera error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class PermissionDenied(CameraError):
    """The OS refused access to the camera device."""

    kind = "permission denied"


class DeviceUnavailable(CameraError):
    """No usable camera: missing, busy, or producing no frames."""

    kind = "device unavailable"


class NotSupported(CameraError):
    """The platform lacks a capture backend or the tracking model cannot run."""

    kind = "not supported"
