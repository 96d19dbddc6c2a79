from .session import (
    CameraDevice,
    QueueCodeSource,
    ScanResourceUnavailableError,
    ScanSession,
    ScanSessionManager,
)

__all__ = [
    "CameraDevice",
    "QueueCodeSource",
    "ScanResourceUnavailableError",
    "ScanSession",
    "ScanSessionManager",
]
