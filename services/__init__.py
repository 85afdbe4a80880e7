"""AR try-on, video call and capture storage services."""

from .ar_compositor import ArCaptureCompositor, CaptureResult, NoFrameError, OverlayLoader, OverlayMode
from .frame_source import CameraFrameSource, UploadedFrameSource
from .photo_service import PhotoService
from .video_call_service import CallRequest, VideoCallService

__all__ = [
    "ArCaptureCompositor",
    "CaptureResult",
    "NoFrameError",
    "OverlayLoader",
    "OverlayMode",
    "CameraFrameSource",
    "UploadedFrameSource",
    "PhotoService",
    "CallRequest",
    "VideoCallService",
]
