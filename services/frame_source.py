"""Frame sources for AR try-on captures: a browser upload or a local camera."""

from __future__ import annotations

import threading
from io import BytesIO
from typing import Optional

import cv2
from PIL import Image, UnidentifiedImageError

from common.services.logging import log_event


_camera_lock = threading.Lock()


class CameraError(RuntimeError):
    pass


class CameraBusyError(CameraError):
    """Another caller already holds the camera."""


class FrameSource:
    """Supplies one ready frame to the compositor, or None when nothing is readable."""

    def read_frame(self) -> Optional[Image.Image]:
        raise NotImplementedError


class UploadedFrameSource(FrameSource):
    """A still frame posted by the browser's live preview."""

    def __init__(self, data: Optional[bytes]) -> None:
        self._data = data or b""

    def read_frame(self) -> Optional[Image.Image]:
        if not self._data:
            return None
        try:
            with Image.open(BytesIO(self._data)) as image:
                image.load()
                return image.convert("RGB")
        except (UnidentifiedImageError, OSError, Image.DecompressionBombError) as exc:
            log_event("warning", "frame.undecodable", reason=str(exc), size=len(self._data))
            return None


class CameraFrameSource(FrameSource):
    """Local camera, one holder at a time; released when the with-block exits.

    ``read_frame`` returns an RGB Pillow image, or None when the device is not
    open or yields nothing.
    """

    def __init__(self, device_index: int = 0, width: int = 1280, height: int = 720) -> None:
        self._device_index = device_index
        self._width = width
        self._height = height
        self._capture = None

    def __enter__(self) -> "CameraFrameSource":
        if not _camera_lock.acquire(blocking=False):
            raise CameraBusyError("Camera is already in use by another try-on session")
        try:
            capture = cv2.VideoCapture(self._device_index)
            capture.set(cv2.CAP_PROP_FRAME_WIDTH, self._width)
            capture.set(cv2.CAP_PROP_FRAME_HEIGHT, self._height)
            if not capture.isOpened():
                capture.release()
                raise CameraError(f"Could not open camera #{self._device_index}")
        except BaseException:
            _camera_lock.release()
            raise
        self._capture = capture
        log_event("info", "camera.acquired", device=self._device_index)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()

    def release(self) -> None:
        if self._capture is None:
            return
        try:
            self._capture.release()
        finally:
            self._capture = None
            _camera_lock.release()
            log_event("info", "camera.released", device=self._device_index)

    @property
    def is_open(self) -> bool:
        return self._capture is not None

    def read_frame(self) -> Optional[Image.Image]:
        if self._capture is None:
            return None
        ok, frame = self._capture.read()
        if not ok or frame is None:
            return None
        rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        return Image.fromarray(rgb)
