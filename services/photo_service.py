"""Stores AR try-on captures and turns uploads into frame bytes."""

from __future__ import annotations

from pathlib import Path
from typing import Tuple

from werkzeug.datastructures import FileStorage

from common.services.logging import log_event

from .ar_compositor import CaptureResult


MAX_FRAME_BYTES = 10 * 1024 * 1024
MAX_STORED_CAPTURES = 200


class PhotoService:
    """Reads captured frames and writes finished try-on photos."""

    def __init__(self, capture_dir: Path, max_stored: int = MAX_STORED_CAPTURES) -> None:
        self._capture_dir = capture_dir
        self._max_stored = max_stored
        self._capture_dir.mkdir(parents=True, exist_ok=True)

    def read_frame_upload(self, uploaded: FileStorage) -> bytes:
        """Raw bytes of an uploaded frame; empty bytes mean "no frame"."""

        if uploaded is None or uploaded.filename is None:
            raise ValueError("No frame was uploaded.")
        binary = uploaded.read(MAX_FRAME_BYTES + 1)
        if len(binary) > MAX_FRAME_BYTES:
            raise ValueError("Frame is too large.")
        return binary

    def _unique_path(self, filename: str) -> Path:
        target_path = self._capture_dir / filename
        stem, suffix = target_path.stem, target_path.suffix
        counter = 1
        while target_path.exists():
            target_path = self._capture_dir / f"{stem}-{counter}{suffix}"
            counter += 1
        return target_path

    def prune(self) -> int:
        """Delete the oldest captures beyond ``max_stored``; returns how many went."""

        captures = sorted(self._capture_dir.glob("*.png"), key=lambda p: p.stat().st_mtime)
        excess = captures[: max(0, len(captures) - self._max_stored)]
        for path in excess:
            path.unlink(missing_ok=True)
        if excess:
            log_event("info", "capture.pruned", removed=len(excess))
        return len(excess)

    def save_capture(self, result: CaptureResult) -> Tuple[str, str]:
        """Save the capture under its download name, return (file path, relative path).

        Same-millisecond captures get a ``-1``, ``-2`` suffix instead of overwriting.
        """

        target_path = self._unique_path(result.filename)
        target_path.write_bytes(result.png_bytes)
        self.prune()
        relative_path = target_path.relative_to(target_path.parents[2])
        return str(target_path), str(relative_path)
