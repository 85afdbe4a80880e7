"""AR try-on still capture: mirrored frame + product overlay + watermark -> PNG.

Capture runs through ``CaptureState``: idle -> drawing -> overlay_loading ->
compositing -> done, or failed when no frame could be read. The overlay is
best effort; when it cannot be loaded the photo is still produced.
"""

from __future__ import annotations

import base64
import time
from dataclasses import dataclass, field
from enum import Enum
from io import BytesIO
from typing import Any, Callable, Dict, Optional, Sequence, Tuple, Union

import requests
from PIL import Image, ImageDraw, ImageFilter, ImageFont, ImageOps

from common.services.logging import log_event
from common.utils.image_source import DEFAULT_API_ORIGIN, PLACEHOLDER_IMAGE_URL, resolve_image_source

from .frame_source import FrameSource


WATERMARK_TEXT = "KalaSetu AR Try-On"
WATERMARK_FONT_SIZE = 24
WATERMARK_MARGIN = 20
OVERLAY_ALPHA = 0.9
CAPTURE_FILENAME_PREFIX = "kalasetu-ar-tryon-"


class OverlayMode(str, Enum):
    JEWELRY = "jewelry"
    TEXTILE = "textile"
    POTTERY = "pottery"

    @classmethod
    def parse(cls, value: Union["OverlayMode", str, None]) -> "OverlayMode":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value or "").strip().lower())
        except ValueError:
            return cls.JEWELRY


@dataclass(frozen=True)
class Placement:
    """Overlay rectangle as fractions of the output frame."""

    x: float
    y: float
    width: float
    height: float

    def scale(self, frame_width: int, frame_height: int) -> Tuple[int, int, int, int]:
        return (
            round(self.x * frame_width),
            round(self.y * frame_height),
            max(1, round(self.width * frame_width)),
            max(1, round(self.height * frame_height)),
        )


OVERLAY_PLACEMENTS: Dict[OverlayMode, Placement] = {
    OverlayMode.JEWELRY: Placement(0.3, 0.4, 0.4, 0.2),
    OverlayMode.TEXTILE: Placement(0.2, 0.3, 0.6, 0.5),
    OverlayMode.POTTERY: Placement(0.6, 0.6, 0.3, 0.3),
}


def overlay_rect(mode: Union[OverlayMode, str], frame_width: int, frame_height: int) -> Tuple[int, int, int, int]:
    return OVERLAY_PLACEMENTS[OverlayMode.parse(mode)].scale(frame_width, frame_height)


def capture_filename(timestamp_ms: int) -> str:
    return f"{CAPTURE_FILENAME_PREFIX}{timestamp_ms}.png"


class CaptureState(str, Enum):
    IDLE = "idle"
    DRAWING = "drawing"
    OVERLAY_LOADING = "overlay_loading"
    COMPOSITING = "compositing"
    DONE = "done"
    FAILED = "failed"


class CaptureError(Exception):
    pass


class NoFrameError(CaptureError):
    """The frame source had no readable frame."""


class OverlayUnavailable(CaptureError):
    """Every overlay load attempt failed."""


@dataclass
class CaptureSession:
    mode: OverlayMode
    width: int = 0
    height: int = 0
    surface: Optional[Image.Image] = None
    state: CaptureState = CaptureState.IDLE

    def advance(self, state: CaptureState) -> None:
        log_event("debug", "ar.capture_state", previous=self.state.value, state=state.value, mode=self.mode.value)
        self.state = state


@dataclass
class CaptureResult:
    png_bytes: bytes
    width: int
    height: int
    mode: OverlayMode
    overlay_applied: bool
    overlay_url: str
    taken_at_ms: int
    state: CaptureState = field(default=CaptureState.DONE)

    @property
    def filename(self) -> str:
        return capture_filename(self.taken_at_ms)

    @property
    def data_url(self) -> str:
        return "data:image/png;base64," + base64.b64encode(self.png_bytes).decode("ascii")


def _open_image(fp) -> Image.Image:
    with Image.open(fp) as image:
        image.load()
        return image.convert("RGBA")


class OverlayLoader:
    """Loads an overlay image: direct load first, in-memory fetch as fallback.

    The attempts run one after the other and the first success wins.
    """

    def __init__(self, http: Optional[requests.Session] = None, timeout: float = 10) -> None:
        self._http = http or requests.Session()
        self._timeout = timeout

    @property
    def attempts(self) -> Sequence[Tuple[str, Callable[[str], Image.Image]]]:
        return (("direct", self.load_direct), ("blob", self.load_via_blob))

    def load(self, url: str) -> Image.Image:
        failures = []
        for name, attempt in self.attempts:
            try:
                return attempt(url)
            except (requests.RequestException, OSError, ValueError, Image.DecompressionBombError) as exc:
                log_event("warning", "ar.overlay_attempt_failed", attempt=name, url=url[:120], reason=str(exc))
                failures.append(f"{name}: {exc}")
        raise OverlayUnavailable("; ".join(failures))

    def load_direct(self, url: str) -> Image.Image:
        if url.startswith("data:"):
            _, _, payload = url.partition(",")
            return _open_image(BytesIO(base64.b64decode(payload)))
        response = self._http.get(url, stream=True, timeout=self._timeout)
        try:
            response.raise_for_status()
            # read through requests so a truncated body surfaces as a RequestException
            body = b"".join(response.iter_content(chunk_size=65536))
            return _open_image(BytesIO(body))
        finally:
            response.close()

    def load_via_blob(self, url: str) -> Image.Image:
        response = self._http.get(url, timeout=self._timeout)
        response.raise_for_status()
        blob = BytesIO(response.content)
        return _open_image(blob)


def _load_font(size: int) -> ImageFont.ImageFont:
    for path in [
        "DejaVuSans-Bold.ttf",
        "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
        "Arial Bold.ttf",
        "/Library/Fonts/Arial Bold.ttf",
        "/System/Library/Fonts/Supplemental/Arial Bold.ttf",
        "arialbd.ttf",
    ]:
        try:
            return ImageFont.truetype(path, size)
        except OSError:
            continue
    return ImageFont.load_default()


class ArCaptureCompositor:
    """Turns one camera frame and a product image field into the try-on photo."""

    def __init__(
        self,
        loader: Optional[OverlayLoader] = None,
        *,
        asset_origin: str = DEFAULT_API_ORIGIN,
        placeholder: str = PLACEHOLDER_IMAGE_URL,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._loader = loader or OverlayLoader()
        self._asset_origin = asset_origin
        self._placeholder = placeholder
        self._clock = clock

    def capture(
        self,
        frame_source: FrameSource,
        overlay_field: Any,
        mode: Union[OverlayMode, str] = OverlayMode.JEWELRY,
    ) -> CaptureResult:
        session = CaptureSession(mode=OverlayMode.parse(mode))

        frame = frame_source.read_frame()
        if frame is None or frame.width == 0 or frame.height == 0:
            session.advance(CaptureState.FAILED)
            log_event("warning", "ar.capture_no_frame", mode=session.mode.value)
            raise NoFrameError("Camera has not produced a frame yet")

        session.advance(CaptureState.DRAWING)
        session.width, session.height = frame.size
        # mirrored to match the live preview
        session.surface = ImageOps.mirror(frame.convert("RGBA"))

        session.advance(CaptureState.OVERLAY_LOADING)
        overlay_url = resolve_image_source(overlay_field, 0, self._asset_origin, self._placeholder)
        log_event("info", "ar.overlay_requested", url=overlay_url[:120], mode=session.mode.value)
        try:
            overlay = self._loader.load(overlay_url)
        except OverlayUnavailable as exc:
            log_event("error", "ar.overlay_unavailable", url=overlay_url[:120], reason=str(exc))
            overlay = None

        session.advance(CaptureState.COMPOSITING)
        if overlay is not None:
            self._draw_overlay(session, overlay)
        self._draw_watermark(session)

        buffer = BytesIO()
        session.surface.convert("RGB").save(buffer, format="PNG")
        session.surface = None
        session.advance(CaptureState.DONE)

        result = CaptureResult(
            png_bytes=buffer.getvalue(),
            width=session.width,
            height=session.height,
            mode=session.mode,
            overlay_applied=overlay is not None,
            overlay_url=overlay_url,
            taken_at_ms=int(self._clock() * 1000),
        )
        log_event(
            "info",
            "ar.capture_done",
            mode=session.mode.value,
            size=f"{result.width}x{result.height}",
            overlay_applied=result.overlay_applied,
        )
        return result

    def _draw_overlay(self, session: CaptureSession, overlay: Image.Image) -> None:
        x, y, w, h = overlay_rect(session.mode, session.width, session.height)
        layer = overlay.convert("RGBA").resize((w, h), Image.LANCZOS)
        layer.putalpha(layer.getchannel("A").point(lambda a: int(a * OVERLAY_ALPHA)))
        session.surface.alpha_composite(layer, dest=(x, y))

    def _draw_watermark(self, session: CaptureSession) -> None:
        font = _load_font(WATERMARK_FONT_SIZE)
        probe = ImageDraw.Draw(session.surface)
        _, _, _, text_bottom = probe.textbbox((0, 0), WATERMARK_TEXT, font=font)
        position = (WATERMARK_MARGIN, max(0, session.height - WATERMARK_MARGIN - text_bottom))

        shadow = Image.new("RGBA", session.surface.size, (0, 0, 0, 0))
        ImageDraw.Draw(shadow).text(position, WATERMARK_TEXT, font=font, fill=(0, 0, 0, 255))
        session.surface.alpha_composite(shadow.filter(ImageFilter.GaussianBlur(2)))

        text = Image.new("RGBA", session.surface.size, (0, 0, 0, 0))
        ImageDraw.Draw(text).text(position, WATERMARK_TEXT, font=font, fill=(255, 255, 255, 230))
        session.surface.alpha_composite(text)
