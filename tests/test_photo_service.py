import os

from services.ar_compositor import CaptureResult, OverlayMode
from services.photo_service import PhotoService


def _result(taken_at_ms=1700000000500, payload=b"png-bytes"):
    return CaptureResult(
        png_bytes=payload,
        width=1,
        height=1,
        mode=OverlayMode.JEWELRY,
        overlay_applied=False,
        overlay_url="https://via.placeholder.com/200",
        taken_at_ms=taken_at_ms,
    )


def test_same_millisecond_captures_do_not_overwrite(tmp_path):
    service = PhotoService(tmp_path / "static" / "captures")
    first, first_rel = service.save_capture(_result(payload=b"first"))
    second, second_rel = service.save_capture(_result(payload=b"second"))

    assert first != second
    assert first_rel == os.path.join("static", "captures", "kalasetu-ar-tryon-1700000000500.png")
    assert second_rel == os.path.join("static", "captures", "kalasetu-ar-tryon-1700000000500-1.png")
    assert open(first, "rb").read() == b"first"
    assert open(second, "rb").read() == b"second"


def test_oldest_captures_are_pruned(tmp_path):
    capture_dir = tmp_path / "static" / "captures"
    service = PhotoService(capture_dir, max_stored=2)
    paths = []
    for i in range(3):
        path, _ = service.save_capture(_result(taken_at_ms=1000 + i))
        os.utime(path, (1000 + i, 1000 + i))
        paths.append(path)

    # the third save pruned against the mtimes set so far: the first file is oldest
    remaining = sorted(p.name for p in capture_dir.glob("*.png"))
    assert len(remaining) == 2
    assert not os.path.exists(paths[0])
    assert os.path.exists(paths[2])
