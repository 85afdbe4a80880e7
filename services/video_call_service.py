"""Buyer-to-artisan video call requests, accepted by polling the status endpoint."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from common.services.logging import log_event
from common.services.marketplace_api import ApiError, MarketplaceApiClient


JITSI_BASE_URL = "https://meet.jit.si"
TERMINAL_STATUSES = {"accepted", "rejected", "completed"}


@dataclass
class CallRequest:
    request_id: Any
    room_name: str
    status: str = "pending"

    @property
    def meeting_url(self) -> Optional[str]:
        if self.status != "accepted" or not self.room_name:
            return None
        return f"{JITSI_BASE_URL}/{self.room_name}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.request_id,
            "room_name": self.room_name,
            "status": self.status,
            "meeting_url": self.meeting_url,
        }


class VideoCallService:
    """Requests a call and waits for the artisan to pick it up.

    There is no push channel: ``wait_for_acceptance`` asks the status endpoint
    every ``poll_interval`` seconds until it sees a terminal status.
    """

    def __init__(
        self,
        api: MarketplaceApiClient,
        poll_interval: float = 3.0,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._api = api
        self._poll_interval = poll_interval
        self._sleep = sleep
        self._clock = clock

    def request_call(self, *, product_id: Any, artisan_id: Any) -> CallRequest:
        if product_id in (None, "") or artisan_id in (None, ""):
            raise ValueError("product_id and artisan_id are required")
        data = self._api.request_video_call({"product_id": product_id, "artisan_id": artisan_id})
        call = CallRequest(
            request_id=data.get("id"),
            room_name=str(data.get("room_name") or ""),
            status=str(data.get("status") or "pending"),
        )
        log_event("info", "video_call.requested", request_id=call.request_id, artisan_id=artisan_id)
        return call

    def check_status(self, call: CallRequest) -> CallRequest:
        data = self._api.video_call_status(call.request_id)
        return CallRequest(
            request_id=call.request_id,
            room_name=str(data.get("room_name") or call.room_name),
            status=str(data.get("status") or call.status),
        )

    def wait_for_acceptance(self, call: CallRequest, timeout: Optional[float] = None) -> CallRequest:
        """Poll until accepted/rejected/completed; on timeout return the last seen state."""
        deadline = None if timeout is None else self._clock() + timeout
        current = call
        while current.status not in TERMINAL_STATUSES:
            if deadline is not None and self._clock() >= deadline:
                log_event("info", "video_call.wait_timeout", request_id=call.request_id)
                break
            self._sleep(self._poll_interval)
            try:
                current = self.check_status(current)
            except ApiError as exc:
                # keep polling; the next tick may succeed
                log_event("warning", "video_call.poll_failed", request_id=call.request_id, error=exc.message)
                continue
        if current.status == "accepted":
            log_event("info", "video_call.accepted", request_id=call.request_id, room_name=current.room_name)
        return current

    def pending_calls(self) -> list:
        return list(self._api.pending_video_calls() or [])

    def accept_call(self, request_id: Any) -> Dict:
        result = self._api.accept_video_call(request_id)
        log_event("info", "video_call.accepted_by_artisan", request_id=request_id)
        return result
