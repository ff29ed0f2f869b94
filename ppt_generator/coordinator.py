# coordinator.py

import logging
import re
import threading
import uuid
from typing import Callable, Optional

import requests
from pydantic import ValidationError

from ppt_generator.config import (
    DEFAULT_FILENAME_SUFFIX,
    DEFAULT_SLIDES,
    DELIVERY_MODE,
    GENERATE_PATH,
    GENERATION_SERVICE_URL,
    REQUEST_TIMEOUT_SECONDS,
)
from ppt_generator.delivery import ArtifactDelivery
from ppt_generator.models import (
    ErrorKind,
    GenerationFailure,
    GenerationRequest,
    GenerationResult,
    GenerationSuccess,
    Notification,
    UIState,
    clamp_slide_count,
)

logger = logging.getLogger(__name__)

# --- User-facing messages ---
SUCCESS_MESSAGE = "✅ PPT generated successfully. Your download should begin automatically."
SUCCESS_DEFERRED_MESSAGE = "✅ PPT generated successfully. Your presentation is ready for download."
ERROR_MESSAGES = {
    ErrorKind.VALIDATION_ERROR: "Please enter a topic for your presentation",
    ErrorKind.TIMEOUT_ERROR: "❌ Request timed out. Please try again with a simpler topic.",
    ErrorKind.SERVER_ERROR: "❌ Server error. Please check if the backend is running.",
    ErrorKind.NETWORK_UNREACHABLE_ERROR: "❌ Cannot connect to server. Please ensure the backend is reachable at the configured URL.",
    ErrorKind.UNKNOWN_ERROR: "❌ Failed to generate PPT. Please try again.",
}

FILENAME_PATTERN = re.compile(r'filename\s*=\s*(?:"([^"]+)"|([^;\s]+))', re.IGNORECASE)


def filename_from_headers(headers) -> Optional[str]:
    """Pulls the suggested filename out of a Content-Disposition header, if any."""
    disposition = headers.get("content-disposition") if headers else None
    if not disposition:
        return None
    match = FILENAME_PATTERN.search(disposition)
    if not match:
        return None
    filename = (match.group(1) or match.group(2)).strip()
    return filename or None


def default_filename(topic: str) -> str:
    return re.sub(r"[^A-Za-z0-9]", "_", topic) + DEFAULT_FILENAME_SUFFIX


def classify_error(error: Exception) -> ErrorKind:
    # Timeout first: ConnectTimeout is also a ConnectionError.
    if isinstance(error, requests.exceptions.Timeout):
        return ErrorKind.TIMEOUT_ERROR
    if isinstance(error, requests.exceptions.HTTPError):
        response = error.response
        if response is not None and response.status_code >= 500:
            return ErrorKind.SERVER_ERROR
        return ErrorKind.UNKNOWN_ERROR
    if isinstance(error, requests.exceptions.ConnectionError):
        return ErrorKind.NETWORK_UNREACHABLE_ERROR
    return ErrorKind.UNKNOWN_ERROR


class RequestCoordinator:
    """
    Owns the generation form and the lifecycle of a single generation request.

    Only one request may be in flight at a time: a submit while GENERATING
    is ignored. Every completed attempt produces exactly one notification,
    and no `Exception` escapes `submit`.
    """

    def __init__(
        self,
        delivery: ArtifactDelivery,
        notify: Callable[[Notification], None],
        session: Optional[requests.Session] = None,
        base_url: str = GENERATION_SERVICE_URL,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
        delivery_mode: str = DELIVERY_MODE,
    ):
        if delivery_mode not in ("immediate", "deferred"):
            raise ValueError(f"Unknown delivery mode: {delivery_mode!r}")
        self.delivery = delivery
        self._notify = notify
        self.session = session or requests.Session()
        self.endpoint = base_url.rstrip("/") + GENERATE_PATH
        self.timeout = timeout
        self.delivery_mode = delivery_mode

        self.topic = ""
        self.slide_count = DEFAULT_SLIDES
        self.last_filename: Optional[str] = None
        self.last_error: Optional[GenerationFailure] = None
        self._state = UIState.IDLE
        self._lock = threading.Lock()

    @property
    def state(self) -> UIState:
        return self._state

    @property
    def is_generating(self) -> bool:
        return self._state == UIState.GENERATING

    # --- Form input ---
    def set_topic(self, topic: str) -> None:
        self.topic = topic or ""

    def set_slide_count(self, value) -> int:
        self.slide_count = clamp_slide_count(value)
        return self.slide_count

    def reset(self) -> None:
        with self._lock:
            if self._state == UIState.GENERATING:
                return
            self._state = UIState.IDLE

    # --- Submission ---
    def submit(self, topic: str, slide_count) -> Optional[GenerationResult]:
        with self._lock:
            if self._state == UIState.GENERATING:
                logger.info("Submit ignored: a generation request is already in flight.")
                return None
            self.set_topic(topic)
            self.set_slide_count(slide_count)
            try:
                request = GenerationRequest(topic=self.topic, slide_count=self.slide_count)
            except ValidationError:
                request = None
            else:
                self._state = UIState.GENERATING

        if request is None:
            return self._fail(ErrorKind.VALIDATION_ERROR, state=self._state)

        try:
            return self._generate(request)
        finally:
            # Reopen the gate when _generate is interrupted, e.g. by a Streamlit rerun.
            if self._state == UIState.GENERATING:
                logger.warning("Generation interrupted before completion; state reset to idle.")
                self._state = UIState.IDLE

    def _generate(self, request: GenerationRequest) -> GenerationResult:
        request_id = str(uuid.uuid4())[:8]
        logger.info(f"[{request_id}] Requesting {request.slide_count} slides on '{request.topic}'.")
        try:
            response = self.session.get(self.endpoint, params=request.to_params(), timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            logger.error(f"[{request_id}] Generation request failed: {e}", exc_info=True)
            return self._fail(classify_error(e))

        filename = filename_from_headers(response.headers) or default_filename(request.topic)
        payload = response.content
        logger.info(f"[{request_id}] Received '{filename}' ({len(payload)} bytes).")

        try:
            if self.delivery_mode == "immediate":
                self.delivery.deliver_immediately(payload, filename)
                message = SUCCESS_MESSAGE
            else:
                self.delivery.deliver_deferred(payload, filename, request)
                message = SUCCESS_DEFERRED_MESSAGE
        except Exception as e:
            logger.error(f"[{request_id}] Delivery of '{filename}' failed: {e}", exc_info=True)
            return self._fail(ErrorKind.UNKNOWN_ERROR)

        # The payload now belongs to the delivery step; keep only the filename.
        self.last_error = None
        self.last_filename = filename
        self.topic = ""
        self.slide_count = DEFAULT_SLIDES
        self._state = UIState.DONE
        self._notify(Notification(level="success", message=message))
        return GenerationSuccess(payload=payload, filename=filename)

    def _fail(self, kind: ErrorKind, state: UIState = UIState.IDLE) -> GenerationFailure:
        result = GenerationFailure(kind=kind, message=ERROR_MESSAGES[kind])
        self.last_error = result
        self._state = state
        self._notify(Notification(level="error", message=result.message, kind=kind))
        return result
