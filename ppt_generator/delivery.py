# delivery.py

import base64
import html
import logging
import threading
import uuid
from collections import OrderedDict
from typing import Callable, Optional, Union

from pydantic import BaseModel, ConfigDict, ValidationError

from ppt_generator.config import MAX_DELIVERY_HANDLES, PPTX_MIME
from ppt_generator.models import GenerationRequest, HandOff

logger = logging.getLogger(__name__)


class DeliveryHandle(BaseModel):
    """A generated deck bound to a revocable, process-local URL."""
    model_config = ConfigDict(frozen=True)

    url: str
    filename: str
    payload: bytes


SaveTrigger = Callable[[DeliveryHandle], None]


class HandleRegistry:
    """
    Process-local store of delivery handles, keyed by their `blob:` URL.
    Handles stay resolvable until revoked. Once more than `max_handles` are
    live, the oldest ones are revoked.
    """

    def __init__(self, max_handles: int = MAX_DELIVERY_HANDLES):
        self._max_handles = max(1, max_handles)
        self._handles: "OrderedDict[str, DeliveryHandle]" = OrderedDict()
        self._lock = threading.Lock()

    def create(self, payload: bytes, filename: str) -> DeliveryHandle:
        handle = DeliveryHandle(url=f"blob:{uuid.uuid4()}", filename=filename, payload=payload)
        with self._lock:
            self._handles[handle.url] = handle
            while len(self._handles) > self._max_handles:
                evicted_url, _ = self._handles.popitem(last=False)
                logger.warning(f"Handle limit reached. Revoked oldest handle {evicted_url}.")
        logger.info(f"Created handle {handle.url} for '{filename}' ({len(payload)} bytes).")
        return handle

    def resolve(self, url: str) -> Optional[DeliveryHandle]:
        with self._lock:
            return self._handles.get(url)

    def revoke(self, url: str) -> bool:
        with self._lock:
            removed = self._handles.pop(url, None) is not None
        if removed:
            logger.info(f"Revoked handle {url}.")
        return removed

    def __contains__(self, url: str) -> bool:
        with self._lock:
            return url in self._handles

    def __len__(self) -> int:
        with self._lock:
            return len(self._handles)


def build_save_script(handle: DeliveryHandle, mime: str = PPTX_MIME, nonce: Optional[str] = None) -> str:
    """
    Returns an HTML snippet that clicks a hidden download link as soon as it
    is rendered. The payload is inlined as a data URI so the snippet does not
    depend on the handle once built. The nonce makes every snippet unique so
    the browser re-runs it even for an identical deck.
    """
    nonce = nonce or uuid.uuid4().hex
    encoded = base64.b64encode(handle.payload).decode("ascii")
    filename = html.escape(handle.filename, quote=True)
    return (
        f'<a id="ppt-save-link" data-nonce="{nonce}" href="data:{mime};base64,{encoded}" download="{filename}"></a>'
        '<script>document.getElementById("ppt-save-link").click();</script>'
    )


class ArtifactDelivery:
    def __init__(
        self,
        registry: HandleRegistry,
        save_trigger: SaveTrigger,
        navigate: Optional[Callable[[HandOff], None]] = None,
    ):
        self.registry = registry
        self._save = save_trigger
        self._navigate = navigate

    def deliver_immediately(self, payload: bytes, filename: str) -> None:
        handle = self.registry.create(payload, filename)
        try:
            self._save(handle)
            logger.info(f"Save triggered for '{filename}'.")
        finally:
            self.registry.revoke(handle.url)

    def deliver_deferred(self, payload: bytes, filename: str, context: GenerationRequest) -> HandOff:
        if self._navigate is None:
            raise RuntimeError("Deferred delivery needs a navigate callback.")
        handle = self.registry.create(payload, filename)
        handoff = HandOff(
            file_ref=handle.url,
            filename=filename,
            topic=context.topic,
            slide_count=context.slide_count,
        )
        try:
            self._navigate(handoff)
        except BaseException:
            self.registry.revoke(handle.url)
            raise
        return handoff


class DownloadPage:
    """The second step of deferred delivery: re-offers a deck carried in a hand-off."""

    def __init__(self, registry: HandleRegistry, save_trigger: SaveTrigger, go_home: Callable[[], None]):
        self.registry = registry
        self._save = save_trigger
        self._go_home = go_home
        self.handoff: Optional[HandOff] = None

    def mount(self, handoff: Union[HandOff, dict, None]) -> bool:
        if isinstance(handoff, HandOff):
            handoff = handoff.model_dump()
        try:
            parsed = HandOff.model_validate(handoff or {})
        except ValidationError as e:
            logger.warning(f"Incomplete hand-off, redirecting to entry page: {e.error_count()} error(s).")
            self._go_home()
            return False

        if parsed.file_ref not in self.registry:
            logger.warning(f"Hand-off references unknown handle {parsed.file_ref}, redirecting to entry page.")
            self._go_home()
            return False

        self.handoff = parsed
        return True

    def save(self) -> DeliveryHandle:
        if self.handoff is None:
            raise RuntimeError("Download page is not mounted.")
        handle = self.registry.resolve(self.handoff.file_ref)
        if handle is None:
            raise LookupError(f"Handle {self.handoff.file_ref} has been revoked.")
        self._save(handle)
        logger.info(f"Save triggered for '{handle.filename}' from download page.")
        return handle

    def leave(self) -> None:
        if self.handoff is not None:
            self.registry.revoke(self.handoff.file_ref)
            self.handoff = None
        self._go_home()
