"""
Rendering devices and the pool that shares them between threads.

A device is expensive to create and must not be used by two threads at
once. :class:`DevicePool` hands out exclusive leases, growing by one device
whenever every existing device is busy. Devices are never destroyed, so the
pool converges on the peak concurrency seen so far.
"""
from __future__ import annotations

import threading
from io import BytesIO
from typing import Callable, Generic, List, Optional, TypeVar

import fitz  # PyMuPDF
from reportlab.pdfgen import canvas

from .errors import DeviceCreationError
from .log import get_logger

LOGGER = get_logger(__name__)

D = TypeVar("D")

# MuPDF's global context is not thread-safe
_MUPDF_LOCK = threading.Lock()


class RasterDevice:
    """
    Draws onto a reportlab canvas and rasterizes it with PyMuPDF.

    The device keeps one scratch PyMuPDF document that every rasterized page
    passes through, which is what makes it unsafe to share.
    """

    def __init__(self) -> None:
        with _MUPDF_LOCK:
            self._scratch = fitz.open()
        self.rendered = 0

    def new_canvas(self, width: int, height: int) -> tuple[canvas.Canvas, BytesIO]:
        """Return a single-page canvas of ``width`` x ``height`` pixels and its buffer."""
        buffer = BytesIO()
        return canvas.Canvas(buffer, pagesize=(width, height)), buffer

    def rasterize(self, pdf_canvas: canvas.Canvas, buffer: BytesIO) -> fitz.Pixmap:
        """Finish the canvas and turn its page into an RGBA pixmap (1 point = 1 pixel)."""
        pdf_canvas.showPage()
        pdf_canvas.save()
        with _MUPDF_LOCK:
            source = fitz.open(stream=buffer.getvalue(), filetype="pdf")
            try:
                self._scratch.insert_pdf(source)
            finally:
                source.close()
            page = self._scratch[self._scratch.page_count - 1]
            pixmap = page.get_pixmap(alpha=True)
            self._scratch.delete_page(self._scratch.page_count - 1)
        self.rendered += 1
        return pixmap


class DeviceLease(Generic[D]):
    """Exclusive hold on one pooled device; release it or use it as a context manager."""

    def __init__(self, slot: "_Slot[D]") -> None:
        self._slot = slot
        self._released = False

    @property
    def device(self) -> D:
        if self._released:
            raise RuntimeError("device lease already released")
        return self._slot.device

    def release(self) -> None:
        if not self._released:
            self._released = True
            self._slot.lock.release()

    def __enter__(self) -> D:
        return self.device

    def __exit__(self, *exc_info: object) -> None:
        self.release()


class _Slot(Generic[D]):
    def __init__(self, device: D) -> None:
        self.device = device
        self.lock = threading.Lock()


class DevicePool(Generic[D]):
    """
    Thread-safe, append-only pool of mutually exclusive devices.

    Args:
        factory: Builds a new device; any exception it raises is reported as
            DeviceCreationError
    """

    def __init__(self, factory: Callable[[], D] = RasterDevice) -> None:  # type: ignore[assignment]
        self._factory = factory
        self._slots: List[_Slot[D]] = []
        self._grow_lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._slots)

    def acquire(self) -> DeviceLease[D]:
        """
        Lease a free device, creating one if all are busy.

        Raises:
            DeviceCreationError: If a new device is needed and cannot be built
        """
        lease = self._try_existing()
        if lease is not None:
            return lease

        try:
            device = self._factory()
        except Exception as error:
            raise DeviceCreationError(f"couldn't create a rendering device: {error}") from error

        # Held before the slot is published so no other thread can take it
        slot = _Slot(device)
        slot.lock.acquire()
        with self._grow_lock:
            self._slots.append(slot)
            size = len(self._slots)
        LOGGER.debug("Device pool grew to %d device(s)", size)
        return DeviceLease(slot)

    def _try_existing(self) -> Optional[DeviceLease[D]]:
        # Indexing instead of iterating: appends from other threads are fine
        for index in range(len(self._slots)):
            slot = self._slots[index]
            if slot.lock.acquire(blocking=False):
                return DeviceLease(slot)
        return None
