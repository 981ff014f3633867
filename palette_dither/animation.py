"""Frame handoff between a running draw and its consumers, plus GIF export.

The engine is the producer: every intermediate frame goes through
:meth:`FrameChannel.send`. By default the channel is an unbuffered rendezvous,
so ``send`` (and therefore ``draw``) blocks until somebody receives the frame.
A consumer must be running concurrently, e.g. via :func:`animate`, or the draw
never returns.
"""

from __future__ import annotations

import logging
import queue
from collections.abc import Iterator, Sequence
from concurrent.futures import ThreadPoolExecutor
from contextlib import suppress
from pathlib import Path
from typing import TYPE_CHECKING

from PIL import Image

if TYPE_CHECKING:
    import numpy as np

    from palette_dither.dithering import Ditherer

logger = logging.getLogger(__name__)

FRAME_POLICIES = ("block", "drop-oldest")

# How often animate() checks whether the draw has finished.
_POLL_SECONDS = 0.05


class FrameTimeoutError(TimeoutError):
    """No frame arrived within the requested timeout."""


class FrameChannel:
    """Single-producer frame queue with an explicit backpressure policy.

    Args:
        capacity: 0 for a synchronous handoff, otherwise the buffer size.
        policy:   ``"block"`` waits for room, ``"drop-oldest"`` evicts the
                  oldest queued frame instead (requires ``capacity > 0``).
    """

    def __init__(self, capacity: int = 0, policy: str = "block") -> None:
        if capacity < 0:
            msg = f"capacity must be >= 0, got {capacity}"
            raise ValueError(msg)
        if policy not in FRAME_POLICIES:
            msg = f"Unknown frame policy '{policy}'. Available: {', '.join(FRAME_POLICIES)}"
            raise ValueError(msg)
        if policy == "drop-oldest" and capacity == 0:
            msg = "policy 'drop-oldest' needs a buffered channel (capacity > 0)"
            raise ValueError(msg)

        self.capacity = capacity
        self.policy = policy
        self.dropped = 0
        self._queue: queue.Queue[Image.Image] = queue.Queue(maxsize=capacity)

    def send(self, frame: Image.Image) -> None:
        if self.capacity == 0:
            self._queue.put(frame)
            self._queue.join()  # wait until the consumer took it
            return

        if self.policy == "block":
            self._queue.put(frame)
            return

        while True:
            try:
                self._queue.put_nowait(frame)
            except queue.Full:
                with suppress(queue.Empty):
                    self._queue.get_nowait()
                    self._queue.task_done()
                    self.dropped += 1
                    logger.debug("Frame buffer full, dropped oldest (%d so far)", self.dropped)
            else:
                return

    def receive(self, timeout: float | None = None) -> Image.Image:
        try:
            frame = self._queue.get(timeout=timeout)
        except queue.Empty:
            msg = f"No frame received within {timeout}s"
            raise FrameTimeoutError(msg) from None
        self._queue.task_done()
        return frame

    def drain(self) -> list[Image.Image]:
        """Take whatever is queued right now without waiting."""
        frames = []
        while True:
            try:
                frames.append(self._queue.get_nowait())
            except queue.Empty:
                return frames
            self._queue.task_done()


class FrameReceiver:
    """Consumer side of a :class:`FrameChannel`."""

    def __init__(self, channel: FrameChannel) -> None:
        self._channel = channel

    @property
    def dropped(self) -> int:
        return self._channel.dropped

    def receive(self, timeout: float | None = None) -> Image.Image:
        """Block until the next intermediate frame is available."""
        return self._channel.receive(timeout)

    def frames(self, count: int, timeout: float | None = None) -> Iterator[Image.Image]:
        """Yield exactly *count* frames (see ``count_frame_points``)."""
        for _ in range(count):
            yield self._channel.receive(timeout)

    def drain(self) -> list[Image.Image]:
        return self._channel.drain()


def animate(
    ditherer: Ditherer,
    receiver: FrameReceiver,
    dst: Image.Image,
    src: Image.Image | np.ndarray,
    box: tuple[int, int, int, int] | None = None,
) -> Iterator[Image.Image]:
    """Run ``ditherer.draw`` on a worker thread and yield its frames.

    Yields every intermediate frame in order, then the finished image.
    Exceptions raised by the draw are re-raised here. Closing the
    generator early keeps draining frames until the draw has finished, so
    the worker is never left blocked on the channel.
    """
    pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix="palette-dither")
    future = pool.submit(ditherer.draw, dst, box, src)
    try:
        while True:
            try:
                yield receiver.receive(timeout=_POLL_SECONDS)
            except FrameTimeoutError:
                if future.done():
                    yield from receiver.drain()
                    break
        yield future.result()
    finally:
        while not future.done():
            with suppress(FrameTimeoutError):
                receiver.receive(timeout=_POLL_SECONDS)
        pool.shutdown(wait=True)


def save_gif(
    frames: Sequence[Image.Image],
    path: str | Path,
    duration: int = 120,
    pixel_upscale: int = 1,
) -> None:
    """Write *frames* as a looping animated GIF."""
    if not frames:
        msg = "No frames to save"
        raise ValueError(msg)

    scaled = [
        f.resize((f.width * pixel_upscale, f.height * pixel_upscale), Image.NEAREST)
        if pixel_upscale > 1 else f
        for f in frames
    ]
    path = Path(path)
    scaled[0].save(
        path,
        save_all=True,
        append_images=scaled[1:],
        duration=duration,
        loop=0,
    )
    logger.info("Animation saved: %s (%d frames)", path, len(scaled))
