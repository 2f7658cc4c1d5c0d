"""
Per-connection MJPEG streaming sessions.

One StreamingSession drives one HTTP response. It owns its cursor, its
snapshot of the frame list and its timer; nothing is shared between
sessions except read-only access to the snapshot folders.

    OPEN -> EMITTING -> (EXHAUSTED | DISCONNECTED) -> CLOSED

Usage:
    session = StreamingSession.open(locate_frames, 30, Mode.LOOPING)
    return Response(session.frames(), headers=session.commit_headers())
"""

import threading
import time
from enum import Enum

from console_log import log
from frame_source import NotFound, read_frame

BOUNDARY = "frame"
CONTENT_TYPE = f"multipart/x-mixed-replace; boundary={BOUNDARY}"


class Mode(Enum):
    ONE_SHOT = "one-shot"  # Stop after the last frame
    LOOPING = "looping"    # Re-scan storage and start over


class SessionState(Enum):
    OPEN = "open"
    EMITTING = "emitting"
    EXHAUSTED = "exhausted"
    DISCONNECTED = "disconnected"
    CLOSED = "closed"


def multipart_frame(data):
    """Wrap one JPEG in the multipart/x-mixed-replace framing."""
    return (b'--frame\r\n'
            b'Content-Type: image/jpeg\r\n\r\n' + data + b'\r\n')


class Ticker:
    """Fixed-rate recurring timer bound to a cancellation token."""

    def __init__(self, interval, clock=time.monotonic):
        self.interval = interval
        self._clock = clock
        self._cancelled = threading.Event()
        self._deadline = None

    @property
    def cancelled(self):
        return self._cancelled.is_set()

    def wait(self):
        """Sleep until the next tick. Returns False once cancelled."""
        now = self._clock()
        if self._deadline is None:
            self._deadline = now + self.interval
        else:
            self._deadline += self.interval
            # Fell behind a slow client: don't burst to catch up
            if self._deadline < now:
                self._deadline = now
        return not self._cancelled.wait(max(0.0, self._deadline - now))

    def cancel(self):
        self._cancelled.set()


class StreamingSession:
    """
    Playback state for one streaming connection.

    locator is called with no arguments and returns the ordered list of
    frame paths; it raises NotFound when there is nothing to play. It is
    called once on open and again every time a looping session wraps, so
    frames written while a client watches show up on the next pass.
    """

    def __init__(self, locator, frame_rate_hz, mode=Mode.LOOPING, name="stream",
                 reader=read_frame):
        if frame_rate_hz <= 0:
            raise ValueError(f"frame rate must be positive, got {frame_rate_hz}")

        self.locator = locator
        self.mode = Mode(mode)
        self.name = name
        self.frame_interval_ms = 1000.0 / frame_rate_hz
        self.frame_source = list(locator())
        self.cursor = 0
        self.state = SessionState.OPEN
        self.end_state = None
        self.frames_sent = 0
        self.loops = 0
        self.ticker = Ticker(self.frame_interval_ms / 1000.0)

        self._reader = reader
        self._headers_committed = False
        # Reentrant: exhaustion closes the session from inside tick
        self._lock = threading.RLock()

        log("session", f"{self.name}: opened, {len(self.frame_source)} frames "
                       f"at {frame_rate_hz:g} fps ({self.mode.value})")

    @classmethod
    def open(cls, locator, frame_rate_hz, mode=Mode.LOOPING, **kwargs):
        """Resolve the frames and build a session. Raises NotFound if there are none."""
        return cls(locator, frame_rate_hz, mode, **kwargs)

    @property
    def active(self):
        return self.state in (SessionState.OPEN, SessionState.EMITTING)

    def commit_headers(self):
        """Response headers for the stream. May only be taken once."""
        if self._headers_committed:
            raise RuntimeError(f"{self.name}: headers already committed")
        self._headers_committed = True
        return {
            'Content-Type': CONTENT_TYPE,
            'Cache-Control': 'no-cache',
            'Pragma': 'no-cache',
        }

    def tick(self):
        """Advance playback by one step. Returns the chunk to write, or None."""
        with self._lock:
            if not self.active:
                return None
            self.state = SessionState.EMITTING

            if self.cursor >= len(self.frame_source):
                if self.mode is Mode.ONE_SHOT:
                    self.close(SessionState.EXHAUSTED)
                else:
                    self._loop_back()
                return None

            path = self.frame_source[self.cursor]
            self.cursor += 1

        # Read outside the lock so a disconnect never waits on storage
        try:
            data = self._reader(path)
        except OSError as e:
            # Deleted between listing and read; keep playing
            log("session", f"{self.name}: skipping unreadable frame {path}: {e}")
            return None

        with self._lock:
            if not self.active:
                # Closed while reading; nothing may be written now
                return None
            self.frames_sent += 1
        return multipart_frame(data)

    def _loop_back(self):
        self.cursor = 0
        self.loops += 1
        try:
            self.frame_source = list(self.locator())
        except NotFound as e:
            log("session", f"{self.name}: nothing left to loop over ({e})")
            self.frame_source = []
            self.close(SessionState.EXHAUSTED)
            return
        log("session", f"{self.name}: loop {self.loops}, {len(self.frame_source)} frames")

    def frames(self):
        """
        Yield multipart chunks at the session's frame rate until it ends.
        Closing the generator (the client went away) tears the session down.
        """
        try:
            while self.ticker.wait():
                chunk = self.tick()
                if chunk is not None and self.active:
                    yield chunk
                elif not self.active:
                    break
        finally:
            self.close(SessionState.DISCONNECTED)

    def close(self, reason=SessionState.DISCONNECTED):
        """Stop the timer and end the session. Only the first call does anything."""
        with self._lock:
            if self.state is SessionState.CLOSED:
                return False
            self.end_state = reason
            self.ticker.cancel()
            self.state = SessionState.CLOSED

        log("session", f"{self.name}: {reason.value} after {self.frames_sent} frames, closed")
        return True
