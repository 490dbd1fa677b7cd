"""
Per-connection CPU streaming sessions.
"""
import time
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Callable, Dict, Optional
import eventlet
from eventlet.greenthread import GreenThread
from flask import current_app

CPU_EVENT = 'cpuData'

IDLE = 'idle'
STREAMING = 'streaming'
STOPPED = 'stopped'

def format_reading(load: float) -> Dict[str, str]:
    """Build the cpuData payload for a raw load percentage.

    Rounds the exact binary value half-up to two places, so ties such as
    0.125 become "0.13".
    """
    rounded = Decimal(load).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)
    return {'cpu': f"{rounded:f}"}

class StreamSession:
    """
    Streams CPU readings to a single connection.

    The session owns exactly one timer greenthread while streaming. Ticks are
    scheduled at fixed offsets from the moment the timer starts and each tick
    samples in its own greenthread, so a slow sample never delays the next
    tick. Stopping the session kills the timer but leaves in-flight samples
    alone; their results are dropped when they resolve.
    """
    def __init__(self, app, sid: str, sample: Callable[[], float],
                 emit: Callable[[str, Dict[str, Any], str], None],
                 interval: float = 1.0, skip_busy: bool = False):
        if not interval > 0:
            raise ValueError(f"Tick interval must be positive, got {interval!r}")
        self.app = app
        self.sid = sid
        self.sample = sample
        self.emit = emit
        self.interval = interval
        self.skip_busy = skip_busy
        self.state = IDLE
        self.in_flight = 0
        self._timer: Optional[GreenThread] = None

    @property
    def active(self) -> bool:
        """Whether a timer is currently scheduled for this session."""
        return self._timer is not None

    def start(self) -> None:
        """Start ticking, replacing any timer that is already running."""
        if self.state == STOPPED:
            raise RuntimeError(f"Session {self.sid} has been stopped")
        if self._timer is not None:
            self._timer.kill()
        self.state = STREAMING
        self._timer = eventlet.spawn(self._run)

    def stop(self) -> None:
        """Cancel future ticks. Safe to call more than once."""
        timer, self._timer = self._timer, None
        self.state = STOPPED
        if timer is not None:
            timer.kill()

    def _run(self) -> None:
        next_tick = time.monotonic()
        while True:
            next_tick += self.interval
            delay = next_tick - time.monotonic()
            if delay < -self.interval:
                # Fell more than a period behind, re-anchor instead of bursting
                next_tick = time.monotonic()
                delay = 0
            eventlet.sleep(max(delay, 0))
            if self.skip_busy and self.in_flight:
                with self.app.app_context():
                    current_app.logger.debug(f"[{CPU_EVENT}] Previous sample still pending for {self.sid}, skipping tick")
                continue
            eventlet.spawn_n(self._tick)

    def _tick(self) -> None:
        self.in_flight += 1
        try:
            with self.app.app_context():
                try:
                    payload = format_reading(self.sample())
                except Exception as e:
                    current_app.logger.error(f"Error getting CPU data for {self.sid}: {str(e)}")
                    return

                if self.state != STREAMING:
                    current_app.logger.debug(f"[{CPU_EVENT}] Session {self.sid} closed, dropping reading")
                    return

                try:
                    self.emit(CPU_EVENT, payload, self.sid)
                except Exception as e:
                    current_app.logger.debug(f"[{CPU_EVENT}] Could not deliver to {self.sid}: {str(e)}")
        finally:
            self.in_flight -= 1

class SessionManager:
    """Map transport connection ids to their streaming sessions."""
    def __init__(self):
        self.sessions: Dict[str, StreamSession] = {}
        self.app = None
        self.sample: Optional[Callable[[], float]] = None
        self.emit: Optional[Callable[[str, Dict[str, Any], str], None]] = None
        self.interval: float = 1.0
        self.skip_busy = False

    def configure(self, app, sample: Callable[[], float],
                  emit: Callable[[str, Dict[str, Any], str], None]) -> None:
        """Bind the app, metrics source and delivery function."""
        if not app.config['CPU_INTERVAL'] > 0:
            raise ValueError(f"CPU_INTERVAL must be positive, got {app.config['CPU_INTERVAL']!r}")
        self.app = app
        self.sample = sample
        self.emit = emit
        self.interval = app.config['CPU_INTERVAL']
        self.skip_busy = app.config['SKIP_BUSY_TICKS']
        app.logger.info(f"Session manager configured (interval: {self.interval}s, skip_busy: {self.skip_busy})")

    def handle_connect(self, sid: str) -> StreamSession:
        """Start streaming to a newly connected client."""
        if self.app is None:
            raise RuntimeError("Session manager is not configured")

        existing = self.sessions.pop(sid, None)
        if existing is not None:
            current_app.logger.warning(f"Session {sid} already streaming, replacing it")
            existing.stop()

        session = StreamSession(
            self.app,
            sid,
            self.sample,
            self.emit,
            interval=self.interval,
            skip_busy=self.skip_busy
        )
        self.sessions[sid] = session
        session.start()
        current_app.logger.info(f"Started CPU stream for {sid}. Active sessions: {len(self.sessions)}")
        return session

    def handle_disconnect(self, sid: str) -> None:
        """Stop streaming to a client. Unknown sids are ignored."""
        session = self.sessions.pop(sid, None)
        if session is None:
            current_app.logger.debug(f"No session for {sid}, nothing to stop")
            return
        session.stop()
        current_app.logger.info(f"Stopped CPU stream for {sid}. Active sessions: {len(self.sessions)}")

    def get_session(self, sid: str) -> Optional[StreamSession]:
        return self.sessions.get(sid)

    def active_count(self) -> int:
        return len(self.sessions)

    def stop_all(self) -> None:
        """Stop every session, used on shutdown."""
        for sid in list(self.sessions):
            self.sessions.pop(sid).stop()

# Initialize session manager
session_manager = SessionManager()
