"""CPU load monitoring functionality."""
from typing import Optional
import psutil

class CpuSampleError(Exception):
    """Raised when the current CPU load cannot be read."""

class CpuLoadMonitor:
    """Read the host's current CPU load as a percentage."""

    def __init__(self, sample_window: Optional[float] = 0.1):
        # psutil treats 0 and None alike: compare against the previous call
        self.sample_window = sample_window or None

    def current_load(self) -> float:
        """Return the current CPU load percentage.

        With a positive sample window each call measures its own interval,
        so concurrent callers do not disturb one another. The wait goes
        through time.sleep, which only suspends the calling greenthread
        once eventlet has monkey patched the process.
        """
        try:
            return float(psutil.cpu_percent(interval=self.sample_window))
        except (psutil.Error, OSError) as e:
            raise CpuSampleError(f"Failed to read CPU load: {str(e)}") from e
