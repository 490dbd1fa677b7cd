"""
Metric sources polled by the streaming sessions.
"""
__all__ = [
    'CpuLoadMonitor',
    'CpuSampleError'
]

from .cpu import CpuLoadMonitor, CpuSampleError  # noqa: E402
