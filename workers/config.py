"""Batch coordinator configuration."""

from dataclasses import dataclass, field

import psutil

DEFAULT_MAX_CONCURRENCY = 3


def default_max_concurrency() -> int:
    """Physical core count, capped at 3."""
    cores = psutil.cpu_count(logical=False) or DEFAULT_MAX_CONCURRENCY
    return max(1, min(DEFAULT_MAX_CONCURRENCY, cores))


@dataclass
class BatchConfig:
    """Concurrency, retry and ordering policy for a batch."""
    
    max_concurrency: int = field(default_factory=default_max_concurrency)
    retry_limit: int = 2
    pause_on_error: bool = False
    prioritize_small_files: bool = True
    poll_interval: float = 0.1
    ssim_method: str = 'global'
    
    def __post_init__(self):
        if self.max_concurrency < 1:
            raise ValueError(f"max_concurrency must be >= 1, got {self.max_concurrency}")
        if self.retry_limit < 0:
            raise ValueError(f"retry_limit must be >= 0, got {self.retry_limit}")
        if self.poll_interval <= 0:
            raise ValueError(f"poll_interval must be positive, got {self.poll_interval}")
        if self.ssim_method not in ('global', 'windowed'):
            raise ValueError(f"ssim_method must be 'global' or 'windowed', got {self.ssim_method!r}")
