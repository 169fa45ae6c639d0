"""Background batch processing."""

from .config import BatchConfig
from .batch_coordinator import BatchCoordinator, compress_item

__all__ = ['BatchConfig', 'BatchCoordinator', 'compress_item']
