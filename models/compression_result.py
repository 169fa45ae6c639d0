"""Encoded output of one compression run."""

from dataclasses import dataclass
from typing import Tuple


@dataclass
class EncodedResult:
    """Encoded bytes plus the parameters actually used."""
    
    data: bytes
    original_size: int
    original_dimensions: Tuple[int, int]
    compressed_dimensions: Tuple[int, int]
    actual_quality: float
    compression_ratio: float
    
    encode_time_ms: float = 0.0
    
    @property
    def size(self) -> int:
        return len(self.data)
    
    @property
    def savings(self) -> int:
        return self.original_size - self.size
    
    @property
    def savings_percentage(self) -> int:
        if self.original_size <= 0:
            return 0
        return int(round(self.savings / self.original_size * 100))
