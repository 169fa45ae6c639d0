"""Compression profile."""

from dataclasses import dataclass
from typing import Literal, Optional

from utils.constants import MODE_MAX_SIZE
from utils.errors import PreconditionViolation

CompressionMode = Literal['aggressive', 'balanced', 'gentle']

SMOOTHING_QUALITY = {
    'aggressive': 'low',
    'balanced': 'medium',
    'gentle': 'high',
}


@dataclass(frozen=True)
class CompressionProfile:
    """Quality, mode and optional filter flags for one compression run.
    
    Flags left as None take their value from mode and quality. An explicit
    True always enables the stage; the derived rule can still enable a stage
    whose flag is False.
    """
    
    quality: int = 80
    mode: CompressionMode = 'balanced'
    web_optimized: Optional[bool] = None
    sharpen_filter: Optional[bool] = None
    noise_reduction: Optional[bool] = None
    progressive: bool = False
    
    def __post_init__(self):
        if isinstance(self.quality, bool) or not isinstance(self.quality, int):
            raise PreconditionViolation(f"Quality must be an integer, got {self.quality!r}")
        if not (10 <= self.quality <= 95):
            raise PreconditionViolation(f"Quality must be 10-95, got {self.quality}")
        if self.mode not in MODE_MAX_SIZE:
            raise PreconditionViolation(
                f"Mode must be aggressive, balanced or gentle, got {self.mode!r}"
            )
    
    @property
    def is_web_optimized(self) -> bool:
        return bool(self.web_optimized) or self.mode in ('balanced', 'aggressive')
    
    @property
    def should_sharpen(self) -> bool:
        return bool(self.sharpen_filter) or self.mode == 'gentle' or self.quality > 80
    
    @property
    def should_reduce_noise(self) -> bool:
        return bool(self.noise_reduction) or self.mode == 'aggressive'
    
    @property
    def smoothing(self) -> str:
        """Resampling quality: low, medium or high."""
        return SMOOTHING_QUALITY.get(self.mode, 'medium')
