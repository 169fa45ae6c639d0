"""Batch queue entries and progress snapshot."""

from dataclasses import dataclass
from typing import Literal, Optional

from models.compression_profile import CompressionProfile
from models.compression_result import EncodedResult
from models.quality_report import QualityReport

Priority = Literal['high', 'normal', 'low']
ItemStatus = Literal['pending', 'processing', 'completed', 'failed']

PRIORITY_ORDER = {'high': 3, 'normal': 2, 'low': 1}


@dataclass
class QueueItem:
    """One image waiting for, or done with, compression."""
    
    id: str
    name: str
    data: bytes
    profile: CompressionProfile
    priority: Priority = 'normal'
    status: ItemStatus = 'pending'
    retry_count: int = 0
    error: Optional[str] = None
    start_time: Optional[float] = None
    end_time: Optional[float] = None
    result: Optional[EncodedResult] = None
    report: Optional[QualityReport] = None
    
    @property
    def original_size(self) -> int:
        return len(self.data)
    
    @property
    def processing_time(self) -> Optional[float]:
        if self.start_time is None or self.end_time is None:
            return None
        return self.end_time - self.start_time


@dataclass
class BatchProgress:
    """Snapshot of a batch, taken after the latest item transition."""
    
    total: int = 0
    completed: int = 0
    failed: int = 0
    processing: int = 0
    pending: int = 0
    paused: int = 0
    estimated_time_remaining: float = 0.0
    average_processing_time: float = 0.0
    total_savings: int = 0
    total_savings_percentage: int = 0
