"""Quality metrics and visual comparison data."""

from dataclasses import dataclass, asdict
from typing import Dict, Optional
import numpy as np

from models.raster_image import RasterImage
from utils.grading import grade_label


@dataclass
class QualityReport:
    """Fidelity of a compressed raster against its original."""

    # Fidelity
    psnr: float
    ssim: float
    mse: float

    # Texture of the compressed image
    sharpness: float
    contrast: float
    brightness: float
    colorfulness: float
    noise_level: float

    # Size
    file_efficiency: float
    compression_ratio: float

    overall_quality: int

    @property
    def grade(self) -> str:
        return grade_label(self.overall_quality)

    def as_dict(self) -> Dict[str, float]:
        values = asdict(self)
        values['grade'] = self.grade
        return values


@dataclass
class VisualComparison:
    """Histograms, difference map and side-by-side metrics."""

    original_histogram: np.ndarray
    compressed_histogram: np.ndarray
    original_metrics: Dict[str, float]
    difference_map: RasterImage
    max_difference: float
    average_difference: float
    compressed_metrics: Optional[QualityReport] = None
