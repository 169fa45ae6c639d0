"""Overall score to grade label, plus tuning advice."""

from typing import List, Optional

from utils.constants import QUALITY_GRADES, LOWEST_GRADE


def grade_label(score: float) -> str:
    """Excellent / Very Good / Good / Fair / Poor."""
    for threshold, label in QUALITY_GRADES:
        if score >= threshold:
            return label
    return LOWEST_GRADE


def recommendations(report, savings_percentage: Optional[int] = None) -> List[str]:
    """Plain-language suggestions for the next compression attempt."""
    advice = []
    if report.overall_quality >= 85:
        advice.append("Excellent quality achieved. This compression setting is optimal for this image.")
    if report.overall_quality < 70:
        advice.append("Consider using a higher quality setting to improve image fidelity.")
    if report.sharpness < 0.2:
        advice.append("Enable sharpening filter to preserve edge details.")
    if report.noise_level > 0.3:
        advice.append("Apply noise reduction to improve visual quality.")
    if savings_percentage and savings_percentage < 30:
        advice.append("Try a more aggressive compression mode for better file size reduction.")
    return advice
