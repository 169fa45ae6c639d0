"""Tests for grade labels and recommendations."""

import pytest
from models.quality_report import QualityReport
from utils.grading import grade_label, recommendations


@pytest.mark.parametrize('score,label', [
    (100, 'Excellent'), (90, 'Excellent'), (89, 'Very Good'), (80, 'Very Good'),
    (79, 'Good'), (70, 'Good'), (69, 'Fair'), (60, 'Fair'), (59, 'Poor'), (0, 'Poor'),
])
def test_grade_thresholds(score, label):
    assert grade_label(score) == label


def _report(**overrides) -> QualityReport:
    values = dict(
        psnr=38.0, ssim=0.97, mse=10.0, sharpness=0.3, contrast=0.2, brightness=0.5,
        colorfulness=0.2, noise_level=0.1, file_efficiency=0.9, compression_ratio=9.0,
        overall_quality=78,
    )
    values.update(overrides)
    return QualityReport(**values)


def test_no_advice_for_unremarkable_result():
    assert recommendations(_report(), savings_percentage=60) == []


def test_advice_for_weak_result():
    advice = recommendations(
        _report(overall_quality=55, sharpness=0.1, noise_level=0.4), savings_percentage=20
    )
    assert len(advice) == 4
    assert any('higher quality' in line for line in advice)
    assert any('sharpening' in line for line in advice)
    assert any('noise reduction' in line for line in advice)
    assert any('aggressive' in line for line in advice)


def test_advice_for_excellent_result():
    advice = recommendations(_report(overall_quality=92))
    assert advice == ["Excellent quality achieved. This compression setting is optimal for this image."]


def test_report_grade_and_dict():
    report = _report(overall_quality=81)
    assert report.grade == 'Very Good'
    assert report.as_dict()['grade'] == 'Very Good'
    assert report.as_dict()['psnr'] == 38.0
