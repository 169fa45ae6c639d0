"""Tests for data models and their validation."""

import numpy as np
import pytest
from models.compression_profile import CompressionProfile
from models.compression_result import EncodedResult
from models.raster_image import RasterImage
from utils.errors import PreconditionViolation
from utils.formatting import format_file_size


def test_raster_from_rgb_sets_opaque_alpha():
    raster = RasterImage.from_rgb(np.zeros((3, 5, 3), dtype=np.uint8))
    assert raster.width == 5
    assert raster.height == 3
    assert raster.pixels.size == 5 * 3 * 4
    assert np.all(raster.pixels[:, :, 3] == 255)
    assert raster.nbytes_rgb == 45


def test_raster_validation():
    with pytest.raises(PreconditionViolation):
        RasterImage(np.zeros((3, 5, 3), dtype=np.uint8))
    with pytest.raises(PreconditionViolation):
        RasterImage(np.zeros((0, 5, 4), dtype=np.uint8))
    with pytest.raises(PreconditionViolation):
        RasterImage(np.zeros((3, 5, 4), dtype=np.float32))


def test_raster_copy_is_independent():
    raster = RasterImage.from_rgb(np.zeros((2, 2, 3), dtype=np.uint8))
    clone = raster.copy()
    clone.pixels[0, 0, 0] = 9
    assert raster.pixels[0, 0, 0] == 0


@pytest.mark.parametrize('quality', [9, 96, 0, 100])
def test_profile_rejects_out_of_range_quality(quality):
    with pytest.raises(PreconditionViolation):
        CompressionProfile(quality=quality, mode='balanced')


def test_profile_rejects_unknown_mode():
    with pytest.raises(PreconditionViolation):
        CompressionProfile(quality=50, mode='extreme')


def test_profile_is_immutable():
    profile = CompressionProfile(quality=50, mode='balanced')
    with pytest.raises(AttributeError):
        profile.quality = 60


def test_derived_flags():
    aggressive = CompressionProfile(quality=50, mode='aggressive')
    assert aggressive.is_web_optimized
    assert aggressive.should_reduce_noise
    assert not aggressive.should_sharpen
    assert aggressive.smoothing == 'low'

    gentle = CompressionProfile(quality=50, mode='gentle')
    assert not gentle.is_web_optimized
    assert gentle.should_sharpen
    assert not gentle.should_reduce_noise
    assert gentle.smoothing == 'high'

    assert CompressionProfile(quality=81, mode='balanced').should_sharpen
    assert not CompressionProfile(quality=80, mode='balanced').should_sharpen


def test_explicit_flags_enable_stages():
    profile = CompressionProfile(
        quality=50, mode='gentle', web_optimized=True, noise_reduction=True, sharpen_filter=False
    )
    assert profile.is_web_optimized
    assert profile.should_reduce_noise
    # gentle mode sharpens regardless of the flag
    assert profile.should_sharpen


def test_encoded_result_savings():
    result = EncodedResult(
        data=b'x' * 250, original_size=1000, original_dimensions=(10, 10),
        compressed_dimensions=(10, 10), actual_quality=0.7, compression_ratio=4.0
    )
    assert result.size == 250
    assert result.savings == 750
    assert result.savings_percentage == 75


@pytest.mark.parametrize('num_bytes,expected', [
    (0, '0 Bytes'), (512, '512 Bytes'), (1024, '1 KB'), (1536, '1.5 KB'), (5 * 1024 ** 2, '5 MB'),
])
def test_format_file_size(num_bytes, expected):
    assert format_file_size(num_bytes) == expected
