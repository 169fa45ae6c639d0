"""Compression policy and metric constants."""

# Maximum output dimension per compression mode
MODE_MAX_SIZE = {
    'aggressive': 1200,
    'balanced': 1920,
    'gentle': 2560,
}
DEFAULT_MAX_SIZE = 1920
WEB_MAX_SIZE = 1920

# Mode -> multiplicative quality adjustment
MODE_QUALITY_FACTOR = {
    'aggressive': 0.75,
    'balanced': 0.9,
    'gentle': 1.15,
}
DEFAULT_QUALITY_FACTOR = 0.9

MIN_QUALITY_FRACTION = 0.05
MAX_QUALITY_FRACTION = 0.98

# Resize ratio / pixel count thresholds for quality derivation
HEAVY_RESIZE_RATIO = 0.5
MINIMAL_RESIZE_RATIO = 0.9
LARGE_IMAGE_PIXELS = 2_000_000
SMALL_IMAGE_PIXELS = 500_000

# Web optimization pre-filter (CSS contrast/brightness)
WEB_CONTRAST = 1.05
WEB_BRIGHTNESS = 1.02

# Unsharp mask
SHARPEN_AMOUNT = 0.3
SHARPEN_THRESHOLD = 3.0

# Noise reduction margin (pixels left untouched along each edge)
NOISE_REDUCTION_MARGIN = 2

# SSIM stabilisers: (0.01*255)^2 and (0.03*255)^2
SSIM_C1 = 6.5025
SSIM_C2 = 58.5225

PSNR_IDENTICAL = 100.0

OVERALL_WEIGHTS = {
    'psnr': 0.30,
    'ssim': 0.25,
    'sharpness': 0.20,
    'contrast': 0.10,
    'colorfulness': 0.10,
    'file_efficiency': 0.05,
}

DIFFERENCE_AMPLIFICATION = 3.0

QUALITY_GRADES = [
    (90, 'Excellent'),
    (80, 'Very Good'),
    (70, 'Good'),
    (60, 'Fair'),
]
LOWEST_GRADE = 'Poor'
