"""Human-readable sizes."""

import math

_UNITS = ['Bytes', 'KB', 'MB', 'GB']


def format_file_size(num_bytes: int) -> str:
    """1536 -> '1.5 KB'."""
    if num_bytes <= 0:
        return '0 Bytes'
    i = min(int(math.floor(math.log(num_bytes, 1024))), len(_UNITS) - 1)
    value = round(num_bytes / 1024 ** i, 1)
    if value == int(value):
        return f"{int(value)} {_UNITS[i]}"
    return f"{value} {_UNITS[i]}"
