"""Tests for the command-line entry point."""

import cv2

from main import main
from utils.test_images import generate_noisy_gradient


def _write_png(path, width, height, seed=0):
    raster = generate_noisy_gradient(width, height, seed=seed)
    cv2.imwrite(str(path), cv2.cvtColor(raster.rgb, cv2.COLOR_RGB2BGR))
    return path


def test_compress_synthetic(tmp_path, capsys):
    output = tmp_path / "out.jpg"
    code = main(['compress', 'gradient', '--synthetic', '-q', '70', '-m', 'gentle', '-o', str(output)])

    assert code == 0
    assert output.read_bytes()[:2] == b'\xff\xd8'
    assert 'Overall:' in capsys.readouterr().out


def test_compress_unknown_demo(tmp_path):
    assert main(['compress', 'nope', '--synthetic', '-o', str(tmp_path / "x.jpg")]) == 2


def test_compress_missing_file_fails(tmp_path):
    assert main(['compress', str(tmp_path / "missing.png")]) == 1


def test_assess(tmp_path, capsys):
    original = _write_png(tmp_path / "a.png", 80, 60)
    compressed = tmp_path / "a.jpg"
    assert main(['compress', str(original), '-o', str(compressed)]) == 0
    capsys.readouterr()

    assert main(['assess', str(original), str(compressed)]) == 0
    assert 'PSNR:' in capsys.readouterr().out


def test_batch(tmp_path, capsys):
    images = [str(_write_png(tmp_path / f"img{i}.png", 60 + i * 10, 40, seed=i)) for i in range(3)]
    out_dir = tmp_path / "out"

    code = main(['batch', *images, '--concurrency', '2', '--output-dir', str(out_dir)])

    assert code == 0
    assert sorted(p.name for p in out_dir.iterdir()) == [
        'img0_compressed.jpg', 'img1_compressed.jpg', 'img2_compressed.jpg'
    ]
    assert 'Saved' in capsys.readouterr().out
