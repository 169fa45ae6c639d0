"""
JPEG Quality Studio
Profile-driven JPEG re-compression with pixel-level quality assessment
"""

import argparse
import logging
import sys
from pathlib import Path


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="jpeg-quality-studio",
        description="Re-compress images under a quality profile and score the result."
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    sub = parser.add_subparsers(dest="command", required=True)

    compress = sub.add_parser("compress", help="Compress one image and print its quality report.")
    compress.add_argument("image", help="Input image path, or --synthetic with a demo key.")
    compress.add_argument("--synthetic", action="store_true",
                          help="Treat IMAGE as a demo key (photo, gradient, checkerboard, ...).")
    _add_profile_args(compress)
    compress.add_argument("-o", "--output", default=None, help="Where to write the compressed JPEG.")
    compress.add_argument("--report", default=None, help="Write a PDF quality report here.")
    compress.add_argument("--windowed-ssim", action="store_true",
                          help="Use windowed SSIM instead of the global formula.")

    assess = sub.add_parser("assess", help="Score an existing compressed image against its original.")
    assess.add_argument("original")
    assess.add_argument("compressed")
    assess.add_argument("--windowed-ssim", action="store_true")

    batch = sub.add_parser("batch", help="Compress many images concurrently.")
    batch.add_argument("images", nargs="+")
    _add_profile_args(batch)
    batch.add_argument("--concurrency", type=int, default=None)
    batch.add_argument("--retry-limit", type=int, default=2)
    batch.add_argument("--pause-on-error", action="store_true")
    batch.add_argument("--priority", choices=["high", "normal", "low"], default="normal")
    batch.add_argument("--output-dir", default=None, help="Directory for compressed outputs.")

    return parser.parse_args(argv)


def _add_profile_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-q", "--quality", type=int, default=80, help="Quality 10-95 (default 80).")
    parser.add_argument("-m", "--mode", choices=["aggressive", "balanced", "gentle"], default="balanced")
    parser.add_argument("--web-optimized", action="store_true", default=None)
    parser.add_argument("--sharpen", action="store_true", default=None)
    parser.add_argument("--noise-reduction", action="store_true", default=None)
    parser.add_argument("--progressive", action="store_true")


def _profile_from_args(args):
    from models.compression_profile import CompressionProfile
    return CompressionProfile(
        quality=args.quality,
        mode=args.mode,
        web_optimized=args.web_optimized,
        sharpen_filter=args.sharpen,
        noise_reduction=args.noise_reduction,
        progressive=args.progressive,
    )


def _print_report(report, savings_percentage=None) -> None:
    from utils.grading import recommendations

    print("\n=== Quality ===")
    print(f"PSNR:          {report.psnr:.2f} dB")
    print(f"SSIM:          {report.ssim:.4f}")
    print(f"MSE:           {report.mse:.2f}")
    print(f"Sharpness:     {report.sharpness:.4f}")
    print(f"Contrast:      {report.contrast:.4f}")
    print(f"Brightness:    {report.brightness:.4f}")
    print(f"Colorfulness:  {report.colorfulness:.4f}")
    print(f"Noise level:   {report.noise_level:.4f}")
    print(f"Efficiency:    {report.file_efficiency:.2f}")
    print(f"Ratio:         {report.compression_ratio:.2f}:1")
    print(f"Overall:       {report.overall_quality}/100 ({report.grade})")
    for line in recommendations(report, savings_percentage):
        print(f"  - {line}")


def run_compress(args) -> int:
    from engines.quality_encoder import encode
    from engines.pipeline import match_dimensions, compare_visual
    from utils.image_io import decode_image, load_image, save_image
    from utils.metrics import assess_quality
    from utils.formatting import format_file_size
    from utils.test_images import generate_demo_image

    profile = _profile_from_args(args)

    if args.synthetic:
        print(f"Generating test image: {args.image}")
        original = generate_demo_image(args.image)
        if original is None:
            print(f"Unknown demo image: {args.image}", file=sys.stderr)
            return 2
        original_size = None
        name = f"synthetic-{args.image}"
    else:
        path = Path(args.image)
        print(f"Loading: {path}")
        original = load_image(path)
        original_size = path.stat().st_size
        name = path.name

    print(f"Image: {original.width}x{original.height}")
    print(f"Profile: quality={profile.quality} mode={profile.mode}")

    result = encode(original, profile, original_size=original_size)
    compressed = decode_image(result.data)
    reference = match_dimensions(original, compressed)
    report = assess_quality(
        reference, compressed, result.original_size, result.size,
        ssim_method='windowed' if args.windowed_ssim else 'global'
    )

    print("\n=== Results ===")
    print(f"Output:        {result.compressed_dimensions[0]}x{result.compressed_dimensions[1]}")
    print(f"Encoder q:     {result.actual_quality:.3f}")
    print(f"Size:          {format_file_size(result.original_size)} -> {format_file_size(result.size)}"
          f" ({result.savings_percentage}% saved)")
    print(f"Time:          {result.encode_time_ms:.2f} ms")
    _print_report(report, result.savings_percentage)

    output = args.output or f"{Path(name).stem}_compressed.jpg"
    save_image(result.data, output)
    print(f"\nSaved: {output}")

    if args.report:
        from utils.report_exporter import export_report
        comparison = compare_visual(reference, compressed)
        export_report(args.report, profile, result, report, comparison, reference, compressed, name)
        print(f"Report: {args.report}")
    return 0


def run_assess(args) -> int:
    from engines.pipeline import analyze_image_quality

    original_data = Path(args.original).read_bytes()
    compressed_data = Path(args.compressed).read_bytes()
    report = analyze_image_quality(
        original_data, compressed_data,
        ssim_method='windowed' if args.windowed_ssim else 'global'
    )
    _print_report(report)
    return 0


def run_batch(args) -> int:
    from workers.batch_coordinator import BatchCoordinator
    from workers.config import BatchConfig
    from utils.formatting import format_file_size

    profile = _profile_from_args(args)
    config_kwargs = {'retry_limit': args.retry_limit, 'pause_on_error': args.pause_on_error}
    if args.concurrency is not None:
        config_kwargs['max_concurrency'] = args.concurrency
    coordinator = BatchCoordinator(BatchConfig(**config_kwargs))

    def show_progress(progress):
        print(f"\r{progress.completed + progress.failed}/{progress.total} done, "
              f"{progress.processing} processing, {progress.failed} failed", end="", flush=True)

    coordinator.on_progress(show_progress)

    files = [(Path(p).name, Path(p).read_bytes()) for p in args.images]
    items = coordinator.add_to_queue(files, profile, priority=args.priority)
    coordinator.wait()
    print()

    output_dir = Path(args.output_dir) if args.output_dir else None
    if output_dir:
        output_dir.mkdir(parents=True, exist_ok=True)

    for item in items:
        if item.status == 'completed' and item.result is not None:
            line = (f"{item.name}: {format_file_size(item.original_size)} -> "
                    f"{format_file_size(item.result.size)}")
            if item.report is not None:
                line += f", {item.report.overall_quality}/100 ({item.report.grade})"
            print(line)
            if output_dir:
                (output_dir / f"{Path(item.name).stem}_compressed.jpg").write_bytes(item.result.data)
        else:
            print(f"{item.name}: {item.status} ({item.error})")

    progress = coordinator.get_progress()
    print(f"\nSaved {format_file_size(progress.total_savings)} ({progress.total_savings_percentage}%)")
    return 1 if progress.failed else 0


def main(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    commands = {'compress': run_compress, 'assess': run_assess, 'batch': run_batch}

    from utils.errors import CompressionError
    try:
        return commands[args.command](args)
    except (CompressionError, OSError) as e:
        logging.getLogger(__name__).error("%s", e)
        return 1


if __name__ == '__main__':
    sys.exit(main())
