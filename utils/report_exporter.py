"""PDF quality report for one compression run."""

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

import numpy as np
from matplotlib.backends.backend_pdf import PdfPages
from matplotlib.figure import Figure

from models.compression_profile import CompressionProfile
from models.compression_result import EncodedResult
from models.quality_report import QualityReport, VisualComparison
from models.raster_image import RasterImage
from utils.formatting import format_file_size
from utils.grading import recommendations

logger = logging.getLogger(__name__)

APP_NAME = "JPEG Quality Studio"
APP_VERSION = "1.0"
TOTAL_PAGES = 3


class ReportExporter:
    """Writes a 3-page PDF: summary, image comparison, histograms and difference map."""

    def __init__(
        self,
        profile: CompressionProfile,
        result: EncodedResult,
        report: QualityReport,
        comparison: VisualComparison,
        original: RasterImage,
        compressed: RasterImage,
        image_name: Optional[str] = None
    ):
        self.profile = profile
        self.result = result
        self.report = report
        self.comparison = comparison
        self.original = original
        self.compressed = compressed
        self.image_name = image_name or "(loaded from memory)"

        self._page_num = 0
        self._timestamp = datetime.now().strftime('%Y-%m-%d %H:%M')

    def export(self, output_path: Union[str, Path]) -> Path:
        output_path = Path(output_path)
        with PdfPages(output_path) as pdf:
            self._add_summary_page(pdf)
            self._add_image_comparison_page(pdf)
            self._add_analysis_page(pdf)
        logger.info("Report written to %s", output_path)
        return output_path

    def _add_page_footer(self, fig: Figure):
        self._page_num += 1
        footer_text = f"{APP_NAME} v{APP_VERSION} - Page {self._page_num}/{TOTAL_PAGES} - {self._timestamp}"
        fig.text(0.5, 0.02, footer_text, ha='center', fontsize=8, color='#888888')

    def _add_summary_page(self, pdf):
        fig = Figure(figsize=(8.5, 11))
        fig.set_facecolor('white')
        fig.suptitle('Image Quality Report', fontsize=16, fontweight='bold', y=0.97)

        orig_w, orig_h = self.result.original_dimensions
        out_w, out_h = self.result.compressed_dimensions
        flags = [
            name for name, on in (
                ('web optimized', self.profile.is_web_optimized),
                ('sharpen', self.profile.should_sharpen),
                ('noise reduction', self.profile.should_reduce_noise),
                ('progressive', self.profile.progressive),
            ) if on
        ]
        summary_text = (
            f"Image: {self.image_name}\n"
            f"Resolution: {orig_w} x {orig_h} -> {out_w} x {out_h}\n"
            f"Mode: {self.profile.mode}  |  Quality: {self.profile.quality}  "
            f"|  Encoder quality: {self.result.actual_quality:.3f}\n"
            f"Filters: {', '.join(flags) if flags else 'none'}\n"
            f"Size: {format_file_size(self.result.original_size)} -> "
            f"{format_file_size(self.result.size)} ({self.result.savings_percentage}% saved)"
        )
        fig.text(0.1, 0.90, summary_text, fontsize=10, family='monospace', verticalalignment='top')

        ax = fig.add_axes([0.1, 0.35, 0.8, 0.38])
        ax.axis('off')
        ax.set_title(
            f'Quality Metrics - {self.report.overall_quality}/100 ({self.report.grade})',
            loc='left', fontweight='bold', fontsize=12
        )
        r = self.report
        table_data = [
            ['PSNR', f'{r.psnr:.2f} dB'],
            ['SSIM', f'{r.ssim:.4f}'],
            ['MSE', f'{r.mse:.2f}'],
            ['Sharpness', f'{r.sharpness:.4f}'],
            ['Contrast', f'{r.contrast:.4f}'],
            ['Brightness', f'{r.brightness:.4f}'],
            ['Colorfulness', f'{r.colorfulness:.4f}'],
            ['Noise Level', f'{r.noise_level:.4f}'],
            ['File Efficiency', f'{r.file_efficiency:.2f}'],
            ['Compression Ratio', f'{r.compression_ratio:.2f}:1'],
        ]
        table = ax.table(cellText=table_data, colLabels=['Metric', 'Value'],
                         loc='upper left', cellLoc='left', colWidths=[0.4, 0.6])
        table.auto_set_font_size(False)
        table.set_fontsize(10)
        table.scale(1, 1.4)
        for j in range(2):
            table[(0, j)].set_facecolor('#4a9eff')
            table[(0, j)].set_text_props(color='white', fontweight='bold')

        advice = recommendations(self.report, self.result.savings_percentage)
        if advice:
            fig.text(0.1, 0.28, "Recommendations:\n" + "\n".join(f"  - {line}" for line in advice),
                     fontsize=9, color='#2b6cb0', verticalalignment='top', wrap=True)

        self._add_page_footer(fig)
        pdf.savefig(fig)

    def _add_image_comparison_page(self, pdf):
        fig = Figure(figsize=(8.5, 11))
        fig.set_facecolor('white')
        fig.suptitle('Image Comparison', fontsize=14, fontweight='bold', y=0.96)

        ax1 = fig.add_axes([0.05, 0.25, 0.42, 0.60])
        ax1.imshow(self.original.rgb)
        ax1.axis('off')
        ax1.set_title(f'Original ({self.original.width}x{self.original.height})', fontsize=11, pad=5)

        ax2 = fig.add_axes([0.53, 0.25, 0.42, 0.60])
        ax2.imshow(self.compressed.rgb)
        ax2.axis('off')
        ax2.set_title(f'Compressed ({self.compressed.width}x{self.compressed.height})', fontsize=11, pad=5)

        quality_text = (
            f"{self.profile.mode}  |  Q={self.profile.quality}  |  PSNR: {self.report.psnr:.2f} dB  "
            f"|  SSIM: {self.report.ssim:.4f}"
        )
        fig.text(0.5, 0.18, quality_text, ha='center', fontsize=10, color='#333333')

        self._add_page_footer(fig)
        pdf.savefig(fig)

    def _add_analysis_page(self, pdf):
        fig = Figure(figsize=(8.5, 11))
        fig.set_facecolor('white')
        fig.suptitle('Analysis Plots', fontsize=14, fontweight='bold', y=0.96)

        bins = np.arange(256)
        colors = ['#d63031', '#00b894', '#0984e3']
        for pos, (title, hist) in enumerate((
            ('Original Histogram', self.comparison.original_histogram),
            ('Compressed Histogram', self.comparison.compressed_histogram),
        ), start=1):
            ax = fig.add_subplot(2, 2, pos)
            for channel, color in zip(hist, colors):
                ax.plot(bins, channel, color=color, linewidth=0.8)
            ax.set_title(title, fontsize=10)
            ax.set_xlim(0, 255)
            ax.tick_params(axis='both', labelsize=8)

        ax3 = fig.add_subplot(2, 1, 2)
        ax3.imshow(self.comparison.difference_map.rgb[:, :, 0], cmap='hot', vmin=0, vmax=255)
        ax3.set_title(
            f'Difference Map (3x amplified) - max {self.comparison.max_difference:.1f}, '
            f'mean {self.comparison.average_difference:.2f}',
            fontsize=10
        )
        ax3.axis('off')

        fig.tight_layout(rect=[0, 0.05, 1, 0.94])
        self._add_page_footer(fig)
        pdf.savefig(fig)


def export_report(
    output_path: Union[str, Path],
    profile: CompressionProfile,
    result: EncodedResult,
    report: QualityReport,
    comparison: VisualComparison,
    original: RasterImage,
    compressed: RasterImage,
    image_name: Optional[str] = None
) -> Path:
    exporter = ReportExporter(profile, result, report, comparison, original, compressed, image_name)
    return exporter.export(output_path)
