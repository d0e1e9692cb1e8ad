"""
Visualization utilities for quality reports.

Provides per-report severity charts and summary dashboards for a
batch of graded rolls.
"""

from pathlib import Path
from typing import Optional

import matplotlib.pyplot as plt
import numpy as np

from ..grading.report import QualityReport
from ..models.types import Grade, Severity


class ReportVisualizer:
    """Visualizer for quality reports.

    Attributes:
        figsize: Size of single-report figures in inches.
        dpi: Resolution used when saving figures.

    Example:
        >>> visualizer = ReportVisualizer()
        >>> fig = visualizer.create_report_chart(report)
        >>> visualizer.save_figure(fig, Path("report.png"))
    """

    # Color scheme for severity classes
    SEVERITY_COLORS = {
        Severity.CRITICAL: "red",
        Severity.MAJOR: "orange",
        Severity.MINOR: "gold",
    }

    # Color scheme for grades
    GRADE_COLORS = {
        Grade.A1: "green",
        Grade.A2: "orange",
        Grade.B: "red",
    }

    def __init__(
        self,
        figsize: tuple[float, float] = (10, 4),
        dpi: int = 150,
    ) -> None:
        """Initialize the visualizer.

        Args:
            figsize: Size of single-report figures in inches.
            dpi: Resolution used when saving figures.
        """
        self.figsize = figsize
        self.dpi = dpi

    def create_report_chart(
        self,
        report: QualityReport,
        save_path: Optional[Path] = None,
    ) -> plt.Figure:
        """Create the defect distribution chart for one report.

        Generates a matplotlib figure with:
        - Defect count per severity (bar chart)
        - Share of defect points per severity (pie chart)

        Args:
            report: Quality report to visualize.
            save_path: Optional path to save the figure.

        Returns:
            Matplotlib Figure object.
        """
        fig, (ax1, ax2) = plt.subplots(1, 2, figsize=self.figsize)

        severities = list(Severity)
        labels = [s.value for s in severities]
        colors = [self.SEVERITY_COLORS[s] for s in severities]
        tallies = report.tallies

        # 1. Defect counts (bar chart)
        counts = [tallies[s].count for s in severities]
        ax1.bar(labels, counts, color=colors, edgecolor="black")
        ax1.set_title("Defects by Severity")
        ax1.set_ylabel("Count")

        # 2. Defect points (pie chart)
        points = [tallies[s].points for s in severities]
        if sum(points) > 0:
            ax2.pie(
                points,
                labels=labels,
                colors=colors,
                autopct="%1.1f%%",
                startangle=90,
            )
        else:
            ax2.text(0.5, 0.5, "No defect points", ha="center", va="center")
            ax2.axis("off")
        ax2.set_title("Defect Points by Severity")

        fig.suptitle(
            f"Batch {report.header.batch_number} | Grade {report.grade.value} | "
            f"{report.normalized_score:.2f} pts / {report.normalization_basis:g} m"
        )
        fig.tight_layout()

        if save_path:
            self.save_figure(fig, save_path)

        return fig

    def create_summary_dashboard(
        self,
        reports: list[QualityReport],
        save_path: Optional[Path] = None,
    ) -> plt.Figure:
        """Create summary dashboard for multiple reports.

        Generates a matplotlib figure with:
        - Grade distribution pie chart
        - Normalized score histogram
        - Defect count per severity
        - Defect type distribution bar chart

        Args:
            reports: List of quality reports.
            save_path: Optional path to save the figure.

        Returns:
            Matplotlib Figure object.
        """
        fig, axes = plt.subplots(2, 2, figsize=(12, 10))

        # 1. Grade distribution (pie chart)
        grade_counts = {g: 0 for g in Grade}
        for r in reports:
            grade_counts[r.grade] += 1

        ax1 = axes[0, 0]
        if reports:
            ax1.pie(
                list(grade_counts.values()),
                labels=[g.value for g in grade_counts],
                colors=[self.GRADE_COLORS[g] for g in grade_counts],
                autopct="%1.1f%%",
                startangle=90,
            )
        else:
            ax1.text(0.5, 0.5, "No reports", ha="center", va="center")
            ax1.axis("off")
        ax1.set_title("Grade Distribution")

        # 2. Normalized score histogram
        scores = np.array([r.normalized_score for r in reports], dtype=float)
        ax2 = axes[0, 1]
        if scores.size:
            ax2.hist(scores, bins=20, edgecolor="black", color="lightblue")
            ax2.axvline(
                np.mean(scores),
                color="red",
                linestyle="--",
                label=f"Mean: {np.mean(scores):.2f}",
            )
            ax2.legend()
        else:
            ax2.text(0.5, 0.5, "No reports", ha="center", va="center")
        ax2.set_xlabel("Normalized Score")
        ax2.set_ylabel("Frequency")
        ax2.set_title("Normalized Score Distribution")

        # 3. Defects per severity
        ax3 = axes[1, 0]
        severities = list(Severity)
        totals = [sum(r.tallies[s].count for r in reports) for s in severities]
        ax3.bar(
            [s.value for s in severities],
            totals,
            color=[self.SEVERITY_COLORS[s] for s in severities],
            edgecolor="black",
        )
        ax3.set_ylabel("Count")
        ax3.set_title("Defects by Severity")

        # 4. Defect type distribution (bar chart)
        defect_types: list[str] = []
        for r in reports:
            defect_types.extend(d.type_name for d in r.defects if d.is_resolved)

        ax4 = axes[1, 1]
        if defect_types:
            unique_types = sorted(set(defect_types))
            type_counts = [defect_types.count(t) for t in unique_types]
            ax4.bar(unique_types, type_counts, color="steelblue")
            ax4.set_xlabel("Defect Type")
            ax4.set_ylabel("Count")
            plt.setp(ax4.get_xticklabels(), rotation=45, ha="right")
        else:
            ax4.text(0.5, 0.5, "No defects recorded", ha="center", va="center")
        ax4.set_title("Defect Type Distribution")

        plt.tight_layout()

        if save_path:
            self.save_figure(fig, save_path)

        return fig

    def save_figure(self, fig: plt.Figure, path: Path) -> None:
        """Save figure to file.

        Args:
            fig: Figure to save.
            path: Output file path.
        """
        fig.savefig(path, dpi=self.dpi, bbox_inches="tight")
