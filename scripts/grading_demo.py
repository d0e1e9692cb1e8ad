#!/usr/bin/env python
"""
Grading demo script for the fabric quality engine.

Usage:
    python scripts/grading_demo.py --input scripts/sample_inspection.json
    python scripts/grading_demo.py --input path/to/folder --chart summary.png
    python scripts/grading_demo.py --input inspection.json --catalog catalog.json --legacy-length
"""

import argparse
import json
import logging
import sys
from dataclasses import replace
from datetime import datetime
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from fabric_quality.config.settings import QualityThresholds, get_settings
from fabric_quality.exceptions import CatalogError, InspectionValidationError
from fabric_quality.grading import GradingEngine, get_statistics
from fabric_quality.models import Grade, InspectionSample, load_catalog
from fabric_quality.visualization import ReportVisualizer

# Exit code when an inspection file cannot be graded
EXIT_INVALID_INPUT = 3


def parse_args() -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Fabric Quality Grading Demo",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--input",
        type=Path,
        required=True,
        help="Path to an inspection JSON file or a folder containing them",
    )
    parser.add_argument(
        "--catalog",
        type=Path,
        default=None,
        help="Path to defect catalog JSON (default: .env or built-in catalog)",
    )
    parser.add_argument(
        "--legacy-length",
        action="store_true",
        help="Use a length of 1 for rolls with non-positive length instead of rejecting them",
    )
    parser.add_argument(
        "--chart",
        type=Path,
        default=None,
        help="Path to save the report chart (single file) or summary dashboard (folder)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print reports as JSON instead of text",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    return parser.parse_args()


def load_sample(path: Path) -> InspectionSample:
    """Load an inspection sample from a JSON file."""
    with path.open(encoding="utf-8") as f:
        return InspectionSample.from_dict(json.load(f))


def main() -> None:
    """Run grading demo."""
    args = parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if not args.input.exists():
        print(f"Error: Path not found: {args.input}")
        sys.exit(EXIT_INVALID_INPUT)

    # Get settings from .env, use CLI args to override
    settings = get_settings()
    thresholds = QualityThresholds.from_settings(settings)
    if args.legacy_length:
        thresholds = replace(thresholds, strict_length=False)

    try:
        catalog = load_catalog(args.catalog or settings.catalog_path)
    except (FileNotFoundError, CatalogError) as e:
        print(f"Error loading catalog: {e}")
        sys.exit(EXIT_INVALID_INPUT)

    engine = GradingEngine(catalog, thresholds)

    is_folder_mode = args.input.is_dir()
    paths = sorted(args.input.glob("*.json")) if is_folder_mode else [args.input]
    if not paths:
        print(f"No inspection files found in: {args.input}")
        sys.exit(EXIT_INVALID_INPUT)

    print("=" * 60)
    print("Fabric Quality Grading Demo" + (" - Folder Mode" if is_folder_mode else ""))
    print("=" * 60)
    print(f"Catalog: {len(catalog)} defect types")
    print(f"Strict length: {thresholds.strict_length}")
    print("-" * 60)

    evaluated_at = datetime.now()
    reports = []
    failed = 0

    for path in paths:
        try:
            report = engine.evaluate(load_sample(path), evaluated_at=evaluated_at)
        except (InspectionValidationError, json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            print(f"{path.name}: cannot be graded: {e}")
            failed += 1
            continue

        reports.append(report)
        if args.json:
            print(json.dumps(report.to_dict(), ensure_ascii=False, indent=2))
        elif is_folder_mode:
            print(
                f"{path.name}: {report.grade.value} "
                f"({report.defect_count} defects, {report.normalized_score:.2f} points)"
            )
        else:
            print(report.to_text())

    if is_folder_mode and reports:
        stats = get_statistics(reports)
        print("-" * 60)
        print("SUMMARY")
        print("-" * 60)
        print(f"Total: {stats['total']} rolls")
        print(f"  A1: {stats['a1']}")
        print(f"  A2: {stats['a2']}")
        print(f"  B:  {stats['b']}")
        print(f"Average normalized score: {stats['avg_normalized_score']:.2f}")
        if failed:
            print(f"Failed: {failed}")

    if args.chart and reports:
        visualizer = ReportVisualizer()
        if is_folder_mode:
            visualizer.create_summary_dashboard(reports, save_path=args.chart)
        else:
            visualizer.create_report_chart(reports[0], save_path=args.chart)
        print(f"Saved chart to: {args.chart}")

    if failed and not reports:
        sys.exit(EXIT_INVALID_INPUT)

    # Return exit code based on worst grade
    worst = max((r.grade for r in reports), key=lambda g: g.rank, default=Grade.A1)
    sys.exit(worst.rank)


if __name__ == "__main__":
    main()
