"""
共通テストフィクスチャ

このモジュールは全テストで共有されるフィクスチャを提供します。
- 欠陥カタログ
- 品質しきい値
- 検査サンプル（反物）と欠陥観測
"""

from datetime import datetime
from typing import Optional

import matplotlib

matplotlib.use("Agg")

import pytest

from fabric_quality.config.settings import QualityThresholds
from fabric_quality.grading.engine import GradingEngine
from fabric_quality.models.catalog import InMemoryDefectCatalog, default_catalog
from fabric_quality.models.types import (
    DefectObservation,
    DefectTypeDefinition,
    InspectionSample,
    Position,
    Severity,
)

from defect_ids import HOLE_ID, SHADE_VARIATION_ID, YARN_BREAK_ID


# ========================================
# カタログ・しきい値フィクスチャ
# ========================================


@pytest.fixture
def catalog() -> InMemoryDefectCatalog:
    """組み込みの欠陥カタログ (20種類)."""
    return default_catalog()


@pytest.fixture
def small_catalog() -> InMemoryDefectCatalog:
    """重要度ごとに1種類ずつの小さなカタログ."""
    return InMemoryDefectCatalog(
        [
            DefectTypeDefinition("crit", "C-1", "Hole", Severity.CRITICAL, 10),
            DefectTypeDefinition("maj", "M-1", "Stain", Severity.MAJOR, 4),
            DefectTypeDefinition("min", "N-1", "Knot", Severity.MINOR, 2),
        ]
    )


@pytest.fixture
def thresholds() -> QualityThresholds:
    """デフォルトの品質しきい値."""
    return QualityThresholds()


@pytest.fixture
def engine(catalog, thresholds) -> GradingEngine:
    """組み込みカタログとデフォルトしきい値の評価エンジン."""
    return GradingEngine(catalog, thresholds)


@pytest.fixture
def evaluated_at() -> datetime:
    """レポートに付与する固定の評価日時."""
    return datetime(2026, 10, 19, 9, 30)


# ========================================
# 検査サンプルフィクスチャ
# ========================================


def make_sample(
    total_length: float = 100.0,
    observations: Optional[list[DefectObservation]] = None,
    **overrides,
) -> InspectionSample:
    """テスト用の検査サンプルを生成するヘルパー関数."""
    fields = {
        "batch_number": "B-2024-001",
        "order_reference": "ORD-042",
        "fabric_type": "Denim 12oz",
        "total_length": total_length,
        "total_width": 150.0,
        "weight": 25.0,
    }
    fields.update(overrides)
    return InspectionSample(observations=list(observations or []), **fields)


@pytest.fixture
def sample_factory():
    """検査サンプル生成関数を返す."""
    return make_sample


@pytest.fixture
def empty_sample() -> InspectionSample:
    """欠陥なしの検査サンプル (100m)."""
    return make_sample()


@pytest.fixture
def hole_observation() -> DefectObservation:
    """中央の穴 (Critical) の観測."""
    return DefectObservation(
        id="obs-1",
        defect_type_id=HOLE_ID,
        position=Position.CENTER,
        length_offset=12.5,
    )


@pytest.fixture
def sample_observations() -> list[DefectObservation]:
    """異なる重要度の観測を複数生成."""
    return [
        DefectObservation(id="obs-1", defect_type_id=HOLE_ID, position="Center", length_offset=12.5),
        DefectObservation(
            id="obs-2",
            defect_type_id=YARN_BREAK_ID,
            position="Full-width",
            length_offset=40.0,
            width=10.0,
            length=10.0,
            notes="Repaired on loom 4",
        ),
        DefectObservation(id="obs-3", defect_type_id=SHADE_VARIATION_ID, position="Left-edge", length_offset=75.0),
    ]


@pytest.fixture
def defective_sample(sample_observations) -> InspectionSample:
    """複数欠陥を含む検査サンプル (100m)."""
    return make_sample(observations=sample_observations)
