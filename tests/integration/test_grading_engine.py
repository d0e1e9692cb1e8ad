"""
評価エンジン（engine.py）の統合テスト.

GradingEngine による検証・スコアリング・正規化・グレード判定・
レポート生成の一連の流れと、統計集計をテストします。
"""

import json
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import patch

import pytest

from fabric_quality.config.settings import QualityThresholds, Settings
from fabric_quality.exceptions import InspectionValidationError
from fabric_quality.grading.engine import GradingEngine, evaluate, get_statistics
from fabric_quality.models.types import (
    DefectObservation,
    Grade,
    InspectionSample,
    Position,
    Severity,
    WarningCode,
)

from defect_ids import (
    CREASE_ID,
    HOLE_ID,
    SHADE_VARIATION_ID,
    STAIN_ID,
    UNKNOWN_ID,
    YARN_BREAK_ID,
)


# ========================================
# 代表的なシナリオ
# ========================================


class TestGradingScenarios:
    """代表的な評価シナリオのテスト."""

    def test_no_defects(self, engine, sample_factory):
        """欠陥なし・100m はA1、正規化点0."""
        report = engine.evaluate(sample_factory(total_length=100.0))

        assert report.grade == Grade.A1
        assert report.normalized_score == 0.0
        assert report.defect_count == 0
        assert report.defects == ()

    def test_single_critical_defect(self, engine, sample_factory):
        """中央の穴1件・50m は 18点 → 36点/100m でB."""
        sample = sample_factory(
            total_length=50.0,
            observations=[DefectObservation(id="d1", defect_type_id=HOLE_ID, position=Position.CENTER)],
        )

        report = engine.evaluate(sample)

        assert report.critical.count == 1
        assert report.critical.points == 18.0
        assert report.normalized_score == pytest.approx(36.0)
        assert report.grade == Grade.B
        assert "critical defects 1 > 0" in report.rationale
        assert "normalized score 36.00 > 20" in report.rationale

    def test_single_minor_defect_long_roll(self, engine, sample_factory):
        """左端の色むら1件・1000m は 0.24点/100m でA1."""
        sample = sample_factory(
            total_length=1000.0,
            observations=[
                DefectObservation(id="d1", defect_type_id=SHADE_VARIATION_ID, position=Position.LEFT_EDGE)
            ],
        )

        report = engine.evaluate(sample)

        assert report.minor.count == 1
        assert report.minor.points == 2.4
        assert report.normalized_score == pytest.approx(0.24)
        assert report.grade == Grade.A1

    def test_unresolved_defect_type(self, engine, sample_factory):
        """未知の欠陥は集計・グレードに影響せず、一覧と警告に残る."""
        known = [DefectObservation(id="d1", defect_type_id=SHADE_VARIATION_ID, position="Left-edge")]
        with_unknown = known + [DefectObservation(id="d2", defect_type_id=UNKNOWN_ID)]

        baseline = engine.evaluate(sample_factory(observations=known))
        report = engine.evaluate(sample_factory(observations=with_unknown))

        assert report.tallies == baseline.tallies
        assert report.normalized_score == baseline.normalized_score
        assert report.grade == baseline.grade
        assert len(report.defects) == 2
        assert report.defects[1].warning.code == WarningCode.UNKNOWN_DEFECT_TYPE
        assert [w.observation_id for w in report.warnings] == ["d2"]

    def test_a2_grade(self, engine, sample_factory):
        """大きな汚れ3件・100m はA2."""
        sample = sample_factory(
            observations=[
                DefectObservation(id=f"d{i}", defect_type_id=STAIN_ID, position="Full-width")
                for i in range(3)
            ]
        )

        report = engine.evaluate(sample)

        # 4 x 1 x 1.0 x 1.5 = 6.0 点 x 3 = 18.0
        assert report.major.count == 3
        assert report.total_points == 18.0
        assert report.grade == Grade.A2


# ========================================
# 性質テスト
# ========================================


class TestGradingProperties:
    """評価結果が満たすべき性質のテスト."""

    @pytest.mark.parametrize("total_length", [0.5, 10.0, 100.0, 5000.0])
    def test_non_negative_score(self, engine, sample_factory, sample_observations, total_length):
        """正規化点は常に0以上."""
        report = engine.evaluate(
            sample_factory(total_length=total_length, observations=sample_observations)
        )

        assert report.normalized_score >= 0

    def test_empty_input(self, engine, sample_factory):
        """欠陥なしでは全件数0、A1."""
        report = engine.evaluate(sample_factory(total_length=3.0))

        assert report.grade == Grade.A1
        assert report.normalized_score == 0
        assert all(t.count == 0 and t.points == 0 for t in report.tallies.values())

    def test_adding_defects_never_improves_grade(self, engine, sample_factory):
        """欠陥を追加してもグレードが良くなることはない."""
        additions = [
            (CREASE_ID, "Right-edge"),
            (SHADE_VARIATION_ID, "Center"),
            (UNKNOWN_ID, "Center"),
            (YARN_BREAK_ID, "Left-edge"),
            (CREASE_ID, "Full-width"),
            (STAIN_ID, "Center"),
            (HOLE_ID, "Left-edge"),
            (SHADE_VARIATION_ID, "Left-edge"),
            (HOLE_ID, "Center"),
        ]
        observations = []
        previous = engine.evaluate(sample_factory(total_length=200.0))

        for i, (type_id, position) in enumerate(additions):
            observations.append(
                DefectObservation(id=f"d{i}", defect_type_id=type_id, position=position)
            )
            current = engine.evaluate(sample_factory(total_length=200.0, observations=observations))

            assert not previous.grade.is_worse_than(current.grade)
            previous = current

        assert previous.grade == Grade.B

    def test_deterministic(self, engine, defective_sample, evaluated_at):
        """同じ入力で同じレポートを返すことを確認."""
        first = engine.evaluate(defective_sample, evaluated_at)
        second = engine.evaluate(defective_sample, evaluated_at)

        assert first == second
        assert first.to_text() == second.to_text()

    def test_deterministic_across_threads(self, engine, defective_sample, evaluated_at):
        """並行評価でも同じレポートを返すことを確認."""
        expected = engine.evaluate(defective_sample, evaluated_at)

        with ThreadPoolExecutor(max_workers=4) as pool:
            results = list(
                pool.map(lambda _: engine.evaluate(defective_sample.snapshot(), evaluated_at), range(16))
            )

        assert all(r == expected for r in results)

    def test_count_conservation(self, engine, sample_factory, sample_observations):
        """件数の合計はカタログで解決できた観測数と一致する."""
        observations = sample_observations + [
            DefectObservation(id="u1", defect_type_id=UNKNOWN_ID),
            DefectObservation(id="u2", defect_type_id="ghost"),
        ]

        report = engine.evaluate(sample_factory(observations=observations))

        assert report.defect_count == len(sample_observations)
        assert sum(t.count for t in report.tallies.values()) == 3
        assert len(report.defects) == 5

    def test_input_not_mutated(self, engine, defective_sample):
        """評価によって入力が変更されないことを確認."""
        before = defective_sample.to_dict()

        engine.evaluate(defective_sample)

        assert defective_sample.to_dict() == before


# ========================================
# 入力検証 テスト
# ========================================


class TestGradingValidation:
    """評価前の入力検証テスト."""

    def test_missing_batch_number(self, engine, sample_factory):
        """バッチ番号なしでInspectionValidationError."""
        with pytest.raises(InspectionValidationError, match="batch_number: is required"):
            engine.evaluate(sample_factory(batch_number=""))

    def test_all_errors_reported(self, engine, sample_factory):
        """すべてのフィールドエラーが報告されることを確認."""
        sample = sample_factory(order_reference="", total_length=0, weight=-1)

        with pytest.raises(InspectionValidationError) as exc_info:
            engine.evaluate(sample)

        assert exc_info.value.fields == ["order_reference", "total_length", "weight"]
        assert isinstance(exc_info.value, ValueError)

    def test_zero_length_rejected_by_default(self, engine, sample_factory, hole_observation):
        """長さ0はデフォルトでエラー."""
        with pytest.raises(InspectionValidationError, match="total_length"):
            engine.evaluate(sample_factory(total_length=0, observations=[hole_observation]))

    def test_string_number_from_json_rejected(self, engine, sample_factory):
        """JSONの文字列数値はTypeErrorではなく検証エラーになる."""
        data = sample_factory().to_dict()
        data["total_width"] = "150"
        sample = InspectionSample.from_dict(json.loads(json.dumps(data)))

        with pytest.raises(InspectionValidationError, match="total_width: must be a finite number"):
            engine.evaluate(sample)

    @pytest.mark.parametrize("value", [float("nan"), float("inf")])
    def test_non_finite_length_rejected(self, catalog, sample_factory, value):
        """NaN・無限大の長さはstrict_length=Falseでも拒否される."""
        engine = GradingEngine(catalog, QualityThresholds(strict_length=False))

        with pytest.raises(InspectionValidationError, match="total_length: must be a finite number"):
            engine.evaluate(sample_factory(total_length=value))

    def test_legacy_length_fallback(self, catalog, sample_factory, hole_observation):
        """strict_length=Falseでは長さ1で正規化し警告を付ける."""
        engine = GradingEngine(catalog, QualityThresholds(strict_length=False))

        report = engine.evaluate(sample_factory(total_length=0, observations=[hole_observation]))

        assert report.normalized_score == pytest.approx(1800.0)
        assert report.grade == Grade.B
        assert report.warnings[-1].code == WarningCode.DEGENERATE_LENGTH_FALLBACK


# ========================================
# 生成・関数API テスト
# ========================================


class TestGradingEngineConstruction:
    """エンジン生成と関数APIのテスト."""

    def test_default_thresholds(self, catalog):
        """しきい値未指定でデフォルトを使う."""
        engine = GradingEngine(catalog)

        assert engine.thresholds == QualityThresholds()

    def test_evaluate_function_matches_engine(self, engine, catalog, thresholds, defective_sample, evaluated_at):
        """関数APIがエンジンと同じ結果を返すことを確認."""
        report = evaluate(defective_sample, thresholds, catalog, evaluated_at)

        assert report == engine.evaluate(defective_sample, evaluated_at)

    def test_custom_thresholds_change_grade(self, catalog, sample_factory, hole_observation):
        """しきい値の違いでグレードが変わることを確認."""
        sample = sample_factory(total_length=100.0, observations=[hole_observation])
        strict = QualityThresholds(critical_defect_limit_a2=0)

        assert evaluate(sample, QualityThresholds(), catalog).grade == Grade.A2
        assert evaluate(sample, strict, catalog).grade == Grade.B

    def test_from_settings_with_catalog_file(self, tmp_path, sample_factory):
        """設定のカタログパスからエンジンを生成できることを確認."""
        path = tmp_path / "catalog.json"
        path.write_text(
            json.dumps(
                {
                    "defect_types": [
                        {"id": "burn", "code": "B-1", "name": "Burn", "severity": "Critical", "base_points": 20},
                    ]
                }
            ),
            encoding="utf-8",
        )
        settings = Settings(catalog_path=path, point_threshold_a2=50.0)

        engine = GradingEngine.from_settings(settings)
        report = engine.evaluate(
            sample_factory(observations=[DefectObservation(id="d1", defect_type_id="burn")])
        )

        # 20 x 1 x 1.2 x 1.5 = 36.0
        assert report.critical.points == 36.0
        assert report.grade == Grade.A2
        assert len(engine.catalog) == 1

    def test_from_settings_default(self):
        """引数なしではget_settings()の設定を使う."""
        with patch(
            "fabric_quality.grading.engine.get_settings",
            return_value=Settings(center_position_factor=2.0),
        ):
            engine = GradingEngine.from_settings()

        assert engine.thresholds.position_factor(Position.CENTER) == 2.0
        assert len(engine.catalog) == 20

    def test_evaluate_batch(self, engine, sample_factory, sample_observations):
        """複数サンプルを一括評価できることを確認."""
        samples = [sample_factory(), sample_factory(observations=sample_observations)]

        reports = engine.evaluate_batch(samples)

        assert [r.grade for r in reports] == [Grade.A1, Grade.B]


# ========================================
# 統計 テスト
# ========================================


class TestGetStatistics:
    """get_statistics() 関数のテスト."""

    def test_statistics(self, engine, sample_factory, sample_observations):
        """グレード別件数と平均・最大点を集計する."""
        reports = engine.evaluate_batch(
            [
                sample_factory(),
                sample_factory(observations=sample_observations),
                sample_factory(observations=[DefectObservation(id="u", defect_type_id=UNKNOWN_ID)]),
            ]
        )

        stats = get_statistics(reports)

        assert stats["total"] == 3
        assert stats["a1"] == 2
        assert stats["a2"] == 0
        assert stats["b"] == 1
        assert stats["critical_defects"] == 1
        assert stats["major_defects"] == 1
        assert stats["minor_defects"] == 1
        assert stats["with_warnings"] == 1
        assert stats["avg_normalized_score"] == pytest.approx(35.4 / 3)
        assert stats["max_normalized_score"] == pytest.approx(35.4)
        assert stats["first_quality_rate"] == pytest.approx(2 / 3)

    def test_statistics_empty(self):
        """レポートなしでは全て0."""
        stats = get_statistics([])

        assert stats["total"] == 0
        assert stats["avg_normalized_score"] == 0.0
        assert stats["first_quality_rate"] == 0.0

    def test_statistics_severity_keys(self, engine, defective_sample):
        """重要度ごとの件数キーがあることを確認."""
        stats = get_statistics([engine.evaluate(defective_sample)])

        for severity in Severity:
            assert f"{severity.value.lower()}_defects" in stats
