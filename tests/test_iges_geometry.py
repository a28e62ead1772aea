"""
iges_geometryのユニットテスト
"""

import math

import pytest
from pathlib import Path
import sys

# srcディレクトリをパスに追加
sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

from iges_entity import DirectoryEntry, EntityType, IgesEntity
from iges_geometry import (
    Arc, Point, Polyline, Segment, SplineCurve, TransformationMatrix, Unsupported,
    reconstruct, reconstruct_all
)


def make_entity(type_code: str, params, form=0, sequence=1) -> IgesEntity:
    """テスト用のエンティティを作成"""
    return IgesEntity(
        type_code=type_code,
        directory=DirectoryEntry(form_number=form, sequence_number=sequence),
        params=tuple(float(p) for p in params),
    )


class TestPoint:
    """点(Type 116)のテスト"""

    def test_point(self):
        geometry, message = reconstruct(make_entity("116", [10, 20, 30]))

        assert geometry == Point(10.0, 20.0, 30.0)
        assert message is None

    def test_any_form(self):
        """Type 116はForm番号に依存しない"""
        geometry, _ = reconstruct(make_entity("116", [1, 2, 3], form=None))

        assert geometry == Point(1.0, 2.0, 3.0)


class TestLine:
    """線分(Type 110)のテスト"""

    @pytest.mark.parametrize("form", [0, 2])
    def test_segment(self, form):
        geometry, _ = reconstruct(make_entity("110", [1, 2, 3, 4, 5, 6], form=form))

        assert geometry == Segment((1.0, 2.0, 3.0), (4.0, 5.0, 6.0))

    def test_length(self):
        geometry, _ = reconstruct(make_entity("110", [0, 0, 0, 3, 4, 0]))

        assert geometry.length == 5.0

    def test_unsupported_form(self):
        """Form 1は未対応"""
        geometry, message = reconstruct(make_entity("110", [1, 2, 3, 4, 5, 6], form=1))

        assert geometry == Unsupported("110", 1, message)
        assert "form" in message

    def test_missing_form(self):
        """Form番号が空欄の場合は未対応"""
        geometry, _ = reconstruct(make_entity("110", [1, 2, 3, 4, 5, 6], form=None))

        assert isinstance(geometry, Unsupported)


class TestCopiousData:
    """Type 106のテスト"""

    def test_linear_path(self):
        """Form 12: x,y,z の三つ組"""
        params = [2, 3, 0, 0, 0, 1, 1, 1, 2, 0, 5]
        geometry, _ = reconstruct(make_entity("106", params, form=12))

        assert isinstance(geometry, Polyline)
        assert geometry.vertices == ((0.0, 0.0, 0.0), (1.0, 1.0, 1.0), (2.0, 0.0, 5.0))

    def test_witness_line(self):
        """Form 40: 共通のz座標"""
        params = [1, 3, 7, 0, 0, 1, 0, 2, 0]
        geometry, _ = reconstruct(make_entity("106", params, form=40))

        assert geometry.vertices == ((0.0, 0.0, 7.0), (1.0, 0.0, 7.0), (2.0, 0.0, 7.0))

    def test_simple_closed_planar_curve(self):
        """Form 63: z = 0"""
        params = [1, 4, 9, 0, 0, 1, 0, 1, 1, 0, 0]
        geometry, _ = reconstruct(make_entity("106", params, form=63))

        assert geometry.vertices == (
            (0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (1.0, 1.0, 0.0), (0.0, 0.0, 0.0))
        assert geometry.points() == list(geometry.vertices)

    def test_unsupported_form(self):
        geometry, message = reconstruct(make_entity("106", [1, 2, 0, 0, 0, 1, 1], form=11))

        assert isinstance(geometry, Unsupported)
        assert "unsupported form number 11" == message

    def test_count_exceeds_data(self):
        """点数がパラメータ数を超える場合はUnsupported"""
        geometry, message = reconstruct(make_entity("106", [2, 5, 0, 0, 0], form=12))

        assert isinstance(geometry, Unsupported)
        assert "out of range" in message

    def test_nan_count(self):
        geometry, message = reconstruct(make_entity("106", [2, math.nan], form=12))

        assert isinstance(geometry, Unsupported)
        assert "invalid count" in message


class TestCircularArc:
    """円弧(Type 100)のテスト"""

    def test_angles(self):
        # center (1, 1), start (3, 1), end (1, 3)
        geometry, _ = reconstruct(make_entity("100", [5, 1, 1, 3, 1, 1, 3]))

        assert isinstance(geometry, Arc)
        assert geometry.center == (1.0, 1.0, 5.0)
        assert geometry.start == (3.0, 1.0, 5.0)
        assert geometry.end == (1.0, 3.0, 5.0)
        assert geometry.start_angle == 0.0
        assert geometry.end_angle == pytest.approx(math.pi / 2)

    def test_unit_radius_preserved(self):
        """半径は常に1（始点ベクトルの長さは measured_radius）"""
        geometry, _ = reconstruct(make_entity("100", [0, 1, 1, 3, 1, 1, 3]))

        assert geometry.radius == 1.0
        assert geometry.measured_radius == 2.0

    def test_sweep_is_counter_clockwise(self):
        """終了角が開始角より小さい場合は2πを加算して反時計回り"""
        geometry, _ = reconstruct(make_entity("100", [0, 0, 0, 0, 1, 1, 0]))

        assert geometry.start_angle == pytest.approx(math.pi / 2)
        assert geometry.end_angle == 0.0
        assert geometry.sweep == pytest.approx(3 * math.pi / 2)

    def test_full_circle(self):
        """始点と終点が一致する場合は全周"""
        geometry, _ = reconstruct(make_entity("100", [0, 0, 0, 1, 0, 1, 0]))

        assert geometry.sweep == pytest.approx(2 * math.pi)

    def test_to_points(self):
        geometry, _ = reconstruct(make_entity("100", [2, 0, 0, 1, 0, 0, 1]))
        points = geometry.to_points(segments=4)

        assert len(points) == 5
        assert points[0] == pytest.approx((1.0, 0.0, 2.0))
        assert points[-1] == pytest.approx((0.0, 1.0, 2.0))
        assert len(geometry.points()) == 51

    @pytest.mark.parametrize("segments", [0, -1])
    def test_to_points_rejects_non_positive_segments(self, segments):
        """分割数が1未満の場合はValueError"""
        geometry, _ = reconstruct(make_entity("100", [0, 0, 0, 1, 0, 0, 1]))

        with pytest.raises(ValueError, match="segments"):
            geometry.to_points(segments=segments)

    def test_form_independent(self):
        geometry, _ = reconstruct(make_entity("100", [0, 0, 0, 1, 0, 0, 1], form=None))

        assert isinstance(geometry, Arc)


class TestRationalBSplineCurve:
    """有理Bスプライン曲線(Type 126)のテスト"""

    # K=3, M=2 -> N=2, A=6
    PARAMS = [
        3, 2, 1, 0, 1, 0,
        0, 0, 0, 0.5, 1, 1, 1,
        1, 1, 1, 1,
        0, 0, 0, 1, 1, 0, 2, 1, 0, 3, 0, 0,
        0, 1,
        0, 0, 1,
    ]

    def test_control_points(self):
        geometry, _ = reconstruct(make_entity("126", self.PARAMS))

        assert isinstance(geometry, SplineCurve)
        assert geometry.degree == 2
        assert geometry.upper_index == 3
        assert geometry.control_points == (
            (0.0, 0.0, 0.0), (1.0, 1.0, 0.0), (2.0, 1.0, 0.0), (3.0, 0.0, 0.0))

    def test_knots_and_weights_retained(self):
        geometry, _ = reconstruct(make_entity("126", self.PARAMS, form=1))

        assert geometry.knots == (0.0, 0.0, 0.0, 0.5, 1.0, 1.0, 1.0)
        assert geometry.weights == (1.0, 1.0, 1.0, 1.0)

    def test_properties_and_tail(self):
        geometry, _ = reconstruct(make_entity("126", self.PARAMS))

        assert geometry.planar is True
        assert geometry.closed is False
        assert geometry.polynomial is True
        assert geometry.periodic is False
        assert geometry.parameter_range == (0.0, 1.0)
        assert geometry.normal == (0.0, 0.0, 1.0)

    def test_without_tail(self):
        """パラメータ範囲と法線が無い場合"""
        geometry, _ = reconstruct(make_entity("126", self.PARAMS[:29]))

        assert geometry.parameter_range is None
        assert geometry.normal is None
        assert len(geometry.control_points) == 4

    def test_truncated_control_points(self):
        geometry, message = reconstruct(make_entity("126", self.PARAMS[:20]))

        assert isinstance(geometry, Unsupported)
        assert "out of range" in message

    def test_unsupported_form(self):
        geometry, _ = reconstruct(make_entity("126", self.PARAMS, form=2))

        assert isinstance(geometry, Unsupported)


class TestTransformationMatrix:
    """変換行列(Type 124)のテスト"""

    PARAMS = [1, 0, 0, 10, 0, 1, 0, 20, 0, 0, 1, 30]

    def test_parsed(self):
        geometry, _ = reconstruct(make_entity("124", self.PARAMS))

        assert isinstance(geometry, TransformationMatrix)
        assert geometry.rotation == ((1.0, 0.0, 0.0), (0.0, 1.0, 0.0), (0.0, 0.0, 1.0))
        assert geometry.translation == (10.0, 20.0, 30.0)
        assert geometry.points() == []

    def test_apply(self):
        geometry, _ = reconstruct(make_entity("124", self.PARAMS))

        assert geometry.apply((1.0, 2.0, 3.0)) == (11.0, 22.0, 33.0)

    def test_other_forms_unsupported(self):
        geometry, _ = reconstruct(make_entity("124", self.PARAMS, form=10))

        assert isinstance(geometry, Unsupported)


class TestUnsupported:
    """未対応エンティティのテスト"""

    @pytest.mark.parametrize("type_code", [
        "102", "108", "120", "122", "128", "142", "144", "212", "214", "216", "314", "402", "406", "999",
    ])
    def test_unsupported_types(self, type_code):
        geometry, message = reconstruct(make_entity(type_code, [1, 2, 3]))

        assert geometry == Unsupported(type_code, 0, f"unsupported entity type {type_code}")
        assert message == geometry.reason
        assert geometry.points() == []

    def test_reconstruct_all_continues(self):
        """未対応エンティティがあっても処理は続行される"""
        entities = [
            make_entity("999", [], sequence=1),
            make_entity("116", [1, 2, 3], sequence=3),
            make_entity("102", [2, 1, 3], sequence=5),
        ]

        geometries, diagnostics = reconstruct_all(entities)

        assert len(geometries) == 3
        assert geometries[1] == Point(1.0, 2.0, 3.0)
        assert [d.index for d in diagnostics] == [0, 2]
        assert [d.sequence_number for d in diagnostics] == [1, 5]
        assert "type 999" in str(diagnostics[0])


class TestEntityType:
    def test_from_code(self):
        assert EntityType.from_code("126") is EntityType.RATIONAL_BSPLINE_CURVE
        assert EntityType.from_code("999") is EntityType.UNKNOWN
        assert EntityType.from_code("110").label == "Line"
