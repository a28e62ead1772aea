"""
IGES Geometry Reconstruction

Converts merged IGES entities into geometry primitives.

Supported entities:
- Circular Arc (Type 100)
- Linear Path / Witness Line / Simple Closed Planar Curve (Type 106, Forms 12, 40, 63)
- Line (Type 110, Forms 0, 2)
- Point (Type 116)
- Transformation Matrix (Type 124, Form 0), passed through, never applied
- Rational B-spline Curve (Type 126, Forms 0, 1)

Every other type/form combination becomes an Unsupported primitive.
"""

import math
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from iges_entity import Diagnostic, IgesEntity


DEFAULT_ARC_SEGMENTS = 50

Point3D = Tuple[float, float, float]


# =============================================================================
# Primitives
# =============================================================================

@dataclass(frozen=True)
class Point:
    """Single point (Type 116)"""
    x: float
    y: float
    z: float
    kind = 'point'

    def points(self) -> List[Point3D]:
        return [(self.x, self.y, self.z)]


@dataclass(frozen=True)
class Segment:
    """Line segment between two points (Type 110)"""
    p0: Point3D
    p1: Point3D
    kind = 'segment'

    @property
    def length(self) -> float:
        return math.dist(self.p0, self.p1)

    def points(self) -> List[Point3D]:
        return [self.p0, self.p1]


@dataclass(frozen=True)
class Polyline:
    """
    Connected sequence of points (Type 106)

    The point list is stored as vertices; points() is the method shared by
    every primitive and returns the same coordinates as a list.
    """
    vertices: Tuple[Point3D, ...]
    kind = 'polyline'

    def points(self) -> List[Point3D]:
        return list(self.vertices)


@dataclass(frozen=True)
class Arc:
    """
    Circular arc (Type 100)

    The arc runs counter-clockwise from start_angle to end_angle around center.
    radius is always 1.0, as the loader this reader replaces drew every arc
    with unit radius. measured_radius is the length of the start vector.
    """
    center: Point3D
    start: Point3D
    end: Point3D
    start_angle: float
    end_angle: float
    radius: float = 1.0
    kind = 'arc'

    @property
    def measured_radius(self) -> float:
        return math.hypot(self.start[0] - self.center[0], self.start[1] - self.center[1])

    @property
    def sweep(self) -> float:
        """Counter-clockwise sweep angle in (0, 2*pi]"""
        delta = (self.end_angle - self.start_angle) % (2 * math.pi)
        if delta < 1e-12:
            # Coincident start and end points describe a full circle
            return 2 * math.pi
        return delta

    def to_points(self, segments: int = DEFAULT_ARC_SEGMENTS) -> List[Point3D]:
        """
        Sample the arc

        Args:
            segments: Number of segments (segments + 1 points are returned)

        Returns:
            List of points from start angle to end angle

        Raises:
            ValueError: If segments is less than 1
        """
        if segments < 1:
            raise ValueError(f"segments must be at least 1: {segments}")

        cx, cy, cz = self.center
        sweep = self.sweep
        result = []
        for i in range(segments + 1):
            angle = self.start_angle + sweep * i / segments
            result.append((cx + self.radius * math.cos(angle),
                           cy + self.radius * math.sin(angle),
                           cz))
        return result

    def points(self) -> List[Point3D]:
        return self.to_points()


@dataclass(frozen=True)
class SplineCurve:
    """
    Rational B-spline curve (Type 126)

    upper_index is K (number of control points minus one), degree is M.
    """
    degree: int
    upper_index: int
    control_points: Tuple[Point3D, ...]
    knots: Tuple[float, ...] = ()
    weights: Tuple[float, ...] = ()
    planar: bool = False
    closed: bool = False
    polynomial: bool = False
    periodic: bool = False
    parameter_range: Optional[Tuple[float, float]] = None
    normal: Optional[Point3D] = None
    kind = 'spline'

    def points(self) -> List[Point3D]:
        return list(self.control_points)


@dataclass(frozen=True)
class TransformationMatrix:
    """
    Transformation matrix (Type 124)

    Kept as parsed; it is not applied to the entities that reference it.
    """
    rotation: Tuple[Point3D, Point3D, Point3D]
    translation: Point3D
    kind = 'transform'

    def apply(self, point: Point3D) -> Point3D:
        return tuple(
            sum(row[j] * point[j] for j in range(3)) + self.translation[i]
            for i, row in enumerate(self.rotation)
        )

    def points(self) -> List[Point3D]:
        return []


@dataclass(frozen=True)
class Unsupported:
    """Entity that was not reconstructed"""
    type_code: str
    form_number: Optional[int] = None
    reason: str = ""
    kind = 'unsupported'

    def points(self) -> List[Point3D]:
        return []


# =============================================================================
# Reconstruction
# =============================================================================

class ReconstructionError(Exception):
    """Raised inside a reconstruction routine when parameter data is unusable"""


def _param(params: Sequence[float], index: int) -> float:
    if index >= len(params):
        raise ReconstructionError(
            f"parameter index {index} out of range ({len(params)} parameters)")
    return params[index]


def _count(params: Sequence[float], index: int) -> int:
    value = _param(params, index)
    if math.isnan(value) or value < 0:
        raise ReconstructionError(f"invalid count {value} at parameter {index}")
    return int(value)


def _point(params: Sequence[float], ix: int, iy: int, iz: int) -> Point3D:
    return (_param(params, ix), _param(params, iy), _param(params, iz))


def _circular_arc(entity: IgesEntity) -> Arc:
    """
    CIRCULAR ARC ENTITY (TYPE 100)

    1 ZT  2 X1 3 Y1 (center)  4 X2 5 Y2 (start)  6 X3 7 Y3 (terminate)
    """
    p = entity.params
    zt = _param(p, 0)
    center = (_param(p, 1), _param(p, 2), zt)
    start = (_param(p, 3), _param(p, 4), zt)
    end = (_param(p, 5), _param(p, 6), zt)
    start_angle = math.atan2(start[1] - center[1], start[0] - center[0])
    end_angle = math.atan2(end[1] - center[1], end[0] - center[0])
    return Arc(center=center, start=start, end=end,
               start_angle=start_angle, end_angle=end_angle)


def _linear_path(entity: IgesEntity) -> Polyline:
    """LINEAR PATH ENTITY (TYPE 106, FORM 12): IP=2, N, then x,y,z triples"""
    p = entity.params
    n = _count(p, 1)
    return Polyline(tuple(_point(p, 2 + 3 * i, 3 + 3 * i, 4 + 3 * i) for i in range(n)))


def _witness_line(entity: IgesEntity) -> Polyline:
    """WITNESS LINE ENTITY (TYPE 106, FORM 40): IP=1, N, ZT, then x,y pairs"""
    p = entity.params
    n = _count(p, 1)
    zt = _param(p, 2)
    return Polyline(tuple(
        (_param(p, 3 + 2 * i), _param(p, 4 + 2 * i), zt) for i in range(n)))


def _simple_closed_planar_curve(entity: IgesEntity) -> Polyline:
    """SIMPLE CLOSED PLANAR CURVE ENTITY (TYPE 106, FORM 63): x,y pairs at z=0"""
    p = entity.params
    n = _count(p, 1)
    return Polyline(tuple(
        (_param(p, 3 + 2 * i), _param(p, 4 + 2 * i), 0.0) for i in range(n)))


def _line(entity: IgesEntity) -> Segment:
    """LINE ENTITY (TYPE 110): start point X1 Y1 Z1, terminate point X2 Y2 Z2"""
    p = entity.params
    return Segment(_point(p, 0, 1, 2), _point(p, 3, 4, 5))


def _point_entity(entity: IgesEntity) -> Point:
    """POINT ENTITY (TYPE 116)"""
    x, y, z = _point(entity.params, 0, 1, 2)
    return Point(x, y, z)


def _transformation_matrix(entity: IgesEntity) -> TransformationMatrix:
    """
    TRANSFORMATION MATRIX ENTITY (TYPE 124, FORM 0)

    R11 R12 R13 T1 / R21 R22 R23 T2 / R31 R32 R33 T3
    """
    p = entity.params
    rotation = tuple(_point(p, 4 * row, 4 * row + 1, 4 * row + 2) for row in range(3))
    translation = (_param(p, 3), _param(p, 7), _param(p, 11))
    return TransformationMatrix(rotation=rotation, translation=translation)


def _rational_bspline_curve(entity: IgesEntity) -> SplineCurve:
    """
    RATIONAL B-SPLINE CURVE ENTITY (TYPE 126, FORMS 0, 1)

    K, M, PROP1..PROP4, knots T(-M)..T(N+M), weights W(0)..W(K),
    control points X(0) Y(0) Z(0) .. X(K) Y(K) Z(K), V(0), V(1), XNORM YNORM ZNORM
    with N = 1 + K - M and A = N + 2M.
    """
    p = entity.params
    k = _count(p, 0)
    m = _count(p, 1)
    n = 1 + k - m
    a = n + 2 * m
    if n < 1:
        raise ReconstructionError(f"degree {m} exceeds upper index {k}")

    flags = [_param(p, 2 + i) for i in range(4)]
    knots = tuple(_param(p, 6 + i) for i in range(a + 1))
    weights = tuple(_param(p, 7 + a + i) for i in range(k + 1))
    control_points = tuple(
        _point(p, i * 3 + 8 + a + k, i * 3 + 9 + a + k, i * 3 + 10 + a + k)
        for i in range(k + 1)
    )

    tail = 11 + a + 4 * k
    parameter_range = None
    if tail + 1 < len(p):
        parameter_range = (p[tail], p[tail + 1])
    normal = None
    if tail + 4 < len(p):
        normal = (p[tail + 2], p[tail + 3], p[tail + 4])

    return SplineCurve(
        degree=m,
        upper_index=k,
        control_points=control_points,
        knots=knots,
        weights=weights,
        planar=flags[0] == 1,
        closed=flags[1] == 1,
        polynomial=flags[2] == 1,
        periodic=flags[3] == 1,
        parameter_range=parameter_range,
        normal=normal,
    )


Reconstructor = Callable[[IgesEntity], object]

# (type code, form) -> routine; form None matches every form of that type
RECONSTRUCTORS: Dict[Tuple[str, Optional[str]], Reconstructor] = {
    ('100', None): _circular_arc,
    ('106', '12'): _linear_path,
    ('106', '40'): _witness_line,
    ('106', '63'): _simple_closed_planar_curve,
    ('110', '0'): _line,
    ('110', '2'): _line,
    ('116', None): _point_entity,
    ('124', '0'): _transformation_matrix,
    ('126', '0'): _rational_bspline_curve,
    ('126', '1'): _rational_bspline_curve,
}

FORM_DEPENDENT_TYPES = {type_code for type_code, form in RECONSTRUCTORS if form is not None}


def _form_key(form_number: Optional[int]) -> str:
    return '' if form_number is None else str(form_number)


def reconstruct(entity: IgesEntity) -> Tuple[object, Optional[str]]:
    """
    Reconstruct the geometry of one entity

    Never raises for bad entity data: problems are returned as an Unsupported
    primitive together with a message.

    Args:
        entity: Merged entity

    Returns:
        Tuple of (primitive, message or None)
    """
    form = _form_key(entity.form_number)
    routine = RECONSTRUCTORS.get((entity.type_code, form))
    if routine is None:
        routine = RECONSTRUCTORS.get((entity.type_code, None))

    if routine is None:
        if entity.type_code in FORM_DEPENDENT_TYPES:
            message = f"unsupported form number {entity.form_number}"
        else:
            message = f"unsupported entity type {entity.type_code}"
        return Unsupported(entity.type_code, entity.form_number, message), message

    try:
        return routine(entity), None
    except (ReconstructionError, ValueError, OverflowError) as e:
        message = str(e)
        return Unsupported(entity.type_code, entity.form_number, message), message


def reconstruct_all(entities: Sequence[IgesEntity]) -> Tuple[List[object], List[Diagnostic]]:
    """
    Reconstruct every entity in order

    Args:
        entities: Merged entities

    Returns:
        Tuple of (primitives, one per entity; diagnostics for skipped entities)
    """
    geometries = []
    diagnostics = []
    for index, entity in enumerate(entities):
        geometry, message = reconstruct(entity)
        geometries.append(geometry)
        if message is not None:
            diagnostics.append(Diagnostic(
                index=index,
                type_code=entity.type_code,
                form_number=entity.form_number,
                sequence_number=entity.sequence_number,
                message=message,
            ))
    return geometries, diagnostics
