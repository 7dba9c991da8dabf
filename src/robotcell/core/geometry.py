"""
Geometry primitives for RobotCell.

A :class:`Pose` is an immutable right-handed frame (origin, X axis, Y axis),
equivalent to a rigid 4x4 homogeneous transform. All operations return new
poses; matrices are plain ``numpy`` arrays built on demand.

Matrix products, vector lengths and pose transforms are evaluated term by
term in a fixed order rather than through BLAS, so solved planes, distances
and interpolation step counts are reproducible to the last bit.

Also provides the rotation conversions used by the code emitters
(quaternions, axis-angle vectors and KUKA ZYX Euler angles) and conversion to
and from :class:`compas.geometry.Frame`.
"""

from __future__ import annotations

import math
import sys
from dataclasses import dataclass
from typing import List, Sequence, Tuple

import numpy as np
from compas.geometry import Frame
from scipy.spatial.transform import Rotation

from robotcell.core.units import UNIT_TOL

Vector3 = Tuple[float, float, float]
Quaternion = Tuple[float, float, float, float]

_EPSILON = 2.220446049250313e-16
_SQRT_EPSILON = 1.490116119385e-08


def _vec(values: Sequence[float]) -> Vector3:
    return (float(values[0]), float(values[1]), float(values[2]))


def _unit(v: np.ndarray) -> np.ndarray:
    length = math.sqrt(v[0] * v[0] + v[1] * v[1] + v[2] * v[2])
    return v / length


def _dot(a: Sequence[float], b: Sequence[float]) -> float:
    return a[0] * b[0] + a[1] * b[1] + a[2] * b[2]


def _cross(a: Sequence[float], b: Sequence[float]) -> Vector3:
    return (a[1] * b[2] - b[1] * a[2], a[2] * b[0] - b[2] * a[0], a[0] * b[1] - b[0] * a[1])


def _normalize(v: Sequence[float]) -> Vector3:
    length = math.sqrt(v[0] * v[0] + v[1] * v[1] + v[2] * v[2])
    return (v[0] / length, v[1] / length, v[2] / length)


def _unitize(v: Sequence[float]) -> Vector3:
    length = vector_length(v)
    if length > sys.float_info.min:
        inverse = 1.0 / length
        return (v[0] * inverse, v[1] * inverse, v[2] * inverse)
    return (0.0, 0.0, 0.0)


def vector_length(v: Sequence[float]) -> float:
    """
    Euclidean length, scaled by the largest component.

    The two smaller components are divided by the largest before squaring,
    so a vector dominated by one axis has exactly that axis' length.
    """
    x, y, z = abs(v[0]), abs(v[1]), abs(v[2])
    if y >= x and y >= z:
        x, y = y, x
    elif z >= x and z >= y:
        x, z = z, x

    if x > sys.float_info.min:
        inverse = 1.0 / x
        y *= inverse
        z *= inverse
        return x * math.sqrt(1.0 + y * y + z * z)
    if x > 0.0 and math.isfinite(x):
        return x
    return 0.0


def _rows(matrix) -> List[List[float]]:
    return np.asarray(matrix, dtype=float).tolist()


def _is_identity(m: List[List[float]]) -> bool:
    return all(m[i][j] == (1.0 if i == j else 0.0) for i in range(4) for j in range(4))


def _apply_point(m: List[List[float]], p: Sequence[float]) -> Vector3:
    x, y, z = p
    xh = m[0][0] * x + m[0][1] * y + m[0][2] * z + m[0][3]
    yh = m[1][0] * x + m[1][1] * y + m[1][2] * z + m[1][3]
    zh = m[2][0] * x + m[2][1] * y + m[2][2] * z + m[2][3]
    w = m[3][0] * x + m[3][1] * y + m[3][2] * z + m[3][3]
    w = 1.0 / w if w != 0.0 else 1.0
    return (w * xh, w * yh, w * zh)


def _apply_vector(m: List[List[float]], v: Sequence[float]) -> Vector3:
    x, y, z = v
    return (
        m[0][0] * x + m[0][1] * y + m[0][2] * z,
        m[1][0] * x + m[1][1] * y + m[1][2] * z,
        m[2][0] * x + m[2][1] * y + m[2][2] * z,
    )


def multiply(a, b) -> np.ndarray:
    """Product of two 4x4 matrices, each entry summed in index order."""
    a = _rows(a)
    b = _rows(b)
    return np.array(
        [
            [a[i][0] * b[0][j] + a[i][1] * b[1][j] + a[i][2] * b[2][j] + a[i][3] * b[3][j] for j in range(4)]
            for i in range(4)
        ]
    )


def invert(matrix) -> np.ndarray:
    """
    Inverse of a 4x4 matrix by Gauss-Jordan elimination with full pivoting.

    Raises:
        ValueError: If the matrix is singular.
    """
    m = _rows(matrix)
    inverse = [[1.0 if i == j else 0.0 for j in range(4)] for i in range(4)]
    columns = [0, 1, 2, 3]

    for k in range(4):
        ix = jx = k
        x = abs(m[k][k])
        for i in range(k, 4):
            for j in range(k, 4):
                if abs(m[i][j]) > x:
                    ix, jx, x = i, j, abs(m[i][j])

        if ix != k:
            m[k], m[ix] = m[ix], m[k]
            inverse[k], inverse[ix] = inverse[ix], inverse[k]
        if jx != k:
            for row in m:
                row[k], row[jx] = row[jx], row[k]
            columns[k] = jx

        if x == 0.0:
            raise ValueError("Matrix is singular.")

        c = m[k][k]
        for j in range(k + 1, 4):
            m[k][j] /= c
        for j in range(4):
            inverse[k][j] /= c

        x *= _EPSILON
        for i in range(4):
            if i != k and abs(m[i][k]) > x:
                c = -m[i][k]
                for j in range(k + 1, 4):
                    m[i][j] += c * m[k][j]
                for j in range(4):
                    inverse[i][j] += c * inverse[k][j]

    for k in (3, 2, 1, 0):
        if columns[k] != k:
            inverse[k], inverse[columns[k]] = inverse[columns[k]], inverse[k]

    return np.array(inverse)


@dataclass(frozen=True)
class Interval:
    """Closed range between two values; the ends may be given in any order."""

    t0: float
    t1: float

    @property
    def min(self) -> float:
        return min(self.t0, self.t1)

    @property
    def max(self) -> float:
        return max(self.t0, self.t1)

    @property
    def mid(self) -> float:
        return (self.t0 + self.t1) * 0.5

    def includes(self, value: float) -> bool:
        """Return True when ``value`` lies inside the interval (ends included)."""
        return self.min <= value <= self.max


@dataclass(frozen=True)
class Pose:
    """
    Immutable frame defined by an origin and two orthonormal axes.

    Attributes:
        origin: Position of the frame.
        xaxis: Unit X direction.
        yaxis: Unit Y direction, perpendicular to ``xaxis``.
    """

    origin: Vector3 = (0.0, 0.0, 0.0)
    xaxis: Vector3 = (1.0, 0.0, 0.0)
    yaxis: Vector3 = (0.0, 1.0, 0.0)

    def __post_init__(self) -> None:
        object.__setattr__(self, "origin", _vec(self.origin))
        object.__setattr__(self, "xaxis", _vec(self.xaxis))
        object.__setattr__(self, "yaxis", _vec(self.yaxis))

    # ── Construction ──────────────────────────────────────────────────────

    @classmethod
    def from_axes(
        cls,
        origin: Sequence[float],
        xaxis: Sequence[float],
        yaxis: Sequence[float],
    ) -> Pose:
        """
        Build a pose from arbitrary (non-parallel) axis directions.

        ``xaxis`` keeps its direction; ``yaxis`` is projected so it becomes
        perpendicular to it.
        """
        x = _unitize(_vec(xaxis))
        y = _vec(yaxis)
        d = _dot(y, x)
        y = _unitize((y[0] - d * x[0], y[1] - d * x[1], y[2] - d * x[2]))
        return cls(_vec(origin), x, y)

    @classmethod
    def from_matrix(cls, matrix: np.ndarray) -> Pose:
        """
        Build a pose from a homogeneous transform.

        The rotation part is re-orthonormalised: Z = X × Y, then Y = Z × X.
        """
        m = _rows(matrix)
        vx = (m[0][0], m[1][0], m[2][0])
        vy = (m[0][1], m[1][1], m[2][1])
        vz = _cross(vx, vy)
        vy = _cross(vz, vx)
        return cls((m[0][3], m[1][3], m[2][3]), _normalize(vx), _normalize(vy))

    @classmethod
    def from_quaternion(cls, quaternion: Sequence[float], origin: Sequence[float] = (0.0, 0.0, 0.0)) -> Pose:
        """Build a pose from a ``(w, x, y, z)`` quaternion; it is normalised first."""
        q = np.asarray(quaternion, dtype=float)
        q = q / np.linalg.norm(q)
        m = quaternion_to_matrix(q)
        return cls(_vec(origin), _vec(m[:3, 0]), _vec(m[:3, 1]))

    @classmethod
    def from_frame(cls, frame: Frame) -> Pose:
        """Convert a COMPAS frame."""
        return cls(_vec(frame.point), _vec(frame.xaxis), _vec(frame.yaxis))

    def to_frame(self) -> Frame:
        """Convert to a COMPAS frame."""
        return Frame(list(self.origin), list(self.xaxis), list(self.yaxis))

    # ── Properties ────────────────────────────────────────────────────────

    @property
    def zaxis(self) -> Vector3:
        return _unitize(_cross(self.xaxis, self.yaxis))

    @property
    def normal(self) -> Vector3:
        return self.zaxis

    def to_matrix(self) -> np.ndarray:
        """Homogeneous transform mapping local coordinates to world coordinates."""
        m = np.identity(4)
        m[:3, 0] = self.xaxis
        m[:3, 1] = self.yaxis
        m[:3, 2] = self.zaxis
        m[:3, 3] = self.origin
        return m

    def inverse_matrix(self) -> np.ndarray:
        """Homogeneous transform mapping world coordinates to local coordinates."""
        p = (-self.origin[0], -self.origin[1], -self.origin[2])
        m = np.identity(4)
        for i, axis in enumerate((self.xaxis, self.yaxis, self.zaxis)):
            m[i, :3] = axis
            m[i, 3] = _dot(p, axis)
        return m

    # ── Transformations ───────────────────────────────────────────────────

    def transform(self, matrix: np.ndarray) -> Pose:
        """
        Apply a homogeneous transform.

        The identity returns this pose untouched; otherwise the transformed
        axes are unitised and Y is re-projected perpendicular to X.
        """
        m = _rows(matrix)
        if _is_identity(m):
            return self

        origin = _apply_point(m, self.origin)
        if m[3] == [0.0, 0.0, 0.0, 1.0]:
            xaxis = _apply_vector(m, self.xaxis)
            yaxis = _apply_vector(m, self.yaxis)
        else:
            ends = [
                _apply_point(m, [o + v for o, v in zip(self.origin, axis)]) for axis in (self.xaxis, self.yaxis)
            ]
            xaxis, yaxis = ([e - o for e, o in zip(end, origin)] for end in ends)
        return Pose.from_axes(origin, xaxis, yaxis)

    def orient(self, other: Pose) -> Pose:
        """Map this pose, expressed relative to ``other``, into world space."""
        return self.transform(other.to_matrix())

    def inverse_orient(self, other: Pose) -> Pose:
        """Express this world pose relative to ``other``."""
        return self.transform(other.inverse_matrix())

    def rotate(
        self,
        angle: float,
        axis: Sequence[float],
        center: Sequence[float] = (0.0, 0.0, 0.0),
    ) -> Pose:
        """
        Rotate by ``angle`` radians about ``axis`` passing through ``center``.

        When ``center`` is this pose's origin only the axes turn and they are
        not re-orthonormalised.
        """
        if _vec(center) == self.origin:
            m = _rows(rotation_matrix(angle, axis))
            return Pose(self.origin, _apply_vector(m, self.xaxis), _apply_vector(m, self.yaxis))
        return self.transform(rotation_matrix(angle, axis, center))

    def translate(self, vector: Sequence[float]) -> Pose:
        origin = np.asarray(self.origin) + np.asarray(vector, dtype=float)
        return Pose(_vec(origin), self.xaxis, self.yaxis)

    def with_origin(self, origin: Sequence[float]) -> Pose:
        return Pose(_vec(origin), self.xaxis, self.yaxis)

    def distance_to(self, other: Pose) -> float:
        return vector_length([b - a for a, b in zip(self.origin, other.origin)])

    def is_close(self, other: Pose, tol: float = 1e-6) -> bool:
        """Compare origin and axes component-wise within ``tol``."""
        return bool(
            np.allclose(self.origin, other.origin, atol=tol)
            and np.allclose(self.xaxis, other.xaxis, atol=tol)
            and np.allclose(self.yaxis, other.yaxis, atol=tol)
        )


WORLD_XY = Pose((0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0))
WORLD_YZ = Pose((0.0, 0.0, 0.0), (0.0, 1.0, 0.0), (0.0, 0.0, 1.0))
WORLD_ZX = Pose((0.0, 0.0, 0.0), (0.0, 0.0, 1.0), (1.0, 0.0, 0.0))


# ── Transforms ────────────────────────────────────────────────────────────


def translation_matrix(vector: Sequence[float]) -> np.ndarray:
    m = np.identity(4)
    m[:3, 3] = vector
    return m


def rotation_matrix(
    angle: float,
    axis: Sequence[float],
    center: Sequence[float] = (0.0, 0.0, 0.0),
) -> np.ndarray:
    """
    Rotation about an arbitrary axis through ``center``.

    Quarter and half turns are snapped so their sines and cosines are
    exactly 0 or ±1. The axis is only unitised when it is not already unit
    length to machine precision.
    """
    s = math.sin(angle)
    c = math.cos(angle)
    if abs(s) >= 1.0 - _SQRT_EPSILON and abs(c) <= _SQRT_EPSILON:
        c = 0.0
        s = -1.0 if s < 0.0 else 1.0
    elif abs(c) >= 1.0 - _SQRT_EPSILON and abs(s) <= _SQRT_EPSILON:
        c = -1.0 if c < 0.0 else 1.0
        s = 0.0

    m = np.identity(4)
    if s == 0.0 and c == 1.0:
        return m

    a = _vec(axis)
    if abs(_dot(a, a) - 1.0) > _EPSILON:
        a = _unitize(a)
    x, y, z = a
    t = 1.0 - c
    m[0, 0] = x * x * t + c
    m[0, 1] = x * y * t - z * s
    m[0, 2] = x * z * t + y * s
    m[1, 0] = y * x * t + z * s
    m[1, 1] = y * y * t + c
    m[1, 2] = y * z * t - x * s
    m[2, 0] = z * x * t - y * s
    m[2, 1] = z * y * t + x * s
    m[2, 2] = z * z * t + c

    cx, cy, cz = _vec(center)
    if cx != 0.0 or cy != 0.0 or cz != 0.0:
        m[0, 3] = -((m[0, 0] - 1.0) * cx + m[0, 1] * cy + m[0, 2] * cz)
        m[1, 3] = -(m[1, 0] * cx + (m[1, 1] - 1.0) * cy + m[1, 2] * cz)
        m[2, 3] = -(m[2, 0] * cx + m[2, 1] * cy + (m[2, 2] - 1.0) * cz)
    return m


def rotation_z(angle: float) -> np.ndarray:
    return rotation_matrix(angle, (0.0, 0.0, 1.0))


def plane_to_plane(source: Pose, target: Pose) -> np.ndarray:
    """
    Transform that moves ``source`` onto ``target``.

    Composed as translate-to-origin, change of basis, then translate to the
    target origin.
    """
    to_origin = translation_matrix([0.0 - v for v in source.origin])
    from_origin = translation_matrix(target.origin)

    unframe = np.identity(4)
    unframe[0, :3] = source.xaxis
    unframe[1, :3] = source.yaxis
    unframe[2, :3] = source.zaxis
    frame = np.identity(4)
    frame[:3, 0] = target.xaxis
    frame[:3, 1] = target.yaxis
    frame[:3, 2] = target.zaxis

    return multiply(multiply(from_origin, multiply(frame, unframe)), to_origin)


def half_turn_plane(matrix: np.ndarray) -> Pose:
    """
    Plane of a joint transform turned half a turn about its own Z axis.

    Z is the normalised X × Y of the raw matrix columns; the origin stays put.
    """
    m = _rows(matrix)
    vx = (m[0][0], m[1][0], m[2][0])
    vy = (m[0][1], m[1][1], m[2][1])
    vz = _cross(vx, vy)
    vy = _cross(vz, vx)
    rotation = _rows(rotation_matrix(math.pi, _normalize(vz)))
    return Pose(
        (m[0][3], m[1][3], m[2][3]),
        _apply_vector(rotation, _normalize(vx)),
        _apply_vector(rotation, _normalize(vy)),
    )


# ── Rotation conversions ──────────────────────────────────────────────────


def pose_to_quaternion(pose: Pose) -> Quaternion:
    """
    Quaternion ``(w, x, y, z)`` of the pose orientation.

    Uses the trace-branch conversion so that RAPID output is stable: for
    identity the result is exactly ``(1, 0, 0, 0)``.
    """
    m = pose.to_matrix()
    trace = m[0, 0] + m[1, 1] + m[2, 2]

    if trace > 0.0:
        s = math.sqrt(trace + 1.0)
        w = s * 0.5
        s = 0.5 / s
        x = (m[2, 1] - m[1, 2]) * s
        y = (m[0, 2] - m[2, 0]) * s
        z = (m[1, 0] - m[0, 1]) * s
    elif m[0, 0] >= m[1, 1] and m[0, 0] >= m[2, 2]:
        s = math.sqrt(1.0 + m[0, 0] - m[1, 1] - m[2, 2])
        inv_s = 0.5 / s
        x = 0.5 * s
        y = (m[1, 0] + m[0, 1]) * inv_s
        z = (m[2, 0] + m[0, 2]) * inv_s
        w = (m[2, 1] - m[1, 2]) * inv_s
    elif m[1, 1] > m[2, 2]:
        s = math.sqrt(1.0 + m[1, 1] - m[0, 0] - m[2, 2])
        inv_s = 0.5 / s
        x = (m[0, 1] + m[1, 0]) * inv_s
        y = 0.5 * s
        z = (m[1, 2] + m[2, 1]) * inv_s
        w = (m[0, 2] - m[2, 0]) * inv_s
    else:
        s = math.sqrt(1.0 + m[2, 2] - m[0, 0] - m[1, 1])
        inv_s = 0.5 / s
        x = (m[0, 2] + m[2, 0]) * inv_s
        y = (m[1, 2] + m[2, 1]) * inv_s
        z = 0.5 * s
        w = (m[1, 0] - m[0, 1]) * inv_s

    return (float(w), float(x), float(y), float(z))


def quaternion_to_matrix(q: Sequence[float]) -> np.ndarray:
    """Rotation matrix of a unit ``(w, x, y, z)`` quaternion."""
    w, x, y, z = q
    xx, yy, zz = x * x, y * y, z * z
    xy, wz, xz = x * y, z * w, z * x
    wy, yz, wx = y * w, y * z, x * w

    m = np.identity(4)
    m[0, 0] = 1.0 - 2.0 * (yy + zz)
    m[0, 1] = 2.0 * (xy - wz)
    m[0, 2] = 2.0 * (xz + wy)
    m[1, 0] = 2.0 * (xy + wz)
    m[1, 1] = 1.0 - 2.0 * (zz + xx)
    m[1, 2] = 2.0 * (yz - wx)
    m[2, 0] = 2.0 * (xz - wy)
    m[2, 1] = 2.0 * (yz + wx)
    m[2, 2] = 1.0 - 2.0 * (yy + xx)
    return m


def slerp(q1: Sequence[float], q2: Sequence[float], t: float) -> Quaternion:
    """Spherical interpolation along the shortest arc between two quaternions."""
    epsilon = 1e-6
    w1, x1, y1, z1 = q1
    w2, x2, y2, z2 = q2

    cos_omega = x1 * x2 + y1 * y2 + z1 * z2 + w1 * w2
    flip = cos_omega < 0.0
    if flip:
        cos_omega = -cos_omega

    if cos_omega > 1.0 - epsilon:
        s1 = 1.0 - t
        s2 = -t if flip else t
    else:
        omega = math.acos(cos_omega)
        inv_sin_omega = 1.0 / math.sin(omega)
        s1 = math.sin((1.0 - t) * omega) * inv_sin_omega
        s2 = math.sin(t * omega) * inv_sin_omega
        if flip:
            s2 = -s2

    return (
        s1 * w1 + s2 * w2,
        s1 * x1 + s2 * x2,
        s1 * y1 + s2 * y2,
        s1 * z1 + s2 * z2,
    )


def pose_to_axis_angle(pose: Pose) -> list[float]:
    """
    Convert to ``[x, y, z, rx, ry, rz]`` where ``r`` is a rotation vector.

    Near-symmetric matrices are treated as 0 or 180 degree rotations with
    loose tolerances, which is what UR controllers expect.
    """
    m = pose.to_matrix()
    x0, y0, z0 = pose.origin
    epsilon = 0.01
    epsilon2 = 0.1

    if (
        abs(m[0, 1] - m[1, 0]) < epsilon
        and abs(m[0, 2] - m[2, 0]) < epsilon
        and abs(m[1, 2] - m[2, 1]) < epsilon
    ):
        if (
            abs(m[0, 1] + m[1, 0]) < epsilon2
            and abs(m[0, 2] + m[2, 0]) < epsilon2
            and abs(m[1, 2] + m[2, 1]) < epsilon2
            and abs(m[0, 0] + m[1, 1] + m[2, 2] - 3) < epsilon2
        ):
            return [x0, y0, z0, 0.0, 0.0, 0.0]

        xx = (m[0, 0] + 1) / 2
        yy = (m[1, 1] + 1) / 2
        zz = (m[2, 2] + 1) / 2
        xy = (m[0, 1] + m[1, 0]) / 4
        xz = (m[0, 2] + m[2, 0]) / 4
        yz = (m[1, 2] + m[2, 1]) / 4

        if xx > yy and xx > zz:
            if xx < epsilon:
                axis = (0.0, 0.7071, 0.7071)
            else:
                x = math.sqrt(xx)
                axis = (x, xy / x, xz / x)
        elif yy > zz:
            if yy < epsilon:
                axis = (0.7071, 0.0, 0.7071)
            else:
                y = math.sqrt(yy)
                axis = (xy / y, y, yz / y)
        else:
            if zz < epsilon:
                axis = (0.7071, 0.7071, 0.0)
            else:
                z = math.sqrt(zz)
                axis = (xz / z, yz / z, z)

        vector = _unit(np.asarray(axis)) * math.pi
        return [x0, y0, z0, float(vector[0]), float(vector[1]), float(vector[2])]

    s = math.sqrt(
        (m[2, 1] - m[1, 2]) ** 2 + (m[0, 2] - m[2, 0]) ** 2 + (m[1, 0] - m[0, 1]) ** 2
    )
    if abs(s) < 0.001:
        s = 1.0

    angle = math.acos((m[0, 0] + m[1, 1] + m[2, 2] - 1) / 2)
    axis = np.array([(m[2, 1] - m[1, 2]) / s, (m[0, 2] - m[2, 0]) / s, (m[1, 0] - m[0, 1]) / s])
    vector = _unit(axis) * angle
    return [x0, y0, z0, float(vector[0]), float(vector[1]), float(vector[2])]


def axis_angle_to_pose(values: Sequence[float]) -> Pose:
    """Inverse of :func:`pose_to_axis_angle`."""
    rotation = Rotation.from_rotvec(np.asarray(values[3:6], dtype=float)).as_matrix()
    return Pose(_vec(values[:3]), _vec(rotation[:, 0]), _vec(rotation[:, 1]))


def pose_to_euler_zyx(pose: Pose) -> list[float]:
    """
    Convert to KUKA ``[X, Y, Z, A, B, C]`` with angles in degrees.

    Gimbal lock (B = ±90°) puts the whole rotation in A and sets C to 0.
    """
    t = pose.to_matrix()
    a = math.atan2(-t[1, 0], t[0, 0])
    mult = 1.0 - t[2, 0] * t[2, 0]
    if abs(mult) < UNIT_TOL:
        mult = 0.0
    b = math.atan2(t[2, 0], math.sqrt(mult))
    c = math.atan2(-t[2, 1], t[2, 2])

    if t[2, 0] < -1.0 + UNIT_TOL:
        a = math.atan2(t[0, 1], t[1, 1])
        b = -math.pi / 2
        c = 0.0
    elif t[2, 0] > 1.0 - UNIT_TOL:
        a = math.atan2(t[0, 1], t[1, 1])
        b = math.pi / 2
        c = 0.0

    x, y, z = pose.origin
    return [x, y, z, math.degrees(-a), math.degrees(-b), math.degrees(-c)]


def euler_zyx_to_pose(values: Sequence[float]) -> Pose:
    """Inverse of :func:`pose_to_euler_zyx`."""
    a = -math.radians(values[3])
    b = -math.radians(values[4])
    c = -math.radians(values[5])
    ca, sa = math.cos(a), math.sin(a)
    cb, sb = math.cos(b), math.sin(b)
    cc, sc = math.cos(c), math.sin(c)

    m = np.identity(4)
    m[0, 0] = ca * cb
    m[0, 1] = sa * cc + ca * sb * sc
    m[0, 2] = sa * sc - ca * sb * cc
    m[1, 0] = -sa * cb
    m[1, 1] = ca * cc - sa * sb * sc
    m[1, 2] = ca * sc + sa * sb * cc
    m[2, 0] = sb
    m[2, 1] = -cb * sc
    m[2, 2] = cb * cc
    m[:3, 3] = values[:3]
    return Pose.from_matrix(m)


def pose_to_euler_xyz(pose: Pose) -> list[float]:
    """
    Convert to Staubli ``[x, y, z, rx, ry, rz]`` with angles in degrees.

    The rotation is ``Rx(rx) · Ry(ry) · Rz(rz)``; at ry = ±90° the whole
    rotation goes to rx and rz is 0.
    """
    t = pose.to_matrix()
    a = math.atan2(-t[1, 2], t[2, 2])
    mult = 1.0 - t[0, 2] * t[0, 2]
    if abs(mult) < UNIT_TOL:
        mult = 0.0
    b = math.atan2(t[0, 2], math.sqrt(mult))
    c = math.atan2(-t[0, 1], t[0, 0])

    if t[0, 2] < -1.0 + UNIT_TOL:
        a = math.atan2(t[2, 1], t[1, 1])
        b = -math.pi / 2
        c = 0.0
    elif t[0, 2] > 1.0 - UNIT_TOL:
        a = math.atan2(t[2, 1], t[1, 1])
        b = math.pi / 2
        c = 0.0

    x, y, z = pose.origin
    return [x, y, z, math.degrees(a), math.degrees(b), math.degrees(c)]


def euler_xyz_to_pose(values: Sequence[float]) -> Pose:
    """Inverse of :func:`pose_to_euler_xyz`."""
    m = np.identity(4)
    m[:3, :3] = Rotation.from_euler("XYZ", values[3:6], degrees=True).as_matrix()
    m[:3, 3] = values[:3]
    return Pose.from_matrix(m)
