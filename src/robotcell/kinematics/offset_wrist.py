"""
Closed form kinematics for 6-axis arms with an offset wrist (Universal Robots).

Adapted from the ``ur_kinematics`` solution of ROS-Industrial: the wrist axes
do not intersect, so the shoulder angle is found first from the wrist 1
offset, then wrist 2, wrist 3, and finally the planar elbow triangle.
"""

import math
from typing import List, Optional, Sequence, Tuple

import numpy as np

from robotcell.core.geometry import rotation_z
from robotcell.kinematics.base import RobotSolver, safe_acos
from robotcell.targets.targets import RobotConfiguration


def _sign(value: float) -> int:
    return (value > 0) - (value < 0)


def _matrix(rows: Sequence[Sequence[float]]) -> np.ndarray:
    m = np.identity(4)
    m[:3, :] = rows
    return m


class OffsetWristSolver(RobotSolver):
    """Analytic solver for offset wrist arms (8 configuration branches)."""

    def inverse_kinematics(
        self,
        transform: np.ndarray,
        configuration: RobotConfiguration,
        external: Sequence[float],
        prev_joints: Optional[Sequence[float]],
    ) -> Tuple[List[float], List[str]]:
        errors: List[str] = []

        shoulder = RobotConfiguration.SHOULDER in configuration
        elbow = RobotConfiguration.ELBOW in configuration
        if shoulder:
            elbow = not elbow
        wrist = RobotConfiguration.WRIST not in configuration
        if shoulder:
            wrist = not wrist

        joints = [0.0] * 6
        unreachable = False

        t = transform @ rotation_z(math.pi / 2)

        a = [joint.a for joint in self.mechanism.joints]
        d = [joint.d for joint in self.mechanism.joints]

        # shoulder
        A = d[5] * t[1, 2] - t[1, 3]
        B = d[5] * t[0, 2] - t[0, 3]
        arccos = safe_acos(d[3] / math.sqrt(A * A + B * B))
        if math.isnan(arccos):
            errors.append("Overhead singularity.")
            arccos = 0.0
        arctan = math.atan2(-B, A)
        joints[0] = arccos + arctan if not shoulder else -arccos + arctan

        # wrist 2
        arccos = safe_acos((t[0, 3] * math.sin(joints[0]) - t[1, 3] * math.cos(joints[0]) - d[3]) / d[5])
        if math.isnan(arccos):
            errors.append("Overhead singularity 2.")
            arccos = math.pi
            unreachable = True
        joints[4] = arccos if not wrist else 2.0 * math.pi - arccos

        # rest
        c1, s1 = math.cos(joints[0]), math.sin(joints[0])
        c5, s5 = math.cos(joints[4]), math.sin(joints[4])

        joints[5] = math.atan2(
            _sign(s5) * -(t[0, 1] * s1 - t[1, 1] * c1),
            _sign(s5) * (t[0, 0] * s1 - t[1, 0] * c1),
        )

        c6, s6 = math.cos(joints[5]), math.sin(joints[5])
        x04x = -s5 * (t[0, 2] * c1 + t[1, 2] * s1) - c5 * (
            s6 * (t[0, 1] * c1 + t[1, 1] * s1) - c6 * (t[0, 0] * c1 + t[1, 0] * s1)
        )
        x04y = c5 * (t[2, 0] * c6 - t[2, 1] * s6) - t[2, 2] * s5
        p13x = (
            d[4] * (s6 * (t[0, 0] * c1 + t[1, 0] * s1) + c6 * (t[0, 1] * c1 + t[1, 1] * s1))
            - d[5] * (t[0, 2] * c1 + t[1, 2] * s1)
            + t[0, 3] * c1
            + t[1, 3] * s1
        )
        p13y = t[2, 3] - d[0] - d[5] * t[2, 2] + d[4] * (t[2, 1] * c6 + t[2, 0] * s6)
        c3 = (p13x * p13x + p13y * p13y - a[1] * a[1] - a[2] * a[2]) / (2.0 * a[1] * a[2])

        arccos = safe_acos(c3)
        if math.isnan(arccos):
            arccos = 0.0
            unreachable = True
        joints[2] = arccos if not elbow else 2.0 * math.pi - arccos

        denom = a[1] * a[1] + a[2] * a[2] + 2 * a[1] * a[2] * c3
        s3 = math.sin(arccos)
        A = a[1] + a[2] * c3
        B = a[2] * s3

        if not elbow:
            joints[1] = math.atan2((A * p13y - B * p13x) / denom, (A * p13x + B * p13y) / denom)
        else:
            joints[1] = math.atan2((A * p13y + B * p13x) / denom, (A * p13x - B * p13y) / denom)

        c23 = math.cos(joints[1] + joints[2])
        s23 = math.sin(joints[1] + joints[2])
        joints[3] = math.atan2(c23 * x04y - s23 * x04x, x04x * c23 + x04y * s23)

        if unreachable:
            errors.append("Target out of reach.")

        for i in range(6):
            if joints[i] > math.pi:
                joints[i] -= 2.0 * math.pi
            if joints[i] < -math.pi:
                joints[i] += 2.0 * math.pi

        return joints, errors

    def forward_kinematics(self, joints: Sequence[float]) -> List[np.ndarray]:
        c = [math.cos(j) for j in joints]
        s = [math.sin(j) for j in joints]
        a = [joint.a for joint in self.mechanism.joints]
        d = [joint.d for joint in self.mechanism.joints]
        s23 = math.sin(joints[1] + joints[2])
        c23 = math.cos(joints[1] + joints[2])
        s234 = math.sin(joints[1] + joints[2] + joints[3])
        c234 = math.cos(joints[1] + joints[2] + joints[3])

        reach = a[2] * c23 + a[1] * c[1]
        height = d[0] + a[2] * s23 + a[1] * s[1]

        return [
            _matrix(
                [
                    [c[0], 0.0, s[0], 0.0],
                    [s[0], 0.0, -c[0], 0.0],
                    [0.0, 1.0, 0.0, d[0]],
                ]
            ),
            _matrix(
                [
                    [c[0] * c[1], -c[0] * s[1], s[0], a[1] * c[0] * c[1]],
                    [c[1] * s[0], -s[0] * s[1], -c[0], a[1] * c[1] * s[0]],
                    [s[1], c[1], 0.0, d[0] + a[1] * s[1]],
                ]
            ),
            _matrix(
                [
                    [c23 * c[0], -s23 * c[0], s[0], c[0] * reach],
                    [c23 * s[0], -s23 * s[0], -c[0], s[0] * reach],
                    [s23, c23, 0.0, height],
                ]
            ),
            _matrix(
                [
                    [c234 * c[0], s[0], s234 * c[0], c[0] * reach + d[3] * s[0]],
                    [c234 * s[0], -c[0], s234 * s[0], s[0] * reach - d[3] * c[0]],
                    [s234, 0.0, -c234, height],
                ]
            ),
            _matrix(
                [
                    [
                        s[0] * s[4] + c234 * c[0] * c[4],
                        -s234 * c[0],
                        c[4] * s[0] - c234 * c[0] * s[4],
                        c[0] * reach + d[3] * s[0] + d[4] * s234 * c[0],
                    ],
                    [
                        c234 * c[4] * s[0] - c[0] * s[4],
                        -s234 * s[0],
                        -c[0] * c[4] - c234 * s[0] * s[4],
                        s[0] * reach - d[3] * c[0] + d[4] * s234 * s[0],
                    ],
                    [s234 * c[4], c234, -s234 * s[4], height - d[4] * c234],
                ]
            ),
            _matrix(
                [
                    [
                        c[5] * (s[0] * s[4] + c234 * c[0] * c[4]) - s234 * c[0] * s[5],
                        -s[5] * (s[0] * s[4] + c234 * c[0] * c[4]) - s234 * c[0] * c[5],
                        c[4] * s[0] - c234 * c[0] * s[4],
                        d[5] * (c[4] * s[0] - c234 * c[0] * s[4]) + c[0] * reach + d[3] * s[0] + d[4] * s234 * c[0],
                    ],
                    [
                        -c[5] * (c[0] * s[4] - c234 * c[4] * s[0]) - s234 * s[0] * s[5],
                        s[5] * (c[0] * s[4] - c234 * c[4] * s[0]) - s234 * c[5] * s[0],
                        -c[0] * c[4] - c234 * s[0] * s[4],
                        s[0] * reach - d[3] * c[0] - d[5] * (c[0] * c[4] + c234 * s[0] * s[4]) + d[4] * s234 * s[0],
                    ],
                    [
                        c234 * s[5] + s234 * c[4] * c[5],
                        c234 * c[5] - s234 * c[4] * s[5],
                        -s234 * s[4],
                        height - d[4] * c234 - d[5] * s234 * s[4],
                    ],
                ]
            )
            @ rotation_z(-math.pi / 2),
        ]
