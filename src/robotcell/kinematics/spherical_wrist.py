"""
Closed form kinematics for 6-axis arms with a spherical wrist.

Covers ABB, KUKA, Staubli and FANUC style arms: joints 4, 5 and 6 intersect
in one point, so the wrist centre fixes joints 1 to 3 and the remaining
orientation fixes the wrist.
"""

import math
from typing import List, Optional, Sequence, Tuple

import numpy as np

from robotcell.core.geometry import WORLD_XY, invert, multiply, vector_length
from robotcell.core.units import SINGULARITY_TOL
from robotcell.kinematics.base import RobotSolver, safe_acos
from robotcell.targets.targets import RobotConfiguration


def _matrix(rows: Sequence[Sequence[float]]) -> np.ndarray:
    m = np.identity(4)
    m[:3, :] = rows
    return m


def _arm_transform(
    c: Sequence[float], s: Sequence[float], a: Sequence[float], d: Sequence[float]
) -> np.ndarray:
    """Frame after joint 3 for the given joint 1-3 cosines and sines."""
    c12 = c[1] * c[2] - s[1] * s[2]
    s12 = c[1] * s[2] + s[1] * c[2]
    return _matrix(
        [
            [c[0] * c12, s[0], c[0] * s12, c[0] * (a[2] * c12 + a[1] * c[1]) + a[0] * c[0]],
            [s[0] * c12, -c[0], s[0] * s12, s[0] * (a[2] * c12 + a[1] * c[1]) + a[0] * s[0]],
            [s12, 0.0, -c12, a[2] * s12 + a[1] * s[1] + d[0]],
        ]
    )


class SphericalWristSolver(RobotSolver):
    """Analytic solver for spherical wrist arms (8 configuration branches)."""

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

        unreachable = False

        a = [joint.a for joint in self.mechanism.joints]
        d = [joint.d for joint in self.mechanism.joints]

        flange = WORLD_XY.transform(transform)
        origin = flange.origin
        normal = flange.normal

        joints = [0.0] * 6

        l2 = math.sqrt(a[2] * a[2] + d[3] * d[3])
        ad2 = math.atan2(a[2], d[3])
        center = [origin[i] - normal[i] * d[5] for i in range(3)]
        joints[0] = math.atan2(center[1], center[0])
        ll = math.sqrt(center[0] * center[0] + center[1] * center[1])
        p1 = [a[0] * center[0] / ll, a[0] * center[1] / ll, d[0]]

        if shoulder:
            joints[0] += math.pi
            center = [-center[0], -center[1], center[2]]

        l3 = vector_length([center[i] - p1[i] for i in range(3)])
        l1 = a[1]
        beta = safe_acos((l1 * l1 + l3 * l3 - l2 * l2) / (2 * l1 * l3))
        if math.isnan(beta):
            beta = 0.0
            unreachable = True
        if elbow:
            beta = -beta

        ttl = vector_length([center[0] - p1[0], center[1] - p1[1], 0.0])
        if shoulder:
            ttl = -ttl
        al = math.atan2(center[2] - p1[2], ttl)

        joints[1] = beta + al

        gama = safe_acos((l1 * l1 + l2 * l2 - l3 * l3) / (2 * l1 * l2))
        if math.isnan(gama):
            gama = math.pi
            unreachable = True
        if elbow:
            gama = -gama

        joints[2] = gama - ad2 - math.pi / 2

        c = [math.cos(j) for j in joints[:3]]
        s = [math.sin(j) for j in joints[:3]]
        mr = multiply(invert(_arm_transform(c, s, a, d)), transform)

        joints[3] = math.atan2(mr[1, 2], mr[0, 2])
        joints[4] = safe_acos(mr[2, 2])
        joints[5] = math.atan2(mr[2, 1], -mr[2, 0])

        if wrist:
            joints[3] += math.pi
            joints[4] = -joints[4]
            joints[5] -= math.pi

        for i in range(6):
            if joints[i] > math.pi:
                joints[i] -= 2 * math.pi
            if joints[i] < -math.pi:
                joints[i] += 2 * math.pi

        if unreachable:
            errors.append("Target out of reach")
        if abs(1 - mr[2, 2]) < 0.0001:
            errors.append("Near wrist singularity")
        if vector_length([center[0], center[1], 0.0]) < a[0] + SINGULARITY_TOL:
            errors.append("Near overhead singularity")

        joints = [0.0 if math.isnan(j) else float(j) for j in joints]
        return joints, errors

    def forward_kinematics(self, joints: Sequence[float]) -> List[np.ndarray]:
        """
        Joint frames relative to the base.

        Only the frames of joints 3 and 6 are rigid. The others place their
        origin and axes so that, after the half turn applied to every joint
        plane, they draw the links of the arm.
        """
        c = [math.cos(j) for j in joints]
        s = [math.sin(j) for j in joints]
        a = [joint.a for joint in self.mechanism.joints]
        d = [joint.d for joint in self.mechanism.joints]

        lean = c[1] - s[1]
        rise = s[1] + c[1]

        shoulder = _matrix(
            [
                [c[0], 0.0, c[0], c[0] + a[0] * c[0]],
                [s[0], -c[0], s[0], s[0] + a[0] * s[0]],
                [0.0, 0.0, 0.0, d[0]],
            ]
        )
        upper_arm = _matrix(
            [
                [c[0] * lean, s[0], c[0] * (c[1] + s[1]), c[0] * (lean + a[1] * c[1]) + a[0] * c[0]],
                [s[0] * lean, -c[0], s[0] * (c[1] + s[1]), s[0] * (lean + a[1] * c[1]) + a[0] * s[0]],
                [rise, 0.0, s[1] - c[1], rise + a[1] * s[1] + d[0]],
            ]
        )
        arm = _arm_transform(c, s, a, d)

        wrist_roll = _matrix(
            [
                [c[3] - s[3], -c[3] - s[3], c[3], c[3]],
                [s[3] + c[3], -s[3] + c[3], s[3], s[3]],
                [0.0, 0.0, 0.0, 0 + d[3]],
            ]
        )
        wrist_bend = _matrix(
            [
                [c[3] * c[4] - s[3], -c[3] * c[4] - s[3], c[3] * s[4], c[3] * s[4]],
                [s[3] * c[4] + c[3], -s[3] * c[4] + c[3], s[3] * s[4], s[3] * s[4]],
                [-s[4], s[4], c[4], c[4] + d[3]],
            ]
        )
        flange = _matrix(
            [
                [c[3] * c[4] * c[5] - s[3] * s[5], -c[3] * c[4] * s[5] - s[3] * c[5], c[3] * s[4], c[3] * s[4] * d[5]],
                [s[3] * c[4] * c[5] + c[3] * s[5], -s[3] * c[4] * s[5] + c[3] * c[5], s[3] * s[4], s[3] * s[4] * d[5]],
                [-s[4] * c[5], s[4] * s[5], c[4], c[4] * d[5] + d[3]],
            ]
        )

        return [
            shoulder,
            upper_arm,
            arm,
            multiply(arm, wrist_roll),
            multiply(arm, wrist_bend),
            multiply(arm, flange),
        ]
