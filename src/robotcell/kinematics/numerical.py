"""
Iterative inverse kinematics from Denavit-Hartenberg parameters.

Used for arms without a closed form solution (7-axis arms and arms of the
``Other`` manufacturer). Forward kinematics chains one DH transform per
joint; inverse kinematics runs damped Jacobian pseudo-inverse steps from the
previous joints (or the middle of every joint range).
"""

import math
from typing import List, Optional, Sequence, Tuple

import numpy as np
from scipy import linalg

from robotcell.core.geometry import rotation_matrix, translation_matrix
from robotcell.core.logging import get_logger
from robotcell.kinematics.base import RobotSolver
from robotcell.targets.targets import RobotConfiguration

logger = get_logger(__name__)

MAX_ITERATIONS = 400
MAX_RETRIES = 20
MAX_STEP = 0.3
CONVERGED_STEP = 1e-5
JACOBIAN_STEP = 0.001
SINGULAR_VALUE_TOL = 1e-6

_X = (1.0, 0.0, 0.0)
_Z = (0.0, 0.0, 1.0)


def dh_transform(angle: float, d: float, a: float, alpha: float) -> np.ndarray:
    """Standard DH link transform: ``Rz(angle) Tz(d) Tx(a) Rx(alpha)``."""
    return (
        rotation_matrix(angle, _Z)
        @ translation_matrix((0.0, 0.0, d))
        @ translation_matrix((a, 0.0, 0.0))
        @ rotation_matrix(alpha, _X)
    )


def modified_dh_transform(angle: float, d: float, a: float, alpha: float) -> np.ndarray:
    """Modified (Craig) DH link transform: ``Rx(alpha) Tx(a) Rz(angle) Tz(d)``."""
    return (
        rotation_matrix(alpha, _X)
        @ translation_matrix((a, 0.0, 0.0))
        @ rotation_matrix(angle, _Z)
        @ translation_matrix((0.0, 0.0, d))
    )


def pose_error(forward: np.ndarray, target: np.ndarray, tol: float = 5e-7) -> np.ndarray:
    """
    Six component error between two transforms.

    The first three components are the position difference; the last three
    are a small-angle rotation error built from the off-diagonal products of
    both rotation matrices. When both halves of a component have the same
    magnitude but opposite sign (a half turn), the second half is flipped so
    that they do not cancel out.
    """
    f, t = forward, target
    v = [
        t[2, 0] * f[1, 0] + t[2, 1] * f[1, 1] + f[1, 2] * t[2, 2],
        t[0, 1] * f[2, 1] + t[0, 2] * f[2, 2] + f[2, 0] * t[0, 0],
        t[1, 0] * f[0, 0] + t[1, 2] * f[0, 2] + f[0, 1] * t[1, 1],
        -t[1, 0] * f[2, 0] - t[1, 2] * f[2, 2] - f[2, 1] * t[1, 1],
        -t[2, 0] * f[0, 0] - t[2, 1] * f[0, 1] - f[0, 2] * t[2, 2],
        -t[0, 1] * f[1, 1] - t[0, 2] * f[1, 2] - f[1, 0] * t[0, 0],
    ]

    wrap = all(abs(abs(v[i]) - abs(v[i + 3])) <= tol for i in range(3))

    delta = np.zeros(6)
    for i in range(3):
        if wrap and ((v[i] > 0 and v[i + 3] < 0) or (v[i] < 0 and v[i + 3] > 0)):
            v[i + 3] = -v[i + 3]
        delta[i] = t[i, 3] - f[i, 3]
        delta[i + 3] = (v[i] + v[i + 3]) * 0.5

    return delta


def pseudo_inverse(jacobian: np.ndarray) -> Optional[np.ndarray]:
    """
    Right or left pseudo-inverse of a Jacobian.

    Returns:
        The pseudo-inverse, or None when the normal matrix is singular.
    """
    rows, columns = jacobian.shape
    transpose = jacobian.T
    reverse = rows < columns
    matrix = jacobian @ transpose if reverse else transpose @ jacobian

    if linalg.svdvals(matrix).min() < SINGULAR_VALUE_TOL:
        return None

    inverse = linalg.inv(matrix)
    return transpose @ inverse if reverse else inverse @ transpose


class NumericalSolver(RobotSolver):
    """
    Jacobian based solver for arbitrary DH chains.

    Args:
        mechanism: Arm to solve.
        use_modified_dh: Chain links with the modified DH convention.
        redundant: Index of a joint that is held fixed. Its value comes from
            ``target.external[0]`` when set, otherwise from the previous
            joints.
    """

    solution_count = 1

    def __init__(self, mechanism, use_modified_dh: bool = False, redundant: Optional[int] = None):
        super().__init__(mechanism)
        self.use_modified_dh = use_modified_dh
        self.redundant = redundant

    def forward_kinematics(self, joints: Sequence[float]) -> List[np.ndarray]:
        link = modified_dh_transform if self.use_modified_dh else dh_transform
        transforms = []
        current = np.identity(4)
        for joint, value in zip(self.mechanism.joints, joints):
            current = current @ link(value, joint.d, joint.a, joint.alpha)
            transforms.append(current)
        return transforms

    def _forward(self, joints: Sequence[float]) -> np.ndarray:
        return self.forward_kinematics(joints)[-1]

    def jacobian(self, joints: Sequence[float], forward: np.ndarray) -> np.ndarray:
        """Finite difference Jacobian; the redundant column stays zero."""
        step = JACOBIAN_STEP
        step2 = step * 2
        f = forward
        m = np.zeros((6, len(joints)))

        for i in range(len(joints)):
            if i == self.redundant:
                continue

            moved = [value + step if j == i else value for j, value in enumerate(joints)]
            d = self._forward(moved)

            m[0, i] = (d[0, 3] - f[0, 3]) / step
            m[1, i] = (d[1, 3] - f[1, 3]) / step
            m[2, i] = (d[2, 3] - f[2, 3]) / step
            m[3, i] = (d[2, 0] * f[1, 0] + d[2, 1] * f[1, 1] + f[1, 2] * d[2, 2] - d[1, 0] * f[2, 0] - f[2, 1] * d[1, 1] - d[1, 2] * f[2, 2]) / step2
            m[4, i] = (f[2, 0] * d[0, 0] + d[0, 1] * f[2, 1] + d[0, 2] * f[2, 2] - d[2, 0] * f[0, 0] - d[2, 1] * f[0, 1] - f[0, 2] * d[2, 2]) / step2
            m[5, i] = (d[1, 0] * f[0, 0] + f[0, 1] * d[1, 1] + d[1, 2] * f[0, 2] - f[1, 0] * d[0, 0] - d[0, 1] * f[1, 1] - d[0, 2] * f[1, 2]) / step2

        return m

    def inverse_kinematics(
        self,
        transform: np.ndarray,
        configuration: RobotConfiguration,
        external: Sequence[float],
        prev_joints: Optional[Sequence[float]],
    ) -> Tuple[List[float], List[str]]:
        errors: List[str] = []
        if prev_joints is None:
            prev_joints = [joint.range.mid for joint in self.mechanism.joints]
        joints = list(prev_joints)

        if self.redundant is not None:
            joints[self.redundant] = external[0] if len(external) > 0 else prev_joints[self.redundant]

        for _ in range(MAX_ITERATIONS):
            for _ in range(MAX_RETRIES):
                forward = self._forward(joints)
                inverse = pseudo_inverse(self.jacobian(joints, forward))
                if inverse is not None:
                    break
                joints = [value + 1e-3 for value in joints]
            else:
                errors.append("Target near singularity.")
                return joints, errors

            deltas = inverse @ pose_error(forward, transform)
            if self.redundant is not None:
                deltas[self.redundant] = 0.0

            largest = float(np.max(np.abs(deltas)))
            if largest > MAX_STEP:
                deltas = deltas * (MAX_STEP / largest)

            joints = [value + float(delta) for value, delta in zip(joints, deltas)]

            if largest <= CONVERGED_STEP:
                return joints, errors

        logger.debug("numerical_ik_not_converged", iterations=MAX_ITERATIONS)
        errors.append("Target out of reach.")
        return joints, errors
