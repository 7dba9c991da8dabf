"""
Tests for robot arm and external axis solvers.
"""

import math

import numpy as np
import pytest

from robotcell.core.geometry import WORLD_XY, WORLD_YZ
from robotcell.kinematics import (
    NumericalSolver,
    OffsetWristSolver,
    PositionerSolver,
    SphericalWristSolver,
    TrackSolver,
)
from robotcell.kinematics.base import safe_acos, squared_difference
from robotcell.kinematics.numerical import dh_transform, pose_error, pseudo_inverse
from robotcell.mechanisms.profiles import MechanismKind
from robotcell.targets.targets import CartesianTarget, JointTarget, RobotConfiguration

IRB120_POSE = (0.3, 1.3, -0.2, 0.4, 0.7, -0.5)
UR10_POSE = (0.3, -1.2, 1.0, -1.4, 0.8, 0.5)


def _round_trip(mechanism, joints, prev_joints=None, configuration=None):
    forward = mechanism.kinematics(JointTarget(joints))
    if configuration is None and prev_joints is None:
        configuration = forward.configuration
    target = CartesianTarget(forward.planes[-1], configuration)
    return forward, mechanism.kinematics(target, prev_joints)


class TestHelpers:
    """Tests for solver helper functions."""

    def test_squared_difference_wraps(self):
        """Test differences are measured the short way around."""
        assert squared_difference(3.0, -3.0) == pytest.approx((2 * math.pi - 6.0) ** 2)
        assert squared_difference(0.5, 0.2) == pytest.approx(0.09)

    def test_safe_acos(self):
        """Test values outside [-1, 1] give NaN."""
        assert safe_acos(1.0) == 0.0
        assert math.isnan(safe_acos(1.5))


class TestSolverSelection:
    """Tests for solver selection per arm."""

    def test_spherical_and_offset(self, irb120_arm, ur10_arm, kr6_arm):
        """Test industrial arms get the spherical wrist solver, UR the offset one."""
        assert isinstance(irb120_arm.solver, SphericalWristSolver)
        assert isinstance(kr6_arm.solver, SphericalWristSolver)
        assert isinstance(ur10_arm.solver, OffsetWristSolver)

    def test_numerical_on_request(self, irb120_numerical):
        """Test the numerical solver can be forced."""
        assert isinstance(irb120_numerical.solver, NumericalSolver)
        assert irb120_numerical.solver.redundant is None

    def test_externals(self, track, positioner):
        """Test external mechanisms get their own solvers."""
        assert isinstance(track.solver, TrackSolver)
        assert isinstance(positioner.solver, PositionerSolver)
        assert positioner.kind == MechanismKind.POSITIONER


class TestSphericalWrist:
    """Tests for the spherical wrist solver."""

    def test_round_trip_with_configuration(self, irb120_arm):
        """Test inverse kinematics recovers the joints of a forward solve."""
        forward, inverse = _round_trip(irb120_arm, IRB120_POSE)
        assert forward.configuration != RobotConfiguration.UNDEFINED
        assert inverse.joints == pytest.approx(IRB120_POSE, abs=1e-6)
        assert inverse.errors == []

    def test_round_trip_closest_branch(self, irb120_arm):
        """Test the branch closest to the previous joints is picked."""
        prev = [value + 0.02 for value in IRB120_POSE]
        _, inverse = _round_trip(irb120_arm, IRB120_POSE, prev_joints=prev)
        assert inverse.joints == pytest.approx(IRB120_POSE, abs=1e-6)

    def test_closest_branch_tie(self, irb120_arm):
        """Test equally close branches resolve to the lowest configuration."""

        class TiedBranches(SphericalWristSolver):
            def inverse_kinematics(self, transform, configuration, external, prev_joints):
                if configuration == RobotConfiguration(5):
                    return [-0.25, 0.0, 0.0, 0.0, 0.0, 0.0], []
                if configuration == RobotConfiguration(2):
                    return [0.25, 0.0, 0.0, 0.0, 0.0, 0.0], []
                return [1.5, 1.5, 1.5, 1.5, 1.5, 1.5], ["far"]

        solver = TiedBranches(irb120_arm)
        joints, configuration, errors, difference = solver.closest_solution(
            np.eye(4), [], [0.0] * 6
        )
        assert configuration == RobotConfiguration(2)
        assert joints == pytest.approx([0.25, 0.0, 0.0, 0.0, 0.0, 0.0])
        assert errors == []
        assert difference == pytest.approx(0.0625)

    def test_planes_per_joint(self, irb120_arm):
        """Test a solve returns the base followed by one plane per joint."""
        solution = irb120_arm.kinematics(JointTarget(IRB120_POSE))
        assert len(solution.planes) == 7
        assert solution.planes[0].is_close(WORLD_XY)

    def test_base_plane_moves_flange(self, irb120_arm):
        """Test mounting the base elsewhere moves every plane with it."""
        base = WORLD_XY.with_origin((1000, 0, 0))
        here = irb120_arm.kinematics(JointTarget(IRB120_POSE))
        there = irb120_arm.kinematics(JointTarget(IRB120_POSE), base_plane=base)
        shifted = np.asarray(there.tool_plane.origin) - np.asarray(here.tool_plane.origin)
        assert list(shifted) == pytest.approx([1000, 0, 0])

    def test_out_of_reach(self, irb120_arm):
        """Test far targets report an error but still return joints."""
        target = CartesianTarget(WORLD_YZ.with_origin((5000, 0, 0)), RobotConfiguration.NONE)
        solution = irb120_arm.kinematics(target)
        assert "Target out of reach" in solution.errors
        assert len(solution.joints) == 6

    def test_out_of_range(self, irb120_arm):
        """Test joints beyond their limits are reported by axis number."""
        solution = irb120_arm.kinematics(JointTarget((3.0, math.pi / 2, 0, 0, 0, 0)))
        assert solution.errors == ["Axis 1 is outside the permitted range."]

    def test_kuka_round_trip(self, kr6_arm):
        """Test the KUKA arm solves with the same solver."""
        joints = (-0.4, 1.1, 0.3, -0.6, 0.9, 0.2)
        _, inverse = _round_trip(kr6_arm, joints)
        assert inverse.joints == pytest.approx(joints, abs=1e-6)


class TestOffsetWrist:
    """Tests for the offset wrist solver."""

    def test_round_trip_with_configuration(self, ur10_arm):
        """Test inverse kinematics recovers the joints of a forward solve."""
        forward, inverse = _round_trip(ur10_arm, UR10_POSE)
        assert forward.configuration != RobotConfiguration.UNDEFINED
        assert inverse.joints == pytest.approx(UR10_POSE, abs=1e-6)

    def test_round_trip_closest_branch(self, ur10_arm):
        """Test the branch closest to the previous joints is picked."""
        prev = [value - 0.02 for value in UR10_POSE]
        _, inverse = _round_trip(ur10_arm, UR10_POSE, prev_joints=prev)
        assert inverse.joints == pytest.approx(UR10_POSE, abs=1e-6)


class TestNumerical:
    """Tests for the numerical solver."""

    def test_dh_transform(self):
        """Test a DH link with only a length translates along X."""
        link = dh_transform(0.0, 0.0, 100.0, 0.0)
        assert list(link[:3, 3]) == pytest.approx([100, 0, 0])

    def test_pose_error_zero_at_target(self):
        """Test the error of a pose with itself is zero."""
        transform = dh_transform(0.4, 120.0, 50.0, 0.3)
        assert pose_error(transform, transform) == pytest.approx(np.zeros(6), abs=1e-12)

    def test_pseudo_inverse(self):
        """Test full rank and singular Jacobians."""
        jacobian = np.array([[2.0, 0.0], [0.0, 4.0], [0.0, 0.0]])
        inverse = pseudo_inverse(jacobian)
        assert inverse @ jacobian == pytest.approx(np.identity(2))
        assert pseudo_inverse(np.zeros((6, 6))) is None

    def test_round_trip(self, irb120_numerical):
        """Test iterating from nearby joints converges back to the pose."""
        joints = (0.3, 1.0, -0.3, 0.4, 0.7, -0.5)
        prev = [value + 0.02 for value in joints]
        _, inverse = _round_trip(irb120_numerical, joints, prev_joints=prev)
        assert inverse.errors == []
        assert inverse.joints == pytest.approx(joints, abs=1e-3)


class TestTrack:
    """Tests for linear track kinematics."""

    def test_moves_along_x(self, track):
        """Test the track carriage follows the external value."""
        solution = track.kinematics(JointTarget((0,) * 6, external=(500,)))
        assert solution.joints == [500.0]
        assert solution.planes[1].origin == pytest.approx((500, 0, 0))

    def test_missing_external(self, track):
        """Test targets without an external value are reported."""
        solution = track.kinematics(JointTarget((0,) * 6))
        assert solution.errors == ["Track external axis not configured on this target."]

    def test_out_of_range(self, track):
        """Test external axes are numbered after the robot axes."""
        solution = track.kinematics(JointTarget((0,) * 6, external=(4000,)))
        assert solution.errors == ["Axis 7 is outside the permitted range."]


class TestPositioner:
    """Tests for positioner kinematics."""

    def test_tilt_carries_turntable(self, positioner):
        """Test the first axis rotates the second axis around it."""
        solution = positioner.kinematics(JointTarget((0,) * 6, external=(0.5, 0.0)))
        tilt, table = solution.planes[1], solution.planes[2]

        assert tilt.origin == pytest.approx((0, 0, 500))
        assert table.distance_to(tilt) == pytest.approx(100)
        assert table.origin[2] == pytest.approx(500 + 100 * math.cos(0.5))

    def test_missing_external(self, positioner):
        """Test each missing value is reported."""
        solution = positioner.kinematics(JointTarget((0,) * 6, external=(0.5,)))
        assert solution.errors == ["Positioner external axis not configured on this target."]

    def test_unwraps_against_previous(self, positioner):
        """Test turntable values are unwrapped to the previous joints."""
        solution = positioner.kinematics(JointTarget((0,) * 6, external=(0.0, -3.0)), prev_joints=[0.0, 3.0])
        assert solution.joints[1] == pytest.approx(3.0 + (2 * math.pi - 6.0))
