"""
End-to-end compilation of a two target UR10 program into URScript.
"""

import math

import pytest

EXPECTED_JOINTS = [
    3.132810991378919,
    -1.2818634714414483,
    1.6947375202478607,
    2.728718604783381,
    0.008781662210846086,
]


class TestURProgram:
    """Tests for the reference UR10 program."""

    def test_no_errors(self, ur_program):
        """Test the program compiles cleanly."""
        assert ur_program.errors == []
        assert len(ur_program.code) == 1
        assert len(ur_program.code[0]) == 1

    def test_script(self, ur_program):
        """Test the script declarations and motions."""
        (script,) = ur_program.code[0]
        assert script[:9] == [
            "def Program():",
            "  DefaultToolTcp = p[0, 0, 0, 0, 0, 1.5708]",
            "  DefaultToolWeight = 0",
            "  DefaultToolCog = [0, 0, 0]",
            "  DefaultSpeed = 0.1",
            "  Speed000 = 0.3",
            "  DefaultZone = 0",
            "  set_tcp(DefaultToolTcp)",
            "  set_payload(DefaultToolWeight, DefaultToolCog)",
        ]
        # The last wrist value sits on the +/- pi boundary.
        assert script[9].startswith("  movej([2.2208, -2.4093, 2.5006, 3.0503, 0.9208, ")
        assert script[9].endswith("3.1416], a=3.1416, v=0.2094, r=DefaultZone)")
        assert script[10] == "  movel(p[0.7, 0.25, 0.6, -1.2092, -1.2092, -1.2092], a=1, v=Speed000, r=DefaultZone)"
        assert script[11:] == ["end"]

    def test_duration(self, ur_program):
        """Test the program duration."""
        assert ur_program.duration == pytest.approx(1.7425663263380393, rel=1e-6)

    def test_last_joints(self, ur_program):
        """Test the joints of the last target."""
        joints = ur_program.targets[-1].program_targets[0].kinematics.joints
        assert joints[:5] == pytest.approx(EXPECTED_JOINTS, abs=1e-6)
        assert abs(joints[5]) == pytest.approx(math.pi, abs=1e-6)

    def test_last_plane(self, ur_program):
        """Test the tool plane of the last target."""
        plane = ur_program.targets[-1].program_targets[0].kinematics.planes[-1]
        assert plane.origin == pytest.approx((700, 250, 600), abs=1e-6)
