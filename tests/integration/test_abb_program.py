"""
End-to-end compilation of a two target IRB 120 program into RAPID.
"""

import math

import pytest

EXPECTED_RAPID = [
    "MODULE TestProgram_T_ROB1",
    "VAR extjoint extj := [9E9,9E9,9E9,9E9,9E9,9E9];",
    "VAR confdata conf := [0,0,0,0];",
    "PERS tooldata DefaultTool:=[TRUE,[[0,0,0],[1,0,0,0]],[0.001,[0,0,0.001],[1,0,0,0],0,0,0]];",
    'TASK PERS wobjdata DefaultFrame:=[FALSE,TRUE,"",[[0,0,0],[1,0,0,0]],[[0,0,0],[1,0,0,0]]];',
    "TASK PERS speeddata DefaultSpeed:=[100,180,5000,1080];",
    "TASK PERS speeddata Speed000:=[300,180,5000,1080];",
    "PROC Main()",
    "ConfL \\Off;",
    "MoveAbsJ [[41.257,-0.5638,4.3298,85.7179,-41.3979,5.7002],extj],DefaultSpeed,fine,DefaultTool;",
    "MoveL [[300,-200,610],[0.5,0.5,0.5,0.5],conf,extj],Speed000,fine,DefaultTool \\WObj:=DefaultFrame;",
    "ENDPROC",
    "ENDMODULE",
]

EXPECTED_PLANES = [
    ((0, 0, 0), (1, 0, 0), (0, 1, 0)),
    (
        (0.7517591128712748, -0.6594378183081357, 290),
        (-0.751759112871275, 0.6594378183081356, 0),
        (0.6594378183081356, 0.751759112871275, -0.0),
    ),
    (
        (-2.7564915612288043, 2.4179750537094775, 560.9770380510358),
        (0.5367791717546959, -0.4708589225918386, -0.7001142733768505),
        (0.6594378183081359, 0.7517591128712747, -4.6875121084248966e-17),
    ),
    (
        (1.458988362121854, -1.2798143527384682, 629.8357722916104),
        (-0.04937656483793966, 0.04331277617363111, -0.9978406477313588),
        (0.6594378183081357, 0.7517591128712748, -1.2220023553033302e-16),
    ),
    (
        (228.66128381302607, -199.25357351342788, 610.0745065015506),
        (-0.46759826847957253, -0.4575705438040238, -0.7562942924270918),
        (0.46759826847957286, 0.5980359168208571, -0.6509261874491932),
    ),
    (
        (229.00000000000006, -200.00000000000003, 609.9999999999999),
        (3.925231146709438e-16, -0.6333775534297259, -0.7738429264465592),
        (-7.850462293418875e-17, 0.7738429264465592, -0.6333775534297259),
    ),
    (
        (300.00000000000006, -200.00000000000006, 609.9999999999999),
        (-2.775557561562891e-16, 1, 3.1468563603142004e-16),
        (-2.775557561562892e-16, -3.1468563603142014e-16, 1),
    ),
    (
        (300.00000000000006, -200.00000000000006, 609.9999999999999),
        (-2.775557561562891e-16, 1, 3.1468563603142004e-16),
        (-2.775557561562892e-16, -3.1468563603142014e-16, 1),
    ),
]

EXPECTED_JOINTS = [
    -0.72007069377409672,
    1.5806369662963811,
    -0.075569321979534809,
    -1.4960590345094886,
    0.72252891341688164,
    3.042104596978858,
]


class TestAbbProgram:
    """Tests for the reference IRB 120 program."""

    def test_no_errors(self, abb_program):
        """Test the program compiles cleanly."""
        assert abb_program.errors == []
        assert len(abb_program.code) == 1
        assert len(abb_program.code[0]) == 2

    def test_rapid_code(self, abb_program):
        """Test the main module followed by the motions."""
        main, motions = abb_program.code[0]
        assert main + motions == EXPECTED_RAPID

    def test_duration(self, abb_program):
        """Test the program duration."""
        assert abb_program.duration == pytest.approx(1.6432545251573487, abs=1e-14)

    def test_last_joints(self, abb_program):
        """Test the joints of the last target."""
        kinematics = abb_program.targets[-1].program_targets[0].kinematics
        assert kinematics.joints == pytest.approx(EXPECTED_JOINTS, abs=1e-14)
        assert kinematics.errors == []

    def test_last_plane(self, abb_program):
        """Test the tool plane of the last target."""
        plane = abb_program.targets[-1].program_targets[0].kinematics.planes[-1]
        assert plane.origin == pytest.approx((300, -200, 610), abs=1e-6)

    def test_last_planes(self, abb_program):
        """Test the base, joint and tool planes of the last target."""
        planes = abb_program.targets[-1].planes
        assert len(planes) == len(EXPECTED_PLANES)
        for plane, (origin, xaxis, yaxis) in zip(planes, EXPECTED_PLANES):
            assert plane.origin == pytest.approx(origin, abs=1e-14)
            assert plane.xaxis == pytest.approx(xaxis, abs=1e-14)
            assert plane.yaxis == pytest.approx(yaxis, abs=1e-14)

    def test_linear_move_steps(self, abb_program):
        """Test the linear move is just over 400 mm, so it takes 401 steps."""
        last = abb_program.targets[-1].program_targets[0]
        distance = last.get_prev_plane(abb_program.targets[0].program_targets[0]).distance_to(last.plane)
        assert distance > 400.0
        assert math.ceil(distance) == 401

    def test_save(self, abb_program, temp_dir):
        """Test the saved module matches the generated code."""
        paths = abb_program.save(temp_dir)
        module = paths[1].read_bytes().decode("ISO-8859-1")
        assert module == "\r\n".join(EXPECTED_RAPID)
