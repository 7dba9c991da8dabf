"""
Tests for RAPID, KRL, URScript and VAL3 code generation.
"""

import math
from dataclasses import replace

import pytest

from robotcell.commands import PulseDO, SetDO
from robotcell.core.exceptions import PostProcessorError
from robotcell.core.geometry import WORLD_XY
from robotcell.core.manufacturer import Manufacturer
from robotcell.mechanisms.group import MechanicalGroup
from robotcell.mechanisms.system import RobotSystem
from robotcell.postprocessor import (
    KRLPostProcessor,
    PostProcessorConfig,
    RapidPostProcessor,
    URScriptPostProcessor,
    VAL3PostProcessor,
    get_postprocessor,
)
from robotcell.program import Program
from robotcell.targets.attributes import DEFAULT_TOOL, Speed, Tool, Zone
from robotcell.targets.targets import CartesianTarget, JointTarget, Motion, RobotConfiguration

KR6_START = (0.0, math.pi / 2, 0.0, 0.0, 0.5, 0.0)
TX2_START = (0.0, math.pi / 2, 0.0, 0.0, 0.5, 0.0)
TX2_TURN = (0.5, math.pi / 2, 0.0, 0.0, 0.5, 0.0)
GRIPPER = Tool(WORLD_XY.with_origin((0, 0, 100)), "Gripper", weight=1.5)


@pytest.fixture
def kuka_targets(kr6):
    """Joint target followed by a 50 mm linear move."""
    start = JointTarget(KR6_START)
    (solution,) = kr6.kinematics([start])
    end = CartesianTarget(solution.tool_plane.translate((0, 50, 0)), None, Motion.LINEAR, speed=Speed(300))
    return [start, end]


@pytest.fixture
def kuka_program(kr6, kuka_targets):
    """Compiled KR 6 program."""
    return Program("KukaTest", kr6, [kuka_targets])


@pytest.fixture
def staubli_targets():
    """Two joint targets, the second blended at a slower speed and setting an output."""
    start = JointTarget(TX2_START, tool=GRIPPER)
    turn = JointTarget(
        TX2_TURN,
        tool=GRIPPER,
        speed=Speed(250, name="Slow"),
        zone=Zone(5, name="Blend"),
        command=SetDO(0, True, name="Valve"),
    )
    return [start, turn]


@pytest.fixture
def staubli_program(tx2_60, staubli_targets):
    """Compiled TX2-60 program."""
    return Program("Tx", tx2_60, [staubli_targets])


class TestRegistry:
    """Tests for post processor lookup and configuration."""

    def test_lookup(self):
        """Test each supported manufacturer has a post processor."""
        assert isinstance(get_postprocessor(Manufacturer.ABB), RapidPostProcessor)
        assert isinstance(get_postprocessor(Manufacturer.UR), URScriptPostProcessor)
        assert isinstance(get_postprocessor(Manufacturer.KUKA), KRLPostProcessor)
        assert isinstance(get_postprocessor(Manufacturer.STAUBLI), VAL3PostProcessor)

    def test_unsupported_manufacturer(self):
        """Test manufacturers without code generation raise."""
        with pytest.raises(PostProcessorError, match="FANUC"):
            get_postprocessor(Manufacturer.FANUC)

    def test_unsupported_system_fails_compilation(self, irb120_arm, abb_targets):
        """Test compiling for a manufacturer without code generation raises."""
        system = RobotSystem("Fanuc", Manufacturer.FANUC, [MechanicalGroup(0, [irb120_arm])])
        with pytest.raises(PostProcessorError):
            Program("Fanuc", system, [abb_targets])

    def test_config_round_trip(self):
        """Test configuration serialization ignores unknown keys."""
        config = URScriptPostProcessor.default_config()
        data = config.to_dict()
        assert data["file_extension"] == ".URS"
        assert PostProcessorConfig.from_dict({**data, "unknown": 1}) == config

    def test_custom_config(self):
        """Test a post processor uses the given configuration."""
        processor = get_postprocessor(Manufacturer.KUKA, PostProcessorConfig(format_name="krl", line_ending="\n"))
        assert processor.config.line_ending == "\n"
        assert processor.format_name == "krl"


class TestRapid:
    """Tests for the RAPID post processor."""

    def test_declarations(self):
        """Test tooldata, speeddata and zonedata literals."""
        assert RapidPostProcessor.tool(DEFAULT_TOOL) == (
            "PERS tooldata DefaultTool:=[TRUE,[[0,0,0],[1,0,0,0]],[0.001,[0,0,0.001],[1,0,0,0],0,0,0]];"
        )
        assert RapidPostProcessor.speed(Speed(300, name="Fast")) == "TASK PERS speeddata Fast:=[300,180,5000,1080];"
        assert RapidPostProcessor.zone(Zone(10, name="Z10")) == "TASK PERS zonedata Z10:=[FALSE,10,10,10,1,10,1];"

    def test_flyby_zone(self, irb120, abb_targets):
        """Test blended targets declare and use their zone."""
        targets = [abb_targets[0], replace(abb_targets[1], zone=Zone(5, name="Z5"))]
        program = Program("Flyby", irb120, [targets])
        main, motions = program.code[0]

        assert "TASK PERS zonedata Z5:=[FALSE,5,5,5,0.5,5,0.5];" in main
        assert motions[1].endswith(",Speed000,Z5,DefaultTool \\WObj:=DefaultFrame;")

    def test_set_do_after_motion(self, irb120, abb_targets):
        """Test commands follow the motion of their target."""
        targets = [abb_targets[0], abb_targets[1].append_command(SetDO(0, True))]
        program = Program("Output", irb120, [targets])
        motions = program.code[0][1]
        assert motions[1].startswith("MoveL ")
        assert motions[2] == "SetDO \\Sync ,DO10_1,1;"

    def test_multi_file(self, irb120, abb_targets, temp_dir):
        """Test chunks are loaded from the main module."""
        program = Program("Chunks", irb120, [abb_targets], multi_file_indices=[0, 1])
        main = program.code[0][0]

        assert len(program.code[0]) == 3
        assert 'Load\\Dynamic, "HOME:/Chunks/Chunks_T_ROB1_001.MOD";' in main
        assert '%"Chunks_T_ROB1_001:Main"%;' in main
        assert "ConfL \\Off;" not in main

        names = sorted(path.name for path in program.save(temp_dir))
        assert names == [
            "Chunks_T_ROB1.mod",
            "Chunks_T_ROB1.pgf",
            "Chunks_T_ROB1_000.mod",
            "Chunks_T_ROB1_001.mod",
        ]

    def test_save_single_file(self, abb_program, temp_dir):
        """Test a program folder with the program file and one module."""
        paths = abb_program.save(temp_dir)
        assert [path.relative_to(temp_dir).as_posix() for path in paths] == [
            "TestProgram/TestProgram_T_ROB1.pgf",
            "TestProgram/TestProgram_T_ROB1.mod",
        ]
        module = paths[1].read_bytes().decode("ISO-8859-1")
        assert module.startswith("MODULE TestProgram_T_ROB1\r\n")
        assert module.endswith("ENDMODULE")
        assert "<Module>TestProgram_T_ROB1.mod</Module>" in paths[0].read_text(encoding="ISO-8859-1")

    def test_omnicore_extension(self, irb120_arm, abb_targets, temp_dir):
        """Test OmniCore controllers use .modx modules."""
        system = RobotSystem("Omni", Manufacturer.ABB, [MechanicalGroup(0, [irb120_arm])], controller="OmniCore")
        program = Program("Omni", system, [abb_targets])
        names = [path.name for path in program.save(temp_dir)]
        assert names == ["Omni_T_ROB1.pgf", "Omni_T_ROB1.modx"]

    def test_multimove(self, irb120_multimove, abb_targets):
        """Test synchronised motions for two groups."""
        program = Program("Sync", irb120_multimove, [abb_targets, abb_targets])
        assert program.errors == []
        assert len(program.code) == 2

        main, motions = program.code[1]
        assert main[0] == "MODULE Sync_T_ROB2"
        assert "VAR syncident sync1;" in main
        assert "SyncMoveOn sync1, all_tasks;" in main
        assert "\\ID:=0," in motions[0]
        assert "\\ID:=1," in motions[1]
        assert "SyncMoveOff sync2;" in motions

    def test_positioner_externals(self, irb120_positioner, abb_targets):
        """Test external axis values are written in degrees."""
        targets = [replace(target, external=(0.0, math.pi / 2)) for target in abb_targets]
        program = Program("Table", irb120_positioner, [targets])
        main, motions = program.code[0]

        assert not any(line.startswith("VAR extjoint") for line in main)
        assert "[0,90,9E9,9E9,9E9,9E9]" in motions[0]

    def test_unsupported_motion(self, irb120, abb_targets):
        """Test circular motions cannot be generated."""
        targets = [abb_targets[0], replace(abb_targets[1], motion=Motion.CIRCULAR)]
        with pytest.raises(PostProcessorError, match="circular"):
            Program("Arc", irb120, [targets])


class TestKRL:
    """Tests for the KRL post processor."""

    def test_main_file(self, kuka_program):
        """Test the main program calls every chunk."""
        assert kuka_program.errors == []
        assert kuka_program.code[0][0] == [
            "&ACCESS RVP",
            "&REL 1",
            "DEF KukaTest_T_ROB1()",
            "BAS (#INITMOV,0)",
            "$ADVANCE = 5",
            "$APO.CPTP = 100",
            "",
            "KukaTest_T_ROB1_000()",
            "END",
        ]

    def test_dat_file(self, kuka_program):
        """Test declarations in the data file."""
        dat = kuka_program.code[0][1]
        assert dat[2] == "DEFDAT KukaTest_T_ROB1 PUBLIC"
        assert "DECL GLOBAL FRAME DefaultTool = {X 0,Y 0,Z 0,A 0,B 0,C 0}" in dat
        assert "DECL GLOBAL FRAME DefaultFrame = {X 0,Y 0,Z 0,A 0,B 0,C 0}" in dat
        assert "DECL GLOBAL REAL DefaultSpeed = 0.1" in dat
        assert "DECL GLOBAL REAL Speed000 = 0.3" in dat
        assert "DECL GLOBAL REAL DefaultZone = 0" in dat
        assert dat[-1] == "ENDDAT"

    def test_src_file(self, kuka_program):
        """Test tool, base, speed and motion lines of a chunk."""
        src = kuka_program.code[0][2]
        assert src[2] == "DEF KukaTest_T_ROB1_000()"
        assert "$TOOL = DefaultTool" in src
        assert "$LOAD = DefaultTool_L" in src
        assert "$BASE = DefaultFrame" in src
        assert "PTP {A1 0,A2 -90,A3 90,A4 0,A5 -28.6479,A6 0}" in src
        assert "$VEL.CP = Speed000" in src
        assert any(line.startswith("LIN {X ") for line in src)
        assert src[-1] == "END"

    def test_status_and_turn(self, kr6, kuka_targets):
        """Test Cartesian joint motions carry status and turn bits."""
        start, end = kuka_targets
        (solution,) = kr6.kinematics([start])
        middle = CartesianTarget(solution.tool_plane.translate((0, 0, -50)), solution.configuration, Motion.JOINT)
        program = Program("Bits", kr6, [[start, middle, end]])

        ptp = [line for line in program.code[0][2] if line.startswith("PTP {X ")]
        assert len(ptp) == 1
        assert ",S'B" in ptp[0]
        assert ",T'B" in ptp[0]

    def test_track_external(self, kr6_track):
        """Test track values are written as E1 and limit the speed."""
        targets = [JointTarget(KR6_START, external=(0,)), JointTarget(KR6_START, external=(500,), speed=Speed(5000))]
        program = Program("Track", kr6_track, [targets])
        src = program.code[0][2]

        assert "PTP {A1 0,A2 -90,A3 90,A4 0,A5 -28.6479,A6 0,E1 500}" in src
        assert "$VEL_EXTAX[1] = 100" in src

    def test_save(self, kuka_program, temp_dir):
        """Test main, data and chunk files are written."""
        names = [path.name for path in kuka_program.save(temp_dir)]
        assert names == ["KukaTest_T_ROB1.SRC", "KukaTest_T_ROB1.DAT", "KukaTest_T_ROB1_000.SRC"]


class TestURScript:
    """Tests for the URScript post processor."""

    def test_tool_variables(self):
        """Test TCP pose, weight and centre of gravity variables."""
        assert URScriptPostProcessor.tool(DEFAULT_TOOL) == [
            "DefaultToolTcp = p[0, 0, 0, 0, 0, 1.5708]",
            "DefaultToolWeight = 0",
            "DefaultToolCog = [0, 0, 0]",
        ]

    def test_time_based_speed(self, ur10, ur_targets):
        """Test a speed with a time sets the motion duration."""
        targets = [ur_targets[0], replace(ur_targets[1], speed=Speed(300, time=2))]
        program = Program("Timed", ur10, [targets])
        (script,) = program.code[0]
        assert any(line.startswith("  movel(") and line.endswith("t=2, r=DefaultZone)") for line in script)

    def test_unsupported_command_warns(self, ur10, ur_targets):
        """Test commands without UR code are reported."""
        targets = [ur_targets[0], ur_targets[1].append_command(PulseDO(0, name="Pulse"))]
        program = Program("Pulse", ur10, [targets])
        assert "Command Pulse not implemented for UR robots." in program.warnings

    def test_multi_file_warning(self, ur10, ur_targets):
        """Test UR programs are always a single script."""
        program = Program("Chunks", ur10, [ur_targets], multi_file_indices=[0, 1])
        assert "Multi-file input not supported on UR robots" in program.warnings
        assert len(program.code[0]) == 1

    def test_save(self, ur_program, temp_dir):
        """Test the script is written as one file."""
        (path,) = ur_program.save(temp_dir)
        assert path.name == "URTest.URS"
        assert path.read_bytes().startswith(b"def Program():\r\n")

    def test_world_base(self, ur10):
        """Test UR poses are written in metres."""
        assert ur10.plane_to_numbers(WORLD_XY.with_origin((1000, 0, 0)))[:3] == pytest.approx([1, 0, 0])


def _val3_header(name):
    return (
        '<?xml version="1.0" encoding="utf-8" ?>\r\n'
        '<Programs xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance" '
        'xmlns="http://www.staubli.com/robotics/VAL3/Program/2">\r\n'
        f'  <Program name="{name}">'
    )


VAL3_FOOTER = "end]]></Code>\r\n  </Program>\r\n</Programs>"


class TestVAL3:
    """Tests for the VAL3 post processor."""

    def test_project(self, staubli_program):
        """Test the project lists the start, stop and chunk programs and the database."""
        assert staubli_program.errors == []
        project = staubli_program.code[0][0]
        assert project[0] == '<?xml version="1.0" encoding="utf-8"?>'
        assert '    <Program file="start.pgx" />' in project
        assert '    <Program file="stop.pgx" />' in project
        assert '    <Program file="Tx_000.pgx" />' in project
        assert '    <Data file="Tx.dtx" />' in project
        assert project[-1] == "</Project>"

    def test_database(self, staubli_program):
        """Test tool, IO, motion descriptor and joint target data."""
        dtx = staubli_program.code[0][1]
        text = "\r\n".join(dtx)

        assert dtx[3] == (
            '    <Data name="Inertia" access="private" xsi:type="array" type="num" size="1">\r\n'
            '        <Value key="0" value="0"/>\r\n'
            "    </Data>"
        )
        assert '<Value key="0" x="0" y="0" z="100" rx="0" ry="0" rz="0" fatherId="flange[0]"/>' in text
        assert '<Data name="Gripper_C" access="private" xsi:type="array" type="trsf" size="1">' in text
        assert '<Value key="0" x="0" y="0" z="100"/>' in text
        assert '<Data name="Gripper_W" access="private" xsi:type="array" type="num" size="1">' in text
        assert '<Value key="0" value="1.5"/>' in text
        assert '<Value key="0" x="0" y="0" z="0" rx="0" ry="0" rz="0" fatherId="world[0]"/>' in text

        assert '<Data name="dos" access="private" xsi:type="array" type="dio" size="2">' in text
        assert '<Value key="1" link="BasicIO-1\\%Q1"/>' in text
        assert '<Data name="dis" access="private" xsi:type="array" type="dio" size="1">' in text
        assert 'name="aos"' not in text

        assert '<Data name="mdesc0000" access="private" xsi:type="array" type="mdesc" size="1">' in text
        assert (
            '<Value key="0" accel="100" vel="100" decel="100" tmax="100" rmax="180" '
            'blend="off" leave="0" reach="0"/>'
        ) in text
        assert (
            '<Value key="0" accel="100" vel="100" decel="100" tmax="250" rmax="180" '
            'blend="Cartesian" leave="5" reach="5"/>'
        ) in text

        assert '<Data name="joints" access="private" xsi:type="array" type="jointRx" size="2">' in text
        assert '<Value key="0" j1="0" j2="0" j3="90" j4="0" j5="-28.6479" j6="0"/>' in text
        assert '<Value key="1" j1="28.6479" j2="0" j3="90" j4="0" j5="-28.6479" j6="0"/>' in text
        assert '<Data name="points" access="private" xsi:type="array" type="pointRx" size="0">' in text
        assert dtx[-2:] == ["  </Datas>", "</Database>"]

    def test_start_and_stop(self, staubli_program):
        """Test start calls every chunk and stop reports the program name."""
        start, stop = staubli_program.code[0][2:4]
        assert start == [
            _val3_header("start"),
            "    <Locals>",
            "    </Locals>",
            "    <Code><![CDATA[begin",
            "cls()",
            "putln(\"Program 'Tx' started...\")",
            "call Tx_000()",
            "waitEndMove()",
            VAL3_FOOTER,
        ]
        assert stop[4] == "putln(\"Program 'Tx' stopped.\")"
        assert stop[-1] == VAL3_FOOTER

    def test_motion_program(self, staubli_program):
        """Test payload, motions and commands of a chunk."""
        assert staubli_program.code[0][4] == [
            _val3_header("Tx_000"),
            "    <Locals>",
            "    </Locals>",
            "    <Code><![CDATA[begin ",
            "setPayload(Gripper, Gripper_W, Gripper_C, Inertia)",
            "movej(joints[0], Gripper, mdesc0000)",
            "movej(joints[1], Gripper, mdesc0001)",
            "waitEndMove()\r\ndos[0] = true",
            VAL3_FOOTER,
        ]

    def test_cartesian_points(self, tx2_60):
        """Test Cartesian targets go to the points array with a configuration for joint motions."""
        start = JointTarget(TX2_START, tool=GRIPPER)
        (solution,) = tx2_60.kinematics([start])
        fast = Speed(300, name="Fast")
        linear = CartesianTarget(
            solution.tool_plane.translate((0, 50, 0)), None, Motion.LINEAR, tool=GRIPPER, speed=fast
        )
        joint = CartesianTarget(
            solution.tool_plane.translate((0, 50, -50)), None, Motion.JOINT, tool=GRIPPER, speed=fast
        )
        program = Program("Tx", tx2_60, [[start, linear, joint]])

        assert program.errors == []
        text = "\r\n".join(program.code[0][1])
        assert '<Data name="points" access="private" xsi:type="array" type="pointRx" size="2">' in text
        points = [line for line in text.split("\r\n") if 'fatherId="DefaultFrame[0]"' in line]
        assert len(points) == 2
        assert "shoulder=" not in points[0]
        assert 'shoulder="' in points[1] and 'elbow="' in points[1] and 'wrist="' in points[1]

        sub = program.code[0][4]
        assert "movel(points[0], Gripper, mdesc0001)" in sub
        assert "movej(points[1], Gripper, mdesc0001)" in sub

    def test_configuration_flags(self):
        """Test shoulder, elbow and wrist attributes follow the branch flags."""
        assert VAL3PostProcessor.configuration(RobotConfiguration.NONE) == (
            'shoulder="lefty" elbow="epositive" wrist="wpositive"'
        )
        flags = RobotConfiguration.SHOULDER | RobotConfiguration.WRIST
        assert VAL3PostProcessor.configuration(flags) == 'shoulder="righty" elbow="enegative" wrist="wnegative"'

    def test_long_group_name(self, tx2_60, staubli_targets):
        """Test program and group names must fit controller identifiers."""
        program = Program("LongName", tx2_60, [staubli_targets])
        assert program.code is None
        assert program.errors == [
            "Program name combined with mechanical group name 'LongName_T_ROB1' is too long, "
            "should be shorter than 12 characters."
        ]

    def test_long_tool_name(self, tx2_60, staubli_targets):
        """Test tool names are limited to 13 characters."""
        tool = GRIPPER.with_name("LongGripperTool")
        targets = [replace(target, tool=tool) for target in staubli_targets]
        program = Program("Tx", tx2_60, [targets])
        assert program.code is None
        assert program.errors == [
            "Attribute name 'LongGripperTool' is too long, should be shorter than 14 characters."
        ]

    def test_coordinated_robots(self, tx2_60_pair, staubli_targets):
        """Test more than one mechanical group is rejected."""
        program = Program("Tx", tx2_60_pair, [staubli_targets, staubli_targets])
        assert program.code is None
        assert program.errors == ["Coordinated robots not supported for Staubli."]

    def test_save(self, staubli_program, temp_dir):
        """Test project files are written with a byte order mark and a final newline."""
        paths = staubli_program.save(temp_dir)
        assert [path.name for path in paths] == ["Tx.pjx", "Tx.dtx", "start.pgx", "stop.pgx", "Tx_000.pgx"]
        assert all(path.parent.name == "Tx" for path in paths)

        data = paths[2].read_bytes()
        assert data.startswith(b"\xef\xbb\xbf<?xml")
        assert data.endswith(b"</Programs>\r\n")
