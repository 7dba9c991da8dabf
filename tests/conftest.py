"""
Pytest configuration and shared fixtures.
"""

import tempfile
from pathlib import Path

import pytest

from robotcell.core.geometry import WORLD_YZ, WORLD_ZX, Interval
from robotcell.core.manufacturer import Manufacturer
from robotcell.mechanisms.group import MechanicalGroup
from robotcell.mechanisms.io import IO
from robotcell.mechanisms.joints import PrismaticJoint, RevoluteJoint
from robotcell.mechanisms.mechanism import Mechanism
from robotcell.mechanisms.profiles import MechanismKind
from robotcell.mechanisms.system import RobotSystem
from robotcell.program.program import Program
from robotcell.targets.attributes import Speed
from robotcell.targets.targets import CartesianTarget, Motion, RobotConfiguration

# (a, d, min, max, max_speed) per joint, controller units
IRB120_JOINTS = [
    (0, 290, -165, 165, 250),
    (270, 0, -110, 110, 250),
    (70, 0, -110, 70, 250),
    (0, 302, -160, 160, 320),
    (0, 0, -120, 120, 320),
    (0, 72, -400, 400, 420),
]

UR10_JOINTS = [
    (0, 127.3, -360, 360, 120),
    (-612, 0, -360, 360, 120),
    (-572.3, 0, -360, 360, 180),
    (0, 163.941, -360, 360, 180),
    (0, 115.7, -360, 360, 180),
    (0, 92.2, -360, 360, 180),
]

KR6_JOINTS = [
    (25, 400, -170, 170, 360),
    (455, 0, -190, 45, 300),
    (35, 0, -120, 156, 360),
    (0, 420, -185, 185, 381),
    (0, 0, -120, 120, 388),
    (0, 80, -350, 350, 615),
]

TX2_60_JOINTS = [
    (0, 375, -180, 180, 435),
    (290, 0, -127.5, 127.5, 410),
    (0, 0, -142.5, 142.5, 540),
    (0, 310, -270, 270, 995),
    (0, 0, -121, 132.5, 1065),
    (0, 70, -270, 270, 1525),
]


def _arm(manufacturer, model, payload, joints, **kwargs):
    revolute = [
        RevoluteJoint(i, i, a, d, Interval(low, high), speed) for i, (a, d, low, high, speed) in enumerate(joints)
    ]
    return Mechanism(MechanismKind.ROBOT_ARM, model, manufacturer, revolute, payload=payload, **kwargs)


@pytest.fixture
def temp_dir():
    """Provide a temporary directory that is cleaned up after the test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


# =============================================================================
# Robot systems
# =============================================================================


@pytest.fixture
def irb120_arm():
    """ABB IRB 120 arm."""
    return _arm(Manufacturer.ABB, "IRB120", 3, IRB120_JOINTS)


@pytest.fixture
def irb120_numerical():
    """ABB IRB 120 arm forced onto the numerical solver."""
    return _arm(Manufacturer.ABB, "IRB120", 3, IRB120_JOINTS, solver="numerical")


@pytest.fixture
def irb120(irb120_arm):
    """ABB IRB 120 system with two digital outputs and inputs."""
    io = IO(Manufacturer.ABB, do=["DO10_1", "DO10_2"], di=["DI10_1", "DI10_2"])
    return RobotSystem("IRB120", Manufacturer.ABB, [MechanicalGroup(0, [irb120_arm])], io=io)


@pytest.fixture
def ur10_arm():
    """Universal Robots UR10 arm."""
    return _arm(Manufacturer.UR, "UR10", 10, UR10_JOINTS)


@pytest.fixture
def ur10(ur10_arm):
    """UR10 system with the CB3 IO table."""
    channels = [str(i) for i in range(17)]
    io = IO(Manufacturer.UR, do=channels, di=channels, ao=["0", "1"], ai=["0", "1"])
    return RobotSystem("UR10", Manufacturer.UR, [MechanicalGroup(0, [ur10_arm])], io=io)


@pytest.fixture
def kr6_arm():
    """KUKA KR 6 R900 arm."""
    return _arm(Manufacturer.KUKA, "KR6_R900", 6, KR6_JOINTS)


@pytest.fixture
def kr6(kr6_arm):
    """KUKA KR 6 system."""
    io = IO(Manufacturer.KUKA, do=["1", "2", "3"], di=["1", "2"], ao=["1"])
    return RobotSystem("KR6", Manufacturer.KUKA, [MechanicalGroup(0, [kr6_arm])], io=io)


@pytest.fixture
def tx2_60_arm():
    """Staubli TX2-60 arm."""
    return _arm(Manufacturer.STAUBLI, "TX2_60", 3.5, TX2_60_JOINTS)


@pytest.fixture
def tx2_60(tx2_60_arm):
    """Staubli TX2-60 system with two digital outputs and one input."""
    io = IO(Manufacturer.STAUBLI, do=["BasicIO-1\\%Q0", "BasicIO-1\\%Q1"], di=["BasicIO-1\\%I0"])
    return RobotSystem("TX2_60", Manufacturer.STAUBLI, [MechanicalGroup(0, [tx2_60_arm])], io=io)


@pytest.fixture
def tx2_60_pair():
    """Two Staubli TX2-60 arms in one cell."""
    groups = [
        MechanicalGroup(0, [_arm(Manufacturer.STAUBLI, "TX2_60", 3.5, TX2_60_JOINTS)]),
        MechanicalGroup(1, [_arm(Manufacturer.STAUBLI, "TX2_60", 3.5, TX2_60_JOINTS)]),
    ]
    return RobotSystem("TX2_60Pair", Manufacturer.STAUBLI, groups)


@pytest.fixture
def track():
    """Single axis linear track carrying the robot."""
    joint = PrismaticJoint(0, 6, 0, 0, Interval(0, 3000), 2000)
    return Mechanism(MechanismKind.TRACK, "KL250", Manufacturer.KUKA, [joint], moves_robot=True)


@pytest.fixture
def kr6_track(track):
    """KUKA KR 6 riding on a linear track (E1)."""
    arm = _arm(Manufacturer.KUKA, "KR6_R900", 6, KR6_JOINTS)
    return RobotSystem("KR6Track", Manufacturer.KUKA, [MechanicalGroup(0, [track, arm])])


@pytest.fixture
def positioner():
    """Two axis positioner (tilt then turn) next to the robot."""
    joints = [
        RevoluteJoint(0, 6, 0, 500, Interval(-90, 90), 100),
        RevoluteJoint(1, 7, 0, 100, Interval(-360, 360), 150),
    ]
    return Mechanism(MechanismKind.POSITIONER, "IRBP_A250", Manufacturer.ABB, joints, payload=250)


@pytest.fixture
def irb120_positioner(positioner):
    """ABB IRB 120 with a two axis positioner in the same group."""
    arm = _arm(Manufacturer.ABB, "IRB120", 3, IRB120_JOINTS)
    return RobotSystem("IRB120Positioner", Manufacturer.ABB, [MechanicalGroup(0, [positioner, arm])])


@pytest.fixture
def irb120_multimove():
    """Two ABB IRB 120 arms in one MultiMove cell."""
    groups = [
        MechanicalGroup(0, [_arm(Manufacturer.ABB, "IRB120", 3, IRB120_JOINTS)]),
        MechanicalGroup(1, [_arm(Manufacturer.ABB, "IRB120", 3, IRB120_JOINTS)]),
    ]
    return RobotSystem("IRB120MultiMove", Manufacturer.ABB, groups)


# =============================================================================
# Programs
# =============================================================================


@pytest.fixture
def abb_targets():
    """Joint move to a start pose, then a 400 mm linear move."""
    a = CartesianTarget(WORLD_YZ.with_origin((300, 200, 610)), RobotConfiguration.WRIST, Motion.JOINT)
    b = CartesianTarget(WORLD_YZ.with_origin((300, -200, 610)), None, Motion.LINEAR, speed=Speed(300))
    return [a, b]


@pytest.fixture
def abb_program(irb120, abb_targets):
    """Compiled two target IRB 120 program."""
    return Program("TestProgram", irb120, [abb_targets])


@pytest.fixture
def ur_targets():
    """Joint move to a start pose, then a linear move."""
    a = CartesianTarget(WORLD_ZX.with_origin((200, 100, 600)), RobotConfiguration.WRIST, Motion.JOINT)
    b = CartesianTarget(WORLD_ZX.with_origin((700, 250, 600)), None, Motion.LINEAR, speed=Speed(300))
    return [a, b]


@pytest.fixture
def ur_program(ur10, ur_targets):
    """Compiled two target UR10 program."""
    return Program("URTest", ur10, [ur_targets])


# =============================================================================
# Configuration files
# =============================================================================

SYSTEM_YAML = """
system:
  name: IRB120
  manufacturer: ABB
  io:
    do: [DO10_1, DO10_2]
    di: [DI10_1, DI10_2]
  groups:
    - mechanisms:
        - kind: robot_arm
          model: IRB120
          payload: 3
          joints:
            - {number: 0, a: 0, d: 290, min: -165, max: 165, max_speed: 250}
            - {number: 1, a: 270, d: 0, min: -110, max: 110, max_speed: 250}
            - {number: 2, a: 70, d: 0, min: -110, max: 70, max_speed: 250}
            - {number: 3, a: 0, d: 302, min: -160, max: 160, max_speed: 320}
            - {number: 4, a: 0, d: 0, min: -120, max: 120, max_speed: 320}
            - {number: 5, a: 0, d: 72, min: -400, max: 400, max_speed: 420}
"""

TOOLPATH_YAML = """
toolpath:
  name: Demo
  speeds:
    - {name: Fast, translation: 300}
  commands:
    - {type: set_do, name: GripperOn, index: 0, value: true}
  targets:
    - type: cartesian
      plane: {origin: [300, 200, 610], xaxis: [0, 1, 0], yaxis: [0, 0, 1]}
      configuration: [wrist]
      motion: joint
    - type: cartesian
      plane: {origin: [300, -200, 610], xaxis: [0, 1, 0], yaxis: [0, 0, 1]}
      motion: linear
      speed: Fast
      commands: [GripperOn]
"""


@pytest.fixture
def sample_config_dir(temp_dir):
    """Create a sample configuration directory structure."""
    config_dir = temp_dir / "config"
    (config_dir / "systems").mkdir(parents=True)
    (config_dir / "toolpaths").mkdir(parents=True)

    (config_dir / "systems" / "irb120.yaml").write_text(SYSTEM_YAML)
    (config_dir / "toolpaths" / "demo.yaml").write_text(TOOLPATH_YAML)

    return config_dir
