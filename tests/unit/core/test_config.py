"""
Unit tests for configuration management.
"""

import math

import pytest

from robotcell.commands.custom import Group
from robotcell.commands.io import SetDO
from robotcell.core.config import (
    CommandConfig,
    ConfigManager,
    JointConfig,
    MechanismConfig,
    PoseConfig,
    RobotSystemConfig,
    ToolpathConfig,
    load_robot_system,
    load_toolpath,
)
from robotcell.core.exceptions import ConfigurationError
from robotcell.core.manufacturer import Manufacturer
from robotcell.mechanisms.joints import PrismaticJoint, RevoluteJoint
from robotcell.mechanisms.profiles import MechanismKind
from robotcell.targets.attributes import DEFAULT_SPEED
from robotcell.targets.targets import CartesianTarget, JointTarget, Motion, RobotConfiguration


class TestPoseConfig:
    """Tests for PoseConfig model."""

    def test_default_is_world_xy(self):
        """Test an empty pose is the world XY plane."""
        pose = PoseConfig().to_pose()
        assert pose.origin == (0.0, 0.0, 0.0)
        assert pose.xaxis == (1.0, 0.0, 0.0)

    def test_axes(self):
        """Test poses given by axes."""
        pose = PoseConfig(origin=[1, 2, 3], xaxis=[0, 1, 0], yaxis=[0, 0, 1]).to_pose()
        assert pose.origin == (1.0, 2.0, 3.0)
        assert pose.zaxis == pytest.approx((1, 0, 0))

    def test_quaternion(self):
        """Test poses given by a quaternion."""
        pose = PoseConfig(quaternion=[0.5, 0.5, 0.5, 0.5]).to_pose()
        assert pose.xaxis == pytest.approx((0, 1, 0))
        assert pose.yaxis == pytest.approx((0, 0, 1))

    def test_wrong_length_rejected(self):
        """Test origins need three values."""
        with pytest.raises(Exception):
            PoseConfig(origin=[1, 2])


class TestSystemModels:
    """Tests for joint, mechanism and system models."""

    def test_joint_kinds(self):
        """Test joint kind selects the joint class."""
        revolute = JointConfig(number=0, min=-10, max=10, max_speed=90).build(0)
        prismatic = JointConfig(kind="prismatic", number=6, min=0, max=1000, max_speed=500).build(0)
        assert isinstance(revolute, RevoluteJoint)
        assert isinstance(prismatic, PrismaticJoint)
        assert prismatic.number == 6

    def test_mechanism_inherits_manufacturer(self):
        """Test mechanisms default to the system manufacturer."""
        config = MechanismConfig(
            kind="track",
            model="Track",
            joints=[{"kind": "prismatic", "number": 6, "min": 0, "max": 2000, "max_speed": 1000}],
        )
        mechanism = config.build(Manufacturer.KUKA)
        assert mechanism.kind == MechanismKind.TRACK
        assert mechanism.manufacturer == Manufacturer.KUKA

    def test_mechanism_needs_joints(self):
        """Test a mechanism without joints is rejected."""
        with pytest.raises(Exception):
            MechanismConfig(model="Empty", joints=[])

    def test_build_system(self, sample_config_dir):
        """Test building a runtime system from a file."""
        system = load_robot_system(sample_config_dir / "systems" / "irb120.yaml")
        assert system.name == "IRB120"
        assert system.manufacturer == Manufacturer.ABB
        assert system.io.do == ["DO10_1", "DO10_2"]
        assert system.robot_joint_count() == 6
        assert system.payload(0) == 3
        assert system.get_joints(0)[0].range.max == pytest.approx(math.radians(165))

    def test_unknown_manufacturer_rejected(self):
        """Test the manufacturer must be a known value."""
        with pytest.raises(Exception):
            RobotSystemConfig(name="X", manufacturer="Acme", groups=[])


class TestToolpathConfig:
    """Tests for ToolpathConfig model."""

    def test_build_targets(self, sample_config_dir):
        """Test targets, attribute references and commands."""
        targets = load_toolpath(sample_config_dir / "toolpaths" / "demo.yaml")
        assert len(targets) == 2

        first, second = targets
        assert isinstance(first, CartesianTarget)
        assert first.configuration == RobotConfiguration.WRIST
        assert first.motion == Motion.JOINT
        assert first.speed is DEFAULT_SPEED

        assert second.motion == Motion.LINEAR
        assert second.speed.name == "Fast"
        assert second.speed.translation == 300
        assert isinstance(second.command, SetDO)
        assert second.command.name == "GripperOn"

    def test_joint_target(self):
        """Test joint targets keep their radians."""
        config = ToolpathConfig(name="Joints", targets=[{"type": "joint", "joints": [0, 1.5708, 0, 0, 0, 0]}])
        (target,) = config.build()
        assert isinstance(target, JointTarget)
        assert target.joints[1] == pytest.approx(1.5708)

    def test_several_commands_grouped(self):
        """Test several commands on a target become a group."""
        config = ToolpathConfig(
            name="Commands",
            commands=[
                {"type": "message", "name": "Hello", "message": "Hello"},
                {"type": "wait", "name": "Pause", "seconds": 2},
            ],
            targets=[{"type": "joint", "joints": [0] * 6, "commands": ["Hello", "Pause"]}],
        )
        (target,) = config.build()
        assert isinstance(target.command, Group)
        assert [command.name for command in target.command] == ["Hello", "Pause"]

    def test_custom_command(self):
        """Test custom commands keep their manufacturer text."""
        command = CommandConfig(
            type="custom", name="Weld", manufacturer="ABB", command="SetDO doWeld,1;", run_before=True
        ).build({})
        assert command.manufacturers == [Manufacturer.ABB]
        assert command.run_before

    def test_missing_reference(self):
        """Test unknown attribute names raise with the available names."""
        config = ToolpathConfig(
            name="Broken",
            speeds=[{"name": "Slow", "translation": 50}],
            targets=[{"type": "joint", "joints": [0] * 6, "speed": "Fast"}],
        )
        with pytest.raises(ConfigurationError) as exc_info:
            config.build()
        assert exc_info.value.details["available"] == ["Slow"]

    def test_cartesian_without_plane(self):
        """Test Cartesian targets need a plane."""
        config = ToolpathConfig(name="Broken", targets=[{"type": "cartesian"}])
        with pytest.raises(ConfigurationError, match="no plane"):
            config.build()


class TestConfigManager:
    """Tests for ConfigManager."""

    def test_init_nonexistent_dir(self, temp_dir):
        """Test initialization with non-existent directory."""
        with pytest.raises(ConfigurationError, match="not found"):
            ConfigManager(config_dir=temp_dir / "missing")

    def test_list_configs(self, sample_config_dir):
        """Test listing systems and toolpaths."""
        manager = ConfigManager(config_dir=sample_config_dir)
        assert manager.list_systems() == ["irb120"]
        assert manager.list_toolpaths() == ["demo"]

    def test_get_system(self, sample_config_dir):
        """Test getting a system configuration."""
        manager = ConfigManager(config_dir=sample_config_dir)
        config = manager.get_system("irb120")
        assert config.name == "IRB120"
        assert len(config.groups[0].mechanisms[0].joints) == 6

    def test_get_missing_toolpath(self, sample_config_dir):
        """Test getting an unknown toolpath lists the available ones."""
        manager = ConfigManager(config_dir=sample_config_dir)
        with pytest.raises(ConfigurationError) as exc_info:
            manager.get_toolpath("nonexistent")
        assert exc_info.value.details["available"] == ["demo"]

    def test_invalid_yaml(self, sample_config_dir):
        """Test malformed files raise ConfigurationError."""
        (sample_config_dir / "systems" / "broken.yaml").write_text("system: [unclosed")
        manager = ConfigManager(config_dir=sample_config_dir)
        with pytest.raises(ConfigurationError, match="Failed to read config"):
            manager.load()

    def test_invalid_model(self, sample_config_dir):
        """Test validation failures raise ConfigurationError."""
        (sample_config_dir / "toolpaths" / "bad.yaml").write_text("toolpath:\n  targets: []\n")
        manager = ConfigManager(config_dir=sample_config_dir)
        with pytest.raises(ConfigurationError, match="Failed to load toolpath config"):
            manager.load()

    def test_missing_section(self, temp_dir):
        """Test files without the expected section are rejected."""
        path = temp_dir / "system.yaml"
        path.write_text("robot:\n  name: X\n")
        with pytest.raises(ConfigurationError, match="Missing 'system' section"):
            load_robot_system(path)
