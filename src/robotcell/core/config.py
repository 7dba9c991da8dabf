"""
Configuration management for RobotCell.

Robot systems and toolpaths are described in YAML files and validated with
pydantic models before being turned into runtime objects::

    system:
      name: IRB120
      manufacturer: ABB
      io: {do: [DO10_1], di: [DI10_1]}
      groups:
        - mechanisms:
            - kind: robot_arm
              model: IRB120
              payload: 3
              joints:
                - {number: 0, a: 0, d: 290, min: -165, max: 165, max_speed: 250}

Joint ranges and speeds are given in controller units (degrees, deg/s, mm).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Annotated, Any, Dict, List, Literal, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError

from robotcell.commands.base import Command
from robotcell.commands.custom import Custom, Group
from robotcell.commands.flow import Message, Stop, Wait
from robotcell.commands.io import PulseDO, SetAO, SetDO, WaitDI
from robotcell.core.exceptions import ConfigurationError
from robotcell.core.geometry import WORLD_XY, Interval, Pose
from robotcell.core.logging import get_logger
from robotcell.core.manufacturer import Manufacturer
from robotcell.mechanisms.group import MechanicalGroup
from robotcell.mechanisms.io import IO
from robotcell.mechanisms.joints import Joint, PrismaticJoint, RevoluteJoint
from robotcell.mechanisms.mechanism import Mechanism
from robotcell.mechanisms.profiles import MechanismKind
from robotcell.mechanisms.system import RobotSystem
from robotcell.targets.attributes import Frame, Speed, Tool, Zone
from robotcell.targets.targets import CartesianTarget, JointTarget, Motion, RobotConfiguration, Target

logger = get_logger(__name__)

Vector = Annotated[List[float], Field(min_length=3, max_length=3)]
Quaternion = Annotated[List[float], Field(min_length=4, max_length=4)]


# ============================================================================
# System models
# ============================================================================


class PoseConfig(BaseModel):
    """Pose given by axes or by a ``[w, x, y, z]`` quaternion."""

    origin: Vector = Field(default_factory=lambda: [0.0, 0.0, 0.0])
    xaxis: Optional[Vector] = None
    yaxis: Optional[Vector] = None
    quaternion: Optional[Quaternion] = None

    def to_pose(self) -> Pose:
        if self.quaternion is not None:
            return Pose.from_quaternion(self.quaternion, self.origin)
        if self.xaxis is not None and self.yaxis is not None:
            return Pose.from_axes(self.origin, self.xaxis, self.yaxis)
        return WORLD_XY.with_origin(self.origin)


class JointConfig(BaseModel):
    """Joint in controller units."""

    kind: Literal["revolute", "prismatic"] = "revolute"
    number: int
    a: float = 0.0
    d: float = 0.0
    min: float
    max: float
    max_speed: float
    alpha: Optional[float] = None
    theta: Optional[float] = None

    def build(self, index: int) -> Joint:
        cls = PrismaticJoint if self.kind == "prismatic" else RevoluteJoint
        return cls(
            index,
            self.number,
            self.a,
            self.d,
            Interval(self.min, self.max),
            self.max_speed,
            alpha=self.alpha,
            theta=self.theta,
        )


class MechanismConfig(BaseModel):
    """Mechanism model; the manufacturer defaults to the system's."""

    kind: MechanismKind = MechanismKind.ROBOT_ARM
    model: str
    manufacturer: Optional[Manufacturer] = None
    payload: float = 0.0
    base: Optional[PoseConfig] = None
    moves_robot: bool = False
    solver: Optional[str] = None
    joints: List[JointConfig] = Field(min_length=1)

    def build(self, manufacturer: Manufacturer) -> Mechanism:
        return Mechanism(
            self.kind,
            self.model,
            self.manufacturer or manufacturer,
            [joint.build(i) for i, joint in enumerate(self.joints)],
            payload=self.payload,
            base_plane=self.base.to_pose() if self.base else WORLD_XY,
            moves_robot=self.moves_robot,
            solver=self.solver,
        )


class MechanicalGroupConfig(BaseModel):
    """Mechanical group model."""

    mechanisms: List[MechanismConfig] = Field(min_length=1)


class IOConfig(BaseModel):
    """Controller IO table model."""

    use_controller_numbering: bool = False
    do: List[str] = Field(default_factory=list)
    di: List[str] = Field(default_factory=list)
    ao: List[str] = Field(default_factory=list)
    ai: List[str] = Field(default_factory=list)


class RobotSystemConfig(BaseModel):
    """Robot system model."""

    name: str
    manufacturer: Manufacturer
    controller: str = ""
    base: Optional[PoseConfig] = None
    io: IOConfig = Field(default_factory=IOConfig)
    groups: List[MechanicalGroupConfig] = Field(min_length=1)

    def build(self) -> RobotSystem:
        """
        Create the runtime robot system.

        Raises:
            MechanismDefinitionError: If the mechanisms are inconsistent.
        """
        groups = [
            MechanicalGroup(i, [m.build(self.manufacturer) for m in group.mechanisms])
            for i, group in enumerate(self.groups)
        ]
        io = IO(self.manufacturer, **self.io.model_dump())
        return RobotSystem(
            self.name,
            self.manufacturer,
            groups,
            io=io,
            base_plane=self.base.to_pose() if self.base else WORLD_XY,
            controller=self.controller,
        )


# ============================================================================
# Toolpath models
# ============================================================================


class ToolConfig(BaseModel):
    name: str
    tcp: PoseConfig = Field(default_factory=PoseConfig)
    weight: float = 0.0
    centroid: Optional[Vector] = None

    def build(self) -> Tool:
        return Tool(self.tcp.to_pose(), self.name, self.weight, self.centroid)


class FrameConfig(BaseModel):
    name: str
    plane: PoseConfig = Field(default_factory=PoseConfig)
    coupled_mechanism: int = -1
    coupled_mechanical_group: int = -1

    def build(self) -> Frame:
        return Frame(self.plane.to_pose(), self.coupled_mechanism, self.coupled_mechanical_group, self.name)


class SpeedConfig(BaseModel):
    """Speed model; rotations in radians, like :class:`Speed`."""

    name: str
    translation: float = 100.0
    rotation: Optional[float] = None
    translation_external: float = 5000.0
    rotation_external: Optional[float] = None
    translation_accel: float = 1000.0
    axis_accel: Optional[float] = None
    time: float = 0.0

    def build(self) -> Speed:
        values = self.model_dump(exclude_none=True)
        return Speed(**values)


class ZoneConfig(BaseModel):
    name: str
    distance: float = 0.0
    rotation: Optional[float] = None
    rotation_external: Optional[float] = None

    def build(self) -> Zone:
        return Zone(self.distance, self.rotation, self.rotation_external, self.name)


class CommandConfig(BaseModel):
    """
    Command model.

    ``type`` selects the command; the other fields are read by the types
    that need them.
    """

    type: Literal["custom", "group", "message", "stop", "wait", "set_do", "pulse_do", "set_ao", "wait_di"]
    name: str
    run_before: bool = False
    # custom
    manufacturer: Manufacturer = Manufacturer.ALL
    command: Optional[str] = None
    declaration: Optional[str] = None
    # group
    commands: List[str] = Field(default_factory=list)
    # message
    message: str = ""
    # wait, pulse_do
    seconds: float = 0.0
    length: float = 0.2
    # io
    index: int = 0
    value: Any = True

    def build(self, built: Dict[str, Command]) -> Command:
        if self.type == "custom":
            command: Command = Custom(self.name, self.manufacturer, self.command, self.declaration)
        elif self.type == "group":
            command = Group([_lookup(built, name, "Command") for name in self.commands], self.name)
        elif self.type == "message":
            command = Message(self.message, self.name)
        elif self.type == "stop":
            command = Stop(self.name)
        elif self.type == "wait":
            command = Wait(self.seconds, self.name)
        elif self.type == "set_do":
            command = SetDO(self.index, bool(self.value), self.name)
        elif self.type == "pulse_do":
            command = PulseDO(self.index, self.length, self.name)
        elif self.type == "set_ao":
            command = SetAO(self.index, float(self.value), self.name)
        else:
            command = WaitDI(self.index, bool(self.value), self.name)
        command.run_before = self.run_before
        return command


class TargetConfig(BaseModel):
    """
    Target model.

    Attributes are referenced by name; unnamed references use the defaults.
    Joint values are in radians.
    """

    type: Literal["cartesian", "joint"] = "cartesian"
    plane: Optional[PoseConfig] = None
    joints: Optional[List[float]] = None
    configuration: Optional[List[Literal["shoulder", "elbow", "wrist"]]] = None
    motion: Motion = Motion.JOINT
    tool: Optional[str] = None
    frame: Optional[str] = None
    speed: Optional[str] = None
    zone: Optional[str] = None
    commands: List[str] = Field(default_factory=list)
    external: List[float] = Field(default_factory=list)


class ToolpathConfig(BaseModel):
    """Toolpath model: named attributes and commands plus ordered targets."""

    name: str
    tools: List[ToolConfig] = Field(default_factory=list)
    frames: List[FrameConfig] = Field(default_factory=list)
    speeds: List[SpeedConfig] = Field(default_factory=list)
    zones: List[ZoneConfig] = Field(default_factory=list)
    commands: List[CommandConfig] = Field(default_factory=list)
    targets: List[TargetConfig] = Field(default_factory=list)

    def build(self) -> List[Target]:
        """
        Create the targets of the toolpath.

        Raises:
            ConfigurationError: If a target references an undefined attribute
                or command, or lacks its plane or joints.
        """
        tools = {tool.name: tool.build() for tool in self.tools}
        frames = {frame.name: frame.build() for frame in self.frames}
        speeds = {speed.name: speed.build() for speed in self.speeds}
        zones = {zone.name: zone.build() for zone in self.zones}

        commands: Dict[str, Command] = {}
        for command in self.commands:
            commands[command.name] = command.build(commands)

        targets: List[Target] = []
        for i, config in enumerate(self.targets):
            command = None
            if len(config.commands) == 1:
                command = _lookup(commands, config.commands[0], "Command")
            elif config.commands:
                command = Group([_lookup(commands, name, "Command") for name in config.commands], None)

            attributes = {
                "tool": _lookup(tools, config.tool, "Tool"),
                "frame": _lookup(frames, config.frame, "Frame"),
                "speed": _lookup(speeds, config.speed, "Speed"),
                "zone": _lookup(zones, config.zone, "Zone"),
                "command": command,
                "external": tuple(config.external),
            }

            if config.type == "joint":
                if config.joints is None:
                    raise ConfigurationError(f"Joint target {i} has no joints.", details={"toolpath": self.name})
                targets.append(JointTarget(tuple(config.joints), **attributes))
            else:
                if config.plane is None:
                    raise ConfigurationError(f"Cartesian target {i} has no plane.", details={"toolpath": self.name})
                configuration = None
                if config.configuration is not None:
                    configuration = RobotConfiguration.NONE
                    for flag in config.configuration:
                        configuration |= RobotConfiguration[flag.upper()]
                targets.append(CartesianTarget(config.plane.to_pose(), configuration, config.motion, **attributes))

        return targets


def _lookup(items: Dict[str, Any], name: Optional[str], kind: str) -> Any:
    if name is None:
        return None
    if name not in items:
        raise ConfigurationError(
            f"{kind} not found: {name}",
            details={"available": list(items.keys())},
        )
    return items[name]


# ============================================================================
# Loading
# ============================================================================


def _read_section(path: Path, section: str) -> Dict[str, Any]:
    path = Path(path)
    if not path.exists():
        raise ConfigurationError(f"Configuration file not found: {path}")
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Failed to read config: {path}", details={"error": str(e)})

    if not data or section not in data:
        raise ConfigurationError(
            f"Missing '{section}' section in config: {path}",
            details={"sections": list(data.keys()) if isinstance(data, dict) else []},
        )
    return data[section]


def read_robot_system_config(path: Path) -> RobotSystemConfig:
    """Validate the ``system`` section of a YAML file."""
    try:
        return RobotSystemConfig(**_read_section(path, "system"))
    except ValidationError as e:
        raise ConfigurationError(f"Failed to load system config: {path}", details={"error": str(e)})


def read_toolpath_config(path: Path) -> ToolpathConfig:
    """Validate the ``toolpath`` section of a YAML file."""
    try:
        return ToolpathConfig(**_read_section(path, "toolpath"))
    except ValidationError as e:
        raise ConfigurationError(f"Failed to load toolpath config: {path}", details={"error": str(e)})


def load_robot_system(path: Path) -> RobotSystem:
    """
    Load a robot system from a YAML file.

    Args:
        path: File with a ``system`` section.

    Returns:
        The runtime robot system.

    Raises:
        ConfigurationError: If the file is missing, malformed or describes
            invalid mechanisms.
    """
    system = read_robot_system_config(path).build()
    logger.info("system_loaded", path=str(path), groups=len(system.groups))
    return system


def load_toolpath(path: Path) -> List[Target]:
    """Load the targets of a toolpath YAML file (``toolpath`` section)."""
    targets = read_toolpath_config(path).build()
    logger.debug("toolpath_loaded", path=str(path), targets=len(targets))
    return targets


# ============================================================================
# Config directory
# ============================================================================


@dataclass
class ConfigManager:
    """
    Central configuration manager for RobotCell.

    Loads systems from ``systems/*.yaml`` and toolpaths from
    ``toolpaths/*.yaml``, keyed by file stem.

    Example:
        >>> config = ConfigManager(config_dir=Path("config"))
        >>> system = config.get_system("irb120").build()
        >>> targets = config.get_toolpath("square").build()
    """

    config_dir: Path
    _systems: dict[str, RobotSystemConfig] = field(default_factory=dict, init=False)
    _toolpaths: dict[str, ToolpathConfig] = field(default_factory=dict, init=False)
    _loaded: bool = field(default=False, init=False)

    def __post_init__(self) -> None:
        self.config_dir = Path(self.config_dir)
        if not self.config_dir.exists():
            raise ConfigurationError(f"Configuration directory not found: {self.config_dir}")

    def load(self) -> None:
        """Load all configurations from disk."""
        self._systems = {
            path.stem: read_robot_system_config(path) for path in sorted((self.config_dir / "systems").glob("*.yaml"))
        }
        self._toolpaths = {
            path.stem: read_toolpath_config(path) for path in sorted((self.config_dir / "toolpaths").glob("*.yaml"))
        }
        self._loaded = True

    def get_system(self, name: str) -> RobotSystemConfig:
        """
        Get a robot system configuration by name.

        Args:
            name: File name without the .yaml extension.

        Raises:
            ConfigurationError: If the system is not found.
        """
        if not self._loaded:
            self.load()

        if name not in self._systems:
            raise ConfigurationError(
                f"System configuration not found: {name}",
                details={"available": list(self._systems.keys())},
            )
        return self._systems[name]

    def get_toolpath(self, name: str) -> ToolpathConfig:
        """Get a toolpath configuration by name."""
        if not self._loaded:
            self.load()

        if name not in self._toolpaths:
            raise ConfigurationError(
                f"Toolpath configuration not found: {name}",
                details={"available": list(self._toolpaths.keys())},
            )
        return self._toolpaths[name]

    def list_systems(self) -> list[str]:
        """List available system configurations."""
        if not self._loaded:
            self.load()
        return list(self._systems.keys())

    def list_toolpaths(self) -> list[str]:
        """List available toolpath configurations."""
        if not self._loaded:
            self.load()
        return list(self._toolpaths.keys())
