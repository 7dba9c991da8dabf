"""
Staubli VAL3 Post Processor - generates VAL3 projects for CS8/CS9 controllers.

A project folder holds the ``.pjx`` project file, a ``.dtx`` database with
the tools, frames, IO links, motion descriptors and every target, the
``start`` and ``stop`` programs, and one ``.pgx`` program per multi-file
chunk. Targets are stored in two arrays, ``joints`` and ``points``; the
motion programs refer to them by index.
"""

import math
from pathlib import Path
from typing import Dict, List, Sequence, Tuple

from robotcell.commands.flow import val3_data, val3_num_data
from robotcell.core.geometry import WORLD_XY, plane_to_plane
from robotcell.core.units import format_number
from robotcell.postprocessor.base import GroupCode, PostProcessorBase, PostProcessorConfig, attributes_of
from robotcell.targets.attributes import Frame, Speed, Tool, Zone
from robotcell.targets.targets import Motion, RobotConfiguration

GROUP_NAME_LENGTH = 12
ATTRIBUTE_NAME_LENGTH = 16
TOOL_NAME_LENGTH = 14

Mdescs = Dict[Tuple[Speed, Zone], str]


def _pose_values(values: Sequence[float]) -> str:
    x, y, z, rx, ry, rz = values
    return (
        f'x="{format_number(x, 3)}" y="{format_number(y, 3)}" z="{format_number(z, 3)}" '
        f'rx="{format_number(rx, 4)}" ry="{format_number(ry, 4)}" rz="{format_number(rz, 4)}"'
    )


def _program_header(name: str) -> str:
    return (
        '<?xml version="1.0" encoding="utf-8" ?>\r\n'
        '<Programs xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance" '
        'xmlns="http://www.staubli.com/robotics/VAL3/Program/2">\r\n'
        f'  <Program name="{name}">'
    )


PROGRAM_FOOTER = "end]]></Code>\r\n  </Program>\r\n</Programs>"


class VAL3PostProcessor(PostProcessorBase):
    """Staubli VAL3 post processor."""

    @classmethod
    def default_config(cls) -> PostProcessorConfig:
        return PostProcessorConfig(
            format_name="val3",
            file_extension=".pgx",
            line_ending="\r\n",
            encoding="utf-8-sig",
        )

    def check(self, program) -> List[str]:
        """VAL3 supports one mechanical group and short identifiers."""
        groups = program.robot_system.groups
        if len(groups) > 1:
            return ["Coordinated robots not supported for Staubli."]

        for group in groups:
            name = f"{program.name}_{group.name}"
            if len(name) >= GROUP_NAME_LENGTH:
                return [
                    f"Program name combined with mechanical group name '{name}' is too long, "
                    f"should be shorter than {GROUP_NAME_LENGTH} characters."
                ]

        for attribute in program.attributes:
            limit = TOOL_NAME_LENGTH if isinstance(attribute, Tool) else ATTRIBUTE_NAME_LENGTH
            if len(attribute.name) >= limit:
                return [f"Attribute name '{attribute.name}' is too long, should be shorter than {limit} characters."]

        return []

    def group_code(self, program, group: int) -> GroupCode:
        mdescs = self.mdescs(program, group)
        data, indices = self.data_list(program, group, mdescs)
        code = [self.project(program), data, self.start(program), self.stop(program)]
        for file in range(len(program.multi_file_indices)):
            code.append(self.sub_program(program, file, group, mdescs, indices))
        return code

    @staticmethod
    def mdescs(program, group: int) -> Mdescs:
        """Motion descriptor name per distinct speed and zone pair, in target order."""
        mdescs: Mdescs = {}
        for cell_target in program.targets:
            target = cell_target.program_targets[group].target
            key = (target.speed, target.zone)
            if key not in mdescs:
                mdescs[key] = f"mdesc{len(mdescs):04d}"
        return mdescs

    # ── Project and database ───────────────────────────────────────────

    @staticmethod
    def project(program) -> List[str]:
        code = [
            '<?xml version="1.0" encoding="utf-8"?>',
            '<Project xmlns="http://www.staubli.com/robotics/VAL3/Project/3">',
            '  <Parameters version="s7.10.2" stackSize="5000" millimeterUnit="true" />',
            "  <Programs>",
            '    <Program file="start.pgx" />',
            '    <Program file="stop.pgx" />',
        ]
        for j in range(len(program.multi_file_indices)):
            code.append(f'    <Program file="{program.name}_{j:03d}.pgx" />')
        code.extend(
            [
                " </Programs>",
                "  <Database>",
                f'    <Data file="{program.name}.dtx" />',
                "  </Database>",
                "  <Libraries />",
                "</Project>",
            ]
        )
        return code

    def data_list(self, program, group: int, mdescs: Mdescs) -> Tuple[List[str], List[int]]:
        """Database lines and, per target, its index in ``joints`` or ``points``."""
        code = [
            '<?xml version="1.0" encoding="utf-8" ?>',
            '<Database xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance" '
            'xmlns="http://www.staubli.com/robotics/VAL3/Data/2">',
            "  <Datas>",
            val3_num_data("Inertia", 0),
        ]
        code.extend(self.tool(program, tool) for tool in attributes_of(program, Tool))
        code.extend(self.frame(program, frame) for frame in attributes_of(program, Frame))
        code.extend(self.io_data(program))
        code.extend(self.speed(name, speed, zone) for (speed, zone), name in mdescs.items())
        code.extend(self.declarations(program))

        targets, indices = self.targets(program, group)
        code.append(targets)
        code.extend(["  </Datas>", "</Database>"])
        return code, indices

    @staticmethod
    def io_data(program) -> List[str]:
        io = program.robot_system.io
        data = []
        for name, kind, channels in (
            ("dos", "dio", io.do),
            ("dis", "dio", io.di),
            ("aos", "aio", io.ao),
            ("ais", "aio", io.ai),
        ):
            links = [f'link="{channel}"' for channel in channels if channel]
            if links:
                data.append(val3_data(name, kind, *links))
        return data

    @staticmethod
    def tool(program, tool: Tool) -> str:
        values = program.robot_system.plane_to_numbers(tool.tcp)
        weight = tool.weight if tool.weight > 0.001 else 0.001
        centroid = tool.centroid
        if math.dist(centroid, (0.0, 0.0, 0.0)) < 0.001:
            centroid = (0.0, 0.0, 0.001)

        x, y, z = (format_number(v, 3) for v in centroid)
        return "\r\n".join(
            [
                val3_data(tool.name, "tool", f'{_pose_values(values)} fatherId="flange[0]"'),
                val3_data(f"{tool.name}_C", "trsf", f'x="{x}" y="{y}" z="{z}"'),
                val3_num_data(f"{tool.name}_W", weight),
            ]
        )

    @staticmethod
    def frame(program, frame: Frame) -> str:
        system = program.robot_system
        if frame.is_coupled:
            program.warnings.append("Frame coupling not supported with Staubli robots.")
        plane = frame.plane.transform(plane_to_plane(system.base_plane, WORLD_XY))
        values = system.plane_to_numbers(plane)
        return val3_data(frame.name, "frame", f'{_pose_values(values)} fatherId="world[0]"')

    @staticmethod
    def speed(name: str, speed: Speed, zone: Zone) -> str:
        blend = "Cartesian" if zone.is_flyby else "off"
        distance = format_number(zone.distance, 3)
        return val3_data(
            name,
            "mdesc",
            f'accel="100" vel="100" decel="100" tmax="{format_number(speed.translation, 3)}" '
            f'rmax="{format_number(math.degrees(speed.rotation), 3)}" blend="{blend}" '
            f'leave="{distance}" reach="{distance}"',
        )

    def targets(self, program, group: int) -> Tuple[str, List[int]]:
        system = program.robot_system
        mechanical_group = system.groups[group]
        joints: List[str] = []
        points: List[str] = []
        indices: List[int] = []

        for cell_target in program.targets:
            program_target = cell_target.program_targets[group]
            target = program_target.target

            if program_target.is_joint_target:
                values = [
                    format_number(mechanical_group.radian_to_degree(value, i), 4)
                    for i, value in enumerate(target.joints)
                ]
                indices.append(len(joints))
                joints.append(" ".join(f'j{i + 1}="{value}"' for i, value in enumerate(values)))
                continue

            config = ""
            if program_target.is_joint_motion:
                config = self.configuration(program_target.kinematics.configuration) + " "

            values = system.plane_to_numbers(target.plane)
            indices.append(len(points))
            points.append(f'{_pose_values(values)} {config}fatherId="{target.frame.name}[0]"')

        joints_data = val3_data("joints", "jointRx", *joints)
        points_data = val3_data("points", "pointRx", *points)
        return f"{joints_data}\r\n{points_data}", indices

    @staticmethod
    def configuration(configuration: RobotConfiguration) -> str:
        """Shoulder, elbow and wrist attributes of a ``pointRx``."""
        shoulder = RobotConfiguration.SHOULDER in configuration
        elbow = RobotConfiguration.ELBOW in configuration
        if shoulder:
            elbow = not elbow
        wrist = RobotConfiguration.WRIST in configuration

        return (
            f'shoulder="{"righty" if shoulder else "lefty"}" '
            f'elbow="{"enegative" if elbow else "epositive"}" '
            f'wrist="{"wnegative" if wrist else "wpositive"}"'
        )

    # ── Programs ───────────────────────────────────────────────────────

    def start(self, program) -> List[str]:
        code = [
            _program_header("start"),
            "    <Locals>",
            "    </Locals>",
            "    <Code><![CDATA[begin",
            "cls()",
            f"putln(\"Program '{program.name}' started...\")",
        ]
        code.extend(self.init_command_lines(program))
        for j in range(len(program.multi_file_indices)):
            code.append(f"call {program.name}_{j:03d}()")
        code.append("waitEndMove()")
        code.append(PROGRAM_FOOTER)
        return code

    @staticmethod
    def stop(program) -> List[str]:
        return [
            _program_header("stop"),
            "    <Locals>",
            "    </Locals>",
            "    <Code><![CDATA[begin",
            f"putln(\"Program '{program.name}' stopped.\")",
            PROGRAM_FOOTER,
        ]

    def sub_program(self, program, file: int, group: int, mdescs: Mdescs, indices: List[int]) -> List[str]:
        if program.robot_system.groups[group].externals:
            program.warnings.append("External axes not implemented in Staubli.")

        code = [
            _program_header(f"{program.name}_{file:03d}"),
            "    <Locals>",
            "    </Locals>",
            "    <Code><![CDATA[begin ",
        ]

        last_tool = None
        for j in self.file_range(program, file):
            program_target = program.targets[j].program_targets[group]
            target = program_target.target
            tool = target.tool.name
            mdesc = mdescs[(target.speed, target.zone)]

            if target.tool != last_tool:
                code.append(f"setPayload({tool}, {tool}_W, {tool}_C, Inertia)")
                last_tool = target.tool

            if program_target.is_joint_target:
                move = f"movej(joints[{indices[j]}], {tool}, {mdesc})"
            elif target.motion == Motion.JOINT:
                move = f"movej(points[{indices[j]}], {tool}, {mdesc})"
            elif target.motion == Motion.LINEAR:
                move = f"movel(points[{indices[j]}], {tool}, {mdesc})"
            else:
                raise self.unsupported_motion(target)

            code.extend(self.with_commands(program, program_target, [move]))

        code.append(PROGRAM_FOOTER)
        return code

    # ── Files ──────────────────────────────────────────────────────────

    def files(self, program) -> List[Tuple[Path, List[str]]]:
        """Project files in a folder named after the program, each ending with a newline."""
        root = Path(program.name)
        files = []
        for group_code in program.code:
            names = [f"{program.name}.pjx", f"{program.name}.dtx", "start.pgx", "stop.pgx"]
            names.extend(f"{program.name}_{j:03d}.pgx" for j in range(len(group_code) - 4))
            for name, lines in zip(names, group_code):
                files.append((root / name, [*lines, ""]))
        return files
