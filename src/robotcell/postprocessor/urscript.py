"""
URScript Post Processor - generates scripts for Universal Robots controllers.

The program is a single ``def Program():`` function. Tool, speed and zone
attributes become script variables (positions in metres); joint targets and
joint motions are emitted as ``movej``, linear motions as ``movel``.
"""

from pathlib import Path
from typing import List, Tuple

from robotcell.core.geometry import WORLD_XY, Pose, plane_to_plane, pose_to_axis_angle
from robotcell.core.units import format_number
from robotcell.postprocessor.base import GroupCode, PostProcessorBase, PostProcessorConfig, attributes_of
from robotcell.targets.attributes import Speed, Tool, Zone
from robotcell.targets.targets import Motion

# Tool frames are given relative to the flange; UR flanges are rotated 90° about Z.
FLANGE_PLANE = Pose((0.0, 0.0, 0.0), (0.0, 1.0, 0.0), (-1.0, 0.0, 0.0))

DEFAULT_JOINT_SPEED_RATIO = 0.1


def _numbers(values, decimals: int) -> str:
    return ", ".join(format_number(v, decimals) for v in values)


class URScriptPostProcessor(PostProcessorBase):
    """Universal Robots URScript post processor."""

    @classmethod
    def default_config(cls) -> PostProcessorConfig:
        return PostProcessorConfig(
            format_name="urscript",
            file_extension=".URS",
            line_ending="\r\n",
            encoding="utf-8",
            indent="  ",
        )

    def group_code(self, program, group: int) -> GroupCode:
        if len(program.multi_file_indices) > 1:
            program.warnings.append("Multi-file input not supported on UR robots")
        return [self.script(program)]

    def script(self, program) -> List[str]:
        indent = self.config.indent
        code = ["def Program():"]

        for tool in attributes_of(program, Tool):
            code.extend(indent + line for line in self.tool(tool))
        for speed in attributes_of(program, Speed):
            code.append(f"{indent}{speed.name} = {format_number(speed.translation / 1000, 5)}")
        for zone in attributes_of(program, Zone):
            code.append(f"{indent}{zone.name} = {format_number(zone.distance / 1000, 5)}")
        code.extend(self.declarations(program))
        code.extend(self.init_command_lines(program))

        current_tool = None
        for cell_target in program.targets:
            program_target = cell_target.program_targets[0]
            target = program_target.target

            if current_tool is None or target.tool != current_tool:
                code.append(f"{indent}set_tcp({target.tool.name}Tcp)")
                code.append(f"{indent}set_payload({target.tool.name}Weight, {target.tool.name}Cog)")
                current_tool = target.tool

            move = indent + self.move(program, cell_target, program_target)
            code.extend(self.with_commands(program, program_target, [move]))

        code.append("end")
        return code

    @staticmethod
    def tool(tool: Tool) -> List[str]:
        """Variables holding the TCP pose, payload and centre of gravity of a tool."""
        to_flange = plane_to_plane(WORLD_XY, FLANGE_PLANE)
        tcp = tool.tcp.transform(to_flange)
        tcp = tcp.with_origin([v / 1000 for v in tcp.origin])

        cog = (to_flange[:3, :3] @ tool.centroid + to_flange[:3, 3]) / 1000

        return [
            f"{tool.name}Tcp = p[{_numbers(pose_to_axis_angle(tcp), 5)}]",
            f"{tool.name}Weight = {format_number(tool.weight, 3)}",
            f"{tool.name}Cog = [{_numbers(cog, 5)}]",
        ]

    def move(self, program, cell_target, program_target) -> str:
        system = program.robot_system
        target = program_target.target
        zone = target.zone.name

        if program_target.is_joint_target or (program_target.is_joint_motion and program_target.forced_configuration):
            if program_target.is_joint_target:
                joints = target.joints
            else:
                joints = program_target.kinematics.joints[: system.robot_joint_count()]
            speed = self._joint_speed(system, cell_target, target)
            accel = format_number(target.speed.axis_accel, 4)
            return f"movej([{_numbers(joints, 4)}], a={accel}, {speed}, r={zone})"

        plane = target.plane.orient(target.frame.plane).inverse_orient(system.base_plane)
        pose = _numbers(system.plane_to_numbers(plane), 5)

        if target.motion == Motion.JOINT:
            speed = self._joint_speed(system, cell_target, target)
            accel = format_number(target.speed.axis_accel, 5)
            return f"movej(p[{pose}], a={accel}, {speed}, r={zone})"

        if target.motion == Motion.LINEAR:
            if target.speed.time == 0:
                speed = f"v={target.speed.name}"
            else:
                speed = f"t={format_number(target.speed.time, 3)}"
            accel = format_number(target.speed.translation_accel / 1000, 5)
            return f"movel(p[{pose}], a={accel}, {speed}, r={zone})"

        raise self.unsupported_motion(target)

    @staticmethod
    def _joint_speed(system, cell_target, target) -> str:
        """
        ``v=`` argument of a movej: the share of the slowest joint speed the
        motion needs, or ``t=`` when the target speed sets a time.
        """
        if target.speed.time != 0:
            return f"t={format_number(target.speed.time, 3)}"

        max_speed = min(joint.max_speed for joint in system.groups[0].robot.joints)
        ratio = cell_target.min_time / cell_target.delta_time if cell_target.delta_time > 0 else DEFAULT_JOINT_SPEED_RATIO
        return f"v={format_number(ratio * max_speed, 4)}"

    def files(self, program) -> List[Tuple[Path, List[str]]]:
        lines = [line for file in program.code[0] for line in file]
        return [(Path(f"{program.name}{self.file_extension}"), lines)]
