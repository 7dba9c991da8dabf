"""
ABB RAPID Post Processor - generates .mod/.modx modules for ABB controllers.

Each mechanical group gets a main module with the data declarations and a
``Main`` procedure. Motions go to a sub module per multi-file chunk; with a
single chunk the sub module is appended to the main module when saved.
"""

import math
from pathlib import Path
from typing import List, Tuple

from robotcell.core.geometry import Pose, pose_to_quaternion
from robotcell.core.units import format_number
from robotcell.postprocessor.base import GroupCode, PostProcessorBase, PostProcessorConfig, attributes_of
from robotcell.targets.attributes import Frame, Speed, Tool, Zone
from robotcell.targets.targets import Motion, RobotConfiguration

PGF_ENCODING = "ISO-8859-1"


def _position(pose: Pose) -> str:
    return "[" + ",".join(format_number(v, 3) for v in pose.origin) + "]"


def _orientation(pose: Pose) -> str:
    return "[" + ",".join(format_number(v, 5) for v in pose_to_quaternion(pose)) + "]"


def _quadrant(angle: float) -> int:
    cf = math.floor(angle / (math.pi / 2))
    return cf - 1 if cf < 0 else cf


class RapidPostProcessor(PostProcessorBase):
    """ABB RAPID post processor."""

    @classmethod
    def default_config(cls) -> PostProcessorConfig:
        return PostProcessorConfig(
            format_name="rapid",
            file_extension=".mod",
            line_ending="\r\n",
            encoding=PGF_ENCODING,
        )

    @staticmethod
    def _is_omnicore(program) -> bool:
        return program.robot_system.controller.lower() == "omnicore"

    def _extension(self, program) -> str:
        return ".modx" if self._is_omnicore(program) else self.config.file_extension

    def file_encoding(self, program, relative: Path) -> str:
        if relative.suffix == ".pgf" or not self._is_omnicore(program):
            return PGF_ENCODING
        return "utf-8"

    def group_code(self, program, group: int) -> GroupCode:
        code = [self.main_module(program, group)]
        for file in range(len(program.multi_file_indices)):
            code.append(self.sub_module(program, file, group))
        return code

    # ── Modules ────────────────────────────────────────────────────────

    def main_module(self, program, group: int) -> List[str]:
        system = program.robot_system
        groups = system.groups
        multi_file = len(program.multi_file_indices) > 1
        group_name = groups[group].name

        code = [f"MODULE {program.name}_{group_name}"]
        if not groups[group].externals:
            code.append("VAR extjoint extj := [9E9,9E9,9E9,9E9,9E9,9E9];")
        code.append("VAR confdata conf := [0,0,0,0];")

        if len(groups) > 1:
            code.append("VAR syncident sync1;")
            code.append("VAR syncident sync2;")
            code.append('TASK PERS tasks all_tasks{2} := [["T_ROB1"], ["T_ROB2"]];')

        code.extend(self.tool(tool) for tool in attributes_of(program, Tool))
        code.extend(self.frame(program, frame) for frame in attributes_of(program, Frame))
        code.extend(self.speed(speed) for speed in attributes_of(program, Speed))
        code.extend(self.zone(zone) for zone in attributes_of(program, Zone) if zone.is_flyby)
        code.extend(self.declarations(program))

        code.append("PROC Main()")
        if not multi_file:
            code.append("ConfL \\Off;")

        if group == 0:
            code.extend(self.init_command_lines(program))

        if len(groups) > 1:
            code.append("SyncMoveOn sync1, all_tasks;")

        if multi_file:
            for i in range(len(program.multi_file_indices)):
                module = f"{program.name}_{group_name}_{i:03d}"
                code.append(f'Load\\Dynamic, "HOME:/{program.name}/{module}{self._extension(program).upper()}";')
                code.append(f'%"{module}:Main"%;')
                code.append(f'UnLoad "HOME:/{program.name}/{module}{self._extension(program).upper()}";')

            if len(groups) > 1:
                code.append("SyncMoveOff sync2;")
            code.append("ENDPROC")
            code.append("ENDMODULE")

        return code

    def sub_module(self, program, file: int, group: int) -> List[str]:
        system = program.robot_system
        mechanical_group = system.groups[group]
        multi_file = len(program.multi_file_indices) > 1

        code = []
        if multi_file:
            code.append(f"MODULE {program.name}_{mechanical_group.name}_{file:03d}")
            code.append("PROC Main()")
            code.append("ConfL \\Off;")

        for j in self.file_range(program, file):
            program_target = program.targets[j].program_targets[group]
            move = self.move(program, program_target)
            code.extend(self.with_commands(program, program_target, [move]))

        if not multi_file and len(system.groups) > 1:
            code.append("SyncMoveOff sync2;")

        code.append("ENDPROC")
        code.append("ENDMODULE")
        return code

    # ── Motions ────────────────────────────────────────────────────────

    def move(self, program, program_target) -> str:
        system = program.robot_system
        mechanical_group = system.groups[program_target.group]
        target = program_target.target
        zone = target.zone.name if target.zone.is_flyby else "fine"
        task_id = f"\\ID:={program_target.index}" if len(system.groups) > 1 else ""

        external = "extj"
        if mechanical_group.externals:
            values = mechanical_group.radians_to_degrees_external(target)
            externals = ["9E9"] * 6
            for i in range(min(len(target.external), 6)):
                externals[i] = format_number(values[i], 4)
            external = "[" + ",".join(externals) + "]"

        if program_target.is_joint_target:
            joints = ",".join(
                format_number(mechanical_group.radian_to_degree(value, i), 4)
                for i, value in enumerate(target.joints)
            )
            return f"MoveAbsJ [[{joints}],{external}]{task_id},{target.speed.name},{zone},{target.tool.name};"

        plane = target.plane
        if target.motion == Motion.JOINT:
            conf = self.configuration(program_target)
            robtarget = f"[{_position(plane)},{_orientation(plane)},{conf},{external}]"
            return (
                f"MoveJ {robtarget}{task_id},{target.speed.name},{zone},{target.tool.name} "
                f"\\WObj:={target.frame.name};"
            )

        if target.motion == Motion.LINEAR:
            robtarget = f"[{_position(plane)},{_orientation(plane)},conf,{external}]"
            return (
                f"MoveL {robtarget}{task_id},{target.speed.name},{zone},{target.tool.name} "
                f"\\WObj:={target.frame.name};"
            )

        raise self.unsupported_motion(target)

    @staticmethod
    def configuration(program_target) -> str:
        """confdata literal: joint quadrants and the cfx branch number."""
        joints = program_target.kinematics.joints
        configuration = program_target.kinematics.configuration

        shoulder = RobotConfiguration.SHOULDER in configuration
        elbow = RobotConfiguration.ELBOW in configuration
        if shoulder:
            elbow = not elbow
        wrist = RobotConfiguration.WRIST in configuration

        cfx = (1 if wrist else 0) + (2 if elbow else 0) + (4 if shoulder else 0)
        return f"[{_quadrant(joints[0])},{_quadrant(joints[3])},{_quadrant(joints[5])},{cfx}]"

    # ── Declarations ───────────────────────────────────────────────────

    @staticmethod
    def tool(tool: Tool) -> str:
        weight = tool.weight if tool.weight > 0.001 else 0.001
        centroid = tool.centroid
        if math.dist(centroid, (0.0, 0.0, 0.0)) < 0.001:
            centroid = (0.0, 0.0, 0.001)

        cog = ",".join(format_number(v, 3) for v in centroid)
        loaddata = f"[{format_number(weight, 3)},[{cog}],[1,0,0,0],0,0,0]"
        return f"PERS tooldata {tool.name}:=[TRUE,[{_position(tool.tcp)},{_orientation(tool.tcp)}],{loaddata}];"

    @staticmethod
    def frame(program, frame: Frame) -> str:
        plane = frame.plane.inverse_orient(program.robot_system.base_plane)
        coupled_mechanism = ""
        if frame.is_coupled:
            if frame.coupled_mechanism == -1:
                coupled_mechanism = f"ROB_{frame.coupled_mechanical_group + 1}"
            else:
                coupled_mechanism = f"STN_{frame.coupled_mechanism + 1}"
        fixed = "FALSE" if frame.is_coupled else "TRUE"
        return (
            f'TASK PERS wobjdata {frame.name}:=[FALSE,{fixed},"{coupled_mechanism}",'
            f"[{_position(plane)},{_orientation(plane)}],[[0,0,0],[1,0,0,0]]];"
        )

    @staticmethod
    def speed(speed: Speed) -> str:
        values = [
            speed.translation,
            math.degrees(speed.rotation),
            speed.translation_external,
            math.degrees(speed.rotation_external),
        ]
        return f"TASK PERS speeddata {speed.name}:=[{','.join(format_number(v, 3) for v in values)}];"

    @staticmethod
    def zone(zone: Zone) -> str:
        d = format_number(zone.distance, 3)
        angle = format_number(math.degrees(zone.rotation), 3)
        angle_external = format_number(math.degrees(zone.rotation_external), 3)
        return f"TASK PERS zonedata {zone.name}:=[FALSE,{d},{d},{d},{angle},{d},{angle_external}];"

    # ── Files ──────────────────────────────────────────────────────────

    def files(self, program) -> List[Tuple[Path, List[str]]]:
        """
        Program file (.pgf), main module and, for multi-file programs, one
        module per chunk, all inside a folder named after the program.
        """
        extension = self._extension(program)
        multi_file = len(program.multi_file_indices) > 1
        root = Path(program.name)
        files = []

        for group_code, group in zip(program.code, program.robot_system.groups):
            module = f"{program.name}_{group.name}"
            pgf = [
                f'<?xml version="1.0" encoding="{PGF_ENCODING}" ?>',
                "<Program>",
                f"    <Module>{module}{extension}</Module>",
                "</Program>",
            ]
            files.append((root / f"{module}.pgf", pgf))

            main = list(group_code[0])
            if not multi_file:
                main.extend(group_code[1])
            files.append((root / f"{module}{extension}", main))

            if multi_file:
                for index, lines in enumerate(group_code[1:]):
                    files.append((root / f"{module}_{index:03d}{extension}", lines))

        return files
