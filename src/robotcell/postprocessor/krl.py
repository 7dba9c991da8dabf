"""
KUKA KRL Post Processor - generates .SRC/.DAT files for KUKA KRC controllers.

Each mechanical group gets a main ``.SRC`` calling one sub program per
multi-file chunk and a ``.DAT`` file holding the tool, base, speed and zone
declarations.
"""

import math
from pathlib import Path
from typing import List, Sequence, Tuple

from robotcell.core.units import UNIT_TOL, format_number
from robotcell.mechanisms.joints import PrismaticJoint
from robotcell.postprocessor.base import GroupCode, PostProcessorBase, PostProcessorConfig, attributes_of
from robotcell.targets.attributes import Frame, Speed, Tool, Zone
from robotcell.targets.targets import Motion, RobotConfiguration

HEADER = ["&ACCESS RVP", "&REL 1"]


def xyzabc(values: Sequence[float]) -> str:
    """KRL ``X .., Y .., Z .., A .., B .., C ..`` aggregate body."""
    x, y, z, a, b, c = values
    return (
        f"X {format_number(x, 3)},Y {format_number(y, 3)},Z {format_number(z, 3)},"
        f"A {format_number(a, 4)},B {format_number(b, 4)},C {format_number(c, 4)}"
    )


class KRLPostProcessor(PostProcessorBase):
    """KUKA KRL post processor."""

    @classmethod
    def default_config(cls) -> PostProcessorConfig:
        return PostProcessorConfig(
            format_name="krl",
            file_extension=".SRC",
            line_ending="\r\n",
            encoding="utf-8",
        )

    def group_code(self, program, group: int) -> GroupCode:
        code = [self.main_file(program, group), self.dat_file(program, group)]
        for file in range(len(program.multi_file_indices)):
            code.append(self.src_file(program, file, group))
        return code

    # ── Files ──────────────────────────────────────────────────────────

    def dat_file(self, program, group: int) -> List[str]:
        group_name = program.robot_system.groups[group].name
        code = [*HEADER, f"DEFDAT {program.name}_{group_name} PUBLIC", ""]

        for tool in attributes_of(program, Tool):
            code.extend(self.tool(program, tool))
        for frame in attributes_of(program, Frame):
            code.append(self.frame(program, frame))
        for speed in attributes_of(program, Speed):
            code.append(f"DECL GLOBAL REAL {speed.name} = {format_number(speed.translation / 1000, 5)}")
        for zone in attributes_of(program, Zone):
            code.append(f"DECL GLOBAL REAL {zone.name} = {format_number(zone.distance, 3)}")
        code.extend(self.declarations(program))

        code.append("ENDDAT")
        return code

    def main_file(self, program, group: int) -> List[str]:
        group_name = program.robot_system.groups[group].name
        code = [
            *HEADER,
            f"DEF {program.name}_{group_name}()",
            "BAS (#INITMOV,0)",
            "$ADVANCE = 5",
            "$APO.CPTP = 100",
            "",
        ]
        code.extend(self.init_command_lines(program))
        for i in range(len(program.multi_file_indices)):
            code.append(f"{program.name}_{group_name}_{i:03d}()")
        code.append("END")
        return code

    def src_file(self, program, file: int, group: int) -> List[str]:
        system = program.robot_system
        group_name = system.groups[group].name
        code = [*HEADER, f"DEF {program.name}_{group_name}_{file:03d}()", ""]

        current_tool = None
        current_frame = None
        current_speed = None
        current_zone = None
        current_percent = 0.0

        for j in self.file_range(program, file):
            cell_target = program.targets[j]
            program_target = cell_target.program_targets[group]
            target = program_target.target

            if current_tool is None or target.tool != current_tool:
                code.append(f"$TOOL = {target.tool.name}")
                code.append(f"$LOAD = {target.tool.name}_L")
                current_tool = target.tool

            if current_frame is None or target.frame != current_frame:
                code.extend(self.set_frame(target.frame))
                current_frame = target.frame

            if target.zone.is_flyby and (current_zone is None or target.zone != current_zone):
                code.append(f"$APO.CDIS = {target.zone.name}")
                current_zone = target.zone

            if program_target.index > 0:
                if program_target.leading_joint > 5:
                    code.extend(self.external_speed(system, program_target))
                else:
                    if (current_speed is None or target.speed != current_speed) and not program_target.is_joint_motion:
                        rotation = math.degrees(target.speed.rotation)
                        code.append(f"$VEL.CP = {target.speed.name}")
                        code.append(f"$VEL.ORI1 = {format_number(rotation, 3)}")
                        code.append(f"$VEL.ORI2 = {format_number(rotation, 4)}")
                        current_speed = target.speed

                    if program_target.is_joint_motion:
                        percent = cell_target.min_time / cell_target.delta_time if cell_target.delta_time > 0 else 0.0
                        if abs(current_percent - percent) > UNIT_TOL:
                            code.append("BAS(#VEL_PTP, 100)")
                            if cell_target.delta_time > UNIT_TOL:
                                code.append(
                                    f"$VEL_AXIS[{program_target.leading_joint + 1}] = {format_number(percent * 100, 3)}"
                                )
                            current_percent = percent

            move = self.move(program, program_target)
            code.extend(self.with_commands(program, program_target, [move]))

        code.append("END")
        return code

    # ── Motions ────────────────────────────────────────────────────────

    def move(self, program, program_target) -> str:
        system = program.robot_system
        mechanical_group = system.groups[program_target.group]
        robot = mechanical_group.robot
        target = program_target.target

        values = mechanical_group.radians_to_degrees_external(target)
        external = "".join(f",E{i + 1} {format_number(values[i], 4)}" for i in range(len(target.external)))

        if program_target.is_joint_target:
            axes = ",".join(
                f"A{i + 1} {format_number(robot.radian_to_degree(value, i), 4)}"
                for i, value in enumerate(target.joints)
            )
            move = f"PTP {{{axes}{external}}}"
            return move + " C_PTP" if target.zone.is_flyby else move

        euler = system.plane_to_numbers(target.plane)

        if target.motion == Motion.JOINT:
            joints = program_target.kinematics.joints
            degrees = [robot.radian_to_degree(joints[i], i) for i in range(6)]
            turn = sum(2**i for i, value in enumerate(degrees) if value < 0)

            configuration = program_target.kinematics.configuration
            shoulder = RobotConfiguration.SHOULDER in configuration
            elbow = RobotConfiguration.ELBOW not in configuration
            wrist = RobotConfiguration.WRIST in configuration
            status = (1 if shoulder else 0) + (2 if elbow else 0) + (4 if wrist else 0)

            bits = f",S'B{status:b}',T'B{turn:b}'"
            move = f"PTP {{{xyzabc(euler)}{external}{bits}}}"
            return move + " C_PTP" if target.zone.is_flyby else move

        if target.motion == Motion.LINEAR:
            move = f"LIN {{{xyzabc(euler)}{external}}}"
            return move + " C_DIS" if target.zone.is_flyby else move

        raise self.unsupported_motion(target)

    @staticmethod
    def external_speed(system, program_target) -> List[str]:
        joint = system.get_joints(program_target.group)[program_target.leading_joint]
        speed = program_target.target.speed
        limit = speed.translation_external if isinstance(joint, PrismaticJoint) else speed.rotation_external
        percent = min(max(limit / joint.max_speed, 0.0), 1.0)
        return [
            "BAS(#VEL_PTP, 100)",
            f"$VEL_EXTAX[{program_target.leading_joint + 1 - 6}] = {format_number(percent * 100, 3)}",
        ]

    # ── Declarations ───────────────────────────────────────────────────

    @staticmethod
    def tool(program, tool: Tool) -> List[str]:
        euler = program.robot_system.plane_to_numbers(tool.tcp)
        cx, cy, cz = tool.centroid
        return [
            f"DECL GLOBAL FRAME {tool.name} = {{{xyzabc(euler)}}}",
            f"DECL GLOBAL LOAD {tool.name}_L = "
            f"{{M: {format_number(tool.weight, 3)},CM: {{{xyzabc((cx, cy, cz, 0, 0, 0))}}},J {{X 0,Y 0,Z 0}}}}",
        ]

    @staticmethod
    def set_frame(frame: Frame) -> List[str]:
        if frame.is_coupled:
            mechanism = frame.coupled_mechanism + 2
            return [
                f"$BASE = EK(MACHINE_DEF[{mechanism}].ROOT, MACHINE_DEF[{mechanism}].MECH_TYPE, {frame.name})",
                "$ACT_EX_AX = 2",
            ]
        return [f"$BASE = {frame.name}"]

    @staticmethod
    def frame(program, frame: Frame) -> str:
        plane = frame.plane.inverse_orient(program.robot_system.base_plane)
        euler = program.robot_system.plane_to_numbers(plane)
        return f"DECL GLOBAL FRAME {frame.name} = {{{xyzabc(euler)}}}"

    def files(self, program) -> List[Tuple[Path, List[str]]]:
        """Main .SRC, .DAT and one .SRC per chunk, inside a folder named after the program."""
        root = Path(program.name)
        files = []
        for group_code, group in zip(program.code, program.robot_system.groups):
            module = f"{program.name}_{group.name}"
            files.append((root / f"{module}.SRC", group_code[0]))
            files.append((root / f"{module}.DAT", group_code[1]))
            for index, lines in enumerate(group_code[2:]):
                files.append((root / f"{module}_{index:03d}.SRC", lines))
        return files
