"""
Command-line interface for RobotCell.

Provides commands to inspect robot systems, convert teach pendant values and
compile toolpaths into controller code.
"""

from pathlib import Path
from typing import Optional, Tuple

import click
from rich.console import Console
from rich.table import Table

from robotcell import __version__
from robotcell.core.config import ConfigManager, load_robot_system, load_toolpath
from robotcell.core.logging import configure_logging
from robotcell.mechanisms.joints import PrismaticJoint
from robotcell.mechanisms.system import RobotSystem
from robotcell.program.program import Program

console = Console()


def _resolve_system(ctx: click.Context, system: str) -> RobotSystem:
    """A YAML file path, or a system name inside the configuration directory."""
    path = Path(system)
    if path.is_file():
        return load_robot_system(path)
    return ConfigManager(ctx.obj["config_dir"]).get_system(system).build()


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--config-dir",
    type=click.Path(path_type=Path),
    default="config",
    help="Configuration directory",
)
@click.option("--log-level", default="WARNING", help="Minimum log level")
@click.option("--json-logs", is_flag=True, help="Output logs as JSON lines")
@click.pass_context
def main(ctx: click.Context, config_dir: Path, log_level: str, json_logs: bool) -> None:
    """RobotCell - Offline programming for industrial robot cells."""
    configure_logging(level=log_level, json_output=json_logs)
    ctx.ensure_object(dict)
    ctx.obj["config_dir"] = config_dir


# =============================================================================
# System Commands
# =============================================================================


@main.command("info")
@click.argument("system")
@click.pass_context
def info(ctx: click.Context, system: str) -> None:
    """Show the groups, mechanisms and joints of a robot system."""
    try:
        robot_system = _resolve_system(ctx, system)

        table = Table(title=f"System: {robot_system.name}")
        table.add_column("Property", style="cyan")
        table.add_column("Value")

        table.add_row("Manufacturer", str(robot_system.manufacturer))
        table.add_row("Controller", robot_system.controller or "(default)")
        table.add_row("Type", "Industrial" if robot_system.is_industrial else "Collaborative")
        table.add_row("Groups", str(len(robot_system.groups)))
        table.add_row("Digital outputs", str(len(robot_system.io.do)))
        table.add_row("Digital inputs", str(len(robot_system.io.di)))
        console.print(table)

        for group in robot_system.groups:
            joints_table = Table(title=f"Group {group.name}")
            joints_table.add_column("Mechanism", style="cyan")
            joints_table.add_column("Number")
            joints_table.add_column("Type")
            joints_table.add_column("a")
            joints_table.add_column("d")
            joints_table.add_column("Range")
            joints_table.add_column("Max speed")

            for mechanism in group.mechanisms:
                for joint in mechanism.joints:
                    prismatic = isinstance(joint, PrismaticJoint)
                    low = mechanism.radian_to_degree(joint.range.min, joint.index)
                    high = mechanism.radian_to_degree(joint.range.max, joint.index)
                    joints_table.add_row(
                        mechanism.model,
                        str(joint.number),
                        "prismatic" if prismatic else "revolute",
                        f"{joint.a:g}",
                        f"{joint.d:g}",
                        f"{low:g} to {high:g}",
                        f"{joint.max_speed:.4g} {'mm/s' if prismatic else 'rad/s'}",
                    )

            console.print(joints_table)

    except Exception as e:
        console.print(f"[red]✗[/red] Failed to load system: {e}")
        raise SystemExit(1)


@main.command("convert")
@click.argument("system")
@click.argument("joint_degrees", nargs=-1, type=float, required=True)
@click.option("--group", "-g", default=0, help="Mechanical group index")
@click.pass_context
def convert(ctx: click.Context, system: str, joint_degrees: Tuple[float, ...], group: int) -> None:
    """Convert teach pendant joint values to radians."""
    try:
        robot_system = _resolve_system(ctx, system)
        count = robot_system.robot_joint_count(group)
        if len(joint_degrees) != count:
            raise click.BadParameter(f"expected {count} joint values, got {len(joint_degrees)}")

        radians = [robot_system.degree_to_radian(value, i, group) for i, value in enumerate(joint_degrees)]
        console.print(" ".join(f"{value:.6f}" for value in radians))

    except Exception as e:
        console.print(f"[red]✗[/red] Failed to convert joints: {e}")
        raise SystemExit(1)


# =============================================================================
# Program Commands
# =============================================================================


@main.command("compile")
@click.argument("system")
@click.argument("toolpaths", nargs=-1, required=True, type=click.Path(exists=True, path_type=Path))
@click.option("--name", "-n", default="Program", help="Program name")
@click.option("--step-size", "-s", default=1.0, help="Interpolation step size (mm)")
@click.option(
    "--output",
    "-o",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Folder to write the code to",
)
@click.option("--multi-file", "-m", multiple=True, type=int, help="Target index starting a new file")
@click.pass_context
def compile_program(
    ctx: click.Context,
    system: str,
    toolpaths: Tuple[Path, ...],
    name: str,
    step_size: float,
    output: Optional[Path],
    multi_file: Tuple[int, ...],
) -> None:
    """Compile one toolpath per mechanical group into controller code."""
    try:
        robot_system = _resolve_system(ctx, system)
        targets = [load_toolpath(path) for path in toolpaths]
        program = Program(name, robot_system, targets, multi_file_indices=multi_file or None, step_size=step_size)
    except Exception as e:
        console.print(f"[red]✗[/red] Failed to compile program: {e}")
        raise SystemExit(1)

    for warning in program.warnings:
        console.print(f"[yellow]![/yellow] {warning}")

    if program.errors:
        for error in program.errors:
            console.print(f"[red]✗[/red] {error}")
        raise SystemExit(1)

    console.print(f"[green]✓[/green] Compiled {program.name}: {len(program.targets)} targets")
    console.print(f"  Duration: {program.duration:.2f} s")

    if output is None:
        for group in program.code:
            for lines in group:
                for line in lines:
                    click.echo(line)
        return

    try:
        output.mkdir(parents=True, exist_ok=True)
        paths = program.save(output)
        for path in paths:
            console.print(f"  {path}")
    except Exception as e:
        console.print(f"[red]✗[/red] Failed to save program: {e}")
        raise SystemExit(1)


if __name__ == "__main__":
    main()
