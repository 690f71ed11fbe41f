"""
BMP Manipulator CLI

Command-line interface for inspecting, converting and transforming
24-bit BMP images, plus the interactive single-key editing session.
"""

import sys
import json
import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.logging import RichHandler

from bmp_manipulator.bmp_codec import (
    BitmapError,
    BitmapIOError,
    load_bitmap,
    save_bitmap,
)
from bmp_manipulator.transforms import (
    TRANSFORMS,
    Transform,
    apply_transforms,
    parse_transform,
)

# Import from core module for unified logic
from bmp_manipulator.core.parsing import parse_commands as _parse_commands_core
from bmp_manipulator.core.results import OperationResult
from bmp_manipulator.core.actions import (
    inspect_bitmap as core_inspect_bitmap,
    transform_file as core_transform_file,
    convert_file as core_convert_file,
)

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format="%(message)s",
    handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
)
logger = logging.getLogger("bmp_manipulator")

# Setup Rich console
console = Console()

app = typer.Typer(help="🖼️  BMP Manipulator - transform 24-bit bitmap images")

QUIT_COMMAND = "q"


def print_header(text: str) -> None:
    """Print fancy header."""
    console.print(Panel(text, expand=False, style="bold blue"))


def print_success(text: str) -> None:
    """Print success message."""
    console.print(f"✓ {text}", style="green")


def print_warning(text: str) -> None:
    """Print warning message."""
    console.print(f"⚠️  {text}", style="yellow")


def print_error(text: str) -> None:
    """Print error message."""
    console.print(f"❌ {text}", style="red")


def print_result(result: OperationResult, output_json: bool = False) -> None:
    """Print an OperationResult as a summary or as JSON."""
    if output_json:
        console.print(
            json.dumps(result.to_dict(), indent=2),
            soft_wrap=True,
            highlight=False,
            markup=False,
        )
        return

    style = "green" if result.ok else "red"
    console.print(result.to_summary(), style=style, highlight=False, markup=False)


def parse_commands(value: str) -> List[Transform]:
    """
    Parse a transform sequence from the command line.

    CLI wrapper around core.parsing.parse_commands that converts
    ValueError to typer.BadParameter for proper CLI error handling.
    """
    try:
        return _parse_commands_core(value)
    except ValueError as e:
        raise typer.BadParameter(str(e))


@app.callback()
def main_options(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Transform 24-bit BMP images: invert, grayscale, blur, mirror, shrink, double, rotate."""
    if verbose:
        logger.setLevel(logging.DEBUG)


@app.command()
def apply(
    input_path: str = typer.Argument(..., help="Input 24-bit BMP"),
    output_path: str = typer.Argument(..., help="Output BMP path"),
    commands: str = typer.Option(
        "",
        "--commands", "-c",
        help="Transforms to apply in order: command letters (igbvsdr) or comma-separated names",
    ),
    output_json: bool = typer.Option(False, "--json", "-j", help="Output result as JSON"),
) -> None:
    """
    Apply a sequence of transforms to a BMP and save the result.

    Example:
        bmp-manipulator apply photo.bmp out.bmp -c gbr
        bmp-manipulator apply photo.bmp out.bmp -c invert,rotate-right
    """
    chain = parse_commands(commands)

    if not output_json:
        print_header("Apply Transforms")

    result = core_transform_file(input_path, output_path, chain)
    print_result(result, output_json)

    if not result.ok:
        sys.exit(1)


@app.command()
def info(
    image: str = typer.Argument(..., help="Path to BMP file"),
    output_json: bool = typer.Option(False, "--json", "-j", help="Output as JSON for scripting"),
) -> None:
    """Show BMP header fields and validate the format."""
    result = core_inspect_bitmap(image)

    if output_json:
        print_result(result, output_json=True)
        if not result.ok:
            sys.exit(1)
        return

    print_header("BMP Inspection")

    if not result.ok:
        for err in result.errors:
            print_error(err)
        sys.exit(1)

    table = Table(title="Header")
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("File", Path(image).name)
    for name, value in result.metadata.items():
        table.add_row(name, str(value))

    console.print(table)

    for warn in result.warnings:
        print_warning(warn)

    print_success("Valid 24-bit BMP")


@app.command()
def convert(
    input_path: str = typer.Argument(..., help="Any image Pillow can read (PNG, JPG, ...)"),
    output_path: str = typer.Argument(..., help="Output 24-bit BMP path"),
) -> None:
    """Convert an image to an uncompressed 24-bit BMP."""
    print_header("Convert to 24-bit BMP")

    result = core_convert_file(input_path, output_path)
    print_result(result)

    if not result.ok:
        sys.exit(1)


@app.command("commands")
def list_commands() -> None:
    """List available transforms and their command letters."""
    table = Table(title="Transforms")
    table.add_column("Key", style="cyan")
    table.add_column("Name", style="magenta")
    table.add_column("Description", style="green")

    for t in TRANSFORMS.values():
        table.add_row(t.command, t.name, t.description)
    table.add_row(QUIT_COMMAND, "quit", "Save and exit (interactive edit only)")

    console.print(table)


@app.command()
def edit(
    image: Optional[str] = typer.Argument(None, help="BMP to edit (prompted if omitted)"),
) -> None:
    """
    Interactive editing session.

    Reads one command letter per line and applies it to the image held in
    memory; 'q' asks for an output file name, saves and exits.
    """
    if image is None:
        image = typer.prompt("What image file would you like to edit")

    try:
        buffer = load_bitmap(image)
    except BitmapError as e:
        print_error(f"Wrong file input: {e}")
        sys.exit(1)

    console.print(f"Loaded {image} ({buffer.width}x{buffer.height})")

    keys = ", ".join([t.command for t in TRANSFORMS.values()] + [QUIT_COMMAND])
    prompt_text = f"What command would you like to perform ({keys})"

    while True:
        command = typer.prompt(prompt_text, default="", show_default=False).strip()

        if command[:1].lower() == QUIT_COMMAND:
            output = typer.prompt("What do you want to name your new image file")
            try:
                save_bitmap(buffer, output)
            except BitmapIOError as e:
                print_error(f"Error saving the file: {e}")
                sys.exit(1)
            print_success(f"Image saved as {output}")
            return

        try:
            transform = parse_transform(command[:1])
        except ValueError:
            print_warning("Invalid command.")
            continue

        buffer = apply_transforms(buffer, [transform])
        console.print(f"{transform.name}: {buffer.width}x{buffer.height}", style="dim")


def main() -> None:
    """Main entry point."""
    try:
        app()
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        sys.exit(0)
    except Exception as e:
        console.print(f"\n[red bold]Fatal error:[/red bold] {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
