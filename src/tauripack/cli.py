"""CLI for tauripack – package a web page as a desktop app."""

import sys
from dataclasses import replace
from pathlib import Path
from typing import Optional

import click
from click.core import ParameterSource
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from . import __version__
from . import toolchain
from .builders import create_builder
from .config import BuildOptions, EnvOverrides, load_options, to_dns_label
from .context import BuildContext
from .errors import BuildError, ExitCode
from .log_config import setup_logging
from .targets import detect_host, parse_installer, parse_platform


console = Console()


@click.group()
@click.version_option(version=__version__, prog_name="tauripack")
@click.option("--verbose", "-v", is_flag=True, help="Show debug output")
def cli(verbose: bool):
    """tauripack – turn any web page into a desktop app with Tauri."""
    setup_logging(level="DEBUG" if verbose else None)


@cli.command()
@click.argument("url", required=False)
@click.option("--config", "-c", "config_path", type=click.Path(exists=True), help="Options file (YAML)")
@click.option("--name", "-n", help="Application name")
@click.option("--icon", "-i", default="", help="Icon file (.ico, .icns or .png)")
@click.option("--width", default=None, type=int, help="Window width")
@click.option("--height", default=None, type=int, help="Window height")
@click.option("--resizable/--no-resizable", default=True, help="Allow resizing the window")
@click.option("--fullscreen", is_flag=True, help="Start in fullscreen")
@click.option("--transparent", is_flag=True, help="Transparent title bar")
@click.option("--identifier", default="", help="Bundle identifier, e.g. com.example.app")
@click.option("--target", "-t", type=click.Choice(["mac", "win", "linux"]), help="Target platform (default: host)")
@click.option("--installer", type=click.Choice(["nsis", "msi"]), help="Windows installer format")
@click.option("--force-msi", is_flag=True, help="Build MSI even for non-ASCII names")
@click.option("--multi-arch", is_flag=True, help="macOS universal binary")
@click.option("--build-root", type=click.Path(file_okay=False), help="Tauri project directory")
@click.option("--output", "-o", default=".", type=click.Path(file_okay=False), help="Output directory")
@click.option("--yes", "-y", is_flag=True, help="Accept toolchain installs without asking")
def build(
    url: Optional[str],
    config_path: Optional[str],
    name: Optional[str],
    icon: str,
    width: Optional[int],
    height: Optional[int],
    resizable: bool,
    fullscreen: bool,
    transparent: bool,
    identifier: str,
    target: Optional[str],
    installer: Optional[str],
    force_msi: bool,
    multi_arch: bool,
    build_root: Optional[str],
    output: str,
    yes: bool,
):
    """Package URL as a desktop application.

    With --config, options given on the command line override the file.
    """
    ctx = click.get_current_context()
    try:
        env = EnvOverrides.from_env()
        project_root = build_root or env.build_root
        flags = {
            "name": name,
            "icon": icon,
            "width": width,
            "height": height,
            "resizable": resizable,
            "fullscreen": fullscreen,
            "transparent": transparent,
            "identifier": identifier,
            "target": parse_platform(target),
            "installer": parse_installer(installer),
            "force_msi": force_msi,
            "multi_arch": multi_arch,
        }
        if config_path:
            project = load_options(config_path)
            overrides = {
                key: value
                for key, value in flags.items()
                if ctx.get_parameter_source(key) == ParameterSource.COMMANDLINE
            }
            if url:
                overrides["url"] = url
            derived_id = f"com.tauripack.{to_dns_label(project.options.name)}"
            if "name" in overrides and "identifier" not in overrides and project.options.identifier == derived_id:
                overrides["identifier"] = ""
            options = replace(project.options, **overrides)
            project_root = project_root or project.build_root
        else:
            if not url or not name:
                raise click.UsageError("URL and --name are required without --config")
            flags["width"] = width or 1200
            flags["height"] = height or 780
            options = BuildOptions(url=url, **flags)

        context = BuildContext.create(
            project_root or Path.cwd(),
            target=options.target,
            output_dir=output,
        )
        builder = create_builder(
            context=context,
            env=env,
            confirm=(lambda _msg: True) if yes else None,
        )
        console.print(f"[bold]Building {options.name} for {context.target.value}[/bold] ({builder.platform_name})")

        builder.prepare()
        artifact = builder.build(url or options.url, options)

        console.print(f"[green]✓ {artifact.path}[/green]")
        for extra in artifact.extra:
            console.print(f"[green]✓ {extra.path}[/green]")
    except click.UsageError:
        raise
    except BuildError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(int(e.exit_code))
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(int(ExitCode.BUILD_FAILED))


@cli.command()
def doctor():
    """Show which build toolchains are available."""
    host = detect_host()
    status = toolchain.probe_toolchain(host)

    table = Table(title=f"Toolchain ({host.value if host else 'unsupported host'})")
    table.add_column("Tool")
    table.add_column("Status")
    table.add_column("Needed for")
    rows = [
        ("Rust", status.rust, "all builds"),
        ("MSVC", status.msvc, "Windows (native)"),
        ("WiX Toolset", status.wix, "Windows .msi"),
        ("mingw-w64", status.mingw, "Windows (cross-compile)"),
        ("x86_64-pc-windows-gnu", status.windows_gnu_target, "Windows (cross-compile)"),
    ]
    for tool, ok, needed in rows:
        table.add_row(tool, "[green]✓[/green]" if ok else "[red]✗[/red]", needed)
    console.print(table)


@cli.command()
@click.option("--name", "-n", default="my-app", help="Application name")
@click.option("--url", "-u", default="https://example.com", help="Page to package")
@click.option("--output", "-o", default="tauripack.yaml", help="Output file")
def init(name: str, url: str, output: str):
    """Write a tauripack.yaml options file."""
    try:
        output_path = Path(output)
        BuildOptions(name=name, url=url).to_yaml(output_path)
    except BuildError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(int(e.exit_code))

    console.print(f"[green]Created {output_path}[/green]")
    console.print("\nNext steps:")
    console.print("  1. Edit the icon, window size and target")
    console.print(f"  2. Run: tauripack build -c {output}")


def main(argv=None):
    """Main entry point."""
    load_dotenv(Path.cwd() / ".env", override=False)
    cli(argv)


if __name__ == "__main__":
    main()
