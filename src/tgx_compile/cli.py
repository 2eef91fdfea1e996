"""3DS Game eXtension Tool - Plugin to 3GX Compiler."""
from __future__ import annotations

from pathlib import Path

import click

from tgx_core.settings import load_settings
from tgx_compile.builder import write_container

BANNER = "\n3DS Game eXtension Tool\n--------------------------\n"


def _read_bytes(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except OSError:
        raise click.FileError(str(path)) from None


def compile_plugin(code_path: Path, settings_path: Path, out_path: Path, silent: bool = False) -> None:
    """Compile a code blob and its settings into a .3gx container."""

    def say(msg: str) -> None:
        if not silent:
            click.echo(msg)

    # 1. Read Code Authority
    code = _read_bytes(code_path)

    # 2. Parse Settings
    say("Processing settings...")
    try:
        settings = load_settings(settings_path)
    except OSError:
        raise click.FileError(str(settings_path)) from None

    # 3. Write Container
    say("Creating file...")
    try:
        out = open(out_path, "wb")
    except OSError:
        raise click.FileError(str(out_path)) from None
    with out:
        header = write_container(out, settings, code)
        size = out.tell()

    say("Done")
    say(f"  Output: {out_path}")
    say(f"  Code: {header.code_size} bytes at offset {header.code_offset}")
    say(f"  Size: {size} bytes")


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.argument("code", type=click.Path(dir_okay=False, path_type=Path))
@click.argument("settings", type=click.Path(dir_okay=False, path_type=Path))
@click.argument("out", type=click.Path(dir_okay=False, path_type=Path))
@click.option("-s", "--silent", is_flag=True, help="Don't display the text (except errors)")
def main(code: Path, settings: Path, out: Path, silent: bool) -> None:
    """Builds plugin files to be used by Luma3DS.

    \b
    CODE      raw plugin code (input.bin)
    SETTINGS  plugin settings in YAML (settings.plgInfo)
    OUT       container to create (output.3gx)
    """
    if not silent:
        click.echo(BANNER)
    try:
        compile_plugin(code, settings, out, silent=silent)
    except click.FileError as e:
        click.echo(f"couldn't open: {e.ui_filename}", err=True)
        raise SystemExit(1)
    except Exception as e:
        # Fail closed, with a single-line reason.
        click.echo(f"FATAL: {e}", err=True)
        raise SystemExit(1)


if __name__ == "__main__":
    main()
