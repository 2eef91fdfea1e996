import json
from pathlib import Path
import click
from .logic import inspect_container, verify_container

CANONICAL_JSON_KW = {"sort_keys": True, "separators": (",", ":"), "ensure_ascii": False}

@click.group()
def main():
    pass

@main.command("container")
@click.argument("path", type=click.Path(dir_okay=False, path_type=Path))
def container_cmd(path: Path):
    result = verify_container(path)
    click.echo(json.dumps(result, **CANONICAL_JSON_KW))
    if result["status"] != "PASS":
        raise SystemExit(1)

@main.command("info")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def info_cmd(path: Path):
    try:
        info = inspect_container(path.read_bytes())
    except ValueError as e:
        click.echo(f"FATAL: {e}", err=True)
        raise SystemExit(1)
    click.echo(json.dumps(info, **CANONICAL_JSON_KW))

if __name__ == "__main__":
    main()
