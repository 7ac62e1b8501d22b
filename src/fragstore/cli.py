"""CLI entry point for fragstore."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated, NoReturn

import typer
from rich import print as rprint
from rich.panel import Panel
from rich.table import Table

from fragstore.config import DEFAULT_CONFIG_TEMPLATE, FragstoreConfig, load_config
from fragstore.errors import FragstoreError
from fragstore.identity import owner_id_for
from fragstore.log import configure_logging
from fragstore.model.fragment import Fragment
from fragstore.registry import extension_to_type
from fragstore.service import FragmentService

app = typer.Typer(
    name="fragstore",
    help="Per-user fragment store with on-read format conversion.",
)

config_app = typer.Typer(help="Manage fragstore configuration.")
app.add_typer(config_app, name="config")

# Global state
_config: FragstoreConfig | None = None
_service: FragmentService | None = None

UserOption = Annotated[
    str, typer.Option("--user", "-u", envvar="FRAGSTORE_USER", help="Caller's email address")
]


def _get_config() -> FragstoreConfig:
    if _config is None:
        return load_config()
    return _config


def _get_service() -> FragmentService:
    global _service
    if _service is None:
        _service = FragmentService.from_config(_get_config())
    return _service


@app.callback()
def main(
    config: Annotated[
        str | None, typer.Option("--config", "-c", help="Path to fragstore.yaml")
    ] = None,
) -> None:
    """Global options."""
    global _config, _service
    try:
        _config = load_config(config)
    except ValueError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    _service = None
    configure_logging(_config.log_level, _config.log_format)


def _fail(e: Exception) -> NoReturn:
    if isinstance(e, FragstoreError):
        rprint(f"[red]Error ({e.status_code}):[/red] {e.message}")
    else:
        rprint(f"[red]Error:[/red] {e}")
    raise typer.Exit(1)


def _guess_type(path: Path) -> str | None:
    media_type = extension_to_type(path.suffix)
    if media_type is not None and media_type.startswith("text/"):
        return f"{media_type}; charset=utf-8"
    return media_type


def _read_file(path: Path) -> bytes:
    if not path.is_file():
        rprint(f"[red]Error:[/red] file not found: {path}")
        raise typer.Exit(1)
    return path.read_bytes()


def _display_fragment(fragment: Fragment, location: str | None = None) -> None:
    lines = [
        f"[bold]{fragment.id}[/bold]",
        f"[dim]Type:[/dim]    {fragment.type}",
        f"[dim]Size:[/dim]    {fragment.size} bytes",
        f"[dim]Created:[/dim] {fragment.created.isoformat()}",
        f"[dim]Updated:[/dim] {fragment.updated.isoformat()}",
        f"[dim]Formats:[/dim] {', '.join(sorted(fragment.formats))}",
    ]
    if location:
        lines.append(f"[dim]URL:[/dim]     {location}")
    rprint(Panel("\n".join(lines), title="Fragment", border_style="blue"))


@app.command()
def put(
    file: str = typer.Argument(..., help="File whose bytes become the fragment"),
    user: UserOption = ...,
    content_type: str | None = typer.Option(
        None, "--type", "-t", help="Content type (guessed from the extension if omitted)"
    ),
) -> None:
    """Create a fragment from a file."""
    path = Path(file)
    data = _read_file(path)
    ctype = content_type or _guess_type(path)
    if ctype is None:
        rprint(f"[red]Error:[/red] can't guess a content type for {path.name}; pass --type")
        raise typer.Exit(1)
    try:
        fragment, location = _get_service().create_fragment(owner_id_for(user), ctype, data)
    except (FragstoreError, ValueError) as e:
        _fail(e)
    _display_fragment(fragment, location)


@app.command("ls")
def list_fragments(
    user: UserOption = ...,
    expand: bool = typer.Option(False, "--expand", "-e", help="Show full metadata"),
) -> None:
    """List your fragments."""
    try:
        fragments = _get_service().list_fragments(owner_id_for(user), expand=expand)
    except (FragstoreError, ValueError) as e:
        _fail(e)

    if not expand:
        for fragment_id in fragments:
            typer.echo(fragment_id)
        return

    table = Table(title=f"Fragments ({len(fragments)})")
    table.add_column("ID", style="cyan")
    table.add_column("Type", style="green")
    table.add_column("Size", justify="right")
    table.add_column("Updated")
    for f in fragments:
        table.add_row(f.id, f.type, str(f.size), f.updated.isoformat())
    rprint(table)


@app.command()
def info(
    fragment: str = typer.Argument(..., help="Fragment id"),
    user: UserOption = ...,
    as_json: bool = typer.Option(False, "--json", help="Print the stored record as JSON"),
) -> None:
    """Show a fragment's metadata."""
    service = _get_service()
    try:
        frag = service.get_fragment_info(owner_id_for(user), fragment)
    except (FragstoreError, ValueError) as e:
        _fail(e)
    if as_json:
        typer.echo(json.dumps(frag.to_record(), indent=2))
    else:
        _display_fragment(frag, service.location(frag.id))


@app.command()
def get(
    fragment: str = typer.Argument(..., help="Fragment id, optionally with an extension (abc.html)"),
    user: UserOption = ...,
    output: str | None = typer.Option(None, "--output", "-o", help="Write the bytes to a file"),
) -> None:
    """Print (or save) a fragment's data, converting it when an extension is given."""
    try:
        result = _get_service().get_fragment_data(owner_id_for(user), fragment)
    except (FragstoreError, ValueError) as e:
        _fail(e)

    if output:
        Path(output).write_bytes(result.data)
        rprint(f"[green]Wrote[/green] {len(result.data)} bytes ({result.content_type}) to {output}")
        return
    if result.media_type.startswith("image/"):
        rprint("[red]Error:[/red] binary content; use --output to save it")
        raise typer.Exit(1)
    typer.echo(result.data.decode("utf-8", errors="replace"), nl=False)


@app.command()
def update(
    fragment: str = typer.Argument(..., help="Fragment id"),
    file: str = typer.Argument(..., help="File with the replacement bytes"),
    user: UserOption = ...,
    content_type: str | None = typer.Option(
        None, "--type", "-t", help="Content type; must match the fragment's type"
    ),
) -> None:
    """Replace a fragment's data. The type can't change."""
    path = Path(file)
    data = _read_file(path)
    service = _get_service()
    owner_id = owner_id_for(user)
    try:
        ctype = content_type or service.get_fragment_info(owner_id, fragment).type
        frag, location = service.update_fragment(owner_id, fragment, ctype, data)
    except (FragstoreError, ValueError) as e:
        _fail(e)
    _display_fragment(frag, location)


@app.command("rm")
def delete(
    fragment: str = typer.Argument(..., help="Fragment id"),
    user: UserOption = ...,
) -> None:
    """Delete a fragment and its data."""
    try:
        _get_service().delete_fragment(owner_id_for(user), fragment)
    except (FragstoreError, ValueError) as e:
        _fail(e)
    rprint(f"[green]Deleted[/green] {fragment}")


@config_app.command("init")
def config_init(
    path: str = typer.Option("fragstore.yaml", "--path", "-p", help="Where to write the file"),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing file"),
) -> None:
    """Write a default fragstore.yaml."""
    target = Path(path)
    if target.exists() and not force:
        rprint(f"[yellow]{target} already exists.[/yellow] Use --force to overwrite.")
        raise typer.Exit(1)
    target.write_text(DEFAULT_CONFIG_TEMPLATE)
    rprint(f"[green]Created[/green] {target}")


@config_app.command("show")
def config_show() -> None:
    """Print the resolved configuration."""
    typer.echo(_get_config().model_dump_json(indent=2))


if __name__ == "__main__":
    app()
