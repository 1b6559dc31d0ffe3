from typing import Optional

import typer


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:  # pragma: no cover
        import vault_sync

        typer.echo(f"vault-sync version: {vault_sync.__version__}")
        raise typer.Exit()


app = typer.Typer(name="vault-sync")


@app.callback()
def app_callback(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """vault-sync - keep a local folder in sync with a GitHub branch."""
