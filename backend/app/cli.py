"""``tutoring-recon`` entry point: ``db`` and ``reconcile`` command groups."""

import typer

from app.commands.reconcile_commands import app as reconcile_app
from common.commands.db_commands import app as db_app

app = typer.Typer(help="Tutoring subscription reconciliation", no_args_is_help=True)
app.add_typer(db_app, name="db")
app.add_typer(reconcile_app, name="reconcile")


if __name__ == "__main__":
    app()
