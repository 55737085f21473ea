"""
CLI interface for recipe_guard.

Provides command-line access to the local ledger, the server and the local
draft generator.
"""

import asyncio
import logging
import os
import sys
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from recipe_guard.config.loader import load_generation_policy
from recipe_guard.core.drafts import generate_recipe_drafts
from recipe_guard.core.ledger import UsageLedger
from recipe_guard.core.normalizer import normalize_request
from recipe_guard.storage.db import DEFAULT_DB_PATH
from recipe_guard.storage.repository import SQLiteLedgerStore, initialize_schema

app = typer.Typer()
console = Console()

EXIT_CODE_PASS = 0
EXIT_CODE_FAIL = 1


@app.callback(invoke_without_command=True)
def main(ctx: typer.Context):
    """Recipe Guard CLI."""
    if ctx.invoked_subcommand is None:
        console.print("Recipe Guard - Use --help to see available commands")


@app.command()
def init(db: str = typer.Option(DEFAULT_DB_PATH, "--db", help="SQLite ledger path")):
    """Initialize the local usage ledger database."""
    try:
        initialize_schema(db)
        console.print(f"[green]✓[/] Ledger initialized at {db}")
        sys.exit(EXIT_CODE_PASS)
    except Exception as e:
        console.print(f"[red]Error initializing ledger:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", "--host", help="Interface to bind"),
    port: int = typer.Option(int(os.getenv("PORT", 8000)), "--port", "-p", help="Port to bind"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Generation policy YAML"),
):
    """Run the recipe generation function."""
    import uvicorn

    from recipe_guard.server.app import create_app

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    try:
        policy = load_generation_policy(config)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error loading config:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    uvicorn.run(create_app(policy=policy), host=host, port=port)


@app.command()
def usage(
    user_id: str = typer.Argument(..., help="Caller identity to inspect"),
    db: str = typer.Option(DEFAULT_DB_PATH, "--db", help="SQLite ledger path"),
    limit: int = typer.Option(20, "--limit", "-n", help="Rows to show"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Generation policy YAML"),
):
    """Show a caller's rate-limit window and recent ledger rows."""
    try:
        policy = load_generation_policy(config).rate_limit_policy()
        store = SQLiteLedgerStore(db)
        ledger = UsageLedger(store, policy)
        count = asyncio.run(ledger.recent_count(user_id))
        entries = store.recent_entries(user_id=user_id, limit=limit)
    except Exception as e:
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    remaining = max(0, policy.max_requests - count)
    console.print(f"\n[bold]User:[/bold] {user_id}")
    console.print(
        f"Attempts in last {policy.window_minutes} minutes: {count}/{policy.max_requests}"
    )
    if remaining:
        console.print(f"Remaining: [green]{remaining}[/]")
    else:
        console.print("Remaining: [red]0 (rate limited)[/]")

    if not entries:
        console.print("\n[dim]No ledger entries found.[/]")
        sys.exit(EXIT_CODE_PASS)

    table = Table(title="Recent generation attempts")
    table.add_column("Time (UTC)")
    table.add_column("Status")
    table.add_column("Ingr.", justify="right")
    table.add_column("Error")
    table.add_column("ms", justify="right")
    for entry in entries:
        table.add_row(
            entry.requested_at.strftime("%Y-%m-%d %H:%M:%S") if entry.requested_at else "-",
            entry.status.value,
            str(entry.ingredient_count),
            entry.error_code or "-",
            "-" if entry.latency_ms is None else str(entry.latency_ms),
        )
    console.print(table)
    sys.exit(EXIT_CODE_PASS)


@app.command()
def drafts(
    ingredients: List[str] = typer.Argument(..., help="Ingredient names"),
    protein: Optional[int] = typer.Option(None, "--protein", help="Protein target (g)"),
    carbs: Optional[int] = typer.Option(None, "--carbs", help="Carbs target (g)"),
    fats: Optional[int] = typer.Option(None, "--fats", help="Fats target (g)"),
    time_limit: Optional[int] = typer.Option(None, "--time-limit", "-t", help="Minutes"),
):
    """Print the deterministic local drafts for a set of ingredients."""
    request = normalize_request({
        "ingredientNames": ingredients,
        "macros": {"protein": protein, "carbs": carbs, "fats": fats},
        "timeLimit": time_limit,
    })
    recipes = generate_recipe_drafts(request)
    if not recipes:
        console.print("[yellow]No usable ingredients given[/]")
        sys.exit(EXIT_CODE_FAIL)

    for recipe in recipes:
        macros = recipe.macros
        console.print(f"\n[bold]{recipe.name}[/bold] ({recipe.preparation_time} min)")
        console.print(recipe.description)
        console.print(
            f"Protein {macros.protein}g | Carbs {macros.carbs}g | "
            f"Fats {macros.fats}g | {macros.calories} kcal"
        )
        for item in recipe.ingredients:
            console.print(f"  - {item.amount}{item.unit} {item.name}")
        for number, step in enumerate(recipe.instructions, start=1):
            console.print(f"  {number}. {step}")
    sys.exit(EXIT_CODE_PASS)


if __name__ == "__main__":
    app()
