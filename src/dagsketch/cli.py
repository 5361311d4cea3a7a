from pathlib import Path
import logging
import typer
from pydantic import ValidationError
from rich import print as rprint
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from typing import Optional
import yaml

from .config import LayoutConfig, load_layout_config
from .ir import Graph
from .layout import get_layouted_elements
from .validator import check_dag
from .visualize import ascii_plan

app = typer.Typer(no_args_is_help=True, help="dagsketch CLI — validate and lay out DAG snapshots")

@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logs.")):
    """Validate, lay out and inspect DAG editor snapshots (YAML or JSON)."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(message)s", handlers=[RichHandler(show_path=False)])

def _load(file: Path) -> Graph:
    try:
        return Graph.from_file(file)
    except (OSError, yaml.YAMLError, ValidationError, ValueError) as e:
        rprint(Panel.fit(f"[bold red]Could not load[/] [cyan]{file}[/]\n{e}"))
        raise typer.Exit(code=1)

@app.command()
def validate(file: Path):
    """Validate a snapshot (size, isolated nodes, cycles)."""
    g = _load(file)
    ok, messages = check_dag(g.nodes, g.edges)
    table = Table(title="Validation Report", show_lines=True)
    table.add_column("Status", justify="center", style="bold")
    table.add_column("Message")
    for m in messages:
        status, _, text = m.partition(": ")
        table.add_row(status, text)
    rprint(table)
    rprint(f"DAG Status: [bold {'green' if ok else 'red'}]{'Valid' if ok else 'Invalid'}[/]")
    if not ok:
        raise typer.Exit(code=1)

@app.command()
def layout(file: Path,
           config: Optional[Path] = typer.Option(None, help="YAML file with layout constants."),
           node_width: Optional[float] = typer.Option(None, help="Override node footprint width."),
           node_height: Optional[float] = typer.Option(None, help="Override node footprint height.")):
    """Print the snapshot with every node auto-arranged left to right."""
    g = _load(file)
    try:
        cfg = load_layout_config(config) if config else LayoutConfig()
        overrides = {k: v for k, v in {"node_width": node_width, "node_height": node_height}.items() if v is not None}
        if overrides:
            cfg = LayoutConfig.model_validate({**cfg.model_dump(), **overrides})
    except (yaml.YAMLError, ValueError) as e:
        rprint(Panel.fit(f"[bold red]Bad layout config[/]\n{e}"))
        raise typer.Exit(code=1)
    laid_out = get_layouted_elements(g.nodes, g.edges, cfg)
    print(g.model_copy(update={"nodes": laid_out.nodes, "edges": laid_out.edges}).to_json())

@app.command()
def explain(file: Path):
    """Print an ASCII plan of the snapshot's ranks."""
    print(ascii_plan(_load(file)))

@app.command()
def preview(file: Path):
    """Print the snapshot as pretty JSON."""
    print(_load(file).to_json())

if __name__ == "__main__":
    app()
