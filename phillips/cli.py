"""
CLI for the Phillips multiplier replication.
"""

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from phillips.errors import PhillipsError

app = typer.Typer(
    name="phillips",
    help="Phillips multiplier replication (Barnichon & Mesters, 2021)",
)
console = Console()


def setup_logging(level: str = "INFO") -> None:
    """Configure logging with rich output."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def _settings(
    run_file: Optional[Path] = None,
    **overrides,
):
    from config.settings import get_settings, load_run_file

    settings = get_settings()
    if run_file:
        settings = load_run_file(run_file, settings)
    return settings.with_overrides(**overrides)


def _results_table(table, confidence: float) -> Table:
    pct = int(round(confidence * 100))
    rich_table = Table(title="Phillips multiplier")
    rich_table.add_column("h", justify="right")
    rich_table.add_column("Conditional", justify="right")
    rich_table.add_column(f"{pct}% AR band", justify="right")
    rich_table.add_column("Unconditional", justify="right")
    rich_table.add_column("F", justify="right")
    rich_table.add_column("N", justify="right")

    for row in table.itertuples(index=False):
        band = escape(f"[{row.conditional_lower:.3f}, {row.conditional_upper:.3f}]")
        if not row.ar_bounded:
            band = f"[yellow]{band}[/yellow]"
        f_stat = f"{row.f_stat:.2f}"
        if not row.f_stat >= 10:
            f_stat = f"[red]{f_stat}[/red]"
        rich_table.add_row(
            str(row.horizon),
            f"{row.conditional:.3f}",
            band,
            f"{row.unconditional:.3f}",
            f_stat,
            str(row.nobs),
        )
    return rich_table


@app.command()
def run(
    dataset: Optional[str] = typer.Option(None, help="Dataset: baseline or extended"),
    input_path: Optional[Path] = typer.Option(None, "--input", help="Input file overriding the dataset flag"),
    run_file: Optional[Path] = typer.Option(None, help="YAML run file with setting overrides"),
    max_horizon: Optional[int] = typer.Option(None, help="Maximum horizon (quarters)"),
    n_lags: Optional[int] = typer.Option(None, help="Lags of each endogenous series"),
    confidence: Optional[float] = typer.Option(None, help="Confidence level for bands"),
    output_dir: Optional[Path] = typer.Option(None, help="Where to write the table and figures"),
    figures: bool = typer.Option(True, help="Render and save the seven figures"),
):
    """Run the full pipeline: load, derive, lag, estimate, plot."""
    try:
        settings = _settings(
            run_file,
            dataset=dataset,
            max_horizon=max_horizon,
            n_lags=n_lags,
            confidence=confidence,
            output_dir=output_dir,
        )
    except (ValueError, OSError) as e:
        console.print(f"[red]Invalid settings: {escape(str(e))}[/red]")
        raise typer.Exit(1)
    setup_logging(settings.log_level)

    from phillips.output.figures import save_figures
    from phillips.pipeline import PhillipsPipeline

    console.print(f"[bold]Running Phillips multiplier pipeline ({settings.dataset})...[/bold]")

    try:
        result = PhillipsPipeline(settings).run(path=input_path, render=figures)
    except (PhillipsError, FileNotFoundError) as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(1)

    console.print(_results_table(result.table, settings.confidence))

    out = settings.output_dir if settings.output_dir.is_absolute() else settings.project_root / settings.output_dir
    table_path = result.save_table(out / "data" / f"phillips_multiplier_{settings.dataset}.csv")
    console.print(f"Results saved to {table_path}")

    if figures:
        paths = save_figures(result.figures, out / "figures")
        console.print(f"Saved {len(paths)} figures to {out / 'figures'}")


@app.command()
def estimate(
    dataset: Optional[str] = typer.Option(None, help="Dataset: baseline or extended"),
    input_path: Optional[Path] = typer.Option(None, "--input", help="Input file overriding the dataset flag"),
    run_file: Optional[Path] = typer.Option(None, help="YAML run file with setting overrides"),
    max_horizon: Optional[int] = typer.Option(None, help="Maximum horizon (quarters)"),
):
    """Estimate and print the multiplier table without plotting."""
    try:
        settings = _settings(run_file, dataset=dataset, max_horizon=max_horizon)
    except (ValueError, OSError) as e:
        console.print(f"[red]Invalid settings: {escape(str(e))}[/red]")
        raise typer.Exit(1)
    setup_logging(settings.log_level)

    from phillips.pipeline import PhillipsPipeline

    try:
        result = PhillipsPipeline(settings).run(path=input_path, render=False)
    except (PhillipsError, FileNotFoundError) as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(1)

    console.print(result.estimation.summary(), markup=False, highlight=False)


@app.command()
def plot(
    table_path: Path = typer.Argument(..., help="CSV result table written by 'run'"),
    output_dir: Path = typer.Option(Path("outputs/figures"), help="Figure directory"),
):
    """Re-render the seven figures from a saved result table."""
    setup_logging()

    import pandas as pd
    from phillips.model.phillips_multiplier import RESULT_COLUMNS
    from phillips.output.figures import render_all, save_figures

    if not table_path.exists():
        console.print(f"[red]Table not found: {table_path}[/red]")
        raise typer.Exit(1)

    table = pd.read_csv(table_path)
    missing = [c for c in RESULT_COLUMNS if c not in table.columns]
    if missing:
        console.print(f"[red]Not a result table, missing columns: {escape(str(missing))}[/red]")
        raise typer.Exit(1)

    paths = save_figures(render_all(table), output_dir)
    console.print(f"Saved {len(paths)} figures to {output_dir}")


@app.command()
def describe(
    dataset: Optional[str] = typer.Option(None, help="Dataset: baseline or extended"),
    input_path: Optional[Path] = typer.Option(None, "--input", help="Input file overriding the dataset flag"),
):
    """Summarise the observation table built from the input file."""
    try:
        settings = _settings(dataset=dataset)
    except (ValueError, OSError) as e:
        console.print(f"[red]Invalid settings: {escape(str(e))}[/red]")
        raise typer.Exit(1)
    setup_logging(settings.log_level)

    from phillips.pipeline import PhillipsPipeline

    try:
        obs = PhillipsPipeline(settings).load(input_path)
    except (PhillipsError, FileNotFoundError) as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(1)

    console.print("[bold]Observation table[/bold]")
    console.print(f"Quarters: {len(obs)} ({obs.index[0]} to {obs.index[-1]})")

    summary = Table()
    summary.add_column("Series")
    for stat in ["mean", "std", "min", "max", "missing"]:
        summary.add_column(stat, justify="right")
    described = obs.describe().T
    for col in obs.columns:
        summary.add_row(
            col,
            f"{described.loc[col, 'mean']:.3f}",
            f"{described.loc[col, 'std']:.3f}",
            f"{described.loc[col, 'min']:.3f}",
            f"{described.loc[col, 'max']:.3f}",
            str(int(obs[col].isna().sum())),
        )
    console.print(summary)


if __name__ == "__main__":
    app()
