"""CLI entry point for the what-if service simulation lab."""

import itertools
import logging
import random
import sys

import click

from whatif.comparator import ScenarioComparator
from whatif.exporter import batch_to_json, write_scenarios
from whatif.loader import ScenarioFileError, default_scenarios, load_scenarios
from whatif.report import (
    format_comparison_table,
    format_recommendations,
    format_scenario_header,
    format_scenario_summary,
    format_statistics,
)
from whatif.runner import ConfigurationError, run_scenarios, validate_scenario


def _load(path):
    if path is None:
        return default_scenarios()
    try:
        return load_scenarios(path)
    except ScenarioFileError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Log every simulated request.")
def main(verbose):
    """What-if analysis -- simulate services under load and compare scenarios."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@main.command()
@click.option(
    "--scenarios",
    "scenarios_path",
    default=None,
    type=click.Path(exists=True),
    help="Path to a scenario file (YAML or JSON). Uses the built-in scenarios if omitted.",
)
@click.option("--seed", default=None, type=int, help="Seed for reproducible runs.")
@click.option(
    "--pause",
    default=0.0,
    type=click.FloatRange(min=0),
    help="Seconds to wait between scenarios.",
)
@click.option(
    "--out",
    default=None,
    type=click.Path(),
    help="Optional output path for a JSON export of the results.",
)
def run(scenarios_path, seed, pause, out):
    """Run every scenario and compare the results."""
    scenario_set = _load(scenarios_path)
    total = len(scenario_set.scenarios)
    position = itertools.count(1)

    def on_start(config):
        click.echo(f"\n[{next(position)}/{total}] " + format_scenario_header(config))

    def on_result(result):
        click.echo(format_scenario_summary(result))

    outcome = run_scenarios(
        scenario_set.scenarios,
        rng=random.Random(seed),
        thresholds=scenario_set.thresholds,
        pause_seconds=pause,
        on_start=on_start,
        on_result=on_result,
    )
    for failure in outcome.failures:
        click.echo(f"Error: scenario '{failure.scenario}' skipped: {failure.message}", err=True)

    comparator = ScenarioComparator(outcome.results)
    click.echo("\n--- Scenario Comparison ---")
    click.echo(format_comparison_table(comparator))
    click.echo("\n" + format_recommendations(comparator.recommendations()))
    click.echo("\n" + format_statistics(comparator.summary()))

    if out:
        with open(out, "w") as f:
            f.write(batch_to_json(outcome, comparator) + "\n")
        click.echo(f"\nResults written to {out}")

    if outcome.failures:
        sys.exit(1)


@main.command()
@click.option(
    "--out",
    required=True,
    type=click.Path(),
    help="Where to write the built-in scenarios (.yaml/.yml or .json).",
)
def init(out):
    """Write the built-in scenarios to a file as a starting point."""
    write_scenarios(default_scenarios(), out)
    click.echo(f"Scenarios written to {out}")


@main.command()
@click.option(
    "--scenarios",
    "scenarios_path",
    required=True,
    type=click.Path(exists=True),
    help="Path to the scenario file to check.",
)
def validate(scenarios_path):
    """Check a scenario file without running it."""
    scenario_set = _load(scenarios_path)
    failed = False
    for config in scenario_set.scenarios:
        try:
            validate_scenario(config)
        except ConfigurationError as exc:
            failed = True
            click.echo(f"Error: {exc}", err=True)
            continue
        click.echo(f"OK: {config.name}")

    if failed:
        sys.exit(1)


if __name__ == "__main__":
    main()
