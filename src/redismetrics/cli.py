"""Command-line interface for redismetrics."""

import json
import logging
import sys
from pathlib import Path
from typing import Optional

import click
import yaml

from redismetrics import __version__
from redismetrics.config import ReporterConfig, load_config
from redismetrics.core import ReportScheduler
from redismetrics.metrics import MetricRegistry
from redismetrics.reporting import RedisReporter
from redismetrics.store import InMemoryStore, RedisStore, StoreUnavailableError
from redismetrics.utils.config_validator import ConfigurationError, validate_and_fix_config
from redismetrics.workload import SyntheticWorkload

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


def _load(config_file: Optional[str]) -> ReporterConfig:
    if config_file is None:
        return ReporterConfig()
    return load_config(config_file)


@click.group()
@click.version_option(version=__version__, prog_name="redismetrics")
def cli():
    """redismetrics: export in-process metrics to Redis."""
    pass


@cli.command()
@click.argument("config_file", type=click.Path(exists=True), required=False)
@click.option("--duration", "-d", type=float, default=60.0, show_default=True,
              help="Seconds of traffic to generate")
@click.option("--period", "-p", type=float, default=None,
              help="Seconds between reports (defaults to the configured period)")
@click.option("--prefix", default="demo", show_default=True, help="Metric name prefix")
@click.option("--seed", type=int, default=None, help="Random seed for the traffic")
@click.option("--simulated", is_flag=True,
              help="Run in simulated time instead of following the wall clock")
@click.option("--dry-run", is_flag=True, help="Write to memory and print the keys instead of Redis")
@click.option("--log-level", "-l", type=click.Choice(LOG_LEVELS), default="INFO", help="Logging level")
def demo(config_file, duration, period, prefix, seed, simulated, dry_run, log_level):
    """Report synthetic traffic metrics on a schedule."""
    logging.getLogger().setLevel(getattr(logging, log_level))

    try:
        config = _load(config_file)
        scheduler = ReportScheduler(realtime=not simulated)
        registry = MetricRegistry(clock=scheduler.now)
        workload = SyntheticWorkload(
            scheduler.env, {"metric_prefix": prefix, "random_seed": seed}, registry
        )
        store = InMemoryStore() if dry_run else None
        reporter = RedisReporter(registry, config, store)

        scheduler.schedule_process(workload.generate_requests_process)
        reporter.start(period_s=period, scheduler=scheduler, background=False)
        click.echo(f"Generating traffic for {duration}s, reporting to {reporter.store.target}...")
        try:
            scheduler.run(until=duration)
            # Cycles due exactly at the end of the run are not reached
            reporter.report()
        finally:
            reporter.stop()

    except (ConfigurationError, StoreUnavailableError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(f"\nDemo completed: {workload.request_counter} requests, "
               f"{scheduler.cycles_run} scheduled report cycles plus a final report")
    if dry_run:
        for key in sorted(store.data):
            click.echo(f"  {key} = {store.data[key]}")


@cli.command()
@click.argument("config_file", type=click.Path(exists=True), required=False)
def ping(config_file):
    """Check that the configured Redis server is reachable."""
    try:
        config = _load(config_file)
        store = RedisStore.from_config(config)
        with store:
            click.echo(click.style(f"✓ Redis at {store.target} is reachable", fg="green"))
    except (ConfigurationError, StoreUnavailableError) as e:
        click.echo(click.style(f"✗ {e}", fg="red"))
        sys.exit(1)


@cli.command()
@click.option(
    "--output", "-o", default="redismetrics.yaml",
    help="Output file path"
)
@click.option(
    "--format", "-f", type=click.Choice(["yaml", "json"]), default="yaml",
    help="Configuration file format"
)
def generate_config(output: str, format: str):
    """Generate an example configuration file."""
    example_config = {
        "reporter": {
            "host": "localhost",
            "port": 6379,
            "db": 0,
            "socket_timeout_s": 2.0,
            "rate_unit": "seconds",
            "duration_unit": "milliseconds",
            "locale": "en_US",
            "time_zone": "UTC",
            "include_prefixes": [],
            "period_s": 10.0,
        },
    }

    output_path = Path(output)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, "w") as f:
        if format == "yaml":
            yaml.dump(example_config, f, default_flow_style=False, sort_keys=False)
        else:
            json.dump(example_config, f, indent=2)

    click.echo(f"Generated example configuration at {output_path}")


@cli.command()
@click.argument("config_file", type=click.Path(exists=True))
@click.option(
    "--fix", "-f", is_flag=True,
    help="Write the automatically fixed configuration back to the file"
)
def validate(config_file: str, fix: bool):
    """Validate a configuration file without starting a reporter."""
    click.echo(f"Validating configuration: {config_file}")

    is_valid, errors, config = validate_and_fix_config(config_file)

    if is_valid:
        click.echo(click.style("✓ Configuration is valid", fg="green"))
    else:
        click.echo(click.style(f"✗ Configuration has {len(errors)} errors:", fg="red"))
        for i, error in enumerate(errors[:20], 1):
            click.echo(f"  {i}. {error}")
        if len(errors) > 20:
            click.echo(f"  ... and {len(errors) - 20} more errors")

    if fix and is_valid and config is not None:
        path = Path(config_file)
        with open(path, "w") as f:
            if path.suffix.lower() == ".json":
                json.dump({"reporter": config}, f, indent=2)
            else:
                yaml.dump({"reporter": config}, f, default_flow_style=False, sort_keys=False)
        click.echo(f"Wrote fixed configuration to {path}")

    sys.exit(0 if is_valid else 1)


if __name__ == "__main__":
    cli()
