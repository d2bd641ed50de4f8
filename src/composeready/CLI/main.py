"""
Command Line Interface for composeready.
"""
import os

import click
from dotenv import dotenv_values

from ..MANAGERS.orchestration_manager import OrchestrationManager
from ..MODELS.errors import ReadinessTimeout, StartupFailure, TeardownFailure
from ..PARSERS.descriptor_parser import DescriptorParser
from ..RUNNERS.specialized_probes import (
    PROBE_MAX_RETRIES,
    PROBE_RETRY_INTERVAL,
    seed_test_data,
    wait_for_database,
    wait_for_schema_service,
)


def _load_manager(ctx) -> OrchestrationManager:
    manager = ctx.obj.get('manager')
    if manager is None:
        click.echo(f"Error: {ctx.obj['file']} not found.")
        ctx.exit(1)
    return manager


@click.group()
@click.option('--file', '-f', default='composeready.yml', help='Environment descriptor path')
@click.option('--env-file', default=None, help='.env file used for ${VAR} substitution')
@click.option('--base-dir', default=None, help='Directory compose commands run in')
@click.pass_context
def cli(ctx, file, env_file, base_dir):
    """
    composeready - ephemeral Docker Compose environments for integration tests.

    Start services, wait until they are ready and tear them down again.
    """
    ctx.ensure_object(dict)
    ctx.obj['file'] = file
    if 'manager' in ctx.obj or not os.path.exists(file):
        return

    context = dict(os.environ)
    if env_file:
        context.update({k: v for k, v in dotenv_values(env_file).items() if v is not None})

    environment = DescriptorParser(context).parse(file)
    ctx.obj['environment'] = environment
    ctx.obj['manager'] = OrchestrationManager(
        environment,
        base_dir=base_dir or os.path.dirname(os.path.abspath(file)),
    )


@cli.command()
@click.pass_context
def up(ctx):
    """Start services and wait until they are ready."""
    manager = _load_manager(ctx)
    try:
        manager.start()
    except (StartupFailure, ReadinessTimeout) as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)
    click.echo("Services started.")


@cli.command()
@click.pass_context
def down(ctx):
    """Stop all services."""
    manager = _load_manager(ctx)
    # A fresh process has no record of a previous start, so go to the runner
    try:
        manager.runner.down(quiet=False)
    except TeardownFailure as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)
    click.echo("Services stopped.")


@cli.command()
@click.pass_context
def clean(ctx):
    """Stop all services and remove their volumes."""
    manager = _load_manager(ctx)
    manager.cleanup()


@cli.command()
@click.argument('service')
@click.pass_context
def logs(ctx, service):
    """Print the logs of a service."""
    manager = _load_manager(ctx)
    click.echo(manager.get_logs(service), nl=False)


@cli.command()
@click.argument('service')
@click.pass_context
def health(ctx, service):
    """Report whether a service container is healthy."""
    manager = _load_manager(ctx)
    healthy = manager.is_service_healthy(service)
    click.echo(f"{service:15} {'healthy' if healthy else 'not healthy'}")
    if not healthy:
        ctx.exit(1)


@cli.command('wait-db')
@click.option('--service', '-s', default='federation_postgres', help='Compose service running PostgreSQL')
@click.option('--host', default='localhost')
@click.option('--username', '-U', default='postgres')
@click.option('--retries', default=PROBE_MAX_RETRIES, show_default=True)
@click.option('--interval', default=PROBE_RETRY_INTERVAL, show_default=True, help='Seconds between attempts')
@click.pass_context
def wait_db(ctx, service, host, username, retries, interval):
    """Wait until PostgreSQL accepts connections."""
    manager = _load_manager(ctx)
    try:
        wait_for_database(manager.environment, service=service, host=host,
                          username=username, max_retries=retries,
                          retry_interval=interval, runner=manager.runner)
    except ReadinessTimeout as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)


@cli.command('wait-schema')
@click.argument('url')
@click.option('--retries', default=PROBE_MAX_RETRIES, show_default=True)
@click.option('--interval', default=PROBE_RETRY_INTERVAL, show_default=True, help='Seconds between attempts')
@click.pass_context
def wait_schema(ctx, url, retries, interval):
    """Wait until a GraphQL endpoint answers introspection."""
    try:
        wait_for_schema_service(url, max_retries=retries, retry_interval=interval)
    except ReadinessTimeout as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)


@cli.command()
@click.argument('url')
def seed(url):
    """Load test data into a service (best effort)."""
    seed_test_data(url)


def main():
    """
    Main entry point for the CLI.
    """
    cli(obj={})


if __name__ == '__main__':
    main()
