"""
Command Line Interface for DORC.
"""
import logging
import os
from functools import wraps

import click

from ..exceptions import OrchestrationError
from ..MODELS.orchestrator_settings import BuildFlag, OrchestratorSettings
from ..MANAGERS.service_orchestrator import ServiceOrchestrator
from ..PARSERS.properties_parser import PropertiesParser
from ..RUNNERS.runtime_client import DockerRuntimeClient


def _handle_errors(f):
    """
    Reports orchestration failures as a one-line error and exit status 1.
    """
    @wraps(f)
    @click.pass_context
    def wrapper(ctx, *args, **kwargs):
        try:
            return f(ctx.obj['orchestrator'], *args, **kwargs)
        except OrchestrationError as e:
            click.echo(f"Error: {e}", err=True)
            ctx.exit(1)
    return wrapper


def _parse_defines(defines):
    props = {}
    for d in defines:
        key, sep, value = d.partition('=')
        if not sep:
            raise click.BadParameter(f"expected key=value, got {d!r}", param_hint='-D')
        props[key.strip()] = value
    return props


@click.group()
@click.option('--src', '-s', default='src/main/docker', show_default=True,
              type=click.Path(file_okay=False), help='Directory holding docker.yml and one directory per service')
@click.option('--namespace', '-n', default=None, help='Repository namespace of default image tags')
@click.option('--project', '-p', default=None, help='Prefix of default image and container names')
@click.option('--properties', 'properties_file', default=None,
              type=click.Path(exists=True, dir_okay=False), help='Properties file for ${name} placeholders')
@click.option('--define', '-D', 'defines', multiple=True, help='Property as key=value (repeatable)')
@click.option('--work-dir', default=None, help='Directory build contexts are prepared in')
@click.option('--no-cache', is_flag=True, help='Build without the layer cache')
@click.option('--rm', 'remove_intermediate', is_flag=True, help='Remove intermediate images after a build')
@click.option('--host', default=None, help='Docker daemon address (defaults to DOCKER_HOST)')
@click.option('--verbose', '-v', is_flag=True, help='Log debug output')
@click.pass_context
def cli(ctx, src, namespace, project, properties_file, defines, work_dir, no_cache, remove_intermediate, host, verbose):
    """
    DORC - builds and runs interdependent Docker containers in dependency order.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )

    properties = dict(os.environ)
    if properties_file:
        properties.update(PropertiesParser.parse(properties_file))
    properties.update(_parse_defines(defines))

    flags = set()
    if no_cache:
        flags.add(BuildFlag.NO_CACHE)
    if remove_intermediate:
        flags.add(BuildFlag.REMOVE_INTERMEDIATE_IMAGES)

    settings = OrchestratorSettings.from_env(
        namespace=namespace,
        project=project,
        work_dir=work_dir,
    )
    if flags:
        settings = settings.model_copy(update={'build_flags': settings.build_flags | flags})

    ctx.ensure_object(dict)
    try:
        ctx.obj['orchestrator'] = ServiceOrchestrator.from_directory(
            src, settings, properties, client=DockerRuntimeClient(base_url=host)
        )
    except OrchestrationError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)


@cli.command()
@click.argument('service', required=False)
@_handle_errors
def build(orchestrator, service):
    """Build images."""
    orchestrator.build(service)
    click.echo("Images built.")


@cli.command()
@click.argument('service', required=False)
@_handle_errors
def start(orchestrator, service):
    """Start services, building missing images."""
    orchestrator.start(service)
    click.echo("Services started.")


@cli.command()
@click.argument('service', required=False)
@_handle_errors
def stop(orchestrator, service):
    """Stop running services."""
    orchestrator.stop(service)
    click.echo("Services stopped.")


@cli.command()
@click.argument('service', required=False)
@_handle_errors
def clean(orchestrator, service):
    """Stop services and remove their containers and images."""
    orchestrator.clean(service)
    click.echo("Services cleaned.")


@cli.command()
@click.argument('service', required=False)
@_handle_errors
def push(orchestrator, service):
    """Push images to their registry."""
    orchestrator.push(service)
    click.echo("Images pushed.")


@cli.command()
@click.option('--reverse', '-r', is_flag=True, help='Teardown order')
@_handle_errors
def ids(orchestrator, reverse):
    """List services in start order."""
    for service_id in orchestrator.ids(reverse):
        click.echo(str(service_id))


@cli.command()
@_handle_errors
def status(orchestrator):
    """List service status."""
    click.echo(f"{'SERVICE':15} {'STATUS':10}")
    click.echo("-" * 25)
    for service_id, running in orchestrator.ps().items():
        click.echo(f"{str(service_id):15} {'running' if running else 'stopped':10}")


def main():
    """
    Main entry point for the CLI.
    """
    cli(obj={})


if __name__ == '__main__':
    main()
