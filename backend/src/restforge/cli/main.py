"""restforge CLI entry point."""

import importlib
import sys
from typing import Any

import click
from fastapi.routing import APIRoute


def load_app(target: str, factory: bool = False) -> Any:
    """Import ``module:attr`` and return the attribute (called if ``factory``)."""
    module_name, _, attr = target.partition(":")
    if not module_name or not attr:
        raise click.BadParameter(f"Expected 'module:attr', got '{target}'", param_hint="APP")
    if "" not in sys.path:
        sys.path.insert(0, "")
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise click.BadParameter(f"Cannot import '{module_name}': {e}", param_hint="APP")
    try:
        app = getattr(module, attr)
    except AttributeError:
        raise click.BadParameter(f"'{module_name}' has no attribute '{attr}'", param_hint="APP")
    return app() if factory else app


@click.group()
def cli():
    """restforge - CRUD REST resources from SQLAlchemy models."""
    pass


@cli.command()
@click.argument("app")
@click.option("--host", default="127.0.0.1", show_default=True, help="Bind address.")
@click.option("--port", default=8000, show_default=True, type=int, help="Bind port.")
@click.option("--reload", is_flag=True, help="Reload on code changes.")
@click.option("--factory", is_flag=True, help="Treat APP as an app factory.")
@click.option("--log-level", default="info", show_default=True, help="Uvicorn log level.")
def serve(app: str, host: str, port: int, reload: bool, factory: bool, log_level: str):
    """Run APP (module:attr) with uvicorn."""
    import uvicorn

    # Import errors surface as usage errors
    load_app(app, factory)

    uvicorn.run(app, host=host, port=port, reload=reload, factory=factory, log_level=log_level)


@cli.command()
@click.argument("app")
@click.option("--factory", is_flag=True, help="Treat APP as an app factory.")
def routes(app: str, factory: bool):
    """Print the route table of APP (module:attr)."""
    application = load_app(app, factory)

    api_routes = [r for r in application.routes if isinstance(r, APIRoute)]
    if not api_routes:
        click.echo("No routes registered.")
        return

    for route in api_routes:
        methods = ",".join(sorted(route.methods))
        line = f"{methods:<8} {route.path:<32} {route.name}"
        deps = [getattr(d.dependency, "__name__", repr(d.dependency)) for d in route.dependencies]
        if deps:
            line += f"  [{', '.join(deps)}]"
        click.echo(line)


if __name__ == "__main__":
    cli()
