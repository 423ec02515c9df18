import click

from mediadeck.cli.projects import projects
from mediadeck.cli.storage import storage
from mediadeck.config.settings import config
from mediadeck.logs import configure_logging

@click.group()
@click.option("--config", "config_path", help="Path to the configuration file.")
@click.option("--log-level", default=None, help="Logging level (DEBUG, INFO, WARNING, ...).")
@click.pass_context
def main(ctx, config_path, log_level):
    """MediaDeck CLI"""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    configure_logging(log_level or config.log_level)

main.add_command(projects)
main.add_command(storage)


@main.command()
@click.option('--host', default='127.0.0.1', help='The host to bind to.')
@click.option('--port', default=8000, help='The port to bind to.')
@click.pass_context
def server(ctx, host, port):
    """Run the FastAPI server."""
    import uvicorn

    if ctx.obj.get("config_path"):
        config.config_file = ctx.obj["config_path"]

    from mediadeck.api.server import app
    uvicorn.run(app, host=host, port=port)
