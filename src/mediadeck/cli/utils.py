import click

from mediadeck.config.loader import load_config
from mediadeck.errors import StorageConfigError


def load_app_config(ctx):
    """Loads the configuration named on the command line, or fails the command."""
    try:
        return load_config(ctx.obj.get("config_path"))
    except StorageConfigError as e:
        raise click.ClickException(str(e))


def format_bytes(size: int) -> str:
    value = float(size)
    for unit in ("B", "KB", "MB", "GB", "TB"):
        if value < 1024 or unit == "TB":
            return f"{value:.1f} {unit}" if unit != "B" else f"{int(value)} B"
        value /= 1024
