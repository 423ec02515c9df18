import json

import click

from mediadeck.cli.utils import format_bytes, load_app_config


@click.group()
def storage():
    """Inspect storage drives."""
    pass

@storage.command(name="drives")
@click.option("--json", "as_json", is_flag=True, help="Print JSON.")
def list_drives(as_json):
    """List physical drives attached to this host."""
    from mediadeck.storage.devices import get_physical_drives
    drives = get_physical_drives()
    if as_json:
        click.echo(json.dumps([d.model_dump() for d in drives], indent=4))
        return
    if not drives:
        click.echo("No drives found.")
        return

    for drive in drives:
        click.echo(f"{drive.name}: {drive.label or '-'} ({drive.serial_number or 'no serial'})")
        click.echo(f"  Mounted: {drive.mount_path or 'no'}")
        click.echo(f"  Model: {drive.manufacturer or 'N/A'} {drive.model or ''}".rstrip())
        click.echo(f"  Size: {format_bytes(drive.total_bytes)}, free {format_bytes(drive.free_bytes)}")
        click.echo(f"  Health: {drive.health_status}")

@storage.command(name="status")
@click.pass_context
def status(ctx):
    """Resolve configured Master and Backup drives."""
    from mediadeck.storage.resolver import confirm_storage, storage_status
    app_config = load_app_config(ctx)
    confirm_storage(app_config)

    for slot in storage_status(app_config):
        role = slot.drive_type.value if not slot.backup_id else f"{slot.drive_type.value} {slot.backup_id}"
        state = f"mounted at {slot.drive_letter}" if slot.is_available else "not connected"
        if not slot.serial_number:
            state = "not configured"
        suffix = " (optional)" if slot.optional else ""
        click.echo(f"[{slot.storage_group}] {role}: {slot.label or '-'} {state}{suffix}")
        if slot.error:
            click.echo(f"  Error: {slot.error}", err=True)
