import json

import click

from mediadeck.cli.utils import load_app_config


@click.group()
def projects():
    """Discover and create projects."""
    pass

def _echo_section(title, section):
    click.echo(f"{title}:")
    if not section:
        click.echo("  (no drives)")
        return
    for label in sorted(section):
        records = section[label]
        first = records[0]
        click.echo(f"  {label} ({first.drive_letter}) group {first.storage_group}")
        for record in records:
            if record.is_placeholder:
                click.echo("    (no projects)")
            else:
                click.echo(f"    {record.name}  {record.path}")

@projects.command(name="list")
@click.option("--force", is_flag=True, help="Rescan every drive.")
@click.option("--json", "as_json", is_flag=True, help="Print JSON.")
@click.pass_context
def list_projects(ctx, force, as_json):
    """List projects on Master and Backup drives."""
    from mediadeck.projects.manager import ProjectManager, count_projects
    manager = ProjectManager(load_app_config(ctx))
    view = manager.get_projects(force_rescan=force)

    if as_json:
        click.echo(json.dumps(view.model_dump(mode="json"), indent=4))
        return

    _echo_section("Master", view.master)
    _echo_section("Backup", view.backup)
    click.echo(f"{count_projects(view)} projects")

@projects.command(name="create")
@click.argument("storage_group")
@click.argument("name")
@click.pass_context
def create_project(ctx, storage_group, name):
    """Create a project on the Master drive of STORAGE_GROUP."""
    from mediadeck.errors import ProjectError
    from mediadeck.projects.manager import ProjectManager
    manager = ProjectManager(load_app_config(ctx))
    try:
        path = manager.create_project(storage_group, name)
    except ProjectError as e:
        raise click.ClickException(str(e))
    click.echo(f"Project '{name}' created at {path}")
