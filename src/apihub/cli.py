"""CLI entry point for apihub."""

from pathlib import Path

import click

from apihub.config import get_settings
from apihub.errors import ApiHubError, NotFoundError
from apihub.generator.markdown import generate_html, generate_markdown
from apihub.generator.openapi import generate_openapi
from apihub.generator.postman import generate_postman
from apihub.log import configure_logging
from apihub.model.local import Environment, Project, SyncConfig
from apihub.runner import send_request
from apihub.store.memory import MemoryStore
from apihub.sync.cancel import CancelToken
from apihub.sync.reconciler import Reconciler

DOC_FORMATS = ["markdown", "html", "openapi", "openapi-yaml", "postman"]


def _yapi_options(f):
    f = click.option("--yapi-project-id", type=int, default=None, help="YAPI project id (APIHUB_YAPI_PROJECT_ID).")(f)
    f = click.option("--token", default=None, help="YAPI project token (APIHUB_YAPI_TOKEN).")(f)
    f = click.option("--url", default=None, help="YAPI server URL (APIHUB_YAPI_URL).")(f)
    return f


def _sync_config(settings, project_id: str, url: str | None, token: str | None, yapi_project_id: int | None) -> SyncConfig:
    return SyncConfig(
        project_id=project_id,
        yapi_url=url or settings.yapi_url,
        yapi_token=token or settings.yapi_token,
        yapi_project_id=yapi_project_id or settings.yapi_project_id,
    )


def _reconciler(settings, store) -> Reconciler:
    return Reconciler(store, timeout=settings.request_timeout, page_size=settings.page_size)


def _parse_vars(ctx, param, values) -> dict[str, str]:
    variables = {}
    for item in values:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected KEY=VALUE, got {item!r}")
        variables[key] = value
    return variables


def _var_option(f):
    return click.option(
        "--var", "variables", multiple=True, callback=_parse_vars, metavar="KEY=VALUE",
        help="Variable, may be repeated.",
    )(f)


@click.group()
@click.option("-w", "--workspace", type=click.Path(path_type=Path), default=None, help="Workspace JSON file (APIHUB_WORKSPACE).")
@click.pass_context
def main(ctx: click.Context, workspace: Path | None):
    """apihub: sync API definitions from YAPI, send requests and export documentation."""
    settings = get_settings()
    configure_logging(settings.log_level, json_format=settings.log_json)
    ctx.obj = {"settings": settings, "workspace": workspace or settings.workspace}


@main.group()
def project():
    """Manage local projects."""


@project.command("create")
@click.argument("name")
@click.option("--description", default="", help="Project description.")
@click.pass_obj
def project_create(obj: dict, name: str, description: str):
    """Create a project in the workspace and print its id."""
    try:
        store = MemoryStore.load(obj["workspace"])
        created = store.create_project(Project(name=name, description=description))
        store.save(obj["workspace"])
    except ApiHubError as e:
        raise click.ClickException(str(e))
    click.echo(created.id)


@main.group()
def yapi():
    """Talk to a YAPI server."""


@yapi.command("test")
@_yapi_options
@click.pass_obj
def yapi_test(obj: dict, url: str | None, token: str | None, yapi_project_id: int | None):
    """Check that the token can read the YAPI project."""
    settings = obj["settings"]
    config = _sync_config(settings, "", url, token, yapi_project_id)
    try:
        report = _reconciler(settings, MemoryStore()).test_connection(config)
    except ApiHubError as e:
        raise click.ClickException(f"Failed to connect to YAPI: {e}")

    click.echo(f"Connected to YAPI project {report.project.name!r} (id {report.project.id}).")
    click.echo(f"  Categories: {report.total_categories}")
    click.echo(f"  Interfaces: {report.total_interfaces}")


@yapi.command("sync")
@click.argument("project_id")
@_yapi_options
@click.option("--timeout", type=float, default=None, help="Abort the sync after this many seconds.")
@click.pass_obj
def yapi_sync(obj: dict, project_id: str, url: str | None, token: str | None, yapi_project_id: int | None, timeout: float | None):
    """Sync YAPI categories and interfaces into PROJECT_ID."""
    settings = obj["settings"]
    config = _sync_config(settings, project_id, url, token, yapi_project_id)
    try:
        store = MemoryStore.load(obj["workspace"])
        try:
            stats = _reconciler(settings, store).sync(config, cancel=CancelToken(timeout))
        finally:
            # upserts applied before a failure are kept
            store.save(obj["workspace"])
    except ApiHubError as e:
        raise click.ClickException(f"Sync failed: {e}")

    click.echo("YAPI sync completed.")
    click.echo(f"  Collections: {stats.created_collections} created, {stats.updated_collections} updated")
    click.echo(f"  Endpoints:   {stats.created_endpoints} created, {stats.updated_endpoints} updated")
    if stats.skipped_endpoints or stats.failed_collections or stats.failed_endpoints:
        click.echo(
            f"  Skipped: {stats.skipped_endpoints} endpoints; "
            f"failed: {stats.failed_collections} collections, {stats.failed_endpoints} endpoints"
        )


@main.command()
@click.argument("project_id")
@click.option("--format", "fmt", default="markdown", type=click.Choice(DOC_FORMATS), help="Documentation format.")
@click.option("-o", "--output", type=click.Path(path_type=Path), default=None, help="Output file (stdout if omitted).")
@click.pass_obj
def docs(obj: dict, project_id: str, fmt: str, output: Path | None):
    """Generate documentation for PROJECT_ID."""
    try:
        store = MemoryStore.load(obj["workspace"])
        proj = store.get_project(project_id)
        if proj is None:
            raise NotFoundError(f"project {project_id} not found")
    except ApiHubError as e:
        raise click.ClickException(str(e))

    if fmt == "markdown":
        result = generate_markdown(proj, store)
    elif fmt == "html":
        result = generate_html(proj, store)
    elif fmt == "postman":
        result = generate_postman(proj, store)
    else:
        result = generate_openapi(proj, store, fmt="yaml" if fmt == "openapi-yaml" else "json")

    if output is None:
        click.echo(result)
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(result, encoding="utf-8")
    click.echo(f"Documentation saved to {output}")


@main.group()
def collection():
    """Manage collections."""


@collection.command("delete")
@click.argument("collection_id")
@click.pass_obj
def collection_delete(obj: dict, collection_id: str):
    """Delete COLLECTION_ID and all of its endpoints."""
    try:
        store = MemoryStore.load(obj["workspace"])
        store.delete_collection(collection_id)
        store.save(obj["workspace"])
    except ApiHubError as e:
        raise click.ClickException(str(e))
    click.echo(f"Collection {collection_id} deleted.")


@main.group()
def endpoint():
    """Manage endpoints."""


@endpoint.command("list")
@click.argument("project_id")
@click.pass_obj
def endpoint_list(obj: dict, project_id: str):
    """List the endpoints of PROJECT_ID by collection."""
    try:
        store = MemoryStore.load(obj["workspace"])
        if store.get_project(project_id) is None:
            raise NotFoundError(f"project {project_id} not found")
    except ApiHubError as e:
        raise click.ClickException(str(e))

    for col in store.get_collections_by_project(project_id):
        click.echo(f"{col.name} ({col.id})")
        for ep in store.get_endpoints_by_collection(col.id):
            click.echo(f"  {ep.id}  {ep.method:<7} {ep.url}  {ep.name}")


@endpoint.command("delete")
@click.argument("endpoint_id")
@click.pass_obj
def endpoint_delete(obj: dict, endpoint_id: str):
    """Delete ENDPOINT_ID."""
    try:
        store = MemoryStore.load(obj["workspace"])
        store.delete_endpoint(endpoint_id)
        store.save(obj["workspace"])
    except ApiHubError as e:
        raise click.ClickException(str(e))
    click.echo(f"Endpoint {endpoint_id} deleted.")


@main.group()
def env():
    """Manage per-project environments."""


@env.command("create")
@click.argument("project_id")
@click.argument("name")
@_var_option
@click.option("--default", "is_default", is_flag=True, help="Use this environment when none is named.")
@click.pass_obj
def env_create(obj: dict, project_id: str, name: str, variables: dict[str, str], is_default: bool):
    """Create environment NAME in PROJECT_ID and print its id."""
    try:
        store = MemoryStore.load(obj["workspace"])
        created = store.create_environment(
            Environment(project_id=project_id, name=name, variables=variables, is_default=is_default)
        )
        store.save(obj["workspace"])
    except ApiHubError as e:
        raise click.ClickException(str(e))
    click.echo(created.id)


@env.command("list")
@click.argument("project_id")
@click.pass_obj
def env_list(obj: dict, project_id: str):
    """List the environments of PROJECT_ID."""
    try:
        store = MemoryStore.load(obj["workspace"])
    except ApiHubError as e:
        raise click.ClickException(str(e))
    for environment in store.get_environments_by_project(project_id):
        marker = " (default)" if environment.is_default else ""
        click.echo(f"{environment.id}  {environment.name}{marker}")
        for key, value in sorted(environment.variables.items()):
            click.echo(f"    {key}={value}")


@env.command("update")
@click.argument("environment_id")
@click.option("--name", default=None, help="New name.")
@_var_option
@click.option("--unset", multiple=True, metavar="KEY", help="Remove a variable, may be repeated.")
@click.option("--default/--no-default", "is_default", default=None, help="Make this the default environment.")
@click.pass_obj
def env_update(obj: dict, environment_id: str, name: str | None, variables: dict[str, str],
               unset: tuple[str, ...], is_default: bool | None):
    """Change the name, variables or default flag of ENVIRONMENT_ID."""
    try:
        store = MemoryStore.load(obj["workspace"])
        environment = store.get_environment(environment_id)
        if environment is None:
            raise NotFoundError(f"environment {environment_id} not found")
        environment.variables.update(variables)
        for key in unset:
            environment.variables.pop(key, None)
        if name:
            environment.name = name
        if is_default is not None:
            environment.is_default = is_default
        store.update_environment(environment)
        store.save(obj["workspace"])
    except ApiHubError as e:
        raise click.ClickException(str(e))
    click.echo(f"Environment {environment_id} updated.")


@env.command("delete")
@click.argument("environment_id")
@click.pass_obj
def env_delete(obj: dict, environment_id: str):
    """Delete ENVIRONMENT_ID."""
    try:
        store = MemoryStore.load(obj["workspace"])
        store.delete_environment(environment_id)
        store.save(obj["workspace"])
    except ApiHubError as e:
        raise click.ClickException(str(e))
    click.echo(f"Environment {environment_id} deleted.")


def _pick_environment(store: MemoryStore, project_id: str, name: str | None) -> Environment | None:
    environments = store.get_environments_by_project(project_id)
    if name is None:
        return next((e for e in environments if e.is_default), None)
    for environment in environments:
        if environment.name == name:
            return environment
    raise NotFoundError(f"environment {name!r} not found in project {project_id}")


@main.command()
@click.argument("endpoint_id")
@click.option("--env", "env_name", default=None, help="Environment name (default environment if omitted).")
@_var_option
@click.option("--timeout", type=float, default=None, help="Request timeout in seconds (APIHUB_REQUEST_TIMEOUT).")
@click.pass_obj
def request(obj: dict, endpoint_id: str, env_name: str | None, variables: dict[str, str], timeout: float | None):
    """Send ENDPOINT_ID and print the response."""
    settings = obj["settings"]
    try:
        store = MemoryStore.load(obj["workspace"])
        ep = store.get_endpoint(endpoint_id)
        if ep is None:
            raise NotFoundError(f"endpoint {endpoint_id} not found")
        col = store.get_collection(ep.collection_id)
        if col is None:
            raise NotFoundError(f"collection {ep.collection_id} not found")
        environment = _pick_environment(store, col.project_id, env_name)
        result = send_request(
            ep, environment, timeout=timeout or settings.request_timeout, variables=variables
        )
    except ApiHubError as e:
        raise click.ClickException(f"Request failed: {e}")

    click.echo(f"HTTP {result.status} ({result.duration_ms} ms)")
    for key, value in result.headers.items():
        click.echo(f"{key}: {value}")
    click.echo("")
    click.echo(result.body)
