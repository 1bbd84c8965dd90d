"""Markdown and HTML project documentation."""

import html

from apihub.model.local import APIParam, Endpoint, Project
from apihub.store.base import ProjectStore

DEFAULT_TITLE = "API Documentation"

HTML_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{title}</title>
    <style>
        body {{ font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; max-width: 800px; margin: 0 auto; padding: 20px; line-height: 1.6; }}
        pre {{ background: #f4f4f4; padding: 10px; border-radius: 4px; overflow-x: auto; white-space: pre-wrap; }}
    </style>
</head>
<body>
<pre>
{body}
</pre>
</body>
</html>
"""


def generate_markdown(project: Project, store: ProjectStore) -> str:
    """Render every collection and endpoint of a project as Markdown."""
    lines = [f"# {project.name or DEFAULT_TITLE}", ""]
    if project.description:
        lines += [project.description, ""]

    for col in store.get_collections_by_project(project.id):
        lines += [f"## {col.name}", ""]
        if col.description:
            lines += [col.description, ""]
        for ep in store.get_endpoints_by_collection(col.id):
            lines += _render_endpoint(ep)

    return "\n".join(lines)


def generate_html(project: Project, store: ProjectStore) -> str:
    md = generate_markdown(project, store)
    return HTML_TEMPLATE.format(
        title=html.escape(project.name or DEFAULT_TITLE),
        body=html.escape(md),
    )


def _render_endpoint(ep: Endpoint) -> list[str]:
    lines = [f"### {ep.method} {ep.name}", ""]
    if ep.description:
        lines += [f"**Description:** {ep.description}", ""]
    lines += [f"**Endpoint:** `{ep.url}`", "", f"**Method:** `{ep.method}`", ""]

    if ep.headers:
        lines += ["**Headers:**", "", "```"]
        lines += [f"{key}: {value}" for key, value in ep.headers.items()]
        lines += ["```", ""]

    if ep.request_params:
        lines += ["**Request Parameters:**", ""] + _param_table(ep.request_params, with_location=True) + [""]

    if ep.request_body and ep.request_body.fields:
        lines += [f"**Request Body** ({ep.request_body.type}):", ""]
        lines += _param_table(ep.request_body.fields) + [""]

    if ep.body:
        lines += ["**Request Body Example:**", "", "```json", ep.body, "```", ""]

    if ep.response_params:
        lines += ["**Response Fields:**", ""] + _param_table(ep.response_params) + [""]

    lines += ["---", ""]
    return lines


def _param_table(params: list[APIParam], with_location: bool = False) -> list[str]:
    if with_location:
        rows = ["| Name | In | Type | Required | Description |", "|------|----|------|----------|-------------|"]
    else:
        rows = ["| Name | Type | Required | Description |", "|------|------|----------|-------------|"]
    for name, param in _flatten(params):
        required = "yes" if param.required else "no"
        if with_location:
            rows.append(f"| {name} | {param.param_type} | {param.type} | {required} | {param.description} |")
        else:
            rows.append(f"| {name} | {param.type} | {required} | {param.description} |")
    return rows


def _flatten(params: list[APIParam], prefix: str = ""):
    """Yield (dotted name, param) pairs depth-first."""
    for p in params:
        name = f"{prefix}{p.name}"
        yield name, p
        if p.children:
            child_prefix = f"{name}[]." if p.type == "array" else f"{name}."
            yield from _flatten(p.children, child_prefix)
