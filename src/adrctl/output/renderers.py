"""Operation-specific Rich renderers for ServiceResult.

Each renderer writes to a Rich Console (backed by StringIO). The caller
extracts the rendered text via ``get_output(console)``.

Renderers are dispatched by ``result.op`` in :func:`render_result`.
Unknown ops fall through to a generic key-value renderer. User-supplied
text (titles, section bodies) is always wrapped in ``Text`` so square
brackets are never read as Rich markup.
"""

from __future__ import annotations

import json as _json
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from adrctl.output.console import create_console, get_output, style_for_status

if TYPE_CHECKING:
    from rich.console import Console

    from adrctl.services.result import ServiceResult


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich."""
    console = create_console()

    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)
    if verbose:
        _render_meta(console, result)

    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Render minimal output for ``--quiet`` mode: record numbers only."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op} — {msg}"

    items = result.data.get("items")
    if isinstance(items, list):
        return "\n".join(str(item["number"]) for item in items if "number" in item)
    if "number" in result.data:
        return str(result.data["number"])
    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _status_line(console: Console, result: ServiceResult) -> None:
    console.print(Text("OK", style="adr.ok"), Text(f"  {result.op}", style="adr.op"))


def _field(console: Console, key: str, value: Any) -> None:
    """Print a single indented key-value field."""
    k = Text(f"  {key}: ", style="adr.key")
    if key == "number":
        v = Text(str(value), style="adr.number")
    elif key == "path" or key.endswith("_dir") or key.endswith("_file"):
        v = Text(str(value), style="adr.path")
    elif key == "title":
        v = Text(str(value), style="adr.title")
    elif key == "status":
        v = Text(str(value), style=style_for_status(str(value)))
    elif isinstance(value, dict | list):
        v = Text(_json.dumps(value, separators=(",", ":")))
    else:
        v = Text(str(value))
    console.print(k + v)


def _render_meta(console: Console, result: ServiceResult) -> None:
    """Print meta block including telemetry span tree (verbose only)."""
    if not result.meta:
        return
    console.print()
    console.print(Text("  meta:", style="dim"))
    for k, v in result.meta.items():
        if k == "telemetry":
            _render_telemetry_tree(console, v, indent=4)
        else:
            console.print(Text(f"    {k}: {v}"))


def _render_telemetry_tree(console: Console, span_data: dict[str, Any], indent: int = 4) -> None:
    """Render a hierarchical span tree with color-coded timing."""
    prefix = " " * indent
    duration = span_data.get("duration_ms", 0.0)
    if duration > 1000:
        style = "bold red"
    elif duration > 100:
        style = "yellow"
    else:
        style = "dim"

    line = Text(prefix) + Text(f"{duration:>8.2f}ms", style=style) + Text(f"  {span_data.get('name', '?')}")
    annotations = span_data.get("annotations") or {}
    if annotations:
        line += Text(f"  ({', '.join(f'{k}={v}' for k, v in annotations.items())})")
    console.print(line)

    for child in span_data.get("children", []):
        _render_telemetry_tree(console, child, indent=indent + 4)


def _record_table(items: list[dict[str, Any]], *, verbose: bool = False) -> Table:
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("#", style="adr.number", no_wrap=True, justify="right")
    table.add_column("Title", style="adr.title")
    table.add_column("Status")
    table.add_column("Date", style="dim")
    if verbose:
        table.add_column("Path", style="adr.path")

    for item in items:
        status = str(item.get("status") or "")
        row: list[Any] = [
            str(item.get("number", "")),
            Text(str(item.get("title", ""))),
            Text(status, style=style_for_status(status)),
            str(item.get("date") or ""),
        ]
        if verbose:
            row.append(str(item.get("path") or ""))
        table.add_row(*row)
    return table


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    console.print(Text("ERROR", style="adr.error"), Text(f"  {result.op}", style="adr.op"), Text(f" — {msg}"))
    if err is None:
        return

    candidates = err.detail.get("candidates")
    if candidates:
        console.print(Text("  candidates:", style="adr.key"))
        for c in candidates:
            console.print(Text(f"    {c['number']:>4}  {c['title']}"))
    collisions = err.detail.get("collisions")
    if collisions:
        _field(console, "collisions", ", ".join(map(str, collisions)))
    if verbose and err.detail:
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            console.print(Text(f"    {k}: {v}"))


# ── Mutation renderers ────────────────────────────────────────────────


def _render_mutation(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render create/status/link results."""
    _status_line(console, result)
    for key in ("number", "title", "status", "previous_status", "path", "source", "target", "kind", "reverse_kind"):
        if result.data.get(key) is not None:
            _field(console, key, result.data[key])
    for key in ("links", "updated", "changed"):
        if result.data.get(key):
            _field(console, key, result.data[key])


def _render_init(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    d = result.data
    for key in ("records_dir", "mode", "config_file"):
        _field(console, key, d.get(key))
    record = d.get("record") or {}
    if record:
        _field(console, "record", f"{record.get('number')}. {record.get('title')}")


# ── Query renderers ───────────────────────────────────────────────────


def _render_list(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    items = result.data.get("items", [])
    if items:
        console.print(_record_table(items, verbose=verbose))
    console.print(Text(f"\n{result.data.get('count', len(items))} records"))


def _render_show(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render one record as a panel: metadata lines, links, then sections."""
    d = result.data
    content = Text()
    status = str(d.get("status") or "")
    content.append("status: ", style="adr.key")
    content.append(status or "(none)", style=style_for_status(status))
    if d.get("date"):
        content.append(f"\ndate: {d['date']}")
    if d.get("status_notes"):
        content.append(f"\nnotes: {d['status_notes']}")
    for key, values in (d.get("metadata") or {}).items():
        if values and key != "extra":
            content.append(f"\n{key}: {', '.join(map(str, values))}")
    for link in d.get("links", []):
        title = link.get("title") or "(missing)"
        content.append(f"\n{link['kind']} {link['target']}. {title}")
    if d.get("superseded_chain"):
        content.append(f"\nsuperseded chain: {' -> '.join(map(str, d['superseded_chain']))}")
    for heading, body in (d.get("sections") or {}).items():
        content.append(f"\n\n{heading}\n", style="bold")
        content.append(body.strip())

    console.print(Panel(content, title=Text(f"{d.get('number')}. {d.get('title')}"), border_style="dim", expand=False))
    if verbose and d.get("path"):
        _field(console, "path", d["path"])


def _render_search(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Each hit as a numbered title followed by one snippet line per matching section."""
    d = result.data
    items = d.get("items", [])
    if not items:
        console.print(Text(f"No matches for {d.get('query', '')!r}"))
        return
    for item in items:
        heading = Text(str(item["number"]), style="adr.number") + Text(". ") + Text(item["title"], style="adr.title")
        console.print(heading)
        for match in item.get("matches", []):
            console.print(Text(f"   {match['section']}: ", style="adr.key") + Text(match["snippet"]))
    console.print(Text(f"\n{d.get('count', len(items))} matching records"))


# ── Doctor renderer ───────────────────────────────────────────────────

_SEVERITY_STYLES = {"error": "adr.error", "warn": "adr.warning", "info": "adr.info", "ok": "adr.ok"}


def _render_doctor(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Findings table; OK findings only with --verbose."""
    d = result.data
    findings = [f for f in d.get("findings", []) if verbose or f["severity"] != "ok"]
    if not findings:
        console.print(Text("OK", style="adr.ok"), Text(f"  No problems found in {d.get('record_count', 0)} records."))
        return

    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("Severity", no_wrap=True)
    table.add_column("Check", no_wrap=True)
    table.add_column("#", style="adr.number", justify="right")
    table.add_column("Message")
    for f in findings:
        sev = f["severity"]
        table.add_row(
            Text(sev.upper(), style=_SEVERITY_STYLES.get(sev, "")),
            f["check"],
            str(f["number"]) if f.get("number") is not None else "",
            Text(f["message"]),
        )
    console.print(table)

    counts = d.get("counts", {})
    summary = ", ".join(f"{counts.get(s, 0)} {s}" for s in ("error", "warn", "info"))
    console.print(Text(f"\n{summary}"))


# ── Transfer renderers ────────────────────────────────────────────────


def _render_import(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    d = result.data
    label = "Dry run" if d.get("dry_run") else "Imported"
    console.print(Text(label, style="adr.ok"), Text(f"  {d.get('count', 0)} records"))
    plan = d.get("plan") or {}
    for old, new in (plan.get("mapping") or {}).items():
        marker = "" if str(old) == str(new) else f"{old} -> "
        console.print(Text(f"  {marker}{new}", style="adr.number"))
    if plan.get("rewrites"):
        _field(console, "link rewrites", len(plan["rewrites"]))
    commit = d.get("commit")
    if commit:
        _field(console, "written", commit.get("written", []))


def _render_export(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    console.print(Text(_json.dumps(result.data.get("document", {}), indent=2)))


# ── Template and config renderers ─────────────────────────────────────


def _render_template_list(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    for item in result.data.get("items", []):
        line = Text(f"  {item['name']}", style="adr.title") + Text(f"  ({item['source']})", style="dim")
        if item.get("default"):
            line += Text("  default", style="adr.ok")
        console.print(line)


def _render_template_show(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    if verbose and result.data.get("path"):
        _field(console, "path", result.data["path"])
    console.print(Text(result.data.get("text", "").rstrip("\n")), soft_wrap=True)


def _render_config(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Top-level settings as fields, then each section in TOML layout."""
    _status_line(console, result)
    d = result.data
    for key in ("root", "records_dir", "mode", "config_file", "initialized"):
        _field(console, key, d.get(key) if d.get(key) is not None else "(none)")
    for section, values in (d.get("sections") or {}).items():
        console.print(Text(f"\n  [{section}]", style="adr.key"))
        for key, value in values.items():
            console.print(Text(f"  {key} = {_json.dumps(value)}"))


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Fallback renderer: status line + all data as key-value pairs."""
    _status_line(console, result)
    for key, value in result.data.items():
        _field(console, key, value)


# ── Dispatch table ────────────────────────────────────────────────────

_OP_RENDERERS: dict[str, Callable[..., None]] = {
    "init": _render_init,
    "create_record": _render_mutation,
    "link": _render_mutation,
    "set_status": _render_mutation,
    "list_records": _render_list,
    "show": _render_show,
    "search": _render_search,
    "doctor": _render_doctor,
    "lint": _render_doctor,
    "import": _render_import,
    "export": _render_export,
    "template_list": _render_template_list,
    "template_show": _render_template_show,
    "config": _render_config,
}
