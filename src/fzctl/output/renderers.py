"""Operation-specific Rich renderers for ServiceResult.

Each renderer writes to a Rich Console (backed by StringIO).  The caller
extracts the rendered text via ``get_output(console)``.

Renderers are dispatched by ``result.op`` in :func:`render_result`.
Unknown ops fall through to a generic key-value renderer.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from rich.table import Table
from rich.text import Text
from rich.tree import Tree

from fzctl.output.console import create_console, get_output, style_for_type

if TYPE_CHECKING:
    from rich.console import Console

    from fzctl.services.result import ServiceResult


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich.

    Returns plain text (no ANSI) when Rich detects no terminal,
    which is the case inside Click's CliRunner and piped output.
    """
    console = create_console()

    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)

    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Render minimal output for ``--quiet`` mode."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op} - {msg}"
    if "identifier" in result.data:
        return str(result.data["identifier"])
    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _status_line(console: Console, result: ServiceResult) -> None:
    label = Text("OK", style="fz.ok")
    op = Text(f"  {result.op}", style="fz.op")
    console.print(label, op, end="")
    console.print()


def _field(console: Console, key: str, value: Any) -> None:
    """Print a single indented key-value field."""
    k = Text(f"  {key}: ", style="fz.key")
    if key == "id" or key.endswith("_id"):
        v = Text(str(value), style="fz.id")
    elif key == "title":
        v = Text(str(value), style="fz.title")
    else:
        v = Text(str(value))
    console.print(Text.assemble(k, v))


def _node_label(entry: dict[str, Any]) -> Text:
    style = style_for_type(str(entry.get("type", "")))
    label = Text(str(entry.get("identifier", "?")), style=style)
    label.append(f"  {entry.get('title', '')}")
    return label


def _render_changes(console: Console, changes: list[dict[str, str]]) -> None:
    for change in changes:
        line = Text("    ")
        line.append(change["old"], style="fz.old")
        line.append(" -> ")
        line.append(change["new"], style="fz.new")
        line.append(f"  {change['id']}", style="fz.key")
        console.print(line)


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    label = Text("ERROR", style="fz.error")
    op = Text(f"  {result.op}", style="fz.op")
    console.print(label, op, Text(" - "), Text(msg))

    if err and err.detail and (verbose or err.code == "AMBIGUOUS"):
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            console.print(Text(f"    {k}: {v}"))


# ── Query renderers ───────────────────────────────────────────────────


def _add_branch(tree: Tree, entry: dict[str, Any]) -> None:
    branch = tree.add(_node_label(entry))
    for child in entry.get("children", []):
        _add_branch(branch, child)


def _render_tree(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    roots = result.data.get("roots", [])
    if not roots:
        console.print("No numbered notes found.")
        return
    for root in roots:
        tree = Tree(_node_label(root), guide_style="dim")
        for child in root.get("children", []):
            _add_branch(tree, child)
        console.print(tree)
    console.print(f"\n{result.data.get('count', 0)} notes, {len(roots)} roots")


def _render_show(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    d = result.data
    _status_line(console, result)
    for key in ("id", "identifier", "title", "type", "level", "parent_id"):
        if d.get(key) is not None:
            _field(console, key, d[key])
    if verbose:
        _field(console, "basename", d.get("basename", ""))
    for key in ("children", "siblings"):
        entries = d.get(key, [])
        if entries:
            _field(console, key, ", ".join(e["identifier"] for e in entries))


def _render_stats(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    table = Table(show_header=False, pad_edge=False, expand=False, box=None)
    table.add_column("Metric", style="fz.key")
    table.add_column("Value", justify="right")
    for key, value in result.data.items():
        table.add_row(key.replace("_", " "), str(value))
    console.print(table)


def _render_check(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    d = result.data
    if d.get("valid"):
        console.print(Text("OK", style="fz.ok"), Text("  forest invariant holds", style="fz.op"))
    else:
        console.print(Text("FAIL", style="fz.error"), f"  {d.get('count', 0)} link problems")
        for issue in d.get("issues", []):
            console.print(Text("  - ", style="fz.error"), Text(issue))
    for collision in d.get("collisions", []):
        ids = ", ".join(collision["ids"])
        label = Text("  collision ", style="fz.warning")
        console.print(label, Text(f"{collision['identifier']}: {ids}"))


# ── Mutation renderers ────────────────────────────────────────────────


def _render_move(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    d = result.data
    _status_line(console, result)
    if d.get("dry_run"):
        _field(console, "dry_run", True)
    for key in ("id", "identifier", "parent_id"):
        if key in d:
            _field(console, key, d[key])
    changes = d.get("changes", [])
    if changes:
        console.print(Text("  changes:", style="fz.key"))
        _render_changes(console, changes)
    if d.get("conflicts"):
        _field(console, "conflicts", ", ".join(d["conflicts"]))
    if verbose:
        for rename in d.get("renames", []):
            line = Text(f"{rename['old']} -> {rename['new']}")
            console.print(Text("    rename ", style="fz.key"), line)


def _render_next(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    d = result.data
    line = Text(str(d.get("identifier", "")), style=style_for_type(str(d.get("type", ""))))
    line.append(f"  (after {d.get('from', '?')})", style="fz.key")
    console.print(line)


def _render_history(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    items = result.data.get("items", [])
    if not items:
        console.print("History is empty.")
        return
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("#", justify="right")
    table.add_column("Node", style="fz.id", no_wrap=True)
    table.add_column("Old")
    table.add_column("New")
    table.add_column("State")
    if verbose:
        table.add_column("Time", style="dim")
    for item in items:
        state = Text("applied", style="fz.ok") if item["applied"] else Text("undone", style="dim")
        row: list[Any] = [
            str(item["position"]),
            item["node_id"],
            Text(item["old_identifier"], style="fz.old"),
            Text(item["new_identifier"], style="fz.new"),
            state,
        ]
        if verbose:
            row.append(item["timestamp"])
        table.add_row(*row)
    console.print(table)
    console.print(f"\n{len(items)}/{result.data.get('capacity', '?')} entries")


# ── Generic fallback ──────────────────────────────────────────────────


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    for key, value in result.data.items():
        _field(console, key, value)


_OP_RENDERERS: dict[str, Any] = {
    # Queries
    "tree": _render_tree,
    "show": _render_show,
    "stats": _render_stats,
    "check": _render_check,
    "next_id": _render_next,
    "history": _render_history,
    # Mutations
    "move": _render_move,
    "undo": _render_move,
    "redo": _render_move,
}
