"""Read-only views over a job tree: status rows, the status table, and error collection."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Union

from rich.table import Table
from rich.text import Text

from ..model import JobNet, JobState, Node

INDENT = "  "

STATE_STYLES = {
    JobState.FINISHED: "green",
    JobState.ERROR: "red",
    JobState.RUNNING: "blue",
    JobState.WAITING: "yellow",
}


@dataclass(frozen=True)
class StatusRow:
    depth: int
    label: str
    state: Union[JobState, str]
    is_net: bool

    @property
    def indented_label(self) -> str:
        return f"{INDENT * self.depth}{self.label}"


def node_label(node: Node) -> str:
    return f"{node.name} ({type(node).__name__})"


def status_rows(root: Node) -> List[StatusRow]:
    """
    One row per node, depth-first pre-order.

    Each node's state is read exactly once, so a job changing state during the
    walk shows up either before or after the change, never half-way.
    """
    rows: List[StatusRow] = []
    _collect_rows(root, 0, rows)
    return rows


def _collect_rows(node: Node, depth: int, rows: List[StatusRow]) -> None:
    state = node.state
    is_net = isinstance(node, JobNet)
    rows.append(StatusRow(depth=depth, label=node_label(node), state=state, is_net=is_net))
    if is_net:
        for child in node:
            _collect_rows(child, depth + 1, rows)


def colored_state(state: Union[JobState, str]) -> Text:
    value = state.value if isinstance(state, Enum) else str(state)
    style = STATE_STYLES.get(state)
    if style is None:
        return Text(value)
    return Text(value, style=style)


def render_status_table(root: Node) -> Table:
    table = Table("Job", "Status")
    for row in status_rows(root):
        style = "bold underline" if row.is_net else "bold"
        table.add_row(Text(row.indented_label, style=style), colored_state(row.state))
    return table


def collect_errors(root: Node) -> List[BaseException]:
    """Failure reasons of every leaf, in tree order. Nets contribute nothing themselves."""
    errors: List[BaseException] = []
    _collect_errors(root, errors)
    return errors


def _collect_errors(node: Node, errors: List[BaseException]) -> None:
    if isinstance(node, JobNet):
        for child in node:
            _collect_errors(child, errors)
        return
    reason = node.reason
    if reason is not None:
        errors.append(reason)
