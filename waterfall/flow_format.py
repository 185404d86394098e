"""Conversion of flow records into the SankeyMATIC text format."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Sequence, Tuple

from .data_loader import Record

REVENUE_COLOR = "#16a34a"
LOSS_COLOR = "#dc2626"

HEADER_LINES = (
    "// Nexamp Farm Waterfall Data",
    "// Auto-generated from uploaded file",
)
NODE_COLORS_MARKER = "// Node Colors"
NO_ROWS_MESSAGE = "No data for selected utility."

LOSS_KEYWORDS = ("loss", "lost")
REVENUE_KEYWORDS = ("revenue", "total", "payment")


def is_loss_label(label: str) -> bool:
    lower = label.lower()
    return any(keyword in lower for keyword in LOSS_KEYWORDS)


def is_revenue_label(label: str) -> bool:
    lower = label.lower()
    return any(keyword in lower for keyword in REVENUE_KEYWORDS)


@dataclass(frozen=True)
class FlowEdge:
    source: str
    target: str
    amount: str

    def render(self, color: str) -> str:
        return f"{self.source} [{self.amount}] {self.target} {color}"


@dataclass
class FlowSet:
    """Edges of one utility split by the kind of their target."""

    revenue: List[FlowEdge] = field(default_factory=list)
    losses: List[FlowEdge] = field(default_factory=list)
    nodes: List[str] = field(default_factory=list)


def filter_utility(table: Iterable[Record], utility: str) -> Tuple[Record, ...]:
    return tuple(record for record in table if record.utility == utility)


def build_flows(records: Sequence[Record]) -> FlowSet:
    """Partition records into revenue/other and loss edges.

    Order within each group follows the input; ``nodes`` lists every label
    once, in the order it was first seen.
    """

    flows = FlowSet()
    seen = set()
    for record in records:
        for label in (record.source, record.target):
            if label not in seen:
                seen.add(label)
                flows.nodes.append(label)
        edge = FlowEdge(record.source, record.target, record.value or "0")
        if is_loss_label(record.target):
            flows.losses.append(edge)
        else:
            flows.revenue.append(edge)
    return flows


def node_directive(label: str) -> str | None:
    """Return the colour/alignment line for a node, if it has one."""

    if is_loss_label(label):
        return f":{label} {LOSS_COLOR} <<"
    if is_revenue_label(label):
        return f":{label} {REVENUE_COLOR} >>"
    return None


def format_flows(table: Iterable[Record], utility: str) -> str:
    """Render the flows of ``utility`` as SankeyMATIC input.

    Revenue edges come first, then loss edges, then the node colour
    block.  Downstream consumers rely on this layout.  When the utility
    has no rows :data:`NO_ROWS_MESSAGE` is returned instead.
    """

    records = filter_utility(table, utility)
    if not records:
        return NO_ROWS_MESSAGE

    flows = build_flows(records)
    lines = [*HEADER_LINES, ""]
    lines.extend(edge.render(REVENUE_COLOR) for edge in flows.revenue)
    lines.append("")
    lines.extend(edge.render(LOSS_COLOR) for edge in flows.losses)
    lines.append("")
    lines.append(NODE_COLORS_MARKER)
    for label in flows.nodes:
        directive = node_directive(label)
        if directive is not None:
            lines.append(directive)
    return "\n".join(lines)
