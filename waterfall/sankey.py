"""Plotly rendering of SankeyMATIC flow text."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import pandas as pd
import plotly.graph_objects as go

EDGE_PATTERN = re.compile(
    r"^(?P<source>.+) \[(?P<amount>[^\]]*)\] (?P<target>.+?)(?: (?P<color>#[0-9a-fA-F]{6}))?$"
)
DIRECTIVE_PATTERN = re.compile(
    r"^:(?P<label>.+?) (?P<color>#[0-9a-fA-F]{6})(?: (?P<align><<|>>))?$"
)
NEUTRAL_NODE_COLOR = "#94a3b8"
LINK_ALPHA = 0.45


@dataclass(frozen=True)
class ParsedEdge:
    source: str
    target: str
    amount: float
    color: Optional[str] = None


@dataclass(frozen=True)
class NodeDirective:
    label: str
    color: str
    align: Optional[str] = None


@dataclass
class ParsedFlows:
    edges: List[ParsedEdge] = field(default_factory=list)
    directives: Dict[str, NodeDirective] = field(default_factory=dict)

    @property
    def labels(self) -> List[str]:
        ordered: Dict[str, None] = {}
        for edge in self.edges:
            ordered.setdefault(edge.source)
            ordered.setdefault(edge.target)
        return list(ordered)


def _to_amount(text: str) -> float:
    value = pd.to_numeric(text, errors="coerce")
    if pd.isna(value):
        return 0.0
    return float(value)


def parse_flow_text(text: str) -> ParsedFlows:
    """Parse edges and node directives, skipping comments and blanks."""

    parsed = ParsedFlows()
    for raw_line in text.split("\n"):
        line = raw_line.strip()
        if not line or line.startswith("//"):
            continue
        if line.startswith(":"):
            match = DIRECTIVE_PATTERN.match(line)
            if match:
                directive = NodeDirective(**match.groupdict())
                parsed.directives[directive.label] = directive
            continue
        match = EDGE_PATTERN.match(line)
        if match:
            parsed.edges.append(
                ParsedEdge(
                    source=match["source"],
                    target=match["target"],
                    amount=_to_amount(match["amount"]),
                    color=match["color"],
                )
            )
    return parsed


def hex_to_rgba(color: str, alpha: float) -> str:
    color = color.lstrip("#")
    r, g, b = (int(color[i : i + 2], 16) for i in (0, 2, 4))
    return f"rgba({r},{g},{b},{alpha})"


def build_sankey_figure(text: str, title: Optional[str] = None, height: int = 600) -> go.Figure:
    """Build a Sankey figure from flow text.

    Node colours come from the ``:NODE #color`` directives; undirected
    nodes are drawn grey.  Links reuse their edge colour, translucent.
    """

    parsed = parse_flow_text(text)
    labels = parsed.labels
    index = {label: i for i, label in enumerate(labels)}
    node_colors = [
        parsed.directives[label].color if label in parsed.directives else NEUTRAL_NODE_COLOR
        for label in labels
    ]
    link_colors = [
        hex_to_rgba(edge.color or NEUTRAL_NODE_COLOR, LINK_ALPHA) for edge in parsed.edges
    ]

    fig = go.Figure(go.Sankey(
        node=dict(
            pad=18,
            thickness=24,
            line=dict(color="rgba(0,0,0,0)", width=0),
            label=labels,
            color=node_colors,
            hovertemplate="<b>%{label}</b><extra></extra>",
        ),
        link=dict(
            source=[index[edge.source] for edge in parsed.edges],
            target=[index[edge.target] for edge in parsed.edges],
            value=[edge.amount for edge in parsed.edges],
            color=link_colors,
            hovertemplate="%{source.label} → %{target.label}: %{value:,.0f}<extra></extra>",
        ),
    ))
    fig.update_layout(
        title=dict(text=f"<b>{title}</b>", x=0.5) if title else None,
        height=height,
        margin=dict(l=10, r=10, t=60 if title else 20, b=20),
    )
    return fig
