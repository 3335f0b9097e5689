"""Plotly chart generators for backtest reporting.

Each function accepts a BacktestResult and returns a go.Figure object
ready for display or export. All charts use the plotly_dark template.
"""

import numpy as np
import plotly.graph_objects as go
from plotly.subplots import make_subplots

from engine.backtester import BacktestResult
from engine.metrics import drawdown_series

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

COLOR_GREEN = "#26a69a"
COLOR_RED = "#ef5350"
COLOR_GRAY = "#888888"
COLOR_WHITE = "#ffffff"
TEMPLATE = "plotly_dark"

_OUTCOME_COLORS = {"WIN": COLOR_GREEN, "LOSS": COLOR_RED, "BREAKEVEN": COLOR_GRAY}


def _empty_figure(message: str, title: str = "") -> go.Figure:
    """Return an empty figure with a centered annotation."""
    fig = go.Figure()
    fig.add_annotation(text=message, showarrow=False, font=dict(size=14))
    fig.update_layout(template=TEMPLATE, title=title)
    return fig


# ---------------------------------------------------------------------------
# 1. Equity Curve & Drawdown
# ---------------------------------------------------------------------------

def create_equity_curve_chart(result: BacktestResult) -> go.Figure:
    """Balance after each closed position (top) with drawdown % (bottom).

    The x-axis is the close index; point 0 is the initial balance.
    """
    equity = np.asarray(result.equity_curve, dtype=np.float64)

    if len(equity) < 2:
        return _empty_figure("No closed positions", "Equity Curve & Drawdown")

    dd = drawdown_series(equity)
    x = np.arange(len(equity))

    fig = make_subplots(
        rows=2, cols=1,
        shared_xaxes=True,
        vertical_spacing=0.08,
        row_heights=[0.7, 0.3],
        subplot_titles=("Equity", "Drawdown %"),
    )

    fig.add_trace(
        go.Scatter(
            x=x,
            y=equity,
            mode="lines",
            name="Equity",
            line=dict(color=COLOR_GREEN, width=1.5),
        ),
        row=1, col=1,
    )

    fig.add_trace(
        go.Scatter(
            x=x,
            y=dd * 100,
            mode="lines",
            name="Drawdown",
            fill="tozeroy",
            line=dict(color=COLOR_RED, width=1),
            fillcolor="rgba(239, 83, 80, 0.3)",
        ),
        row=2, col=1,
    )

    fig.update_layout(
        title="Equity Curve & Drawdown",
        height=600,
        template=TEMPLATE,
        showlegend=False,
    )
    fig.update_xaxes(title_text="Closed position #", row=2, col=1)
    fig.update_yaxes(title_text="Balance (USDC)", row=1, col=1)
    fig.update_yaxes(title_text="Drawdown %", row=2, col=1)

    return fig


# ---------------------------------------------------------------------------
# 2. Closed Position P&L
# ---------------------------------------------------------------------------

def create_pnl_scatter(result: BacktestResult) -> go.Figure:
    """P&L per closed position in close order, colored by outcome."""
    closed = result.closed_positions

    if closed is None or len(closed) == 0:
        return _empty_figure("No closed positions", "Closed Position P&L")

    colors = closed["outcome"].map(_OUTCOME_COLORS).fillna(COLOR_GRAY)
    hover_text = closed.apply(
        lambda r: (
            f"Market: {r['market_id']}<br>"
            f"Side: {r['side']}<br>"
            f"Entry: {r['entry_price']:.4f}<br>"
            f"Exit: {r['exit_price']:.4f}"
        ),
        axis=1,
    )

    fig = go.Figure(
        data=go.Scatter(
            x=np.arange(1, len(closed) + 1),
            y=closed["pnl"],
            mode="markers",
            marker=dict(
                color=colors,
                size=8,
                line=dict(width=0.5, color=COLOR_WHITE),
                opacity=0.8,
            ),
            text=hover_text,
            hovertemplate="%{text}<br>P&L: %{y:.2f}<extra></extra>",
        )
    )

    fig.add_hline(y=0, line_dash="dash", line_color=COLOR_WHITE, opacity=0.4)

    fig.update_layout(
        title="Closed Position P&L",
        xaxis_title="Closed position #",
        yaxis_title="P&L (USDC)",
        template=TEMPLATE,
        showlegend=False,
    )

    return fig
