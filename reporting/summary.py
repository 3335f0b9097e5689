"""Console text summary and JSON export for backtest results."""

import json
from decimal import ROUND_HALF_EVEN, Decimal
from pathlib import Path

from engine.backtester import BacktestResult
from engine.types import BacktestResults

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

WIDTH = 80
CENT = Decimal("0.01")
CURRENCY = "USDC"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _header_bar() -> str:
    """Return a full-width '=' border line."""
    return "=" * WIDTH


def _section_divider(label: str) -> str:
    """Return a section divider like: -- Label ------ (padded to WIDTH)."""
    prefix = f"-- {label} "
    remaining = WIDTH - len(prefix)
    return prefix + "-" * max(remaining, 0)


def round_2dp(value: Decimal) -> Decimal:
    """Round half-even to 2 decimal places. Rendering only."""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_EVEN)


def _fmt_money(value: Decimal) -> str:
    """Format as X,XXX.XX USDC."""
    return f"{round_2dp(value):,} {CURRENCY}"


def _fmt_pct(value: Decimal) -> str:
    """Format as X.XX%."""
    return f"{round_2dp(value)}%"


def _fmt_ratio(value: Decimal) -> str:
    return str(round_2dp(value))


def _row(left_label: str, left_val: str, right_label: str = "",
         right_val: str = "") -> str:
    """Build a two-column row.

    Layout:
      "  {left_label:<17}{left_val:<22}{right_label:<17}{right_val}"
    """
    left = f"  {left_label:<17}{left_val:<22}"
    if right_label:
        right = f"{right_label:<17}{right_val}"
    else:
        right = ""
    return left + right


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def format_report(report: BacktestResults) -> str:
    """Format the performance report as an aligned text block.

    Every decimal is rounded to 2 places here; the report itself keeps
    full precision.
    """
    lines: list[str] = []

    lines.append(_section_divider("Trades"))
    lines.append(_row("Total Trades:", str(report.total_trades),
                      "Win Rate:", _fmt_pct(report.win_rate)))
    lines.append(_row("Winning Trades:", str(report.winning_trades),
                      "Losing Trades:", str(report.losing_trades)))

    lines.append(_section_divider("Returns"))
    lines.append(_row("Initial Balance:", _fmt_money(report.initial_balance),
                      "Final Balance:", _fmt_money(report.final_balance)))
    lines.append(_row("Total P&L:", _fmt_money(report.total_pnl),
                      "ROI:", _fmt_pct(report.roi)))

    lines.append(_section_divider("Risk"))
    lines.append(_row("Average Win:", _fmt_money(report.avg_win),
                      "Average Loss:", _fmt_money(report.avg_loss)))
    lines.append(_row("Profit Factor:", _fmt_ratio(report.profit_factor),
                      "Max Drawdown:", _fmt_pct(report.max_drawdown)))
    lines.append(_row("Sharpe Ratio:", _fmt_ratio(report.sharpe_ratio)))

    return "\n".join(lines)


def print_summary(result: BacktestResult) -> str:
    """Print a formatted backtest summary to the console and return the text."""
    report = result.report
    bt = result.config.backtest
    lines: list[str] = []

    lines.append(_header_bar())
    lines.append("BACKTEST RESULTS".center(WIDTH))
    lines.append(_header_bar())
    lines.append("")
    lines.append(_row("Period:", f"{bt.start_date} -- {bt.end_date}"))
    lines.append(_row("Input trades:", str(result.n_input_trades),
                      "Executed:", str(len(result.trade_log))))
    if result.skipped:
        reasons = ", ".join(f"{r.value.lower()} {n}" for r, n in result.skipped.items())
        lines.append(_row("Skipped:", str(sum(result.skipped.values())), "Reasons:", reasons))
    lines.append("")

    lines.append(format_report(report))

    lines.append(_section_divider("Costs"))
    lines.append(_row("Fees Paid:", _fmt_money(result.total_fees),
                      "Slippage Cost:", _fmt_money(result.total_slippage)))

    if report.total_trades == 0:
        lines.append("")
        lines.append("  No positions closed.")

    lines.append("")
    lines.append(_header_bar())

    text = "\n".join(lines)
    print(text)
    return text


def save_results_json(report: BacktestResults, path: str | Path) -> None:
    """Write the report to JSON with decimals encoded as strings."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(report.to_dict(), indent=2), encoding="utf-8")
