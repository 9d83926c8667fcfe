#!/usr/bin/env python3
"""
dashboard_app.py

Dash dashboard over a flat list of income/expense transactions.

Design goals
- Three ways to filter, one state: month/category dropdowns, a debounced text
  search, and clicks on the charts. Chart clicks toggle (click the selected bar
  again to clear it) and write the same month/category filter the dropdowns do;
  the most recent event wins.
- One snapshot per event: a single callback runs the whole pipeline and feeds
  every KPI, chart and table from the same result.
- The monthly chart keeps all months visible when a month is selected so the
  trend stays in view while drilling into one month's categories.
- The source is fetched once per page load; until it resolves the controls stay
  disabled, and a failed fetch shows an error with retry guidance.

Env
- DASHBOARD_SOURCE (required): URL (JSON) or path (.json/.csv) of the transactions
- DASH_HOST (optional): default 127.0.0.1
- DASH_PORT (optional): default 8050
- DASHBOARD_FETCH_TIMEOUT (optional): seconds, default 20
- DASHBOARD_SEARCH_DEBOUNCE_MS (optional): default 300
- DASHBOARD_LOG_LEVEL (optional): default INFO
"""

from __future__ import annotations

import threading
import uuid
from collections import OrderedDict
from pathlib import Path
from typing import Callable, List, Optional, Tuple

import pandas as pd
import plotly.graph_objects as go
from dash import Dash, Input, Output, State, ctx, dcc, html, dash_table, no_update
from dash.exceptions import PreventUpdate

from dashboard_core.aggregates import Aggregates
from dashboard_core.config import load_env_file, load_settings
from dashboard_core.errors import SourceError
from dashboard_core.export import category_summary, to_csv_text
from dashboard_core.filters import ALL, FilterState
from dashboard_core.logging_setup import configure_logging, get_logger
from dashboard_core.pipeline import PipelineCoordinator, Snapshot, Totals, records_for_table
from dashboard_core.records import NO_DESCRIPTION, UNCATEGORIZED, RecordStore
from dashboard_core.selection import CATEGORY, MONTH, SelectionState
from dashboard_core.source import fetch_rows

logger = get_logger("dashboard_core.app")


# ======================================================
# SETTINGS
# ======================================================

FONT_STACK = "Inter, -apple-system, BlinkMacSystemFont, \"Segoe UI\", Roboto, Helvetica, Arial, sans-serif"
FIG_FONT = FONT_STACK
INTER_STYLESHEET = "https://fonts.googleapis.com/css2?family=Inter:wght@300;400;500;600;700&display=swap"

CURRENCY_SYMBOL = "€"

COLORS = {
    "primary_blue": "#004990",
    "secondary_blue": "#0067a5",
    "accent_teal": "#00838f",
    "positive_green": "#16a34a",
    "negative_red": "#dc2626",
    "neutral_gray": "#64748b",
    "dark_text": "#1e293b",
    "light_text": "#94a3b8",
    "bg_primary": "#ffffff",
    "bg_secondary": "#f8fafc",
    "border": "#e2e8f0",
    "header_bg": "#004990",
}

DISTRIBUTION_PALETTE = [
    "#3b82f6", "#10b981", "#f97316", "#8b5cf6", "#ef4444",
    "#f59e0b", "#14b8a6", "#6366f1", "#d946ef", "#6b7280",
]

# Opacity of chart elements that are not the current selection
_DIMMED = 0.35

# chart component id -> (selection axis, key of its labels in the state store)
CHART_AXES = {
    "monthly_chart": (MONTH, "monthly"),
    "distribution_chart": (CATEGORY, "distribution"),
    "top_chart": (CATEGORY, "top"),
}

TABLE_COLUMNS = ["Date", "Description", "Category", "Income", "Expense", "MonthKey"]


# ======================================================
# FORMATTING
# ======================================================

def _format_currency(value: float, show_sign: bool = False) -> str:
    """Format a currency value with an optional sign prefix."""
    if show_sign and value > 0:
        return f"+{CURRENCY_SYMBOL}{value:,.2f}"
    if value < 0:
        return f"-{CURRENCY_SYMBOL}{abs(value):,.2f}"
    return f"{CURRENCY_SYMBOL}{value:,.2f}"


def _kpi_tile(label: str, value: str, color: str, tile_id: str) -> html.Div:
    return html.Div(
        [
            html.Div(label, style={
                "fontSize": "12px",
                "color": COLORS["neutral_gray"],
                "marginBottom": "8px",
                "textTransform": "uppercase",
                "letterSpacing": "0.5px",
            }),
            html.Div(value, id=tile_id, style={
                "fontSize": "24px",
                "fontWeight": "600",
                "color": color,
            }),
        ],
        className="kpi-tile",
        style={
            "backgroundColor": COLORS["bg_primary"],
            "padding": "16px",
            "borderRadius": "8px",
            "border": f"1px solid {COLORS['border']}",
            "flex": "1",
        },
    )


def _summary_cards(totals: Totals) -> html.Div:
    net_color = COLORS["positive_green"] if totals.net >= 0 else COLORS["negative_red"]
    return html.Div(
        [
            _kpi_tile("Total Income", _format_currency(totals.income), COLORS["positive_green"], "kpi_income"),
            _kpi_tile("Total Expenses", _format_currency(totals.expenses), COLORS["negative_red"], "kpi_expenses"),
            _kpi_tile("Net Balance", _format_currency(totals.net, show_sign=True), net_color, "kpi_net"),
            _kpi_tile("Transactions", f"{totals.count:,}", COLORS["dark_text"], "kpi_count"),
        ],
        style={"display": "flex", "gap": "16px"},
    )


def _base_layout(fig: go.Figure, title: str) -> go.Figure:
    fig.update_layout(
        title=dict(text=title, font=dict(size=14, color=COLORS["dark_text"])),
        font=dict(family=FIG_FONT, size=12, color=COLORS["dark_text"]),
        plot_bgcolor=COLORS["bg_primary"],
        paper_bgcolor=COLORS["bg_primary"],
        margin=dict(t=60, b=40, l=60, r=30),
        clickmode="event",
    )
    return fig


def _empty_figure(title: str) -> go.Figure:
    fig = go.Figure()
    fig.update_layout(
        annotations=[dict(text="No transactions match the current filters", x=0.5, y=0.5,
                          xref="paper", yref="paper", showarrow=False)],
        xaxis=dict(visible=False),
        yaxis=dict(visible=False),
    )
    return _base_layout(fig, title)


def _opacities(labels: List[str], selected: Optional[str]) -> List[float]:
    if selected is None or selected not in labels:
        return [1.0] * len(labels)
    return [1.0 if label == selected else _DIMMED for label in labels]


# ======================================================
# FIGURES
# ======================================================

def build_monthly_figure(aggs: Aggregates, selected_month: Optional[str]) -> go.Figure:
    """Grouped income vs expense bars per month; the selected month stays opaque."""
    title = "Monthly Income vs Expenses"
    if not aggs.monthly:
        return _empty_figure(title)

    labels = aggs.month_labels
    opacity = _opacities(labels, selected_month)
    fig = go.Figure()
    fig.add_trace(go.Bar(
        x=labels,
        y=[m.income for m in aggs.monthly],
        name="Income",
        marker=dict(color=COLORS["positive_green"], opacity=opacity),
    ))
    fig.add_trace(go.Bar(
        x=labels,
        y=[m.expense for m in aggs.monthly],
        name="Expenses",
        marker=dict(color=COLORS["negative_red"], opacity=opacity),
    ))
    fig.update_layout(barmode="group", legend=dict(orientation="h", yanchor="bottom", y=1.02, xanchor="right", x=1))
    fig.update_xaxes(type="category", gridcolor=COLORS["border"])
    fig.update_yaxes(gridcolor=COLORS["border"], tickprefix=CURRENCY_SYMBOL, tickformat=",.0f", rangemode="tozero")
    return _base_layout(fig, title)


def build_distribution_figure(aggs: Aggregates, selected_category: Optional[str]) -> go.Figure:
    """Donut of the capped distribution; the selected slice is pulled out."""
    title = "Expense Distribution"
    if not aggs.distribution:
        return _empty_figure(title)

    labels = aggs.distribution_labels
    pull = [0.08 if label == selected_category else 0 for label in labels]
    fig = go.Figure(go.Pie(
        labels=labels,
        values=[c.total_expense for c in aggs.distribution],
        hole=0.45,
        sort=False,
        direction="clockwise",
        pull=pull,
        marker=dict(colors=DISTRIBUTION_PALETTE[: len(labels)]),
        hovertemplate="%{label}: " + CURRENCY_SYMBOL + "%{value:,.2f} (%{percent})<extra></extra>",
    ))
    fig.update_layout(legend=dict(orientation="h", yanchor="top", y=-0.05))
    return _base_layout(fig, title)


def build_top_expenses_figure(aggs: Aggregates, selected_category: Optional[str]) -> go.Figure:
    """Horizontal bars of the top categories, largest on top."""
    title = f"Top {len(aggs.top_expenses)} Expense Categories" if aggs.top_expenses else "Top Expense Categories"
    if not aggs.top_expenses:
        return _empty_figure(title)

    labels = aggs.top_labels
    values = [c.total_expense for c in aggs.top_expenses]
    fig = go.Figure(go.Bar(
        x=values,
        y=labels,
        orientation="h",
        marker=dict(color=DISTRIBUTION_PALETTE[: len(labels)], opacity=_opacities(labels, selected_category)),
        text=[_format_currency(v) for v in values],
        textposition="outside",
    ))
    # reversed axis keeps trace order == ranking order, so click indexes map to labels
    fig.update_yaxes(autorange="reversed", type="category", gridcolor=COLORS["border"])
    fig.update_xaxes(gridcolor=COLORS["border"], tickprefix=CURRENCY_SYMBOL, tickformat=",.0f", rangemode="tozero")
    fig.update_layout(showlegend=False, margin=dict(l=150))
    return _base_layout(fig, title)


# ======================================================
# TABLES
# ======================================================

def table_records(snapshot: Snapshot) -> List[dict]:
    d = records_for_table(snapshot.records)
    out = pd.DataFrame(index=d.index)
    out["Date"] = d["Date"].dt.strftime("%Y-%m-%d").fillna("N/A")
    out["Description"] = d["Description"].where(d["Description"].ne(""), NO_DESCRIPTION)
    out["Category"] = d["Category"].where(d["Category"].ne(""), UNCATEGORIZED)
    out["Income"] = d["Income"].round(2)
    out["Expense"] = d["Expense"].round(2)
    out["MonthKey"] = d["MonthKey"]
    return out[TABLE_COLUMNS].to_dict("records")


def category_table_records(snapshot: Snapshot) -> List[dict]:
    summary = category_summary(snapshot.records)
    summary["Total_Expense"] = summary["Total_Expense"].round(2)
    return summary.to_dict("records")


# ======================================================
# EVENT HANDLING
# ======================================================

def initial_state() -> dict:
    return {
        "filters": FilterState().to_dict(),
        "selection": SelectionState().to_dict(),
        "labels": {"monthly": [], "distribution": [], "top": [], "bucket": None},
    }


def _clicked_index(click_data: Optional[dict]) -> Optional[int]:
    if not click_data or not click_data.get("points"):
        return None
    point = click_data["points"][0]
    index = point.get("pointIndex", point.get("pointNumber"))
    return int(index) if index is not None else None


def handle_filter_event(
    store: RecordStore,
    saved: Optional[dict],
    trigger: Optional[str],
    month: Optional[str] = None,
    category: Optional[str] = None,
    search: Optional[str] = None,
    click_data: Optional[dict] = None,
) -> Tuple[dict, Snapshot]:
    """
    Apply one input event to the saved session state and run the pipeline.

    ``trigger`` is the id of the component that fired; ``click_data`` is the
    clickData of that component when it is a chart. Returns the new state to
    save and the snapshot every output is rendered from.
    """
    saved = saved or initial_state()
    coordinator = PipelineCoordinator(
        store,
        filters=FilterState.from_dict(saved.get("filters")),
        selection=SelectionState.from_dict(saved.get("selection")),
    )

    if trigger == "month_filter":
        coordinator.set_month(month)
    elif trigger == "category_filter":
        coordinator.set_category(category)
    elif trigger == "search_text":
        coordinator.set_search(search)
    elif trigger in CHART_AXES:
        axis, labels_key = CHART_AXES[trigger]
        saved_labels = saved.get("labels") or {}
        bucket = saved_labels.get("bucket") if labels_key == "distribution" else None
        coordinator.click(axis, _clicked_index(click_data), saved_labels.get(labels_key) or [], bucket)
    elif trigger == "clear_filters":
        coordinator.clear_filters()

    # Ignored clicks leave no snapshot behind; every path renders one.
    snapshot = coordinator.last_snapshot or coordinator.recompute()
    aggs = snapshot.aggregates
    new_state = {
        "filters": snapshot.filters.to_dict(),
        "selection": snapshot.selection.to_dict(),
        "labels": {
            "monthly": aggs.month_labels,
            "distribution": aggs.distribution_labels,
            "top": aggs.top_labels,
            "bucket": aggs.bucket_index,
        },
    }
    return new_state, snapshot


def _quality_banner(quality: dict) -> html.Div | str:
    flagged = {k: v for k, v in quality.items() if k != "rows" and v}
    if not flagged:
        return ""
    qtxt = ", ".join(f"{k}={v}" for k, v in flagged.items())
    return html.Div(
        ["Data quality: ", html.Code(qtxt), f" (of {quality.get('rows', 0)} rows; defaults applied)"],
        style={
            "border": "1px solid #ddd",
            "padding": "8px 10px",
            "backgroundColor": "#fafafa",
            "color": "#8a4b08",
            "fontSize": "12px",
        },
    )


def _error_panel(message: str) -> html.Div:
    return html.Div(
        [
            html.P("Could not load the transaction data.", style={"color": COLORS["negative_red"], "fontWeight": "600"}),
            html.P(message, style={"color": COLORS["neutral_gray"], "fontSize": "13px"}),
            html.P(
                "Check DASHBOARD_SOURCE and your connection, then reload the page to try again.",
                style={"color": COLORS["light_text"], "fontSize": "12px"},
            ),
        ],
        style={"textAlign": "center", "padding": "40px 20px"},
    )


class DatasetCache:
    """
    Normalized record stores kept on the server, keyed by page load.

    The browser only holds the key, so filter events neither ship the raw rows
    back nor re-normalize them. Oldest loads are evicted past ``limit``.
    """

    def __init__(self, limit: int = 8):
        self._limit = limit
        self._stores: "OrderedDict[str, RecordStore]" = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._stores)

    def put(self, store: RecordStore, key: Optional[str] = None) -> str:
        key = key or uuid.uuid4().hex
        with self._lock:
            self._stores[key] = store
            self._stores.move_to_end(key)
            while len(self._stores) > self._limit:
                evicted, _ = self._stores.popitem(last=False)
                logger.debug("Evicted cached dataset %s", evicted)
        return key

    def get(self, key: Optional[str]) -> Optional[RecordStore]:
        if not key:
            return None
        with self._lock:
            store = self._stores.get(key)
            if store is not None:
                self._stores.move_to_end(key)
            return store


def category_dropdown_options(store: RecordStore) -> List[dict]:
    options = [{"label": "All categories", "value": ALL}]
    categories = store.category_options()
    options += [{"label": c, "value": c} for c in categories]
    # blank categories are charted as "Uncategorized" and can be picked the same way
    if UNCATEGORIZED not in categories and store.records["Category"].eq("").any():
        options.append({"label": UNCATEGORIZED, "value": UNCATEGORIZED})
    return options


# ======================================================
# APP
# ======================================================

def build_app(
    load_rows: Callable[[], List[dict]],
    search_debounce: float = 0.3,
    datasets: Optional[DatasetCache] = None,
) -> Dash:
    """
    Build the Dash app.

    ``load_rows`` is called once per page load to fetch the raw rows; it may
    raise SourceError, which is shown to the user instead of the dashboard.
    The normalized rows live in ``datasets``; the page only keeps their key.
    """
    datasets = datasets if datasets is not None else DatasetCache()

    def store_for(key: str) -> RecordStore:
        store = datasets.get(key)
        if store is None:
            logger.warning("Dataset %s is no longer cached; fetching it again", key)
            store = RecordStore.from_rows(load_rows())
            datasets.put(store, key=key)
        return store

    assets_path = Path(__file__).resolve().parent / "assets"

    app = Dash(
        __name__,
        external_stylesheets=[INTER_STYLESHEET],
        assets_folder=str(assets_path),
        suppress_callback_exceptions=False,
    )
    app.title = "Transactions Dashboard"

    label_style = {"fontWeight": "600", "color": COLORS["dark_text"], "fontSize": "12px", "marginBottom": "6px"}
    graph_config = {"responsive": True, "displayModeBar": False}

    app.layout = html.Div(
        [
            dcc.Location(id="url"),

            # ===== HEADER =====
            html.Div([
                html.Div([
                    html.H1("Transactions Dashboard", style={
                        "color": COLORS["bg_primary"],
                        "fontSize": "24px",
                        "fontWeight": "700",
                        "margin": "0",
                    }),
                    html.Div("Income & expenses • click a chart to filter", style={
                        "color": COLORS["light_text"],
                        "fontSize": "12px",
                        "marginTop": "4px",
                    }),
                ], style={"flex": "1"}),
            ], style={
                "backgroundColor": COLORS["header_bg"],
                "padding": "16px 24px",
                "display": "flex",
                "alignItems": "center",
            }),

            html.Div(id="quality_banner"),
            dcc.Store(id="dataset_store"),
            dcc.Store(id="state_store", data=initial_state()),
            dcc.Download(id="export_download"),

            # ===== LOADING / ERROR =====
            dcc.Loading(
                html.Div(
                    html.P("Loading transactions…", style={"color": COLORS["neutral_gray"], "textAlign": "center", "padding": "40px"}),
                    id="loading_container",
                ),
                type="circle",
            ),

            html.Div([
                # ===== FILTER PANEL =====
                html.Div([
                    html.Div([
                        html.Label("Month", style=label_style),
                        dcc.Dropdown(
                            id="month_filter",
                            options=[{"label": "All months", "value": ALL}],
                            value=ALL,
                            clearable=False,
                            disabled=True,
                            style={"fontSize": "12px"},
                        ),
                    ], style={"marginBottom": "16px"}),

                    html.Div([
                        html.Label("Category", style=label_style),
                        dcc.Dropdown(
                            id="category_filter",
                            options=[{"label": "All categories", "value": ALL}],
                            value=ALL,
                            clearable=False,
                            disabled=True,
                            style={"fontSize": "12px"},
                        ),
                    ], style={"marginBottom": "16px"}),

                    html.Div([
                        html.Label("Search", style=label_style),
                        dcc.Input(
                            id="search_text",
                            type="text",
                            value="",
                            placeholder="Description, category, month, amount…",
                            debounce=search_debounce,
                            disabled=True,
                            style={"width": "100%", "fontSize": "11px", "padding": "6px"},
                        ),
                    ], style={"marginBottom": "16px"}),

                    html.Button("Clear filters", id="clear_filters", n_clicks=0, disabled=True,
                                style={"width": "100%", "marginBottom": "8px"}),
                    html.Button("Export CSV", id="export_csv", n_clicks=0, disabled=True,
                                style={"width": "100%"}),
                ], className="sidebar"),

                # ===== MAIN AREA =====
                html.Div([
                    html.Div(id="kpi_tiles", style={"marginBottom": "24px"}),

                    html.Div([
                        dcc.Graph(id="monthly_chart", style={"height": "360px", "width": "100%"}, config=graph_config),
                    ], className="card-chart"),

                    html.Div([
                        html.Div([
                            dcc.Graph(id="distribution_chart", style={"height": "380px", "width": "100%"}, config=graph_config),
                        ], className="card-chart"),
                        html.Div([
                            dcc.Graph(id="top_chart", style={"height": "380px", "width": "100%"}, config=graph_config),
                        ], className="card-chart"),
                    ], className="chart-row"),

                    html.Div([
                        html.H3("Expenses by Category", className="section-heading"),
                        dash_table.DataTable(
                            id="category_table",
                            columns=[
                                {"name": "Category", "id": "Category"},
                                {"name": "Total Spent", "id": "Total_Expense", "type": "numeric"},
                                {"name": "%", "id": "Percentage", "type": "numeric"},
                            ],
                            page_size=15,
                            style_cell={"fontFamily": FONT_STACK, "fontSize": "11px", "padding": "8px", "textAlign": "left"},
                            style_header={"fontWeight": "600", "backgroundColor": COLORS["bg_secondary"]},
                        ),
                    ], className="card"),

                    html.Div([
                        html.H3("Transactions", className="section-heading"),
                        dash_table.DataTable(
                            id="tx_table",
                            columns=[{"name": c, "id": c} for c in TABLE_COLUMNS],
                            page_size=25,
                            sort_action="native",
                            style_table={"overflowX": "auto"},
                            style_cell={"fontFamily": FONT_STACK, "fontSize": "11px", "padding": "8px", "textAlign": "left"},
                            style_header={
                                "fontWeight": "600",
                                "backgroundColor": COLORS["bg_secondary"],
                                "borderBottom": f"2px solid {COLORS['border']}",
                            },
                            style_data_conditional=[
                                {"if": {"row_index": "odd"}, "backgroundColor": COLORS["bg_secondary"]},
                            ],
                        ),
                    ], className="card"),
                ], className="main-content"),
            ], id="dashboard_body", className="app-shell", style={"display": "none"}),
        ],
        style={
            "fontFamily": FONT_STACK,
            "backgroundColor": COLORS["bg_secondary"],
            "margin": "0",
            "padding": "0",
            "minHeight": "100vh",
        },
    )

    # ---------- initial load ----------
    @app.callback(
        Output("dataset_store", "data"),
        Output("loading_container", "children"),
        Output("dashboard_body", "style"),
        Output("quality_banner", "children"),
        Output("month_filter", "options"),
        Output("category_filter", "options"),
        Output("month_filter", "disabled"),
        Output("category_filter", "disabled"),
        Output("search_text", "disabled"),
        Output("clear_filters", "disabled"),
        Output("export_csv", "disabled"),
        Input("url", "pathname"),
    )
    def load_dataset(_pathname):
        try:
            rows = load_rows()
        except SourceError as e:
            logger.error("Dashboard initialization failed: %s", e)
            disabled = (True,) * 5
            return (None, _error_panel(str(e)), {"display": "none"}, "", no_update, no_update) + disabled

        store = RecordStore.from_rows(rows)
        quality = store.quality()
        logger.info("Loaded %d transactions (%s)", len(store), quality)

        month_options = [{"label": "All months", "value": ALL}] + [{"label": m, "value": m} for m in store.month_options()]
        enabled = (False,) * 5
        key = datasets.put(store)
        return (key, "", {"display": "flex"}, _quality_banner(quality), month_options, category_dropdown_options(store)) + enabled

    # ---------- filters, selection, charts ----------
    @app.callback(
        Output("state_store", "data"),
        Output("month_filter", "value"),
        Output("category_filter", "value"),
        Output("kpi_tiles", "children"),
        Output("monthly_chart", "figure"),
        Output("distribution_chart", "figure"),
        Output("top_chart", "figure"),
        Output("category_table", "data"),
        Output("tx_table", "data"),
        Output("monthly_chart", "clickData"),
        Output("distribution_chart", "clickData"),
        Output("top_chart", "clickData"),
        Input("dataset_store", "data"),
        Input("month_filter", "value"),
        Input("category_filter", "value"),
        Input("search_text", "value"),
        Input("monthly_chart", "clickData"),
        Input("distribution_chart", "clickData"),
        Input("top_chart", "clickData"),
        Input("clear_filters", "n_clicks"),
        State("state_store", "data"),
    )
    def run_pipeline(dataset_key, month, category, search, monthly_click, distribution_click, top_click, _clear, saved):
        if not dataset_key:
            raise PreventUpdate

        trigger = ctx.triggered_id
        clicks = {
            "monthly_chart": monthly_click,
            "distribution_chart": distribution_click,
            "top_chart": top_click,
        }
        if trigger in clicks and not clicks[trigger]:
            # our own reset of clickData to None
            raise PreventUpdate

        new_state, snapshot = handle_filter_event(
            store_for(dataset_key),
            saved,
            trigger,
            month=month,
            category=category,
            search=search,
            click_data=clicks.get(trigger),
        )
        selection = snapshot.selection
        aggs = snapshot.aggregates

        return (
            new_state,
            snapshot.filters.month,
            snapshot.filters.category,
            _summary_cards(snapshot.totals),
            build_monthly_figure(aggs, selection.selected_month),
            build_distribution_figure(aggs, selection.selected_category),
            build_top_expenses_figure(aggs, selection.selected_category),
            category_table_records(snapshot),
            table_records(snapshot),
            None,
            None,
            None,
        )

    # ---------- export ----------
    @app.callback(
        Output("export_download", "data"),
        Input("export_csv", "n_clicks"),
        State("dataset_store", "data"),
        State("state_store", "data"),
        prevent_initial_call=True,
    )
    def export_csv(n_clicks, dataset_key, saved):
        if not n_clicks or not dataset_key:
            raise PreventUpdate
        _, snapshot = handle_filter_event(store_for(dataset_key), saved, None)
        logger.info("Exporting %d filtered transactions", snapshot.totals.count)
        return dcc.send_string(to_csv_text(snapshot.records), "transactions.csv")

    return app


def main():
    load_env_file(Path(__file__).resolve().parent)
    settings = load_settings()
    configure_logging(settings.log_level)

    def load_rows() -> List[dict]:
        return fetch_rows(settings.source, timeout=settings.fetch_timeout)

    app = build_app(load_rows, search_debounce=settings.search_debounce_seconds)
    logger.info("Serving dashboard on http://%s:%d (source: %s)", settings.host, settings.port, settings.source)
    app.run(debug=False, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
