"""
Web application for train synchronization traffic analysis

Interactive dashboard to visualize packet traffic and viewer drift per train length.
"""

from typing import Any, Dict, List

import dash
from dash import dcc, html, Input, Output, State
from dash.exceptions import PreventUpdate
import numpy as np
import plotly.express as px
import plotly.graph_objs as go

from railsync import PhysicsParams, run_train_length_analysis

LOOP_WIDTH = 24
MAX_TRAIN_LENGTH = LOOP_WIDTH - 3

LABEL_STYLE = {'fontWeight': 'bold', 'display': 'block', 'marginTop': '20px', 'marginBottom': '8px'}


def control(label: str, component: Any) -> html.Div:
    """Labelled control in the sidebar"""
    return html.Div([html.Label(label, style=LABEL_STYLE), component])


# Initialize Dash app
app = dash.Dash(__name__)
app.title = "Train Synchronization Traffic Analysis"

sidebar = html.Div([
    html.H3("Run", style={'marginTop': '0'}),
    control(
        "Train lengths (carts)",
        dcc.Dropdown(
            id='lengths-dropdown',
            options=[{'label': f"{n} carts", 'value': n} for n in range(1, MAX_TRAIN_LENGTH + 1)],
            value=[1, 3, 6, 10],
            multi=True,
        ),
    ),
    control(
        "Ticks (20 ticks = 1 s)",
        dcc.Slider(id='ticks-slider', min=100, max=2000, step=100, value=400,
                   marks={t: str(t) for t in (100, 500, 1000, 1500, 2000)}),
    ),
    control(
        "Train speed (blocks/tick)",
        dcc.Slider(id='speed-slider', min=0.05, max=PhysicsParams().max_speed, step=0.05, value=0.3,
                   marks={0.1: '0.1', 0.2: '0.2', 0.3: '0.3', 0.4: '0.4'}),
    ),
    control(
        "Observer distance from track (blocks)",
        dcc.Slider(id='distance-slider', min=0, max=40, step=2, value=8,
                   marks={0: '0', 16: 'sound', 40: '40'}),
    ),
    html.Button('Simulate', id='run-button', n_clicks=0,
                style={'width': '100%', 'marginTop': '30px', 'padding': '10px', 'fontSize': '16px'}),
    html.Div(id='status-message', style={'marginTop': '15px', 'fontSize': '14px'}),
], style={'width': '24%', 'display': 'inline-block', 'verticalAlign': 'top', 'padding': '20px',
          'backgroundColor': '#f5f5f5', 'borderRadius': '10px', 'boxSizing': 'border-box'})

# Define app layout
app.layout = html.Div([
    html.H1("Train Synchronization Traffic Analysis", style={'marginBottom': '10px'}),
    html.P(f"A train runs around a {LOOP_WIDTH} x 12 block loop while one observer watches from the north side. "
           "Each run records the packets sent to the observer and how far its view lags behind the train."),
    html.Div([
        sidebar,
        html.Div(
            dcc.Loading(id="loading", type="default", children=[html.Div(id='results-container')]),
            style={'width': '74%', 'display': 'inline-block', 'verticalAlign': 'top', 'paddingLeft': '2%',
                   'boxSizing': 'border-box'},
        ),
    ]),
], style={'maxWidth': '1400px', 'margin': '0 auto', 'padding': '20px'})


@app.callback(
    [Output("results-container", "children"), Output("status-message", "children")],
    [Input("run-button", "n_clicks")],
    [
        State("lengths-dropdown", "value"),
        State("ticks-slider", "value"),
        State("speed-slider", "value"),
        State("distance-slider", "value"),
    ],
)
def update_results(
    n_clicks: int, lengths: List[int] | None, ticks: int, speed: float, viewer_distance: float
) -> tuple[Any, Any]:
    """Run simulation and update results"""
    if not n_clicks:
        raise PreventUpdate

    if not lengths:
        return [], html.Div("Select at least one train length.", style={"color": "red"})

    lengths = sorted(lengths)
    try:
        results = run_train_length_analysis(
            lengths, ticks=int(ticks), viewer_distance=float(viewer_distance), speed=float(speed)
        )
    except ValueError as e:
        return [], html.Div(f"Error: {e}", style={"color": "red"})

    status_msg = html.Div(
        f"Simulated {len(lengths)} trains for {int(ticks)} ticks.",
        style={"color": "green"},
    )
    return create_results_layout(results, lengths), status_msg


def create_results_layout(
    results: Dict[int, Dict[str, Any]], lengths: List[int]
) -> html.Div:
    """Create the results visualization layout"""
    colors = px.colors.qualitative.Set1

    # 1. Packets per tick over time
    fig1 = go.Figure()
    for i, length in enumerate(lengths):
        t = results[length]["time"]
        per_tick = results[length]["traffic"].sum(axis=1)
        fig1.add_trace(
            go.Scatter(
                x=t,
                y=per_tick,
                mode="lines",
                name=f"{length} carts",
                line=dict(color=colors[i % len(colors)], width=2),
                hovertemplate=f"Length: {length}<br>Tick: %{{x}}<br>Packets: %{{y}}<extra></extra>",
            )
        )

    fig1.update_layout(
        title="Packets Per Tick",
        xaxis_title="Tick",
        yaxis_title="Packets",
        hovermode="closest",
        height=400,
        template="plotly_white",
    )

    # 2. Worst live-to-synchronized drift over time
    fig2 = go.Figure()
    for i, length in enumerate(lengths):
        t = results[length]["time"]
        drift = results[length]["drift"]
        fig2.add_trace(
            go.Scatter(
                x=t,
                y=np.max(drift, axis=1),
                mode="lines",
                name=f"{length} carts",
                line=dict(color=colors[i % len(colors)], width=2),
                hovertemplate=f"Length: {length}<br>Tick: %{{x}}<br>Drift: %{{y:.3f}} blocks<extra></extra>",
            )
        )

    fig2.update_layout(
        title="Viewer Drift (worst cart)",
        xaxis_title="Tick",
        yaxis_title="Drift (blocks)",
        hovermode="closest",
        height=400,
        template="plotly_white",
    )

    # 3. Packet mix per train length
    fig3 = go.Figure()
    labels = [f"{length} carts" for length in lengths]
    for kind in ("absolute", "relative", "velocity", "metadata"):
        fig3.add_trace(
            go.Bar(
                x=labels,
                y=[results[length]["analysis"][f"{kind}_packets"] for length in lengths],
                name=kind,
            )
        )

    fig3.update_layout(
        title="Packet Mix by Train Length",
        xaxis_title="Train Length",
        yaxis_title="Packets",
        barmode="stack",
        height=400,
        template="plotly_white",
    )

    # 4. Bandwidth per train length
    bytes_per_tick = [results[length]["analysis"]["bytes_per_tick_mean"] for length in lengths]
    colors_bar = ["red" if results[length]["analysis"]["over_budget"] else "green" for length in lengths]
    fig4 = go.Figure()
    fig4.add_trace(
        go.Bar(
            x=labels,
            y=bytes_per_tick,
            marker_color=colors_bar,
            text=[f"{b:.0f} B" for b in bytes_per_tick],
            textposition="outside",
            hovertemplate="Length: %{x}<br>Bytes/tick: %{y:.1f}<extra></extra>",
        )
    )

    fig4.update_layout(
        title="Mean Bandwidth by Train Length",
        xaxis_title="Train Length",
        yaxis_title="Bytes per Tick",
        height=400,
        template="plotly_white",
    )

    # Summary table
    table_rows = [
        html.Tr([
            html.Th("Carts"),
            html.Th("Packets"),
            html.Th("Packets/Tick (max)"),
            html.Th("Absolute Share"),
            html.Th("Max Drift (blocks)"),
            html.Th("Absolute Interval OK"),
        ])
    ]
    for length in lengths:
        analysis = results[length]["analysis"]
        ok_color = "green" if analysis["absolute_interval_ok"] else "red"
        table_rows.append(
            html.Tr([
                html.Td(length),
                html.Td(analysis["total_packets"]),
                html.Td(analysis["packets_per_tick_max"]),
                html.Td(f"{analysis['absolute_share'] * 100:.1f}%"),
                html.Td(f"{analysis['drift_max']:.3f}"),
                html.Td(
                    "Yes" if analysis["absolute_interval_ok"] else "No",
                    style={"color": ok_color, "fontWeight": "bold"},
                ),
            ])
        )

    return html.Div([
        html.H2("Simulation Results", style={"marginTop": "30px", "marginBottom": "20px"}),
        html.Div([
            html.H3("Summary Table", style={"marginBottom": "15px"}),
            html.Table(
                table_rows,
                style={
                    "width": "100%",
                    "borderCollapse": "collapse",
                    "marginBottom": "30px",
                    "fontSize": "14px",
                },
            ),
        ], style={"marginBottom": "30px"}),
        html.Div([
            html.Div([dcc.Graph(figure=fig1)], style={"marginBottom": "30px"}),
            html.Div([dcc.Graph(figure=fig2)], style={"marginBottom": "30px"}),
            html.Div([
                html.Div(
                    [dcc.Graph(figure=fig3)],
                    style={"width": "48%", "display": "inline-block", "marginRight": "2%"},
                ),
                html.Div(
                    [dcc.Graph(figure=fig4)],
                    style={"width": "48%", "display": "inline-block"},
                ),
            ], style={"marginBottom": "30px"}),
        ]),
    ])


if __name__ == "__main__":
    app.run(debug=True, port=8050)
