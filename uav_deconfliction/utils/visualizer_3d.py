import numpy as np
import plotly.graph_objects as go
from typing import List, Optional, Sequence

from uav_deconfliction.utils.conflict_checker import Conflict
from uav_deconfliction.utils.input_loader import Mission, Trajectory
from uav_deconfliction.utils.interpolation import interpolate_position
from uav_deconfliction.utils.time_utils import format_time, get_time_bounds

PRIMARY_COLOR = '#0080FF'
OTHER_COLOR = '#FF0000'
CONFLICT_COLOR = '#FFD700'


def _scene(title: str, height: int = 700) -> dict:
    return dict(
        title=title,
        scene=dict(
            xaxis_title='X Position (m)',
            yaxis_title='Y Position (m)',
            zaxis_title='Altitude (m)',
            camera=dict(eye=dict(x=1.5, y=1.5, z=0.8))
        ),
        height=height,
        margin=dict(l=0, r=0, t=50, b=0)
    )


def _path_trace(trajectory: Trajectory, color: str, width: int, show_scale: bool) -> go.Scatter3d:
    times = [wp.t for wp in trajectory.waypoints]
    marker = dict(size=4, color=times, colorscale='Viridis', showscale=show_scale)
    if show_scale:
        marker['colorbar'] = dict(title='Time (s)')
    return go.Scatter3d(
        x=[wp.x for wp in trajectory.waypoints],
        y=[wp.y for wp in trajectory.waypoints],
        z=[wp.z for wp in trajectory.waypoints],
        mode='lines+markers',
        line=dict(color=color, width=width),
        marker=marker,
        text=[format_time(t) for t in times],
        name=trajectory.drone_id
    )


def _conflict_trace(conflicts: Sequence[Conflict]) -> go.Scatter3d:
    return go.Scatter3d(
        x=[c.location[0] for c in conflicts],
        y=[c.location[1] for c in conflicts],
        z=[c.location[2] for c in conflicts],
        mode='markers',
        marker=dict(size=8, color=CONFLICT_COLOR, symbol='x'),
        text=[f"{c.drone1} vs {c.drone2}: {c.distance:.1f}m at {format_time(c.time)}" for c in conflicts],
        name='Conflicts'
    )


def visualize_4d(mission: Mission, conflicts: Optional[Sequence[Conflict]] = None) -> go.Figure:
    """3D paths of the mission with waypoint color showing time, plus conflict markers."""
    fig = go.Figure()
    fig.add_trace(_path_trace(mission.primary, PRIMARY_COLOR, 4, show_scale=True))
    for other in mission.others:
        fig.add_trace(_path_trace(other, OTHER_COLOR, 2, show_scale=False))
    if conflicts:
        fig.add_trace(_conflict_trace(conflicts))

    fig.update_layout(**_scene("4D UAV Trajectories (Color Represents Time)"))
    return fig


def _position_traces(mission: Mission, current_time: float,
                     conflicts: Sequence[Conflict], window: float) -> List[go.Scatter3d]:
    traces = []
    for trajectory in (mission.primary,) + mission.others:
        color = PRIMARY_COLOR if trajectory is mission.primary else OTHER_COLOR
        active = trajectory.start_time <= current_time <= trajectory.end_time
        x, y, z = interpolate_position(trajectory, current_time)
        traces.append(go.Scatter3d(
            x=[x], y=[y], z=[z],
            mode='markers+text',
            marker=dict(size=8 if active else 4, color=color, symbol='diamond',
                        opacity=1.0 if active else 0.3),
            text=[trajectory.drone_id],
            textposition='top center',
            name=trajectory.drone_id
        ))

    nearby = [c for c in conflicts if abs(c.time - current_time) < window]
    traces.append(_conflict_trace(nearby))
    return traces


def positions_figure_at_time(mission: Mission, current_time: float,
                             conflicts: Optional[Sequence[Conflict]] = None,
                             window: float = 5.0) -> go.Figure:
    """
    Snapshot of every drone's interpolated position at ``current_time``.

    Drones outside their own time span are drawn faded at their clamped position.
    Conflicts within ``window`` seconds of the snapshot are highlighted.
    """
    fig = go.Figure(data=_position_traces(mission, current_time, conflicts or [], window))
    fig.update_layout(**_scene(f"UAV Positions at t={format_time(current_time)}"))
    return fig


def animate_mission(mission: Mission, conflicts: Optional[Sequence[Conflict]] = None,
                    frame_step: float = 5.0) -> go.Figure:
    """Animated version of positions_figure_at_time over the mission's whole time span."""
    conflicts = conflicts or []
    start, end = get_time_bounds((mission.primary,) + mission.others)
    frame_times = np.arange(start, end + frame_step, frame_step)

    frames = [
        go.Frame(data=_position_traces(mission, float(t), conflicts, frame_step), name=f"{t:.1f}")
        for t in frame_times
    ]

    fig = go.Figure(data=frames[0].data, frames=frames)
    fig.update_layout(
        **_scene("UAV Positions"),
        updatemenus=[dict(
            type='buttons',
            buttons=[
                dict(label='Play', method='animate',
                     args=[None, dict(frame=dict(duration=200, redraw=True), fromcurrent=True)]),
                dict(label='Pause', method='animate',
                     args=[[None], dict(frame=dict(duration=0, redraw=False), mode='immediate')])
            ]
        )],
        sliders=[dict(
            steps=[dict(method='animate', label=frame.name,
                        args=[[frame.name], dict(mode='immediate', frame=dict(duration=0, redraw=True))])
                   for frame in frames]
        )]
    )
    return fig
