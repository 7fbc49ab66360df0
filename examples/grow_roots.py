from dataclasses import dataclass

import pyvista as pv

import sproutmesh as sm
from sproutmesh.parameters import GrowthParameters
from sproutmesh.scene import buffer_to_polydata, skeleton_polydata


@dataclass
class RootParameters(GrowthParameters):
    """Settings for a dense root system viewed in real time.

    Attributes:
        tick (float): Milliseconds simulated per timer event.
        max_ticks (int): Number of timer events before the animation stops.
    """

    max_depth: int = 8
    segment_depth: int = 2
    starting_branches: int = 5
    max_children: int = 2
    new_branch_rate: float = 60.0
    radial_segments: int = 12
    tick: float = 16.0
    max_ticks: int = 2000


params = RootParameters()
sm.seed(7)
system = sm.GrowthSystem(params)

plotter = pv.Plotter()
plotter.add_axes()


def on_tick(step):
    system.update(params.tick)
    merged = system.merged_mesh()
    if merged.triangle_count:
        plotter.add_mesh(
            buffer_to_polydata(merged),
            color="saddlebrown",
            name="roots",
            smooth_shading=True,
        )
    plotter.add_mesh(
        skeleton_polydata(system.scheduler.arena),
        color="black",
        line_width=1,
        name="skeleton",
    )
    if system.is_complete:
        plotter.add_text("Growth complete", font_size=10, name="status")


plotter.add_timer_event(
    max_steps=params.max_ticks, duration=int(params.tick), callback=on_tick
)
plotter.show()

print(
    f"Grew {len(system.branches)} branches: "
    f"{system.vertex_count} vertices, {system.triangle_count} triangles"
)
