"""The sproutmesh package grows branching structures and meshes them as tubes.

This package offers:
  - Time-driven, stochastic growth of roots and stems from a FIFO task queue.
  - Catmull-Rom curves with twist-free frames through each grown branch.
  - Tapered tube meshes produced incrementally so branches visibly grow.

Submodules:
  - branch: BranchSegment, DirectionSampler and BranchGenerator.
  - buffer: MeshBatch and MeshBuffer geometry containers.
  - config: RNG seeding, environment helpers and log level.
  - consumer: IncrementalMeshConsumer stepping a tube producer per tick.
  - decay: Radius decay policies.
  - errors: Exception types.
  - leaf: Cone-shaped leaf sprouts.
  - nodes: GrowthNode, GrowthTask and the NodeArena.
  - parameters: GrowthParameters container and validation.
  - scene: PolyData and meshio conversions for viewers.
  - scheduler: GrowthScheduler driving the growth queue.
  - spline: Curve fitting and frame sweeps.
  - system: GrowthSystem wiring growth to meshing.
  - tube: TubeMeshBuilder and TubeMeshProducer.

Classes:
  BranchGenerator, BranchSegment, Curve, GrowthScheduler, GrowthSystem,
  MeshBuffer, NodeArena, TubeMeshBuilder
"""

from .config import (
    config,
    configure,
    use,
    seed,
    rng,
    get_rng,
    set_log_level,
)

from sproutmesh.branch import BranchGenerator, BranchSegment, DirectionSampler
from sproutmesh.buffer import MeshBatch, MeshBuffer, merge_buffers
from sproutmesh.consumer import IncrementalMeshConsumer
from sproutmesh.decay import DecayMethod, RadiusDecay
from sproutmesh.errors import (
    EmptyRadiusProfile,
    InsufficientPointsError,
    InvalidConfiguration,
    SproutMeshError,
)
from sproutmesh.leaf import LeafParameters, LeafSprout, LeafSystem
from sproutmesh.nodes import GrowthNode, GrowthTask, NodeArena
from sproutmesh.parameters import GrowthParameters
from sproutmesh.scheduler import GrowthScheduler
from sproutmesh.scene import (
    buffer_to_meshio,
    buffer_to_polydata,
    polyline_to_polydata,
    skeleton_polydata,
)
from sproutmesh.spline import Curve, fit
from sproutmesh.system import BranchMesh, GrowthSystem
from sproutmesh.tube import TubeMeshBuilder, TubeMeshProducer, interpolate_radius

__all__ = [
    # Core classes
    "BranchGenerator",
    "BranchMesh",
    "BranchSegment",
    "Curve",
    "DecayMethod",
    "DirectionSampler",
    "GrowthNode",
    "GrowthParameters",
    "GrowthScheduler",
    "GrowthSystem",
    "GrowthTask",
    "IncrementalMeshConsumer",
    "LeafParameters",
    "LeafSprout",
    "LeafSystem",
    "MeshBatch",
    "MeshBuffer",
    "NodeArena",
    "RadiusDecay",
    "TubeMeshBuilder",
    "TubeMeshProducer",
    # Functions
    "fit",
    "interpolate_radius",
    "merge_buffers",
    "buffer_to_meshio",
    "buffer_to_polydata",
    "polyline_to_polydata",
    "skeleton_polydata",
    # Errors
    "EmptyRadiusProfile",
    "InsufficientPointsError",
    "InvalidConfiguration",
    "SproutMeshError",
    # Configuration
    "config",
    "configure",
    "use",
    "seed",
    "rng",
    "get_rng",
    "set_log_level",
]
