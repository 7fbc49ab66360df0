"""Module defining the Curve class: a Catmull-Rom spline through branch points.

The curve passes through every input point in order. Each span is a cubic
Hermite segment whose knot tangents are ``tension * (p[i+1] - p[i-1])`` on a
uniform knot vector, with the end neighbours extrapolated. Sampling by
arclength goes through a cumulative-length table, and orthonormal frames are
swept along the curve by rotating the previous normal onto each new tangent.
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional, Sequence, Tuple, Union

import numpy as np
from numpy.typing import NDArray
from scipy.interpolate import CubicHermiteSpline
from scipy.spatial.transform import Rotation

from .errors import InsufficientPointsError, InvalidConfiguration

_LOGGER = logging.getLogger(__name__)

DEFAULT_TENSION = 0.5
_EPS = 1e-12

Frame = Tuple[NDArray[np.float64], NDArray[np.float64], NDArray[np.float64]]


def perpendicular_unit(v: NDArray[Any]) -> NDArray[np.float64]:
    """Return a unit vector orthogonal to `v`, crossing with its weakest axis."""
    v = np.asarray(v, dtype=float)
    other = np.zeros(3)
    other[int(np.argmin(np.abs(v)))] = 1.0
    u = np.cross(v, other)
    n = float(np.linalg.norm(u))
    if n < _EPS:
        return np.array([1.0, 0.0, 0.0])
    return u / n


class Curve:
    """Smooth, read-only curve through an ordered point list.

    Attributes:
        points (NDArray[np.float64]): Control points, shape (n, 3).
        tension (float): Catmull-Rom tension (0 gives straight-ish spans).
        num_samples (int): Number of frames swept by :meth:`frame_at`.
        length (float): Approximate arclength of the curve.
    """

    def __init__(
        self,
        points: Union[NDArray[Any], Sequence[Sequence[float]]],
        tension: float = DEFAULT_TENSION,
        num_samples: Optional[int] = None,
        arc_divisions: int = 200,
    ) -> None:
        pts = np.array(points, dtype=float).reshape(-1, 3)
        if pts.shape[0] < 2:
            raise InsufficientPointsError(
                f"a curve needs at least 2 points; got {pts.shape[0]}"
            )
        if tension < 0:
            raise InvalidConfiguration(
                f"tension must be non-negative; got {tension}", field="tension"
            )

        pts.setflags(write=False)
        self.points = pts
        self.tension = float(tension)
        self.num_samples = int(num_samples) if num_samples is not None else pts.shape[0]
        if self.num_samples < 2:
            raise InvalidConfiguration(
                f"num_samples must be at least 2; got {self.num_samples}",
                field="num_samples",
            )

        n = pts.shape[0]
        padded = np.vstack([2.0 * pts[0] - pts[1], pts, 2.0 * pts[-1] - pts[-2]])
        tangents = self.tension * (padded[2:] - padded[:-2])
        self._knots = np.arange(n, dtype=float)
        self._spline = CubicHermiteSpline(self._knots, pts, tangents, axis=0)

        # Arclength lookup table over the raw parameter t in [0, n-1].
        divisions = max(int(arc_divisions), 20 * (n - 1))
        self._arc_t = np.linspace(0.0, n - 1.0, divisions + 1)
        samples = self._spline(self._arc_t)
        seg = np.linalg.norm(np.diff(samples, axis=0), axis=1)
        self._arc_len = np.concatenate([[0.0], np.cumsum(seg)])
        self.length = float(self._arc_len[-1])
        if self.length < _EPS:
            _LOGGER.warning(
                "Curve through %d coincident points has zero length; "
                "arclength sampling falls back to the raw parameter.",
                n,
            )

        self._tangents: Optional[NDArray[np.float64]] = None
        self._normals: Optional[NDArray[np.float64]] = None
        self._binormals: Optional[NDArray[np.float64]] = None

        _LOGGER.debug(
            "Curve fitted: points=%d tension=%.3g length=%.6g samples=%d",
            n,
            self.tension,
            self.length,
            self.num_samples,
        )

    # ------------------------------------------------------------------
    # Parameter mapping
    # ------------------------------------------------------------------
    def _t_from_u(self, u: Union[float, NDArray[Any]]) -> Union[float, NDArray[Any]]:
        """Map normalized arclength `u` in [0, 1] to the raw spline parameter."""
        u = np.clip(u, 0.0, 1.0)
        if self.length < _EPS:
            return u * (self.points.shape[0] - 1)
        return np.interp(u * self.length, self._arc_len, self._arc_t)

    def point_at_parameter(self, t: Union[float, NDArray[Any]]) -> NDArray[np.float64]:
        """Evaluate the curve at normalized, non-arclength parameter `t`."""
        raw = np.clip(t, 0.0, 1.0) * (self.points.shape[0] - 1)
        return np.asarray(self._spline(raw), dtype=float)

    def sample_at(self, u: Union[float, NDArray[Any]]) -> NDArray[np.float64]:
        """Evaluate the curve at arclength fraction `u` in [0, 1].

        Accepts a scalar (returns shape (3,)) or an array of fractions
        (returns shape (k, 3)).
        """
        return np.asarray(self._spline(self._t_from_u(u)), dtype=float)

    def tangent_at(self, u: float) -> NDArray[np.float64]:
        """Unit tangent at arclength fraction `u`.

        Falls back to a central difference where the spline derivative
        vanishes, as it does at the knots when the tension is zero.
        """
        t = float(self._t_from_u(u))
        d = np.asarray(self._spline(t, 1), dtype=float)
        mag = float(np.linalg.norm(d))
        if mag < _EPS:
            n_last = self.points.shape[0] - 1.0
            h = 1e-3
            d = self._spline(min(t + h, n_last)) - self._spline(max(t - h, 0.0))
            mag = float(np.linalg.norm(d))
            if mag < _EPS:
                return np.array([0.0, 0.0, 0.0])
        return d / mag

    def get_points(self, divisions: int) -> NDArray[np.float64]:
        """Return ``divisions + 1`` points evenly spaced in parameter.

        This is the polyline used for line rendering of a branch.
        """
        if divisions < 1:
            raise ValueError(f"divisions must be at least 1; got {divisions}")
        return self.point_at_parameter(np.linspace(0.0, 1.0, divisions + 1))

    def get_spaced_points(self, divisions: int) -> NDArray[np.float64]:
        """Return ``divisions + 1`` points evenly spaced in arclength."""
        if divisions < 1:
            raise ValueError(f"divisions must be at least 1; got {divisions}")
        return self.sample_at(np.linspace(0.0, 1.0, divisions + 1))

    # ------------------------------------------------------------------
    # Frames
    # ------------------------------------------------------------------
    def compute_frames(
        self, num_samples: int
    ) -> Tuple[NDArray[np.float64], NDArray[np.float64], NDArray[np.float64]]:
        """Sweep orthonormal frames over `num_samples` evenly spaced fractions.

        The first normal is any unit vector perpendicular to the first
        tangent. Every following normal is the previous one rotated by the
        rotation taking the previous tangent onto the current one, so the
        cross-section does not twist along the curve.

        Returns:
            (tangents, normals, binormals), each of shape (num_samples, 3).
        """
        if num_samples < 2:
            raise ValueError(f"num_samples must be at least 2; got {num_samples}")

        T = np.zeros((num_samples, 3), dtype=float)
        for i in range(num_samples):
            tangent = self.tangent_at(i / (num_samples - 1))
            if not np.any(tangent):
                tangent = T[i - 1] if i > 0 else np.array([0.0, 0.0, 1.0])
            T[i] = tangent

        N = np.zeros_like(T)
        B = np.zeros_like(T)
        N[0] = perpendicular_unit(T[0])
        B[0] = np.cross(T[0], N[0])
        for i in range(1, num_samples):
            v = np.cross(T[i - 1], T[i])
            s = float(np.linalg.norm(v))
            if s < 1e-10:
                n_cur = N[i - 1].copy()
            else:
                c = float(np.clip(np.dot(T[i - 1], T[i]), -1.0, 1.0))
                theta = np.arctan2(s, c)
                n_cur = Rotation.from_rotvec(v / s * theta).apply(N[i - 1])
            # Re-orthogonalize against drift.
            n_cur = n_cur - np.dot(n_cur, T[i]) * T[i]
            nn = float(np.linalg.norm(n_cur))
            N[i] = perpendicular_unit(T[i]) if nn < _EPS else n_cur / nn
            B[i] = np.cross(T[i], N[i])

        return T, N, B

    def _ensure_frames(self) -> None:
        if self._tangents is None:
            self._tangents, self._normals, self._binormals = self.compute_frames(
                self.num_samples
            )

    @property
    def tangents(self) -> NDArray[np.float64]:
        self._ensure_frames()
        assert self._tangents is not None
        return self._tangents

    @property
    def normals(self) -> NDArray[np.float64]:
        self._ensure_frames()
        assert self._normals is not None
        return self._normals

    @property
    def binormals(self) -> NDArray[np.float64]:
        self._ensure_frames()
        assert self._binormals is not None
        return self._binormals

    def frame_at(self, index: int) -> Frame:
        """Return ``(tangent, normal, binormal)`` at sample `index`."""
        if not (0 <= index < self.num_samples):
            raise IndexError(
                f"frame index {index} out of range for {self.num_samples} samples"
            )
        return self.tangents[index], self.normals[index], self.binormals[index]

    def frames(self) -> List[Frame]:
        """Return every swept frame, in sample order."""
        return [self.frame_at(i) for i in range(self.num_samples)]

    def __repr__(self) -> str:
        return (
            f"Curve(points={self.points.shape[0]}, tension={self.tension}, "
            f"length={self.length:.6g})"
        )


def fit(
    points: Union[NDArray[Any], Sequence[Sequence[float]]],
    tension: float = DEFAULT_TENSION,
    num_samples: Optional[int] = None,
) -> Curve:
    """Fit a Catmull-Rom curve through `points`.

    Args:
        points: Ordered points, at least two.
        tension: Curvature smoothness; 0 yields straight-segment-like spans.
        num_samples: Number of frames to sweep; defaults to the point count.

    Returns:
        Curve: The fitted curve.

    Raises:
        InsufficientPointsError: If fewer than two points are given.
    """
    return Curve(points, tension=tension, num_samples=num_samples)
