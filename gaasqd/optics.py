"""Ray tracing of scintillation photons inside a rectangular GaAs sensor.

Faces of the sensor box are numbered 0, 1 (low and high X), 2, 3 (low and
high Y) and 4, 5 (low and high Z).  A traced photon ends with one of these
stop codes:

* ``HIT`` (1): the photon reached a photodetector,
* ``ABSORBED`` (2): the photon was absorbed in the bulk,
* ``TOO_MANY_REFLECTIONS`` (9): the reflection limit was reached,
* ``EXIT_NO_REFLECTION + face``: left through ``face``, the angle of
  incidence being inside the escape cone,
* ``EXIT_DIFFUSE + face``: left through ``face`` after diffuse scattering.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

import numpy as np

from gaasqd.trajectory import TrajectoryPoint

log = logging.getLogger(__name__)

HIT = 1
ABSORBED = 2
TOO_MANY_REFLECTIONS = 9
EXIT_NO_REFLECTION = 10
EXIT_DIFFUSE = 20

PHOTODIODE = 0
FIBER = 1

_FAR = 1.0e12
_COMPONENTS = ("nx", "ny", "nz")
_N_FACES = 6


def _check_face(face: int) -> int:
    if not 0 <= face < _N_FACES:
        raise ValueError(f"face {face} outside 0..{_N_FACES - 1}")
    return face


@dataclass(frozen=True)
class Detector:
    """A photodiode or fiber glued to one face of the sensor.

    ``dx``, ``dy``, ``dz`` are half sizes; the offsets give its centre.
    """

    side: int
    dx: float
    dy: float
    dz: float
    offset_x: float = 0.0
    offset_y: float = 0.0
    offset_z: float = 0.0
    kind: int = PHOTODIODE

    def __post_init__(self) -> None:
        _check_face(self.side)
        if self.kind not in (PHOTODIODE, FIBER):
            raise ValueError(f"unknown detector kind {self.kind}")

    @property
    def half_sizes(self) -> tuple[float, float, float]:
        return (self.dx, self.dy, self.dz)

    @property
    def offsets(self) -> tuple[float, float, float]:
        return (self.offset_x, self.offset_y, self.offset_z)


@dataclass
class TraceResult:
    """Outcome of tracing one photon."""

    stop: int
    n_reflections: int
    point: TrajectoryPoint

    @property
    def detected(self) -> bool:
        return self.stop == HIT


class PhotonTracer:
    """Follows photons through reflections until they stop."""

    def __init__(
        self,
        half_sizes,
        detectors=(),
        *,
        mirrors=None,
        refr_ind_gaas: float = 3.4,
        refr_ind_air: float = 1.0,
        abs_length: float = 2.2,
        refl_prob: float = 0.974,
        max_n_reflections: int = 190,
        rng=None,
    ):
        sizes = tuple(float(h) for h in half_sizes)
        if len(sizes) != 3 or any(h <= 0 for h in sizes):
            raise ValueError("half_sizes must be three positive numbers")
        self.half_sizes = sizes
        self.detectors = list(detectors)
        if mirrors is None:
            mirrors = [False] * _N_FACES
        self.mirrors = [bool(m) for m in mirrors]
        if len(self.mirrors) != _N_FACES:
            raise ValueError("mirrors must give a flag for each of the six faces")
        self.refr_ind_gaas = refr_ind_gaas
        self.refr_ind_air = refr_ind_air
        self.abs_length = abs_length
        self.refl_prob = refl_prob
        self.max_n_reflections = max_n_reflections
        self.rng = rng if isinstance(rng, np.random.Generator) else np.random.default_rng(rng)

    @property
    def critical_sine(self) -> float:
        return self.refr_ind_air / self.refr_ind_gaas

    def _random_direction(self) -> tuple[float, float, float]:
        cos_theta = 2.0 * self.rng.random() - 1.0
        phi = 2.0 * math.pi * self.rng.random()
        r = math.sqrt(max(0.0, 1.0 - cos_theta * cos_theta))
        return (r * math.cos(phi), r * math.sin(phi), cos_theta)

    def _scatter(self, point: TrajectoryPoint, axis: int, n0: float) -> bool:
        """Scatter diffusely; return True if the photon leaves the crystal."""
        direction = self._random_direction()
        if direction[axis] * n0 > 0:
            return True
        point.nx, point.ny, point.nz = direction
        return False

    def _sine(self, n0: float) -> float:
        return math.sqrt(max(0.0, 1.0 - n0 * n0))

    def simulate_reflection(self, point: TrajectoryPoint, plane: int) -> int:
        """Reflect ``point`` off face ``plane``; return 0 or an exit code."""
        _check_face(plane)
        axis = plane // 2
        attr = _COMPONENTS[axis]
        n0 = getattr(point, attr)
        if self.mirrors[plane]:
            setattr(point, attr, -n0)
            return 0
        if self._sine(n0) < self.critical_sine:
            return EXIT_NO_REFLECTION + plane
        if self.rng.random() < self.refl_prob:
            setattr(point, attr, -n0)
            return 0
        if self._scatter(point, axis, n0):
            return EXIT_DIFFUSE + plane
        return 0

    def simulate_detector(self, point: TrajectoryPoint, detector: Detector) -> int:
        """Check whether ``point`` on the detector's face gets detected.

        Returns 1 when detected, -1 when a fiber scattered the photon back
        into the crystal, and 0 otherwise.
        """
        axis = detector.side // 2
        deltas = tuple(p - o for p, o in zip(point.position, detector.offsets))
        inside = all(
            abs(d) < h
            for i, (d, h) in enumerate(zip(deltas, detector.half_sizes))
            if i != axis
        )
        log.debug("detector side %d deltas %s inside %s", detector.side, deltas, inside)
        if not inside:
            return 0
        if detector.kind == PHOTODIODE:
            return HIT
        n0 = getattr(point, _COMPONENTS[axis])
        if self._sine(n0) < self.critical_sine:
            return 0
        if self._scatter(point, axis, n0):
            return HIT
        return -1

    def _next_face(self, point: TrajectoryPoint) -> tuple[int, float]:
        paths = []
        for pos, n, half in zip(point.position, point.direction, self.half_sizes):
            delta = (half - pos) if n > 0 else (-half - pos)
            paths.append(delta / n if n != 0 else _FAR)
        sx, sy, sz = paths
        nx, ny, nz = point.direction
        if sx < sy:
            if sx < sz:
                return (0 if nx < 0 else 1), sx
            return (4 if nz < 0 else 5), sz
        if sy < sz:
            return (2 if ny < 0 else 3), sy
        return (4 if nz < 0 else 5), sz

    def trace(self, start: TrajectoryPoint) -> TraceResult:
        """Trace a photon from ``start`` until it stops."""
        point = start.copy()
        stop = 0
        n_reflections = 0
        while stop == 0:
            face, smin = self._next_face(point)
            if self.abs_length > 0:
                abs_len = float(self.rng.exponential(self.abs_length))
                if abs_len < smin:
                    stop = ABSORBED
                    smin = abs_len
            point.x += smin * point.nx
            point.y += smin * point.ny
            point.z += smin * point.nz
            point.s += smin
            if stop == 0:
                for detector in self.detectors:
                    if detector.side == face:
                        stop = self.simulate_detector(point, detector)
                    if stop > 0:
                        break
                if stop == 0:
                    stop = self.simulate_reflection(point, face)
                elif stop < 0:
                    stop = 0
            if stop == 0:
                n_reflections += 1
            if n_reflections >= self.max_n_reflections:
                stop = TOO_MANY_REFLECTIONS
        log.debug("photon stopped: code %d after %d reflections", stop, n_reflections)
        return TraceResult(stop, n_reflections, point)