"""Points along a straight photon trajectory inside the sensor."""

from __future__ import annotations

from dataclasses import dataclass, replace

import numpy as np

_BANNER = (
    "         X          Y           Z           Nx         Ny "
    "         Nz       P(total)      S  \n"
)


def _as_matrix(rotation) -> np.ndarray:
    matrix = np.asarray(rotation, dtype=float)
    if matrix.shape != (3, 3):
        raise ValueError("rotation must be a 3x3 matrix")
    return matrix


def _as_vector(origin) -> np.ndarray:
    vector = np.asarray(origin, dtype=float)
    if vector.shape != (3,):
        raise ValueError("origin must have three coordinates")
    return vector


@dataclass
class TrajectoryPoint:
    """Position, direction, path length and momentum of a traced particle."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    nx: float = 0.0
    ny: float = 0.0
    nz: float = 0.0
    s: float = 0.0
    p: float = 0.0

    def set_point(self, x, y, z, nx, ny, nz, s, p) -> None:
        """Overwrite every coordinate of the point."""
        self.x, self.y, self.z = float(x), float(y), float(z)
        self.nx, self.ny, self.nz = float(nx), float(ny), float(nz)
        self.s, self.p = float(s), float(p)

    @property
    def position(self) -> tuple[float, float, float]:
        return (self.x, self.y, self.z)

    @property
    def direction(self) -> tuple[float, float, float]:
        return (self.nx, self.ny, self.nz)

    def as_tuple(self) -> tuple[float, ...]:
        """Return (x, y, z, nx, ny, nz, p_total, s)."""
        return (self.x, self.y, self.z, self.nx, self.ny, self.nz, self.p, self.s)

    def copy(self) -> "TrajectoryPoint":
        return replace(self)

    def global_to_local(self, origin, rotation) -> "TrajectoryPoint":
        """Translate by -origin, then rotate both position and direction."""
        rot = _as_matrix(rotation)
        pos = rot @ (np.array(self.position) - _as_vector(origin))
        direction = rot @ np.array(self.direction)
        return TrajectoryPoint(
            *(float(c) for c in pos), *(float(c) for c in direction), s=self.s, p=self.p
        )

    def local_to_global(self, origin, rotation) -> "TrajectoryPoint":
        """Shift the position by origin and rotate the direction back.

        Only the direction is transformed by the inverse rotation; the
        position is translated without rotation.
        """
        inverse = _as_matrix(rotation).T
        pos = np.array(self.position) + _as_vector(origin)
        direction = inverse @ np.array(self.direction)
        return TrajectoryPoint(
            *(float(c) for c in pos), *(float(c) for c in direction), s=self.s, p=self.p
        )

    def format(self, opt: str = "") -> str:
        """Render a banner and/or a data line, as selected by ``opt``."""
        text = ""
        if "banner" in opt or opt == "":
            text += _BANNER
        if "data" in opt or opt == "":
            values = (self.x, self.y, self.z, self.nx, self.ny, self.nz, self.p, self.s)
            text += " ".join(f"{v:11.4f}" for v in values) + "\n"
        return text

    def __str__(self) -> str:
        return self.format()