"""Fixed-bin histograms and named folders holding them."""

from __future__ import annotations

import json
import math
from pathlib import Path

import numpy as np


def _check_axis(nbins: int, lo: float, hi: float) -> None:
    if nbins < 1:
        raise ValueError("number of bins must be positive")
    if not hi > lo:
        raise ValueError("axis upper edge must exceed lower edge")


def _axis_bin(nbins: int, lo: float, hi: float, value: float) -> int:
    if value < lo:
        return 0
    if value >= hi:
        return nbins + 1
    return min(1 + int(nbins * (value - lo) / (hi - lo)), nbins)


class Hist1D:
    """One-dimensional histogram with underflow (bin 0) and overflow bins."""

    def __init__(self, name: str, title: str, nbins: int, xmin: float, xmax: float):
        _check_axis(nbins, xmin, xmax)
        self.name = name
        self.title = title
        self.nbins = int(nbins)
        self.xmin = float(xmin)
        self.xmax = float(xmax)
        self.reset()

    def reset(self) -> None:
        self.contents = np.zeros(self.nbins + 2)
        self.sumw2 = np.zeros(self.nbins + 2)
        self.entries = 0
        self._sumw = 0.0
        self._sumwx = 0.0
        self._stats_from_fills = True

    def find_bin(self, x: float) -> int:
        return _axis_bin(self.nbins, self.xmin, self.xmax, x)

    def fill(self, x: float, weight: float = 1.0) -> int:
        """Add ``weight`` at ``x`` and return the bin that received it."""
        ibin = self.find_bin(x)
        self.contents[ibin] += weight
        self.sumw2[ibin] += weight * weight
        self.entries += 1
        if 1 <= ibin <= self.nbins:
            self._sumw += weight
            self._sumwx += weight * x
        return ibin

    def _check_bin(self, ibin: int) -> None:
        if not 0 <= ibin <= self.nbins + 1:
            raise IndexError(f"bin {ibin} outside 0..{self.nbins + 1}")

    def bin_content(self, ibin: int) -> float:
        self._check_bin(ibin)
        return float(self.contents[ibin])

    def bin_error(self, ibin: int) -> float:
        self._check_bin(ibin)
        return math.sqrt(self.sumw2[ibin])

    def set_bin_content(self, ibin: int, value: float) -> None:
        self._check_bin(ibin)
        self.contents[ibin] = value
        self.entries += 1
        self._stats_from_fills = False

    def set_bin_error(self, ibin: int, error: float) -> None:
        self._check_bin(ibin)
        self.sumw2[ibin] = error * error

    def bin_centers(self) -> np.ndarray:
        width = (self.xmax - self.xmin) / self.nbins
        return self.xmin + (np.arange(1, self.nbins + 1) - 0.5) * width

    def mean(self) -> float:
        """Weighted mean of in-range entries."""
        if self._stats_from_fills:
            return self._sumwx / self._sumw if self._sumw != 0 else 0.0
        weights = self.contents[1:-1]
        total = weights.sum()
        if total == 0:
            return 0.0
        return float((weights * self.bin_centers()).sum() / total)

    def to_dict(self) -> dict:
        return {
            "kind": "hist1d",
            "name": self.name,
            "title": self.title,
            "nbins": self.nbins,
            "xmin": self.xmin,
            "xmax": self.xmax,
            "entries": self.entries,
            "contents": self.contents.tolist(),
            "errors": np.sqrt(self.sumw2).tolist(),
        }


class Hist2D:
    """Two-dimensional histogram with underflow/overflow on both axes."""

    def __init__(self, name, title, nx, xmin, xmax, ny, ymin, ymax):
        _check_axis(nx, xmin, xmax)
        _check_axis(ny, ymin, ymax)
        self.name = name
        self.title = title
        self.nx, self.xmin, self.xmax = int(nx), float(xmin), float(xmax)
        self.ny, self.ymin, self.ymax = int(ny), float(ymin), float(ymax)
        self.reset()

    def reset(self) -> None:
        self.contents = np.zeros((self.nx + 2, self.ny + 2))
        self.sumw2 = np.zeros((self.nx + 2, self.ny + 2))
        self.entries = 0

    def find_bin(self, x: float, y: float) -> tuple[int, int]:
        return (
            _axis_bin(self.nx, self.xmin, self.xmax, x),
            _axis_bin(self.ny, self.ymin, self.ymax, y),
        )

    def fill(self, x: float, y: float, weight: float = 1.0) -> tuple[int, int]:
        ix, iy = self.find_bin(x, y)
        self.contents[ix, iy] += weight
        self.sumw2[ix, iy] += weight * weight
        self.entries += 1
        return ix, iy

    def to_dict(self) -> dict:
        return {
            "kind": "hist2d",
            "name": self.name,
            "title": self.title,
            "nx": self.nx,
            "xmin": self.xmin,
            "xmax": self.xmax,
            "ny": self.ny,
            "ymin": self.ymin,
            "ymax": self.ymax,
            "entries": self.entries,
            "contents": self.contents.tolist(),
            "errors": np.sqrt(self.sumw2).tolist(),
        }


class HistFolder:
    """A named tree of sub-folders and histograms."""

    def __init__(self, name: str, title: str | None = None):
        self.name = name
        self.title = title if title is not None else name
        self.children: dict[str, object] = {}

    def __iter__(self):
        return iter(self.children.values())

    def __contains__(self, name: str) -> bool:
        return name in self.children

    def add(self, hist):
        """Store ``hist`` under its name and return it."""
        self.children[hist.name] = hist
        return hist

    def folder(self, name: str, title: str | None = None) -> "HistFolder":
        """Return the sub-folder ``name``, creating it if needed."""
        existing = self.children.get(name)
        if existing is None:
            existing = HistFolder(name, title)
            self.children[name] = existing
        elif not isinstance(existing, HistFolder):
            raise ValueError(f"{name!r} is a histogram, not a folder")
        return existing

    def find(self, path: str):
        """Look up a slash-separated path below this folder."""
        node = self
        for part in filter(None, path.split("/")):
            if not isinstance(node, HistFolder) or part not in node.children:
                raise KeyError(path)
            node = node.children[part]
        return node

    def reset(self) -> None:
        """Reset every histogram in this folder and below."""
        for child in self.children.values():
            child.reset()

    def to_dict(self) -> dict:
        return {
            "kind": "folder",
            "name": self.name,
            "title": self.title,
            "items": [child.to_dict() for child in self.children.values()],
        }


def save_folder(folder: HistFolder, path) -> None:
    """Write the folder tree, with all histograms, to a JSON file."""
    Path(path).write_text(json.dumps(folder.to_dict(), indent=1), encoding="utf-8")