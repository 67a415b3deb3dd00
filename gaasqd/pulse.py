"""Waveform reconstruction of one readout channel: pedestal, timing, charge."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field

import numpy as np

from gaasqd.fitting import fit_pol0
from gaasqd.histogram import Hist1D

log = logging.getLogger(__name__)

_PED_SIGMA = 1.0
_MAX_PED_CELL = 1023


@dataclass
class CalibChannel:
    """Calibration constants of one channel.

    ``min_sample``/``max_sample`` give the pre-signal (index 0) and
    post-signal (index 1) windows, the upper bounds excluded.  A positive
    ``pulse_int_window`` integrates that many samples from T0; otherwise
    the charge is integrated up to the trailing-edge zero crossing.
    """

    id: int
    min_sample: tuple[int, int]
    max_sample: tuple[int, int]
    used: int = 1
    n_samples: int = 1024
    sampling_time: float = 1.0
    polarity: int = 1
    gain: float = 1.0
    pulse_int_window: float = 0.0
    max_p2p: float = math.inf
    max_thr: float = math.inf
    min_q: float = 0.0
    min_width: float = 0.0


@dataclass
class ReadoutChannel:
    """Samples of one channel and the quantities reconstructed from them."""

    id: int
    n_samples: int
    used: int = 1
    t: np.ndarray | None = None
    v0: np.ndarray | None = None
    v1: np.ndarray = field(init=False)
    v2: np.ndarray = field(init=False)
    sampling_time: float = 0.0
    q: float = 0.0
    q1: float = 0.0
    pedestal: float = 0.0
    chi2_ped: float = 0.0
    npt_ped: int = 0
    t0: float = 0.0
    le_slope: float = 0.0
    te_slope: float = 0.0
    width: float = 0.0
    v0_max: float = 0.0
    i0_max: int = -1
    v1_max: float = 0.0
    v2_max: float = 0.0
    i1_max: int = -1
    ped_error: bool = False
    par: list[float] = field(default_factory=lambda: [0.0] * 4)
    hist_v0: Hist1D = field(init=False, repr=False)
    hist_v1: Hist1D = field(init=False, repr=False)
    hist_shape: Hist1D = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if self.n_samples < 1:
            raise ValueError("a channel needs at least one sample")
        n = self.n_samples
        self.t = np.zeros(n, np.float32) if self.t is None else np.asarray(self.t, np.float32)
        self.v0 = np.zeros(n, np.float32) if self.v0 is None else np.asarray(self.v0, np.float32)
        self.v1 = np.zeros(n, np.float32)
        self.v2 = np.zeros(n, np.float32)
        self._make_hists(n)

    def _make_hists(self, n: int) -> None:
        self.hist_v0 = Hist1D(f"v0_{self.id}", "V0", n, 0, n)
        self.hist_v1 = Hist1D(f"v1_{self.id}", "V1", n, 0, n)
        self.hist_shape = Hist1D(f"shape_{self.id}", "shape", n, 0, n)

    def _prepare_hists(self, n: int) -> None:
        if self.hist_v0.nbins != n:
            self._make_hists(n)
        else:
            for hist in (self.hist_v0, self.hist_v1, self.hist_shape):
                hist.reset()


def _window(v0: np.ndarray, lo: int, hi: int, what: str) -> np.ndarray:
    if lo < 0 or hi > v0.size or hi <= lo:
        raise ValueError(f"{what} window [{lo}, {hi}) is empty or outside 0..{v0.size}")
    return v0[lo:hi]


def _slope(v1: np.ndarray, lo: int, hi: int) -> float:
    if hi == lo:
        return 0.0
    return (float(v1[hi]) - float(v1[lo])) / (hi - lo)


def _crossing(v1: np.ndarray, cell: int, slope: float) -> float:
    if slope == 0.0:
        return float(cell)
    return cell - float(v1[cell]) / slope


def _subtract(channel: ReadoutChannel, samples: np.ndarray, pedestal: float,
              calib: CalibChannel) -> tuple[int, float]:
    v = (samples - pedestal) * calib.polarity
    channel.v1 = v.astype(np.float32)
    channel.v2 = (v / calib.gain).astype(np.float32)
    cmax = int(np.argmax(v))
    return cmax, float(v[cmax])


def reconstruct_channel(channel: ReadoutChannel, calib: CalibChannel) -> None:
    """Reconstruct pedestal, edges, width and charge of ``channel`` in place."""
    if not channel.used:
        return
    ns = channel.n_samples
    v0 = np.asarray(channel.v0, dtype=np.float32)
    if v0.size < ns:
        raise ValueError(f"channel holds {v0.size} samples, {ns} expected")
    v0 = v0[:ns]
    samples = v0.astype(np.float64)

    channel.q = 0.0
    channel.q1 = 0.0
    channel.ped_error = False
    channel.sampling_time = calib.sampling_time

    pre = _window(v0, calib.min_sample[0], calib.max_sample[0], "pre-signal")
    post = _window(v0, calib.min_sample[1], calib.max_sample[1], "post-signal")
    channel.par = [float(pre.min()), float(pre.max()), float(post.min()), float(post.max())]
    vmin = channel.par[2]
    channel.pedestal = float(pre.astype(np.float64).mean())

    cmax, vmax = _subtract(channel, samples, channel.pedestal, calib)
    v1 = channel.v1

    # leading edge, walking back from the maximum
    min_cell = max_cell = -1
    found = False
    for i in range(cmax, -1, -1):
        if v1[i] > 0.9 * vmax:
            max_cell = i
        elif v1[i] < 0.1 * vmax:
            min_cell = i
            found = True
            break
    min_cell_05 = -1
    for i in range(cmax, -1, -1):
        if v1[i] > 0.5 * vmax:
            min_cell_05 = i
        else:
            break
    if not found:
        channel.ped_error = True
        log.warning("could not find the leading-edge start for channel %d", channel.id)
        min_cell = 0
    if max_cell < 0:
        max_cell = cmax

    slope = _slope(v1, min_cell, max_cell)
    t0 = _crossing(v1, min_cell, slope)
    channel.t0 = t0
    channel.le_slope = slope / calib.gain

    # pedestal refit over [T0-60, T0-10)
    min_cell = int(t0 - 60)
    if min_cell <= 0:
        min_cell = 0
    max_cell = min(min_cell + 50, _MAX_PED_CELL, ns)
    fit = fit_pol0(v0, min_cell, max_cell)
    channel.pedestal = fit.mean
    channel.chi2_ped = fit.chi2
    channel.npt_ped = max_cell - min_cell + 1

    cmax, vmax = _subtract(channel, samples, fit.mean, calib)
    v1 = channel.v1
    v0_plus = samples * calib.polarity
    c0max = int(np.argmax(v0_plus))
    channel.v0_max = float(np.float32(v0_plus[c0max]))
    channel.i0_max = c0max
    channel.v1_max = vmax
    channel.v2_max = vmax / calib.gain
    channel.i1_max = cmax

    channel._prepare_hists(ns)
    norm_v = abs(vmax)
    norm_e = abs(vmin)
    for cell, (y0, y1) in enumerate(zip(v0, v1), start=1):
        y1 = float(y1)
        ey = _PED_SIGMA * 1.5 + 0.05 * y1
        channel.hist_v0.set_bin_content(cell, float(y0))
        channel.hist_v1.set_bin_content(cell, y1)
        channel.hist_v1.set_bin_error(cell, ey)
        channel.hist_shape.set_bin_content(cell, y1 / norm_v if norm_v else math.inf)
        channel.hist_shape.set_bin_error(cell, ey / norm_e if norm_e else math.inf)

    # trailing edge, walking forward from the maximum
    for i in range(cmax, ns):
        if v1[i] > 0.9 * vmax:
            max_cell = i
        elif v1[i] < 0.1 * vmax:
            min_cell = i
            break
    max_cell_05 = -1
    for i in range(cmax, ns):
        if v1[i] > 0.5 * vmax:
            max_cell_05 = i
        else:
            break

    slope = _slope(v1, min_cell, max_cell)
    t1 = _crossing(v1, max_cell, slope)
    channel.te_slope = slope / calib.gain
    channel.width = float(max_cell_05 - min_cell_05)

    lo = max(int(t0), 0)
    if calib.pulse_int_window > 0:
        hi = int(t0 + calib.pulse_int_window)
    else:
        hi = int(t1)
    hi = min(hi, ns)
    q = float(v1[lo:hi].sum(dtype=np.float64)) if hi > lo else 0.0
    channel.q = q
    channel.q1 = q / calib.gain