"""Quick Monte Carlo of light collection in a GaAs quantum-dot sensor.

Each event emits a number of photons from a point at a given distance from
the photodiode.  Photons are traced through reflections on the sensor faces
until they are detected, absorbed or leave the crystal.  The fraction of
detected photons per event is histogrammed.
"""

from __future__ import annotations

import argparse
import logging
import math
from dataclasses import dataclass

import numpy as np

from gaasqd.histogram import Hist1D, Hist2D, HistFolder, save_folder
from gaasqd.optics import HIT, Detector, PhotonTracer, TraceResult
from gaasqd.trajectory import TrajectoryPoint

log = logging.getLogger(__name__)

FIXED_POSITION = 0
BEAM_SPOT = 1
_BEAM_HALF_WIDTH = 0.0050

_PHOTON_SETS = (0, 1, 2)  # all photons, detected, not detected


@dataclass
class EventHists:
    n_photons: Hist1D
    n_det_photons: Hist1D
    eff: tuple[Hist1D, Hist1D]


@dataclass
class PhotonHists:
    stop: Hist1D
    n_reflections: Hist1D
    path: Hist1D
    y_vs_x: Hist2D


def _diode_position(sensor, det: Detector) -> tuple[float, float, float]:
    sx, sy, sz = sensor
    ox, oy, oz = det.offsets
    if det.side == 0:
        return (-det.dx - sx, oy, oz)
    if det.side == 1:
        return (det.dx + sx, oy, oz)
    if det.side == 2:
        return (ox, -det.dy - sy, oz)
    if det.side == 3:
        return (ox, det.dy + sy, oz)
    if det.side == 4:
        return (ox, oy, -det.dz - sz)
    return (ox, oy, det.dz + sz)


class QuickSim:
    """Light-collection simulation with its histograms."""

    def __init__(self, seed=None):
        self.pos_mode = FIXED_POSITION
        self.n_ph_mean = 1000
        self.photo_eff = 0.25
        self.max_n_reflections = 190
        self.refr_ind_gaas = 3.4
        self.refr_ind_air = 1.0
        self.refr_ind_epoxy = 1.5
        self.abs_length = 2.2
        self.refl_prob = 0.974
        self.mirrors = [False] * 6
        self.rng = np.random.default_rng(seed)

        self.ana_folder = HistFolder("Ana", "TStnAna Folder")
        self.folder = self.ana_folder.folder("GaasqdQuickSim", "GaasqdQuickSim")
        self.hist_folder = self.folder.folder("Hist", "ListOfHistograms")
        self.event_hists: dict[int, EventHists] = {}
        self.photon_hists: dict[int, PhotonHists] = {}

        self.half_sizes: tuple[float, float, float] | None = None
        self.detectors: list[Detector] = []
        self.diode_pos: tuple[float, float, float] | None = None

        self.event_number = 0
        self.n_photons = 0
        self.n_det_photons = 0
        self.start = (0.0, 0.0, 0.0)
        self._first_call = True

    def init_geometry(self, sensor, detectors) -> None:
        """Set the sensor half sizes and the detectors on its faces."""
        sizes = tuple(float(h) for h in sensor)
        if len(sizes) != 3 or any(h <= 0 for h in sizes):
            raise ValueError("sensor must be three positive half sizes")
        dets = list(detectors)
        if not dets:
            raise ValueError("at least one detector is required")
        self.half_sizes = sizes
        self.detectors = dets
        self.diode_pos = _diode_position(sizes, dets[0])

    def _require_geometry(self) -> tuple[float, float, float]:
        if self.half_sizes is None:
            raise RuntimeError("geometry is not initialized; call init_geometry first")
        return self.half_sizes

    def _book(self, folder: HistFolder, hist):
        return folder.add(hist)

    def _book_histograms(self) -> None:
        hx, hy, _ = self._require_geometry()
        path = "Hist/evt_0"
        fol = self.hist_folder.folder("evt_0", "evt_0")
        self.event_hists[0] = EventHists(
            n_photons=fol.add(Hist1D("nphot", f"{path}: nphotons", 1000, 0, 1.0e5)),
            n_det_photons=fol.add(Hist1D("ndphot", f"{path}: ndet photons", 1000, 0, 1.0e5)),
            eff=(
                fol.add(Hist1D("eff_0", f"{path}: eff[0]", 10001, 0, 1.0001)),
                fol.add(Hist1D("eff_1", f"{path}: eff[1]", 10001, 0, 0.10001)),
            ),
        )
        for i in _PHOTON_SETS:
            name = f"pho_{i}"
            path = f"Hist/{name}"
            fol = self.hist_folder.folder(name, name)
            self.photon_hists[i] = PhotonHists(
                stop=fol.add(Hist1D("stop", f"{path}: stop", 50, 0, 50)),
                n_reflections=fol.add(Hist1D("nref", f"{path}: nreflections", 500, 0, 500)),
                path=fol.add(Hist1D("path", f"{path}: path", 5000, 0, 5)),
                y_vs_x=fol.add(
                    Hist2D("y_vs_x", f"{path}: y vs x", 100, -hx, hx, 100, -hy, hy)
                ),
            )

    def begin_job(self) -> None:
        """Book histograms on the first call, reset them on later ones."""
        if self._first_call:
            self._book_histograms()
            self._first_call = False
        else:
            self.folder.reset()

    def _tracer(self) -> PhotonTracer:
        return PhotonTracer(
            self._require_geometry(),
            self.detectors,
            mirrors=self.mirrors,
            refr_ind_gaas=self.refr_ind_gaas,
            refr_ind_air=self.refr_ind_air,
            abs_length=self.abs_length,
            refl_prob=self.refl_prob,
            max_n_reflections=self.max_n_reflections,
            rng=self.rng,
        )

    def _fill_photon(self, hists: PhotonHists, result: TraceResult) -> None:
        point = result.point
        hists.stop.fill(result.stop)
        hists.n_reflections.fill(result.n_reflections)
        hists.path.fill(point.s)
        hists.y_vs_x.fill(point.x, point.y)

    def _fill_photon_histograms(self, result: TraceResult) -> None:
        self._fill_photon(self.photon_hists[0], result)
        self._fill_photon(self.photon_hists[1 if result.stop == HIT else 2], result)

    def _fill_event_histograms(self) -> None:
        hists = self.event_hists[0]
        hists.n_photons.fill(self.n_photons)
        hists.n_det_photons.fill(self.n_det_photons)
        if self.n_photons > 0:
            eff = self.n_det_photons / self.n_photons
            for hist in hists.eff:
                hist.fill(eff)

    def _start_position(self, dist: float) -> tuple[float, float, float]:
        rn = self.rng.random(3)
        x0 = self.diode_pos[0] + dist
        if self.pos_mode == FIXED_POSITION:
            return (x0, 0.0, 0.0)
        return (
            x0,
            2 * (rn[1] - 0.5) * _BEAM_HALF_WIDTH,
            2 * (rn[2] - 0.5) * self.half_sizes[2],
        )

    def run(self, dist: float, n_events: int) -> tuple[float, float]:
        """Simulate ``n_events`` events; return the two mean efficiencies."""
        tracer = self._tracer()
        if self.pos_mode not in (FIXED_POSITION, BEAM_SPOT):
            raise ValueError(f"unknown position mode {self.pos_mode}")
        self.begin_job()
        for ievent in range(n_events):
            self.event_number = ievent
            self.start = self._start_position(dist)
            if self.n_ph_mean > 0:
                self.n_photons = int(self.rng.poisson(self.n_ph_mean))
            else:
                self.n_photons = int(-self.n_ph_mean)
            self.n_det_photons = 0
            log.debug("event %d: %d photons", ievent, self.n_photons)
            for _ in range(self.n_photons):
                phi = 2.0 * math.pi * self.rng.random()
                start = TrajectoryPoint(*self.start, math.cos(phi), 0.0, math.sin(phi), 0.0, 1.0)
                result = tracer.trace(start)
                if result.detected:
                    self.n_det_photons += 1
                self._fill_photon_histograms(result)
            self._fill_event_histograms()
        eff0, eff1 = (hist.mean() for hist in self.event_hists[0].eff)
        return eff0, eff1

    def save_hist(self, path) -> None:
        """Write all booked histograms to ``path``."""
        save_folder(self.ana_folder, path)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Quick light-collection simulation.")
    parser.add_argument("dist", type=float, help="start distance in X from the diode centre")
    parser.add_argument("n_events", type=int)
    parser.add_argument("--sensor", type=float, nargs=3, required=True, metavar=("HX", "HY", "HZ"))
    parser.add_argument(
        "--diode",
        type=float,
        nargs=4,
        metavar=("SIDE", "DX", "DY", "DZ"),
        help="photodiode face and half sizes (default: whole low-X face)",
    )
    parser.add_argument("--n-photons", type=float, default=1000)
    parser.add_argument("--seed", type=int)
    parser.add_argument("--output")
    args = parser.parse_args(argv)

    sim = QuickSim(seed=args.seed)
    sim.n_ph_mean = args.n_photons
    hx, hy, hz = args.sensor
    if args.diode is None:
        detector = Detector(side=0, dx=0.001, dy=hy, dz=hz)
    else:
        side, dx, dy, dz = args.diode
        detector = Detector(side=int(side), dx=dx, dy=dy, dz=dz)
    sim.init_geometry(args.sensor, [detector])
    eff0, eff1 = sim.run(args.dist, args.n_events)
    print(f" >> eff[0], eff[1] = {eff0:12.5e} {eff1:12.5e}")
    if args.output:
        sim.save_hist(args.output)
    return 0