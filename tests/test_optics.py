import math

import pytest

from gaasqd.optics import (
    ABSORBED,
    EXIT_DIFFUSE,
    EXIT_NO_REFLECTION,
    FIBER,
    HIT,
    TOO_MANY_REFLECTIONS,
    Detector,
    PhotonTracer,
)
from gaasqd.trajectory import TrajectoryPoint


def _norm(point):
    return math.sqrt(point.nx ** 2 + point.ny ** 2 + point.nz ** 2)


def test_photodiode_hit_on_first_face():
    det = Detector(side=1, dx=0.1, dy=1.0, dz=1.0)
    tracer = PhotonTracer((1.0, 1.0, 1.0), [det], abs_length=0, rng=1)
    result = tracer.trace(TrajectoryPoint(0, 0, 0, 1, 0, 0, 0, 1))
    assert result.stop == HIT
    assert result.detected
    assert result.n_reflections == 0
    assert result.point.x == pytest.approx(1.0)
    assert result.point.s == pytest.approx(1.0)


def test_trace_does_not_modify_start():
    tracer = PhotonTracer((1.0, 1.0, 1.0), abs_length=0, rng=1)
    start = TrajectoryPoint(0, 0, 0, 1, 0, 0, 0, 1)
    tracer.trace(start)
    assert start.as_tuple() == (0, 0, 0, 1, 0, 0, 1, 0)


def test_normal_incidence_exits_without_reflection():
    det = Detector(side=1, dx=0.1, dy=1.0, dz=1.0)
    tracer = PhotonTracer((1.0, 1.0, 1.0), [det], abs_length=0, rng=1)
    result = tracer.trace(TrajectoryPoint(0, 0, 0, -1, 0, 0, 0, 1))
    assert result.stop == EXIT_NO_REFLECTION + 0
    assert not result.detected


def test_mirrors_limit_reflections():
    tracer = PhotonTracer(
        (1.0, 1.0, 1.0), mirrors=[True] * 6, abs_length=0, max_n_reflections=5, rng=1
    )
    result = tracer.trace(TrajectoryPoint(0, 0, 0, 1, 0, 0, 0, 1))
    assert result.stop == TOO_MANY_REFLECTIONS
    assert result.n_reflections == 5
    assert abs(result.point.x) == pytest.approx(1.0)
    assert abs(result.point.nx) == pytest.approx(1.0)


def test_absorption_stops_photon():
    tracer = PhotonTracer((100.0, 100.0, 100.0), abs_length=1e-6, rng=3)
    result = tracer.trace(TrajectoryPoint(0, 0, 0, 1, 0, 0, 0, 1))
    assert result.stop == ABSORBED
    assert result.n_reflections == 0
    assert 0 < result.point.s < 100.0


def test_same_seed_same_result():
    det = Detector(side=1, dx=0.1, dy=0.2, dz=0.2)
    start = TrajectoryPoint(0, 0, 0, 0.6, 0, 0.8, 0, 1)
    results = [
        PhotonTracer((1.0, 1.0, 0.5), [det], rng=7).trace(start) for _ in range(2)
    ]
    assert results[0].stop == results[1].stop
    assert results[0].point.as_tuple() == results[1].point.as_tuple()


def test_specular_reflection_flips_component():
    tracer = PhotonTracer((1.0, 1.0, 1.0), refl_prob=1.0, rng=1)
    point = TrajectoryPoint(1, 0, 0, 0.6, 0, 0.8, 0, 1)
    assert tracer.simulate_reflection(point, 1) == 0
    assert point.nx == pytest.approx(-0.6)
    assert point.nz == pytest.approx(0.8)


def test_mirror_reflects_even_at_normal_incidence():
    tracer = PhotonTracer((1.0, 1.0, 1.0), mirrors=[False] * 5 + [True], rng=1)
    point = TrajectoryPoint(0, 0, 1, 0, 0, 1, 0, 1)
    assert tracer.simulate_reflection(point, 5) == 0
    assert point.nz == pytest.approx(-1.0)


@pytest.mark.parametrize("seed", range(20))
def test_diffuse_scattering_exits_or_turns_back(seed):
    tracer = PhotonTracer((1.0, 1.0, 1.0), refl_prob=0.0, rng=seed)
    point = TrajectoryPoint(1, 0, 0, 0.6, 0, 0.8, 0, 1)
    stop = tracer.simulate_reflection(point, 1)
    if stop == 0:
        assert point.nx <= 0
        assert _norm(point) == pytest.approx(1.0)
    else:
        assert stop == EXIT_DIFFUSE + 1


def test_detector_outside_acceptance():
    tracer = PhotonTracer((1.0, 1.0, 1.0), rng=1)
    det = Detector(side=1, dx=0.1, dy=0.1, dz=0.1)
    point = TrajectoryPoint(1, 0.5, 0, 1, 0, 0, 0, 1)
    assert tracer.simulate_detector(point, det) == 0


def test_fiber_at_normal_incidence_not_detected():
    tracer = PhotonTracer((1.0, 1.0, 1.0), rng=1)
    det = Detector(side=1, dx=0.1, dy=0.5, dz=0.5, kind=FIBER)
    point = TrajectoryPoint(1, 0, 0, 1, 0, 0, 0, 1)
    assert tracer.simulate_detector(point, det) == 0


@pytest.mark.parametrize("seed", range(20))
def test_fiber_oblique_detects_or_scatters_back(seed):
    tracer = PhotonTracer((1.0, 1.0, 1.0), rng=seed)
    det = Detector(side=1, dx=0.1, dy=0.5, dz=0.5, kind=FIBER)
    point = TrajectoryPoint(1, 0, 0, 0.6, 0, 0.8, 0, 1)
    stop = tracer.simulate_detector(point, det)
    assert stop in (HIT, -1)
    if stop == -1:
        assert point.nx <= 0
        assert _norm(point) == pytest.approx(1.0)


def test_invalid_arguments():
    with pytest.raises(ValueError):
        Detector(side=6, dx=1, dy=1, dz=1)
    with pytest.raises(ValueError):
        Detector(side=0, dx=1, dy=1, dz=1, kind=5)
    with pytest.raises(ValueError):
        PhotonTracer((1.0, 1.0))
    with pytest.raises(ValueError):
        PhotonTracer((1.0, 1.0, 1.0), mirrors=[True])
    tracer = PhotonTracer((1.0, 1.0, 1.0), rng=1)
    with pytest.raises(ValueError):
        tracer.simulate_reflection(TrajectoryPoint(), 7)