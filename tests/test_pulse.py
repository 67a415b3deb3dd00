import numpy as np
import pytest

from gaasqd.fitting import fit_pol0
from gaasqd.pulse import CalibChannel, ReadoutChannel, reconstruct_channel

NS = 300


def pulse(offset=0.0, sign=1.0):
    wave = np.zeros(NS)
    for i in range(100, 111):
        wave[i] = 10.0 * (i - 100)
    for i in range(111, 131):
        wave[i] = 100.0 - 5.0 * (i - 110)
    return sign * wave + offset


def calib(**kw):
    args = dict(id=0, min_sample=(0, 250), max_sample=(50, 300), gain=2.0, sampling_time=0.4)
    args.update(kw)
    return CalibChannel(**args)


def channel(wave):
    return ReadoutChannel(id=0, n_samples=NS, v0=wave)


def test_leading_edge_and_slopes():
    ch = channel(pulse())
    reconstruct_channel(ch, calib())
    assert ch.t0 == pytest.approx(100.0)
    assert ch.le_slope == pytest.approx(10.0 / 2.0)
    assert ch.te_slope == pytest.approx(-5.0 / 2.0)
    assert not ch.ped_error


def test_charge_integrates_whole_pulse():
    wave = pulse()
    ch = channel(wave)
    reconstruct_channel(ch, calib())
    assert ch.q == pytest.approx(wave.sum())
    assert ch.q1 == pytest.approx(ch.q / 2.0)


def test_width_counts_samples_above_half_maximum():
    wave = pulse()
    ch = channel(wave)
    reconstruct_channel(ch, calib())
    assert ch.width == np.count_nonzero(wave > 50.0) - 1


def test_maxima_and_scaled_waveform():
    wave = pulse()
    ch = channel(wave)
    reconstruct_channel(ch, calib())
    assert ch.i1_max == int(np.argmax(wave))
    assert ch.v1_max == pytest.approx(wave.max())
    assert ch.v2_max == pytest.approx(ch.v1_max / 2.0)
    np.testing.assert_allclose(ch.v2, ch.v1 / 2.0)
    assert ch.sampling_time == 0.4


def test_pedestal_offset_is_removed():
    ref = channel(pulse())
    reconstruct_channel(ref, calib())
    shifted = channel(pulse(offset=3.0))
    reconstruct_channel(shifted, calib())
    assert shifted.pedestal == pytest.approx(3.0)
    assert shifted.q == pytest.approx(ref.q)
    assert shifted.t0 == pytest.approx(ref.t0)
    assert shifted.v0_max == pytest.approx(ref.v0_max + 3.0)


def test_negative_polarity_matches_positive_pulse():
    ref = channel(pulse())
    reconstruct_channel(ref, calib())
    neg = channel(pulse(sign=-1.0))
    reconstruct_channel(neg, calib(polarity=-1))
    assert neg.q == pytest.approx(ref.q)
    assert neg.width == ref.width
    assert neg.le_slope == pytest.approx(ref.le_slope)


def test_fixed_integration_window():
    wave = pulse()
    ch = channel(wave)
    reconstruct_channel(ch, calib(pulse_int_window=5))
    assert ch.q == pytest.approx(wave[100:105].sum())


def test_noise_sets_peak_to_peak_and_chi2():
    wave = pulse()
    noise = np.where(np.arange(90) % 2 == 0, 0.5, -0.5)
    wave[:90] += noise
    ch = channel(wave)
    reconstruct_channel(ch, calib())
    assert ch.par[:2] == [-0.5, 0.5]
    expected = fit_pol0(wave.astype(np.float32), 40, 90)
    assert ch.pedestal == pytest.approx(expected.mean)
    assert ch.chi2_ped == pytest.approx(expected.chi2)
    assert ch.npt_ped == 51


def test_histograms_follow_waveform():
    wave = pulse()
    ch = channel(wave)
    reconstruct_channel(ch, calib())
    assert ch.hist_v0.bin_content(111) == pytest.approx(wave[110])
    assert max(ch.hist_shape.bin_content(i) for i in range(1, NS + 1)) == pytest.approx(1.0)


def test_unused_channel_is_left_alone():
    ch = ReadoutChannel(id=0, n_samples=NS, v0=pulse(), used=0)
    ch.q = 7.0
    reconstruct_channel(ch, calib())
    assert ch.q == 7.0
    assert ch.t0 == 0.0


def test_empty_pre_signal_window_raises():
    with pytest.raises(ValueError):
        reconstruct_channel(channel(pulse()), calib(min_sample=(10, 250), max_sample=(10, 300)))


def test_short_sample_array_raises():
    ch = ReadoutChannel(id=0, n_samples=NS, v0=pulse())
    ch.v0 = ch.v0[:100]
    with pytest.raises(ValueError):
        reconstruct_channel(ch, calib())