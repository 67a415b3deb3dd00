import pytest

from gaasqd.tekformat import (
    FAST_FRAME,
    SINGLE_FRAME,
    UNDEFINED,
    parse_data_line,
    parse_fields,
    parse_waveform_preamble,
    read_run_times,
    read_samples,
)


def _preamble_fields(channel="CH2"):
    return [
        f"WFMOutpre:{channel}:BYT_NR 1",
        "1",
        "2",
        "BINARY",
        "RI",
        "LSB",
        '"Ch2, DC coupling"',
        "4",
        "Y",
        "4.0E-10",
        "0",
        "0",
        "S",
        "1.5625E-4",
        "3.0",
        "2.0E-3",
    ]


def test_parse_fields_keeps_empty_fields():
    assert parse_fields("a;b;;c", ";") == ["a", "b", "", "c"]


def test_parse_fields_of_empty_text():
    assert parse_fields("", ",") == [""]


def test_parse_fields_rejects_long_delimiter():
    with pytest.raises(ValueError):
        parse_fields("a,b", ",;")


def test_parse_data_line_single_frame():
    spec = parse_data_line("DATA:SOURCE CH1,CH2;SAMPLE;RIBINARY;1;2500;1;1")
    assert spec.readout_mode == SINGLE_FRAME
    assert spec.n_samples == 2500


def test_parse_data_line_fast_frame():
    spec = parse_data_line("DATA:SOURCE CH1;FASTEST;RIBINARY;1;500;1;1")
    assert spec.readout_mode == FAST_FRAME
    assert spec.n_samples == 500


def test_parse_data_line_too_short():
    with pytest.raises(ValueError):
        parse_data_line("DATA:SOURCE CH1;SAMPLE")


def test_parse_data_line_needs_prefix():
    with pytest.raises(ValueError):
        parse_data_line("WFMOutpre:CH1;SAMPLE;1;2;3")


def test_parse_waveform_preamble_values():
    preamble = parse_waveform_preamble(";".join(_preamble_fields()))
    assert preamble.channel_id == 1
    assert preamble.sample_time == pytest.approx(4.0e-10)
    assert preamble.slope == pytest.approx(1.5625e-4)
    assert preamble.offset == pytest.approx(3.0)
    assert preamble.offset2 == pytest.approx(2.0e-3)


def test_parse_waveform_preamble_short_line_is_ignored():
    assert parse_waveform_preamble("WFMOutpre:CH1:BYT_NR 1;1;2") is None


def test_parse_waveform_preamble_truncated_line():
    with pytest.raises(ValueError):
        parse_waveform_preamble(";".join(_preamble_fields()[:10]))


def test_read_samples_identity_scaling_and_leftover():
    lines = iter(["1,2,3,\r\n", "4,5\n", "9\n"])
    values = read_samples(lines, 5, 0.0, 1.0, 0.0)
    assert values == [1.0, 2.0, 3.0, 4.0, 5.0]
    assert list(lines) == ["9\n"]


def test_read_samples_offset2_shifts_every_value():
    raw = read_samples(["10,20,30\n"], 3, 4.0, 0.5, 0.0)
    shifted = read_samples(["10,20,30\n"], 3, 4.0, 0.5, 0.25)
    assert [b - a for a, b in zip(raw, shifted)] == pytest.approx([0.25] * 3)


def test_read_samples_parses_leading_integers():
    assert read_samples([" 7, 8abc,\n"], 2, 0.0, 1.0, 0.0) == [7.0, 8.0]


def test_read_samples_stops_when_lines_run_out():
    values = read_samples(["1,2\n"], 10, 0.0, 1.0, 0.0)
    assert values == [1.0, 2.0]


def test_read_run_times(tmp_path):
    path = tmp_path / "run.txt"
    path.write_text(
        "TEKTRONIX,MODEL,SERIAL0,FW0\n"
        "RUN_START_TIME: 2022-Apr-11 10:00:00\r\n"
        "1,2,3\n"
        "RUN_END_TIME: 2022-Apr-11 11:30:00\n",
        encoding="utf-8",
    )
    assert read_run_times(path) == ("2022-Apr-11 10:00:00", "2022-Apr-11 11:30:00")


def test_read_run_times_missing_entries(tmp_path):
    path = tmp_path / "run.txt"
    path.write_text("header 0\n1,2,3\n", encoding="utf-8")
    assert read_run_times(path) == (UNDEFINED, UNDEFINED)


def test_read_run_times_malformed(tmp_path):
    path = tmp_path / "run.txt"
    path.write_text("RUN_START_TIME:\n", encoding="utf-8")
    with pytest.raises(ValueError):
        read_run_times(path)