import numpy as np
import pytest

from gaasqd.events import ScopeEvent, data_block_from, header_block_from


def make_event():
    return ScopeEvent(
        version=1,
        event_number=12,
        run_number=1000,
        subrun_number=3,
        good_trig=1,
        stn_version="v7_3_5",
        run_start_time="2022-Apr-11 10:00:00",
        run_end_time="undefined",
        n_channels=2,
        n_samples=3,
        trigger_sample=1,
        sample_time=0.5,
        trigger_time=0.25,
        t=[0.25, 0.75, 1.25, 1.75],
        v=[[1.0, 2.0, 3.0, 4.0], [-1.0, -2.0, -3.0, -4.0], [9.0, 9.0, 9.0, 9.0]],
        channel_id=[0, 1, 5],
    )


def test_header_block_copies_fields():
    event = make_event()
    header = header_block_from(event)
    assert header.event_number == event.event_number
    assert header.run_number == event.run_number
    assert header.section_number == event.subrun_number
    assert header.stn_version == "v7_3_5"
    assert header.run_start_time == event.run_start_time


def test_data_block_truncates_to_counts():
    event = make_event()
    block = data_block_from(event)
    assert block.v.shape == (2, 3)
    assert block.t.tolist() == event.t[:3]
    assert np.array_equal(block.v[1], np.array([-1.0, -2.0, -3.0], dtype=np.float32))
    assert block.channel_id == [0, 1]
    assert (block.event_number, block.run_number, block.subrun_number) == (12, 1000, 3)


def test_data_block_no_channels():
    event = ScopeEvent(n_channels=0, n_samples=2, t=[0.0, 1.0])
    block = data_block_from(event)
    assert block.v.shape == (0, 2)


def test_data_block_short_times():
    event = make_event()
    event.n_samples = 5
    with pytest.raises(ValueError):
        data_block_from(event)


def test_data_block_missing_channel():
    event = make_event()
    event.n_channels = 4
    with pytest.raises(ValueError):
        data_block_from(event)