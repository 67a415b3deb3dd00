"""Scope event records and the header/data blocks derived from them."""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np


@dataclass
class ScopeEvent:
    """One digitized scope record plus the run bookkeeping around it."""

    version: int = 0
    event_number: int = 0
    run_number: int = 0
    subrun_number: int = 0
    mc_flag: int = 0
    good_run: int = 0
    br_code: int = 0
    good_trig: int = 0
    trig_word: int = 0
    cpu: int = 0
    stn_version: str = ""
    run_start_time: str = ""
    run_end_time: str = ""
    n_channels: int = 0
    n_samples: int = 0
    trigger_sample: int = 0
    sample_time: float = 0.0
    trigger_time: float = 0.0
    t: list[float] = field(default_factory=list)
    v: list[list[float]] = field(default_factory=list)
    channel_id: list[int] = field(default_factory=list)
    v_slp: list[float] = field(default_factory=list)
    v_off: list[float] = field(default_factory=list)
    v_off2: list[float] = field(default_factory=list)
    epoch: int = 0
    usec: int = 0
    psec: int = 0
    delta_t: float = 0.0


@dataclass
class GaasHeaderBlock:
    version: int = 0
    event_number: int = 0
    run_number: int = 0
    section_number: int = 0
    mc_flag: int = 0
    good_run: int = 0
    br_code: int = 0
    good_trig: int = 0
    trig_word: int = 0
    cpu: int = 0
    stn_version: str = ""
    run_start_time: str = ""
    run_end_time: str = ""


@dataclass
class GaasDataBlock:
    """Sample times and per-channel voltages of one event."""

    n_channels: int = 0
    n_samples: int = 0
    trigger_sample: int = 0
    sample_time: float = 0.0
    trigger_time: float = 0.0
    t: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=np.float32))
    v: np.ndarray = field(default_factory=lambda: np.zeros((0, 0), dtype=np.float32))
    channel_id: list[int] = field(default_factory=list)
    event_number: int = 0
    run_number: int = 0
    subrun_number: int = 0


def header_block_from(event: ScopeEvent) -> GaasHeaderBlock:
    """Copy the bookkeeping fields of ``event`` into a header block."""
    return GaasHeaderBlock(
        version=event.version,
        event_number=event.event_number,
        run_number=event.run_number,
        section_number=event.subrun_number,
        mc_flag=event.mc_flag,
        good_run=event.good_run,
        br_code=event.br_code,
        good_trig=event.good_trig,
        trig_word=event.trig_word,
        cpu=event.cpu,
        stn_version=event.stn_version,
        run_start_time=event.run_start_time,
        run_end_time=event.run_end_time,
    )


def data_block_from(event: ScopeEvent) -> GaasDataBlock:
    """Copy the first n_channels x n_samples of ``event`` into a data block."""
    n_ch, n_s = event.n_channels, event.n_samples
    if n_ch < 0 or n_s < 0:
        raise ValueError("channel and sample counts must not be negative")
    if len(event.t) < n_s:
        raise ValueError(f"event holds {len(event.t)} times, {n_s} needed")
    rows = event.v[:n_ch]
    if len(rows) < n_ch or any(len(row) < n_s for row in rows):
        raise ValueError(f"event lacks voltages for {n_ch} channels x {n_s} samples")
    if len(event.channel_id) < n_ch:
        raise ValueError(f"event holds {len(event.channel_id)} channel ids, {n_ch} needed")
    voltages = np.array([row[:n_s] for row in rows], dtype=np.float32).reshape(n_ch, n_s)
    return GaasDataBlock(
        n_channels=n_ch,
        n_samples=n_s,
        trigger_sample=event.trigger_sample,
        sample_time=event.sample_time,
        trigger_time=event.trigger_time,
        t=np.array(event.t[:n_s], dtype=np.float32),
        v=voltages,
        channel_id=list(event.channel_id[:n_ch]),
        event_number=event.event_number,
        run_number=event.run_number,
        subrun_number=event.subrun_number,
    )