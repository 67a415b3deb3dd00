"""Conversion of single-frame Tektronix text dumps into event blocks."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path

from gaasqd.events import (
    GaasDataBlock,
    GaasHeaderBlock,
    ScopeEvent,
    data_block_from,
    header_block_from,
)
from gaasqd.tekformat import (
    Preamble,
    _strtol,
    parse_data_line,
    parse_fields,
    parse_waveform_preamble,
    read_run_times,
    read_samples,
)

log = logging.getLogger(__name__)

STN_VERSION = "v7_3_5"
_SKIPPED_PREFIXES = ("(u'GPIB0::", "RUN_", "TEKTRONIX", "header")


def _new_event(run_number: int, start: str, end: str) -> ScopeEvent:
    return ScopeEvent(
        run_number=run_number,
        subrun_number=0,
        mc_flag=0,
        version=1,
        br_code=0,
        good_trig=1,
        trig_word=0,
        cpu=0,
        stn_version=STN_VERSION,
        n_channels=0,
        run_start_time=start,
        run_end_time=end,
    )


def _clean(raw: str) -> str:
    return raw.rstrip("\n").rstrip("\r").rstrip(" ")


def _add_channel(event: ScopeEvent, preamble: Preamble) -> None:
    event.channel_id.append(preamble.channel_id)
    event.sample_time = preamble.sample_time
    event.v_slp.append(preamble.slope)
    event.v_off.append(preamble.offset)
    event.v_off2.append(preamble.offset2)
    event.n_channels += 1


def _ensure_buffers(event: ScopeEvent) -> None:
    n = max(event.n_samples, 0)
    if len(event.t) < n:
        event.t.extend([0.0] * (n - len(event.t)))
    while len(event.v) < event.n_channels:
        event.v.append([])
    for row in event.v:
        if len(row) < n:
            row.extend([0.0] * (n - len(row)))


def _read_channels(event: ScopeEvent, stream) -> None:
    """Read one waveform per channel; samples not re-read keep old values."""
    _ensure_buffers(event)
    for ich in range(event.n_channels):
        values = read_samples(
            stream, event.n_samples, event.v_off[ich], event.v_slp[ich], event.v_off2[ich]
        )
        row = event.v[ich]
        event.v[ich] = values + row[len(values):]
    event.t = [event.sample_time * (i + 0.5) for i in range(event.n_samples)]


def _trigger_number(line: str) -> int:
    words = parse_fields(line, " ")
    if len(words) < 3:
        raise ValueError(f"malformed trigger line: {line!r}")
    return _strtol(words[2]) + 1


def _snapshot(event: ScopeEvent) -> tuple[GaasHeaderBlock, GaasDataBlock]:
    _ensure_buffers(event)
    return header_block_from(event), data_block_from(event)


def _record(header: GaasHeaderBlock, data: GaasDataBlock) -> dict:
    data_fields = {
        name: value for name, value in vars(data).items() if name not in ("t", "v")
    }
    data_fields["t"] = data.t.tolist()
    data_fields["v"] = data.v.tolist()
    return {"header": asdict(header), "data": data_fields}


def write_events(events, path) -> int:
    """Write (header, data) block pairs to ``path`` as JSON lines; return the count."""
    count = 0
    with open(path, "w", encoding="utf-8") as out:
        for header, data in events:
            out.write(json.dumps(_record(header, data)) + "\n")
            count += 1
    return count


class TekConverter:
    """Reads a single-frame Tektronix dump of one run into event blocks."""

    def __init__(self, output_dir=None):
        self.output_dir = None if output_dir is None else Path(output_dir)
        self.readout_mode = -1
        self.n_frames = -1

    @staticmethod
    def input_name(run_number: int) -> str:
        return f"qdgaas.fnal.{run_number:06d}.txt"

    @staticmethod
    def output_name(run_number: int) -> str:
        return f"gaasqd_fnal.{run_number:06d}_00000000"

    def read_gaas_data(self, dirname, run_number: int):
        """Convert ``<dirname>/qdgaas.fnal.<run>.txt`` into event blocks.

        Every line past the preamble that is neither blank nor a header
        line yields one event; a ``trigger`` line first reads a waveform
        for each channel.  Returns a list of (header, data) block pairs
        and, when an output directory is set, writes them there.
        """
        path = Path(dirname) / self.input_name(run_number)
        if not path.is_file():
            raise FileNotFoundError(f"can't open input file {path}")
        start, end = read_run_times(path)
        event = _new_event(run_number, start, end)
        blocks = []
        with open(path, encoding="utf-8", errors="replace") as stream:
            for raw in stream:
                log.debug("line: %s", raw.rstrip("\n"))
                line = _clean(raw)
                if line.startswith(_SKIPPED_PREFIXES):
                    continue
                if line.startswith("DATA:"):
                    spec = parse_data_line(line)
                    self.readout_mode = spec.readout_mode
                    event.n_samples = spec.n_samples
                    continue
                if line.startswith("WFMOutpre:"):
                    preamble = parse_waveform_preamble(line)
                    if preamble is not None:
                        _add_channel(event, preamble)
                    continue
                if not line:
                    continue
                if line.startswith("trigger"):
                    event.event_number = _trigger_number(line)
                    _read_channels(event, stream)
                blocks.append(_snapshot(event))

        if self.output_dir is not None:
            write_events(blocks, self.output_dir / self.output_name(run_number))
        return blocks


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Convert a Tektronix run dump.")
    parser.add_argument("dirname")
    parser.add_argument("run_number", type=int)
    parser.add_argument("--output-dir", default=".")
    args = parser.parse_args(argv)
    converter = TekConverter(args.output_dir)
    try:
        blocks = converter.read_gaas_data(args.dirname, args.run_number)
    except FileNotFoundError as exc:
        print(f" {exc}. BAIL OUT", file=sys.stderr)
        return 1
    print(f" --- finish after processing: {len(blocks)} events")
    return 0