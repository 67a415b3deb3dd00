"""Conversion of FastFrame Tektronix text dumps into event blocks.

In FastFrame mode the scope records several frames per trigger block.  A
block starts with a ``>>>Num_Frames: N`` line, followed by N timestamp
lines and then, for every frame, one waveform per channel.
"""

from __future__ import annotations

import argparse
import logging
import re
import sys
import time
from datetime import datetime
from pathlib import Path
from typing import NamedTuple

from gaasqd.scopecsv import _scan_int
from gaasqd.tekdata import (
    _add_channel,
    _clean,
    _new_event,
    _read_channels,
    _snapshot,
    write_events,
)
from gaasqd.tekformat import parse_data_line, parse_waveform_preamble, read_run_times

log = logging.getLogger(__name__)

_SKIPPED_PREFIXES = ("(u'GPIB0::", "RUN_", "TEKTRONIX", "header")
_N_FRAMES_PREFIX = ">>>Num_Frames:"
_TIMESTAMP = re.compile(
    r"\s*(\S+?):\s+(\S+)\s+(\S+)\s+(\S+)\s+(\S{1,8})\.(\S{1,3})\s*(\S+)\s+(\S+)\s+(\S+)"
)


class FrameTimestamp(NamedTuple):
    """Trigger time of one frame: unix time plus sub-second parts."""

    event: int
    epoch: int
    usec: int
    psec: int


class FrameTiming(NamedTuple):
    """Timing attached to one converted frame; ``delta_t`` in milliseconds."""

    epoch: int
    usec: int
    psec: int
    delta_t: float


def _int_field(text: str, width: int | None = None) -> int:
    value = _scan_int(text if width is None else text[:width])
    if value is None:
        raise ValueError(f"not an integer: {text!r}")
    return value


def _leading_decimal(text: str) -> int:
    match = re.match(r"\s*([+-]?\d+)", text)
    return int(match.group(1)) if match else 0


def parse_frame_timestamp(line: str) -> FrameTimestamp:
    """Parse ``'<evt>: <day> <mon> <year> HH:MM:SS.mmm uuu ppp ppp'``.

    Microseconds are ``1000*mmm + uuu``, picoseconds the two remaining
    three-digit groups combined the same way.  The calendar time is taken
    as local standard time.
    """
    match = _TIMESTAMP.match(line)
    if match is None:
        raise ValueError(f"malformed frame timestamp: {line!r}")
    evt, day, month, year, time_of_day, millis, tt1, tt2, tt3 = match.groups()
    stamp = datetime.strptime(f"{year}-{month}-{day} {time_of_day}", "%Y-%b-%d %H:%M:%S")
    epoch = int(time.mktime(stamp.timetuple()[:8] + (0,)))
    tt0 = _leading_decimal(millis)
    usec = 1000 * tt0 + _int_field(tt1, 3)
    psec = 1000 * _int_field(tt2, 3) + _int_field(tt3, 3)
    return FrameTimestamp(_int_field(evt), epoch, usec, psec)


def _parse_n_frames(line: str) -> int:
    value = _scan_int(line[len(_N_FRAMES_PREFIX):])
    if value is None or value < 0:
        raise ValueError(f"malformed frame count line: {line!r}")
    return value


def _next_line(stream) -> str:
    line = stream.readline()
    if not line:
        raise ValueError("input ends inside a frame timestamp list")
    return line


def _deltas_usec(stamps: list[FrameTimestamp]) -> list[int]:
    deltas = [0] if stamps else []
    for prev, cur in zip(stamps, stamps[1:]):
        deltas.append((cur.epoch - prev.epoch) * 1_000_000 + (cur.usec - prev.usec))
    return deltas


class FastFrameConverter:
    """Reads a FastFrame Tektronix dump of one run into event blocks."""

    def __init__(self, output_dir=None):
        self.output_dir = None if output_dir is None else Path(output_dir)
        self.n_frames = -1
        self.timings: list[FrameTiming] = []

    @staticmethod
    def input_name(run_number: int) -> str:
        return f"qdgaas.fnal.{run_number:06d}.txt"

    @staticmethod
    def output_name(run_number: int) -> str:
        return f"gaasqd_fnal.{run_number:06d}_00000000"

    def read_gaas_data(self, dirname, run_number: int):
        """Convert ``<dirname>/qdgaas.fnal.<run>.txt`` frame by frame.

        Returns a list of (header, data) block pairs, one per frame; the
        frame timing of each pair is kept in ``self.timings`` in the same
        order.  Event numbers are ``n_blocks * n_frames + frame + 1``,
        where every processed non-blank line counts as a block.
        """
        path = Path(dirname) / self.input_name(run_number)
        if not path.is_file():
            raise FileNotFoundError(f"can't open input file {path}")
        start, end = read_run_times(path)
        event = _new_event(run_number, start, end)
        blocks = []
        self.timings = []
        n_blocks = 0
        with open(path, encoding="utf-8", errors="replace") as stream:
            while True:
                raw = stream.readline()
                if not raw:
                    break
                log.debug("line: %s", raw.rstrip("\n"))
                line = _clean(raw)
                if line.startswith(_SKIPPED_PREFIXES):
                    continue
                if line.startswith("DATA:"):
                    event.n_samples = parse_data_line(line).n_samples
                    continue
                if line.startswith("WFMOutpre:"):
                    preamble = parse_waveform_preamble(line)
                    if preamble is not None:
                        _add_channel(event, preamble)
                    continue
                if not line:
                    continue
                if line.startswith(_N_FRAMES_PREFIX):
                    self.n_frames = _parse_n_frames(line)
                    stamps = [
                        parse_frame_timestamp(_next_line(stream)) for _ in range(self.n_frames)
                    ]
                    for frame, (stamp, delta) in enumerate(zip(stamps, _deltas_usec(stamps))):
                        event.event_number = n_blocks * self.n_frames + frame + 1
                        _read_channels(event, stream)
                        event.epoch = stamp.epoch
                        event.usec = stamp.usec
                        event.psec = stamp.psec
                        event.delta_t = delta / 1.0e3
                        blocks.append(_snapshot(event))
                        self.timings.append(
                            FrameTiming(stamp.epoch, stamp.usec, stamp.psec, event.delta_t)
                        )
                n_blocks += 1

        if self.output_dir is not None:
            write_events(blocks, self.output_dir / self.output_name(run_number))
        return blocks


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Convert a FastFrame Tektronix run dump.")
    parser.add_argument("dirname")
    parser.add_argument("run_number", type=int)
    parser.add_argument("--output-dir", default=".")
    args = parser.parse_args(argv)
    converter = FastFrameConverter(args.output_dir)
    try:
        blocks = converter.read_gaas_data(args.dirname, args.run_number)
    except FileNotFoundError as exc:
        print(f" {exc}. BAIL OUT", file=sys.stderr)
        return 1
    print(f" --- finish after processing: {len(blocks)} events")
    return 0