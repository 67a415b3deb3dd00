"""Line-level parsing of Tektronix scope text dumps."""

from __future__ import annotations

import re
from typing import Iterable, NamedTuple

UNDEFINED = "undefined"
SINGLE_FRAME = 0
FAST_FRAME = 1

_INT = re.compile(r"\s*([+-]?\d+)")
_FLOAT = re.compile(r"\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")
_N_PREAMBLE_FIELDS = 16


def _strtol(text: str) -> int:
    """Leading decimal integer of ``text``, or 0 when there is none."""
    match = _INT.match(text)
    return int(match.group(1)) if match else 0


def _strtof(text: str) -> float:
    """Leading floating-point number of ``text``, or 0.0 when there is none."""
    match = _FLOAT.match(text)
    return float(match.group(1)) if match else 0.0


class DataSpec(NamedTuple):
    """What a ``DATA:`` line says about the readout."""

    readout_mode: int
    n_samples: int


class Preamble(NamedTuple):
    """Scaling of one channel, from a ``WFMOutpre:`` line."""

    channel_id: int
    sample_time: float
    slope: float
    offset: float
    offset2: float


def parse_fields(text: str, delimiter: str) -> list[str]:
    """Split ``text`` at every ``delimiter``, keeping empty fields."""
    if len(delimiter) != 1:
        raise ValueError("delimiter must be a single character")
    return text.split(delimiter)


def _joined_time(line: str) -> str:
    words = parse_fields(line, " ")
    if len(words) < 3:
        raise ValueError(f"malformed run time line: {line!r}")
    return f"{words[1]} {words[2]}"


def read_run_times(path) -> tuple[str, str]:
    """Return the run start and end times recorded in a dump file.

    A time missing from the file is reported as ``"undefined"``.
    """
    start = end = UNDEFINED
    with open(path, encoding="utf-8", errors="replace") as stream:
        for raw in stream:
            if "RUN_" not in raw:
                continue
            line = raw.rstrip("\n").rstrip("\r")
            if line.startswith("RUN_START_TIME:"):
                start = _joined_time(line)
            elif line.startswith("RUN_END_TIME:"):
                end = _joined_time(line)
    return start, end


def parse_data_line(line: str) -> DataSpec:
    """Parse a ``DATA:`` line: readout mode and number of samples.

    The number of samples is the third field from the end; the first
    sample read is assumed to be sample 1.
    """
    if not line.startswith("DATA:"):
        raise ValueError(f"not a DATA line: {line!r}")
    words = parse_fields(line, ";")
    if len(words) < 3:
        raise ValueError(f"DATA line has {len(words)} fields, at least 3 needed")
    mode = FAST_FRAME if words[1] == "FASTEST" else SINGLE_FRAME
    return DataSpec(mode, _strtol(words[-3]))


def parse_waveform_preamble(line: str) -> Preamble | None:
    """Parse a ``WFMOutpre:`` line; return None for a short (query) line."""
    words = parse_fields(line, ";")
    if len(words) <= 5:
        return None
    if len(words) < _N_PREAMBLE_FIELDS:
        raise ValueError(
            f"waveform preamble has {len(words)} fields, {_N_PREAMBLE_FIELDS} needed"
        )
    names = parse_fields(words[0], ":")
    if len(names) < 2 or len(names[1]) < 3:
        raise ValueError(f"no channel name in {words[0]!r}")
    channel_id = ord(names[1][2]) - ord("1")
    return Preamble(
        channel_id=channel_id,
        sample_time=_strtof(words[9]),
        slope=_strtof(words[13]),
        offset=_strtof(words[14]),
        offset2=_strtof(words[15]),
    )


def read_samples(
    lines: Iterable[str], n_samples: int, offset: float, slope: float, offset2: float
) -> list[float]:
    """Read comma-separated digitizer counts until ``n_samples`` are collected.

    Each count ``c`` becomes ``(c - offset) * slope + offset2``.  Whole
    lines are consumed, so the result may hold more than ``n_samples``
    values; it holds fewer when ``lines`` runs out first.  Pass an
    iterator (or an open file) to continue reading where this call stops.
    """
    values: list[float] = []
    for raw in iter(lines):
        line = raw.rstrip("\n").rstrip("\r").rstrip(" ").rstrip(",")
        values.extend(
            (_strtol(word) - offset) * slope + offset2 for word in parse_fields(line, ",")
        )
        if len(values) >= n_samples:
            break
    return values