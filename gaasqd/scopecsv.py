"""Conversion of per-event scope CSV files into header and data blocks."""

from __future__ import annotations

import argparse
import json
import re
from dataclasses import asdict, replace
from pathlib import Path

from gaasqd.events import (
    GaasDataBlock,
    GaasHeaderBlock,
    ScopeEvent,
    data_block_from,
    header_block_from,
)

STN_VERSION = "v7_3_0"

_INT = re.compile(r"\s*([+-]?)(0[xX][0-9a-fA-F]+|0[0-7]*|[1-9][0-9]*)")
_FLOAT = re.compile(r"\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def _scan_int(text: str) -> int | None:
    match = _INT.match(text)
    if match is None:
        return None
    sign, digits = match.groups()
    value = int(digits, 0) if digits[:2].lower() == "0x" or digits == "0" else (
        int(digits, 8) if digits.startswith("0") else int(digits)
    )
    return -value if sign == "-" else value


def _scan_float(text: str) -> float | None:
    match = _FLOAT.match(text)
    return float(match.group()) if match else None


def _set(values: list, index: int, value) -> None:
    if len(values) <= index:
        values.extend([0.0] * (index + 1 - len(values)))
    if value is not None:
        values[index] = value


def read_scope_csv(path, event: ScopeEvent) -> ScopeEvent:
    """Read one Tektronix CSV record; return ``event`` updated with its data.

    The number of channels is taken from the first line when ``event``
    does not know it yet (negative).  Fields that cannot be parsed leave
    the previous value in place.
    """
    result = replace(
        event,
        t=list(event.t),
        v=[list(row) for row in event.v],
        channel_id=list(event.channel_id),
    )
    with open(path, encoding="utf-8") as stream:
        for nline, raw in enumerate(stream):
            words = raw.rstrip("\n").strip().split(",")
            if result.n_channels == -1:
                result.n_channels = len(words) - 4
            if len(words) < 4:
                raise ValueError(f"{path}: line {nline + 1} has {len(words)} fields, 4 needed")
            key = words[0]
            if key == '"Record Length"':
                value = _scan_int(words[1])
                result.n_samples = result.n_samples if value is None else value
            elif key == '"Sample Interval"':
                value = _scan_float(words[1])
                result.sample_time = result.sample_time if value is None else value
            elif key == '"Trigger Point"':
                value = _scan_int(words[1])
                result.trigger_sample = result.trigger_sample if value is None else value
            elif key == '"Trigger Time"':
                value = _scan_float(words[1])
                result.trigger_time = result.trigger_time if value is None else value
            _set(result.t, nline, _scan_float(words[3]))
            for ich, word in enumerate(words[4:]):
                while len(result.v) <= ich:
                    result.v.append([])
                _set(result.v[ich], nline, _scan_float(word))

    n_channels = max(result.n_channels, 0)
    while len(result.v) < n_channels:
        result.v.append([])
    if len(result.t) < result.n_samples:
        result.t.extend([0.0] * (result.n_samples - len(result.t)))
    for row in result.v:
        if len(row) < result.n_samples:
            row.extend([0.0] * (result.n_samples - len(row)))
    if len(result.channel_id) < n_channels:
        result.channel_id.extend(range(len(result.channel_id), n_channels))
    return result


def _record(header: GaasHeaderBlock, data: GaasDataBlock) -> dict:
    data_fields = {
        name: value for name, value in vars(data).items() if name not in ("t", "v")
    }
    data_fields["t"] = data.t.tolist()
    data_fields["v"] = data.v.tolist()
    return {"header": asdict(header), "data": data_fields}


class ScopeDataConverter:
    """Reads numbered CSV files of one run and converts them to blocks."""

    def __init__(self, output_dir=None):
        self.output_dir = None if output_dir is None else Path(output_dir)

    @staticmethod
    def output_name(run_number: int) -> str:
        return f"gaasqd_fnal.{run_number:06d}_00000000"

    def read_gaas_data(self, dirname, run_number: int, pattern: str):
        """Convert ``<dirname>/<pattern>_NNNN.csv`` files into event blocks.

        As many indices are tried as there are directory entries whose name
        contains ``pattern``; missing files in the sequence are skipped.
        Returns a list of (header block, data block) pairs and, when an
        output directory is set, writes them there as JSON lines.
        """
        directory = Path(dirname)
        if not directory.is_dir():
            raise FileNotFoundError(f"no such directory: {directory}")
        n_files = sum(
            1
            for entry in directory.iterdir()
            if pattern in entry.name and not entry.name.startswith("#")
        )
        event = ScopeEvent(
            run_number=run_number,
            subrun_number=0,
            mc_flag=0,
            version=1,
            br_code=0,
            good_trig=1,
            trig_word=0,
            cpu=0,
            stn_version=STN_VERSION,
            n_channels=-1,
        )
        blocks = []
        for index in range(n_files):
            path = directory / f"{pattern}_{index:04d}.csv"
            if not path.is_file():
                continue
            event = read_scope_csv(path, replace(event, event_number=index))
            snapshot = replace(event, n_channels=max(event.n_channels, 0))
            blocks.append((header_block_from(snapshot), data_block_from(snapshot)))

        if self.output_dir is not None:
            target = self.output_dir / self.output_name(run_number)
            with open(target, "w", encoding="utf-8") as out:
                for header, data in blocks:
                    out.write(json.dumps(_record(header, data)) + "\n")
        return blocks


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Convert scope CSV files of a run.")
    parser.add_argument("dirname")
    parser.add_argument("run_number", type=int)
    parser.add_argument("pattern")
    parser.add_argument("--output-dir", default=".")
    args = parser.parse_args(argv)
    converter = ScopeDataConverter(args.output_dir)
    blocks = converter.read_gaas_data(args.dirname, args.run_number, args.pattern)
    print(f" --- finish after processing: {len(blocks)} events")
    return 0