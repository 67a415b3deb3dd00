# gaasqd

Tools for a GaAs quantum-dot scintillator test bench:

- a quick Monte Carlo of photons travelling inside a rectangular GaAs sensor,
  reflecting off its faces until they reach a photodiode or fibre, are
  absorbed, or escape;
- converters that read oscilloscope exports (per-event CSV files and
  Tektronix text dumps, single-frame and FastFrame) into header and data
  blocks, written as JSON lines;
- reconstruction of a single channel's waveform: pedestal, peak, leading and
  trailing-edge slopes, pulse width and integrated charge.

## Installation

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Command-line tools

| Command                  | What it does                                                  |
|--------------------------|---------------------------------------------------------------|
| `gaasqd-quicksim`        | run the photon-tracing simulation, print mean efficiencies     |
| `gaasqd-convert-scope`   | convert a run of numbered scope CSV files into events          |
| `gaasqd-convert-tek`     | convert a single-frame Tektronix run file into events          |
| `gaasqd-convert-frames`  | convert a FastFrame Tektronix run file into events             |

Each command describes its arguments with `--help`.

### `gaasqd-quicksim`

```
gaasqd-quicksim DIST N_EVENTS --sensor HX HY HZ [--diode SIDE DX DY DZ]
                [--n-photons N] [--seed SEED] [--output FILE]
```

`--sensor` gives the sensor half sizes. Without `--diode` a thin photodiode
covers the whole low-X face. Photons start at distance `DIST` in X from the
diode centre. `--n-photons` is the Poisson mean per event (a negative value
gives a fixed count). It prints the mean detection efficiency from the two
efficiency histograms and, with `--output`, writes all histograms to a JSON
file.

### Converters

```
gaasqd-convert-scope DIRNAME RUN PATTERN [--output-dir DIR]
gaasqd-convert-tek DIRNAME RUN [--output-dir DIR]
gaasqd-convert-frames DIRNAME RUN [--output-dir DIR]
```

The scope converter reads `DIRNAME/PATTERN_NNNN.csv`, skipping missing
numbers. The Tektronix converters read `DIRNAME/qdgaas.fnal.<run>.txt` (run
number zero-padded to six digits). All three write
`gaasqd_fnal.<run>_00000000` in the output directory (default: the current
one), one JSON object with `header` and `data` per event.

## Library overview

- `gaasqd.trajectory.TrajectoryPoint` – position, direction, path length and
  momentum, with `global_to_local`, `local_to_global` and `format`.
- `gaasqd.optics` – `Detector` (a photodiode or fibre on one face) and
  `PhotonTracer` with `simulate_reflection`, `simulate_detector` and `trace`.
- `gaasqd.quicksim.QuickSim` – `init_geometry(sensor, detectors)`,
  `begin_job()`, `run(dist, n_events)` returning the two mean efficiencies,
  and `save_hist(path)`.
- `gaasqd.histogram` – `Hist1D`, `Hist2D`, `HistFolder` and
  `save_folder(folder, path)`, which stores a folder tree as JSON.
- `gaasqd.events` – `ScopeEvent`, `GaasHeaderBlock`, `GaasDataBlock`,
  `header_block_from(event)` and `data_block_from(event)`.
- `gaasqd.scopecsv` – `read_scope_csv(path, event)` and `ScopeDataConverter`.
- `gaasqd.tekformat` – line parsers for Tektronix dumps: `parse_fields`,
  `read_run_times`, `parse_data_line`, `parse_waveform_preamble`,
  `read_samples`.
- `gaasqd.tekdata` – `TekConverter` and `write_events(events, path)`.
- `gaasqd.tekframes` – `FastFrameConverter` and `parse_frame_timestamp(line)`;
  per-frame timing is kept in `FastFrameConverter.timings`.
- `gaasqd.fitting` – `fit_pol0(values, imin, imax)` and
  `fit_pol1(values, imin, imax)`, unweighted fits over `[imin, imax)`.
- `gaasqd.pulse` – `CalibChannel`, `ReadoutChannel` and
  `reconstruct_channel(channel, calib)`.

### Photon stop codes

| Code        | Meaning                                                     |
|-------------|-------------------------------------------------------------|
| 1           | reached a detector                                          |
| 2           | absorbed in the crystal                                     |
| 9           | too many reflections                                        |
| 10 + face   | left through a face, inside the escape cone                 |
| 20 + face   | left through a face after diffuse scattering                |

Faces 0 and 1 are the low and high X faces, 2 and 3 the Y faces, 4 and 5 the
low and high Z faces.

## What the package does not do

There is no event-loop driver for reconstruction: `reconstruct_channel`
works on one channel with calibration constants you supply. Nothing here
reads the converted event files back, loads calibrations from a database,
selects pulses by quality or charge, or books per-channel analysis
histograms.