"""Photon-tracing simulation, scope-data conversion and single-channel waveform reconstruction for GaAs quantum-dot sensors."""

__version__ = "0.1.0"