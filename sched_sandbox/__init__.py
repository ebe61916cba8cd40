"""
CPU Scheduling Sandbox

Core modules:
- models: process/core/history dataclasses, policies and policy parameters
- engine: the pure one-tick state transition (advance)
- timeline: compacted per-core occupancy history (observational only)
- simulation: the single owner of state between ticks
- driver: manual step and timed play at an adjustable speed
- metrics, reporting, trace: read-only views over a run (no behavior changes)
"""
