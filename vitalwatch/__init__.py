"""Alert evaluation engine for patient vital-sign monitoring.

The core is framework-agnostic: a time-indexed reading store, per-kind rule
evaluators, trend and correlation scans, and an alert decorator chain.
"""
