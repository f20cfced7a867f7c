"""Cluster planning, manifest building and per-kind handlers."""
