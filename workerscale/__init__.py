"""
Worker replica scaler driven by task queue backlog.

This package computes how many worker replicas are needed to drain a set of
task queues without exceeding each queue's per-worker concurrency, and exposes
that number to an external autoscaler through a pull-based metrics endpoint.
"""

__version__ = "0.1.0"
