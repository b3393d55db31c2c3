"""Monte-Carlo path tracer in the "Ray Tracing in One Weekend" lineage."""

__version__ = "0.1.0"
