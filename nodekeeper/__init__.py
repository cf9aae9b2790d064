"""Rolling OS and Kubernetes upgrades for cluster nodes."""

__version__ = "0.1.0"
