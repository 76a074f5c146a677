"""Declarative lifecycle manager for vcluster virtual Kubernetes clusters."""

__version__ = "0.1.0"
