"""splitr - split-tunnel route reconciliation for macOS L2TP VPNs."""

__version__ = "0.1.0"
