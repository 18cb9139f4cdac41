"""
Password Arena

Realtime password-strength arena: request gating, live broadcast of scored
submissions, and the web front-end that wires them together.
"""

__version__ = "0.1.0"

__all__ = ["broadcast", "config", "gates", "logging", "metrics", "web"]
