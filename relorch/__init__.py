"""relorch - release orchestrator for multi-platform library builds."""

__version__ = "0.1.0"
