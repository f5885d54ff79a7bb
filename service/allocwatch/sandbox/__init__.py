from .engine import SandboxError, SyntheticAllocationEngine

__all__ = ["SandboxError", "SyntheticAllocationEngine"]
