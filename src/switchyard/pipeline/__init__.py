"""Pipeline layer: chain composition and reusable behaviors.

Depends on the domain layer only.
"""

from switchyard.pipeline.composer import CallScope, Continuation, compose_pipeline

__all__ = ["CallScope", "Continuation", "compose_pipeline"]
