"""
Valuation Kernel - asset valuation core.

Pure, deterministic building blocks for pricing an amount of one asset in
terms of another:
- Fixed-point integer arithmetic (no floats anywhere in the pipeline)
- Read-only asset universe snapshots (primitive / derivative roles)
- Collaborator protocols for rate sources and derivative decomposers
- Typed, coded exceptions for hard failures
"""

__version__ = "0.1.0"
