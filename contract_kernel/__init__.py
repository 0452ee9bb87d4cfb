"""
Contract Kernel

Primitives shared by every Islamic-finance contract calculator:
- Decimal-only money, quantity and percentage value objects
- The contract-terms tagged union (one variant per archetype)
- The due-diligence checklist and underwriting policy
- Typed exceptions with machine-readable codes
- Structured JSON logging and an injectable clock
"""

__version__ = "0.1.0"
