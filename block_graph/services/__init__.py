"""
BlockGraph - Services Package
===============================
High-level service layer.
"""

from block_graph.services.block_service import BlockService, BlockVerification

__all__ = [
    "BlockService",
    "BlockVerification",
]
