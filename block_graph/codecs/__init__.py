"""
BlockGraph - Codecs Package
=============================
Codec header, transazioni e witness commitment.
"""

from block_graph.codecs.header import BlockHeaderCodec
from block_graph.codecs.transaction import TransactionCodec
from block_graph.codecs.witness_commitment import (
    WitnessCommitmentCodec,
    find_commitment,
)
from block_graph.codecs.registry import (
    Codec,
    CodecRegistry,
    create_default_registry,
)

__all__ = [
    "BlockHeaderCodec",
    "TransactionCodec",
    "WitnessCommitmentCodec",
    "find_commitment",
    "Codec",
    "CodecRegistry",
    "create_default_registry",
]
