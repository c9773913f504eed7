"""
BlockGraph - Utilities Package
================================
Serializzazione binaria e merkle tree.
"""

from block_graph.utils.serialization import (
    serialize_to_json,
    bytes_to_hex,
    hex_to_bytes,
    to_hash_hex,
    from_hash_hex,
    compact_size,
    read_compact_size,
    ByteReader,
)
from block_graph.utils.merkle import (
    MerkleNode,
    MerkleNodeStream,
    MerkleTreeBuilder,
    count_merkle_nodes,
)

__all__ = [
    # Serialization
    "serialize_to_json",
    "bytes_to_hex",
    "hex_to_bytes",
    "to_hash_hex",
    "from_hash_hex",
    "compact_size",
    "read_compact_size",
    "ByteReader",

    # Merkle
    "MerkleNode",
    "MerkleNodeStream",
    "MerkleTreeBuilder",
    "count_merkle_nodes",
]
