"""
BlockGraph - Merkle Tree Implementation
=========================================
Merkle tree delle transazioni con emissione lazy dei nodi.

Ogni nodo interno è dsha256(left || right); se un livello ha un numero
dispari di nodi l'ultimo viene duplicato. In witness mode la foglia del
coinbase è sostituita da 32 byte zero per il calcolo dei nodi interni,
ma viene comunque emessa con i suoi dati originali.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple, Union

from block_graph.constants import CID_VERSION, CODEC_TX_CODE, NULL_HASH
from block_graph.domain.content_id import (
    ContentIdentifier,
    IdentifierFactory,
    create_identifier,
)
from block_graph.domain.crypto_core import HashProvider, DoubleSha256Provider
from block_graph.errors import MerkleTreeError
from block_graph.logging_setup import get_logger

logger = get_logger("utils.merkle")

Leaf = Union[bytes, Tuple[bytes, bytes]]


# ============================================================================
# MERKLE NODE
# ============================================================================

@dataclass(frozen=True)
class MerkleNode:
    """
    Node in Merkle tree.

    Attributes:
        digest: Node hash (wire order)
        binary: Bytes originari (transazione per una foglia, left || right per un nodo interno)
        level: 0 per le foglie, +1 per ogni livello verso la root
        position: Indice nel livello
        identifier: Content identifier del nodo
    """
    digest: bytes
    binary: bytes
    level: int
    position: int
    identifier: ContentIdentifier

    @property
    def size(self) -> int:
        return len(self.binary)

    def is_leaf(self) -> bool:
        """Check if leaf node"""
        return self.level == 0


def count_merkle_nodes(leaf_count: int) -> int:
    """
    Numero totale di nodi emessi (foglie + nodi interni).

    Examples:
        >>> count_merkle_nodes(1)
        1
        >>> count_merkle_nodes(3)
        6
    """
    if leaf_count < 1:
        raise MerkleTreeError(
            "Merkle tree requires at least one leaf",
            code="EMPTY_MERKLE_TREE"
        )

    total = leaf_count
    level = leaf_count
    while level > 1:
        level = (level + 1) // 2
        total += level
    return total


# ============================================================================
# NODE STREAM
# ============================================================================

class MerkleNodeStream:
    """
    Iteratore lazy sui nodi del merkle tree.

    Emette prima tutte le foglie, poi i nodi interni livello per livello
    dal basso verso l'alto; ogni nodo interno è calcolato solo quando
    viene richiesto. Lo stato (indice + livello corrente) vive nell'istanza:
    per ripartire occorre costruire un nuovo stream.

    Examples:
        >>> stream = MerkleTreeBuilder().build([bytes(32), bytes(32)])
        >>> nodes = list(stream)
        >>> len(nodes), stream.emitted
        (3, 3)
    """

    def __init__(
        self,
        leaves: Sequence[Tuple[bytes, bytes]],
        zero_first: bool,
        hash_provider: HashProvider,
        identifier_factory: IdentifierFactory,
        codec: int
    ):
        self._leaves = list(leaves)
        self._hash_provider = hash_provider
        self._identifier_factory = identifier_factory
        self._codec = codec

        self._current: List[bytes] = [digest for digest, _ in self._leaves]
        if zero_first:
            self._current[0] = NULL_HASH
        self._next: List[bytes] = []

        self._leaf_index = 0
        self._pair_index = 0
        self._level = 0
        self._emitted = 0
        self._root: Optional[bytes] = None

    @property
    def leaf_count(self) -> int:
        return len(self._leaves)

    @property
    def emitted(self) -> int:
        """Nodi emessi finora"""
        return self._emitted

    @property
    def expected_count(self) -> int:
        return count_merkle_nodes(len(self._leaves))

    @property
    def exhausted(self) -> bool:
        return self._root is not None

    @property
    def root(self) -> bytes:
        """
        Root digest, disponibile dopo aver consumato lo stream.

        Raises:
            MerkleTreeError: Stream non ancora esaurito
        """
        if self._root is None:
            raise MerkleTreeError(
                "Merkle root not available until the stream is exhausted",
                code="STREAM_NOT_EXHAUSTED",
                details={"emitted": self._emitted, "expected": self.expected_count}
            )
        return self._root

    def _node(self, digest: bytes, binary: bytes, level: int, position: int) -> MerkleNode:
        identifier = self._identifier_factory(
            CID_VERSION, self._codec, self._hash_provider.code, digest
        )
        self._emitted += 1
        return MerkleNode(
            digest=digest,
            binary=binary,
            level=level,
            position=position,
            identifier=identifier,
        )

    def __iter__(self) -> "MerkleNodeStream":
        return self

    def __next__(self) -> MerkleNode:
        # Foglie
        if self._leaf_index < len(self._leaves):
            digest, binary = self._leaves[self._leaf_index]
            position = self._leaf_index
            self._leaf_index += 1
            return self._node(digest, binary, 0, position)

        # Root raggiunta
        if len(self._current) == 1:
            self._root = self._current[0]
            raise StopIteration

        # Nodo interno successivo (duplica l'ultimo se dispari)
        left_index = self._pair_index * 2
        left = self._current[left_index]
        if left_index + 1 < len(self._current):
            right = self._current[left_index + 1]
        else:
            right = left

        binary = left + right
        digest = self._hash_provider.digest(binary)
        node = self._node(digest, binary, self._level + 1, self._pair_index)

        self._next.append(digest)
        self._pair_index += 1
        if self._pair_index * 2 >= len(self._current):
            self._current = self._next
            self._next = []
            self._pair_index = 0
            self._level += 1

        return node

    def __repr__(self) -> str:
        return (
            f"MerkleNodeStream(leaves={len(self._leaves)}, "
            f"emitted={self._emitted}/{self.expected_count})"
        )


# ============================================================================
# MERKLE TREE BUILDER
# ============================================================================

class MerkleTreeBuilder:
    """
    Costruisce merkle tree da una sequenza ordinata di foglie.

    Le foglie possono essere digest (32 byte) oppure coppie
    (digest, bytes originari) quando il chiamante vuole che lo stream
    riporti anche la transazione di origine.

    Examples:
        >>> builder = MerkleTreeBuilder()
        >>> builder.root([bytes(32)]) == bytes(32)
        True
    """

    def __init__(
        self,
        hash_provider: Optional[HashProvider] = None,
        identifier_factory: Optional[IdentifierFactory] = None,
        codec: int = CODEC_TX_CODE
    ):
        self.hash_provider = hash_provider or DoubleSha256Provider()
        self.identifier_factory = identifier_factory or create_identifier
        self.codec = codec

    def _normalize(self, leaves: Sequence[Leaf]) -> List[Tuple[bytes, bytes]]:
        normalized = []
        for index, leaf in enumerate(leaves):
            if isinstance(leaf, tuple):
                digest, binary = leaf
            else:
                digest, binary = leaf, b""

            if not isinstance(digest, bytes) or len(digest) != self.hash_provider.digest_size:
                raise MerkleTreeError(
                    f"Leaf {index} is not a {self.hash_provider.digest_size}-byte digest",
                    code="INVALID_MERKLE_LEAF",
                    details={"index": index}
                )
            normalized.append((digest, binary))
        return normalized

    def build(self, leaves: Sequence[Leaf], zero_first: bool = False) -> MerkleNodeStream:
        """
        Crea lo stream lazy dei nodi.

        Args:
            leaves: Foglie ordinate (almeno una)
            zero_first: Sostituisci la prima foglia con 32 byte zero (witness root)

        Returns:
            MerkleNodeStream: Iteratore sui nodi

        Raises:
            MerkleTreeError: Nessuna foglia o foglia malformata
        """
        if not leaves:
            raise MerkleTreeError(
                "Cannot create Merkle tree with no leaves",
                code="EMPTY_MERKLE_TREE"
            )

        logger.debug(
            "Building merkle tree",
            extra_data={"leaves": len(leaves), "zero_first": zero_first}
        )

        return MerkleNodeStream(
            leaves=self._normalize(leaves),
            zero_first=zero_first,
            hash_provider=self.hash_provider,
            identifier_factory=self.identifier_factory,
            codec=self.codec,
        )

    def root(self, leaves: Sequence[Leaf], zero_first: bool = False) -> bytes:
        """
        Calcola la merkle root consumando l'intero stream.

        Returns:
            bytes: Root digest (wire order)
        """
        stream = self.build(leaves, zero_first=zero_first)
        for _ in stream:
            pass
        return stream.root


# ============================================================================
# EXPORT
# ============================================================================

__all__ = [
    "MerkleNode",
    "MerkleNodeStream",
    "MerkleTreeBuilder",
    "count_merkle_nodes",
]
