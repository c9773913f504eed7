"""
BlockGraph - Block Service
============================
Orchestrazione dei codec su blocchi completi.

Last Updated: 2026-10-17
Version: 1.0.0

Features:
- Decode/encode blocco completo (header + transazioni)
- Merkle root e witness root
- Verifica merkle root e witness commitment
- Porcelain JSON (getblock verbosity 2)
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from block_graph.codecs.header import BlockHeaderCodec
from block_graph.codecs.transaction import TransactionCodec
from block_graph.codecs.witness_commitment import WitnessCommitmentCodec
from block_graph.config import BlockGraphSettings, get_settings
from block_graph.constants import MIN_TRANSACTION_SIZE, WITNESS_SCALE_FACTOR
from block_graph.domain.content_id import (
    ContentIdentifier,
    IdentifierFactory,
    create_identifier,
)
from block_graph.domain.crypto_core import HashProvider, DoubleSha256Provider
from block_graph.domain.models import BlockRecord
from block_graph.errors import (
    CodecTypeError,
    MerkleRootMismatchError,
    MissingCoinbaseError,
    MissingWitnessCommitmentError,
    WitnessCommitmentMismatchError,
    WitnessCommitmentSizeError,
)
from block_graph.logging_setup import get_logger, PerformanceLogger
from block_graph.utils.merkle import MerkleNodeStream
from block_graph.utils.serialization import ByteReader, compact_size, to_hash_hex


# ============================================================================
# MODULE LOGGER
# ============================================================================

logger = get_logger("services.block")


# ============================================================================
# VERIFICATION RESULT
# ============================================================================

@dataclass(frozen=True)
class BlockVerification:
    """
    Risultato della verifica strutturale di un blocco.

    Attributes:
        block_hash: Hash del blocco (wire order)
        transaction_count: Numero transazioni
        merkle_root: Merkle root ricalcolata dai txid
        merkle_root_matches: Coincide con quella dell'header
        has_witness: Almeno una transazione segwit
        witness_root: Witness root (None se il blocco non la richiede)
        commitment_found: Commitment hash nel coinbase (None se assente)
        commitment_expected: Commitment ricalcolato (None se non calcolato)
        commitment_error: Codice errore se il commitment non è ricalcolabile
    """

    block_hash: bytes
    transaction_count: int
    merkle_root: bytes
    merkle_root_matches: bool
    has_witness: bool
    witness_root: Optional[bytes] = None
    commitment_found: Optional[bytes] = None
    commitment_expected: Optional[bytes] = None
    commitment_error: Optional[str] = None

    @property
    def commitment_matches(self) -> Optional[bool]:
        """None se non c'è nulla da confrontare"""
        if self.commitment_found is None:
            return None
        if self.commitment_expected is None:
            return False if self.commitment_error else None
        return self.commitment_found == self.commitment_expected

    @property
    def is_valid(self) -> bool:
        if not self.merkle_root_matches:
            return False
        if self.has_witness:
            return self.commitment_matches is True
        return self.commitment_matches is not False

    def to_dict(self) -> Dict[str, Any]:
        def _hex(value: Optional[bytes]) -> Optional[str]:
            return value.hex() if value is not None else None

        return {
            "hash": to_hash_hex(self.block_hash),
            "nTx": self.transaction_count,
            "merkleroot": to_hash_hex(self.merkle_root),
            "merklerootMatches": self.merkle_root_matches,
            "segwit": self.has_witness,
            "witnessRoot": _hex(self.witness_root),
            "commitmentFound": _hex(self.commitment_found),
            "commitmentExpected": _hex(self.commitment_expected),
            "commitmentError": self.commitment_error,
            "commitmentMatches": self.commitment_matches,
            "valid": self.is_valid,
        }


# ============================================================================
# BLOCK SERVICE
# ============================================================================

class BlockService:
    """
    Servizio blocchi completi.

    Compone BlockHeaderCodec, TransactionCodec e WitnessCommitmentCodec
    condividendo hash provider e identifier factory.

    Attributes:
        settings: Configurazione (policy di verifica)
        header_codec: Codec header
        tx_codec: Codec transazioni
        commitment_codec: Codec witness commitment

    Examples:
        >>> service = BlockService()
        >>> block = service.decode_block(raw_block)
        >>> service.verify_block(block).is_valid
        True
    """

    def __init__(
        self,
        settings: Optional[BlockGraphSettings] = None,
        hash_provider: Optional[HashProvider] = None,
        identifier_factory: Optional[IdentifierFactory] = None
    ):
        self.settings = settings or get_settings()
        self.hash_provider = hash_provider or DoubleSha256Provider()
        self.identifier_factory = identifier_factory or create_identifier

        self.header_codec = BlockHeaderCodec(self.hash_provider, self.identifier_factory)
        self.tx_codec = TransactionCodec(self.hash_provider, self.identifier_factory)
        self.commitment_codec = WitnessCommitmentCodec(self.hash_provider, self.identifier_factory)

    # ========================================================================
    # DECODE / ENCODE
    # ========================================================================

    def decode_block(self, raw: bytes) -> BlockRecord:
        """
        Decodifica un blocco completo occupando l'intero buffer.

        Args:
            raw: Header (80 byte) + compact size + transazioni

        Returns:
            BlockRecord: Blocco decodificato

        Raises:
            CodecTypeError: Input non è bytes
            MalformedEncodingError: Buffer troncato, count invalidi o byte residui
        """
        if not isinstance(raw, (bytes, bytearray, memoryview)):
            raise CodecTypeError(
                f"Cannot decode {type(raw).__name__}, expected bytes",
                code="INVALID_INPUT_TYPE"
            )

        with PerformanceLogger(logger, "decode_block"):
            reader = ByteReader(raw)
            header = self.header_codec.decode_from(reader)

            tx_count = reader.read_count(MIN_TRANSACTION_SIZE, "transaction")
            transactions = tuple(
                self.tx_codec.decode_from(reader) for _ in range(tx_count)
            )
            reader.ensure_end("block")

        logger.debug(
            "Decoded block",
            extra_data={"hash": header.hash_hex, "transactions": tx_count, "size": len(raw)}
        )
        return BlockRecord(header=header, transactions=transactions)

    def encode_block(self, block: BlockRecord, witness: bool = True) -> bytes:
        """
        Serializza un blocco completo.

        Args:
            block: Blocco
            witness: Forma completa (True) o stripped (False)
        """
        if not isinstance(block, BlockRecord):
            raise CodecTypeError(
                f"Cannot encode {type(block).__name__} as a block",
                code="INVALID_RECORD_TYPE"
            )

        parts = [
            self.header_codec.encode(block.header),
            compact_size(len(block.transactions)),
        ]
        parts.extend(self.tx_codec.encode(tx, witness=witness) for tx in block.transactions)
        return b"".join(parts)

    def block_identifier(self, block: BlockRecord) -> ContentIdentifier:
        return self.header_codec.identifier(block.header)

    # ========================================================================
    # MERKLE
    # ========================================================================

    def merkle_nodes(self, block: BlockRecord, witness: bool = False) -> MerkleNodeStream:
        """Stream lazy di transazioni e nodi merkle (base o witness tree)"""
        return self.tx_codec.encode_all(block.transactions, witness=witness)

    def merkle_root(self, block: BlockRecord) -> bytes:
        """Merkle root dai txid (confrontabile con l'header)"""
        leaves = [self.tx_codec.txid(tx) for tx in block.transactions]
        return self.tx_codec.merkle_builder.root(leaves)

    def witness_root(self, block: BlockRecord) -> bytes:
        """Witness root dai wtxid, con foglia coinbase azzerata"""
        leaves = [self.tx_codec.wtxid(tx) for tx in block.transactions]
        return self.tx_codec.merkle_builder.root(leaves, zero_first=True)

    # ========================================================================
    # VERIFICATION
    # ========================================================================

    def verify_block(self, block: BlockRecord) -> BlockVerification:
        """
        Verifica merkle root e witness commitment.

        Policy da settings:
        - verify_merkle_root: mismatch della merkle root solleva errore
        - require_witness_commitment: un blocco segwit senza commitment
          o con commitment errato solleva errore

        Raises:
            MissingCoinbaseError: Blocco senza transazioni
            MerkleRootMismatchError: Merkle root diversa dall'header
            MissingWitnessCommitmentError: Blocco segwit senza commitment
            WitnessCommitmentMismatchError: Commitment diverso da quello calcolato
        """
        if not isinstance(block, BlockRecord):
            raise CodecTypeError(
                f"Expected BlockRecord, got {type(block).__name__}",
                code="INVALID_RECORD_TYPE"
            )
        if not block.transactions:
            raise MissingCoinbaseError(
                "Block has no coinbase transaction",
                code="MISSING_COINBASE",
                details={"block": block.header.hash_hex}
            )

        block_hash = self.header_codec.block_hash(block.header)
        block_hex = to_hash_hex(block_hash)

        with PerformanceLogger(logger, "verify_block"):
            merkle_root = self.merkle_root(block)
            merkle_matches = merkle_root == block.fields.merkle_root

            if not merkle_matches:
                logger.warning(
                    "Merkle root mismatch",
                    extra_data={
                        "block": block_hex,
                        "header": block.fields.merkle_root_hex,
                        "computed": to_hash_hex(merkle_root),
                    }
                )
                if self.settings.verify_merkle_root:
                    raise MerkleRootMismatchError(
                        "Computed merkle root does not match block header",
                        code="MERKLE_ROOT_MISMATCH",
                        details={
                            "block": block_hex,
                            "header": block.fields.merkle_root_hex,
                            "computed": to_hash_hex(merkle_root),
                        }
                    )

            found = self.commitment_codec.verify(block)
            has_witness = block.has_witness

            witness_root = None
            expected = None
            size_error = None
            if has_witness or found is not None:
                witness_root = self.witness_root(block)
                try:
                    expected = self.commitment_codec.encode(block, witness_root).digest
                except WitnessCommitmentSizeError as e:
                    size_error = e
                    logger.warning(
                        "Witness commitment cannot be recomputed",
                        extra_data={"block": block_hex, "error": e.code, **e.details}
                    )

            if has_witness and self.settings.require_witness_commitment:
                if found is None:
                    raise MissingWitnessCommitmentError(
                        "Segwit block has no witness commitment in coinbase",
                        code="MISSING_WITNESS_COMMITMENT",
                        details={"block": block_hex}
                    )
                if size_error is not None:
                    raise WitnessCommitmentMismatchError(
                        "Witness commitment cannot be recomputed from coinbase witness",
                        code="WITNESS_COMMITMENT_MISMATCH",
                        details={"block": block_hex, "found": found.hex(), **size_error.details}
                    ) from size_error
                if found != expected:
                    raise WitnessCommitmentMismatchError(
                        "Witness commitment does not match computed witness root",
                        code="WITNESS_COMMITMENT_MISMATCH",
                        details={
                            "block": block_hex,
                            "found": found.hex(),
                            "expected": expected.hex(),
                        }
                    )

        verification = BlockVerification(
            block_hash=block_hash,
            transaction_count=len(block.transactions),
            merkle_root=merkle_root,
            merkle_root_matches=merkle_matches,
            has_witness=has_witness,
            witness_root=witness_root,
            commitment_found=found,
            commitment_expected=expected,
            commitment_error=size_error.code if size_error is not None else None,
        )

        logger.info(
            "Block verified",
            extra_data={"block": block_hex, "valid": verification.is_valid}
        )
        return verification

    # ========================================================================
    # PORCELAIN
    # ========================================================================

    def to_porcelain(self, block: BlockRecord) -> Dict[str, Any]:
        """Formato getblock (verbosity 2) del node RPC"""
        stripped = self.encode_block(block, witness=False)
        full = self.encode_block(block, witness=True)

        data = self.header_codec.to_porcelain(block.header)
        data.update({
            "nTx": len(block.transactions),
            "size": len(full),
            "strippedsize": len(stripped),
            "weight": len(stripped) * (WITNESS_SCALE_FACTOR - 1) + len(full),
            "tx": [self.tx_codec.to_porcelain(tx) for tx in block.transactions],
        })
        return data

    def __repr__(self) -> str:
        return f"BlockService(settings={self.settings!r})"


# ============================================================================
# EXPORT
# ============================================================================

__all__ = [
    "BlockVerification",
    "BlockService",
]
