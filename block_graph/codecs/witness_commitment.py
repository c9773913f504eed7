"""
BlockGraph - Witness Commitment Codec
=======================================
Codec "bitcoin-witness-commitment" (0xb2).

La struttura è di 64 byte: witness merkle root || reserved value.
Il suo double SHA-256 è incluso in un output del coinbase con script
di 38 byte: 6a24aa21a9ed || commitment hash.
"""

from typing import Optional, Union

from block_graph.constants import (
    CID_VERSION,
    CODEC_WITNESS_COMMITMENT,
    CODEC_WITNESS_COMMITMENT_CODE,
    HASH_SIZE,
    WITNESS_COMMITMENT_HEADER,
    WITNESS_COMMITMENT_SCRIPT_SIZE,
    WITNESS_COMMITMENT_SIZE,
    WITNESS_RESERVED_VALUE_SIZE,
)
from block_graph.domain.content_id import (
    ContentIdentifier,
    IdentifierFactory,
    create_identifier,
)
from block_graph.domain.crypto_core import HashProvider, DoubleSha256Provider
from block_graph.domain.models import (
    BlockRecord,
    Transaction,
    WitnessCommitment,
    WitnessCommitmentFields,
)
from block_graph.errors import (
    CodecTypeError,
    MissingCoinbaseError,
    WitnessCommitmentSizeError,
)
from block_graph.logging_setup import get_logger

logger = get_logger("codecs.witness_commitment")

RootLike = Union[bytes, ContentIdentifier]


def find_commitment(coinbase: Transaction) -> Optional[bytes]:
    """
    Cerca il commitment hash negli output del coinbase.

    Se più output corrispondono al pattern vale quello con indice più alto.

    Returns:
        Optional[bytes]: Commitment hash (32 byte) o None se assente
    """
    for tx_output in reversed(coinbase.outputs):
        script = tx_output.script_pubkey
        if (
            len(script) == WITNESS_COMMITMENT_SCRIPT_SIZE
            and script.startswith(WITNESS_COMMITMENT_HEADER)
        ):
            return script[len(WITNESS_COMMITMENT_HEADER):]
    return None


class WitnessCommitmentCodec:
    """
    Costruzione e verifica del witness commitment.

    Examples:
        >>> codec = WitnessCommitmentCodec()
        >>> commitment = codec.encode(block, witness_root)
        >>> codec.verify(block) == commitment.digest
        True
    """

    name = CODEC_WITNESS_COMMITMENT
    code = CODEC_WITNESS_COMMITMENT_CODE

    def __init__(
        self,
        hash_provider: Optional[HashProvider] = None,
        identifier_factory: Optional[IdentifierFactory] = None
    ):
        self.hash_provider = hash_provider or DoubleSha256Provider()
        self.identifier_factory = identifier_factory or create_identifier

    @staticmethod
    def _coinbase(block: BlockRecord) -> Transaction:
        if not isinstance(block, BlockRecord):
            raise CodecTypeError(
                f"Expected BlockRecord, got {type(block).__name__}",
                code="INVALID_RECORD_TYPE",
                details={"codec": CODEC_WITNESS_COMMITMENT}
            )
        coinbase = block.coinbase
        if coinbase is None:
            raise MissingCoinbaseError(
                "Block has no coinbase transaction",
                code="MISSING_COINBASE",
                details={"block": block.header.hash_hex}
            )
        return coinbase

    @staticmethod
    def reserved_value(coinbase: Transaction) -> bytes:
        """Primo elemento del witness del coinbase, o 32 byte zero se assente"""
        if coinbase.inputs and coinbase.inputs[0].witness:
            return coinbase.inputs[0].witness[0]
        return bytes(WITNESS_RESERVED_VALUE_SIZE)

    # ========================================================================
    # ENCODE / DECODE STRUCTURE
    # ========================================================================

    def encode_fields(self, fields: WitnessCommitmentFields) -> bytes:
        """
        Serializza la struttura di 64 byte.

        Raises:
            WitnessCommitmentSizeError: Struttura diversa da 64 byte
        """
        binary = fields.witness_merkle_root + fields.reserved_value
        if len(binary) != WITNESS_COMMITMENT_SIZE:
            raise WitnessCommitmentSizeError(
                f"Witness commitment must be {WITNESS_COMMITMENT_SIZE} bytes, "
                f"got {len(binary)}",
                code="INVALID_WITNESS_COMMITMENT_SIZE",
                details={"reserved_value_size": len(fields.reserved_value)}
            )
        return binary

    def decode(self, binary: bytes) -> WitnessCommitmentFields:
        """
        Decodifica la struttura di 64 byte.

        Raises:
            CodecTypeError: Input non è bytes
            WitnessCommitmentSizeError: Lunghezza diversa da 64 byte
        """
        if not isinstance(binary, (bytes, bytearray, memoryview)):
            raise CodecTypeError(
                f"Cannot decode {type(binary).__name__}, expected bytes",
                code="INVALID_INPUT_TYPE",
                details={"codec": CODEC_WITNESS_COMMITMENT}
            )
        binary = bytes(binary)
        if len(binary) != WITNESS_COMMITMENT_SIZE:
            raise WitnessCommitmentSizeError(
                f"Witness commitment must be {WITNESS_COMMITMENT_SIZE} bytes, "
                f"got {len(binary)}",
                code="INVALID_WITNESS_COMMITMENT_SIZE"
            )
        return WitnessCommitmentFields(
            witness_merkle_root=binary[:HASH_SIZE],
            reserved_value=binary[HASH_SIZE:],
        )

    # ========================================================================
    # BLOCK-LEVEL OPERATIONS
    # ========================================================================

    def encode(self, block: BlockRecord, witness_merkle_root: RootLike) -> WitnessCommitment:
        """
        Costruisce il witness commitment di un blocco.

        Args:
            block: Blocco con coinbase
            witness_merkle_root: Witness root (coinbase azzerato), 32 byte o identifier

        Returns:
            WitnessCommitment: identifier + 64 byte

        Raises:
            MissingCoinbaseError: Blocco senza transazioni
            WitnessCommitmentSizeError: Struttura risultante diversa da 64 byte
        """
        coinbase = self._coinbase(block)

        if isinstance(witness_merkle_root, ContentIdentifier):
            root = witness_merkle_root.digest
        elif isinstance(witness_merkle_root, (bytes, bytearray)):
            root = bytes(witness_merkle_root)
        else:
            raise CodecTypeError(
                f"witness_merkle_root must be bytes or ContentIdentifier, "
                f"got {type(witness_merkle_root).__name__}",
                code="INVALID_INPUT_TYPE"
            )

        reserved = self.reserved_value(coinbase)
        if len(root) + len(reserved) != WITNESS_COMMITMENT_SIZE:
            raise WitnessCommitmentSizeError(
                f"Witness commitment must be {WITNESS_COMMITMENT_SIZE} bytes, "
                f"got {len(root) + len(reserved)}",
                code="INVALID_WITNESS_COMMITMENT_SIZE",
                details={"root_size": len(root), "reserved_value_size": len(reserved)}
            )

        binary = self.encode_fields(
            WitnessCommitmentFields(witness_merkle_root=root, reserved_value=reserved)
        )
        identifier = self.identifier_factory(
            CID_VERSION, self.code, self.hash_provider.code,
            self.hash_provider.digest(binary)
        )

        logger.debug(
            "Encoded witness commitment",
            extra_data={"commitment": identifier.digest.hex()}
        )
        return WitnessCommitment(identifier=identifier, binary=binary)

    def verify(
        self,
        block: BlockRecord,
        computed_root: Optional[RootLike] = None
    ) -> Optional[bytes]:
        """
        Estrae il commitment hash incluso nel coinbase.

        Se computed_root è fornito, un commitment diverso da quello atteso
        viene segnalato nel log, anche quando il reserved value
        non permette di ricalcolarlo; il confronto vincolante resta al chiamante.

        Returns:
            Optional[bytes]: Hash di 32 byte, None se il coinbase non ne contiene
        """
        found = find_commitment(self._coinbase(block))

        if found is None:
            logger.debug(
                "No witness commitment in coinbase",
                extra_data={"block": block.header.hash_hex}
            )
            return None

        if computed_root is not None:
            try:
                expected = self.encode(block, computed_root).digest
            except WitnessCommitmentSizeError as e:
                logger.warning(
                    "Witness commitment cannot be recomputed",
                    extra_data={
                        "block": block.header.hash_hex,
                        "found": found.hex(),
                        "error": e.code,
                    }
                )
                return found

            if expected != found:
                logger.warning(
                    "Witness commitment does not match computed witness root",
                    extra_data={
                        "block": block.header.hash_hex,
                        "found": found.hex(),
                        "expected": expected.hex(),
                    }
                )

        return found

    def __repr__(self) -> str:
        return f"WitnessCommitmentCodec(name={self.name}, code=0x{self.code:02x})"


__all__ = [
    "WitnessCommitmentCodec",
    "find_commitment",
]
