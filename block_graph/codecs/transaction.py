"""
BlockGraph - Transaction Codec
================================
Codec "bitcoin-tx" (0xb1): transazione <-> Transaction.

Serializzazioni supportate:
- Legacy: version | vin | vout | lock_time
- Segwit: version | 00 01 | vin | vout | witness stacks | lock_time

Il txid è l'hash della forma witness-stripped, il wtxid quello della
forma completa; per transazioni legacy le due forme coincidono.

Last Updated: 2026-10-17
Version: 1.0.0
"""

from typing import Any, Dict, List, Optional, Sequence

from block_graph.constants import (
    CID_VERSION,
    CODEC_TX,
    CODEC_TX_CODE,
    MIN_INPUT_SIZE,
    MIN_OUTPUT_SIZE,
    MIN_WITNESS_ITEM_SIZE,
    NULL_HASH,
    SEGWIT_FLAG,
    SEGWIT_MARKER,
    WITNESS_SCALE_FACTOR,
)
from block_graph.domain.content_id import (
    ContentIdentifier,
    IdentifierFactory,
    create_identifier,
)
from block_graph.domain.crypto_core import HashProvider, DoubleSha256Provider
from block_graph.domain.models import Transaction, TxInput, TxOutput
from block_graph.errors import CodecTypeError, InvalidWitnessError
from block_graph.logging_setup import get_logger
from block_graph.utils.merkle import MerkleNodeStream, MerkleTreeBuilder
from block_graph.utils.serialization import ByteReader, compact_size, to_hash_hex

logger = get_logger("codecs.transaction")


class TransactionCodec:
    """
    Codec transazioni legacy e segwit.

    Examples:
        >>> codec = TransactionCodec()
        >>> tx = codec.decode(raw_tx)
        >>> codec.encode(tx) == raw_tx
        True
        >>> codec.encode(tx, witness=False) == raw_tx  # solo se legacy
        True
    """

    name = CODEC_TX
    code = CODEC_TX_CODE

    def __init__(
        self,
        hash_provider: Optional[HashProvider] = None,
        identifier_factory: Optional[IdentifierFactory] = None
    ):
        self.hash_provider = hash_provider or DoubleSha256Provider()
        self.identifier_factory = identifier_factory or create_identifier
        self.merkle_builder = MerkleTreeBuilder(
            hash_provider=self.hash_provider,
            identifier_factory=self.identifier_factory,
            codec=CODEC_TX_CODE,
        )

    # ========================================================================
    # ENCODE
    # ========================================================================

    def encode(self, tx: Transaction, witness: bool = True) -> bytes:
        """
        Serializza una transazione.

        Args:
            tx: Transazione
            witness: Includi marker/flag e witness stacks se la tx è segwit

        Returns:
            bytes: Transazione serializzata

        Raises:
            CodecTypeError: Input non è una Transaction
        """
        if not isinstance(tx, Transaction):
            raise CodecTypeError(
                f"Cannot encode {type(tx).__name__} as a transaction",
                code="INVALID_RECORD_TYPE",
                details={"codec": CODEC_TX}
            )

        segwit = witness and tx.has_witness
        parts: List[bytes] = [tx.version.to_bytes(4, "little", signed=True)]

        if segwit:
            parts.append(bytes((SEGWIT_MARKER, SEGWIT_FLAG)))

        parts.append(compact_size(len(tx.inputs)))
        for tx_input in tx.inputs:
            parts.append(tx_input.prev_hash)
            parts.append(tx_input.prev_index.to_bytes(4, "little"))
            parts.append(compact_size(len(tx_input.script_sig)))
            parts.append(tx_input.script_sig)
            parts.append(tx_input.sequence.to_bytes(4, "little"))

        parts.append(compact_size(len(tx.outputs)))
        for tx_output in tx.outputs:
            parts.append(tx_output.value.to_bytes(8, "little", signed=True))
            parts.append(compact_size(len(tx_output.script_pubkey)))
            parts.append(tx_output.script_pubkey)

        if segwit:
            for tx_input in tx.inputs:
                parts.append(compact_size(len(tx_input.witness)))
                for item in tx_input.witness:
                    parts.append(compact_size(len(item)))
                    parts.append(item)

        parts.append(tx.lock_time.to_bytes(4, "little"))
        return b"".join(parts)

    def encode_no_witness(self, tx: Transaction) -> bytes:
        """Forma witness-stripped (quella hashata per il txid)"""
        return self.encode(tx, witness=False)

    # ========================================================================
    # DECODE
    # ========================================================================

    def decode(self, data: bytes) -> Transaction:
        """
        Decodifica una transazione occupando l'intero buffer.

        Raises:
            CodecTypeError: Input non è bytes
            MalformedEncodingError: Buffer troncato, compact size invalido,
                witness invalido o byte residui
        """
        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise CodecTypeError(
                f"Cannot decode {type(data).__name__}, expected bytes",
                code="INVALID_INPUT_TYPE",
                details={"codec": CODEC_TX}
            )

        reader = ByteReader(data)
        tx = self.decode_from(reader)
        reader.ensure_end("transaction")
        return tx

    def decode_from(self, reader: ByteReader) -> Transaction:
        """Decodifica una transazione dalla posizione corrente del reader"""
        start = reader.offset
        version = reader.read_int32("version")

        segwit = False
        if reader.peek(1) == bytes((SEGWIT_MARKER,)):
            reader.read(1, "segwit marker")
            flag = reader.read_uint8("segwit flag")
            if flag != SEGWIT_FLAG:
                raise InvalidWitnessError(
                    f"Invalid segwit flag 0x{flag:02x} after marker",
                    code="INVALID_SEGWIT_FLAG",
                    details={"offset": reader.offset - 1}
                )
            segwit = True

        raw_inputs = []
        for _ in range(reader.read_count(MIN_INPUT_SIZE, "input")):
            raw_inputs.append((
                reader.read(32, "previous output hash"),
                reader.read_uint32("previous output index"),
                reader.read_var_bytes("script sig"),
                reader.read_uint32("sequence"),
            ))

        outputs = []
        for _ in range(reader.read_count(MIN_OUTPUT_SIZE, "output")):
            outputs.append(TxOutput(
                value=reader.read_int64("value"),
                script_pubkey=reader.read_var_bytes("script pubkey"),
            ))

        witnesses: List[tuple] = [() for _ in raw_inputs]
        if segwit:
            for index in range(len(raw_inputs)):
                stack_size = reader.read_count(MIN_WITNESS_ITEM_SIZE, "witness item")
                witnesses[index] = tuple(
                    reader.read_var_bytes("witness item") for _ in range(stack_size)
                )
            if not any(witnesses):
                raise InvalidWitnessError(
                    "Segwit marker present but all witness stacks are empty",
                    code="SUPERFLUOUS_WITNESS",
                    details={"offset": start}
                )

        lock_time = reader.read_uint32("lock time")

        inputs = [
            TxInput(
                prev_hash=prev_hash,
                prev_index=prev_index,
                script_sig=script_sig,
                sequence=sequence,
                witness=witness,
                spent_from=self._spent_from(prev_hash),
            )
            for (prev_hash, prev_index, script_sig, sequence), witness
            in zip(raw_inputs, witnesses)
        ]

        tx = Transaction(
            version=version,
            inputs=tuple(inputs),
            outputs=tuple(outputs),
            lock_time=lock_time,
        )

        logger.debug(
            "Decoded transaction",
            extra_data={
                "offset": start,
                "size": reader.offset - start,
                "inputs": len(inputs),
                "outputs": len(outputs),
                "segwit": segwit,
            }
        )
        return tx

    def _spent_from(self, prev_hash: bytes) -> Optional[ContentIdentifier]:
        if prev_hash == NULL_HASH:
            return None
        return self.identifier_factory(
            CID_VERSION, CODEC_TX_CODE, self.hash_provider.code, prev_hash
        )

    def link_inputs(self, tx: Transaction) -> Transaction:
        """Ricostruisce la transazione popolando spent_from sugli input"""
        inputs = tuple(
            TxInput(
                prev_hash=tx_input.prev_hash,
                prev_index=tx_input.prev_index,
                script_sig=tx_input.script_sig,
                sequence=tx_input.sequence,
                witness=tx_input.witness,
                spent_from=self._spent_from(tx_input.prev_hash),
            )
            for tx_input in tx.inputs
        )
        return Transaction(
            version=tx.version,
            inputs=inputs,
            outputs=tx.outputs,
            lock_time=tx.lock_time,
        )

    # ========================================================================
    # HASHES & IDENTIFIERS
    # ========================================================================

    def txid(self, tx: Transaction) -> bytes:
        """Hash della forma witness-stripped (wire order)"""
        return self.hash_provider.digest(self.encode(tx, witness=False))

    def wtxid(self, tx: Transaction) -> bytes:
        """Hash della forma completa (wire order)"""
        return self.hash_provider.digest(self.encode(tx, witness=True))

    def identifier(self, tx: Transaction, witness: bool = True) -> ContentIdentifier:
        """Content identifier della transazione nella forma richiesta"""
        digest = self.wtxid(tx) if witness else self.txid(tx)
        return self.identifier_factory(CID_VERSION, self.code, self.hash_provider.code, digest)

    def weight(self, tx: Transaction) -> int:
        """Weight BIP141: base_size * 3 + total_size"""
        base_size = len(self.encode(tx, witness=False))
        total_size = len(self.encode(tx, witness=True))
        return base_size * (WITNESS_SCALE_FACTOR - 1) + total_size

    # ========================================================================
    # MERKLE
    # ========================================================================

    def encode_all(
        self,
        transactions: Sequence[Transaction],
        witness: bool = True
    ) -> MerkleNodeStream:
        """
        Stream lazy di tutte le transazioni e dei nodi merkle di un blocco.

        In witness mode le foglie sono i wtxid e la foglia del coinbase è
        azzerata nel calcolo dei nodi interni; altrimenti le foglie sono
        i txid.

        Returns:
            MerkleNodeStream: foglie (bytes transazione) poi nodi interni
        """
        leaves = []
        for tx in transactions:
            binary = self.encode(tx, witness=witness)
            leaves.append((self.hash_provider.digest(binary), binary))

        return self.merkle_builder.build(leaves, zero_first=witness)

    # ========================================================================
    # PORCELAIN (node RPC JSON)
    # ========================================================================

    def to_porcelain(self, tx: Transaction) -> Dict[str, Any]:
        """Formato getrawtransaction (verbose) del node RPC"""
        full = self.encode(tx, witness=True)
        weight = self.weight(tx)

        data: Dict[str, Any] = {
            "txid": to_hash_hex(self.txid(tx)),
            "hash": to_hash_hex(self.hash_provider.digest(full)),
            "version": tx.version,
            "size": len(full),
            "vsize": (weight + WITNESS_SCALE_FACTOR - 1) // WITNESS_SCALE_FACTOR,
            "weight": weight,
        }
        data.update(tx.to_dict())
        return data

    def from_porcelain(self, data: Dict[str, Any]) -> Transaction:
        """Costruisce una Transaction da formato RPC; campi derivati ignorati"""
        if not isinstance(data, dict):
            raise CodecTypeError(
                f"Expected dict, got {type(data).__name__}",
                code="INVALID_INPUT_TYPE"
            )
        return self.link_inputs(Transaction.from_dict(data))

    def __repr__(self) -> str:
        return f"TransactionCodec(name={self.name}, code=0x{self.code:02x})"


__all__ = ["TransactionCodec"]
