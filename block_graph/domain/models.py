"""
BlockGraph - Core Domain Models
=================================
Strutture dati tipizzate per header, transazioni e blocchi.

Last Updated: 2026-10-17
Version: 1.0.0

Models:
- HeaderFields: I sei campi serializzati dell'header (80 byte)
- ChainContext: Sidecar con i campi RPC dipendenti dalla chain (mai serializzato)
- BlockHeaderRecord: Header decodificato + link derivati (parent, transactions_root)
- TxInput / TxOutput / Transaction: Transazione legacy o segwit
- BlockRecord: Header + transazioni ordinate
- WitnessCommitmentFields / WitnessCommitment: Struttura di 64 byte nel coinbase

Tutte le strutture sono immutabili (frozen) per thread-safety.
Gli hash sono sempre conservati in ordine interno (wire order);
to_dict() li espone in ordine display (byte invertiti) come il node RPC.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional, Tuple, Dict, Any

from block_graph.constants import (
    HASH_SIZE,
    NULL_HASH,
    COINBASE_PREV_INDEX,
    INT32_MIN,
    INT32_MAX,
    UINT32_MAX,
    INT64_MIN,
    INT64_MAX,
    WITNESS_RESERVED_VALUE_SIZE,
    coin_to_satoshi,
    satoshi_to_coin,
)
from block_graph.domain.content_id import ContentIdentifier
from block_graph.errors import CodecTypeError, format_field_error
from block_graph.utils.serialization import (
    from_hash_hex,
    hex_to_bytes,
    to_hash_hex,
)


# ============================================================================
# FIELD VALIDATION HELPERS
# ============================================================================

def _check_int(name: str, value: Any, low: int, high: int, kind: str):
    if not isinstance(value, int) or isinstance(value, bool):
        raise format_field_error(name, value, kind, code="INVALID_FIELD_TYPE")
    if value < low or value > high:
        raise format_field_error(name, value, kind, code="FIELD_OUT_OF_RANGE")


def _check_bytes(name: str, value: Any, size: Optional[int] = None):
    if not isinstance(value, bytes):
        raise CodecTypeError(
            f"Field '{name}' must be bytes, got {type(value).__name__}",
            code="INVALID_FIELD_TYPE",
            details={"field": name}
        )
    if size is not None and len(value) != size:
        raise format_field_error(name, value.hex(), f"{size} bytes", code="INVALID_FIELD_LENGTH")


def _as_bytes(value: Any) -> Any:
    """bytearray/memoryview -> bytes, il resto invariato"""
    if isinstance(value, (bytearray, memoryview)):
        return bytes(value)
    return value


def compact_target_to_difficulty(bits: int) -> float:
    """
    Difficulty relativa al target del genesis (0x1d00ffff = 1.0).

    Stessa aritmetica floating point del node RPC.

    Examples:
        >>> compact_target_to_difficulty(0x1d00ffff)
        1.0
    """
    shift = (bits >> 24) & 0xFF
    mantissa = bits & 0x00FFFFFF
    if mantissa == 0:
        return 0.0

    difficulty = 0x0000FFFF / mantissa
    while shift < 29:
        difficulty *= 256.0
        shift += 1
    while shift > 29:
        difficulty /= 256.0
        shift -= 1
    return difficulty


# ============================================================================
# BLOCK HEADER
# ============================================================================

@dataclass(frozen=True)
class HeaderFields:
    """
    Campi serializzati dell'header di blocco (80 byte, little-endian).

    Attributes:
        version (int): Versione blocco (int32)
        previous_block_hash (bytes): Hash blocco precedente (32 byte, wire order)
        merkle_root (bytes): Merkle root delle transazioni (32 byte, wire order)
        time (int): Timestamp Unix (uint32)
        bits (int): Target compatto (uint32)
        nonce (int): Nonce PoW (uint32)

    Examples:
        >>> fields = HeaderFields(
        ...     version=1, previous_block_hash=bytes(32), merkle_root=bytes(32),
        ...     time=1231006505, bits=0x1d00ffff, nonce=2083236893
        ... )
        >>> fields.bits_hex
        '1d00ffff'
    """

    version: int
    previous_block_hash: bytes
    merkle_root: bytes
    time: int
    bits: int
    nonce: int

    def __post_init__(self):
        """Validazione post-init"""
        object.__setattr__(self, "previous_block_hash", _as_bytes(self.previous_block_hash))
        object.__setattr__(self, "merkle_root", _as_bytes(self.merkle_root))

        _check_int("version", self.version, INT32_MIN, INT32_MAX, "int32")
        _check_bytes("previous_block_hash", self.previous_block_hash, HASH_SIZE)
        _check_bytes("merkle_root", self.merkle_root, HASH_SIZE)
        _check_int("time", self.time, 0, UINT32_MAX, "uint32")
        _check_int("bits", self.bits, 0, UINT32_MAX, "uint32")
        _check_int("nonce", self.nonce, 0, UINT32_MAX, "uint32")

    @property
    def previous_block_hash_hex(self) -> str:
        return to_hash_hex(self.previous_block_hash)

    @property
    def merkle_root_hex(self) -> str:
        return to_hash_hex(self.merkle_root)

    @property
    def is_genesis(self) -> bool:
        """True se il blocco non ha parent (hash precedente tutto zero)"""
        return self.previous_block_hash == NULL_HASH

    @property
    def bits_hex(self) -> str:
        return f"{self.bits:08x}"

    @property
    def version_hex(self) -> str:
        return f"{self.version & 0xFFFFFFFF:08x}"

    @property
    def difficulty(self) -> float:
        return compact_target_to_difficulty(self.bits)

    def to_dict(self) -> Dict[str, Any]:
        """
        Serializza in formato RPC (getblockheader).

        Il campo previousblockhash è omesso per il genesis, come nel node.
        """
        data: Dict[str, Any] = {
            "version": self.version,
            "versionHex": self.version_hex,
            "merkleroot": self.merkle_root_hex,
            "time": self.time,
            "nonce": self.nonce,
            "bits": self.bits_hex,
            "difficulty": self.difficulty,
        }
        if not self.is_genesis:
            data["previousblockhash"] = self.previous_block_hash_hex
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> HeaderFields:
        """
        Deserializza da formato RPC.

        Campi derivati (hash, versionHex, difficulty) sono ignorati.
        """
        prev = data.get("previousblockhash")
        bits = data["bits"]
        return cls(
            version=data["version"],
            previous_block_hash=from_hash_hex(prev) if prev else NULL_HASH,
            merkle_root=from_hash_hex(data["merkleroot"]),
            time=data["time"],
            bits=int(bits, 16) if isinstance(bits, str) else bits,
            nonce=data["nonce"],
        )


@dataclass(frozen=True)
class ChainContext:
    """
    Campi RPC che dipendono dallo stato della chain, non dai byte del blocco.

    Portati accanto al record come sidecar e mai serializzati dai codec.
    """

    height: Optional[int] = None
    confirmations: Optional[int] = None
    chainwork: Optional[str] = None
    mediantime: Optional[int] = None
    next_block_hash: Optional[str] = None

    def is_empty(self) -> bool:
        return all(
            value is None for value in (
                self.height, self.confirmations, self.chainwork,
                self.mediantime, self.next_block_hash,
            )
        )

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "height": self.height,
            "confirmations": self.confirmations,
            "chainwork": self.chainwork,
            "mediantime": self.mediantime,
            "nextblockhash": self.next_block_hash,
        }
        return {k: v for k, v in data.items() if v is not None}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Optional[ChainContext]:
        """Estrae il context da un dict RPC; None se nessun campo presente"""
        context = cls(
            height=data.get("height"),
            confirmations=data.get("confirmations"),
            chainwork=data.get("chainwork"),
            mediantime=data.get("mediantime"),
            next_block_hash=data.get("nextblockhash"),
        )
        return None if context.is_empty() else context


@dataclass(frozen=True)
class BlockHeaderRecord:
    """
    Header decodificato con i link derivati.

    Attributes:
        fields (HeaderFields): Campi serializzati
        parent (Optional[ContentIdentifier]): Link al blocco precedente (None per il genesis)
        transactions_root (ContentIdentifier): Link alla merkle root (codec tx)
        block_hash (bytes): Double SHA-256 degli 80 byte (wire order)
        context (Optional[ChainContext]): Sidecar chain context

    I campi derivati non partecipano all'uguaglianza: due record sono
    uguali se i sei campi serializzati coincidono.
    """

    fields: HeaderFields
    parent: Optional[ContentIdentifier] = field(default=None, compare=False)
    transactions_root: Optional[ContentIdentifier] = field(default=None, compare=False)
    block_hash: Optional[bytes] = field(default=None, compare=False)
    context: Optional[ChainContext] = field(default=None, compare=False)

    @property
    def hash_hex(self) -> Optional[str]:
        return to_hash_hex(self.block_hash) if self.block_hash is not None else None

    def with_context(self, context: Optional[ChainContext]) -> BlockHeaderRecord:
        return BlockHeaderRecord(
            fields=self.fields,
            parent=self.parent,
            transactions_root=self.transactions_root,
            block_hash=self.block_hash,
            context=context,
        )

    def __repr__(self) -> str:
        return f"BlockHeaderRecord(hash={self.hash_hex}, time={self.fields.time})"


# ============================================================================
# TRANSACTION INPUT
# ============================================================================

@dataclass(frozen=True)
class TxInput:
    """
    Input di transazione.

    Attributes:
        prev_hash (bytes): Txid dell'output speso (32 byte, wire order)
        prev_index (int): Indice output speso (uint32)
        script_sig (bytes): Unlocking script
        sequence (int): Sequence number (uint32)
        witness (Tuple[bytes, ...]): Witness stack (vuoto se legacy)
        spent_from (Optional[ContentIdentifier]): Link derivato alla tx spesa,
            escluso dall'uguaglianza

    Examples:
        >>> coinbase_in = TxInput(
        ...     prev_hash=bytes(32), prev_index=0xffffffff,
        ...     script_sig=b"\\x01", sequence=0xffffffff
        ... )
        >>> coinbase_in.is_coinbase
        True
    """

    prev_hash: bytes
    prev_index: int
    script_sig: bytes
    sequence: int
    witness: Tuple[bytes, ...] = ()
    spent_from: Optional[ContentIdentifier] = field(default=None, compare=False)

    def __post_init__(self):
        """Validazione post-init"""
        object.__setattr__(self, "prev_hash", _as_bytes(self.prev_hash))
        object.__setattr__(self, "script_sig", _as_bytes(self.script_sig))
        object.__setattr__(self, "witness", tuple(_as_bytes(item) for item in self.witness))

        _check_bytes("prev_hash", self.prev_hash, HASH_SIZE)
        _check_int("prev_index", self.prev_index, 0, UINT32_MAX, "uint32")
        _check_bytes("script_sig", self.script_sig)
        _check_int("sequence", self.sequence, 0, UINT32_MAX, "uint32")
        for item in self.witness:
            _check_bytes("witness", item)

    @property
    def is_coinbase(self) -> bool:
        """Outpoint nullo: hash zero e index 0xffffffff"""
        return self.prev_hash == NULL_HASH and self.prev_index == COINBASE_PREV_INDEX

    @property
    def has_witness(self) -> bool:
        return len(self.witness) > 0

    def to_dict(self) -> Dict[str, Any]:
        """Serializza in formato RPC (vin)"""
        if self.is_coinbase:
            data: Dict[str, Any] = {"coinbase": self.script_sig.hex()}
        else:
            data = {
                "txid": to_hash_hex(self.prev_hash),
                "vout": self.prev_index,
                "scriptSig": {"hex": self.script_sig.hex()},
            }
        if self.witness:
            data["txinwitness"] = [item.hex() for item in self.witness]
        data["sequence"] = self.sequence
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> TxInput:
        """Deserializza da formato RPC (vin)"""
        witness = tuple(hex_to_bytes(item) for item in data.get("txinwitness", ()))
        if "coinbase" in data:
            return cls(
                prev_hash=NULL_HASH,
                prev_index=COINBASE_PREV_INDEX,
                script_sig=hex_to_bytes(data["coinbase"]),
                sequence=data["sequence"],
                witness=witness,
            )

        script_sig = data.get("scriptSig") or {}
        return cls(
            prev_hash=from_hash_hex(data["txid"]),
            prev_index=data["vout"],
            script_sig=hex_to_bytes(script_sig.get("hex", "")),
            sequence=data["sequence"],
            witness=witness,
        )


# ============================================================================
# TRANSACTION OUTPUT
# ============================================================================

@dataclass(frozen=True)
class TxOutput:
    """
    Output di transazione.

    Attributes:
        value (int): Valore in satoshi (int64)
        script_pubkey (bytes): Locking script
    """

    value: int
    script_pubkey: bytes

    def __post_init__(self):
        """Validazione post-init"""
        object.__setattr__(self, "script_pubkey", _as_bytes(self.script_pubkey))

        _check_int("value", self.value, INT64_MIN, INT64_MAX, "int64")
        _check_bytes("script_pubkey", self.script_pubkey)

    @property
    def value_coin(self) -> float:
        return satoshi_to_coin(self.value)

    def to_dict(self) -> Dict[str, Any]:
        """Serializza in formato RPC (vout, senza indice)"""
        return {
            "value": self.value_coin,
            "scriptPubKey": {"hex": self.script_pubkey.hex()},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> TxOutput:
        return cls(
            value=coin_to_satoshi(data["value"]),
            script_pubkey=hex_to_bytes(data["scriptPubKey"]["hex"]),
        )


# ============================================================================
# TRANSACTION
# ============================================================================

@dataclass(frozen=True)
class Transaction:
    """
    Transazione (legacy o segwit).

    La transazione è segwit-tagged se e solo se almeno un input porta
    un witness stack non vuoto: in quel caso l'encoding completo include
    marker/flag e witness, altrimenti coincide con quello witness-stripped.

    Attributes:
        version (int): Versione (int32)
        inputs (Tuple[TxInput, ...]): Input ordinati
        outputs (Tuple[TxOutput, ...]): Output ordinati
        lock_time (int): Lock time (uint32)
    """

    version: int
    inputs: Tuple[TxInput, ...]
    outputs: Tuple[TxOutput, ...]
    lock_time: int

    def __post_init__(self):
        """Validazione post-init"""
        object.__setattr__(self, "inputs", tuple(self.inputs))
        object.__setattr__(self, "outputs", tuple(self.outputs))

        _check_int("version", self.version, INT32_MIN, INT32_MAX, "int32")
        _check_int("lock_time", self.lock_time, 0, UINT32_MAX, "uint32")
        for tx_input in self.inputs:
            if not isinstance(tx_input, TxInput):
                raise CodecTypeError(
                    f"inputs must contain TxInput, got {type(tx_input).__name__}",
                    code="INVALID_FIELD_TYPE"
                )
        for tx_output in self.outputs:
            if not isinstance(tx_output, TxOutput):
                raise CodecTypeError(
                    f"outputs must contain TxOutput, got {type(tx_output).__name__}",
                    code="INVALID_FIELD_TYPE"
                )

    @property
    def has_witness(self) -> bool:
        """Segwit-tagged: almeno un input con witness non vuoto"""
        return any(tx_input.has_witness for tx_input in self.inputs)

    @property
    def is_coinbase(self) -> bool:
        return len(self.inputs) == 1 and self.inputs[0].is_coinbase

    @property
    def total_output_value(self) -> int:
        return sum(output.value for output in self.outputs)

    def to_dict(self) -> Dict[str, Any]:
        """
        Serializza i campi non derivati in formato RPC.

        txid, hash, size, vsize e weight richiedono l'encoding e sono
        aggiunti da TransactionCodec.to_porcelain().
        """
        vout = []
        for index, output in enumerate(self.outputs):
            entry = output.to_dict()
            entry["n"] = index
            vout.append(entry)

        return {
            "version": self.version,
            "locktime": self.lock_time,
            "vin": [tx_input.to_dict() for tx_input in self.inputs],
            "vout": vout,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Transaction:
        """Deserializza da formato RPC; campi derivati ignorati"""
        return cls(
            version=data["version"],
            inputs=tuple(TxInput.from_dict(item) for item in data["vin"]),
            outputs=tuple(TxOutput.from_dict(item) for item in data["vout"]),
            lock_time=data["locktime"],
        )

    def __repr__(self) -> str:
        return (
            f"Transaction(version={self.version}, inputs={len(self.inputs)}, "
            f"outputs={len(self.outputs)}, segwit={self.has_witness})"
        )


# ============================================================================
# BLOCK
# ============================================================================

@dataclass(frozen=True)
class BlockRecord:
    """
    Blocco completo: header decodificato + transazioni ordinate.

    La prima transazione, se presente, è il coinbase.
    """

    header: BlockHeaderRecord
    transactions: Tuple[Transaction, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "transactions", tuple(self.transactions))

    @property
    def fields(self) -> HeaderFields:
        return self.header.fields

    @property
    def context(self) -> Optional[ChainContext]:
        return self.header.context

    @property
    def coinbase(self) -> Optional[Transaction]:
        return self.transactions[0] if self.transactions else None

    @property
    def has_witness(self) -> bool:
        return any(tx.has_witness for tx in self.transactions)

    def __len__(self) -> int:
        return len(self.transactions)

    def __repr__(self) -> str:
        return f"BlockRecord(hash={self.header.hash_hex}, tx={len(self.transactions)})"


# ============================================================================
# WITNESS COMMITMENT
# ============================================================================

@dataclass(frozen=True)
class WitnessCommitmentFields:
    """
    Struttura di 64 byte: witness merkle root || reserved value.

    Il reserved value è opaco: non si assume che sia tutto zero.
    """

    witness_merkle_root: bytes
    reserved_value: bytes = bytes(WITNESS_RESERVED_VALUE_SIZE)

    def __post_init__(self):
        object.__setattr__(self, "witness_merkle_root", _as_bytes(self.witness_merkle_root))
        object.__setattr__(self, "reserved_value", _as_bytes(self.reserved_value))

        _check_bytes("witness_merkle_root", self.witness_merkle_root, HASH_SIZE)
        _check_bytes("reserved_value", self.reserved_value)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "witnessMerkleRoot": self.witness_merkle_root.hex(),
            "reservedValue": self.reserved_value.hex(),
        }


@dataclass(frozen=True)
class WitnessCommitment:
    """Witness commitment codificato: identificatore + 64 byte"""

    identifier: ContentIdentifier
    binary: bytes

    @property
    def digest(self) -> bytes:
        return self.identifier.digest

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cid": self.identifier.encode(),
            "hash": self.identifier.digest.hex(),
            "binary": self.binary.hex(),
        }


# ============================================================================
# EXPORT
# ============================================================================

__all__ = [
    "compact_target_to_difficulty",
    "HeaderFields",
    "ChainContext",
    "BlockHeaderRecord",
    "TxInput",
    "TxOutput",
    "Transaction",
    "BlockRecord",
    "WitnessCommitmentFields",
    "WitnessCommitment",
]
