"""
BlockGraph - Block Header Codec
=================================
Codec "bitcoin-block" (0xb0): header di 80 byte <-> BlockHeaderRecord.

Layout (little-endian):
    version (int32) | previous_block_hash (32) | merkle_root (32)
    | time (uint32) | bits (uint32) | nonce (uint32)

Il codec opera solo sull'header: le transazioni non vengono mai
serializzate e i byte successivi all'header sono ignorati in decode.
"""

from typing import Any, Dict, Optional, Union

from block_graph.constants import (
    BLOCK_BODY_KEYS,
    CID_VERSION,
    CODEC_BLOCK,
    CODEC_BLOCK_CODE,
    CODEC_TX_CODE,
    HEADER_SIZE,
)
from block_graph.domain.content_id import (
    ContentIdentifier,
    IdentifierFactory,
    create_identifier,
)
from block_graph.domain.crypto_core import HashProvider, DoubleSha256Provider
from block_graph.domain.models import (
    BlockHeaderRecord,
    BlockRecord,
    ChainContext,
    HeaderFields,
)
from block_graph.errors import CodecTypeError, format_truncation_error
from block_graph.logging_setup import get_logger
from block_graph.utils.serialization import ByteReader

logger = get_logger("codecs.header")

HeaderLike = Union[HeaderFields, BlockHeaderRecord, BlockRecord]


class BlockHeaderCodec:
    """
    Codec header di blocco.

    Hash provider e identifier factory sono iniettati nel costruttore;
    i default producono identificatori dbl-sha2-256.

    Examples:
        >>> codec = BlockHeaderCodec()
        >>> record = codec.decode(raw_header)
        >>> codec.encode(record) == raw_header[:80]
        True
    """

    name = CODEC_BLOCK
    code = CODEC_BLOCK_CODE

    def __init__(
        self,
        hash_provider: Optional[HashProvider] = None,
        identifier_factory: Optional[IdentifierFactory] = None
    ):
        self.hash_provider = hash_provider or DoubleSha256Provider()
        self.identifier_factory = identifier_factory or create_identifier

    # ========================================================================
    # ENCODE
    # ========================================================================

    @staticmethod
    def _fields_of(record: Any) -> HeaderFields:
        if isinstance(record, HeaderFields):
            return record
        if isinstance(record, BlockHeaderRecord):
            return record.fields
        if isinstance(record, BlockRecord):
            return record.header.fields
        raise CodecTypeError(
            f"Cannot encode {type(record).__name__} as a block header",
            code="INVALID_RECORD_TYPE",
            details={"codec": CODEC_BLOCK}
        )

    def encode(self, record: HeaderLike) -> bytes:
        """
        Serializza i sei campi dell'header.

        Args:
            record: HeaderFields, BlockHeaderRecord o BlockRecord (solo header)

        Returns:
            bytes: 80 byte

        Raises:
            CodecTypeError: Input non è un record header
        """
        fields = self._fields_of(record)
        return b"".join((
            fields.version.to_bytes(4, "little", signed=True),
            fields.previous_block_hash,
            fields.merkle_root,
            fields.time.to_bytes(4, "little"),
            fields.bits.to_bytes(4, "little"),
            fields.nonce.to_bytes(4, "little"),
        ))

    # ========================================================================
    # DECODE
    # ========================================================================

    def decode(self, data: bytes) -> BlockHeaderRecord:
        """
        Decodifica i primi 80 byte.

        Raises:
            CodecTypeError: Input non è bytes
            TruncatedBufferError: Meno di 80 byte
        """
        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise CodecTypeError(
                f"Cannot decode {type(data).__name__}, expected bytes",
                code="INVALID_INPUT_TYPE",
                details={"codec": CODEC_BLOCK}
            )
        if len(data) < HEADER_SIZE:
            raise format_truncation_error(HEADER_SIZE, len(data), 0, "block header")

        return self.decode_from(ByteReader(data))

    def decode_from(self, reader: ByteReader) -> BlockHeaderRecord:
        """Decodifica un header dalla posizione corrente del reader"""
        raw = reader.read(HEADER_SIZE, "block header")
        header_reader = ByteReader(raw)

        fields = HeaderFields(
            version=header_reader.read_int32("version"),
            previous_block_hash=header_reader.read(32, "previous block hash"),
            merkle_root=header_reader.read(32, "merkle root"),
            time=header_reader.read_uint32("time"),
            bits=header_reader.read_uint32("bits"),
            nonce=header_reader.read_uint32("nonce"),
        )

        record = self._derive(fields, self.hash_provider.digest(raw))
        logger.debug("Decoded block header", extra_data={"hash": record.hash_hex})
        return record

    def _derive(
        self,
        fields: HeaderFields,
        block_hash: bytes,
        context: Optional[ChainContext] = None
    ) -> BlockHeaderRecord:
        parent = None
        if not fields.is_genesis:
            parent = self.identifier_factory(
                CID_VERSION, CODEC_BLOCK_CODE, self.hash_provider.code,
                fields.previous_block_hash
            )
        transactions_root = self.identifier_factory(
            CID_VERSION, CODEC_TX_CODE, self.hash_provider.code, fields.merkle_root
        )
        return BlockHeaderRecord(
            fields=fields,
            parent=parent,
            transactions_root=transactions_root,
            block_hash=block_hash,
            context=context,
        )

    # ========================================================================
    # HASH & IDENTIFIER
    # ========================================================================

    def block_hash(self, record: HeaderLike) -> bytes:
        """Double SHA-256 degli 80 byte (wire order)"""
        return self.hash_provider.digest(self.encode(record))

    def identifier(self, record: HeaderLike) -> ContentIdentifier:
        """Content identifier del blocco"""
        return self.identifier_factory(
            CID_VERSION, self.code, self.hash_provider.code, self.block_hash(record)
        )

    # ========================================================================
    # PORCELAIN (node RPC JSON)
    # ========================================================================

    def to_porcelain(self, record: HeaderLike) -> Dict[str, Any]:
        """
        Formato getblockheader del node RPC.

        I campi chain context sono inclusi se il record porta il sidecar.
        """
        fields = self._fields_of(record)
        data: Dict[str, Any] = {"hash": self.identifier(fields).hash_hex()}

        header = record.header if isinstance(record, BlockRecord) else record
        if isinstance(header, BlockHeaderRecord) and header.context is not None:
            data.update(header.context.to_dict())

        data.update(fields.to_dict())
        return data

    def from_porcelain(self, data: Dict[str, Any]) -> BlockHeaderRecord:
        """
        Costruisce un record da formato RPC.

        Campi derivati (hash, versionHex, difficulty) e campi del body
        (tx, nTx, size, ...) sono ignorati; i campi chain context finiscono
        nel sidecar.
        """
        if not isinstance(data, dict):
            raise CodecTypeError(
                f"Expected dict, got {type(data).__name__}",
                code="INVALID_INPUT_TYPE"
            )

        ignored = [key for key in BLOCK_BODY_KEYS if key in data]
        if ignored:
            logger.debug("Ignoring block body keys", extra_data={"keys": ignored})

        fields = HeaderFields.from_dict(data)
        return self._derive(
            fields,
            self.block_hash(fields),
            context=ChainContext.from_dict(data),
        )

    def __repr__(self) -> str:
        return f"BlockHeaderCodec(name={self.name}, code=0x{self.code:02x})"


__all__ = ["BlockHeaderCodec"]
