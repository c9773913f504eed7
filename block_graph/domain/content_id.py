"""
BlockGraph - Content Identifiers
==================================
Identificatori content-addressed (CID v1) per blocchi, transazioni e nodi merkle.

Last Updated: 2026-10-17
Version: 1.0.0

Format:
- Binary: uvarint(version) || uvarint(codec) || uvarint(hash_code) || uvarint(len) || digest
- Text: multibase base32 lower-case senza padding, prefisso "b"

La codifica binaria e testuale è delegata a multiformats (CID, multihash,
multicodec). Il digest è sempre in ordine interno (wire order): l'hex
invertito usato dai block explorer è disponibile tramite hash_hex().
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Protocol

from multiformats import CID, multicodec, multihash

from block_graph.constants import (
    CID_VERSION,
    MULTIBASE_BASE32,
    MULTIBASE_BASE32_PREFIX,
)
from block_graph.errors import CodecTypeError, IdentifierError


# ============================================================================
# MULTICODEC LOOKUP
# ============================================================================

def multicodec_name(code: int) -> str:
    """
    Nome multicodec di un tag numerico.

    Examples:
        >>> multicodec_name(0xb0)
        'bitcoin-block'
        >>> multicodec_name(0x56)
        'dbl-sha2-256'

    Raises:
        IdentifierError: Tag non presente nella tabella multicodec
    """
    try:
        return multicodec.get(code=code).name
    except KeyError as e:
        raise IdentifierError(
            f"Unknown multicodec tag: 0x{code:x}",
            code="UNKNOWN_MULTICODEC",
            details={"code": code}
        ) from e


# ============================================================================
# CONTENT IDENTIFIER
# ============================================================================

@dataclass(frozen=True)
class ContentIdentifier:
    """
    Content identifier immutabile.

    Due identificatori sono uguali se e solo se version, codec,
    hash_code e digest coincidono.

    Attributes:
        version (int): Versione CID (sempre 1)
        codec (int): Codec tag (0xb0 block, 0xb1 tx, 0xb2 witness commitment)
        hash_code (int): Multihash tag (0x56 dbl-sha2-256)
        digest (bytes): Digest in ordine interno

    Examples:
        >>> cid = ContentIdentifier.parse(
        ...     "bagyacvran7riycvw6gzxfqngujdk4y7xj6jr5a3f4fnarhdi2ymqaaaaaaaa"
        ... )
        >>> cid.hash_hex()
        '000000000019d6689c085ae165831e934ff763ae46a2a6c172b3f1b60a8ce26f'
    """

    version: int
    codec: int
    hash_code: int
    digest: bytes

    def __post_init__(self):
        if not isinstance(self.digest, (bytes, bytearray)):
            raise CodecTypeError(
                f"digest must be bytes, got {type(self.digest).__name__}",
                code="INVALID_DIGEST_TYPE"
            )
        if isinstance(self.digest, bytearray):
            object.__setattr__(self, "digest", bytes(self.digest))

        for name in ("version", "codec", "hash_code"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                raise IdentifierError(
                    f"{name} must be a non-negative int, got {value!r}",
                    code="INVALID_IDENTIFIER_FIELD"
                )

        if self.version != CID_VERSION:
            raise IdentifierError(
                f"Unsupported identifier version: {self.version}",
                code="UNSUPPORTED_CID_VERSION"
            )

        # Tag sconosciuti non sarebbero codificabili
        multicodec_name(self.codec)
        multicodec_name(self.hash_code)

    @property
    def codec_name(self) -> str:
        return multicodec_name(self.codec)

    @property
    def hash_name(self) -> str:
        return multicodec_name(self.hash_code)

    @property
    def multihash(self) -> bytes:
        """Multihash: uvarint(hash_code) || uvarint(len) || digest"""
        return multihash.wrap(self.digest, self.hash_name)

    def to_cid(self) -> CID:
        """CID multiformats equivalente (base32)"""
        return CID(MULTIBASE_BASE32, self.version, self.codec_name, self.multihash)

    def to_bytes(self) -> bytes:
        """Forma binaria"""
        return bytes(self.to_cid())

    def encode(self) -> str:
        """
        Forma testuale multibase base32.

        Returns:
            str: "b" + base32 lower-case senza padding
        """
        return self.to_cid().encode(MULTIBASE_BASE32)

    def hash_hex(self) -> str:
        """Digest in ordine display (byte invertiti), come nei block explorer"""
        return self.digest[::-1].hex()

    def to_dict(self) -> Dict[str, object]:
        return {
            "cid": self.encode(),
            "version": self.version,
            "codec": self.codec_name,
            "hash": self.hash_name,
            "digest": self.digest.hex(),
        }

    @classmethod
    def from_cid(cls, cid: CID) -> ContentIdentifier:
        """Conversione da CID multiformats"""
        return cls(
            version=cid.version,
            codec=cid.codec.code,
            hash_code=cid.hashfun.code,
            digest=bytes(cid.raw_digest)
        )

    @classmethod
    def from_bytes(cls, data: bytes) -> ContentIdentifier:
        """
        Parse forma binaria.

        Raises:
            IdentifierError: Buffer troncato, lunghezza digest incoerente o byte residui
        """
        if not isinstance(data, (bytes, bytearray)):
            raise CodecTypeError(
                f"Expected bytes, got {type(data).__name__}",
                code="INVALID_INPUT_TYPE"
            )

        try:
            identifier = cls.from_cid(CID.decode(bytes(data)))
        except IdentifierError:
            raise
        except (KeyError, ValueError) as e:
            raise IdentifierError(
                f"Invalid binary identifier: {e}",
                code="INVALID_IDENTIFIER",
                details={"size": len(data)}
            ) from e

        if identifier.to_bytes() != bytes(data):
            raise IdentifierError(
                "Non-canonical binary identifier",
                code="NON_CANONICAL_IDENTIFIER",
                details={"size": len(data)}
            )
        return identifier

    @classmethod
    def parse(cls, text: str) -> ContentIdentifier:
        """
        Parse forma testuale base32.

        Raises:
            IdentifierError: Prefisso multibase non supportato o base32 invalido
        """
        if not isinstance(text, str):
            raise CodecTypeError(
                f"Expected str, got {type(text).__name__}",
                code="INVALID_INPUT_TYPE"
            )
        if not text.startswith(MULTIBASE_BASE32_PREFIX):
            raise IdentifierError(
                f"Unsupported multibase prefix: {text[:1]!r}",
                code="UNSUPPORTED_MULTIBASE"
            )

        try:
            return cls.from_cid(CID.decode(text))
        except IdentifierError:
            raise
        except (KeyError, ValueError) as e:
            raise IdentifierError(
                f"Invalid base32 identifier: {e}",
                code="INVALID_BASE32"
            ) from e

    def __str__(self) -> str:
        return self.encode()

    def __repr__(self) -> str:
        return f"ContentIdentifier({self.codec_name}, {self.encode()})"


# ============================================================================
# IDENTIFIER FACTORY
# ============================================================================

class IdentifierFactory(Protocol):
    """Costruisce un identificatore da (version, codec, hash_code, digest)"""

    def __call__(
        self,
        version: int,
        codec: int,
        hash_code: int,
        digest: bytes
    ) -> ContentIdentifier:
        ...


def create_identifier(
    version: int,
    codec: int,
    hash_code: int,
    digest: bytes
) -> ContentIdentifier:
    """
    Factory di default per ContentIdentifier.

    Examples:
        >>> cid = create_identifier(1, 0xb1, 0x56, bytes(32))
        >>> cid.codec_name
        'bitcoin-tx'
    """
    return ContentIdentifier(
        version=version,
        codec=codec,
        hash_code=hash_code,
        digest=digest
    )


# ============================================================================
# EXPORT
# ============================================================================

__all__ = [
    "multicodec_name",
    "ContentIdentifier",
    "IdentifierFactory",
    "create_identifier",
]
