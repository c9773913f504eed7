"""
BlockGraph - Custom Exceptions
================================
Gerarchia di eccezioni per codec, merkle tree e witness commitment.

Last Updated: 2026-10-17
Version: 1.0.0

Taxonomy:
- CodecTypeError: input di encode/decode con forma errata (TypeError)
- MalformedEncodingError: byte non decodificabili (ValueError)
- StructuralInvariantError: invarianti strutturali violate
"""

from typing import Optional, Any


# ============================================================================
# BASE EXCEPTION
# ============================================================================

class BlockGraphException(Exception):
    """
    Eccezione base per tutte le eccezioni BlockGraph.

    Attributes:
        message (str): Messaggio errore
        code (str): Codice errore (es. "TRUNCATED_BUFFER")
        details (dict): Dettagli aggiuntivi
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict] = None
    ):
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

        super().__init__(self.message)

    def to_dict(self) -> dict:
        """Serializza eccezione per CLI/logging"""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }

    def __str__(self) -> str:
        if self.details:
            return f"[{self.code}] {self.message} | Details: {self.details}"
        return f"[{self.code}] {self.message}"


# ============================================================================
# CONFIGURATION ERRORS
# ============================================================================

class ConfigError(BlockGraphException):
    """Errore configurazione sistema"""
    pass


# ============================================================================
# TYPE MISMATCH
# ============================================================================

class CodecTypeError(BlockGraphException, TypeError):
    """Input di encode() non è un record, o input di decode() non è bytes"""
    pass


# ============================================================================
# VALIDATION ERRORS
# ============================================================================

class ValidationError(BlockGraphException):
    """Errore validazione (base)"""
    pass


class InvalidFieldError(ValidationError, ValueError):
    """Campo di un record fuori range o di lunghezza errata"""
    pass


# ============================================================================
# MALFORMED ENCODING
# ============================================================================

class MalformedEncodingError(BlockGraphException, ValueError):
    """Byte non decodificabili nel formato legacy"""
    pass


class TruncatedBufferError(MalformedEncodingError):
    """Buffer terminato prima della fine della struttura"""
    pass


class InvalidCompactSizeError(MalformedEncodingError):
    """Prefisso compact size non canonico o incoerente con il buffer"""
    pass


class InvalidWitnessError(MalformedEncodingError):
    """Marker/flag segwit invalido o witness assente dopo il marker"""
    pass


class TrailingDataError(MalformedEncodingError):
    """Byte residui dopo la fine della struttura"""
    pass


# ============================================================================
# STRUCTURAL INVARIANTS
# ============================================================================

class StructuralInvariantError(BlockGraphException):
    """Invariante strutturale violata"""
    pass


class WitnessCommitmentSizeError(StructuralInvariantError):
    """Witness commitment diverso da 64 byte"""
    pass


class MissingCoinbaseError(StructuralInvariantError):
    """Blocco senza transazione coinbase"""
    pass


class MerkleTreeError(StructuralInvariantError):
    """Input merkle tree invalido (es. nessuna foglia)"""
    pass


class MerkleRootMismatchError(StructuralInvariantError):
    """Merkle root calcolata diversa da quella nell'header"""
    pass


class MissingWitnessCommitmentError(StructuralInvariantError):
    """Blocco segwit senza witness commitment nel coinbase"""
    pass


class WitnessCommitmentMismatchError(StructuralInvariantError):
    """Witness commitment calcolato diverso da quello nel coinbase"""
    pass


# ============================================================================
# IDENTIFIERS & REGISTRY
# ============================================================================

class IdentifierError(BlockGraphException, ValueError):
    """Content identifier non valido o non parsabile"""
    pass


class CodecRegistryError(BlockGraphException):
    """Errore registrazione codec"""
    pass


class UnknownCodecError(CodecRegistryError):
    """Codec non registrato"""
    pass


# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def format_field_error(
    field: str,
    value: Any,
    expected: str,
    code: Optional[str] = None
) -> InvalidFieldError:
    """
    Helper per creare InvalidFieldError formattati.

    Args:
        field: Nome campo invalido
        value: Valore ricevuto
        expected: Valore/tipo atteso
        code: Codice errore custom

    Returns:
        InvalidFieldError: Eccezione formattata

    Example:
        >>> raise format_field_error("lock_time", -1, "uint32")
    """
    return InvalidFieldError(
        message=f"Invalid field '{field}': expected {expected}, got {value!r}",
        code=code or "INVALID_FIELD",
        details={"field": field, "value": repr(value), "expected": expected}
    )


def format_truncation_error(
    needed: int,
    available: int,
    offset: int,
    what: str = "data"
) -> TruncatedBufferError:
    """Helper per errori di buffer troncato"""
    return TruncatedBufferError(
        message=f"Truncated buffer reading {what}: need {needed} bytes at offset {offset}, "
                f"{available} available",
        code="TRUNCATED_BUFFER",
        details={"needed": needed, "available": available, "offset": offset, "what": what}
    )


# ============================================================================
# EXPORT ALL
# ============================================================================

__all__ = [
    # Base
    "BlockGraphException",

    # Config
    "ConfigError",

    # Type mismatch
    "CodecTypeError",

    # Validation
    "ValidationError",
    "InvalidFieldError",

    # Malformed encoding
    "MalformedEncodingError",
    "TruncatedBufferError",
    "InvalidCompactSizeError",
    "InvalidWitnessError",
    "TrailingDataError",

    # Structural
    "StructuralInvariantError",
    "WitnessCommitmentSizeError",
    "MissingCoinbaseError",
    "MerkleTreeError",
    "MerkleRootMismatchError",
    "MissingWitnessCommitmentError",
    "WitnessCommitmentMismatchError",

    # Identifiers & registry
    "IdentifierError",
    "CodecRegistryError",
    "UnknownCodecError",

    # Helpers
    "format_field_error",
    "format_truncation_error",
]
