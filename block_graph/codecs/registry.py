"""
BlockGraph - Codec Registry
=============================
Registro dei codec per nome e codec tag.
"""

from typing import Any, Dict, List, Optional, Protocol, Union, runtime_checkable

from block_graph.codecs.header import BlockHeaderCodec
from block_graph.codecs.transaction import TransactionCodec
from block_graph.domain.content_id import IdentifierFactory
from block_graph.domain.crypto_core import HashProvider
from block_graph.errors import CodecRegistryError, UnknownCodecError
from block_graph.logging_setup import get_logger

logger = get_logger("codecs.registry")


@runtime_checkable
class Codec(Protocol):
    """Interfaccia minima di un codec registrabile"""

    name: str
    code: int

    def encode(self, obj: Any) -> bytes:
        ...

    def decode(self, data: bytes) -> Any:
        ...


class CodecRegistry:
    """
    Registry codec.

    Examples:
        >>> registry = create_default_registry()
        >>> registry.get("bitcoin-tx").code == registry.get(0xb1).code
        True
    """

    def __init__(self):
        self._by_name: Dict[str, Codec] = {}
        self._by_code: Dict[int, Codec] = {}

    def add(self, codec: Codec) -> Codec:
        """
        Registra un codec.

        Raises:
            CodecRegistryError: Oggetto non conforme, nome o tag già registrati
        """
        if not isinstance(codec, Codec):
            raise CodecRegistryError(
                f"{type(codec).__name__} does not implement the codec interface",
                code="INVALID_CODEC"
            )
        if codec.name in self._by_name or codec.code in self._by_code:
            raise CodecRegistryError(
                f"Codec already registered: {codec.name} (0x{codec.code:02x})",
                code="DUPLICATE_CODEC",
                details={"name": codec.name, "code": codec.code}
            )

        self._by_name[codec.name] = codec
        self._by_code[codec.code] = codec
        logger.debug("Registered codec", extra_data={"name": codec.name, "code": codec.code})
        return codec

    def get(self, key: Union[str, int]) -> Codec:
        """
        Codec per nome o codec tag.

        Raises:
            UnknownCodecError: Codec non registrato
        """
        codec = self._by_name.get(key) if isinstance(key, str) else self._by_code.get(key)
        if codec is None:
            raise UnknownCodecError(
                f"Unknown codec: {key!r}",
                code="UNKNOWN_CODEC",
                details={"registered": self.names()}
            )
        return codec

    def encode(self, obj: Any, name: Union[str, int]) -> bytes:
        return self.get(name).encode(obj)

    def decode(self, data: bytes, name: Union[str, int]) -> Any:
        return self.get(name).decode(data)

    def names(self) -> List[str]:
        return sorted(self._by_name)

    def __contains__(self, key: Union[str, int]) -> bool:
        return key in self._by_name or key in self._by_code

    def __len__(self) -> int:
        return len(self._by_name)


def create_default_registry(
    hash_provider: Optional[HashProvider] = None,
    identifier_factory: Optional[IdentifierFactory] = None
) -> CodecRegistry:
    """
    Registry con i codec "bitcoin-block" (0xb0) e "bitcoin-tx" (0xb1).

    Hash provider e identifier factory sono passati a entrambi i codec.
    """
    registry = CodecRegistry()
    registry.add(BlockHeaderCodec(hash_provider, identifier_factory))
    registry.add(TransactionCodec(hash_provider, identifier_factory))
    return registry


__all__ = [
    "Codec",
    "CodecRegistry",
    "create_default_registry",
]
