"""
BlockGraph - Configuration Management
=======================================
Gestione centralizzata configurazione con Pydantic Settings.
Supporta environment variables, file .env, override runtime.

Last Updated: 2026-10-17
Version: 1.0.0

Features:
- Validazione automatica tipi
- Environment variables con prefisso BLOCKGRAPH_
- File .env support
"""

from pathlib import Path
from typing import Optional
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# ============================================================================
# MAIN CONFIGURATION CLASS
# ============================================================================

class BlockGraphSettings(BaseSettings):
    """
    Configurazione principale BlockGraph.

    Example:
        # Da environment
        export BLOCKGRAPH_LOG_LEVEL=DEBUG
        export BLOCKGRAPH_REQUIRE_WITNESS_COMMITMENT=false

        # Da codice
        config = BlockGraphSettings(log_format="text")
    """

    model_config = SettingsConfigDict(
        env_prefix='BLOCKGRAPH_',
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=False,
        extra='ignore',
    )

    # ========================================================================
    # LOGGING
    # ========================================================================

    log_level: str = Field(
        default="WARNING",
        description="Livello log: DEBUG, INFO, WARNING, ERROR, CRITICAL"
    )

    log_format: str = Field(
        default="json",
        description="Formato log su file: json, text"
    )

    log_to_file: bool = Field(
        default=False,
        description="Scrivi log su file rotante"
    )

    log_dir: Path = Field(
        default=Path("./logs"),
        description="Directory log files"
    )

    log_rotation_mb: int = Field(
        default=10,
        ge=1,
        le=1024,
        description="MB prima della rotation"
    )

    enable_console_log: bool = Field(
        default=True,
        description="Log anche su console (stderr)"
    )

    # ========================================================================
    # BLOCK VERIFICATION
    # ========================================================================

    verify_merkle_root: bool = Field(
        default=True,
        description="Solleva errore se la merkle root calcolata non coincide con l'header"
    )

    require_witness_commitment: bool = Field(
        default=True,
        description="Blocchi con transazioni segwit devono avere un witness commitment valido"
    )

    # ========================================================================
    # OUTPUT
    # ========================================================================

    json_indent: Optional[int] = Field(
        default=2,
        ge=0,
        le=8,
        description="Indentazione output JSON della CLI (None = compatto)"
    )

    # ========================================================================
    # VALIDATORS
    # ========================================================================

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Valida log level"""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log_level: {v}. Must be one of {valid_levels}")
        return v_upper

    @field_validator('log_format')
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Valida formato log"""
        valid_formats = ['json', 'text']
        v_lower = v.lower()
        if v_lower not in valid_formats:
            raise ValueError(f"Invalid log_format: {v}. Must be one of {valid_formats}")
        return v_lower

    # ========================================================================
    # HELPER METHODS
    # ========================================================================

    def to_dict(self) -> dict:
        """Serializza config"""
        return self.model_dump(mode="json")

    def to_json(self) -> str:
        """Serializza config in JSON"""
        return self.model_dump_json(indent=2)

    @classmethod
    def from_json(cls, json_str: str) -> "BlockGraphSettings":
        """Carica config da JSON"""
        return cls.model_validate_json(json_str)

    def __repr__(self) -> str:
        return (
            f"BlockGraphSettings("
            f"log_level={self.log_level}, "
            f"verify_merkle_root={self.verify_merkle_root}, "
            f"require_witness_commitment={self.require_witness_commitment})"
        )


# ============================================================================
# SINGLETON INSTANCE
# ============================================================================

@lru_cache(maxsize=1)
def get_settings() -> BlockGraphSettings:
    """
    Ottieni singleton instance di BlockGraphSettings.

    Cached: chiamate multiple restituiscono la stessa istanza.

    Example:
        >>> config = get_settings()
        >>> config.require_witness_commitment
        True
    """
    return BlockGraphSettings()


def reload_settings() -> BlockGraphSettings:
    """
    Ricarica settings da environment (invalida la cache).

    Returns:
        BlockGraphSettings: Nuova istanza
    """
    get_settings.cache_clear()
    return get_settings()


def override_settings(**kwargs) -> BlockGraphSettings:
    """
    Crea settings con override espliciti (test, CLI).

    Args:
        **kwargs: Campi da sovrascrivere

    Returns:
        BlockGraphSettings: Istanza validata

    Example:
        >>> cfg = override_settings(require_witness_commitment=False)
    """
    base = get_settings().model_dump()
    base.update(kwargs)
    return BlockGraphSettings.model_validate(base)


# ============================================================================
# EXPORT
# ============================================================================

__all__ = [
    "BlockGraphSettings",
    "get_settings",
    "reload_settings",
    "override_settings",
]
