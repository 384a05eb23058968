"""
Process-wide defaults for docmap schemas.

Defines SchemaSettings, a frozen dataclass carrying the defaults a Schema falls
back to when its own options leave a key-derivation value unset. Defaults are
sourced from docmap.core.constants (the single source of truth).

Precedence
- Schema options (``key_prefix``, ``delimiter``, ...) > SchemaSettings.
- SchemaSettings.load(): environment > TOML > defaults.

Import DAG discipline
- Depends only on stdlib and docmap.core.constants.
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from docmap.core.constants import DEFAULT_DELIMITER, DEFAULT_REF_INDEX_KEY_PREFIX

__all__ = ["SchemaSettings"]

_FIELDS = ("delimiter", "ref_index_key_prefix", "key_prefix", "key_suffix")


@dataclass(frozen=True)
class SchemaSettings:
    """
    Defaults for document and reference key derivation.

    Attributes:
        delimiter (str): Separator between index name and value in ref keys.
        ref_index_key_prefix (str): Prefix marking reference lookup documents.
        key_prefix (str): Document key prefix when neither the key property nor
            the schema options define one.
        key_suffix (str): Document key suffix, same resolution as key_prefix.

    Examples:
        >>> SchemaSettings(delimiter="::").delimiter
        '::'
    """

    delimiter: str = DEFAULT_DELIMITER
    ref_index_key_prefix: str = DEFAULT_REF_INDEX_KEY_PREFIX
    key_prefix: str = ""
    key_suffix: str = ""

    @classmethod
    def _apply_mapping(cls, base: SchemaSettings, cfg: dict[str, Any] | None) -> SchemaSettings:
        """Apply a loose config mapping onto SchemaSettings, returning a new instance."""
        if not isinstance(cfg, dict):
            return base

        s = base
        for name in _FIELDS:
            if name in cfg and isinstance(cfg[name], str):
                s = replace(s, **{name: cfg[name]})
        return s

    @classmethod
    def from_env(
        cls, base: SchemaSettings | None = None, prefix: str = "DOCMAP_SCHEMA_"
    ) -> SchemaSettings:
        """
        Build SchemaSettings from environment variables. Precedence is env > base (if provided) > defaults.

        Recognized variables:
            - DOCMAP_SCHEMA_DELIMITER
            - DOCMAP_SCHEMA_REF_INDEX_KEY_PREFIX
            - DOCMAP_SCHEMA_KEY_PREFIX
            - DOCMAP_SCHEMA_KEY_SUFFIX

        Notes:
            Set-but-empty variables are honored, so a prefix can be cleared from the
            environment.
        """
        s = base or cls()
        mapping: dict[str, Any] = {}
        for name in _FIELDS:
            v = os.getenv(prefix + name.upper())
            if v is not None:
                mapping[name] = v
        return cls._apply_mapping(s, mapping)

    @classmethod
    def from_toml(cls, path: str | os.PathLike[str] | None = None) -> SchemaSettings:
        """
        Build SchemaSettings from a TOML file.

        Search order when `path` is None:
            1) ./docmap.toml (with either a top-level [schema] table or direct keys)
            2) ./pyproject.toml under [tool.docmap.schema]

        Returns defaults if no file is present.
        """
        s = cls()

        def _load_toml(p: Path) -> dict[str, Any] | None:
            try:
                with p.open("rb") as fh:
                    return tomllib.load(fh)
            except (OSError, tomllib.TOMLDecodeError):
                return None

        cand: list[Path] = []
        if path is not None:
            cand.append(Path(path))
        else:
            cand.append(Path.cwd() / "docmap.toml")
            cand.append(Path.cwd() / "pyproject.toml")

        cfg: dict[str, Any] | None = None
        for p in cand:
            if not p.exists():
                continue
            data = _load_toml(p)
            if not isinstance(data, dict):
                continue
            if p.name == "pyproject.toml":
                tool = data.get("tool", {})
                cfg = tool.get("docmap", {}).get("schema", {}) if isinstance(tool, dict) else None
            elif isinstance(data.get("schema"), dict):
                cfg = data["schema"]
            else:
                cfg = data
            if cfg:
                break

        return cls._apply_mapping(s, cfg)

    @classmethod
    def load(cls, path: str | os.PathLike[str] | None = None) -> SchemaSettings:
        """
        Load SchemaSettings applying precedence: environment > TOML > defaults.

        Args:
            path: Optional explicit TOML path. If None, search defaults (docmap.toml, pyproject.toml).
        """
        s = cls.from_toml(path)
        return cls.from_env(base=s)
