"""Codec configuration module.

This module loads the list of codecs under test from a JSON file. The
file maps each codec name to a record describing how to run its encoder:

.. code-block:: json

    {
      "openjpeg": {
        "encoder_command": "opj_compress",
        "version_switch": "-h",
        "required_input_type": "ppm",
        "output_suffix": "j2k",
        "parameters": "-r 20"
      }
    }

Declaration order is execution order. The file is parsed as data and
checked against an explicit field schema; it is never executed.
"""

import json
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from codec_compare.errors import ConfigurationError
from codec_compare.tools import split_parameters

SUPPORTED_INPUT_TYPES = frozenset(
    {"bmp", "pgm", "png", "pnm", "ppm", "raw", "tif", "tiff", "yuv"}
)

# field name -> required
_CODEC_FIELDS: dict[str, bool] = {
    "encoder_command": True,
    "version_switch": False,
    "required_input_type": True,
    "output_suffix": True,
    "parameters": False,
}


@dataclass(frozen=True)
class CodecDefinition:
    """One codec under test."""

    name: str
    encoder_command: str
    required_input_type: str
    output_suffix: str
    parameters: str = ""
    version_switch: str | None = None


@dataclass(frozen=True)
class CodecConfig:
    """Ordered collection of codec definitions."""

    codecs: tuple[CodecDefinition, ...] = field(default_factory=tuple)

    def __len__(self) -> int:
        return len(self.codecs)

    def __iter__(self) -> Iterator[CodecDefinition]:
        return iter(self.codecs)

    @property
    def names(self) -> list[str]:
        """Codec names in declaration order."""
        return [codec.name for codec in self.codecs]

    def input_types(self) -> list[str]:
        """Distinct required input types in first-appearance order."""
        types: list[str] = []
        for codec in self.codecs:
            if codec.required_input_type not in types:
                types.append(codec.required_input_type)
        return types

    @classmethod
    def from_file(cls, config_path: Path) -> "CodecConfig":
        """Load a codec configuration from a JSON file.

        Args:
            config_path: Path to the codec JSON file

        Returns:
            CodecConfig instance

        Raises:
            ConfigurationError: If the file is missing, is not valid JSON,
                or does not match the codec schema
        """
        if not config_path.is_file():
            msg = f"Codec config not found: {config_path}"
            raise ConfigurationError(msg)

        try:
            with open(config_path, encoding="utf-8") as f:
                data = json.load(f, object_pairs_hook=_reject_duplicate_keys)
        except json.JSONDecodeError as e:
            msg = f"Malformed codec config {config_path}: {e}"
            raise ConfigurationError(msg) from e
        except (OSError, UnicodeDecodeError) as e:
            msg = f"Cannot read codec config {config_path}: {e}"
            raise ConfigurationError(msg) from e

        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: Any) -> "CodecConfig":
        """Create CodecConfig from a mapping of codec name to record.

        Args:
            data: Dictionary matching the codec JSON schema

        Returns:
            CodecConfig instance

        Raises:
            ConfigurationError: If the mapping does not match the schema
        """
        if not isinstance(data, dict):
            msg = "Codec config must be a JSON object mapping codec names to definitions"
            raise ConfigurationError(msg)
        if not data:
            msg = "Codec config defines no codecs"
            raise ConfigurationError(msg)

        codecs = [_parse_codec(name, record) for name, record in data.items()]
        return cls(codecs=tuple(codecs))


def _reject_duplicate_keys(pairs: list[tuple[str, Any]]) -> dict[str, Any]:
    """``object_pairs_hook`` that refuses repeated keys.

    ``json`` keeps the last of several equal keys; a repeated codec name
    would silently drop a codec, so it is an error here.
    """
    result: dict[str, Any] = {}
    for key, value in pairs:
        if key in result:
            msg = f"Duplicate key in codec config: {key!r}"
            raise ConfigurationError(msg)
        result[key] = value
    return result


def _parse_codec(name: Any, record: Any) -> CodecDefinition:
    """Validate one codec record and build its CodecDefinition.

    Args:
        name: Codec name (the key in the config mapping)
        record: Codec record dictionary

    Returns:
        CodecDefinition instance
    """
    if not isinstance(name, str) or not name.strip():
        msg = f"Codec name must be a non-empty string, got {name!r}"
        raise ConfigurationError(msg)
    if "/" in name or "\\" in name or name in (".", ".."):
        msg = f"Codec name {name!r} cannot be used in a file name"
        raise ConfigurationError(msg)
    if not isinstance(record, dict):
        msg = f"Codec {name!r}: definition must be an object"
        raise ConfigurationError(msg)

    unknown = sorted(set(record) - set(_CODEC_FIELDS))
    if unknown:
        msg = f"Codec {name!r}: unknown field(s): {', '.join(unknown)}"
        raise ConfigurationError(msg)

    missing = [key for key, required in _CODEC_FIELDS.items() if required and key not in record]
    if missing:
        msg = f"Codec {name!r}: missing required field(s): {', '.join(missing)}"
        raise ConfigurationError(msg)

    for key, value in record.items():
        if value is None and not _CODEC_FIELDS[key]:
            continue
        if not isinstance(value, str):
            msg = f"Codec {name!r}: field {key!r} must be a string"
            raise ConfigurationError(msg)

    for key in ("encoder_command", "required_input_type", "output_suffix"):
        if not record[key].strip():
            msg = f"Codec {name!r}: field {key!r} must not be empty"
            raise ConfigurationError(msg)

    input_type = record["required_input_type"].lower()
    if input_type not in SUPPORTED_INPUT_TYPES:
        msg = (
            f"Codec {name!r}: unsupported required_input_type {input_type!r} "
            f"(expected one of {', '.join(sorted(SUPPORTED_INPUT_TYPES))})"
        )
        raise ConfigurationError(msg)

    parameters = record.get("parameters") or ""
    try:
        split_parameters(parameters)
    except ValueError as e:
        msg = f"Codec {name!r}: cannot split parameters {parameters!r}: {e}"
        raise ConfigurationError(msg) from e

    version_switch = record.get("version_switch") or None

    return CodecDefinition(
        name=name,
        encoder_command=record["encoder_command"],
        required_input_type=input_type,
        output_suffix=record["output_suffix"].lstrip("."),
        parameters=parameters,
        version_switch=version_switch,
    )
