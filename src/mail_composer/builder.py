# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Build Email models from named presets.

Presets are raw field mappings, usually loaded from the ``[emails]`` section
of the configuration. A preset may name a parent through ``extends``; fields
are merged from the root of the chain down to the requested preset, and
explicit overrides passed to ``build()`` win over everything.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from .exceptions import ConfigurationError
from .models import Email


class EmailBuilder:
    """Creates Email instances from presets plus per-call overrides."""

    def __init__(self, presets: Mapping[str, Mapping[str, Any]] | None = None):
        self._presets = {name: dict(values) for name, values in (presets or {}).items()}

    @property
    def preset_names(self) -> list[str]:
        return sorted(self._presets)

    def resolve_preset(self, name: str) -> dict[str, Any]:
        """Return the preset fields with its ``extends`` chain merged in.

        Raises:
            ConfigurationError: If a preset in the chain does not exist or
                the chain loops.
        """
        chain: list[dict[str, Any]] = []
        seen: list[str] = []
        current: str | None = name
        while current is not None:
            if current in seen:
                cycle = " -> ".join([*seen, current])
                raise ConfigurationError(f"Circular email preset inheritance: {cycle}")
            if current not in self._presets:
                if current == name:
                    raise ConfigurationError(f"Email preset '{name}' is not defined")
                raise ConfigurationError(
                    f"Email preset '{seen[-1]}' extends undefined preset '{current}'"
                )
            seen.append(current)
            preset = self._presets[current]
            chain.append(preset)
            current = preset.get("extends")

        merged: dict[str, Any] = {}
        for preset in reversed(chain):
            for key, value in preset.items():
                if key == "extends":
                    continue
                if key == "template_params" and isinstance(value, Mapping):
                    merged[key] = {**merged.get(key, {}), **value}
                else:
                    merged[key] = value
        return merged

    def build(self, preset: str | None = None, **overrides: Any) -> Email:
        """Create an Email from an optional preset and field overrides.

        Raises:
            ConfigurationError: If the preset is unknown or the resulting
                fields do not form a valid Email.
        """
        fields = self.resolve_preset(preset) if preset is not None else {}
        fields.update({key: value for key, value in overrides.items() if value is not None})
        try:
            return Email(**fields)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid email definition: {e}") from e
