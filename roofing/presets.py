"""
Material Presets

A preset is a named bundle of yield and waste constants (PresetFactors) fed to
the material calculator. Built-in presets are immutable and always present;
custom presets are stored as JSON and can be exported and imported.
"""

import json
import logging
import math
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from .errors import InvalidPresetImportError, PresetError

logger = logging.getLogger(__name__)

PRESET_FILE_EXTENSION = ".roofpreset"


@dataclass(frozen=True)
class PresetFactors:
    """Yield and waste constants. Lengths in LF, areas in sq ft, waste as fractions."""
    bundles_per_square: float = 3.0
    shingle_waste_factor: float = 0.10
    underlayment_sqft_per_roll: float = 1000.0
    underlayment_waste_factor: float = 0.10
    uses_synthetic_underlayment: bool = True
    starter_strip_lf_per_bundle: float = 120.0
    ridge_cap_lf_per_bundle: float = 25.0
    drip_edge_lf_per_piece: float = 10.0
    valley_flashing_lf_per_piece: float = 10.0
    ice_water_sqft_per_roll: float = 200.0
    eave_ice_water_width_feet: float = 3.0
    requires_ice_water_for_valleys: bool = True
    requires_ice_water_for_eaves: bool = False
    includes_drip_edge: bool = True
    includes_ridge_cap: bool = True
    coil_nails_lbs_per_square: float = 2.0
    cap_nails_per_ridge_lf: float = 4.0
    waste_factor: float = 0.10

    def validate(self) -> List[str]:
        """Return every range violation; empty when the factors are usable."""
        problems = []
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, bool):
                continue
            if not math.isfinite(value):
                problems.append(f"{_to_camel(f.name)} must be a finite number (got {value})")
            elif value < 0:
                problems.append(f"{_to_camel(f.name)} must be >= 0 (got {value})")
            elif f.name in WASTE_FIELDS and value >= 1:
                problems.append(f"{_to_camel(f.name)} must be below 1.0 (got {value})")
        return problems

    def to_json_dict(self) -> Dict[str, Any]:
        return {_to_camel(f.name): getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_json_dict(cls, data: Mapping[str, Any]) -> "PresetFactors":
        """
        Build factors from a camelCase document.

        Raises:
            InvalidPresetImportError: a factor is missing, has the wrong type,
                or is out of range. Missing factors are never defaulted.
        """
        if not isinstance(data, Mapping):
            raise InvalidPresetImportError("factors must be an object")

        problems = []
        kwargs = {}
        for f in fields(cls):
            key = _to_camel(f.name)
            if key not in data:
                problems.append(f"missing factor '{key}'")
                continue
            value = data[key]
            if f.type in (bool, "bool"):
                if not isinstance(value, bool):
                    problems.append(f"'{key}' must be true or false")
                    continue
            elif isinstance(value, bool) or not isinstance(value, (int, float)):
                problems.append(f"'{key}' must be a number")
                continue
            elif not math.isfinite(value):
                problems.append(f"'{key}' must be a finite number")
                continue
            else:
                value = float(value)
            kwargs[f.name] = value

        if problems:
            raise InvalidPresetImportError(problems)

        factors = cls(**kwargs)
        problems = factors.validate()
        if problems:
            raise InvalidPresetImportError(problems)
        return factors


WASTE_FIELDS = frozenset({"shingle_waste_factor", "underlayment_waste_factor", "waste_factor"})

# Keys whose camelCase form is not a plain conversion
_CAMEL_OVERRIDES = {
    "underlayment_sqft_per_roll": "underlaymentSqFtPerRoll",
    "ice_water_sqft_per_roll": "iceWaterSqFtPerRoll",
    "starter_strip_lf_per_bundle": "starterStripLFPerBundle",
    "ridge_cap_lf_per_bundle": "ridgeCapLFPerBundle",
    "drip_edge_lf_per_piece": "dripEdgeLFPerPiece",
    "valley_flashing_lf_per_piece": "valleyFlashingLFPerPiece",
    "cap_nails_per_ridge_lf": "capNailsPerRidgeLF",
}


def _to_camel(name: str) -> str:
    if name in _CAMEL_OVERRIDES:
        return _CAMEL_OVERRIDES[name]
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


@dataclass
class Preset:
    """A named set of factors. Built-in presets are never modified in place."""
    name: str
    factors: PresetFactors = field(default_factory=PresetFactors)
    description: str = ""
    is_built_in: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "isBuiltIn": self.is_built_in,
            "factors": self.factors.to_json_dict(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Preset":
        return cls(
            name=data["name"],
            description=data.get("description", ""),
            is_built_in=bool(data.get("isBuiltIn", False)),
            factors=PresetFactors.from_json_dict(data.get("factors")),
        )


def builtin_presets() -> List[Preset]:
    """The presets every installation starts with."""
    return [
        Preset(
            name="Standard 3-Tab",
            description="3-tab shingles, 10% waste, synthetic underlayment, ice & water in valleys",
            is_built_in=True,
            factors=PresetFactors(),
        ),
        Preset(
            name="Architectural",
            description="Laminated architectural shingles, 15% waste, hip and ridge cap at 20 LF per bundle",
            is_built_in=True,
            factors=PresetFactors(
                shingle_waste_factor=0.15,
                ridge_cap_lf_per_bundle=20.0,
                coil_nails_lbs_per_square=2.5,
                waste_factor=0.15,
            ),
        ),
        Preset(
            name="Premium Ice Belt",
            description="Architectural shingles with a 6 ft ice & water belt along all eaves and valleys",
            is_built_in=True,
            factors=PresetFactors(
                shingle_waste_factor=0.15,
                ridge_cap_lf_per_bundle=20.0,
                eave_ice_water_width_feet=6.0,
                requires_ice_water_for_eaves=True,
                coil_nails_lbs_per_square=2.5,
                waste_factor=0.15,
            ),
        ),
    ]


def export_preset(preset: Preset) -> str:
    """Serialize a preset as a shareable JSON document (always marked custom)."""
    doc = preset.to_dict()
    doc["isBuiltIn"] = False
    return json.dumps(doc, indent=2)


def parse_preset_document(document: Union[str, bytes, Mapping[str, Any]]) -> Preset:
    """
    Parse and validate a preset document without touching any store.

    Raises:
        InvalidPresetImportError: malformed JSON, missing name, or bad factors
    """
    if isinstance(document, (str, bytes)):
        try:
            document = json.loads(document)
        except json.JSONDecodeError as e:
            raise InvalidPresetImportError(f"not valid JSON: {e}") from e
    if not isinstance(document, Mapping):
        raise InvalidPresetImportError("document must be a JSON object")

    name = document.get("name")
    if not isinstance(name, str) or not name.strip():
        raise InvalidPresetImportError("missing preset name")
    if "factors" not in document:
        raise InvalidPresetImportError("missing factors")

    factors = PresetFactors.from_json_dict(document["factors"])
    return Preset(
        name=name.strip(),
        description=str(document.get("description") or ""),
        is_built_in=False,
        factors=factors,
    )


class PresetStore:
    """
    Built-in presets plus custom presets persisted to a JSON file.

    Built-in presets live in memory and are re-seeded by
    ensure_builtin_presets(); only custom presets are written to disk.
    """

    FILE_NAME = "presets.json"

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self._path = Path(path) if path else None
        self._builtin: Dict[str, Preset] = {}
        self._custom: Dict[str, Preset] = {}
        self._load()

    @classmethod
    def in_directory(cls, directory: Union[str, Path]) -> "PresetStore":
        return cls(Path(directory) / cls.FILE_NAME)

    @property
    def path(self) -> Optional[Path]:
        return self._path

    def _load(self):
        if self._path is None or not self._path.exists():
            return
        try:
            with open(self._path, "r") as f:
                raw = json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            logger.warning(f"Failed to load presets from {self._path}: {e}")
            return
        for entry in raw.get("presets", []):
            try:
                preset = parse_preset_document(entry)
            except InvalidPresetImportError as e:
                logger.warning(f"Skipping stored preset {entry.get('name')!r}: {e}")
                continue
            self._custom[preset.name] = preset

    def _save(self):
        if self._path is None:
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with open(self._path, "w") as f:
            json.dump({"presets": [p.to_dict() for p in self._custom.values()]}, f, indent=2)

    def ensure_builtin_presets(self) -> int:
        """
        Seed built-in presets once. Safe to call repeatedly.

        Returns:
            Number of built-in presets added by this call
        """
        added = 0
        for preset in builtin_presets():
            if preset.name not in self._builtin:
                self._builtin[preset.name] = preset
                added += 1
        if added:
            logger.info(f"Seeded {added} built-in presets")
        return added

    # ========================================
    # Lookup
    # ========================================

    def names(self) -> List[str]:
        return list(self._builtin) + list(self._custom)

    def all(self) -> List[Preset]:
        return list(self._builtin.values()) + list(self._custom.values())

    def __contains__(self, name: str) -> bool:
        return name in self._builtin or name in self._custom

    def get(self, name: str) -> Preset:
        if name in self._builtin:
            return self._builtin[name]
        if name in self._custom:
            return self._custom[name]
        raise PresetError(f"Unknown preset '{name}'")

    def unique_name(self, name: str) -> str:
        """Return name, or "name (2)", "name (3)", ... if it is taken."""
        if name not in self:
            return name
        n = 2
        while f"{name} ({n})" in self:
            n += 1
        return f"{name} ({n})"

    # ========================================
    # Mutation (custom presets only)
    # ========================================

    def add(self, preset: Preset) -> Preset:
        if preset.name in self:
            raise PresetError(f"Preset '{preset.name}' already exists")
        problems = preset.factors.validate()
        if problems:
            raise PresetError("; ".join(problems))
        stored = replace(preset, is_built_in=False)
        self._custom[stored.name] = stored
        self._save()
        return stored

    def update(self, name: str, factors: PresetFactors, description: Optional[str] = None) -> Preset:
        if name in self._builtin:
            raise PresetError(f"Built-in preset '{name}' cannot be edited - duplicate it first")
        current = self.get(name)
        problems = factors.validate()
        if problems:
            raise PresetError("; ".join(problems))
        updated = replace(
            current,
            factors=factors,
            description=current.description if description is None else description,
        )
        self._custom[name] = updated
        self._save()
        return updated

    def delete(self, name: str):
        if name in self._builtin:
            raise PresetError(f"Built-in preset '{name}' cannot be deleted")
        if name not in self._custom:
            raise PresetError(f"Unknown preset '{name}'")
        del self._custom[name]
        self._save()

    def duplicate(self, name: str) -> Preset:
        """Create an editable custom copy named "<name> (Copy)"."""
        source = self.get(name)
        copy = Preset(
            name=self.unique_name(f"{source.name} (Copy)"),
            description=source.description,
            is_built_in=False,
            factors=source.factors,
        )
        return self.add(copy)

    def import_preset(self, document: Union[str, bytes, Mapping[str, Any]]) -> Preset:
        """
        Validate and add a preset document, renaming it on a name conflict.

        Raises:
            InvalidPresetImportError: the store is left unchanged
        """
        preset = parse_preset_document(document)
        preset = replace(preset, name=self.unique_name(preset.name))
        logger.info(f"Imported preset '{preset.name}'")
        return self.add(preset)

    def export_preset(self, name: str) -> str:
        return export_preset(self.get(name))
