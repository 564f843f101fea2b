"""
Catalog accessor service.

Turns a realized catalog snapshot (base, legacy and legends content for each
record kind) into normalized, immutable catalog records.

The snapshot is keyed by storage key, one slice per (kind, variant):

    ships, legacyShips, legendsShips,
    squadrons, legacySquadrons, legendsSquadrons,
    upgrades, legacyUpgrades, legendsUpgrades,
    objectives, legacyObjectives, legendsObjectives

Each slice wraps its entries under the plural kind name, e.g.
``{"upgrades": {"<key>": {...}, ...}}``. Ship slices group models by chassis:
``{"ships": {"<chassis>": {"size": "small", "models": {...}}}}``.

Failures are soft. A missing slice yields no records; a malformed entry is
skipped. Neither aborts the listing.
"""

import json
import logging
from collections.abc import Mapping
from functools import lru_cache
from pathlib import Path
from typing import Any

from fleetforge.config import WILDCARD_FACTION, settings
from fleetforge.models.catalog import (
    CatalogKind,
    CatalogRecord,
    CatalogVariant,
    ObjectiveRecord,
    ObjectiveType,
    ShipRecord,
    SquadronRecord,
    UpgradeRecord,
    UpgradeRestrictions,
)
from fleetforge.models.failure import (
    CatalogMissingError,
    MalformedRecordError,
    RecordNotFoundError,
)

logger = logging.getLogger(__name__)

# Type alias for a raw catalog snapshot
CatalogSnapshot = Mapping[str, Any]

PLURAL_NAMES: dict[CatalogKind, str] = {
    CatalogKind.SHIP: "ships",
    CatalogKind.SQUADRON: "squadrons",
    CatalogKind.UPGRADE: "upgrades",
    CatalogKind.OBJECTIVE: "objectives",
}

# Merge order: base first, then each supplementary variant
VARIANT_ORDER = (CatalogVariant.BASE, CatalogVariant.LEGACY, CatalogVariant.LEGENDS)

HTTP_SCHEMES = ("http://", "https://")


def catalog_key(kind: CatalogKind, variant: CatalogVariant) -> str:
    """
    Storage key for one catalog slice.

    Examples:
        (SHIP, BASE) -> "ships"
        (UPGRADE, LEGACY) -> "legacyUpgrades"
    """
    plural = PLURAL_NAMES[kind]
    if variant is CatalogVariant.BASE:
        return plural
    return f"{variant.value}{plural.capitalize()}"


def normalize_image_url(url: str | None, base_url: str) -> str:
    """
    Make a card image reference absolute.

    References that already carry an http(s) scheme pass through unchanged;
    anything else is treated as a path under ``base_url``.
    """
    if not url:
        return ""
    if url.startswith(HTTP_SCHEMES):
        return url
    separator = "" if url.startswith("/") else "/"
    return f"{base_url.rstrip('/')}{separator}{url}"


def _as_tuple(value: Any) -> tuple[str, ...]:
    """Normalize an optional string-or-list field to a tuple of strings."""
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,) if value else ()
    return tuple(str(v) for v in value if v is not None)


def _faction(value: Any) -> tuple[str, ...]:
    """Normalize a faction field. Absent or empty means the wildcard."""
    if value is None or value == "":
        return (WILDCARD_FACTION,)
    if isinstance(value, str):
        return (value,)
    factions = tuple(str(v) for v in value)
    return factions or (WILDCARD_FACTION,)


def _require(raw: Mapping[str, Any], field_name: str, key: str, record_key: str) -> Any:
    value = raw.get(field_name)
    if value is None or value == "":
        raise MalformedRecordError(key, record_key, field_name)
    return value


def _points(raw: Mapping[str, Any], key: str, record_key: str) -> int:
    value = _require(raw, "points", key, record_key)
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise MalformedRecordError(key, record_key, "points") from e


def _optional_int(value: Any) -> int | None:
    try:
        return int(value) if value is not None else None
    except (TypeError, ValueError):
        return None


def normalize_ship(
    chassis: str,
    chassis_data: Mapping[str, Any],
    record_key: str,
    raw: Mapping[str, Any],
    variant: CatalogVariant,
    base_url: str,
) -> ShipRecord:
    """Normalize one ship model. Hull size comes from its chassis entry."""
    key = catalog_key(CatalogKind.SHIP, variant)
    name = str(_require(raw, "name", key, record_key))

    return ShipRecord(
        id=variant.prefix_id(f"{chassis}-{name}"),
        name=name,
        faction=_faction(raw.get("faction")),
        points=_points(raw, key, record_key),
        cardimage=normalize_image_url(raw.get("cardimage"), base_url),
        unique=bool(raw.get("unique", False)),
        variant=variant,
        chassis=chassis,
        size=str(chassis_data.get("size") or raw.get("size") or ""),
        traits=_as_tuple(raw.get("traits")),
        upgrade_slots=_as_tuple(raw.get("upgrades")),
    )


def normalize_squadron(
    record_key: str,
    raw: Mapping[str, Any],
    variant: CatalogVariant,
    base_url: str,
) -> SquadronRecord:
    """Normalize one squadron. A non-empty ace name replaces the display name."""
    key = catalog_key(CatalogKind.SQUADRON, variant)
    squadron_name = str(_require(raw, "name", key, record_key))
    ace_name = str(raw.get("ace-name") or "")

    return SquadronRecord(
        id=variant.prefix_id(str(raw.get("id") or record_key)),
        name=ace_name or squadron_name,
        faction=_faction(raw.get("faction")),
        points=_points(raw, key, record_key),
        cardimage=normalize_image_url(raw.get("cardimage"), base_url),
        unique=bool(raw.get("unique", False)),
        variant=variant,
        squadron_name=squadron_name,
        ace_name=ace_name,
        unique_class=_as_tuple(raw.get("unique-class")),
        hull=_optional_int(raw.get("hull")),
        speed=_optional_int(raw.get("speed")),
    )


def normalize_restrictions(raw: Mapping[str, Any] | None) -> UpgradeRestrictions:
    """Fill in every restriction list, absent lists becoming empty."""
    raw = raw or {}
    return UpgradeRestrictions(
        traits=_as_tuple(raw.get("traits")),
        size=_as_tuple(raw.get("size")),
        disqual_upgrades=_as_tuple(raw.get("disqual_upgrades")),
        disable_upgrades=_as_tuple(raw.get("disable_upgrades")),
        enable_upgrades=_as_tuple(raw.get("enable_upgrades")),
    )


def normalize_upgrade(
    record_key: str,
    raw: Mapping[str, Any],
    variant: CatalogVariant,
    base_url: str,
) -> UpgradeRecord:
    key = catalog_key(CatalogKind.UPGRADE, variant)
    name = str(_require(raw, "name", key, record_key))
    upgrade_type = str(_require(raw, "type", key, record_key))

    return UpgradeRecord(
        id=variant.prefix_id(str(raw.get("id") or name)),
        name=name,
        faction=_faction(raw.get("faction")),
        points=_points(raw, key, record_key),
        cardimage=normalize_image_url(raw.get("cardimage"), base_url),
        unique=bool(raw.get("unique", False)),
        variant=variant,
        upgrade_type=upgrade_type,
        unique_class=_as_tuple(raw.get("unique-class")),
        bound_shiptype=str(raw.get("bound_shiptype") or ""),
        modification=bool(raw.get("modification", False)),
        restrictions=normalize_restrictions(raw.get("restrictions")),
    )


def normalize_objective(
    record_key: str,
    raw: Mapping[str, Any],
    variant: CatalogVariant,
    base_url: str,
) -> ObjectiveRecord:
    key = catalog_key(CatalogKind.OBJECTIVE, variant)
    name = str(_require(raw, "name", key, record_key))
    type_value = str(_require(raw, "type", key, record_key))

    try:
        objective_type = ObjectiveType(type_value.lower())
    except ValueError as e:
        raise MalformedRecordError(key, record_key, "type") from e

    return ObjectiveRecord(
        id=variant.prefix_id(str(raw.get("_id") or raw.get("id") or record_key)),
        name=name,
        cardimage=normalize_image_url(raw.get("cardimage"), base_url),
        variant=variant,
        objective_type=objective_type,
    )


class CatalogAccessor:
    """
    Read-only lookup over a realized catalog snapshot.

    Records are normalized once per kind and cached; the snapshot is never
    modified.
    """

    def __init__(
        self,
        snapshot: CatalogSnapshot,
        image_base_url: str | None = None,
    ) -> None:
        self._snapshot = snapshot
        self._image_base_url = image_base_url or settings.image_base_url
        self._cache: dict[CatalogKind, tuple[CatalogRecord, ...]] = {}

    def list_by_type(self, kind: CatalogKind) -> tuple[CatalogRecord, ...]:
        """
        All records of one kind, merged across variants.

        Order: base catalog, then legacy, then legends, each in snapshot order.
        Missing slices contribute nothing.
        """
        if kind not in self._cache:
            records: list[CatalogRecord] = []
            for variant in VARIANT_ORDER:
                records.extend(self._load_slice(kind, variant))
            self._cache[kind] = tuple(records)
            logger.debug("Normalized %d %s records", len(records), kind.value)
        return self._cache[kind]

    def get(self, kind: CatalogKind, record_id: str) -> CatalogRecord:
        """
        Look up a record by its (variant-prefixed) id.

        Raises:
            RecordNotFoundError: If no record of that kind has the id
        """
        for record in self.list_by_type(kind):
            if record.id == record_id:
                return record
        raise RecordNotFoundError(record_id)

    def find_by_name(self, kind: CatalogKind, name: str) -> CatalogRecord | None:
        """First record of the kind with the display name, base catalog first."""
        for record in self.list_by_type(kind):
            if record.name == name:
                return record
        return None

    def has_slice(self, kind: CatalogKind, variant: CatalogVariant) -> bool:
        return self._slice_entries(kind, variant) is not None

    def _slice_entries(
        self, kind: CatalogKind, variant: CatalogVariant
    ) -> Mapping[str, Any] | None:
        payload = self._snapshot.get(catalog_key(kind, variant))
        if not isinstance(payload, Mapping):
            return None
        entries = payload.get(PLURAL_NAMES[kind])
        if not isinstance(entries, Mapping):
            return None
        return entries

    def _load_slice(self, kind: CatalogKind, variant: CatalogVariant) -> list[CatalogRecord]:
        key = catalog_key(kind, variant)
        entries = self._slice_entries(kind, variant)
        if entries is None:
            error = CatalogMissingError(key)
            # Supplementary variants are often absent; only the base slice is worth a warning
            if variant is CatalogVariant.BASE:
                logger.warning("%s; listing no %s records from it", error.message, kind.value)
            else:
                logger.debug("%s", error.message)
            return []

        records: list[CatalogRecord] = []
        for record_key, raw in entries.items():
            try:
                records.extend(self._normalize(kind, variant, str(record_key), raw))
            except MalformedRecordError as e:
                logger.warning("Skipping catalog entry: %s", e.message)
        return records

    def _normalize(
        self,
        kind: CatalogKind,
        variant: CatalogVariant,
        record_key: str,
        raw: Any,
    ) -> list[CatalogRecord]:
        key = catalog_key(kind, variant)
        if not isinstance(raw, Mapping):
            raise MalformedRecordError(key, record_key, "fields")

        base_url = self._image_base_url

        if kind is CatalogKind.SHIP:
            models = raw.get("models") or {}
            if not isinstance(models, Mapping):
                raise MalformedRecordError(key, record_key, "models")
            ships: list[CatalogRecord] = []
            for model_key, model in models.items():
                if not isinstance(model, Mapping):
                    logger.warning(
                        "Skipping ship model '%s' in chassis '%s'", model_key, record_key
                    )
                    continue
                try:
                    ship = normalize_ship(record_key, raw, str(model_key), model, variant, base_url)
                    ships.append(ship)
                except MalformedRecordError as e:
                    logger.warning("Skipping catalog entry: %s", e.message)
            return ships
        if kind is CatalogKind.SQUADRON:
            return [normalize_squadron(record_key, raw, variant, base_url)]
        if kind is CatalogKind.UPGRADE:
            return [normalize_upgrade(record_key, raw, variant, base_url)]
        return [normalize_objective(record_key, raw, variant, base_url)]


def load_catalog_snapshot(directory: Path | None = None) -> dict[str, Any]:
    """
    Read catalog slices from local JSON files.

    Each slice lives in ``<storage key>.json``. Missing files are left out of
    the snapshot and degrade to empty listings.

    Args:
        directory: Directory holding the slice files. Defaults to settings.catalog_dir
    """
    if directory is None:
        directory = Path(settings.catalog_dir)

    snapshot: dict[str, Any] = {}
    for kind in CatalogKind:
        for variant in VARIANT_ORDER:
            key = catalog_key(kind, variant)
            path = directory / f"{key}.json"
            if not path.exists():
                continue
            with open(path, encoding="utf-8") as f:
                snapshot[key] = json.load(f)

    logger.info("Loaded %d catalog slices from %s", len(snapshot), directory)
    return snapshot


@lru_cache(maxsize=1)
def get_catalog_accessor() -> CatalogAccessor:
    """
    Get the cached accessor over the configured catalog directory.

    Cached after first load.
    """
    return CatalogAccessor(load_catalog_snapshot())
