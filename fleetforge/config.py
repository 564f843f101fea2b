from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env", env_prefix="FLEETFORGE_")

    app_name: str = "FleetForge"
    debug: bool = False

    database_url: str = "sqlite+aiosqlite:///./fleetforge.db"

    # Directory holding the catalog snapshot files (ships.json, legacyShips.json, ...)
    catalog_dir: str = "data/catalog"

    # Card image references without a scheme are resolved against this location
    image_base_url: str = "https://api.swarmada.wiki"

    fleet_point_limit: int = 400


settings = Settings()


# =============================================================================
# FACTIONS
# =============================================================================

FACTIONS = frozenset(
    {
        "rebel",
        "empire",
        "republic",
        "separatist",
        "unsc",
        "covenant",
        "colonial",
        "cylon",
    }
)

# Alternate spellings accepted when a session is started
FACTION_ALIASES: dict[str, str] = {
    "imperial": "empire",
    "rebels": "rebel",
    "separatists": "separatist",
}

# Empty faction on a catalog record means "usable by any faction"
WILDCARD_FACTION = ""
