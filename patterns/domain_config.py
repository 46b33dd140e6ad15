"""Dataclass-based domain configuration pattern.

The tracker defines its limits and defaults as a frozen dataclass. This
gives you:
- Type safety (IDE autocompletion, mypy checking)
- Default values (sensible out-of-the-box)
- Immutability (frozen=True prevents accidental mutation)
- Easy overrides (from env vars)
"""

from dataclasses import dataclass, field


# ---------------------------------------------------------------------------
# Nested config sections
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RatingConfig:
    """Inclusive rating bounds."""

    min_rating: int = 0
    max_rating: int = 5


@dataclass(frozen=True)
class TenantConfig:
    """Rules for user-chosen database ids and new-tenant seeding."""

    db_id_pattern: str = r"[A-Za-z0-9_-]+"
    db_id_min_length: int = 3
    default_collection_title: str = "My Books"
    default_collection_description: str = "Default collection for all books"


# ---------------------------------------------------------------------------
# Top-level domain config
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ReadingTrackerConfig:
    """Complete configuration for the reading tracker.

    Usage::

        config = ReadingTrackerConfig.default()
        if not config.rating.min_rating <= rating <= config.rating.max_rating:
            reject(rating)
    """

    rating: RatingConfig = field(default_factory=RatingConfig)
    tenant: TenantConfig = field(default_factory=TenantConfig)

    statuses: tuple[str, ...] = ("TBR", "Reading", "Read", "DNF", "On Hold")
    default_status: str = "TBR"

    @classmethod
    def default(cls) -> "ReadingTrackerConfig":
        """Create config with all defaults."""
        return cls()

    @classmethod
    def from_env(cls, prefix: str = "TRACKER_") -> "ReadingTrackerConfig":
        """Create config from environment variables.

        Example: TRACKER_DEFAULT_COLLECTION_TITLE="General"
        """
        import os

        tenant_overrides = {}
        title = os.getenv(f"{prefix}DEFAULT_COLLECTION_TITLE")
        if title:
            tenant_overrides["default_collection_title"] = title
        description = os.getenv(f"{prefix}DEFAULT_COLLECTION_DESCRIPTION")
        if description is not None:
            tenant_overrides["default_collection_description"] = description

        return cls(tenant=TenantConfig(**tenant_overrides))
