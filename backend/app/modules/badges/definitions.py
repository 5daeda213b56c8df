"""Badge definitions shown on profiles.

Profiles store only badge ids; everything else about a badge lives here.
"""

from __future__ import annotations

from dataclasses import dataclass


RARITY_ORDER = {"legendary": 0, "epic": 1, "rare": 2, "common": 3}


@dataclass(frozen=True)
class Badge:
    id: str
    name: str
    description: str
    icon: str
    color: str
    rarity: str
    auto_awarded: bool = False
    admin_only: bool = True


_BADGE_LIST = [
    Badge("owner", "Owner", "Platform owner", "Crown", "#fbbf24", "legendary"),
    Badge("admin", "Admin", "Platform administrator", "Shield", "#ef4444", "legendary"),
    Badge("verified", "Verified", "Verified creator", "BadgeCheck", "#3b82f6", "rare"),
    Badge("premium", "Premium", "Premium subscriber", "Star", "#a855f7", "rare", True, False),
    Badge("pro_subscriber", "Pro", "Pro tier subscriber", "Star", "#3b82f6", "rare", True, False),
    Badge("creator_subscriber", "Creator", "Creator tier subscriber", "Crown", "#f59e0b", "epic", True, False),
    Badge("lifetime_subscriber", "Lifetime", "Lifetime supporter", "Gem", "#ec4899", "legendary", True, False),
    Badge("early_adopter", "Early Adopter", "One of the first 100 users", "Sparkles", "#f59e0b", "epic", True, False),
    Badge("referral_master", "Referral Master", "Referred 10+ users", "Users", "#10b981", "epic", True, False),
    Badge("creator", "Creator", "Content creator", "Palette", "#ec4899", "common"),
    Badge("vtuber", "VTuber", "Virtual YouTuber", "Video", "#8b5cf6", "rare"),
    Badge("streamer", "Streamer", "Live streamer", "Radio", "#6366f1", "rare"),
    Badge("artist", "Artist", "Digital artist", "Brush", "#f43f5e", "rare"),
    Badge("developer", "Developer", "Software developer", "Code2", "#06b6d4", "rare"),
    Badge("musician", "Musician", "Music creator", "Music", "#f472b6", "rare"),
    Badge("gamer", "Gamer", "Gaming enthusiast", "Gamepad2", "#22c55e", "common"),
    Badge("other", "Other", "Other content type", "Wand2", "#94a3b8", "common"),
    Badge("partner", "Partner", "Official partner", "Handshake", "#14b8a6", "legendary"),
]

BADGES: dict[str, Badge] = {badge.id: badge for badge in _BADGE_LIST}

TIER_BADGES = {
    "lifetime": "lifetime_subscriber",
    "creator": "creator_subscriber",
    "pro": "pro_subscriber",
}

EARLY_ADOPTER_LIMIT = 100
REFERRAL_MASTER_THRESHOLD = 10


def get_badge(badge_id: str) -> Badge | None:
    return BADGES.get(badge_id)


def badges_for(badge_ids: list[str]) -> list[Badge]:
    """Known badges for the given ids, rarest first."""
    found = [BADGES[b] for b in badge_ids if b in BADGES]
    return sorted(found, key=lambda badge: RARITY_ORDER[badge.rarity])
