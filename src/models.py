"""
Data models for the Harmonize backend.

This module defines lightweight data classes for a user's music profile and for a match between
a user and a candidate.  Each class provides helper methods for generating DynamoDB items and
computing partition and sort keys.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, Any, List, Optional

from matching_algorithm import TasteProfile

PROFILE_SK = "PROFILE"
MATCH_SK_PREFIX = "MATCH#"


def now_iso() -> str:
    """Return the current UTC time as an ISO 8601 formatted string."""
    return datetime.now(timezone.utc).isoformat()


def profile_pk(user_id: str) -> str:
    return f"USER#{user_id}"


def match_sk(candidate_id: str) -> str:
    return f"{MATCH_SK_PREFIX}{candidate_id}"


@dataclass
class UserProfile:
    """
    Represents a user's public profile and music taste.

    Attributes:
        user_id: Opaque identifier issued by the auth provider.
        display_name: Name shown on match cards.
        city: Free-text city, may be empty.
        top_genres: Genre labels in display casing, or None if never synced.
        top_artists: Artist names in display casing, or None if never synced.
        updated_at: ISO timestamp of the last write.
    """

    user_id: str
    display_name: str = ""
    city: str = ""
    top_genres: Optional[List[str]] = None
    top_artists: Optional[List[str]] = None
    updated_at: str = field(default_factory=now_iso)

    @property
    def pk(self) -> str:
        """Compute the partition key for the profile record."""
        return profile_pk(self.user_id)

    def taste(self) -> TasteProfile:
        return TasteProfile(id=self.user_id, top_genres=self.top_genres, top_artists=self.top_artists)

    def to_item(self) -> Dict[str, Any]:
        """Convert the profile into a DynamoDB item (dictionary)."""
        item: Dict[str, Any] = {
            "pk": self.pk,
            "sk": PROFILE_SK,
            "user_id": self.user_id,
            "display_name": self.display_name,
            "city": self.city,
            "updated_at": self.updated_at,
        }
        # Absent taste lists stay absent so the scorer can tell them apart from empty ones
        if self.top_genres is not None:
            item["top_genres"] = list(self.top_genres)
        if self.top_artists is not None:
            item["top_artists"] = list(self.top_artists)
        return item

    @classmethod
    def from_item(cls, item: Dict[str, Any]) -> "UserProfile":
        genres = item.get("top_genres")
        artists = item.get("top_artists")
        return cls(
            user_id=item["user_id"],
            display_name=item.get("display_name", ""),
            city=item.get("city", ""),
            top_genres=list(genres) if genres is not None else None,
            top_artists=list(artists) if artists is not None else None,
            updated_at=item.get("updated_at", ""),
        )


@dataclass
class MatchRecord:
    """
    Represents one directional match: ``user_id`` was shown ``candidate_id``.

    Attributes:
        user_id: The user the match belongs to.
        candidate_id: The matched profile.
        score: Compatibility score, 0-100.
        shared_genres: Candidate genres the user also listed.
        shared_artists: Candidate artists the user also listed.
        explain: Short reason shown on the card.
        status: Lifecycle marker ('new', 'seen', ...).
        reviewed: Whether the user left a review after the concert.
        created_at: ISO timestamp when the match was written.
    """

    user_id: str
    candidate_id: str
    score: int
    shared_genres: List[str] = field(default_factory=list)
    shared_artists: List[str] = field(default_factory=list)
    explain: str = ""
    status: str = "new"
    reviewed: bool = False
    created_at: str = field(default_factory=now_iso)

    @property
    def sk(self) -> str:
        return match_sk(self.candidate_id)

    def to_item(self) -> Dict[str, Any]:
        """Convert the match into a DynamoDB item (dictionary)."""
        return {
            "user_id": self.user_id,
            "match_sk": self.sk,
            "candidate_id": self.candidate_id,
            # DynamoDB numbers must be Decimal through the resource API
            "score": Decimal(self.score),
            "shared_genres": list(self.shared_genres),
            "shared_artists": list(self.shared_artists),
            "explain": self.explain,
            "status": self.status,
            "reviewed": self.reviewed,
            "created_at": self.created_at,
        }

    @classmethod
    def from_item(cls, item: Dict[str, Any]) -> "MatchRecord":
        return cls(
            user_id=item["user_id"],
            candidate_id=item["candidate_id"],
            score=int(item.get("score", 0)),
            shared_genres=list(item.get("shared_genres") or []),
            shared_artists=list(item.get("shared_artists") or []),
            explain=item.get("explain", ""),
            status=item.get("status", "new"),
            reviewed=bool(item.get("reviewed", False)),
            created_at=item.get("created_at", ""),
        )
