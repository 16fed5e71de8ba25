"""
matching_algorithm.py
---------------------

Music-taste matching for Harmonize concert buddies.  It defines a
``TasteProfile`` data class, computes a 0-100 compatibility score between the
current user and a candidate, and extracts the interests they have in common
for display on the match card.

The score blends two signals:

* **Genre overlap** (60%): a Jaccard-style ratio of shared genres to the
  distinct genres across both lists.
* **Artist overlap** (40%): one shared artist is worth half of the component
  and two or more saturate it.  Shared artists are rare, so a single hit is a
  strong signal.

Comparisons are case-insensitive but the candidate's original casing is kept
for display.  A profile that is missing its genre or artist list entirely
(as opposed to an empty list) scores 0 and shares nothing; no error is raised.

Example usage::

    from matching_algorithm import TasteProfile, compute_score, shared_interests

    me = TasteProfile(id="u1", top_genres=["pop", "rock"], top_artists=["Drake"])
    them = TasteProfile(id="u2", top_genres=["pop", "jazz"], top_artists=["Drake", "Adele"])
    compute_score(me, them)      # 40
    shared_interests(me, them)   # {"genres": ["pop"], "artists": ["Drake"]}

Profiles may also be plain dictionaries with ``top_genres`` / ``top_artists``
keys, which is how they come back from DynamoDB.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

GENRE_WEIGHT = 0.6
ARTIST_WEIGHT = 0.4
POINTS_PER_SHARED_ARTIST = 50
MAX_COMPONENT = 100


@dataclass
class TasteProfile:
    """Genre and artist preferences of a user or a match candidate."""

    id: Optional[str] = None
    top_genres: Optional[List[str]] = None
    top_artists: Optional[List[str]] = None


def _field(profile: Any, name: str) -> Optional[List[str]]:
    if isinstance(profile, Mapping):
        return profile.get(name)
    return getattr(profile, name, None)


def _profile_id(profile: Any) -> Optional[str]:
    if isinstance(profile, Mapping):
        return profile.get("id") or profile.get("user_id")
    return getattr(profile, "id", None) or getattr(profile, "user_id", None)


def _has_taste(profile: Any) -> bool:
    return _field(profile, "top_genres") is not None and _field(profile, "top_artists") is not None


def _lowered(values: Iterable[str]) -> List[str]:
    return [v.lower() for v in values]


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves going up (``round`` rounds to even)."""
    return int(math.floor(value + 0.5))


def genre_score(user_genres: List[str], candidate_genres: List[str]) -> float:
    """Jaccard-style genre overlap on a 0-100 scale."""
    mine = _lowered(user_genres)
    theirs = _lowered(candidate_genres)

    shared = [g for g in mine if g in theirs]
    union = set(mine) | set(theirs)
    if not union:
        return 0.0
    # Duplicates in the user's list can push the ratio past 1; capped so the total stays in [0, 100]
    return min(MAX_COMPONENT, len(shared) / len(union) * 100)


def artist_score(user_artists: List[str], candidate_artists: List[str]) -> int:
    """Saturating artist overlap: 50 per shared artist, capped at 100."""
    mine = _lowered(user_artists)
    shared = [a for a in _lowered(candidate_artists) if a in mine]
    if not shared:
        return 0
    return min(MAX_COMPONENT, POINTS_PER_SHARED_ARTIST * len(shared))


def compute_score(user: Any, candidate: Any) -> int:
    """Compute the 0-100 compatibility score between a user and a candidate.

    Returns 0 when either side lacks a genre list or an artist list.  The
    result is not symmetric: artist matches are counted per entry of the
    candidate's list, so duplicates on the candidate side count twice.
    """

    if not (_has_taste(user) and _has_taste(candidate)):
        return 0

    g = genre_score(_field(user, "top_genres"), _field(candidate, "top_genres"))
    a = artist_score(_field(user, "top_artists"), _field(candidate, "top_artists"))

    return round_half_up(g * GENRE_WEIGHT + a * ARTIST_WEIGHT)


def shared_interests(user: Any, candidate: Any) -> Dict[str, List[str]]:
    """Return the candidate's genres and artists that the user also listed.

    Entries keep the candidate's casing and order and are not deduplicated.
    """

    if not (_has_taste(user) and _has_taste(candidate)):
        return {"genres": [], "artists": []}

    my_genres = set(_lowered(_field(user, "top_genres")))
    my_artists = set(_lowered(_field(user, "top_artists")))

    return {
        "genres": [g for g in _field(candidate, "top_genres") if g.lower() in my_genres],
        "artists": [a for a in _field(candidate, "top_artists") if a.lower() in my_artists],
    }


def explain_match(user: Any, candidate: Any) -> str:
    """One-line reason for a match, artists first since they are rarer."""
    shared = shared_interests(user, candidate)
    if shared["artists"]:
        return f"shared artist: {shared['artists'][0]}"
    if shared["genres"]:
        return f"shared genre: {shared['genres'][0]}"
    return "no shared music yet"


def rank_candidates(
    user: Any,
    candidates: Iterable[Any],
    top_n: Optional[int] = None,
    min_score: int = 0,
) -> List[Tuple[str, int]]:
    """Score ``user`` against every candidate and return the best matches.

    The user's own profile is skipped if it appears among the candidates.
    Results are ``(candidate_id, score)`` tuples sorted by score descending,
    then by id for deterministic ordering.
    """

    user_id = _profile_id(user)
    scored: List[Tuple[str, int]] = []
    for candidate in candidates:
        candidate_id = _profile_id(candidate)
        if user_id is not None and candidate_id == user_id:
            continue
        s = compute_score(user, candidate)
        if s >= min_score:
            scored.append((candidate_id, s))

    scored.sort(key=lambda x: (-x[1], str(x[0])))
    if top_n is not None:
        scored = scored[:top_n]
    return scored


def extract_top_genres(artists: Iterable[Mapping[str, Any]], limit: int = 5) -> List[str]:
    """Derive top genres from music-API artist objects.

    Genres are counted across all artists and returned most frequent first;
    ties keep the order in which the genres were first seen.
    """

    counts: Dict[str, int] = {}
    for artist in artists:
        for genre in artist.get("genres") or []:
            counts[genre] = counts.get(genre, 0) + 1

    # sorted() is stable, so insertion order breaks ties
    ranked = sorted(counts.items(), key=lambda x: -x[1])
    return [genre for genre, _ in ranked[:limit]]
