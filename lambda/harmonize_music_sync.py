import os
import json
import logging
import time
import urllib.error
import urllib.parse
import urllib.request
from typing import Any, Dict, List

import boto3

from matching_algorithm import extract_top_genres
from profile_repo import ProfileRepo


# ============================================================
# Harmonize music sync
# - Pulls the user's top artists from the music API with their OAuth token
# - Derives top genres by counting genres across those artists
# - Writes both lists onto the user's profile (creates it if missing)
# ============================================================

# -----------------------
# Env / clients
# -----------------------
REGION = os.environ.get("AWS_REGION", "us-east-1")

PROFILES_TABLE = os.environ.get("PROFILES_TABLE", "harmonize_profiles")

MUSIC_API_URL = os.environ.get("MUSIC_API_URL", "https://api.spotify.com/v1")
TOP_ARTIST_LIMIT = int(os.environ.get("TOP_ARTIST_LIMIT", "5"))
TOP_GENRE_LIMIT = int(os.environ.get("TOP_GENRE_LIMIT", "5"))
TIME_RANGE = os.environ.get("TIME_RANGE", "medium_term")

# Rate-limit handling
MUSIC_API_RETRY_MAX = int(os.environ.get("MUSIC_API_RETRY_MAX", "3"))
MUSIC_API_RETRY_BASE_DELAY = float(os.environ.get("MUSIC_API_RETRY_BASE_DELAY", "0.5"))

dynamodb = boto3.resource("dynamodb", region_name=REGION)

logger = logging.getLogger()
logger.setLevel(logging.INFO)

profile_repo = ProfileRepo(PROFILES_TABLE, table=dynamodb.Table(PROFILES_TABLE))


class MusicApiError(Exception):
    """The music API answered with a non-retryable error."""

    def __init__(self, status: int, body: str) -> None:
        super().__init__(f"music API status {status}")
        self.status = status
        self.body = body


# -----------------------
# Music API
# -----------------------
def top_artists_url(limit: int = TOP_ARTIST_LIMIT, time_range: str = TIME_RANGE) -> str:
    query = urllib.parse.urlencode({"time_range": time_range, "limit": limit})
    return f"{MUSIC_API_URL}/me/top/artists?{query}"


def music_api_get(url: str, access_token: str) -> Dict[str, Any]:
    req = urllib.request.Request(
        url,
        headers={
            "Authorization": f"Bearer {access_token}",
            "Accept": "application/json",
        },
        method="GET",
    )

    attempt = 0
    while True:
        try:
            with urllib.request.urlopen(req, timeout=10) as resp:
                body = resp.read().decode("utf-8")
                return json.loads(body) if body else {}
        except urllib.error.HTTPError as e:
            err_body = e.read().decode("utf-8", errors="replace")
            if e.code == 429 and attempt < MUSIC_API_RETRY_MAX:
                delay = MUSIC_API_RETRY_BASE_DELAY * (2 ** attempt)
                logger.warning("MUSIC API 429 rate limit, retrying in %.2fs", delay)
                time.sleep(delay)
                attempt += 1
                continue
            logger.error("MUSIC API HTTPError %s: %s", e.code, err_body)
            raise MusicApiError(e.code, err_body) from e


def fetch_top_artists(access_token: str) -> List[Dict[str, Any]]:
    data = music_api_get(top_artists_url(), access_token)
    return data.get("items") or []


def taste_from_artists(artists: List[Dict[str, Any]]):
    names = [a["name"] for a in artists if a.get("name")]
    genres = extract_top_genres(artists, limit=TOP_GENRE_LIMIT)
    return genres, names


# -----------------------
# Handler
# -----------------------
def lambda_handler(event, context):
    event = event or {}
    user_id = event.get("user_id")
    access_token = event.get("access_token")

    if not user_id or not access_token:
        return {"ok": False, "reason": "missing_user_id_or_token"}

    try:
        artists = fetch_top_artists(access_token)
    except MusicApiError as e:
        return {"ok": False, "reason": "music_api_error", "status": e.status}
    except urllib.error.URLError as e:
        logger.error("MUSIC API URLError %s", e.reason)
        return {"ok": False, "reason": "music_api_error", "status": None}
    except (OSError, ValueError) as e:
        # read timeouts and undecodable bodies
        logger.exception("MUSIC API Exception: %s", repr(e))
        return {"ok": False, "reason": "music_api_error", "status": None}

    top_genres, top_artists = taste_from_artists(artists)
    profile_repo.update_taste(user_id, top_genres, top_artists)

    logger.info("music_sync user=%s artists=%d genres=%d", user_id, len(top_artists), len(top_genres))

    return {
        "ok": True,
        "user_id": user_id,
        "top_genres": top_genres,
        "top_artists": top_artists,
    }
