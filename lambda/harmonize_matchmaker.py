import os
import logging

import boto3

from matching_algorithm import explain_match, rank_candidates, shared_interests
from match_repo import MatchRepo
from models import MatchRecord, UserProfile
from profile_repo import ProfileRepo

REGION = os.environ.get("AWS_REGION", "us-east-1")

PROFILES_TABLE = os.environ.get("PROFILES_TABLE", "harmonize_profiles")
MATCHES_TABLE = os.environ.get("MATCHES_TABLE", "harmonize_matches")

# Tuning
MIN_SCORE = int(os.environ.get("MIN_SCORE", "0"))
TOP_N = int(os.environ.get("TOP_N", "20"))

dynamodb = boto3.resource("dynamodb", region_name=REGION)

logger = logging.getLogger()
logger.setLevel(logging.INFO)

profile_repo = ProfileRepo(PROFILES_TABLE, table=dynamodb.Table(PROFILES_TABLE))
match_repo = MatchRepo(MATCHES_TABLE, table=dynamodb.Table(MATCHES_TABLE))


# --------------------------
# Candidate loading
# --------------------------

def load_candidates(user_id: str):
    """All stored profiles except the user's own, keyed by user id."""
    out = {}
    for item in profile_repo.scan_profiles():
        uid = item.get("user_id")
        if not uid or uid == user_id:
            continue
        out[uid] = UserProfile.from_item(item)
    return out


def build_match_record(user: UserProfile, candidate: UserProfile, score: int) -> MatchRecord:
    shared = shared_interests(user.taste(), candidate.taste())
    return MatchRecord(
        user_id=user.user_id,
        candidate_id=candidate.user_id,
        score=score,
        shared_genres=shared["genres"],
        shared_artists=shared["artists"],
        explain=explain_match(user.taste(), candidate.taste()),
    )


# --------------------------
# Handler
# --------------------------

def lambda_handler(event, context):
    event = event or {}
    user_id = event.get("user_id")
    dry_run = bool(event.get("dry_run"))
    reset = bool(event.get("reset"))
    top_n = TOP_N if event.get("top_n") is None else int(event["top_n"])

    if not user_id:
        return {"ok": False, "reason": "missing_user_id"}

    item = profile_repo.get_profile(user_id)
    if not item:
        return {"ok": False, "reason": "user_not_found", "user_id": user_id}

    user = UserProfile.from_item(item)
    candidates = load_candidates(user_id)

    ranked = rank_candidates(
        user.taste(),
        [c.taste() for c in candidates.values()],
        top_n=top_n,
        min_score=MIN_SCORE,
    )

    deleted = 0
    if reset and not dry_run:
        deleted = match_repo.delete_all_matches_for_user(user_id)

    written = 0
    failed = 0
    matches = []
    for candidate_id, score in ranked:
        record = build_match_record(user, candidates[candidate_id], score)
        matches.append({"candidate_id": candidate_id, "score": score, "explain": record.explain})

        if dry_run:
            continue

        try:
            match_repo.upsert_match(record.to_item())
            written += 1
        except Exception as e:
            # partial failures do not break batch
            failed += 1
            logger.exception("match_write_failed for %s/%s: %s", user_id, candidate_id, e)

    logger.info(
        "matchmaker user=%s candidates=%d selected=%d written=%d failed=%d dry_run=%s",
        user_id, len(candidates), len(ranked), written, failed, dry_run,
    )

    return {
        "ok": True,
        "user_id": user_id,
        "candidates": len(candidates),
        "matches": matches,
        "records_written": written,
        "records_failed": failed,
        "records_deleted": deleted,
        "min_score": MIN_SCORE,
        "dry_run": dry_run,
    }
