import json
import subprocess
from datetime import datetime, timezone

# === CONFIG ===
REGION = "us-east-1"
PROFILES_TABLE = "harmonize_profiles"
MATCHES_TABLE = "harmonize_matches"
MATCHMAKER_FUNCTION_NAME = "harmonize_matchmaker"
ME = "demo-me-000"

DEMO_PROFILES = [
    {
        "user_id": ME,
        "display_name": "Demo User",
        "city": "Atlanta, GA",
        "top_genres": ["Indie", "Pop", "Hip Hop"],
        "top_artists": ["Phoebe Bridgers", "Drake", "Dua Lipa"],
    },
    {
        "user_id": "test-alex-001",
        "display_name": "Alex Chen",
        "city": "Atlanta, GA",
        "top_genres": ["Indie Rock", "Alternative", "Dream Pop", "Shoegaze"],
        "top_artists": ["Tame Impala", "Beach House", "Phoebe Bridgers", "The Strokes", "Vampire Weekend"],
    },
    {
        "user_id": "test-jordan-002",
        "display_name": "Jordan Williams",
        "city": "Atlanta, GA",
        "top_genres": ["Hip Hop", "R&B", "Trap", "Rap"],
        "top_artists": ["Kendrick Lamar", "J. Cole", "Drake", "SZA", "Frank Ocean"],
    },
    {
        "user_id": "test-taylor-003",
        "display_name": "Taylor Kim",
        "city": "Atlanta, GA",
        "top_genres": ["Pop", "EDM", "Dance Pop", "Electropop"],
        "top_artists": ["Taylor Swift", "Dua Lipa", "Ariana Grande", "Calvin Harris", "The Chainsmokers"],
    },
]


def now_iso():
    return datetime.now(timezone.utc).isoformat()


def aws(*args):
    cmd = ["aws", *args, "--region", REGION]
    out = subprocess.check_output(cmd)
    return out.decode("utf-8")


def put_profile(profile):
    item = {
        "pk": {"S": f"USER#{profile['user_id']}"},
        "sk": {"S": "PROFILE"},
        "user_id": {"S": profile["user_id"]},
        "display_name": {"S": profile["display_name"]},
        "city": {"S": profile["city"]},
        "top_genres": {"L": [{"S": g} for g in profile["top_genres"]]},
        "top_artists": {"L": [{"S": a} for a in profile["top_artists"]]},
        "updated_at": {"S": now_iso()},
    }

    aws("dynamodb", "put-item",
        "--table-name", PROFILES_TABLE,
        "--item", json.dumps(item)
    )


def invoke_matchmaker(user_id):
    aws("lambda", "invoke",
        "--function-name", MATCHMAKER_FUNCTION_NAME,
        "--cli-binary-format", "raw-in-base64-out",
        "--payload", json.dumps({"user_id": user_id, "reset": True}),
        "invoke_out.json"
    )
    with open("invoke_out.json") as f:
        print("Lambda invoke response:", f.read())


def list_matches(user_id):
    resp = aws("dynamodb", "query",
        "--table-name", MATCHES_TABLE,
        "--key-condition-expression", "user_id = :u",
        "--expression-attribute-values", json.dumps({":u": {"S": user_id}})
    )
    items = json.loads(resp).get("Items", [])
    print(f"\nMatches for {user_id}: {len(items)} records\n")

    items.sort(key=lambda it: -int(it["score"]["N"]))
    for it in items:
        match = it["candidate_id"]["S"]
        score = int(it["score"]["N"])
        explain = it.get("explain", {}).get("S", "")
        print(f"{match:20}  score={score:3d}  ({explain})")


if __name__ == "__main__":
    for p in DEMO_PROFILES:
        put_profile(p)
    print(f"Seeded {len(DEMO_PROFILES)} demo profiles into {PROFILES_TABLE}.")

    invoke_matchmaker(ME)
    list_matches(ME)
