"""
Meeting recommendations.

Builds a profile from the meetings a user has joined, then asks an LLM
(via LiteLLM) to rank upcoming meetings the user has not joined yet.
Users with no history, and any LLM failure, get the most popular
meetings instead.
"""

import json
import logging
import os
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone

import sentry_sdk
from sqlalchemy.ext.asyncio import AsyncConnection

from core.database import get_connection
from core.llm import DEFAULT_PROVIDER, complete
from core.queries.attendees import get_attended_meetings, get_upcoming_with_counts
from core.queries.users import get_user

logger = logging.getLogger(__name__)

RECOMMENDATION_PROVIDER = os.environ.get("RECOMMENDATION_PROVIDER") or DEFAULT_PROVIDER

# Candidates sent to the ranker (bounds prompt size)
MAX_CANDIDATES = 20
# Recommendations returned
TOP_N = 5

POPULAR_SCORE = 50
POPULAR_REASON = "Popular session you might like"
FALLBACK_REASON = "Popular session"

_JSON_ARRAY = re.compile(r"\[[\s\S]*\]")


@dataclass
class UserProfile:
    user_id: int
    name: str | None
    subjects: list[str] = field(default_factory=list)
    levels: list[str] = field(default_factory=list)
    specializations: list[str] = field(default_factory=list)
    total_meetings_joined: int = 0


def _distinct(values) -> list[str]:
    """Non-empty values, deduplicated, first occurrence order."""
    return list(dict.fromkeys(v for v in values if v))


async def build_profile(conn: AsyncConnection, user_id: int) -> UserProfile | None:
    """Aggregate a user's attendance history. None if the user is unknown."""
    user = await get_user(conn, user_id)
    if not user:
        return None

    attended = await get_attended_meetings(conn, user_id)
    return UserProfile(
        user_id=user["user_id"],
        name=user.get("name"),
        subjects=_distinct(m["subject"] for m in attended),
        levels=_distinct(m["level"] for m in attended),
        specializations=_distinct(m["specialization"] for m in attended),
        total_meetings_joined=len(attended),
    )


async def get_eligible_meetings(
    conn: AsyncConnection,
    user_id: int,
    now: datetime | None = None,
) -> list[dict]:
    """Upcoming meetings the user has not joined, at most MAX_CANDIDATES."""
    return await get_upcoming_with_counts(
        conn,
        now=now or datetime.now(timezone.utc),
        limit=MAX_CANDIDATES,
        exclude_user_id=user_id,
    )


def rank_by_popularity(candidates: list[dict], reason: str = POPULAR_REASON) -> list[dict]:
    """Top TOP_N candidates by attendee count (ties keep start-time order)."""
    ranked = sorted(candidates, key=lambda m: m["attendee_count"], reverse=True)
    return [
        {"meeting": meeting, "score": POPULAR_SCORE, "reason": reason}
        for meeting in ranked[:TOP_N]
    ]


def _build_ranking_prompt(
    profile: UserProfile, candidates: list[dict]
) -> tuple[str, list[dict]]:
    """
    Build system prompt and messages for ranking.

    Returns:
        Tuple of (system_prompt, messages_list)
    """
    system = (
        "You are a study session recommendation engine. "
        f"Return a JSON array of the {TOP_N} most relevant sessions for the user, "
        'formatted as [{"id": <session id>, "score": <0-100>, "reason": <text>}]. '
        "Prioritize matching subjects, then levels, then specializations. "
        "Keep reasons under 50 characters. Return valid JSON only."
    )

    lines = [
        "USER PROFILE:",
        f"- Subjects studied: {', '.join(profile.subjects) or 'None yet'}",
        f"- Academic levels: {', '.join(profile.levels) or 'Not specified'}",
        f"- Specializations: {', '.join(profile.specializations) or 'Not specified'}",
        f"- Total sessions joined: {profile.total_meetings_joined}",
        "",
        "AVAILABLE SESSIONS:",
    ]
    for i, m in enumerate(candidates, start=1):
        lines.append(
            f'{i}. ID: "{m["meeting_id"]}" | Title: "{m["title"]}" '
            f"| Subject: {m.get('subject') or 'General'} "
            f"| Level: {m.get('level') or 'All'} "
            f"| Specialization: {m.get('specialization') or 'None'} "
            f"| Attendees: {m['attendee_count']}"
        )

    return system, [{"role": "user", "content": "\n".join(lines)}]


def _parse_rankings(raw: str) -> list[dict]:
    """
    Extract the ranking array from an LLM reply.

    Raises:
        ValueError: if no well-formed array of {id, score, reason} is found
    """
    match = _JSON_ARRAY.search(raw or "")
    if not match:
        raise ValueError("No JSON array in ranking response")

    data = json.loads(match.group(0))
    if not isinstance(data, list):
        raise ValueError("Ranking response is not a list")

    rankings = []
    for entry in data:
        if not isinstance(entry, dict) or "id" not in entry:
            raise ValueError(f"Malformed ranking entry: {entry!r}")
        rankings.append(
            {
                "id": str(entry["id"]),
                "score": float(entry.get("score", 0)),
                "reason": str(entry.get("reason", "")),
            }
        )
    return rankings


async def rank_with_llm(profile: UserProfile, candidates: list[dict]) -> list[dict]:
    """
    Ask the LLM to rank candidates. IDs it returns that are not in
    ``candidates`` are dropped.
    """
    system, messages = _build_ranking_prompt(profile, candidates)
    raw = await complete(
        messages=messages,
        system=system,
        provider=RECOMMENDATION_PROVIDER,
        max_tokens=1024,
    )

    by_id = {str(m["meeting_id"]): m for m in candidates}
    results = []
    for ranking in _parse_rankings(raw):
        meeting = by_id.get(ranking["id"])
        if meeting is None:
            logger.info("Ranker returned unknown meeting id %s, dropping", ranking["id"])
            continue
        results.append(
            {"meeting": meeting, "score": ranking["score"], "reason": ranking["reason"]}
        )
    return results[:TOP_N]


async def recommend(user_id: int, now: datetime | None = None) -> list[dict]:
    """
    Ranked suggestions for a user: [{"meeting", "score", "reason"}, ...].

    Empty if the user is unknown or nothing is eligible.
    """
    async with get_connection() as conn:
        profile = await build_profile(conn, user_id)
        if profile is None:
            return []
        candidates = await get_eligible_meetings(conn, user_id, now=now)

    if not candidates:
        return []

    if profile.total_meetings_joined == 0:
        return rank_by_popularity(candidates)

    try:
        return await rank_with_llm(profile, candidates)
    except Exception as e:
        logger.warning("Recommendation ranking failed for user %s: %s", user_id, e)
        sentry_sdk.capture_exception(e)
        return rank_by_popularity(candidates, reason=FALLBACK_REASON)
