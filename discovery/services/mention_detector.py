"""
Team-member mention detection.

A user is considered mentioned when the lowercase first token of their
display name occurs anywhere in the lowercased text. This is a bare
substring test: short or common first names ("Ale", "Bo") can match inside
unrelated words. That false-positive source is a known limitation of the
heuristic and is kept as-is.
"""

from typing import Iterable, List

from discovery.domain.models.user import User


def detect_mentions(text: str, users: Iterable[User]) -> List[str]:
    """
    Find roster members referenced in text.

    Args:
        text: Transcript or answer text
        users: Roster, in display order

    Returns:
        Matched user ids in roster order (one pass per user, so no duplicates
        unless the roster itself repeats an id)
    """
    lower_text = text.lower()
    mentioned = []
    for user in users:
        first_name = user.first_name
        if first_name and first_name in lower_text:
            mentioned.append(user.id)
    return mentioned


def names_for(user_ids: Iterable[str], users: Iterable[User]) -> List[str]:
    """Resolve user ids to display names, dropping unknown ids."""
    by_id = {user.id: user.name for user in users}
    return [by_id[user_id] for user_id in user_ids if user_id in by_id]
