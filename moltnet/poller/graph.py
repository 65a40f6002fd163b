"""Agent interaction graph built from comments and replies."""

from dataclasses import dataclass
from typing import Optional

from moltnet.database.connection import Database
from moltnet.timestamps import now_iso

COMMENT_ON_POST = "comment_on_post"
REPLY_TO_COMMENT = "reply_to_comment"


@dataclass(frozen=True)
class Interaction:
    """One directed event between two agents, tied to the comment it came from."""
    from_agent_id: str
    to_agent_id: str
    kind: str
    post_id: str
    comment_id: str


def flatten_comments(tree: list[dict]) -> list[tuple[dict, Optional[str]]]:
    """Flatten a comment tree into (comment, parent_id) pairs, parents before replies."""
    flat: list[tuple[dict, Optional[str]]] = []

    def rec(node: dict, parent_id: Optional[str]) -> None:
        flat.append((node, node.get("parent_id") or parent_id))
        for reply in node.get("replies") or []:
            if isinstance(reply, dict):
                rec(reply, node.get("id"))

    for comment in tree:
        rec(comment, None)
    return flat


def derive_interactions(
    post_id: str,
    comment_id: str,
    commenter_id: Optional[str],
    post_author_id: Optional[str],
    parent_id: Optional[str] = None,
    parent_author_id: Optional[str] = None,
) -> list[Interaction]:
    """
    Derive the interactions a single comment implies.

    - ``comment_on_post``: commenter -> post author
    - ``reply_to_comment``: commenter -> parent comment author, for replies

    Either is dropped when the target is unknown or is the commenter.
    """
    if not commenter_id:
        return []

    interactions = []
    if post_author_id and post_author_id != commenter_id:
        interactions.append(
            Interaction(commenter_id, post_author_id, COMMENT_ON_POST, post_id, comment_id)
        )
    if parent_id and parent_author_id and parent_author_id != commenter_id:
        interactions.append(
            Interaction(commenter_id, parent_author_id, REPLY_TO_COMMENT, post_id, comment_id)
        )
    return interactions


async def record_interaction(
    db: Database,
    interaction: Interaction,
    observed_at: Optional[str] = None,
) -> bool:
    """
    Store an interaction and bump the matching network edge.

    The edge is only touched when the interaction row is new, so re-crawling a
    comment leaves the graph as it was and ``edge_weight`` always equals the
    number of interactions between the pair.

    Returns True if the interaction had not been seen before.
    """
    now = observed_at or now_iso()
    inserted = await db.execute("""
        INSERT INTO agent_interactions (
            from_agent_id, to_agent_id, interaction_type, post_id, comment_id, created_at
        )
        VALUES (?, ?, ?, ?, ?, ?)
        ON CONFLICT DO NOTHING
    """, (
        interaction.from_agent_id,
        interaction.to_agent_id,
        interaction.kind,
        interaction.post_id,
        interaction.comment_id,
        now,
    ))
    if not inserted:
        return False

    await db.execute("""
        INSERT INTO network_edges (from_agent_id, to_agent_id, edge_weight, last_interaction_at)
        VALUES (?, ?, 1, ?)
        ON CONFLICT (from_agent_id, to_agent_id) DO UPDATE SET
            edge_weight = network_edges.edge_weight + 1,
            last_interaction_at = excluded.last_interaction_at
    """, (interaction.from_agent_id, interaction.to_agent_id, now))
    return True
