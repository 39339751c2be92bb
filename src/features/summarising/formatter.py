from datetime import timezone, tzinfo
from typing import List, Sequence

from .models import CommunityDigest

TIMESTAMP_FORMAT = "%Y/%m/%d %H:%M:%S"


def format_messages_for_summary(digests: Sequence[CommunityDigest], tz: tzinfo = timezone.utc) -> str:
    """Render the collected messages as one text corpus, server by server and channel by channel."""
    parts: List[str] = []

    for community in digests:
        parts.append(f"\n===== Server: {community.name} =====\n")

        for channel in community.channels:
            parts.append(f"\n--- #{channel.channel_name} ---")

            for message in channel.messages:
                time = message.timestamp.astimezone(tz).strftime(TIMESTAMP_FORMAT)
                parts.append(f"[{time}] {message.author}: {message.content}")

    return "\n".join(parts)


def count_messages(digests: Sequence[CommunityDigest]) -> int:
    return sum(len(channel.messages) for community in digests for channel in community.channels)
