from __future__ import annotations

from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from src.features.summarising.formatter import count_messages, format_messages_for_summary
from src.features.summarising.models import ChannelDigest, CommunityDigest, RawMessage


def _digests() -> list[CommunityDigest]:
    return [
        CommunityDigest(name="Main Server", channels=(
            ChannelDigest(channel_name="general", messages=(
                RawMessage("Alice", "good morning", datetime(2024, 1, 2, 0, 30, tzinfo=timezone.utc)),
                RawMessage("Bob", "hi alice", datetime(2024, 1, 2, 1, 0, tzinfo=timezone.utc)),
            )),
            ChannelDigest(channel_name="art", messages=(
                RawMessage("Carol", "new drawing!", datetime(2024, 1, 3, 15, 5, 9, tzinfo=timezone.utc)),
            )),
        )),
        CommunityDigest(name="Side Server", channels=(
            ChannelDigest(channel_name="random", messages=(
                RawMessage("Dave", "lol", datetime(2024, 1, 4, 9, 0, tzinfo=timezone.utc)),
            )),
        )),
    ]


def test_renders_servers_channels_and_messages_in_order() -> None:
    expected = "\n".join([
        "\n===== Server: Main Server =====\n",
        "\n--- #general ---",
        "[2024/01/02 00:30:00] Alice: good morning",
        "[2024/01/02 01:00:00] Bob: hi alice",
        "\n--- #art ---",
        "[2024/01/03 15:05:09] Carol: new drawing!",
        "\n===== Server: Side Server =====\n",
        "\n--- #random ---",
        "[2024/01/04 09:00:00] Dave: lol",
    ])

    assert format_messages_for_summary(_digests()) == expected


def test_timestamps_are_rendered_in_the_display_timezone() -> None:
    corpus = format_messages_for_summary(_digests(), ZoneInfo("Asia/Tokyo"))

    assert "[2024/01/02 09:30:00] Alice: good morning" in corpus
    assert "[2024/01/04 00:05:09] Carol: new drawing!" in corpus


def test_formatting_is_deterministic() -> None:
    assert format_messages_for_summary(_digests()) == format_messages_for_summary(_digests())


def test_empty_input_renders_empty_corpus() -> None:
    assert format_messages_for_summary([]) == ""
    assert count_messages([]) == 0


def test_count_messages_sums_every_channel() -> None:
    assert count_messages(_digests()) == 4
