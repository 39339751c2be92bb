from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Tuple


@dataclass(frozen=True)
class TimeWindow:
    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if not self.start < self.end:
            raise ValueError(f"TimeWindow start {self.start} must be before end {self.end}")

    def contains(self, timestamp: datetime) -> bool:
        return self.start <= timestamp <= self.end


@dataclass(frozen=True)
class RawMessage:
    author: str
    content: str
    timestamp: datetime


@dataclass(frozen=True)
class ChannelDigest:
    channel_name: str
    messages: Tuple[RawMessage, ...]


@dataclass(frozen=True)
class CommunityDigest:
    name: str
    channels: Tuple[ChannelDigest, ...]


class AssetKind(Enum):
    STYLE = "style"
    CHARACTER = "character"


@dataclass(frozen=True)
class ReferenceAsset:
    kind: AssetKind
    name: str
    mime_type: str
    data: bytes = field(repr=False)


@dataclass(frozen=True)
class GeneratedArtifact:
    summary_text: str
    image_bytes: bytes = field(repr=False)
