import logging
from pathlib import Path
from typing import List, Optional, Union

from .models import AssetKind, ReferenceAsset

MIME_TYPES = {
    '.png': 'image/png',
    '.jpg': 'image/jpeg',
    '.jpeg': 'image/jpeg',
    '.webp': 'image/webp',
}
DEFAULT_MIME_TYPE = 'image/png'
MAX_CHARACTER_ASSETS = 5


def mime_type_for(path: Union[str, Path]) -> str:
    return MIME_TYPES.get(Path(path).suffix.lower(), DEFAULT_MIME_TYPE)


class AssetStore:
    """
    Reference images used to condition image generation.

    Both asset classes are optional: a missing style file or character
    directory simply means generation runs unconditioned.
    """

    def __init__(self, style_path: Union[str, Path, None], characters_dir: Union[str, Path, None],
                 logger: Optional[logging.Logger] = None, max_characters: int = MAX_CHARACTER_ASSETS):
        self.style_path = Path(style_path) if style_path else None
        self.characters_dir = Path(characters_dir) if characters_dir else None
        self.logger = logger or logging.getLogger('DiscordBot')
        self.max_characters = max_characters

    def _read(self, path: Path) -> Optional[bytes]:
        try:
            return path.read_bytes()
        except OSError as e:
            self.logger.warning(f"Could not read reference image {path}: {e}")
            return None

    def load_style(self) -> Optional[ReferenceAsset]:
        if not self.style_path or not self.style_path.is_file():
            self.logger.info("No style reference image found, generating without one")
            return None

        data = self._read(self.style_path)
        if data is None:
            return None
        self.logger.info(f"🎨 Loaded style reference image: {self.style_path.name}")
        return ReferenceAsset(
            kind=AssetKind.STYLE,
            name="style",
            mime_type=mime_type_for(self.style_path),
            data=data,
        )

    def match_characters(self, summary: str) -> List[ReferenceAsset]:
        """
        Character images whose file name (without extension) appears in the summary.

        Files are considered in name order; only the first max_characters
        matches are kept.
        """
        if not self.characters_dir or not self.characters_dir.is_dir():
            return []

        candidates = sorted(
            (p for p in self.characters_dir.iterdir() if p.is_file() and p.suffix.lower() in MIME_TYPES),
            key=lambda p: p.name,
        )
        matched = [p for p in candidates if p.stem and p.stem in summary]

        if len(matched) > self.max_characters:
            dropped = ", ".join(p.stem for p in matched[self.max_characters:])
            self.logger.warning(
                f"{len(matched)} characters matched the summary; only the first {self.max_characters} "
                f"will be used (dropped: {dropped})"
            )
            matched = matched[:self.max_characters]

        assets = []
        for path in matched:
            data = self._read(path)
            if data is None:
                continue
            assets.append(ReferenceAsset(
                kind=AssetKind.CHARACTER,
                name=path.stem,
                mime_type=mime_type_for(path),
                data=data,
            ))

        if assets:
            self.logger.info(f"👥 Matched character references: {', '.join(a.name for a in assets)}")
        return assets
