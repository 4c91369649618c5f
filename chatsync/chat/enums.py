# =============================================================================
# File: chatsync/chat/enums.py
# Description: Chat domain enumerations
# =============================================================================

from enum import Enum

GENERIC_FILE_LABEL = "📎 File"


class MessageKind(str, Enum):
    """Classification of a message payload"""
    TEXT = "text"
    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"
    GIF = "gif"
    FILE = "file"

    @property
    def is_media(self) -> bool:
        return self is not MessageKind.TEXT

    @property
    def preview_label(self) -> str:
        """Contact-list preview shown for a media message of this kind"""
        return _PREVIEW_LABELS.get(self, GENERIC_FILE_LABEL)


_PREVIEW_LABELS = {
    MessageKind.IMAGE: "📷 Photo",
    MessageKind.VIDEO: "🎥 Video",
    MessageKind.AUDIO: "🎧 Audio",
    MessageKind.GIF: "GIF",
}


class ConsistencyMode(str, Enum):
    """How the two copies of a double-sided write are issued"""
    BEST_EFFORT = "best_effort"  # two independent single-document writes
    BATCHED = "batched"          # one atomic multi-document batch
