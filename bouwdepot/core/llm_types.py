"""Request types shared by the generative backend clients."""

from dataclasses import dataclass, field
from typing import BinaryIO, List, Optional, Sequence

from bouwdepot.core.conversation import ConversationMessage


@dataclass
class ImageAttachment:
    """A binary image (or rendered document) sent alongside a prompt."""

    stream: BinaryIO
    mime_type: str

    def read_bytes(self) -> bytes:
        """Read the whole stream and leave it rewound when possible."""
        seekable = hasattr(self.stream, "seekable") and self.stream.seekable()
        if seekable:
            self.stream.seek(0)
        data = self.stream.read()
        if seekable:
            self.stream.seek(0)
        return data


@dataclass
class ImageData:
    """Image bytes ready to be encoded into a backend payload."""

    data: bytes
    mime_type: str


@dataclass
class SamplingOptions:
    temperature: Optional[float] = None
    top_p: Optional[float] = None
    top_k: Optional[int] = None


@dataclass
class GenerationRequest:
    """Everything a backend needs to produce one reply.

    ``history`` holds the conversation as it was before ``prompt`` was
    appended, so backends never see the outgoing prompt twice.
    """

    prompt: str
    model: str
    history: Sequence[ConversationMessage] = field(default_factory=tuple)
    images: List[ImageData] = field(default_factory=list)
    expect_json: bool = False
    sampling: SamplingOptions = field(default_factory=SamplingOptions)
