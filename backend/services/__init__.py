"""Backend services."""

from services.response_normalizer import (
    LANGFLOW_PROBES,
    ExtractionResult,
    ShapeProbe,
    extract_answer,
)
from services.token_stream import (
    STREAM_HEADERS,
    STREAM_MEDIA_TYPE,
    SingleFrameStream,
    encode_frame,
    stream_text_frames,
)

__all__ = [
    "LANGFLOW_PROBES",
    "ExtractionResult",
    "ShapeProbe",
    "extract_answer",
    "STREAM_HEADERS",
    "STREAM_MEDIA_TYPE",
    "SingleFrameStream",
    "encode_frame",
    "stream_text_frames",
]
