"""Protocol layer: frame reading, command encoding, and response decoding."""

from .framing import Binary, FrameReader, Line
from .commands import Command, encode_batch, encode_command
from .parser import AckError, Ok, OkWithBinary, RecordSet, decode_response
