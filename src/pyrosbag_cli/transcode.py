"""Schema-driven ROS1 binary to JSON transcoding."""

import dataclasses
import io
import json
import logging
import struct
from collections.abc import Callable
from typing import IO, Any

import numpy as np
from rosbags.serde import SerdeError
from rosbags.typesys import Stores, get_types_from_msg, get_typestore
from rosbags.typesys.base import TypesysError
from rosbags.typesys.msg import normalize_msgtype

from pyrosbag_cli.bag.records import Connection, Message
from pyrosbag_cli.exceptions import SchemaError, TranscodeError

logger = logging.getLogger(__name__)

MessageHandler = Callable[[Connection, Message], None]


def message_to_dict(obj: Any) -> Any:
    """Recursively convert a deserialized message to JSON-serializable values.

    Handles:
    - Message dataclasses → dict in field order, without dunder fields
      such as ``__msgtype__``
    - numpy arrays → lists
    - Lists/tuples → lists
    - bytes/bytearray/memoryview → list of ints
    - Other types → as-is
    """
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {
            field.name: message_to_dict(getattr(obj, field.name))
            for field in dataclasses.fields(obj)
            if not field.name.startswith("__")
        }

    if isinstance(obj, np.ndarray):
        return obj.tolist()

    if isinstance(obj, (list, tuple)):
        return [message_to_dict(item) for item in obj]

    if isinstance(obj, (bytes, bytearray, memoryview)):
        return list(obj)

    if isinstance(obj, np.generic):
        return obj.item()

    return obj


class ScratchBuffer:
    """Reusable text buffer owned by a single transcoding run.

    The contents are only valid until the next :meth:`reset`; callers must not
    keep the value returned by :meth:`getvalue` across messages.
    """

    def __init__(self) -> None:
        self._buffer = io.StringIO()

    def reset(self) -> None:
        self._buffer.seek(0)
        self._buffer.truncate()

    def write(self, text: str) -> int:
        return self._buffer.write(text)

    def getvalue(self) -> str:
        return self._buffer.getvalue()


class JsonTranscoder:
    """Converts ROS1-serialized payloads of one message type to JSON.

    ``package`` qualifies the root type; nested types referenced without a
    package in ``msgdef`` resolve against it.
    """

    def __init__(self, package: str, msgtype: str, msgdef: str) -> None:
        name = msgtype.rsplit("/", 1)[-1]
        self.msgtype = msgtype
        self.typename = normalize_msgtype(f"{package}/{name}")
        try:
            types = get_types_from_msg(msgdef, self.typename)
            if self.typename not in types:
                raise SchemaError(msgtype, f"definition does not declare {self.typename}")
            self._typestore = get_typestore(Stores.ROS1_NOETIC)
            self._typestore.register(types)
        except (TypesysError, ValueError, KeyError) as e:
            raise SchemaError(msgtype, str(e)) from e

    def transcode(self, out: ScratchBuffer, data: bytes | memoryview, topic: str = "") -> None:
        """Decode ``data`` and append its JSON rendering to ``out``."""
        try:
            decoded = self._typestore.deserialize_ros1(bytes(data), self.typename)
        except (struct.error, IndexError, ValueError, TypeError, TypesysError, SerdeError) as e:
            raise TranscodeError(self.msgtype, topic, str(e) or type(e).__name__) from e
        json.dump(message_to_dict(decoded), out, separators=(",", ":"))


def write_record(output: IO[str], topic: str, time: int, data: str) -> None:
    """Write one extracted message as a JSON line.

    Field order is fixed: topic, time, data. ``data`` must already be valid JSON
    and is embedded verbatim.
    """
    output.write(f'{{"topic": {json.dumps(topic)}, "time": {time}, "data": {data}}}\n')


class TranscodingCache:
    """Message handler emitting one JSON record per message.

    One transcoder is built per connection id on first use and reused for the
    rest of the run.
    """

    def __init__(self, output: IO[str]) -> None:
        self._output = output
        self._transcoders: dict[int, JsonTranscoder] = {}
        self._scratch = ScratchBuffer()

    def __len__(self) -> int:
        return len(self._transcoders)

    def transcoder_for(self, conn: Connection) -> JsonTranscoder:
        transcoder = self._transcoders.get(conn.id)
        if transcoder is None:
            transcoder = JsonTranscoder(conn.package, conn.msgtype, conn.msgdef)
            self._transcoders[conn.id] = transcoder
            logger.debug(f"Built transcoder for {conn.topic} [{conn.msgtype}]")
        return transcoder

    def __call__(self, conn: Connection, msg: Message) -> None:
        transcoder = self.transcoder_for(conn)
        self._scratch.reset()
        transcoder.transcode(self._scratch, msg.data, conn.topic)
        write_record(self._output, conn.topic, msg.time, self._scratch.getvalue())
        self._scratch.reset()


def simple_handler(output: IO[str]) -> MessageHandler:
    """Handler printing time, topic, type and the first bytes of each payload."""

    def handle(conn: Connection, msg: Message) -> None:
        preview = " ".join(str(b) for b in bytes(msg.data[:10]))
        output.write(f"{msg.time} {conn.topic} [{conn.msgtype}] [{preview}]...\n")

    return handle
