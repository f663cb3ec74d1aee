class BagError(Exception):
    pass


class ContainerError(BagError):
    """The bag's structure (header, index, chunk) could not be read."""


class NotIndexedError(ContainerError):
    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"{path} has no readable index: {reason}")


class StreamCorruptionError(BagError):
    def __init__(self, offset: int, reason: str) -> None:
        self.offset = offset
        super().__init__(f"corrupt record at offset {offset}: {reason}")


class UnknownConnectionError(StreamCorruptionError):
    def __init__(self, offset: int, conn_id: int) -> None:
        super().__init__(
            offset, f"message references connection {conn_id} which has not been seen yet"
        )


class UnsupportedCompressionError(ContainerError):
    def __init__(self, compression: str) -> None:
        super().__init__(f"unsupported compression type {compression!r}")


class SchemaError(BagError):
    def __init__(self, msgtype: str, reason: str) -> None:
        self.msgtype = msgtype
        super().__init__(f"failed to build transcoder for {msgtype}: {reason}")


class TranscodeError(BagError):
    def __init__(self, msgtype: str, topic: str, reason: str) -> None:
        self.msgtype = msgtype
        self.topic = topic
        super().__init__(f"failed to transcode {msgtype} message on {topic}: {reason}")
