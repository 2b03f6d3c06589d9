from __future__ import annotations


class BorderExplorerError(Exception):
    """Base class for unrecoverable errors; the CLI exits non-zero on these."""


class InvalidEntityId(BorderExplorerError, ValueError):
    def __init__(self, raw: str, reason: str):
        super().__init__(f"invalid entity id {raw!r}: {reason}")
        self.raw = raw


class MalformedRecord(BorderExplorerError):
    def __init__(self, line_no: int, reason: str):
        super().__init__(f"line {line_no}: {reason}")
        self.line_no = line_no


class DumpSourceError(BorderExplorerError):
    pass


class LabelServiceError(BorderExplorerError):
    pass
