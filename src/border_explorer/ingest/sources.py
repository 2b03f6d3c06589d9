"""Line sources: the decompressed dump, one entity record per line."""

from __future__ import annotations

import bz2
import gzip
import logging
import shutil
import subprocess
from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from ..errors import DumpSourceError

logger = logging.getLogger(__name__)


class LineSource:
    def iter_lines(self) -> Iterator[str]:
        raise NotImplementedError


@dataclass
class IterableSource(LineSource):
    """Lines already in memory (tests, piped input)."""

    lines: Iterable[str]

    def iter_lines(self) -> Iterator[str]:
        for line in self.lines:
            yield line.rstrip("\n")


@dataclass
class FileSource(LineSource):
    """Plain, .bz2 or .gz file read with the standard library."""

    path: str

    def _open(self):
        if self.path.endswith(".bz2"):
            return bz2.open(self.path, "rt", encoding="utf-8")
        if self.path.endswith(".gz"):
            return gzip.open(self.path, "rt", encoding="utf-8")
        return open(self.path, encoding="utf-8")

    def iter_lines(self) -> Iterator[str]:
        try:
            f = self._open()
        except OSError as e:
            raise DumpSourceError(f"cannot open {self.path}: {e}") from e
        with f:
            for line in f:
                yield line.rstrip("\n")


@dataclass
class DecompressorSource(LineSource):
    """Streams the stdout of an external decompressor (lbzcat decodes bzip2 in parallel)."""

    path: str
    command: str = "lbzcat"

    def iter_lines(self) -> Iterator[str]:
        try:
            proc = subprocess.Popen(
                [self.command, self.path],
                stdout=subprocess.PIPE,
                text=True,
                encoding="utf-8",
            )
        except OSError as e:
            raise DumpSourceError(f"failed to launch {self.command}: {e}") from e

        assert proc.stdout is not None
        try:
            for line in proc.stdout:
                yield line.rstrip("\n")
        finally:
            proc.stdout.close()
            rc = proc.wait()
        if rc != 0:
            raise DumpSourceError(f"{self.command} exited with status {rc}")


def open_dump(path: str, decompressor: str | None = "lbzcat") -> LineSource:
    if path.endswith(".bz2") and decompressor and shutil.which(decompressor):
        logger.info("decompressing %s with %s", path, decompressor)
        return DecompressorSource(path=path, command=decompressor)
    logger.info("reading %s", path)
    return FileSource(path=path)
