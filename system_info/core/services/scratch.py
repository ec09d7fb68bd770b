"""
Scratch space — a private temporary directory for one report run.

Holds output that is slow to produce and read more than once (the
``lshw -businfo`` enumeration). The directory is removed on normal
exit, on exceptions, and on SIGTERM / SIGHUP. SIGINT arrives as
KeyboardInterrupt and unwinds through the same cleanup.
"""

from __future__ import annotations

import logging
import shutil
import signal
import sys
import tempfile
import threading
from pathlib import Path
from types import FrameType
from typing import Any

logger = logging.getLogger(__name__)

_CLEANUP_SIGNALS = (signal.SIGTERM, signal.SIGHUP)


class RunScratch:
    """Context manager owning the per-run temporary directory.

    Usage::

        with RunScratch() as scratch:
            path = scratch.write("businfo.txt", output)
    """

    def __init__(self, prefix: str = "system-info-"):
        self._prefix = prefix
        self._path: Path | None = None
        self._previous: dict[int, Any] = {}

    @property
    def path(self) -> Path:
        if self._path is None:
            raise RuntimeError("Scratch space used outside its context")
        return self._path

    @property
    def active(self) -> bool:
        return self._path is not None and self._path.exists()

    def __enter__(self) -> RunScratch:
        self._path = Path(tempfile.mkdtemp(prefix=self._prefix))
        logger.debug("Scratch space at %s", self._path)
        self._install_handlers()
        return self

    def __exit__(self, *exc: object) -> None:
        self._restore_handlers()
        self.cleanup()

    def write(self, name: str, content: str) -> Path:
        """Store ``content`` under ``name`` and return its path."""
        target = self.path / name
        target.write_text(content, encoding="utf-8")
        return target

    def read(self, name: str) -> str | None:
        target = self.path / name
        if not target.is_file():
            return None
        return target.read_text(encoding="utf-8")

    def cleanup(self) -> None:
        """Remove the directory. Safe to call more than once."""
        if self._path is not None and self._path.exists():
            shutil.rmtree(self._path, ignore_errors=True)
            logger.debug("Removed scratch space %s", self._path)

    # ── Signal handling ─────────────────────────────────────────

    def _install_handlers(self) -> None:
        # signal.signal only works from the main thread
        if threading.current_thread() is not threading.main_thread():
            return
        for signum in _CLEANUP_SIGNALS:
            self._previous[signum] = signal.signal(signum, self._on_signal)

    def _restore_handlers(self) -> None:
        for signum, handler in self._previous.items():
            signal.signal(signum, handler)
        self._previous.clear()

    def _on_signal(self, signum: int, frame: FrameType | None) -> None:
        logger.warning("Interrupted by signal %d, cleaning up", signum)
        self.cleanup()
        sys.exit(128 + signum)
