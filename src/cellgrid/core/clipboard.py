from __future__ import annotations

import asyncio
import logging
import platform
from dataclasses import dataclass
from typing import Any, Protocol, Sequence

from cellgrid.core.history import HistoryLog
from cellgrid.core.rows import ID_KEY, Row, cell_text
from cellgrid.core.selection import Cell, SelectionModel

logger = logging.getLogger(__name__)


class ClipboardUnavailable(RuntimeError):
    """Raised by platform adapters when the clipboard cannot be used."""


class PlatformClipboard(Protocol):
    async def write_text(self, text: str) -> None: ...

    async def read_text(self) -> str: ...


@dataclass(frozen=True)
class CopiedItem:
    rel_row: int
    rel_col: int
    value: str


def _copy_commands() -> list[list[str]]:
    system = platform.system()
    if system == "Darwin":  # macOS
        return [["pbcopy"]]
    if system == "Windows":
        return [["clip"]]
    if system == "Linux":
        # Try wl-copy (Wayland) first, then xclip (X11)
        return [["wl-copy"], ["xclip", "-selection", "clipboard"]]
    return []


def _paste_commands() -> list[list[str]]:
    system = platform.system()
    if system == "Darwin":
        return [["pbpaste"]]
    if system == "Windows":
        return [["powershell", "-NoProfile", "-Command", "Get-Clipboard"]]
    if system == "Linux":
        return [["wl-paste", "--no-newline"], ["xclip", "-selection", "clipboard", "-o"]]
    return []


class SystemClipboard:
    """OS clipboard through the platform's command line tools."""

    async def _run(self, cmd: list[str], data: bytes | None) -> bytes | None:
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdin=asyncio.subprocess.PIPE if data is not None else asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except (FileNotFoundError, PermissionError):
            return None
        out, _err = await proc.communicate(input=data)
        if proc.returncode != 0:
            return None
        return out

    async def write_text(self, text: str) -> None:
        for cmd in _copy_commands():
            if await self._run(cmd, text.encode("utf-8")) is not None:
                return
        raise ClipboardUnavailable("no clipboard tool accepted the text")

    async def read_text(self) -> str:
        for cmd in _paste_commands():
            out = await self._run(cmd, None)
            if out is not None:
                text = out.decode("utf-8", errors="replace")
                # powershell appends a line break
                return text.removesuffix("\r\n") if platform.system() == "Windows" else text
        raise ClipboardUnavailable("no clipboard tool could be read")


class MemoryClipboard:
    """Process-local clipboard; `denied` simulates a refused permission."""

    def __init__(self, text: str = "", *, denied: bool = False) -> None:
        self.text = text
        self.denied = denied

    async def write_text(self, text: str) -> None:
        if self.denied:
            raise ClipboardUnavailable("clipboard write denied")
        self.text = text

    async def read_text(self) -> str:
        if self.denied:
            raise ClipboardUnavailable("clipboard read denied")
        return self.text


class ClipboardBridge:
    """Marshals the selected rectangle to and from clipboard text.

    Copy keeps an internal snapshot (relative positions) that is ready as soon
    as `copy` returns; the tab/newline text is handed to the platform
    clipboard separately via `publish`, whose failures are only logged.
    """

    def __init__(self, platform_clipboard: PlatformClipboard | None = None) -> None:
        self.platform: PlatformClipboard = platform_clipboard or SystemClipboard()
        self.internal: list[CopiedItem] = []

    def copy(self, selection: SelectionModel, rows: Sequence[Row], keys: Sequence[str]) -> str | None:
        """Snapshot the selection. Returns the external text block, or None."""
        selection.snapshot_as_copied()
        bounds = selection.get_bounds()
        if bounds is None:
            return None

        items: list[CopiedItem] = []
        lines: list[str] = []
        for r in range(bounds.min_row, bounds.max_row + 1):
            row = rows[r] if 0 <= r < len(rows) else {}
            values: list[str] = []
            for c in range(bounds.min_col, bounds.max_col + 1):
                key = keys[c] if 0 <= c < len(keys) else None
                value = cell_text(row.get(key)) if key is not None else ""
                items.append(CopiedItem(r - bounds.min_row, c - bounds.min_col, value))
                values.append(value)
            lines.append("\t".join(values))

        self.internal = items
        return "\n".join(lines)

    async def publish(self, text: str) -> bool:
        try:
            await self.platform.write_text(text)
        except Exception as e:
            logger.warning("Failed to copy to clipboard: %s", e)
            return False
        return True

    async def read_platform(self) -> str | None:
        try:
            return await self.platform.read_text()
        except Exception as e:
            logger.warning("Failed to read from clipboard: %s", e)
            return None

    async def paste(
        self,
        target: Cell | None,
        rows: Sequence[Row],
        keys: Sequence[str],
        history: HistoryLog,
    ) -> Row | None:
        """Write the whole clipboard text into the single target cell.

        Returns the row that changed, or None when nothing was written.
        """
        if target is None or not (0 <= target.row < len(rows)):
            return None
        if not (0 <= target.col < len(keys)):
            return None

        key = keys[target.col]
        # row objects survive a row-list swap during the read
        row = rows[target.row]
        text = await self.read_platform()
        if text is None:
            return None

        old_value: Any = row.get(key)
        row[key] = text
        history.record(row.get(ID_KEY), key, old_value, text)
        logger.debug("pasted %d chars into [%d, %s]", len(text), target.row, key)
        return row

    def clear(self) -> None:
        self.internal = []

    def has_data(self) -> bool:
        return bool(self.internal)
