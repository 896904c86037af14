"""
Manual Recovery

Last resort when the canonical document could not be saved: show the
operator the serialized document, tell them where it belongs, and offer
to put it on the clipboard. This is not a retry.
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

from ..observability import get_logger

logger = get_logger(__name__)


class RecoveryOutcome(str, Enum):
    DECLINED = "declined"
    COPIED = "copied"
    COPY_FAILED = "copy_failed"


class ClipboardError(Exception):
    """Raised when the clipboard cannot be written."""
    pass


def tk_clipboard_writer(text: str) -> None:
    """
    Place text on the system clipboard through Tk.

    Raises:
        ClipboardError: If Tk is unavailable (no display, no tkinter)
    """
    try:
        import tkinter
    except ImportError as e:
        raise ClipboardError("tkinter is not available") from e

    try:
        root = tkinter.Tk()
    except tkinter.TclError as e:
        raise ClipboardError(f"No display for clipboard access: {e}") from e

    try:
        root.withdraw()
        root.clipboard_clear()
        root.clipboard_append(text)
        # Keep ownership long enough for the clipboard manager to take the text
        root.update()
    except tkinter.TclError as e:
        raise ClipboardError(f"Clipboard write failed: {e}") from e
    finally:
        try:
            root.destroy()
        except tkinter.TclError:
            logger.debug("Tk root already destroyed")


def console_confirm(message: str) -> bool:
    """Ask on the console. No input (closed stdin) counts as no."""
    try:
        answer = input(f"{message} [y/N] ")
    except EOFError:
        logger.warning("No console input available, manual recovery declined")
        return False
    return answer.strip().lower() in ("y", "yes")


@dataclass
class RecoveryReport:
    outcome: RecoveryOutcome
    serialized: str
    target_path: str
    message: str = ""


class ManualRecovery:
    """
    Offers the copy-to-clipboard fallback for an unsaved document.

    Args:
        target_path: Where the operator must paste the document
        confirm: Asks the operator a yes/no question
        clipboard: Writes text to the clipboard
        notify: Shows a message to the operator
    """

    def __init__(
        self,
        target_path: str,
        confirm: Callable[[str], bool] = console_confirm,
        clipboard: Callable[[str], None] = tk_clipboard_writer,
        notify: Optional[Callable[[str], None]] = print,
    ):
        self.target_path = target_path
        self._confirm = confirm
        self._clipboard = clipboard
        self._notify = notify

    def _tell(self, message: str) -> None:
        if self._notify is not None:
            self._notify(message)

    def prompt(self) -> str:
        return (
            "Could not save to the file automatically. Server might not be running.\n\n"
            "Please follow these steps to manually update the file:\n\n"
            f"1. Open '{self.target_path}' in a text editor\n"
            "2. Replace the contents with the document shown above\n"
            "3. Save the file\n\n"
            "Would you like to copy the JSON data to your clipboard?"
        )

    def offer(self, document: dict[str, Any]) -> RecoveryReport:
        serialized = json.dumps(document, indent=2)
        self._tell(serialized)

        if not self._confirm(self.prompt()):
            logger.info("Manual recovery declined", target=self.target_path)
            return RecoveryReport(RecoveryOutcome.DECLINED, serialized, self.target_path)

        try:
            self._clipboard(serialized)
        except ClipboardError as e:
            logger.error("Failed to copy to clipboard", error=str(e))
            message = "Could not copy to clipboard. Please copy the document printed above."
            self._tell(message)
            return RecoveryReport(RecoveryOutcome.COPY_FAILED, serialized, self.target_path, message)

        message = f"JSON data copied to clipboard! You can paste it into '{self.target_path}'"
        self._tell(message)
        logger.info("Document copied to clipboard", target=self.target_path)
        return RecoveryReport(RecoveryOutcome.COPIED, serialized, self.target_path, message)
