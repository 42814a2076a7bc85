"""Desktop notification helpers for Music Session."""

import shutil
import subprocess
from typing import Literal, Optional

APP_NAME = "Music Session"


def notify(
    title: str,
    message: str,
    urgency: Literal["low", "normal", "critical"] = "normal",
    icon: Optional[str] = None,
) -> bool:
    """
    Show a desktop notification using notify-send.

    Args:
        title: Notification title
        message: Notification message body
        urgency: Urgency level ('low', 'normal', 'critical')
        icon: Optional icon path or URL

    Returns:
        True if notify-send was invoked

    Note:
        Silently skips notification if notify-send is not available.
    """
    if not shutil.which("notify-send"):
        return False

    cmd = ["notify-send", "--urgency", urgency, "--app-name", APP_NAME]
    if icon:
        cmd += ["--icon", icon]
    cmd += [title, message]

    try:
        subprocess.run(cmd, check=False, timeout=2.0, capture_output=True)
    except (subprocess.TimeoutExpired, OSError):
        return False
    return True


def notify_error(message: str) -> bool:
    """Show an error notification with X mark."""
    return notify(f"✗ {APP_NAME}", message, urgency="critical")
