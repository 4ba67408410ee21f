"""Desktop notifications with cross-platform support."""

from __future__ import annotations

import os
import platform
import subprocess

from ..log import get_logger

logger = get_logger("notify")

APP_NAME = "usagebar"


def send_notification_linux(title: str, message: str) -> bool:
    """Send notification on Linux using notify-send."""
    try:
        subprocess.run(
            ["notify-send", "-a", APP_NAME, title, message],
            check=True,
            capture_output=True,
        )
        return True
    except (subprocess.CalledProcessError, FileNotFoundError):
        return False


def _applescript_quote(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


def send_notification_macos(title: str, message: str) -> bool:
    """Send notification on macOS using osascript."""
    title_escaped = _applescript_quote(title)
    message_escaped = _applescript_quote(message)
    script = (
        f'display notification "{message_escaped}" with title "{title_escaped}" '
        'sound name "default"'
    )
    try:
        subprocess.run(["osascript", "-e", script], check=True, capture_output=True)
        return True
    except (subprocess.CalledProcessError, FileNotFoundError):
        return False


def send_notification_windows(title: str, message: str) -> bool:
    """Send notification on Windows using a PowerShell toast.

    Title and message reach the script through environment variables so
    they are never parsed as PowerShell.
    """
    script = f'''
    [Windows.UI.Notifications.ToastNotificationManager, Windows.UI.Notifications, ContentType = WindowsRuntime] | Out-Null
    $template = [Windows.UI.Notifications.ToastTemplateType]::ToastText02
    $xml = [Windows.UI.Notifications.ToastNotificationManager]::GetTemplateContent($template)
    $text = $xml.GetElementsByTagName("text")
    $text.Item(0).AppendChild($xml.CreateTextNode($env:USAGEBAR_TITLE)) | Out-Null
    $text.Item(1).AppendChild($xml.CreateTextNode($env:USAGEBAR_MESSAGE)) | Out-Null
    $toast = [Windows.UI.Notifications.ToastNotification]::new($xml)
    [Windows.UI.Notifications.ToastNotificationManager]::CreateToastNotifier("{APP_NAME}").Show($toast)
    '''
    try:
        env = dict(os.environ, USAGEBAR_TITLE=title, USAGEBAR_MESSAGE=message)
        subprocess.run(["powershell", "-Command", script], check=True, capture_output=True, env=env)
        return True
    except (subprocess.CalledProcessError, FileNotFoundError):
        return False


def send_notification(title: str, message: str) -> bool:
    """Send a desktop notification using the method for this platform.

    Returns:
        True if the notification was handed to the OS.
    """
    system = platform.system()
    if system == "Linux":
        sent = send_notification_linux(title, message)
    elif system == "Darwin":
        sent = send_notification_macos(title, message)
    elif system == "Windows":
        sent = send_notification_windows(title, message)
    else:
        sent = False

    if not sent:
        logger.warning("Could not deliver notification: %s", title)
    return sent
