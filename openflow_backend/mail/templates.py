"""Subjects and bodies for notification emails."""

from __future__ import annotations

from html import escape

from ..core.enums import NotificationType

_SUBJECTS = {
    NotificationType.TASK_CREATED: "[OpenFlow] New Task Created",
    NotificationType.TASK_UPDATED: "[OpenFlow] Task Updated",
    NotificationType.TASK_DELETED: "[OpenFlow] Task Deleted",
    NotificationType.TASK_MOVED: "[OpenFlow] Task Moved",
    NotificationType.BOARD_UPDATED: "[OpenFlow] Board Updated",
    NotificationType.STATUS_CREATED: "[OpenFlow] New Status Created",
    NotificationType.STATUS_UPDATED: "[OpenFlow] Status Updated",
    NotificationType.STATUS_DELETED: "[OpenFlow] Status Deleted",
}

DEFAULT_SUBJECT = "[OpenFlow] Notification"


def subject_for(notification_type: str) -> str:
    return _SUBJECTS.get(notification_type, DEFAULT_SUBJECT)


def render_text(message: str, reference_type: str, reference_id: str, app_url: str) -> str:
    return (
        "OpenFlow Notification\n"
        "\n"
        f"{message}\n"
        "\n"
        f"Reference: {reference_type} #{reference_id}\n"
        "\n"
        f"View in OpenFlow: {app_url}\n"
        "\n"
        "---\n"
        f"You received this email because you subscribed to notifications for this {reference_type.lower()}.\n"
        "To manage your notification preferences, visit your OpenFlow settings.\n"
    )


def render_html(message: str, reference_type: str, reference_id: str, app_url: str) -> str:
    return f"""<!DOCTYPE html>
<html>
<head>
  <style>
    body {{ font-family: Arial, sans-serif; line-height: 1.6; color: #333; }}
    .container {{ max-width: 600px; margin: 0 auto; padding: 20px; }}
    .header {{ background-color: #82AAFF; color: white; padding: 20px; border-radius: 8px 8px 0 0; }}
    .content {{ background-color: #f5f5f5; padding: 20px; border-radius: 0 0 8px 8px; }}
    .button {{ display: inline-block; padding: 10px 20px; background-color: #82AAFF; color: white;
               text-decoration: none; border-radius: 5px; margin-top: 15px; }}
    .footer {{ margin-top: 20px; font-size: 12px; color: #666; }}
  </style>
</head>
<body>
  <div class="container">
    <div class="header"><h1>OpenFlow Notification</h1></div>
    <div class="content">
      <p>{escape(message)}</p>
      <p><strong>Reference:</strong> {escape(reference_type)} #{escape(reference_id)}</p>
      <a href="{escape(app_url, quote=True)}" class="button">View in OpenFlow</a>
    </div>
    <div class="footer">
      <p>You received this email because you subscribed to notifications for this {escape(reference_type.lower())}.</p>
      <p>To manage your notification preferences, visit your OpenFlow settings.</p>
    </div>
  </div>
</body>
</html>
"""
