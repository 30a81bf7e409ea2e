"""
Notification Service
Delivers workflow fallback notices to reviewers (log, history and optional email)
"""

import smtplib
from collections import deque
from dataclasses import asdict, dataclass, field
from datetime import datetime
from email.mime.text import MIMEText
from threading import Lock
from typing import Any, Dict, List, Optional

from ..monitoring import get_logger


@dataclass
class Notice:
    """Fallback notice for downstream alerting"""
    recipient: str
    document_type_id: str
    document_id: str
    reason: str
    channel: Optional[str] = None
    created_at: str = ""

    def __post_init__(self):
        if not self.created_at:
            self.created_at = datetime.now().isoformat()


@dataclass
class SMTPSettings:
    host: Optional[str] = None
    port: int = 25
    sender: str = 'firmsync@localhost'
    recipients: List[str] = field(default_factory=list)

    @property
    def enabled(self) -> bool:
        return bool(self.host and self.recipients)


class NotificationService:
    """Records notices and forwards them by email when SMTP is configured"""

    def __init__(self, smtp: Optional[SMTPSettings] = None, history_size: int = 200):
        self.logger = get_logger('notifications')
        self.smtp = smtp or SMTPSettings()
        self.history = deque(maxlen=history_size)
        self.lock = Lock()

    def notify(self, notice: Notice):
        with self.lock:
            self.history.append(notice)

        self.logger.info("Notification issued", **asdict(notice))

        if self.smtp.enabled:
            self._send_email(notice)

    def recent(self, limit: int = 50) -> List[Dict[str, Any]]:
        with self.lock:
            notices = list(self.history)[-limit:]
        return [asdict(n) for n in notices]

    def _send_email(self, notice: Notice):
        body = (
            f"Document type: {notice.document_type_id}\n"
            f"Document: {notice.document_id}\n"
            f"Recipient: {notice.recipient}\n"
            f"Reason: {notice.reason}\n"
            f"Time: {notice.created_at}\n"
        )
        message = MIMEText(body)
        message['Subject'] = f"[FirmSync] Review required: {notice.document_type_id}"
        message['From'] = self.smtp.sender
        message['To'] = ', '.join(self.smtp.recipients)

        with smtplib.SMTP(self.smtp.host, self.smtp.port, timeout=10) as server:
            server.sendmail(self.smtp.sender, self.smtp.recipients, message.as_string())

        self.logger.info("Notification email sent",
                         document_type_id=notice.document_type_id,
                         recipients=len(self.smtp.recipients))
