"""
Resend HTTP 客户端
  - POST /emails，Bearer API key
  - 单次请求，不重试；失败统一抛 EmailDeliveryError，由上层决定吞掉还是上抛
"""

from __future__ import annotations
import logging
import requests
from typing import Any, Dict, List, Optional, Union
from urllib.parse import urljoin

from app.core.config import settings
from app.integrations.resend.errors import EmailConfigError, EmailDeliveryError

logger = logging.getLogger(__name__)


class ResendClient:
    """Resend 邮件 API 的最小封装。"""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        sender: Optional[str] = None,
        timeout: Optional[int] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        if api_key is None and settings.RESEND_API_KEY is not None:
            api_key = settings.RESEND_API_KEY.get_secret_value()
        self.api_key = api_key
        self.base_url = (base_url or settings.RESEND_BASE_URL).rstrip("/") + "/"
        self.sender = sender or settings.EMAIL_FROM
        self.timeout = timeout or settings.EMAIL_HTTP_TIMEOUT
        self._session = session or requests.Session()


    # ---------- Public ----------
    def send(
        self,
        to: Union[str, List[str]],
        subject: str,
        html: str,
        *,
        text: Optional[str] = None,
        reply_to: Optional[str] = None,
        tags: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        """发送一封邮件，返回 provider 的 JSON（含 id）。"""
        if not self.api_key:
            raise EmailConfigError("RESEND_API_KEY is not configured")
        recipients = [to] if isinstance(to, str) else list(to)
        recipients = [r for r in recipients if r]
        if not recipients:
            raise EmailConfigError("no recipient")

        body: Dict[str, Any] = {
            "from": self.sender,
            "to": recipients,
            "subject": subject,
            "html": html,
        }
        if text:
            body["text"] = text
        if reply_to:
            body["reply_to"] = reply_to
        if tags:
            body["tags"] = [{"name": k, "value": v} for k, v in tags.items()]

        url = urljoin(self.base_url, "emails")
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

        try:
            resp = self._session.post(url, json=body, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            raise EmailDeliveryError(f"request error: {e}") from e

        if resp.status_code >= 400:
            snippet = (resp.text or "")[:300]
            raise EmailDeliveryError(f"{resp.status_code} from Resend: {snippet}")

        try:
            payload = resp.json()
        except ValueError:
            payload = {}
        logger.info("email sent subject=%r to=%s id=%s", subject, recipients, payload.get("id"))
        return payload
