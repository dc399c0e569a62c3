"""
   Resend 邮件集成层异常：调用方只关心 EmailError，发送失败不影响主流程
"""

class EmailError(Exception):
    """Base for all email errors."""

class EmailConfigError(EmailError):
    """RESEND_API_KEY missing or recipient empty."""

class EmailDeliveryError(EmailError):
    """Network failure or non-2xx response from the provider."""
