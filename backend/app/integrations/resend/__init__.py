"""
对外统一入口：邮件发送客户端 + 异常类型
"""

from .email_client import ResendClient
from .errors import EmailError, EmailConfigError, EmailDeliveryError


__all__ = [
    "ResendClient",
    "EmailError", "EmailConfigError", "EmailDeliveryError",
]
