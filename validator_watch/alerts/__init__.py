from .telegram import TelegramAlerts, AlertConfig, format_alert

__all__ = ["TelegramAlerts", "AlertConfig", "format_alert"]
