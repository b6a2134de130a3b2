from .notifier import HEAVY_SUBJECT, UPDATE_SUBJECT, Notifier, Transport, build_message, render_report

__all__ = ["HEAVY_SUBJECT", "UPDATE_SUBJECT", "Notifier", "Transport", "build_message", "render_report"]
