from .publisher import PubSubPublisher, create_publisher
from .utils import build_dedup_key, check_cloud_config, sanitize_identifier

__all__ = [
    "PubSubPublisher",
    "build_dedup_key",
    "check_cloud_config",
    "create_publisher",
    "sanitize_identifier",
]
