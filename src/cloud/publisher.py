"""
Google Cloud Pub/Sub transport for traffic alerts.

Messages in the same group share an ordering key so subscribers see them in
publish order; the deduplication key travels as a message attribute so
consumers can drop redelivered copies of one report.
"""

import logging
from typing import Any, Dict, Optional

from .auth import get_credentials
from .utils import check_cloud_config


class PubSubPublisher:
    """Publishes alert messages to one Pub/Sub topic."""

    def __init__(self, project_id: str, topic_id: str, credentials=None,
                 timeout_s: float = 10.0, client=None):
        """
        Args:
            project_id: GCP project owning the topic
            topic_id: Pub/Sub topic name
            credentials: Optional google-auth credentials
            timeout_s: Seconds to wait for the publish acknowledgement
            client: Pre-built PublisherClient (tests inject a mock)
        """
        if client is None:
            from google.cloud import pubsub_v1

            options = pubsub_v1.types.PublisherOptions(enable_message_ordering=True)
            client = pubsub_v1.PublisherClient(
                publisher_options=options,
                credentials=credentials,
            )
        self._client = client
        self.timeout_s = timeout_s
        self.topic_path = client.topic_path(project_id, topic_id)

    def publish(self, subject: str, body: str, group_key: str, dedup_key: str) -> bool:
        """
        Publish one message and wait for the acknowledgement.

        Returns:
            True on success, False on any failure (never raises).
        """
        try:
            future = self._client.publish(
                self.topic_path,
                body.encode("utf-8"),
                ordering_key=group_key,
                subject=subject,
                dedup_key=dedup_key,
            )
            message_id = future.result(timeout=self.timeout_s)
            logging.info(f"Published alert {dedup_key} to {self.topic_path} (message id {message_id})")
            return True
        except Exception as e:
            logging.error(f"Failed to publish alert {dedup_key}: {e}")
            # A failed publish pauses the ordering key until resumed.
            try:
                self._client.resume_publish(self.topic_path, group_key)
            except Exception as resume_error:
                logging.debug(f"resume_publish failed for {group_key}: {resume_error}")
            return False


def create_publisher(cloud_config: Optional[Dict[str, Any]], timeout_s: float = 10.0) -> Optional[PubSubPublisher]:
    """
    Build a publisher from the parsed cloud_config.yaml.

    Returns None (local-only notification) when the config is absent or
    invalid, or when credentials cannot be loaded.
    """
    if not cloud_config:
        logging.info("No cloud configuration; notifications are local only")
        return None
    if not check_cloud_config(cloud_config):
        logging.warning("Cloud configuration invalid; notifications are local only")
        return None

    gcp = cloud_config['gcp']
    credentials = get_credentials(gcp.get('credentials_file'))
    if credentials is None:
        logging.warning("Cloud publishing disabled due to missing credentials")
        return None

    try:
        return PubSubPublisher(
            gcp['project_id'],
            gcp['pubsub']['topic_id'],
            credentials=credentials,
            timeout_s=timeout_s,
        )
    except Exception as e:
        logging.error(f"Failed to initialize Pub/Sub publisher: {e}")
        return None
