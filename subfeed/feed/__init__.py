"""Subscription feed aggregation."""

from .aggregator import (
    AggregatedFeed,
    aggregate_subscription_feed,
    ensure_fresh_credential,
    merge_feeds,
)
from .collector import collect_channel_videos, parse_playlist_item

__all__ = [
    "AggregatedFeed",
    "aggregate_subscription_feed",
    "collect_channel_videos",
    "ensure_fresh_credential",
    "merge_feeds",
    "parse_playlist_item",
]
