"""Monitoring for the crawler."""

from wall_spider.monitoring.metrics import PrometheusExporter

__all__ = ["PrometheusExporter"]
