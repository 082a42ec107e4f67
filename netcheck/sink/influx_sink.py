"""
InfluxDB metrics sink for NetCheck.
"""

import logging
from typing import Optional

from influxdb_client import InfluxDBClient, Point, WritePrecision
from influxdb_client.client.write_api import SYNCHRONOUS

from ..core.config import InfluxDBConfig
from ..probe.window import AggregateResult

MEASUREMENT = "rtt"


class InfluxSink:
    """Writes one point per aggregate result."""

    def __init__(self, config: InfluxDBConfig, client: Optional[InfluxDBClient] = None):
        self.config = config
        self.logger = logging.getLogger(__name__)

        self._client = client or InfluxDBClient(
            url=config.url,
            token=config.token,
            org=config.organization
        )
        self._write_api = self._client.write_api(write_options=SYNCHRONOUS)

    @staticmethod
    def to_point(result: AggregateResult) -> Point:
        point = Point(MEASUREMENT)
        for key, value in result.tags().items():
            point = point.tag(key, value)
        for key, value in result.fields().items():
            point = point.field(key, int(value))
        return point.time(result.captured_at, WritePrecision.NS)

    def write(self, result: AggregateResult) -> None:
        """Send one result. Failures are logged, never raised."""
        try:
            self._write_api.write(
                bucket=self.config.bucket,
                org=self.config.organization,
                record=self.to_point(result)
            )
        except Exception as e:
            self.logger.error(f"Failed to send data to InfluxDB: {e}")

    def close(self) -> None:
        try:
            self._write_api.close()
        finally:
            self._client.close()
