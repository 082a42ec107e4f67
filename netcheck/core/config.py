"""
Configuration management for NetCheck.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Tuple

import toml


@dataclass(frozen=True)
class Site:
    """A network endpoint taking part in the measurement."""
    address: str
    region: str
    site: str

    def __str__(self) -> str:
        return f"{self.region}/{self.site}"


@dataclass(frozen=True)
class InfluxDBConfig:
    """InfluxDB configuration settings."""
    url: str
    bucket: str
    organization: str
    token: str


@dataclass(frozen=True)
class LoggingConfig:
    """Logging configuration settings."""
    level: str = "INFO"
    file: str = ""
    max_size: int = 10
    backup_count: int = 5


@dataclass(frozen=True)
class Config:
    """Main configuration class."""
    period: int
    port: int
    local_site: Site
    remote_sites: Tuple[Site, ...]
    influxdb: InfluxDBConfig
    logging: LoggingConfig
    parallel_checks: bool = False

    @classmethod
    def from_file(cls, config_path: Path) -> 'Config':
        """Load configuration from TOML file."""
        try:
            config_data = toml.load(config_path)
        except Exception as e:
            raise ValueError(f"Failed to load configuration: {e}")

        return cls.from_dict(config_data)

    @classmethod
    def from_dict(cls, config_data: dict) -> 'Config':
        """Build configuration from an already parsed mapping."""
        try:
            local_site = _site(config_data['local_site'])
            remote_sites = tuple(_site(s) for s in config_data.get('remote_sites', []))

            influxdb = InfluxDBConfig(
                url=config_data['influxdb']['url'],
                bucket=config_data['influxdb']['bucket'],
                organization=config_data['influxdb']['organization'],
                token=config_data['influxdb']['token']
            )

            logging_data = config_data.get('logging', {})
            logging_config = LoggingConfig(
                level=logging_data.get('level', LoggingConfig.level),
                file=logging_data.get('file', LoggingConfig.file),
                max_size=logging_data.get('max_size', LoggingConfig.max_size),
                backup_count=logging_data.get('backup_count', LoggingConfig.backup_count)
            )

            return cls(
                period=config_data['period'],
                port=config_data['port'],
                local_site=local_site,
                remote_sites=remote_sites,
                influxdb=influxdb,
                logging=logging_config,
                parallel_checks=bool(config_data.get('parallel_checks', False))
            )

        except KeyError as e:
            raise ValueError(f"Missing required configuration key: {e}")
        except (TypeError, AttributeError) as e:
            raise ValueError(f"Failed to load configuration: {e}")

    def validate(self) -> bool:
        """Validate configuration values."""
        if isinstance(self.period, bool) or not isinstance(self.period, int) or self.period <= 0:
            raise ValueError(f"Period must be a positive number of seconds, got {self.period!r}")

        if isinstance(self.port, bool) or not isinstance(self.port, int) or not 0 < self.port <= 65535:
            raise ValueError(f"Port must be between 1 and 65535, got {self.port!r}")

        for site in (self.local_site,) + self.remote_sites:
            if not site.address:
                raise ValueError(f"Site {site} has no address")

        return True


def _site(data: dict) -> Site:
    return Site(
        address=str(data['address']),
        region=str(data['region']),
        site=str(data['site'])
    )
