"""
Configuration loading.

Reads a YAML file into a ReplayConfig; anything missing falls back to the
defaults below.
"""

from dataclasses import dataclass, field
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, List, Optional
import logging

import yaml

from typelog.replay.playback import parse_speed

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass
class PlaybackConfig:
    default_speed: float = 1.0
    frame_interval_ms: float = 16.0
    speeds: List[float] = field(default_factory=lambda: [0.5, 1.0, 2.0, 4.0, 8.0])


@dataclass
class DocumentsConfig:
    path: Optional[str] = None
    active: Optional[str] = None


@dataclass
class ServerConfig:
    host: str = "127.0.0.1"
    port: int = 8765


@dataclass
class LoggingConfig:
    level: str = "INFO"
    file: Optional[str] = None
    max_size_mb: int = 10
    backup_count: int = 3


@dataclass
class ReplayConfig:
    replay: PlaybackConfig = field(default_factory=PlaybackConfig)
    documents: DocumentsConfig = field(default_factory=DocumentsConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> "ReplayConfig":
        replay_config = config.get("replay", {}) or {}
        documents_config = config.get("documents", {}) or {}
        server_config = config.get("server", {}) or {}
        log_config = config.get("logging", {}) or {}

        raw_speed = replay_config.get("default_speed", 1.0)
        default_speed = parse_speed(raw_speed, 0.0)
        if not default_speed:
            logger.warning(f"Invalid default_speed {raw_speed!r}, using 1.0")
            default_speed = 1.0

        speeds = [
            parse_speed(s, default_speed)
            for s in replay_config.get("speeds", PlaybackConfig().speeds)
        ]

        return cls(
            replay=PlaybackConfig(
                default_speed=default_speed,
                frame_interval_ms=float(replay_config.get("frame_interval_ms", 16.0)),
                speeds=speeds,
            ),
            documents=DocumentsConfig(
                path=documents_config.get("path"),
                active=documents_config.get("active"),
            ),
            server=ServerConfig(
                host=server_config.get("host", "127.0.0.1"),
                port=int(server_config.get("port", 8765)),
            ),
            logging=LoggingConfig(
                level=str(log_config.get("level", "INFO")),
                file=log_config.get("file"),
                max_size_mb=int(log_config.get("max_size_mb", 10)),
                backup_count=int(log_config.get("backup_count", 3)),
            ),
        )


def load_config(config_path: Optional[str]) -> ReplayConfig:
    """Load configuration from a YAML file."""
    if not config_path:
        return ReplayConfig()

    config_file = Path(config_path)
    if not config_file.exists():
        logger.warning(f"Config file not found: {config_path}, using defaults")
        return ReplayConfig()

    with open(config_file) as f:
        config = yaml.safe_load(f) or {}

    logger.info(f"Loaded configuration from {config_path}")
    return ReplayConfig.from_dict(config)


def setup_logging(log_config: LoggingConfig):
    """Configure logging based on config."""
    level = getattr(logging, log_config.level.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler()],
    )

    if log_config.file:
        log_path = Path(log_config.file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        handler = RotatingFileHandler(
            log_config.file,
            maxBytes=log_config.max_size_mb * 1024 * 1024,
            backupCount=log_config.backup_count,
        )
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logging.getLogger().addHandler(handler)
