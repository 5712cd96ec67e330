"""
grove-quiz configuration

All magic numbers, storage locations and integration settings live here.
Environment variables override defaults for deployment flexibility.
"""

import os
from dataclasses import dataclass, field


@dataclass
class EngineConfig:
    """Navigation behaviour"""
    auto_advance: bool = os.getenv("QUIZ_AUTO_ADVANCE", "false").lower() == "true"
    auto_advance_delay_ms: int = int(os.getenv("QUIZ_AUTO_ADVANCE_DELAY", "300"))

    @property
    def auto_advance_delay_seconds(self) -> float:
        return self.auto_advance_delay_ms / 1000.0


@dataclass
class PersistenceConfig:
    """Best-effort progress snapshots"""
    enabled: bool = os.getenv("QUIZ_PERSIST_ANSWERS", "true").lower() == "true"
    key_prefix: str = os.getenv("QUIZ_STORAGE_PREFIX", "grove_quiz_")
    max_age_hours: float = float(os.getenv("QUIZ_SNAPSHOT_MAX_AGE", "24"))
    storage_dir: str = os.getenv("QUIZ_STORAGE_DIR", "")  # Empty = in-memory only

    def key_for(self, quiz_id: str) -> str:
        return f"{self.key_prefix}{quiz_id}"


@dataclass
class DeliveryConfig:
    """Result webhook settings"""
    webhook_url: str = os.getenv("QUIZ_WEBHOOK_URL", "")  # Empty = no delivery
    timeout_seconds: float = float(os.getenv("QUIZ_WEBHOOK_TIMEOUT", "10.0"))


@dataclass
class Config:
    """Master config, import this"""
    engine: EngineConfig = field(default_factory=EngineConfig)
    persistence: PersistenceConfig = field(default_factory=PersistenceConfig)
    delivery: DeliveryConfig = field(default_factory=DeliveryConfig)

    # Quick presets
    @classmethod
    def test_mode(cls) -> "Config":
        """For tests and scripted runs: no timers, snapshots or webhooks"""
        cfg = cls()
        cfg.engine.auto_advance = False
        cfg.persistence.enabled = False
        cfg.delivery.webhook_url = ""
        return cfg

    @classmethod
    def kiosk_mode(cls) -> "Config":
        """Unattended terminals: advance on answer, keep progress"""
        cfg = cls()
        cfg.engine.auto_advance = True
        cfg.persistence.enabled = True
        return cfg


# Singleton
config = Config()
