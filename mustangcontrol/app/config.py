from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path

from mustangcontrol.protocol.codes import FENDER_VENDOR_ID


@dataclass
class DeviceConfig:
    vendor_id: int = FENDER_VENDOR_ID
    product_id: int | None = None
    read_timeout_ms: int = 50


@dataclass
class SyncConfig:
    bypass_timeout_s: float = 1.0
    quiet_period_s: float = 0.5
    # Preset count differs between amp generations (24 on v2 units, 100 on larger models).
    preset_slot_count: int = 24


@dataclass
class AppConfig:
    device: DeviceConfig = field(default_factory=DeviceConfig)
    sync: SyncConfig = field(default_factory=SyncConfig)

    @classmethod
    def default(cls) -> AppConfig:
        return cls()


class ConfigManager:
    def __init__(self, config_path: Path | str = "config.json") -> None:
        self.config_path = Path(config_path)
        self.config = self.load()

    def load(self) -> AppConfig:
        if not self.config_path.exists():
            logging.info(f"Config file not found at {self.config_path}, using defaults.")
            return AppConfig.default()

        try:
            with open(self.config_path, "r") as f:
                data = json.load(f)
                device_data = data.get("device", {})
                sync_data = data.get("sync", {})
                return AppConfig(
                    device=DeviceConfig(
                        vendor_id=int(device_data.get("vendor_id", FENDER_VENDOR_ID)),
                        product_id=device_data.get("product_id"),
                        read_timeout_ms=int(device_data.get("read_timeout_ms", 50)),
                    ),
                    sync=SyncConfig(
                        bypass_timeout_s=float(sync_data.get("bypass_timeout_s", 1.0)),
                        quiet_period_s=float(sync_data.get("quiet_period_s", 0.5)),
                        preset_slot_count=int(sync_data.get("preset_slot_count", 24)),
                    ),
                )
        except Exception as e:
            logging.error(f"Failed to load config: {e}")
            return AppConfig.default()

    def save(self) -> None:
        try:
            with open(self.config_path, "w") as f:
                json.dump(asdict(self.config), f, indent=4)
        except Exception as e:
            logging.error(f"Failed to save config: {e}")

    @property
    def product_id(self) -> int | None:
        return self.config.device.product_id

    @product_id.setter
    def product_id(self, value: int | None) -> None:
        self.config.device.product_id = value
        self.save()

    @property
    def preset_slot_count(self) -> int:
        return self.config.sync.preset_slot_count

    @preset_slot_count.setter
    def preset_slot_count(self, value: int) -> None:
        self.config.sync.preset_slot_count = value
        self.save()

    @property
    def bypass_timeout_s(self) -> float:
        return self.config.sync.bypass_timeout_s

    @bypass_timeout_s.setter
    def bypass_timeout_s(self, value: float) -> None:
        self.config.sync.bypass_timeout_s = value
        self.save()
