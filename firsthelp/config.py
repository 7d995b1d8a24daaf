"""FirstHelp configuration.

Loads from config.yaml if present, with environment variable overrides.
Environment variables use the pattern: FIRSTHELP_<SECTION>_<KEY> (uppercase).
Twilio credentials are also read from the standard TWILIO_* variables, and a
.env file in the working directory is loaded first.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from pathlib import Path

import yaml
from dotenv import find_dotenv, load_dotenv


@dataclass
class ServerConfig:
    host: str = "0.0.0.0"
    port: int = 5000
    env: str = "dev"  # "dev" or "prod"


@dataclass
class SmsConfig:
    account_sid: str = ""
    auth_token: str = ""
    from_number: str = ""

    @property
    def configured(self) -> bool:
        return bool(self.account_sid and self.auth_token and self.from_number)


@dataclass
class RelayConfig:
    url: str = "http://localhost:5000/api/send-sos"
    timeout_seconds: float = 10.0


@dataclass
class CprConfig:
    compression_rate_bpm: int = 110
    breath_interval_seconds: float = 3.0


@dataclass
class SosConfig:
    countdown_seconds: int = 5
    fallback_delay_seconds: float = 0.5
    emergency_number: str = "911"
    prefetch_location: bool = True


@dataclass
class GeolocationConfig:
    provider: str = "ip"  # "ip", "static" or "none"
    lookup_url: str = "http://ip-api.com/json/"
    timeout_seconds: float = 5.0
    static_latitude: float = 0.0
    static_longitude: float = 0.0


@dataclass
class ProfileConfig:
    path: str = "data/storage.json"


@dataclass
class AudioConfig:
    enabled: bool = True
    sample_rate: int = 44100


@dataclass
class LoggingConfig:
    level: str = "info"
    format: str = "console"  # "console" or "json"


@dataclass
class AppConfig:
    server: ServerConfig = field(default_factory=ServerConfig)
    sms: SmsConfig = field(default_factory=SmsConfig)
    relay: RelayConfig = field(default_factory=RelayConfig)
    cpr: CprConfig = field(default_factory=CprConfig)
    sos: SosConfig = field(default_factory=SosConfig)
    geolocation: GeolocationConfig = field(default_factory=GeolocationConfig)
    profile: ProfileConfig = field(default_factory=ProfileConfig)
    audio: AudioConfig = field(default_factory=AudioConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _to_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _apply_env_overrides(config: AppConfig) -> None:
    """Override config values from environment variables."""
    mapping = {
        "FIRSTHELP_SERVER_HOST": lambda v: setattr(config.server, "host", v),
        "FIRSTHELP_SERVER_PORT": lambda v: setattr(config.server, "port", int(v)),
        "FIRSTHELP_SERVER_ENV": lambda v: setattr(config.server, "env", v),
        "TWILIO_ACCOUNT_SID": lambda v: setattr(config.sms, "account_sid", v),
        "TWILIO_AUTH_TOKEN": lambda v: setattr(config.sms, "auth_token", v),
        "TWILIO_PHONE_NUMBER": lambda v: setattr(config.sms, "from_number", v),
        "FIRSTHELP_SMS_ACCOUNT_SID": lambda v: setattr(config.sms, "account_sid", v),
        "FIRSTHELP_SMS_AUTH_TOKEN": lambda v: setattr(config.sms, "auth_token", v),
        "FIRSTHELP_SMS_FROM_NUMBER": lambda v: setattr(config.sms, "from_number", v),
        "FIRSTHELP_RELAY_URL": lambda v: setattr(config.relay, "url", v),
        "FIRSTHELP_RELAY_TIMEOUT": lambda v: setattr(config.relay, "timeout_seconds", float(v)),
        "FIRSTHELP_CPR_RATE_BPM": lambda v: setattr(config.cpr, "compression_rate_bpm", int(v)),
        "FIRSTHELP_SOS_COUNTDOWN": lambda v: setattr(config.sos, "countdown_seconds", int(v)),
        "FIRSTHELP_SOS_EMERGENCY_NUMBER": lambda v: setattr(config.sos, "emergency_number", v),
        "FIRSTHELP_SOS_PREFETCH_LOCATION": lambda v: setattr(config.sos, "prefetch_location", _to_bool(v)),
        "FIRSTHELP_GEO_PROVIDER": lambda v: setattr(config.geolocation, "provider", v),
        "FIRSTHELP_GEO_LOOKUP_URL": lambda v: setattr(config.geolocation, "lookup_url", v),
        "FIRSTHELP_GEO_TIMEOUT": lambda v: setattr(config.geolocation, "timeout_seconds", float(v)),
        "FIRSTHELP_PROFILE_PATH": lambda v: setattr(config.profile, "path", v),
        "FIRSTHELP_AUDIO_ENABLED": lambda v: setattr(config.audio, "enabled", _to_bool(v)),
        "FIRSTHELP_LOG_LEVEL": lambda v: setattr(config.logging, "level", v),
        "FIRSTHELP_LOG_FORMAT": lambda v: setattr(config.logging, "format", v),
    }
    for env_key, setter in mapping.items():
        val = os.environ.get(env_key)
        if val is not None:
            setter(val)


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load configuration from YAML file + environment overrides."""
    load_dotenv(find_dotenv(usecwd=True))
    config = AppConfig()

    if config_path is None:
        config_path = Path("config.yaml")
    else:
        config_path = Path(config_path)

    if config_path.exists():
        with open(config_path) as f:
            raw = yaml.safe_load(f) or {}

        for section in fields(config):
            values = raw.get(section.name)
            if not isinstance(values, dict):
                continue
            target = getattr(config, section.name)
            known = {f.name for f in fields(target)}
            for k, v in values.items():
                if k in known:
                    setattr(target, k, v)

    # Environment overrides always win
    _apply_env_overrides(config)
    return config
