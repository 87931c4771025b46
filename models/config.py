"""Typed configuration structs for the generator pipeline"""

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple

from exceptions import ConfigurationError

HEX_COLOR_REGEX = re.compile(r'^#[0-9a-fA-F]{6}$')

# Link-relation classifications for square icons
REL_ICON = "icon"
REL_TOUCH_ICON = "apple-touch-icon"
REL_SOCIAL_PREVIEW = "og-image"


@dataclass(frozen=True)
class IconSpec:
    """One entry of the fixed icon catalog"""
    name: str
    width: int
    height: int
    rel: str = REL_ICON
    mime_type: str = "image/png"

    def __post_init__(self):
        if not self.name or "/" in self.name or "\\" in self.name:
            raise ConfigurationError(f"Invalid icon name: {self.name!r}")
        if self.width <= 0 or self.height <= 0:
            raise ConfigurationError(f"Icon {self.name} must have positive dimensions")
        if self.rel not in (REL_ICON, REL_TOUCH_ICON, REL_SOCIAL_PREVIEW):
            raise ConfigurationError(f"Unknown link relation for {self.name}: {self.rel}")
        if self.rel != REL_SOCIAL_PREVIEW and self.width != self.height:
            raise ConfigurationError(f"Square icon {self.name} must have equal width and height")

    @property
    def sizes(self) -> str:
        return f"{self.width}x{self.height}"

    @property
    def is_social_preview(self) -> bool:
        return self.rel == REL_SOCIAL_PREVIEW


def _favicon(size: int) -> IconSpec:
    return IconSpec(name=f"favicon-{size}x{size}.png", width=size, height=size)


DEFAULT_ICON_SPECS: Tuple[IconSpec, ...] = (
    _favicon(16),
    _favicon(24),
    _favicon(32),
    _favicon(48),
    _favicon(64),
    _favicon(72),
    _favicon(96),
    _favicon(128),
    _favicon(144),
    _favicon(152),
    IconSpec(name="apple-touch-icon.png", width=180, height=180, rel=REL_TOUCH_ICON),
    IconSpec(name="android-chrome-192x192.png", width=192, height=192),
    IconSpec(name="android-chrome-512x512.png", width=512, height=512),
    IconSpec(name="og-image.png", width=1200, height=630, rel=REL_SOCIAL_PREVIEW),
)

DEFAULT_ALLOWED_MIME_TYPES: Tuple[str, ...] = (
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/svg+xml",
)


def _check_color(name: str, value: str):
    if not HEX_COLOR_REGEX.match(value):
        raise ConfigurationError(f"{name} must be a #rrggbb colour, got {value!r}")


@dataclass(frozen=True)
class RasterizerConfig:
    """Icon catalog and social preview rendering options"""
    icon_specs: Tuple[IconSpec, ...] = DEFAULT_ICON_SPECS
    ico_sizes: Tuple[int, ...] = (16, 32, 48)
    social_logo_box: int = 400
    social_background: str = "#ffffff"
    theme_color: str = "#ffffff"
    background_color: str = "#ffffff"
    external_prefix: str = "/icons"

    def __post_init__(self):
        if not self.icon_specs:
            raise ConfigurationError("icon_specs must not be empty")
        names = [spec.name for spec in self.icon_specs]
        if len(set(names)) != len(names):
            raise ConfigurationError("icon_specs contains duplicate names")
        if sum(1 for spec in self.icon_specs if spec.is_social_preview) > 1:
            raise ConfigurationError("At most one social preview spec is allowed")
        if not self.ico_sizes or any(size <= 0 or size > 256 for size in self.ico_sizes):
            raise ConfigurationError("ico_sizes must be between 1 and 256 pixels")
        if self.social_logo_box <= 0:
            raise ConfigurationError("social_logo_box must be positive")
        _check_color("social_background", self.social_background)
        _check_color("theme_color", self.theme_color)
        _check_color("background_color", self.background_color)
        if not self.external_prefix.startswith("/"):
            raise ConfigurationError("external_prefix must be root-relative")

    @property
    def square_specs(self) -> Tuple[IconSpec, ...]:
        return tuple(spec for spec in self.icon_specs if not spec.is_social_preview)

    @property
    def social_spec(self) -> Optional[IconSpec]:
        for spec in self.icon_specs:
            if spec.is_social_preview:
                return spec
        return None


@dataclass(frozen=True)
class SessionStoreConfig:
    """Where session namespaces live and how long they survive"""
    output_root: Path = Path("generated")
    ttl_seconds: float = 2 * 60 * 60
    sweep_interval_seconds: float = 60 * 60
    id_length: int = 16
    subdirectories: Tuple[str, ...] = ("icons", "temp")
    url_prefix: str = "/generated/sessions"

    def __post_init__(self):
        if self.ttl_seconds <= 0:
            raise ConfigurationError("ttl_seconds must be positive")
        if self.sweep_interval_seconds <= 0:
            raise ConfigurationError("sweep_interval_seconds must be positive")
        if self.id_length < 16 or self.id_length % 2:
            raise ConfigurationError("id_length must be an even number >= 16")

    @property
    def sessions_root(self) -> Path:
        return Path(self.output_root) / "sessions"


@dataclass(frozen=True)
class UploadConfig:
    """Upload validation limits"""
    max_bytes: int = 5 * 1024 * 1024
    allowed_mime_types: Tuple[str, ...] = DEFAULT_ALLOWED_MIME_TYPES

    def __post_init__(self):
        if self.max_bytes <= 0:
            raise ConfigurationError("max_bytes must be positive")
        if not self.allowed_mime_types:
            raise ConfigurationError("allowed_mime_types must not be empty")


@dataclass(frozen=True)
class EnhancementConfig:
    """Text-enhancement upstream settings"""
    api_key: Optional[str] = None
    model: str = "gemini-2.5-flash"
    base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    timeout_seconds: float = 30.0
    thinking_budget: int = 0
    credits_per_call: int = 1

    def __post_init__(self):
        if not self.model:
            raise ConfigurationError("model must not be empty")
        if not self.base_url.startswith(("http://", "https://")):
            raise ConfigurationError(f"base_url must be an http(s) URL, got {self.base_url!r}")
        if self.timeout_seconds <= 0:
            raise ConfigurationError("timeout_seconds must be positive")
        if self.credits_per_call < 0:
            raise ConfigurationError("credits_per_call must not be negative")


@dataclass(frozen=True)
class LedgerConfig:
    """Credit ledger storage"""
    database_path: Path = Path("data") / "users.db"
    initial_credits: int = 10

    def __post_init__(self):
        if self.initial_credits < 0:
            raise ConfigurationError("initial_credits must not be negative")


@dataclass(frozen=True)
class GeneratorSettings:
    """Effective settings for one server process"""
    rasterizer: RasterizerConfig = field(default_factory=RasterizerConfig)
    sessions: SessionStoreConfig = field(default_factory=SessionStoreConfig)
    upload: UploadConfig = field(default_factory=UploadConfig)
    enhancement: EnhancementConfig = field(default_factory=EnhancementConfig)
    ledger: LedgerConfig = field(default_factory=LedgerConfig)
    log_level: str = "INFO"
