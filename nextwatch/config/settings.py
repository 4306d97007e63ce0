from typing import Any, Dict, Mapping, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Design constants (not configurable)
MUTATION_QUIET_WINDOW_MS: int = 500  # No subtree change for this long = stable
CONTENT_ELEMENT_MIN_TEXT: int = 10  # Chars for a container to count as non-trivial
CONTENT_TOTAL_MIN_TEXT: int = 100  # Aggregate chars across containers
BODY_CHILD_FALLBACK: int = 5  # Root children needed by the content fallback
ROUTE_LOAD_START_DELAY_MS: int = 100  # Let the new view commit before polling

# Option names as accepted by the browser-side observer.
_OPTION_ALIASES: Dict[str, str] = {
    "timeout": "timeout_ms",
    "checkInterval": "check_interval_ms",
    "debug": "debug",
    "minContentCheck": "min_content_check",
    "routeChangeDetection": "route_change_detection",
    "routeLoadTimeout": "route_load_timeout_ms",
    "imageLoadTolerance": "image_load_tolerance",
}


class ObserverConfig(BaseSettings):
    """
    Observer options, resolved once at construction.
    Values come from keyword arguments, then NEXTWATCH_* environment
    variables, then the defaults below. Unknown keys are ignored.
    """
    model_config = SettingsConfigDict(env_prefix="NEXTWATCH_", extra="ignore", frozen=True)

    timeout_ms: int = Field(15000, gt=0)  # Overall detection ceiling
    check_interval_ms: int = Field(100, gt=0)  # Poll cadence
    debug: bool = True
    min_content_check: int = Field(3, ge=0)  # Qualifying content containers
    route_change_detection: bool = True
    route_load_timeout_ms: int = Field(5000, gt=0)
    image_load_tolerance: float = Field(0.8, gt=0.0, le=1.0)  # Share of images that must load

    @property
    def mutation_quiet_window_ms(self) -> int:
        return MUTATION_QUIET_WINDOW_MS

    @classmethod
    def from_options(cls, options: Optional[Mapping[str, Any]] = None) -> "ObserverConfig":
        """
        Build from an option mapping using either the camelCase option names
        (``checkInterval``) or the field names (``check_interval_ms``).
        """
        fields = cls.model_fields
        resolved: Dict[str, Any] = {}
        for key, value in (options or {}).items():
            name = _OPTION_ALIASES.get(key, key)
            if name in fields and value is not None:
                resolved[name] = value
        return cls(**resolved)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timeout": self.timeout_ms,
            "checkInterval": self.check_interval_ms,
            "debug": self.debug,
            "minContentCheck": self.min_content_check,
            "routeChangeDetection": self.route_change_detection,
            "routeLoadTimeout": self.route_load_timeout_ms,
            "imageLoadTolerance": self.image_load_tolerance,
        }
