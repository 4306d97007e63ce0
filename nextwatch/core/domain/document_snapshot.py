from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from nextwatch.core.domain.exceptions import EnvironmentUnavailable


FIRST_CONTENTFUL_PAINT = "first-contentful-paint"


@dataclass(frozen=True)
class ImageInfo:
    complete: bool
    natural_height: int = 0

    @property
    def is_loaded(self) -> bool:
        return self.complete and self.natural_height > 0


@dataclass(frozen=True)
class PaintEntry:
    name: str
    start_time: float = 0.0


@dataclass(frozen=True)
class DocumentSnapshot:
    """
    Point-in-time view of the observed document and its globals.
    Produced by a PageEnvironment; signal evaluators read nothing else.

    ``paint_entries`` is None when paint timing cannot be observed in the
    page (missing API, or the observer threw while registering).
    """
    ready_state: str = "loading"
    location: str = "/"

    has_framework_data: bool = False
    framework_data_has_props: bool = False
    has_runtime: bool = False

    script_sources: Tuple[str, ...] = ()
    meta_generator: Optional[str] = None
    has_route_announcer: bool = False

    has_body: bool = True
    container_text_lengths: Tuple[int, ...] = ()
    body_child_count: int = 0
    has_hydration_markers: bool = False
    has_obfuscated_classes: bool = False

    images: Tuple[ImageInfo, ...] = ()
    paint_entries: Optional[Tuple[PaintEntry, ...]] = ()

    @property
    def is_loading(self) -> bool:
        return self.ready_state == "loading"

    def first_contentful_paint(self) -> Optional[PaintEntry]:
        if self.paint_entries is None:
            raise EnvironmentUnavailable("paint timing is not observable in this page")
        for entry in self.paint_entries:
            if entry.name == FIRST_CONTENTFUL_PAINT:
                return entry
        return None

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "DocumentSnapshot":
        """Build from the camelCase record reported by the in-page script."""
        paint = payload.get("paintEntries")
        return cls(
            ready_state=str(payload.get("readyState", "loading")),
            location=str(payload.get("location", "/")),
            has_framework_data=bool(payload.get("hasFrameworkData", False)),
            framework_data_has_props=bool(payload.get("frameworkDataHasProps", False)),
            has_runtime=bool(payload.get("hasRuntime", False)),
            script_sources=tuple(str(s) for s in payload.get("scriptSources") or ()),
            meta_generator=payload.get("metaGenerator"),
            has_route_announcer=bool(payload.get("hasRouteAnnouncer", False)),
            has_body=bool(payload.get("hasBody", False)),
            container_text_lengths=tuple(int(n) for n in payload.get("containerTextLengths") or ()),
            body_child_count=int(payload.get("bodyChildCount", 0)),
            has_hydration_markers=bool(payload.get("hasHydrationMarkers", False)),
            has_obfuscated_classes=bool(payload.get("hasObfuscatedClasses", False)),
            images=tuple(
                ImageInfo(
                    complete=bool(img.get("complete", False)),
                    natural_height=int(img.get("naturalHeight", 0)),
                )
                for img in payload.get("images") or ()
            ),
            paint_entries=None if paint is None else tuple(
                PaintEntry(name=str(e.get("name", "")), start_time=float(e.get("startTime", 0.0)))
                for e in paint
            ),
        )
