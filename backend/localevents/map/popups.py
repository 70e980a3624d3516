from __future__ import annotations

from dataclasses import dataclass
from html import escape
from typing import Awaitable, Callable, Optional

import folium

from localevents.domain.models import Event, InterestStatus, RouteInfo

ToggleCallback = Callable[[int], None]
RouteCallback = Callable[[], Awaitable[None]]

POPUP_MAX_WIDTH = 300

_FILLED = "background:#7c3aed;color:#fff;border:1px solid #7c3aed;"
_OUTLINE = "background:#fff;color:#7c3aed;border:1px solid #7c3aed;"
_BUTTON = (
    "flex:1;display:inline-block;text-align:center;padding:6px 8px;border-radius:6px;"
    "font-size:12px;font-weight:600;text-decoration:none;"
)


@dataclass(frozen=True)
class PopupActions:
    """URL templates the popup buttons point at; ``{event_id}`` is substituted."""

    interested: str = "/map/events/{event_id}/interested"
    attended: str = "/map/events/{event_id}/attended"
    route: str = "/map/events/{event_id}/route"

    def url(self, template: str, event_id: int) -> str:
        return template.format(event_id=event_id)


class EventPopup:
    """Detail popup bound to one event marker.

    The popup only reports clicks through the callbacks it was given; interest
    state lives with the host. Once :meth:`dispose` ran, clicks are ignored and
    rendering is refused.
    """

    def __init__(
        self,
        event: Event,
        status: InterestStatus,
        *,
        on_interest_toggle: ToggleCallback,
        on_attended_toggle: ToggleCallback,
        on_show_route: Optional[RouteCallback] = None,
        actions: Optional[PopupActions] = None,
    ):
        self.event = event
        self.status = status
        self.actions = actions or PopupActions()
        self.route_info: Optional[RouteInfo] = None
        self.disposed = False
        self._on_interest_toggle: Optional[ToggleCallback] = on_interest_toggle
        self._on_attended_toggle: Optional[ToggleCallback] = on_attended_toggle
        self._on_show_route: Optional[RouteCallback] = on_show_route

    @property
    def shows_route_button(self) -> bool:
        return self._on_show_route is not None and not self.disposed

    def click_interested(self) -> None:
        if self.disposed or self._on_interest_toggle is None:
            return
        self._on_interest_toggle(self.event.id)

    def click_attended(self) -> None:
        if self.disposed or self._on_attended_toggle is None:
            return
        self._on_attended_toggle(self.event.id)

    async def click_show_route(self) -> None:
        if not self.shows_route_button:
            return
        await self._on_show_route()

    def dispose(self) -> None:
        self._on_interest_toggle = None
        self._on_attended_toggle = None
        self._on_show_route = None
        self.route_info = None
        self.disposed = True

    # rendering

    def render(self) -> str:
        if self.disposed:
            raise RuntimeError(f"popup for event {self.event.id} was disposed")
        event = self.event
        parts = [
            '<div class="event-popup" style="font-family:sans-serif;width:260px;">',
            f'<img src="{escape(event.image)}" alt="{escape(event.title)}" '
            'style="width:100%;height:128px;object-fit:cover;border-radius:8px;margin-bottom:8px;"/>',
            f'<h3 style="margin:0 0 6px;font-size:16px;">{escape(event.title)}</h3>',
            f'<div style="font-size:13px;margin-bottom:2px;">&#128197; {escape(event.display_date())}</div>',
            f'<div style="font-size:13px;margin-bottom:6px;">&#128205; {escape(event.location)}</div>',
            f'<p style="font-size:13px;margin:0 0 8px;">{escape(_shorten(event.description))}</p>',
            '<div style="display:flex;gap:6px;">',
            self._toggle_button("Interested", InterestStatus.INTERESTED, self.actions.interested),
            self._toggle_button("Attended", InterestStatus.ATTENDED, self.actions.attended),
            "</div>",
        ]
        if self.shows_route_button:
            url = escape(self.actions.url(self.actions.route, event.id))
            parts.append(
                f'<a class="route-action" href="{url}" target="_top" '
                f'style="{_BUTTON}{_OUTLINE}display:block;margin-top:6px;">Show Route</a>'
            )
        if self.route_info is not None:
            parts.append(self._route_banner(self.route_info))
        parts.append("</div>")
        return "".join(parts)

    def to_folium(self) -> folium.Popup:
        show = self.route_info is not None and not self.route_info.ok
        return folium.Popup(self.render(), max_width=POPUP_MAX_WIDTH, show=show)

    def _toggle_button(self, label: str, status: InterestStatus, template: str) -> str:
        style = _FILLED if self.status == status else _OUTLINE
        url = escape(self.actions.url(template, self.event.id))
        return (
            f'<a class="toggle-{status.value}" data-active="{str(self.status == status).lower()}" '
            f'href="{url}" target="_top" style="{_BUTTON}{style}">{label}</a>'
        )

    @staticmethod
    def _route_banner(info: RouteInfo) -> str:
        if info.ok:
            return (
                '<div class="route-summary" style="margin-top:6px;font-size:13px;font-weight:600;">'
                f"&#128663; {escape(info.summary())}</div>"
            )
        return (
            '<div class="route-error" style="margin-top:6px;font-size:13px;color:#b91c1c;">'
            f"{escape(info.summary())}</div>"
        )


def _shorten(text: str, limit: int = 140) -> str:
    if len(text) <= limit:
        return text
    return text[: limit - 1].rstrip() + "…"
