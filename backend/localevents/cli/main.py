import asyncio
import logging
from pathlib import Path
from typing import Optional

import typer

from localevents.domain.errors import MapCoreError
from localevents.domain.models import Coordinate
from localevents.map.search_box import format_distance
from localevents.providers.geocoding.nominatim import NominatimGeocodingProvider
from localevents.providers.location.viewer import FixedGeolocation
from localevents.providers.routing.osrm import OsrmRoutingProvider
from localevents.services.catalog import EventCatalog
from localevents.services.explore_session import ExploreSession

app = typer.Typer(help="CLI for the local events map")


def _build_geocoder():
    return NominatimGeocodingProvider()


def _build_router():
    return OsrmRoutingProvider()


def _viewer(lat: Optional[float], lng: Optional[float]) -> Optional[Coordinate]:
    if lat is None or lng is None:
        return None
    try:
        return Coordinate(lat, lng)
    except ValueError as exc:
        raise typer.BadParameter(str(exc))


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging")):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@app.command("events")
def cli_events():
    catalog = EventCatalog.load()
    typer.echo("id\ttitle\twhen\tlocation\tlat\tlng")
    for event in catalog.list():
        typer.echo(
            f"{event.id}\t{event.title}\t{event.display_date()}\t{event.location}\t{event.lat:.5f}\t{event.lng:.5f}"
        )


@app.command("map")
def cli_map(
    out: Path = typer.Option(..., help="HTML file to write"),
    lat: Optional[float] = typer.Option(None, help="Viewer latitude (fallback if omitted)"),
    lng: Optional[float] = typer.Option(None, help="Viewer longitude (fallback if omitted)"),
    route_to: Optional[int] = typer.Option(None, help="Event id to draw a route to"),
):
    viewer = _viewer(lat, lng)
    session = ExploreSession(geocoder=_build_geocoder(), router=_build_router())
    if route_to is not None and session.catalog.get(route_to) is None:
        typer.echo(f"Unknown event {route_to}", err=True)
        raise typer.Exit(code=1)

    async def _render():
        position = await session.start(FixedGeolocation(viewer) if viewer else None)
        info = await session.route_to(route_to) if route_to is not None else None
        return position, info

    position, info = asyncio.run(_render())
    out.write_text(session.render_map(), encoding="utf-8")
    session.close()
    label = "fallback" if position.is_fallback else "viewer"
    typer.echo(f"Centered on {label} position {position.coordinate.lat:.5f}, {position.coordinate.lng:.5f}")
    if info is not None:
        typer.echo(f"Route to event {route_to}: {info.summary()}")
    typer.echo(f"Wrote map to {out}")


@app.command("search")
def cli_search(
    query: str = typer.Argument(..., help="Place to look up"),
    lat: Optional[float] = typer.Option(None, help="Bias results near this latitude"),
    lng: Optional[float] = typer.Option(None, help="Bias results near this longitude"),
):
    geocoder = _build_geocoder()
    candidates = asyncio.run(geocoder.search_now(query, _viewer(lat, lng)))
    if geocoder.last_error is not None:
        typer.echo(f"Geocoding unavailable: {geocoder.last_error}", err=True)
    if not candidates:
        typer.echo("No locations found")
        raise typer.Exit(code=0)
    for candidate in candidates:
        pill = format_distance(candidate.distance_km)
        suffix = f"\t{pill}" if pill else ""
        typer.echo(f"{candidate.primary_label}\t{candidate.display_name}{suffix}")


@app.command("route")
def cli_route(
    from_lat: float = typer.Option(..., help="Origin latitude"),
    from_lng: float = typer.Option(..., help="Origin longitude"),
    to_lat: float = typer.Option(..., help="Destination latitude"),
    to_lng: float = typer.Option(..., help="Destination longitude"),
):
    origin = _viewer(from_lat, from_lng)
    destination = _viewer(to_lat, to_lng)
    try:
        result = asyncio.run(_build_router().route(origin, destination))
    except MapCoreError as exc:
        typer.echo(f"Route failed: {exc}", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"{result.distance_km:.1f} km · {result.duration_min} min ({len(result.coordinates)} points)")


@app.command("serve")
def cli_serve(
    host: str = typer.Option("127.0.0.1", help="Interface to bind"),
    port: int = typer.Option(8000, help="Port to listen on"),
):
    import uvicorn

    uvicorn.run("localevents.main:app", host=host, port=port)


if __name__ == "__main__":
    app()
