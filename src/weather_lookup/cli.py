"""Command line entry point: run the API server or look up a city."""

from __future__ import annotations

import argparse
import asyncio
import sys

from rich.console import Console
from rich.table import Table

from .client.api import BackendClient
from .client.preferences import PreferenceStore
from .client.session import WeatherSession
from .client.store import JsonFileStore
from .client.units import format_speed, format_temp, format_value, weather_effect
from .config import ClientSettings, load_client_settings, load_settings
from .exceptions import ConfigError, StoreError
from .log_setup import setup_logger, uvicorn_log_config


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments."""
    parser = argparse.ArgumentParser(description="City weather lookup.")
    commands = parser.add_subparsers(dest="command", required=True)

    serve = commands.add_parser("serve", help="Run the weather API server.")
    serve.add_argument("--host", type=str, default=None, help="Override HOST.")
    serve.add_argument("--port", type=int, default=None, help="Override PORT.")

    show = commands.add_parser("show", help="Show weather for a city via the API server.")
    show.add_argument("location", type=str, help="City name or 'lat,lon'.")
    show.add_argument(
        "--extended",
        action="store_true",
        help="Also show two days of history and the upcoming forecast.",
    )
    show.add_argument("--force", action="store_true", help="Bypass cache and throttle.")
    show.add_argument("--units", choices=["c", "f"], default=None, help="Temperature unit.")
    show.add_argument("--speed", choices=["kph", "mph"], default=None, help="Wind speed unit.")
    return parser.parse_args(argv)


def _print_weather(console: Console, session: WeatherSession) -> None:
    snapshot = session.weather
    if snapshot is None:
        console.print(session.status_message)
        return

    current = snapshot.current
    units = session.units
    wind = format_speed(current.wind_kph, units.speed)
    if current.wind_dir and wind != "--":
        wind = f"{wind} {current.wind_dir}"

    title = f"{snapshot.location.name}, {snapshot.location.country}".rstrip(", ")
    table = Table(title=title)
    table.add_column("Metric")
    table.add_column("Value", overflow="fold")
    table.add_row("Conditions", current.description or "-")
    table.add_row("Temperature", format_temp(current.temperature_c, units.temp))
    table.add_row("Feels like", format_temp(current.feels_like_c, units.temp))
    table.add_row("Wind", wind)
    table.add_row("Humidity", format_value(current.humidity_pct, "%"))
    table.add_row("Pressure", format_value(current.pressure_mb, " mb"))
    table.add_row("Visibility", format_value(current.visibility_km, " km"))
    table.add_row("Precip", format_value(current.precip_mm, " mm"))
    console.print(table)
    console.print(f"{session.status_message} | effect={weather_effect(current.description)}")


def _print_extended(console: Console, session: WeatherSession) -> None:
    outlook = session.extended_data
    if outlook is None:
        if session.extended_view.error:
            console.print(f"Extended outlook unavailable: {session.extended_view.error}")
        return

    temp_unit = session.units.temp
    table = Table(title=f"Outlook for {outlook.location.name}")
    table.add_column("Date")
    table.add_column("Kind")
    table.add_column("High")
    table.add_column("Low")
    table.add_column("Conditions", overflow="fold")
    table.add_column("Detail")

    for day in outlook.history:
        table.add_row(
            day.date,
            "history",
            format_temp(day.max_temp, temp_unit),
            format_temp(day.min_temp, temp_unit),
            day.condition or "-",
            f"precip {format_value(day.total_precip, ' mm')}",
        )
    for day in outlook.forecast:
        table.add_row(
            day.date,
            "forecast",
            format_temp(day.max_temp, temp_unit),
            format_temp(day.min_temp, temp_unit),
            day.condition or "-",
            f"rain {format_value(day.chance_of_rain, '%')}",
        )
    console.print(table)
    for note in (outlook.history_error, outlook.forecast_error):
        if note:
            console.print(f"Note: {note}")


async def _run_show(
    args: argparse.Namespace, settings: ClientSettings, console: Console
) -> int:
    logger = setup_logger()
    preferences = PreferenceStore(JsonFileStore(settings.state_file))
    async with BackendClient(settings=settings, logger=logger) as backend:
        session = WeatherSession(
            backend,
            preferences,
            logger,
            cache_ttl_ms=settings.cache_ttl_ms,
            throttle_ms=settings.request_throttle_ms,
        )
        if args.units or args.speed:
            session.set_units(temp=args.units, speed=args.speed)

        outcome = await session.fetch_weather(args.location, force=args.force)
        _print_weather(console, session)
        if outcome == "error":
            return 4
        if args.extended:
            await session.fetch_extended(args.location, force=args.force)
            _print_extended(console, session)
    return 0


def _run_serve(args: argparse.Namespace) -> int:
    import uvicorn

    from .server.app import create_app

    logger = setup_logger()
    try:
        settings = load_settings()
    except ConfigError as exc:
        logger.error("Configuration failure: %s", exc)
        return 2

    logger.setLevel(settings.log_level)
    app = create_app(settings, logger=logger)
    uvicorn.run(
        app,
        host=args.host or settings.host,
        port=args.port or settings.port,
        log_config=uvicorn_log_config(settings.log_level),
    )
    return 0


def main(argv: list[str] | None = None) -> int:
    """Run the selected command and return its exit code."""
    args = parse_args(argv)
    if args.command == "serve":
        return _run_serve(args)

    logger = setup_logger()
    console = Console()
    try:
        settings = load_client_settings()
    except ConfigError as exc:
        logger.error("Configuration failure: %s", exc)
        return 2
    try:
        return asyncio.run(_run_show(args, settings, console))
    except StoreError as exc:
        logger.error("State file failure: %s", exc)
        return 3


if __name__ == "__main__":
    sys.exit(main())
