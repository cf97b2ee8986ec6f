from __future__ import annotations

import argparse
import base64
from datetime import date
import json
import mimetypes
from pathlib import Path
import sys

from loguru import logger

from app.viewmodels.editor_vm import EditorVM
from app.viewmodels.main_vm import MainVM
from app.viewmodels.photo_vm import PhotoVM
from app.views.map_bridge import MapBridge
from app.views.task_runner import InlineRunner
from core.services.filter_service import parse_calendar_date
from core.services.interfaces import OperationResult, TaskRunnerProtocol
from core.services.spatial_service import ViewportTracker
from infrastructure.caption_service import DEFAULT_ENDPOINT, DEFAULT_MODEL, CaptionService
from infrastructure.exif_service import ExifService
from infrastructure.geocoding_service import GeocodingService
from infrastructure.json_cache import CACHE_FILE_NAME, JsonPhotoCache
from infrastructure.logging import find_latest_log_file, get_app_data_directory, init_logging
from infrastructure.persistence_queue import PersistenceQueue
from infrastructure.photo_store import LocalPhotoStore, RemotePhotoStore
from infrastructure.remote_store import RestRemoteStore
from infrastructure.settings import JsonSettings

BASE_DIR = Path(__file__).parent


def load_settings(path: str | None) -> JsonSettings:
    settings_path = Path(path) if path else BASE_DIR / "settings.json"
    if settings_path.exists():
        return JsonSettings(settings_path)
    logger.info("No settings file at {}, using defaults", settings_path)
    return JsonSettings.from_defaults()


def build_store(settings: JsonSettings) -> tuple[LocalPhotoStore, PersistenceQueue]:
    """Local-only store, or the remote-backed one when `remote.enabled` and a URL is set."""
    cache_path = settings.get("cache.path") or str(get_app_data_directory() / CACHE_FILE_NAME)
    cache = JsonPhotoCache(Path(cache_path).expanduser())
    writer = PersistenceQueue(cache.write)
    url = settings.get("remote.url", "")
    if settings.get_bool("remote.enabled") and url:
        remote = RestRemoteStore(
            url,
            settings.get("remote.key", ""),
            table=settings.get("remote.table", "photos"),
            bucket=settings.get("remote.bucket", "photos"),
            timeout=settings.get_float("remote.timeout", 15.0),
        )
        logger.info("Using remote-backed store at {}", url)
        return RemotePhotoStore(remote, cache, writer), writer
    return LocalPhotoStore(cache, writer), writer


def build_tracker(settings: JsonSettings) -> ViewportTracker:
    return ViewportTracker(
        neighborhood_zoom=settings.get_int("map.neighborhood_zoom", 10),
        max_zoom=settings.get_int("map.max_zoom", 12),
        padding=settings.get_int("map.padding", 50),
    )


def build_geocoder(settings: JsonSettings) -> GeocodingService:
    return GeocodingService(
        user_agent=settings.get("geocoding.user_agent", "geosnap-journal"),
        timeout=settings.get_float("geocoding.timeout", 5.0),
    )


def build_captioner(settings: JsonSettings) -> CaptionService:
    return CaptionService(
        settings.get("caption.key", ""),
        model=settings.get("caption.model") or DEFAULT_MODEL,
        endpoint=settings.get("caption.endpoint") or DEFAULT_ENDPOINT,
        timeout=settings.get_float("caption.timeout", 20.0),
    )


def build_editor(
    vm: MainVM, settings: JsonSettings, runner: TaskRunnerProtocol | None = None
) -> EditorVM:
    """Add/edit form wired to metadata extraction, geocoding and captions."""
    return EditorVM(
        vm,
        runner or InlineRunner(),
        extractor=ExifService(),
        geocoder=build_geocoder(settings),
        captioner=build_captioner(settings),
        language=settings.get("ui.language", "en"),
    )


def image_data_uri(path: Path) -> tuple[str, bytes]:
    data = path.read_bytes()
    content_type = mimetypes.guess_type(path.name)[0] or "image/jpeg"
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{content_type};base64,{encoded}", data


def add_from_file(
    editor: EditorVM, path: Path, *, title: str, place: str = "", notes: str = ""
) -> OperationResult:
    """Run the add form for an image file: metadata, place lookup, caption, save."""
    url, data = image_data_uri(path)
    editor.open_new()
    editor.set_image(url, data)
    editor.update_fields(title=title, description=notes)
    if place:
        editor.update_fields(location_name=place)
    else:
        editor.request_geocode()
    if not notes:
        editor.request_caption()
    result = editor.submit()
    if not result.ok:
        editor.close()
    return result


def print_exif(path: str) -> int:
    meta = ExifService().extract(path)
    if meta is None:
        print("No metadata")
        return 1
    for name, value in vars(meta).items():
        if value is not None:
            print(f"{name}: {value}")
    return 0


def print_markers(vm: MainVM) -> None:
    bridge = MapBridge(vm)
    bridge.markersChanged.connect(
        lambda markers: print(json.dumps(markers, ensure_ascii=False, indent=2))
    )
    bridge.refresh()


def _parse_date_arg(value: str) -> date:
    parsed = parse_calendar_date(value)
    if parsed is None:
        raise argparse.ArgumentTypeError(f"not an ISO date: {value}")
    return parsed


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Browse the GeoSnap photo journal.")
    parser.add_argument("--settings", help="Path to settings.json")
    parser.add_argument("--search", default="", help="Text matched against title, place, tags")
    parser.add_argument("--region", help="Region to browse")
    parser.add_argument("--country", help="Country inside --region")
    parser.add_argument("--from", dest="start", type=_parse_date_arg, help="Earliest date")
    parser.add_argument("--to", dest="end", type=_parse_date_arg, help="Latest date")
    parser.add_argument(
        "--geocode", nargs=2, type=float, metavar=("LAT", "LNG"), help="Look up a place name"
    )
    parser.add_argument("--caption", metavar="PLACE", help="Suggest a caption for a place")
    parser.add_argument("--exif", metavar="PATH", help="Print the metadata read from an image")
    parser.add_argument("--add", metavar="PATH", help="Add an image file to the journal")
    parser.add_argument("--title", default="", help="Title for --add")
    parser.add_argument("--place", default="", help="Location name for --add (else looked up)")
    parser.add_argument("--notes", default="", help="Description for --add (else suggested)")
    parser.add_argument("--markers", action="store_true", help="Print map markers as JSON")
    parser.add_argument("--log-path", action="store_true", help="Print the latest log file")
    return parser.parse_args(argv)


def print_summary(vm: MainVM) -> None:
    counts = vm.region_counts
    print(f"All regions ({len(vm.photos)})")
    for region, countries in vm.hierarchy.items():
        print(f"  {region} ({counts.get(region, 0)}): {', '.join(sorted(countries))}")
    filtered = vm.filtered
    print(f"\n{len(filtered)} captures, {vm.location_count} locations")
    for group in vm.groups:
        print(f"  [{group.lat:.3f}, {group.lng:.3f}] {group.name}: {len(group.photos)}")
        for photo in group.photos:
            display = PhotoVM(photo)
            print(f"      {display.display_date}  {photo.title}  ({display.camera})")
    unmapped = len(filtered) - sum(len(g.photos) for g in vm.groups)
    if unmapped:
        print(f"  ({unmapped} without a valid location)")


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    settings = load_settings(args.settings)
    init_logging(
        settings.get("logging.dir"), console=True, level=settings.get("logging.level", "INFO")
    )

    if args.log_path:
        latest = find_latest_log_file(settings.get("logging.dir"))
        print(latest or "No log file yet")
        return 0

    if args.geocode:
        result = build_geocoder(settings).reverse(*args.geocode)
        print(f"{result.name} ({result.country}, {result.region})" if result else "No match")
        return 0 if result else 1
    if args.exif:
        return print_exif(args.exif)
    if args.caption:
        print(build_captioner(settings).generate(args.caption, args.search))
        return 0

    store, writer = build_store(settings)
    vm = MainVM(store, build_tracker(settings))
    vm.load()
    if args.add:
        try:
            result = add_from_file(
                build_editor(vm, settings),
                Path(args.add),
                title=args.title,
                place=args.place,
                notes=args.notes,
            )
        except OSError as ex:
            logger.error("Cannot read {}: {}", args.add, ex)
            print(f"Cannot read {args.add}: {ex}")
            writer.wait_for_done()
            return 1
        print(result.message)
        if not result.ok:
            writer.wait_for_done()
            return 1

    if args.region:
        vm.select_region(args.region)
        if args.country:
            vm.select_country(args.country)
    vm.set_search(args.search)
    vm.set_date_range(args.start, args.end)
    if args.markers:
        print_markers(vm)
    else:
        print_summary(vm)

    writer.wait_for_done()
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
