"""Bundled sample entries used when no local cache exists yet."""

from __future__ import annotations

from core.models import GeoLocation, PhotoRecord, ShootingParameters

_UNSPLASH = "https://images.unsplash.com/{}?auto=format&fit=crop&q=80&w=1200"

SEED_PHOTOS: tuple[PhotoRecord, ...] = (
    PhotoRecord(
        id="1",
        url=_UNSPLASH.format("photo-1502602898657-3e91760cbb34"),
        title="Morning at the Eiffel Tower",
        description=(
            "Caught the first light of dawn hitting the iron structure. Simply breathtaking."
        ),
        captured_date="2024-03-15",
        location=GeoLocation(48.8584, 2.2945, "Paris, France", "France", "Europe"),
        tags=("landmark", "sunrise"),
        parameters=ShootingParameters("Sony A7R IV", "f/8.0", "1/200s", "100", "35mm"),
        owner_id="system",
        owner_name="Admin",
    ),
    PhotoRecord(
        id="2",
        url=_UNSPLASH.format("photo-1540959733332-eab4deabeeaf"),
        title="Shibuya Crossing",
        description="The organized chaos of Tokyo. A must-see spectacle.",
        captured_date="2024-04-10",
        location=GeoLocation(35.6595, 139.7005, "Tokyo, Japan", "Japan", "Asia"),
        tags=("city", "street"),
        parameters=ShootingParameters("Fujifilm X-T4", "f/2.8", "1/1000s", "400", "23mm"),
        owner_id="system",
        owner_name="Admin",
    ),
    PhotoRecord(
        id="3",
        url=_UNSPLASH.format("photo-1496442226666-8d4d0e62e6e9"),
        title="Central Park Pathways",
        description="A quiet escape in the middle of Manhattan.",
        captured_date="2023-11-20",
        location=GeoLocation(40.7829, -73.9654, "New York, USA", "USA", "North America"),
        tags=("nature", "autumn"),
        parameters=ShootingParameters("Canon EOS R5", "f/4.0", "1/500s", "200", "50mm"),
        owner_id="system",
        owner_name="Admin",
    ),
    PhotoRecord(
        id="4",
        url=_UNSPLASH.format("photo-1552832230-c0197dd311b5"),
        title="The Colosseum",
        description="Ancient history standing tall in modern Rome.",
        captured_date="2024-02-05",
        location=GeoLocation(41.8902, 12.4922, "Rome, Italy", "Italy", "Europe"),
        tags=("history", "architecture"),
        parameters=ShootingParameters("Leica Q2", "f/1.7", "1/2000s", "100", "28mm"),
        owner_id="system",
        owner_name="Admin",
    ),
)
