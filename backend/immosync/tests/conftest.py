import shutil
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from immosync.core.config import Settings
from immosync.db.base import Base
from immosync.models import Interface, InterfaceMapping, Provider

FIXTURES = Path(__file__).parent / "fixtures"
FEED = "openimmo_feed.xml"
IMAGES = ("titelbild.jpg", "wohnzimmer.jpg", "grundriss.jpg")

IMPORT_PATH = "import"
FILES_PATH = "files/immobilien"

LISTING_MAPPINGS = [
    {"attribute": "objektnr_extern", "oi_field_group": "verwaltung_techn", "oi_field": "objektnr_extern"},
    {"attribute": "objektnr_intern", "oi_field_group": "verwaltung_techn", "oi_field": "objektnr_intern"},
    {
        "attribute": "objekttitel",
        "oi_field_group": "freitexte",
        "oi_field": "objekttitel",
        "format_type": "text",
        "text_transform": "removespecialchar",
    },
    {
        "attribute": "vermarktungsart_kauf",
        "oi_field_group": "objektkategorie",
        "oi_field": "vermarktungsart@KAUF",
        "format_type": "boolean",
    },
    {
        "attribute": "vermarktungsart_miete_pacht",
        "oi_field_group": "objektkategorie",
        "oi_field": "vermarktungsart@MIETE_PACHT",
        "format_type": "boolean",
    },
    {"attribute": "nutzungsart", "oi_field_group": "objektkategorie", "oi_field": "nutzungsart@#"},
    {"attribute": "objektart", "oi_field_group": "objektkategorie", "oi_field": "objektart@[1]"},
    {"attribute": "ort", "oi_field_group": "geo", "oi_field": "ort"},
    {
        "attribute": "breitengrad",
        "oi_field_group": "geo",
        "oi_field": "geokoordinaten@breitengrad",
        "format_type": "number",
        "decimals": 4,
    },
    {
        "attribute": "kaufpreis",
        "oi_field_group": "preise",
        "oi_field": "kaufpreis",
        "format_type": "number",
        "decimals": 2,
    },
    {"attribute": "waehrung", "oi_field_group": "preise", "oi_field": "waehrung@iso_waehrung"},
    {"attribute": "wohnflaeche", "oi_field_group": "flaechen", "oi_field": "wohnflaeche", "format_type": "number"},
    {
        "attribute": "anzahl_zimmer",
        "oi_field_group": "flaechen",
        "oi_field": "anzahl_zimmer",
        "format_type": "number",
    },
    {
        "attribute": "title_image_src",
        "oi_field_group": "anhaenge/anhang",
        "oi_field": "daten/pfad",
        "oi_condition_field": "@gruppe",
        "oi_condition_value": "TITELBILD",
        "save_image": True,
    },
    {
        "attribute": "image_src",
        "oi_field_group": "anhaenge/anhang",
        "oi_field": "daten/pfad",
        "oi_condition_field": "@gruppe",
        "oi_condition_value": "BILD|GRUNDRISS",
        "save_image": True,
        "serialize": True,
    },
]

CONTACT_MAPPINGS = [
    {"type": "contact_person", "attribute": "name", "oi_field_group": "kontaktperson", "oi_field": "name"},
    {"type": "contact_person", "attribute": "vorname", "oi_field_group": "kontaktperson", "oi_field": "vorname"},
    {
        "type": "contact_person",
        "attribute": "email_direkt",
        "oi_field_group": "kontaktperson",
        "oi_field": "email_direkt",
    },
]

DEFAULT_MAPPINGS = LISTING_MAPPINGS + CONTACT_MAPPINGS


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    with Session(engine, expire_on_commit=False) as session:
        yield session


@pytest.fixture
def files_root(tmp_path) -> Path:
    root = tmp_path / "files_root"
    (root / IMPORT_PATH).mkdir(parents=True)
    (root / FILES_PATH).mkdir(parents=True)
    return root


@pytest.fixture
def settings(files_root) -> Settings:
    return Settings(
        files_root=files_root,
        database_url="sqlite://",
        redis_url="redis://localhost:6379/15",
        send_anonymized_data=False,
        telemetry_url=None,
    )


@pytest.fixture
def provider(db) -> Provider:
    provider = Provider(anbieternr="12345", firma="Muster Immobilien GmbH")
    db.add(provider)
    db.commit()
    return provider


@pytest.fixture
def make_interface(db, provider):
    def factory(mappings=None, **overrides) -> Interface:
        values = {
            "title": "Muster Immobilien",
            "provider_id": provider.id,
            "anbieternr": provider.anbieternr,
            "unique_field": "objektnr_extern",
            "contact_person_actions": ["create", "update"],
            "import_path": IMPORT_PATH,
            "files_path": FILES_PATH,
        }
        values.update(overrides)
        interface = Interface(**values)
        db.add(interface)
        db.flush()
        for sorting, mapping in enumerate(DEFAULT_MAPPINGS if mappings is None else mappings):
            db.add(InterfaceMapping(interface_id=interface.id, sorting=(sorting + 1) * 10, **mapping))
        db.commit()
        return interface

    return factory


@pytest.fixture
def stage_feed(files_root):
    """Copy the feed and its images into the import folder and return the feed's logical path."""

    def stage(name: str = FEED, with_images: bool = True) -> str:
        import_dir = files_root / IMPORT_PATH
        shutil.copyfile(FIXTURES / FEED, import_dir / name)
        if with_images:
            for image in IMAGES:
                shutil.copyfile(FIXTURES / image, import_dir / image)
        return f"{IMPORT_PATH}/{name}"

    return stage
