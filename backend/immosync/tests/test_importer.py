import hashlib
import json
import shutil
import zipfile
from pathlib import Path

import httpx
import pytest
from sqlalchemy import select

from immosync.core.errors import ConfigurationError
from immosync.models import Asset, ContactPerson, Interface, InterfaceHistory, InterfaceMapping, RealEstate
from immosync.schemas.interface import SyncStatus
from immosync.schemas.sync import SyncRequest
from immosync.services.hooks import SyncHooks
from immosync.services.importer import RealEstateImporter

FIXTURES = Path(__file__).parent / "fixtures"
PLAN_IMAGE_MD5 = "33f96694d93babff1b257c8a463e9945"


def _history(db):
    return db.execute(select(InterfaceHistory).order_by(InterfaceHistory.id)).scalars().all()


def _listing_keys(db):
    return sorted(db.execute(select(RealEstate.objektnr_extern)).scalars().all())


def _zip_feed(files_root: Path, name: str = "export.zip", extra_xml: bool = False) -> str:
    with zipfile.ZipFile(files_root / "import" / name, "w") as zf:
        zf.write(FIXTURES / "openimmo_feed.xml", "openimmo.xml")
        for image in ("titelbild.jpg", "wohnzimmer.jpg", "grundriss.jpg"):
            zf.write(FIXTURES / image, image)
        if extra_xml:
            zf.writestr("nachtrag/openimmo_2.xml", "<openimmo/>")
    return f"import/{name}"


def test_sync_without_file_lists_candidates(db, settings, make_interface, stage_feed):
    interface = make_interface()
    stage_feed()

    view = RealEstateImporter(db, settings=settings).sync(interface.id)

    assert view.status is None
    assert [info.file for info in view.files] == ["import/openimmo_feed.xml"]
    assert view.files[0].status == SyncStatus.NOT_SYNCED
    assert _history(db) == []


def test_sync_imports_feed_end_to_end(db, settings, make_interface, stage_feed):
    interface = make_interface()
    source = stage_feed()

    view = RealEstateImporter(db, settings=settings).sync(interface.id, SyncRequest(file=source, username="admin"))

    assert view.status == SyncStatus.SUCCESS
    assert view.message == "File imported."
    assert _listing_keys(db) == ["OBJ-1", "OBJ-3"]

    listing = db.execute(select(RealEstate).where(RealEstate.objektnr_extern == "OBJ-1")).scalar_one()
    assert listing.kaufpreis == 250000.51
    assert listing.vermarktungsart_kauf is True
    assert listing.objekttitel == 'Helle Wohnung "Am Park" - ruhig gelegen...'
    assert db.execute(select(Asset.uuid).where(Asset.uuid == listing.title_image_src)).scalar_one()

    reference = db.execute(select(RealEstate).where(RealEstate.objektnr_extern == "OBJ-3")).scalar_one()
    assert reference.referenz is True
    assert {person.name for person in db.execute(select(ContactPerson)).scalars()} == {"Mustermann", "Musterfrau"}

    entry = _history(db)[0]
    assert (entry.source, entry.username, entry.status, entry.text) == (source, "admin", 1, "File imported.")
    assert db.get(Interface, interface.id).last_sync is not None
    assert view.files[0].user == "admin"
    assert view.files[0].status == SyncStatus.SUCCESS


def test_sync_is_idempotent_for_unchanged_feed(db, settings, make_interface, stage_feed):
    interface = make_interface()
    source = stage_feed()
    importer = RealEstateImporter(db, settings=settings)

    importer.sync(interface.id, SyncRequest(file=source))
    first = db.execute(select(RealEstate.title_image_src).where(RealEstate.objektnr_extern == "OBJ-1")).scalar_one()
    importer.sync(interface.id, SyncRequest(file=source))
    second = db.execute(select(RealEstate.title_image_src).where(RealEstate.objektnr_extern == "OBJ-1")).scalar_one()

    assert first == second
    assert _listing_keys(db) == ["OBJ-1", "OBJ-3"]
    assert len(db.execute(select(Asset)).scalars().all()) == 3
    assert [entry.status for entry in _history(db)] == [1, 1]


def test_sync_imports_archives_and_purges_scratch(db, settings, make_interface, files_root):
    interface = make_interface()
    source = _zip_feed(files_root)

    view = RealEstateImporter(db, settings=settings).sync(interface.id, SyncRequest(file=source))

    assert view.status == SyncStatus.SUCCESS
    assert _listing_keys(db) == ["OBJ-1", "OBJ-3"]
    assert (files_root / "files/immobilien/12345/OBJ-1/titelbild.jpg").is_file()
    assert not (files_root / "import" / "tmp").exists()
    assert _history(db)[0].source == source


def test_sync_rejects_archive_with_two_feeds_without_writing(db, settings, make_interface, files_root):
    interface = make_interface()
    source = _zip_feed(files_root, extra_xml=True)

    view = RealEstateImporter(db, settings=settings).sync(interface.id, SyncRequest(file=source))

    assert view.status == SyncStatus.FAILED
    assert "More than one OpenImmo file" in view.message
    assert _listing_keys(db) == []
    assert db.execute(select(ContactPerson)).scalars().all() == []
    assert db.get(Interface, interface.id).last_sync is None
    entry = _history(db)[0]
    assert entry.status == 3
    assert not (files_root / "import" / "tmp").exists()


def test_sync_records_failure_for_malformed_feed(db, settings, make_interface, files_root):
    interface = make_interface()
    (files_root / "import" / "kaputt.xml").write_text("<openimmo><anbieter>")

    view = RealEstateImporter(db, settings=settings).sync(interface.id, SyncRequest(file="import/kaputt.xml"))

    assert view.status == SyncStatus.FAILED
    assert _history(db)[0].status == 3
    assert any(message.level == "error" for message in view.messages)


def test_sync_rejects_files_outside_import_folder(db, settings, make_interface, files_root):
    interface = make_interface()
    (files_root / "files" / "fremd.xml").write_text("<openimmo/>")

    view = RealEstateImporter(db, settings=settings).sync(interface.id, SyncRequest(file="import/../files/fremd.xml"))

    assert view.status == SyncStatus.FAILED


def test_sync_marks_run_partial_when_listings_are_skipped(db, settings, make_interface, stage_feed):
    interface = make_interface(contact_person_actions=[])
    source = stage_feed()

    view = RealEstateImporter(db, settings=settings).sync(interface.id, SyncRequest(file=source))

    assert view.status == SyncStatus.PARTIAL
    assert view.message == "File partially imported."
    assert _history(db)[0].status == 2
    assert _listing_keys(db) == []


def test_sync_rolls_back_and_reraises_unexpected_errors(db, settings, make_interface, stage_feed):
    interface = make_interface()
    source = stage_feed()
    hooks = SyncHooks()

    def explode(real_estate, run):
        raise RuntimeError("boom")

    hooks.before_import.append(explode)

    with pytest.raises(RuntimeError):
        RealEstateImporter(db, settings=settings, hooks=hooks).sync(interface.id, SyncRequest(file=source))

    assert _listing_keys(db) == []
    assert [entry.status for entry in _history(db)] == [3]


def test_before_load_data_hook_aborts_without_history(db, settings, make_interface, stage_feed):
    interface = make_interface()
    source = stage_feed()
    hooks = SyncHooks()
    hooks.before_load_data.append(lambda run: True)

    view = RealEstateImporter(db, settings=settings, hooks=hooks).sync(interface.id, SyncRequest(file=source))

    assert view.status is None
    assert _history(db) == []
    assert _listing_keys(db) == []


def test_before_sync_hook_can_disable_sync_time_update(db, settings, make_interface, stage_feed):
    interface = make_interface()
    source = stage_feed()
    hooks = SyncHooks()
    hooks.before_sync.append(lambda run: setattr(run, "update_sync_time", False))

    view = RealEstateImporter(db, settings=settings, hooks=hooks).sync(interface.id, SyncRequest(file=source))

    assert view.status == SyncStatus.SUCCESS
    assert db.get(Interface, interface.id).last_sync is None


def test_initialize_reports_configuration_problems(db, settings, make_interface, files_root):
    importer = RealEstateImporter(db, settings=settings)
    assert importer.initialize(999) is False

    missing_folder = make_interface(import_path="nirgendwo")
    assert importer.initialize(missing_folder.id) is False
    assert importer.error == "Import folder does not exist."

    without_mappings = make_interface(mappings=[])
    assert importer.initialize(without_mappings.id) is False

    without_unique = make_interface(mappings=[{"attribute": "ort", "oi_field_group": "geo", "oi_field": "ort"}])
    assert importer.initialize(without_unique.id) is False

    broken = make_interface()
    db.add(InterfaceMapping(interface_id=broken.id, attribute="schuhgroesse", oi_field="groesse"))
    db.commit()
    assert importer.initialize(broken.id) is False
    assert "schuhgroesse" in importer.error

    with pytest.raises(ConfigurationError):
        importer.sync(broken.id)

    assert importer.initialize(make_interface().id) is True


def test_sync_sends_anonymized_records(db, settings, make_interface, stage_feed):
    captured = []

    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(json.loads(request.content))
        return httpx.Response(204)

    settings.send_anonymized_data = True
    settings.telemetry_url = "https://telemetry.example.com/collect"
    client = httpx.Client(transport=httpx.MockTransport(handler))
    interface = make_interface()

    RealEstateImporter(db, settings=settings, telemetry_client=client).sync(
        interface.id, SyncRequest(file=stage_feed())
    )

    payload = captured[0]
    assert payload["version"]
    records = {record["objektnr_extern"]: record for record in payload["records"]}
    assert set(records) == {"OBJ-1", "OBJ-2", "OBJ-3"}
    assert records["OBJ-1"]["kaufpreis"] == "250000.51"
    for record in payload["records"]:
        assert "objekttitel" not in record
        assert "image_src" not in record
        assert "title_image_src" not in record


def test_sync_ignores_telemetry_failures(db, settings, make_interface, stage_feed):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("unreachable", request=request)

    settings.send_anonymized_data = True
    settings.telemetry_url = "https://telemetry.example.com/collect"
    client = httpx.Client(transport=httpx.MockTransport(handler))
    interface = make_interface()

    view = RealEstateImporter(db, settings=settings, telemetry_client=client).sync(
        interface.id, SyncRequest(file=stage_feed())
    )

    assert view.status == SyncStatus.SUCCESS


def test_sync_after_rolled_back_run_restores_replaced_media(db, settings, make_interface, stage_feed, files_root):
    interface = make_interface()
    source = stage_feed()
    staged_plan = files_root / "import" / "grundriss.jpg"
    stored_plan = files_root / "files/immobilien/12345/OBJ-1/grundriss.jpg"
    RealEstateImporter(db, settings=settings).sync(interface.id, SyncRequest(file=source))

    hooks = SyncHooks()

    def explode(real_estate, run):
        raise RuntimeError("boom")

    hooks.before_import.append(explode)
    shutil.copyfile(FIXTURES / "wohnzimmer.jpg", staged_plan)
    with pytest.raises(RuntimeError):
        RealEstateImporter(db, settings=settings, hooks=hooks).sync(interface.id, SyncRequest(file=source))

    shutil.copyfile(FIXTURES / "grundriss.jpg", staged_plan)
    view = RealEstateImporter(db, settings=settings).sync(interface.id, SyncRequest(file=source))

    assert view.status == SyncStatus.SUCCESS
    asset = db.execute(select(Asset).where(Asset.path == "files/immobilien/12345/OBJ-1/grundriss.jpg")).scalar_one()
    assert asset.hash == hashlib.md5(stored_plan.read_bytes()).hexdigest() == PLAN_IMAGE_MD5
    listing = db.execute(select(RealEstate).where(RealEstate.objektnr_extern == "OBJ-1")).scalar_one()
    assert asset.uuid in json.loads(listing.image_src)
