import json

from xml.etree import ElementTree as ET

from immosync.services.resolver import find_groups, resolve_field
from immosync.services.selectors import parse_selector

LISTING = ET.fromstring(
    """
    <immobilie>
      <objektkategorie>
        <nutzungsart WOHNEN="true" GEWERBE="false" ANLAGE="1"/>
        <vermarktungsart KAUF="true" MIETE_PACHT="false"/>
        <objektart><wohnung wohnungtyp="ETAGE"/><zimmer/></objektart>
      </objektkategorie>
      <preise>
        <kaufpreis>  250000  </kaufpreis>
      </preise>
      <anhaenge>
        <anhang gruppe="BILD"><daten><pfad>a.jpg</pfad></daten></anhang>
        <anhang gruppe="BILD"><daten><pfad>b.jpg</pfad></daten></anhang>
        <anhang gruppe="BILD"><daten><pfad>c.jpg</pfad></daten></anhang>
      </anhaenge>
      <bilder><bild>x.jpg</bild><bild>y.jpg</bild><bild>z.jpg</bild></bilder>
    </immobilie>
    """
)


def _resolve(group_path, field):
    groups = find_groups(LISTING, group_path)
    return resolve_field(groups[0] if groups else None, parse_selector(field))


def test_resolve_field_returns_none_for_missing_nodes():
    assert _resolve("preise", "kaltmiete") is None
    assert _resolve("flaechen", "wohnflaeche") is None


def test_resolve_field_trims_single_value():
    assert _resolve("preise", "kaufpreis") == "250000"


def test_resolve_field_serializes_multiple_nodes():
    assert json.loads(_resolve("bilder", "bild")) == ["x.jpg", "y.jpg", "z.jpg"]


def test_resolve_field_attribute_modes():
    assert json.loads(_resolve("objektkategorie", "vermarktungsart@*")) == {"KAUF": "true", "MIETE_PACHT": "false"}
    assert _resolve("objektkategorie", "vermarktungsart@+") == "KAUF"
    assert _resolve("objektkategorie", "nutzungsart@+") == "ANLAGE"
    assert json.loads(_resolve("objektkategorie", "nutzungsart@#")) == ["WOHNEN", "ANLAGE"]
    assert _resolve("objektkategorie", "vermarktungsart@KAUF") == "true"
    assert _resolve("objektkategorie", "vermarktungsart@LEASING") is None


def test_resolve_field_nth_child_name():
    assert _resolve("objektkategorie", "objektart@[1]") == "wohnung"
    assert _resolve("objektkategorie", "objektart@[2]") == "zimmer"
    assert _resolve("objektkategorie", "objektart@[3]") is None


def test_resolve_field_navigates_nested_paths_per_group():
    groups = find_groups(LISTING, "anhaenge/anhang")
    selector = parse_selector("daten/pfad")
    assert [resolve_field(group, selector) for group in groups] == ["a.jpg", "b.jpg", "c.jpg"]
    assert resolve_field(groups[0], parse_selector("@gruppe")) == "BILD"


def test_find_groups_defaults_to_listing():
    assert find_groups(LISTING, "") == [LISTING]
    assert find_groups(LISTING, "unbekannt") == []
