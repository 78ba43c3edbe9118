from alembic import op
import sqlalchemy as sa

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "providers",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("anbieternr", sa.String(), nullable=False, unique=True),
        sa.Column("firma", sa.String()),
        sa.Column("openimmo_anid", sa.String()),
        sa.Column("lizenzkennung", sa.String()),
        sa.Column("tstamp", sa.DateTime()),
    )
    op.create_table(
        "contact_persons",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("provider_id", sa.Integer(), sa.ForeignKey("providers.id"), nullable=False),
        sa.Column("personennummer", sa.String()),
        sa.Column("anrede", sa.String()),
        sa.Column("titel", sa.String()),
        sa.Column("vorname", sa.String()),
        sa.Column("name", sa.String()),
        sa.Column("firma", sa.String()),
        sa.Column("position", sa.String()),
        sa.Column("strasse", sa.String()),
        sa.Column("hausnummer", sa.String()),
        sa.Column("plz", sa.String()),
        sa.Column("ort", sa.String()),
        sa.Column("land", sa.String()),
        sa.Column("email_zentrale", sa.String()),
        sa.Column("email_direkt", sa.String()),
        sa.Column("tel_zentrale", sa.String()),
        sa.Column("tel_durchw", sa.String()),
        sa.Column("tel_handy", sa.String()),
        sa.Column("tel_fax", sa.String()),
        sa.Column("foto", sa.Text()),
        sa.Column("published", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("tstamp", sa.DateTime()),
    )
    op.create_table(
        "real_estates",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("provider_id", sa.Integer(), sa.ForeignKey("providers.id")),
        sa.Column("contact_person_id", sa.Integer(), sa.ForeignKey("contact_persons.id")),
        sa.Column("anbieternr", sa.String()),
        sa.Column("objektnr_intern", sa.String()),
        sa.Column("objektnr_extern", sa.String()),
        sa.Column("openimmo_obid", sa.String()),
        sa.Column("objekttitel", sa.String()),
        sa.Column("dreizeiler", sa.Text()),
        sa.Column("objektbeschreibung", sa.Text()),
        sa.Column("lage", sa.Text()),
        sa.Column("ausstatt_beschr", sa.Text()),
        sa.Column("sonstige_angaben", sa.Text()),
        sa.Column("objekt_text", sa.Text()),
        sa.Column("vermarktungsart_kauf", sa.Boolean(), server_default=sa.false()),
        sa.Column("vermarktungsart_miete_pacht", sa.Boolean(), server_default=sa.false()),
        sa.Column("vermarktungsart_erbpacht", sa.Boolean(), server_default=sa.false()),
        sa.Column("vermarktungsart_leasing", sa.Boolean(), server_default=sa.false()),
        sa.Column("nutzungsart", sa.Text()),
        sa.Column("objektart", sa.String()),
        sa.Column("objektart_detail", sa.String()),
        sa.Column("strasse", sa.String()),
        sa.Column("hausnummer", sa.String()),
        sa.Column("plz", sa.String()),
        sa.Column("ort", sa.String()),
        sa.Column("land", sa.String()),
        sa.Column("breitengrad", sa.Float()),
        sa.Column("laengengrad", sa.Float()),
        sa.Column("waehrung", sa.String(), server_default="EUR"),
        sa.Column("kaufpreis", sa.Float()),
        sa.Column("kaltmiete", sa.Float()),
        sa.Column("warmmiete", sa.Float()),
        sa.Column("nebenkosten", sa.Float()),
        sa.Column("kaution", sa.Float()),
        sa.Column("wohnflaeche", sa.Float()),
        sa.Column("nutzflaeche", sa.Float()),
        sa.Column("grundstuecksflaeche", sa.Float()),
        sa.Column("anzahl_zimmer", sa.Float()),
        sa.Column("anzahl_schlafzimmer", sa.Integer()),
        sa.Column("anzahl_badezimmer", sa.Integer()),
        sa.Column("baujahr", sa.String()),
        sa.Column("heizungsart", sa.Text()),
        sa.Column("verfuegbar_ab", sa.Integer()),
        sa.Column("title_image_src", sa.String()),
        sa.Column("image_src", sa.Text()),
        sa.Column("plan_image_src", sa.Text()),
        sa.Column("interior_view_image_src", sa.Text()),
        sa.Column("exterior_view_image_src", sa.Text()),
        sa.Column("map_view_image_src", sa.Text()),
        sa.Column("panorama_image_src", sa.Text()),
        sa.Column("epass_skala_image_src", sa.Text()),
        sa.Column("logo_image_src", sa.String()),
        sa.Column("qr_image_src", sa.String()),
        sa.Column("referenz", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("published", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("date_added", sa.DateTime(), nullable=False),
        sa.Column("tstamp", sa.DateTime()),
    )
    op.create_index("ix_real_estates_objektnr_intern", "real_estates", ["objektnr_intern"])
    op.create_index("ix_real_estates_objektnr_extern", "real_estates", ["objektnr_extern"])
    op.create_index("ix_real_estates_openimmo_obid", "real_estates", ["openimmo_obid"])
    op.create_table(
        "assets",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("uuid", sa.String(length=36), nullable=False, unique=True),
        sa.Column("path", sa.String(), nullable=False, unique=True),
        sa.Column("hash", sa.String(length=32), nullable=False),
        sa.Column("size", sa.Integer(), nullable=False),
        sa.Column("title", sa.String()),
        sa.Column("alt", sa.String()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime()),
    )
    op.create_table(
        "interfaces",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("type", sa.String(), nullable=False, server_default="openimmo"),
        sa.Column("provider_id", sa.Integer(), sa.ForeignKey("providers.id"), nullable=False),
        sa.Column("anbieternr", sa.String(), nullable=False),
        sa.Column("unique_field", sa.String(), nullable=False, server_default="objektnr_extern"),
        sa.Column("unique_provider_field", sa.String(), nullable=False, server_default="anbieternr"),
        sa.Column("import_third_party_records", sa.String(), nullable=False, server_default="own"),
        sa.Column("dont_publish_records", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("skip_records", sa.JSON()),
        sa.Column("contact_person_actions", sa.JSON()),
        sa.Column("contact_person_unique_field", sa.String(), nullable=False, server_default="name_vorname"),
        sa.Column("assign_contact_person_kauf", sa.Integer(), sa.ForeignKey("contact_persons.id")),
        sa.Column("assign_contact_person_miete_pacht", sa.Integer(), sa.ForeignKey("contact_persons.id")),
        sa.Column("assign_contact_person_erbpacht", sa.Integer(), sa.ForeignKey("contact_persons.id")),
        sa.Column("assign_contact_person_leasing", sa.Integer(), sa.ForeignKey("contact_persons.id")),
        sa.Column("import_path", sa.String()),
        sa.Column("files_path", sa.String()),
        sa.Column("files_path_contact_person", sa.String()),
        sa.Column("last_sync", sa.DateTime()),
    )
    op.create_table(
        "interface_mappings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("interface_id", sa.Integer(), sa.ForeignKey("interfaces.id"), nullable=False),
        sa.Column("sorting", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("type", sa.String(), nullable=False, server_default="real_estate"),
        sa.Column("attribute", sa.String(), nullable=False),
        sa.Column("oi_field_group", sa.String(), nullable=False, server_default=""),
        sa.Column("oi_field", sa.String(), nullable=False, server_default=""),
        sa.Column("oi_condition_field", sa.String()),
        sa.Column("oi_condition_value", sa.String()),
        sa.Column("force_active", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("force_value", sa.String()),
        sa.Column("format_type", sa.String()),
        sa.Column("decimals", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("text_transform", sa.String()),
        sa.Column("trim", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("boolean_compare_value", sa.String()),
        sa.Column("save_image", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("serialize", sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    op.create_table(
        "interface_history",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("interface_id", sa.Integer(), sa.ForeignKey("interfaces.id"), nullable=False),
        sa.Column("tstamp", sa.DateTime(), nullable=False),
        sa.Column("source", sa.String(), nullable=False),
        sa.Column("action", sa.String(), server_default=""),
        sa.Column("username", sa.String()),
        sa.Column("text", sa.String()),
        sa.Column("status", sa.Integer(), nullable=False, server_default="0"),
    )
    op.create_index("ix_interface_history_interface_id", "interface_history", ["interface_id"])


def downgrade() -> None:
    op.drop_index("ix_interface_history_interface_id", table_name="interface_history")
    op.drop_table("interface_history")
    op.drop_table("interface_mappings")
    op.drop_table("interfaces")
    op.drop_table("assets")
    op.drop_index("ix_real_estates_openimmo_obid", table_name="real_estates")
    op.drop_index("ix_real_estates_objektnr_extern", table_name="real_estates")
    op.drop_index("ix_real_estates_objektnr_intern", table_name="real_estates")
    op.drop_table("real_estates")
    op.drop_table("contact_persons")
    op.drop_table("providers")
