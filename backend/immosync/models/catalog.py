import datetime as dt
import uuid

from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from immosync.db.base import Base


class Provider(Base):
    __tablename__ = "providers"

    id = Column(Integer, primary_key=True)
    anbieternr = Column(String, unique=True, nullable=False)
    firma = Column(String)
    openimmo_anid = Column(String)
    lizenzkennung = Column(String)
    tstamp = Column(DateTime, default=dt.datetime.utcnow, onupdate=dt.datetime.utcnow)

    contact_persons = relationship("ContactPerson", back_populates="provider")


class ContactPerson(Base):
    __tablename__ = "contact_persons"

    id = Column(Integer, primary_key=True)
    provider_id = Column(Integer, ForeignKey("providers.id"), nullable=False)
    personennummer = Column(String)
    anrede = Column(String)
    titel = Column(String)
    vorname = Column(String)
    name = Column(String)
    firma = Column(String)
    position = Column(String)
    strasse = Column(String)
    hausnummer = Column(String)
    plz = Column(String)
    ort = Column(String)
    land = Column(String)
    email_zentrale = Column(String)
    email_direkt = Column(String)
    tel_zentrale = Column(String)
    tel_durchw = Column(String)
    tel_handy = Column(String)
    tel_fax = Column(String)
    foto = Column(Text)
    published = Column(Boolean, default=False, nullable=False)
    tstamp = Column(DateTime, default=dt.datetime.utcnow, onupdate=dt.datetime.utcnow)

    provider = relationship("Provider", back_populates="contact_persons")


class RealEstate(Base):
    __tablename__ = "real_estates"

    id = Column(Integer, primary_key=True)
    provider_id = Column(Integer, ForeignKey("providers.id"))
    contact_person_id = Column(Integer, ForeignKey("contact_persons.id"))
    anbieternr = Column(String)

    objektnr_intern = Column(String, index=True)
    objektnr_extern = Column(String, index=True)
    openimmo_obid = Column(String, index=True)
    objekttitel = Column(String)
    dreizeiler = Column(Text)
    objektbeschreibung = Column(Text)
    lage = Column(Text)
    ausstatt_beschr = Column(Text)
    sonstige_angaben = Column(Text)
    objekt_text = Column(Text)

    vermarktungsart_kauf = Column(Boolean, default=False)
    vermarktungsart_miete_pacht = Column(Boolean, default=False)
    vermarktungsart_erbpacht = Column(Boolean, default=False)
    vermarktungsart_leasing = Column(Boolean, default=False)
    nutzungsart = Column(Text)
    objektart = Column(String)
    objektart_detail = Column(String)

    strasse = Column(String)
    hausnummer = Column(String)
    plz = Column(String)
    ort = Column(String)
    land = Column(String)
    breitengrad = Column(Float)
    laengengrad = Column(Float)

    waehrung = Column(String, default="EUR")
    kaufpreis = Column(Float)
    kaltmiete = Column(Float)
    warmmiete = Column(Float)
    nebenkosten = Column(Float)
    kaution = Column(Float)

    wohnflaeche = Column(Float)
    nutzflaeche = Column(Float)
    grundstuecksflaeche = Column(Float)
    anzahl_zimmer = Column(Float)
    anzahl_schlafzimmer = Column(Integer)
    anzahl_badezimmer = Column(Integer)
    baujahr = Column(String)
    heizungsart = Column(Text)
    verfuegbar_ab = Column(Integer)

    title_image_src = Column(String)
    image_src = Column(Text)
    plan_image_src = Column(Text)
    interior_view_image_src = Column(Text)
    exterior_view_image_src = Column(Text)
    map_view_image_src = Column(Text)
    panorama_image_src = Column(Text)
    epass_skala_image_src = Column(Text)
    logo_image_src = Column(String)
    qr_image_src = Column(String)

    referenz = Column(Boolean, default=False, nullable=False)
    published = Column(Boolean, default=False, nullable=False)
    date_added = Column(DateTime, default=dt.datetime.utcnow, nullable=False)
    tstamp = Column(DateTime, default=dt.datetime.utcnow, onupdate=dt.datetime.utcnow)

    provider = relationship("Provider")
    contact_person = relationship("ContactPerson")


class Asset(Base):
    __tablename__ = "assets"

    id = Column(Integer, primary_key=True)
    uuid = Column(String(36), unique=True, nullable=False, default=lambda: str(uuid.uuid4()))
    path = Column(String, unique=True, nullable=False)
    hash = Column(String(32), nullable=False)
    size = Column(Integer, nullable=False)
    title = Column(String)
    alt = Column(String)
    created_at = Column(DateTime, default=dt.datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=dt.datetime.utcnow, onupdate=dt.datetime.utcnow)
