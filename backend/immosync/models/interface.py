import datetime as dt

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from immosync.db.base import Base


class Interface(Base):
    __tablename__ = "interfaces"

    id = Column(Integer, primary_key=True)
    title = Column(String, nullable=False)
    type = Column(String, default="openimmo", nullable=False)
    provider_id = Column(Integer, ForeignKey("providers.id"), nullable=False)
    anbieternr = Column(String, nullable=False)

    unique_field = Column(String, default="objektnr_extern", nullable=False)
    unique_provider_field = Column(String, default="anbieternr", nullable=False)
    import_third_party_records = Column(String, default="own", nullable=False)
    dont_publish_records = Column(Boolean, default=False, nullable=False)
    skip_records = Column(JSON, default=list)

    contact_person_actions = Column(JSON, default=list)
    contact_person_unique_field = Column(String, default="name_vorname", nullable=False)
    assign_contact_person_kauf = Column(Integer, ForeignKey("contact_persons.id"))
    assign_contact_person_miete_pacht = Column(Integer, ForeignKey("contact_persons.id"))
    assign_contact_person_erbpacht = Column(Integer, ForeignKey("contact_persons.id"))
    assign_contact_person_leasing = Column(Integer, ForeignKey("contact_persons.id"))

    import_path = Column(String)
    files_path = Column(String)
    files_path_contact_person = Column(String)

    last_sync = Column(DateTime)

    provider = relationship("Provider")
    mappings = relationship("InterfaceMapping", back_populates="interface", order_by="InterfaceMapping.sorting")


class InterfaceMapping(Base):
    __tablename__ = "interface_mappings"

    id = Column(Integer, primary_key=True)
    interface_id = Column(Integer, ForeignKey("interfaces.id"), nullable=False)
    sorting = Column(Integer, default=0, nullable=False)

    type = Column(String, default="real_estate", nullable=False)
    attribute = Column(String, nullable=False)
    oi_field_group = Column(String, default="", nullable=False)
    oi_field = Column(String, default="", nullable=False)

    oi_condition_field = Column(String)
    oi_condition_value = Column(String)
    force_active = Column(Boolean, default=False, nullable=False)
    force_value = Column(String)

    format_type = Column(String)
    decimals = Column(Integer, default=0, nullable=False)
    text_transform = Column(String)
    trim = Column(Boolean, default=False, nullable=False)
    boolean_compare_value = Column(String)

    save_image = Column(Boolean, default=False, nullable=False)
    serialize = Column(Boolean, default=False, nullable=False)

    interface = relationship("Interface", back_populates="mappings")


class InterfaceHistory(Base):
    __tablename__ = "interface_history"

    id = Column(Integer, primary_key=True)
    interface_id = Column(Integer, ForeignKey("interfaces.id"), nullable=False)
    tstamp = Column(DateTime, default=dt.datetime.utcnow, nullable=False)
    source = Column(String, nullable=False)
    action = Column(String, default="")
    username = Column(String)
    text = Column(String)
    status = Column(Integer, default=0, nullable=False)
