import logging
from typing import Any, Dict, Iterable, List, Optional

import httpx

from immosync import __version__
from immosync.core.config import Settings
from .records import TransientRecord

logger = logging.getLogger(__name__)

# Personal data and large texts never leave the installation.
REDACTED_FIELDS = {
    "anbieternr",
    "provider_id",
    "contact_person_id",
    "objekttitel",
    "objektbeschreibung",
    "ausstatt_beschr",
    "lage",
    "sonstige_angaben",
    "objekt_text",
    "dreizeiler",
    "image_src",
}
IMAGE_FIELD_SUFFIX = "_image_src"


def anonymize_record(record: TransientRecord) -> Dict[str, Any]:
    return {
        key: value
        for key, value in record.fields().items()
        if key not in REDACTED_FIELDS and not key.endswith(IMAGE_FIELD_SUFFIX)
    }


def anonymize_records(records: Iterable[TransientRecord]) -> List[Dict[str, Any]]:
    return [anonymize_record(record) for record in records]


def send_anonymized_records(
    settings: Settings,
    records: Iterable[TransientRecord],
    client: Optional[httpx.Client] = None,
) -> bool:
    """Post an anonymized copy of the listing batch, never raising on network errors."""
    if not settings.send_anonymized_data or not settings.telemetry_url:
        return False

    payload = {"version": __version__, "records": anonymize_records(records)}
    try:
        if client is None:
            response = httpx.post(settings.telemetry_url, json=payload, timeout=10)
        else:
            response = client.post(settings.telemetry_url, json=payload)
        response.raise_for_status()
    except httpx.HTTPError as exc:
        logger.debug("Failed to send anonymized records: %s", exc)
        return False
    return True
