import hashlib
import logging
import re
import shutil
import uuid
from pathlib import Path, PurePosixPath
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session
from xml.etree import ElementTree as ET

from immosync.connectors.openimmo import child_text
from immosync.core.config import Settings
from immosync.models.catalog import Asset
from immosync.schemas.interface import MappingRule, RecordKind
from .hooks import SaveImageContext, SyncHooks, SyncRun

logger = logging.getLogger(__name__)

MD5_PATTERN = re.compile(r"^[a-f0-9]{32}$")
CHECKSUM_TAG = "check"
CAPTION_TAG = "anhangtitel"


def md5_file(path: Path, chunk_size: int = 65536) -> str:
    digest = hashlib.md5()
    with path.open("rb") as handle:
        for chunk in iter(lambda: handle.read(chunk_size), b""):
            digest.update(chunk)
    return digest.hexdigest()


def valid_checksum(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    value = value.strip().lower()
    return value if MD5_PATTERN.match(value) else None


def safe_relative(name: str) -> Optional[PurePosixPath]:
    """Return ``name`` as a relative path, or ``None`` if it leaves its folder."""
    path = PurePosixPath(name.replace("\\", "/"))
    if not name or path.is_absolute() or ".." in path.parts:
        return None
    return path


class AssetManager:
    """Stages listing media into the asset store.

    Assets are addressed by logical paths relative to ``Settings.files_root``.
    An asset whose stored hash matches the incoming content is reused, any
    other content at the same path replaces it under a new uuid.
    """

    def __init__(self, db: Session, settings: Settings, hooks: SyncHooks, run: SyncRun) -> None:
        self.db = db
        self.settings = settings
        self.hooks = hooks
        self.run = run
        self.files_root = Path(settings.files_root)

    def target_folder(self, kind: RecordKind) -> str:
        interface = self.run.interface
        if kind is RecordKind.CONTACT_PERSON and interface.files_path_contact_person:
            return interface.files_path_contact_person
        return interface.files_path or ""

    def find_by_path(self, path: str) -> Optional[Asset]:
        return self.db.execute(select(Asset).where(Asset.path == path)).scalars().first()

    def resolve_asset(
        self,
        rule: MappingRule,
        group: ET.Element,
        file_name: str,
        provider_key: str,
        listing_key: Optional[str],
        staging_dir: Path,
        values: List,
    ) -> Optional[str]:
        checksum = valid_checksum(child_text(group, CHECKSUM_TAG))

        ctx = self.hooks.fire_save_image(
            SaveImageContext(
                rule=rule,
                group=group,
                file_name=file_name,
                target_folder=self.target_folder(rule.kind),
                values=values,
                run=self.run,
            )
        )
        if ctx.skip:
            self.run.logger.debug("Skipped image by hook", {"file": ctx.file_name})
            return None

        relative_name = safe_relative(ctx.file_name)
        if relative_name is None:
            self.run.logger.info("Image path is not allowed", {"file": ctx.file_name})
            return None

        source = staging_dir / relative_name
        if not source.is_file():
            self.run.logger.info("Image could not be found", {"file": ctx.file_name})
            return None

        size = source.stat().st_size
        if size == 0 or size > self.settings.max_asset_size:
            self.run.logger.info(
                "Image was skipped because of its file size", {"file": ctx.file_name, "size": size}
            )
            return None

        segments = [ctx.target_folder, provider_key]
        if rule.kind is RecordKind.LISTING and listing_key:
            segments.append(listing_key)
        folder = safe_relative("/".join(str(segment).strip("/") for segment in segments if segment))
        if folder is None:
            self.run.logger.info("Image target folder is not allowed", {"folder": "/".join(segments)})
            return None
        logical_path = (folder / relative_name).as_posix()
        destination = self.files_root / logical_path

        existing = self.find_by_path(logical_path)
        expected = checksum or md5_file(source)
        # The file on disk may have been replaced by a run that was rolled back.
        if (
            existing is not None
            and existing.hash == expected
            and destination.is_file()
            and md5_file(destination) == existing.hash
        ):
            logger.debug("Reusing asset %s", logical_path)
            return existing.uuid

        destination.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(source, destination)
        copied_hash = md5_file(destination)

        if checksum and copied_hash != checksum:
            destination.unlink()
            if existing is not None:
                self.db.delete(existing)
                self.db.flush()
            self.run.logger.error(
                "Image checksum does not match", {"file": ctx.file_name, "expected": checksum, "actual": copied_hash}
            )
            return None

        if existing is None:
            asset = Asset(path=logical_path, hash=copied_hash, size=size)
            self.db.add(asset)
        else:
            asset = existing
            asset.hash = copied_hash
            asset.size = size
            asset.uuid = str(uuid.uuid4())

        caption = child_text(group, CAPTION_TAG)
        if caption:
            asset.title = caption
            asset.alt = caption
        self.db.flush()

        self.run.logger.debug("Stored image", {"path": logical_path})
        return asset.uuid

    def delete_listing_assets(self, provider_number: str, listing_key: str) -> int:
        """Remove the asset folder of one listing together with its asset rows."""
        parts = (self.run.interface.files_path, provider_number, listing_key)
        folder = safe_relative("/".join(str(part).strip("/") for part in parts if part))
        if folder is None or not listing_key:
            return 0

        prefix = f"{folder.as_posix()}/"
        assets = self.db.execute(
            select(Asset).where(Asset.path.startswith(prefix, autoescape=True))
        ).scalars().all()
        for asset in assets:
            self.db.delete(asset)

        directory = self.files_root / folder
        if directory.is_dir():
            shutil.rmtree(directory)
        self.run.logger.debug("Deleted listing assets", {"folder": folder.as_posix(), "count": len(assets)})
        return len(assets)
