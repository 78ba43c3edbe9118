import datetime as dt
import logging
import shutil
import zipfile
from pathlib import Path
from typing import Iterable, List, Mapping, Optional

from xml.etree import ElementTree as ET

from immosync.core.errors import FeedError
from immosync.models.interface import InterfaceHistory
from immosync.schemas.sync import SyncFileInfo

logger = logging.getLogger(__name__)

ROOT_TAG = "openimmo"
SYNC_EXTENSIONS = (".zip", ".xml", ".data")
SCRATCH_DIR_NAME = "tmp"


def scan_by_extension(directory: Path, extensions: Iterable[str]) -> List[Path]:
    if not directory.is_dir():
        return []
    suffixes = {ext.lower() for ext in extensions}
    return sorted(path for path in directory.iterdir() if path.is_file() and path.suffix.lower() in suffixes)


def list_sync_files(
    import_dir: Path,
    files_root: Path,
    history: Mapping[str, InterfaceHistory],
    search_for_zip: bool = True,
) -> List[SyncFileInfo]:
    """Return syncable files newest first, annotated with their last sync."""
    extensions = SYNC_EXTENSIONS if search_for_zip else (".xml",)
    files: List[SyncFileInfo] = []
    for path in scan_by_extension(import_dir, extensions):
        stat = path.stat()
        source = path.relative_to(files_root).as_posix()
        synced = history.get(source)
        files.append(
            SyncFileInfo(
                file=source,
                time=dt.datetime.fromtimestamp(stat.st_mtime),
                size=stat.st_size,
                user=synced.username if synced else None,
                status=synced.status if synced else 0,
                synctime=synced.tstamp if synced else None,
            )
        )
    files.sort(key=lambda info: info.time, reverse=True)
    return files


def purge_scratch(scratch_dir: Path) -> None:
    if not scratch_dir.exists():
        return
    try:
        shutil.rmtree(scratch_dir)
    except OSError as exc:
        logger.debug("Unable to purge scratch folder %s: %s", scratch_dir, exc)


def extract_archive(archive: Path, scratch_dir: Path) -> List[Path]:
    purge_scratch(scratch_dir)
    scratch_dir.mkdir(parents=True, exist_ok=True)
    try:
        with zipfile.ZipFile(archive) as zf:
            zf.extractall(scratch_dir)
    except zipfile.BadZipFile as exc:
        raise FeedError(f"Archive {archive.name} could not be extracted.") from exc
    return [path for path in scratch_dir.rglob("*") if path.is_file()]


def resolve_sync_file(path: Path, scratch_dir: Path) -> Path:
    """Return the XML file to import, extracting archives into ``scratch_dir``."""
    if not path.is_file():
        raise FeedError(f"Sync file {path.name} does not exist.")
    if path.suffix.lower() != ".zip":
        return path

    members = [member for member in extract_archive(path, scratch_dir) if member.suffix.lower() == ".xml"]
    if not members:
        raise FeedError("No OpenImmo file was found in archive.")
    if len(members) > 1:
        raise FeedError(
            "More than one OpenImmo file was found in the archive. "
            "Only one OpenImmo file is allowed per transfer."
        )
    return members[0]


def _strip_namespaces(root: ET.Element) -> None:
    for element in root.iter():
        if isinstance(element.tag, str) and "}" in element.tag:
            element.tag = element.tag.split("}", 1)[1]


def load_document(path: Path) -> ET.Element:
    try:
        root = ET.parse(path).getroot()
    except ET.ParseError as exc:
        raise FeedError(f"OpenImmo file {path.name} is not well-formed: {exc}") from exc
    except OSError as exc:
        raise FeedError(f"OpenImmo file {path.name} could not be read.") from exc

    _strip_namespaces(root)
    if root.tag != ROOT_TAG:
        raise FeedError(f"Invalid OpenImmo data: unexpected root element <{root.tag}>.")
    return root


def provider_nodes(root: ET.Element) -> List[ET.Element]:
    providers = root.findall("anbieter")
    if not providers:
        raise FeedError("No provider data available.")
    return providers


def child_text(node: ET.Element, tag: str) -> Optional[str]:
    child = node.find(tag)
    if child is None or child.text is None:
        return None
    return child.text.strip() or None
