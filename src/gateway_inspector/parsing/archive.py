from __future__ import annotations

import io
import zipfile
from pathlib import Path
from typing import Dict, Union

from defusedxml.common import DefusedXmlException
from xml.etree.ElementTree import ParseError

from gateway_inspector.errors import ProcessError
from gateway_inspector.parsing.document import ConfigDocument

EXPORT_XML = "export.xml"

ArchiveSource = Union[Path, str, bytes]


def read_archive(source: ArchiveSource) -> Dict[str, bytes]:
    """
    Unpack a zip archive into {member path: raw bytes}.
    Accepts a filesystem path or the archive content itself.
    """
    stream = io.BytesIO(source) if isinstance(source, bytes) else source
    with zipfile.ZipFile(stream) as archive:
        return {
            info.filename: archive.read(info)
            for info in archive.infolist()
            if not info.is_dir()
        }


def load_backup(backup_file: Path) -> Dict[str, bytes]:
    """Read the top-level backup archive, raising ProcessError when it is unusable."""
    path = Path(backup_file)
    if not path.is_file():
        raise ProcessError(f"Unable to access {path}. Error: no such file")

    try:
        files = read_archive(path)
    except (OSError, zipfile.BadZipFile) as exc:
        raise ProcessError(f"Unable to access {path}. Error: {exc}") from exc

    if EXPORT_XML not in files:
        raise ProcessError(f"{path} does not contain {EXPORT_XML}")
    return files


def parse_export(files: Dict[str, bytes], source: str) -> ConfigDocument:
    """Parse export.xml out of an unpacked archive."""
    data = files.get(EXPORT_XML)
    if data is None:
        raise ProcessError(f"{source} does not contain {EXPORT_XML}")
    try:
        return ConfigDocument.from_bytes(data)
    except (ParseError, DefusedXmlException) as exc:
        raise ProcessError(f"Unable to parse {EXPORT_XML} in {source}. Error: {exc}") from exc
