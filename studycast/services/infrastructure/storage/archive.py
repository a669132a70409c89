"""
Project archive import/export.

Export layout (ZIP):

    projects.json                  every project, without ids
    01_<subject>/segment_01.pcm    raw PCM, exactly the stored audio bytes
    01_<subject>/segment_01.wav    the same audio in a playable container
    01_<subject>/episode.wav       all segments of the project back to back

Inside ``projects.json`` each audio entry is replaced by the archive path of
its ``.pcm`` file. Import reverses that mapping. Files that are not ZIPs are
read as the legacy export: a flat JSON array of projects with base64 audio
inline. Entry shape decides which is which: a string ending in ``.pcm`` is a
reference, any other string is already-encoded audio.
"""

import io
import json
import zipfile
from typing import Any, Dict, List, Sequence

from studycast.core.exceptions import ImportFormatError
from studycast.core.files import sanitize_filename
from studycast.core.logging import get_logger
from studycast.models.project import LEGACY_FIELD_NAMES, Project
from studycast.services.infrastructure.audio.wav import (
    decode_segment,
    encode_segment,
    pcm_to_wav,
    render_episode_wav,
)

logger = get_logger(__name__, component="archive")

MANIFEST_NAME = "projects.json"
AUDIO_REFERENCE_SUFFIX = ".pcm"

_KNOWN_KEYS = {"subject", "created_at", "uploaded_files", "outline_json", "full_script", "audio_segments"} | set(
    LEGACY_FIELD_NAMES
)


def project_folder(index: int, subject: str) -> str:
    return f"{index:02d}_{sanitize_filename(subject, fallback='project')}"


def export_archive(projects: Sequence[Project]) -> bytes:
    """Package projects and their audio into a ZIP archive."""
    buffer = io.BytesIO()
    manifest: List[Dict[str, Any]] = []

    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for index, project in enumerate(projects, start=1):
            folder = project_folder(index, project.subject)
            record = project.to_dict(include_id=False)
            entries: List[str] = []
            decoded: List[str] = []

            for segment_number, encoded in enumerate(project.audio_segments, start=1):
                try:
                    pcm = decode_segment(encoded)
                except ValueError:
                    logger.warning(
                        "Audio segment is not base64, exporting inline",
                        extra={"project_id": project.id, "segment": segment_number},
                    )
                    entries.append(encoded)
                    continue
                reference = f"{folder}/segment_{segment_number:02d}{AUDIO_REFERENCE_SUFFIX}"
                zf.writestr(reference, pcm)
                zf.writestr(f"{folder}/segment_{segment_number:02d}.wav", pcm_to_wav(pcm))
                entries.append(reference)
                decoded.append(encoded)

            if decoded:
                zf.writestr(f"{folder}/episode.wav", render_episode_wav(decoded))

            record["audio_segments"] = entries
            manifest.append(record)

        zf.writestr(MANIFEST_NAME, json.dumps(manifest, indent=2, ensure_ascii=False))

    logger.info("Archive exported", extra={"projects": len(manifest)})
    return buffer.getvalue()


def _validate_record(record: Any, position: int) -> Dict[str, Any]:
    if not isinstance(record, dict):
        raise ImportFormatError(f"Record {position} is not an object")
    if not _KNOWN_KEYS.intersection(record):
        raise ImportFormatError(f"Record {position} has no recognizable project fields")

    audio = record.get("audio_segments", record.get("audioSegments", []))
    if audio is None:
        audio = []
    if not isinstance(audio, list) or not all(isinstance(entry, str) for entry in audio):
        raise ImportFormatError(f"Record {position} has malformed audio segments")

    files = record.get("uploaded_files", record.get("uploadedFiles", []))
    if files is not None and not isinstance(files, list):
        raise ImportFormatError(f"Record {position} has malformed uploaded files")
    return record


def _records_from_manifest(raw: bytes) -> List[Dict[str, Any]]:
    try:
        data = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ImportFormatError(f"Project list is not valid JSON: {e}") from e
    if not isinstance(data, list):
        raise ImportFormatError("Project list must be a JSON array")
    return [_validate_record(record, position) for position, record in enumerate(data)]


def _audio_of(record: Dict[str, Any]) -> List[str]:
    return list(record.get("audio_segments", record.get("audioSegments")) or [])


def _to_project(record: Dict[str, Any], audio: List[str]) -> Project:
    cleaned = {key: value for key, value in record.items() if key not in ("id", "audioSegments")}
    cleaned["audio_segments"] = audio
    return Project.from_dict(cleaned)


def _import_zip(data: bytes) -> List[Project]:
    with zipfile.ZipFile(io.BytesIO(data)) as zf:
        try:
            manifest = zf.read(MANIFEST_NAME)
        except KeyError as e:
            raise ImportFormatError(f"Archive has no {MANIFEST_NAME}") from e

        projects: List[Project] = []
        for record in _records_from_manifest(manifest):
            audio: List[str] = []
            for entry in _audio_of(record):
                if entry.endswith(AUDIO_REFERENCE_SUFFIX):
                    try:
                        audio.append(encode_segment(zf.read(entry)))
                    except KeyError as e:
                        raise ImportFormatError(f"Archive is missing audio file {entry}") from e
                else:
                    audio.append(entry)
            projects.append(_to_project(record, audio))
        return projects


def _import_legacy(data: bytes) -> List[Project]:
    projects: List[Project] = []
    for record in _records_from_manifest(data):
        audio = _audio_of(record)
        if any(entry.endswith(AUDIO_REFERENCE_SUFFIX) for entry in audio):
            raise ImportFormatError("Audio references found outside an archive")
        projects.append(_to_project(record, audio))
    return projects


def import_archive(data: bytes) -> List[Project]:
    """
    Read an export back into Project objects (without ids).

    The whole payload is validated before anything is returned, so callers
    can bulk-insert the result as one atomic batch.

    Raises:
        ImportFormatError: If the payload matches neither the archive nor the legacy shape
    """
    if not data:
        raise ImportFormatError("Import payload is empty")

    try:
        is_zip = zipfile.is_zipfile(io.BytesIO(data))
        projects = _import_zip(data) if is_zip else _import_legacy(data)
    except zipfile.BadZipFile as e:
        raise ImportFormatError(f"Corrupt archive: {e}") from e

    logger.info(
        "Archive parsed",
        extra={"projects": len(projects), "format": "zip" if is_zip else "legacy"},
    )
    return projects
