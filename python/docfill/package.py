"""
Thin adapter that runs the templating engine over every text part of a .docx.

The archive is only opened and repacked here: the main body, each header and
each footer are reassembled and filled independently, every other entry is
copied through untouched.
"""

import re
import zipfile
from io import BytesIO
from typing import BinaryIO, Iterator, List, Mapping, Tuple, Union

import structlog

from docfill.template.reassembler import reassemble
from docfill.template.substitution import find_placeholders, substitute
from docfill.variables import flatten_replacements

logger = structlog.get_logger(__name__)

TEMPLATE_PART_PATTERN = re.compile(r"^word/(document|header\d*|footer\d*)\.xml$")

DocxSource = Union[bytes, BinaryIO]


def is_template_part(name: str, part_pattern: "re.Pattern[str]" = TEMPLATE_PART_PATTERN) -> bool:
    return bool(part_pattern.match(name))


def _open_archive(source: DocxSource) -> zipfile.ZipFile:
    stream = BytesIO(source) if isinstance(source, (bytes, bytearray)) else source
    try:
        stream.seek(0)
        return zipfile.ZipFile(stream)
    except (zipfile.BadZipFile, OSError) as e:
        logger.error(f"Template archive could not be opened: {e}")
        raise ValueError(f"Could not read template: {str(e)}") from e


def _decode_part(name: str, payload: bytes) -> str:
    try:
        return payload.decode("utf-8")
    except UnicodeDecodeError as e:
        logger.error(f"Template part {name} is not valid UTF-8: {e}")
        raise ValueError(f"Could not read template: {name}: {str(e)}") from e


def iter_template_parts(
    source: DocxSource, part_pattern: "re.Pattern[str]" = TEMPLATE_PART_PATTERN
) -> Iterator[Tuple[str, str]]:
    """Yields (name, xml) for the body, header and footer parts of the archive."""
    with _open_archive(source) as archive:
        for info in archive.infolist():
            if is_template_part(info.filename, part_pattern):
                yield info.filename, _decode_part(info.filename, archive.read(info))


def fill_docx_template(
    source: DocxSource,
    data: Mapping[str, object],
    part_pattern: "re.Pattern[str]" = TEMPLATE_PART_PATTERN,
) -> bytes:
    """
    Returns a copy of the .docx with every placeholder repaired and filled.

    Args:
        source: The template as bytes or a binary stream.
        data: Already formatted values. Nested mappings are flattened into
              dotted keys ({"deal": {"cpf": ...}} fills {{deal.cpf}}).
        part_pattern: Which archive entries are treated as template text.
    """
    replacements = flatten_replacements(data)
    output = BytesIO()

    with _open_archive(source) as archive:
        with zipfile.ZipFile(output, "w", zipfile.ZIP_DEFLATED) as out_zip:
            for info in archive.infolist():
                payload = archive.read(info)
                if is_template_part(info.filename, part_pattern):
                    xml = _decode_part(info.filename, payload)
                    payload = substitute(reassemble(xml), replacements).encode("utf-8")
                    logger.debug(f"Filled template part {info.filename}")
                out_zip.writestr(info, payload)

    logger.info(f"Filled template with {len(replacements)} values")
    return output.getvalue()


def list_template_placeholders(
    source: DocxSource, part_pattern: "re.Pattern[str]" = TEMPLATE_PART_PATTERN
) -> List[str]:
    """Placeholder keys used anywhere in the template, in order of first appearance."""
    keys: List[str] = []
    for _, xml in iter_template_parts(source, part_pattern):
        for key in find_placeholders(reassemble(xml)):
            if key not in keys:
                keys.append(key)
    return keys
