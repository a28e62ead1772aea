"""
IGES File Reader

Class to read IGES files and decode their fixed-column sections.

Every physical line is 80 columns wide; column 73 holds the section letter:
- S: Start section (free-form comment)
- G: Global section (file-level metadata, delimiter separated)
- D: Directory Entry section (two lines per entity, 8-column fields)
- P: Parameter Data section (delimiter separated parameters per entity)
- T: Terminate section (line counts of the other sections)
"""

import warnings
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Dict, Any, Iterator, Optional, Sequence, Tuple

from iges_header import (
    IgesGlobal, TerminateCounts, is_hollerith, parse_hollerith, parse_iges_float, parse_iges_int
)
from iges_entity import DirectoryEntry, IgesEntity, Diagnostic
from iges_geometry import reconstruct_all


LINE_WIDTH = 80
SECTION_COLUMN = 72
TEXT_WIDTH = 72
PARAMETER_WIDTH = 64
DIRECTORY_RECORD_WIDTH = 2 * LINE_WIDTH

# Parameter data is always split by these, whatever the Global section declares
PARAMETER_RECORD_DELIMITER = ';'
PARAMETER_FIELD_DELIMITER = ','


# =============================================================================
# Errors
# =============================================================================

class IgesFormatError(ValueError):
    """Structural error that aborts decoding of the whole file"""


class UnknownSectionMarker(IgesFormatError):
    """A line carries a section letter other than S, G, D, P or T"""

    def __init__(self, line_number: int, marker: str):
        self.line_number = line_number
        self.marker = marker
        super().__init__(f"Unknown IGES section type {marker!r} on line {line_number}")


class InconsistentStructure(IgesFormatError):
    """Terminate section counters disagree with the decoded sections"""

    def __init__(self, entity_count: int, directory_lines: Optional[int]):
        self.entity_count = entity_count
        self.directory_lines = directory_lines
        super().__init__(
            f"Inconsistent IGES structure: {entity_count} directory entries, "
            f"terminate section declares {directory_lines} directory lines")


# =============================================================================
# Section splitting
# =============================================================================

@dataclass(frozen=True)
class Sections:
    """Accumulated text of the five IGES sections"""
    start: str = ""
    global_: str = ""
    directory: str = ""
    parameter: str = ""
    terminate: str = ""


def split_sections(data: str) -> Sections:
    """
    Split raw IGES text into its five sections

    Blank lines are dropped. S, G and T lines keep their first 72 columns,
    P lines their first 64 columns (the back pointer is discarded), and
    D lines are kept whole so directory fields keep their absolute offsets.

    Args:
        data: Raw file content

    Returns:
        Sections object

    Raises:
        UnknownSectionMarker: If a line has an unknown section letter
    """
    parts: Dict[str, List[str]] = {'S': [], 'G': [], 'D': [], 'P': [], 'T': []}

    # Only \n ends a line; other control characters may sit inside Hollerith text
    for line_number, line in enumerate(data.split('\n'), 1):
        line = line.rstrip('\r')
        if not line.strip():
            continue
        line = line[:LINE_WIDTH]
        marker = line[SECTION_COLUMN] if len(line) > SECTION_COLUMN else ''

        if marker in ('S', 'G', 'T'):
            parts[marker].append(line[:TEXT_WIDTH].strip())
        elif marker == 'P':
            parts[marker].append(line[:PARAMETER_WIDTH].strip())
        elif marker == 'D':
            parts[marker].append(line.ljust(LINE_WIDTH))
        else:
            raise UnknownSectionMarker(line_number, marker)

    return Sections(
        start=''.join(parts['S']),
        global_=''.join(parts['G']),
        directory=''.join(parts['D']),
        parameter=''.join(parts['P']),
        terminate=''.join(parts['T']),
    )


# =============================================================================
# Directory Entry section
# =============================================================================

def parse_directory_entry(record: str) -> DirectoryEntry:
    """
    Decode one 160-character directory record

    Args:
        record: Two concatenated directory lines

    Returns:
        DirectoryEntry object
    """
    def number(offset: int, width: int = 8) -> Optional[int]:
        return parse_iges_int(record[offset:offset + width])

    return DirectoryEntry(
        entity_type=number(0),
        parameter_pointer=number(8),
        structure=number(16),
        line_font_pattern=number(24),
        level=number(32),
        view=number(40),
        transformation_matrix=number(48),
        label_display=number(56),
        status=record[64:72],
        sequence_number=number(73, 7),
        line_weight=number(88),
        color=number(96),
        parameter_line_count=number(104),
        form_number=number(112),
        entity_label=record[136:144].strip(),
        entity_subscript=number(144),
    )


def parse_directory(data: str) -> List[DirectoryEntry]:
    """
    Decode the Directory Entry section

    Args:
        data: Directory section accumulator

    Returns:
        Directory entries in file order
    """
    return [
        parse_directory_entry(data[i:i + DIRECTORY_RECORD_WIDTH])
        for i in range(0, len(data), DIRECTORY_RECORD_WIDTH)
    ]


# =============================================================================
# Parameter Data section
# =============================================================================

def split_parameter_groups(data: str) -> List[List[str]]:
    """
    Split the Parameter Data section into per-entity token lists

    Args:
        data: Parameter section accumulator

    Returns:
        One token list per entity (type code first)
    """
    groups = data.split(PARAMETER_RECORD_DELIMITER)
    if groups and groups[-1] == '':
        groups.pop()
    return [group.split(PARAMETER_FIELD_DELIMITER) for group in groups]


def associate_parameters(entries: Sequence[DirectoryEntry],
                         groups: Sequence[List[str]]) -> List[IgesEntity]:
    """
    Merge parameter groups with directory entries by position

    Group i belongs to directory entry i; the pointer stored in the entry is
    not followed. An entry without a group keeps its directory type and no
    parameters. Surplus groups are ignored.

    Args:
        entries: Directory entries
        groups: Parameter token lists

    Returns:
        Merged entities, one per directory entry
    """
    entities = []
    for index, entry in enumerate(entries):
        if index >= len(groups):
            type_code = '' if entry.entity_type is None else str(entry.entity_type)
            entities.append(IgesEntity(type_code=type_code, directory=entry))
            continue

        type_token, *tokens = groups[index]
        entities.append(IgesEntity(
            type_code=type_token.strip(),
            directory=entry,
            params=tuple(parse_iges_float(token) for token in tokens),
            string_params=tuple(
                (i, parse_hollerith(token.strip()))
                for i, token in enumerate(tokens) if is_hollerith(token)
            ),
            raw_params=tuple(tokens),
        ))
    return entities


# =============================================================================
# Terminate section
# =============================================================================

def validate_terminate(entities: Sequence[IgesEntity], terminate: TerminateCounts) -> None:
    """
    Check the entity count against the Terminate section

    Raises:
        InconsistentStructure: If count(entities) != directory lines / 2
    """
    directory_lines = terminate.directory_lines
    if directory_lines is None or len(entities) != directory_lines / 2:
        raise InconsistentStructure(len(entities), directory_lines)


# =============================================================================
# Document
# =============================================================================

@dataclass(frozen=True)
class IgesDocument:
    """Decoded IGES file"""
    start: str = ""
    global_section: IgesGlobal = field(default_factory=IgesGlobal)
    terminate: TerminateCounts = field(default_factory=TerminateCounts)
    entities: Tuple[IgesEntity, ...] = ()
    geometries: Tuple[object, ...] = ()
    diagnostics: Tuple[Diagnostic, ...] = ()

    @property
    def field_delimiter(self) -> str:
        return self.global_section.field_delimiter

    @property
    def record_delimiter(self) -> str:
        return self.global_section.record_delimiter

    def get_by_sequence(self, sequence_number: int) -> Optional[IgesEntity]:
        """
        Find an entity by its directory sequence number

        Args:
            sequence_number: Sequence number of the first directory line (odd)

        Returns:
            Matching entity, or None
        """
        for entity in self.entities:
            if entity.sequence_number == sequence_number:
                return entity
        return None

    def geometry_of(self, entity: IgesEntity) -> Optional[object]:
        """Primitive reconstructed from the given entity"""
        for candidate, geometry in zip(self.entities, self.geometries):
            if candidate is entity:
                return geometry
        return None

    def iter_geometries(self, kinds: Optional[Sequence[str]] = None) -> Iterator[object]:
        """
        Iterate reconstructed primitives, skipping unsupported entities

        Args:
            kinds: Primitive kinds to keep ('point', 'segment', 'polyline', ...)
        """
        for geometry in self.geometries:
            if geometry.kind == 'unsupported':
                continue
            if kinds is None or geometry.kind in kinds:
                yield geometry

    def type_counts(self) -> Dict[str, int]:
        """Number of entities per type code, most frequent first"""
        return dict(Counter(entity.type_code for entity in self.entities).most_common())


def decode(data: str) -> IgesDocument:
    """
    Decode raw IGES text

    Args:
        data: Full content of one IGES file

    Returns:
        IgesDocument object

    Raises:
        UnknownSectionMarker: If a line has an unknown section letter
        InconsistentStructure: If the Terminate counters do not match
    """
    sections = split_sections(data)
    global_section = IgesGlobal.parse(sections.global_)
    entries = parse_directory(sections.directory)
    entities = associate_parameters(entries, split_parameter_groups(sections.parameter))
    terminate = TerminateCounts.parse(sections.terminate)
    validate_terminate(entities, terminate)

    geometries, diagnostics = reconstruct_all(entities)
    return IgesDocument(
        start=sections.start,
        global_section=global_section,
        terminate=terminate,
        entities=tuple(entities),
        geometries=tuple(geometries),
        diagnostics=tuple(diagnostics),
    )


# =============================================================================
# Reader
# =============================================================================

class IgesReader:
    """Class to read and decode IGES files"""

    EXTENSIONS = {'.igs', '.iges'}

    def __init__(self, file_path: Path):
        """
        Args:
            file_path: Path to the IGES file
        """
        self.file_path = Path(file_path)
        self._content: Optional[str] = None
        self.document: Optional[IgesDocument] = None
        self._is_loaded: bool = False

    def load(self) -> bool:
        """
        Read the IGES file and decode it

        Returns:
            True if loading is successful

        Raises:
            IgesFormatError: If the file content is structurally invalid
        """
        if not self._read_file():
            return False

        self.document = self.parse(self._content)
        self._is_loaded = True

        if self.document.diagnostics:
            skipped = sorted({d.type_code for d in self.document.diagnostics})
            warnings.warn(
                f"Skipped {len(self.document.diagnostics)} unsupported entities: "
                f"{', '.join(skipped)}")
        return True

    @staticmethod
    def parse(data: str) -> IgesDocument:
        """
        Decode raw IGES text without touching the file system

        Args:
            data: Full content of one IGES file

        Returns:
            IgesDocument object
        """
        return decode(data)

    def _read_file(self) -> bool:
        """Read the file"""
        try:
            with open(self.file_path, 'r', encoding='utf-8') as f:
                self._content = f.read()
            return True
        except UnicodeDecodeError:
            # Retry with ISO-8859-1
            try:
                with open(self.file_path, 'r', encoding='iso-8859-1') as f:
                    self._content = f.read()
                return True
            except OSError as e:
                warnings.warn(f"File read error: {e}")
                return False
        except OSError as e:
            warnings.warn(f"File read error: {e}")
            return False

    def get_raw_content(self) -> str:
        """
        Get IGES file raw data

        Returns:
            File content
        """
        if self._content is None:
            self._read_file()
        return self._content or ""

    def get_summary(self) -> Dict[str, Any]:
        """
        Get loaded data summary

        Returns:
            Summary info
        """
        document = self.document or IgesDocument()
        return {
            'file_path': str(self.file_path),
            'is_loaded': self._is_loaded,
            'entity_count': len(document.entities),
            'geometry_count': sum(1 for _ in document.iter_geometries()),
            'skipped_count': len(document.diagnostics),
            'type_counts': document.type_counts(),
            'terminate': document.terminate.to_dict(),
        }


def parse_iges(data: str) -> IgesDocument:
    """Decode raw IGES text (shortcut for IgesReader.parse)"""
    return decode(data)

