"""
IGES Entity Data Structures

Defines the Directory Entry record, the merged entity (directory entry plus
parameter data) and the per-entity diagnostics of an IGES file.
"""

from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Dict, Any, Optional, Tuple


# =============================================================================
# Enums
# =============================================================================

class EntityType(Enum):
    """Entity type numbers known to the reader"""
    CIRCULAR_ARC = "100"
    COMPOSITE_CURVE = "102"
    COPIOUS_DATA = "106"
    PLANE = "108"
    LINE = "110"
    POINT = "116"
    SURFACE_OF_REVOLUTION = "120"
    TABULATED_CYLINDER = "122"
    TRANSFORMATION_MATRIX = "124"
    RATIONAL_BSPLINE_CURVE = "126"
    RATIONAL_BSPLINE_SURFACE = "128"
    CURVE_ON_PARAMETRIC_SURFACE = "142"
    TRIMMED_SURFACE = "144"
    GENERAL_NOTE = "212"
    LEADER_ARROW = "214"
    LINEAR_DIMENSION = "216"
    COLOR_DEFINITION = "314"
    ASSOCIATIVITY_INSTANCE = "402"
    PROPERTY = "406"
    UNKNOWN = "unknown"

    @classmethod
    def from_code(cls, type_code: str) -> 'EntityType':
        """Look up an entity type by its number, UNKNOWN if not listed"""
        for member in cls:
            if member.value == type_code:
                return member
        return cls.UNKNOWN

    @property
    def label(self) -> str:
        return self.name.replace('_', ' ').title()


# =============================================================================
# Directory Entry
# =============================================================================

@dataclass(frozen=True)
class DirectoryEntry:
    """
    Directory Entry (DE) of one entity

    Two 80-column physical lines form one 160-character record. Numeric
    fields are None when the column is blank or not a number.

    Line 1: type, parameter pointer, structure, line font, level, view,
            transformation matrix, label display, status, sequence number
    Line 2: type, line weight, color, parameter line count, form,
            reserved, reserved, entity label, entity subscript
    """
    entity_type: Optional[int] = None
    parameter_pointer: Optional[int] = None
    structure: Optional[int] = None
    line_font_pattern: Optional[int] = None
    level: Optional[int] = None
    view: Optional[int] = None
    transformation_matrix: Optional[int] = None
    label_display: Optional[int] = None
    status: str = ""
    sequence_number: Optional[int] = None
    line_weight: Optional[int] = None
    color: Optional[int] = None
    parameter_line_count: Optional[int] = None
    form_number: Optional[int] = None
    entity_label: str = ""
    entity_subscript: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# =============================================================================
# Entity
# =============================================================================

@dataclass(frozen=True)
class IgesEntity:
    """
    One entity: a directory entry merged with its parameter data

    type_code comes from the first token of the parameter group, which
    replaces the type read from the directory entry. string_params holds
    (parameter index, decoded text) pairs for Hollerith tokens.
    """
    type_code: str
    directory: DirectoryEntry = field(default_factory=DirectoryEntry)
    params: Tuple[float, ...] = ()
    string_params: Tuple[Tuple[int, str], ...] = ()
    raw_params: Tuple[str, ...] = ()

    @property
    def form_number(self) -> Optional[int]:
        return self.directory.form_number

    @property
    def sequence_number(self) -> Optional[int]:
        return self.directory.sequence_number

    @property
    def entity_type(self) -> EntityType:
        return EntityType.from_code(self.type_code)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type_code': self.type_code,
            'form_number': self.form_number,
            'directory': self.directory.to_dict(),
            'params': list(self.params),
            'string_params': dict(self.string_params),
        }


# =============================================================================
# Diagnostics
# =============================================================================

@dataclass(frozen=True)
class Diagnostic:
    """An entity that was skipped during reconstruction"""
    index: int
    type_code: str
    form_number: Optional[int] = None
    sequence_number: Optional[int] = None
    message: str = ""

    def __str__(self) -> str:
        location = f"#{self.index}"
        if self.sequence_number is not None:
            location += f" (D{self.sequence_number})"
        return f"{location} type {self.type_code} form {self.form_number}: {self.message}"
