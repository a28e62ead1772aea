"""
IGES File Header Data Structures

Defines the data structures of the Start, Global and Terminate sections of
an IGES file, and the scalar decoders shared by every section.

Scalar encodings used by IGES:
- Hollerith string: <count>H<payload> (e.g. 4HABCD)
- Real number: Fortran style, 'D' may replace the exponent marker (1.5D+01)
- Integer: right-justified in a fixed-width column, blank means default
"""

import math
import re
from dataclasses import dataclass, asdict
from typing import List, Optional, Dict, Any, Tuple


DEFAULT_FIELD_DELIMITER = ','
DEFAULT_RECORD_DELIMITER = ';'

_LEADING_INT_PATTERN = re.compile(r'^\s*([+-]?\d+)')
_HOLLERITH_PATTERN = re.compile(r'^\s*(\d+)H', re.DOTALL)


def parse_hollerith(value: Optional[str]) -> Optional[str]:
    """
    Decode an IGES Hollerith string

    Example: "4H1234" -> "1234", "3HA,B" -> "A,B"

    Args:
        value: Raw field text

    Returns:
        Decoded payload, or None if the field is not a Hollerith string
    """
    if not value:
        return None

    h_index = value.find('H')
    if h_index == -1:
        return None

    digits = value[:h_index].strip()
    if not digits.isdigit():
        return None

    count = int(digits)
    return value[h_index + 1:h_index + 1 + count]


def is_hollerith(value: str) -> bool:
    """Whether a token is written as <count>H<payload>"""
    return bool(_HOLLERITH_PATTERN.match(value))


def parse_iges_float(value: Optional[str]) -> float:
    """
    Decode an IGES real number

    Every 'D' exponent marker is replaced with 'E' before parsing, so
    "1.5D+01" -> 15.0. Tokens without 'D' parse unchanged.

    Args:
        value: Raw token

    Returns:
        Parsed value, NaN for blank or non-numeric tokens
    """
    if value is None:
        return math.nan
    try:
        return float(value.replace('D', 'E'))
    except ValueError:
        return math.nan


def parse_iges_int(value: Optional[str]) -> Optional[int]:
    """
    Decode a fixed-width integer field

    Surrounding blanks are ignored and only the leading integer is read, so
    "      12", "  12    " and "12" all give 12.

    Args:
        value: Raw field text

    Returns:
        Parsed integer, or None for blank or non-numeric fields
    """
    if not value:
        return None
    match = _LEADING_INT_PATTERN.match(value)
    if match:
        return int(match.group(1))
    return None


def _optional_float(value: Optional[str]) -> Optional[float]:
    number = parse_iges_float(value)
    if math.isnan(number):
        return None
    return number


@dataclass(frozen=True)
class IgesGlobal:
    """
    Global section of an IGES file

    The Global section is a list of fields separated by the field delimiter.
    Fields are identified by position only.
    """
    field_delimiter: str = DEFAULT_FIELD_DELIMITER
    record_delimiter: str = DEFAULT_RECORD_DELIMITER
    sender_product_id: Optional[str] = None
    file_name: Optional[str] = None
    native_system_id: Optional[str] = None
    preprocessor_version: Optional[str] = None
    integer_bits: Optional[int] = None
    single_exponent_bits: Optional[int] = None
    single_mantissa_bits: Optional[int] = None
    double_exponent_bits: Optional[int] = None
    double_mantissa_bits: Optional[int] = None
    receiver_product_id: Optional[str] = None
    model_scale: Optional[float] = None
    unit_flag: Optional[int] = None
    unit_name: Optional[str] = None
    max_line_weight_gradations: Optional[int] = None
    max_line_width: Optional[float] = None
    creation_date: Optional[str] = None
    min_resolution: Optional[float] = None
    max_coordinate: Optional[float] = None
    author: Optional[str] = None
    organization: Optional[str] = None
    iges_version: Optional[int] = None
    drafting_standard: Optional[int] = None
    last_modified_date: Optional[str] = None

    @classmethod
    def split_fields(cls, data: str) -> Tuple[str, List[str]]:
        """
        Split Global section text into positional fields

        When the text does not start with the default delimiter, the first
        field declares the delimiter as a Hollerith string (e.g. "1H|").
        That declaration is dropped from the returned list.

        Args:
            data: Global section accumulator

        Returns:
            Tuple of (field delimiter, list of fields)
        """
        field_delimiter = DEFAULT_FIELD_DELIMITER
        declared = bool(data) and data[0] != DEFAULT_FIELD_DELIMITER
        if declared:
            field_delimiter = parse_hollerith(data) or DEFAULT_FIELD_DELIMITER

        fields = data.split(field_delimiter)
        if declared:
            fields = fields[1:]
        return field_delimiter, fields

    @classmethod
    def parse(cls, data: str) -> 'IgesGlobal':
        """
        Parse the Global section

        Args:
            data: Global section accumulator

        Returns:
            IgesGlobal object
        """
        field_delimiter, fields = cls.split_fields(data)

        def text(index: int) -> Optional[str]:
            if index < len(fields):
                return parse_hollerith(fields[index])
            return None

        def integer(index: int) -> Optional[int]:
            if index < len(fields):
                return parse_iges_int(fields[index])
            return None

        def real(index: int) -> Optional[float]:
            if index < len(fields):
                return _optional_float(fields[index])
            return None

        return cls(
            field_delimiter=field_delimiter,
            record_delimiter=text(1) or DEFAULT_RECORD_DELIMITER,
            sender_product_id=text(2),
            file_name=text(3),
            native_system_id=text(4),
            preprocessor_version=text(5),
            integer_bits=integer(6),
            single_exponent_bits=integer(7),
            single_mantissa_bits=integer(8),
            double_exponent_bits=integer(9),
            double_mantissa_bits=integer(10),
            receiver_product_id=text(11),
            model_scale=real(12),
            unit_flag=integer(13),
            unit_name=text(14),
            max_line_weight_gradations=integer(15),
            max_line_width=real(16),
            creation_date=text(17),
            min_resolution=real(18),
            max_coordinate=real(19),
            author=text(20),
            organization=text(21),
            iges_version=integer(22),
            drafting_standard=integer(23),
            last_modified_date=text(24),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class TerminateCounts:
    """
    Terminate section of an IGES file

    Format: S0000001G0000003D0000004P0000002 (letter + 7 digit count each)
    """
    start_lines: Optional[int] = None
    global_lines: Optional[int] = None
    directory_lines: Optional[int] = None
    parameter_lines: Optional[int] = None

    @classmethod
    def parse(cls, data: str) -> 'TerminateCounts':
        """
        Parse the Terminate section counters

        Args:
            data: Terminate section accumulator

        Returns:
            TerminateCounts object
        """
        return cls(
            start_lines=parse_iges_int(data[1:8]),
            global_lines=parse_iges_int(data[9:16]),
            directory_lines=parse_iges_int(data[17:24]),
            parameter_lines=parse_iges_int(data[25:32]),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def __str__(self) -> str:
        return (f"S={self.start_lines} G={self.global_lines} "
                f"D={self.directory_lines} P={self.parameter_lines}")
