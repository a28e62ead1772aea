"""
IGES File Inspector

Main module to decode IGES files and print their content.
"""

import argparse
import sys
from pathlib import Path

from iges_entity import EntityType
from iges_geometry import DEFAULT_ARC_SEGMENTS
from iges_reader import IgesReader, IgesFormatError


def _format_point(point) -> str:
    return "(" + ", ".join(f"{v:g}" for v in point) + ")"


def _describe(geometry) -> str:
    """One-line description of a reconstructed primitive"""
    kind = geometry.kind
    if kind == 'point':
        return f"Point {_format_point(geometry.points()[0])}"
    if kind == 'segment':
        return f"Segment {_format_point(geometry.p0)} -> {_format_point(geometry.p1)}"
    if kind == 'polyline':
        return f"Polyline {len(geometry.vertices)} points"
    if kind == 'arc':
        return (f"Arc center={_format_point(geometry.center)} "
                f"angles={geometry.start_angle:.4f}..{geometry.end_angle:.4f} "
                f"radius={geometry.radius:g} (measured {geometry.measured_radius:g})")
    if kind == 'spline':
        return (f"Spline degree={geometry.degree} "
                f"control_points={len(geometry.control_points)} knots={len(geometry.knots)}")
    if kind == 'transform':
        return f"Transformation translation={_format_point(geometry.translation)}"
    return f"Unsupported ({geometry.reason})"


def _positive_int(value: str) -> int:
    """argparse type for counts that must be at least 1"""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: {value!r}")
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1: {number}")
    return number


def main(argv=None):
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description='Decode IGES files and reconstruct their geometry',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
Usage examples:
  python main.py sample.igs
  python main.py sample.igs --list 50
  python main.py sample.igs --image sample.png --preset display
'''
    )
    parser.add_argument('iges_file', type=Path, help='Path to the IGES file')
    parser.add_argument('--list', type=int, default=10, metavar='N',
                        help='Number of entities to list (default: 10)')
    parser.add_argument('--image', type=Path, default=None,
                        help='Render the geometry to this PNG file')
    parser.add_argument('--preset', type=str, default='preview',
                        choices=['thumbnail', 'preview', 'display'],
                        help='Image size preset (default: preview)')
    parser.add_argument('--arc-segments', type=_positive_int, default=DEFAULT_ARC_SEGMENTS,
                        help=f'Segments per arc when rendering (default: {DEFAULT_ARC_SEGMENTS})')

    args = parser.parse_args(argv)

    iges_file_path = args.iges_file

    if not iges_file_path.exists():
        print(f"Error: File not found: {iges_file_path}")
        sys.exit(1)

    if iges_file_path.suffix.lower() not in IgesReader.EXTENSIONS:
        print(f"Warning: File may not be an IGES file: {iges_file_path}")

    print(f"Loading IGES file: {iges_file_path}")
    print("-" * 50)

    reader = IgesReader(iges_file_path)

    try:
        if not reader.load():
            print("Error: Failed to load file")
            sys.exit(1)
    except IgesFormatError as e:
        print(f"Error: {e}")
        sys.exit(1)

    document = reader.document

    # Show summary
    summary = reader.get_summary()
    print(f"Entities: {summary['entity_count']} items")
    print(f"Geometry: {summary['geometry_count']} items")
    print(f"Skipped: {summary['skipped_count']} items")
    print(f"Terminate: {document.terminate}")
    print("-" * 50)

    # Start section
    if document.start:
        print("\n[Start Section]")
        print(f"  {document.start}")

    # Global section
    header = document.global_section
    print("\n[Global Section]")
    print(f"  field_delimiter: '{header.field_delimiter}'")
    print(f"  record_delimiter: '{header.record_delimiter}'")
    print(f"  sender_product_id: {header.sender_product_id}")
    print(f"  file_name: {header.file_name}")
    print(f"  native_system_id: {header.native_system_id}")
    print(f"  preprocessor_version: {header.preprocessor_version}")
    print(f"  unit: {header.unit_name} (flag {header.unit_flag}, scale {header.model_scale})")
    print(f"  creation_date: {header.creation_date}")
    print(f"  author: {header.author}")
    print(f"  organization: {header.organization}")
    print(f"  iges_version: {header.iges_version}")
    print(f"  last_modified_date: {header.last_modified_date}")

    # Entity types
    print("\n[Entity Types]")
    for type_code, count in document.type_counts().items():
        label = EntityType.from_code(type_code).label
        print(f"  {type_code:>4} {label}: {count}")

    # Entities and their geometry
    print("\n[Entities]")
    pairs = list(zip(document.entities, document.geometries))
    for entity, geometry in pairs[:args.list]:
        print(f"  D{entity.sequence_number} type={entity.type_code} "
              f"form={entity.form_number}: {_describe(geometry)}")
    if len(pairs) > args.list:
        print(f"  ... and {len(pairs) - args.list} more")

    # Diagnostics
    if document.diagnostics:
        print("\n[Skipped Entities]")
        for diagnostic in document.diagnostics:
            print(f"  - {diagnostic}")

    # Image
    if args.image:
        from iges_image_converter import IgesImageConverter

        converter = IgesImageConverter(document, arc_segments=args.arc_segments)
        if converter.save_image(args.image, preset=args.preset):
            print(f"\nImage saved: {args.image}")
        else:
            print("\nNo drawable geometry, image not saved")

    print("\nLoading completed!")


if __name__ == "__main__":
    main()
