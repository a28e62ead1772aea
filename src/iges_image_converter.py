"""
IGES Geometry Image Converter

Module for rendering reconstructed IGES geometry to Pillow images.

Each primitive becomes one stroke:
- Point: small filled circle
- Segment / Polyline: connected line
- Arc: sampled points along the arc
- Spline curve: control polygon
Unsupported entities and transformation matrices are not drawn.
"""

import math
import re
from dataclasses import dataclass, field
from typing import List, Tuple, Optional, Dict
from pathlib import Path

try:
    from PIL import Image, ImageDraw
except ImportError:
    raise ImportError("Pillow is required. Please install it with `pip install Pillow`.")

from iges_geometry import DEFAULT_ARC_SEGMENTS, Arc
from iges_reader import IgesDocument


# =============================================================================
# Image Size Presets
# =============================================================================

@dataclass
class ImageSizePreset:
    """Image size preset configuration"""
    name: str
    pixels_per_unit: float
    min_size: Tuple[int, int]
    max_size: Tuple[int, int]
    padding: int
    line_width: int
    description: str = ""


# Defined presets
IMAGE_PRESETS: Dict[str, ImageSizePreset] = {
    'thumbnail': ImageSizePreset(
        name='thumbnail',
        pixels_per_unit=2.0,
        min_size=(64, 64),
        max_size=(256, 256),
        padding=4,
        line_width=1,
        description='Thumbnail'
    ),
    'preview': ImageSizePreset(
        name='preview',
        pixels_per_unit=10.0,
        min_size=(200, 200),
        max_size=(1600, 1200),
        padding=10,
        line_width=1,
        description='Preview (Standard)'
    ),
    'display': ImageSizePreset(
        name='display',
        pixels_per_unit=40.0,
        min_size=(400, 300),
        max_size=(4000, 3000),
        padding=20,
        line_width=2,
        description='For Display (High Resolution)'
    ),
}


def get_preset(name: str) -> ImageSizePreset:
    """Get preset"""
    if name not in IMAGE_PRESETS:
        available = ', '.join(IMAGE_PRESETS.keys())
        raise ValueError(f"Unknown preset: {name}. Available: {available}")
    return IMAGE_PRESETS[name]


def list_presets() -> List[ImageSizePreset]:
    """List all presets"""
    return list(IMAGE_PRESETS.values())


@dataclass
class Point2D:
    """2D Point"""
    x: float
    y: float


@dataclass
class BoundingBox:
    """Bounding Box"""
    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    @classmethod
    def of(cls, points: List[Point2D]) -> 'BoundingBox':
        xs = [p.x for p in points]
        ys = [p.y for p in points]
        return cls(min(xs), min(ys), max(xs), max(ys))


@dataclass
class Stroke:
    """Projected coordinates of one primitive"""
    kind: str
    points: List[Point2D] = field(default_factory=list)

    @property
    def point_count(self) -> int:
        return len(self.points)


class IgesImageConverter:
    """
    Class to render the geometry of a decoded IGES document with Pillow.

    The dominant 2D plane is detected from the 3D coordinates and every
    primitive is projected onto it.
    """

    def __init__(self, document: IgesDocument, arc_segments: int = DEFAULT_ARC_SEGMENTS):
        """
        Args:
            document: Decoded IGES document
            arc_segments: Number of segments used to sample arcs
        """
        self.document = document
        self.arc_segments = arc_segments

    def _primitive_points(self, geometry: object) -> List[Tuple[float, float, float]]:
        """Drawable points of a primitive; points with NaN or infinite coordinates are dropped"""
        if isinstance(geometry, Arc):
            points = geometry.to_points(self.arc_segments)
        else:
            points = geometry.points()
        return [p for p in points if all(math.isfinite(v) for v in p)]

    def extract_strokes(self, kinds: Optional[List[str]] = None) -> List[Stroke]:
        """
        Project reconstructed primitives to 2D strokes.

        Args:
            kinds: Primitive kinds to include (all drawable kinds if None)

        Returns:
            List of Strokes
        """
        primitives = [
            (geometry.kind, self._primitive_points(geometry))
            for geometry in self.document.iter_geometries(kinds)
        ]
        primitives = [(kind, points) for kind, points in primitives if points]

        all_3d_points = [p for _, points in primitives for p in points]
        if not all_3d_points:
            return []

        plane_axes = self._detect_plane(all_3d_points)

        return [
            Stroke(kind=kind, points=[self._project_to_2d(p, plane_axes) for p in points])
            for kind, points in primitives
        ]

    def _detect_plane(self, points: List[Tuple[float, float, float]]) -> Tuple[int, int]:
        """
        Detect major 2D plane axis indices from 3D point cloud.

        Excludes the axis with minimum variance and returns the remaining 2 axes.

        Returns:
            (x_axis_index, y_axis_index) - 0=X, 1=Y, 2=Z
        """
        if not points:
            return (0, 1)

        variances = []
        for axis in range(3):
            values = [p[axis] for p in points]
            mean = sum(values) / len(values)
            variances.append(sum((v - mean) ** 2 for v in values) / len(values))

        # Ties keep the X-Y plane
        min_variance_axis = 2 - variances[::-1].index(min(variances))
        axes = [i for i in range(3) if i != min_variance_axis]
        return (axes[0], axes[1])

    def _project_to_2d(
        self,
        point_3d: Tuple[float, float, float],
        plane_axes: Tuple[int, int]
    ) -> Point2D:
        """Project 3D point to specified plane"""
        return Point2D(x=point_3d[plane_axes[0]], y=point_3d[plane_axes[1]])

    def calculate_image_size(
        self,
        strokes: List[Stroke],
        pixels_per_unit: float = 10.0,
        min_size: Tuple[int, int] = (200, 200),
        max_size: Tuple[int, int] = (1600, 1200),
        padding: int = 10,
        preset: Optional[str] = None
    ) -> Tuple[int, int]:
        """
        Calculate appropriate image size from stroke data.

        Args:
            strokes: List of Strokes
            pixels_per_unit: Pixels per model unit (resolution)
            min_size: Minimum image size (width, height)
            max_size: Maximum image size (width, height)
            padding: Padding in pixels
            preset: Preset name ('thumbnail', 'preview', 'display')

        Returns:
            Tuple of (width, height)
        """
        if preset:
            p = get_preset(preset)
            pixels_per_unit = p.pixels_per_unit
            min_size = p.min_size
            max_size = p.max_size
            padding = p.padding

        all_points = [p for stroke in strokes for p in stroke.points]
        if not all_points:
            return min_size

        bbox = BoundingBox.of(all_points)
        width = int(bbox.width * pixels_per_unit) + 2 * padding
        height = int(bbox.height * pixels_per_unit) + 2 * padding

        width = max(min_size[0], min(max_size[0], width))
        height = max(min_size[1], min(max_size[1], height))
        return (width, height)

    def strokes_to_image(
        self,
        strokes: List[Stroke],
        image_size: Optional[Tuple[int, int]] = None,
        padding: int = 10,
        line_width: int = 1,
        background_color: int = 255,
        line_color: int = 0,
        flip_y: bool = True,
        preset: Optional[str] = None
    ) -> Image.Image:
        """
        Convert stroke data to Pillow image.

        Args:
            strokes: List of Strokes
            image_size: Output image size (width, height). Auto-calculated if None
            padding: Padding in pixels
            line_width: Line width
            background_color: Background color (0-255, grayscale)
            line_color: Line color (0-255, grayscale)
            flip_y: Whether to flip Y axis (model Y points up, image Y points down)
            preset: Preset name ('thumbnail', 'preview', 'display')

        Returns:
            PIL Image object
        """
        if preset:
            p = get_preset(preset)
            padding = p.padding
            line_width = p.line_width

        if image_size is None:
            image_size = self.calculate_image_size(strokes, padding=padding, preset=preset)

        img = Image.new('L', image_size, background_color)
        all_points = [p for stroke in strokes for p in stroke.points]
        if not all_points:
            return img

        bbox = BoundingBox.of(all_points)
        draw = ImageDraw.Draw(img)

        draw_width = image_size[0] - 2 * padding
        draw_height = image_size[1] - 2 * padding
        if draw_width <= 0 or draw_height <= 0:
            return img

        # Preserve aspect ratio
        scale_x = draw_width / bbox.width if bbox.width > 0 else 1
        scale_y = draw_height / bbox.height if bbox.height > 0 else 1
        scale = min(scale_x, scale_y)

        offset_x = padding + (draw_width - bbox.width * scale) / 2
        offset_y = padding + (draw_height - bbox.height * scale) / 2

        def transform(p: Point2D) -> Tuple[float, float]:
            """Convert coordinates to image coordinates"""
            x = (p.x - bbox.min_x) * scale + offset_x
            y = (p.y - bbox.min_y) * scale + offset_y
            if flip_y:
                y = image_size[1] - y
            return (x, y)

        for stroke in strokes:
            if len(stroke.points) < 2:
                x, y = transform(stroke.points[0])
                r = max(line_width, 1)
                draw.ellipse([x - r, y - r, x + r, y + r], fill=line_color)
                continue
            draw.line([transform(p) for p in stroke.points], fill=line_color, width=line_width)

        return img

    def convert_to_image(
        self,
        kinds: Optional[List[str]] = None,
        image_size: Optional[Tuple[int, int]] = None,
        preset: Optional[str] = None,
        **kwargs
    ) -> Image.Image:
        """
        Render the document geometry to an image.

        Args:
            kinds: Primitive kinds to draw (all if None)
            image_size: Output image size. Auto-calculated if None
            preset: Preset name ('thumbnail', 'preview', 'display')
            **kwargs: Additional options passed to strokes_to_image

        Returns:
            PIL Image object
        """
        strokes = self.extract_strokes(kinds)
        return self.strokes_to_image(strokes, image_size=image_size, preset=preset, **kwargs)

    def save_image(self, output_path: Path, **kwargs) -> bool:
        """
        Save the rendered geometry as an image file.

        Args:
            output_path: Output file path
            **kwargs: Additional options passed to convert_to_image

        Returns:
            True if anything was drawn and the file was saved
        """
        strokes = self.extract_strokes(kwargs.pop('kinds', None))
        if not strokes:
            return False

        img = self.strokes_to_image(strokes, **kwargs)
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        img.save(output_path)
        return True


def _sanitize_filename(name: str) -> str:
    """Convert to safe string for filename"""
    safe = re.sub(r'[<>:"/\\|?*]', '_', name)
    return safe.replace(' ', '_')


if __name__ == '__main__':
    import sys

    from iges_reader import IgesReader

    if len(sys.argv) < 2:
        print("Usage:")
        print("  python iges_image_converter.py <IGES_FILE> [OUTPUT_PNG] [PRESET]")
        sys.exit(1)

    iges_file = Path(sys.argv[1])
    output_path = Path(sys.argv[2]) if len(sys.argv) > 2 else Path(
        f"output_{_sanitize_filename(iges_file.stem)}.png")
    preset = sys.argv[3] if len(sys.argv) > 3 else 'preview'

    reader = IgesReader(iges_file)
    if not reader.load():
        sys.exit(1)

    converter = IgesImageConverter(reader.document)
    if converter.save_image(output_path, preset=preset):
        print(f"Save complete: {output_path}")
    else:
        print("No drawable geometry found")
