"""
Parametric Shape Geometry Generator

Generates triangulated surfaces for the three evolvable shape families
from a chromosome of named genes:

- naca:  NACA 4-digit section extruded into a constant-chord wing
- ogive: tangent-ogive body of revolution (open base)
- ahmed: simplified Ahmed car body (closed, capped sides)

Every profile is emitted clockwise in its own plane so that the shared
extrusion/revolution winding produces outward facing triangles.
"""

import math
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, ClassVar, Dict, Optional, Sequence, Tuple
import numpy as np

from ..genes import Gene, GeneIndex
from .mesh import SurfaceMesh


class ShapeFamily(Enum):
    NACA = "naca"
    OGIVE = "ogive"
    AHMED = "ahmed"

    @classmethod
    def _missing_(cls, value):
        aliases = {'wing': cls.NACA, 'airfoil': cls.NACA, 'ahmed_body': cls.AHMED}
        if isinstance(value, str):
            return aliases.get(value.lower())
        return None


@dataclass
class MeshResolution:
    """Discretization controls for all shape families."""
    airfoil_points: int = 50        # points per surface (upper or lower)
    span_segments: int = 20         # spanwise bands of the wing
    ogive_segments: int = 32        # angular steps around the body
    ogive_rings: int = 32           # longitudinal stations
    ahmed_width_segments: int = 20  # bands across the Ahmed body
    ahmed_nose_points: int = 4      # segments per rounded nose edge

    def __post_init__(self):
        for name, value in asdict(self).items():
            if value < 1:
                raise ValueError(f"MeshResolution.{name} must be >= 1, got {value}")
        if self.ogive_segments < 3:
            raise ValueError("MeshResolution.ogive_segments must be >= 3")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def coarse(cls) -> 'MeshResolution':
        """Low-cost preset for long optimization runs and tests."""
        return cls(
            airfoil_points=12,
            span_segments=4,
            ogive_segments=12,
            ogive_rings=8,
            ahmed_width_segments=4,
            ahmed_nose_points=2,
        )


# =============================================================================
# Shape parameters
# =============================================================================

@dataclass
class WingParameters:
    """
    NACA 4-digit wing.

    camber: maximum camber in percent of chord (the "m" digit)
    camber_pos: position of maximum camber in tenths of chord ("p" digit)
    thickness: maximum thickness in percent of chord ("tt" digits)
    chord, span: wing dimensions in meters
    """
    camber: float = 0.0
    camber_pos: float = 4.0
    thickness: float = 12.0
    chord: float = 1.0
    span: float = 2.0

    REQUIRED_GENES: ClassVar[Tuple[str, ...]] = ('camber', 'camberPos', 'thickness')

    @classmethod
    def from_chromosome(cls, chromosome: Sequence[Gene], index: GeneIndex) -> 'WingParameters':
        index.require(cls.REQUIRED_GENES, "naca chromosome")
        return cls(
            camber=index.value(chromosome, 'camber'),
            camber_pos=index.value(chromosome, 'camberPos'),
            thickness=index.value(chromosome, 'thickness'),
            chord=index.value(chromosome, 'chord', default=cls.chord),
            span=index.value(chromosome, 'span', default=cls.span),
        )

    @classmethod
    def naca2412(cls) -> 'WingParameters':
        """Preset: classic cambered general-aviation section."""
        return cls(camber=2, camber_pos=4, thickness=12)

    @classmethod
    def naca0012(cls) -> 'WingParameters':
        """Preset: symmetric 12% section."""
        return cls(camber=0, camber_pos=0, thickness=12)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class OgiveParameters:
    """Tangent ogive of given length and base radius (meters)."""
    length: float = 5.0
    radius: float = 1.0

    REQUIRED_GENES: ClassVar[Tuple[str, ...]] = ('length', 'radius')

    @classmethod
    def from_chromosome(cls, chromosome: Sequence[Gene], index: GeneIndex) -> 'OgiveParameters':
        index.require(cls.REQUIRED_GENES, "ogive chromosome")
        return cls(
            length=index.value(chromosome, 'length'),
            radius=index.value(chromosome, 'radius'),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class AhmedParameters:
    """
    Simplified Ahmed body.

    Defaults are the standard wind-tunnel model (1.044 x 0.389 x 0.288 m).
    slant_angle is the rear slant in degrees.
    """
    slant_angle: float = 25.0
    length: float = 1.044
    width: float = 0.389
    height: float = 0.288

    REQUIRED_GENES: ClassVar[Tuple[str, ...]] = ('slantAngle',)

    @classmethod
    def from_chromosome(cls, chromosome: Sequence[Gene], index: GeneIndex) -> 'AhmedParameters':
        index.require(cls.REQUIRED_GENES, "ahmed chromosome")
        return cls(
            slant_angle=index.value(chromosome, 'slantAngle'),
            length=index.value(chromosome, 'length', default=cls.length),
            width=index.value(chromosome, 'width', default=cls.width),
            height=index.value(chromosome, 'height', default=cls.height),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# =============================================================================
# Profiles
# =============================================================================

def naca4_section(camber: float, camber_pos: float, thickness: float,
                  n_points: int = 50) -> Tuple[np.ndarray, np.ndarray]:
    """
    NACA 4-digit section on a unit chord.

    Cosine spacing clusters points at the leading and trailing edges.
    Returns (x, y) of length 2 * (n_points + 1): upper surface from
    leading to trailing edge, then lower surface back to the leading edge.
    """
    m = camber / 100.0
    p = camber_pos / 10.0
    t = thickness / 100.0

    beta = np.linspace(0.0, math.pi, n_points + 1)
    xc = (1.0 - np.cos(beta)) / 2.0

    # Thickness distribution
    yt = 5.0 * t * (
        0.2969 * np.sqrt(xc)
        - 0.1260 * xc
        - 0.3516 * xc ** 2
        + 0.2843 * xc ** 3
        - 0.1015 * xc ** 4
    )

    yc, dyc_dx = _camber_line(xc, m, p)
    theta = np.arctan(dyc_dx)

    xu = xc - yt * np.sin(theta)
    yu = yc + yt * np.cos(theta)
    xl = xc + yt * np.sin(theta)
    yl = yc - yt * np.cos(theta)

    x = np.concatenate([xu, xl[::-1]])
    y = np.concatenate([yu, yl[::-1]])
    return x, y


def _camber_line(xc: np.ndarray, m: float, p: float) -> Tuple[np.ndarray, np.ndarray]:
    """Two-segment parabolic camber line and its slope."""
    yc = np.zeros_like(xc)
    dyc = np.zeros_like(xc)
    if p <= 0.0 or m == 0.0:
        return yc, dyc

    fore = xc < p
    yc[fore] = m / p ** 2 * (2 * p * xc[fore] - xc[fore] ** 2)
    dyc[fore] = 2 * m / p ** 2 * (p - xc[fore])

    aft = ~fore
    if p < 1.0:
        q = (1.0 - p) ** 2
        yc[aft] = m / q * (1 - 2 * p + 2 * p * xc[aft] - xc[aft] ** 2)
        dyc[aft] = 2 * m / q * (p - xc[aft])
    return yc, dyc


def ogive_profile(length: float, radius: float, stations: np.ndarray) -> np.ndarray:
    """Tangent ogive radius at each axial station x in [0, length]."""
    radius = max(radius, 1e-9)
    rho = (radius ** 2 + length ** 2) / (2 * radius)
    under = np.clip(rho ** 2 - (length - stations) ** 2, 0.0, None)
    return np.clip(np.sqrt(under) - (rho - radius), 0.0, None)


NOSE_RADIUS = 0.100   # m, front edge rounding of the Ahmed body
SLANT_LENGTH = 0.222  # m, standard Ahmed slant length


def ahmed_profile(params: AhmedParameters, nose_points: int = 4) -> np.ndarray:
    """
    Clockwise side profile of the Ahmed body in the x-y plane.

    Rounded nose (bottom and top edges), flat roof, rear slant, vertical
    base; the underside closes the loop from the base back to the nose.
    """
    L, h = params.length, params.height
    slant_len = min(SLANT_LENGTH, 0.5 * L)
    rn = min(NOSE_RADIUS, 0.45 * h, 0.45 * (L - slant_len))
    angle = math.radians(min(max(params.slant_angle, 0.0), 89.0))
    slant_h = min(slant_len * math.tan(angle), 0.9 * h)

    phi = np.linspace(0.0, math.pi / 2, nose_points + 1)
    lower_nose = np.column_stack([rn - rn * np.sin(phi), rn - rn * np.cos(phi)])
    upper_nose = np.column_stack([rn - rn * np.cos(phi), h - rn + rn * np.sin(phi)])
    rear = np.array([
        [L - slant_len, h],
        [L, h - slant_h],
        [L, 0.0],
    ])
    return np.vstack([lower_nose, upper_nose, rear])


# =============================================================================
# Mesh construction
# =============================================================================

def extrude_profile(profile: np.ndarray, z_stations: np.ndarray,
                    closed: bool = False) -> Tuple[np.ndarray, np.ndarray]:
    """
    Extrude a clockwise x-y profile along z.

    Consecutive sections are joined by quads split into two triangles,
    (a, b, c) and (b, d, c); with a clockwise profile this winding faces
    outward. A closed profile also joins its last point to its first.
    """
    n_pts = len(profile)
    n_sec = len(z_stations)

    vertices = np.empty((n_sec * n_pts, 3))
    for i, z in enumerate(z_stations):
        vertices[i * n_pts:(i + 1) * n_pts, 0] = profile[:, 0]
        vertices[i * n_pts:(i + 1) * n_pts, 1] = profile[:, 1]
        vertices[i * n_pts:(i + 1) * n_pts, 2] = z

    n_edges = n_pts if closed else n_pts - 1
    i = np.arange(n_sec - 1)[:, None]
    j = np.arange(n_edges)[None, :]
    a = i * n_pts + j
    c = i * n_pts + (j + 1) % n_pts
    b = a + n_pts
    d = c + n_pts

    triangles = np.empty((2 * a.size, 3), dtype=np.int64)
    triangles[0::2] = np.stack([a, b, c], axis=-1).reshape(-1, 3)
    triangles[1::2] = np.stack([b, d, c], axis=-1).reshape(-1, 3)
    return vertices, triangles


class ParametricShape:
    """Base class: parameters in, SurfaceMesh out."""

    family: ClassVar[ShapeFamily]
    parameters_cls: ClassVar[type]

    def __init__(self, params, resolution: Optional[MeshResolution] = None):
        self.params = params
        self.resolution = resolution or MeshResolution()

    @classmethod
    def from_chromosome(cls, chromosome: Sequence[Gene], index: Optional[GeneIndex] = None,
                        resolution: Optional[MeshResolution] = None) -> 'ParametricShape':
        index = index or GeneIndex.from_chromosome(chromosome)
        return cls(cls.parameters_cls.from_chromosome(chromosome, index), resolution)

    def generate(self) -> SurfaceMesh:
        raise NotImplementedError

    def expected_triangle_count(self) -> int:
        raise NotImplementedError


class ParametricWing(ParametricShape):
    """
    Constant-chord wing from a NACA 4-digit section.

    Coordinate system:
    - X: chordwise (leading edge at 0)
    - Y: vertical (lift direction)
    - Z: spanwise, centered on the origin
    No tip caps are generated.
    """

    family = ShapeFamily.NACA
    parameters_cls = WingParameters

    def generate(self) -> SurfaceMesh:
        p = self.params
        res = self.resolution
        x, y = naca4_section(p.camber, p.camber_pos, p.thickness, res.airfoil_points)
        profile = np.column_stack([x, y]) * p.chord
        z = (np.arange(res.span_segments + 1) / res.span_segments - 0.5) * p.span
        vertices, triangles = extrude_profile(profile, z, closed=False)
        return SurfaceMesh(vertices, triangles)

    def expected_triangle_count(self) -> int:
        res = self.resolution
        section_points = 2 * (res.airfoil_points + 1)
        return 2 * res.span_segments * (section_points - 1)


class ParametricOgive(ParametricShape):
    """
    Tangent-ogive body of revolution about the X axis.

    Tip at the origin (a single apex vertex joined by a triangle fan),
    open base at x = length.
    """

    family = ShapeFamily.OGIVE
    parameters_cls = OgiveParameters

    def generate(self) -> SurfaceMesh:
        p = self.params
        n_seg = self.resolution.ogive_segments
        n_rings = self.resolution.ogive_rings

        stations = np.linspace(0.0, p.length, n_rings + 1)[1:]
        radii = ogive_profile(p.length, p.radius, stations)
        theta = np.linspace(0.0, 2 * math.pi, n_seg + 1)

        ring_size = n_seg + 1
        vertices = np.zeros((1 + n_rings * ring_size, 3))
        for k, (x, r) in enumerate(zip(stations, radii)):
            start = 1 + k * ring_size
            vertices[start:start + ring_size, 0] = x
            vertices[start:start + ring_size, 1] = r * np.cos(theta)
            vertices[start:start + ring_size, 2] = r * np.sin(theta)

        def idx(ring, j):
            return 1 + ring * ring_size + j

        triangles = []
        # Tip fan
        for j in range(n_seg):
            triangles.append((0, idx(0, j + 1), idx(0, j)))
        # Bands between rings
        for k in range(n_rings - 1):
            for j in range(n_seg):
                a, c = idx(k, j), idx(k, j + 1)
                b, d = idx(k + 1, j), idx(k + 1, j + 1)
                triangles.append((a, c, b))
                triangles.append((b, c, d))

        return SurfaceMesh(vertices, np.array(triangles, dtype=np.int64))

    def expected_triangle_count(self) -> int:
        res = self.resolution
        return res.ogive_segments * (2 * res.ogive_rings - 1)


class ParametricAhmedBody(ParametricShape):
    """
    Ahmed body: side profile extruded across the width (Z), both side
    faces closed with triangle fans.
    """

    family = ShapeFamily.AHMED
    parameters_cls = AhmedParameters

    def generate(self) -> SurfaceMesh:
        p = self.params
        res = self.resolution
        profile = ahmed_profile(p, res.ahmed_nose_points)
        n_pts = len(profile)
        z = (np.arange(res.ahmed_width_segments + 1) / res.ahmed_width_segments - 0.5) * p.width
        vertices, bands = extrude_profile(profile, z, closed=True)

        # Side caps: fan from the first profile point
        k = np.arange(1, n_pts - 1)
        first = np.column_stack([np.zeros_like(k), k, k + 1])
        last_start = res.ahmed_width_segments * n_pts
        last = np.column_stack([np.full_like(k, last_start), last_start + k + 1, last_start + k])

        triangles = np.vstack([bands, first, last]).astype(np.int64)
        return SurfaceMesh(vertices, triangles)

    def expected_triangle_count(self) -> int:
        res = self.resolution
        n_pts = 2 * (res.ahmed_nose_points + 1) + 3
        return 2 * res.ahmed_width_segments * n_pts + 2 * (n_pts - 2)


SHAPE_CLASSES: Dict[ShapeFamily, type] = {
    ShapeFamily.NACA: ParametricWing,
    ShapeFamily.OGIVE: ParametricOgive,
    ShapeFamily.AHMED: ParametricAhmedBody,
}


def required_genes(shape_family) -> Tuple[str, ...]:
    """Gene names a chromosome must carry for the given family."""
    family = ShapeFamily(shape_family)
    return SHAPE_CLASSES[family].parameters_cls.REQUIRED_GENES


def create_shape(shape_family, chromosome: Sequence[Gene],
                 resolution: Optional[MeshResolution] = None,
                 index: Optional[GeneIndex] = None) -> ParametricShape:
    family = ShapeFamily(shape_family)
    return SHAPE_CLASSES[family].from_chromosome(chromosome, index, resolution)


def generate(shape_family, chromosome: Sequence[Gene],
             resolution: Optional[MeshResolution] = None,
             index: Optional[GeneIndex] = None) -> SurfaceMesh:
    """
    Map a chromosome to a surface mesh.

    Args:
        shape_family: ShapeFamily or its tag ('naca', 'ogive', 'ahmed')
        chromosome: genes named as the family expects
        resolution: discretization (defaults to MeshResolution())
        index: prebuilt GeneIndex for the chromosome layout

    Raises:
        MissingGeneError: a required gene is absent
    """
    return create_shape(shape_family, chromosome, resolution, index).generate()
