"""Scene manager coordinating spheres, materials and lights.

This module provides a high-level scene building API on top of the Taichi
field storage in ``scene.intersection`` and ``materials.phong``. The
SceneManager maintains:
- The material registry (material ids are indices into the Phong fields)
- Sphere and light storage, with validation of material references
- Python-side records of everything added, for inspection and tests

Scene contents are written once during setup and are read-only while a
render runs.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from whitted.scene.manager import SceneManager
    >>> scene = SceneManager()
    >>> mat_id = scene.add_material(color=(0.6, 0.3, 0.3), kd=0.8, ks=1.0, kr=0.5)
    >>> scene.add_sphere(center=(0, 0, 0), radius=1.0, material_id=mat_id)
    0
    >>> scene.add_light(position=(0, 6, 2), color=(1, 1, 1))
    0
"""

from dataclasses import dataclass

from whitted.materials.phong import (
    MAX_MATERIALS,
    add_phong_material,
    clear_phong_materials,
    get_material_count,
)
from whitted.scene.intersection import (
    MAX_LIGHTS,
    MAX_SPHERES,
    add_light,
    add_sphere,
    clear_scene,
    get_light_count,
    get_sphere_count,
)


@dataclass
class MaterialInfo:
    """Information about a registered material.

    Attributes:
        material_id: The material id (index into the material fields).
        color: Base color (R, G, B).
        kd: Diffuse coefficient.
        ks: Specular coefficient.
        kr: Reflective coefficient.
    """

    material_id: int
    color: tuple[float, float, float]
    kd: float
    ks: float
    kr: float


@dataclass
class SphereInfo:
    """Information about a sphere in the scene.

    Attributes:
        sphere_index: The index in the sphere storage arrays.
        center: The center of the sphere.
        radius: The radius of the sphere.
        material_id: The material id assigned to the sphere.
    """

    sphere_index: int
    center: tuple[float, float, float]
    radius: float
    material_id: int


@dataclass
class LightInfo:
    """Information about a point light in the scene.

    Attributes:
        light_index: The index in the light storage arrays.
        position: The light position.
        color: The light color (may exceed 1.0).
    """

    light_index: int
    position: tuple[float, float, float]
    color: tuple[float, float, float]


def _as_triple(values) -> tuple[float, float, float]:
    """Convert a 3-sequence to a tuple of floats."""
    if len(values) != 3:
        raise ValueError(f"Expected 3 components, got {len(values)}")
    return (float(values[0]), float(values[1]), float(values[2]))


class SceneManager:
    """Scene builder for spheres, Phong materials and point lights.

    Creating a SceneManager clears the global scene storage, so only one
    scene is active at a time.

    Attributes:
        materials: List of MaterialInfo for all registered materials.
        spheres: List of SphereInfo for all spheres in the scene.
        lights: List of LightInfo for all lights in the scene.

    Example:
        >>> scene = SceneManager()
        >>> mirror = scene.add_material((0.9, 0.9, 0.9), kd=0.2, ks=1.0, kr=1.0)
        >>> scene.add_sphere((0, 0, 0), 1.0, mirror)
        >>> scene.add_phong_sphere((2, 0, 0), 0.5, color=(1, 0, 0), kd=1.0)
        >>> scene.add_light((0, 6, 2), (1, 1, 1))
    """

    def __init__(self) -> None:
        """Initialize an empty scene."""
        self.materials: list[MaterialInfo] = []
        self.spheres: list[SphereInfo] = []
        self.lights: list[LightInfo] = []
        self._clear_all()

    def _clear_all(self) -> None:
        """Clear all scene data including Taichi fields."""
        clear_scene()
        clear_phong_materials()
        self.materials.clear()
        self.spheres.clear()
        self.lights.clear()

    def clear(self) -> None:
        """Clear the entire scene (spheres, lights and materials)."""
        self._clear_all()

    # =========================================================================
    # Material Management
    # =========================================================================

    def add_material(
        self,
        color: tuple[float, float, float],
        kd: float,
        ks: float,
        kr: float,
    ) -> int:
        """Add a Phong material to the scene.

        Args:
            color: Base color as (R, G, B), each component in [0, 1].
            kd: Diffuse coefficient.
            ks: Specular coefficient.
            kr: Reflective coefficient.

        Returns:
            The material id.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If the color or a coefficient is out of range.
        """
        color = _as_triple(color)
        material_id = add_phong_material(color, kd, ks, kr)
        self.materials.append(
            MaterialInfo(material_id=material_id, color=color, kd=kd, ks=ks, kr=kr)
        )
        return material_id

    def get_material_count(self) -> int:
        """Get the number of registered materials."""
        return get_material_count()

    def get_material_info(self, material_id: int) -> MaterialInfo | None:
        """Get information about a material.

        Args:
            material_id: The material id.

        Returns:
            The MaterialInfo, or None if the id is not registered.
        """
        if 0 <= material_id < len(self.materials):
            return self.materials[material_id]
        return None

    # =========================================================================
    # Primitive and Light Management
    # =========================================================================

    def add_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        material_id: int,
    ) -> int:
        """Add a sphere using an existing material.

        Args:
            center: The center of the sphere.
            radius: The radius of the sphere (must be positive).
            material_id: A material id returned by add_material().

        Returns:
            The sphere index.

        Raises:
            ValueError: If the material id is unknown or the radius is not positive.
            RuntimeError: If the maximum number of spheres is exceeded.
        """
        if self.get_material_info(material_id) is None:
            raise ValueError(f"Invalid material_id: {material_id}")

        center = _as_triple(center)
        sphere_index = add_sphere(center, radius, material_id)
        self.spheres.append(
            SphereInfo(
                sphere_index=sphere_index,
                center=center,
                radius=radius,
                material_id=material_id,
            )
        )
        return sphere_index

    def add_phong_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        color: tuple[float, float, float],
        kd: float = 1.0,
        ks: float = 0.0,
        kr: float = 0.0,
    ) -> tuple[int, int]:
        """Add a sphere together with a new material of its own.

        Returns:
            Tuple of (sphere_index, material_id).
        """
        material_id = self.add_material(color, kd, ks, kr)
        return self.add_sphere(center, radius, material_id), material_id

    def add_light(
        self,
        position: tuple[float, float, float],
        color: tuple[float, float, float],
    ) -> int:
        """Add a point light.

        Args:
            position: The light position.
            color: The light color (non-negative, may exceed 1.0).

        Returns:
            The light index.

        Raises:
            ValueError: If a color component is negative.
            RuntimeError: If the maximum number of lights is exceeded.
        """
        position = _as_triple(position)
        color = _as_triple(color)
        light_index = add_light(position, color)
        self.lights.append(LightInfo(light_index=light_index, position=position, color=color))
        return light_index

    # =========================================================================
    # Scene Information
    # =========================================================================

    def get_sphere_count(self) -> int:
        """Get the number of spheres in the scene."""
        return get_sphere_count()

    def get_light_count(self) -> int:
        """Get the number of lights in the scene."""
        return get_light_count()

    @staticmethod
    def get_max_spheres() -> int:
        """Get the maximum number of spheres supported."""
        return MAX_SPHERES

    @staticmethod
    def get_max_lights() -> int:
        """Get the maximum number of lights supported."""
        return MAX_LIGHTS

    @staticmethod
    def get_max_materials() -> int:
        """Get the maximum number of materials supported."""
        return MAX_MATERIALS
