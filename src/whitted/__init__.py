"""Whitted-style recursive ray tracer built on Taichi.

This package renders scenes of spheres lit by point lights, with:
- Numerically stable ray-sphere intersection and nearest-hit resolution
- Phong diffuse and specular shading with binary shadow rays
- Recursive mirror reflection up to a fixed depth
- Regular-grid supersampling and global min/max image normalization

Subpackages:
    core: Rays, vector math, the integrator and the renderer facade
    geometry: Sphere primitive and intersection algorithm
    materials: Phong material model and registry
    scene: Scene storage, ray queries and the default scene
    camera: Pinhole camera with look-at placement
    output: Image sink and PNG export
"""

__version__ = "0.1.0"
