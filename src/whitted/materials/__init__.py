"""Materials module.

Components:
    phong: Empirical Phong material (base color, kd, ks, kr) and registry
"""

from .phong import (
    MAX_MATERIALS,
    SPECULAR_EXPONENT,
    PhongMaterial,
    add_phong_material,
    clear_phong_materials,
    eval_diffuse,
    eval_specular,
    get_material,
    get_material_count,
    get_material_kr,
)

__all__ = [
    "PhongMaterial",
    "add_phong_material",
    "clear_phong_materials",
    "eval_diffuse",
    "eval_specular",
    "get_material",
    "get_material_count",
    "get_material_kr",
    "MAX_MATERIALS",
    "SPECULAR_EXPONENT",
]
