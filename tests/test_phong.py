"""Unit tests for the Phong material.

Tests cover:
- Material registry (add, count, clear, lookup, validation)
- Diffuse term
- Specular term, including the sharp 64th-power falloff
"""

import math

import pytest
import taichi as ti


def _specular(light_color, ks, light_dir, normal, view_dir):
    """Run eval_specular in a kernel and return the resulting color."""
    from whitted.materials.phong import eval_specular, vec3

    result = ti.field(dtype=ti.math.vec3, shape=())

    @ti.kernel
    def test_kernel():
        result[None] = eval_specular(
            vec3(light_color[0], light_color[1], light_color[2]),
            ks,
            vec3(light_dir[0], light_dir[1], light_dir[2]),
            vec3(normal[0], normal[1], normal[2]),
            vec3(view_dir[0], view_dir[1], view_dir[2]),
        )

    test_kernel()
    return result[None]


class TestMaterialRegistry:
    """Tests for Phong material storage."""

    def test_add_material_returns_sequential_ids(self):
        """Test material ids start at 0 and increase by one."""
        from whitted.materials.phong import add_phong_material, get_material_count

        assert add_phong_material((0.6, 0.3, 0.3), kd=0.8, ks=1.0, kr=1.0) == 0
        assert add_phong_material((0.0, 1.0, 0.0), kd=0.0, ks=1.0, kr=1.0) == 1
        assert get_material_count() == 2

    def test_clear_materials(self):
        """Test clearing resets the count."""
        from whitted.materials.phong import (
            add_phong_material,
            clear_phong_materials,
            get_material_count,
        )

        add_phong_material((0.5, 0.5, 0.5), kd=1.0, ks=0.0, kr=0.0)
        clear_phong_materials()
        assert get_material_count() == 0

    def test_get_material_roundtrip(self):
        """Test get_material returns the stored properties."""
        from whitted.materials.phong import add_phong_material, get_material, get_material_kr

        add_phong_material((0.1, 0.1, 0.1), kd=0.1, ks=0.1, kr=0.1)
        mat_id = add_phong_material((0.8, 0.2, 1.0), kd=0.8, ks=0.5, kr=0.25)

        color = ti.field(dtype=ti.math.vec3, shape=())
        coeffs = ti.field(dtype=ti.math.vec3, shape=())
        kr_result = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            mat = get_material(mat_id)
            color[None] = mat.color
            coeffs[None] = ti.math.vec3(mat.kd, mat.ks, mat.kr)
            kr_result[None] = get_material_kr(mat_id)

        test_kernel()
        c = color[None]
        k = coeffs[None]
        assert abs(c[0] - 0.8) < 1e-6
        assert abs(c[1] - 0.2) < 1e-6
        assert abs(c[2] - 1.0) < 1e-6
        assert abs(k[0] - 0.8) < 1e-6
        assert abs(k[1] - 0.5) < 1e-6
        assert abs(k[2] - 0.25) < 1e-6
        assert abs(kr_result[None] - 0.25) < 1e-6

    @pytest.mark.parametrize("color", [(1.1, 0.0, 0.0), (0.0, -0.1, 0.0)])
    def test_color_out_of_range_raises(self, color):
        """Test color components must lie in [0, 1]."""
        from whitted.materials.phong import add_phong_material

        with pytest.raises(ValueError, match="outside"):
            add_phong_material(color, kd=1.0, ks=0.0, kr=0.0)

    def test_color_wrong_length_raises(self):
        """Test the color must have three components."""
        from whitted.materials.phong import add_phong_material

        with pytest.raises(ValueError, match="3 components"):
            add_phong_material((0.5, 0.5), kd=1.0, ks=0.0, kr=0.0)

    @pytest.mark.parametrize("name", ["kd", "ks", "kr"])
    def test_negative_coefficient_raises(self, name):
        """Test coefficients must be non-negative."""
        from whitted.materials.phong import add_phong_material

        coeffs = {"kd": 1.0, "ks": 1.0, "kr": 1.0}
        coeffs[name] = -0.5
        with pytest.raises(ValueError, match=name):
            add_phong_material((0.5, 0.5, 0.5), **coeffs)

    def test_capacity_exceeded(self):
        """Test exceeding MAX_MATERIALS raises RuntimeError."""
        from whitted.materials.phong import MAX_MATERIALS, add_phong_material

        for _ in range(MAX_MATERIALS):
            add_phong_material((0.5, 0.5, 0.5), kd=1.0, ks=0.0, kr=0.0)

        with pytest.raises(RuntimeError, match="Maximum number of materials"):
            add_phong_material((0.5, 0.5, 0.5), kd=1.0, ks=0.0, kr=0.0)


class TestDiffuse:
    """Tests for the diffuse term."""

    def test_diffuse_head_on(self):
        """Test light along the normal gives color * kd."""
        from whitted.materials.phong import eval_diffuse, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = eval_diffuse(
                vec3(0.6, 0.3, 0.3), 0.5, vec3(0.0, 1.0, 0.0), vec3(0.0, 1.0, 0.0)
            )

        test_kernel()
        r = result[None]
        assert abs(r[0] - 0.3) < 1e-6
        assert abs(r[1] - 0.15) < 1e-6
        assert abs(r[2] - 0.15) < 1e-6

    def test_diffuse_cosine_falloff(self):
        """Test the diffuse term scales with dot(L, N)."""
        from whitted.materials.phong import eval_diffuse, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())
        s = 1.0 / math.sqrt(2.0)

        @ti.kernel
        def test_kernel():
            result[None] = eval_diffuse(
                vec3(1.0, 1.0, 1.0), 1.0, vec3(s, s, 0.0), vec3(0.0, 1.0, 0.0)
            )

        test_kernel()
        assert abs(result[None][0] - s) < 1e-6


class TestSpecular:
    """Tests for the specular term."""

    def test_specular_peak(self):
        """Test viewing along the mirror direction gives light_color * ks."""
        r = _specular((2.0, 1.0, 0.5), 0.5, (0.0, 1.0, 0.0), (0.0, 1.0, 0.0), (0.0, 1.0, 0.0))
        assert abs(r[0] - 1.0) < 1e-5
        assert abs(r[1] - 0.5) < 1e-5
        assert abs(r[2] - 0.25) < 1e-5

    def test_specular_mirror_direction(self):
        """Test the highlight peaks at the reflected light direction."""
        s = 1.0 / math.sqrt(2.0)
        # Light at 45 degrees on one side, viewer at 45 degrees on the other
        r = _specular((1.0, 1.0, 1.0), 1.0, (s, s, 0.0), (0.0, 1.0, 0.0), (-s, s, 0.0))
        assert abs(r[0] - 1.0) < 1e-5

    def test_specular_sharp_falloff(self):
        """Test off-peak highlights follow cos^64."""
        angle = 0.1
        view = (math.sin(angle), math.cos(angle), 0.0)
        r = _specular((1.0, 1.0, 1.0), 1.0, (0.0, 1.0, 0.0), (0.0, 1.0, 0.0), view)
        assert abs(r[0] - math.cos(angle) ** 64) < 1e-4

    def test_specular_uses_light_color_not_base(self):
        """Test the specular term is tinted by the light only."""
        r = _specular((0.0, 1.0, 0.0), 1.0, (0.0, 1.0, 0.0), (0.0, 1.0, 0.0), (0.0, 1.0, 0.0))
        assert abs(r[0]) < 1e-6
        assert abs(r[1] - 1.0) < 1e-5
        assert abs(r[2]) < 1e-6

    def test_specular_not_clamped(self):
        """Test a view opposite the reflection still gives (-1)^64 = 1."""
        r = _specular((1.0, 1.0, 1.0), 1.0, (0.0, 1.0, 0.0), (0.0, 1.0, 0.0), (0.0, -1.0, 0.0))
        assert abs(r[0] - 1.0) < 1e-5

    def test_zero_ks(self):
        """Test ks = 0 disables the highlight."""
        r = _specular((1.0, 1.0, 1.0), 0.0, (0.0, 1.0, 0.0), (0.0, 1.0, 0.0), (0.0, 1.0, 0.0))
        assert abs(r[0]) < 1e-6
