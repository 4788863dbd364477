#!/usr/bin/env python3
"""Render the default four-sphere scene.

This script demonstrates end-to-end rendering with the Whitted ray tracer.
It creates the scene, sets up the camera, renders with 3x3 supersampling and
saves the globally normalized result.

Usage:
    python examples/render_default_scene.py

The output is written to whitted.png in the current directory. A
single-channel facing-ratio preview is written to whitted_facing.png.
"""

from __future__ import annotations

import logging
import sys
import time
from pathlib import Path

import taichi as ti

OUTPUT_PATH = "whitted.png"
FACING_OUTPUT_PATH = "whitted_facing.png"


def render_default_scene(shading: str = "phong", output_path: str = OUTPUT_PATH) -> Path:
    """Render the default scene and save it to a file.

    Args:
        shading: "phong" or "facing".
        output_path: Output file path (PNG).

    Returns:
        Path to the saved image file.
    """
    # Lazy imports to allow Taichi initialization first
    from whitted.core.renderer import RenderConfig, WhittedRenderer
    from whitted.scene.default_scene import create_default_scene

    scene, camera = create_default_scene()
    print(
        f"Scene: {scene.get_sphere_count()} spheres, {scene.get_light_count()} light(s), "
        f"{camera.width}x{camera.height}"
    )

    config = RenderConfig(
        width=camera.width,
        height=camera.height,
        fov_y=camera.fov_y,
        shading=shading,
    )
    renderer = WhittedRenderer(config, camera)

    start_time = time.time()

    def progress_callback(rows_done: int, total: int) -> None:
        elapsed = time.time() - start_time
        progress_pct = (rows_done / total) * 100 if total > 0 else 0
        print(
            f"\r  Progress: {rows_done}/{total} rows ({progress_pct:.1f}%) - {elapsed:.1f}s",
            end="",
            flush=True,
        )

    renderer.render(callback=progress_callback)
    print()  # Newline after progress

    output_file = Path(output_path)
    renderer.save_image(str(output_file))
    print(f"Saved to: {output_file.absolute()}")

    return output_file


def main() -> int:
    """Main entry point."""
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    # Use GPU if available, fall back to CPU
    try:
        ti.init(arch=ti.gpu)
        print("Using GPU backend")
    except Exception:
        ti.init(arch=ti.cpu)
        print("Using CPU backend")

    try:
        render_default_scene("phong", OUTPUT_PATH)
        render_default_scene("facing", FACING_OUTPUT_PATH)
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
