"""Colour-space conversion between accessory hue/saturation and device RGB."""

from __future__ import annotations

import colorsys


def hs_to_rgb(hue: float, saturation: float) -> tuple[int, int, int]:
    """Convert hue [0, 360] and saturation [0, 100] at full value to RGB [0, 255]."""
    h = (float(hue) % 360.0) / 360.0
    s = max(0.0, min(100.0, float(saturation))) / 100.0
    r, g, b = colorsys.hsv_to_rgb(h, s, 1.0)
    return round(r * 255), round(g * 255), round(b * 255)


def rgb_to_hs(r: int, g: int, b: int) -> tuple[int, int]:
    """Convert RGB [0, 255] to (hue [0, 360), saturation [0, 100])."""
    rf, gf, bf = (max(0, min(255, int(c))) / 255.0 for c in (r, g, b))
    h, s, _ = colorsys.rgb_to_hsv(rf, gf, bf)
    return round(h * 360) % 360, round(s * 100)
