"""Per-pixel random number generation for Monte Carlo sampling.

Every pixel owns an independent ``ti.u32`` generator state derived from the
render seed and the pixel's linear index, so the samples a pixel draws do not
depend on which worker thread renders it or in which order pixels finish.

The state is seeded with Wang's integer hash and advanced with Marsaglia's
xorshift32. Functions that draw numbers take the state as ``ti.template()``,
which Taichi passes by reference, and advance it in place:

    @ti.kernel
    def fill(out: ti.template(), seed: ti.i32):
        for i in out:
            state = pixel_seed(seed, i)
            out[i] = next_float(state)
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.vector import vec3

# Replacement for an all-zero xorshift state, which would never advance
_NONZERO_STATE = 0x2545F491

# 2^-24: maps the top 24 bits of a u32 onto [0, 1)
_INV_2_POW_24 = 1.0 / 16777216.0


@ti.func
def hash_u32(value: ti.u32) -> ti.u32:
    """Scramble a 32-bit integer with Wang's hash."""
    x = ti.cast(value, ti.u32)
    x = (x ^ ti.cast(61, ti.u32)) ^ (x >> ti.cast(16, ti.u32))
    x = x * ti.cast(9, ti.u32)
    x = x ^ (x >> ti.cast(4, ti.u32))
    x = x * ti.cast(0x27D4EB2D, ti.u32)
    x = x ^ (x >> ti.cast(15, ti.u32))
    return x


@ti.func
def pixel_seed(seed: ti.i32, pixel_index: ti.i32) -> ti.u32:
    """Derive the generator state for one pixel.

    Args:
        seed: The global render seed.
        pixel_index: The pixel's linear index (row * width + col).

    Returns:
        A non-zero u32 state unique to (seed, pixel_index) with high probability.
    """
    index_hash = hash_u32(ti.cast(pixel_index, ti.u32) + ti.cast(1, ti.u32))
    state = hash_u32(ti.cast(seed, ti.u32) ^ index_hash)
    if state == ti.cast(0, ti.u32):
        state = ti.cast(_NONZERO_STATE, ti.u32)
    return state


@ti.func
def next_u32(state: ti.template()) -> ti.u32:
    """Advance an xorshift32 state in place and return the new value."""
    x = state
    x = x ^ (x << ti.cast(13, ti.u32))
    x = x ^ (x >> ti.cast(17, ti.u32))
    x = x ^ (x << ti.cast(5, ti.u32))
    state = x
    return x


@ti.func
def next_float(state: ti.template()) -> ti.f32:
    """Draw a uniform float in [0, 1) and advance the state."""
    bits = next_u32(state) >> ti.cast(8, ti.u32)
    return ti.cast(bits, ti.f32) * _INV_2_POW_24


@ti.func
def random_unit_vector(state: ti.template()) -> vec3:
    """Draw a direction uniformly distributed on the unit sphere.

    Uses the inverse-CDF mapping z = 1 - 2u, phi = 2 pi v, so exactly two
    numbers are consumed per call and the result never needs normalizing.
    """
    z = 1.0 - 2.0 * next_float(state)
    phi = 2.0 * tm.pi * next_float(state)
    r = ti.sqrt(tm.max(0.0, 1.0 - z * z))
    return vec3(r * ti.cos(phi), r * ti.sin(phi), z)


@ti.func
def random_in_unit_disk(state: ti.template()) -> vec3:
    """Draw a point uniformly distributed inside the unit disk.

    Returns:
        A point (x, y, 0) with x^2 + y^2 < 1, used for lens sampling.
    """
    r = ti.sqrt(next_float(state))
    theta = 2.0 * tm.pi * next_float(state)
    return vec3(r * ti.cos(theta), r * ti.sin(theta), 0.0)
