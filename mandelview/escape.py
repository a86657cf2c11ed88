from __future__ import annotations

ESCAPE_RADIUS_SQ = 4.0

def escape_time(real: float, imag: float, max_iter: int) -> int:
    """
    Iterate z <- z*z + c from z = 0 and return the step at which |z|^2 first
    exceeds 4. Points that never escape return max_iter, which downstream code
    treats as "inside the set" (black / sea level).

    The test runs after each update, so c = (2, 2) returns 0 and
    c = (1, 1) returns 1 (z2 = 1+3j is the first escaped value).
    """
    zr = 0.0
    zi = 0.0
    n = 0
    while n < max_iter:
        tmp = zr * zr - zi * zi + real
        zi = 2.0 * zr * zi + imag
        zr = tmp
        if zr * zr + zi * zi > ESCAPE_RADIUS_SQ:
            return n
        n += 1
    return max_iter

def in_set(real: float, imag: float, max_iter: int) -> bool:
    return escape_time(real, imag, max_iter) == max_iter
