"""Cosmological distances from a tabulated comoving-distance integral."""

from __future__ import annotations

import math
from typing import Callable

MAX_Z = 300.0
Z_BINS = 1000.0
TOTAL_BINS = int(MAX_Z) * int(Z_BINS)
HUBBLE_DISTANCE_H = 2997.92458  # c / (100 km/s/Mpc), in Mpc


def redshift(a: float) -> float:
    """Redshift for a scale factor."""
    return 1.0 / a - 1.0


def scale_factor(z: float) -> float:
    """Scale factor for a redshift."""
    return 1.0 / (1.0 + z)


class Cosmology:
    """Distance measures for a flat universe with a given expansion history.

    ``hubble_scaling(z)`` is E(z) = H(z)/H0; ``h`` is H0 / (100 km/s/Mpc).
    Distances are in Mpc unless the method name ends with ``_h``.
    """

    def __init__(self, h: float, hubble_scaling: Callable[[float], float]):
        self.h = h
        self.hubble_scaling = hubble_scaling
        self.hubble_distance = HUBBLE_DISTANCE_H / h
        table = []
        integral = 0.0
        for i in range(TOTAL_BINS):
            z = (i + 0.5) / Z_BINS
            table.append(integral * self.hubble_distance)
            integral += 1.0 / (hubble_scaling(z) * Z_BINS)
        self._dc = table

    def comoving_distance(self, z: float) -> float:
        if z < 0:
            return 0.0
        f = z * Z_BINS
        bin_index = int(f)
        if bin_index > TOTAL_BINS - 2:
            return self._dc[-1]
        f -= bin_index
        return self._dc[bin_index] * (1.0 - f) + self._dc[bin_index + 1] * f

    def comoving_distance_h(self, z: float) -> float:
        return self.comoving_distance(z) * self.h

    def transverse_distance(self, z: float) -> float:
        return self.comoving_distance(z)

    def angular_diameter_distance(self, z: float) -> float:
        return self.transverse_distance(z) / (1.0 + z)

    def luminosity_distance(self, z: float) -> float:
        return (1.0 + z) * self.transverse_distance(z)

    def comoving_volume_element(self, z: float) -> float:
        z1da = (1.0 + z) * self.angular_diameter_distance(z)
        return self.hubble_distance * z1da * z1da / self.hubble_scaling(z)

    def comoving_volume(self, z: float) -> float:
        r = self.transverse_distance(z)
        return 4.0 * math.pi * r * r * r / 3.0

    def comoving_distance_to_redshift(self, r: float) -> float:
        """Invert the comoving distance by a damped secant search."""
        if r <= 0:
            return 0.0
        z = 1.0
        dz = 0.1
        while dz > 1e-7:
            rt = self.transverse_distance(z)
            slope = self.transverse_distance(z + dz) - rt
            if slope == 0:
                return z
            dz = ((r - rt) * dz) / slope
            if not math.isfinite(dz):
                return z
            if z + dz < 0:
                z /= 3.0
            else:
                z += dz
            dz = min(abs(dz), 0.1)
        return z

    def comoving_volume_to_redshift(self, vc: float) -> float:
        x = vc * (3.0 / (4.0 * math.pi))
        r = math.copysign(abs(x) ** (1.0 / 3.0), x)
        return self.comoving_distance_to_redshift(r)

    def comoving_distance_h_to_redshift(self, r: float) -> float:
        return self.comoving_distance_to_redshift(r / self.h)