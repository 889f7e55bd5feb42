"""Halo-finder configuration options, their defaults and derived values."""

from __future__ import annotations

import math
import warnings
from dataclasses import dataclass, field, fields
from typing import Any, Mapping

from rockfind.checked_io import check_open

try:
    import resource
except ImportError:  # not available on every platform
    resource = None


def _opt(kind: str, key: str, default: Any):
    return field(default=default, metadata={"kind": kind, "key": key})


def _s(key, default):
    return _opt("string", key, default)


def _r(key, default):
    return _opt("real", key, float(default))


def _i(key, default):
    return _opt("integer", key, int(default))


def _r3(key):
    return _opt("real3", key, (0.0, 0.0, 0.0))


def _cbrt(x: float) -> float:
    return math.copysign(abs(x) ** (1.0 / 3.0), x)


def _convert(kind: str, key: str, raw: Any) -> Any:
    try:
        if kind == "string":
            return str(raw)
        if kind == "real":
            return float(raw)
        if kind == "integer":
            return int(float(raw))
        if isinstance(raw, str):
            for sep in "(),":
                raw = raw.replace(sep, " ")
            parts = raw.split()
        else:
            parts = list(raw)
        if len(parts) != 3:
            raise ValueError("expected three values")
        return tuple(float(x) for x in parts)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid value {raw!r} for config option {key}") from exc


def _raise_resource_limits() -> None:
    if resource is None:
        return
    for limit in (resource.RLIMIT_NOFILE, resource.RLIMIT_CORE):
        try:
            _, hard = resource.getrlimit(limit)
            resource.setrlimit(limit, (hard, hard))
        except (ValueError, OSError):
            pass


@dataclass
class Config:
    """All configuration options; attribute names are the option names in lower case."""

    file_format: str = _s("FILE_FORMAT", "GADGET2")
    particle_mass: float = _r("PARTICLE_MASS", 0)
    mass_definition: str = _s("MASS_DEFINITION", "vir")
    mass_definition2: str = _s("MASS_DEFINITION2", "200b")
    mass_definition3: str = _s("MASS_DEFINITION3", "200c")
    mass_definition4: str = _s("MASS_DEFINITION4", "500c")
    mass_definition5: str = _s("MASS_DEFINITION5", "2500c")
    strict_so_masses: int = _i("STRICT_SO_MASSES", 0)
    min_halo_output_size: int = _i("MIN_HALO_OUTPUT_SIZE", 20)
    min_halo_output_mass: int = _i("MIN_HALO_OUTPUT_MASS", 0)
    force_res: float = _r("FORCE_RES", 0.003)
    force_res_phys_max: float = _r("FORCE_RES_PHYS_MAX", 0)

    scale_now: float = _r("SCALE_NOW", 1.0)
    non_cosmological: float = _r("NON_COSMOLOGICAL", 0)
    h0: float = _r("h0", 0.7)
    ol: float = _r("Ol", 0.73)
    om: float = _r("Om", 0.27)
    w0: float = _r("W0", -1)
    wa: float = _r("WA", 0)

    gadget_id_bytes: int = _i("GADGET_ID_BYTES", 4)
    gadget_mass_conversion: float = _r("GADGET_MASS_CONVERSION", 1e10)
    gadget_length_conversion: float = _r("GADGET_LENGTH_CONVERSION", 1.0)
    gadget_velocity_conversion: float = _r("GADGET_VELOCITY_CONVERSION", 1.0)
    gadget_halo_particle_type: int = _i("GADGET_HALO_PARTICLE_TYPE", 1)
    rescale_particle_mass: int = _i("RESCALE_PARTICLE_MASS", 0)

    tipsy_length_conversion: float = _r("TIPSY_LENGTH_CONVERSION", 1.0)
    tipsy_velocity_conversion: float = _r("TIPSY_VELOCITY_CONVERSION", 1.0)
    tipsy_mass_conversion: float = _r("TIPSY_MASS_CONVERSION", 1.0)

    nchilada_length_conversion: float = _r("NCHILADA_LENGTH_CONVERSION", 1.0)
    nchilada_velocity_conversion: float = _r("NCHILADA_VELOCITY_CONVERSION", 1.0)
    nchilada_mass_conversion: float = _r("NCHILADA_MASS_CONVERSION", 1.0)

    parallel_io: int = _i("PARALLEL_IO", 0)
    parallel_io_server_address: str = _s("PARALLEL_IO_SERVER_ADDRESS", "auto")
    parallel_io_server_port: str = _s("PARALLEL_IO_SERVER_PORT", "auto")
    parallel_io_writer_port: int = _i("PARALLEL_IO_WRITER_PORT", 32001)
    parallel_io_server_interface: str = _s("PARALLEL_IO_SERVER_INTERFACE", "")
    parallel_io_catalogs: int = _i("PARALLEL_IO_CATALOGS", 0)
    run_on_success: str = _s("RUN_ON_SUCCESS", "")
    run_parallel_on_success: str = _s("RUN_PARALLEL_ON_SUCCESS", "")
    load_balance_script: str = _s("LOAD_BALANCE_SCRIPT", "")

    inbase: str = _s("INBASE", ".")
    filename: str = _s("FILENAME", "tests/halo_nfw")
    starting_snap: int = _i("STARTING_SNAP", 0)
    restart_snap: int = _i("RESTART_SNAP", 0)
    num_snaps: int = _i("NUM_SNAPS", 1)
    num_blocks: int = _i("NUM_BLOCKS", 1)
    num_readers: int = _i("NUM_READERS", 0)
    preload_particles: int = _i("PRELOAD_PARTICLES", 0)
    snapshot_names: str = _s("SNAPSHOT_NAMES", "")
    lightcone_alt_snaps: str = _s("LIGHTCONE_ALT_SNAPS", "")
    block_names: str = _s("BLOCK_NAMES", "")

    outbase: str = _s("OUTBASE", ".")
    overlap_length: float = _r("OVERLAP_LENGTH", 3.0)
    num_writers: int = _i("NUM_WRITERS", 1)
    fork_readers_from_writers: int = _i("FORK_READERS_FROM_WRITERS", 0)
    fork_processors_per_machine: int = _i("FORK_PROCESSORS_PER_MACHINE", 1)

    output_format: str = _s("OUTPUT_FORMAT", "BOTH")
    delete_binary_output_after_finished: int = _i("DELETE_BINARY_OUTPUT_AFTER_FINISHED", 0)
    full_particle_chunks: int = _i("FULL_PARTICLE_CHUNKS", 0)
    bgc2_snapnames: str = _s("BGC2_SNAPNAMES", "")

    shape_iterations: int = _i("SHAPE_ITERATIONS", 10)
    weighted_shapes: int = _i("WEIGHTED_SHAPES", 1)
    bound_props: int = _i("BOUND_PROPS", 1)
    bound_out_to_halo_edge: int = _i("BOUND_OUT_TO_HALO_EDGE", 0)
    do_merger_tree_only: int = _i("DO_MERGER_TREE_ONLY", 0)
    ignore_particle_ids: int = _i("IGNORE_PARTICLE_IDS", 0)
    exact_ll_calc: int = _i("EXACT_LL_CALC", 0)
    trim_overlap: float = _r("TRIM_OVERLAP", 0)
    round_after_trim: float = _r("ROUND_AFTER_TRIM", 1)
    lightcone: int = _i("LIGHTCONE", 0)
    periodic: int = _i("PERIODIC", 1)

    lightcone_origin: tuple = _r3("LIGHTCONE_ORIGIN")
    lightcone_alt_origin: tuple = _r3("LIGHTCONE_ALT_ORIGIN")

    limit_center: tuple = _r3("LIMIT_CENTER")
    limit_radius: float = _r("LIMIT_RADIUS", 0)

    swap_endianness: int = _i("SWAP_ENDIANNESS", 0)
    gadget_variant: int = _i("GADGET_VARIANT", 0)
    art_variant: int = _i("ART_VARIANT", 0)

    fof_fraction: float = _r("FOF_FRACTION", 0.7)
    fof_linking_length: float = _r("FOF_LINKING_LENGTH", 0.28)
    initial_metric_scaling: float = _r("INITIAL_METRIC_SCALING", 1)
    include_host_potential_ratio: float = _r("INCLUDE_HOST_POTENTIAL_RATIO", 0.3)
    temporal_halo_finding: int = _i("TEMPORAL_HALO_FINDING", 1)
    min_halo_particles: int = _i("MIN_HALO_PARTICLES", 10)
    unbound_threshold: float = _r("UNBOUND_THRESHOLD", 0.5)
    alt_nfw_metric: int = _i("ALT_NFW_METRIC", 0)
    extra_profiling: int = _i("EXTRA_PROFILING", 1)

    suppress_galaxies: int = _i("SUPPRESS_GALAXIES", 1)
    non_dm_metric_scaling: float = _r("NON_DM_METRIC_SCALING", 10)
    galaxy_poisson_sigma: float = _r("GALAXY_POISSON_SIGMA", 10)
    galaxy_linking_length: float = _r("GALAXY_LINKING_LENGTH", 2.0)
    density_merge_thresh: float = _r("DENSITY_MERGE_THRESH", 1e22)

    total_particles: int = _i("TOTAL_PARTICLES", 8589934592)
    box_size: float = _r("BOX_SIZE", 250)
    output_levels: int = _i("OUTPUT_LEVELS", 0)
    dump_particles: tuple = _r3("DUMP_PARTICLES")

    rockstar_config_filename: str = _s("ROCKSTAR_CONFIG_FILENAME", "")
    avg_particle_spacing: float = _r("AVG_PARTICLE_SPACING", 0)
    single_snap: int = _i("SINGLE_SNAP", 0)

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "Config":
        """Build a config from option names (as written in config files) to values.

        Unknown option names are reported with a warning and ignored.
        """
        by_key = {f.metadata["key"]: f for f in fields(cls)}
        kwargs = {}
        for key, raw in values.items():
            spec = by_key.get(key)
            if spec is None:
                warnings.warn(f"[Warning] Unknown config option {key}", stacklevel=2)
                continue
            kwargs[spec.name] = _convert(spec.metadata["kind"], key, raw)
        return cls(**kwargs)

    def setup(self, critical_density: float) -> None:
        """Fill in derived values and enforce option dependencies."""
        if not self.num_readers:
            self.num_readers = self.num_blocks
        if not self.particle_mass:
            self.particle_mass = (
                critical_density * self.box_size ** 3 * self.om / self.total_particles
            )
        if not self.avg_particle_spacing:
            self.avg_particle_spacing = _cbrt(
                self.particle_mass / (self.om * critical_density)
            )
        if self.lightcone or not self.parallel_io:
            self.periodic = 0
            self.temporal_halo_finding = 0
        if self.ignore_particle_ids:
            self.temporal_halo_finding = 0
        if not self.force_res_phys_max:
            self.force_res_phys_max = self.force_res

        _raise_resource_limits()

        if self.num_writers < self.fork_processors_per_machine:
            self.num_writers = self.fork_processors_per_machine
        if self.starting_snap >= self.num_snaps:
            warnings.warn(
                "[Warning] No work will be done unless NUM_SNAPS > STARTING_SNAP "
                "in config file!",
                stacklevel=2,
            )

    def to_text(self) -> str:
        """Render every option as ``NAME = value`` lines."""
        lines = []
        for spec in fields(self):
            key, kind = spec.metadata["key"], spec.metadata["kind"]
            value = getattr(self, spec.name)
            if kind == "string":
                lines.append(f'{key} = "{value}"')
            elif kind == "real":
                lines.append("%s = %g" % (key, value))
            elif kind == "integer":
                lines.append("%s = %d" % (key, int(value)))
            else:
                lines.append("%s = (%g, %g, %g)" % (key, *value))
        return "".join(line + "\n" for line in lines)


def output_config(config: Config, filename: str | None = None) -> str:
    """Write the config into its output directory; return the path written."""
    path = f"{config.outbase}/{filename or 'rockstar.cfg'}"
    with check_open(path, "w") as output:
        output.write(config.to_text())
    return path