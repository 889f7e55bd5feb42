import warnings

import pytest

from rockfind.checked_io import CheckedIOError
from rockfind.config import Config, output_config


def test_defaults_match_template():
    config = Config()
    assert config.box_size == 250
    assert config.fof_linking_length == 0.28
    assert config.file_format == "GADGET2"
    assert config.lightcone_origin == (0.0, 0.0, 0.0)


def test_to_text_lines():
    lines = Config().to_text().splitlines()
    assert 'FILE_FORMAT = "GADGET2"' in lines
    assert "BOX_SIZE = 250" in lines
    assert "TOTAL_PARTICLES = 8589934592" in lines
    assert "LIGHTCONE_ORIGIN = (0, 0, 0)" in lines
    assert "GADGET_MASS_CONVERSION = 1e+10" in lines


def test_from_mapping_converts_kinds():
    config = Config.from_mapping(
        {
            "BOX_SIZE": "100",
            "NUM_SNAPS": "5.7",
            "LIGHTCONE_ORIGIN": "1 2 3",
            "OUTBASE": "/tmp/out",
            "Om": "0.3",
        }
    )
    assert config.box_size == 100.0
    assert config.num_snaps == 5
    assert config.lightcone_origin == (1.0, 2.0, 3.0)
    assert config.outbase == "/tmp/out"
    assert config.om == 0.3


def test_from_mapping_to_text_roundtrip_for_numbers():
    config = Config.from_mapping({"MIN_HALO_PARTICLES": 42, "FORCE_RES": 0.5})
    lines = config.to_text().splitlines()
    assert "MIN_HALO_PARTICLES = 42" in lines
    assert "FORCE_RES = 0.5" in lines


def test_from_mapping_unknown_key_warns():
    with pytest.warns(UserWarning, match="NOT_AN_OPTION"):
        config = Config.from_mapping({"NOT_AN_OPTION": "1"})
    assert config == Config()


def test_from_mapping_bad_value():
    with pytest.raises(ValueError, match="BOX_SIZE"):
        Config.from_mapping({"BOX_SIZE": "big"})
    with pytest.raises(ValueError, match="DUMP_PARTICLES"):
        Config.from_mapping({"DUMP_PARTICLES": "1 2"})


def test_setup_defaults_disable_periodic_without_parallel_io():
    config = Config()
    config.setup(1.0)
    assert config.periodic == 0
    assert config.temporal_halo_finding == 0
    assert config.num_readers == config.num_blocks
    assert config.force_res_phys_max == config.force_res


def test_setup_parallel_keeps_periodic():
    config = Config(parallel_io=1)
    config.setup(1.0)
    assert config.periodic == 1
    assert config.temporal_halo_finding == 1


def test_setup_ignore_ids_disables_temporal():
    config = Config(parallel_io=1, ignore_particle_ids=1)
    config.setup(1.0)
    assert config.temporal_halo_finding == 0
    assert config.periodic == 1


def test_setup_particle_mass_scales_with_density():
    low, high = Config(), Config()
    low.setup(1.0)
    high.setup(2.0)
    assert high.particle_mass == pytest.approx(2 * low.particle_mass)
    assert high.avg_particle_spacing == pytest.approx(low.avg_particle_spacing)


def test_setup_keeps_explicit_particle_mass():
    config = Config(particle_mass=7.5)
    config.setup(1.0)
    assert config.particle_mass == 7.5


def test_setup_raises_num_writers():
    config = Config(num_writers=1, fork_processors_per_machine=4)
    config.setup(1.0)
    assert config.num_writers == 4


def test_setup_warns_when_no_snaps():
    config = Config(num_snaps=0)
    with pytest.warns(UserWarning, match="No work will be done"):
        config.setup(1.0)
    assert config.num_snaps == 0


def test_setup_no_warning_by_default():
    config = Config()
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        config.setup(1.0)
    assert config.num_readers == 1


def test_output_config_writes_text(tmp_path):
    config = Config(outbase=str(tmp_path))
    path = output_config(config)
    assert path == f"{tmp_path}/rockstar.cfg"
    assert (tmp_path / "rockstar.cfg").read_text() == config.to_text()


def test_output_config_custom_name(tmp_path):
    config = Config(outbase=str(tmp_path), box_size=42)
    output_config(config, "other.cfg")
    assert "BOX_SIZE = 42\n" in (tmp_path / "other.cfg").read_text()


def test_output_config_missing_directory(tmp_path):
    config = Config(outbase=str(tmp_path / "absent"))
    with pytest.raises(CheckedIOError, match="for writing"):
        output_config(config, None)