import pytest

import porotaichi
from porotaichi.mpm.mainMPM import MPM


def test_package_root_exposes_runtime_and_factory_only():
    assert callable(porotaichi.init)
    assert isinstance(porotaichi.MPM(log=False), MPM)
    for name in ("Logger", "make_print_to_file", "bytes_to_GB"):
        assert not hasattr(porotaichi, name)


@pytest.mark.parametrize("options", [{"arch": "tpu"}, {"arch": "cpu", "default_fp": "float16"}, {"arch": "cpu", "default_ip": "int8"}])
def test_invalid_runtime_keywords_are_rejected(options):
    with pytest.raises(RuntimeError, match="is invalid"):
        porotaichi.init(**options)
