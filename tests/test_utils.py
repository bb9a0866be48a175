import pytest

from mcprocess.exceptions import ConfigurationError
from mcprocess.utils import autocrit, t_crit, z_crit


def test_z_crit_common_levels():
    assert z_crit(0.95) == pytest.approx(1.959964, abs=1e-6)
    assert z_crit(0.90) == pytest.approx(1.644854, abs=1e-6)


def test_t_crit_exceeds_z_crit():
    assert t_crit(0.95, 5) == pytest.approx(2.570582, abs=1e-6)
    assert t_crit(0.95, 1000) > z_crit(0.95)


@pytest.mark.parametrize(("n", "kind"), [(10, "t"), (29, "t"), (30, "z"), (500, "z")])
def test_autocrit_switches_at_thirty(n, kind):
    _, resolved = autocrit(0.95, n)
    assert resolved == kind


def test_autocrit_forced_methods():
    assert autocrit(0.95, 1000, "t")[1] == "t"
    assert autocrit(0.95, 5, "z") == (z_crit(0.95), "z")


def test_invalid_inputs():
    with pytest.raises(ConfigurationError):
        z_crit(1.0)
    with pytest.raises(ConfigurationError):
        t_crit(0.95, 0)
    with pytest.raises(ConfigurationError):
        autocrit(0.95, 10, "bootstrap")
