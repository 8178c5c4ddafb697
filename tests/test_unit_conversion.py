import pytest

from lrv.units.conversion import GLUCOSE_FACTOR, UnitConverter, convert, supported_pairs


def test_identity_conversion_has_no_note():
    for unit in ["mg/dL", "g/L", "%", "IU/L", "not-even-a-unit"]:
        c = convert(42.5, unit, unit)
        assert c.value == 42.5
        assert c.note is None


def test_tabulated_factors():
    assert convert(1.3, "g/dL", "g/L").value == pytest.approx(13.0)
    assert convert(13.0, "g/L", "g/dL").value == pytest.approx(1.3)
    assert convert(150, "mg/dL", "g/L").value == pytest.approx(1.5)
    assert convert(1.5, "g/L", "mg/dL").value == pytest.approx(150)


def test_glucose_molar_conversion():
    c = convert(7, "mmol/L", "mg/dL")
    assert c.value == pytest.approx(7 * GLUCOSE_FACTOR)
    assert c.value == pytest.approx(126.13, abs=0.01)
    assert c.note == "mmol/L->mg/dL (glucose factor 18.0182)"


@pytest.mark.parametrize("pair", supported_pairs())
def test_round_trip_for_every_tabulated_pair(pair):
    a, b = pair
    x = 123.456
    there = convert(x, a, b)
    back = convert(there.value, b, a)
    assert back.value == pytest.approx(x)


@pytest.mark.parametrize(
    "src,dst",
    [("IU/L", "mg/dL"), ("%", "g/L"), ("g/dL", "mmol/L"), ("mg/dL", "IU/L")],
)
def test_untabulated_pairs_are_unsupported(src, dst):
    assert convert(1.0, src, dst) is None


def test_converter_uses_analyte_specific_factor():
    conv = UnitConverter(molar_factors={"2093-3": 38.67})
    c = conv.convert(5.0, "mmol/L", "mg/dL", analyte_code="2093-3")
    assert c.value == pytest.approx(193.35)
    assert "2093-3" in c.note

    glucose = conv.convert(5.0, "mmol/L", "mg/dL", analyte_code="2345-7")
    assert glucose.value == pytest.approx(5.0 * GLUCOSE_FACTOR)
